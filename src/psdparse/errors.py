"""
Exceptions raised by the decoder.

Only conditions that abort the current file are raised. Recoverable
corruption is recorded on :py:class:`~psdparse.context.ParseContext` and
never interrupts the parse.
"""


class PSDError(Exception):
    """Base class of psdparse errors."""


class FatalError(PSDError):
    """Processing of the current file cannot continue."""


class TruncatedInput(FatalError, IOError):
    """A fixed-size read ran past the end of the byte source."""


class HeaderError(FatalError, ValueError):
    """File header has a bad signature, version or implausible geometry."""


class RLECountError(FatalError):
    """The RLE scanline byte-count table could not be read in full."""
