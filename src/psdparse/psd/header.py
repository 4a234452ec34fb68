"""
File header structure.
"""

import logging
from typing import Any, Optional, TypeVar, Union

from attrs import define, field

from psdparse.constants import ColorMode, mode_name
from psdparse.context import ParseContext
from psdparse.errors import HeaderError
from psdparse.psd.bin_utils import ByteCursor
from psdparse.validators import in_, range_

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="FileHeader")

SIGNATURE = b"8BPS"
EXPECTED_DEPTHS = (1, 8, 16, 32)


@define(repr=True)
class FileHeader:
    """
    Header section of the PSD file.

    Example::

        from psdparse.psd.header import FileHeader
        from psdparse.constants import ColorMode

        header = FileHeader(channels=2, height=359, width=400, depth=8,
                            color_mode=ColorMode.GRAYSCALE)

    .. py:attribute:: signature

        Signature: always equal to ``b'8BPS'``.

    .. py:attribute:: version

        Version number. Only 1 (PSD) is supported.

    .. py:attribute:: channels

        The number of channels in the image, including any user-defined alpha
        channel. 1 to 64.

    .. py:attribute:: height

        The height of the image in pixels.

    .. py:attribute:: width

        The width of the image in pixels.

    .. py:attribute:: depth

        The number of bits per channel.

    .. py:attribute:: color_mode

        The color mode of the file. See
        :py:class:`~psdparse.constants.ColorMode`. Unknown values are kept as
        plain ``int``.
    """

    _FORMAT = "4sH6xHIIHH"

    signature: bytes = field(default=SIGNATURE, repr=False)
    version: int = field(default=1, validator=in_((1,)))
    channels: int = field(default=4, validator=range_(1, 64))
    height: int = field(default=64, validator=range_(1, 0x7FFFFFFF))
    width: int = field(default=64, validator=range_(1, 0x7FFFFFFF))
    depth: int = field(default=8, validator=range_(0, 32))
    color_mode: Union[ColorMode, int] = field(
        default=ColorMode.RGB, converter=ColorMode.from_value
    )

    @signature.validator
    def _validate_signature(self, attribute: Any, value: bytes) -> None:
        if value != SIGNATURE:
            raise ValueError("This is not a PSD file")

    @classmethod
    def read(
        cls: type[T], cursor: ByteCursor, ctx: Optional[ParseContext] = None
    ) -> T:
        values = cursor.read_fmt(cls._FORMAT)
        try:
            self = cls(*values)
        except ValueError as e:
            raise HeaderError(str(e)) from e
        if ctx is not None:
            ctx.info(
                "channels = %d, rows = %d, cols = %d, depth = %d, mode = %d (%s)",
                self.channels,
                self.height,
                self.width,
                self.depth,
                self.color_mode,
                mode_name(self.color_mode),
            )
            if self.depth not in EXPECTED_DEPTHS:
                ctx.warn("unusual bit depth %d", self.depth)
        return self

    @property
    def rows(self) -> int:
        return self.height

    @property
    def cols(self) -> int:
        return self.width
