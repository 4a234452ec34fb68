"""
Binary reading utilities.

:py:class:`ByteCursor` is a sequential big-endian reader over a seekable byte
source. Every fixed-size read either returns the full value or raises
:py:class:`~psdparse.errors.TruncatedInput`; :py:meth:`ByteCursor.read`
is the only call allowed to come back short.
"""

import io
import logging
import os
import struct
from typing import Any, BinaryIO

from psdparse.errors import TruncatedInput

logger = logging.getLogger(__name__)


def pad(number: int, divisor: int) -> int:
    """Round ``number`` up to a multiple of ``divisor``."""
    if number % divisor:
        number = (number // divisor + 1) * divisor
    return number


def trimmed_repr(data: bytes, maxlen: int = 25) -> str:
    if len(data) > maxlen:
        return "%s ...%d more" % (data[:maxlen].hex(), len(data) - maxlen)
    return data.hex()


class ByteCursor:
    """
    Big-endian reader tracking the absolute position in the source.

    Seeking past the end is allowed; the next read reports truncation.

    Example::

        cursor = ByteCursor.frombytes(b'\\x00\\x01\\xff\\xfe')
        assert cursor.read_u16() == 1
        assert cursor.read_s16() == -2
    """

    def __init__(self, fp: BinaryIO):
        self._fp = fp

    @classmethod
    def frombytes(cls, data: bytes) -> "ByteCursor":
        return cls(io.BytesIO(data))

    @property
    def fp(self) -> BinaryIO:
        return self._fp

    def position(self) -> int:
        return self._fp.tell()

    def size(self) -> int:
        """Total size of the source in bytes."""
        current = self._fp.tell()
        end = self._fp.seek(0, os.SEEK_END)
        self._fp.seek(current, os.SEEK_SET)
        return end

    def is_readable(self, size: int = 1) -> bool:
        return self.size() - self.position() >= size

    def seek_forward(self, n: int) -> int:
        if n < 0:
            raise ValueError("seek_forward expects n >= 0, got %d" % n)
        return self._fp.seek(n, os.SEEK_CUR)

    def seek_absolute(self, pos: int) -> int:
        return self._fp.seek(pos, os.SEEK_SET)

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes; the result is short at end of source."""
        if size <= 0:
            return b""
        return self._fp.read(size)

    def read_exact(self, size: int) -> bytes:
        pos = self.position()
        data = self.read(size)
        if len(data) != size:
            raise TruncatedInput(
                "expected %d bytes at offset %d, got %d" % (size, pos, len(data))
            )
        return data

    def read_fmt(self, fmt: str) -> tuple[Any, ...]:
        """Read a big-endian :py:mod:`struct` format."""
        fmt = ">" + fmt
        return struct.unpack(fmt, self.read_exact(struct.calcsize(fmt)))

    def read_u8(self) -> int:
        return self.read_fmt("B")[0]

    def read_u16(self) -> int:
        return self.read_fmt("H")[0]

    def read_s16(self) -> int:
        return self.read_fmt("h")[0]

    def read_u32(self) -> int:
        return self.read_fmt("I")[0]

    def read_s32(self) -> int:
        return self.read_fmt("i")[0]

    def read_pascal_string(self, padding: int = 1) -> bytes:
        """
        Read a length-prefixed string. The length byte and the string
        together are padded to a multiple of ``padding``.
        """
        length = self.read_u8()
        data = self.read_exact(pad(length + 1, padding) - 1)
        return data[:length]
