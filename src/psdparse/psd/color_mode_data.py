"""
Color mode data structure.
"""

import array
import logging
from typing import Optional, TypeVar

from attrs import define

from psdparse.context import ParseContext
from psdparse.psd.base import read_section
from psdparse.psd.bin_utils import ByteCursor

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="ColorModeData")


@define(repr=False)
class ColorModeData:
    """
    Color mode data section of the PSD file.

    The contents are opaque to the decoder. For indexed color images the data
    is the color table for the image in a non-interleaved order, which the
    image writer needs as a palette.
    """

    value: bytes = b""

    def __repr__(self) -> str:
        return "ColorModeData(len=%d)" % len(self.value)

    @classmethod
    def read(cls: type[T], cursor: ByteCursor, ctx: ParseContext) -> T:
        with read_section(cursor, ctx, "color mode data") as section:
            value = cursor.read(section.length)
            if len(value) < section.length:
                ctx.warn(
                    "color mode data truncated (%d of %d bytes)",
                    len(value),
                    section.length,
                )
                section.trailer_expected = True
        return cls(value)

    def interleave(self) -> Optional[bytes]:
        """
        Returns interleaved color table in bytes, or ``None`` when the data is
        too short to be a 256-entry table.
        """
        if len(self.value) < 768:
            return None
        return b"".join(
            array.array(
                "B", [(self.value[i]), (self.value[i + 256]), (self.value[i + 512])]
            ).tobytes()
            for i in range(256)
        )
