"""
Image data section structure.

:py:class:`ImageData` corresponds to the last section of the PSD file where a
composited image is stored. All channels share one compression tag, and for
RLE the scanline counts of every channel come first. The section has no
declared length; it runs to the end of the file.
"""

import logging
from typing import TypeVar

from attrs import define, field

from psdparse.context import ParseContext
from psdparse.psd.bin_utils import ByteCursor
from psdparse.psd.channel_data import ChannelGroup, decode_channels
from psdparse.psd.header import FileHeader

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="ImageData")


@define(repr=False)
class ImageData:
    """
    Merged channel image data.

    .. py:attribute:: group

        Decoded :py:class:`~psdparse.psd.channel_data.ChannelGroup` of all
        header channels.
    """

    group: ChannelGroup = field(factory=lambda: ChannelGroup(0, 0, 8))

    def __repr__(self) -> str:
        return "ImageData(%r)" % self.group

    @property
    def channels(self) -> list[bytes]:
        return self.group.channels

    @classmethod
    def read(cls: type[T], cursor: ByteCursor, ctx: ParseContext, header: FileHeader) -> T:
        start_pos = cursor.position()
        if not cursor.is_readable(2):
            ctx.warn("no merged image data", offset=start_pos, always=True)
            return cls(ChannelGroup.skip(header.height, header.width, header.depth))

        logger.debug("  merged channels:")
        group = decode_channels(
            cursor, ctx, header.channels, header.height, header.width, header.depth
        )
        logger.debug(
            "  read image data, len=%d" % (cursor.position() - start_pos)
        )
        return cls(group)
