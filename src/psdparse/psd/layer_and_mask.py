"""
Layer and mask data structures.

This module implements the "Layer and Mask Information" section of PSD
files::

    length
      layer info length
        layer count (signed, negative = merged image has alpha)
        layer record * count
        channel image data for every layer, in record order
      global layer mask info (length-prefixed, not interpreted)
      additional layer information (not interpreted)

Key classes:

- :py:class:`LayerAndMaskInformation`: Top-level container
- :py:class:`LayerInfo`: Layer records and their decoded channels
- :py:class:`LayerRecord`: Single layer metadata (bounds, channels, blend
  mode, mask, name)
- :py:class:`LayerDecodeTask`: Independent decode of one layer's channels

Layer records are parsed sequentially. Once every record is known, each
layer's channel data has a fixed offset and length, so decoding is expressed
as one :py:class:`LayerDecodeTask` per layer that can run on its own cursor.

Example of reading layer metadata::

    from psdparse.psd import PSD

    with open('file.psd', 'rb') as f:
        psd = PSD.read(f)

    layer_info = psd.layer_and_mask_information.layer_info
    for record in layer_info.layer_records:
        print(f"Layer: {record.display_name}")
        print(f"  Bounds: {record.top}, {record.left}, {record.bottom}, {record.right}")
        print(f"  Channels: {len(record.channel_info)}")
"""

import logging
import struct
from concurrent.futures import ThreadPoolExecutor
from typing import BinaryIO, Callable, Iterator, Optional, TypeVar, Union

from attrs import define, field

from psdparse.constants import BlendMode, ChannelID, Clipping, channel_suffix_letter
from psdparse.context import ParseContext
from psdparse.psd.base import read_section, skip_block
from psdparse.psd.bin_utils import ByteCursor
from psdparse.psd.channel_data import ChannelGroup, decode_channels
from psdparse.psd.header import FileHeader

logger = logging.getLogger(__name__)

T_LayerAndMaskInformation = TypeVar(
    "T_LayerAndMaskInformation", bound="LayerAndMaskInformation"
)
T_LayerInfo = TypeVar("T_LayerInfo", bound="LayerInfo")
T_LayerRecord = TypeVar("T_LayerRecord", bound="LayerRecord")

Opener = Callable[[], BinaryIO]

#: Upper bound on channels per layer.
MAX_CHANNELS = 64

#: Bytes per channel descriptor: 16-bit id, 32-bit length.
CHANNEL_INFO_SIZE = 6

#: Blend mode signature, key, opacity, clipping, flags, filler.
BLEND_INFO_SIZE = 12


@define(repr=False)
class ChannelInfo:
    """
    Channel information.

    .. py:attribute:: id

        Channel ID: 0 = red, 1 = green, etc.; -1 = transparency mask; -2 =
        user supplied layer mask. See :py:class:`~psdparse.constants.ChannelID`.

    .. py:attribute:: length

        Length of the corresponding channel data, including the compression
        tag.
    """

    id: int = 0
    length: int = 0

    def __repr__(self) -> str:
        return "ChannelInfo(id=%d, length=%d)" % (self.id, self.length)

    @property
    def kind(self) -> Union[ChannelID, int]:
        try:
            return ChannelID(self.id)
        except ValueError:
            return self.id


@define(repr=False)
class LayerFlags:
    """
    Layer flags.

    .. py:attribute:: transparency_protected
    .. py:attribute:: visible
    .. py:attribute:: bit4_valid
    .. py:attribute:: pixel_data_irrelevant
    """

    transparency_protected: bool = False
    visible: bool = True
    bit4_valid: bool = True
    pixel_data_irrelevant: bool = False
    value: int = field(default=0, repr=False)

    def __repr__(self) -> str:
        return "LayerFlags(%#x)" % self.value

    @classmethod
    def frombyte(cls, flags: int) -> "LayerFlags":
        return cls(
            bool(flags & 1),
            not bool(flags & 2),  # set means hidden
            bool(flags & 8),
            bool(flags & 16),
            flags,
        )


@define(repr=False)
class BlendModeInfo:
    """
    Blend mode record of a layer.

    .. py:attribute:: signature

        Always ``b'8BIM'`` in well-formed files.

    .. py:attribute:: key

        4-byte blend mode key, see :py:attr:`blend_mode`.

    .. py:attribute:: opacity

        0 to 255.

    .. py:attribute:: clipping
    .. py:attribute:: flags

        See :py:class:`.LayerFlags`.
    """

    signature: bytes = b"8BIM"
    key: bytes = b"norm"
    opacity: int = 255
    clipping: int = Clipping.BASE
    flags: LayerFlags = field(factory=LayerFlags)

    def __repr__(self) -> str:
        return "BlendModeInfo(%r, %r, opacity=%d, clipping=%d, %r)" % (
            self.signature,
            self.key,
            self.opacity,
            self.clipping,
            self.flags,
        )

    @classmethod
    def read(cls, cursor: ByteCursor) -> "BlendModeInfo":
        signature, key, opacity, clipping, flags = cursor.read_fmt("4s4sBBBx")
        return cls(signature, key, opacity, clipping, LayerFlags.frombyte(flags))

    @property
    def blend_mode(self) -> Optional[BlendMode]:
        try:
            return BlendMode(self.key)
        except ValueError:
            return None

    @property
    def opacity_percent(self) -> int:
        return (self.opacity * 100 + 127) // 255


@define(repr=False)
class MaskData:
    """
    Layer mask parameters. Only the fixed fields are read; any further mask
    data (real user mask, mask parameters) is skipped.

    .. py:attribute:: top
    .. py:attribute:: left
    .. py:attribute:: bottom
    .. py:attribute:: right
    .. py:attribute:: default_color

        0 or 255.

    .. py:attribute:: flags
    """

    _FIXED_SIZE = 18

    top: int = 0
    left: int = 0
    bottom: int = 0
    right: int = 0
    default_color: int = 0
    flags: int = 0
    size: int = 20

    def __repr__(self) -> str:
        return "MaskData((%d, %d, %d, %d), default_color=%d, flags=%#x)" % (
            self.top,
            self.left,
            self.bottom,
            self.right,
            self.default_color,
            self.flags,
        )

    @property
    def rows(self) -> int:
        return self.bottom - self.top

    @property
    def cols(self) -> int:
        return self.right - self.left

    @property
    def disabled(self) -> bool:
        return bool(self.flags & 2)

    @classmethod
    def read(cls, cursor: ByteCursor, ctx: ParseContext) -> Optional["MaskData"]:
        size = cursor.read_u32()
        if size == 0:
            return None
        if size < cls._FIXED_SIZE:
            ctx.warn("layer mask data too short (%d bytes), skipped", size)
            cursor.seek_forward(size)
            return None
        top, left, bottom, right, default_color, flags = cursor.read_fmt("4iBB")
        cursor.seek_forward(size - cls._FIXED_SIZE)
        return cls(top, left, bottom, right, default_color, flags, size)


@define(repr=False)
class LayerRecord:
    """
    Layer record.

    .. py:attribute:: index

        Position of the layer in the file, bottom-most first.

    .. py:attribute:: top
    .. py:attribute:: left
    .. py:attribute:: bottom
    .. py:attribute:: right
    .. py:attribute:: channel_info

        List of :py:class:`.ChannelInfo`.

    .. py:attribute:: channel_index

        Map of channel id to its position in :py:attr:`channel_info`. Ids
        outside ``[-2, channels)`` are not included.

    .. py:attribute:: blend_mode_info

        See :py:class:`.BlendModeInfo`.

    .. py:attribute:: mask_data

        See :py:class:`.MaskData`, or ``None``.

    .. py:attribute:: name

        Pascal string name, empty when not set.

    .. py:attribute:: skipped

        The record failed the geometry sanity check. Only the channel
        lengths are known, so that the data of later layers can be located.
    """

    index: int = 0
    top: int = 0
    left: int = 0
    bottom: int = 0
    right: int = 0
    channel_info: list[ChannelInfo] = field(factory=list)
    channel_index: dict[int, int] = field(factory=dict)
    blend_mode_info: Optional[BlendModeInfo] = None
    mask_data: Optional[MaskData] = None
    name: str = ""
    skipped: bool = False

    def __repr__(self) -> str:
        return "LayerRecord(%d, %r, (%d, %d, %d, %d), %d channels%s)" % (
            self.index,
            self.display_name,
            self.top,
            self.left,
            self.bottom,
            self.right,
            len(self.channel_info),
            ", skipped" if self.skipped else "",
        )

    @property
    def width(self) -> int:
        """Width of the layer."""
        return max(self.right - self.left, 0)

    @property
    def height(self) -> int:
        """Height of the layer."""
        return max(self.bottom - self.top, 0)

    @property
    def default_name(self) -> str:
        return "layer%d" % (self.index + 1)

    @property
    def display_name(self) -> str:
        return self.name or self.default_name

    @property
    def total_length(self) -> int:
        """Bytes of channel image data belonging to this layer."""
        return sum(c.length for c in self.channel_info)

    def channel_position(self, channel_id: int) -> Optional[int]:
        """Position of a channel id in :py:attr:`channel_info`, if present."""
        return self.channel_index.get(channel_id)

    @property
    def has_transparency(self) -> bool:
        return ChannelID.TRANSPARENCY_MASK in self.channel_index

    def channel_geometry(self, info: ChannelInfo) -> tuple[int, int]:
        """(rows, cols) of a channel; the layer mask has its own bounds."""
        if info.id == ChannelID.USER_LAYER_MASK:
            if self.mask_data is None:
                return 0, 0
            return max(self.mask_data.rows, 0), max(self.mask_data.cols, 0)
        return self.height, self.width

    @classmethod
    def read(
        cls: type[T_LayerRecord],
        cursor: ByteCursor,
        ctx: ParseContext,
        index: int,
        header: FileHeader,
        encoding: str = "macroman",
    ) -> T_LayerRecord:
        top, left, bottom, right, channels = cursor.read_fmt("4iH")
        ctx.info(
            "layer %d: (%4d,%4d,%4d,%4d), %d channels (%4d rows x %4d cols)",
            index,
            top,
            left,
            bottom,
            right,
            channels,
            bottom - top,
            right - left,
        )

        if bottom < top or right < left or channels > MAX_CHANNELS:
            ctx.warn(
                "something's not right about layer %d, trying to skip layer",
                index,
                always=True,
            )
            return cls._skip(cursor, ctx, index, top, left, bottom, right, channels)

        channel_info = []
        channel_index = {}
        for j in range(channels):
            channel_id, length = cursor.read_fmt("hI")
            channel_info.append(ChannelInfo(channel_id, length))
            if -2 <= channel_id < channels:
                channel_index[channel_id] = j
            else:
                ctx.warn("unexpected channel id %d", channel_id)
            logger.debug(
                "    channel %2d: %7d bytes, id=%2d%s"
                % (j, length, channel_id, _describe_channel(channel_id, header))
            )

        blend_mode_info = BlendModeInfo.read(cursor)
        logger.debug(
            "  blending mode: %r opacity=%d(%d%%)"
            % (blend_mode_info, blend_mode_info.opacity, blend_mode_info.opacity_percent)
        )

        with read_section(cursor, ctx, "layer %d extra data" % index) as section:
            mask_data = MaskData.read(cursor, ctx)
            skip_block(cursor, ctx, "layer blending ranges")
            name = cursor.read_pascal_string(padding=4).decode(encoding, "replace")
            if name:
                ctx.info('    name: "%s"', name)
            # Tagged blocks (effects, vector masks, ...) are not interpreted.
            section.trailer_expected = True

        return cls(
            index=index,
            top=top,
            left=left,
            bottom=bottom,
            right=right,
            channel_info=channel_info,
            channel_index=channel_index,
            blend_mode_info=blend_mode_info,
            mask_data=mask_data,
            name=name,
        )

    @classmethod
    def _skip(
        cls: type[T_LayerRecord],
        cursor: ByteCursor,
        ctx: ParseContext,
        index: int,
        top: int,
        left: int,
        bottom: int,
        right: int,
        channels: int,
    ) -> T_LayerRecord:
        data = cursor.read_exact(CHANNEL_INFO_SIZE * channels)
        channel_info = [
            ChannelInfo(channel_id, length)
            for channel_id, length in struct.iter_unpack(">hI", data)
        ]
        cursor.seek_forward(BLEND_INFO_SIZE)
        skip_block(cursor, ctx, "layer info: extra data")
        return cls(
            index=index,
            top=top,
            left=left,
            bottom=bottom,
            right=right,
            channel_info=channel_info,
            skipped=True,
        )


def _describe_channel(channel_id: int, header: FileHeader) -> str:
    if channel_id == ChannelID.USER_LAYER_MASK:
        return " (layer mask)"
    if channel_id == ChannelID.TRANSPARENCY_MASK:
        return " (transparency mask)"
    letter = channel_suffix_letter(header.color_mode, channel_id)
    return " (%s)" % letter if letter else ""


@define(repr=False)
class LayerDecodeTask:
    """
    Decode of one layer's channel data from a known offset.

    .. py:attribute:: offset

        Absolute offset of the layer's first channel group.
    """

    index: int
    offset: int
    record: LayerRecord
    depth: int

    def __repr__(self) -> str:
        return "LayerDecodeTask(%d, offset=%d, length=%d)" % (
            self.index,
            self.offset,
            self.length,
        )

    @property
    def length(self) -> int:
        return self.record.total_length

    def run(self, cursor: ByteCursor, ctx: ParseContext) -> list[ChannelGroup]:
        """Decode every channel of the layer, one group per channel."""
        cursor.seek_absolute(self.offset)
        if self.record.skipped:
            logger.debug("  layer %d was skipped, no pixel data" % self.index)
            return []

        logger.debug('  layer %d ("%s"):' % (self.index, self.record.display_name))
        groups = []
        for info in self.record.channel_info:
            if info.id == ChannelID.USER_LAYER_MASK and self.record.mask_data is None:
                ctx.warn("layer %d has a mask channel but no mask data", self.index)
            rows, cols = self.record.channel_geometry(info)
            groups.append(
                decode_channels(cursor, ctx, 1, rows, cols, self.depth, info.length)
            )
        return groups


def run_tasks(
    tasks: list[LayerDecodeTask],
    cursor: ByteCursor,
    ctx: ParseContext,
    workers: int = 1,
    opener: Optional[Opener] = None,
) -> list[list[ChannelGroup]]:
    """
    Run layer decode tasks and return their results in layer order.

    With more than one worker and an ``opener`` that returns a fresh binary
    file object over the same source, each task runs on its own cursor and
    a forked context; otherwise the tasks run on ``cursor`` in order.
    """
    if workers <= 1 or opener is None or len(tasks) < 2:
        return [task.run(cursor, ctx) for task in tasks]

    def work(task: LayerDecodeTask) -> tuple[list[ChannelGroup], ParseContext]:
        child = ctx.fork()
        with opener() as fp:
            return task.run(ByteCursor(fp), child), child

    logger.debug("decoding %d layers with %d workers" % (len(tasks), workers))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(work, tasks))

    channel_image_data = []
    for groups, child in results:
        ctx.merge(child)
        channel_image_data.append(groups)
    return channel_image_data


@define(repr=False)
class LayerInfo:
    """
    High-level organization of the layer information.

    .. py:attribute:: layer_count

        Layer count as stored. If it is a negative number, its absolute value
        is the number of layers and the first alpha channel contains the
        transparency data for the merged result.

    .. py:attribute:: layer_records

        List of :py:class:`.LayerRecord`.

    .. py:attribute:: channel_image_data

        Decoded channels per layer, parallel to :py:attr:`layer_records`.
        Each item is a list of :py:class:`~psdparse.psd.channel_data.ChannelGroup`
        in channel order; skipped layers have an empty list.
    """

    layer_count: int = 0
    layer_records: list[LayerRecord] = field(factory=list)
    channel_image_data: list[list[ChannelGroup]] = field(factory=list)

    def __repr__(self) -> str:
        return "LayerInfo(layer_count=%d, %d records)" % (
            self.layer_count,
            len(self.layer_records),
        )

    @classmethod
    def read(
        cls: type[T_LayerInfo],
        cursor: ByteCursor,
        ctx: ParseContext,
        header: FileHeader,
        encoding: str = "macroman",
        workers: int = 1,
        opener: Optional[Opener] = None,
    ) -> T_LayerInfo:
        with read_section(cursor, ctx, "layer info") as section:
            if section.length == 0:
                logger.debug("  (layer info section is empty)")
                return cls()

            layer_count = cursor.read_s16()
            if layer_count < 0:
                ctx.merged_alpha = True
                ctx.info("first alpha is transparency for merged image")
            count = abs(layer_count)
            ctx.info("%d layers", count)

            if count * (18 + CHANNEL_INFO_SIZE * header.channels) > section.length:
                ctx.warn("unlikely number of layers, giving up", always=True)
                section.trailer_expected = True
                return cls(layer_count)

            layer_records = [
                LayerRecord.read(cursor, ctx, i, header, encoding) for i in range(count)
            ]

            tasks = []
            offset = cursor.position()
            for record in layer_records:
                tasks.append(LayerDecodeTask(record.index, offset, record, header.depth))
                offset += record.total_length

            channel_image_data = run_tasks(tasks, cursor, ctx, workers, opener)
            cursor.seek_absolute(offset)
            logger.debug("  read channel image data, end=%d" % offset)
            # Layer info is padded to an even (sometimes 4-byte) length.
            section.trailer_expected = 0 <= section.remaining(cursor) <= 3

        return cls(layer_count, layer_records, channel_image_data)

    def __iter__(self) -> Iterator[tuple[LayerRecord, list[ChannelGroup]]]:
        return iter(zip(self.layer_records, self.channel_image_data))

    def __len__(self) -> int:
        return len(self.layer_records)


@define(repr=False)
class LayerAndMaskInformation:
    """
    Layer and mask information section.

    .. py:attribute:: layer_info

        See :py:class:`.LayerInfo`.

    .. py:attribute:: global_layer_mask_length

        Length of the uninterpreted global layer mask info block.
    """

    layer_info: LayerInfo = field(factory=LayerInfo)
    global_layer_mask_length: int = 0

    def __repr__(self) -> str:
        return "LayerAndMaskInformation(%r)" % self.layer_info

    @classmethod
    def read(
        cls: type[T_LayerAndMaskInformation],
        cursor: ByteCursor,
        ctx: ParseContext,
        header: FileHeader,
        encoding: str = "macroman",
        workers: int = 1,
        opener: Optional[Opener] = None,
    ) -> T_LayerAndMaskInformation:
        with read_section(cursor, ctx, "layer and mask info") as section:
            if section.length == 0:
                logger.debug("  (misc info section is empty)")
                return cls()

            layer_info = LayerInfo.read(cursor, ctx, header, encoding, workers, opener)

            global_layer_mask_length = 0
            if section.remaining(cursor) >= 4 and cursor.is_readable(4):
                global_layer_mask_length = skip_block(
                    cursor, ctx, "global layer mask info"
                )

        return cls(layer_info, global_layer_mask_length)
