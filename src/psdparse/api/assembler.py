"""
Mapping of decoded channels onto output images.

:py:class:`ImageAssembler` decides, from the color mode and the channels
present, how the merged composite and each layer are packed for an image
writer:

==============================  ===========  ===================================
mode family                     base         alpha when
==============================  ===========  ===================================
bitmap / grayscale / duotone    GRAY         layer has a transparency channel,
                                             or merged image has extra channels
                                             and the merged-alpha flag is set
indexed                         PALETTE      never
RGB                             RGB          same rule as the gray family
anything else                   none         all channels written separately
==============================  ===========  ===================================

Channels that do not belong to the packed image (layer masks, spot and alpha
channels) are emitted as single-channel gray images named with a suffix.
"""

import logging
from typing import Iterator, Optional, Union

from attrs import define, field

from psdparse.compression import row_bytes
from psdparse.constants import (
    ChannelID,
    ColorMode,
    ColorModel,
    channel_suffix_letter,
    mode_name,
)
from psdparse.context import ParseContext
from psdparse.psd.channel_data import ChannelGroup
from psdparse.psd.document import PSD
from psdparse.psd.layer_and_mask import LayerRecord

logger = logging.getLogger(__name__)

GRAY_MODES = (
    ColorMode.BITMAP,
    ColorMode.GRAYSCALE,
    ColorMode.GRAY16,
    ColorMode.DUOTONE,
    ColorMode.DUOTONE16,
)
RGB_MODES = (ColorMode.RGB, ColorMode.RGB48)


def base_model(color_mode: Union[ColorMode, int]) -> Optional[ColorModel]:
    """Packing for a color mode without alpha, ``None`` when unrecognized."""
    if color_mode in GRAY_MODES:
        return ColorModel.GRAY
    if color_mode == ColorMode.INDEXED:
        return ColorModel.PALETTE
    if color_mode in RGB_MODES:
        return ColorModel.RGB
    return None


def select_model(
    color_mode: Union[ColorMode, int], alpha: bool
) -> Optional[ColorModel]:
    """Output :py:class:`~psdparse.constants.ColorModel` for a mode."""
    model = base_model(color_mode)
    if model is None or not alpha:
        return model
    return {
        ColorModel.GRAY: ColorModel.GRAY_ALPHA,
        ColorModel.RGB: ColorModel.RGB_ALPHA,
    }.get(model, model)


def channel_suffix(
    color_mode: Union[ColorMode, int], channel_id: int, is_layer: bool = True
) -> str:
    """File name suffix of a separately written channel."""
    if channel_id == ChannelID.USER_LAYER_MASK:
        return ".lmask"
    if channel_id == ChannelID.TRANSPARENCY_MASK:
        return ".trans" if is_layer else ".alpha"
    letter = channel_suffix_letter(color_mode, channel_id)
    if letter:
        return "." + letter
    return ".%d" % channel_id


def sanitize_name(name: str) -> str:
    """Avoid hidden-file names."""
    if name.startswith("."):
        return "_" + name[1:]
    return name


@define(repr=False)
class OutputImage:
    """
    One image handed to the image writer.

    .. py:attribute:: name

        Suggested output name without extension.

    .. py:attribute:: rows
    .. py:attribute:: cols
    .. py:attribute:: depth

        Bits per sample.

    .. py:attribute:: model

        :py:class:`~psdparse.constants.ColorModel` of the packed channels.

    .. py:attribute:: channels

        Decoded streams in packing order, each ``rows * row_bytes`` long.

    .. py:attribute:: channel_id

        Channel id of a single-channel extra image, else ``None``.

    .. py:attribute:: layer

        Source :py:class:`~psdparse.psd.layer_and_mask.LayerRecord`, or
        ``None`` for the merged image.
    """

    name: str
    rows: int
    cols: int
    depth: int
    model: ColorModel
    channels: list[bytes] = field(factory=list)
    channel_id: Optional[int] = None
    layer: Optional[LayerRecord] = None

    def __repr__(self) -> str:
        return "OutputImage(%r, %s, %dx%d, depth=%d)" % (
            self.name,
            self.model.name,
            self.cols,
            self.rows,
            self.depth,
        )

    @property
    def row_bytes(self) -> int:
        return row_bytes(self.cols, self.depth)

    @property
    def is_empty(self) -> bool:
        return self.rows <= 0 or self.cols <= 0


class ImageAssembler:
    """
    Build :py:class:`OutputImage` objects from a parsed :py:class:`PSD`.

    :param psd: parsed document.
    :param ctx: context of the same parse, used for reporting.
    :param split_channels: write every channel as its own gray image.
    :param numbered: name layers ``layerN`` instead of their own names.
    """

    def __init__(
        self,
        psd: PSD,
        ctx: Optional[ParseContext] = None,
        split_channels: bool = False,
        numbered: bool = False,
    ):
        self._psd = psd
        self._ctx = ctx if ctx is not None else ParseContext()
        self.split_channels = split_channels
        self.numbered = numbered

    @property
    def color_mode(self) -> Union[ColorMode, int]:
        return self._psd.header.color_mode

    @property
    def depth(self) -> int:
        return self._psd.header.depth

    def images(self, name: str) -> Iterator[OutputImage]:
        """Every layer image, then the merged image named ``name``."""
        for record, groups in self._psd.layer_info:
            yield from self.layer(record, groups)
        yield from self.merged(name)

    def layer_name(self, record: LayerRecord) -> str:
        if self.numbered:
            return record.default_name
        return sanitize_name(record.display_name)

    def merged(self, name: str) -> list[OutputImage]:
        """Images for the merged composite."""
        group = self._psd.image_data.group
        if group.skipped:
            self._ctx.warn(
                'not writing "%s", bad channel compression type', name, always=True
            )
            return []

        channels = len(group.channels)
        base = base_model(self.color_mode)
        alpha = (
            base is not None
            and channels > base.channels
            and self._psd.merged_alpha
        )
        model = select_model(self.color_mode, alpha)

        images = []
        start = 0
        if model is not None and not self.split_channels:
            packed = list(group.channels[: model.channels])
            while len(packed) < model.channels:
                self._ctx.warn("merged image is missing channel %d", len(packed))
                packed.append(bytes(group.rows * group.row_bytes))
            images.append(
                OutputImage(name, group.rows, group.cols, group.depth, model, packed)
            )
            start = model.channels
        elif model is None:
            self._ctx.info(
                "writing %s image as split channels", mode_name(self.color_mode)
            )

        for ch in range(start, channels):
            images.append(
                OutputImage(
                    name + channel_suffix(self.color_mode, ch, is_layer=False),
                    group.rows,
                    group.cols,
                    group.depth,
                    ColorModel.GRAY,
                    [group.channels[ch]],
                    channel_id=ch,
                )
            )
        return images

    def layer(self, record: LayerRecord, groups: list[ChannelGroup]) -> list[OutputImage]:
        """Images for one layer: the packed image plus extra channels."""
        if record.skipped:
            return []

        name = self.layer_name(record)
        model = select_model(self.color_mode, record.has_transparency)
        images = []
        packed_ids: list[int] = []
        if model is not None and not self.split_channels:
            packed_ids = list(range(model.channels - model.has_alpha))
            if model.has_alpha:
                packed_ids.append(ChannelID.TRANSPARENCY_MASK)
            streams = [
                self._layer_stream(record, groups, channel_id)
                for channel_id in packed_ids
            ]
            images.append(
                OutputImage(
                    name,
                    record.height,
                    record.width,
                    self.depth,
                    model,
                    streams,
                    layer=record,
                )
            )
        else:
            self._ctx.info("writing layer %d as split channels", record.index)

        for info, group in zip(record.channel_info, groups):
            if info.id in packed_ids:
                continue
            if group.skipped:
                self._ctx.warn(
                    'not writing "%s%s", bad channel compression type',
                    name,
                    channel_suffix(self.color_mode, info.id),
                    always=True,
                )
                continue
            images.append(
                OutputImage(
                    name + channel_suffix(self.color_mode, info.id),
                    group.rows,
                    group.cols,
                    group.depth,
                    ColorModel.GRAY,
                    [group.channels[0]],
                    channel_id=info.id,
                    layer=record,
                )
            )
        return images

    def _layer_stream(
        self, record: LayerRecord, groups: list[ChannelGroup], channel_id: int
    ) -> bytes:
        size = record.height * row_bytes(record.width, self.depth)
        position = record.channel_position(channel_id)
        if position is None or position >= len(groups):
            self._ctx.warn(
                "layer %d has no channel %d, zero-filled", record.index, channel_id
            )
            return bytes(size)
        group = groups[position]
        if group.skipped:
            self._ctx.warn(
                "layer %d channel %d was not decoded, zero-filled",
                record.index,
                channel_id,
            )
            return bytes(size)
        return group.channels[0]
