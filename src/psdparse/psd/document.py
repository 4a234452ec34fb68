"""
PSD document structure module.

This module contains the :py:class:`PSD` class, which walks a file section
by section: header, color mode data, image resources, layer and mask
information (with per-layer channel decoding), and the merged image data.
"""

import logging
from typing import BinaryIO, Optional, TypeVar, Union

from attrs import define, field

from psdparse.context import ParseContext
from psdparse.psd.bin_utils import ByteCursor
from psdparse.psd.color_mode_data import ColorModeData
from psdparse.psd.header import FileHeader
from psdparse.psd.image_data import ImageData
from psdparse.psd.image_resources import ImageResources
from psdparse.psd.layer_and_mask import LayerAndMaskInformation, LayerInfo, Opener

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="PSD")


@define(repr=False)
class PSD:
    """
    Low-level PSD file structure that resembles the specification_.

    .. _specification: https://www.adobe.com/devnet-apps/photoshop/fileformatashtml/

    Example::

        from psdparse.psd import PSD

        with open(input_file, 'rb') as f:
            psd = PSD.read(f)

        for record, channels in psd.layer_info:
            print(record.display_name, [len(c) for g in channels for c in g.channels])

    .. py:attribute:: header

        See :py:class:`.FileHeader`.

    .. py:attribute:: color_mode_data

        See :py:class:`.ColorModeData`.

    .. py:attribute:: image_resources

        See :py:class:`.ImageResources`.

    .. py:attribute:: layer_and_mask_information

        See :py:class:`.LayerAndMaskInformation`.

    .. py:attribute:: image_data

        See :py:class:`.ImageData`.

    .. py:attribute:: merged_alpha

        The merged image carries transparency in its first extra channel.
    """

    header: FileHeader = field(factory=FileHeader)
    color_mode_data: ColorModeData = field(factory=ColorModeData)
    image_resources: ImageResources = field(factory=ImageResources)
    layer_and_mask_information: LayerAndMaskInformation = field(
        factory=LayerAndMaskInformation
    )
    image_data: ImageData = field(factory=ImageData)
    merged_alpha: bool = False

    def __repr__(self) -> str:
        return "PSD(%r, %d resources, %d layers)" % (
            self.header,
            len(self.image_resources),
            len(self.layer_info),
        )

    @classmethod
    def read(
        cls: type[T],
        fp: Union[BinaryIO, ByteCursor],
        ctx: Optional[ParseContext] = None,
        encoding: str = "macroman",
        workers: int = 1,
        opener: Optional[Opener] = None,
    ) -> T:
        """
        Parse a whole file.

        :param fp: binary file object or :py:class:`ByteCursor`.
        :param ctx: per-file :py:class:`~psdparse.context.ParseContext`; a new
            one is created when omitted.
        :param encoding: charset of pascal strings within the file.
        :param workers: layer decode pool size.
        :param opener: callable returning a fresh file object over the same
            source, required for ``workers > 1``.
        :raise psdparse.errors.FatalError: when the file cannot be processed.
        """
        cursor = fp if isinstance(fp, ByteCursor) else ByteCursor(fp)
        if ctx is None:
            ctx = ParseContext()
        header = FileHeader.read(cursor, ctx)
        logger.debug("read %s" % header)
        color_mode_data = ColorModeData.read(cursor, ctx)
        image_resources = ImageResources.read(cursor, ctx)
        layer_and_mask_information = LayerAndMaskInformation.read(
            cursor, ctx, header, encoding, workers, opener
        )
        image_data = ImageData.read(cursor, ctx, header)
        return cls(
            header,
            color_mode_data,
            image_resources,
            layer_and_mask_information,
            image_data,
            ctx.merged_alpha,
        )

    @property
    def layer_info(self) -> LayerInfo:
        return self.layer_and_mask_information.layer_info
