"""
Image resources section structure. Image resources are used to store non-pixel
data associated with images, such as pen tool paths or slices.

The decoder does not interpret resource payloads. Each block is identified by
its signature and numeric id, described through :py:data:`DESCRIPTIONS`, and
skipped. Ids 2000-2998 are saved paths and are described generically.

Example::

    from psdparse.psd.image_resources import ImageResources

    resources = ImageResources.read(cursor, ctx)
    for item in resources:
        print(item.key, item.description, item.length)
"""

import logging
from typing import Iterator, Optional, TypeVar

from attrs import define, field

from psdparse.constants import Resource
from psdparse.context import ParseContext
from psdparse.psd.base import Section
from psdparse.psd.bin_utils import ByteCursor, pad

logger = logging.getLogger(__name__)

T_ImageResources = TypeVar("T_ImageResources", bound="ImageResources")
T_ImageResource = TypeVar("T_ImageResource", bound="ImageResource")

SIGNATURES = (b"8BIM", b"MeSa", b"AgHg", b"PHUT", b"DCSR")

DESCRIPTIONS = {
    Resource.OBSOLETE1: "Obsolete (Photoshop 2.0 channels, rows, columns, depth, mode)",
    Resource.MAC_PRINT_MANAGER_INFO: "Macintosh print manager print info record",
    Resource.MAC_PAGE_FORMAT_INFO: "Macintosh page format information",
    Resource.OBSOLETE2: "Obsolete (Photoshop 2.0 indexed color table)",
    Resource.RESOLUTION_INFO: "ResolutionInfo structure",
    Resource.ALPHA_NAMES_PASCAL: "Names of the alpha channels as a series of Pascal strings",
    Resource.DISPLAY_INFO_OBSOLETE: "DisplayInfo structure (obsolete)",
    Resource.CAPTION_PASCAL: "Caption as a Pascal string",
    Resource.BORDER_INFO: "Border information",
    Resource.BACKGROUND_COLOR: "Background color",
    Resource.PRINT_FLAGS: "Print flags",
    Resource.GRAYSCALE_HALFTONING_INFO: "Grayscale and multichannel halftoning information",
    Resource.COLOR_HALFTONING_INFO: "Color halftoning information",
    Resource.DUOTONE_HALFTONING_INFO: "Duotone halftoning information",
    Resource.GRAYSCALE_TRANSFER_FUNCTION: "Grayscale and multichannel transfer function",
    Resource.COLOR_TRANSFER_FUNCTION: "Color transfer functions",
    Resource.DUOTONE_TRANSFER_FUNCTION: "Duotone transfer functions",
    Resource.DUOTONE_IMAGE_INFO: "Duotone image information",
    Resource.EFFECTIVE_BW: "Effective black and white values for the dot range",
    Resource.OBSOLETE3: "Obsolete",
    Resource.EPS_OPTIONS: "EPS options",
    Resource.QUICK_MASK_INFO: "Quick Mask information",
    Resource.OBSOLETE4: "Obsolete",
    Resource.LAYER_STATE_INFO: "Layer state information",
    Resource.WORKING_PATH: "Working path (not saved)",
    Resource.LAYER_GROUP_INFO: "Layers group information",
    Resource.OBSOLETE5: "Obsolete",
    Resource.IPTC_NAA: "IPTC-NAA record",
    Resource.IMAGE_MODE_RAW: "Image mode for raw format files",
    Resource.JPEG_QUALITY: "JPEG quality",
    Resource.GRID_AND_GUIDES_INFO: "Grid and guides information",
    Resource.THUMBNAIL_RESOURCE_PS4: "Thumbnail resource (Photoshop 4.0)",
    Resource.COPYRIGHT_FLAG: "Copyright flag",
    Resource.URL: "URL",
    Resource.THUMBNAIL_RESOURCE: "Thumbnail resource",
    Resource.GLOBAL_ANGLE: "Global Angle",
    Resource.COLOR_SAMPLERS_RESOURCE_OBSOLETE: "Color samplers resource (obsolete)",
    Resource.ICC_PROFILE: "ICC Profile",
    Resource.WATERMARK: "Watermark",
    Resource.ICC_UNTAGGED_PROFILE: "ICC Untagged",
    Resource.EFFECTS_VISIBLE: "Effects visible",
    Resource.SPOT_HALFTONE: "Spot Halftone",
    Resource.IDS_SEED_NUMBER: "Document specific IDs seed number",
    Resource.ALPHA_NAMES_UNICODE: "Unicode Alpha Names",
    Resource.INDEXED_COLOR_TABLE_COUNT: "Indexed Color Table Count",
    Resource.TRANSPARENCY_INDEX: "Transparency Index",
    Resource.GLOBAL_ALTITUDE: "Global Altitude",
    Resource.SLICES: "Slices",
    Resource.WORKFLOW_URL: "Workflow URL",
    Resource.JUMP_TO_XPEP: "Jump To XPEP",
    Resource.ALPHA_IDENTIFIERS: "Alpha Identifiers",
    Resource.URL_LIST: "URL List",
    Resource.VERSION_INFO: "Version Info",
    Resource.EXIF_DATA_1: "EXIF data 1",
    Resource.EXIF_DATA_3: "EXIF data 3",
    Resource.XMP_METADATA: "XMP metadata",
    Resource.CAPTION_DIGEST: "Caption digest",
    Resource.PRINT_SCALE: "Print scale",
    Resource.PIXEL_ASPECT_RATIO: "Pixel Aspect Ratio",
    Resource.LAYER_COMPS: "Layer Comps",
    Resource.ALTERNATE_DUOTONE_COLORS: "Alternate Duotone Colors",
    Resource.ALTERNATE_SPOT_COLORS: "Alternate Spot Colors",
    Resource.LAYER_SELECTION_IDS: "Layer Selection ID(s)",
    Resource.HDR_TONING_INFO: "HDR Toning information",
    Resource.PRINT_INFO_CS2: "Print info",
    Resource.LAYER_GROUPS_ENABLED_ID: "Layer Group(s) Enabled ID",
    Resource.COLOR_SAMPLERS_RESOURCE: "Color samplers resource",
    Resource.MEASUREMENT_SCALE: "Measurement Scale",
    Resource.TIMELINE_INFO: "Timeline Information",
    Resource.SHEET_DISCLOSURE: "Sheet Disclosure",
    Resource.DISPLAY_INFO: "DisplayInfo structure",
    Resource.ONION_SKINS: "Onion Skins",
    Resource.COUNT_INFO: "Count Information",
    Resource.PRINT_INFO_CS5: "Print Information",
    Resource.PRINT_STYLE: "Print Style",
    Resource.MAC_NSPRINTINFO: "Macintosh NSPrintInfo",
    Resource.WINDOWS_DEVMODE: "Windows DEVMODE",
    Resource.AUTO_SAVE_FILE_PATH: "Auto Save File Path",
    Resource.AUTO_SAVE_FORMAT: "Auto Save Format",
    Resource.PATH_SELECTION_STATE: "Path Selection State",
    Resource.CLIPPING_PATH_NAME: "Name of clipping path",
    Resource.ORIGIN_PATH_INFO: "Origin Path Info",
    Resource.IMAGE_READY_VARIABLES: "Image Ready variables",
    Resource.IMAGE_READY_DATA_SETS: "Image Ready data sets",
    Resource.LIGHTROOM_WORKFLOW: "Lightroom workflow",
    Resource.PRINT_FLAGS_INFO: "Print flags information",
}


def describe(key: int) -> Optional[str]:
    """Human description of a resource id, if known."""
    if Resource.is_path_info(key):
        return "path"
    if Resource.is_plugin_resource(key):
        return "plug-in resource"
    return DESCRIPTIONS.get(key)  # type: ignore[call-overload]


@define(repr=False)
class ImageResource:
    """
    Image resource block header. The payload is not kept.

    .. py:attribute:: signature

        Signature, normally ``b'8BIM'``.

    .. py:attribute:: key

        Unique identifier for the resource. See
        :py:class:`~psdparse.constants.Resource`.

    .. py:attribute:: name

        Pascal name of the block, usually empty.

    .. py:attribute:: length

        Payload length as declared, before padding.

    .. py:attribute:: offset

        Absolute offset of the payload.
    """

    signature: bytes = b"8BIM"
    key: int = 1000
    name: bytes = b""
    length: int = 0
    offset: int = 0

    def __repr__(self) -> str:
        return "ImageResource(%r, %d, %r, len=%d)" % (
            self.signature,
            self.key,
            self.name,
            self.length,
        )

    @property
    def description(self) -> Optional[str]:
        return describe(self.key)

    @property
    def block_size(self) -> int:
        """Total bytes the block occupies in the file, with padding."""
        return 4 + 2 + pad(1 + len(self.name), 2) + 4 + pad(self.length, 2)

    @classmethod
    def read(
        cls: type[T_ImageResource], cursor: ByteCursor, ctx: ParseContext
    ) -> T_ImageResource:
        start = cursor.position()
        signature, key = cursor.read_fmt("4sH")
        if signature not in SIGNATURES:
            ctx.warn("unexpected resource signature %r", signature, offset=start)
        name = cursor.read_pascal_string(padding=2)
        length = cursor.read_u32()
        self = cls(signature, key, name, length, cursor.position())
        cursor.seek_forward(pad(length, 2))
        logger.debug(
            "  resource %r (%5d,%r):%5d bytes%s"
            % (
                signature,
                key,
                name,
                length,
                " [%s]" % self.description if self.description else "",
            )
        )
        return self


@define(repr=False)
class ImageResources:
    """
    Image resources section of the PSD file. List of
    :py:class:`.ImageResource`.

    .. py:attribute:: length

        Declared section length.

    .. py:attribute:: overrun

        Bytes the last block extended beyond the declared length; 0 when
        the blocks exactly fill the section.
    """

    items: list[ImageResource] = field(factory=list)
    length: int = 0
    overrun: int = 0

    def __repr__(self) -> str:
        return "ImageResources(%d items, len=%d)" % (len(self.items), self.length)

    def __iter__(self) -> Iterator[ImageResource]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, key: int) -> bool:
        return any(item.key == key for item in self.items)

    def get(self, key: int) -> Optional[ImageResource]:
        for item in self.items:
            if item.key == key:
                return item
        return None

    @classmethod
    def read(
        cls: type[T_ImageResources], cursor: ByteCursor, ctx: ParseContext
    ) -> T_ImageResources:
        length = cursor.read_u32()
        section = Section("image resources", cursor.position(), length)
        logger.debug("reading image resources, len=%d" % length)
        items = []
        remaining = length
        while remaining > 0:
            item = ImageResource.read(cursor, ctx)
            items.append(item)
            remaining -= item.block_size
        overrun = -remaining
        if overrun:
            ctx.warn(
                "image resources overran expected size by %d bytes", overrun
            )
        cursor.seek_absolute(section.end)
        return cls(items, length, overrun)
