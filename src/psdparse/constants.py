"""
Various constants for psdparse
"""

from enum import Enum, IntEnum
from typing import Optional, Union


class ColorMode(IntEnum):
    """
    Color mode stored in the file header.

    Values 10-15 are the legacy deep-color variants written by old
    Photoshop versions.
    """

    BITMAP = 0
    GRAYSCALE = 1
    INDEXED = 2
    RGB = 3
    CMYK = 4
    MULTICHANNEL = 7
    DUOTONE = 8
    LAB = 9
    GRAY16 = 10
    RGB48 = 11
    LAB48 = 12
    CMYK64 = 13
    DEEP_MULTICHANNEL = 14
    DUOTONE16 = 15

    @classmethod
    def from_value(cls, value: int) -> Union["ColorMode", int]:
        """Convert to :py:class:`ColorMode`, keeping unknown values as int."""
        try:
            return cls(value)
        except ValueError:
            return value


MODE_NAMES = {
    ColorMode.BITMAP: "Bitmap",
    ColorMode.GRAYSCALE: "GrayScale",
    ColorMode.INDEXED: "IndexedColor",
    ColorMode.RGB: "RGBColor",
    ColorMode.CMYK: "CMYKColor",
    ColorMode.MULTICHANNEL: "Multichannel",
    ColorMode.DUOTONE: "Duotone",
    ColorMode.LAB: "LabColor",
    ColorMode.GRAY16: "Gray16",
    ColorMode.RGB48: "RGB48",
    ColorMode.LAB48: "Lab48",
    ColorMode.CMYK64: "CMYK64",
    ColorMode.DEEP_MULTICHANNEL: "DeepMultichannel",
    ColorMode.DUOTONE16: "Duotone16",
}

# Single-letter channel suffixes per mode, indexed by channel id.
CHANNEL_SUFFIXES = {
    ColorMode.BITMAP: "",
    ColorMode.GRAYSCALE: "G",
    ColorMode.INDEXED: "I",
    ColorMode.RGB: "RGB",
    ColorMode.CMYK: "CMYK",
    ColorMode.MULTICHANNEL: "",
    ColorMode.DUOTONE: "",
    ColorMode.LAB: "Lab",
    ColorMode.GRAY16: "G",
    ColorMode.RGB48: "RGB",
    ColorMode.LAB48: "Lab",
    ColorMode.CMYK64: "CMYK",
    ColorMode.DEEP_MULTICHANNEL: "",
    ColorMode.DUOTONE16: "",
}


def mode_name(value: int) -> str:
    return MODE_NAMES.get(value, "???")  # type: ignore[call-overload]


def channel_suffix_letter(mode: int, channel_id: int) -> Optional[str]:
    """Mode-specific letter for small non-negative channel ids."""
    letters = CHANNEL_SUFFIXES.get(mode, "")  # type: ignore[call-overload]
    if 0 <= channel_id < len(letters):
        return letters[channel_id]
    return None


class ChannelID(IntEnum):
    """
    Channel types.
    """

    CHANNEL_0 = 0  # Red, Cyan, Gray, ...
    CHANNEL_1 = 1  # Green, Magenta, ...
    CHANNEL_2 = 2  # Blue, Yellow, ...
    CHANNEL_3 = 3  # Black, ...
    TRANSPARENCY_MASK = -1
    USER_LAYER_MASK = -2


class Compression(IntEnum):
    """
    Compression modes.

    Only RAW and RLE are decoded; the ZIP variants are named so that they
    can be reported, and are otherwise handled as unknown tags.
    """

    RAW = 0
    RLE = 1
    ZIP = 2
    ZIP_WITH_PREDICTION = 3


class ColorModel(Enum):
    """
    Output packing chosen for the external image writer.
    """

    GRAY = "L"
    GRAY_ALPHA = "LA"
    PALETTE = "P"
    RGB = "RGB"
    RGB_ALPHA = "RGBA"

    @property
    def channels(self) -> int:
        return len(self.value)

    @property
    def has_alpha(self) -> bool:
        return self.value.endswith("A")


class BlendMode(Enum):
    """
    Blend modes.
    """

    PASS_THROUGH = b"pass"
    NORMAL = b"norm"
    DISSOLVE = b"diss"
    DARKEN = b"dark"
    MULTIPLY = b"mul "
    COLOR_BURN = b"idiv"
    LINEAR_BURN = b"lbrn"
    DARKER_COLOR = b"dkCl"
    LIGHTEN = b"lite"
    SCREEN = b"scrn"
    COLOR_DODGE = b"div "
    LINEAR_DODGE = b"lddg"
    LIGHTER_COLOR = b"lgCl"
    OVERLAY = b"over"
    SOFT_LIGHT = b"sLit"
    HARD_LIGHT = b"hLit"
    VIVID_LIGHT = b"vLit"
    LINEAR_LIGHT = b"lLit"
    PIN_LIGHT = b"pLit"
    HARD_MIX = b"hMix"
    DIFFERENCE = b"diff"
    EXCLUSION = b"smud"
    SUBTRACT = b"fsub"
    DIVIDE = b"fdiv"
    HUE = b"hue "
    SATURATION = b"sat "
    COLOR = b"colr"
    LUMINOSITY = b"lum "


class Clipping(IntEnum):
    """Clipping."""

    BASE = 0
    NON_BASE = 1


class Resource(IntEnum):
    """
    Image resource keys.

    Note the following is not defined for performance reasons.

     * PATH_INFO_1 to PATH_INFO_997 corresponding to 2001 - 2997
     * PLUGIN_RESOURCES_1 to PLUGIN_RESOURCES_999 corresponding to
        4001 - 4999
    """

    OBSOLETE1 = 1000
    MAC_PRINT_MANAGER_INFO = 1001
    MAC_PAGE_FORMAT_INFO = 1002
    OBSOLETE2 = 1003
    RESOLUTION_INFO = 1005
    ALPHA_NAMES_PASCAL = 1006
    DISPLAY_INFO_OBSOLETE = 1007
    CAPTION_PASCAL = 1008
    BORDER_INFO = 1009
    BACKGROUND_COLOR = 1010
    PRINT_FLAGS = 1011
    GRAYSCALE_HALFTONING_INFO = 1012
    COLOR_HALFTONING_INFO = 1013
    DUOTONE_HALFTONING_INFO = 1014
    GRAYSCALE_TRANSFER_FUNCTION = 1015
    COLOR_TRANSFER_FUNCTION = 1016
    DUOTONE_TRANSFER_FUNCTION = 1017
    DUOTONE_IMAGE_INFO = 1018
    EFFECTIVE_BW = 1019
    OBSOLETE3 = 1020
    EPS_OPTIONS = 1021
    QUICK_MASK_INFO = 1022
    OBSOLETE4 = 1023
    LAYER_STATE_INFO = 1024
    WORKING_PATH = 1025
    LAYER_GROUP_INFO = 1026
    OBSOLETE5 = 1027
    IPTC_NAA = 1028
    IMAGE_MODE_RAW = 1029
    JPEG_QUALITY = 1030
    GRID_AND_GUIDES_INFO = 1032
    THUMBNAIL_RESOURCE_PS4 = 1033
    COPYRIGHT_FLAG = 1034
    URL = 1035
    THUMBNAIL_RESOURCE = 1036
    GLOBAL_ANGLE = 1037
    COLOR_SAMPLERS_RESOURCE_OBSOLETE = 1038
    ICC_PROFILE = 1039
    WATERMARK = 1040
    ICC_UNTAGGED_PROFILE = 1041
    EFFECTS_VISIBLE = 1042
    SPOT_HALFTONE = 1043
    IDS_SEED_NUMBER = 1044
    ALPHA_NAMES_UNICODE = 1045
    INDEXED_COLOR_TABLE_COUNT = 1046
    TRANSPARENCY_INDEX = 1047
    GLOBAL_ALTITUDE = 1049
    SLICES = 1050
    WORKFLOW_URL = 1051
    JUMP_TO_XPEP = 1052
    ALPHA_IDENTIFIERS = 1053
    URL_LIST = 1054
    VERSION_INFO = 1057
    EXIF_DATA_1 = 1058
    EXIF_DATA_3 = 1059
    XMP_METADATA = 1060
    CAPTION_DIGEST = 1061
    PRINT_SCALE = 1062
    PIXEL_ASPECT_RATIO = 1064
    LAYER_COMPS = 1065
    ALTERNATE_DUOTONE_COLORS = 1066
    ALTERNATE_SPOT_COLORS = 1067
    LAYER_SELECTION_IDS = 1069
    HDR_TONING_INFO = 1070
    PRINT_INFO_CS2 = 1071
    LAYER_GROUPS_ENABLED_ID = 1072
    COLOR_SAMPLERS_RESOURCE = 1073
    MEASUREMENT_SCALE = 1074
    TIMELINE_INFO = 1075
    SHEET_DISCLOSURE = 1076
    DISPLAY_INFO = 1077
    ONION_SKINS = 1078
    COUNT_INFO = 1080
    PRINT_INFO_CS5 = 1082
    PRINT_STYLE = 1083
    MAC_NSPRINTINFO = 1084
    WINDOWS_DEVMODE = 1085
    AUTO_SAVE_FILE_PATH = 1086
    AUTO_SAVE_FORMAT = 1087
    PATH_SELECTION_STATE = 1088
    PATH_INFO_0 = 2000
    CLIPPING_PATH_NAME = 2999
    ORIGIN_PATH_INFO = 3000
    PLUGIN_RESOURCE_0 = 4000
    IMAGE_READY_VARIABLES = 7000
    IMAGE_READY_DATA_SETS = 7001
    LIGHTROOM_WORKFLOW = 8000
    PRINT_FLAGS_INFO = 10000

    @staticmethod
    def is_path_info(value: int) -> bool:
        return 2000 <= value < 2999

    @staticmethod
    def is_plugin_resource(value: int) -> bool:
        return 4000 <= value <= 4999
