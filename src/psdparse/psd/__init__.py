"""
Low-level structural decoder that translates binary data to Python structure.
"""

# Main PSD document class
from .document import PSD as PSD

# Layer and mask structures
from .layer_and_mask import (
    LayerAndMaskInformation as LayerAndMaskInformation,
    LayerInfo as LayerInfo,
    LayerRecord as LayerRecord,
)

__all__ = [
    "PSD",
    "LayerAndMaskInformation",
    "LayerInfo",
    "LayerRecord",
]
