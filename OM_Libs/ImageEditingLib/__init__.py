"""
ImageEditingLib - Mask editing functionality

This module provides the raster models, the brush editor and the mask
history for the Open Matte project.
"""

from OM_Libs.ImageEditingLib.image_models import (
    AlphaMask,
    PixelBuffer,
    RgbColor,
    RgbaColor,
    format_hex_color,
    parse_hex_color,
)
from OM_Libs.ImageEditingLib.brush_editor import (
    BrushMode,
    BrushState,
    apply_brush,
    apply_brush_stroke,
    brush_footprint,
)
from OM_Libs.ImageEditingLib.mask_history import MaskHistory

__all__ = [
    "AlphaMask",
    "PixelBuffer",
    "RgbColor",
    "RgbaColor",
    "format_hex_color",
    "parse_hex_color",
    "BrushMode",
    "BrushState",
    "apply_brush",
    "apply_brush_stroke",
    "brush_footprint",
    "MaskHistory",
]
