"""
CompositeLib - Backdrop compositing and export

Modules:
    compositor: Backdrop modes, box blur and RGBA rendering
    exporter: PNG/JPEG encoding, clipboard image and file saving
"""

from OM_Libs.CompositeLib.compositor import (
    BackdropMode,
    TransparentBackdrop,
    SolidBackdrop,
    BlurredBackdrop,
    backdrop_from_name,
    apply_box_blur,
    render,
    render_preview,
    make_checkerboard,
)
from OM_Libs.CompositeLib.exporter import (
    ExportConfig,
    encode_image,
    export_png,
    export_jpeg,
    export_clipboard_image,
    flatten_for_jpeg,
    save_export,
)

__all__ = [
    "BackdropMode",
    "TransparentBackdrop",
    "SolidBackdrop",
    "BlurredBackdrop",
    "backdrop_from_name",
    "apply_box_blur",
    "render",
    "render_preview",
    "make_checkerboard",
    "ExportConfig",
    "encode_image",
    "export_png",
    "export_jpeg",
    "export_clipboard_image",
    "flatten_for_jpeg",
    "save_export",
]
