"""
Export and transfer of composited results.

Functions in this module always re-run the compositor against the mask
they are given, so an export reflects the current edit state.

Formats:
- PNG: The composited RGBA image, alpha preserved
- JPEG: No alpha. The frame is filled with the backdrop color and the
  original, unmasked image is drawn on top (mask and blur are ignored)
- Clipboard: An in-memory RGBA PIL Image

Classes:
    ExportConfig: Format and quality for an export

Functions:
    export_png, export_jpeg, export_clipboard_image, flatten_for_jpeg,
    encode_image, save_export
"""

import io
import logging
import os
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Union

from PIL import Image

from OM_Libs.CompositeLib.compositor import (
    BackdropMode,
    TransparentBackdrop,
    render,
)
from OM_Libs.constants import (
    ALPHA_MAX,
    DEFAULT_JPEG_QUALITY,
    EXPORT_FORMAT_JPEG,
    EXPORT_FORMAT_PNG,
    JPEG_QUALITY_MAX,
    JPEG_QUALITY_MIN,
)
from OM_Libs.errors import ExportError
from OM_Libs.ImageEditingLib.image_models import (
    AlphaMask,
    PixelBuffer,
    RgbColor,
    parse_hex_color,
)

logger = logging.getLogger(__name__)


@dataclass
class ExportConfig:
    """Configuration for an export.

    Attributes:
        save_format: 'PNG' or 'JPEG' ('JPG' accepted)
        quality: JPEG quality 1-100 (default: 95, only for JPEG)
    """
    save_format: str = EXPORT_FORMAT_PNG
    quality: int = DEFAULT_JPEG_QUALITY

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportConfig":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items()
                   if k in cls.__dataclass_fields__}
        return cls(**filtered)

    @property
    def normalized_format(self) -> str:
        # PIL uses "JPEG" not "JPG"
        save_format = str(self.save_format).upper()
        if save_format == "JPG":
            save_format = EXPORT_FORMAT_JPEG
        return save_format

    def get_save_kwargs(self) -> Dict[str, Any]:
        """Get PIL Image.save() kwargs based on format."""
        save_format = self.normalized_format
        kwargs: Dict[str, Any] = {"format": save_format}
        if save_format == EXPORT_FORMAT_JPEG:
            kwargs["quality"] = max(JPEG_QUALITY_MIN, min(JPEG_QUALITY_MAX, int(self.quality)))
        return kwargs


def encode_image(image: Image.Image, config: ExportConfig) -> bytes:
    """
    Encode a PIL image to bytes.

    Raises:
        ExportError: If the encoder fails or the format is unsupported
    """
    kwargs = config.get_save_kwargs()
    if kwargs["format"] == EXPORT_FORMAT_JPEG and image.mode != "RGB":
        image = image.convert("RGB")

    buffer = io.BytesIO()
    try:
        image.save(buffer, **kwargs)
    except (OSError, ValueError, KeyError) as e:
        raise ExportError(f"Failed to encode {kwargs['format']}: {e}") from e
    return buffer.getvalue()


def export_png(
    image: PixelBuffer,
    mask: AlphaMask,
    backdrop: BackdropMode = TransparentBackdrop(),
) -> bytes:
    """Encode the composited result as PNG, alpha preserved."""
    data = encode_image(render(image, mask, backdrop), ExportConfig(EXPORT_FORMAT_PNG))
    logger.info(f"Exported PNG {image.width}x{image.height} ({len(data)} bytes)")
    return data


def flatten_for_jpeg(image: PixelBuffer, color: Union[str, RgbColor]) -> Image.Image:
    """
    Flatten the original image onto a solid fill.

    The mask and any blurred backdrop are intentionally ignored: the
    result is the original image drawn opaque over the fill color.

    Returns:
        RGB PIL Image
    """
    if isinstance(color, str):
        color = parse_hex_color(color)
    fill = Image.new("RGBA", image.size, tuple(color[:3]) + (ALPHA_MAX,))
    return Image.alpha_composite(fill, image.to_image()).convert("RGB")


def export_jpeg(
    image: PixelBuffer,
    color: Union[str, RgbColor],
    quality: int = DEFAULT_JPEG_QUALITY,
) -> bytes:
    """Encode the flattened original image as JPEG."""
    data = encode_image(
        flatten_for_jpeg(image, color),
        ExportConfig(EXPORT_FORMAT_JPEG, quality),
    )
    logger.info(f"Exported JPEG {image.width}x{image.height} ({len(data)} bytes)")
    return data


def export_clipboard_image(
    image: PixelBuffer,
    mask: AlphaMask,
    backdrop: BackdropMode = TransparentBackdrop(),
) -> Image.Image:
    """RGBA image object for placing on the clipboard."""
    return render(image, mask, backdrop)


def save_export(data: bytes, path: Union[str, Path], overwrite: bool = False) -> Path:
    """
    Write export bytes to disk.

    The bytes go to a temporary file in the target directory that is
    renamed into place, so a failed write leaves no file behind.

    Args:
        data: Encoded image bytes
        path: Destination file
        overwrite: Replace an existing file (default: False)

    Returns:
        Path where the file was written

    Raises:
        ExportError: If the file exists and overwrite=False, or writing fails
    """
    path = Path(path)
    if path.exists() and not overwrite:
        raise ExportError(f"Refusing to overwrite existing file: {path}")

    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".export-", suffix=path.suffix)
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise ExportError(f"Failed to write export: {path} ({e})") from e

    logger.info(f"Saved export to {path}")
    return path
