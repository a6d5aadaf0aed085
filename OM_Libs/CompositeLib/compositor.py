"""
Backdrop Compositor.

Combines the original image, the current alpha mask and a backdrop mode
into an RGBA image. The masked foreground is always composited on top of
the backdrop with standard alpha compositing.

Backdrop modes:
- TransparentBackdrop: No backdrop; output alpha is the mask
- SolidBackdrop: Opaque fill with one color
- BlurredBackdrop: Box-blurred copy of the original image, opaque

Example:
    >>> image = PixelBuffer.from_image(Image.open("photo.jpg"))
    >>> mask = segment(image)
    >>> preview = render(image, mask, BlurredBackdrop(radius=10))
"""

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from PIL import Image
from scipy import ndimage

from OM_Libs.constants import (
    ALPHA_MAX,
    BACKDROP_BLUR,
    BACKDROP_SOLID,
    BACKDROP_TRANSPARENT,
    CHECKER_DARK,
    CHECKER_LIGHT,
    CHECKER_TILE_SIZE,
    DEFAULT_BACKDROP_COLOR,
    DEFAULT_BLUR_RADIUS,
)
from OM_Libs.ImageEditingLib.image_models import (
    AlphaMask,
    PixelBuffer,
    RgbColor,
    parse_hex_color,
)


# ============================================================================
# Backdrop Modes
# ============================================================================

@dataclass(frozen=True)
class TransparentBackdrop:
    name = BACKDROP_TRANSPARENT


@dataclass(frozen=True)
class SolidBackdrop:
    """Opaque single-color backdrop.

    Attributes:
        color: (r, g, b) tuple, or hex text such as '#112233'
    """
    color: RgbColor = parse_hex_color(DEFAULT_BACKDROP_COLOR)
    name = BACKDROP_SOLID

    def __post_init__(self):
        color = self.color
        if isinstance(color, str):
            color = parse_hex_color(color)
        object.__setattr__(self, "color", tuple(int(c) for c in color[:3]))


@dataclass(frozen=True)
class BlurredBackdrop:
    """Box-blurred original image as backdrop.

    Attributes:
        radius: Box radius in pixels (0 = unblurred original)
    """
    radius: int = DEFAULT_BLUR_RADIUS
    name = BACKDROP_BLUR


BackdropMode = Union[TransparentBackdrop, SolidBackdrop, BlurredBackdrop]


def backdrop_from_name(
    name: str,
    color: Union[str, RgbColor] = DEFAULT_BACKDROP_COLOR,
    blur_radius: int = DEFAULT_BLUR_RADIUS,
) -> BackdropMode:
    """
    Build a backdrop mode from its settings name.

    Args:
        name: 'transparent', 'solid' or 'blur'
        color: Color used by 'solid'
        blur_radius: Radius used by 'blur'

    Raises:
        ValueError: If name is unknown
    """
    key = str(name).strip().lower()
    if key == BACKDROP_TRANSPARENT:
        return TransparentBackdrop()
    if key == BACKDROP_SOLID:
        return SolidBackdrop(color)
    if key == BACKDROP_BLUR:
        return BlurredBackdrop(int(blur_radius))
    raise ValueError(
        f"Unknown backdrop: {name}. "
        f"Valid backdrops: transparent, solid, blur"
    )


# ============================================================================
# Box Blur
# ============================================================================

def apply_box_blur(image: PixelBuffer, radius: int) -> np.ndarray:
    """
    Box blur of the RGB channels with clamped-edge sampling.

    Each output channel is the mean over the (2r+1)^2 neighborhood, with
    coordinates clamped to the image bounds.

    Args:
        image: Source PixelBuffer
        radius: Box radius in pixels (0 returns the RGB unchanged)

    Returns:
        uint8 RGB array (H, W, 3)

    Raises:
        ValueError: If radius is negative
    """
    radius = int(radius)
    if radius < 0:
        raise ValueError(f"radius must be >= 0, got {radius}")

    if radius == 0:
        return image.rgb.copy()

    rgb = image.rgb.astype(np.float64)

    size = 2 * radius + 1
    blurred = np.empty_like(rgb)
    for channel_idx in range(3):
        blurred[:, :, channel_idx] = ndimage.uniform_filter(
            rgb[:, :, channel_idx], size=size, mode="nearest"
        )
    return np.rint(np.clip(blurred, 0, ALPHA_MAX)).astype(np.uint8)


# ============================================================================
# Rendering
# ============================================================================

def _opaque(rgb: np.ndarray) -> Image.Image:
    alpha = np.full(rgb.shape[:2] + (1,), ALPHA_MAX, dtype=np.uint8)
    return Image.fromarray(np.concatenate([rgb, alpha], axis=2))


def render_backdrop(image: PixelBuffer, backdrop: BackdropMode) -> Optional[Image.Image]:
    """
    Backdrop layer for an image, or None for the transparent mode.

    Raises:
        TypeError: If backdrop is not a known mode
    """
    if isinstance(backdrop, TransparentBackdrop):
        return None
    if isinstance(backdrop, SolidBackdrop):
        return Image.new("RGBA", image.size, backdrop.color + (ALPHA_MAX,))
    if isinstance(backdrop, BlurredBackdrop):
        return _opaque(apply_box_blur(image, backdrop.radius))
    raise TypeError(f"Unknown backdrop mode: {type(backdrop)}")


def render(
    image: PixelBuffer,
    mask: AlphaMask,
    backdrop: BackdropMode = TransparentBackdrop(),
) -> Image.Image:
    """
    Composite the masked image over a backdrop.

    Args:
        image: Original image (its RGB is used, its alpha is replaced)
        mask: Current alpha mask, same dimensions as image
        backdrop: Backdrop mode

    Returns:
        RGBA PIL Image sized to the image

    Raises:
        ValueError: If mask dimensions differ from the image
    """
    if mask.size != image.size:
        raise ValueError(
            f"Mask size {mask.size} does not match image size {image.size}"
        )

    foreground = image.with_alpha(mask).to_image()
    base = render_backdrop(image, backdrop)
    if base is None:
        return foreground
    return Image.alpha_composite(base, foreground)


def render_preview(
    image: PixelBuffer,
    mask: AlphaMask,
    backdrop: BackdropMode = TransparentBackdrop(),
    checkerboard: bool = False,
) -> Image.Image:
    """
    Render for display.

    With checkerboard=True a transparent result is shown over a
    checkerboard; this is display only and never part of an export.
    """
    result = render(image, mask, backdrop)
    if checkerboard and isinstance(backdrop, TransparentBackdrop):
        board = _opaque(make_checkerboard(image.width, image.height))
        result = Image.alpha_composite(board, result)
    return result


def make_checkerboard(width: int, height: int, tile: int = CHECKER_TILE_SIZE) -> np.ndarray:
    """Generate an RGB checkerboard array (H, W, 3)."""
    xs = np.arange(width) // tile
    ys = np.arange(height) // tile
    light = (xs[np.newaxis, :] + ys[:, np.newaxis]) % 2 == 0
    return np.where(
        light[:, :, np.newaxis],
        np.array(CHECKER_LIGHT, dtype=np.uint8),
        np.array(CHECKER_DARK, dtype=np.uint8),
    ).astype(np.uint8)
