"""
Image data models for Open Matte.

This module defines the raster types shared by every stage of the matte
pipeline.

Classes:
    PixelBuffer: Immutable RGBA raster (the loaded source image)
    AlphaMask: Mutable single-channel opacity grid aligned to a PixelBuffer

Type Aliases:
    RgbColor: A tuple of 3 integers representing RGB color values (0-255)
    RgbaColor: A tuple of 4 integers representing RGBA color values (0-255)

Functions:
    parse_hex_color: Parse '#rgb' or '#rrggbb' into an RgbColor
    format_hex_color: Format an RgbColor as '#rrggbb'
"""

import io
from dataclasses import dataclass
from typing import Any, Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from OM_Libs.constants import ALPHA_MAX, ALPHA_MIN
from OM_Libs.errors import InvalidImageError

RgbColor = Tuple[int, int, int]
RgbaColor = Tuple[int, int, int, int]


def parse_hex_color(value: str) -> RgbColor:
    """
    Parse a hex color string.

    Accepts '#rgb' and '#rrggbb' forms, case-insensitive, '#' optional.

    Args:
        value: Hex color text, e.g. '#112233'

    Returns:
        (r, g, b) tuple with components 0-255

    Raises:
        ValueError: If the text is not a valid hex color
    """
    text = str(value).strip().lstrip("#")
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)
    if len(text) != 6:
        raise ValueError(f"Invalid hex color: {value!r}")
    try:
        return (int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16))
    except ValueError:
        raise ValueError(f"Invalid hex color: {value!r}") from None


def format_hex_color(color: RgbColor) -> str:
    """Format an (r, g, b) tuple as '#rrggbb'."""
    r, g, b = (max(ALPHA_MIN, min(ALPHA_MAX, int(c))) for c in color[:3])
    return f"#{r:02x}{g:02x}{b:02x}"


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Immutable RGBA raster.

    The pixel array has shape (height, width, 4), dtype uint8, and is
    marked read-only. Construct through from_image, from_array or
    from_bytes rather than directly.

    Attributes:
        pixels: Read-only RGBA array (H, W, 4)
    """
    pixels: np.ndarray

    def __post_init__(self):
        arr = np.array(self.pixels, dtype=np.uint8, copy=True)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise InvalidImageError(
                f"PixelBuffer expects an (H, W, 4) array, got shape {arr.shape}"
            )
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise InvalidImageError(
                f"Image has zero area: {arr.shape[1]}x{arr.shape[0]}"
            )
        arr.setflags(write=False)
        object.__setattr__(self, "pixels", arr)

    @classmethod
    def from_array(cls, array: Any) -> "PixelBuffer":
        """Build from an (H, W, 3) RGB or (H, W, 4) RGBA array."""
        arr = np.asarray(array)
        if arr.ndim == 3 and arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), ALPHA_MAX, dtype=np.uint8)
            arr = np.concatenate([arr.astype(np.uint8), alpha], axis=2)
        return cls(arr)

    @classmethod
    def from_image(cls, image: Any) -> "PixelBuffer":
        """Build from a PIL Image of any mode (converted to RGBA)."""
        if not hasattr(image, "convert"):
            raise TypeError(f"Expected PIL Image, got {type(image)}")
        if image.width == 0 or image.height == 0:
            raise InvalidImageError(
                f"Image has zero area: {image.width}x{image.height}"
            )
        return cls(np.asarray(image.convert("RGBA"), dtype=np.uint8))

    @classmethod
    def from_bytes(cls, data: bytes) -> "PixelBuffer":
        """
        Decode an encoded image (PNG, JPEG, ...) into a PixelBuffer.

        Raises:
            InvalidImageError: If the bytes cannot be decoded
        """
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                return cls.from_image(img)
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise InvalidImageError(f"Failed to decode image ({e})") from e

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height), PIL order."""
        return (self.width, self.height)

    @property
    def rgb(self) -> np.ndarray:
        return self.pixels[:, :, :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[:, :, 3]

    def with_alpha(self, mask: Union["AlphaMask", np.ndarray]) -> "PixelBuffer":
        """Return a new buffer with the mask as alpha and RGB untouched."""
        values = mask.values if isinstance(mask, AlphaMask) else np.asarray(mask)
        if values.shape != (self.height, self.width):
            raise ValueError(
                f"Mask shape {values.shape} does not match image "
                f"{(self.height, self.width)}"
            )
        out = np.array(self.pixels, copy=True)
        out[:, :, 3] = values
        return PixelBuffer(out)

    def to_image(self) -> Image.Image:
        """Return a new RGBA PIL Image."""
        return Image.fromarray(np.array(self.pixels))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return np.array_equal(self.pixels, other.pixels)

    __hash__ = None


class AlphaMask:
    """Mutable per-pixel opacity grid.

    Values are uint8, 0 = fully transparent (background), 255 = fully
    opaque (foreground). Dimensions are fixed at construction.
    """

    def __init__(self, values: Any):
        arr = np.array(values, dtype=np.uint8, copy=True)
        if arr.ndim != 2:
            raise ValueError(f"AlphaMask expects a 2D array, got shape {arr.shape}")
        self._values = arr

    @classmethod
    def empty(cls, width: int, height: int) -> "AlphaMask":
        """Fully opaque mask: nothing removed yet."""
        return cls(np.full((height, width), ALPHA_MAX, dtype=np.uint8))

    @classmethod
    def for_buffer(cls, buffer: PixelBuffer) -> "AlphaMask":
        return cls.empty(buffer.width, buffer.height)

    @property
    def values(self) -> np.ndarray:
        """Live backing array (H, W). Writes mutate the mask."""
        return self._values

    @property
    def width(self) -> int:
        return int(self._values.shape[1])

    @property
    def height(self) -> int:
        return int(self._values.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def copy(self) -> "AlphaMask":
        return AlphaMask(self._values)

    def fill(self, value: int) -> None:
        self._values.fill(max(ALPHA_MIN, min(ALPHA_MAX, int(value))))

    def clear(self) -> None:
        """Reset to fully opaque."""
        self.fill(ALPHA_MAX)

    def replace(self, values: Union["AlphaMask", np.ndarray]) -> None:
        """
        Replace the mask content wholesale.

        Raises:
            ValueError: If the new content has different dimensions
        """
        src = values.values if isinstance(values, AlphaMask) else np.asarray(values)
        if src.shape != self._values.shape:
            raise ValueError(
                f"Mask shape {src.shape} does not match {self._values.shape}"
            )
        np.copyto(self._values, np.clip(src, ALPHA_MIN, ALPHA_MAX).astype(np.uint8))

    def to_image(self) -> Image.Image:
        """Return the mask as a PIL 'L' image."""
        return Image.fromarray(np.array(self._values))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AlphaMask):
            return NotImplemented
        return np.array_equal(self._values, other._values)

    __hash__ = None

    def __repr__(self) -> str:
        return f"AlphaMask({self.width}x{self.height})"
