"""
Automatic matte segmentation.

Turns an RGBA image into an alpha mask with a fixed heuristic pipeline:

1. Luma: BT.601 weighted gray
2. Gradient: Sobel magnitude on interior pixels (border ring stays 0)
3. Classification: strong edges or pixels near the image center are kept,
   boosted by their closeness to the center; everything else is 0
4. Dilation: 3x3 max filter on the interior to close small holes
5. Feathering: clamped-edge Gaussian average for a soft matte boundary
6. Clamp to 0-255 and round to uint8

This is a contrast/center-prior heuristic, not a learned model. Every step
is a pure function and the whole run is deterministic.

Example:
    >>> from PIL import Image
    >>> image = Image.open("photo.png")
    >>> mask = segment(image, SegmentationParams(sensitivity=70, edge_feather=8))
    >>> cutout = PixelBuffer.from_image(image).with_alpha(mask)
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Dict, Union

import numpy as np
from scipy import ndimage

from OM_Libs.constants import (
    ALPHA_MAX,
    ALPHA_MIN,
    CENTER_BOOST_CUTOFF,
    CENTER_BOOST_GAIN,
    DEFAULT_EDGE_FEATHER,
    DEFAULT_SENSITIVITY,
    DILATION_SIZE,
    LUMA_WEIGHT_B,
    LUMA_WEIGHT_G,
    LUMA_WEIGHT_R,
    SENSITIVITY_SCALE,
    SOBEL_X,
    SOBEL_Y,
    THRESHOLD_FACTOR,
)
from OM_Libs.ImageEditingLib.image_models import AlphaMask, PixelBuffer

logger = logging.getLogger(__name__)

_SOBEL_X = np.array(SOBEL_X, dtype=np.float64).reshape(3, 3)
_SOBEL_Y = np.array(SOBEL_Y, dtype=np.float64).reshape(3, 3)


@dataclass(frozen=True)
class SegmentationParams:
    """Parameters for one segmentation run.

    Attributes:
        sensitivity: 0-100, higher keeps weaker edges as foreground
        edge_feather: Feather width in pixels (>= 0); 0 disables feathering
    """
    sensitivity: float = DEFAULT_SENSITIVITY
    edge_feather: float = DEFAULT_EDGE_FEATHER

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "sensitivity": self.sensitivity,
            "edge_feather": self.edge_feather,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SegmentationParams":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items()
                   if k in cls.__dataclass_fields__}
        return cls(**filtered)


def compute_luma(pixels: Union[PixelBuffer, np.ndarray]) -> np.ndarray:
    """
    Per-pixel gray value 0.299 R + 0.587 G + 0.114 B.

    Args:
        pixels: PixelBuffer or (H, W, 3|4) array

    Returns:
        float64 array (H, W)
    """
    arr = pixels.pixels if isinstance(pixels, PixelBuffer) else np.asarray(pixels)
    rgb = arr[:, :, :3].astype(np.float64)
    return (
        rgb[:, :, 0] * LUMA_WEIGHT_R
        + rgb[:, :, 1] * LUMA_WEIGHT_G
        + rgb[:, :, 2] * LUMA_WEIGHT_B
    )


def compute_gradient_magnitude(luma: np.ndarray) -> np.ndarray:
    """
    Sobel gradient magnitude sqrt(gx^2 + gy^2).

    Only interior pixels (1 <= x < W-1, 1 <= y < H-1) are computed; the
    one-pixel border ring is 0.
    """
    luma = np.asarray(luma, dtype=np.float64)
    magnitude = np.zeros_like(luma)
    height, width = luma.shape
    if width < 3 or height < 3:
        return magnitude

    gx = ndimage.correlate(luma, _SOBEL_X, mode="nearest")
    gy = ndimage.correlate(luma, _SOBEL_Y, mode="nearest")
    magnitude[1:-1, 1:-1] = np.hypot(gx[1:-1, 1:-1], gy[1:-1, 1:-1])
    return magnitude


def classification_threshold(sensitivity: float) -> float:
    """Gradient threshold; decreases as sensitivity increases."""
    return (ALPHA_MAX - float(sensitivity) * SENSITIVITY_SCALE) * THRESHOLD_FACTOR


def center_boost(width: int, height: int) -> np.ndarray:
    """
    Center prior: 1 at the image center falling linearly with distance.

    Distances are measured between pixel centers, so the map has the
    image's rotational symmetry. boost = max(0, 1 - dist / max(W, H)).
    """
    # Pixel-center origin; a (W/2, H/2) origin would shift the map by half a pixel
    cx = (width - 1) / 2.0
    cy = (height - 1) / 2.0
    xs = np.arange(width, dtype=np.float64) - cx
    ys = np.arange(height, dtype=np.float64) - cy
    dist = np.hypot(xs[np.newaxis, :], ys[:, np.newaxis])
    return np.maximum(0.0, 1.0 - dist / max(width, height))


def classify_foreground(magnitude: np.ndarray, sensitivity: float) -> np.ndarray:
    """
    Foreground likelihood from edge strength and the center prior.

    A pixel is kept when its gradient exceeds the threshold or its center
    boost exceeds the cutoff; kept pixels get
    min(255, magnitude + boost * 100), others 0.
    """
    magnitude = np.asarray(magnitude, dtype=np.float64)
    height, width = magnitude.shape
    boost = center_boost(width, height)
    threshold = classification_threshold(sensitivity)

    keep = (magnitude > threshold) | (boost > CENTER_BOOST_CUTOFF)
    value = np.minimum(float(ALPHA_MAX), magnitude + boost * CENTER_BOOST_GAIN)
    return np.where(keep, value, 0.0)


def dilate(classified: np.ndarray) -> np.ndarray:
    """3x3 max filter on interior pixels; the border is copied unchanged."""
    classified = np.asarray(classified, dtype=np.float64)
    dilated = np.array(classified, copy=True)
    height, width = classified.shape
    if width < 3 or height < 3:
        return dilated

    grown = ndimage.maximum_filter(classified, size=DILATION_SIZE, mode="nearest")
    dilated[1:-1, 1:-1] = grown[1:-1, 1:-1]
    return dilated


def gaussian_kernel_1d(edge_feather: float) -> np.ndarray:
    """
    Normalized 1D Gaussian with sigma = feather / 2, radius = ceil(feather).

    exp(-(dx^2 + dy^2) / 2s^2) factors into row and column terms, so two
    1D passes equal the full 2D weighted average.
    """
    sigma = float(edge_feather) / 2.0
    radius = int(math.ceil(edge_feather))
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    weights = np.exp(-(offsets * offsets) / (2.0 * sigma * sigma))
    return weights / weights.sum()


def feather(dilated: np.ndarray, edge_feather: float) -> np.ndarray:
    """
    Gaussian-weighted average over a (2r+1)^2 window, edges clamped.

    edge_feather <= 0 returns an unchanged copy (single-sample window).
    """
    dilated = np.asarray(dilated, dtype=np.float64)
    if edge_feather <= 0:
        return np.array(dilated, copy=True)

    kernel = gaussian_kernel_1d(edge_feather)
    rows = ndimage.correlate1d(dilated, kernel, axis=0, mode="nearest")
    return ndimage.correlate1d(rows, kernel, axis=1, mode="nearest")


def to_alpha(values: np.ndarray) -> np.ndarray:
    """Clamp to 0-255 and round half to even, as uint8."""
    return np.rint(np.clip(values, ALPHA_MIN, ALPHA_MAX)).astype(np.uint8)


def segment(
    image: Union[PixelBuffer, Any],
    params: SegmentationParams = SegmentationParams(),
) -> AlphaMask:
    """
    Compute an alpha mask for an image.

    Args:
        image: PixelBuffer or PIL Image
        params: Sensitivity and edge feather

    Returns:
        AlphaMask with the image's dimensions
    """
    pixels = image if isinstance(image, PixelBuffer) else PixelBuffer.from_image(image)
    start = time.perf_counter()

    luma = compute_luma(pixels)
    magnitude = compute_gradient_magnitude(luma)
    classified = classify_foreground(magnitude, params.sensitivity)
    dilated = dilate(classified)
    feathered = feather(dilated, params.edge_feather)
    mask = AlphaMask(to_alpha(feathered))

    elapsed = time.perf_counter() - start
    logger.debug(
        f"Segmented {pixels.width}x{pixels.height} "
        f"(sensitivity={params.sensitivity}, feather={params.edge_feather}) "
        f"in {elapsed:.3f}s"
    )
    return mask
