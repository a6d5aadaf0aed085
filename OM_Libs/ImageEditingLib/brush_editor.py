"""
Brush Editor for manual matte correction.

A brush stamp is a radial falloff centered on the pointer position: opacity
equals hardness/100 at the center and falls linearly to 0 at the radius.
The stamp is blended directly into the AlphaMask array.

Modes:
    restore: Raise the mask toward the brush ceiling (255 * hardness / 100)
    erase: Punch the mask out proportionally to the stamp (destination-out)

Example:
    >>> mask = AlphaMask.empty(200, 200)
    >>> brush = BrushState(radius=20, hardness=70, mode=BrushMode.ERASE)
    >>> apply_brush(mask, 100, 100, brush)
    >>> apply_brush_stroke(mask, [(100, 100), (104, 101), (108, 103)], brush)
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

import numpy as np

from OM_Libs.constants import (
    ALPHA_MAX,
    ALPHA_MIN,
    DEFAULT_BRUSH_HARDNESS,
    DEFAULT_BRUSH_MODE,
    DEFAULT_BRUSH_RADIUS,
    HARDNESS_MAX,
)
from OM_Libs.ImageEditingLib.image_models import AlphaMask

logger = logging.getLogger(__name__)


class BrushMode(str, Enum):
    RESTORE = "restore"
    ERASE = "erase"


@dataclass(frozen=True)
class BrushState:
    """Brush parameters.

    Attributes:
        radius: Stamp radius in mask pixels (> 0; 0 or less paints nothing)
        hardness: Center opacity as a percentage (0-100)
        mode: BrushMode.RESTORE or BrushMode.ERASE
    """
    radius: float = DEFAULT_BRUSH_RADIUS
    hardness: float = DEFAULT_BRUSH_HARDNESS
    mode: BrushMode = BrushMode(DEFAULT_BRUSH_MODE)

    def __post_init__(self):
        object.__setattr__(self, "mode", BrushMode(self.mode))

    @property
    def opacity(self) -> float:
        """Center opacity in 0.0-1.0."""
        return max(0.0, min(1.0, float(self.hardness) / HARDNESS_MAX))

    @property
    def ceiling(self) -> float:
        """Highest mask value a restore stroke can reach."""
        return ALPHA_MAX * self.opacity

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "radius": self.radius,
            "hardness": self.hardness,
            "mode": self.mode.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrushState":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items()
                   if k in cls.__dataclass_fields__}
        return cls(**filtered)


def brush_footprint(
    width: int,
    height: int,
    x: float,
    y: float,
    brush: BrushState,
) -> Optional[Tuple[Tuple[slice, slice], np.ndarray]]:
    """
    Compute the stamp opacity over the brush's bounding box.

    Pixel (i, j) sits at coordinate (i, j).

    Args:
        width, height: Mask dimensions
        x, y: Stamp center in mask coordinates
        brush: Brush parameters

    Returns:
        ((row_slice, col_slice), opacity) where opacity is a float array
        shaped like the clipped box, or None when nothing would be painted
    """
    radius = float(brush.radius)
    if radius <= 0 or brush.opacity <= 0:
        return None

    x0 = max(0, int(math.floor(x - radius)))
    x1 = min(width, int(math.ceil(x + radius)) + 1)
    y0 = max(0, int(math.floor(y - radius)))
    y1 = min(height, int(math.ceil(y + radius)) + 1)
    if x0 >= x1 or y0 >= y1:
        return None

    cols = np.arange(x0, x1, dtype=np.float64)
    rows = np.arange(y0, y1, dtype=np.float64)
    dist = np.hypot(cols[np.newaxis, :] - x, rows[:, np.newaxis] - y)
    opacity = brush.opacity * np.clip(1.0 - dist / radius, 0.0, 1.0)
    return (slice(y0, y1), slice(x0, x1)), opacity


def apply_brush(mask: AlphaMask, x: float, y: float, brush: BrushState) -> AlphaMask:
    """
    Apply one brush stamp to the mask in place.

    Restore moves each pixel toward the ceiling by the stamp opacity and
    floors the result, so repeated stamps accumulate but never pass the
    ceiling and never lower the mask. Erase multiplies by (1 - opacity).

    Args:
        mask: Mask to modify
        x, y: Stamp center in mask coordinates
        brush: Brush parameters

    Returns:
        The same mask, for chaining
    """
    footprint = brush_footprint(mask.width, mask.height, x, y, brush)
    if footprint is None:
        return mask

    region, opacity = footprint
    current = mask.values[region].astype(np.float64)

    if brush.mode is BrushMode.RESTORE:
        ceiling = brush.ceiling
        raised = np.floor(current + (ceiling - current) * opacity)
        updated = np.where(current < ceiling, np.maximum(raised, current), current)
    else:
        updated = np.rint(current * (1.0 - opacity))

    mask.values[region] = np.clip(updated, ALPHA_MIN, ALPHA_MAX).astype(np.uint8)
    logger.debug(f"Brush {brush.mode.value} at ({x:.1f}, {y:.1f}) r={brush.radius}")
    return mask


def apply_brush_stroke(
    mask: AlphaMask,
    points: Iterable[Tuple[float, float]],
    brush: BrushState,
) -> AlphaMask:
    """
    Apply a stamp at each point of a pointer path.

    Points are stamped as given; spacing along the path is the caller's
    concern.
    """
    for x, y in points:
        apply_brush(mask, x, y, brush)
    return mask
