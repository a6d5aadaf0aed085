"""
Editor settings for Open Matte.

EditorSettings is the configuration surface the UI layer writes into. The
matte core does not re-validate parameters, so clamped() is the one place
where out-of-range values are forced back into range.
"""

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict

from OM_Libs.CompositeLib.compositor import BackdropMode, backdrop_from_name
from OM_Libs.constants import (
    BACKDROP_NAMES,
    DEFAULT_BACKDROP,
    DEFAULT_BACKDROP_COLOR,
    DEFAULT_BLUR_RADIUS,
    DEFAULT_BRUSH_HARDNESS,
    DEFAULT_BRUSH_MODE,
    DEFAULT_BRUSH_RADIUS,
    DEFAULT_EDGE_FEATHER,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_SENSITIVITY,
    DEFAULT_ZOOM,
    HARDNESS_MAX,
    HARDNESS_MIN,
    JPEG_QUALITY_MAX,
    JPEG_QUALITY_MIN,
    SENSITIVITY_MAX,
    SENSITIVITY_MIN,
    ZOOM_MAX,
    ZOOM_MIN,
)
from OM_Libs.ImageEditingLib.brush_editor import BrushMode, BrushState
from OM_Libs.ImageEditingLib.image_models import format_hex_color, parse_hex_color
from OM_Libs.MatteLib.segmentation_engine import SegmentationParams


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass
class EditorSettings:
    """User-adjustable settings.

    Attributes:
        sensitivity: Segmentation sensitivity (0-100)
        edge_feather: Segmentation feather in pixels (>= 0)
        brush_radius: Brush radius in pixels (> 0)
        brush_hardness: Brush center opacity percentage (0-100)
        brush_mode: 'restore' or 'erase'
        backdrop: 'transparent', 'solid' or 'blur'
        backdrop_color: Hex color for the solid backdrop and JPEG flattening
        blur_radius: Box radius for the blurred backdrop (>= 0)
        zoom: View zoom factor (0.5-3.0)
        jpeg_quality: JPEG export quality (1-100)
    """
    sensitivity: int = DEFAULT_SENSITIVITY
    edge_feather: float = DEFAULT_EDGE_FEATHER
    brush_radius: float = DEFAULT_BRUSH_RADIUS
    brush_hardness: float = DEFAULT_BRUSH_HARDNESS
    brush_mode: str = DEFAULT_BRUSH_MODE
    backdrop: str = DEFAULT_BACKDROP
    backdrop_color: str = DEFAULT_BACKDROP_COLOR
    blur_radius: int = DEFAULT_BLUR_RADIUS
    zoom: float = DEFAULT_ZOOM
    jpeg_quality: int = DEFAULT_JPEG_QUALITY

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditorSettings":
        """Create from dictionary (unknown keys are ignored)."""
        filtered = {k: v for k, v in data.items()
                   if k in cls.__dataclass_fields__}
        return cls(**filtered)

    def clamped(self) -> "EditorSettings":
        """
        Copy with every value forced into its valid range.

        Unknown brush modes and backdrops fall back to the defaults, and an
        unparseable color falls back to the default color.
        """
        mode = str(self.brush_mode).strip().lower()
        if mode not in {m.value for m in BrushMode}:
            mode = DEFAULT_BRUSH_MODE

        backdrop = str(self.backdrop).strip().lower()
        if backdrop not in BACKDROP_NAMES:
            backdrop = DEFAULT_BACKDROP

        try:
            color = format_hex_color(parse_hex_color(self.backdrop_color))
        except ValueError:
            color = DEFAULT_BACKDROP_COLOR

        return replace(
            self,
            sensitivity=int(round(_clamp(float(self.sensitivity), SENSITIVITY_MIN, SENSITIVITY_MAX))),
            edge_feather=max(0.0, float(self.edge_feather)),
            brush_radius=max(0.0, float(self.brush_radius)),
            brush_hardness=_clamp(float(self.brush_hardness), HARDNESS_MIN, HARDNESS_MAX),
            brush_mode=mode,
            backdrop=backdrop,
            backdrop_color=color,
            blur_radius=max(0, int(self.blur_radius)),
            zoom=_clamp(float(self.zoom), ZOOM_MIN, ZOOM_MAX),
            jpeg_quality=int(_clamp(int(self.jpeg_quality), JPEG_QUALITY_MIN, JPEG_QUALITY_MAX)),
        )

    def zoom_by(self, factor: float) -> "EditorSettings":
        """Copy with the zoom multiplied by factor and clamped to 0.5-3.0."""
        return replace(self, zoom=_clamp(self.zoom * float(factor), ZOOM_MIN, ZOOM_MAX))

    def brush_state(self) -> BrushState:
        return BrushState(
            radius=self.brush_radius,
            hardness=self.brush_hardness,
            mode=BrushMode(self.brush_mode),
        )

    def segmentation_params(self) -> SegmentationParams:
        return SegmentationParams(
            sensitivity=self.sensitivity,
            edge_feather=self.edge_feather,
        )

    def backdrop_mode(self) -> BackdropMode:
        return backdrop_from_name(self.backdrop, self.backdrop_color, self.blur_radius)
