"""
MatteLib - Automatic matte segmentation

Modules:
    segmentation_engine: Gradient/center-prior segmentation pipeline
    segmentation_worker: Single-thread worker with typed request/response
"""

from OM_Libs.MatteLib.segmentation_engine import (
    SegmentationParams,
    compute_luma,
    compute_gradient_magnitude,
    classification_threshold,
    center_boost,
    classify_foreground,
    dilate,
    feather,
    segment,
)
from OM_Libs.MatteLib.segmentation_worker import (
    SegmentationRequest,
    SegmentationResponse,
    SegmentationWorker,
)

__all__ = [
    "SegmentationParams",
    "compute_luma",
    "compute_gradient_magnitude",
    "classification_threshold",
    "center_boost",
    "classify_foreground",
    "dilate",
    "feather",
    "segment",
    "SegmentationRequest",
    "SegmentationResponse",
    "SegmentationWorker",
]
