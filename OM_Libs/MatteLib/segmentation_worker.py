"""
Background worker for the segmentation engine.

Segmentation is the only operation that runs off the control thread. The
worker owns a single-thread pool; each request carries its own copy of the
pixels and each response hands back fresh buffers, so no mutable memory is
shared between threads.

Classes:
    SegmentationRequest: Pixels plus sensitivity and edge feather
    SegmentationResponse: Pixels with alpha applied, and the mask
    SegmentationWorker: Submits requests to the pool
"""

import concurrent.futures
import logging
from dataclasses import dataclass
from typing import Optional

from OM_Libs.errors import SegmentationError
from OM_Libs.ImageEditingLib.image_models import AlphaMask, PixelBuffer
from OM_Libs.MatteLib.segmentation_engine import SegmentationParams, segment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SegmentationRequest:
    pixels: PixelBuffer
    sensitivity: int
    edge_feather: float

    @property
    def params(self) -> SegmentationParams:
        return SegmentationParams(
            sensitivity=self.sensitivity,
            edge_feather=self.edge_feather,
        )


@dataclass(frozen=True)
class SegmentationResponse:
    pixels: PixelBuffer
    mask: AlphaMask


class SegmentationWorker:
    """
    Runs segmentation requests on a dedicated worker thread.

    Example:
        >>> with SegmentationWorker() as worker:
        ...     future = worker.submit(SegmentationRequest(buffer, 70, 8))
        ...     response = future.result()
    """

    def __init__(self):
        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = (
            concurrent.futures.ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="segmentation"
            )
        )

    @staticmethod
    def run(request: SegmentationRequest) -> SegmentationResponse:
        """Synchronous body of a request."""
        mask = segment(request.pixels, request.params)
        return SegmentationResponse(
            pixels=request.pixels.with_alpha(mask),
            mask=mask,
        )

    def submit(self, request: SegmentationRequest) -> "concurrent.futures.Future[SegmentationResponse]":
        """
        Queue a request on the worker thread.

        Raises:
            SegmentationError: If the worker has been shut down
        """
        if self._executor is None:
            raise SegmentationError("Segmentation worker is not available (shut down)")
        try:
            future = self._executor.submit(self.run, request)
        except RuntimeError as e:
            raise SegmentationError(f"Segmentation worker is not available: {e}") from e
        logger.debug(
            f"Submitted segmentation {request.pixels.width}x{request.pixels.height}"
        )
        return future

    @property
    def is_available(self) -> bool:
        return self._executor is not None

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def __enter__(self) -> "SegmentationWorker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
