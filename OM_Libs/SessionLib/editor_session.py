"""
Editing session for Open Matte.

EditorSession is the context object that ties the pipeline together: it
owns the loaded image and the live alpha mask, the mask history and the
settings, and hands segmentation work to a SegmentationWorker.

Flow:
    load -> segmentation (async, one request at a time) -> mask replaced,
    snapshot pushed -> brush strokes (snapshot on stroke end) -> undo/redo
    -> render / export against the current mask

All mutation happens on the caller's (control) thread. A finished
segmentation is only applied when the caller polls with process_pending()
or blocks in wait_for_segmentation(). While a request is outstanding,
strokes, undo, redo and reset are rejected with SessionBusyError so a
pending result can never overwrite edits. Likewise, while a stroke is open
only brush_at() and end_stroke() are accepted.

Example:
    >>> session = EditorSession()
    >>> session.load(Image.open("portrait.jpg"))
    >>> session.request_segmentation()
    >>> session.wait_for_segmentation()
    >>> session.paint_stroke([(120, 80), (124, 82)])
    >>> png_bytes = session.export_png()
"""

import concurrent.futures
import logging
from dataclasses import replace
from typing import Any, Callable, Iterable, Optional, Tuple

from PIL import Image

from OM_Libs.CompositeLib.compositor import render_preview
from OM_Libs.CompositeLib.exporter import (
    export_clipboard_image,
    export_jpeg,
    export_png,
)
from OM_Libs.errors import NoImageLoadedError, SegmentationError, SessionBusyError
from OM_Libs.ImageEditingLib.brush_editor import apply_brush
from OM_Libs.ImageEditingLib.image_models import AlphaMask, PixelBuffer
from OM_Libs.ImageEditingLib.mask_history import MaskHistory
from OM_Libs.MatteLib.segmentation_worker import (
    SegmentationRequest,
    SegmentationResponse,
    SegmentationWorker,
)
from OM_Libs.SessionLib.editor_settings import EditorSettings

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[Optional[SegmentationResponse], Optional[BaseException]], None]


class EditorSession:
    """Image, mask, history and settings for one editing session."""

    def __init__(
        self,
        settings: Optional[EditorSettings] = None,
        worker: Optional[SegmentationWorker] = None,
        history_size: Optional[int] = None,
    ):
        self.settings = (settings or EditorSettings()).clamped()
        self._owns_worker = worker is None
        self._worker = worker
        self.history = MaskHistory(max_size=history_size)
        self._image: Optional[PixelBuffer] = None
        self._mask: Optional[AlphaMask] = None
        self._pending: Optional["concurrent.futures.Future[SegmentationResponse]"] = None
        self._on_complete: Optional[CompletionCallback] = None
        self._stroke_active = False
        self._stroke_painted = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def image(self) -> PixelBuffer:
        if self._image is None:
            raise NoImageLoadedError("No image loaded")
        return self._image

    @property
    def mask(self) -> AlphaMask:
        if self._mask is None:
            raise NoImageLoadedError("No image loaded")
        return self._mask

    @property
    def has_image(self) -> bool:
        return self._image is not None

    @property
    def is_busy(self) -> bool:
        """True while a segmentation request is outstanding."""
        return self._pending is not None

    @property
    def stroke_active(self) -> bool:
        return self._stroke_active

    def load(self, image: Any) -> None:
        """
        Start editing a new image.

        Args:
            image: PixelBuffer, PIL Image, or encoded image bytes

        Raises:
            InvalidImageError: If the image is empty or cannot be decoded
            SessionBusyError: If a segmentation request or a stroke is outstanding
        """
        self._ensure_idle("load")
        if isinstance(image, PixelBuffer):
            buffer = image
        elif isinstance(image, (bytes, bytearray)):
            buffer = PixelBuffer.from_bytes(bytes(image))
        else:
            buffer = PixelBuffer.from_image(image)

        self._image = buffer
        self._mask = AlphaMask.for_buffer(buffer)
        self._stroke_active = False
        self._stroke_painted = False
        self.history.reset()
        self.history.push(self._mask)
        logger.info(f"Loaded image {buffer.width}x{buffer.height}")

    def update_settings(self, **changes: Any) -> EditorSettings:
        """Apply setting changes; the stored result is always clamped."""
        self.settings = replace(self.settings, **changes).clamped()
        return self.settings

    # ------------------------------------------------------------------
    # Segmentation
    # ------------------------------------------------------------------

    def _get_worker(self) -> SegmentationWorker:
        if self._worker is None:
            self._worker = SegmentationWorker()
        return self._worker

    def _build_request(self) -> SegmentationRequest:
        return SegmentationRequest(
            pixels=self.image,
            sensitivity=self.settings.sensitivity,
            edge_feather=self.settings.edge_feather,
        )

    def run_segmentation(self) -> SegmentationResponse:
        """
        Segment synchronously on the calling thread and apply the result.

        Raises:
            SegmentationError: If the engine fails (mask and history unchanged)
        """
        self._ensure_idle("segmentation")
        request = self._build_request()
        try:
            response = SegmentationWorker.run(request)
        except Exception as e:
            logger.exception("Segmentation failed")
            raise SegmentationError(f"Segmentation failed: {e}") from e
        self._apply_segmentation(response)
        return response

    def request_segmentation(self, on_complete: Optional[CompletionCallback] = None) -> None:
        """
        Submit a segmentation request to the worker.

        The result is applied by process_pending() or
        wait_for_segmentation(); on_complete(response, error) is then
        called on the control thread.

        Raises:
            SessionBusyError: If a request is already outstanding or a stroke is open
            SegmentationError: If the worker is unavailable
        """
        self._ensure_idle("segmentation")
        request = self._build_request()
        self._pending = self._get_worker().submit(request)
        self._on_complete = on_complete
        logger.info(
            f"Segmentation requested (sensitivity={request.sensitivity}, "
            f"feather={request.edge_feather})"
        )

    def process_pending(self) -> bool:
        """
        Apply a finished segmentation result, if any.

        Errors are reported through the completion callback and logged;
        mask and history stay unchanged.

        Returns:
            True if a request finished and was handled
        """
        if self._pending is None or not self._pending.done():
            return False
        self._finish_pending(raise_errors=False)
        return True

    def wait_for_segmentation(self, timeout: Optional[float] = None) -> Optional[SegmentationResponse]:
        """
        Block until the outstanding request finishes and apply it.

        Returns:
            The response, or None if nothing was outstanding

        Raises:
            SegmentationError: If the engine failed (mask and history unchanged)
            concurrent.futures.TimeoutError: If timeout expires first
        """
        if self._pending is None:
            return None
        concurrent.futures.wait([self._pending], timeout=timeout)
        if not self._pending.done():
            raise concurrent.futures.TimeoutError(
                f"Segmentation did not finish within {timeout}s"
            )
        return self._finish_pending(raise_errors=True)

    def _finish_pending(self, raise_errors: bool) -> Optional[SegmentationResponse]:
        future = self._pending
        callback = self._on_complete
        self._pending = None
        self._on_complete = None

        error = future.exception()
        if error is not None:
            logger.error(f"Segmentation failed: {error}")
            if callback is not None:
                callback(None, error)
            if raise_errors:
                raise SegmentationError(f"Segmentation failed: {error}") from error
            return None

        response = future.result()
        self._apply_segmentation(response)
        if callback is not None:
            callback(response, None)
        return response

    def _apply_segmentation(self, response: SegmentationResponse) -> None:
        self.mask.replace(response.mask)
        self.history.push(self.mask)
        logger.info(f"Segmentation applied ({len(self.history)} snapshots)")

    # ------------------------------------------------------------------
    # Brush strokes
    # ------------------------------------------------------------------

    def begin_stroke(self) -> None:
        self._ensure_idle("brush stroke")
        if self._mask is None:
            raise NoImageLoadedError("No image loaded")
        self._stroke_active = True
        self._stroke_painted = False

    def brush_at(self, x: float, y: float) -> None:
        """
        Stamp the current brush at mask coordinates (x, y).

        A stamp outside begin_stroke()/end_stroke() is its own stroke.
        """
        self._ensure_idle("brush stroke", allow_stroke=True)
        apply_brush(self.mask, x, y, self.settings.brush_state())
        if self._stroke_active:
            self._stroke_painted = True
        else:
            self.history.push(self.mask)

    def end_stroke(self) -> None:
        """Finish the stroke; one snapshot is pushed if anything was painted."""
        if not self._stroke_active:
            return
        self._stroke_active = False
        if self._stroke_painted:
            self.history.push(self.mask)
        self._stroke_painted = False

    def paint_stroke(self, points: Iterable[Tuple[float, float]]) -> None:
        """Stamp along a pointer path as a single undoable stroke."""
        self.begin_stroke()
        try:
            for x, y in points:
                self.brush_at(x, y)
        finally:
            self.end_stroke()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        self._ensure_idle("undo")
        return self.history.undo(self.mask)

    def redo(self) -> bool:
        self._ensure_idle("redo")
        return self.history.redo(self.mask)

    def reset(self) -> None:
        """Drop all history and clear the mask to fully opaque."""
        self._ensure_idle("reset")
        self.history.reset(self.mask)
        self._stroke_active = False
        self._stroke_painted = False
        logger.info("Session reset")

    # ------------------------------------------------------------------
    # Rendering and export
    # ------------------------------------------------------------------

    def render_preview(self, checkerboard: bool = False) -> Image.Image:
        return render_preview(
            self.image, self.mask, self.settings.backdrop_mode(), checkerboard=checkerboard
        )

    def export_png(self) -> bytes:
        return export_png(self.image, self.mask, self.settings.backdrop_mode())

    def export_jpeg(self) -> bytes:
        return export_jpeg(self.image, self.settings.backdrop_color, self.settings.jpeg_quality)

    def export_clipboard_image(self) -> Image.Image:
        return export_clipboard_image(self.image, self.mask, self.settings.backdrop_mode())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _ensure_idle(self, operation: str, allow_stroke: bool = False) -> None:
        if self._pending is not None:
            logger.warning(f"Rejected {operation}: segmentation in progress")
            raise SessionBusyError(f"Cannot run {operation} while segmentation is in progress")
        # The live mask must match the history cursor outside a stroke
        if self._stroke_active and not allow_stroke:
            logger.warning(f"Rejected {operation}: brush stroke in progress")
            raise SessionBusyError(f"Cannot run {operation} while a brush stroke is in progress")

    def close(self) -> None:
        """
        Shut down a worker the session created itself.

        An outstanding request is dropped without being applied.
        """
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
            self._on_complete = None
            logger.info("Dropped pending segmentation on close")
        if self._owns_worker and self._worker is not None:
            self._worker.shutdown()
            self._worker = None

    def __enter__(self) -> "EditorSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
