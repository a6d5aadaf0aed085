"""
Unit tests for editor_session module.

Tests loading, segmentation requests, stroke history, busy rejection and
export from an EditorSession.
"""

import concurrent.futures
import io

import numpy as np
import pytest
from PIL import Image

from OM_Libs.errors import (
    InvalidImageError,
    NoImageLoadedError,
    SegmentationError,
    SessionBusyError,
)
from OM_Libs.ImageEditingLib.image_models import AlphaMask
from OM_Libs.MatteLib.segmentation_worker import SegmentationWorker
from OM_Libs.SessionLib.editor_session import EditorSession


class ManualWorker:
    """Worker whose futures are completed by the test."""

    def __init__(self):
        self.requests = []
        self.futures = []

    def submit(self, request):
        future = concurrent.futures.Future()
        self.requests.append(request)
        self.futures.append(future)
        return future

    def complete(self):
        request = self.requests[-1]
        self.futures[-1].set_result(SegmentationWorker.run(request))

    def fail(self, error):
        self.futures[-1].set_exception(error)

    def shutdown(self):
        pass


@pytest.fixture
def worker():
    return ManualWorker()


@pytest.fixture
def session(worker, subject_image):
    session = EditorSession(worker=worker)
    session.load(subject_image)
    return session


class TestLoad:
    """Tests for loading images."""

    def test_load_sets_opaque_mask(self, session, subject_image):
        assert session.has_image
        assert session.mask == AlphaMask.empty(*subject_image.size)
        assert len(session.history) == 1

    def test_load_bytes(self, worker):
        data = io.BytesIO()
        Image.new("RGB", (5, 4), (1, 2, 3)).save(data, format="PNG")
        session = EditorSession(worker=worker)

        session.load(data.getvalue())

        assert session.image.size == (5, 4)

    def test_load_invalid_bytes(self, worker):
        session = EditorSession(worker=worker)

        with pytest.raises(InvalidImageError):
            session.load(b"not an image")
        assert not session.has_image

    def test_operations_without_image(self, worker):
        session = EditorSession(worker=worker)

        with pytest.raises(NoImageLoadedError):
            session.export_png()
        with pytest.raises(NoImageLoadedError):
            session.undo()
        with pytest.raises(NoImageLoadedError):
            session.begin_stroke()
        with pytest.raises(NoImageLoadedError):
            session.request_segmentation()

    def test_reload_resets_history(self, session):
        session.paint_stroke([(5, 5)])
        session.load(Image.new("RGBA", (6, 6)))

        assert len(session.history) == 1
        assert not session.history.can_undo()


class TestSegmentationRequests:
    """Tests for asynchronous segmentation."""

    def test_request_uses_settings(self, session, worker):
        session.update_settings(sensitivity=40, edge_feather=3)
        session.request_segmentation()

        assert worker.requests[0].sensitivity == 40
        assert worker.requests[0].edge_feather == 3
        assert worker.requests[0].pixels == session.image

    def test_result_applied_on_poll(self, session, worker):
        results = []
        session.request_segmentation(lambda response, error: results.append((response, error)))

        assert session.is_busy
        assert session.process_pending() is False

        worker.complete()

        assert session.process_pending() is True
        assert not session.is_busy
        response, error = results[0]
        assert error is None
        assert session.mask == response.mask
        assert len(session.history) == 2

    def test_failure_leaves_mask_unchanged(self, session, worker):
        results = []
        before = session.mask.copy()
        session.request_segmentation(lambda response, error: results.append((response, error)))

        worker.fail(RuntimeError("engine exploded"))

        assert session.process_pending() is True
        assert results[0][0] is None
        assert isinstance(results[0][1], RuntimeError)
        assert session.mask == before
        assert len(session.history) == 1
        assert not session.is_busy

    def test_wait_raises_on_failure(self, session, worker):
        session.request_segmentation()
        worker.fail(RuntimeError("engine exploded"))

        with pytest.raises(SegmentationError):
            session.wait_for_segmentation(timeout=1)
        assert not session.is_busy

    def test_wait_timeout(self, session):
        session.request_segmentation()

        with pytest.raises(concurrent.futures.TimeoutError):
            session.wait_for_segmentation(timeout=0.01)
        assert session.is_busy

    def test_wait_with_nothing_pending(self, session):
        assert session.wait_for_segmentation() is None

    def test_edits_rejected_while_busy(self, session):
        session.request_segmentation()

        with pytest.raises(SessionBusyError):
            session.paint_stroke([(3, 3)])
        with pytest.raises(SessionBusyError):
            session.brush_at(3, 3)
        with pytest.raises(SessionBusyError):
            session.undo()
        with pytest.raises(SessionBusyError):
            session.redo()
        with pytest.raises(SessionBusyError):
            session.reset()
        with pytest.raises(SessionBusyError):
            session.request_segmentation()
        with pytest.raises(SessionBusyError):
            session.load(Image.new("RGBA", (2, 2)))
        assert not session.stroke_active

    def test_export_allowed_while_busy(self, session):
        session.request_segmentation()
        assert session.export_png()

    def test_run_segmentation_synchronously(self, session):
        response = session.run_segmentation()

        assert session.mask == response.mask
        assert len(session.history) == 2

    def test_real_worker(self, subject_image):
        with EditorSession() as session:
            session.load(subject_image)
            session.request_segmentation()
            response = session.wait_for_segmentation(timeout=30)

            assert session.mask == response.mask
            assert session.history.cursor == 1


class TestStrokesAndHistory:
    """Tests for brush strokes and undo/redo."""

    def test_stroke_is_one_snapshot(self, session):
        session.paint_stroke([(5, 5), (8, 6), (11, 7)])

        assert len(session.history) == 2
        assert session.mask.values[5, 5] < 255

    def test_empty_stroke_pushes_nothing(self, session):
        session.begin_stroke()
        session.end_stroke()

        assert len(session.history) == 1

    def test_single_stamp_pushes(self, session):
        session.brush_at(5, 5)
        session.brush_at(20, 10)

        assert len(session.history) == 3

    def test_undo_all_strokes_returns_to_empty(self, session, subject_image):
        session.update_settings(brush_hardness=100)
        for point in ((4, 4), (16, 12), (28, 20)):
            session.paint_stroke([point])

        for _ in range(3):
            assert session.undo()

        assert session.mask == AlphaMask.empty(*subject_image.size)
        assert not session.undo()

    def test_redo_after_undo(self, session):
        session.paint_stroke([(10, 10)])
        edited = session.mask.copy()

        session.undo()
        assert session.redo()
        assert session.mask == edited

    def test_restore_mode(self, session):
        session.mask.replace(np.zeros((24, 32), dtype=np.uint8))
        session.update_settings(brush_mode="restore", brush_hardness=100, brush_radius=4)

        session.paint_stroke([(16, 12)])

        assert session.mask.values[12, 16] == 255

    def test_reset(self, session, subject_image):
        session.paint_stroke([(10, 10)])

        session.reset()

        assert session.mask == AlphaMask.empty(*subject_image.size)
        assert len(session.history) == 0
        assert not session.undo()

    def test_history_rejected_during_open_stroke(self, session, subject_image):
        """Undo and friends wait for the open stroke to end."""
        session.paint_stroke([(5, 5)])
        session.undo()
        session.begin_stroke()
        session.brush_at(15, 15)

        with pytest.raises(SessionBusyError):
            session.undo()
        with pytest.raises(SessionBusyError):
            session.redo()
        with pytest.raises(SessionBusyError):
            session.reset()
        with pytest.raises(SessionBusyError):
            session.begin_stroke()
        with pytest.raises(SessionBusyError):
            session.load(subject_image)

        session.end_stroke()

        assert not session.stroke_active
        assert len(session.history) == 2
        assert session.history.current() == session.mask

    def test_committed_stroke_survives_rejected_undo(self, session):
        session.paint_stroke([(5, 5)])
        committed = session.mask.copy()

        session.begin_stroke()
        session.brush_at(15, 15)
        with pytest.raises(SessionBusyError):
            session.undo()
        session.end_stroke()

        assert session.undo()
        assert session.mask == committed
        assert session.undo()
        assert session.redo()
        assert session.mask == committed

    def test_segmentation_rejected_during_open_stroke(self, session, worker):
        session.begin_stroke()
        session.brush_at(5, 5)

        with pytest.raises(SessionBusyError):
            session.request_segmentation()
        with pytest.raises(SessionBusyError):
            session.run_segmentation()
        assert worker.requests == []

        session.end_stroke()

        assert len(session.history) == 2
        assert session.history.current() == session.mask

    def test_close_drops_pending_request(self, session, worker):
        results = []
        session.request_segmentation(lambda response, error: results.append((response, error)))

        session.close()

        assert not session.is_busy
        assert worker.futures[0].cancelled()
        assert session.process_pending() is False
        assert results == []
        session.paint_stroke([(5, 5)])
        assert len(session.history) == 2


class TestSettingsAndExport:
    """Tests for settings updates and export."""

    def test_update_settings_clamps(self, session):
        settings = session.update_settings(sensitivity=150, brush_mode="smudge")

        assert settings.sensitivity == 100
        assert settings.brush_mode == "erase"
        assert session.settings is settings

    def test_update_settings_unknown_field(self, session):
        with pytest.raises(TypeError):
            session.update_settings(not_a_setting=1)

    def test_png_uses_backdrop(self, session):
        session.mask.replace(np.zeros((24, 32), dtype=np.uint8))
        session.update_settings(backdrop="solid", backdrop_color="#112233")

        decoded = np.asarray(Image.open(io.BytesIO(session.export_png())))

        assert np.all(decoded == (17, 34, 51, 255))

    def test_jpeg_ignores_mask(self, worker):
        session = EditorSession(worker=worker)
        session.load(Image.new("RGB", (8, 6), (200, 100, 50)))
        session.mask.replace(np.zeros((6, 8), dtype=np.uint8))
        session.update_settings(backdrop_color="#112233", backdrop="blur")

        decoded = np.asarray(Image.open(io.BytesIO(session.export_jpeg())).convert("RGB"))

        assert np.abs(decoded.astype(int) - np.array([200, 100, 50])).max() <= 3

    def test_clipboard_and_preview(self, session, subject_image):
        assert session.export_clipboard_image().size == subject_image.size
        assert session.render_preview(checkerboard=True).mode == "RGBA"
