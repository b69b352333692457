"""
Focus Controller for Qt UI
Owns the FocusSession and FocusScheduler for one preview window.

Frames are submitted from the GUI thread; results come back from the
scheduler's worker through a queued signal so the session is only ever
touched on the GUI thread.
"""
from PySide6.QtCore import QObject, Signal, Slot, Qt

from services.logger import app_logger
from services.focus import FocusScheduler, FocusSession, Roi, map_view_rect_to_image


class FocusControllerQt(QObject):
    """
    Qt adapter around the focus session.

    session_changed(event) fires after every session change; the panel
    re-renders from session.snapshot().
    """

    session_changed = Signal(str)
    _completion_ready = Signal(object)  # callable from the worker thread

    def __init__(self, config, parent=None):
        super().__init__(parent)
        self.config = config
        self.session = FocusSession(history_limit=config.history_limit)

        self._last_frame = None
        self._roi = Roi()

        # Queued: emitted on the worker thread, delivered on ours
        self._completion_ready.connect(self._run_completion, Qt.QueuedConnection)
        self.scheduler = FocusScheduler(
            on_result=self._on_result,
            dispatch=self._completion_ready.emit,
            throttle_s=config.throttle_seconds,
        )
        self.session.subscribe(self.session_changed.emit)

    @property
    def roi(self) -> Roi:
        return self._roi

    @Slot(object)
    def _run_completion(self, fn):
        fn()

    def _on_result(self, result):
        # GUI thread
        self.session.set_roi_info(result.frame_size, result.roi)
        self.session.apply_metrics(result.metrics)

    @Slot(object, dict)
    def on_frame(self, frame, metadata=None):
        """New live frame from the frame source"""
        self._last_frame = frame
        self.scheduler.submit(frame, self._roi)

    def on_roi_changed(self, view_rect, view_size):
        """
        Selection changed on the preview.

        Args:
            view_rect: Roi in widget coordinates (null = clear selection)
            view_size: (width, height) of the preview widget
        """
        if self._last_frame is None:
            return
        height, width = self._last_frame.shape[:2]
        self._roi = map_view_rect_to_image(view_rect, view_size, (width, height))
        if self._roi.is_null:
            app_logger.debug("Focus ROI cleared (full frame)")
        else:
            app_logger.debug(f"Focus ROI set to {self._roi.as_tuple()}")
        self.scheduler.roi_changed(self._last_frame, self._roi)

    def clear_roi(self):
        self.on_roi_changed(Roi(), (1, 1))

    def mark_best(self):
        if self.session.mark_best():
            app_logger.info(f"Focus baseline marked at {self.session.best_composite:.1f}")

    def reset_baseline(self):
        self.session.reset_baseline()
        app_logger.info("Focus baseline reset")

    def on_camera_closed(self):
        """Frame source stopped: drop in-flight work and clear the panel"""
        self.scheduler.reset()
        self._last_frame = None
        self._roi = Roi()
        self.session.reset_panel()

    def export_metrics(self):
        return self.session.export_metrics()

    def shutdown(self):
        self.scheduler.shutdown(wait=True)
