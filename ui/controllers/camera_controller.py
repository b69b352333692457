"""
Replay Controller for Qt UI
Adapter between PySide6 UI and the folder replay frame source.

Uses FolderReplaySource.start() with callbacks - frames arrive on the replay
thread and are re-emitted as Qt signals so slots run on the GUI thread.
"""
from PySide6.QtCore import QObject, Signal

from services.logger import app_logger
from services.frame_source import FolderReplaySource, DEFAULT_EXTENSIONS, STATE_STOPPED


class ReplayControllerQt(QObject):
    """
    Qt-compatible frame source controller.

    Stands in for a camera: start_capture()/stop_capture() drive a
    FolderReplaySource configured from the 'replay' config section.
    """

    capture_started = Signal()
    capture_stopped = Signal()
    frame_ready = Signal(object, dict)  # numpy grayscale frame, metadata
    error = Signal(str)

    def __init__(self, config, parent=None):
        super().__init__(parent)
        self.config = config
        self.source = None
        self.is_capturing = False

    def start_capture(self, directory=None):
        """Start replaying a folder (defaults to replay.directory from config)"""
        if self.is_capturing:
            return False

        settings = self.config.get_section('replay')
        directory = directory or settings.get('directory', '')
        if not directory:
            self.error.emit("No replay folder selected")
            return False

        self.source = FolderReplaySource(
            directory,
            on_frame=self._on_frame_captured,
            interval_s=float(settings.get('interval_ms', 100)) / 1000.0,
            loop=bool(settings.get('loop', True)),
            extensions=settings.get('extensions') or DEFAULT_EXTENSIONS,
            on_error=self._on_source_error,
            on_state=self._on_source_state,
        )

        if not self.source.start():
            self.source = None
            return False

        self.is_capturing = True
        self.capture_started.emit()
        return True

    def stop_capture(self):
        """Stop replay (blocks briefly while the replay thread exits)"""
        if not self.source:
            return

        source, self.source = self.source, None
        was_capturing, self.is_capturing = self.is_capturing, False
        source.stop()
        if was_capturing:
            self.capture_stopped.emit()

    def _on_frame_captured(self, frame, metadata):
        """Called from the replay thread; the signal is queued to the GUI thread"""
        self.frame_ready.emit(frame, metadata)

    def _on_source_error(self, message):
        self.error.emit(message)

    def _on_source_state(self, state):
        # Replay ran out of files (loop disabled)
        if state == STATE_STOPPED and self.is_capturing:
            self.is_capturing = False
            app_logger.info("Replay finished")
            self.capture_stopped.emit()
