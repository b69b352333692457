"""
Main Window for Focus Console
Two-panel layout: live frame stream on the left, focus session on the right
"""
from PySide6.QtWidgets import QMainWindow, QWidget, QHBoxLayout, QSplitter, QFileDialog, QApplication
from PySide6.QtCore import Qt, QTimer

from app_config import get_window_title
from services.config import Config
from services.logger import app_logger
from version import __version__

from .theme import apply_theme, get_stylesheet
from .theme.tokens import Colors
from .panels.live_monitoring import LiveMonitoringPanel
from .panels.focus_panel import FocusPanel
from .controllers.camera_controller import ReplayControllerQt
from .controllers.focus_controller import FocusControllerQt


class MainWindow(QMainWindow):
    """
    Main application window:
    - Left: Live monitoring panel (preview with ROI selection, activity log)
    - Right: Focus panel (score, metrics, baseline, history, guidance)
    """

    def __init__(self, config: Config = None, replay_directory: str = None):
        super().__init__()

        apply_theme()

        self.config = config or Config()
        app_logger.set_level(self.config.get('log_level', 'INFO'))
        if replay_directory:
            replay = self.config.get_section('replay')
            replay['directory'] = replay_directory
            self.config.set('replay', replay)

        self.replay_controller = ReplayControllerQt(self.config, self)
        self.focus_controller = FocusControllerQt(self.config, self)

        self._setup_window()
        self._setup_ui()
        self._setup_connections()
        self._start_timers()

        self.live_panel.set_source(self.config.get_section('replay').get('directory', ''))
        app_logger.info(f"Focus Console v{__version__} initialized")

    def _setup_window(self):
        """Configure main window properties"""
        self.setWindowTitle(get_window_title(__version__))

        geometry = self.config.get('window_geometry', '1440x900')
        try:
            w, h = map(int, str(geometry).lower().split('x')[:2])
            self.resize(w, h)
        except ValueError:
            self.resize(1440, 900)

        self.setMinimumSize(960, 600)
        self.setStyleSheet(get_stylesheet())

    def _setup_ui(self):
        """Build the main UI layout"""
        central = QWidget()
        self.setCentralWidget(central)

        layout = QHBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self.splitter = QSplitter(Qt.Horizontal)
        self.splitter.setHandleWidth(6)
        self.splitter.setChildrenCollapsible(False)
        self.splitter.setStyleSheet(f"""
            QSplitter::handle {{
                background-color: {Colors.border_subtle};
            }}
            QSplitter::handle:hover {{
                background-color: {Colors.accent_default};
            }}
        """)
        layout.addWidget(self.splitter)

        self.live_panel = LiveMonitoringPanel(self)
        self.splitter.addWidget(self.live_panel)

        self.focus_panel = FocusPanel(self)
        self.splitter.addWidget(self.focus_panel)
        self.splitter.setStretchFactor(0, 3)
        self.splitter.setStretchFactor(1, 2)

    def _setup_connections(self):
        """Connect signals and slots"""
        # Replay -> preview + focus
        self.replay_controller.frame_ready.connect(self._on_frame)
        self.replay_controller.capture_started.connect(self._on_capture_started)
        self.replay_controller.capture_stopped.connect(self._on_capture_stopped)
        self.replay_controller.error.connect(self._on_source_error)

        # Live panel actions
        self.live_panel.open_folder_clicked.connect(self._on_open_folder)
        self.live_panel.start_clicked.connect(self.start_capture)
        self.live_panel.stop_clicked.connect(self.stop_capture)
        self.live_panel.preview.roi_selected.connect(self.focus_controller.on_roi_changed)

        # Focus panel actions
        self.focus_panel.mark_best_requested.connect(self.focus_controller.mark_best)
        self.focus_panel.reset_baseline_requested.connect(self.focus_controller.reset_baseline)
        self.focus_panel.clear_roi_requested.connect(self.focus_controller.clear_roi)

        # Session -> panel
        self.focus_controller.session_changed.connect(self._on_session_changed)

    def _start_timers(self):
        self.log_timer = QTimer(self)
        self.log_timer.timeout.connect(self._poll_logs)
        self.log_timer.start(250)

    # =========================================================================
    # CAPTURE
    # =========================================================================

    def start_capture(self):
        """Start replaying the configured folder"""
        self.replay_controller.start_capture()

    def stop_capture(self):
        self.replay_controller.stop_capture()

    def _on_open_folder(self):
        current = self.config.get_section('replay').get('directory', '')
        directory = QFileDialog.getExistingDirectory(self, "Select frame folder", current)
        if not directory:
            return
        replay = self.config.get_section('replay')
        replay['directory'] = directory
        self.config.set('replay', replay)
        self.config.save()
        self.live_panel.set_source(directory)

    def _on_frame(self, frame, metadata: dict):
        self.live_panel.update_preview(frame, metadata)
        self.focus_controller.on_frame(frame, metadata)

    def _on_capture_started(self):
        self.live_panel.set_capturing(True)

    def _on_capture_stopped(self):
        self.live_panel.set_capturing(False)
        self.focus_controller.on_camera_closed()
        self.live_panel.clear_preview()

    def _on_source_error(self, message: str):
        app_logger.warning(message)

    # =========================================================================
    # FOCUS
    # =========================================================================

    def _on_session_changed(self, event: str):
        session = self.focus_controller.session
        self.focus_panel.render(session.snapshot())
        self.focus_panel.render_history(session.history_rows())
        self.live_panel.preview.set_image_roi(session.roi)

    def _poll_logs(self):
        messages = app_logger.get_messages()
        if messages:
            self.live_panel.append_logs(messages)

    # =========================================================================
    # SHUTDOWN
    # =========================================================================

    def closeEvent(self, event):
        """Stop replay and focus worker, save geometry"""
        self.log_timer.stop()

        self.config.set('window_geometry', f"{self.width()}x{self.height()}")
        self.config.save()

        self.replay_controller.stop_capture()
        self.focus_controller.shutdown()

        app_logger.info("Application closing")
        event.accept()
        QApplication.quit()
