"""
Live Monitoring Panel
Left panel showing the replayed frame stream, frame metadata and the activity log
"""
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QFrame, QScrollArea, QTextEdit, QGridLayout
)
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QTextCursor
from qfluentwidgets import CardWidget, SubtitleLabel, BodyLabel, CaptionLabel, PushButton, PrimaryPushButton

from ..theme.tokens import Colors, Typography, Spacing, Layout
from ..components.cards import MonitoringCard
from ..components.preview import FramePreview


class MetadataWidget(QFrame):
    """Compact frame metadata: file, index, size, time"""

    def __init__(self, parent=None):
        super().__init__(parent)
        self._values = {}
        self._setup_ui()

    def _setup_ui(self):
        self.setStyleSheet("QFrame { background-color: transparent; }")

        layout = QGridLayout(self)
        layout.setContentsMargins(0, Spacing.sm, 0, 0)
        layout.setSpacing(Spacing.sm)
        layout.setColumnStretch(1, 1)
        layout.setColumnStretch(3, 1)

        fields = [("FILENAME", "File:"), ("TIMESTAMP", "Time:"), ("INDEX", "Index:"), ("SIZE", "Size:")]
        for i, (key, caption) in enumerate(fields):
            label = CaptionLabel(caption)
            label.setStyleSheet(f"color: {Colors.text_muted};")
            value = BodyLabel("-")
            value.setStyleSheet(f"color: {Colors.text_secondary};")
            self._values[key] = value
            layout.addWidget(label, i // 2, (i % 2) * 2)
            layout.addWidget(value, i // 2, (i % 2) * 2 + 1)

    def update_metadata(self, metadata: dict):
        self._values["FILENAME"].setText(str(metadata.get('FILENAME', '-')))
        timestamp = str(metadata.get('TIMESTAMP', '-'))
        # ISO timestamp -> time of day
        self._values["TIMESTAMP"].setText(timestamp.split('T')[-1])
        self._values["INDEX"].setText(str(metadata.get('INDEX', '-')))
        if 'WIDTH' in metadata and 'HEIGHT' in metadata:
            self._values["SIZE"].setText(f"{metadata['WIDTH']} x {metadata['HEIGHT']}")
        else:
            self._values["SIZE"].setText("-")

    def clear_metadata(self):
        for value in self._values.values():
            value.setText("-")


class ActivityLog(QFrame):
    """Compact scrolling activity log"""

    def __init__(self, max_lines: int = 200, parent=None):
        super().__init__(parent)
        self._max_lines = max_lines
        self._setup_ui()

    def _setup_ui(self):
        self.setStyleSheet(f"""
            QFrame {{
                background-color: {Colors.bg_input};
                border: 1px solid {Colors.border_subtle};
                border-radius: {Layout.radius_md}px;
            }}
        """)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(Spacing.sm, Spacing.sm, Spacing.sm, Spacing.sm)

        self.text_area = QTextEdit()
        self.text_area.setReadOnly(True)
        self.text_area.setStyleSheet(f"""
            QTextEdit {{
                background-color: transparent;
                border: none;
                color: {Colors.text_secondary};
                font-family: {Typography.family_mono};
                font-size: {Typography.size_small}px;
            }}
        """)
        layout.addWidget(self.text_area)

    def append_logs(self, messages: list):
        for message in messages:
            self.text_area.append(message)

        doc = self.text_area.document()
        if doc.blockCount() > self._max_lines:
            cursor = self.text_area.textCursor()
            cursor.movePosition(QTextCursor.Start)
            cursor.movePosition(QTextCursor.Down, QTextCursor.KeepAnchor,
                                doc.blockCount() - self._max_lines)
            cursor.removeSelectedText()

        scrollbar = self.text_area.verticalScrollBar()
        scrollbar.setValue(scrollbar.maximum())


class LiveMonitoringPanel(QScrollArea):
    """
    Live Monitoring Panel:
    - Replay controls (folder, start, stop)
    - Frame preview with ROI selection
    - Metadata line
    - Recent activity log
    """

    open_folder_clicked = Signal()
    start_clicked = Signal()
    stop_clicked = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._setup_ui()

    def _setup_ui(self):
        self.setWidgetResizable(True)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)

        content = QWidget()
        self.setWidget(content)

        layout = QVBoxLayout(content)
        layout.setContentsMargins(Spacing.base, Spacing.base, Spacing.base, Spacing.base)
        layout.setSpacing(Spacing.card_gap)

        # === PREVIEW CARD ===
        preview_card = CardWidget()
        preview_layout = QVBoxLayout(preview_card)
        preview_layout.setContentsMargins(Spacing.card_padding, Spacing.card_padding,
                                          Spacing.card_padding, Spacing.card_padding)
        preview_layout.setSpacing(Spacing.element_gap)

        header_layout = QHBoxLayout()
        header_layout.setSpacing(Spacing.element_gap)
        preview_header = SubtitleLabel("Preview")
        preview_header.setStyleSheet(f"color: {Colors.text_primary};")
        header_layout.addWidget(preview_header)
        header_layout.addStretch()

        self.folder_button = PushButton("Open Folder")
        self.folder_button.clicked.connect(self.open_folder_clicked.emit)
        header_layout.addWidget(self.folder_button)
        self.start_button = PrimaryPushButton("Start")
        self.start_button.clicked.connect(self.start_clicked.emit)
        header_layout.addWidget(self.start_button)
        self.stop_button = PushButton("Stop")
        self.stop_button.clicked.connect(self.stop_clicked.emit)
        self.stop_button.setEnabled(False)
        header_layout.addWidget(self.stop_button)
        preview_layout.addLayout(header_layout)

        self.source_label = CaptionLabel("No replay folder selected")
        self.source_label.setStyleSheet(f"color: {Colors.text_muted};")
        preview_layout.addWidget(self.source_label)

        self.preview = FramePreview()
        preview_layout.addWidget(self.preview, 1)

        self.metadata = MetadataWidget()
        preview_layout.addWidget(self.metadata)

        layout.addWidget(preview_card, 3)

        # === ACTIVITY LOG CARD ===
        log_card = MonitoringCard("Recent Activity")
        self.activity_log = ActivityLog()
        self.activity_log.setMinimumHeight(120)
        log_card.add_widget(self.activity_log, 1)
        layout.addWidget(log_card, 1)

    def set_capturing(self, capturing: bool):
        self.start_button.setEnabled(not capturing)
        self.folder_button.setEnabled(not capturing)
        self.stop_button.setEnabled(capturing)

    def set_source(self, directory: str):
        self.source_label.setText(directory or "No replay folder selected")

    def update_preview(self, frame, metadata: dict = None):
        self.preview.update_frame(frame)
        if metadata:
            self.metadata.update_metadata(metadata)

    def clear_preview(self):
        self.preview.clear_frame()
        self.metadata.clear_metadata()

    def append_logs(self, messages: list):
        self.activity_log.append_logs(messages)
