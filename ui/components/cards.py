"""
Reusable Card Components
Fluent-styled cards and metric tiles for the focus panel
"""
from PySide6.QtWidgets import QVBoxLayout, QFrame
from PySide6.QtCore import Qt
from qfluentwidgets import CardWidget, SubtitleLabel, BodyLabel, CaptionLabel

from ..theme.tokens import Colors, Typography, Spacing, Layout


class MonitoringCard(CardWidget):
    """Card with a title and a vertical content area"""

    def __init__(self, title: str, parent=None):
        super().__init__(parent)
        self._title = title
        self._setup_ui()

    def _setup_ui(self):
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(
            Spacing.card_padding, Spacing.card_padding,
            Spacing.card_padding, Spacing.card_padding
        )
        self.layout.setSpacing(Spacing.element_gap)

        self.title_label = SubtitleLabel(self._title)
        self.title_label.setStyleSheet(f"color: {Colors.text_primary};")
        self.layout.addWidget(self.title_label)

    def add_widget(self, widget, stretch=0):
        """Add widget to card content"""
        self.layout.addWidget(widget, stretch)

    def add_layout(self, layout):
        """Add layout to card content"""
        self.layout.addLayout(layout)


class MetricTile(QFrame):
    """Caption over a monospaced value, e.g. 'Tenengrad' / '42.7'"""

    def __init__(self, caption: str, unit: str = "", parent=None):
        super().__init__(parent)
        self._unit = unit
        self.setMinimumWidth(Layout.tile_min_width)
        self.setStyleSheet(f"""
            QFrame {{
                background-color: {Colors.bg_input};
                border-radius: {Layout.radius_md}px;
            }}
        """)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(Spacing.sm, Spacing.sm, Spacing.sm, Spacing.sm)
        layout.setSpacing(Spacing.xs)

        self.caption_label = CaptionLabel(caption)
        self.caption_label.setStyleSheet(f"color: {Colors.text_muted}; background: transparent;")
        layout.addWidget(self.caption_label)

        self.value_label = BodyLabel("-")
        self.value_label.setAlignment(Qt.AlignLeft | Qt.AlignVCenter)
        self.value_label.setStyleSheet(f"""
            color: {Colors.text_primary};
            background: transparent;
            font-family: {Typography.family_mono};
            font-size: {Typography.size_body}px;
        """)
        layout.addWidget(self.value_label)

    def set_value(self, text: str):
        self.value_label.setText(f"{text}{self._unit}" if text != "-" else text)

    def clear(self):
        self.value_label.setText("-")
