"""
Focus Panel
Right-hand panel showing the focus session: score, metric tiles, baseline
controls, history table and guidance
"""
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QScrollArea,
    QTableWidget, QTableWidgetItem, QHeaderView, QAbstractItemView, QTextEdit
)
from PySide6.QtCore import Qt, Signal, Slot
from qfluentwidgets import BodyLabel, CaptionLabel, ProgressBar, PushButton, PrimaryPushButton

from services.focus import SessionSnapshot
from ..theme.tokens import Colors, Typography, Spacing, Layout
from ..theme.styles import get_score_color
from ..components.cards import MonitoringCard, MetricTile

HISTORY_COLUMNS = ["Time", "Score", "Laplacian", "Tenengrad", "HF %", "Contrast"]
PROGRESS_MAX = 120


class FocusPanel(QScrollArea):
    """
    Focus Panel - renders FocusSession.snapshot():
    - Composite score with progress relative to the session best
    - Metric tiles
    - Mark best / reset baseline buttons
    - History table (most recent first)
    - Guidance lines
    """

    mark_best_requested = Signal()
    reset_baseline_requested = Signal()
    clear_roi_requested = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.tiles = {}
        self._setup_ui()

    def _setup_ui(self):
        self.setWidgetResizable(True)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setMinimumWidth(Layout.focus_panel_width)

        content = QWidget()
        self.setWidget(content)

        layout = QVBoxLayout(content)
        layout.setContentsMargins(Spacing.base, Spacing.base, Spacing.base, Spacing.base)
        layout.setSpacing(Spacing.card_gap)

        # === SCORE CARD ===
        score_card = MonitoringCard("Focus Score")

        self.roi_label = CaptionLabel("ROI: full frame")
        self.roi_label.setStyleSheet(f"color: {Colors.text_muted};")
        score_card.add_widget(self.roi_label)

        score_row = QHBoxLayout()
        self.score_label = BodyLabel("--")
        self.score_label.setStyleSheet(f"""
            color: {Colors.text_primary};
            font-size: {Typography.size_score}px;
            font-weight: {Typography.weight_semibold};
        """)
        score_row.addWidget(self.score_label)
        score_row.addStretch()

        self.best_label = CaptionLabel("Best: --")
        self.best_label.setStyleSheet(f"color: {Colors.text_secondary};")
        self.best_label.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        score_row.addWidget(self.best_label)
        score_card.add_layout(score_row)

        self.progress_bar = ProgressBar()
        self.progress_bar.setFixedHeight(6)
        self.progress_bar.setRange(0, PROGRESS_MAX)
        self.progress_bar.setValue(0)
        score_card.add_widget(self.progress_bar)

        buttons = QHBoxLayout()
        buttons.setSpacing(Spacing.element_gap)
        self.mark_best_button = PrimaryPushButton("Mark Best")
        self.mark_best_button.clicked.connect(self.mark_best_requested.emit)
        buttons.addWidget(self.mark_best_button)
        self.reset_button = PushButton("Reset Baseline")
        self.reset_button.clicked.connect(self.reset_baseline_requested.emit)
        buttons.addWidget(self.reset_button)
        self.clear_roi_button = PushButton("Full Frame")
        self.clear_roi_button.clicked.connect(self.clear_roi_requested.emit)
        buttons.addWidget(self.clear_roi_button)
        score_card.add_layout(buttons)

        layout.addWidget(score_card)

        # === METRICS CARD ===
        metrics_card = MonitoringCard("Metrics")
        grid = QGridLayout()
        grid.setSpacing(Spacing.element_gap)
        tile_specs = [
            ('laplacian', "Laplacian var", ""),
            ('tenengrad', "Tenengrad", ""),
            ('high_frequency', "High frequency", " %"),
            ('uniformity', "Edge coverage", " %"),
            ('contrast', "Contrast", ""),
            ('mean', "Mean level", ""),
            ('highlights', "Highlights", " %"),
            ('shadows', "Shadows", " %"),
        ]
        for i, (key, caption, unit) in enumerate(tile_specs):
            tile = MetricTile(caption, unit)
            self.tiles[key] = tile
            grid.addWidget(tile, i // 2, i % 2)
        metrics_card.add_layout(grid)
        layout.addWidget(metrics_card)

        # === GUIDANCE CARD ===
        guidance_card = MonitoringCard("Guidance")
        self.guidance_box = QTextEdit()
        self.guidance_box.setReadOnly(True)
        self.guidance_box.setMinimumHeight(120)
        self.guidance_box.setStyleSheet(f"""
            QTextEdit {{
                background-color: {Colors.bg_input};
                border: 1px solid {Colors.border_subtle};
                border-radius: {Layout.radius_md}px;
                color: {Colors.text_secondary};
                font-size: {Typography.size_caption}px;
            }}
        """)
        guidance_card.add_widget(self.guidance_box)
        layout.addWidget(guidance_card)

        # === HISTORY CARD ===
        history_card = MonitoringCard("History")
        self.history_table = QTableWidget(0, len(HISTORY_COLUMNS))
        self.history_table.setHorizontalHeaderLabels(HISTORY_COLUMNS)
        self.history_table.verticalHeader().setVisible(False)
        self.history_table.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self.history_table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.history_table.setSelectionMode(QAbstractItemView.NoSelection)
        self.history_table.setAlternatingRowColors(True)
        self.history_table.setMinimumHeight(Layout.history_min_height)
        history_card.add_widget(self.history_table, 1)
        layout.addWidget(history_card, 1)

        self.render(None)

    @Slot(object)
    def render(self, snapshot: SessionSnapshot):
        """Redraw everything from a session snapshot (None = empty panel)"""
        if snapshot is None or not snapshot.last_metrics.valid:
            self.score_label.setText("--")
            self.score_label.setStyleSheet(f"""
                color: {Colors.text_muted};
                font-size: {Typography.size_score}px;
                font-weight: {Typography.weight_semibold};
            """)
            self.progress_bar.setValue(0)
            for tile in self.tiles.values():
                tile.clear()
        else:
            m = snapshot.last_metrics
            self.score_label.setText(f"{m.composite_score:.1f}")
            self.score_label.setStyleSheet(f"""
                color: {get_score_color(snapshot.relative_score)};
                font-size: {Typography.size_score}px;
                font-weight: {Typography.weight_semibold};
            """)
            self.progress_bar.setValue(int(round(snapshot.relative_score)))

            self.tiles['laplacian'].set_value(f"{m.laplacian_variance:.1f}")
            self.tiles['tenengrad'].set_value(f"{m.tenengrad:.1f}")
            self.tiles['high_frequency'].set_value(f"{m.high_frequency_ratio * 100.0:.1f}")
            self.tiles['uniformity'].set_value(f"{m.gradient_uniformity * 100.0:.1f}")
            self.tiles['contrast'].set_value(f"{m.contrast:.2f}")
            self.tiles['mean'].set_value(f"{m.mean_intensity:.1f}")
            self.tiles['highlights'].set_value(f"{m.highlight_ratio:.1f}")
            self.tiles['shadows'].set_value(f"{m.shadow_ratio:.1f}")

        if snapshot is None:
            self.best_label.setText("Best: --")
            self.roi_label.setText("ROI: full frame")
            self.guidance_box.clear()
            self.history_table.setRowCount(0)
            self.mark_best_button.setEnabled(False)
            self.reset_button.setEnabled(False)
            return

        if snapshot.has_baseline:
            self.best_label.setText(f"Best: {snapshot.best_composite:.1f}")
        else:
            self.best_label.setText("Best: --")
        self.roi_label.setText(snapshot.roi_summary)
        self.guidance_box.setPlainText("\n".join(snapshot.guidance))
        self.mark_best_button.setEnabled(snapshot.can_mark_best)
        self.reset_button.setEnabled(snapshot.can_reset_baseline)

    def render_history(self, rows):
        """Fill the history table from FocusSession.history_rows()"""
        self.history_table.setRowCount(len(rows))
        for r, row in enumerate(rows):
            for c, text in enumerate(row):
                item = QTableWidgetItem(text)
                if c > 0:
                    item.setTextAlignment(Qt.AlignRight | Qt.AlignVCenter)
                self.history_table.setItem(r, c, item)
