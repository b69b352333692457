"""
Focus Console Stylesheet
Applies the QFluentWidgets theme and builds the few stylesheets the
panels share
"""
from qfluentwidgets import setTheme, Theme, setThemeColor
from PySide6.QtGui import QColor

from .tokens import Colors, Typography, Layout


def apply_theme():
    """Apply the dark theme with the Teal accent to QFluentWidgets"""
    setTheme(Theme.DARK)
    setThemeColor(QColor(Colors.accent_default))


def get_stylesheet() -> str:
    """Global window stylesheet"""
    return f"""
    QWidget {{
        background-color: {Colors.bg_app};
        color: {Colors.text_primary};
        font-family: {Typography.family_text};
        font-size: {Typography.size_body}px;
    }}

    QScrollArea {{
        background-color: transparent;
        border: none;
    }}

    QTableWidget {{
        background-color: {Colors.bg_input};
        alternate-background-color: {Colors.bg_surface};
        border: 1px solid {Colors.border_subtle};
        border-radius: {Layout.radius_md}px;
        gridline-color: {Colors.border_subtle};
        font-family: {Typography.family_mono};
        font-size: {Typography.size_caption}px;
    }}

    QHeaderView::section {{
        background-color: {Colors.bg_card};
        color: {Colors.text_secondary};
        border: none;
        padding: 4px;
    }}
    """


def get_score_color(relative_percent: float) -> str:
    """Colour for the composite score given its percentage of the session best"""
    if relative_percent >= 95.0:
        return Colors.score_peak
    if relative_percent >= 75.0:
        return Colors.score_close
    return Colors.score_far
