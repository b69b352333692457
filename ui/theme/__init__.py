"""
Theme: design tokens and stylesheets
"""
from .styles import apply_theme, get_stylesheet, get_score_color
from .tokens import Colors, Typography, Spacing, Layout

__all__ = [
    'apply_theme',
    'get_stylesheet',
    'get_score_color',
    'Colors',
    'Typography',
    'Spacing',
    'Layout',
]
