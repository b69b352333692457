"""
UI Components
Reusable components for Focus Console
"""
from .cards import MonitoringCard, MetricTile
from .preview import FramePreview

__all__ = [
    'MonitoringCard',
    'MetricTile',
    'FramePreview',
]
