"""
Focus evaluation: metrics engine, session tracker, guidance and scheduler
"""
from .types import FocusMetrics, Roi, HistoryEntry
from .evaluator import evaluate, FocusEvaluator
from .guidance import build_guidance_lines
from .roi import clamp_roi, effective_roi, map_view_rect_to_image, describe_roi
from .session import FocusSession, SessionSnapshot
from .scheduler import FocusScheduler, FocusResult

__all__ = [
    'FocusMetrics',
    'Roi',
    'HistoryEntry',
    'evaluate',
    'FocusEvaluator',
    'build_guidance_lines',
    'clamp_roi',
    'effective_roi',
    'map_view_rect_to_image',
    'describe_roi',
    'FocusSession',
    'SessionSnapshot',
    'FocusScheduler',
    'FocusResult',
]
