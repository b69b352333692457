"""
Focus Session

Stateful tracker fed one FocusMetrics sample at a time:
- Best-score baseline (automatic ratchet plus explicit "mark best")
- Bounded most-recent-first history
- Guidance lines for the latest sample
- Export map for snapshot side-car metadata

Not thread-safe: mutate it only from the thread that owns the
session (the GUI thread in the console). The scheduler hands results back
to that thread before apply_metrics() is called.
"""
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Any, List, Optional, Tuple

from .guidance import build_guidance_lines
from .roi import describe_roi
from .types import FocusMetrics, HistoryEntry, Roi

DEFAULT_HISTORY_LIMIT = 40
MAX_RELATIVE_PERCENT = 120.0

# Event names passed to subscribers
EVENT_METRICS = "metrics"
EVENT_BEST = "best"
EVENT_BASELINE_RESET = "baseline_reset"
EVENT_PANEL_RESET = "panel_reset"
EVENT_ROI = "roi"


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only copy of the session for presentation layers"""
    last_metrics: FocusMetrics
    best_metrics: FocusMetrics
    best_composite: float
    has_baseline: bool
    previous_composite: float
    relative_score: float
    history: Tuple[HistoryEntry, ...]
    guidance: Tuple[str, ...]
    roi_summary: str
    can_mark_best: bool
    can_reset_baseline: bool


def _metrics_map(metrics: FocusMetrics) -> Dict[str, Any]:
    return {
        "focusComposite": metrics.composite_score,
        "focusLaplacianVariance": metrics.laplacian_variance,
        "focusTenengrad": metrics.tenengrad,
        "focusHighFrequency": metrics.high_frequency_ratio,
        "focusGradientUniformity": metrics.gradient_uniformity,
        "focusContrast": metrics.contrast,
        "focusMean": metrics.mean_intensity,
        "focusHighlights": metrics.highlight_ratio,
        "focusShadows": metrics.shadow_ratio,
    }


class FocusSession:
    """One focus session (one panel/window instance)"""

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT,
                 clock: Callable[[], datetime] = datetime.now):
        self._history_limit = max(1, int(history_limit))
        self._clock = clock
        self._listeners: List[Callable[[str], None]] = []

        self._last_metrics = FocusMetrics()
        self._best_metrics = FocusMetrics()
        self._best_composite = 0.0
        self._previous_composite = 0.0
        self._has_baseline = False
        self._relative_score = 0.0
        self._history = deque(maxlen=self._history_limit)
        self._guidance: List[str] = []
        self._frame_size: Optional[Tuple[int, int]] = None
        self._roi: Optional[Roi] = None

    # =========================================================================
    # Read accessors
    # =========================================================================

    @property
    def last_metrics(self) -> FocusMetrics:
        return self._last_metrics

    @property
    def best_metrics(self) -> FocusMetrics:
        return self._best_metrics

    @property
    def best_composite(self) -> float:
        return self._best_composite

    @property
    def has_baseline(self) -> bool:
        return self._has_baseline

    @property
    def previous_composite(self) -> float:
        return self._previous_composite

    @property
    def relative_score(self) -> float:
        """Latest score relative to the best, 0-120 (progress bar value)"""
        return self._relative_score

    @property
    def history_limit(self) -> int:
        return self._history_limit

    @property
    def history(self) -> Tuple[HistoryEntry, ...]:
        """Most-recent-first copy of the history"""
        return tuple(self._history)

    @property
    def guidance_lines(self) -> List[str]:
        return list(self._guidance)

    @property
    def frame_size(self) -> Optional[Tuple[int, int]]:
        return self._frame_size

    @property
    def roi(self) -> Optional[Roi]:
        return self._roi

    @property
    def roi_summary(self) -> str:
        return describe_roi(self._frame_size, self._roi)

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(self, callback: Callable[[str], None]) -> Callable[[], None]:
        """Register a listener called with an event name after each change.

        Returns a function that removes the listener.
        """
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, event: str) -> None:
        for callback in list(self._listeners):
            callback(event)

    # =========================================================================
    # Mutations
    # =========================================================================

    def apply_metrics(self, metrics: FocusMetrics) -> bool:
        """
        Apply one evaluation result.

        Invalid samples are ignored entirely. Returns True if the sample
        was applied.
        """
        if metrics is None or not metrics.valid:
            return False

        score = metrics.composite_score
        if not self._has_baseline or score > self._best_composite:
            self._best_composite = score
            self._best_metrics = metrics
            self._has_baseline = True

        reference = max(self._best_composite, 1.0)
        self._relative_score = min(max(score / reference * 100.0, 0.0), MAX_RELATIVE_PERCENT)

        self._history.appendleft(HistoryEntry(timestamp=self._clock(), metrics=metrics))

        self._guidance = build_guidance_lines(
            metrics, self._best_composite, self._has_baseline, self._previous_composite
        )

        self._previous_composite = score
        self._last_metrics = metrics
        self._notify(EVENT_METRICS)
        return True

    def mark_best(self) -> bool:
        """Make the last valid sample the reference baseline. No-op without one."""
        if not self._last_metrics.valid:
            return False
        self._best_metrics = self._last_metrics
        self._best_composite = self._last_metrics.composite_score
        self._has_baseline = True
        self._guidance.append(f"Reference baseline set to {self._best_composite:.1f}.")
        self._notify(EVENT_BEST)
        return True

    def reset_baseline(self) -> None:
        """Forget the baseline, history and trend. The last sample is kept."""
        self._has_baseline = False
        self._best_composite = 0.0
        self._best_metrics = FocusMetrics()
        self._history.clear()
        self._previous_composite = 0.0
        self._relative_score = 0.0
        self._guidance = ["Baseline reset; start the focus sweep again."]
        self._notify(EVENT_BASELINE_RESET)

    def reset_panel(self) -> None:
        """Full reset (camera closed / ROI source gone)."""
        self._last_metrics = FocusMetrics()
        self._best_metrics = FocusMetrics()
        self._best_composite = 0.0
        self._previous_composite = 0.0
        self._has_baseline = False
        self._relative_score = 0.0
        self._history.clear()
        self._guidance = []
        self._frame_size = None
        self._roi = None
        self._notify(EVENT_PANEL_RESET)

    def set_roi_info(self, frame_size: Optional[Tuple[int, int]], roi: Optional[Roi]) -> None:
        """Cache the frame size and evaluated ROI for the summary and export"""
        self._frame_size = tuple(frame_size) if frame_size else None
        self._roi = roi
        self._notify(EVENT_ROI)

    # =========================================================================
    # Snapshots / export
    # =========================================================================

    @property
    def can_mark_best(self) -> bool:
        return self._last_metrics.valid

    @property
    def can_reset_baseline(self) -> bool:
        return self._has_baseline or len(self._history) > 0

    def history_rows(self) -> List[Tuple[str, str, str, str, str, str]]:
        """History formatted for the table: time, score, laplacian, tenengrad, HF %, contrast"""
        rows = []
        for entry in self._history:
            m = entry.metrics
            rows.append((
                entry.timestamp.strftime('%H:%M:%S'),
                f"{m.composite_score:.1f}",
                f"{m.laplacian_variance:.1f}",
                f"{m.tenengrad:.1f}",
                f"{m.high_frequency_ratio * 100.0:.1f}",
                f"{m.contrast:.2f}",
            ))
        return rows

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            last_metrics=self._last_metrics,
            best_metrics=self._best_metrics,
            best_composite=self._best_composite,
            has_baseline=self._has_baseline,
            previous_composite=self._previous_composite,
            relative_score=self._relative_score,
            history=tuple(self._history),
            guidance=tuple(self._guidance),
            roi_summary=self.roi_summary,
            can_mark_best=self.can_mark_best,
            can_reset_baseline=self.can_reset_baseline,
        )

    def export_metrics(self) -> Dict[str, Any]:
        """Current/best metrics keyed for snapshot side-car metadata ({} before the first sample)"""
        if not self._last_metrics.valid:
            return {}

        exported = _metrics_map(self._last_metrics)
        exported["focusBaseline"] = self._best_composite
        exported["focusHasBaseline"] = self._has_baseline
        if self._has_baseline and self._best_metrics.valid:
            exported["focusBest"] = _metrics_map(self._best_metrics)

        if self._roi is not None and not self._roi.is_null and self._frame_size:
            exported["focusRoi"] = {
                "x": self._roi.x,
                "y": self._roi.y,
                "width": self._roi.width,
                "height": self._roi.height,
                "frameWidth": self._frame_size[0],
                "frameHeight": self._frame_size[1],
            }
        return exported
