"""
Focus Data Types

Value types shared by the evaluator, the session tracker and the UI:
- FocusMetrics: one evaluation result (immutable)
- Roi: image-space rectangle
- HistoryEntry: timestamped metrics sample
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, Any, Optional, Tuple


@dataclass(frozen=True)
class FocusMetrics:
    """
    Result of one focus evaluation.

    When valid is False the frame/ROI was unusable and every other field
    keeps its zero default.
    """
    valid: bool = False
    mean_intensity: float = 0.0          # Mean ROI grey level (0-255)
    contrast: float = 0.0                # Std-dev of ROI grey level
    laplacian_variance: float = 0.0      # Multi-scale, x1000
    tenengrad: float = 0.0               # Multi-scale, x1000
    high_frequency_ratio: float = 0.0    # 0..1 share of spectral energy
    gradient_uniformity: float = 0.0     # 0..1, 1 = edges in all directions
    highlight_ratio: float = 0.0         # % of pixels >= 245
    shadow_ratio: float = 0.0            # % of pixels <= 10
    composite_score: float = 0.0         # 0..100

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary for serialization"""
        return asdict(self)


@dataclass(frozen=True)
class Roi:
    """Rectangle in image pixel coordinates. Width or height <= 0 means null."""
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def is_null(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @classmethod
    def full(cls, width: int, height: int) -> "Roi":
        return cls(0, 0, int(width), int(height))

    @classmethod
    def parse(cls, text: str) -> "Roi":
        """Parse 'x,y,w,h' (commas or whitespace)."""
        parts = text.replace(',', ' ').split()
        if len(parts) != 4:
            raise ValueError(f"ROI must be 'x,y,width,height', got {text!r}")
        try:
            x, y, w, h = (int(p) for p in parts)
        except ValueError:
            raise ValueError(f"ROI values must be integers, got {text!r}") from None
        return cls(x, y, w, h)

    def intersected(self, other: "Roi") -> "Roi":
        if self.is_null or other.is_null:
            return Roi()
        left = max(self.x, other.x)
        top = max(self.y, other.y)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        if right <= left or bottom <= top:
            return Roi()
        return Roi(left, top, right - left, bottom - top)

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class HistoryEntry:
    """One applied sample in the session history"""
    timestamp: datetime
    metrics: FocusMetrics = field(default_factory=FocusMetrics)


def coerce_roi(roi: Optional[Any]) -> Roi:
    """Accept None, Roi, or an (x, y, w, h) sequence."""
    if roi is None:
        return Roi()
    if isinstance(roi, Roi):
        return roi
    x, y, w, h = roi
    return Roi(int(x), int(y), int(w), int(h))
