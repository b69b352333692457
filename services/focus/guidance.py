"""
Focus guidance

Short advisory lines derived from a metrics sample, the session baseline
and the previous composite score. Deterministic; no state.
"""
from typing import List

from .types import FocusMetrics

HIGHLIGHT_WARN_PERCENT = 5.0
SHADOW_WARN_PERCENT = 12.0
HIGH_FREQUENCY_LOW_PERCENT = 18.0
HIGH_FREQUENCY_GOOD_PERCENT = 32.0
UNIFORMITY_LOW = 0.35
UNIFORMITY_GOOD = 0.65
TREND_DELTA = 2.5
NEAR_BEST_MARGIN = 1.0


def relative_to_best(score: float, best_composite: float, has_baseline: bool) -> float:
    """Score as a percentage of the best score (100 when there is no baseline yet)."""
    if has_baseline and best_composite > 0.0:
        return score / best_composite * 100.0
    return 100.0


def build_guidance_lines(metrics: FocusMetrics, best_composite: float,
                         has_baseline: bool, previous_composite: float) -> List[str]:
    """
    Build the guidance shown under the score.

    Args:
        metrics: The sample being applied
        best_composite: Session best after the sample was ratcheted in
        has_baseline: Whether a best score exists
        previous_composite: Composite of the sample before this one (0 = none)

    Returns:
        Ordered list of lines: score summary, brightness, edge detail,
        orientation coverage, trend, and a closing recommendation
    """
    score = metrics.composite_score
    relative = relative_to_best(score, best_composite, has_baseline)
    lines = [f"Sharpness score {score:.1f} ({relative:.1f}% of session best)."]

    if metrics.highlight_ratio > HIGHLIGHT_WARN_PERCENT:
        lines.append(f"Highlights at {metrics.highlight_ratio:.1f}% are too high: "
                     "close the aperture or shorten the exposure.")
    elif metrics.shadow_ratio > SHADOW_WARN_PERCENT:
        lines.append(f"Shadows at {metrics.shadow_ratio:.1f}% are too high: "
                     "open the aperture or lengthen the exposure.")
    else:
        lines.append("Brightness is stable; keep concentrating on focus.")

    high_freq_pct = metrics.high_frequency_ratio * 100.0
    if high_freq_pct < HIGH_FREQUENCY_LOW_PERCENT:
        lines.append(f"High-frequency energy {high_freq_pct:.1f}% is low: move the ROI onto a sharp "
                     "target edge and use a larger focus step.")
    elif high_freq_pct > HIGH_FREQUENCY_GOOD_PERCENT:
        lines.append(f"Plenty of fine detail ({high_freq_pct:.1f}%); edge sharpness looks good.")

    if metrics.gradient_uniformity < UNIFORMITY_LOW:
        lines.append("Edges run mostly in one direction: reposition the ROI to cover a full "
                     "target outline or several target centres.")
    elif metrics.gradient_uniformity > UNIFORMITY_GOOD:
        lines.append(f"Orientation coverage {metrics.gradient_uniformity * 100.0:.1f}% is good; "
                     "the target edges are well covered.")

    if previous_composite > 0.0:
        delta = score - previous_composite
        if delta > TREND_DELTA:
            lines.append("Sharpness is improving: keep turning in the same direction.")
        elif delta < -TREND_DELTA:
            lines.append("Sharpness is dropping: reverse the focus direction or reposition the ROI.")
        else:
            lines.append("Sharpness is steady: try a small aperture change to fine-tune depth of field.")

    if score >= best_composite - NEAR_BEST_MARGIN:
        lines.append("Very close to the best state: lock the focus ring and note the lens settings.")
    else:
        lines.append("Keep searching: record a few high-scoring frames to confirm the peak before locking.")

    return lines
