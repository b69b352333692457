"""
Focus Evaluator

Turns a grayscale frame (plus optional ROI) into FocusMetrics:
- Intensity statistics (mean, contrast)
- Multi-scale Tenengrad and Laplacian variance
- High-frequency share of the windowed power spectrum
- Gradient orientation uniformity
- Highlight/shadow clipping ratios
- Composite 0-100 score

evaluate() is a pure function: no state, no I/O, never raises for
degenerate input (it returns FocusMetrics(valid=False) instead).
"""
import math
from typing import Optional, Tuple

import cv2
import numpy as np
from PIL import Image

from .roi import effective_roi
from .types import FocusMetrics, Roi, coerce_roi

# Calibration constants, tuned for centred circle/texture targets.
# Guidance thresholds in guidance.py are tuned against this exact scale.
BRIGHTNESS_TARGET = 115.0
HIGHLIGHT_THRESHOLD = 245
SHADOW_THRESHOLD = 10

PYRAMID_WEIGHTS = (0.5, 0.3, 0.2)
PYRAMID_MIN_SIDE = 16
SHARPNESS_DISPLAY_SCALE = 1000.0

HIGH_FREQUENCY_RADIUS = 0.28
SPECTRUM_EPS = 1e-9

TENENGRAD_RANGE = (6.0, 60.0)
LAPLACIAN_RANGE = (8.0, 140.0)
HIGH_FREQUENCY_RANGE = (0.10, 0.34)
CONTRAST_RANGE = (7.0, 42.0)
UNIFORMITY_RANGE = (0.35, 0.92)

STRUCTURE_WEIGHTS = {
    'tenengrad': 0.35,
    'laplacian': 0.30,
    'high_frequency': 0.20,
    'contrast': 0.15,
}
STRUCTURE_SHARE = 0.82
UNIFORMITY_SHARE = 0.18

HIGHLIGHT_PENALTY = (0.45, 7.0)   # (weight, ratio % at full penalty)
SHADOW_PENALTY = (0.25, 12.0)
MIN_PENALTY_FACTOR = 0.35
MAX_COMPOSITE = 1.15


def _clamp(value, low, high):
    return min(max(value, low), high)


def normalize_metric(value: float, low: float, high: float) -> float:
    """Clamped linear rescale of value from [low, high] to [0, 1]."""
    if high <= low:
        return 0.0
    return _clamp((value - low) / (high - low), 0.0, 1.0)


def to_grayscale_u8(frame) -> Optional[np.ndarray]:
    """
    Convert a frame to a contiguous 2D uint8 array.

    Accepts PIL images and numpy arrays (H,W), (H,W,1), (H,W,3) RGB or
    (H,W,4) RGBA. 16-bit data is scaled down to 8 bits; float data in 0-1
    is scaled to 0-255. Returns None for null/empty/unsupported input.
    """
    if frame is None:
        return None

    if isinstance(frame, Image.Image):
        if frame.width == 0 or frame.height == 0:
            return None
        return np.ascontiguousarray(np.asarray(frame.convert('L'), dtype=np.uint8))

    arr = np.asarray(frame)
    if arr.size == 0:
        return None
    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[:, :, 0]
    if arr.ndim not in (2, 3) or (arr.ndim == 3 and arr.shape[2] not in (3, 4)):
        return None

    if arr.dtype == np.uint8:
        pass
    elif arr.dtype == np.uint16:
        arr = (arr / 257).astype(np.uint8)
    elif arr.dtype == np.bool_:
        arr = arr.astype(np.uint8) * 255
    elif np.issubdtype(arr.dtype, np.floating):
        arr = np.nan_to_num(arr.astype(np.float64), nan=0.0, posinf=255.0, neginf=0.0)
        if arr.max() <= 1.0:
            arr = arr * 255.0
        arr = np.clip(np.rint(arr), 0, 255).astype(np.uint8)
    else:
        arr = np.clip(arr, 0, 255).astype(np.uint8)

    if arr.ndim == 3:
        code = cv2.COLOR_RGB2GRAY if arr.shape[2] == 3 else cv2.COLOR_RGBA2GRAY
        arr = cv2.cvtColor(np.ascontiguousarray(arr), code)

    return np.ascontiguousarray(arr)


def compute_multiscale_sharpness(gray_float: np.ndarray) -> Tuple[float, float]:
    """
    Weighted Tenengrad and Laplacian variance over up to three pyramid levels.

    Args:
        gray_float: float32 image scaled to [0, 1]

    Returns:
        (tenengrad, laplacian_variance), both x1000; (0, 0) if no level
        was large enough to measure
    """
    current = gray_float
    tenengrad_accum = 0.0
    laplacian_accum = 0.0
    weight_accum = 0.0

    for level, weight in enumerate(PYRAMID_WEIGHTS):
        rows, cols = current.shape[:2]
        if rows < PYRAMID_MIN_SIDE or cols < PYRAMID_MIN_SIDE:
            break

        sobel_x = cv2.Sobel(current, cv2.CV_32F, 1, 0, ksize=3)
        sobel_y = cv2.Sobel(current, cv2.CV_32F, 0, 1, ksize=3)
        # Reduce in float64
        grad_sq = np.square(sobel_x, dtype=np.float64) + np.square(sobel_y, dtype=np.float64)
        tenengrad_value = float(np.mean(grad_sq))

        laplace = cv2.Laplacian(current, cv2.CV_32F)
        laplacian_value = float(np.var(laplace, dtype=np.float64))

        tenengrad_accum += weight * tenengrad_value
        laplacian_accum += weight * laplacian_value
        weight_accum += weight

        if level + 1 < len(PYRAMID_WEIGHTS):
            current = cv2.pyrDown(current)

    if weight_accum <= 0.0:
        return 0.0, 0.0
    return (tenengrad_accum / weight_accum * SHARPNESS_DISPLAY_SCALE,
            laplacian_accum / weight_accum * SHARPNESS_DISPLAY_SCALE)


def compute_high_frequency_ratio(gray_float: np.ndarray) -> float:
    """Share of Hann-windowed spectral energy beyond 0.28 of the maximum radius."""
    if gray_float is None or gray_float.size == 0:
        return 0.0

    rows, cols = gray_float.shape[:2]
    optimal_rows = cv2.getOptimalDFTSize(rows)
    optimal_cols = cv2.getOptimalDFTSize(cols)
    if optimal_rows != rows or optimal_cols != cols:
        padded = cv2.copyMakeBorder(gray_float, 0, optimal_rows - rows, 0, optimal_cols - cols,
                                    cv2.BORDER_CONSTANT, value=0.0)
    else:
        padded = gray_float.copy()

    # Hann window and even-sized quadrant swap both need at least 2 samples per axis
    if padded.shape[0] < 2 or padded.shape[1] < 2:
        return 0.0

    window = cv2.createHanningWindow((padded.shape[1], padded.shape[0]), cv2.CV_64F)
    padded = padded.astype(np.float64) * window

    complex_spectrum = cv2.dft(padded, flags=cv2.DFT_COMPLEX_OUTPUT)
    power = np.square(complex_spectrum[:, :, 0]) + np.square(complex_spectrum[:, :, 1])

    even_rows = power.shape[0] - (power.shape[0] % 2)
    even_cols = power.shape[1] - (power.shape[1] % 2)
    spectrum = power[:even_rows, :even_cols]

    total_energy = float(np.sum(spectrum, dtype=np.float64))
    if total_energy <= SPECTRUM_EPS:
        return 0.0

    spectrum = np.fft.fftshift(spectrum)

    center_x = spectrum.shape[1] / 2.0 - 0.5
    center_y = spectrum.shape[0] / 2.0 - 0.5
    max_radius = math.sqrt(center_x * center_x + center_y * center_y)
    threshold = max_radius * HIGH_FREQUENCY_RADIUS

    ys, xs = np.ogrid[:spectrum.shape[0], :spectrum.shape[1]]
    radius = np.sqrt((xs - center_x) ** 2 + (ys - center_y) ** 2)
    high_energy = float(np.sum(spectrum[radius >= threshold], dtype=np.float64))

    return _clamp(high_energy / total_energy, 0.0, 1.0)


def compute_gradient_uniformity(gray_float: np.ndarray) -> float:
    """
    1 - coherence of magnitude-weighted doubled gradient angles.

    Doubling the angle folds opposite edge directions together, so a full
    circle scores near 1 and a single straight edge near 0.
    """
    sobel_x = cv2.Sobel(gray_float, cv2.CV_32F, 1, 0, ksize=3).astype(np.float64)
    sobel_y = cv2.Sobel(gray_float, cv2.CV_32F, 0, 1, ksize=3).astype(np.float64)
    grad_mag = np.hypot(sobel_x, sobel_y)
    magnitude_sum = float(np.sum(grad_mag)) + SPECTRUM_EPS

    double_phase = 2.0 * np.arctan2(sobel_y, sobel_x)

    cos_accum = float(np.sum(np.cos(double_phase) * grad_mag))
    sin_accum = float(np.sum(np.sin(double_phase) * grad_mag))
    coherence = math.sqrt(cos_accum * cos_accum + sin_accum * sin_accum) / magnitude_sum
    return _clamp(1.0 - coherence, 0.0, 1.0)


def compute_composite_score(mean_intensity: float, contrast: float, tenengrad: float,
                            laplacian_variance: float, high_frequency_ratio: float,
                            gradient_uniformity: float, highlight_ratio: float,
                            shadow_ratio: float) -> float:
    """Combine the individual measures into the 0-100 figure of merit."""
    brightness_error = (mean_intensity - BRIGHTNESS_TARGET) / BRIGHTNESS_TARGET
    brightness_score = math.exp(-3.0 * brightness_error * brightness_error)

    ten_norm = normalize_metric(tenengrad, *TENENGRAD_RANGE)
    lap_norm = normalize_metric(laplacian_variance, *LAPLACIAN_RANGE)
    hf_norm = normalize_metric(high_frequency_ratio, *HIGH_FREQUENCY_RANGE)
    contrast_norm = normalize_metric(contrast, *CONTRAST_RANGE)
    uniform_norm = normalize_metric(gradient_uniformity, *UNIFORMITY_RANGE)

    structure_score = (STRUCTURE_WEIGHTS['tenengrad'] * ten_norm
                       + STRUCTURE_WEIGHTS['laplacian'] * lap_norm
                       + STRUCTURE_WEIGHTS['high_frequency'] * hf_norm
                       + STRUCTURE_WEIGHTS['contrast'] * contrast_norm)

    highlight_weight, highlight_full = HIGHLIGHT_PENALTY
    shadow_weight, shadow_full = SHADOW_PENALTY
    highlight_penalty = _clamp(highlight_ratio / highlight_full, 0.0, 1.0)
    shadow_penalty = _clamp(shadow_ratio / shadow_full, 0.0, 1.0)
    penalty_factor = _clamp(1.0 - (highlight_weight * highlight_penalty + shadow_weight * shadow_penalty),
                            MIN_PENALTY_FACTOR, 1.0)

    composite = _clamp((STRUCTURE_SHARE * structure_score + UNIFORMITY_SHARE * uniform_norm)
                       * brightness_score * penalty_factor, 0.0, MAX_COMPOSITE)
    score = composite * 100.0
    if not math.isfinite(score):
        return 0.0
    return _clamp(score, 0.0, 100.0)


def evaluate(frame, roi: Optional[Roi] = None) -> FocusMetrics:
    """
    Evaluate focus quality of a frame.

    Args:
        frame: numpy array or PIL image (converted to 8-bit grayscale)
        roi: Roi, (x, y, w, h) tuple, or None for the whole frame. Clipped to
             the frame; falls back to the whole frame below 8 px per side.

    Returns:
        FocusMetrics; valid=False for null/empty input
    """
    full = to_grayscale_u8(frame)
    if full is None:
        return FocusMetrics()

    frame_h, frame_w = full.shape
    region = effective_roi(coerce_roi(roi), frame_w, frame_h)
    gray = full[region.y:region.bottom, region.x:region.right]
    if gray.size == 0:
        return FocusMetrics()
    gray = np.ascontiguousarray(gray)

    mean_scalar, std_scalar = cv2.meanStdDev(gray)
    mean_intensity = float(mean_scalar[0][0])
    contrast = float(std_scalar[0][0])

    gray_float = gray.astype(np.float32) * np.float32(1.0 / 255.0)

    tenengrad, laplacian_variance = compute_multiscale_sharpness(gray_float)
    high_frequency_ratio = compute_high_frequency_ratio(gray_float)
    gradient_uniformity = compute_gradient_uniformity(gray_float)

    total_pixels = float(gray.size)
    highlight_ratio = np.count_nonzero(gray >= HIGHLIGHT_THRESHOLD) / total_pixels * 100.0
    shadow_ratio = np.count_nonzero(gray <= SHADOW_THRESHOLD) / total_pixels * 100.0

    composite_score = compute_composite_score(
        mean_intensity, contrast, tenengrad, laplacian_variance,
        high_frequency_ratio, gradient_uniformity, highlight_ratio, shadow_ratio,
    )

    return FocusMetrics(
        valid=True,
        mean_intensity=mean_intensity,
        contrast=contrast,
        laplacian_variance=float(laplacian_variance),
        tenengrad=float(tenengrad),
        high_frequency_ratio=float(high_frequency_ratio),
        gradient_uniformity=float(gradient_uniformity),
        highlight_ratio=float(highlight_ratio),
        shadow_ratio=float(shadow_ratio),
        composite_score=float(composite_score),
    )


class FocusEvaluator:
    """Callable wrapper so the evaluator can be injected where an object is expected"""

    def evaluate(self, frame, roi: Optional[Roi] = None) -> FocusMetrics:
        return evaluate(frame, roi)

    __call__ = evaluate
