"""
Test focus evaluator - metrics, ROI handling, composite score
"""
import pytest
import os
import sys

import numpy as np
from PIL import Image

# Ensure project root is in path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from services.focus import evaluate, FocusEvaluator, FocusMetrics, Roi
from services.focus.evaluator import (
    normalize_metric,
    to_grayscale_u8,
    compute_composite_score,
    compute_high_frequency_ratio,
)


class TestDegenerateInput:
    """Null, empty and unsupported frames"""

    def test_none_is_invalid(self):
        metrics = evaluate(None)
        assert metrics == FocusMetrics()
        assert metrics.valid is False

    def test_empty_array_is_invalid(self):
        assert evaluate(np.zeros((0, 0), dtype=np.uint8)).valid is False
        assert evaluate(np.zeros((0, 10), dtype=np.uint8)).valid is False

    def test_unsupported_shape_is_invalid(self):
        assert evaluate(np.zeros(100, dtype=np.uint8)).valid is False
        assert evaluate(np.zeros((10, 10, 5), dtype=np.uint8)).valid is False

    def test_invalid_metrics_keep_defaults(self):
        metrics = evaluate(None)
        assert metrics.composite_score == 0.0
        assert metrics.mean_intensity == 0.0
        assert metrics.highlight_ratio == 0.0

    def test_tiny_frame_is_valid(self):
        """Frames smaller than a pyramid level still evaluate"""
        frame = np.full((4, 4), 115, dtype=np.uint8)
        metrics = evaluate(frame)
        assert metrics.valid
        assert metrics.tenengrad == 0.0
        assert metrics.laplacian_variance == 0.0
        assert 0.0 <= metrics.composite_score <= 100.0

    def test_single_pixel_frame(self):
        metrics = evaluate(np.array([[200]], dtype=np.uint8))
        assert metrics.valid
        assert metrics.mean_intensity == pytest.approx(200.0)
        assert metrics.high_frequency_ratio == 0.0


class TestUniformFrame:
    """Flat field at the brightness target"""

    def test_intensity_statistics(self, uniform_frame):
        metrics = evaluate(uniform_frame)
        assert metrics.valid
        assert metrics.mean_intensity == pytest.approx(115.0)
        assert metrics.contrast == pytest.approx(0.0, abs=1e-9)

    def test_no_structure(self, uniform_frame):
        metrics = evaluate(uniform_frame)
        assert metrics.tenengrad == pytest.approx(0.0, abs=1e-3)
        assert metrics.laplacian_variance == pytest.approx(0.0, abs=1e-3)
        assert metrics.high_frequency_ratio < 0.10

    def test_no_clipping(self, uniform_frame):
        metrics = evaluate(uniform_frame)
        assert metrics.highlight_ratio == 0.0
        assert metrics.shadow_ratio == 0.0

    def test_composite_is_uniformity_share_only(self, uniform_frame):
        """No edges at all: only the orientation term contributes (18 points)"""
        metrics = evaluate(uniform_frame)
        assert metrics.gradient_uniformity == pytest.approx(1.0)
        assert metrics.composite_score == pytest.approx(18.0, abs=0.5)


class TestClipping:
    """Highlight/shadow ratios"""

    def test_saturated_frame(self):
        metrics = evaluate(np.full((50, 50), 250, dtype=np.uint8))
        assert metrics.highlight_ratio == pytest.approx(100.0)
        assert metrics.shadow_ratio == 0.0

    def test_black_frame(self):
        metrics = evaluate(np.full((50, 50), 5, dtype=np.uint8))
        assert metrics.shadow_ratio == pytest.approx(100.0)
        assert metrics.highlight_ratio == 0.0

    def test_thresholds_inclusive(self):
        frame = np.zeros((10, 10), dtype=np.uint8)
        frame[:5, :] = 245   # highlights: >= 245
        frame[5:, :] = 10    # shadows: <= 10
        metrics = evaluate(frame)
        assert metrics.highlight_ratio == pytest.approx(50.0)
        assert metrics.shadow_ratio == pytest.approx(50.0)

    def test_ratios_never_exceed_total(self, ring_target):
        rng = np.random.default_rng(7)
        for frame in (ring_target, rng.integers(0, 256, (64, 64), dtype=np.uint8)):
            metrics = evaluate(frame)
            assert metrics.highlight_ratio + metrics.shadow_ratio <= 100.0


class TestRoi:
    """Region of interest handling"""

    def test_small_roi_falls_back_to_full_frame(self, ring_target):
        full = evaluate(ring_target)
        assert evaluate(ring_target, Roi(10, 10, 5, 5)) == full
        assert evaluate(ring_target, Roi(10, 10, 100, 7)) == full

    def test_null_roi_is_full_frame(self, ring_target):
        assert evaluate(ring_target, Roi()) == evaluate(ring_target)

    def test_roi_outside_frame_is_full_frame(self, ring_target):
        assert evaluate(ring_target, Roi(500, 500, 50, 50)) == evaluate(ring_target)

    def test_roi_is_clipped(self, ring_target):
        clipped = evaluate(ring_target, Roi(150, 150, 100, 100))
        explicit = evaluate(ring_target, Roi(150, 150, 50, 50))
        assert clipped == explicit

    def test_roi_matches_cropped_frame(self, ring_target):
        roi = Roi(40, 60, 80, 50)
        crop = ring_target[60:110, 40:120].copy()
        assert evaluate(ring_target, roi) == evaluate(crop)

    def test_tuple_roi_accepted(self, ring_target):
        assert evaluate(ring_target, (40, 60, 80, 50)) == evaluate(ring_target, Roi(40, 60, 80, 50))


class TestSharpness:
    """Sharp vs blurred targets"""

    def test_sharp_target_scores_higher(self, ring_target, blurred_ring_target):
        sharp = evaluate(ring_target)
        blurred = evaluate(blurred_ring_target)
        assert sharp.tenengrad > blurred.tenengrad
        assert sharp.laplacian_variance > blurred.laplacian_variance
        assert sharp.high_frequency_ratio > blurred.high_frequency_ratio
        assert sharp.composite_score > blurred.composite_score

    def test_rings_cover_all_orientations(self, ring_target):
        assert evaluate(ring_target).gradient_uniformity > 0.65

    def test_stripes_have_one_orientation(self, striped_frame):
        assert evaluate(striped_frame).gradient_uniformity < 0.35

    def test_score_range(self, ring_target, blurred_ring_target, striped_frame):
        rng = np.random.default_rng(3)
        frames = [ring_target, blurred_ring_target, striped_frame,
                  rng.integers(0, 256, (120, 90), dtype=np.uint8)]
        for frame in frames:
            score = evaluate(frame).composite_score
            assert 0.0 <= score <= 100.0

    def test_evaluation_is_idempotent(self):
        rng = np.random.default_rng(11)
        frame = rng.integers(0, 256, (60, 70), dtype=np.uint8)
        results = {evaluate(frame) for _ in range(200)}
        assert len(results) == 1

    def test_result_independent_of_buffer_offset(self):
        rng = np.random.default_rng(12)
        frame = rng.integers(0, 256, (60, 70), dtype=np.uint8)
        results = {evaluate(np.array(frame, copy=True))}
        for offset in range(1, 17):
            backing = np.zeros(frame.size + offset, dtype=np.uint8)
            shifted = backing[offset:].reshape(frame.shape)
            shifted[:] = frame
            results.add(evaluate(shifted))
        assert len(results) == 1

    def test_small_roi_fallback_is_stable(self):
        rng = np.random.default_rng(13)
        frame = rng.integers(0, 256, (60, 70), dtype=np.uint8)
        full = evaluate(frame)
        for _ in range(50):
            assert evaluate(frame, Roi(0, 0, 7, 50)) == full
            assert evaluate(np.array(frame, copy=True)) == full


class TestInputFormats:
    """Frame conversions"""

    def test_pil_image(self, ring_target):
        assert evaluate(Image.fromarray(ring_target)) == evaluate(ring_target)

    def test_rgb_frame(self, ring_target):
        rgb = np.dstack([ring_target] * 3)
        assert evaluate(rgb).mean_intensity == pytest.approx(evaluate(ring_target).mean_intensity, abs=0.5)

    def test_single_channel_3d(self, ring_target):
        assert evaluate(ring_target[:, :, np.newaxis]) == evaluate(ring_target)

    def test_uint16_scaled_to_8_bits(self):
        frame = np.full((20, 20), 115 * 257, dtype=np.uint16)
        assert evaluate(frame).mean_intensity == pytest.approx(115.0)

    def test_float_unit_range(self):
        gray = to_grayscale_u8(np.full((4, 4), 1.0, dtype=np.float32))
        assert gray.dtype == np.uint8
        assert gray[0, 0] == 255

    def test_callable_wrapper(self, ring_target):
        evaluator = FocusEvaluator()
        assert evaluator(ring_target) == evaluate(ring_target)


class TestScoringHelpers:
    """Normalisation and composite"""

    def test_normalize_clamps(self):
        assert normalize_metric(5.0, 10.0, 20.0) == 0.0
        assert normalize_metric(25.0, 10.0, 20.0) == 1.0
        assert normalize_metric(15.0, 10.0, 20.0) == pytest.approx(0.5)

    def test_normalize_degenerate_range(self):
        assert normalize_metric(15.0, 20.0, 20.0) == 0.0

    def test_perfect_inputs_cap_at_100(self):
        score = compute_composite_score(115.0, 50.0, 100.0, 200.0, 0.5, 1.0, 0.0, 0.0)
        assert score == pytest.approx(100.0)

    def test_brightness_penalty(self):
        on_target = compute_composite_score(115.0, 50.0, 100.0, 200.0, 0.5, 1.0, 0.0, 0.0)
        dark = compute_composite_score(40.0, 50.0, 100.0, 200.0, 0.5, 1.0, 0.0, 0.0)
        assert dark < on_target

    def test_clipping_penalty_floor(self):
        """Full highlight + shadow penalty is floored at 0.35"""
        score = compute_composite_score(115.0, 50.0, 100.0, 200.0, 0.5, 1.0, 100.0, 100.0)
        assert score == pytest.approx(35.0)

    def test_non_finite_inputs(self):
        score = compute_composite_score(float('nan'), 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        assert score == 0.0

    def test_high_frequency_tiny_input(self):
        assert compute_high_frequency_ratio(np.zeros((1, 1), dtype=np.float32)) == 0.0
