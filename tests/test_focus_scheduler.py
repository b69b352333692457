"""
Test focus scheduler - throttle, coalescing, generations, shutdown
"""
import pytest
import os
import sys
import threading

import numpy as np

# Ensure project root is in path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from services.focus import FocusScheduler, FocusMetrics, Roi


def frame_with_value(value, size=32):
    return np.full((size, size), value, dtype=np.uint8)


class BlockingEvaluator:
    """Records frames and blocks until released"""

    def __init__(self, block=True):
        self.frames = []
        self.started = threading.Event()
        self.release = threading.Event()
        if not block:
            self.release.set()

    def __call__(self, frame):
        self.frames.append(frame)
        self.started.set()
        assert self.release.wait(5.0)
        return FocusMetrics(valid=True, mean_intensity=float(frame[0, 0]),
                            composite_score=float(frame[0, 0]))

    @property
    def values(self):
        return [int(f[0, 0]) for f in self.frames]


@pytest.fixture
def results():
    return []


@pytest.fixture
def make_scheduler(fake_clock, results):
    created = []

    def factory(evaluate_fn, **kwargs):
        kwargs.setdefault('on_result', results.append)
        kwargs.setdefault('clock', fake_clock)
        scheduler = FocusScheduler(evaluate_fn=evaluate_fn, **kwargs)
        created.append(scheduler)
        return scheduler

    yield factory
    for scheduler in created:
        scheduler.shutdown(wait=True)


class TestThrottle:
    """Throttle gate"""

    def test_first_frame_starts_job(self, make_scheduler, results):
        evaluator = BlockingEvaluator(block=False)
        scheduler = make_scheduler(evaluator)
        assert scheduler.submit(frame_with_value(10))
        assert scheduler.wait_idle(5.0)
        assert scheduler.process_completed() == 1
        assert [r.metrics.composite_score for r in results] == [10.0]
        assert scheduler.completed_count == 1

    def test_frames_inside_window_dropped(self, make_scheduler, fake_clock):
        evaluator = BlockingEvaluator(block=False)
        scheduler = make_scheduler(evaluator)
        assert scheduler.submit(frame_with_value(10))
        fake_clock.advance(0.1)
        assert scheduler.submit(frame_with_value(20)) is False
        assert scheduler.dropped_count == 1
        fake_clock.advance(0.05)
        assert scheduler.submit(frame_with_value(30))
        scheduler.wait_idle(5.0)
        assert evaluator.values == [10, 30]

    def test_throttle_measured_from_window_start(self, make_scheduler, fake_clock):
        evaluator = BlockingEvaluator(block=False)
        scheduler = make_scheduler(evaluator, throttle_s=1.0)
        scheduler.submit(frame_with_value(1))
        for _ in range(7):
            fake_clock.advance(0.125)
            scheduler.submit(frame_with_value(2))
        assert scheduler.dropped_count == 7
        fake_clock.advance(0.125)
        assert scheduler.submit(frame_with_value(3))

    def test_roi_change_bypasses_throttle(self, make_scheduler, fake_clock):
        evaluator = BlockingEvaluator(block=False)
        scheduler = make_scheduler(evaluator)
        scheduler.submit(frame_with_value(1))
        scheduler.wait_idle(5.0)
        fake_clock.advance(0.01)
        assert scheduler.roi_changed(frame_with_value(2), Roi(0, 0, 16, 16))
        scheduler.wait_idle(5.0)
        fake_clock.advance(0.01)
        # Next live frame is let through as well
        assert scheduler.submit(frame_with_value(3))
        scheduler.wait_idle(5.0)
        assert evaluator.values == [1, 2, 3]
        assert scheduler.dropped_count == 0


class TestCoalescing:
    """One job in flight, one pending"""

    def test_pending_replaced_by_newer_frame(self, make_scheduler, fake_clock, results):
        evaluator = BlockingEvaluator()
        scheduler = make_scheduler(evaluator)

        assert scheduler.submit(frame_with_value(1))
        assert evaluator.started.wait(5.0)
        assert scheduler.in_flight

        fake_clock.advance(0.2)
        assert scheduler.submit(frame_with_value(2))
        assert scheduler.has_pending
        fake_clock.advance(0.2)
        assert scheduler.submit(frame_with_value(3))
        assert scheduler.coalesced_count == 1

        evaluator.release.set()
        assert scheduler.wait_idle(5.0)
        assert evaluator.values == [1, 3]
        assert not scheduler.has_pending
        assert not scheduler.in_flight

        scheduler.process_completed()
        assert [r.metrics.composite_score for r in results] == [1.0, 3.0]

    def test_single_worker(self, make_scheduler, fake_clock):
        active = []
        overlap = []
        lock = threading.Lock()

        def evaluate_fn(frame):
            with lock:
                active.append(1)
                overlap.append(len(active))
            with lock:
                active.pop()
            return FocusMetrics(valid=True)

        scheduler = make_scheduler(evaluate_fn)
        for i in range(20):
            scheduler.submit(frame_with_value(i))
            fake_clock.advance(0.2)
        scheduler.wait_idle(5.0)
        assert max(overlap) == 1


class TestResults:
    """Result hand-off"""

    def test_dispatch_marshals_completion(self, make_scheduler):
        dispatched = []
        results = []
        evaluator = BlockingEvaluator(block=False)
        scheduler = make_scheduler(evaluator, dispatch=dispatched.append, on_result=results.append)
        scheduler.submit(frame_with_value(7))
        scheduler.wait_idle(5.0)
        assert results == []
        assert len(dispatched) == 1
        dispatched[0]()
        assert [r.metrics.composite_score for r in results] == [7.0]
        assert scheduler.process_completed() == 0

    def test_frame_cropped_to_effective_roi(self, make_scheduler, results):
        evaluator = BlockingEvaluator(block=False)
        scheduler = make_scheduler(evaluator)
        frame = np.zeros((60, 80), dtype=np.uint8)
        scheduler.submit(frame, Roi(10, 20, 30, 16))
        scheduler.wait_idle(5.0)
        scheduler.process_completed()
        assert evaluator.frames[0].shape == (16, 30)
        assert results[0].roi == Roi(10, 20, 30, 16)
        assert results[0].frame_size == (80, 60)

    def test_small_roi_sends_full_frame(self, make_scheduler, results):
        evaluator = BlockingEvaluator(block=False)
        scheduler = make_scheduler(evaluator)
        frame = np.zeros((60, 80), dtype=np.uint8)
        scheduler.submit(frame, Roi(10, 20, 4, 4))
        scheduler.wait_idle(5.0)
        scheduler.process_completed()
        assert evaluator.frames[0].shape == (60, 80)
        assert results[0].roi == Roi(0, 0, 80, 60)

    def test_frame_copied_before_handoff(self, make_scheduler):
        evaluator = BlockingEvaluator()
        scheduler = make_scheduler(evaluator)
        frame = frame_with_value(5)
        scheduler.submit(frame)
        frame[:] = 99
        evaluator.release.set()
        scheduler.wait_idle(5.0)
        assert evaluator.values == [5]

    def test_empty_frame_rejected(self, make_scheduler):
        scheduler = make_scheduler(BlockingEvaluator(block=False))
        assert scheduler.submit(None) is False
        assert not scheduler.in_flight

    def test_empty_frame_keeps_throttle_window_open(self, make_scheduler, fake_clock):
        evaluator = BlockingEvaluator(block=False)
        scheduler = make_scheduler(evaluator)
        assert scheduler.submit(np.zeros((0, 0), dtype=np.uint8)) is False
        fake_clock.advance(0.01)
        assert scheduler.submit(frame_with_value(4))
        assert scheduler.dropped_count == 0
        scheduler.wait_idle(5.0)
        assert evaluator.values == [4]

    def test_evaluation_error_still_runs_pending(self, make_scheduler, fake_clock, results):
        started = threading.Event()
        release = threading.Event()
        calls = []

        def evaluate_fn(frame):
            calls.append(int(frame[0, 0]))
            if len(calls) == 1:
                started.set()
                release.wait(5.0)
                raise RuntimeError("boom")
            return FocusMetrics(valid=True, composite_score=float(frame[0, 0]))

        scheduler = make_scheduler(evaluate_fn)
        scheduler.submit(frame_with_value(1))
        assert started.wait(5.0)
        fake_clock.advance(0.2)
        scheduler.submit(frame_with_value(2))
        release.set()
        assert scheduler.wait_idle(5.0)
        scheduler.process_completed()
        assert calls == [1, 2]
        assert [r.metrics.composite_score for r in results] == [2.0]


class TestLifecycle:
    """Reset and shutdown"""

    def test_reset_discards_in_flight_result(self, make_scheduler, fake_clock, results):
        evaluator = BlockingEvaluator()
        scheduler = make_scheduler(evaluator)
        scheduler.submit(frame_with_value(1))
        assert evaluator.started.wait(5.0)
        fake_clock.advance(0.2)
        scheduler.submit(frame_with_value(2))

        scheduler.reset()
        assert not scheduler.has_pending

        evaluator.release.set()
        scheduler.wait_idle(5.0)
        assert scheduler.process_completed() == 0
        assert results == []
        assert evaluator.values == [1]

    def test_reset_invalidates_throttle(self, make_scheduler, fake_clock):
        scheduler = make_scheduler(BlockingEvaluator(block=False))
        scheduler.submit(frame_with_value(1))
        scheduler.wait_idle(5.0)
        scheduler.reset()
        fake_clock.advance(0.01)
        assert scheduler.submit(frame_with_value(2))

    def test_result_dispatched_before_reset_is_dropped(self, make_scheduler, results):
        dispatched = []
        scheduler = make_scheduler(BlockingEvaluator(block=False), dispatch=dispatched.append)
        scheduler.submit(frame_with_value(1))
        scheduler.wait_idle(5.0)
        scheduler.reset()
        dispatched[0]()
        assert results == []
        assert scheduler.completed_count == 0

    def test_shutdown_is_idempotent(self, make_scheduler):
        scheduler = make_scheduler(BlockingEvaluator(block=False))
        scheduler.submit(frame_with_value(1))
        scheduler.shutdown(wait=True)
        scheduler.shutdown(wait=True)
        assert scheduler.is_shut_down
        assert not scheduler.in_flight

    def test_submit_after_shutdown(self, make_scheduler, fake_clock):
        evaluator = BlockingEvaluator(block=False)
        scheduler = make_scheduler(evaluator)
        scheduler.shutdown()
        fake_clock.advance(1.0)
        assert scheduler.submit(frame_with_value(1)) is False
        assert scheduler.roi_changed(frame_with_value(1), Roi()) is False
        assert evaluator.frames == []

    def test_shutdown_waits_for_in_flight(self, make_scheduler, results):
        evaluator = BlockingEvaluator()
        scheduler = make_scheduler(evaluator)
        scheduler.submit(frame_with_value(1))
        assert evaluator.started.wait(5.0)
        threading.Timer(0.05, evaluator.release.set).start()
        scheduler.shutdown(wait=True)
        assert scheduler.process_completed() == 0
        assert results == []


class TestRealEvaluator:
    """Default evaluate() through the worker"""

    def test_default_evaluator(self, fake_clock, ring_target):
        results = []
        scheduler = FocusScheduler(on_result=results.append, clock=fake_clock)
        try:
            scheduler.submit(ring_target, Roi(50, 50, 100, 100))
            scheduler.wait_idle(10.0)
            scheduler.process_completed()
        finally:
            scheduler.shutdown()
        assert len(results) == 1
        assert results[0].metrics.valid
        assert results[0].roi == Roi(50, 50, 100, 100)
