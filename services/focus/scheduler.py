"""
Focus Scheduler

Keeps focus evaluation off the capture/GUI thread without letting work pile up:
- Throttle gate: at most one fresh evaluation window per throttle interval
- Single worker: one evaluation in flight at a time
- One-slot pending mailbox: frames arriving while busy replace each other
- Generation counter: results from before reset()/shutdown() are discarded

Results are handed back to the owning thread through dispatch(fn) (e.g. a
queued Qt signal). Without a dispatcher they are queued and applied when the
owner calls process_completed().
"""
import queue
import threading
import time
import traceback
from concurrent.futures import CancelledError, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from services.logger import app_logger
from .evaluator import evaluate, to_grayscale_u8
from .roi import effective_roi
from .types import FocusMetrics, Roi, coerce_roi

DEFAULT_THROTTLE_SECONDS = 0.14
DROPPED_LOG_INTERVAL = 100


@dataclass(frozen=True)
class FocusResult:
    """One completed evaluation, ready to apply on the owning thread"""
    metrics: FocusMetrics
    frame_size: Tuple[int, int]   # (width, height) of the submitted frame
    roi: Roi                      # region actually evaluated


class FocusJob:
    """A frame prepared for the worker"""

    def __init__(self, frame, roi, generation: int):
        gray = to_grayscale_u8(frame)
        if gray is None:
            self.frame = None
            self.frame_size = (0, 0)
            self.roi = Roi()
        else:
            height, width = gray.shape
            self.roi = effective_roi(coerce_roi(roi), width, height)
            self.frame_size = (width, height)
            # Copy so the caller may reuse its buffer immediately
            self.frame = np.array(gray[self.roi.y:self.roi.bottom, self.roi.x:self.roi.right], copy=True)
        self.generation = generation

    @property
    def is_empty(self) -> bool:
        return self.frame is None


class FocusScheduler:
    """Throttled, coalescing single-worker evaluation queue"""

    def __init__(self, evaluate_fn: Callable = evaluate,
                 on_result: Optional[Callable[[FocusResult], None]] = None,
                 dispatch: Optional[Callable[[Callable[[], None]], None]] = None,
                 throttle_s: float = DEFAULT_THROTTLE_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self._evaluate_fn = evaluate_fn
        self._on_result = on_result
        self._dispatch = dispatch
        self._throttle_s = max(0.0, float(throttle_s))
        self._clock = clock

        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="focus_eval")
        self._completed = queue.Queue()

        self._window_start = None   # None = throttle timer invalid
        self._in_flight = False
        self._future = None
        self._pending = None
        self._generation = 0
        self._shutdown = False

        self._dropped = 0
        self._coalesced = 0
        self._completed_count = 0

        app_logger.debug(f"Focus scheduler started (throttle {self._throttle_s * 1000:.0f} ms)")

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._in_flight

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    @property
    def dropped_count(self) -> int:
        return self._dropped

    @property
    def coalesced_count(self) -> int:
        return self._coalesced

    @property
    def completed_count(self) -> int:
        return self._completed_count

    @property
    def is_shut_down(self) -> bool:
        return self._shutdown

    @property
    def throttle_seconds(self) -> float:
        return self._throttle_s

    # =========================================================================
    # Submission
    # =========================================================================

    def submit(self, frame, roi=None) -> bool:
        """
        Offer a live frame for evaluation.

        Returns:
            True if the frame was started or parked in the pending slot,
            False if throttled, empty, or the scheduler is shut down
        """
        with self._lock:
            if self._shutdown:
                return False

            now = self._clock()
            if self._window_start is not None and (now - self._window_start) < self._throttle_s:
                self._dropped += 1
                if self._dropped % DROPPED_LOG_INTERVAL == 0:
                    app_logger.debug(f"Focus scheduler throttled {self._dropped} frames so far")
                return False

            job = FocusJob(frame, roi, self._generation)
            if job.is_empty:
                return False
            self._window_start = now

            if self._in_flight:
                if self._pending is not None:
                    self._coalesced += 1
                    app_logger.debug("Focus scheduler replaced pending frame")
                self._pending = job
                return True

            self._start_job(job)
            return True

    def roi_changed(self, frame, roi) -> bool:
        """Evaluate immediately after an ROI edit and let the next live frame through"""
        with self._lock:
            self._window_start = None
        accepted = self.submit(frame, roi)
        with self._lock:
            self._window_start = None
        return accepted

    def _start_job(self, job: FocusJob) -> None:
        # Caller holds the lock
        self._in_flight = True
        self._future = self._executor.submit(self._run_job, job)

    def _run_job(self, job: FocusJob) -> None:
        metrics = None
        try:
            metrics = self._evaluate_fn(job.frame)
        except Exception as e:
            app_logger.error(f"Focus evaluation failed: {e}")
            app_logger.error(traceback.format_exc())

        with self._lock:
            current = job.generation == self._generation and not self._shutdown
            if self._pending is not None and not self._shutdown:
                next_job, self._pending = self._pending, None
                self._start_job(next_job)
            else:
                self._in_flight = False
                self._future = None

        if metrics is None or not current:
            return

        result = FocusResult(metrics=metrics, frame_size=job.frame_size, roi=job.roi)
        if self._dispatch is not None:
            self._dispatch(lambda: self._complete(result, job.generation))
        else:
            self._completed.put((result, job.generation))

    def _complete(self, result: FocusResult, generation: int) -> None:
        """Apply one result on the owning thread (stale generations are dropped)"""
        if generation != self._generation or self._shutdown:
            return
        self._completed_count += 1
        if self._on_result:
            self._on_result(result)

    def process_completed(self) -> int:
        """Apply queued results on the calling thread; returns how many were applied"""
        applied = 0
        while True:
            try:
                result, generation = self._completed.get_nowait()
            except queue.Empty:
                break
            before = self._completed_count
            self._complete(result, generation)
            if self._completed_count != before:
                applied += 1
        return applied

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no job is in flight (used by headless callers and tests)"""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                future = self._future
                busy = self._in_flight
            if not busy:
                return True
            if future is not None:
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                try:
                    future.result(timeout=remaining)
                except FutureTimeoutError:
                    return not self.in_flight
                except CancelledError:
                    time.sleep(0.001)
            elif deadline is not None and time.monotonic() >= deadline:
                return False
            else:
                time.sleep(0.001)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def reset(self) -> None:
        """Forget pending work and the throttle window; in-flight results are discarded"""
        with self._lock:
            self._window_start = None
            self._pending = None
            self._generation += 1
        app_logger.debug("Focus scheduler reset")

    def shutdown(self, wait: bool = True) -> None:
        """Cancel/await the in-flight job and stop the worker. Safe to call twice."""
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True
            self._pending = None
            self._generation += 1
            future = self._future

        if future is not None:
            future.cancel()

        self._executor.shutdown(wait=wait)

        with self._lock:
            self._in_flight = False
            self._future = None

        app_logger.info("Focus scheduler stopped")
