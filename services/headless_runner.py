"""
Headless runner for Focus Console
Evaluates image files without a GUI, for scripted checks and bench setups

Usage:
    python main.py --evaluate shot1.png shot2.png            # Text report
    python main.py --evaluate shots/*.png --roi 100,80,400,300 --json
"""
import json
import os
import sys
from typing import Iterable, Optional, TextIO

from .logger import app_logger
from .frame_source import load_grayscale
from .focus import FocusSession, Roi, evaluate
from .focus.roi import effective_roi


class HeadlessRunner:
    """Feeds files through one FocusSession in order, like a slow camera

    Files are applied in the order given, so the trend and best-score
    guidance read like a manual focus sweep.
    """

    def __init__(self, roi: Optional[Roi] = None, out: TextIO = None):
        self.roi = roi
        self.out = out if out is not None else sys.stdout
        self.session = FocusSession()
        self.failures = 0
        self.reports = []

    def _write(self, text: str = ""):
        print(text, file=self.out)

    def evaluate_file(self, path: str) -> bool:
        """Evaluate one file and record its report; returns False if it could not be read"""
        try:
            frame = load_grayscale(path)
        except OSError as e:
            app_logger.warning(f"Cannot read {path}: {e}")
            self.failures += 1
            return False

        height, width = frame.shape
        region = effective_roi(self.roi, width, height)
        metrics = evaluate(frame, region)
        self.session.set_roi_info((width, height), region)
        self.session.apply_metrics(metrics)

        report = {'file': os.path.basename(path)}
        report.update(self.session.export_metrics())
        report['guidance'] = self.session.guidance_lines
        self.reports.append(report)
        return True

    def print_text_report(self, path: str):
        m = self.session.last_metrics
        self._write(f"== {os.path.basename(path)}")
        self._write(f"  {self.session.roi_summary}")
        self._write(f"  Score {m.composite_score:6.1f}   best {self.session.best_composite:6.1f}"
                    f"   relative {self.session.relative_score:5.1f}%")
        self._write(f"  Laplacian {m.laplacian_variance:8.1f}   Tenengrad {m.tenengrad:8.1f}"
                    f"   HF {m.high_frequency_ratio * 100.0:5.1f}%")
        self._write(f"  Contrast {m.contrast:6.2f}   Mean {m.mean_intensity:6.1f}"
                    f"   Uniformity {m.gradient_uniformity:4.2f}")
        self._write(f"  Highlights {m.highlight_ratio:5.1f}%   Shadows {m.shadow_ratio:5.1f}%")
        for line in self.session.guidance_lines:
            self._write(f"  - {line}")
        self._write()

    def run(self, paths: Iterable[str], as_json: bool = False) -> bool:
        """Evaluate all paths; returns False if any file failed"""
        for path in paths:
            if self.evaluate_file(path) and not as_json:
                self.print_text_report(path)

        if as_json:
            self._write(json.dumps(self.reports, indent=2))
        elif self.session.has_baseline:
            self._write(f"Best score {self.session.best_composite:.1f} over {len(self.reports)} file(s)")

        if self.failures:
            app_logger.warning(f"{self.failures} file(s) could not be evaluated")
        return self.failures == 0


def run_headless(paths, roi: Optional[Roi] = None, as_json: bool = False, out: TextIO = None) -> bool:
    """
    Entry point for headless mode

    Args:
        paths: Image files to evaluate, in sweep order
        roi: Region to evaluate (None = full frame)
        as_json: Print one JSON list of export maps instead of text
        out: Output stream (default stdout)

    Returns:
        True if every file was evaluated
    """
    runner = HeadlessRunner(roi=roi, out=out)
    return runner.run(paths, as_json=as_json)
