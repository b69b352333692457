"""
Pytest configuration and fixtures
"""
import pytest
import os
import sys
import tempfile
import shutil

import numpy as np

# Keep test logs/config out of the real app-data directory.
# Must happen before anything imports services.logger.
os.environ.setdefault("FOCUS_CONSOLE_HOME", tempfile.mkdtemp(prefix="focus_console_home_"))

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    temp_path = tempfile.mkdtemp(prefix="focus_test_")
    yield temp_path
    # Cleanup after test
    if os.path.exists(temp_path):
        shutil.rmtree(temp_path)


@pytest.fixture
def temp_config(temp_dir):
    """Create a temporary config file path"""
    return os.path.join(temp_dir, "config.json")


def make_ring_target(size=200, period=6.0, low=50, high=180):
    """Concentric square-wave rings centred in a size x size frame"""
    ys, xs = np.mgrid[:size, :size]
    center = (size - 1) / 2.0
    radius = np.sqrt((xs - center) ** 2 + (ys - center) ** 2)
    rings = np.sin(radius * np.pi / (period / 2.0)) >= 0
    return np.where(rings, high, low).astype(np.uint8)


def make_stripes(width=200, height=200, period=8, low=50, high=180):
    """Vertical stripes: every edge has the same orientation"""
    columns = (np.arange(width) // (period // 2)) % 2 == 0
    row = np.where(columns, high, low).astype(np.uint8)
    return np.tile(row, (height, 1))


@pytest.fixture
def uniform_frame():
    """100x100 field at the brightness target"""
    return np.full((100, 100), 115, dtype=np.uint8)


@pytest.fixture
def ring_target():
    return make_ring_target()


@pytest.fixture
def blurred_ring_target(ring_target):
    import cv2
    return cv2.GaussianBlur(ring_target, (0, 0), 4.0)


@pytest.fixture
def striped_frame():
    return make_stripes()


@pytest.fixture
def image_folder(temp_dir, ring_target, blurred_ring_target):
    """Folder with two target images saved as PNG (blurred first)"""
    from PIL import Image
    paths = []
    for name, frame in (("frame_000.png", blurred_ring_target), ("frame_001.png", ring_target)):
        path = os.path.join(temp_dir, name)
        Image.fromarray(frame).save(path)
        paths.append(path)
    return temp_dir, paths


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


# Mark slow tests
def pytest_configure(config):
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
