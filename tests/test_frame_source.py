"""
Test folder replay frame source and image loading
"""
import pytest
import os
import sys
import threading

import numpy as np
from PIL import Image

# Ensure project root is in path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from services.frame_source import (
    FolderReplaySource,
    load_grayscale,
    list_image_files,
    STATE_RUNNING,
    STATE_STOPPED,
)


class TestLoadGrayscale:
    """Image file loading"""

    def test_png_gray(self, temp_dir, ring_target):
        path = os.path.join(temp_dir, "ring.png")
        Image.fromarray(ring_target).save(path)
        frame = load_grayscale(path)
        assert frame.dtype == np.uint8
        assert np.array_equal(frame, ring_target)

    def test_rgb_converted(self, temp_dir):
        path = os.path.join(temp_dir, "rgb.png")
        Image.new('RGB', (32, 16), color=(100, 100, 100)).save(path)
        frame = load_grayscale(path)
        assert frame.shape == (16, 32)
        assert frame[0, 0] == 100

    def test_16_bit_scaled(self, temp_dir):
        path = os.path.join(temp_dir, "deep.png")
        Image.fromarray(np.full((10, 10), 65535, dtype=np.uint16)).save(path)
        frame = load_grayscale(path)
        assert frame.dtype == np.uint8
        assert frame[0, 0] == 255

    def test_32_bit_values_clipped(self, temp_dir):
        path = os.path.join(temp_dir, "wide.tif")
        data = np.array([[70000, 65535], [-5, 0]], dtype=np.int32)
        Image.fromarray(data).save(path)
        frame = load_grayscale(path)
        assert frame.tolist() == [[255, 255], [0, 0]]

    def test_not_an_image(self, temp_dir):
        path = os.path.join(temp_dir, "broken.png")
        with open(path, 'w') as f:
            f.write("not an image")
        with pytest.raises(OSError):
            load_grayscale(path)

    def test_missing_file(self, temp_dir):
        with pytest.raises(OSError):
            load_grayscale(os.path.join(temp_dir, "missing.png"))


class TestListImages:
    """Folder listing"""

    def test_sorted_and_filtered(self, temp_dir):
        for name in ("b.png", "a.PNG", "notes.txt", "c.jpg"):
            open(os.path.join(temp_dir, name), 'w').close()
        files = [os.path.basename(p) for p in list_image_files(temp_dir)]
        assert files == ["a.PNG", "b.png", "c.jpg"]

    def test_custom_extensions(self, temp_dir):
        for name in ("b.png", "c.jpg"):
            open(os.path.join(temp_dir, name), 'w').close()
        files = [os.path.basename(p) for p in list_image_files(temp_dir, ['.jpg'])]
        assert files == ["c.jpg"]


class TestReplay:
    """Replay thread"""

    def _run_once(self, directory, **kwargs):
        frames = []
        states = []
        errors = []
        stopped = threading.Event()

        def on_state(state):
            states.append(state)
            if state == STATE_STOPPED:
                stopped.set()

        source = FolderReplaySource(
            directory,
            on_frame=lambda frame, meta: frames.append((frame, meta)),
            interval_s=0.0,
            loop=False,
            on_error=errors.append,
            on_state=on_state,
            **kwargs
        )
        assert source.start()
        assert stopped.wait(5.0)
        source.stop()
        return frames, states, errors

    def test_replays_in_name_order(self, image_folder):
        directory, paths = image_folder
        frames, states, errors = self._run_once(directory)
        assert [meta['FILENAME'] for _, meta in frames] == ["frame_000.png", "frame_001.png"]
        assert states == [STATE_RUNNING, STATE_STOPPED]
        assert errors == []

    def test_metadata(self, image_folder):
        directory, _ = image_folder
        frames, _, _ = self._run_once(directory)
        frame, meta = frames[1]
        assert meta['WIDTH'] == frame.shape[1] == 200
        assert meta['HEIGHT'] == frame.shape[0] == 200
        assert meta['INDEX'] == 1
        assert 'TIMESTAMP' in meta

    def test_unreadable_file_skipped(self, image_folder):
        directory, _ = image_folder
        with open(os.path.join(directory, "frame_0005.png"), 'w') as f:
            f.write("garbage")
        frames, _, errors = self._run_once(directory)
        assert len(frames) == 2
        assert len(errors) == 1
        assert "frame_0005.png" in errors[0]

    def test_missing_directory(self, temp_dir):
        errors = []
        source = FolderReplaySource(os.path.join(temp_dir, "nope"), on_frame=lambda f, m: None,
                                    on_error=errors.append)
        assert source.start() is False
        assert not source.is_running()
        assert errors

    def test_empty_directory(self, temp_dir):
        source = FolderReplaySource(temp_dir, on_frame=lambda f, m: None)
        assert source.start() is False

    def test_loop_until_stopped(self, image_folder):
        directory, _ = image_folder
        frames = []
        enough = threading.Event()

        def on_frame(frame, meta):
            frames.append(meta['INDEX'])
            if len(frames) >= 5:
                enough.set()

        source = FolderReplaySource(directory, on_frame=on_frame, interval_s=0.001, loop=True)
        assert source.start()
        assert source.start() is False
        assert enough.wait(5.0)
        source.stop()
        assert not source.is_running()
        assert frames[:4] == [0, 1, 0, 1]
