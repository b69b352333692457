"""
Folder Replay Frame Source

Stands in for a live camera: replays the image files of a directory (sorted
by name) as grayscale frames at a fixed interval on a background thread.
Unreadable files are reported through on_error and skipped.
"""
import os
import threading
from datetime import datetime
from typing import Optional, Dict, Any, Callable, List, Sequence

import numpy as np
from PIL import Image, UnidentifiedImageError

from .logger import app_logger
from .focus.evaluator import to_grayscale_u8

DEFAULT_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.bmp', '.tif', '.tiff')

STATE_RUNNING = "running"
STATE_STOPPED = "stopped"


def load_grayscale(path: str) -> np.ndarray:
    """
    Load an image file as a 2D uint8 array.

    16-bit images are scaled to 8 bits rather than clipped.

    Raises:
        OSError: File missing or not a readable image
    """
    try:
        with Image.open(path) as img:
            img.load()
            if img.mode in ('I;16', 'I;16B', 'I;16L', 'I'):
                arr = np.clip(np.asarray(img), 0, 65535).astype(np.uint16)
            elif img.mode == 'F':
                arr = np.asarray(img, dtype=np.float32)
            else:
                arr = np.asarray(img.convert('L'))
    except UnidentifiedImageError as e:
        raise OSError(f"Not an image file: {path}") from e

    gray = to_grayscale_u8(arr)
    if gray is None:
        raise OSError(f"Empty or unsupported image: {path}")
    return gray


def list_image_files(directory: str, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> List[str]:
    """Image files directly inside directory, sorted by name"""
    wanted = tuple(ext.lower() for ext in extensions)
    files = []
    for name in sorted(os.listdir(directory)):
        path = os.path.join(directory, name)
        if os.path.isfile(path) and name.lower().endswith(wanted):
            files.append(path)
    return files


class FolderReplaySource:
    """Replays a folder of images as a frame stream"""

    def __init__(
        self,
        directory: str,
        on_frame: Callable[[np.ndarray, Dict[str, Any]], None],
        interval_s: float = 0.1,
        loop: bool = True,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        on_error: Optional[Callable[[str], None]] = None,
        on_state: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            directory: Folder holding the frames
            on_frame: Called with (frame, metadata) on the replay thread
            interval_s: Delay between frames
            loop: Start over after the last file
            extensions: File extensions to replay
            on_error: Called with a message for unreadable files
            on_state: Called with "running" / "stopped"
        """
        self.directory = directory
        self.interval_s = max(0.0, float(interval_s))
        self.loop = loop
        self.extensions = tuple(extensions)

        self._on_frame = on_frame
        self._on_error = on_error
        self._on_state = on_state

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.frame_count = 0

    def _set_state(self, state: str) -> None:
        if self._on_state:
            self._on_state(state)

    def _report_error(self, message: str) -> None:
        app_logger.warning(message)
        if self._on_error:
            self._on_error(message)

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """Start replay; returns False if already running or the folder has no images"""
        if self.is_running():
            app_logger.warning("Replay already running")
            return False

        if not os.path.isdir(self.directory):
            self._report_error(f"Replay directory not found: {self.directory}")
            return False

        files = list_image_files(self.directory, self.extensions)
        if not files:
            self._report_error(f"No images to replay in {self.directory}")
            return False

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._replay_loop, args=(files,),
                                        name="folder_replay", daemon=True)
        self._thread.start()
        app_logger.info(f"Replay started: {len(files)} files from {self.directory}")
        self._set_state(STATE_RUNNING)
        return True

    def stop(self, timeout: float = 5.0) -> None:
        """Stop replay and wait for the thread to finish"""
        if self._thread is None:
            return

        self._stop_event.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                app_logger.warning("Replay thread did not finish in time")
        self._thread = None

    def _replay_loop(self, files: List[str]) -> None:
        index = 0
        try:
            while not self._stop_event.is_set():
                if index >= len(files):
                    if not self.loop:
                        break
                    index = 0

                path = files[index]
                try:
                    frame = load_grayscale(path)
                except OSError as e:
                    self._report_error(f"Skipping unreadable frame {os.path.basename(path)}: {e}")
                else:
                    metadata = {
                        'FILENAME': os.path.basename(path),
                        'WIDTH': int(frame.shape[1]),
                        'HEIGHT': int(frame.shape[0]),
                        'INDEX': index,
                        'TIMESTAMP': datetime.now().isoformat(timespec='milliseconds'),
                    }
                    self.frame_count += 1
                    self._on_frame(frame, metadata)

                index += 1
                if self._stop_event.wait(self.interval_s):
                    break
        finally:
            app_logger.info(f"Replay stopped after {self.frame_count} frames")
            self._set_state(STATE_STOPPED)
