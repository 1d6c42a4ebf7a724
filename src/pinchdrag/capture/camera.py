"""
Camera Capture Module
=====================

Video source for the frame loop. Frames carry a monotonic millisecond
timestamp, which is what the landmark provider expects.
Supports threaded capture for non-blocking operation.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    device_id: int = 0
    width: int = 1280
    height: int = 720
    fps: int = 30
    buffer_size: int = 1  # Minimal buffering for low latency
    threaded: bool = True
    flip_horizontal: bool = True  # selfie view
    warmup_frames: int = 5

    @classmethod
    def from_dict(cls, config: dict) -> "CameraConfig":
        """Create config from dictionary (YAML parsed)."""
        return cls(
            device_id=config.get("device_id", 0),
            width=config.get("width", 1280),
            height=config.get("height", 720),
            fps=config.get("fps", 30),
            buffer_size=config.get("buffer_size", 1),
            threaded=config.get("threaded", True),
            flip_horizontal=config.get("flip_horizontal", True),
            warmup_frames=config.get("warmup_frames", 5),
        )


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


@dataclass
class Frame:
    """Captured BGR frame with its capture timestamp."""
    image: np.ndarray
    timestamp_ms: int
    frame_number: int

    @property
    def rgb(self) -> np.ndarray:
        """Convert BGR to RGB."""
        return cv2.cvtColor(self.image, cv2.COLOR_BGR2RGB)

    @property
    def size(self) -> Tuple[int, int]:
        """Native (width, height) of the frame."""
        height, width = self.image.shape[:2]
        return (width, height)


class Camera:
    """
    OpenCV camera capture with optional threading.

    In threaded mode :meth:`read` hands out each captured frame at most once
    and returns None until the next one arrives, so downstream inference is
    run once per input frame.

    Example:
        >>> camera = Camera(CameraConfig())
        >>> if camera.start():
        ...     frame = camera.read()
        >>> camera.stop()
    """

    def __init__(self, config: Optional[CameraConfig] = None):
        self.config = config or CameraConfig()
        self._cap: Optional[cv2.VideoCapture] = None
        self._frame_number = 0
        self._running = False

        # Threading components
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._latest_frame: Optional[Frame] = None
        self._last_returned = 0

        self._capture_times = deque(maxlen=30)

    def start(self) -> bool:
        """
        Open the device and start capture.

        Returns:
            True if camera started successfully, False if access was denied
            or no device could be opened
        """
        logger.info("Starting camera (device=%d, %dx%d@%dfps)",
                    self.config.device_id, self.config.width, self.config.height,
                    self.config.fps)

        self._cap = cv2.VideoCapture(self.config.device_id)
        if not self._cap.isOpened():
            logger.error("Failed to open camera device %d", self.config.device_id)
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
        self._cap.set(cv2.CAP_PROP_FPS, self.config.fps)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self.config.buffer_size)

        # Verify we can actually read frames (denied permission opens but reads nothing)
        ok, test_frame = self._cap.read()
        if not ok or test_frame is None:
            logger.error("Camera %d opened but returns no frames", self.config.device_id)
            self._cap.release()
            self._cap = None
            return False

        actual_width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info("Camera initialized: %dx%d", actual_width, actual_height)

        if self.config.warmup_frames > 0:
            logger.info("Warming up camera (%d frames)...", self.config.warmup_frames)
            for _ in range(self.config.warmup_frames):
                self._cap.read()

        self._running = True
        self._frame_number = 0
        self._last_returned = 0
        with self._lock:
            self._latest_frame = None

        if self.config.threaded:
            logger.info("Started threaded capture")
            self._thread = threading.Thread(target=self._capture_loop, daemon=True)
            self._thread.start()

        return True

    def stop(self) -> None:
        """Stop camera capture and release resources."""
        logger.info("Stopping camera...")
        self._running = False

        if self._thread:
            self._thread.join(timeout=1.0)
            self._thread = None

        if self._cap:
            self._cap.release()
            self._cap = None

        logger.info("Camera stopped")

    def read(self) -> Optional[Frame]:
        """
        Read the next frame.

        Returns:
            Frame, or None when stopped, when capture failed, or (threaded)
            when no new frame has arrived since the last call
        """
        if not self._running:
            return None

        if self.config.threaded:
            with self._lock:
                frame = self._latest_frame
                if frame is None or frame.frame_number <= self._last_returned:
                    return None
                self._last_returned = frame.frame_number
                return frame
        return self._capture_frame()

    def _capture_frame(self) -> Optional[Frame]:
        """Capture a single frame from the camera."""
        if not self._cap:
            return None

        start_time = time.perf_counter()
        ret, image = self._cap.read()
        capture_time = time.perf_counter() - start_time

        if not ret or image is None:
            logger.warning("Failed to capture frame")
            return None

        # Mirror so moving the hand right moves the pointer right
        if self.config.flip_horizontal:
            image = cv2.flip(image, 1)

        self._frame_number += 1
        self._capture_times.append(capture_time)

        return Frame(image=image, timestamp_ms=monotonic_ms(),
                     frame_number=self._frame_number)

    def _capture_loop(self) -> None:
        """Background thread for continuous frame capture."""
        while self._running:
            frame = self._capture_frame()
            if frame:
                with self._lock:
                    self._latest_frame = frame
            else:
                time.sleep(0.005)

    @property
    def is_running(self) -> bool:
        """Check if camera is currently running."""
        return self._running

    @property
    def resolution(self) -> Tuple[int, int]:
        """Requested capture resolution."""
        return (self.config.width, self.config.height)

    @property
    def avg_capture_time_ms(self) -> float:
        """Get average frame capture time in milliseconds."""
        if not self._capture_times:
            return 0.0
        return (sum(self._capture_times) / len(self._capture_times)) * 1000

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.stop()
        return False
