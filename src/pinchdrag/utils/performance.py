"""
Performance Monitoring Module
==============================

Rolling FPS and per-stage timing for the frame loop.
"""

import functools
import logging
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

STAGES = ("capture", "detection", "interaction", "classification", "render")


class Timer:
    """
    High-precision timer, usable as a context manager.

    Example:
        >>> with Timer("inference") as t:
        ...     detector.detect(image, ts)
        >>> print(f"Took {t.elapsed_ms:.2f}ms")
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._start_time: Optional[float] = None
        self._end_time: Optional[float] = None

    def start(self) -> "Timer":
        self._start_time = time.perf_counter()
        self._end_time = None
        return self

    def stop(self) -> float:
        """Stop the timer and return elapsed time in seconds."""
        self._end_time = time.perf_counter()
        return self.elapsed

    @property
    def elapsed(self) -> float:
        """Elapsed seconds; still counting while the timer runs."""
        if self._start_time is None:
            return 0.0
        end = self._end_time if self._end_time is not None else time.perf_counter()
        return end - self._start_time

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    @staticmethod
    def decorate(name: str = ""):
        """Decorator factory logging a function's duration at DEBUG."""
        def decorator(func: Callable):
            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                with Timer(name or func.__name__) as t:
                    result = func(*args, **kwargs)
                logger.debug("%s: %.2fms", t.name, t.elapsed_ms)
                return result
            return wrapper
        return decorator


@dataclass
class PerformanceMetrics:
    """Snapshot of the loop's performance."""
    fps: float = 0.0
    frame_time_ms: float = 0.0
    detection_time_ms: float = 0.0
    interaction_time_ms: float = 0.0
    classification_time_ms: float = 0.0
    render_time_ms: float = 0.0
    total_frames: int = 0
    slow_frames: int = 0


class PerformanceMonitor:
    """
    Frame-loop performance monitor.

    The loop runs on a single task, so no locking is needed.

    Example:
        >>> monitor = PerformanceMonitor()
        >>> monitor.start()
        >>> monitor.frame_start()
        >>> with monitor.measure("detection"):
        ...     result = detector.detect(image, ts)
        >>> monitor.frame_complete()
    """

    def __init__(self, window_size: int = 30, target_fps: float = 30.0):
        self.window_size = window_size
        self.target_fps = target_fps
        self._frame_times: deque = deque(maxlen=window_size)
        self._stage_times: Dict[str, deque] = {}
        self._frame_start: Optional[float] = None
        self._total_frames = 0
        self._slow_frames = 0

    def start(self) -> None:
        self._total_frames = 0
        self._slow_frames = 0
        self._frame_times.clear()
        self._stage_times.clear()
        logger.info("Performance monitor started")

    def stop(self) -> None:
        logger.info("Performance monitor stopped. Total frames: %d, slow: %d",
                    self._total_frames, self._slow_frames)

    def frame_start(self) -> None:
        self._frame_start = time.perf_counter()

    def frame_complete(self) -> None:
        if self._frame_start is None:
            return
        frame_time = time.perf_counter() - self._frame_start
        self._frame_times.append(frame_time)
        self._total_frames += 1
        if frame_time > 1.0 / self.target_fps:
            self._slow_frames += 1
        self._frame_start = None

    @contextmanager
    def measure(self, stage: str):
        """Time one stage of the current frame."""
        start = time.perf_counter()
        try:
            yield
        finally:
            times = self._stage_times.setdefault(stage, deque(maxlen=self.window_size))
            times.append(time.perf_counter() - start)

    @property
    def fps(self) -> float:
        """Rolling-average FPS."""
        if not self._frame_times:
            return 0.0
        avg = sum(self._frame_times) / len(self._frame_times)
        return 1.0 / avg if avg > 0 else 0.0

    @property
    def frame_time_ms(self) -> float:
        if not self._frame_times:
            return 0.0
        return (sum(self._frame_times) / len(self._frame_times)) * 1000

    @property
    def total_frames(self) -> int:
        return self._total_frames

    def stage_time_ms(self, stage: str) -> float:
        times = self._stage_times.get(stage)
        if not times:
            return 0.0
        return (sum(times) / len(times)) * 1000

    def get_metrics(self) -> PerformanceMetrics:
        return PerformanceMetrics(
            fps=self.fps,
            frame_time_ms=self.frame_time_ms,
            detection_time_ms=self.stage_time_ms("detection"),
            interaction_time_ms=self.stage_time_ms("interaction"),
            classification_time_ms=self.stage_time_ms("classification"),
            render_time_ms=self.stage_time_ms("render"),
            total_frames=self._total_frames,
            slow_frames=self._slow_frames,
        )

    def get_report(self) -> str:
        """Formatted performance report."""
        m = self.get_metrics()
        lines = [
            "Performance Report",
            "=" * 40,
            f"FPS: {m.fps:.1f} (target: {self.target_fps:.0f})",
            f"Frame time: {m.frame_time_ms:.1f}ms",
            "",
            "Per-Stage Breakdown:",
        ]
        for stage in STAGES:
            lines.append(f"  {stage.capitalize()}: {self.stage_time_ms(stage):.2f}ms")
        lines += [
            "",
            "Frame Stats:",
            f"  Total: {m.total_frames}",
            f"  Slow: {m.slow_frames} ({100 * m.slow_frames / max(1, m.total_frames):.1f}%)",
        ]
        return "\n".join(lines) + "\n"
