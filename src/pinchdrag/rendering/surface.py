"""
OpenCV Render Surface
=====================

Composes the camera frame and the overlay primitives into one canvas and
shows it in an OpenCV window. Every cycle is one ``clear`` followed by a full
redraw; nothing is invalidated partially.
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import cv2
import numpy as np

from .primitives import Circle, ImageAt, Line, Primitive, Text

logger = logging.getLogger(__name__)


@dataclass
class SurfaceConfig:
    """Render surface settings."""
    window_name: str = "Pinch Drag"
    show_window: bool = True
    snapshot_dir: str = "snapshots"

    @classmethod
    def from_dict(cls, rendering: dict, snapshot: Optional[dict] = None) -> "SurfaceConfig":
        snapshot = snapshot or {}
        return cls(
            window_name=rendering.get("window_name", "Pinch Drag"),
            show_window=rendering.get("show_window", True),
            snapshot_dir=snapshot.get("directory", "snapshots"),
        )


def snapshot_filename(now: Optional[float] = None, prefix: str = "snapshot") -> str:
    """File name embedding the local time, e.g. ``snapshot-20261016-142501.png``."""
    stamp = time.strftime("%Y%m%d-%H%M%S", time.localtime(now if now is not None else time.time()))
    return f"{prefix}-{stamp}.png"


def load_icon(path: str, size: Tuple[int, int]) -> np.ndarray:
    """
    Load the draggable element's icon, resized to ``size`` (width, height).

    Falls back to a flat colored tile when no path is configured.
    """
    width, height = int(size[0]), int(size[1])
    if path:
        icon = cv2.imread(path, cv2.IMREAD_UNCHANGED)
        if icon is None:
            raise FileNotFoundError(f"Could not read icon image: {path}")
        if icon.ndim == 2:
            icon = cv2.cvtColor(icon, cv2.COLOR_GRAY2BGR)
        return cv2.resize(icon, (width, height), interpolation=cv2.INTER_AREA)

    tile = np.zeros((height, width, 3), dtype=np.uint8)
    tile[:] = (235, 160, 40)
    cv2.rectangle(tile, (0, 0), (width - 1, height - 1), (255, 255, 255), 2)
    return tile


def blit(canvas: np.ndarray, image: np.ndarray, position: Tuple[int, int]) -> np.ndarray:
    """Paste ``image`` onto ``canvas`` at ``position``, clipped to the canvas.

    Four-channel images are alpha blended.
    """
    ch, cw = canvas.shape[:2]
    ih, iw = image.shape[:2]
    x, y = position

    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + iw, cw), min(y + ih, ch)
    if x0 >= x1 or y0 >= y1:
        return canvas

    src = image[y0 - y:y1 - y, x0 - x:x1 - x]
    if src.shape[2] == 4:
        alpha = src[:, :, 3:4].astype(np.float32) / 255.0
        dst = canvas[y0:y1, x0:x1].astype(np.float32)
        blended = alpha * src[:, :, :3].astype(np.float32) + (1.0 - alpha) * dst
        canvas[y0:y1, x0:x1] = blended.astype(canvas.dtype)
    else:
        canvas[y0:y1, x0:x1] = src[:, :, :3]
    return canvas


class OpenCVSurface:
    """
    Render surface backed by a numpy canvas and an OpenCV window.

    Example:
        >>> surface = OpenCVSurface(SurfaceConfig())
        >>> surface.clear(frame.image)
        >>> surface.draw(primitives)
        >>> key = surface.present()
    """

    def __init__(self, config: Optional[SurfaceConfig] = None):
        self.config = config or SurfaceConfig()
        self._canvas: Optional[np.ndarray] = None
        self._font = cv2.FONT_HERSHEY_SIMPLEX

    @property
    def canvas(self) -> Optional[np.ndarray]:
        return self._canvas

    def clear(self, background: Optional[np.ndarray] = None,
              size: Optional[Tuple[int, int]] = None) -> None:
        """Start a new frame: copy of ``background`` or a black canvas of ``size``."""
        if background is not None:
            self._canvas = background.copy()
        else:
            width, height = size or (640, 480)
            self._canvas = np.zeros((height, width, 3), dtype=np.uint8)

    def draw(self, primitives: Iterable[Primitive]) -> None:
        if self._canvas is None:
            raise RuntimeError("clear() must be called before draw()")
        canvas = self._canvas
        for p in primitives:
            if isinstance(p, Line):
                cv2.line(canvas, p.start, p.end, p.color, p.thickness, cv2.LINE_AA)
            elif isinstance(p, Circle):
                cv2.circle(canvas, p.center, p.radius, p.color, -1, lineType=cv2.LINE_AA)
            elif isinstance(p, ImageAt):
                blit(canvas, p.image, p.position)
            elif isinstance(p, Text):
                # Dark outline keeps labels readable on bright video
                cv2.putText(canvas, p.text, p.origin, self._font, p.scale,
                            (0, 0, 0), p.thickness + 2, cv2.LINE_AA)
                cv2.putText(canvas, p.text, p.origin, self._font, p.scale,
                            p.color, p.thickness, cv2.LINE_AA)
            else:
                logger.debug("Unknown primitive %r ignored", p)

    def present(self) -> int:
        """Show the canvas and pump the window's events.

        Returns:
            Key code pressed during this refresh, or -1
        """
        if self._canvas is None or not self.config.show_window:
            return -1
        cv2.imshow(self.config.window_name, self._canvas)
        return cv2.waitKey(1) & 0xFF

    def snapshot(self, directory: Optional[str] = None) -> Optional[str]:
        """Write the current canvas as PNG. Returns the path, or None."""
        if self._canvas is None:
            logger.warning("Nothing rendered yet, snapshot skipped")
            return None
        directory = directory or self.config.snapshot_dir
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, snapshot_filename())
        if not cv2.imwrite(path, self._canvas):
            logger.error("Could not write snapshot: %s", path)
            return None
        logger.info("Snapshot saved to %s", path)
        return path

    def close(self) -> None:
        if self.config.show_window:
            cv2.destroyAllWindows()
