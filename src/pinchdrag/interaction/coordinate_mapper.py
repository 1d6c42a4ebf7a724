"""
Coordinate Mapping
==================

Normalized landmark -> screen pixel coordinate, with sensitivity gain and a
vertical offset. Output is intentionally not clamped: a sensitivity above 1
lets the pointer reach past the frame edge.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from ..core.types import Hand, Landmark, LandmarkIndex, PointerState

logger = logging.getLogger(__name__)


def map_landmark(
    landmark: Landmark,
    canvas_width: float,
    canvas_height: float,
    sensitivity: float = 1.0,
    vertical_offset: float = 0.0,
) -> Tuple[float, float]:
    """
    Map a normalized landmark to canvas pixels.

    Args:
        landmark: Normalized landmark (x, y in [0, 1])
        canvas_width: Native width of the video frame in pixels
        canvas_height: Native height of the video frame in pixels
        sensitivity: Gain applied to both axes, must be > 0
        vertical_offset: Pixels added to y after scaling

    Returns:
        (pixel_x, pixel_y) as floats
    """
    if sensitivity <= 0:
        raise ValueError(f"sensitivity must be > 0, got {sensitivity}")
    if canvas_width <= 0 or canvas_height <= 0:
        raise ValueError(f"invalid canvas size {canvas_width}x{canvas_height}")

    pixel_x = landmark.x * canvas_width * sensitivity
    pixel_y = landmark.y * canvas_height * sensitivity + vertical_offset
    return (pixel_x, pixel_y)


@dataclass
class CoordinateMapperConfig:
    """Pointer mapping configuration."""
    sensitivity: float = 1.8
    vertical_offset: float = -30.0
    tracked_landmark: int = LandmarkIndex.INDEX_TIP

    @classmethod
    def from_dict(cls, d: dict) -> "CoordinateMapperConfig":
        """Create config from the ``interaction`` section."""
        return cls(
            sensitivity=float(d.get("sensitivity", 1.8)),
            vertical_offset=float(d.get("vertical_offset", -30.0)),
            tracked_landmark=int(d.get("tracked_landmark", LandmarkIndex.INDEX_TIP)),
        )


class CoordinateMapper:
    """
    Binds the mapping gain/offset so callers only pass the landmark and the
    current canvas size.

    Example:
        >>> mapper = CoordinateMapper(CoordinateMapperConfig(sensitivity=1.8))
        >>> pointer = mapper.pointer(hand, 640, 480, timestamp_ms=33)
    """

    def __init__(self, config: CoordinateMapperConfig = None):
        self.config = config or CoordinateMapperConfig()
        if self.config.sensitivity <= 0:
            raise ValueError(f"sensitivity must be > 0, got {self.config.sensitivity}")
        self._tracked = LandmarkIndex(self.config.tracked_landmark)

    @property
    def sensitivity(self) -> float:
        return self.config.sensitivity

    @property
    def vertical_offset(self) -> float:
        return self.config.vertical_offset

    def map(self, landmark: Landmark, canvas_width: float, canvas_height: float) -> Tuple[float, float]:
        return map_landmark(landmark, canvas_width, canvas_height,
                            self.config.sensitivity, self.config.vertical_offset)

    def map_int(self, landmark: Landmark, canvas_width: float, canvas_height: float) -> Tuple[int, int]:
        """Rounded variant for drawing APIs that want integer pixels."""
        x, y = self.map(landmark, canvas_width, canvas_height)
        return (int(round(x)), int(round(y)))

    def pointer(self, hand: Hand, canvas_width: float, canvas_height: float,
                timestamp_ms: int = 0) -> PointerState:
        """Pointer position from the tracked fingertip (index tip by default)."""
        x, y = self.map(hand.get(self._tracked), canvas_width, canvas_height)
        return PointerState(x=x, y=y, timestamp_ms=timestamp_ms)
