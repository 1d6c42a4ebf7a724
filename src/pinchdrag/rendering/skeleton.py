"""
Skeleton Overlay
================

Turns detected hands into draw primitives: one point per landmark and one
segment per edge of the 21-point hand topology. Pure function of the
current frame's hands; nothing is smoothed or carried between frames.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ..core.types import Hand
from ..interaction.coordinate_mapper import CoordinateMapper, CoordinateMapperConfig
from .primitives import Circle, Color, Line, Primitive


# Fixed 20-edge table of the MediaPipe hand. Do not edit.
HAND_CONNECTIONS: Tuple[Tuple[int, int], ...] = (
    (0, 1), (1, 2), (2, 3), (3, 4),          # Thumb
    (0, 5), (5, 6), (6, 7), (7, 8),          # Index
    (5, 9), (9, 10), (10, 11), (11, 12),     # Middle
    (9, 13), (13, 14), (14, 15), (15, 16),   # Ring
    (13, 17), (17, 18), (18, 19), (19, 20),  # Pinky
)


@dataclass
class SkeletonStyle:
    """Overlay style (BGR colors)."""
    landmark_radius: int = 5
    landmark_color: Color = (0, 0, 255)       # Red
    connection_color: Color = (255, 255, 255)  # White
    connection_thickness: int = 2

    @classmethod
    def from_dict(cls, config: dict) -> "SkeletonStyle":
        """Create style from the ``rendering`` section."""
        return cls(
            landmark_radius=int(config.get("landmark_radius", 5)),
            landmark_color=tuple(config.get("landmark_color", [0, 0, 255])),
            connection_color=tuple(config.get("connection_color", [255, 255, 255])),
            connection_thickness=int(config.get("connection_thickness", 2)),
        )


class SkeletonRenderer:
    """
    Hand skeleton -> list of primitives.

    Landmarks are projected with their own mapper, which by default is the
    plain ``x * width, y * height`` projection so the overlay lines up with
    the video, independent of the pointer's sensitivity.

    Example:
        >>> renderer = SkeletonRenderer()
        >>> primitives = renderer.render(result.hands, 640, 480)
    """

    def __init__(self, style: Optional[SkeletonStyle] = None,
                 mapper: Optional[CoordinateMapper] = None):
        self.style = style or SkeletonStyle()
        self.mapper = mapper or CoordinateMapper(
            CoordinateMapperConfig(sensitivity=1.0, vertical_offset=0.0))

    def render(self, hands: Iterable[Hand], canvas_width: int,
               canvas_height: int) -> List[Primitive]:
        primitives: List[Primitive] = []
        for hand in hands:
            primitives.extend(self.render_hand(hand, canvas_width, canvas_height))
        return primitives

    def render_hand(self, hand: Hand, canvas_width: int,
                    canvas_height: int) -> List[Primitive]:
        style = self.style
        points = [self.mapper.map_int(lm, canvas_width, canvas_height)
                  for lm in hand.landmarks]

        # Lines first so the points sit on top.
        primitives: List[Primitive] = [
            Line(points[a], points[b], style.connection_color, style.connection_thickness)
            for a, b in HAND_CONNECTIONS
        ]
        primitives.extend(
            Circle(pt, style.landmark_radius, style.landmark_color) for pt in points
        )
        return primitives
