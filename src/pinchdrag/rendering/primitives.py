"""
Draw primitives emitted by the frame loop and consumed by a render surface.

Colors are BGR tuples (OpenCV order). Coordinates are integer pixels.
"""

from dataclasses import dataclass, field
from typing import Any, Tuple, Union

Color = Tuple[int, int, int]
Pixel = Tuple[int, int]


@dataclass(frozen=True)
class Circle:
    """Filled circle."""
    center: Pixel
    radius: int
    color: Color


@dataclass(frozen=True)
class Line:
    """Line segment."""
    start: Pixel
    end: Pixel
    color: Color
    thickness: int = 2


@dataclass(frozen=True)
class ImageAt:
    """Image whose top-left corner is placed at ``position``."""
    position: Pixel
    image: Any = field(compare=False, repr=False)  # np.ndarray, HxWx3 or HxWx4
    key: str = ""


@dataclass(frozen=True)
class Text:
    """Overlay text (HUD, gesture label)."""
    text: str
    origin: Pixel
    color: Color = (255, 255, 255)
    scale: float = 0.6
    thickness: int = 2


Primitive = Union[Circle, Line, ImageAt, Text]


def to_pixel(point: Tuple[float, float]) -> Pixel:
    return (int(round(point[0])), int(round(point[1])))
