"""
Shared domain types for the pinch-drag pointer.

Centralizes the hand-landmark model and the interaction state records so
that detection, interaction and rendering modules agree on one vocabulary.
"""

import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Iterable, NamedTuple, Optional, Tuple

from .exceptions import MalformedHandError


NUM_LANDMARKS = 21

Point = Tuple[float, float]


# =============================================================================
# Landmarks
# =============================================================================

class LandmarkIndex(IntEnum):
    """Hand landmark indices following MediaPipe convention."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


class Landmark(NamedTuple):
    """A single landmark point with normalized coordinates."""
    x: float  # 0.0 to 1.0, normalized by image width
    y: float  # 0.0 to 1.0, normalized by image height
    z: float = 0.0  # depth relative to wrist, unused by the interaction core

    def to_pixel(self, width: int, height: int) -> Tuple[int, int]:
        """Convert normalized coordinates to pixel coordinates."""
        return (int(self.x * width), int(self.y * height))


class Hand:
    """Exactly 21 landmarks in anatomical order.

    The order is the contract every consumer indexes by, so it is checked
    once here and never re-sorted afterwards.
    """

    __slots__ = ("_landmarks", "handedness", "confidence")

    def __init__(self, landmarks: Iterable[Landmark], handedness: str = "Right",
                 confidence: float = 0.0):
        points = tuple(Landmark(*lm) if not isinstance(lm, Landmark) else lm
                       for lm in landmarks)
        if len(points) != NUM_LANDMARKS:
            raise MalformedHandError(
                f"Expected {NUM_LANDMARKS} landmarks, got {len(points)}")
        self._landmarks = points
        self.handedness = handedness
        self.confidence = confidence

    @property
    def landmarks(self) -> Tuple[Landmark, ...]:
        return self._landmarks

    def get(self, index: LandmarkIndex) -> Landmark:
        """Get landmark by index."""
        return self._landmarks[index]

    @property
    def wrist(self) -> Landmark:
        return self._landmarks[LandmarkIndex.WRIST]

    @property
    def thumb_tip(self) -> Landmark:
        return self._landmarks[LandmarkIndex.THUMB_TIP]

    @property
    def index_tip(self) -> Landmark:
        return self._landmarks[LandmarkIndex.INDEX_TIP]

    def distance(self, idx1: LandmarkIndex, idx2: LandmarkIndex) -> float:
        """Planar Euclidean distance between two landmarks (normalized space)."""
        lm1 = self.get(idx1)
        lm2 = self.get(idx2)
        return math.sqrt((lm1.x - lm2.x) ** 2 + (lm1.y - lm2.y) ** 2)

    def __len__(self) -> int:
        return NUM_LANDMARKS

    def __iter__(self):
        return iter(self._landmarks)

    def __eq__(self, other):
        if not isinstance(other, Hand):
            return NotImplemented
        return (self._landmarks == other._landmarks
                and self.handedness == other.handedness)

    def __repr__(self):
        return f"Hand({self.handedness}, conf={self.confidence:.2f})"


@dataclass(frozen=True)
class DetectionResult:
    """Hands found in one frame, in provider order.

    Order is not stable across frames; no hand identity is tracked.
    """
    hands: Tuple[Hand, ...] = ()
    timestamp_ms: int = 0

    @classmethod
    def empty(cls, timestamp_ms: int = 0) -> "DetectionResult":
        return cls(hands=(), timestamp_ms=timestamp_ms)

    @property
    def primary(self) -> Optional[Hand]:
        """Hand #0, the only hand that drives the pointer."""
        return self.hands[0] if self.hands else None

    def __len__(self) -> int:
        return len(self.hands)

    def __bool__(self) -> bool:
        return bool(self.hands)


# =============================================================================
# Interaction state
# =============================================================================

@dataclass(frozen=True)
class Rect:
    """Axis-aligned pixel rectangle (x, y is the top-left corner)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, point: Point) -> bool:
        """Inclusive of edges."""
        px, py = point
        return self.x <= px <= self.right and self.y <= py <= self.bottom

    def intersects(self, other: "Rect") -> bool:
        """Inclusive overlap test; touching edges count."""
        return (self.x <= other.right and other.x <= self.right
                and self.y <= other.bottom and other.y <= self.bottom)

    def moved_to(self, point: Point) -> "Rect":
        return Rect(point[0], point[1], self.width, self.height)


@dataclass(frozen=True)
class PointerState:
    """Screen-space pointer derived from one landmark of hand #0."""
    x: float
    y: float
    timestamp_ms: int = 0

    @property
    def position(self) -> Point:
        return (self.x, self.y)


class DragState(Enum):
    """Drag state machine states."""
    IDLE = "idle"
    DRAGGING = "dragging"


class HitTestPolicy(Enum):
    """How a pinch decides whether it landed on the draggable element."""
    POINTER = "pointer"              # pointer position inside the box
    FINGERTIP_BOX = "fingertip_box"  # square around the pointer overlaps the box

    @classmethod
    def from_string(cls, name: str) -> "HitTestPolicy":
        try:
            return cls(name)
        except ValueError:
            return cls.POINTER


@dataclass
class DragElement:
    """The draggable icon.

    ``resting`` is where the element sits when nobody holds it.  While
    ``held`` the element is hidden from its resting place and drawn at
    ``follow_position`` instead.
    """
    resting: Point
    width: float
    height: float
    held: bool = False
    follow_position: Optional[Point] = None

    @property
    def bounds(self) -> Rect:
        return Rect(self.resting[0], self.resting[1], self.width, self.height)

    @property
    def display_position(self) -> Point:
        if self.held and self.follow_position is not None:
            return self.follow_position
        return self.resting


# =============================================================================
# Gesture labels
# =============================================================================

DEFAULT_GESTURE_LABELS: Tuple[str, ...] = ("FingerUp", "Open", "Grip")


@dataclass(frozen=True)
class GestureLabel:
    """Arg-max label picked from the classifier's probability vector."""
    name: str
    index: int
    confidence: float = 0.0
    scores: Tuple[float, ...] = field(default=(), compare=False)

    def __str__(self):
        return self.name
