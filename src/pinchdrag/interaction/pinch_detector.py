"""
Pinch detection: thumb tip / index tip proximity in normalized space.

Working in normalized coordinates keeps the test independent of the camera
resolution, but the distance still shrinks as the hand moves away from the
camera; there is no depth normalization.
"""

import math
import logging
from dataclasses import dataclass

from ..core.types import Hand, LandmarkIndex

logger = logging.getLogger(__name__)

DEFAULT_PINCH_THRESHOLD = 0.05


def pinch_distance(hand: Hand) -> float:
    """Distance between thumb tip (4) and index tip (8), ignoring z."""
    thumb = hand.get(LandmarkIndex.THUMB_TIP)
    index = hand.get(LandmarkIndex.INDEX_TIP)
    return math.sqrt((thumb.x - index.x) ** 2 + (thumb.y - index.y) ** 2)


def is_pinch(hand: Hand, threshold: float = DEFAULT_PINCH_THRESHOLD) -> bool:
    """True iff the thumb/index distance is strictly below ``threshold``."""
    if threshold <= 0:
        raise ValueError(f"pinch threshold must be > 0, got {threshold}")
    return pinch_distance(hand) < threshold


@dataclass
class PinchDetectorConfig:
    threshold: float = DEFAULT_PINCH_THRESHOLD

    @classmethod
    def from_dict(cls, d: dict) -> "PinchDetectorConfig":
        return cls(threshold=float(d.get("pinch_threshold", DEFAULT_PINCH_THRESHOLD)))


class PinchDetector:
    """Stateless pinch test with a configured threshold."""

    def __init__(self, config: PinchDetectorConfig = None):
        self.config = config or PinchDetectorConfig()
        if self.config.threshold <= 0:
            raise ValueError(f"pinch threshold must be > 0, got {self.config.threshold}")

    @property
    def threshold(self) -> float:
        return self.config.threshold

    def distance(self, hand: Hand) -> float:
        return pinch_distance(hand)

    def is_pinch(self, hand: Hand) -> bool:
        return is_pinch(hand, self.config.threshold)
