"""Shared fixtures."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pinchdrag.core.types import Hand, Landmark, LandmarkIndex


def build_hand(thumb_tip=(0.40, 0.50), index_tip=(0.60, 0.50), handedness="Right"):
    """
    Create a plausible open hand with the thumb and index tips placed
    where the test needs them.
    """
    base_x, base_y = 0.5, 0.8  # Wrist position
    points = [(base_x, base_y, 0.0)]

    # Thumb (1-4), index (5-8), middle (9-12), ring (13-16), pinky (17-20)
    for finger, x_off in enumerate([-0.12, -0.05, 0.0, 0.05, 0.1]):
        for joint in range(4):
            points.append((base_x + x_off, base_y - 0.06 * (joint + 1), 0.0))

    points[LandmarkIndex.THUMB_TIP] = (thumb_tip[0], thumb_tip[1], 0.0)
    points[LandmarkIndex.INDEX_TIP] = (index_tip[0], index_tip[1], 0.0)
    return Hand([Landmark(*p) for p in points], handedness=handedness, confidence=0.95)


@pytest.fixture
def make_hand():
    """Factory fixture for hands with chosen thumb/index tip positions."""
    return build_hand


@pytest.fixture
def blank_image():
    return np.zeros((480, 640, 3), dtype=np.uint8)
