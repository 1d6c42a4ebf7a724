"""
Tests for the Landmark Model
=============================
"""

import pytest

from pinchdrag.core.exceptions import MalformedHandError
from pinchdrag.core.types import (
    DetectionResult, DragElement, GestureLabel, Hand, HitTestPolicy,
    Landmark, LandmarkIndex, Rect,
)


class TestLandmark:
    """Test suite for Landmark class."""

    def test_to_pixel(self):
        """Test conversion to pixel coordinates."""
        lm = Landmark(x=0.5, y=0.5, z=0.0)

        assert lm.to_pixel(1280, 720) == (640, 360)

    def test_z_defaults_to_zero(self):
        assert Landmark(0.1, 0.2).z == 0.0

    def test_immutable(self):
        lm = Landmark(0.1, 0.2)
        with pytest.raises(AttributeError):
            lm.x = 0.3


class TestHand:
    """Test suite for Hand."""

    def test_named_accessors(self, make_hand):
        hand = make_hand(thumb_tip=(0.4, 0.5), index_tip=(0.42, 0.52))

        assert hand.thumb_tip == hand.get(LandmarkIndex.THUMB_TIP)
        assert hand.index_tip.x == pytest.approx(0.42)
        assert hand.wrist == hand.landmarks[0]

    def test_exactly_21_landmarks(self, make_hand):
        hand = make_hand()
        assert len(hand) == 21
        assert len(list(hand)) == 21

    @pytest.mark.parametrize("count", [0, 20, 22])
    def test_wrong_count_rejected(self, count):
        with pytest.raises(MalformedHandError):
            Hand([Landmark(0.5, 0.5)] * count)

    def test_malformed_is_value_error(self):
        with pytest.raises(ValueError):
            Hand([Landmark(0.5, 0.5)] * 5)

    def test_accepts_plain_tuples(self):
        hand = Hand([(0.1 * (i % 10), 0.5) for i in range(21)])
        assert isinstance(hand.wrist, Landmark)

    def test_order_preserved(self):
        points = [Landmark(i / 21, 1 - i / 21) for i in range(21)]
        hand = Hand(points)
        assert list(hand.landmarks) == points

    def test_distance(self, make_hand):
        hand = make_hand(thumb_tip=(0.0, 0.0), index_tip=(0.3, 0.4))
        assert hand.distance(LandmarkIndex.THUMB_TIP, LandmarkIndex.INDEX_TIP) == pytest.approx(0.5)


class TestDetectionResult:

    def test_empty(self):
        result = DetectionResult.empty(42)

        assert not result
        assert len(result) == 0
        assert result.primary is None
        assert result.timestamp_ms == 42

    def test_primary_is_first_hand(self, make_hand):
        first = make_hand(handedness="Left")
        second = make_hand(handedness="Right")
        result = DetectionResult(hands=(first, second), timestamp_ms=1)

        assert result.primary is first
        assert len(result) == 2


class TestRect:

    def test_contains_inclusive_edges(self):
        rect = Rect(10, 10, 20, 20)

        assert rect.contains((10, 10))
        assert rect.contains((30, 30))
        assert rect.contains((20, 15))
        assert not rect.contains((9.99, 15))
        assert not rect.contains((15, 30.01))

    def test_intersects(self):
        rect = Rect(0, 0, 10, 10)

        assert rect.intersects(Rect(5, 5, 10, 10))
        assert rect.intersects(Rect(10, 10, 5, 5))  # touching corner
        assert not rect.intersects(Rect(11, 0, 5, 5))

    def test_moved_to(self):
        assert Rect(0, 0, 4, 3).moved_to((7, 8)) == Rect(7, 8, 4, 3)


class TestDragElement:

    def test_display_position_follows_when_held(self):
        element = DragElement(resting=(50, 60), width=10, height=10)
        assert element.display_position == (50, 60)

        element.held = True
        element.follow_position = (100, 120)
        assert element.display_position == (100, 120)
        assert element.bounds == Rect(50, 60, 10, 10)


class TestEnums:

    def test_hit_test_from_string(self):
        assert HitTestPolicy.from_string("fingertip_box") is HitTestPolicy.FINGERTIP_BOX
        assert HitTestPolicy.from_string("bogus") is HitTestPolicy.POINTER

    def test_gesture_label_str(self):
        assert str(GestureLabel("Open", 1, 0.5)) == "Open"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
