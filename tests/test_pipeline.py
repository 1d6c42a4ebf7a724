"""
Tests for the Frame Loop
=========================
"""

import asyncio

import numpy as np
import pytest
from unittest.mock import AsyncMock, Mock

from pinchdrag.capture.camera import Frame
from pinchdrag.core.exceptions import LandmarkProviderError, MalformedHandError
from pinchdrag.core.pipeline import FrameLoop, SessionToken
from pinchdrag.core.types import DetectionResult, DragElement, DragState, GestureLabel
from pinchdrag.interaction.coordinate_mapper import CoordinateMapper, CoordinateMapperConfig
from pinchdrag.interaction.drag_controller import DragController, DragControllerConfig
from pinchdrag.interaction.pinch_detector import PinchDetector
from pinchdrag.rendering.primitives import Circle, ImageAt, Line
from pinchdrag.rendering.skeleton import SkeletonRenderer
from pinchdrag.utils.performance import PerformanceMonitor

from conftest import build_hand


def pinching_at(x, y):
    """Hand whose index tip sits at (x, y) with the thumb touching it."""
    return build_hand(thumb_tip=(x + 0.01, y), index_tip=(x, y))


def open_at(x, y):
    return build_hand(thumb_tip=(x - 0.2, y), index_tip=(x, y))


class FakeSource:
    def __init__(self, count, size=(640, 480)):
        width, height = size
        self._frames = [Frame(np.zeros((height, width, 3), np.uint8), 33 * i, i + 1)
                        for i in range(count)]

    def read(self):
        return self._frames.pop(0) if self._frames else None

    @property
    def is_running(self):
        return bool(self._frames)


class FakeProvider:
    """Returns queued hand lists (or raises queued exceptions), one per call."""

    def __init__(self, script=None):
        self.is_ready = True
        self.script = list(script or [])
        self.gate = None
        self.calls = 0

    async def detect_async(self, rgb, timestamp_ms):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        item = self.script.pop(0) if self.script else []
        if isinstance(item, Exception):
            raise item
        return DetectionResult(hands=tuple(item), timestamp_ms=timestamp_ms)


class FakeSurface:
    def __init__(self, keys=None):
        self.keys = list(keys or [])
        self.drawn = []
        self.cleared = 0

    def clear(self, background=None, size=None):
        self.cleared += 1

    def draw(self, primitives):
        self.drawn.append(list(primitives))

    def present(self):
        return self.keys.pop(0) if self.keys else -1


def frame(ts=0, size=(640, 480)):
    width, height = size
    return Frame(np.zeros((height, width, 3), np.uint8), ts, 1)


def make_loop(provider, surface=None, source=None, classifier=None, **kwargs):
    element = DragElement(resting=(100, 100), width=50, height=50)
    drag = DragController(DragControllerConfig(), element=element)
    return FrameLoop(
        source=source or FakeSource(0),
        provider=provider,
        surface=surface or FakeSurface(),
        mapper=CoordinateMapper(CoordinateMapperConfig(sensitivity=1.0, vertical_offset=0.0)),
        pinch_detector=PinchDetector(),
        drag_controller=drag,
        skeleton=SkeletonRenderer(),
        classifier=classifier,
        element_image=np.zeros((50, 50, 3), np.uint8),
        **kwargs,
    )


class TestFrameLoopStep:
    """Test suite for single-cycle behavior."""

    def test_empty_frame(self):
        surface = FakeSurface()
        loop = make_loop(FakeProvider(), surface)

        output = asyncio.run(loop.step(frame()))

        assert output.hand_count == 0
        assert output.drag_state is DragState.IDLE
        assert output.label is None
        assert not any(isinstance(p, Line) for p in output.primitives)
        assert [p.key for p in output.primitives if isinstance(p, ImageAt)] == ["element"]
        assert surface.cleared == 1

    def test_hand_drawn_with_pointer(self):
        loop = make_loop(FakeProvider([[open_at(0.5, 0.5)]]))

        output = asyncio.run(loop.step(frame()))

        assert output.hand_count == 1
        assert output.pointer.position == pytest.approx((320.0, 240.0))
        assert len([p for p in output.primitives if isinstance(p, Line)]) == 20
        # 21 landmarks + pointer
        assert len([p for p in output.primitives if isinstance(p, Circle)]) == 22

    def test_grab_and_drag(self):
        # (0.2, 0.25) on 640x480 -> (128, 120), inside the element box
        script = [[pinching_at(0.2, 0.25)], [pinching_at(0.5, 0.5)], [open_at(0.5, 0.5)]]
        loop = make_loop(FakeProvider(script))

        async def run():
            return [await loop.step(frame(ts)) for ts in (0, 33, 66)]

        grab, move, drop = asyncio.run(run())

        assert grab.drag_state is DragState.DRAGGING
        assert grab.pinch
        assert move.drag_state is DragState.DRAGGING
        assert loop.drag.element.resting == (320.0, 240.0)
        assert drop.drag_state is DragState.IDLE
        assert not drop.pinch

    def test_missing_hand_holds_drag(self):
        script = [[pinching_at(0.2, 0.25)], [], [pinching_at(0.3, 0.3)]]
        loop = make_loop(FakeProvider(script))

        async def run():
            return [await loop.step(frame(ts)) for ts in (0, 33, 66)]

        first, gap, back = asyncio.run(run())

        assert gap.drag_state is DragState.DRAGGING
        assert back.drag_state is DragState.DRAGGING
        assert loop.drag.element.display_position == pytest.approx((192.0, 144.0))

    def test_provider_error_is_empty_frame(self):
        loop = make_loop(FakeProvider([LandmarkProviderError("boom")]))

        output = asyncio.run(loop.step(frame()))

        assert output is not None
        assert output.hand_count == 0

    def test_malformed_hand_skipped(self):
        loop = make_loop(FakeProvider([MalformedHandError("20 landmarks")]))
        assert asyncio.run(loop.step(frame())).hand_count == 0

    def test_provider_not_ready(self):
        provider = FakeProvider([[open_at(0.5, 0.5)]])
        provider.is_ready = False
        loop = make_loop(provider)

        assert asyncio.run(loop.step(frame())).hand_count == 0
        assert provider.calls == 0

    def test_canvas_from_first_frame(self):
        loop = make_loop(FakeProvider([[open_at(0.5, 0.5)], [open_at(0.5, 0.5)]]))

        async def run():
            await loop.step(frame(0, size=(320, 240)))
            return await loop.step(frame(33, size=(640, 480)))

        output = asyncio.run(run())

        assert loop.canvas_size == (320, 240)
        assert output.pointer.position == pytest.approx((160.0, 120.0))

    def test_key_forwarded(self):
        keys = []
        loop = make_loop(FakeProvider(), FakeSurface(keys=[ord("s")]), on_key=keys.append)

        asyncio.run(loop.step(frame()))

        assert keys == [ord("s")]


class TestCancellation:
    """Results arriving after the session ended are discarded."""

    def test_cancel_while_detecting(self):
        token = SessionToken()
        provider = FakeProvider([[pinching_at(0.2, 0.25)]])
        surface = FakeSurface()
        loop = make_loop(provider, surface, token=token)

        async def run():
            provider.gate = asyncio.Event()
            task = asyncio.create_task(loop.step(frame()))
            await asyncio.sleep(0)
            token.cancel()
            provider.gate.set()
            return await task

        output = asyncio.run(run())

        assert output is None
        assert loop.drag.state is DragState.IDLE
        assert loop.pointer is None
        assert surface.drawn == []

    def test_step_after_cancel(self):
        token = SessionToken()
        token.cancel()
        provider = FakeProvider()
        loop = make_loop(provider, token=token)

        assert asyncio.run(loop.step(frame())) is None
        assert provider.calls == 0

    def test_cancel_while_classifying(self):
        token = SessionToken()

        async def classify(image):
            token.cancel()
            return GestureLabel("Open", 1, 0.9)

        classifier = Mock(is_ready=True)
        classifier.classify_async = classify
        loop = make_loop(FakeProvider([[open_at(0.5, 0.5)]]), classifier=classifier, token=token)

        assert asyncio.run(loop.step(frame())) is None
        assert loop.label is None


class TestClassifier:

    @pytest.fixture
    def classifier(self):
        classifier = Mock(is_ready=True)
        classifier.classify_async = AsyncMock(return_value=GestureLabel("Open", 1, 0.5))
        return classifier

    def test_label_set(self, classifier):
        labels = []
        loop = make_loop(FakeProvider([[open_at(0.5, 0.5)]]), classifier=classifier,
                         on_label=labels.append)

        output = asyncio.run(loop.step(frame()))

        assert output.label.name == "Open"
        assert labels[-1].name == "Open"

    def test_no_hand_clears_label(self, classifier):
        loop = make_loop(FakeProvider([[open_at(0.5, 0.5)], []]), classifier=classifier)

        async def run():
            await loop.step(frame(0))
            return await loop.step(frame(33))

        assert asyncio.run(run()).label is None
        assert classifier.classify_async.await_count == 1

    def test_interval(self, classifier):
        script = [[open_at(0.5, 0.5)]] * 3
        loop = make_loop(FakeProvider(script), classifier=classifier, classify_interval=2)

        async def run():
            return [await loop.step(frame(ts)) for ts in (0, 33, 66)]

        outputs = asyncio.run(run())

        assert classifier.classify_async.await_count == 2
        assert all(o.label.name == "Open" for o in outputs)

    def test_failure_degrades_to_no_label(self, classifier):
        classifier.classify_async = AsyncMock(side_effect=RuntimeError("bad model"))
        loop = make_loop(FakeProvider([[open_at(0.5, 0.5)]]), classifier=classifier)

        output = asyncio.run(loop.step(frame()))

        assert output is not None
        assert output.label is None

    def test_label_does_not_affect_drag(self, classifier):
        classifier.classify_async = AsyncMock(return_value=GestureLabel("Grip", 2, 0.99))
        loop = make_loop(FakeProvider([[open_at(0.2, 0.25)]]), classifier=classifier)

        assert asyncio.run(loop.step(frame())).drag_state is DragState.IDLE


class TestFrameLoopRun:

    def test_runs_until_source_ends(self):
        monitor = PerformanceMonitor()
        loop = make_loop(FakeProvider(), source=FakeSource(3), monitor=monitor)

        assert asyncio.run(loop.run()) == 3
        assert monitor.total_frames == 3
        assert monitor.stage_time_ms("render") > 0.0

    def test_quit_key_stops_run(self):
        token = SessionToken()
        loop = make_loop(FakeProvider(), FakeSurface(keys=[ord("q")]),
                         source=FakeSource(5), token=token,
                         on_key=lambda key: token.cancel())

        assert asyncio.run(loop.run()) == 1
        assert token.cancelled


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
