"""
Frame loop orchestrator for the pinch-drag pointer.

One cycle per video frame:

    Camera -> landmark provider -> CoordinateMapper / PinchDetector
    -> DragController -> SkeletonRenderer (+ optional classifier)
    -> render surface

All collaborators are injected. Cycles never overlap: the next frame is
only read after the current cycle's awaits have settled, so a slow
inference call delays the loop instead of piling up work. The pointer,
drag state and element position are written only inside :meth:`FrameLoop.step`.
"""

import asyncio
import logging
import threading
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from ..rendering.primitives import Circle, ImageAt, Primitive, Text, to_pixel
from ..rendering.surface import load_icon
from .exceptions import MalformedHandError
from .types import DetectionResult, DragState, GestureLabel, PointerState

logger = logging.getLogger(__name__)


class SessionToken:
    """Cooperative cancellation flag for one interaction session.

    Safe to cancel from signal handlers or other threads; the loop checks it
    after every await before applying any result.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        if not self._event.is_set():
            logger.info("Session cancelled")
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class FrameOutput:
    """Result of a single loop cycle."""
    timestamp_ms: int
    frame_number: int = 0
    primitives: List[Primitive] = field(default_factory=list)
    pointer: Optional[PointerState] = None
    drag_state: DragState = DragState.IDLE
    pinch: bool = False
    label: Optional[GestureLabel] = None
    hand_count: int = 0


class FrameLoop:
    """
    Per-frame interaction loop.

    Collaborators:
        source: ``read() -> Frame | None`` and ``is_running``
        provider: ``is_ready`` and ``async detect_async(rgb, timestamp_ms)``
        surface: ``clear(image)``, ``draw(primitives)``, ``present() -> key``
        classifier: optional, ``is_ready`` and ``async classify_async(image)``

    Example:
        >>> loop = FrameLoop(camera, detector, surface, mapper, pinch, drag, skeleton)
        >>> asyncio.run(loop.run())
    """

    def __init__(
        self,
        source,
        provider,
        surface,
        mapper,
        pinch_detector,
        drag_controller,
        skeleton,
        classifier=None,
        render_config=None,
        element_image: Optional[np.ndarray] = None,
        monitor=None,
        token: Optional[SessionToken] = None,
        classify_interval: int = 1,
        on_key: Optional[Callable[[int], None]] = None,
        on_label: Optional[Callable[[Optional[GestureLabel]], None]] = None,
    ):
        self.source = source
        self.provider = provider
        self.surface = surface
        self.mapper = mapper
        self.pinch_detector = pinch_detector
        self.drag = drag_controller
        self.skeleton = skeleton
        self.classifier = classifier
        self.render_config = render_config
        self.monitor = monitor
        self.token = token or SessionToken()
        self.classify_interval = max(1, int(classify_interval))
        self.classifier_enabled = classifier is not None
        self._on_key = on_key
        self._on_label = on_label

        element = drag_controller.element
        if element_image is None:
            element_image = load_icon("", (element.width, element.height))
        self._element_image = element_image

        self._canvas_size = None
        self._pointer: Optional[PointerState] = None
        self._label: Optional[GestureLabel] = None
        self._frame_count = 0

    @property
    def pointer(self) -> Optional[PointerState]:
        return self._pointer

    @property
    def label(self) -> Optional[GestureLabel]:
        return self._label

    @property
    def canvas_size(self):
        return self._canvas_size

    def _measure(self, stage: str):
        if self.monitor is None:
            return nullcontext()
        return self.monitor.measure(stage)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def run(self) -> int:
        """
        Run cycles until the session token is cancelled or the source ends.

        Returns:
            Number of completed cycles
        """
        self._canvas_size = None  # re-read from the first frame of this stream
        completed = 0
        logger.info("Frame loop started")

        while not self.token.cancelled:
            with self._measure("capture"):
                frame = self.source.read()
            if frame is None:
                if not self.source.is_running:
                    logger.info("Video source ended")
                    break
                await asyncio.sleep(0.001)
                continue

            if self.monitor is not None:
                self.monitor.frame_start()
            output = await self.step(frame)
            if self.monitor is not None:
                self.monitor.frame_complete()
            if output is not None:
                completed += 1

            # Yield to the scheduler before the next cycle
            await asyncio.sleep(0)

        logger.info("Frame loop stopped after %d cycles", completed)
        return completed

    async def step(self, frame) -> Optional[FrameOutput]:
        """
        Process one frame.

        Returns:
            FrameOutput, or None when the session ended while this cycle
            was waiting (its results are discarded)
        """
        if self.token.cancelled:
            return None

        if self._canvas_size is None:
            height, width = frame.image.shape[:2]
            self._canvas_size = (width, height)
            logger.info("Canvas sized to %dx%d", width, height)
        width, height = self._canvas_size
        timestamp_ms = frame.timestamp_ms
        self._frame_count += 1

        with self._measure("detection"):
            result = await self._detect(frame)
        if self.token.cancelled:
            logger.debug("Detection result for %dms discarded", timestamp_ms)
            return None

        pinch = False
        hand = result.primary
        if hand is not None:
            with self._measure("interaction"):
                self._pointer = self.mapper.pointer(hand, width, height, timestamp_ms)
                pinch = self.pinch_detector.is_pinch(hand)
                self.drag.step(pinch, self._pointer)

            with self._measure("classification"):
                label = await self._classify(frame)
            if self.token.cancelled:
                logger.debug("Classification for %dms discarded", timestamp_ms)
                return None
            self._set_label(label)
        else:
            self.drag.hold()
            self._set_label(None)

        with self._measure("render"):
            primitives = self.compose(result, width, height, pinch)
            self.surface.clear(frame.image)
            self.surface.draw(primitives)
            key = self.surface.present()
        if key not in (-1, 255) and self._on_key is not None:
            self._on_key(key)

        return FrameOutput(
            timestamp_ms=timestamp_ms,
            frame_number=getattr(frame, "frame_number", self._frame_count),
            primitives=primitives,
            pointer=self._pointer,
            drag_state=self.drag.state,
            pinch=pinch,
            label=self._label,
            hand_count=len(result),
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _detect(self, frame) -> DetectionResult:
        """Landmarks for this frame; any failure degrades to no hands."""
        timestamp_ms = frame.timestamp_ms
        if not getattr(self.provider, "is_ready", True):
            return DetectionResult.empty(timestamp_ms)
        try:
            return await self.provider.detect_async(frame.rgb, timestamp_ms)
        except MalformedHandError as e:
            logger.debug("Frame %dms skipped: %s", timestamp_ms, e)
        except Exception as e:
            logger.warning("Landmark provider failed at %dms: %s", timestamp_ms, e)
        return DetectionResult.empty(timestamp_ms)

    async def _classify(self, frame) -> Optional[GestureLabel]:
        classifier = self.classifier
        if classifier is None or not self.classifier_enabled:
            return None
        if not getattr(classifier, "is_ready", True):
            return None
        if (self._frame_count - 1) % self.classify_interval != 0:
            return self._label
        try:
            return await classifier.classify_async(frame.image)
        except Exception as e:
            logger.warning("Gesture classifier failed: %s", e)
            return None

    def _set_label(self, label: Optional[GestureLabel]) -> None:
        self._label = label
        if self._on_label is not None:
            self._on_label(label)

    def compose(self, result: DetectionResult, width: int, height: int,
                pinch: bool = False) -> List[Primitive]:
        """Overlay for one frame: skeletons, element, pointer, HUD."""
        cfg = self.render_config
        primitives: List[Primitive] = list(self.skeleton.render(result.hands, width, height))

        element = self.drag.element
        primitives.append(ImageAt(to_pixel(element.display_position),
                                  self._element_image, key="element"))

        show_pointer = cfg.show_pointer if cfg is not None else True
        if show_pointer and result.primary is not None and self._pointer is not None:
            radius = cfg.pointer_radius if cfg is not None else 10
            color = cfg.pointer_color if cfg is not None else (0, 255, 0)
            if pinch:
                color = (0, 165, 255)  # Orange while pinching
            primitives.append(Circle(to_pixel(self._pointer.position), radius, color))

        show_hud = cfg.show_hud if cfg is not None else False
        if show_hud:
            primitives.append(Text(
                f"hands: {len(result)} | {self.drag.state.value} | q quit  s snapshot",
                (12, 28)))
            if self._label is not None:
                primitives.append(Text(
                    f"Gesture: {self._label.name} ({self._label.confidence:.0%})",
                    (12, height - 20), color=(0, 255, 255)))

        return primitives
