"""
Drag Controller
===============

Idle/Dragging state machine driven by the pinch flag and the pointer.

    IDLE     --pinch & hit-->  DRAGGING   element held, follows pointer
    DRAGGING --pinch------->   DRAGGING   element follows pointer
    DRAGGING --no pinch---->   IDLE       resting position := last pointer
    IDLE     --otherwise--->   IDLE

The hit test only runs on the IDLE -> DRAGGING check, against the element's
box as it is at that moment. Once grabbed, the pointer may leave the
original box without dropping the element.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ..core.types import (
    DragElement, DragState, HitTestPolicy, Point, PointerState, Rect,
)

logger = logging.getLogger(__name__)


@dataclass
class DragControllerConfig:
    """Drag interaction configuration."""
    hit_test: HitTestPolicy = HitTestPolicy.POINTER
    grab_radius: float = 20.0  # half-size of the fingertip box, pixels
    element_x: float = 50.0
    element_y: float = 50.0
    element_width: float = 96.0
    element_height: float = 96.0

    @classmethod
    def from_dict(cls, d: dict) -> "DragControllerConfig":
        """Create config from the ``interaction`` section."""
        element = d.get("element", {}) or {}
        hit_test_name = d.get("hit_test", "pointer")
        if hit_test_name not in [p.value for p in HitTestPolicy]:
            logger.warning("Unknown hit_test %r, using 'pointer'", hit_test_name)
        return cls(
            hit_test=HitTestPolicy.from_string(hit_test_name),
            grab_radius=float(d.get("grab_radius", 20.0)),
            element_x=float(element.get("x", 50.0)),
            element_y=float(element.get("y", 50.0)),
            element_width=float(element.get("width", 96.0)),
            element_height=float(element.get("height", 96.0)),
        )

    def make_element(self) -> DragElement:
        return DragElement(
            resting=(self.element_x, self.element_y),
            width=self.element_width,
            height=self.element_height,
        )


def hit_test(policy: HitTestPolicy, pointer: Point, bounds: Rect,
             grab_radius: float = 0.0) -> bool:
    """Does a pinch at ``pointer`` land on ``bounds``?"""
    if policy is HitTestPolicy.FINGERTIP_BOX:
        fingertip = Rect(pointer[0] - grab_radius, pointer[1] - grab_radius,
                         2 * grab_radius, 2 * grab_radius)
        return fingertip.intersects(bounds)
    return bounds.contains(pointer)


TransitionListener = Callable[[DragState, DragState, DragElement], None]


class DragController:
    """
    Owns the drag state and the draggable element.

    Call :meth:`step` once per frame with a fresh pinch flag and pointer.
    Frames without a hand should call :meth:`hold` (or nothing at all);
    either way no transition happens.

    On release the element rests at the pointer of the last pinched frame.
    The pointer passed on the release frame itself is ignored.

    Example:
        >>> controller = DragController(DragControllerConfig())
        >>> state = controller.step(pinch=True, pointer=pointer)
        >>> x, y = controller.element.display_position
    """

    def __init__(
        self,
        config: Optional[DragControllerConfig] = None,
        element: Optional[DragElement] = None,
        on_transition: Optional[TransitionListener] = None,
    ):
        self.config = config or DragControllerConfig()
        self.element = element or self.config.make_element()
        self._state = DragState.IDLE
        self._last_pointer: Optional[Point] = None
        self._on_transition = on_transition

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def last_pointer(self) -> Optional[Point]:
        return self._last_pointer

    def step(
        self,
        pinch: bool,
        pointer: PointerState,
        element_bounds: Optional[Rect] = None,
        follow: Optional[Point] = None,
    ) -> DragState:
        """
        Advance the state machine by one frame.

        Args:
            pinch: Current pinch flag
            pointer: Pointer derived from this frame
            element_bounds: Hitbox to test on grab; defaults to the element's
                resting bounds
            follow: Position the held element should be drawn at instead of
                the pointer (cursor-driven input)

        Returns:
            State after this frame
        """
        position = pointer.position
        target = follow if follow is not None else position

        if self._state is DragState.IDLE:
            bounds = element_bounds if element_bounds is not None else self.element.bounds
            if pinch and hit_test(self.config.hit_test, position, bounds,
                                  self.config.grab_radius):
                self.element.held = True
                self.element.follow_position = target
                self._last_pointer = target
                self._transition(DragState.DRAGGING)
        elif pinch:
            self.element.follow_position = target
            self._last_pointer = target
        else:
            if self._last_pointer is not None:
                self.element.resting = self._last_pointer
            self.element.held = False
            self.element.follow_position = None
            self._transition(DragState.IDLE)

        return self._state

    def hold(self) -> DragState:
        """No-hand frame: keep everything as it is."""
        return self._state

    def reset(self) -> None:
        """Drop any hold without moving the element."""
        if self._state is DragState.DRAGGING:
            logger.info("Drag reset, element stays at %s", _fmt(self.element.resting))
        self.element.held = False
        self.element.follow_position = None
        self._last_pointer = None
        self._state = DragState.IDLE

    def _transition(self, new_state: DragState) -> None:
        old_state = self._state
        self._state = new_state
        if new_state is DragState.DRAGGING:
            logger.info("Element grabbed at %s", _fmt(self.element.follow_position))
        else:
            logger.info("Element released at %s", _fmt(self.element.resting))
        if self._on_transition is not None:
            self._on_transition(old_state, new_state, self.element)


def _fmt(point: Optional[Tuple[float, float]]) -> str:
    if point is None:
        return "(none)"
    return f"({point[0]:.0f}, {point[1]:.0f})"
