"""
Drag interaction controller.

Turns one pointer gesture over the board into at most one move intent.

Gesture lifecycle:
  Idle → Pressed → Dragging → Dropped | Cancelled

A press becomes a drag only after the pointer travels further than the
activation distance from where it went down; releasing before that is a
click. While dragging, the drop target is the zone under the pointer whose
corners lie closest to the dragged card's corners. Nothing here knows about
any rendering library: zones are plain rectangles registered by the view.
"""
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .schema import Column
from .store import TaskStore

logger = logging.getLogger(__name__)

DEFAULT_ACTIVATION_DISTANCE = 8.0


class DragState(Enum):
    IDLE = "idle"
    PRESSED = "pressed"
    DRAGGING = "dragging"
    DROPPED = "dropped"
    CANCELLED = "cancelled"


class DropOutcome(Enum):
    CLICK = "click"          # released before the activation distance
    CANCELLED = "cancelled"  # no drop target, or cancel()
    NOOP = "noop"            # dropped on the task's own column
    MOVED = "moved"          # one move intent dispatched


class GestureError(Exception):
    """Raised when a gesture call arrives in the wrong state."""
    pass


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in board coordinates."""
    x: float
    y: float
    width: float
    height: float

    def corners(self) -> List[Tuple[float, float]]:
        right, bottom = self.x + self.width, self.y + self.height
        return [(self.x, self.y), (right, self.y), (self.x, bottom), (right, bottom)]

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.width and self.y <= py <= self.y + self.height

    def translate(self, dx: float, dy: float) -> "Rect":
        return Rect(self.x + dx, self.y + dy, self.width, self.height)


def corner_distance(a: Rect, b: Rect) -> float:
    """Sum of distances between matching corners of two rectangles."""
    return sum(math.dist(p, q) for p, q in zip(a.corners(), b.corners()))


@dataclass(frozen=True)
class Zone:
    """A droppable column or a draggable card."""
    rect: Rect
    column: Optional[Column] = None
    task_id: Optional[int] = None

    @property
    def is_card(self) -> bool:
        return self.task_id is not None


@dataclass
class DropResult:
    outcome: DropOutcome
    task_id: Optional[int] = None
    column: Optional[Column] = None


class DragController:
    """Single-pointer drag state machine over registered column and card zones."""

    def __init__(self, store: TaskStore, on_move: Callable[[int, Column], object],
                 activation_distance: float = DEFAULT_ACTIVATION_DISTANCE):
        self.store = store
        self.on_move = on_move
        self.activation_distance = activation_distance
        self.state = DragState.IDLE
        self.columns: Dict[Column, Zone] = {}
        self.cards: Dict[int, Zone] = {}

        self.active_task_id: Optional[int] = None
        self.over: Optional[Zone] = None
        self._origin: Tuple[float, float] = (0.0, 0.0)
        self._start_rect: Optional[Rect] = None

    # ──────────────────────────────────────────
    # Layout
    # ──────────────────────────────────────────

    def register_column(self, column: Column, rect: Rect) -> None:
        self.columns[column] = Zone(rect=rect, column=column)

    def register_card(self, task_id: int, rect: Rect) -> None:
        self.cards[task_id] = Zone(rect=rect, task_id=task_id)

    def clear_zones(self) -> None:
        self.columns.clear()
        self.cards.clear()

    @property
    def active(self) -> bool:
        return self.state in (DragState.PRESSED, DragState.DRAGGING)

    # ──────────────────────────────────────────
    # Gesture
    # ──────────────────────────────────────────

    def press(self, task_id: int, x: float, y: float, rect: Optional[Rect] = None) -> None:
        """Pointer down on a card. `rect` defaults to the card's registered zone."""
        if self.active:
            raise GestureError(f"A drag of task {self.active_task_id} is already in progress")
        if rect is None:
            zone = self.cards.get(task_id)
            rect = zone.rect if zone else Rect(x, y, 0, 0)

        self.state = DragState.PRESSED
        self.active_task_id = task_id
        self.over = None
        self._origin = (x, y)
        self._start_rect = rect

    def move(self, x: float, y: float) -> Optional[Zone]:
        """Pointer moved. Returns the current drop target (None before activation)."""
        if not self.active:
            return None

        if self.state == DragState.PRESSED:
            if math.dist(self._origin, (x, y)) <= self.activation_distance:
                return None
            self.state = DragState.DRAGGING
            logger.debug(f"Drag started for task {self.active_task_id}")

        self.over = self._closest_zone(x, y)
        return self.over

    def release(self, x: float, y: float) -> DropResult:
        """Pointer up. Dispatches at most one move intent."""
        if not self.active:
            raise GestureError("release() without an active gesture")

        task_id = self.active_task_id
        if self.state == DragState.PRESSED:
            self._finish(DragState.IDLE)
            return DropResult(DropOutcome.CLICK, task_id=task_id)

        target = self._closest_zone(x, y)
        column = self._resolve_column(target)
        task = self.store.get(task_id)

        if column is None or task is None:
            self._finish(DragState.CANCELLED)
            return DropResult(DropOutcome.CANCELLED, task_id=task_id)

        self._finish(DragState.DROPPED)
        if task.column == column:
            return DropResult(DropOutcome.NOOP, task_id=task_id, column=column)

        logger.debug(f"Dropped task {task_id} on {column.value}")
        self.on_move(task_id, column)
        return DropResult(DropOutcome.MOVED, task_id=task_id, column=column)

    def cancel(self) -> DropResult:
        """Abandon the gesture (e.g. Escape). No move is dispatched."""
        task_id = self.active_task_id
        if self.active:
            self._finish(DragState.CANCELLED)
        return DropResult(DropOutcome.CANCELLED, task_id=task_id)

    # ──────────────────────────────────────────
    # Drop target resolution
    # ──────────────────────────────────────────

    def _dragged_rect(self, x: float, y: float) -> Rect:
        return self._start_rect.translate(x - self._origin[0], y - self._origin[1])

    def _closest_zone(self, x: float, y: float) -> Optional[Zone]:
        """Among zones under the pointer, the one with the closest corners."""
        candidates = [z for z in self.columns.values() if z.rect.contains(x, y)]
        candidates += [
            z for z in self.cards.values()
            if z.task_id != self.active_task_id and z.rect.contains(x, y)
        ]
        if not candidates:
            return None
        dragged = self._dragged_rect(x, y)
        return min(candidates, key=lambda z: corner_distance(dragged, z.rect))

    def _resolve_column(self, zone: Optional[Zone]) -> Optional[Column]:
        """A card target resolves to that card's current column."""
        if zone is None:
            return None
        if not zone.is_card:
            return zone.column
        task = self.store.get(zone.task_id)
        return task.column if task else None

    def _finish(self, state: DragState) -> None:
        self.state = state
        self.active_task_id = None
        self.over = None
        self._start_rect = None
