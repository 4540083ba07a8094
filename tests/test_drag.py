"""
Tests for the drag interaction controller.

Board layout used throughout: four 100px wide columns side by side, cards
90x40 stacked inside them.
"""
import asyncio

import pytest

from taskboard.coordinator import BoardCoordinator
from taskboard.drag import (
    DragController,
    DragState,
    DropOutcome,
    GestureError,
    Rect,
    corner_distance,
)
from taskboard.schema import Column
from taskboard.store import TaskStore



def column_x(column: Column) -> int:
    return list(Column).index(column) * 100


def card_rect(column: Column, slot: int = 0) -> Rect:
    return Rect(column_x(column) + 5, 10 + 50 * slot, 90, 40)


def layout(controller: DragController, store: TaskStore) -> None:
    for column in Column:
        controller.register_column(column, Rect(column_x(column), 0, 100, 400))
    slots = {}
    for task in store.tasks:
        slot = slots.get(task.column, 0)
        controller.register_card(task.id, card_rect(task.column, slot))
        slots[task.column] = slot + 1


@pytest.fixture
def moves():
    return []


@pytest.fixture
def controller(store, moves):
    ctl = DragController(store, on_move=lambda task_id, column: moves.append((task_id, column)))
    layout(ctl, store)
    return ctl


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Activation
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_short_press_is_a_click(controller, moves):
    controller.press(1, 50, 30)
    assert controller.move(55, 30) is None
    result = controller.release(55, 30)

    assert result.outcome == DropOutcome.CLICK
    assert result.task_id == 1
    assert controller.state == DragState.IDLE
    assert moves == []


def test_exactly_activation_distance_does_not_start_drag(controller):
    controller.press(1, 50, 30)
    controller.move(58, 30)
    assert controller.state == DragState.PRESSED


def test_beyond_activation_distance_starts_drag(controller):
    controller.press(1, 50, 30)
    over = controller.move(150, 300)
    assert controller.state == DragState.DRAGGING
    assert over.column == Column.IN_PROGRESS


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Drops
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_drop_on_column_dispatches_one_move(controller, moves):
    controller.press(1, 50, 30)
    controller.move(150, 300)
    result = controller.release(150, 300)

    assert result.outcome == DropOutcome.MOVED
    assert result.column == Column.IN_PROGRESS
    assert moves == [(1, Column.IN_PROGRESS)]
    assert controller.state == DragState.DROPPED
    assert not controller.active


def test_drop_outside_every_zone_cancels(controller, moves):
    controller.press(1, 50, 30)
    controller.move(150, 300)
    result = controller.release(150, 500)

    assert result.outcome == DropOutcome.CANCELLED
    assert controller.state == DragState.CANCELLED
    assert moves == []


def test_drop_on_card_uses_that_cards_current_column(store, controller, moves):
    # Task 2 is drawn in Done but the store already has it in Review
    store.set_column(2, Column.REVIEW)

    controller.press(1, 50, 30)
    controller.move(340, 30)
    result = controller.release(340, 30)

    assert result.outcome == DropOutcome.MOVED
    assert moves == [(1, Column.REVIEW)]


def test_closest_corners_prefers_card_over_column(controller):
    controller.press(1, 50, 30)
    over = controller.move(340, 30)
    assert over.is_card
    assert over.task_id == 2


def test_drop_on_own_column_is_noop(controller, moves):
    controller.press(1, 50, 30)
    controller.move(50, 300)
    result = controller.release(50, 300)

    assert result.outcome == DropOutcome.NOOP
    assert result.column == Column.BACKLOG
    assert moves == []


def test_drop_of_vanished_task_cancels(store, controller, moves):
    controller.press(1, 50, 30)
    controller.move(150, 300)
    store.remove(1)
    result = controller.release(150, 300)

    assert result.outcome == DropOutcome.CANCELLED
    assert moves == []


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Gesture state
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_one_gesture_at_a_time(controller):
    controller.press(1, 50, 30)
    with pytest.raises(GestureError):
        controller.press(2, 350, 30)


def test_release_without_press_raises(controller):
    with pytest.raises(GestureError):
        controller.release(0, 0)


def test_cancel_abandons_drag(controller, moves):
    controller.press(1, 50, 30)
    controller.move(150, 300)
    result = controller.cancel()

    assert result.outcome == DropOutcome.CANCELLED
    assert controller.state == DragState.CANCELLED
    assert moves == []

    # A fresh gesture may start afterwards
    controller.press(2, 350, 30)
    assert controller.state == DragState.PRESSED


def test_corner_distance():
    a = Rect(0, 0, 10, 10)
    assert corner_distance(a, a) == 0
    assert corner_distance(a, a.translate(3, 4)) == 20


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Drag → coordinator
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_drop_dispatches_optimistic_move(store, service, notifications):
    coordinator = BoardCoordinator(store, service, notifications)
    controller = DragController(store, on_move=coordinator.dispatch_move)
    layout(controller, store)

    async def scenario():
        controller.press(1, 50, 30)
        controller.move(250, 200)
        result = controller.release(250, 200)
        await asyncio.sleep(0)
        # Optimistic: visible before the request settles
        assert store.get(1).column == Column.REVIEW
        await coordinator.wait_settled()
        return result

    result = asyncio.run(scenario())
    assert result.outcome == DropOutcome.MOVED
    assert service.network_calls() == [("move", 1, Column.REVIEW)]
    assert store.get(1).column == Column.REVIEW
