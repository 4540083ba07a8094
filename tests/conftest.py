"""Shared test fixtures for the task board client and server."""

import sys
from pathlib import Path
from typing import Callable, Optional

import pytest

# Ensure the project root (taskboard package, kanban_server) is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskboard.api import TaskNotFound, TaskServiceError
from taskboard.events import NotificationCenter
from taskboard.schema import Column, Task, TaskFormData, utc_now
from taskboard.store import TaskStore


class FakeTaskService:
    """
    In-memory stand-in for TaskServiceClient.

    `fail` holds operation names ("move", "list", …) or (operation, task_id)
    pairs that raise TaskServiceError. `before(op, args)` runs at the start
    of every call, in the worker thread the coordinator uses.
    """

    def __init__(self, tasks=()):
        self.tasks = {t.id: t.copy() for t in tasks}
        self.calls = []
        self.fail = set()
        self.before: Optional[Callable] = None

    def _enter(self, op: str, *args):
        self.calls.append((op,) + args)
        if self.before is not None:
            self.before(op, args)
        task_id = args[0] if args and isinstance(args[0], int) else None
        if op in self.fail or (op, task_id) in self.fail:
            raise TaskServiceError(f"{op} failed (simulated)")

    def _get(self, task_id: int) -> Task:
        if task_id not in self.tasks:
            raise TaskNotFound(f"/tasks/{task_id}: not found", status=404)
        return self.tasks[task_id]

    def list_tasks(self):
        self._enter("list")
        return [t.copy() for t in self.tasks.values()]

    def move_task(self, task_id: int, column: Column):
        self._enter("move", task_id, column)
        task = self._get(task_id)
        task.column = column
        task.updated_at = utc_now()
        return task.copy()

    def create_task(self, form: TaskFormData):
        self._enter("create", form)
        task = Task(
            id=max(self.tasks, default=0) + 1,
            title=form.title,
            description=form.description,
            column=form.column,
        )
        self.tasks[task.id] = task
        return task.copy()

    def update_task(self, task: Task):
        self._enter("update", task.id)
        self._get(task.id)
        stored = task.copy(updated_at=utc_now())
        self.tasks[task.id] = stored
        return stored.copy()

    def delete_task(self, task_id: int):
        self._enter("delete", task_id)
        self._get(task_id)
        del self.tasks[task_id]

    def network_calls(self, op: Optional[str] = None):
        """Calls other than reconciling list fetches (or only `op` calls)."""
        if op:
            return [c for c in self.calls if c[0] == op]
        return [c for c in self.calls if c[0] != "list"]


def make_task(task_id: int, column: Column = Column.BACKLOG, title: str = None,
              description: str = "Some description text") -> Task:
    return Task(id=task_id, title=title or f"Task {task_id}", description=description, column=column)


@pytest.fixture
def two_tasks():
    return [make_task(1, Column.BACKLOG), make_task(2, Column.DONE)]


@pytest.fixture
def store(two_tasks):
    return TaskStore(t.copy() for t in two_tasks)


@pytest.fixture
def service(two_tasks):
    return FakeTaskService(two_tasks)


@pytest.fixture
def notifications():
    return NotificationCenter(dismiss_after=None)
