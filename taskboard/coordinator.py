"""
Optimistic mutation coordinator.

The only writer of the TaskStore. Each user intent (move, create, update,
delete) is applied to the store, sent to the task service, and reconciled:

    move / delete   optimistic apply → request → commit | rollback to snapshot
    create / update validate → request → upsert server record (no optimistic insert)

Every settled mutation schedules a reconciling refetch of the full list, so
the server is the final arbiter. Requests run in a worker thread via
asyncio.to_thread; the event loop stays free for other interaction.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Set, Union

from .api import TaskServiceError
from .events import NotificationCenter
from .forms import ValidationError, ensure_valid
from .optimistic import MutationKind, MutationState, PendingMutation, run_optimistic
from .schema import Column, Task, TaskFormData, task_summary
from .store import TaskStore

logger = logging.getLogger(__name__)

# ── User-facing messages ──
MOVE_OK = "Task moved successfully!"
MOVE_FAILED = "Failed to move task. Please try again."
CREATE_OK = "Task created successfully!"
CREATE_FAILED = "Failed to create task. Please try again."
UPDATE_OK = "Task updated successfully!"
UPDATE_FAILED = "Failed to update task. Please try again."
DELETE_OK = "Task deleted successfully!"
DELETE_FAILED = "Failed to delete task. Please try again."
DELETE_PROMPT = "Are you sure you want to delete this task?"
LOAD_FAILED = "Failed to load tasks. Please make sure the API server is running."


class MutationStatus(Enum):
    COMMITTED = "committed"      # server confirmed
    ROLLED_BACK = "rolled_back"  # request failed, store restored
    FAILED = "failed"            # request failed, nothing was applied
    REJECTED = "rejected"        # validation failed, nothing sent
    SKIPPED = "skipped"          # no-op (same column, unknown id, not confirmed)


@dataclass
class MutationResult:
    """Outcome of one coordinator call."""
    status: MutationStatus
    task: Optional[Task] = None
    errors: Dict[str, str] = field(default_factory=dict)
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == MutationStatus.COMMITTED


class BoardCoordinator:
    """Applies board mutations optimistically against a TaskStore."""

    def __init__(self, store: TaskStore, service, notifications: Optional[NotificationCenter] = None):
        """
        Args:
            store: the client-side cache this coordinator owns
            service: TaskServiceClient (or any object with the same methods)
            notifications: where success/error signals go
        """
        self.store = store
        self.service = service
        self.notifications = notifications or NotificationCenter()
        # Bumped on every local write; a refetch that started before a
        # later write is discarded instead of clobbering it
        self._generation = 0
        self._background: Set[asyncio.Task] = set()

    # ──────────────────────────────────────────
    # Plumbing
    # ──────────────────────────────────────────

    async def _call(self, func: Callable, *args):
        return await asyncio.to_thread(func, *args)

    def _touch(self) -> None:
        self._generation += 1

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def schedule_refresh(self) -> asyncio.Task:
        """Queue a reconciling refetch on the running loop."""
        return self._spawn(self.refresh())

    async def wait_settled(self) -> None:
        """Wait for every dispatched move and scheduled refetch to finish."""
        while self._background:
            await asyncio.gather(*list(self._background))

    # ──────────────────────────────────────────
    # Loading
    # ──────────────────────────────────────────

    async def load(self) -> bool:
        """Initial load: fetch every task into the store. Returns success."""
        self.store.set_loading(True)
        try:
            tasks = await self._call(self.service.list_tasks)
        except TaskServiceError as e:
            logger.error(f"Initial load failed: {e}")
            self.store.set_error(LOAD_FAILED)
            return False
        self._touch()
        self.store.replace_all(tasks)
        self.store.set_loading(False)
        logger.info(f"Loaded {len(tasks)} tasks")
        return True

    async def refresh(self) -> bool:
        """Reconciling refetch. Failures are logged; the store is left as is."""
        generation = self._generation
        try:
            tasks = await self._call(self.service.list_tasks)
        except TaskServiceError as e:
            logger.error(f"Refetch failed: {e}")
            return False
        if generation != self._generation:
            logger.debug("Refetch superseded by a newer local change; discarded")
            return False
        self.store.replace_all(tasks)
        return True

    # ──────────────────────────────────────────
    # Mutations
    # ──────────────────────────────────────────

    async def move(self, task_id: int, column: Union[Column, str]) -> MutationResult:
        """Move a task to another column, optimistically."""
        if not isinstance(column, Column):
            column = Column.from_str(column)

        current = self.store.get(task_id)
        if current is None or current.column == column:
            return MutationResult(MutationStatus.SKIPPED, task=current)

        mutation = PendingMutation(MutationKind.MOVE, task_id, params={"column": column})
        logger.info(f"Moving {task_summary(current)} → {column.value}")

        def apply():
            self._touch()
            self.store.set_column(task_id, column)

        def compensate(snapshot):
            self._touch()
            self.store.restore_record(snapshot, task_id)

        await run_optimistic(
            mutation,
            snapshot=self.store.snapshot,
            apply=apply,
            send=lambda: self._call(self.service.move_task, task_id, column),
            compensate=compensate,
            failures=(TaskServiceError,),
        )
        return self._settle(mutation, MOVE_OK, MOVE_FAILED)

    def dispatch_move(self, task_id: int, column: Union[Column, str]) -> asyncio.Task:
        """Fire-and-forget move (drag drop handler); awaited by wait_settled()."""
        return self._spawn(self.move(task_id, column))

    async def create(self, form: TaskFormData) -> MutationResult:
        """Validate and create a task. The store changes only after the server answers."""
        try:
            ensure_valid(form)
        except ValidationError as e:
            return MutationResult(MutationStatus.REJECTED, errors=e.errors)

        try:
            created = await self._call(self.service.create_task, form)
        except TaskServiceError as e:
            logger.warning(f"Create failed: {e}")
            self.notifications.error(CREATE_FAILED)
            return MutationResult(MutationStatus.FAILED, message=CREATE_FAILED)

        self._touch()
        self.store.upsert(created)
        logger.info(f"Created {task_summary(created)}")
        self.notifications.success(CREATE_OK)
        self.schedule_refresh()
        return MutationResult(MutationStatus.COMMITTED, task=created, message=CREATE_OK)

    async def update(self, task: Task) -> MutationResult:
        """Validate and fully replace a task on the server."""
        try:
            ensure_valid(task)
        except ValidationError as e:
            return MutationResult(MutationStatus.REJECTED, errors=e.errors)

        try:
            updated = await self._call(self.service.update_task, task)
        except TaskServiceError as e:
            logger.warning(f"Update of task {task.id} failed: {e}")
            self.notifications.error(UPDATE_FAILED)
            return MutationResult(MutationStatus.FAILED, task=self.store.get(task.id),
                                  message=UPDATE_FAILED)

        self._touch()
        self.store.upsert(updated)
        logger.info(f"Updated {task_summary(updated)}")
        self.notifications.success(UPDATE_OK)
        self.schedule_refresh()
        return MutationResult(MutationStatus.COMMITTED, task=updated, message=UPDATE_OK)

    async def delete(self, task_id: int, confirm: Callable[[str], bool]) -> MutationResult:
        """
        Delete a task after the caller's yes/no dialog approves it.

        `confirm` receives the prompt text and returns the user's answer;
        nothing is dispatched on a no.
        """
        if not confirm(DELETE_PROMPT):
            return MutationResult(MutationStatus.SKIPPED, task=self.store.get(task_id))

        removed = self.store.get(task_id)
        if removed is None:
            return MutationResult(MutationStatus.SKIPPED)

        mutation = PendingMutation(MutationKind.DELETE, task_id)

        def apply():
            self._touch()
            self.store.remove(task_id)

        def compensate(snapshot):
            self._touch()
            self.store.restore_record(snapshot, task_id)

        await run_optimistic(
            mutation,
            snapshot=self.store.snapshot,
            apply=apply,
            send=lambda: self._call(self.service.delete_task, task_id),
            compensate=compensate,
            failures=(TaskServiceError,),
        )
        result = self._settle(mutation, DELETE_OK, DELETE_FAILED)
        result.task = removed
        return result

    def _settle(self, mutation: PendingMutation, ok_message: str, failed_message: str) -> MutationResult:
        """Notify and schedule the reconciling refetch for a finished optimistic mutation."""
        self.schedule_refresh()
        if mutation.state == MutationState.COMMITTED:
            self.notifications.success(ok_message)
            return MutationResult(MutationStatus.COMMITTED, task=self.store.get(mutation.target_id),
                                  message=ok_message)
        self.notifications.error(failed_message)
        return MutationResult(MutationStatus.ROLLED_BACK, task=self.store.get(mutation.target_id),
                              message=failed_message)

    # ──────────────────────────────────────────
    # Search
    # ──────────────────────────────────────────

    def set_search_query(self, text: str) -> None:
        self.store.set_search_query(text)
