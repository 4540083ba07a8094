"""
Client-side task store.

Holds the ordered task collection and the active search filter. Readers
(board view, drag controller) subscribe for change notifications; only the
mutation coordinator and the initial load path write to it.
"""
import logging
from typing import Callable, Dict, Iterable, List, Optional

from .schema import Column, Task

logger = logging.getLogger(__name__)

Snapshot = List[Task]


class TaskStore:
    """In-memory task cache, indexed by id, in order of first insertion."""

    def __init__(self, tasks: Iterable[Task] = ()):
        self._items: Dict[int, Task] = {}
        self._subscribers: List[Callable[["TaskStore"], None]] = []
        self.search_query = ""
        self.loading = False
        self.error: Optional[str] = None
        for task in tasks:
            self._items[task.id] = task

    # ──────────────────────────────────────────
    # Observers
    # ──────────────────────────────────────────

    def subscribe(self, callback: Callable[["TaskStore"], None]) -> Callable[[], None]:
        """Register a change callback. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self)
            except Exception as e:
                logger.error(f"Store subscriber {callback!r} failed: {e}")

    # ──────────────────────────────────────────
    # Reads
    # ──────────────────────────────────────────

    @property
    def tasks(self) -> List[Task]:
        return list(self._items.values())

    def get(self, task_id: int) -> Optional[Task]:
        return self._items.get(task_id)

    def __contains__(self, task_id: int) -> bool:
        return task_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def filtered(self) -> List[Task]:
        """Tasks matching the current search query."""
        return [t for t in self._items.values() if t.matches(self.search_query)]

    def by_column(self) -> Dict[Column, List[Task]]:
        """Filtered tasks grouped by column, every column present."""
        grouped: Dict[Column, List[Task]] = {column: [] for column in Column}
        for task in self.filtered():
            grouped[task.column].append(task)
        return grouped

    def snapshot(self) -> Snapshot:
        """Independent copy of the collection for later restore()."""
        return [task.copy() for task in self._items.values()]

    # ──────────────────────────────────────────
    # Writes
    # ──────────────────────────────────────────

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """Overwrite the whole collection (after a full fetch)."""
        self._items = {task.id: task for task in tasks}
        self._notify()

    def restore(self, snapshot: Snapshot) -> None:
        """Put back an exact snapshot taken with snapshot()."""
        self.replace_all(task.copy() for task in snapshot)

    def restore_record(self, snapshot: Snapshot, task_id: int) -> None:
        """
        Put one task back exactly as it was in `snapshot`, leaving the others alone.

        A task still present is replaced in place; a removed one is reinserted
        after the snapshot neighbours that still exist. A task absent from the
        snapshot is removed.
        """
        position = None
        previous = None
        for index, task in enumerate(snapshot):
            if task.id == task_id:
                position, previous = index, task
                break

        if previous is None:
            self.remove(task_id)
            return

        if task_id in self._items:
            self._items[task_id] = previous.copy()
            self._notify()
            return

        preceding = {t.id for t in snapshot[:position]}
        items = list(self._items.items())
        insert_at = 0
        for index, (other_id, _) in enumerate(items):
            if other_id in preceding:
                insert_at = index + 1
        items.insert(insert_at, (task_id, previous.copy()))
        self._items = dict(items)
        self._notify()

    def upsert(self, task: Task) -> None:
        """Insert a new task or replace an existing one in place."""
        self._items[task.id] = task
        self._notify()

    def remove(self, task_id: int) -> None:
        """Delete a task. Unknown ids are ignored."""
        if self._items.pop(task_id, None) is not None:
            self._notify()

    def set_column(self, task_id: int, column: Column) -> None:
        """Move one task to another column. Unknown ids are ignored."""
        task = self._items.get(task_id)
        if task is None:
            return
        self._items[task_id] = task.copy(column=column)
        self._notify()

    def set_search_query(self, text: str) -> None:
        self.search_query = text or ""
        self._notify()

    def set_loading(self, loading: bool) -> None:
        self.loading = loading
        if loading:
            self.error = None
        self._notify()

    def set_error(self, message: Optional[str]) -> None:
        self.error = message
        self.loading = False
        self._notify()
