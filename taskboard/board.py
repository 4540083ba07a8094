"""
Board view: a pure function of TaskStore state.

Groups the search-filtered tasks by column and renders them as text. The
view only reads the store; search input is written back through the
coordinator after a debounce.
"""
import asyncio
from typing import Dict, List, Optional

from .schema import Column, Task
from .store import TaskStore


def column_view(store: TaskStore) -> Dict[Column, List[Task]]:
    """Filtered tasks per column, in display order."""
    return store.by_column()


def render_board(store: TaskStore, width: int = 60) -> str:
    """Format the board as plain text, one block per column."""
    if store.loading:
        return "Loading tasks…"
    if store.error:
        return f"❌ {store.error}"

    lines = []
    if store.search_query:
        lines.append(f"🔍 Search: {store.search_query}")

    for column, tasks in column_view(store).items():
        lines.append(f"{column.icon} {column.title} ({len(tasks)})")
        if not tasks:
            lines.append("   (empty)")
        for task in tasks:
            label = f"   #{task.id} {task.title}"
            if len(label) > width:
                label = label[:width - 1] + "…"
            lines.append(label)

    return "\n".join(lines)


class SearchBox:
    """
    Debounced search input.

    Each keystroke restarts the timer; the query reaches the store only once
    typing pauses for `delay_ms`. clear() applies immediately.
    """

    def __init__(self, coordinator, delay_ms: int = 300):
        self.coordinator = coordinator
        self.delay_ms = delay_ms
        self.text = ""
        self._handle: Optional[asyncio.TimerHandle] = None

    def type(self, text: str) -> None:
        """Set the input text and (re)start the debounce timer."""
        self.text = text
        self._cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._apply()
            return
        self._handle = loop.call_later(self.delay_ms / 1000, self._apply)

    def clear(self) -> None:
        self.text = ""
        self._cancel()
        self._apply()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def _apply(self) -> None:
        self._handle = None
        self.coordinator.set_search_query(self.text)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
