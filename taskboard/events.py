"""
Notification center: success/error signals from the mutation coordinator.

The coordinator emits one notification per settled mutation. The UI
subscribes and shows the current one; it auto-dismisses after a delay when
an asyncio event loop is running.
"""
import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Deque, List, Optional

logger = logging.getLogger(__name__)

# Most recent notifications kept for inspection
HISTORY_LIMIT = 50


class NotificationType(Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


@dataclass
class Notification:
    """One user-facing message."""
    message: str
    type: NotificationType = NotificationType.INFO
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationCenter:
    """Holds the visible notification and routes it to subscribers."""

    def __init__(self, dismiss_after: Optional[float] = 3.0, history_limit: int = HISTORY_LIMIT):
        self.dismiss_after = dismiss_after
        self.current: Optional[Notification] = None
        self.history: Deque[Notification] = deque(maxlen=history_limit)
        self.subscribers: List[Callable[[Optional[Notification]], None]] = []
        self._dismiss_handle: Optional[asyncio.TimerHandle] = None

    def subscribe(self, callback: Callable[[Optional[Notification]], None]) -> None:
        """Register a callback; it receives the new notification, or None on hide."""
        self.subscribers.append(callback)

    def _emit(self, notification: Optional[Notification]) -> None:
        for callback in self.subscribers:
            try:
                callback(notification)
            except Exception as e:
                logger.error(f"Notification subscriber failed: {e}")

    def show(self, message: str, type: NotificationType = NotificationType.INFO) -> Notification:
        """Replace the visible notification and schedule its dismissal."""
        notification = Notification(message=message, type=type)
        self.current = notification
        self.history.append(notification)
        log = logger.warning if type == NotificationType.ERROR else logger.info
        log(f"[{type.value}] {message}")
        self._emit(notification)
        self._schedule_dismiss()
        return notification

    def success(self, message: str) -> Notification:
        return self.show(message, NotificationType.SUCCESS)

    def error(self, message: str) -> Notification:
        return self.show(message, NotificationType.ERROR)

    def hide(self) -> None:
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
            self._dismiss_handle = None
        if self.current is None:
            return
        self.current = None
        self._emit(None)

    def _schedule_dismiss(self) -> None:
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
            self._dismiss_handle = None
        if not self.dismiss_after:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # No loop: stays visible until hide()
        self._dismiss_handle = loop.call_later(self.dismiss_after, self.hide)
