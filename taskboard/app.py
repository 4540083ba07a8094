"""
Board wiring: builds the store, service client, coordinator and the
interaction helpers from one Config.
"""
import logging
from dataclasses import dataclass

from .api import TaskServiceClient
from .board import SearchBox
from .config import Config
from .coordinator import BoardCoordinator
from .drag import DragController
from .events import NotificationCenter
from .store import TaskStore

logger = logging.getLogger(__name__)


@dataclass
class BoardApp:
    """Everything a board host needs, wired together."""
    config: Config
    store: TaskStore
    service: object
    notifications: NotificationCenter
    coordinator: BoardCoordinator
    search: SearchBox
    drag: DragController

    @classmethod
    def from_config(cls, cfg: Config, service=None) -> "BoardApp":
        """
        Args:
            cfg: loaded configuration
            service: task service to use instead of a TaskServiceClient for cfg.api_url
        """
        if service is None:
            service = TaskServiceClient(cfg.api_url, timeout=cfg.request_timeout)
        store = TaskStore()
        notifications = NotificationCenter(dismiss_after=cfg.notification_dismiss_secs)
        coordinator = BoardCoordinator(store, service, notifications)
        logger.debug(f"Board wired to {cfg.api_url}")
        return cls(
            config=cfg,
            store=store,
            service=service,
            notifications=notifications,
            coordinator=coordinator,
            search=SearchBox(coordinator, delay_ms=cfg.search_debounce_ms),
            drag=DragController(store, on_move=coordinator.dispatch_move,
                                activation_distance=cfg.drag_activation_distance),
        )
