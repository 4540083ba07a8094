# Task board — remote task service client
#
# Thin HTTP client for the /tasks REST resource. Every call either returns
# parsed Task records or raises TaskServiceError; callers decide how to
# recover (the coordinator rolls back).

import logging
import threading
import requests
from typing import Any, Dict, List, Optional

from .schema import Column, Task, TaskFormData, format_timestamp, utc_now

logger = logging.getLogger(__name__)


class TaskServiceError(Exception):
    """Request rejected by the service or failed in transport."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class TaskNotFound(TaskServiceError):
    """The target task id does not exist on the server."""
    pass


class TaskServiceClient:
    """
    HTTP client for the task service.

    Calls arrive from asyncio worker threads, so each thread gets its own
    requests.Session. A session passed in explicitly is shared by every
    thread and must tolerate that.
    """

    def __init__(self, base_url: str = "http://localhost:4000", timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._shared_session = session
        self._local = threading.local()
        if session is not None:
            session.headers.update({"Content-Type": "application/json"})

    @property
    def session(self) -> requests.Session:
        """The session for the calling thread."""
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update({"Content-Type": "application/json"})
            self._local.session = session
        return session

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        """Send one request and return the decoded JSON body (None when empty)."""
        url = f"{self.base_url}{path}"
        logger.debug(f"[API Request] {method} {path}")
        try:
            r = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"[API Request Error] {method} {path}: {e}")
            raise TaskServiceError(f"{method} {path} failed: {e}")

        logger.debug(f"[API Response] {r.status_code} {path}")
        if r.status_code == 404:
            raise TaskNotFound(f"{method} {path}: not found", status=404)
        if not r.ok:
            logger.warning(f"[API Response Error] {r.status_code} {path}: {r.text[:200]}")
            raise TaskServiceError(f"{method} {path} returned {r.status_code}", status=r.status_code)

        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise TaskServiceError(f"{method} {path} returned invalid JSON: {e}", status=r.status_code)

    def _task(self, body: Any, path: str) -> Task:
        try:
            return Task.from_dict(body)
        except ValueError as e:
            raise TaskServiceError(f"{path} returned a malformed task: {e}")

    # ──────────────────────────────────────────
    # Resource operations
    # ──────────────────────────────────────────

    def list_tasks(self) -> List[Task]:
        """GET /tasks: the full task list."""
        body = self._request("GET", "/tasks")
        if not isinstance(body, list):
            raise TaskServiceError("/tasks did not return a list")
        return [self._task(item, "/tasks") for item in body]

    def get_task(self, task_id: int) -> Task:
        path = f"/tasks/{task_id}"
        return self._task(self._request("GET", path), path)

    def create_task(self, form: TaskFormData, created_at: Optional[str] = None) -> Task:
        """POST /tasks. createdAt defaults to now; the server assigns the id."""
        payload = form.to_dict()
        payload["createdAt"] = created_at or format_timestamp(utc_now())
        return self._task(self._request("POST", "/tasks", payload), "/tasks")

    def update_task(self, task: Task) -> Task:
        """PUT /tasks/:id: full replace with a refreshed updatedAt."""
        payload = task.to_dict()
        payload["updatedAt"] = format_timestamp(utc_now())
        path = f"/tasks/{task.id}"
        return self._task(self._request("PUT", path, payload), path)

    def patch_task(self, task_id: int, fields: Dict[str, Any]) -> Task:
        """PATCH /tasks/:id: partial update."""
        path = f"/tasks/{task_id}"
        return self._task(self._request("PATCH", path, fields), path)

    def move_task(self, task_id: int, column: Column) -> Task:
        """Move a task: PATCH carrying only column and updatedAt."""
        return self.patch_task(task_id, {
            "column": column.value,
            "updatedAt": format_timestamp(utc_now()),
        })

    def delete_task(self, task_id: int) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    def health(self) -> bool:
        """Check if the task service is reachable."""
        try:
            body = self._request("GET", "/health")
        except TaskServiceError:
            return False
        return isinstance(body, dict) and body.get("status") == "ok"
