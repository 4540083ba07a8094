"""
Tests for the task service HTTP client.

Requests never leave the process: a Session subclass answers from a queue
of canned responses and records what was sent.
"""
import json
import threading

import pytest
import requests

from taskboard.api import TaskNotFound, TaskServiceClient, TaskServiceError
from taskboard.schema import Column, Task, TaskFormData

from conftest import make_task


WIRE_TASK = {
    "id": 3,
    "title": "Create API endpoints",
    "description": "Build RESTful API for user management and data operations",
    "column": "in_progress",
    "createdAt": "2025-11-11T02:00:00.000Z",
    "updatedAt": "2025-11-11T02:00:00.000Z",
}


def make_response(status: int = 200, body=None, raw: bytes = None) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.encoding = "utf-8"
    if raw is not None:
        resp._content = raw
    elif body is not None:
        resp._content = json.dumps(body).encode("utf-8")
    else:
        resp._content = b""
    return resp


class CannedSession(requests.Session):
    def __init__(self):
        super().__init__()
        self.sent = []
        self.responses = []

    def request(self, method, url, **kwargs):
        self.sent.append((method, url, kwargs))
        answer = self.responses.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.fixture
def session():
    return CannedSession()


@pytest.fixture
def client(session):
    return TaskServiceClient("http://api.test/", timeout=2.5, session=session)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Requests
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_list_tasks(client, session):
    session.responses.append(make_response(200, [WIRE_TASK]))
    tasks = client.list_tasks()

    assert tasks == [Task.from_dict(WIRE_TASK)]
    method, url, kwargs = session.sent[0]
    assert (method, url) == ("GET", "http://api.test/tasks")
    assert kwargs["timeout"] == 2.5


def test_json_content_type(client, session):
    assert session.headers["Content-Type"] == "application/json"


def test_move_sends_only_column_and_updated_at(client, session):
    session.responses.append(make_response(200, dict(WIRE_TASK, column="review")))
    task = client.move_task(3, Column.REVIEW)

    assert task.column == Column.REVIEW
    method, url, kwargs = session.sent[0]
    assert (method, url) == ("PATCH", "http://api.test/tasks/3")
    assert set(kwargs["json"]) == {"column", "updatedAt"}
    assert kwargs["json"]["column"] == "review"


def test_create_sends_form_and_created_at(client, session):
    session.responses.append(make_response(201, WIRE_TASK))
    form = TaskFormData(title="Create API endpoints", description="Build RESTful API", column=Column.IN_PROGRESS)
    task = client.create_task(form, created_at="2025-11-11T02:00:00.000Z")

    assert task.id == 3
    payload = session.sent[0][2]["json"]
    assert payload == {
        "title": "Create API endpoints",
        "description": "Build RESTful API",
        "column": "in_progress",
        "createdAt": "2025-11-11T02:00:00.000Z",
    }


def test_update_refreshes_updated_at(client, session):
    session.responses.append(make_response(200, WIRE_TASK))
    task = Task.from_dict(WIRE_TASK)
    client.update_task(task)

    method, url, kwargs = session.sent[0]
    assert (method, url) == ("PUT", "http://api.test/tasks/3")
    assert kwargs["json"]["createdAt"] == WIRE_TASK["createdAt"]
    assert kwargs["json"]["updatedAt"] > WIRE_TASK["updatedAt"]


def test_delete_accepts_empty_object(client, session):
    session.responses.append(make_response(200, {}))
    assert client.delete_task(3) is None
    assert session.sent[0][:2] == ("DELETE", "http://api.test/tasks/3")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Failures
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_not_found(client, session):
    session.responses.append(make_response(404, {"error": "Task not found"}))
    with pytest.raises(TaskNotFound) as exc:
        client.move_task(99, Column.DONE)
    assert exc.value.status == 404


def test_server_error_carries_status(client, session):
    session.responses.append(make_response(500, {"error": "boom"}))
    with pytest.raises(TaskServiceError) as exc:
        client.list_tasks()
    assert exc.value.status == 500
    assert not isinstance(exc.value, TaskNotFound)


def test_transport_error(client, session):
    session.responses.append(requests.ConnectionError("connection refused"))
    with pytest.raises(TaskServiceError):
        client.delete_task(1)


def test_timeout(client, session):
    session.responses.append(requests.Timeout("read timed out"))
    with pytest.raises(TaskServiceError):
        client.update_task(make_task(1))


def test_invalid_json(client, session):
    session.responses.append(make_response(200, raw=b"<html>oops</html>"))
    with pytest.raises(TaskServiceError):
        client.list_tasks()


def test_malformed_task(client, session):
    session.responses.append(make_response(200, [{"id": "x", "title": "bad"}]))
    with pytest.raises(TaskServiceError):
        client.list_tasks()


def test_health(client, session):
    session.responses.append(make_response(200, {"status": "ok", "message": "Kanban API is running"}))
    session.responses.append(requests.ConnectionError("down"))
    assert client.health() is True
    assert client.health() is False


@pytest.mark.parametrize("record", [
    {"id": 1, "title": "A", "column": "backlog", "createdAt": 12345},
    {"id": 1, "title": "A", "column": "backlog", "updatedAt": ["2025"]},
    {"id": 1, "title": "A", "column": 7},
    {"id": 1, "title": "A", "description": 42},
])
def test_wrongly_typed_fields_raise_service_error(client, session, record):
    session.responses.append(make_response(200, [record]))
    with pytest.raises(TaskServiceError):
        client.list_tasks()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Sessions
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_each_thread_gets_its_own_session():
    client = TaskServiceClient("http://api.test")
    main_session = client.session
    assert client.session is main_session
    assert main_session.headers["Content-Type"] == "application/json"

    seen = []
    worker = threading.Thread(target=lambda: seen.append(client.session))
    worker.start()
    worker.join()

    assert seen[0] is not main_session
    assert isinstance(seen[0], requests.Session)


def test_injected_session_is_shared(client, session):
    seen = []
    worker = threading.Thread(target=lambda: seen.append(client.session))
    worker.start()
    worker.join()
    assert seen == [session]
    assert client.session is session
