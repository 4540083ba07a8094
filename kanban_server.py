#!/usr/bin/env python3
"""
Task Board API Server
---------------------
Serves the /tasks REST resource from a single JSON file (db.json).

Usage:
    python kanban_server.py
    python kanban_server.py --port 4000 --db ./db.json

    # Or via the installed entry point
    taskboard-server --host 0.0.0.0

API:
    GET    /tasks          → Task[]   (optional ?column=…&q=…)
    GET    /tasks/<id>     → Task | 404
    POST   /tasks          → 201 Task (id assigned)
    PUT    /tasks/<id>     → Task | 404   full replace, id preserved
    PATCH  /tasks/<id>     → Task | 404   partial update
    DELETE /tasks/<id>     → {} | 404
    GET    /health         → { status: "ok", message }
"""

import json
import os
import threading
from pathlib import Path

from flask import Flask, jsonify, request

from taskboard.schema import Column, format_timestamp, parse_timestamp, utc_now

# ── Path setup ───────────────────────────────────────────────────────────────
DEFAULT_DB = Path(__file__).parent / "db.json"
DEFAULT_PORT = 4000

app = Flask(__name__)

# One writer at a time for the JSON file (Flask serves threaded)
_db_lock = threading.Lock()

# Sample board written to a fresh database
SEED_TASKS = [
    (1, "Design homepage", "Include hero section with modern design and responsive layout", "backlog"),
    (2, "Set up authentication", "Implement user login and registration with JWT tokens", "backlog"),
    (3, "Create API endpoints", "Build RESTful API for user management and data operations", "in_progress"),
    (4, "Code review PR #123", "Review authentication implementation and provide feedback", "in_progress"),
    (5, "Update documentation", "Add API documentation and update README with latest changes", "review"),
    (6, "Set up project", "Initialize project with typed models and necessary dependencies", "review"),
    (7, "Install dependencies", "Install the HTTP client, web framework and test tooling", "done"),
    (8, "Configure styling", "Set up the board theme with custom configuration for the project", "done"),
    (9, "Implement dark mode", "Add dark mode toggle with persistent user preference", "done"),
    (10, "Add unit tests", "Write unit tests for the store and the mutation coordinator", "done"),
]


def seed_tasks() -> list:
    tasks = []
    for task_id, title, description, column in SEED_TASKS:
        created = f"2025-11-11T{task_id - 1:02d}:00:00.000Z"
        tasks.append({
            "id": task_id,
            "title": title,
            "description": description,
            "column": column,
            "createdAt": created,
            "updatedAt": created,
        })
    return tasks


# ── Storage ──────────────────────────────────────────────────────────────────

def get_db_path() -> Path:
    env = os.environ.get("TASKBOARD_DB")
    if env:
        return Path(env)
    return DEFAULT_DB


def load_tasks() -> list:
    """Read the task list, seeding the file on first use."""
    db = get_db_path()
    if not db.exists():
        tasks = seed_tasks()
        save_tasks(tasks)
        app.logger.info(f"Seeded {db} with {len(tasks)} sample tasks")
        return tasks
    with open(db, encoding="utf-8") as f:
        data = json.load(f)
    return data.get("tasks", []) if isinstance(data, dict) else []


def save_tasks(tasks: list) -> None:
    """Atomic write: write to temp, then rename."""
    db = get_db_path()
    db.parent.mkdir(parents=True, exist_ok=True)
    tmp_file = db.with_suffix(db.suffix + ".tmp")
    with open(tmp_file, "w", encoding="utf-8") as f:
        json.dump({"tasks": tasks}, f, indent=2, ensure_ascii=False)
    tmp_file.replace(db)


def find_index(tasks: list, task_id: int) -> int:
    for index, task in enumerate(tasks):
        if task.get("id") == task_id:
            return index
    return -1


# ── Validation ───────────────────────────────────────────────────────────────

class InvalidTask(Exception):
    pass


def read_body() -> dict:
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise InvalidTask("Invalid request body")
    return data


def check_fields(task: dict) -> None:
    """Reject records the board client could not display."""
    title = task.get("title")
    if not isinstance(title, str) or not title.strip():
        raise InvalidTask("title is required")
    if "description" in task and not isinstance(task["description"], str):
        raise InvalidTask("description must be a string")
    try:
        Column.from_str(task.get("column", ""))
    except ValueError:
        raise InvalidTask(f"Invalid column: {task.get('column')!r}")


def stamp(task: dict, now: str) -> dict:
    """Fill updatedAt and keep it from preceding createdAt."""
    created = task.get("createdAt") or now
    updated = task.get("updatedAt") or now
    if not isinstance(created, str) or not isinstance(updated, str):
        raise InvalidTask("createdAt/updatedAt must be ISO-8601 timestamps")
    try:
        if parse_timestamp(updated) < parse_timestamp(created):
            updated = created
    except ValueError:
        raise InvalidTask("createdAt/updatedAt must be ISO-8601 timestamps")
    task["createdAt"] = created
    task["updatedAt"] = updated
    return task


@app.errorhandler(InvalidTask)
def handle_bad_request(e):
    return jsonify({"error": str(e)}), 400


# ── CORS ─────────────────────────────────────────────────────────────────────

@app.before_request
def preflight():
    if request.method == "OPTIONS":
        return app.make_default_options_response()


@app.after_request
def add_cors_headers(response):
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, PATCH, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = (
        "Origin, X-Requested-With, Content-Type, Accept, Authorization"
    )
    return response


# ── Routes ───────────────────────────────────────────────────────────────────

@app.route("/tasks", methods=["GET"])
def list_tasks():
    column = request.args.get("column")
    query = request.args.get("q", "").strip().lower()
    with _db_lock:
        tasks = load_tasks()
    if column:
        tasks = [t for t in tasks if t.get("column") == column]
    if query:
        tasks = [
            t for t in tasks
            if query in t.get("title", "").lower() or query in t.get("description", "").lower()
        ]
    return jsonify(tasks)


@app.route("/tasks/<int:task_id>", methods=["GET"])
def get_task(task_id):
    with _db_lock:
        tasks = load_tasks()
    index = find_index(tasks, task_id)
    if index == -1:
        return jsonify({"error": "Task not found"}), 404
    return jsonify(tasks[index])


@app.route("/tasks", methods=["POST"])
def create_task():
    data = read_body()
    now = format_timestamp(utc_now())
    task = {
        "title": data.get("title"),
        "description": data.get("description", ""),
        "column": data.get("column", Column.BACKLOG.value),
        "createdAt": data.get("createdAt") or now,
        "updatedAt": now,
    }
    check_fields(task)
    stamp(task, now)

    with _db_lock:
        tasks = load_tasks()
        task = {"id": max((t.get("id", 0) for t in tasks), default=0) + 1, **task}
        tasks.append(task)
        save_tasks(tasks)

    app.logger.info(f"Created task {task['id']}: {task['title']}")
    return jsonify(task), 201


def _write_task(task_id: int, merge: bool):
    data = read_body()
    now = format_timestamp(utc_now())
    with _db_lock:
        tasks = load_tasks()
        index = find_index(tasks, task_id)
        if index == -1:
            return jsonify({"error": "Task not found"}), 404

        existing = tasks[index]
        if merge:
            task = {**existing, **data}
        else:
            # Full replace; createdAt survives when the body omits it
            task = {"createdAt": existing.get("createdAt"), **data}
        task["id"] = task_id
        if not data.get("updatedAt"):
            task["updatedAt"] = now
        check_fields(task)
        stamp(task, now)

        tasks[index] = task
        save_tasks(tasks)
    return jsonify(task)


@app.route("/tasks/<int:task_id>", methods=["PUT"])
def replace_task(task_id):
    return _write_task(task_id, merge=False)


@app.route("/tasks/<int:task_id>", methods=["PATCH"])
def patch_task(task_id):
    return _write_task(task_id, merge=True)


@app.route("/tasks/<int:task_id>", methods=["DELETE"])
def delete_task(task_id):
    with _db_lock:
        tasks = load_tasks()
        index = find_index(tasks, task_id)
        if index == -1:
            return jsonify({"error": "Task not found"}), 404
        removed = tasks.pop(index)
        save_tasks(tasks)
    app.logger.info(f"Deleted task {task_id}: {removed.get('title')}")
    return jsonify({})


@app.route("/health")
def health():
    return jsonify({"status": "ok", "message": "Kanban API is running"})


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    import argparse
    import logging

    parser = argparse.ArgumentParser(description="Task Board API Server")
    parser.add_argument("--host", default="127.0.0.1",
                        help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", DEFAULT_PORT)))
    parser.add_argument("--db", help="Path to db.json (overrides TASKBOARD_DB env var)")
    args = parser.parse_args(argv)

    if args.db:
        os.environ["TASKBOARD_DB"] = args.db

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [taskboard-server] %(levelname)s: %(message)s",
    )

    print(f"""
╔═══════════════════════════════════════╗
║  Task Board API Server                ║
╠═══════════════════════════════════════╣
║  URL:  http://{args.host}:{args.port:<20}║
║  DB:   {str(get_db_path()):<31}║
╚═══════════════════════════════════════╝
""")
    app.run(host=args.host, port=args.port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
