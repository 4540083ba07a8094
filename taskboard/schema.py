"""
Task board schema.

Column order (left to right):
  Backlog → In Progress → Review → Done

Tasks move freely between columns; the server assigns ids and timestamps.
"""
from enum import Enum
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Dict, Any


class Column(Enum):
    """The four fixed board columns, in display order."""
    BACKLOG = "backlog"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"

    @classmethod
    def from_str(cls, value: str) -> "Column":
        """Parse a wire value. Raises ValueError for unknown columns."""
        try:
            return cls(value.strip().lower())
        except (AttributeError, ValueError):
            raise ValueError(f"Invalid column: {value!r}")

    @property
    def title(self) -> str:
        return COLUMN_META[self][0]

    @property
    def icon(self) -> str:
        return COLUMN_META[self][1]


# Display title and icon per column
COLUMN_META = {
    Column.BACKLOG: ("Backlog", "📋"),
    Column.IN_PROGRESS: ("In Progress", "🚀"),
    Column.REVIEW: ("Review", "👀"),
    Column.DONE: ("Done", "✅"),
}


def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds (wire precision)."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with milliseconds and a Z suffix, e.g. 2025-11-11T00:00:00.000Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse any ISO-8601 timestamp; naive values are taken as UTC."""
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {type(value).__name__}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class TaskFormData:
    """Editable fields of a task, as entered in the task form."""
    title: str = ""
    description: str = ""
    column: Column = Column.BACKLOG

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "column": self.column.value,
        }


@dataclass
class Task:
    """One card on the board."""

    id: int
    title: str
    description: str = ""
    column: Column = Column.BACKLOG
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def copy(self, **changes) -> "Task":
        """Return an independent copy, optionally with fields changed."""
        return replace(self, **changes)

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on title or description."""
        if not query:
            return True
        needle = query.lower()
        return needle in self.title.lower() or needle in self.description.lower()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire shape (camelCase timestamps)."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "column": self.column.value,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """
        Deserialize from the wire shape.

        Raises ValueError if a field is missing or malformed.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Task record must be an object, got {type(data).__name__}")
        try:
            task_id = int(data["id"])
        except (KeyError, TypeError, ValueError):
            raise ValueError(f"Task record has no valid id: {data.get('id')!r}")

        title = data.get("title")
        if not isinstance(title, str) or not title:
            raise ValueError(f"Task {task_id} has no title")

        description = data.get("description") or ""
        if not isinstance(description, str):
            raise ValueError(f"Task {task_id} description must be a string")

        created_at = parse_timestamp(data["createdAt"]) if data.get("createdAt") else utc_now()
        # Records written before updatedAt existed take createdAt
        updated_at = parse_timestamp(data["updatedAt"]) if data.get("updatedAt") else created_at

        return cls(
            id=task_id,
            title=title,
            description=description,
            column=Column.from_str(data.get("column", "backlog")),
            created_at=created_at,
            updated_at=updated_at,
        )


def task_summary(task: Optional[Task]) -> str:
    """One-line description of a task for log messages."""
    if task is None:
        return "<missing>"
    return f"#{task.id} {task.title!r} [{task.column.value}]"
