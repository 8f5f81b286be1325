from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


TODO = "TODO"
IN_PROGRESS = "IN_PROGRESS"
DONE = "DONE"

# (key, label) en orden de columna
STATUSES: Tuple[Tuple[str, str], ...] = (
    (TODO, "To Do"),
    (IN_PROGRESS, "In Progress"),
    (DONE, "Done"),
)
STATUS_KEYS: Tuple[str, ...] = tuple(key for key, _ in STATUSES)

# fields the board understands; everything else rides along in Task.extra
_TASK_FIELDS = ("_id", "id", "title", "description", "status", "order", "project", "projectId")


def normalize_status(value: Any) -> str:
    """Map a wire status onto one of the three columns (unknown -> TODO)."""
    if isinstance(value, str):
        key = value.strip().upper().replace("-", "_").replace(" ", "_")
        if key in STATUS_KEYS:
            return key
    return TODO


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    status: str = TODO
    order: int = 0
    description: Optional[str] = None
    project: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Task":
        task_id = record.get("_id") or record.get("id")
        if not task_id:
            raise ValueError(f"Task record without id: {record!r}")
        try:
            order = max(int(record.get("order") or 0), 0)
        except (TypeError, ValueError):
            order = 0
        return cls(
            id=str(task_id),
            title=record.get("title") or "",
            status=normalize_status(record.get("status")),
            order=order,
            description=record.get("description"),
            project=record.get("project") or record.get("projectId"),
            extra={k: v for k, v in record.items() if k not in _TASK_FIELDS},
        )


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Project":
        return cls(
            id=str(record.get("_id") or record.get("id") or ""),
            name=record.get("name") or "",
            description=record.get("description"),
            created_at=record.get("createdAt") or record.get("created_at"),
        )


# severities for Notification
INFO = "info"
WARNING = "warning"
ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """Boundary-crossing message for the presentation layer to display."""
    message: str
    severity: str = INFO
