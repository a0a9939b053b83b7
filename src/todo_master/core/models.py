# src/todo_master/core/models.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .errors import ValidationFailed

TaskId = str


def normalize_text(text: str | None) -> str:
    """Strip surrounding whitespace; raise ValidationFailed if nothing is left."""
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationFailed("task text is empty")
    return cleaned


def _timestamp(value: Any) -> float:
    # Missing or non-numeric timestamps count as 0.0, i.e. oldest.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


@dataclass(frozen=True, slots=True)
class Task:
    id: TaskId
    text: str
    completed: bool
    created_at: float

    def to_fields(self) -> dict[str, Any]:
        """Document fields as stored in a collection (id lives outside the record)."""
        return {"text": self.text, "completed": self.completed, "createdAt": self.created_at}

    @classmethod
    def from_document(cls, doc_id: str, fields: dict[str, Any]) -> Task | None:
        """Map a stored record. Records without usable text are skipped (None)."""
        raw_text = fields.get("text")
        try:
            text = normalize_text(raw_text if isinstance(raw_text, str) else None)
        except ValidationFailed:
            return None
        return cls(
            id=str(doc_id),
            text=text,
            completed=fields.get("completed") is True,
            created_at=_timestamp(fields.get("createdAt")),
        )


@dataclass(frozen=True, slots=True)
class EditSession:
    """The single task currently being edited and its uncommitted draft."""

    task_id: TaskId
    draft: str
