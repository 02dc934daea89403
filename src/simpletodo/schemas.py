from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Shared type for incoming deadlines which can be a date, datetime, or ISO8601 string
DeadlineInput = Union[date, datetime, str]

TITLE_MAX_LENGTH = 200
LABEL_MAX_LENGTH = 200


# PUBLIC_INTERFACE
def parse_deadline(value: Optional[DeadlineInput]) -> Optional[datetime]:
    """
    Normalize deadline input into a datetime.
    - None and blank strings mean "no deadline".
    - A date (not datetime) becomes a datetime at 00:00.
    - A string is parsed as an ISO datetime first, then as an ISO date.

    Raises:
        ValueError: if the value cannot be interpreted as a date or datetime.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, 0, 0, 0)

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return datetime.fromisoformat(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
                return datetime(d.year, d.month, d.day, 0, 0, 0)
            except ValueError as e:
                raise ValueError(
                    "Invalid deadline format. Use ISO8601 date or datetime string (e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e

    raise ValueError("Invalid type for deadline; expected date, datetime, or ISO8601 string.")


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    s = value.strip()
    return s or None


# PUBLIC_INTERFACE
class TodoIn(BaseModel):
    """
    Request body for creating or replacing a Todo through the JSON API.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "deadline": "2025-02-01",
            }
        }
    )

    title: str = Field(..., description="Short title for the todo item (at most 200 characters once stripped)")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    deadline: Optional[datetime] = Field(
        default=None,
        description="Deadline of the todo item. Accepts ISO8601 date or datetime; dates are set to 00:00",
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace, then reject blank or over-long titles.
        """
        s = v.strip()
        if not s:
            raise ValueError("title must not be empty")
        if len(s) > TITLE_MAX_LENGTH:
            raise ValueError(f"title must be at most {TITLE_MAX_LENGTH} characters")
        return s

    @field_validator("description")
    @classmethod
    def clean_description(cls, v: Optional[str]) -> Optional[str]:
        return _clean_text(v)

    @field_validator("deadline", mode="before")
    @classmethod
    def validate_deadline(cls, v: Optional[DeadlineInput]) -> Optional[datetime]:
        """
        Normalize deadline from str/date/datetime to datetime.
        """
        return parse_deadline(v)


# PUBLIC_INTERFACE
class SubtaskIn(BaseModel):
    """Request body for adding a checklist entry through the JSON API."""

    model_config = ConfigDict(json_schema_extra={"example": {"label": "2% milk"}})

    label: str = Field(..., description="Checklist entry text (at most 200 characters once stripped)")

    @field_validator("label")
    @classmethod
    def validate_label(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("label must not be empty")
        if len(s) > LABEL_MAX_LENGTH:
            raise ValueError(f"label must be at most {LABEL_MAX_LENGTH} characters")
        return s


# PUBLIC_INTERFACE
class SubtaskOut(BaseModel):
    """
    Schema returned for a checklist entry.
    """

    id: int = Field(..., description="Unique identifier of the subtask")
    todo_id: int = Field(..., description="Identifier of the owning todo")
    label: str = Field(..., description="Checklist entry text")
    completed: bool = Field(..., description="Completion status flag")
    order: int = Field(..., description="Display position among the todo's subtasks")


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned for a Todo item, annotated with its ordered checklist and
    the derived progress values.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Buy milk",
                "description": None,
                "deadline": "2025-02-01T00:00:00",
                "completed": False,
                "created_at": "2025-01-25T10:15:30.123456Z",
                "updated_at": "2025-01-25T10:16:02.000001Z",
                "completed_at": None,
                "subtasks": [
                    {"id": 1, "todo_id": 1, "label": "2%", "completed": True, "order": 0},
                    {"id": 2, "todo_id": 1, "label": "skim", "completed": False, "order": 1},
                ],
                "subtask_done": 1,
                "subtask_total": 2,
                "progress": 0.5,
                "progress_percent": 50,
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    deadline: Optional[datetime] = Field(default=None, description="Deadline as an ISO8601 datetime")
    completed: bool = Field(..., description="Completion status flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    completed_at: Optional[datetime] = Field(default=None, description="Completion timestamp")
    subtasks: List[SubtaskOut] = Field(default_factory=list, description="Checklist in display order")
    subtask_done: int = Field(0, description="Number of completed subtasks")
    subtask_total: int = Field(0, description="Number of subtasks")
    progress: float = Field(0.0, description="Completed/total subtasks; 0.0 without a checklist")
    progress_percent: int = Field(0, description="Progress as a whole percentage, rounded down")

    @property
    def has_checklist(self) -> bool:
        return self.subtask_total > 0
