from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A stored Todo row, as returned by the storage backends.

    Fields:
    - id: Unique integer identifier assigned by storage
    - title: Short title (non-empty, trimmed by the service)
    - description: Optional detailed description
    - deadline: Optional deadline (dates are promoted to midnight)
    - completed: Boolean completion flag
    - created_at: Creation timestamp, never changes
    - updated_at: Timestamp of the last edit or toggle
    - completed_at: When the todo was last marked completed, None while open
    """

    id: int
    title: str
    description: Optional[str]
    deadline: Optional[datetime]
    completed: bool
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime]


# PUBLIC_INTERFACE
class SubtaskEntity(TypedDict):
    """
    A stored checklist entry. `todo_id` only references the owning Todo row;
    `order` is the display position among siblings (ties broken by id).
    """

    id: int
    todo_id: int
    label: str
    completed: bool
    order: int
