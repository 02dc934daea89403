from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Tuple

from .models import SubtaskEntity


# PUBLIC_INTERFACE
def count_done(subtasks: Iterable[SubtaskEntity]) -> Tuple[int, int]:
    """Return (completed, total) for a todo's subtasks."""
    done = 0
    total = 0
    for subtask in subtasks:
        total += 1
        if subtask["completed"]:
            done += 1
    return done, total


# PUBLIC_INTERFACE
def progress_ratio(done: int, total: int) -> float:
    """
    Completion ratio of a checklist.

    Returns:
        done / total, or 0.0 when the todo has no subtasks.
    """
    if total <= 0:
        return 0.0
    return done / total


# PUBLIC_INTERFACE
def progress_percent(done: int, total: int) -> int:
    """Whole-number percentage, rounded down; 0 when there are no subtasks."""
    if total <= 0:
        return 0
    return (done * 100) // total


# PUBLIC_INTERFACE
def format_deadline(value: Optional[datetime]) -> str:
    """
    Human readable deadline for the templates. Midnight deadlines were entered
    as plain dates, so the time is left out for them.
    """
    if value is None:
        return ""
    if (value.hour, value.minute, value.second) == (0, 0, 0):
        return value.strftime("%d.%m.%Y")
    return value.strftime("%d.%m.%Y %H:%M")
