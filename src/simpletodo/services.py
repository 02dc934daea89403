from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Union

from .errors import NotFoundError, ValidationError
from .models import SubtaskEntity, TodoEntity
from .repositories import Repository
from .schemas import LABEL_MAX_LENGTH, TITLE_MAX_LENGTH, SubtaskOut, TodoOut, parse_deadline
from .utils import count_done, progress_percent, progress_ratio

logger = logging.getLogger(__name__)

DeadlineArg = Union[date, datetime, str, None]


def _require_text(value: Optional[str], field: str, max_length: int) -> str:
    s = (value or "").strip()
    if not s:
        raise ValidationError(f"{field} must not be empty")
    if len(s) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return s


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    s = value.strip()
    return s or None


def _deadline(value: DeadlineArg) -> Optional[datetime]:
    try:
        return parse_deadline(value)
    except ValueError as e:
        raise ValidationError(str(e)) from e


# PUBLIC_INTERFACE
class TodoService:
    """
    Business rules for todos and their checklists on top of a Repository.

    Inputs are validated before storage is touched, so a rejected call persists
    nothing. Reads return TodoOut views carrying the ordered subtasks and the
    derived progress.
    """

    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    def _view(self, todo: TodoEntity, subtasks: List[SubtaskEntity]) -> TodoOut:
        done, total = count_done(subtasks)
        return TodoOut(
            **todo,
            subtasks=[SubtaskOut(**s) for s in subtasks],
            subtask_done=done,
            subtask_total=total,
            progress=progress_ratio(done, total),
            progress_percent=progress_percent(done, total),
        )

    def _load(self, todo: TodoEntity) -> TodoOut:
        subtasks = self.repo.subtasks_for([todo["id"]])[todo["id"]]
        return self._view(todo, subtasks)

    def list_todos(self) -> List[TodoOut]:
        """All todos, oldest first, each with its checklist and progress."""
        todos = self.repo.list_todos()
        grouped: Dict[int, List[SubtaskEntity]] = self.repo.subtasks_for([t["id"] for t in todos])
        return [self._view(t, grouped.get(t["id"], [])) for t in todos]

    def get_todo(self, todo_id: int) -> TodoOut:
        todo = self.repo.get_todo(todo_id)
        if todo is None:
            logger.warning("Todo %s not found", todo_id)
            raise NotFoundError(f"Todo {todo_id} not found")
        return self._load(todo)

    def create_todo(
        self,
        title: Optional[str],
        description: Optional[str] = None,
        deadline: DeadlineArg = None,
    ) -> TodoOut:
        clean_title = _require_text(title, "title", TITLE_MAX_LENGTH)
        todo = self.repo.create_todo(clean_title, _optional_text(description), _deadline(deadline))
        logger.info("Created todo %s (%r)", todo["id"], todo["title"])
        return self._view(todo, [])

    def update_todo(
        self,
        todo_id: int,
        title: Optional[str],
        description: Optional[str] = None,
        deadline: DeadlineArg = None,
    ) -> TodoOut:
        """Replace title, description and deadline of an existing todo."""
        clean_title = _require_text(title, "title", TITLE_MAX_LENGTH)
        clean_deadline = _deadline(deadline)
        todo = self.repo.update_todo(todo_id, clean_title, _optional_text(description), clean_deadline)
        if todo is None:
            logger.warning("Cannot update todo %s: not found", todo_id)
            raise NotFoundError(f"Todo {todo_id} not found")
        logger.info("Updated todo %s", todo_id)
        return self._load(todo)

    def delete_todo(self, todo_id: int) -> None:
        if not self.repo.delete_todo(todo_id):
            logger.warning("Cannot delete todo %s: not found", todo_id)
            raise NotFoundError(f"Todo {todo_id} not found")
        logger.info("Deleted todo %s and its subtasks", todo_id)

    def toggle_todo_complete(self, todo_id: int) -> TodoOut:
        todo = self.repo.toggle_todo(todo_id)
        if todo is None:
            logger.warning("Cannot toggle todo %s: not found", todo_id)
            raise NotFoundError(f"Todo {todo_id} not found")
        logger.info("Todo %s marked %s", todo_id, "completed" if todo["completed"] else "open")
        return self._load(todo)

    def add_subtask(self, todo_id: int, label: Optional[str]) -> SubtaskOut:
        clean_label = _require_text(label, "label", LABEL_MAX_LENGTH)
        subtask = self.repo.add_subtask(todo_id, clean_label)
        if subtask is None:
            logger.warning("Cannot add subtask: todo %s not found", todo_id)
            raise NotFoundError(f"Todo {todo_id} not found")
        logger.info("Added subtask %s to todo %s", subtask["id"], todo_id)
        return SubtaskOut(**subtask)

    def get_subtask(self, subtask_id: int) -> SubtaskOut:
        subtask = self.repo.get_subtask(subtask_id)
        if subtask is None:
            logger.warning("Subtask %s not found", subtask_id)
            raise NotFoundError(f"Subtask {subtask_id} not found")
        return SubtaskOut(**subtask)

    def toggle_subtask(self, subtask_id: int) -> SubtaskOut:
        subtask = self.repo.toggle_subtask(subtask_id)
        if subtask is None:
            logger.warning("Cannot toggle subtask %s: not found", subtask_id)
            raise NotFoundError(f"Subtask {subtask_id} not found")
        logger.info("Subtask %s marked %s", subtask_id, "completed" if subtask["completed"] else "open")
        return SubtaskOut(**subtask)

    def delete_subtask(self, subtask_id: int) -> None:
        if not self.repo.delete_subtask(subtask_id):
            logger.warning("Cannot delete subtask %s: not found", subtask_id)
            raise NotFoundError(f"Subtask {subtask_id} not found")
        logger.info("Deleted subtask %s", subtask_id)
