from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import RLock
from typing import Dict, List, Optional, Sequence

from .models import SubtaskEntity, TodoEntity
from .settings import Settings, get_settings


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract repository contract for todo storage backends.

    Values passed in are already validated by the service. Lookups return None
    (deletes return False) for unknown ids; deciding that this is an error is
    left to the caller.
    """

    @abstractmethod
    def create_todo(
        self, title: str, description: Optional[str], deadline: Optional[datetime]
    ) -> TodoEntity:
        """Create and return a new open TodoEntity."""

    @abstractmethod
    def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        """Return a TodoEntity by id, or None if not found."""

    @abstractmethod
    def update_todo(
        self,
        todo_id: int,
        title: str,
        description: Optional[str],
        deadline: Optional[datetime],
    ) -> Optional[TodoEntity]:
        """Replace the editable fields of a todo. Return the updated entity or None if not found."""

    @abstractmethod
    def delete_todo(self, todo_id: int) -> bool:
        """Delete a todo and all of its subtasks. Return True if deleted, False if not found."""

    @abstractmethod
    def toggle_todo(self, todo_id: int) -> Optional[TodoEntity]:
        """Flip `completed` (maintaining `completed_at`). Return the updated entity or None."""

    @abstractmethod
    def list_todos(self) -> List[TodoEntity]:
        """Return all todos ordered by created_at ascending, ties broken by id."""

    @abstractmethod
    def subtasks_for(self, todo_ids: Sequence[int]) -> Dict[int, List[SubtaskEntity]]:
        """
        Return the subtasks of the given todos keyed by todo id, each list in
        display order (order, then id). Every requested id is present in the result.
        """

    @abstractmethod
    def add_subtask(self, todo_id: int, label: str) -> Optional[SubtaskEntity]:
        """
        Append a subtask after the todo's current last one (order = max + 1, or 0).
        Return None without storing anything if the todo does not exist.
        """

    @abstractmethod
    def get_subtask(self, subtask_id: int) -> Optional[SubtaskEntity]:
        """Return a SubtaskEntity by id, or None if not found."""

    @abstractmethod
    def toggle_subtask(self, subtask_id: int) -> Optional[SubtaskEntity]:
        """Flip a subtask's `completed`. Return the updated entity or None."""

    @abstractmethod
    def delete_subtask(self, subtask_id: int) -> bool:
        """Delete a subtask. Return True if deleted, False if not found."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository for tests and throwaway runs. Mirrors the
    SQLite backend, including cascade delete and subtask ordering.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._todos: Dict[int, TodoEntity] = {}
        self._subtasks: Dict[int, SubtaskEntity] = {}
        self._next_todo_id = 1
        self._next_subtask_id = 1

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def create_todo(
        self, title: str, description: Optional[str], deadline: Optional[datetime]
    ) -> TodoEntity:
        now = self._now()
        with self._lock:
            entity: TodoEntity = {
                "id": self._next_todo_id,
                "title": title,
                "description": description,
                "deadline": deadline,
                "completed": False,
                "created_at": now,
                "updated_at": now,
                "completed_at": None,
            }
            self._next_todo_id += 1
            self._todos[entity["id"]] = entity
            return entity.copy()

    def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        with self._lock:
            item = self._todos.get(todo_id)
            return None if item is None else item.copy()

    def update_todo(
        self,
        todo_id: int,
        title: str,
        description: Optional[str],
        deadline: Optional[datetime],
    ) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._todos.get(todo_id)
            if existing is None:
                return None
            updated = existing.copy()
            updated["title"] = title
            updated["description"] = description
            updated["deadline"] = deadline
            updated["updated_at"] = self._now()
            self._todos[todo_id] = updated
            return updated.copy()

    def delete_todo(self, todo_id: int) -> bool:
        with self._lock:
            if self._todos.pop(todo_id, None) is None:
                return False
            orphans = [sid for sid, s in self._subtasks.items() if s["todo_id"] == todo_id]
            for sid in orphans:
                del self._subtasks[sid]
            return True

    def toggle_todo(self, todo_id: int) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._todos.get(todo_id)
            if existing is None:
                return None
            now = self._now()
            updated = existing.copy()
            updated["completed"] = not existing["completed"]
            updated["completed_at"] = now if updated["completed"] else None
            updated["updated_at"] = now
            self._todos[todo_id] = updated
            return updated.copy()

    def list_todos(self) -> List[TodoEntity]:
        with self._lock:
            items = sorted(self._todos.values(), key=lambda t: (t["created_at"], t["id"]))
            return [t.copy() for t in items]

    def subtasks_for(self, todo_ids: Sequence[int]) -> Dict[int, List[SubtaskEntity]]:
        with self._lock:
            grouped: Dict[int, List[SubtaskEntity]] = {tid: [] for tid in todo_ids}
            for subtask in self._subtasks.values():
                if subtask["todo_id"] in grouped:
                    grouped[subtask["todo_id"]].append(subtask.copy())
            for items in grouped.values():
                items.sort(key=lambda s: (s["order"], s["id"]))
            return grouped

    def add_subtask(self, todo_id: int, label: str) -> Optional[SubtaskEntity]:
        with self._lock:
            if todo_id not in self._todos:
                return None
            siblings = [s["order"] for s in self._subtasks.values() if s["todo_id"] == todo_id]
            entity: SubtaskEntity = {
                "id": self._next_subtask_id,
                "todo_id": todo_id,
                "label": label,
                "completed": False,
                "order": max(siblings) + 1 if siblings else 0,
            }
            self._next_subtask_id += 1
            self._subtasks[entity["id"]] = entity
            return entity.copy()

    def get_subtask(self, subtask_id: int) -> Optional[SubtaskEntity]:
        with self._lock:
            item = self._subtasks.get(subtask_id)
            return None if item is None else item.copy()

    def toggle_subtask(self, subtask_id: int) -> Optional[SubtaskEntity]:
        with self._lock:
            existing = self._subtasks.get(subtask_id)
            if existing is None:
                return None
            updated = existing.copy()
            updated["completed"] = not existing["completed"]
            self._subtasks[subtask_id] = updated
            return updated.copy()

    def delete_subtask(self, subtask_id: int) -> bool:
        with self._lock:
            return self._subtasks.pop(subtask_id, None) is not None


# PUBLIC_INTERFACE
def get_repository(settings: Optional[Settings] = None) -> Repository:
    """
    Factory to return the configured repository based on settings.
    - sqlite: SQLiteRepository at settings.sqlite_db_path
    - memory: InMemoryRepository
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "memory":
        return InMemoryRepository()

    from .db import SQLiteRepository

    return SQLiteRepository(settings.sqlite_db_path)
