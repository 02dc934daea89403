from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Generator, List, Optional, Sequence

from .errors import StorageError
from .models import SubtaskEntity, TodoEntity
from .repositories import Repository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _TodoCols:
    table: str = "todos"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    deadline: str = "deadline"
    completed: str = "completed"
    created_at: str = "created_at"
    updated_at: str = "updated_at"
    completed_at: str = "completed_at"


@dataclass(frozen=True)
class _SubtaskCols:
    table: str = "subtasks"
    id: str = "id"
    todo_id: str = "todo_id"
    label: str = "label"
    completed: str = "completed"
    position: str = "position"


_T = _TodoCols()
_S = _SubtaskCols()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _parse_dt(s: Optional[str]) -> Optional[datetime]:
    if s is None:
        return None
    return datetime.fromisoformat(s)


class SQLiteRepository(Repository):
    """
    SQLite repository implementing the Repository interface. Every operation
    runs on its own connection and commits before returning.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        try:
            os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        except OSError as e:
            raise StorageError(f"cannot create directory for database {db_path}: {e}") from e
        self._init_db()

    @property
    def db_path(self) -> str:
        return self._db_path

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            logger.error("Opening database %s failed: %s", self._db_path, e)
            raise StorageError(f"opening database at {self._db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            logger.exception("SQLite operation on %s failed", self._db_path)
            raise StorageError(str(e)) from e
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_T.table} (
                    {_T.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_T.title} TEXT NOT NULL CHECK (length(trim({_T.title})) > 0),
                    {_T.description} TEXT NULL,
                    {_T.deadline} TEXT NULL,
                    {_T.completed} INTEGER NOT NULL DEFAULT 0,
                    {_T.created_at} TEXT NOT NULL,
                    {_T.updated_at} TEXT NOT NULL,
                    {_T.completed_at} TEXT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_S.table} (
                    {_S.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_S.todo_id} INTEGER NOT NULL
                        REFERENCES {_T.table}({_T.id}) ON DELETE CASCADE,
                    {_S.label} TEXT NOT NULL CHECK (length(trim({_S.label})) > 0),
                    {_S.completed} INTEGER NOT NULL DEFAULT 0,
                    {_S.position} INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_T.table}_created_at ON {_T.table}({_T.created_at})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_S.table}_todo_id ON {_S.table}({_S.todo_id}, {_S.position})"
            )
        logger.debug("Schema ready in %s", self._db_path)

    def _row_to_todo(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": int(row[_T.id]),
            "title": str(row[_T.title]),
            "description": row[_T.description],
            "deadline": _parse_dt(row[_T.deadline]),
            "completed": bool(row[_T.completed]),
            "created_at": _parse_dt(row[_T.created_at]),  # type: ignore
            "updated_at": _parse_dt(row[_T.updated_at]),  # type: ignore
            "completed_at": _parse_dt(row[_T.completed_at]),
        }

    def _row_to_subtask(self, row: sqlite3.Row) -> SubtaskEntity:
        return {
            "id": int(row[_S.id]),
            "todo_id": int(row[_S.todo_id]),
            "label": str(row[_S.label]),
            "completed": bool(row[_S.completed]),
            "order": int(row[_S.position]),
        }

    def _fetch_todo(self, conn: sqlite3.Connection, todo_id: int) -> Optional[TodoEntity]:
        row = conn.execute(f"SELECT * FROM {_T.table} WHERE {_T.id} = ?", (todo_id,)).fetchone()
        return self._row_to_todo(row) if row else None

    def _fetch_subtask(self, conn: sqlite3.Connection, subtask_id: int) -> Optional[SubtaskEntity]:
        row = conn.execute(f"SELECT * FROM {_S.table} WHERE {_S.id} = ?", (subtask_id,)).fetchone()
        return self._row_to_subtask(row) if row else None

    def create_todo(
        self, title: str, description: Optional[str], deadline: Optional[datetime]
    ) -> TodoEntity:
        now = _now()
        due = deadline.isoformat() if deadline else None
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_T.table} ({_T.title}, {_T.description}, {_T.deadline},
                    {_T.completed}, {_T.created_at}, {_T.updated_at})
                VALUES (?, ?, ?, 0, ?, ?)
                """,
                (title, description, due, now, now),
            )
            created = self._fetch_todo(conn, int(cur.lastrowid))
            assert created is not None
            return created

    def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        with self._conn() as conn:
            return self._fetch_todo(conn, todo_id)

    def update_todo(
        self,
        todo_id: int,
        title: str,
        description: Optional[str],
        deadline: Optional[datetime],
    ) -> Optional[TodoEntity]:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_T.table}
                SET {_T.title} = ?, {_T.description} = ?, {_T.deadline} = ?, {_T.updated_at} = ?
                WHERE {_T.id} = ?
                """,
                (title, description, deadline.isoformat() if deadline else None, _now(), todo_id),
            )
            if cur.rowcount == 0:
                return None
            return self._fetch_todo(conn, todo_id)

    def delete_todo(self, todo_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_T.table} WHERE {_T.id} = ?", (todo_id,))
            return cur.rowcount > 0

    def toggle_todo(self, todo_id: int) -> Optional[TodoEntity]:
        now = _now()
        with self._conn() as conn:
            # Right-hand sides see the pre-update row.
            cur = conn.execute(
                f"""
                UPDATE {_T.table}
                SET {_T.completed} = 1 - {_T.completed},
                    {_T.completed_at} = CASE WHEN {_T.completed} = 0 THEN ? ELSE NULL END,
                    {_T.updated_at} = ?
                WHERE {_T.id} = ?
                """,
                (now, now, todo_id),
            )
            if cur.rowcount == 0:
                return None
            return self._fetch_todo(conn, todo_id)

    def list_todos(self) -> List[TodoEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_T.table} ORDER BY {_T.created_at} ASC, {_T.id} ASC"
            ).fetchall()
            return [self._row_to_todo(r) for r in rows]

    def subtasks_for(self, todo_ids: Sequence[int]) -> Dict[int, List[SubtaskEntity]]:
        grouped: Dict[int, List[SubtaskEntity]] = {tid: [] for tid in todo_ids}
        if not grouped:
            return grouped
        placeholders = ", ".join("?" for _ in grouped)
        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {_S.table}
                WHERE {_S.todo_id} IN ({placeholders})
                ORDER BY {_S.position} ASC, {_S.id} ASC
                """,
                list(grouped),
            ).fetchall()
        for row in rows:
            subtask = self._row_to_subtask(row)
            grouped[subtask["todo_id"]].append(subtask)
        return grouped

    def add_subtask(self, todo_id: int, label: str) -> Optional[SubtaskEntity]:
        with self._conn() as conn:
            # Parent check, next position and insert share one write transaction.
            conn.execute("BEGIN IMMEDIATE")
            parent = conn.execute(
                f"SELECT 1 FROM {_T.table} WHERE {_T.id} = ?", (todo_id,)
            ).fetchone()
            if parent is None:
                return None
            next_position = conn.execute(
                f"SELECT COALESCE(MAX({_S.position}), -1) + 1 FROM {_S.table} WHERE {_S.todo_id} = ?",
                (todo_id,),
            ).fetchone()[0]
            cur = conn.execute(
                f"""
                INSERT INTO {_S.table} ({_S.todo_id}, {_S.label}, {_S.completed}, {_S.position})
                VALUES (?, ?, 0, ?)
                """,
                (todo_id, label, int(next_position)),
            )
            created = self._fetch_subtask(conn, int(cur.lastrowid))
            assert created is not None
            return created

    def get_subtask(self, subtask_id: int) -> Optional[SubtaskEntity]:
        with self._conn() as conn:
            return self._fetch_subtask(conn, subtask_id)

    def toggle_subtask(self, subtask_id: int) -> Optional[SubtaskEntity]:
        with self._conn() as conn:
            cur = conn.execute(
                f"UPDATE {_S.table} SET {_S.completed} = 1 - {_S.completed} WHERE {_S.id} = ?",
                (subtask_id,),
            )
            if cur.rowcount == 0:
                return None
            return self._fetch_subtask(conn, subtask_id)

    def delete_subtask(self, subtask_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_S.table} WHERE {_S.id} = ?", (subtask_id,))
            return cur.rowcount > 0
