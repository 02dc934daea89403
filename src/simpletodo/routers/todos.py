from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from ..dependencies import get_service
from ..schemas import SubtaskIn, SubtaskOut, TodoIn, TodoOut
from ..services import TodoService

router = APIRouter(
    prefix="/api/v1",
    tags=["todos"],
)

_NOT_FOUND = {404: {"description": "Todo or subtask not found"}}


# PUBLIC_INTERFACE
@router.get(
    "/todos",
    response_model=List[TodoOut],
    summary="List Todos",
    description="All todos ordered by creation time (oldest first), each with its checklist and progress.",
)
def list_todos(svc: TodoService = Depends(get_service)) -> List[TodoOut]:
    return svc.list_todos()


# PUBLIC_INTERFACE
@router.post(
    "/todos",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item and return the created resource.",
    responses={
        201: {"description": "Todo created successfully"},
        422: {"description": "Validation error"},
    },
)
def create_todo(payload: TodoIn, svc: TodoService = Depends(get_service)) -> TodoOut:
    return svc.create_todo(payload.title, payload.description, payload.deadline)


# PUBLIC_INTERFACE
@router.get(
    "/todos/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID, with its checklist and progress.",
    responses=_NOT_FOUND,
)
def get_todo(todo_id: int, svc: TodoService = Depends(get_service)) -> TodoOut:
    return svc.get_todo(todo_id)


# PUBLIC_INTERFACE
@router.put(
    "/todos/{todo_id}",
    response_model=TodoOut,
    summary="Replace Todo",
    description=(
        "Replace title, description and deadline of an existing Todo item. "
        "Omitted optional fields are cleared. Completion and subtasks are left as they are."
    ),
    responses=_NOT_FOUND,
)
def put_todo(todo_id: int, payload: TodoIn, svc: TodoService = Depends(get_service)) -> TodoOut:
    return svc.update_todo(todo_id, payload.title, payload.description, payload.deadline)


# PUBLIC_INTERFACE
@router.delete(
    "/todos/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Delete a Todo item and all of its subtasks.",
    responses=_NOT_FOUND,
)
def delete_todo(todo_id: int, svc: TodoService = Depends(get_service)) -> None:
    svc.delete_todo(todo_id)
    return None


# PUBLIC_INTERFACE
@router.post(
    "/todos/{todo_id}/toggle",
    response_model=TodoOut,
    summary="Toggle Todo",
    description="Flip the completed flag of a Todo item.",
    responses=_NOT_FOUND,
)
def toggle_todo(todo_id: int, svc: TodoService = Depends(get_service)) -> TodoOut:
    return svc.toggle_todo_complete(todo_id)


# PUBLIC_INTERFACE
@router.post(
    "/todos/{todo_id}/subtasks",
    response_model=SubtaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add Subtask",
    description="Append a checklist entry after the todo's last one.",
    responses=_NOT_FOUND,
)
def add_subtask(todo_id: int, payload: SubtaskIn, svc: TodoService = Depends(get_service)) -> SubtaskOut:
    return svc.add_subtask(todo_id, payload.label)


# PUBLIC_INTERFACE
@router.post(
    "/subtasks/{subtask_id}/toggle",
    response_model=SubtaskOut,
    summary="Toggle Subtask",
    responses=_NOT_FOUND,
)
def toggle_subtask(subtask_id: int, svc: TodoService = Depends(get_service)) -> SubtaskOut:
    return svc.toggle_subtask(subtask_id)


# PUBLIC_INTERFACE
@router.delete(
    "/subtasks/{subtask_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Subtask",
    responses=_NOT_FOUND,
)
def delete_subtask(subtask_id: int, svc: TodoService = Depends(get_service)) -> None:
    svc.delete_subtask(subtask_id)
    return None
