from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from ..dependencies import get_service
from ..errors import ValidationError
from ..services import TodoService
from ..templating import templates

router = APIRouter(include_in_schema=False)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


def _render_index(
    request: Request,
    svc: TodoService,
    error: Optional[str] = None,
    form: Optional[dict] = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "index.html",
        {"todos": svc.list_todos(), "error": error, "form": form or {}},
        status_code=status_code,
    )


def _render_detail(
    request: Request,
    svc: TodoService,
    todo_id: int,
    error: Optional[str] = None,
    form: Optional[dict] = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "detail.html",
        {"todo": svc.get_todo(todo_id), "error": error, "form": form or {}},
        status_code=status_code,
    )


# PUBLIC_INTERFACE
@router.get("/", response_class=HTMLResponse)
def index(request: Request, svc: TodoService = Depends(get_service)) -> HTMLResponse:
    """List view with the form for new todos."""
    return _render_index(request, svc)


# PUBLIC_INTERFACE
@router.post("/todos")
def create_todo(
    request: Request,
    title: str = Form(""),
    description: Optional[str] = Form(None),
    deadline: Optional[str] = Form(None),
    svc: TodoService = Depends(get_service),
) -> Response:
    """Create a todo and go back to the list; re-render the form on bad input."""
    try:
        svc.create_todo(title, description, deadline)
    except ValidationError as exc:
        form = {"title": title, "description": description or "", "deadline": deadline or ""}
        return _render_index(request, svc, error=exc.message, form=form, status_code=status.HTTP_400_BAD_REQUEST)
    return _redirect("/")


# PUBLIC_INTERFACE
@router.get("/todos/{todo_id}", response_class=HTMLResponse)
def todo_detail(todo_id: int, request: Request, svc: TodoService = Depends(get_service)) -> HTMLResponse:
    """Detail view: edit form, checklist and the form for new subtasks."""
    return _render_detail(request, svc, todo_id)


# PUBLIC_INTERFACE
@router.post("/todos/{todo_id}/edit")
def update_todo(
    todo_id: int,
    request: Request,
    title: str = Form(""),
    description: Optional[str] = Form(None),
    deadline: Optional[str] = Form(None),
    svc: TodoService = Depends(get_service),
) -> Response:
    try:
        svc.update_todo(todo_id, title, description, deadline)
    except ValidationError as exc:
        form = {"title": title, "description": description or "", "deadline": deadline or ""}
        return _render_detail(
            request, svc, todo_id, error=exc.message, form=form, status_code=status.HTTP_400_BAD_REQUEST
        )
    return _redirect(f"/todos/{todo_id}")


# PUBLIC_INTERFACE
@router.post("/todos/{todo_id}/toggle")
def toggle_todo(
    todo_id: int,
    return_to: str = Form("list"),
    svc: TodoService = Depends(get_service),
) -> Response:
    """Flip the completed flag; `return_to=detail` goes back to the detail page."""
    svc.toggle_todo_complete(todo_id)
    return _redirect(f"/todos/{todo_id}" if return_to == "detail" else "/")


# PUBLIC_INTERFACE
@router.post("/todos/{todo_id}/delete")
def delete_todo(todo_id: int, svc: TodoService = Depends(get_service)) -> Response:
    svc.delete_todo(todo_id)
    return _redirect("/")


# PUBLIC_INTERFACE
@router.post("/todos/{todo_id}/subtasks")
def add_subtask(
    todo_id: int,
    request: Request,
    label: str = Form(""),
    svc: TodoService = Depends(get_service),
) -> Response:
    try:
        svc.add_subtask(todo_id, label)
    except ValidationError as exc:
        return _render_detail(
            request, svc, todo_id, error=exc.message, status_code=status.HTTP_400_BAD_REQUEST
        )
    return _redirect(f"/todos/{todo_id}")


# PUBLIC_INTERFACE
@router.post("/subtasks/{subtask_id}/toggle")
def toggle_subtask(subtask_id: int, svc: TodoService = Depends(get_service)) -> Response:
    subtask = svc.toggle_subtask(subtask_id)
    return _redirect(f"/todos/{subtask.todo_id}")


# PUBLIC_INTERFACE
@router.post("/subtasks/{subtask_id}/delete")
def delete_subtask(subtask_id: int, svc: TodoService = Depends(get_service)) -> Response:
    """Remove a checklist entry and return to its todo."""
    subtask = svc.get_subtask(subtask_id)
    svc.delete_subtask(subtask_id)
    return _redirect(f"/todos/{subtask.todo_id}")
