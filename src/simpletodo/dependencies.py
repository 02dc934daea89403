from __future__ import annotations

from fastapi import Request

from .services import TodoService


# PUBLIC_INTERFACE
def get_service(request: Request) -> TodoService:
    """
    Dependency returning the TodoService created for this application
    at startup (see main.create_app).
    """
    return request.app.state.service
