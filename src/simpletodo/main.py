from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles

from . import __version__
from .errors import NotFoundError, StorageError, TodoError, ValidationError
from .repositories import get_repository
from .routers import pages as pages_router
from .routers import todos as todos_router
from .services import TodoService
from .settings import Settings, get_settings
from .templating import STATIC_DIR, templates

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "todos", "description": "Todos and their checklists as JSON."},
]

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


def _wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api/")


def _error_response(request: Request, exc: TodoError, status_code: int, title: str) -> Response:
    if _wants_json(request):
        return JSONResponse(
            status_code=status_code,
            content={"error": type(exc).__name__, "message": exc.message},
        )
    return templates.TemplateResponse(
        request,
        "error.html",
        {"title": title, "message": exc.message, "status_code": status_code},
        status_code=status_code,
    )


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application. Storage is opened in the lifespan handler, so the
    database file is only touched once the server (or a TestClient) starts.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        repo = get_repository(settings)
        app.state.service = TodoService(repo)
        logger.info(
            "simpletodo %s started (backend=%s, db=%s)",
            __version__,
            settings.persistence_backend,
            settings.sqlite_db_path if settings.persistence_backend == "sqlite" else "-",
        )
        yield
        logger.info("simpletodo shutting down")

    app = FastAPI(
        title="simpletodo",
        description="A minimal personal todo list with checklists, backed by SQLite.",
        version=__version__,
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": [... pydantic/fastapi error details ...]
            }
        """
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": jsonable_errors(exc),
            },
        )

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> Response:
        return _error_response(request, exc, 400, "Invalid input")

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> Response:
        return _error_response(request, exc, 404, "Not found")

    @app.exception_handler(StorageError)
    async def storage_handler(request: Request, exc: StorageError) -> Response:
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc.message)
        return _error_response(request, exc, 500, "Something went wrong")

    @app.get("/health", summary="Health Check", tags=["health"])
    def health_check() -> dict:
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    app.include_router(pages_router.router)
    app.include_router(todos_router.router)
    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """pydantic error dicts may carry exception objects in `ctx`; keep them JSON safe."""
    return jsonable_encoder(exc.errors(), custom_encoder={Exception: str})


# PUBLIC_INTERFACE
def run() -> None:
    """Console entry point: configure logging and serve the app with uvicorn."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("simpletodo running on http://%s:%s", settings.host, settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


app = create_app()

if __name__ == "__main__":
    run()
