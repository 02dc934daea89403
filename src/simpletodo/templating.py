from __future__ import annotations

from pathlib import Path

from fastapi.templating import Jinja2Templates

from .utils import format_deadline

PACKAGE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"
STATIC_DIR = PACKAGE_DIR / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["deadline"] = format_deadline
# Timestamps are stored in UTC and shown in the server's local time.
templates.env.filters["timestamp"] = lambda value: value.astimezone().strftime("%d.%m.%Y %H:%M") if value else ""
templates.env.filters["date_input"] = lambda value: value.strftime("%Y-%m-%d") if value else ""
