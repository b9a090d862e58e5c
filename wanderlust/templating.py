"""
Wanderlust Backend - Page Rendering
====================================

What:  Jinja2 environment plus the two render helpers every page goes through.
How:   `render` injects the signed-in user, the queued notices (consumed on
       render) and the map token into the template context.
       `render_error` draws error.html without touching the database, so
       the error translator can use it even when the database is down.
Who:   Route handlers and the exception handlers in main.py.
"""

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from wanderlust.config import settings
from wanderlust.context import RequestContext

TEMPLATE_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATE_DIR))


def render(ctx: RequestContext, name: str, status_code: int = 200, **context: Any) -> Response:
    context.setdefault("curr_user", ctx.user)
    context.setdefault("flashes", ctx.pop_flashes())
    context.setdefault("map_token", settings.map_token)
    return templates.TemplateResponse(ctx.request, name, context, status_code=status_code)


def render_error(request: Request, status_code: int, message: str) -> Response:
    return templates.TemplateResponse(
        request,
        "error.html",
        {
            "status_code": status_code,
            "message": message,
            "curr_user": None,
            "flashes": {},
            "map_token": None,
        },
        status_code=status_code,
    )
