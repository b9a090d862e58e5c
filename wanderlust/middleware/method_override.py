"""
Wanderlust Backend - HTTP Method Override
==========================================

What:  Lets HTML forms reach PUT/PATCH/DELETE routes.
How:   A POST whose query string carries `_method=PUT|PATCH|DELETE` is
       re-dispatched with that method before routing. Any other value, or
       any non-POST request, passes through untouched.
Who:   Edit and delete forms on the listing pages.

Example:
    <form method="POST" action="/listings/42?_method=DELETE">
    → routed as DELETE /listings/42
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

OVERRIDE_PARAM = "_method"
ALLOWED_OVERRIDES = frozenset({"PUT", "PATCH", "DELETE"})


class MethodOverrideMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "POST":
            override = request.query_params.get(OVERRIDE_PARAM, "").upper()
            if override in ALLOWED_OVERRIDES:
                request.scope["method"] = override
                logger.debug("Method override: POST → %s %s", override, request.url.path)
        return await call_next(request)
