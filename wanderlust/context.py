"""
Wanderlust Backend - Per-Request Context
=========================================

What:  Everything a guard or handler needs to know about the caller:
       the signed-in user, the one-shot notices queued for the next page,
       and the path remembered for the post-login redirect.
How:   Built once per request by the `get_request_context` dependency from
       the signed session cookie (Starlette SessionMiddleware) and the
       request's database session. FastAPI caches it, so guards and the
       handler all see the same instance.
Who:   wanderlust.guards, every route handler, wanderlust.templating.

Session layout (JSON, signed with SESSION_SECRET):
    user_id       str(UUID) of the signed-in user
    redirect_url  path + query captured by the auth gate
    _flashes      [[category, message], ...] waiting to be rendered
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlust.database import get_db_session
from wanderlust.models.user import User
from wanderlust.services.user_service import user_service

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"
SESSION_REDIRECT_KEY = "redirect_url"
SESSION_FLASH_KEY = "_flashes"

FLASH_CATEGORIES = ("success", "error")


@dataclass
class RequestContext:
    request: Request
    db: AsyncSession
    user: Optional[User] = None
    redirect_url: Optional[str] = None

    @property
    def session(self) -> dict:
        return self.request.session

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    # ── Notices ───────────────────────────────────────────────────────────
    def flash(self, category: str, message: str) -> None:
        """Queue a notice for the next rendered page."""
        flashes = list(self.session.get(SESSION_FLASH_KEY, []))
        flashes.append([category, message])
        self.session[SESSION_FLASH_KEY] = flashes

    def pop_flashes(self) -> Dict[str, List[str]]:
        """Return and clear queued notices, grouped by category."""
        grouped: Dict[str, List[str]] = {category: [] for category in FLASH_CATEGORIES}
        for category, message in self.session.pop(SESSION_FLASH_KEY, []):
            grouped.setdefault(category, []).append(message)
        return grouped

    # ── Redirect memory ───────────────────────────────────────────────────
    def remember_redirect(self, url: str) -> None:
        self.session[SESSION_REDIRECT_KEY] = url
        self.redirect_url = url

    # ── Identity ──────────────────────────────────────────────────────────
    def login(self, user: User) -> None:
        """
        Sign `user` in.

        The session is regenerated: notices queued before this call,
        the remembered redirect and any previous identity are dropped.
        """
        self.session.clear()
        self.session[SESSION_USER_KEY] = str(user.id)
        self.user = user
        self.redirect_url = None

    def logout(self) -> None:
        self.session.pop(SESSION_USER_KEY, None)
        self.user = None


async def _load_user(db: AsyncSession, raw_id: object) -> Optional[User]:
    try:
        user_id = uuid.UUID(str(raw_id))
    except ValueError:
        return None
    return await user_service.get_by_id(db, user_id)


async def get_request_context(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> RequestContext:
    """FastAPI dependency building the RequestContext for this request."""
    ctx = RequestContext(
        request=request,
        db=db,
        redirect_url=request.session.get(SESSION_REDIRECT_KEY),
    )

    raw_id = request.session.get(SESSION_USER_KEY)
    if raw_id is not None:
        ctx.user = await _load_user(db, raw_id)
        if ctx.user is None:
            # Account vanished or the id is garbage: treat as signed out
            logger.info("Dropping session for unknown user id %s", raw_id)
            request.session.pop(SESSION_USER_KEY, None)

    return ctx
