"""
Wanderlust Backend - Account Route Handlers
============================================

What:  Signup, login and logout.
How:   Bad input, duplicate usernames and wrong passwords never produce an
       error page here: the handler flashes the reason and sends the user
       back to the form.
Who:   Navbar links and the auth gate's redirect to /login.

Post-login redirect:
    The auth gate stores the path the visitor was trying to reach. Login
    regenerates the session, so that path is read first and used once.
    Only local paths are followed; everything else lands on /listings.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from wanderlust.context import RequestContext, get_request_context
from wanderlust.exceptions import BAD_CREDENTIALS_MESSAGE, AuthenticationError, ValidationError
from wanderlust.schemas.forms import LoginForm, SignupForm, validate_payload
from wanderlust.services.user_service import user_service
from wanderlust.templating import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Accounts"])

DEFAULT_LANDING = "/listings"


def safe_redirect_target(url: Optional[str]) -> str:
    """Return `url` if it is a local path, otherwise the listings page."""
    if not url or not url.startswith("/") or url.startswith("//") or "\\" in url:
        return DEFAULT_LANDING
    return url


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=302)


@router.get("/signup", summary="Signup form")
async def signup_form(ctx: RequestContext = Depends(get_request_context)):
    return render(ctx, "users/signup.html")


@router.post("/signup", summary="Register and log in")
async def signup(request: Request, ctx: RequestContext = Depends(get_request_context)):
    form_data = await request.form()
    try:
        form = validate_payload(SignupForm, form_data)
        user = await user_service.register(ctx.db, form)
    except ValidationError as e:
        ctx.flash("error", e.message)
        return _redirect("/signup")

    ctx.login(user)
    ctx.flash("success", "Welcome to Wanderlust!")
    return _redirect(DEFAULT_LANDING)


@router.get("/login", summary="Login form")
async def login_form(ctx: RequestContext = Depends(get_request_context)):
    return render(ctx, "users/login.html")


@router.post("/login", summary="Log in")
async def login(request: Request, ctx: RequestContext = Depends(get_request_context)):
    form_data = await request.form()
    try:
        form = validate_payload(LoginForm, form_data)
        user = await user_service.authenticate(ctx.db, form.username, form.password)
    except (ValidationError, AuthenticationError):
        ctx.flash("error", BAD_CREDENTIALS_MESSAGE)
        return _redirect("/login")

    target = safe_redirect_target(ctx.redirect_url)
    ctx.login(user)
    ctx.flash("success", "Welcome back to Wanderlust!")
    logger.info("User %s logged in, redirecting to %s", user.username, target)
    return _redirect(target)


@router.get("/logout", summary="Log out")
async def logout(ctx: RequestContext = Depends(get_request_context)):
    ctx.logout()
    ctx.flash("success", "You are logged out!")
    return _redirect(DEFAULT_LANDING)
