"""
Wanderlust Backend - Route Guards
==================================

What:  FastAPI dependencies that run before a handler and either pass a
       value onward or stop the request with a redirect.
How:   A failing guard queues an error notice on the RequestContext and
       raises GuardRedirect; main.py turns that into a 302.
Who:   Listing and review routes.

Ordering is expressed through Depends(): both ownership guards depend on
require_login, so the auth check always runs first and an anonymous user
is never told whether a listing exists.
"""

import logging
import uuid

from fastapi import Depends

from wanderlust.context import RequestContext, get_request_context
from wanderlust.exceptions import GuardRedirect
from wanderlust.middleware.method_override import OVERRIDE_PARAM
from wanderlust.models.listing import Listing
from wanderlust.models.review import Review
from wanderlust.services.listing_service import listing_service
from wanderlust.services.review_service import review_service

logger = logging.getLogger(__name__)

LOGIN_URL = "/login"
LISTINGS_URL = "/listings"


def _original_path(ctx: RequestContext) -> str:
    # Followed as a GET after login, so the method override is dropped
    url = ctx.request.url.remove_query_params(OVERRIDE_PARAM)
    return f"{url.path}?{url.query}" if url.query else url.path


async def require_login(
    ctx: RequestContext = Depends(get_request_context),
) -> RequestContext:
    """Auth gate: pass the context on, or remember the path and send to /login."""
    if ctx.is_authenticated:
        return ctx

    ctx.remember_redirect(_original_path(ctx))
    ctx.flash("error", "You must be logged in to do that!")
    logger.info("Anonymous request to %s redirected to login", ctx.request.url.path)
    raise GuardRedirect(LOGIN_URL)


async def require_listing_owner(
    listing_id: uuid.UUID,
    ctx: RequestContext = Depends(require_login),
) -> Listing:
    listing = await listing_service.get_listing(ctx.db, listing_id)
    if listing is None:
        ctx.flash("error", "Listing not found!")
        raise GuardRedirect(LISTINGS_URL)

    if not listing.is_owned_by(ctx.user):
        logger.warning(
            "User %s denied access to listing %s (owner %s)",
            ctx.user.id, listing.id, listing.owner_id,
        )
        ctx.flash("error", "You don't have permission to edit this listing.")
        raise GuardRedirect(f"{LISTINGS_URL}/{listing_id}")

    return listing


async def require_review_author(
    listing_id: uuid.UUID,
    review_id: uuid.UUID,
    ctx: RequestContext = Depends(require_login),
) -> Review:
    review = await review_service.get_review(ctx.db, review_id)
    if review is None or review.listing_id != listing_id:
        ctx.flash("error", "Review not found")
        raise GuardRedirect(f"{LISTINGS_URL}/{listing_id}")

    if not review.is_written_by(ctx.user):
        logger.warning("User %s denied deleting review %s", ctx.user.id, review.id)
        ctx.flash("error", "You don't have permission to do that")
        raise GuardRedirect(f"{LISTINGS_URL}/{listing_id}")

    return review
