"""
Wanderlust Backend - Review Route Handlers
===========================================

What:  POST /listings/{id}/reviews and DELETE /listings/{id}/reviews/{review_id}.
Who:   The review form and delete buttons on the listing detail page.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from wanderlust.context import RequestContext, get_request_context
from wanderlust.guards import require_login, require_review_author
from wanderlust.models.review import Review
from wanderlust.schemas.forms import ReviewForm
from wanderlust.services.review_service import review_service
from wanderlust.validation import validated_review

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/listings/{listing_id}/reviews", tags=["Reviews"])


@router.post("", summary="Create a review")
async def create_review(
    listing_id: UUID,
    ctx: RequestContext = Depends(require_login),
    form: ReviewForm = Depends(validated_review),
):
    review = await review_service.create_review(ctx.db, listing_id, form, author=ctx.user)
    if review is None:
        ctx.flash("error", "Listing does not exist!")
        return RedirectResponse("/listings", status_code=302)

    ctx.flash("success", "New Review Created!")
    return RedirectResponse(f"/listings/{listing_id}", status_code=302)


@router.delete("/{review_id}", summary="Delete a review")
async def delete_review(
    listing_id: UUID,
    review: Review = Depends(require_review_author),
    ctx: RequestContext = Depends(get_request_context),
):
    await review_service.delete_review(ctx.db, review)
    ctx.flash("success", "Review Deleted!")
    return RedirectResponse(f"/listings/{listing_id}", status_code=302)
