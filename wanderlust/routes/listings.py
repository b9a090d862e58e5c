"""
Wanderlust Backend - Listing Route Handlers
============================================

What:  Browse, show, create, edit and delete listings.
How:   Guards and validators are declared as dependencies, in the order they
       must run; handlers stay thin and delegate to ListingService.
Who:   Browsers (HTML forms; PUT/DELETE arrive as POST ?_method=...).

Route → guards:
    GET    /listings               -
    GET    /listing/new            login
    POST   /listings               login, listing form, image
    GET    /listings/{id}          -
    GET    /listings/{id}/edit     login, owner
    PUT    /listings/{id}          login, owner, listing form, image
    DELETE /listings/{id}          login, owner
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from starlette.datastructures import UploadFile

from wanderlust.context import RequestContext, get_request_context
from wanderlust.guards import require_listing_owner, require_login
from wanderlust.models.listing import Listing
from wanderlust.schemas.forms import ListingForm
from wanderlust.services.listing_service import listing_service
from wanderlust.templating import render
from wanderlust.validation import listing_image, validated_listing

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Listings"])


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=302)


@router.get("/listings", summary="All listings")
async def index(ctx: RequestContext = Depends(get_request_context)):
    listings = await listing_service.list_listings(ctx.db)
    return render(ctx, "listings/index.html", listings=listings)


@router.get("/listing/new", summary="New listing form")
async def new_listing_form(ctx: RequestContext = Depends(require_login)):
    return render(ctx, "listings/new.html")


@router.post("/listings", summary="Create a listing")
async def create_listing(
    ctx: RequestContext = Depends(require_login),
    form: ListingForm = Depends(validated_listing),
    image: Optional[UploadFile] = Depends(listing_image),
):
    listing = await listing_service.create_listing(ctx.db, form, owner=ctx.user, image=image)
    ctx.flash("success", "New Listing Created!")
    return _redirect(f"/listings/{listing.id}")


@router.get("/listings/{listing_id}", summary="Listing detail")
async def show_listing(
    listing_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
):
    listing = await listing_service.get_listing_detail(ctx.db, listing_id)
    if listing is None:
        ctx.flash("error", "Listing does not exist!")
        return _redirect("/listings")
    return render(ctx, "listings/show.html", listing=listing)


@router.get("/listings/{listing_id}/edit", summary="Edit listing form")
async def edit_listing_form(
    listing: Listing = Depends(require_listing_owner),
    ctx: RequestContext = Depends(get_request_context),
):
    return render(ctx, "listings/edit.html", listing=listing)


@router.put("/listings/{listing_id}", summary="Update a listing")
async def update_listing(
    listing: Listing = Depends(require_listing_owner),
    ctx: RequestContext = Depends(get_request_context),
    form: ListingForm = Depends(validated_listing),
    image: Optional[UploadFile] = Depends(listing_image),
):
    await listing_service.update_listing(ctx.db, listing, form, image=image)
    ctx.flash("success", "Listing Updated")
    return _redirect(f"/listings/{listing.id}")


@router.delete("/listings/{listing_id}", summary="Delete a listing and its reviews")
async def delete_listing(
    listing: Listing = Depends(require_listing_owner),
    ctx: RequestContext = Depends(get_request_context),
):
    await listing_service.delete_listing(ctx.db, listing)
    ctx.flash("success", "Listing Deleted!")
    return _redirect("/listings")
