"""
Wanderlust Backend - Listing Service
=====================================

What:  Business logic for listings: browse, detail, create, update, delete.
How:   Composes FileService (photos) with async SQLAlchemy queries. Every
       write commits here, before the handler builds its redirect, so a
       refused commit surfaces as DatabaseError instead of a success notice.
Who:   Listing route handlers and the listing ownership guard.

Delete Flow (one transaction):
    ┌─────────────────────┐    ┌──────────────────────┐    ┌───────────────┐
    │ DELETE FROM reviews │───▶│ DELETE FROM listings │───▶│ remove photo  │
    │ WHERE listing_id=?  │    │ WHERE id=?           │    │ (best effort) │
    └─────────────────────┘    └──────────────────────┘    └───────────────┘
    A failure in either statement or the commit rolls both back and
    leaves the photo in place.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from starlette.datastructures import UploadFile

from wanderlust.exceptions import DatabaseError
from wanderlust.models.listing import Listing
from wanderlust.models.review import Review
from wanderlust.models.user import User
from wanderlust.schemas.forms import ListingForm
from wanderlust.services.file_service import StoredImage, file_service

logger = logging.getLogger(__name__)


class ListingService:
    """
    Stateless; receives the request's session on every call.

    Database failures are logged and re-raised as DatabaseError (500) with a
    generic message. Validation and storage errors from FileService
    propagate unchanged.
    """

    async def list_listings(self, db: AsyncSession) -> List[Listing]:
        try:
            result = await db.execute(select(Listing).order_by(Listing.created_at))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing listings: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

    async def get_listing(self, db: AsyncSession, listing_id: UUID) -> Optional[Listing]:
        """Primary-key lookup; None when the listing does not exist."""
        try:
            return await db.get(Listing, listing_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching listing %s: %s", listing_id, str(e))
            raise DatabaseError(context={"listing_id": str(listing_id)})

    async def get_listing_detail(self, db: AsyncSession, listing_id: UUID) -> Optional[Listing]:
        """
        Load a listing for the detail page.

        Query plan:
            SELECT listings WHERE id = :id
            + SELECT users   WHERE id IN (owner)
            + SELECT reviews WHERE listing_id IN (:id) ORDER BY created_at
            + SELECT users   WHERE id IN (review authors)
        """
        try:
            result = await db.execute(
                select(Listing)
                .where(Listing.id == listing_id)
                .options(
                    selectinload(Listing.owner),
                    selectinload(Listing.reviews).selectinload(Review.author),
                )
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error loading listing %s: %s", listing_id, str(e))
            raise DatabaseError(context={"listing_id": str(listing_id)})

    async def create_listing(
        self,
        db: AsyncSession,
        form: ListingForm,
        owner: User,
        image: Optional[UploadFile] = None,
    ) -> Listing:
        """
        Persist a new listing owned by `owner`.

        The photo is validated and written first so a bad upload never
        leaves a row behind; if the insert then fails the photo is removed.
        """
        stored: Optional[StoredImage] = None
        if image is not None:
            stored = await file_service.store_upload(image)

        listing = Listing(**form.model_dump(), owner_id=owner.id)
        if stored:
            listing.image_filename = stored.filename
            listing.image_url = stored.url

        try:
            db.add(listing)
            await db.commit()
        except SQLAlchemyError as e:
            if stored:
                await file_service.cleanup_file(stored.path)
            logger.error("Database error creating listing: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("Listing %s created by user %s", listing.id, owner.id)
        return listing

    async def update_listing(
        self,
        db: AsyncSession,
        listing: Listing,
        form: ListingForm,
        image: Optional[UploadFile] = None,
    ) -> Listing:
        """
        Overwrite the editable fields of `listing`.

        The form schema has no owner field, so ownership cannot change here.
        A new photo replaces the old one, which is then deleted from storage.
        """
        stored: Optional[StoredImage] = None
        if image is not None:
            stored = await file_service.store_upload(image)

        previous_image = listing.image_filename
        for field, value in form.model_dump().items():
            setattr(listing, field, value)
        if stored:
            listing.image_filename = stored.filename
            listing.image_url = stored.url

        try:
            await db.commit()
        except SQLAlchemyError as e:
            if stored:
                await file_service.cleanup_file(stored.path)
            logger.error("Database error updating listing %s: %s", listing.id, str(e))
            raise DatabaseError(context={"listing_id": str(listing.id)})

        if stored and previous_image:
            await file_service.cleanup_file(previous_image)

        logger.info("Listing %s updated", listing.id)
        return listing

    async def delete_listing(self, db: AsyncSession, listing: Listing) -> int:
        """
        Delete `listing` and every review attached to it.

        Returns:
            Number of reviews removed.
        """
        listing_id = listing.id
        image_filename = listing.image_filename
        try:
            reviews_result = await db.execute(
                delete(Review).where(Review.listing_id == listing_id)
            )
            await db.execute(delete(Listing).where(Listing.id == listing_id))
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error deleting listing %s: %s", listing_id, str(e))
            raise DatabaseError(context={"listing_id": str(listing_id)})

        if image_filename:
            await file_service.cleanup_file(image_filename)

        removed = reviews_result.rowcount or 0
        logger.info("Listing %s deleted together with %d review(s)", listing_id, removed)
        return removed


listing_service = ListingService()
