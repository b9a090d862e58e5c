"""
Wanderlust Backend - Review Service
====================================

What:  Create and delete reviews under a listing.
Who:   Review route handlers and the review-author guard.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlust.exceptions import DatabaseError
from wanderlust.models.listing import Listing
from wanderlust.models.review import Review
from wanderlust.models.user import User
from wanderlust.schemas.forms import ReviewForm

logger = logging.getLogger(__name__)


class ReviewService:

    async def get_review(self, db: AsyncSession, review_id: UUID) -> Optional[Review]:
        try:
            return await db.get(Review, review_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching review %s: %s", review_id, str(e))
            raise DatabaseError(context={"review_id": str(review_id)})

    async def create_review(
        self,
        db: AsyncSession,
        listing_id: UUID,
        form: ReviewForm,
        author: User,
    ) -> Optional[Review]:
        """
        Attach a new review to a listing.

        Returns:
            The review, or None when the listing does not exist.
        """
        try:
            listing = await db.get(Listing, listing_id)
            if listing is None:
                return None

            review = Review(
                comment=form.comment,
                rating=form.rating,
                author_id=author.id,
                listing_id=listing.id,
            )
            db.add(review)
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error creating review on %s: %s", listing_id, str(e))
            raise DatabaseError(context={"listing_id": str(listing_id)})

        logger.info("Review %s added to listing %s by user %s", review.id, listing_id, author.id)
        return review

    async def delete_review(self, db: AsyncSession, review: Review) -> None:
        """Remove the review row; the listing's review list is derived from it."""
        try:
            await db.execute(delete(Review).where(Review.id == review.id))
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error deleting review %s: %s", review.id, str(e))
            raise DatabaseError(context={"review_id": str(review.id)})

        logger.info("Review %s deleted from listing %s", review.id, review.listing_id)


review_service = ReviewService()
