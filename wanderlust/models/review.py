"""
Wanderlust Backend - Review Model
==================================

What:  ORM model for the `reviews` table.
Who:   ReviewService (create/delete), the review-author guard, and the
       listing detail page.

A review always belongs to one listing (listing_id NOT NULL) and is
immutable once written; the only transition is deletion by its author.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wanderlust.database import Base

if TYPE_CHECKING:
    from wanderlust.models.listing import Listing
    from wanderlust.models.user import User


class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    comment: Mapped[str] = mapped_column(Text, nullable=False)

    # Star rating, 1-5
    rating: Mapped[int] = mapped_column(Integer, nullable=False)

    author_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=True,
    )
    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("listings.id"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    author: Mapped[Optional["User"]] = relationship()
    listing: Mapped["Listing"] = relationship(back_populates="reviews")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        Index("idx_reviews_listing_id", "listing_id"),
    )

    def is_written_by(self, user: Optional["User"]) -> bool:
        return user is not None and self.author_id is not None and self.author_id == user.id

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, listing_id={self.listing_id}, rating={self.rating})>"
