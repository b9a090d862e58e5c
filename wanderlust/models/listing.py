"""
Wanderlust Backend - Listing Model
===================================

What:  ORM model representing the `listings` table.
Who:   ListingService for CRUD, the ownership guard for permission checks,
       and the templates for rendering.

Table Design:
    - owner_id: set once at creation from the logged-in user, never reassigned
    - image_filename / image_url: storage key and public URL of the photo
      (both NULL when the listing was created without an image)
    - price: CHECK (price >= 0) backs up the form validator
    - reviews: ordered oldest first; removed explicitly by
      ListingService.delete_listing before the listing row itself

Lifecycle:
    1. Created by POST /listings (owner attached, optional image attached)
    2. Edited any number of times by its owner (PUT /listings/{id})
    3. Deleted by its owner together with all of its reviews
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wanderlust.database import Base

if TYPE_CHECKING:
    from wanderlust.models.review import Review
    from wanderlust.models.user import User


class Listing(Base):
    __tablename__ = "listings"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # ── Image ─────────────────────────────────────────────────────────────
    # image_filename: storage key relative to STORAGE_ROOT (YYYY/MM/DD/<uuid>.jpg)
    # image_url:      public URL the templates put in <img src>
    image_filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    price: Mapped[float] = mapped_column(Float, nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    country: Mapped[str] = mapped_column(String(120), nullable=False)

    owner_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # ── Relationships ─────────────────────────────────────────────────────
    # Async sessions cannot lazy-load; queries that render these must
    # selectinload() them (see ListingService.get_listing_detail).
    owner: Mapped[Optional["User"]] = relationship()
    reviews: Mapped[List["Review"]] = relationship(
        back_populates="listing",
        order_by="Review.created_at",
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_listings_price_non_negative"),
        Index("idx_listings_owner_id", "owner_id"),
    )

    def is_owned_by(self, user: Optional["User"]) -> bool:
        """True only when `user` is the recorded owner; a missing user never owns anything."""
        return user is not None and self.owner_id is not None and self.owner_id == user.id

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, title='{self.title}', owner_id={self.owner_id})>"
