"""
Wanderlust Backend - User Service
==================================

What:  Account registration and credential checks.
How:   bcrypt hashes (cost from BCRYPT_ROUNDS); usernames are unique,
       enforced by the users.username unique index.
Who:   /signup and /login handlers, the request context.

Login failures are reported the same way whether the username is unknown
or the password is wrong.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlust.exceptions import AuthenticationError, DatabaseError, DuplicateUserError
from wanderlust.models.user import User
from wanderlust.schemas.forms import SignupForm
from wanderlust.security import hash_password, verify_password

logger = logging.getLogger(__name__)


class UserService:

    async def get_by_username(self, db: AsyncSession, username: str) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.username == username))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up user %s: %s", username, str(e))
            raise DatabaseError(context={"username": username})

    async def get_by_id(self, db: AsyncSession, user_id: UUID) -> Optional[User]:
        try:
            return await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": str(user_id)})

    async def register(self, db: AsyncSession, form: SignupForm) -> User:
        """
        Create an account.

        Raises:
            DuplicateUserError: username already taken (400)
            DatabaseError:      anything else the database refuses (500)
        """
        if await self.get_by_username(db, form.username) is not None:
            raise DuplicateUserError(form.username)

        user = User(
            username=form.username,
            email=form.email,
            password_hash=hash_password(form.password),
        )
        try:
            db.add(user)
            await db.commit()
        except IntegrityError:
            # Lost a race on the unique index
            await db.rollback()
            raise DuplicateUserError(form.username)
        except SQLAlchemyError as e:
            logger.error("Database error registering %s: %s", form.username, str(e))
            raise DatabaseError(context={"username": form.username})

        logger.info("User registered: %s (%s)", user.username, user.id)
        return user

    async def authenticate(self, db: AsyncSession, username: str, password: str) -> User:
        """
        Return the account matching the credentials.

        Raises:
            AuthenticationError: unknown username or wrong password (same message)
        """
        user = await self.get_by_username(db, username)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt for username %s", username)
            raise AuthenticationError()
        return user


user_service = UserService()
