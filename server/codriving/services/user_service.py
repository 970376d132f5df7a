"""User service: the credit-balance collaborator of the booking lifecycle."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InvalidRequestError, NotFoundError
from ..models.user import User
from ..schemas.user import CreateUserRequest

logger = logging.getLogger(__name__)


class UserService:
    """Service for user lookups and credit balance updates."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_user(self, request: CreateUserRequest) -> User:
        """
        Create a new user.

        Raises:
            InvalidRequestError: If the pseudo or mail is already taken
        """
        user = User(
            pseudo=request.pseudo,
            firstname=request.firstname,
            lastname=request.lastname,
            mail=request.mail,
            credits=request.credits,
            profile_picture=request.profile_picture,
        )

        try:
            self.db.add(user)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(
                "User creation failed - pseudo or mail already taken",
                extra={"pseudo": request.pseudo}
            )
            raise InvalidRequestError(
                detail=f"A user with pseudo '{request.pseudo}' or this mail already exists",
                code="USER_EXISTS"
            )

        await self.db.refresh(user)

        logger.info(
            "User created successfully",
            extra={"user_id": str(user.id), "pseudo": user.pseudo, "credits": user.credits}
        )

        return user

    async def find_by_id(self, user_id: UUID, for_update: bool = False) -> Optional[User]:
        """
        Get user by ID.

        Args:
            user_id: User ID to search for
            for_update: Lock the row and reload it from the database

        Returns:
            User if found, None otherwise
        """
        stmt = select(User).where(User.id == user_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_id_or_raise(self, user_id: UUID) -> User:
        user = await self.find_by_id(user_id)
        if not user:
            logger.warning("User not found", extra={"user_id": str(user_id)})
            raise NotFoundError(resource_type="user", resource_id=str(user_id))
        return user

    async def update_credits(self, user_id: UUID, credits: int, commit: bool = True) -> Optional[User]:
        """
        Set a user's credit balance.

        Args:
            user_id: User whose balance changes
            credits: New balance, never negative
            commit: Commit immediately; the booking lifecycle passes False and
                commits the whole transition at once

        Returns:
            Updated user, or None if the user does not exist
        """
        if credits < 0:
            raise InvalidRequestError(
                detail=f"Credit balance cannot become negative ({credits})",
                code="NEGATIVE_CREDITS"
            )

        user = await self.find_by_id(user_id)
        if not user:
            return None

        previous = user.credits
        user.credits = credits
        self.db.add(user)

        if commit:
            await self.db.commit()
            await self.db.refresh(user)

        logger.debug(
            "User credits updated",
            extra={"user_id": str(user_id), "previous": previous, "credits": credits}
        )

        return user
