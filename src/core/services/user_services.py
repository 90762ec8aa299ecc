"""User lookup used to resolve the acting agent of a request."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.repositories.models import User
from src.shared.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class UserManager:
    """Handles user lookup together with queue assignments."""

    async def get_user(self, db: AsyncSession, user_id: int | str) -> User:
        """Return the user with ``queues`` loaded or raise ``NotFoundError``."""
        try:
            pk = int(user_id)
        except (TypeError, ValueError):
            raise NotFoundError("User not found", details=f"id={user_id!r}")

        result = await db.execute(
            select(User).options(selectinload(User.queues)).where(User.id == pk)
        )
        user = result.scalars().first()
        if user is None:
            logger.info("User %s not found", pk)
            raise NotFoundError("User not found", details=f"id={pk}")
        return user
