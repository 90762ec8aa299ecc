import logging
from typing import AsyncGenerator

from fastapi import Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from config import ELEVATED_PROFILES
from src.core.services.access_policy import QueueAccessPolicy
from src.infrastructure.database import SessionLocal

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a SQLAlchemy AsyncSession, ensuring proper cleanup."""
    async with SessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_acting_user_id(
    x_user_id: str | None = Header(None, alias="X-User-ID"),
) -> int:
    """Return the authenticated user id set by the upstream auth layer."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-ID header")
    try:
        return int(x_user_id)
    except ValueError:
        logger.warning("Rejected non-numeric X-User-ID %r", x_user_id)
        raise HTTPException(status_code=401, detail="Invalid X-User-ID header")


def get_access_policy() -> QueueAccessPolicy:
    return QueueAccessPolicy.from_profiles(ELEVATED_PROFILES)
