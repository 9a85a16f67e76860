from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import declarative_base

from gstbill.domain.exceptions import ConcurrencyConflictError

Base = declarative_base()


async def commit_or_conflict(db: AsyncSession, message: str, details: dict | None = None) -> None:
    """Commit the session; a uniqueness violation rolls back and becomes ConcurrencyConflictError."""
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConcurrencyConflictError(message, details) from exc
