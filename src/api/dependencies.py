"""FastAPI dependency injection helpers."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database import async_session_factory


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """
    Yield one unit of work per request.

    Creation endpoints lock the vehicle row, check overlaps and insert inside
    this session, so the commit here is what releases the row lock.  Any
    exception (including a schedule conflict) rolls the whole request back.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
