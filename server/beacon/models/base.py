import uuid
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from beacon.config import settings


def _connect_args(url: str) -> dict:
    # aiosqlite hands the connection to its own worker thread
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


engine = create_async_engine(settings.database_url, connect_args=_connect_args(settings.database_url))
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Request-scoped session; committed when the route returns cleanly."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """Create missing tables on startup; there is no migration step."""
    import beacon.models  # noqa: F401  registers Conversion on Base.metadata

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
