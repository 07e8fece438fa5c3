# geolayers/core/database.py
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from geolayers.core.config import settings

Base = declarative_base()

def build_engine(url: str = settings.DATABASE_URL, echo: bool = settings.DB_ECHO) -> AsyncEngine:
    """Postgres (asyncpg) in production, SQLite (aiosqlite) in tests."""
    return create_async_engine(url, echo=echo, future=True)

def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # GeometryStore and the layer repositories read rows after commit
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

engine = build_engine()
AsyncSessionLocal = build_session_factory(engine)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, used by the layer repositories."""
    async with AsyncSessionLocal() as session:
        yield session
