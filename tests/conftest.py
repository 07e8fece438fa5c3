"""Pytest configuration and shared fixtures."""

import os

# Settings() requires DATABASE_URL at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest

from geolayers.core.database import Base, build_engine, build_session_factory
from geolayers.models.geojson import GeoJSONData  # noqa: F401  (registers the table)
from geolayers.models.layers import Neighborhood, Park, SchoolZone  # noqa: F401


@pytest.fixture
async def session_factory(tmp_path):
    """Session factory bound to a throwaway SQLite file (one connection per session)."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'geolayers.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session
