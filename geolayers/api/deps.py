# geolayers/api/deps.py
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from geolayers.core.database import AsyncSessionLocal, get_db
from geolayers.repositories.geometry_repository import GeometryStore
from geolayers.repositories.layer_repository import build_layer_repositories
from geolayers.services.opendata.cache import OpenDataCatalog
from geolayers.services.spatial.orchestrator import LayerQueryOrchestrator

def get_geometry_store() -> GeometryStore:
    # The store opens its own sessions so candidate fetches can run concurrently
    return GeometryStore(AsyncSessionLocal)

async def get_spatial_orchestrator(
    db: AsyncSession = Depends(get_db),
    store: GeometryStore = Depends(get_geometry_store),
) -> LayerQueryOrchestrator:
    return LayerQueryOrchestrator(build_layer_repositories(db), store)

def get_catalog(request: Request) -> OpenDataCatalog:
    """Process-wide upstream cache, created in the app lifespan."""
    return request.app.state.catalog
