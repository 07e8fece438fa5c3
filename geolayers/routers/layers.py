# geolayers/routers/layers.py
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from geolayers.api.deps import get_catalog, get_geometry_store
from geolayers.core.database import get_db
from geolayers.core.exceptions import InvalidGeometryType, UpstreamUnavailable
from geolayers.repositories.geometry_repository import GeometryStore
from geolayers.repositories.layer_repository import LAYER_REPOSITORIES
from geolayers.schemas.geo import Feature, FeatureCollection, MultiPolygon, Point, Polygon
from geolayers.schemas.spatial import LayerEntry, LayerType
from geolayers.services.opendata.cache import OpenDataCatalog
from geolayers.services.opendata.orchestrator import LayerSyncOrchestrator
from geolayers.services.spatial.borough import display_name, normalize

logger = logging.getLogger(__name__)

router = APIRouter()

# --- READ ROUTES ---

@router.get("/layers/{layer}/search", response_model=List[LayerEntry])
async def search_layer(
    layer: LayerType,
    q: str = Query("", description="Substring of the feature name"),
    borough: Optional[str] = Query(None, description="Borough code or name (1, K, Brooklyn...)"),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    """Autocomplete over one layer. An unknown borough value is ignored."""
    repo = LAYER_REPOSITORIES[layer](db)
    return await repo.search(q, normalize(borough), limit)

@router.get("/layers/{layer}/map", response_model=FeatureCollection)
async def layer_map(
    layer: LayerType,
    borough: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    store: GeometryStore = Depends(get_geometry_store),
):
    """FeatureCollection of the layer entries that have a boundary."""
    repo = LAYER_REPOSITORIES[layer](db)
    entries = await repo.search("", normalize(borough), limit)

    features = []
    for entry in entries:
        if not entry.geometry_ref:
            continue
        record = await store.get(entry.geometry_ref)
        if record is None:
            continue
        try:
            geometry = store.codec.unwrap(record.data)
        except InvalidGeometryType as e:
            logger.warning(f"⚠️ Skipping {entry.display_name} on the map: {e}")
            continue
        if not isinstance(geometry, (Point, Polygon, MultiPolygon)):
            continue
        features.append(Feature(
            geometry=geometry,
            properties={
                "id": entry.id,
                "name": entry.display_name,
                "borough": display_name(entry.borough_code) or entry.borough_code,
            },
        ))
    return FeatureCollection(features=features)

# --- ADMIN ROUTES (SYNC) ---

@router.post("/admin/layers/{layer}/sync")
async def sync_layer(
    layer: LayerType,
    db: AsyncSession = Depends(get_db),
    store: GeometryStore = Depends(get_geometry_store),
    catalog: OpenDataCatalog = Depends(get_catalog),
):
    """Downloads the layer from NYC Open Data (24h cache) and reloads its table."""
    orchestrator = LayerSyncOrchestrator(db, store, catalog)
    try:
        return await orchestrator.sync_layer(layer)
    except UpstreamUnavailable as e:
        raise HTTPException(status_code=502, detail=str(e))
