# geolayers/routers/geojson.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from geolayers.api.deps import get_geometry_store
from geolayers.core.exceptions import GeometryNotFound
from geolayers.repositories.geometry_repository import GeometryStore

router = APIRouter()

@router.get("/geojson/{geometry_id}")
async def get_geojson(geometry_id: str, store: GeometryStore = Depends(get_geometry_store)):
    """Resolves a geojsonDataId returned by /spatial/query into the shape itself."""
    try:
        record = await store.require(geometry_id)
    except GeometryNotFound as e:
        return JSONResponse(status_code=404, content={"error": str(e)})
    return {"geojson": store.codec.to_json(record.data)}
