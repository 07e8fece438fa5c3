# geolayers/routers/spatial.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from geolayers.api.deps import get_spatial_orchestrator
from geolayers.core.exceptions import FilterGeometryNotFound, InvalidGeometryType
from geolayers.schemas.spatial import ErrorResponse, SpatialQuery, SpatialQueryResponse
from geolayers.services.spatial.orchestrator import LayerQueryOrchestrator

router = APIRouter()

@router.post(
    "/spatial/query",
    response_model=SpatialQueryResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def spatial_query(
    query: SpatialQuery,
    orchestrator: LayerQueryOrchestrator = Depends(get_spatial_orchestrator),
):
    """
    Ex: {"primaryLayer": "parks", "filterValue": "Clinton Hill", "limit": 10}
    An empty `results` list is a successful answer, not an error.
    """
    try:
        return await orchestrator.run(query)
    except FilterGeometryNotFound as e:
        return JSONResponse(status_code=404, content={"error": str(e)})
    except InvalidGeometryType as e:
        return JSONResponse(status_code=422, content={"error": str(e)})
