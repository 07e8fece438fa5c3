# geolayers/schemas/spatial.py
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Dict, Any, Optional
from geolayers.core.config import settings

class LayerType(str, Enum):
    PARKS = "parks"
    NEIGHBORHOODS = "neighborhoods"
    SCHOOL_ZONES = "schoolZones"

class SpatialRelation(str, Enum):
    WITHIN = "within"
    INTERSECTS = "intersects"

class CamelModel(BaseModel):
    # API speaks camelCase (primaryLayer, totalResults...), Python speaks snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class LayerEntry(CamelModel):
    """One feature of a layer. The geometry is only referenced, never embedded."""
    id: str
    display_name: str
    borough_code: Optional[str] = None   # raw value, as stored by the layer
    attributes: Dict[str, Any] = Field(default_factory=dict)
    geometry_ref: Optional[str] = None

class SpatialQuery(CamelModel):
    primary_layer: LayerType
    filter_value: str = Field(..., min_length=1)
    limit: int = Field(settings.SPATIAL_DEFAULT_LIMIT, ge=1, le=settings.SPATIAL_MAX_LIMIT)

class SpatialResult(CamelModel):
    id: str
    layer_type: LayerType
    name: str
    borough: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)
    geojson_data_id: Optional[str] = None   # fetch the shape via GET /geojson/{id}
    analysis_query: str
    spatial_relation: SpatialRelation
    filter_description: str

class SpatialQueryResponse(CamelModel):
    results: List[SpatialResult]
    query: str
    total_results: int
    spatial_relation: str = SpatialRelation.INTERSECTS.value
    filter_description: str

class ErrorResponse(BaseModel):
    error: str
