# geolayers/schemas/geo.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Dict, Any, Optional, Literal, Union, Annotated

# [lon, lat] (an optional altitude is carried along and ignored)
Position = Annotated[List[float], Field(min_length=2)]
Ring = List[Position]

def _check_ring(ring: Ring) -> Ring:
    if len(ring) < 4:
        raise ValueError("a ring needs at least 4 positions")
    if ring[0][:2] != ring[-1][:2]:
        raise ValueError("ring is not closed (first and last positions differ)")
    return ring

class GeoModel(BaseModel):
    """
    Base for the GeoJSON variants.
    Unknown keys (crs, stray properties, bbox...) are dropped on validation.
    """
    model_config = ConfigDict(extra="ignore")

class Point(GeoModel):
    type: Literal["Point"] = "Point"
    coordinates: Position

    @property
    def lon(self) -> float:
        return self.coordinates[0]

    @property
    def lat(self) -> float:
        return self.coordinates[1]

class Polygon(GeoModel):
    """Ring 0 is the outer boundary, any other ring is a hole."""
    type: Literal["Polygon"] = "Polygon"
    coordinates: List[Ring] = Field(min_length=1)

    @field_validator("coordinates")
    @classmethod
    def _rings_closed(cls, rings: List[Ring]) -> List[Ring]:
        for ring in rings:
            _check_ring(ring)
        return rings

    @property
    def rings(self) -> List[Ring]:
        return self.coordinates

    @property
    def outer(self) -> Ring:
        return self.coordinates[0]

class MultiPolygon(GeoModel):
    type: Literal["MultiPolygon"] = "MultiPolygon"
    coordinates: List[List[Ring]]

    @field_validator("coordinates")
    @classmethod
    def _polygons_closed(cls, polygons: List[List[Ring]]) -> List[List[Ring]]:
        for rings in polygons:
            if not rings:
                raise ValueError("polygon without rings")
            for ring in rings:
                _check_ring(ring)
        return polygons

    @property
    def polygons(self) -> List[Polygon]:
        return [Polygon(coordinates=rings) for rings in self.coordinates]

BareGeometry = Annotated[Union[Point, Polygon, MultiPolygon], Field(discriminator="type")]

class Feature(GeoModel):
    type: Literal["Feature"] = "Feature"
    geometry: Optional[BareGeometry] = None
    properties: Optional[Dict[str, Any]] = None

class FeatureCollection(GeoModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: List[Feature] = Field(default_factory=list)

Geometry = Annotated[
    Union[Point, Polygon, MultiPolygon, Feature, FeatureCollection],
    Field(discriminator="type"),
]

GEOMETRY_TYPES = ("Point", "Polygon", "MultiPolygon", "Feature", "FeatureCollection")
