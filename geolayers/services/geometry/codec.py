# geolayers/services/geometry/codec.py
import logging
from typing import Any, Dict, Mapping, Optional
from pydantic import BaseModel, TypeAdapter, ValidationError

from geolayers.core.exceptions import InvalidGeometryType
from geolayers.schemas.geo import (
    Geometry, GEOMETRY_TYPES, Feature, MultiPolygon, Polygon,
)

logger = logging.getLogger(__name__)

_GEOMETRY_ADAPTER = TypeAdapter(Geometry)

# Keys that belong to each variant. Everything else is upstream noise.
_ALLOWED_KEYS = {
    "Point": {"type", "coordinates"},
    "Polygon": {"type", "coordinates"},
    "MultiPolygon": {"type", "coordinates"},
    "Feature": {"type", "geometry", "properties"},
    "FeatureCollection": {"type", "features"},
}

class GeometryCodec:
    """
    Boundary between loosely-typed GeoJSON payloads and the Geometry union.
    Coordinates pass through untouched: [lon, lat], no CRS transformation.
    """

    def sanitize(self, raw: Any, keep_feature: bool = False) -> Geometry:
        """
        Validates a raw payload into a Geometry.

        A Feature is unwrapped to its bare geometry unless keep_feature=True.
        Foreign keys such as `crs` or a `properties` block glued onto a bare
        geometry are dropped. Unknown/missing `type` or malformed coordinates
        raise InvalidGeometryType.
        """
        if isinstance(raw, BaseModel):
            raw = self.to_json(raw)
        if not isinstance(raw, Mapping):
            raise InvalidGeometryType(f"Expected a GeoJSON object, got {type(raw).__name__}")

        geo_type = raw.get("type")
        if geo_type not in GEOMETRY_TYPES:
            raise InvalidGeometryType(f"Unrecognized geometry type: {geo_type!r}")

        if geo_type == "Feature" and not keep_feature:
            inner = raw.get("geometry")
            if inner is None:
                raise InvalidGeometryType("Feature has no geometry")
            return self.sanitize(inner)

        foreign = set(raw) - _ALLOWED_KEYS[geo_type]
        if foreign:
            logger.debug(f"Dropping foreign keys from {geo_type}: {sorted(foreign)}")

        clean = {k: v for k, v in raw.items() if k not in foreign}
        try:
            return _GEOMETRY_ADAPTER.validate_python(clean)
        except ValidationError as e:
            first = e.errors()[0]
            raise InvalidGeometryType(f"Malformed {geo_type}: {first['msg']}") from e

    def unwrap(self, geometry: Geometry) -> Geometry:
        """Feature -> its geometry. Anything else is returned as is."""
        if isinstance(geometry, Feature):
            if geometry.geometry is None:
                raise InvalidGeometryType("Feature has no geometry")
            return geometry.geometry
        return geometry

    def first_polygon(self, geometry: Geometry) -> Optional[Polygon]:
        """
        Polygon as is, MultiPolygon narrowed to its first part.
        Multi-part areas are not fully honored (only part 0 takes part in tests).
        """
        if isinstance(geometry, Polygon):
            return geometry
        if isinstance(geometry, MultiPolygon) and geometry.coordinates:
            return geometry.polygons[0]
        return None

    def to_json(self, geometry: BaseModel) -> Dict[str, Any]:
        return geometry.model_dump(mode="json", exclude_none=True)
