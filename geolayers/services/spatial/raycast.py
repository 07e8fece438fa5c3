# geolayers/services/spatial/raycast.py
"""
Point-in-polygon by even-odd ray casting.

A horizontal ray is cast from the point towards +lon and the ring edges it
crosses are counted; an odd count means the point is inside that ring.
The per-ring results are XOR-ed across every ring of the polygon, so a point
inside the outer ring and inside one hole ends up outside. Hole nesting is
not verified.

Points lying exactly on an edge have no guaranteed membership: depending on
the edge orientation they may land on either side.
"""
from typing import Optional, Sequence, Tuple

from geolayers.schemas.geo import Polygon, Ring

BBox = Tuple[float, float, float, float]  # min_lon, min_lat, max_lon, max_lat

def point_in_ring(lon: float, lat: float, ring: Ring) -> bool:
    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        # (yi > lat) != (yj > lat) also guarantees yj != yi below
        if (yi > lat) != (yj > lat) and lon < (xj - xi) * (lat - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside

def bounding_box(polygon: Polygon) -> BBox:
    """Bounding box of the outer ring."""
    lons = [p[0] for p in polygon.outer]
    lats = [p[1] for p in polygon.outer]
    return min(lons), min(lats), max(lons), max(lats)

def contains(point: Sequence[float], polygon: Polygon, bbox: Optional[BBox] = None) -> bool:
    """
    True when `point` ([lon, lat]) falls inside `polygon`.

    `bbox`, when given, must be `bounding_box(polygon)`; points outside it are
    rejected without walking the rings. Cost is O(total vertices) otherwise.
    """
    lon, lat = point[0], point[1]
    if bbox is not None:
        min_lon, min_lat, max_lon, max_lat = bbox
        if lon < min_lon or lon > max_lon or lat < min_lat or lat > max_lat:
            return False

    inside = False
    for ring in polygon.rings:
        inside ^= point_in_ring(lon, lat, ring)
    return inside
