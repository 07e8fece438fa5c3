# geolayers/services/spatial/centroid.py
from typing import Tuple

from geolayers.schemas.geo import Polygon

def centroid(polygon: Polygon) -> Tuple[float, float]:
    """
    Signed-area (shoelace) centroid of the outer ring. Holes are ignored.
    A ring with zero signed area returns its first vertex.
    """
    ring = polygon.outer
    x = y = area = 0.0
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        cross = xi * yj - xj * yi
        area += cross
        x += (xi + xj) * cross
        y += (yi + yj) * cross
        j = i

    area *= 0.5
    if area == 0:
        return ring[0][0], ring[0][1]
    return x / (6 * area), y / (6 * area)
