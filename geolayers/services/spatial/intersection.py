# geolayers/services/spatial/intersection.py
from geolayers.schemas.geo import Polygon
from geolayers.services.spatial.centroid import centroid
from geolayers.services.spatial.raycast import contains

def related(a: Polygon, b: Polygon) -> bool:
    """
    Cheap "do these polygons overlap?" test: true when the centroid of either
    polygon falls inside the other one.

    This is an approximation, not polygon clipping. Two overlapping shapes
    whose centroids both land outside the other shape report False, e.g. two
    thin bars crossing only at their ends. The reverse also happens: a
    C-shaped polygon has its centroid in its own notch, so a disjoint shape
    covering that notch reports True.
    """
    return contains(centroid(a), b) or contains(centroid(b), a)
