"""Spatial queries through the real repositories and geometry store on SQLite."""

import pytest

from geolayers.api.deps import get_spatial_orchestrator
from geolayers.core.exceptions import FilterGeometryNotFound
from geolayers.repositories.geometry_repository import GeometryStore
from geolayers.repositories.layer_repository import build_layer_repositories
from geolayers.schemas.spatial import LayerType, SpatialQuery, SpatialRelation
from geolayers.services.spatial.orchestrator import LayerQueryOrchestrator


def square(x0, y0, x1, y1):
    return [[[x0, y0], [x1, y0], [x1, y1], [x0, y1], [x0, y0]]]


CLINTON_HILL = {
    "type": "Feature",
    "properties": {"ntaname": "Clinton Hill"},
    "geometry": {
        "type": "MultiPolygon",
        "coordinates": [
            square(-73.97, 40.68, -73.95, 40.70),
            square(-73.80, 40.60, -73.78, 40.62),  # ignored, only the first part is tested
        ],
    },
}


@pytest.fixture
def store(session_factory):
    return GeometryStore(session_factory)


@pytest.fixture
async def seeded(db, store):
    repos = build_layer_repositories(db)
    filter_ref = await store.put(CLINTON_HILL, {"source_layer": "neighborhoods"})
    await repos[LayerType.NEIGHBORHOODS].replace_all([
        {"name": "Clinton Hill", "borough": "Brooklyn", "nta_code": "BK0202", "cdta_name": None,
         "geojson_data_id": filter_ref},
    ])

    point_in = await store.put({"type": "Point", "coordinates": [-73.96, 40.69]})
    polygon_in = await store.put({"type": "Polygon", "coordinates": square(-73.965, 40.685, -73.955, 40.695)})
    point_far = await store.put({"type": "Point", "coordinates": [-73.90, 40.69]})
    point_second_part = await store.put({"type": "Point", "coordinates": [-73.79, 40.61]})

    # Ordered by name: A..F
    await repos[LayerType.PARKS].replace_all([
        {"name": "A Point Park", "borough": "B", "borocode": "3", "geojson_data_id": point_in},
        {"name": "B Dangling Park", "borough": "B", "borocode": "3", "geojson_data_id": "no-such-geometry"},
        {"name": "C Polygon Park", "borough": None, "borocode": "3", "geojson_data_id": polygon_in},
        {"name": "D Queens Park", "borough": "Q", "borocode": "4", "geojson_data_id": point_in},
        {"name": "E Far Park", "borough": "B", "borocode": "3", "geojson_data_id": point_far},
        {"name": "F Second Part Park", "borough": "B", "borocode": "3", "geojson_data_id": point_second_part},
    ])
    return repos


async def test_query_through_dependency_wiring(db, store, seeded):
    orchestrator = await get_spatial_orchestrator(db=db, store=store)

    response = await orchestrator.run(
        SpatialQuery(primary_layer=LayerType.PARKS, filter_value="clinton", limit=20)
    )

    assert response.filter_description == "Clinton Hill neighborhood in Brooklyn"
    assert [r.name for r in response.results] == ["A Point Park", "C Polygon Park"]
    assert response.total_results == 2

    point, polygon = response.results
    assert point.spatial_relation is SpatialRelation.WITHIN
    assert polygon.spatial_relation is SpatialRelation.INTERSECTS
    assert polygon.borough == "Brooklyn"
    assert (await store.require(polygon.geojson_data_id)).data.type == "Polygon"


async def test_limit_stops_the_scan(db, store, seeded):
    orchestrator = LayerQueryOrchestrator(build_layer_repositories(db), store, concurrency=1)

    response = await orchestrator.run(
        SpatialQuery(primary_layer=LayerType.PARKS, filter_value="Clinton Hill", limit=1)
    )

    assert [r.name for r in response.results] == ["A Point Park"]


async def test_unknown_filter(db, store, seeded):
    orchestrator = await get_spatial_orchestrator(db=db, store=store)

    with pytest.raises(FilterGeometryNotFound):
        await orchestrator.run(SpatialQuery(primary_layer=LayerType.PARKS, filter_value="Atlantis"))
