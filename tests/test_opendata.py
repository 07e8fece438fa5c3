"""NYC Open Data download and layer sync."""

import json
from datetime import timedelta

import geopandas as gpd
import httpx
import pytest
from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import Polygon as ShapelyPolygon

from geolayers.core.exceptions import UpstreamUnavailable
from geolayers.repositories.geometry_repository import GeometryStore
from geolayers.repositories.layer_repository import build_layer_repositories
from geolayers.schemas.geo import Point, Polygon
from geolayers.schemas.spatial import LayerType
from geolayers.services.opendata.cache import OpenDataCatalog
from geolayers.services.opendata.client import OpenDataClient
from geolayers.services.opendata.orchestrator import LayerSyncOrchestrator, _school_name, _text
from geolayers.services.spatial.borough import Borough


NTA_GEOJSON = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "properties": {"ntaname": "Clinton Hill", "boroname": "Brooklyn", "nta2020": "BK0202"},
            "geometry": {
                "type": "Polygon",
                "coordinates": [[[-73.97, 40.68], [-73.95, 40.68], [-73.95, 40.70], [-73.97, 40.70], [-73.97, 40.68]]],
            },
        },
    ],
}


class TestOpenDataClient:

    async def test_fetch_layer(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=json.dumps(NTA_GEOJSON).encode())

        client = OpenDataClient(base_url="https://example.test/resource/", transport=httpx.MockTransport(handler))
        gdf = await client.fetch_layer("9nt8-h7nd")

        assert len(gdf) == 1
        assert gdf.iloc[0]["ntaname"] == "Clinton Hill"
        assert seen[0].url.path == "/resource/9nt8-h7nd.geojson"
        assert seen[0].url.params["$limit"] == "5000"

    async def test_non_200_is_upstream_unavailable(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503, text="busy"))
        client = OpenDataClient(transport=transport)

        with pytest.raises(UpstreamUnavailable, match="503"):
            await client.fetch_layer("enfh-gkve")

    async def test_network_error_is_upstream_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = OpenDataClient(transport=httpx.MockTransport(handler))
        with pytest.raises(UpstreamUnavailable):
            await client.fetch_layer("cmjf-yawu")


class FakeClient:
    """Serves prebuilt GeoDataFrames by dataset id."""

    def __init__(self, frames):
        self.frames = frames
        self.calls = []

    async def fetch_layer(self, dataset):
        self.calls.append(dataset)
        return self.frames[dataset]


def _square(x0, y0, size=1.0):
    return ShapelyPolygon([(x0, y0), (x0 + size, y0), (x0 + size, y0 + size), (x0, y0 + size)])


class TestLayerSync:

    async def test_sync_parks(self, db, session_factory):
        frame = gpd.GeoDataFrame(
            {
                "name311": ["Fort Greene Park", None, "Ghost Park"],
                "signname": ["Fort Greene Park", None, None],
                "borough": ["B", "Q", "M"],
                "borocode": ["3", "4", "1"],
                "address": ["DeKalb Ave", None, None],
                "acres": ["30.17", None, None],
                "typecategory": ["Community Park", None, None],
                "gispropnum": ["B032", "Q000", "M999"],
            },
            geometry=[_square(-73.977, 40.689, 0.004), _square(0, 0), None],
            crs="EPSG:4326",
        )
        client = FakeClient({"enfh-gkve": frame})
        store = GeometryStore(session_factory)
        orchestrator = LayerSyncOrchestrator(db, store, OpenDataCatalog(client, ttl=timedelta(hours=24)))

        summary = await orchestrator.sync_layer(LayerType.PARKS)

        # The nameless row is dropped, Ghost Park is kept without a boundary
        assert summary == {"status": "success", "layer": "parks", "imported": 2, "with_geometry": 1}

        parks = build_layer_repositories(db)[LayerType.PARKS]
        entries = await parks.search("", Borough.BROOKLYN)
        assert [e.display_name for e in entries] == ["Fort Greene Park"]
        assert entries[0].attributes["acreage"] == "30.17"

        record = await store.require(entries[0].geometry_ref)
        assert isinstance(record.data, Polygon)
        assert record.metadata == {"source_layer": "parks", "name": "Fort Greene Park", "source": "nyc_open_data"}

        ghost = await parks.search("ghost")
        assert ghost[0].geometry_ref is None

    async def test_sync_uses_cache(self, db, session_factory):
        frame = gpd.GeoDataFrame(
            {"ntaname": ["Clinton Hill"], "boroname": ["Brooklyn"], "nta2020": ["BK0202"], "cdtaname": [None]},
            geometry=[_square(-73.97, 40.68, 0.02)],
            crs="EPSG:4326",
        )
        client = FakeClient({"9nt8-h7nd": frame})
        catalog = OpenDataCatalog(client, ttl=timedelta(hours=24))
        orchestrator = LayerSyncOrchestrator(db, GeometryStore(session_factory), catalog)

        await orchestrator.sync_layer(LayerType.NEIGHBORHOODS)
        summary = await orchestrator.sync_layer(LayerType.NEIGHBORHOODS)

        assert client.calls == ["9nt8-h7nd"]
        assert summary["imported"] == 1
        entries = await build_layer_repositories(db)[LayerType.NEIGHBORHOODS].search("clinton")
        assert len(entries) == 1

    async def test_sync_school_zones_with_point_geometry(self, db, session_factory):
        frame = gpd.GeoDataFrame(
            {
                "dbn": ["13K011"],
                "label": ["P.S. 11 (13K011)"],
                "schooldist": ["13"],
                "boro": ["K"],
                "boro_num": ["3"],
            },
            geometry=[ShapelyPoint(-73.96, 40.69)],
            crs="EPSG:4326",
        )
        store = GeometryStore(session_factory)
        catalog = OpenDataCatalog(FakeClient({"cmjf-yawu": frame}))
        summary = await LayerSyncOrchestrator(db, store, catalog).sync_layer(LayerType.SCHOOL_ZONES)

        assert summary["with_geometry"] == 1
        entries = await build_layer_repositories(db)[LayerType.SCHOOL_ZONES].search("13k011", Borough.BROOKLYN)
        assert entries[0].display_name == "P.S. 11"
        record = await store.require(entries[0].geometry_ref)
        assert record.data == Point(coordinates=[-73.96, 40.69])

    async def test_rows_without_geometry_are_kept_attribute_only(self, db, session_factory):
        frame = gpd.GeoDataFrame(
            {"ntaname": ["Clinton Hill", "Fort Greene"], "boroname": ["Brooklyn", "Brooklyn"]},
            geometry=[None, _square(-73.98, 40.68, 0.01)],
            crs="EPSG:4326",
        )
        catalog = OpenDataCatalog(FakeClient({"9nt8-h7nd": frame}))

        summary = await LayerSyncOrchestrator(db, GeometryStore(session_factory), catalog).sync_layer(
            LayerType.NEIGHBORHOODS
        )

        assert summary["imported"] == 2
        assert summary["with_geometry"] == 1
        entries = await build_layer_repositories(db)[LayerType.NEIGHBORHOODS].search("")
        assert [(e.display_name, e.geometry_ref is None) for e in entries] == [
            ("Clinton Hill", True),
            ("Fort Greene", False),
        ]

    async def test_empty_upstream_is_a_warning(self, db, session_factory):
        empty = gpd.GeoDataFrame({"ntaname": []}, geometry=[], crs="EPSG:4326")
        catalog = OpenDataCatalog(FakeClient({"9nt8-h7nd": empty}))

        summary = await LayerSyncOrchestrator(db, GeometryStore(session_factory), catalog).sync_layer(
            LayerType.NEIGHBORHOODS
        )
        assert summary["status"] == "warning"


def test_text_helper():
    assert _text(float("nan"), 10) is None
    assert _text(None, 10) is None
    assert _text("   ", 10) is None
    assert _text(" abcdef ", 3) == "abc"
    assert _text(3, 2) == "3"


def test_school_name_from_label():
    assert _school_name("13K011", "P.S. 11 (13K011)") == "P.S. 11"
    assert _school_name("13K011", "13K011") is None
    assert _school_name("13K011", None) is None
