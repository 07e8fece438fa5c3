# geolayers/services/spatial/orchestrator.py
import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Mapping, Optional, Protocol, Tuple
from sqlalchemy.exc import SQLAlchemyError

from geolayers.core.config import settings
from geolayers.core.exceptions import FilterGeometryNotFound, GeometryNotFound, InvalidGeometryType
from geolayers.repositories.geometry_repository import GeometryRecord
from geolayers.schemas.geo import Geometry, Point, Polygon
from geolayers.schemas.spatial import (
    LayerEntry, LayerType, SpatialQuery, SpatialQueryResponse, SpatialRelation, SpatialResult,
)
from geolayers.services.geometry.codec import GeometryCodec
from geolayers.services.spatial.borough import Borough, borough_from_description, display_name
from geolayers.services.spatial.intersection import related
from geolayers.services.spatial.raycast import BBox, bounding_box, contains

logger = logging.getLogger(__name__)

class LayerProvider(Protocol):
    async def search(self, term: str = "", borough: Optional[Borough] = None, limit: int = 10) -> List[LayerEntry]:
        ...

class GeometrySource(Protocol):
    async def get(self, geometry_id: str) -> Optional[GeometryRecord]:
        ...

# Layers tried, in this order, to turn the filter text into a boundary
FILTER_RESOLUTION_ORDER = (LayerType.NEIGHBORHOODS, LayerType.PARKS, LayerType.SCHOOL_ZONES)

_FILTER_LABELS = {
    LayerType.NEIGHBORHOODS: "neighborhood",
    LayerType.PARKS: "park",
    LayerType.SCHOOL_ZONES: "school zone",
}

_LAYER_LABELS = {
    LayerType.NEIGHBORHOODS: "neighborhoods",
    LayerType.PARKS: "parks",
    LayerType.SCHOOL_ZONES: "school zones",
}

@dataclass
class ResolvedFilter:
    layer: LayerType
    entry: LayerEntry
    polygon: Polygon
    description: str

class LayerQueryOrchestrator:
    """
    Answers "features of layer X related to area Y":

    1. resolve Y to a boundary (neighborhoods, then parks, then school zones)
    2. narrow it to one polygon (first part of a MultiPolygon)
    3. pull X candidates, prefiltered by the borough named in Y's description
    4. test each candidate: points with ray casting (within), polygons with
       the centroid heuristic (intersects)
    5. keep scan order and stop as soon as `limit` matches are collected

    Candidate geometries are prefetched through a sliding window of
    `concurrency` tasks; only this coroutine evaluates them and appends to
    the result list.
    """

    def __init__(
        self,
        providers: Mapping[LayerType, LayerProvider],
        store: GeometrySource,
        codec: Optional[GeometryCodec] = None,
        candidate_limit: int = settings.SPATIAL_CANDIDATE_LIMIT,
        filter_search_limit: int = settings.SPATIAL_FILTER_SEARCH_LIMIT,
        concurrency: int = settings.SPATIAL_FETCH_CONCURRENCY,
        fetch_timeout: float = settings.SPATIAL_FETCH_TIMEOUT,
    ):
        self.providers = providers
        self.store = store
        self.codec = codec or GeometryCodec()
        self.candidate_limit = candidate_limit
        self.filter_search_limit = filter_search_limit
        self.concurrency = max(1, concurrency)
        self.fetch_timeout = fetch_timeout

    async def run(self, query: SpatialQuery) -> SpatialQueryResponse:
        layer = query.primary_layer
        logger.info(f'🔍 Spatial analysis: finding {layer.value} in/near "{query.filter_value}"')

        # 1-2. Filter boundary (fatal on failure)
        resolved = await self.resolve_filter(query.filter_value)

        # 3. Candidates, same borough when the description names one
        borough = borough_from_description(resolved.description)
        candidates = await self.providers[layer].search("", borough, self.candidate_limit)
        logger.info(
            f"📍 Checking {len(candidates)} {layer.value} for spatial intersection "
            f"(borough: {borough.value if borough else 'any'})..."
        )

        # 4-5. Geometric tests
        results = await self._scan(query, resolved, candidates)
        logger.info(f"📊 Found {len(results)} {layer.value} intersecting {resolved.description}")

        return SpatialQueryResponse(
            results=results,
            query=f"Find {layer.value} spatially intersecting {resolved.description}",
            total_results=len(results),
            spatial_relation=SpatialRelation.INTERSECTS.value,
            filter_description=resolved.description,
        )

    async def resolve_filter(self, filter_value: str) -> ResolvedFilter:
        for layer in FILTER_RESOLUTION_ORDER:
            provider = self.providers.get(layer)
            if provider is None:
                continue
            entries = await provider.search(filter_value, None, self.filter_search_limit)
            logger.debug(f"Found {len(entries)} {layer.value} matching \"{filter_value}\"")

            for entry in entries:
                geometry = await self._fetch_filter_geometry(entry)
                if geometry is None:
                    continue

                polygon = self.codec.first_polygon(geometry)
                if polygon is None:
                    logger.warning(f"⚠️ {entry.display_name} has a {geometry.type} boundary, not a polygon")
                    raise InvalidGeometryType(
                        f'Invalid geometry type for "{filter_value}". '
                        f"Expected Polygon or MultiPolygon, got {geometry.type}."
                    )

                description = self._describe(layer, entry)
                logger.info(f"✅ Found {_FILTER_LABELS[layer]} boundary for: {description}")
                return ResolvedFilter(layer=layer, entry=entry, polygon=polygon, description=description)

        logger.warning(f'❌ No boundary found for "{filter_value}"')
        raise FilterGeometryNotFound(filter_value)

    async def _fetch_filter_geometry(self, entry: LayerEntry) -> Optional[Geometry]:
        if not entry.geometry_ref:
            logger.debug(f"No geometry reference for {entry.display_name}")
            return None
        try:
            record = await asyncio.wait_for(self.store.get(entry.geometry_ref), timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"⚠️ Boundary fetch for {entry.display_name} timed out after {self.fetch_timeout}s")
            return None
        if record is None:
            logger.warning(f"⚠️ Geometry {entry.geometry_ref} of {entry.display_name} not found")
            return None
        # A broken filter geometry is fatal, no unwrap guard here
        return self.codec.unwrap(record.data)

    async def _scan(self, query: SpatialQuery, resolved: ResolvedFilter,
                    candidates: List[LayerEntry]) -> List[SpatialResult]:
        results: List[SpatialResult] = []
        bbox = bounding_box(resolved.polygon)
        pending = iter([c for c in candidates if c.geometry_ref])
        window: Deque[Tuple[LayerEntry, asyncio.Task]] = deque()

        def fill():
            while len(window) < self.concurrency:
                entry = next(pending, None)
                if entry is None:
                    return
                window.append((entry, asyncio.create_task(self._fetch_candidate(entry))))

        fill()
        try:
            while window:
                entry, task = window.popleft()
                geometry = await task
                if geometry is not None:
                    relation = self._relate(resolved.polygon, bbox, geometry)
                    if relation is not None:
                        logger.debug(f"✅ {entry.display_name} {relation.value} {resolved.description}")
                        results.append(self._to_result(query, resolved, entry, relation))
                        if len(results) >= query.limit:
                            break
                fill()
        finally:
            # Limit reached (or we were cancelled): abandon the prefetches
            for _, task in window:
                task.cancel()
            if window:
                await asyncio.gather(*(task for _, task in window), return_exceptions=True)

        return results

    async def _fetch_candidate(self, entry: LayerEntry) -> Optional[Geometry]:
        """Candidate geometry, or None when it cannot be used. Never raises."""
        try:
            record = await asyncio.wait_for(self.store.get(entry.geometry_ref), timeout=self.fetch_timeout)
            if record is None:
                raise GeometryNotFound(entry.geometry_ref)
            return self.codec.unwrap(record.data)
        except GeometryNotFound as e:
            logger.warning(f"⚠️ Skipping {entry.display_name}: {e}")
        except asyncio.TimeoutError:
            logger.warning(f"⚠️ Skipping {entry.display_name}: fetch timed out after {self.fetch_timeout}s")
        except InvalidGeometryType as e:
            logger.warning(f"⚠️ Skipping {entry.display_name}: {e}")
        except SQLAlchemyError as e:
            logger.error(f"Error fetching geometry for {entry.display_name}: {e}")
        return None

    def _relate(self, polygon: Polygon, bbox: BBox, geometry: Geometry) -> Optional[SpatialRelation]:
        if isinstance(geometry, Point):
            return SpatialRelation.WITHIN if contains(geometry.coordinates, polygon, bbox) else None

        candidate = self.codec.first_polygon(geometry)
        if candidate is None:
            logger.debug(f"Unsupported candidate geometry: {geometry.type}")
            return None
        return SpatialRelation.INTERSECTS if related(polygon, candidate) else None

    def _describe(self, layer: LayerType, entry: LayerEntry) -> str:
        description = f"{entry.display_name} {_FILTER_LABELS[layer]}"
        borough = display_name(entry.borough_code)
        if borough:
            description += f" in {borough}"
        return description

    def _to_result(self, query: SpatialQuery, resolved: ResolvedFilter, entry: LayerEntry,
                   relation: SpatialRelation) -> SpatialResult:
        verb = "within" if relation is SpatialRelation.WITHIN else "intersecting"
        return SpatialResult(
            id=entry.id,
            layer_type=query.primary_layer,
            name=entry.display_name,
            borough=display_name(entry.borough_code) or entry.borough_code,
            attributes=entry.attributes,
            geojson_data_id=entry.geometry_ref,
            analysis_query=f"{_LAYER_LABELS[query.primary_layer]} {verb} {query.filter_value}",
            spatial_relation=relation,
            filter_description=resolved.description,
        )
