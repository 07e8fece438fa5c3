# geolayers/services/opendata/cache.py
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from functools import partial
from typing import Awaitable, Callable, Dict, Generic, Optional, TypeVar

from geolayers.core.config import settings
from geolayers.schemas.spatial import LayerType
from geolayers.services.opendata.client import OpenDataClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class LayerCache(Generic[T]):
    """
    In-memory copy of one upstream dataset.
    Owns the data, when it was fetched and how long it stays fresh.
    """

    def __init__(self, fetch: Callable[[], Awaitable[T]], ttl: timedelta,
                 name: str = "layer", clock: Callable[[], datetime] = _utcnow):
        self.data: Optional[T] = None
        self.last_fetched_at: Optional[datetime] = None
        self.ttl = ttl
        self.name = name
        self._fetch = fetch
        self._clock = clock
        self._lock = asyncio.Lock()

    def is_stale(self) -> bool:
        if self.last_fetched_at is None:
            return True
        return self._clock() - self.last_fetched_at > self.ttl

    async def refresh_if_stale(self) -> T:
        """Returns the cached data, fetching it first when missing or expired."""
        # One download at a time; concurrent callers reuse its result
        async with self._lock:
            if self.is_stale():
                logger.info(f"🔄 Fetching fresh {self.name} data...")
                self.data = await self._fetch()
                self.last_fetched_at = self._clock()
            else:
                logger.info(f"Using cached {self.name} data (age: {self.age})")
            return self.data

    def invalidate(self):
        self.last_fetched_at = None

    @property
    def age(self) -> Optional[timedelta]:
        if self.last_fetched_at is None:
            return None
        return self._clock() - self.last_fetched_at

# Socrata dataset ids on NYC Open Data
DATASETS = {
    LayerType.NEIGHBORHOODS: "9nt8-h7nd",  # Neighborhood Tabulation Areas 2020
    LayerType.PARKS: "enfh-gkve",          # Parks Properties
    LayerType.SCHOOL_ZONES: "cmjf-yawu",   # Elementary School Zones
}

class OpenDataCatalog:
    """One LayerCache per layer. Built once per process (app lifespan)."""

    def __init__(self, client: OpenDataClient,
                 ttl: timedelta = timedelta(seconds=settings.OPEN_DATA_CACHE_TTL_SECONDS)):
        self.caches: Dict[LayerType, LayerCache] = {
            layer: LayerCache(partial(client.fetch_layer, dataset), ttl, name=layer.value)
            for layer, dataset in DATASETS.items()
        }

    def cache_for(self, layer: LayerType) -> LayerCache:
        return self.caches[layer]
