# geolayers/services/opendata/client.py
import httpx
import geopandas as gpd
from io import BytesIO
import logging
from typing import Optional

from geolayers.core.config import settings
from geolayers.core.exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)

class OpenDataClient:
    """Downloads layer boundaries (GeoJSON) from NYC Open Data."""

    HEADERS = {
        "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        "Accept": "application/geo+json, application/json",
    }

    def __init__(
        self,
        base_url: str = settings.OPEN_DATA_BASE_URL,
        timeout: float = settings.OPEN_DATA_TIMEOUT,
        row_limit: int = settings.OPEN_DATA_ROW_LIMIT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.row_limit = row_limit
        self.transport = transport

    async def fetch_layer(self, dataset: str) -> gpd.GeoDataFrame:
        """
        Downloads one dataset as a GeoDataFrame.
        Ex: dataset = "9nt8-h7nd" (NTA 2020)
        """
        url = f"{self.base_url}/{dataset}.geojson"
        params = {"$limit": self.row_limit}

        async with httpx.AsyncClient(timeout=self.timeout, headers=self.HEADERS, transport=self.transport) as client:
            logger.info(f"🌍 Downloading {dataset} from NYC Open Data...")
            try:
                response = await client.get(url, params=params)
            except httpx.HTTPError as e:
                logger.error(f"NYC Open Data request failed: {e}")
                raise UpstreamUnavailable(f"NYC Open Data request failed for {dataset}: {e}") from e

        if response.status_code != 200:
            logger.error(f"NYC Open Data error: {response.status_code}")
            raise UpstreamUnavailable(f"NYC Open Data returned {response.status_code} for {dataset}")

        try:
            gdf = gpd.read_file(BytesIO(response.content))
        except Exception as e:
            logger.error(f"Error reading GeoJSON: {e}")
            raise UpstreamUnavailable(f"Unreadable GeoJSON for {dataset}") from e

        # Coordinates are used as [lon, lat] as they come, no reprojection
        if gdf.crs is not None and gdf.crs != "EPSG:4326":
            logger.warning(f"⚠️ {dataset} is in {gdf.crs}; coordinates passed through untransformed")

        logger.info(f"{dataset}: {len(gdf)} features.")
        return gdf
