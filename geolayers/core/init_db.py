# geolayers/core/init_db.py
import logging
from geolayers.core.database import engine, Base
from geolayers.models.geojson import GeoJSONData
from geolayers.models.layers import Neighborhood, Park, SchoolZone

logger = logging.getLogger(__name__)

async def init_tables():
    """Creates the geometry store and layer tables on startup."""
    logger.info("⏳ Initializing tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✅ Tables verified/created.")
