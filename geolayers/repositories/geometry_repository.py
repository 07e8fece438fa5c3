# geolayers/repositories/geometry_repository.py
import uuid
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from geolayers.core.exceptions import GeometryNotFound, InvalidArgument, InvalidGeometryType
from geolayers.models.geojson import GeoJSONData
from geolayers.schemas.geo import Geometry
from geolayers.services.geometry.codec import GeometryCodec

logger = logging.getLogger(__name__)

class GeometryRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    data: Geometry
    metadata: Dict[str, Any]
    created_at: datetime
    updated_at: datetime

class GeometryStore:
    """
    Content-reference store for GeoJSON payloads: put() returns an opaque id,
    get() hands the geometry back. There is no delete.

    Every call opens its own short session, so gets can run concurrently.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], codec: Optional[GeometryCodec] = None):
        self.session_factory = session_factory
        self.codec = codec or GeometryCodec()

    async def put(self, data: Any, metadata: Optional[Mapping[str, Any]] = None,
                  geometry_id: Optional[str] = None) -> str:
        """
        Stores `data` (raw GeoJSON or a Geometry) and returns its id.
        Passing `geometry_id` of an existing record replaces it in place.
        """
        if data is None:
            raise InvalidArgument("GeoJSON data cannot be null")
        try:
            geometry = self.codec.sanitize(data, keep_feature=True)
        except InvalidGeometryType as e:
            raise InvalidArgument(f"Invalid GeoJSON data: {e}") from e

        payload = self.codec.to_json(geometry)
        meta = dict(metadata or {})
        now = datetime.now(timezone.utc)

        async with self.session_factory() as session:
            row = await session.get(GeoJSONData, geometry_id) if geometry_id else None
            if row is None:
                row = GeoJSONData(
                    id=geometry_id or str(uuid.uuid4()),
                    data=payload,
                    meta=meta,
                    created_at=now,
                    updated_at=now,
                )
                session.add(row)
            else:
                # Last writer wins
                row.data = payload
                row.meta = meta
                row.updated_at = now
            await session.commit()
            logger.debug(f"💾 GeoJSON {row.id} stored ({geometry.type})")
            return row.id

    async def get(self, geometry_id: str) -> Optional[GeometryRecord]:
        """Returns the record, or None when the id is unknown."""
        async with self.session_factory() as session:
            row = await session.get(GeoJSONData, geometry_id)
            if row is None:
                return None
            return GeometryRecord(
                id=row.id,
                data=self.codec.sanitize(row.data, keep_feature=True),
                metadata=row.meta or {},
                created_at=row.created_at,
                updated_at=row.updated_at,
            )

    async def require(self, geometry_id: str) -> GeometryRecord:
        record = await self.get(geometry_id)
        if record is None:
            raise GeometryNotFound(geometry_id)
        return record
