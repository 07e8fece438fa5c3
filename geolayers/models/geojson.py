# geolayers/models/geojson.py
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, JSON
from geolayers.core.database import Base

def _utcnow():
    return datetime.now(timezone.utc)

class GeoJSONData(Base):
    """
    Geometry store row. Large boundaries live here and every other table
    only keeps the id (geojson_data_id).
    """
    __tablename__ = "geojson_data"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    data = Column(JSON, nullable=False)
    # "metadata" is reserved by the declarative API, hence the attribute name
    meta = Column("metadata", JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
