# geolayers/models/layers.py
import uuid
from sqlalchemy import Column, String, ForeignKey
from geolayers.core.database import Base

def _new_id():
    return str(uuid.uuid4())

class Neighborhood(Base):
    """NYC Neighborhood Tabulation Areas (NTA 2020)."""
    __tablename__ = "neighborhoods"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), index=True, nullable=False)
    borough = Column(String(100), nullable=True)   # boroname: "Brooklyn", "Queens"...
    nta_code = Column(String(50), nullable=True)
    cdta_name = Column(String(255), nullable=True)

    geojson_data_id = Column(String(36), ForeignKey("geojson_data.id"), nullable=True)

class Park(Base):
    __tablename__ = "parks"

    id = Column(String(36), primary_key=True, default=_new_id)
    gispropnum = Column(String(50), nullable=True)
    name = Column(String(255), index=True, nullable=True)
    signname = Column(String(255), nullable=True)
    borough = Column(String(50), nullable=True)    # letter code: M, X, B, Q, R
    borocode = Column(String(2), nullable=True)    # 1-5
    address = Column(String(500), nullable=True)
    acreage = Column(String(20), nullable=True)
    typecategory = Column(String(100), nullable=True)

    geojson_data_id = Column(String(36), ForeignKey("geojson_data.id"), nullable=True)

class SchoolZone(Base):
    """Elementary school zones."""
    __tablename__ = "school_zones"

    id = Column(String(36), primary_key=True, default=_new_id)
    dbn = Column(String(50), index=True, nullable=False)  # District Borough Number, ex: 20K503
    school_name = Column(String(255), nullable=True)
    school_district = Column(String(10), nullable=True)
    borough = Column(String(1), nullable=True)            # K, M, Q, X, R
    boro_num = Column(String(1), nullable=True)
    label = Column(String(100), nullable=True)

    geojson_data_id = Column(String(36), ForeignKey("geojson_data.id"), nullable=True)
