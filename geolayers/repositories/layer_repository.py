# geolayers/repositories/layer_repository.py
import logging
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy import select, delete, insert, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from geolayers.models.layers import Neighborhood, Park, SchoolZone
from geolayers.schemas.spatial import LayerEntry, LayerType
from geolayers.services.spatial.borough import Borough, aliases

logger = logging.getLogger(__name__)

class LayerRepository:
    """
    Layer data provider: search(term, borough, limit) -> [LayerEntry].
    Subclasses only declare which columns are searched/filtered.
    """
    model: Any = None
    search_columns: Sequence[Any] = ()
    borough_columns: Sequence[Any] = ()
    order_columns: Sequence[Any] = ()

    def __init__(self, db: AsyncSession):
        self.db = db

    async def search(self, term: str = "", borough: Optional[Borough] = None, limit: int = 10) -> List[LayerEntry]:
        """
        Case-insensitive substring search. `borough` keeps only rows whose raw
        borough column is one of its spellings (1, K, B, Brooklyn...).
        An empty term matches every row.
        """
        stmt = select(self.model)
        if term:
            pattern = f"%{term}%"
            stmt = stmt.where(or_(*[col.ilike(pattern) for col in self.search_columns]))
        if borough is not None:
            codes = list(aliases(borough))
            stmt = stmt.where(or_(*[func.upper(col).in_(codes) for col in self.borough_columns]))
        stmt = stmt.order_by(*self.order_columns).limit(limit)

        result = await self.db.execute(stmt)
        return [self.to_entry(row) for row in result.scalars().all()]

    async def replace_all(self, rows: List[Dict[str, Any]]):
        """Full refresh: wipes the layer table and bulk inserts `rows`."""
        logger.info(f"💾 Saving {len(rows)} rows into {self.model.__tablename__}...")
        try:
            await self.db.execute(delete(self.model))
            if rows:
                await self.db.execute(insert(self.model), rows)
            await self.db.commit()
        except Exception as e:
            logger.error(f"Error saving {self.model.__tablename__}: {e}")
            await self.db.rollback()
            raise

    def to_entry(self, row) -> LayerEntry:
        raise NotImplementedError

class NeighborhoodRepository(LayerRepository):
    model = Neighborhood
    search_columns = (Neighborhood.name, Neighborhood.nta_code)
    borough_columns = (Neighborhood.borough,)
    order_columns = (Neighborhood.name,)

    def to_entry(self, row: Neighborhood) -> LayerEntry:
        return LayerEntry(
            id=row.id,
            display_name=row.name,
            borough_code=row.borough,
            attributes={"nta_code": row.nta_code, "cdta_name": row.cdta_name},
            geometry_ref=row.geojson_data_id,
        )

class ParkRepository(LayerRepository):
    model = Park
    search_columns = (Park.name, Park.signname, Park.address)
    borough_columns = (Park.borough, Park.borocode)
    order_columns = (Park.name,)

    def to_entry(self, row: Park) -> LayerEntry:
        return LayerEntry(
            id=row.id,
            display_name=row.name or row.signname or "Unnamed park",
            borough_code=row.borough or row.borocode,
            attributes={
                "gispropnum": row.gispropnum,
                "signname": row.signname,
                "address": row.address,
                "acreage": row.acreage,
                "typecategory": row.typecategory,
            },
            geometry_ref=row.geojson_data_id,
        )

class SchoolZoneRepository(LayerRepository):
    model = SchoolZone
    search_columns = (SchoolZone.school_name, SchoolZone.dbn, SchoolZone.label)
    borough_columns = (SchoolZone.borough, SchoolZone.boro_num)
    order_columns = (SchoolZone.dbn,)

    def to_entry(self, row: SchoolZone) -> LayerEntry:
        return LayerEntry(
            id=row.id,
            display_name=row.school_name or row.dbn,
            borough_code=row.borough or row.boro_num,
            attributes={
                "dbn": row.dbn,
                "school_district": row.school_district,
                "label": row.label,
            },
            geometry_ref=row.geojson_data_id,
        )

LAYER_REPOSITORIES = {
    LayerType.NEIGHBORHOODS: NeighborhoodRepository,
    LayerType.PARKS: ParkRepository,
    LayerType.SCHOOL_ZONES: SchoolZoneRepository,
}

def build_layer_repositories(db: AsyncSession) -> Dict[LayerType, LayerRepository]:
    return {layer: repo_cls(db) for layer, repo_cls in LAYER_REPOSITORIES.items()}
