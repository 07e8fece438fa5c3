# geolayers/services/opendata/orchestrator.py
import re
import math
import logging
from typing import Any, Callable, Dict, Optional
from shapely.geometry import mapping
from sqlalchemy.ext.asyncio import AsyncSession

from geolayers.core.exceptions import InvalidArgument
from geolayers.repositories.geometry_repository import GeometryStore
from geolayers.repositories.layer_repository import build_layer_repositories
from geolayers.schemas.spatial import LayerType
from geolayers.services.opendata.cache import OpenDataCatalog

logger = logging.getLogger(__name__)

def _text(value: Any, max_length: int) -> Optional[str]:
    """Column-safe string: None/NaN become None, long values are truncated."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    text = str(value).strip()
    return text[:max_length] if text else None

def _school_name(dbn: str, label: Optional[str]) -> Optional[str]:
    # Labels look like "P.S. 11 (11K)"; drop the parenthesised code
    if label and label != dbn:
        name = re.sub(r"\(\w+\)", "", label).strip()
        if name and name != dbn:
            return name
    return None

def _neighborhood_row(props: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    name = _text(props.get("ntaname"), 255)
    if not name:
        return None
    return {
        "name": name,
        "borough": _text(props.get("boroname"), 100),
        "nta_code": _text(props.get("nta2020"), 50),
        "cdta_name": _text(props.get("cdtaname"), 255),
    }

def _park_row(props: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    name = _text(props.get("name311") or props.get("name"), 255)
    signname = _text(props.get("signname"), 255)
    if not name and not signname:
        return None
    return {
        "gispropnum": _text(props.get("gispropnum"), 50),
        "name": name or signname,
        "signname": signname,
        "borough": _text(props.get("borough"), 50),
        "borocode": _text(props.get("borocode"), 2),
        "address": _text(props.get("address"), 500),
        "acreage": _text(props.get("acres") or props.get("acreage"), 20),
        "typecategory": _text(props.get("typecategory"), 100),
    }

def _school_zone_row(props: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    dbn = _text(props.get("dbn"), 50)
    if not dbn:
        return None
    label = _text(props.get("label"), 100)
    return {
        "dbn": dbn,
        "school_name": _school_name(dbn, label),
        "school_district": _text(props.get("schooldist"), 10),
        "borough": _text(props.get("boro"), 1),
        "boro_num": _text(props.get("boro_num"), 1),
        "label": label,
    }

_ROW_MAPPERS: Dict[LayerType, Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]] = {
    LayerType.NEIGHBORHOODS: _neighborhood_row,
    LayerType.PARKS: _park_row,
    LayerType.SCHOOL_ZONES: _school_zone_row,
}

class LayerSyncOrchestrator:
    """Loads a layer from NYC Open Data into the geometry store + layer table."""

    def __init__(self, db: AsyncSession, store: GeometryStore, catalog: OpenDataCatalog):
        self.db = db
        self.store = store
        self.catalog = catalog
        self.repositories = build_layer_repositories(db)

    async def sync_layer(self, layer: LayerType) -> Dict[str, Any]:
        logger.info(f"🚀 Starting sync for {layer.value}...")

        # 1. Extract (cached upstream frame)
        gdf = await self.catalog.cache_for(layer).refresh_if_stale()
        if gdf.empty:
            logger.warning(f"⚠️ Upstream {layer.value} is empty. Aborting.")
            return {"status": "warning", "layer": layer.value, "message": "Upstream dataset is empty."}

        # 2. Transform: geometry goes to the store, attributes to the layer row
        to_row = _ROW_MAPPERS[layer]
        rows = []
        with_geometry = 0
        # Missing geometries come out of the GeoSeries as None
        attributes = gdf.drop(columns=gdf.geometry.name).to_dict("records")
        for props, shape in zip(attributes, gdf.geometry):
            row = to_row(props)
            if row is None:
                continue

            row["geojson_data_id"] = None
            if shape is not None and not shape.is_empty:
                name = row.get("name") or row.get("school_name") or row.get("dbn")
                try:
                    row["geojson_data_id"] = await self.store.put(
                        mapping(shape),
                        {"source_layer": layer.value, "name": name, "source": "nyc_open_data"},
                    )
                    with_geometry += 1
                except InvalidArgument as e:
                    # Attribute-only entry
                    logger.warning(f"⚠️ Geometry rejected for {layer.value} row: {e}")
            rows.append(row)

        # 3. Load
        await self.repositories[layer].replace_all(rows)
        logger.info(f"✅ {layer.value}: {len(rows)} rows, {with_geometry} with geometry.")
        return {"status": "success", "layer": layer.value, "imported": len(rows), "with_geometry": with_geometry}
