# geolayers/main.py
from contextlib import asynccontextmanager
from fastapi import FastAPI

from geolayers.core.config import settings
from geolayers.core.init_db import init_tables
from geolayers.routers import geojson, layers, spatial
from geolayers.services.opendata.cache import OpenDataCatalog
from geolayers.services.opendata.client import OpenDataClient

@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_tables()
    # One upstream cache per process, shared by every sync request
    app.state.catalog = OpenDataCatalog(OpenDataClient())
    yield

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.include_router(spatial.router, tags=["spatial"])
app.include_router(geojson.router, tags=["geojson"])
app.include_router(layers.router, tags=["layers"])

@app.get("/")
async def health_check():
    return {"status": "ok", "message": f"{settings.PROJECT_NAME} API is running"}
