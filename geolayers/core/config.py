# geolayers/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "NYC Layer Insights"
    DATABASE_URL: str
    DB_ECHO: bool = False

    # Spatial query limits
    SPATIAL_DEFAULT_LIMIT: int = 20
    SPATIAL_MAX_LIMIT: int = 50
    SPATIAL_CANDIDATE_LIMIT: int = 200   # candidates pulled per query
    SPATIAL_FILTER_SEARCH_LIMIT: int = 5 # entries tried per layer when resolving the filter
    SPATIAL_FETCH_CONCURRENCY: int = 8
    SPATIAL_FETCH_TIMEOUT: float = 5.0   # seconds, per geometry fetch

    # NYC Open Data (Socrata)
    OPEN_DATA_BASE_URL: str = "https://data.cityofnewyork.us/resource"
    OPEN_DATA_TIMEOUT: float = 60.0
    OPEN_DATA_ROW_LIMIT: int = 5000
    OPEN_DATA_CACHE_TTL_SECONDS: int = 24 * 60 * 60

    # Environment variables (or .env) override the defaults above
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

settings = Settings()
