from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Runtime ---
    ENV: str = "dev"  # dev|prod
    LEASEIQ_DB_URL: str = "sqlite+aiosqlite:///./leaseiq.db"
    LOG_LEVEL: str = "INFO"

    # --- Operator API (X-API-Key) ---
    API_KEY: str | None = None

    # --- Extraction service (Firecrawl) ---
    FIRECRAWL_API_KEY: str | None = None
    FIRECRAWL_API_URL: str = "https://api.firecrawl.dev/v1"
    RATE_LIMIT_FIRECRAWL: int = 100  # requests per minute

    # --- Geocoding (Google) ---
    GOOGLE_GEOCODING_API_KEY: str | None = None
    GEOCODING_API_URL: str = "https://maps.googleapis.com/maps/api/geocode/json"
    RATE_LIMIT_GEOCODING: int = 50  # requests per second
    GEOCODE_MAX_RETRIES: int = 3
    GEOCODE_RETRY_BASE_S: float = 1.0

    # --- Outbound HTTP ---
    HTTP_TIMEOUT_S: float = 45.0
    HTTP_MAX_RETRIES: int = 2
    HTTP_BACKOFF_BASE_S: float = 0.5

    # --- Scraping run ---
    MAX_LISTINGS_PER_SOURCE: int = 1000
    STALE_LISTING_DAYS: int = 30
    SCRAPE_DEADLINE_S: float = 50.0
    SCRAPE_SOURCE_CONCURRENCY: int = 3
    SCRAPE_LISTING_CONCURRENCY: int = 3

    # Empty => accept listings from anywhere. "nyc" => NYC bounds/zip gate.
    SERVICE_AREA: str = ""

    # --- Scheduler tuning ---
    ROTATION_INTERVAL_HOURS: int = 2
    SCHED_STALE_SWEEP_HOUR_UTC: int = 5


def validate_settings(s: Settings) -> list[str]:
    """Return human readable config problems; empty list means good to go."""
    errors: list[str] = []
    if not s.FIRECRAWL_API_KEY:
        errors.append("FIRECRAWL_API_KEY is required")
    if not s.LEASEIQ_DB_URL:
        errors.append("LEASEIQ_DB_URL is required")
    if s.RATE_LIMIT_FIRECRAWL <= 0:
        errors.append("RATE_LIMIT_FIRECRAWL must be greater than 0")
    if s.RATE_LIMIT_GEOCODING <= 0:
        errors.append("RATE_LIMIT_GEOCODING must be greater than 0")
    if s.ROTATION_INTERVAL_HOURS <= 0 or 24 % s.ROTATION_INTERVAL_HOURS != 0:
        errors.append("ROTATION_INTERVAL_HOURS must be a positive divisor of 24")
    return errors


settings = Settings()
