"""Application settings loaded from environment variables via pydantic-settings.

Values are read from (in priority order):

  1. **Environment variables**, e.g. ``BATCH_CAPACITY=500``
  2. **.env file** in the working directory (local development)

Field name ``database_path`` maps to env var ``DATABASE_PATH``.  Defaults
apply when neither source provides a value.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """dumploader settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Storage ===
    database_path: str = "data/discogs.db"
    # Create the reference tables on startup (CREATE TABLE IF NOT EXISTS).
    # Turn off when the schema is managed elsewhere.
    create_schema: bool = True

    # === Loading ===
    # Number of row inserts committed together as one transaction.
    batch_capacity: int = 100
    # How many dumps may load at the same time (1 = one after another).
    load_concurrency: int = 1
    # Timeout in seconds for remote dump downloads.
    http_timeout: float = 60.0

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"
