"""Runtime configuration loaded from the environment (and an optional .env file)."""

import logging
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class AppConfig(BaseModel):
    """Settings for the API server, database pool and storage buckets."""
    model_config = ConfigDict(frozen=True)

    database_url: str
    db_min_size: int = Field(2, ge=1)
    db_max_size: int = Field(10, ge=1)
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    round_photos_bucket: str = "round-photos"
    avatars_bucket: str = "profile-pictures"
    admin_api_key: Optional[str] = None
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = "INFO"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, v):
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return v.upper()

    @property
    def storage_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)


def _dsn_from_parts() -> str:
    host = os.getenv("PGHOST", "localhost")
    port = os.getenv("PGPORT", "5432")
    dbname = os.getenv("PGDATABASE", "postgres")
    user = os.getenv("PGUSER", "postgres")
    password = os.getenv("PGPASSWORD", "")
    auth = f"{user}:{password}" if password else user
    return f"postgresql://{auth}@{host}:{port}/{dbname}"


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """Build an AppConfig from environment variables.

    DATABASE_URL wins; otherwise the discrete PG* variables are combined.
    """
    load_dotenv(env_file)
    values = {
        "database_url": os.getenv("DATABASE_URL") or _dsn_from_parts(),
        "supabase_url": os.getenv("SUPABASE_URL"),
        "supabase_service_key": os.getenv("SUPABASE_SERVICE_KEY"),
        "admin_api_key": os.getenv("ADMIN_API_KEY"),
    }
    optional = {
        "db_min_size": "DB_POOL_MIN",
        "db_max_size": "DB_POOL_MAX",
        "round_photos_bucket": "ROUND_PHOTOS_BUCKET",
        "avatars_bucket": "AVATARS_BUCKET",
        "cors_origins": "CORS_ORIGINS",
        "log_level": "LOG_LEVEL",
    }
    for field, env_name in optional.items():
        raw = os.getenv(env_name)
        if raw:
            values[field] = raw
    return AppConfig(**values)


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    root = logging.getLogger()
    if not any(getattr(h, "_dogleg", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._dogleg = True
        root.addHandler(handler)
    root.setLevel(level)
