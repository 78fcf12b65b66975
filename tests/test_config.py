import logging

import pytest
from pydantic import ValidationError

from config import AppConfig, configure_logging, load_config

ENV_VARS = (
    "DATABASE_URL", "PGHOST", "PGPORT", "PGDATABASE", "PGUSER", "PGPASSWORD",
    "SUPABASE_URL", "SUPABASE_SERVICE_KEY", "ADMIN_API_KEY", "CORS_ORIGINS",
    "DB_POOL_MIN", "DB_POOL_MAX", "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_database_url_wins(clean_env):
    clean_env.setenv("DATABASE_URL", "postgresql://app@db:6543/golf")
    clean_env.setenv("PGHOST", "ignored")
    assert load_config().database_url == "postgresql://app@db:6543/golf"


def test_dsn_from_pg_parts(clean_env):
    clean_env.setenv("PGHOST", "db.example.com")
    clean_env.setenv("PGUSER", "golfer")
    clean_env.setenv("PGPASSWORD", "pw")
    config = load_config()
    assert config.database_url == "postgresql://golfer:pw@db.example.com:5432/postgres"
    assert not config.storage_enabled


def test_optional_settings(clean_env):
    clean_env.setenv("DATABASE_URL", "postgresql://localhost/golf")
    clean_env.setenv("SUPABASE_URL", "https://x.supabase.co")
    clean_env.setenv("SUPABASE_SERVICE_KEY", "key")
    clean_env.setenv("CORS_ORIGINS", "https://a.test, https://b.test,")
    clean_env.setenv("DB_POOL_MAX", "20")
    clean_env.setenv("LOG_LEVEL", "debug")

    config = load_config()

    assert config.storage_enabled
    assert config.cors_origins == ["https://a.test", "https://b.test"]
    assert config.db_max_size == 20
    assert config.log_level == "DEBUG"
    assert config.avatars_bucket == "profile-pictures"


def test_config_is_frozen():
    config = AppConfig(database_url="postgresql://localhost/golf")
    with pytest.raises(ValidationError):
        config.admin_api_key = "x"


def test_configure_logging_installs_one_handler():
    root = logging.getLogger()
    configure_logging("WARNING")
    configure_logging("INFO")
    ours = [h for h in root.handlers if getattr(h, "_dogleg", False)]
    assert len(ours) == 1
    assert root.level == logging.INFO
