"""Tests for settings, engine configuration and time helpers."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.pool import StaticPool

from shortlinks.core.config import Settings, ShortlinkPolicy
from shortlinks.core.timeutils import isoformat_utc
from shortlinks.db.base import get_engine_config


def test_defaults():
    settings = Settings(_env_file=None, REDIS_URL=None, MAP_SHARED_SECRET=None)

    assert settings.PORT == 8080
    assert settings.SHORTLINK_POLICY == ShortlinkPolicy.MULTI_USE
    assert settings.SHORTLINK_MIN_TTL_SECONDS == 5
    assert settings.SHORTLINK_MAX_TTL_SECONDS == 3600
    assert settings.SHORTLINK_DEFAULT_TTL_SECONDS is None
    assert settings.CORS_ORIGINS == ["https://script.google.com"]
    assert settings.volatile_tier_enabled is False


def test_blank_values_are_unset():
    settings = Settings(REDIS_URL="  ", MAP_SHARED_SECRET="", SHORTLINK_DEFAULT_TTL_SECONDS="")

    assert settings.REDIS_URL is None
    assert settings.MAP_SHARED_SECRET is None
    assert settings.SHORTLINK_DEFAULT_TTL_SECONDS is None


def test_cors_origins_from_comma_separated_string():
    settings = Settings(CORS_ORIGINS="https://a.example, https://b.example")

    assert settings.CORS_ORIGINS == ["https://a.example", "https://b.example"]


def test_ttl_bounds_must_be_ordered():
    with pytest.raises(PydanticValidationError):
        Settings(SHORTLINK_MIN_TTL_SECONDS=100, SHORTLINK_MAX_TTL_SECONDS=10)


def test_database_uri_falls_back_to_postgres():
    settings = Settings(DATABASE_URL=None, POSTGRES_SERVER="db", POSTGRES_DB="analytics")

    assert settings.SQLALCHEMY_DATABASE_URI == "postgresql+asyncpg://postgres:postgres@db:5432/analytics"


def test_in_memory_sqlite_shares_one_connection():
    config = get_engine_config(Settings(DATABASE_URL="sqlite+aiosqlite://"))

    assert config["poolclass"] is StaticPool
    assert config["connect_args"] == {"check_same_thread": False}


def test_isoformat_utc():
    assert isoformat_utc(None) is None
    assert isoformat_utc(datetime(2024, 5, 1, 12, 0, 0)) == "2024-05-01T12:00:00.000Z"

    aware = datetime(2024, 5, 1, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    assert isoformat_utc(aware) == "2024-05-01T12:00:00.000Z"
