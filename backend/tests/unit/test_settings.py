"""
Unit tests for application settings validation.
"""

import pytest
from pydantic import ValidationError

from bookshelf.core.config import Settings


def make_settings(**overrides) -> Settings:
    values = {"DATABASE_URL": "sqlite+aiosqlite://"}
    values.update(overrides)
    return Settings(**values)


class TestSettings:
    def test_defaults(self):
        settings = make_settings()

        assert settings.API_PREFIX == "/api"
        assert settings.CACHE_LIST_TTL_SECONDS == 300
        assert settings.CACHE_ENTITY_TTL_SECONDS == 3600

    @pytest.mark.parametrize(
        "overrides",
        [
            {"CACHE_LIST_TTL_SECONDS": 301},
            {"CACHE_ENTITY_TTL_SECONDS": 3601},
            {"CACHE_LIST_TTL_SECONDS": 0},
            {"DATABASE_URL": "mysql://localhost/books"},
            {"ENVIRONMENT": "qa"},
            {"API_PREFIX": "api"},
        ],
    )
    def test_invalid_values_are_rejected(self, overrides):
        with pytest.raises(ValidationError):
            make_settings(**overrides)

    def test_ttls_can_be_lowered(self):
        settings = make_settings(CACHE_LIST_TTL_SECONDS=60, CACHE_ENTITY_TTL_SECONDS=600)

        assert settings.CACHE_LIST_TTL_SECONDS == 60
        assert settings.CACHE_ENTITY_TTL_SECONDS == 600

    def test_api_prefix_trailing_slash_is_stripped(self):
        assert make_settings(API_PREFIX="/v1/").API_PREFIX == "/v1"
        assert make_settings(API_PREFIX="").API_PREFIX == ""

    def test_async_database_url(self):
        postgres = make_settings(DATABASE_URL="postgresql://user:pw@db:5432/books")

        assert postgres.async_database_url == "postgresql+asyncpg://user:pw@db:5432/books"
        assert make_settings().async_database_url == "sqlite+aiosqlite://"

    def test_cors_origins_list(self):
        settings = make_settings(CORS_ORIGINS="http://a.test, http://b.test,")

        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]
