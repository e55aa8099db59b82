# tests/test_config.py
"""Tests for environment driven settings and the lazy engine"""

import pytest

from audiotag import database
from audiotag.config import get_settings, load_settings
from audiotag.errors import DatabaseUnavailable


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("DATABASE_URL", "SUPABASE_BUCKET", "PERSIST_ARTWORK",
                     "ATOMIC_BATCH_UPDATES", "APP_ENV", "CORS_ORIGINS"):
            monkeypatch.delenv(name, raising=False)
        settings = load_settings()
        assert settings.database_url is None
        assert settings.bucket_name == "audios"
        assert settings.persist_artwork is False
        assert settings.atomic_batch_updates is True
        assert settings.is_development is False
        assert settings.cors_origins == ("*",)

    def test_flags(self, monkeypatch):
        monkeypatch.setenv("PERSIST_ARTWORK", "Yes")
        monkeypatch.setenv("ATOMIC_BATCH_UPDATES", "off")
        monkeypatch.setenv("APP_ENV", "Development")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
        settings = load_settings()
        assert settings.persist_artwork is True
        assert settings.atomic_batch_updates is False
        assert settings.is_development is True
        assert settings.cors_origins == ("http://a.test", "http://b.test")


class TestEngine:

    def test_missing_database_url(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setattr(database, "_engine", None)
        get_settings.cache_clear()
        try:
            with pytest.raises(DatabaseUnavailable):
                database.get_engine()
        finally:
            get_settings.cache_clear()

    def test_bad_database_url(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "not a url")
        monkeypatch.setattr(database, "_engine", None)
        get_settings.cache_clear()
        try:
            with pytest.raises(DatabaseUnavailable):
                database.get_engine()
        finally:
            get_settings.cache_clear()
