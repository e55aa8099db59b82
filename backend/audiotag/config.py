import os
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

_TRUTHY = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str]
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    bucket_name: str = "audios"
    app_env: str = "production"
    log_level: str = "INFO"
    max_upload_bytes: int = 100 * 1024 * 1024
    persist_artwork: bool = False
    atomic_batch_updates: bool = True
    cors_origins: Tuple[str, ...] = ("*",)

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


def load_settings() -> Settings:
    origins = os.getenv("CORS_ORIGINS", "*")
    return Settings(
        database_url=os.getenv("DATABASE_URL") or None,
        supabase_url=os.getenv("SUPABASE_URL") or None,
        supabase_key=os.getenv("SUPABASE_KEY") or None,
        bucket_name=os.getenv("SUPABASE_BUCKET", "audios"),
        app_env=os.getenv("APP_ENV", "production").strip().lower(),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(100 * 1024 * 1024))),
        persist_artwork=_env_flag("PERSIST_ARTWORK", False),
        atomic_batch_updates=_env_flag("ATOMIC_BATCH_UPDATES", True),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
    )


@lru_cache()
def get_settings() -> Settings:
    return load_settings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
