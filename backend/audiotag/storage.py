import logging
from functools import lru_cache
from typing import Dict, Protocol

from supabase import Client, create_client

from audiotag.config import get_settings
from audiotag.errors import StorageError

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    def put(self, key: str, data: bytes, mime_type: str) -> Dict[str, str]: ...

    def get(self, key: str) -> Dict[str, str]: ...

    def remove(self, key: str) -> None: ...


class SupabaseObjectStore:
    """Blob storage on a Supabase Storage bucket."""

    def __init__(self, client: Client, bucket: str):
        self.client = client
        self.bucket = bucket

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def put(self, key: str, data: bytes, mime_type: str) -> Dict[str, str]:
        try:
            self._bucket().upload(key, data, {"content-type": mime_type})
            url = self._bucket().get_public_url(key)
        except Exception as e:
            raise StorageError(f"Upload failed: {e}") from e
        return {"url": url}

    def get(self, key: str) -> Dict[str, str]:
        try:
            url = self._bucket().get_public_url(key)
        except Exception as e:
            raise StorageError(f"Could not resolve {key}: {e}") from e
        return {"url": url}

    def remove(self, key: str) -> None:
        try:
            self._bucket().remove([key])
        except Exception as e:
            raise StorageError(f"Could not remove {key}: {e}") from e


@lru_cache()
def _client(url: str, key: str) -> Client:
    logger.info("Connecting to Supabase storage at %s", url)
    return create_client(url, key)


def get_object_store() -> ObjectStore:
    settings = get_settings()
    if not (settings.supabase_url and settings.supabase_key):
        raise StorageError("Object storage is not configured (SUPABASE_URL / SUPABASE_KEY)")
    try:
        client = _client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        raise StorageError(f"Object storage unreachable: {e}") from e
    return SupabaseObjectStore(client, settings.bucket_name)
