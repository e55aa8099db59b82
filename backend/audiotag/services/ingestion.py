import logging
import math
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from audiotag import crud
from audiotag.extractor import CanonicalMetadata, extract_metadata
from audiotag.models import AudioFile
from audiotag.errors import StorageError
from audiotag.storage import ObjectStore
from audiotag.utils.formats import classify_audio, image_extension, image_mime_type

logger = logging.getLogger(__name__)


def _whole_seconds(duration: Optional[float]) -> Optional[int]:
    # half rounds up; a zero length is stored as unknown
    if not duration:
        return None
    return int(math.floor(duration + 0.5))


def _store_artwork(store: ObjectStore, user_id: int, token: str, metadata: CanonicalMetadata):
    ext = image_extension(metadata.artwork_mime_type)
    key = f"artwork/{user_id}/{token}/cover.{ext}"
    mime_type = metadata.artwork_mime_type or image_mime_type(key)
    url = store.put(key, metadata.artwork, mime_type)["url"]
    return key, url


def _release(store: ObjectStore, keys) -> None:
    for key in keys:
        try:
            store.remove(key)
        except StorageError as e:
            logger.warning("Could not release blob %s after failed ingest: %s", key, e)


def ingest(
    db: Session,
    store: ObjectStore,
    user_id: int,
    file_name: str,
    data: bytes,
    file_size: int,
    declared_mime_type: Optional[str] = None,
    persist_artwork: bool = False,
) -> AudioFile:
    """Classify, extract, store the bytes, then create the database row.

    The blob is written before the row so a record never points at a missing
    object. A storage failure raises before anything reaches the database,
    and blobs already written are released if a later step fails.
    Without a declared MIME type only the extension can admit the file.
    """
    mime_type, audio_format = classify_audio(file_name, declared_mime_type)

    metadata = extract_metadata(data, mime_type)

    token = uuid.uuid4().hex
    file_key = f"audio/{user_id}/{token}/{file_name}"
    file_url = store.put(file_key, data, mime_type)["url"]
    written = [file_key]

    try:
        artwork_key = artwork_url = None
        if persist_artwork and metadata.artwork:
            artwork_key, artwork_url = _store_artwork(store, user_id, token, metadata)
            written.append(artwork_key)

        record = crud.create_audio_file(
            db,
            user_id=user_id,
            file_name=file_name,
            file_key=file_key,
            file_url=file_url,
            file_size=file_size,
            format=audio_format,
            duration=_whole_seconds(metadata.duration),
            is_modified=0,
            artwork_key=artwork_key,
            artwork_url=artwork_url,
            **metadata.tags(),
        )
    except Exception:
        db.rollback()
        _release(store, written)
        raise

    logger.info("Ingested %s as file %s for user %s", file_name, record.id, user_id)
    return record
