"""
Read, edit and delete operations on a user's audio library.

Every path goes through :func:`assert_owned`: a missing record and a record
owned by someone else raise the same :class:`NotFoundOrForbidden`.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from sqlalchemy.orm import Session

from audiotag import crud
from audiotag.errors import InvalidFormat, NotFoundOrForbidden, StorageError
from audiotag.models import METADATA_FIELDS, AudioFile
from audiotag.storage import ObjectStore
from audiotag.utils.formats import classify_image, image_extension

logger = logging.getLogger(__name__)


class DownloadReference(NamedTuple):
    url: str
    file_name: str
    is_modified: bool


def assert_owned(record: Optional[AudioFile], user_id: int) -> None:
    if record is None or record.user_id != user_id:
        raise NotFoundOrForbidden()


def get_owned_file(db: Session, user_id: int, file_id: int) -> AudioFile:
    record = crud.get_audio_file_by_id(db, file_id)
    assert_owned(record, user_id)
    return record


def list_files(
    db: Session,
    user_id: int,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
) -> List[AudioFile]:
    return crud.get_user_audio_files(db, user_id, start_time, end_time)


def _metadata_changes(fields: Dict[str, Any]) -> Dict[str, Any]:
    # only tag columns, and only the ones actually supplied
    changes = {k: v for k, v in fields.items() if k in METADATA_FIELDS and v is not None}
    changes["is_modified"] = 1
    return changes


def update_metadata(db: Session, user_id: int, file_id: int, fields: Dict[str, Any]) -> None:
    get_owned_file(db, user_id, file_id)
    crud.update_audio_file(db, file_id, _metadata_changes(fields))


def authorize_batch(db: Session, user_id: int, file_ids: Iterable[int]) -> List[int]:
    """Validate phase of a batch edit: every id must exist and be owned."""
    file_ids = list(file_ids)
    records = crud.get_audio_files_by_ids(db, file_ids)
    for file_id in file_ids:
        try:
            assert_owned(records.get(file_id), user_id)
        except NotFoundOrForbidden:
            raise NotFoundOrForbidden("One or more files not found or access denied") from None
    return file_ids


def batch_update_metadata(
    db: Session,
    user_id: int,
    file_ids: Iterable[int],
    fields: Dict[str, Any],
    atomic: bool = True,
) -> int:
    """Apply the same partial edit to many files.

    Nothing is written unless every id passes the ownership check.  With
    ``atomic`` the writes share one transaction; without it each row is
    committed on its own and a failure part way leaves earlier rows updated.
    Returns the number of ids submitted.
    """
    authorized = authorize_batch(db, user_id, file_ids)
    changes = _metadata_changes(fields)

    if not atomic:
        for file_id in authorized:
            crud.update_audio_file(db, file_id, changes)
        return len(authorized)

    try:
        for file_id in authorized:
            crud.update_audio_file(db, file_id, changes, commit=False)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Batch updated %d files for user %s", len(authorized), user_id)
    return len(authorized)


def get_download_reference(db: Session, store: ObjectStore, user_id: int, file_id: int) -> DownloadReference:
    record = get_owned_file(db, user_id, file_id)
    key = record.modified_file_key or record.file_key
    url = store.get(key)["url"]
    return DownloadReference(url, record.file_name, record.is_modified == 1)


def delete_file(db: Session, store: ObjectStore, user_id: int, file_id: int) -> None:
    record = get_owned_file(db, user_id, file_id)
    keys = [k for k in (record.file_key, record.modified_file_key, record.artwork_key) if k]
    crud.delete_audio_file(db, file_id)

    for key in keys:
        try:
            store.remove(key)
        except StorageError as e:
            logger.warning("Blob %s left behind after deleting file %s: %s", key, file_id, e)


def attach_artwork(
    db: Session,
    store: ObjectStore,
    user_id: int,
    file_id: int,
    file_name: str,
    data: bytes,
    declared_mime_type: Optional[str] = None,
) -> AudioFile:
    """Store a cover image for a file and point the record at it."""
    record = get_owned_file(db, user_id, file_id)
    mime_type, valid = classify_image(file_name, declared_mime_type)
    if not valid:
        raise InvalidFormat("Invalid image format. Only JPEG, PNG, GIF and WebP are supported.")

    previous_key = record.artwork_key
    key = f"artwork/{user_id}/{file_id}/{uuid.uuid4().hex}.{image_extension(mime_type)}"
    url = store.put(key, data, mime_type)["url"]
    crud.update_audio_file(db, file_id, {"artwork_key": key, "artwork_url": url})
    db.refresh(record)

    if previous_key and previous_key != key:
        try:
            store.remove(previous_key)
        except StorageError as e:
            logger.warning("Old artwork %s left behind for file %s: %s", previous_key, file_id, e)
    return record
