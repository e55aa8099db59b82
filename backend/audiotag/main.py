import logging
from datetime import datetime, timezone
from typing import List

from dateutil import parser
from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from audiotag import __version__
from audiotag.auth import get_current_user
from audiotag.config import Settings, configure_logging, get_settings
from audiotag.database import get_db
from audiotag.errors import DatabaseUnavailable, InvalidFormat, NotFoundOrForbidden, StorageError
from audiotag.models import User
from audiotag.schemas import (
    AudioFileOut,
    BatchMetadataUpdate,
    BatchResult,
    DownloadReferenceOut,
    MetadataUpdate,
    UploadResult,
    UserOut,
)
from audiotag.services import library
from audiotag.services.ingestion import ingest
from audiotag.storage import ObjectStore, get_object_store

configure_logging(get_settings().log_level)
logger = logging.getLogger(__name__)

# ----------------- App & CORS -----------------
app = FastAPI(title="Audio Tag API", version=__version__)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------- Error mapping -----------------
def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message})


@app.exception_handler(InvalidFormat)
async def invalid_format_handler(request: Request, exc: InvalidFormat):
    return _error(400, str(exc))


@app.exception_handler(NotFoundOrForbidden)
async def not_found_handler(request: Request, exc: NotFoundOrForbidden):
    return _error(404, str(exc))


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error("Storage failure on %s: %s", request.url.path, exc)
    return _error(502, str(exc))


@app.exception_handler(DatabaseUnavailable)
async def database_unavailable_handler(request: Request, exc: DatabaseUnavailable):
    logger.error("Database unavailable on %s: %s", request.url.path, exc)
    return _error(503, str(exc))


@app.exception_handler(OperationalError)
async def operational_error_handler(request: Request, exc: OperationalError):
    logger.error("Database error on %s: %s", request.url.path, exc)
    return _error(503, "Database not available")


# ----------------- Helpers -----------------
def parse_iso_datetime(dt_str: str) -> datetime:
    try:
        dt = parser.isoparse(dt_str)
        if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid date format: {e}")


# ----------------- Routes -----------------
@app.get("/")
def root():
    return {"message": "Audio Tag API is running"}


@app.get("/auth/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user


@app.post("/upload-audio", response_model=UploadResult)
async def upload_audio(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="Empty file uploaded.")
    if len(contents) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="File too large.")

    record = await run_in_threadpool(
        ingest,
        db,
        store,
        user.id,
        file.filename or "upload",
        contents,
        len(contents),
        declared_mime_type=file.content_type,
        persist_artwork=settings.persist_artwork,
    )
    return UploadResult(
        file_id=record.id,
        file_name=record.file_name,
        file_url=record.file_url,
        format=record.format,
        duration=record.duration,
        created_at=record.created_at,
    )


@app.get("/list-audios", response_model=List[AudioFileOut])
def list_audios(
    start_time: str = Query(None),
    end_time: str = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    start = parse_iso_datetime(start_time) if start_time else None
    end = parse_iso_datetime(end_time) if end_time else None
    return library.list_files(db, user.id, start, end)


@app.get("/audio/{file_id}", response_model=AudioFileOut)
def get_audio(file_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return library.get_owned_file(db, user.id, file_id)


@app.patch("/audio/{file_id}/metadata")
def update_audio_metadata(
    file_id: int,
    metadata: MetadataUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    library.update_metadata(db, user.id, file_id, metadata.model_dump(exclude_unset=True))
    return {"success": True}


@app.post("/audio/batch-metadata", response_model=BatchResult)
def batch_update_audio_metadata(
    payload: BatchMetadataUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    count = library.batch_update_metadata(
        db,
        user.id,
        payload.file_ids,
        payload.metadata.model_dump(exclude_unset=True),
        atomic=settings.atomic_batch_updates,
    )
    return BatchResult(updated_count=count)


@app.post("/audio/{file_id}/artwork", response_model=AudioFileOut)
async def upload_artwork(
    file_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    user: User = Depends(get_current_user),
):
    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="Empty file uploaded.")
    return await run_in_threadpool(
        library.attach_artwork,
        db,
        store,
        user.id,
        file_id,
        file.filename or "cover",
        contents,
        file.content_type,
    )


@app.get("/download-audio/{file_id}", response_model=DownloadReferenceOut)
def download_audio(
    file_id: int,
    db: Session = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    user: User = Depends(get_current_user),
):
    ref = library.get_download_reference(db, store, user.id, file_id)
    return DownloadReferenceOut(url=ref.url, file_name=ref.file_name, is_modified=ref.is_modified)


@app.delete("/delete-audio/{file_id}")
def delete_audio(
    file_id: int,
    db: Session = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    user: User = Depends(get_current_user),
):
    library.delete_file(db, store, user.id, file_id)
    return {"status": "Deleted", "id": file_id}
