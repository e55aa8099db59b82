from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MetadataUpdate(BaseModel):
    """Partial tag edit; only keys present in the request are applied."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    album_artist: Optional[str] = None
    year: Optional[int] = None
    genre: Optional[str] = None
    track_number: Optional[int] = None
    total_tracks: Optional[int] = None
    comment: Optional[str] = None
    composer: Optional[str] = None


class BatchMetadataUpdate(BaseModel):
    file_ids: List[int] = Field(default_factory=list)
    metadata: MetadataUpdate


class AudioFileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    file_name: str
    file_key: str
    file_url: str
    file_size: int
    duration: Optional[int] = None
    format: str
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    album_artist: Optional[str] = None
    year: Optional[int] = None
    genre: Optional[str] = None
    track_number: Optional[int] = None
    total_tracks: Optional[int] = None
    comment: Optional[str] = None
    composer: Optional[str] = None
    is_modified: int
    modified_file_key: Optional[str] = None
    modified_file_url: Optional[str] = None
    artwork_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UploadResult(BaseModel):
    success: bool = True
    file_id: int
    file_name: str
    file_url: str
    format: str
    duration: Optional[int] = None
    created_at: Optional[datetime] = None


class BatchResult(BaseModel):
    success: bool = True
    updated_count: int


class DownloadReferenceOut(BaseModel):
    url: str
    file_name: str
    is_modified: bool


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    open_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: str
