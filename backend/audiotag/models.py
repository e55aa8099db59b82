from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text, func

from audiotag.database import Base

# Tag columns a user may edit; everything else on the row is system-owned.
METADATA_FIELDS = (
    "title",
    "artist",
    "album",
    "album_artist",
    "year",
    "genre",
    "track_number",
    "total_tracks",
    "comment",
    "composer",
)


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    open_id = Column(String(64), nullable=False, unique=True)
    name = Column(Text)
    email = Column(String(320))
    login_method = Column(String(64))
    role = Column(Enum("user", "admin", name="user_role"), nullable=False, default="user")

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        default=utcnow,
    )
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    last_signed_in = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class AudioFile(Base):
    __tablename__ = "audio_files"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_key = Column(String(512), nullable=False)
    file_url = Column(Text, nullable=False)
    file_size = Column(Integer, nullable=False)
    duration = Column(Integer)  # seconds
    format = Column(String(10), nullable=False)  # mp3 | wav

    title = Column(Text)
    artist = Column(Text)
    album = Column(Text)
    album_artist = Column(Text)
    year = Column(Integer)
    genre = Column(Text)
    track_number = Column(Integer)
    total_tracks = Column(Integer)
    comment = Column(Text)
    composer = Column(Text)

    # 0 until the first metadata edit, then 1 for good
    is_modified = Column(Integer, nullable=False, default=0)
    modified_file_key = Column(String(512))
    modified_file_url = Column(Text)
    artwork_key = Column(String(512))
    artwork_url = Column(Text)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        default=utcnow,
    )
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
