"""Test configuration and fixtures"""

import struct
import wave

import pytest
from fastapi.testclient import TestClient
from mutagen.id3 import APIC, COMM, ID3, TALB, TCOM, TCON, TDRC, TIT2, TPE1, TPE2, TRCK
from mutagen.wave import WAVE
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from audiotag.config import Settings, get_settings
from audiotag.database import Base, get_db
from audiotag.errors import StorageError
from audiotag.models import AudioFile, User
from audiotag.storage import get_object_store

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32

# MPEG-1 Layer III, 128 kbps, 44.1 kHz, no CRC: 417 byte frames
MP3_FRAME = b"\xff\xfb\x90\x00" + b"\x00" * 413


class InMemoryObjectStore:
    """Object store double keeping blobs in a dict"""

    def __init__(self):
        self.blobs = {}
        self.fail_puts = False
        self.fail_put_prefix = None
        self.fail_removes = False

    def put(self, key, data, mime_type):
        if self.fail_puts or (self.fail_put_prefix and key.startswith(self.fail_put_prefix)):
            raise StorageError("store unreachable")
        self.blobs[key] = (bytes(data), mime_type)
        return {"url": f"https://storage.test/{key}"}

    def get(self, key):
        return {"url": f"https://storage.test/{key}"}

    def remove(self, key):
        if self.fail_removes:
            raise StorageError("store unreachable")
        self.blobs.pop(key, None)


def write_wav(path, seconds=2.6, rate=8000):
    with wave.open(str(path), "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(rate)
        w.writeframes(b"\x00\x00" * int(seconds * rate))
    return path


def add_info_chunk(data, fields):
    """Append a RIFF LIST/INFO chunk to WAV bytes and fix up the RIFF size"""
    body = b"INFO"
    for chunk_id, text in fields.items():
        raw = text.encode("utf-8") + b"\x00"
        body += chunk_id + struct.pack("<I", len(raw)) + raw
        if len(raw) % 2:
            body += b"\x00"
    data = data + b"LIST" + struct.pack("<I", len(body)) + body
    return data[:4] + struct.pack("<I", len(data) - 8) + data[8:]


def full_tag_frames():
    return [
        TIT2(encoding=3, text=["Test Song"]),
        TPE1(encoding=3, text=["Test Artist"]),
        TALB(encoding=3, text=["Test Album"]),
        TPE2(encoding=3, text=["Album Artist"]),
        TDRC(encoding=3, text=["2021"]),
        TCON(encoding=3, text=["Rock", "Pop"]),
        TRCK(encoding=3, text=["3/12"]),
        COMM(encoding=3, lang="eng", desc="", text=["First comment"]),
        TCOM(encoding=3, text=["Composer A", "Composer B"]),
        APIC(encoding=3, mime="image/png", type=3, desc="Cover", data=PNG_BYTES),
    ]


@pytest.fixture
def tagged_wav(tmp_path):
    """Bytes of a 2.6 second WAV file carrying a full ID3 chunk"""
    path = write_wav(tmp_path / "tagged.wav")
    audio = WAVE(str(path))
    audio.add_tags()
    for frame in full_tag_frames():
        audio.tags.add(frame)
    audio.save()
    return path.read_bytes()


@pytest.fixture
def plain_wav(tmp_path):
    """Bytes of a WAV file with no tags at all"""
    return write_wav(tmp_path / "plain.wav", seconds=1.0).read_bytes()


@pytest.fixture
def info_wav(tmp_path):
    """WAV bytes tagged only through a LIST/INFO chunk"""
    data = write_wav(tmp_path / "info.wav", seconds=1.0).read_bytes()
    return add_info_chunk(data, {
        b"INAM": "Info Title",
        b"IART": "Info Artist",
        b"IPRD": "Info Album",
        b"ICRD": "1998-04-02",
        b"IGNR": "Ambient",
        b"ICMT": "Recorded live",
        b"ITRK": "5",
    })


@pytest.fixture
def tagged_mp3(tmp_path):
    path = tmp_path / "tagged.mp3"
    path.write_bytes(MP3_FRAME * 60)
    tags = ID3()
    tags.add(TIT2(encoding=3, text=["Mp3 Title"]))
    tags.add(TPE1(encoding=3, text=["Mp3 Artist"]))
    tags.add(TRCK(encoding=3, text=["7"]))
    tags.save(str(path))
    return path.read_bytes()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store():
    return InMemoryObjectStore()


@pytest.fixture
def users(db):
    alice = User(open_id="alice", name="Alice")
    bob = User(open_id="bob", name="Bob")
    db.add_all([alice, bob])
    db.commit()
    return alice, bob


@pytest.fixture
def make_file(db):
    """Insert an audio_files row directly"""

    def _make(user, **overrides):
        values = {
            "user_id": user.id,
            "file_name": "song.mp3",
            "file_key": f"audio/{user.id}/key/song.mp3",
            "file_url": f"https://storage.test/audio/{user.id}/key/song.mp3",
            "file_size": 1024,
            "format": "mp3",
        }
        values.update(overrides)
        record = AudioFile(**values)
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    return _make


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", supabase_url=None, supabase_key=None)


@pytest.fixture
def client(engine, store, settings):
    from audiotag.main import app

    TestSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_object_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
