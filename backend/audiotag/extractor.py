"""
Embedded tag extraction using Mutagen.

The raw ID3 frames of an MP3 or WAV file, and the RIFF ``LIST/INFO``
chunk of a WAV file, are first read into a loose "common" view (the
shape most tag libraries expose: genre and composer as lists, track as a
``{no, of}`` pair, comments as entries with a ``text``),
then normalized into a strict :class:`CanonicalMetadata` at the parse
boundary.  Extraction is best-effort: anything that goes wrong while
parsing is logged and collapses to an empty record so an upload can
always proceed.
"""

import io
import logging
import math
import re
import struct
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from mutagen import File as MutagenFile
from mutagen import MutagenError
from mutagen.id3 import ID3
from mutagen.mp3 import MP3
from mutagen.wave import WAVE

from audiotag.utils.formats import image_mime_type

logger = logging.getLogger(__name__)

_PARSERS = {
    "audio/mpeg": MP3,
    "audio/wav": WAVE,
    "audio/x-wav": WAVE,
}

_YEAR_RE = re.compile(r"(\d{4})")

# Tag fields copied onto a stored record (artwork and duration handled apart)
TAG_FIELDS = (
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


@dataclass(frozen=True)
class CanonicalMetadata:
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
    duration: Optional[float] = None
    artwork: Optional[bytes] = field(default=None, repr=False)
    artwork_mime_type: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def tags(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in TAG_FIELDS}


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of a parse: metadata (maybe partial) or the reason it failed."""

    metadata: CanonicalMetadata
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ----------------- Normalization -----------------
def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).replace("\x00", "").strip()
    return text or None


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _positive_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        return None
    return number if number > 0 else None


def _year(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value if value > 0 else None
    match = _YEAR_RE.search(str(value)) if value is not None else None
    return int(match.group(1)) if match else None


def _duration(value: Any) -> Optional[float]:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(seconds) or math.isinf(seconds) or seconds < 0:
        return None
    return seconds


def _sniff_image_mime(data: bytes) -> Optional[str]:
    if data.startswith(b"\x89PNG"):
        return "image/png"
    if data.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if data.startswith(b"GIF8"):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def _picture_mime(declared: Optional[str], data: bytes) -> Optional[str]:
    declared = _clean_text(declared)
    if declared and "/" in declared:
        return declared.lower()
    if declared:
        # ID3v2.2 style "JPG" / "PNG"
        return image_mime_type(f"cover.{declared}")
    return _sniff_image_mime(data)


def normalize(common: Dict[str, Any], format_info: Optional[Dict[str, Any]] = None) -> CanonicalMetadata:
    """Map a loose common-tag view onto the canonical schema."""
    format_info = format_info or {}

    track = common.get("track") or {}
    comments = common.get("comment")
    first_comment = _first(comments)
    if isinstance(first_comment, dict):
        first_comment = first_comment.get("text")

    artwork = None
    artwork_mime_type = None
    picture = _first(common.get("picture"))
    if picture and picture.get("data"):
        artwork = bytes(picture["data"])
        artwork_mime_type = _picture_mime(picture.get("format"), artwork)

    return CanonicalMetadata(
        title=_clean_text(common.get("title")),
        artist=_clean_text(common.get("artist")),
        album=_clean_text(common.get("album")),
        album_artist=_clean_text(common.get("albumartist")),
        year=_year(common.get("year")),
        genre=_clean_text(_first(common.get("genre"))),
        track_number=_positive_int(track.get("no")),
        total_tracks=_positive_int(track.get("of")),
        comment=_clean_text(first_comment),
        composer=_clean_text(_first(common.get("composer"))),
        duration=_duration(format_info.get("duration")),
        artwork=artwork,
        artwork_mime_type=artwork_mime_type,
    )


# ----------------- ID3 reading -----------------
def _text_values(tags: ID3, frame_id: str) -> List[str]:
    frame = tags.get(frame_id)
    if frame is None:
        return []
    return [str(v) for v in frame.text]


def _track_pair(raw: Optional[str]) -> Optional[Dict[str, Optional[str]]]:
    if not raw:
        return None
    no, _, of = raw.partition("/")
    return {"no": no or None, "of": of or None}


def _timestamp_year(tags: ID3) -> Optional[Any]:
    for frame_id in ("TDRC", "TDOR", "TYER"):
        frame = tags.get(frame_id)
        if frame is None or not frame.text:
            continue
        stamp = frame.text[0]
        return getattr(stamp, "year", None) or str(stamp)
    return None


def read_id3(tags: Optional[ID3]) -> Dict[str, Any]:
    """Build the common view out of ID3 frames (MP3 and WAV ``id3 `` chunk)."""
    if tags is None or not isinstance(tags, ID3):
        return {}

    genre_frame = tags.get("TCON")
    track = _text_values(tags, "TRCK")

    return {
        "title": _first(_text_values(tags, "TIT2")),
        "artist": _first(_text_values(tags, "TPE1")),
        "album": _first(_text_values(tags, "TALB")),
        "albumartist": _first(_text_values(tags, "TPE2")),
        "year": _timestamp_year(tags),
        "genre": list(genre_frame.genres) if genre_frame is not None else None,
        "track": _track_pair(_first(track)),
        "comment": [{"text": _first(list(f.text))} for f in tags.getall("COMM") if f.text],
        "composer": _text_values(tags, "TCOM"),
        "picture": [{"data": f.data, "format": f.mime} for f in tags.getall("APIC")],
    }


# RIFF INFO ids, the tag container DAWs and Windows write into WAV files
_INFO_FIELDS = {
    b"INAM": "title",
    b"IART": "artist",
    b"IPRD": "album",
    b"ICRD": "year",
    b"IGNR": "genre",
    b"ICMT": "comment",
    b"ITRK": "track",
    b"IPRT": "track",
}


def _decode_info(raw: bytes) -> str:
    raw = raw.split(b"\x00", 1)[0]
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def _riff_chunks(data: bytes, start: int, end: int):
    """Yield ``(id, body_start, body_end)``; a truncated last chunk is clipped."""
    offset = start
    while offset + 8 <= end:
        chunk_id = data[offset:offset + 4]
        size = struct.unpack_from("<I", data, offset + 4)[0]
        body_start = offset + 8
        yield chunk_id, body_start, min(body_start + size, end)
        offset = body_start + size + (size & 1)


def read_riff_info(data: bytes) -> Dict[str, Any]:
    """Build the common view out of a WAV file's ``LIST/INFO`` chunk."""
    if data[:4] != b"RIFF" or data[8:12] != b"WAVE":
        return {}

    values: Dict[str, Any] = {}
    for chunk_id, start, end in _riff_chunks(data, 12, len(data)):
        if chunk_id != b"LIST" or data[start:start + 4] != b"INFO":
            continue
        for sub_id, sub_start, sub_end in _riff_chunks(data, start + 4, end):
            name = _INFO_FIELDS.get(sub_id)
            if name and name not in values:
                values[name] = _decode_info(data[sub_start:sub_end])

    if "track" in values:
        values["track"] = _track_pair(values["track"])
    if "comment" in values:
        values["comment"] = [{"text": values["comment"]}]
    return values


def _open(data: bytes, mime_type: Optional[str]):
    parser = _PARSERS.get((mime_type or "").lower())
    fileobj = io.BytesIO(data)
    if parser is not None:
        return parser(fileobj)
    audio = MutagenFile(fileobj)
    if audio is None:
        raise MutagenError("unrecognised audio container")
    return audio


def parse(data: bytes, mime_type: Optional[str]) -> ExtractionResult:
    """Parse ``data`` and report failures explicitly instead of raising."""
    try:
        audio = _open(data, mime_type)
        # ID3 frames win over INFO values when a file carries both
        id3 = {k: v for k, v in read_id3(audio.tags).items() if v}
        common = {**read_riff_info(data), **id3}
        info = getattr(audio, "info", None)
        format_info = {"duration": getattr(info, "length", None)}
        return ExtractionResult(normalize(common, format_info))
    except (MutagenError, ValueError, EOFError, OSError) as e:
        return ExtractionResult(CanonicalMetadata(), error=f"{type(e).__name__}: {e}")
    except Exception as e:  # parser internals on hostile input
        logger.debug("Unexpected parser failure", exc_info=True)
        return ExtractionResult(CanonicalMetadata(), error=f"{type(e).__name__}: {e}")


def extract_metadata(data: bytes, mime_type: Optional[str]) -> CanonicalMetadata:
    """Best-effort extraction; never raises, returns empty metadata on failure."""
    result = parse(data, mime_type)
    if not result.ok:
        logger.warning("Error extracting metadata (%s): %s", mime_type, result.error)
    return result.metadata
