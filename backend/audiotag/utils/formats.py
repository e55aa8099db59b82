"""
Container type and MIME resolution for uploaded audio and artwork.

Acceptance is lenient: a file passes when *either* its declared MIME type
or its extension is on the allow-list, since many clients send
``application/octet-stream`` for perfectly good files.  The canonical MIME
type and the stored format tag are derived from the extension alone.
"""

from typing import NamedTuple, Optional

from audiotag.errors import InvalidFormat

AUDIO_MIME_TYPES = ("audio/mpeg", "audio/wav", "audio/x-wav")
AUDIO_EXTENSIONS = (".mp3", ".wav")

IMAGE_MIME_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")

_AUDIO_MIME_BY_EXT = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
}
_IMAGE_MIME_BY_EXT = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}

_IMAGE_EXT_BY_MIME = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

DEFAULT_AUDIO_MIME = "audio/mpeg"
DEFAULT_IMAGE_MIME = "image/jpeg"


class AudioClassification(NamedTuple):
    mime_type: str
    format: str


class ImageClassification(NamedTuple):
    mime_type: str
    valid: bool


def _extension(file_name: str) -> str:
    # a bare name yields itself, which then misses every lookup
    return file_name.lower().rsplit(".", 1)[-1]


def _allowed(file_name: str, mime_type: Optional[str], mimes, extensions) -> bool:
    name = file_name.lower()
    return (mime_type in mimes) or any(name.endswith(ext) for ext in extensions)


def is_valid_audio(file_name: str, mime_type: Optional[str]) -> bool:
    return _allowed(file_name, mime_type, AUDIO_MIME_TYPES, AUDIO_EXTENSIONS)


def is_valid_image(file_name: str, mime_type: Optional[str]) -> bool:
    return _allowed(file_name, mime_type, IMAGE_MIME_TYPES, IMAGE_EXTENSIONS)


def audio_mime_type(file_name: str) -> str:
    return _AUDIO_MIME_BY_EXT.get(_extension(file_name), DEFAULT_AUDIO_MIME)


def image_mime_type(file_name: str) -> str:
    return _IMAGE_MIME_BY_EXT.get(_extension(file_name), DEFAULT_IMAGE_MIME)


def audio_format(file_name: str) -> str:
    """``wav`` for .wav files, ``mp3`` for anything else (even .flac)."""
    return "wav" if _extension(file_name) == "wav" else "mp3"


def classify_audio(file_name: str, declared_mime_type: Optional[str]) -> AudioClassification:
    if not is_valid_audio(file_name, declared_mime_type):
        raise InvalidFormat("Invalid audio format. Only MP3 and WAV files are supported.")
    return AudioClassification(audio_mime_type(file_name), audio_format(file_name))


def classify_image(file_name: str, declared_mime_type: Optional[str]) -> ImageClassification:
    return ImageClassification(
        image_mime_type(file_name), is_valid_image(file_name, declared_mime_type)
    )


def image_extension(mime_type: Optional[str]) -> str:
    """File extension for a canonical image MIME type, ``jpg`` when unknown."""
    return _IMAGE_EXT_BY_MIME.get((mime_type or "").lower(), "jpg")
