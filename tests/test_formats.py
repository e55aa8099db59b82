# tests/test_formats.py
"""Tests for audio/image classification"""

import pytest

from audiotag.errors import InvalidFormat
from audiotag.utils.formats import (
    audio_format,
    audio_mime_type,
    classify_audio,
    classify_image,
    image_mime_type,
    is_valid_audio,
)


class TestAudioValidation:
    """Either the MIME type or the extension lets a file in"""

    @pytest.mark.parametrize("name,mime", [
        ("song.mp3", "audio/mpeg"),
        ("song.wav", "audio/wav"),
        ("song.wav", "audio/x-wav"),
        ("song.mp3", "application/octet-stream"),
        ("SONG.MP3", "audio/mpeg"),
        ("Song.Wav", None),
        ("recording", "audio/x-wav"),
    ])
    def test_accepts(self, name, mime):
        assert is_valid_audio(name, mime) is True

    @pytest.mark.parametrize("name,mime", [
        ("document.pdf", "application/pdf"),
        ("document.txt", "text/plain"),
        ("song.flac", "audio/flac"),
        ("song.mp3.txt", "text/plain"),
    ])
    def test_rejects(self, name, mime):
        assert is_valid_audio(name, mime) is False

    def test_classify_audio_raises_invalid_format(self):
        with pytest.raises(InvalidFormat):
            classify_audio("document.pdf", "application/pdf")

    def test_classify_audio_canonicalizes_from_extension(self):
        result = classify_audio("Track.WAV", "application/octet-stream")
        assert result.mime_type == "audio/wav"
        assert result.format == "wav"


class TestAudioMimeAndFormat:

    def test_mime_type(self):
        assert audio_mime_type("song.mp3") == "audio/mpeg"
        assert audio_mime_type("song.wav") == "audio/wav"
        assert audio_mime_type("song.flac") == "audio/mpeg"
        assert audio_mime_type("song") == "audio/mpeg"
        assert audio_mime_type("SONG.MP3") == "audio/mpeg"

    def test_format(self):
        assert audio_format("song.mp3") == "mp3"
        assert audio_format("SONG.WAV") == "wav"
        assert audio_format("song.flac") == "mp3"
        assert audio_format("song") == "mp3"

    def test_declared_mime_never_changes_canonical_type(self):
        # a .wav name declared as mpeg is still stored as wav
        assert classify_audio("song.wav", "audio/mpeg") == ("audio/wav", "wav")


class TestImageClassification:

    @pytest.mark.parametrize("name,mime", [
        ("cover.jpg", "image/jpeg"),
        ("cover.jpeg", "image/jpeg"),
        ("cover.png", "image/png"),
        ("cover.gif", "image/gif"),
        ("cover.webp", "image/webp"),
        ("cover.jpg", "application/octet-stream"),
        ("COVER.JPG", "image/jpeg"),
    ])
    def test_valid(self, name, mime):
        assert classify_image(name, mime).valid is True

    def test_invalid(self):
        assert classify_image("document.pdf", "application/pdf").valid is False
        assert classify_image("readme.txt", "text/plain").valid is False

    def test_image_mime_type(self):
        assert image_mime_type("cover.jpg") == "image/jpeg"
        assert image_mime_type("cover.jpeg") == "image/jpeg"
        assert image_mime_type("Cover.Png") == "image/png"
        assert image_mime_type("cover.gif") == "image/gif"
        assert image_mime_type("cover.webp") == "image/webp"
        assert image_mime_type("cover.bmp") == "image/jpeg"
        assert image_mime_type("cover") == "image/jpeg"
