"""Audio tag manager: upload MP3/WAV files, extract and edit their metadata."""

__version__ = "1.0.0"
