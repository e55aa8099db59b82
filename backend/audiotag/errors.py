class AudioTagError(Exception):
    """Base class for every failure the core reports to its callers."""


class InvalidFormat(AudioTagError):
    """Neither the declared MIME type nor the extension is allowed."""


class StorageError(AudioTagError):
    """The object store is unreachable, unconfigured or rejected a write."""


class NotFoundOrForbidden(AudioTagError):
    """The record does not exist or belongs to another user.

    Both cases share one error so that non-owners cannot probe which ids exist.
    """

    def __init__(self, message: str = "File not found or access denied"):
        super().__init__(message)


class DatabaseUnavailable(AudioTagError):
    """The relational store is not configured or cannot be reached."""
