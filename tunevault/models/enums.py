"""Shared status and media type values."""
import enum


class FileStatus(str, enum.Enum):
    """Soft-delete state of a catalog row."""
    ACTIVE = "ACTIVE"
    TRASHED = "TRASHED"


class MediaType(str, enum.Enum):
    """Library partition a row belongs to."""
    MUSIC = "MUSIC"
    AUDIOBOOK = "AUDIOBOOK"
