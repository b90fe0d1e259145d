"""Application constants and enums."""

from enum import Enum


class UploadStatus(str, Enum):
    """Chunked upload status reported to clients."""

    PENDING = "pending"
    COMPLETED = "completed"


class CompressionQuality(str, Enum):
    """Media compression quality levels."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def parse(cls, value: str | None) -> "CompressionQuality":
        """Parse a quality name, falling back to medium for unknown values."""
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.MEDIUM


class MediaKind(str, Enum):
    """Kind of media accepted by the compression endpoint."""

    IMAGE = "image"
    VIDEO = "video"


# Longest image side per quality level
IMAGE_MAX_DIMENSION = {
    CompressionQuality.HIGH: 2048,
    CompressionQuality.MEDIUM: 1600,
    CompressionQuality.LOW: 1200,
}

# JPEG quality when re-encoding PNG sources
PNG_JPEG_QUALITY = {
    CompressionQuality.HIGH: 85,
    CompressionQuality.MEDIUM: 75,
    CompressionQuality.LOW: 60,
}

# JPEG quality for every other image source
JPEG_QUALITY = {
    CompressionQuality.HIGH: 90,
    CompressionQuality.MEDIUM: 80,
    CompressionQuality.LOW: 65,
}

# libx264 constant rate factor
VIDEO_CRF = {
    CompressionQuality.HIGH: "23",
    CompressionQuality.MEDIUM: "28",
    CompressionQuality.LOW: "32",
}

# ffmpeg demuxer names by file extension
VIDEO_FORMATS = {
    ".mp4": "mp4",
    ".mov": "mov",
    ".avi": "avi",
    ".mkv": "matroska",
    ".webm": "webm",
}

SHARE_CACHE_KEY = "user:shares:{user_id}"
