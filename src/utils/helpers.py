"""Helper functions for common operations."""

import os
import secrets
import unicodedata
from pathlib import PurePosixPath
from urllib.parse import quote
from ..config import settings


def format_bytes(size_bytes: int) -> str:
    """Format a byte count the way share listings display it (e.g. "1.50 MB")."""
    kb, mb, gb = 1 << 10, 1 << 20, 1 << 30
    if size_bytes >= gb:
        return f"{size_bytes / gb:.2f} GB"
    if size_bytes >= mb:
        return f"{size_bytes / mb:.2f} MB"
    if size_bytes >= kb:
        return f"{size_bytes / kb:.2f} KB"
    return f"{size_bytes} B"


def generate_share_link() -> str:
    """Generate an 8 character URL-safe share token from 6 random bytes."""
    return secrets.token_urlsafe(6)[:8]


def generate_staging_key(filename: str) -> str:
    """Generate a storage key for an object awaiting background processing."""
    return f"staging/{secrets.token_hex(8)}/{sanitize_filename(filename)}"


def get_compressed_filename(original: str, is_video: bool) -> str:
    """
    Name of the compressed variant of a file.
    PNG images are re-encoded as JPEG, so their extension changes.
    """
    path = PurePosixPath(original)
    stem, ext = path.stem, path.suffix

    if not is_video and ext.lower() == ".png":
        return f"{stem}_compressed.jpg"
    return f"{stem}_compressed{ext}"


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage."""
    # Remove path components and dangerous characters
    filename = os.path.basename(filename.replace("\\", "/"))
    # Replace spaces and special characters
    filename = "".join(c if c.isalnum() or c in "._-" else "_" for c in filename)
    return filename[:255] or "unnamed"  # Limit length


def build_share_url(share_link: str) -> str:
    """Public download URL for a share link."""
    return f"{settings.share_base_url}share/{share_link}"


def content_disposition(filename: str) -> str:
    """
    Attachment header value that survives any filename.
    Header values must be Latin-1, so the plain filename parameter carries an
    ASCII fallback and filename* carries the UTF-8 name (RFC 5987).
    """
    fallback = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    fallback = "".join(c if c.isprintable() and c not in '"\\;' else "_" for c in fallback).strip()
    stem, dot, ext = fallback.rpartition(".")
    if not dot:
        stem, ext = fallback, ""
    if not stem.strip("._ "):
        fallback = "download" + (f".{ext}" if ext else "")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"
