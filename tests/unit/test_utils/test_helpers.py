"""Unit tests for helpers."""

import pytest
from src.config import settings
from src.utils.constants import CompressionQuality
from src.utils.helpers import (
    build_share_url,
    content_disposition,
    format_bytes,
    generate_share_link,
    generate_staging_key,
    get_compressed_filename,
    sanitize_filename,
)
from src.utils.logger import mask_dsn


@pytest.mark.parametrize(
    "size,expected",
    [
        (0, "0 B"),
        (1023, "1023 B"),
        (1024, "1.00 KB"),
        (1536, "1.50 KB"),
        (5 * 1024 * 1024, "5.00 MB"),
        (3 * 1024 * 1024 * 1024 // 2, "1.50 GB"),
    ],
)
def test_format_bytes(size, expected):
    assert format_bytes(size) == expected


def test_generate_share_link():
    """Share links are 8 URL-safe characters and practically unique."""
    links = {generate_share_link() for _ in range(500)}
    assert len(links) == 500
    for link in links:
        assert len(link) == 8
        assert all(c.isalnum() or c in "-_" for c in link)


def test_build_share_url():
    assert build_share_url("abcd1234") == f"{settings.base_url}:{settings.port}/share/abcd1234"


@pytest.mark.parametrize(
    "original,is_video,expected",
    [
        ("photo.png", False, "photo_compressed.jpg"),
        ("photo.PNG", False, "photo_compressed.jpg"),
        ("photo.jpeg", False, "photo_compressed.jpeg"),
        ("clip.mov", True, "clip_compressed.mov"),
    ],
)
def test_get_compressed_filename(original, is_video, expected):
    assert get_compressed_filename(original, is_video) == expected


def test_sanitize_filename():
    assert sanitize_filename("../../etc/passwd") == "passwd"
    assert sanitize_filename("my report (final).pdf") == "my_report__final_.pdf"
    assert sanitize_filename("") == "unnamed"


def test_generate_staging_key():
    key = generate_staging_key("my clip.mp4")
    assert key.startswith("staging/")
    assert key.endswith("/my_clip.mp4")
    assert generate_staging_key("a.mp4") != generate_staging_key("a.mp4")


@pytest.mark.parametrize(
    "value,expected",
    [
        ("high", CompressionQuality.HIGH),
        ("LOW", CompressionQuality.LOW),
        ("medium", CompressionQuality.MEDIUM),
        ("ultra", CompressionQuality.MEDIUM),
        (None, CompressionQuality.MEDIUM),
    ],
)
def test_compression_quality_parse(value, expected):
    assert CompressionQuality.parse(value) is expected


def test_mask_dsn():
    assert mask_dsn("postgresql+asyncpg://app:s3cret@db:5432/files") == (
        "postgresql+asyncpg://app:***@db:5432/files"
    )
    assert mask_dsn("sqlite+aiosqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"
    assert mask_dsn("not a url") == "<unparseable database URL>"
    assert mask_dsn("") == ""


@pytest.mark.parametrize(
    "filename,expected",
    [
        ("report.pdf", "attachment; filename=\"report.pdf\"; filename*=UTF-8''report.pdf"),
        ("café.txt", "attachment; filename=\"cafe.txt\"; filename*=UTF-8''caf%C3%A9.txt"),
        ("报告.txt", "attachment; filename=\"download.txt\"; filename*=UTF-8''%E6%8A%A5%E5%91%8A.txt"),
        ("数据", "attachment; filename=\"download\"; filename*=UTF-8''%E6%95%B0%E6%8D%AE"),
        ('a"b;c.txt', "attachment; filename=\"a_b_c.txt\"; filename*=UTF-8''a%22b%3Bc.txt"),
    ],
)
def test_content_disposition(filename, expected):
    value = content_disposition(filename)
    assert value == expected
    value.encode("latin-1")
