"""Unit tests for share service."""

import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi import HTTPException
from src.repositories.upload_repo import UploadRepository
from src.services.share_service import ShareService


async def collect(response) -> bytes:
    data = b""
    async for part in response.body_iterator:
        data += part
    return data


@pytest.mark.asyncio
async def test_list_shares_cache_miss_then_hit(db_session, storage, cache_repo, fake_redis):
    """The first listing reads the database and fills the cache; the next is served from it."""
    repo = UploadRepository(db_session)
    await repo.create_upload("alice", "a.txt", "a.txt", 2048, "link0001")
    await repo.create_upload("alice", "b.txt", "b.txt", 10, "link0002")
    await repo.create_upload("bob", "c.txt", "c.txt", 10, "link0003")

    service = ShareService(db_session, storage_repo=storage, cache_repo=cache_repo)

    first = await service.list_shares("alice")
    assert first.cached is False
    assert {s.share_link for s in first.shares} == {"link0001", "link0002"}
    assert "user:shares:alice" in fake_redis.data
    assert fake_redis.ttls["user:shares:alice"] == 172800

    second = await service.list_shares("alice")
    assert second.cached is True
    assert second.shares == first.shares


@pytest.mark.asyncio
async def test_list_shares_formats_sizes(db_session, storage, cache_repo):
    repo = UploadRepository(db_session)
    await repo.create_upload("alice", "big.bin", "big.bin", 1536, "bigfile1")

    service = ShareService(db_session, storage_repo=storage, cache_repo=cache_repo)
    listing = await service.list_shares("alice")

    assert listing.shares[0].size == "1.50 KB"
    assert listing.shares[0].share_url.endswith("/share/bigfile1")


@pytest.mark.asyncio
async def test_list_shares_database_error():
    """Database failures surface as 500."""
    service = ShareService(AsyncMock(), storage_repo=MagicMock(), cache_repo=None)
    service.upload_repo = MagicMock()
    service.upload_repo.get_by_user_id = AsyncMock(side_effect=RuntimeError("connection lost"))

    with pytest.raises(HTTPException) as exc:
        await service.list_shares("alice")

    assert exc.value.status_code == 500
    assert exc.value.detail == "Error retrieving uploads"


@pytest.mark.asyncio
async def test_download_streams_object(db_session, storage, cache_repo):
    """Downloads stream the stored bytes with attachment headers."""
    storage.objects["photo.jpg"] = b"jpeg-bytes"
    await UploadRepository(db_session).create_upload("alice", "photo.jpg", "photo.jpg", 10, "photo001")

    service = ShareService(db_session, storage_repo=storage, cache_repo=cache_repo)
    response = await service.download("photo001")

    assert response.media_type == "application/octet-stream"
    assert response.headers["content-disposition"] == "attachment; filename=\"photo.jpg\"; filename*=UTF-8''photo.jpg"
    assert response.headers["content-length"] == "10"
    assert await collect(response) == b"jpeg-bytes"


@pytest.mark.asyncio
async def test_download_unknown_link(db_session, storage, cache_repo):
    service = ShareService(db_session, storage_repo=storage, cache_repo=cache_repo)

    with pytest.raises(HTTPException) as exc:
        await service.download("missing1")

    assert exc.value.status_code == 404
    assert exc.value.detail == "File not found"


@pytest.mark.asyncio
async def test_download_missing_object(db_session, storage, cache_repo):
    """A record whose object is gone fails before any bytes are sent."""
    await UploadRepository(db_session).create_upload("alice", "gone.txt", "gone.txt", 3, "gone0001")
    service = ShareService(db_session, storage_repo=storage, cache_repo=cache_repo)

    with pytest.raises(HTTPException) as exc:
        await service.download("gone0001")

    assert exc.value.status_code == 500
    assert exc.value.detail == "Error retrieving file"
