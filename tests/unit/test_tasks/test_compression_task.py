"""Unit tests for the media compression task."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from src.models.upload import Upload
from src.tasks.compression import run_compression
from src.utils.exceptions import StorageTimeoutError


@pytest.fixture
def patched_task(storage):
    """Run the task body against in-memory storage and a mocked upload service."""
    stored = {}

    async def store_file(user_id, filename, content, content_type):
        stored.update(user_id=user_id, filename=filename, content=content, content_type=content_type)
        return Upload(
            id=1, user_id=user_id, filename=filename, file_key=filename,
            file_size=len(content), share_link="cmp00001",
        )

    upload_service = MagicMock()
    upload_service.store_file = AsyncMock(side_effect=store_file)

    session_cm = MagicMock()
    session_cm.__aenter__ = AsyncMock(return_value=MagicMock())
    session_cm.__aexit__ = AsyncMock(return_value=False)

    redis_client = MagicMock()
    redis_client.aclose = AsyncMock()

    with patch("src.tasks.compression.StorageRepository", return_value=storage), \
            patch("src.tasks.compression.UploadService", return_value=upload_service), \
            patch("src.tasks.compression.AsyncSessionLocal", return_value=session_cm), \
            patch("src.tasks.compression.create_redis", return_value=redis_client):
        yield stored, redis_client


@pytest.mark.asyncio
async def test_run_compression_image(storage, patched_task):
    stored, redis_client = patched_task
    storage.objects["staging/abc/photo.png"] = b"png-bytes"

    with patch("src.tasks.compression.compress_image", return_value=b"jpg") as compress:
        result = await run_compression("alice", "staging/abc/photo.png", "photo.png", "image", "low")

    assert compress.call_args.args[0] == b"png-bytes"
    assert stored["filename"] == "photo_compressed.jpg"
    assert stored["content_type"] == "image/jpeg"
    assert result == {
        "status": "completed",
        "filename": "photo_compressed.jpg",
        "share_link": "cmp00001",
        "original_size": 9,
        "compressed_size": 3,
    }
    assert "staging/abc/photo.png" not in storage.objects
    redis_client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_run_compression_video(storage, patched_task):
    stored, _ = patched_task
    storage.objects["staging/abc/clip.mov"] = b"mov-bytes"

    with patch("src.tasks.compression.compress_video", return_value=b"mp4") as compress:
        await run_compression("alice", "staging/abc/clip.mov", "clip.mov", "video", "high")

    assert compress.call_args.args[1] == "clip.mov"
    assert stored["filename"] == "clip_compressed.mov"
    assert stored["content_type"] == "video/mp4"


@pytest.mark.asyncio
async def test_run_compression_keeps_staged_copy_on_failure(storage, patched_task):
    """A failed compression leaves the staged original for the retry."""
    storage.objects["staging/abc/clip.mp4"] = b"mp4"

    with patch("src.tasks.compression.compress_video", side_effect=RuntimeError("ffmpeg exited")):
        with pytest.raises(RuntimeError):
            await run_compression("alice", "staging/abc/clip.mp4", "clip.mp4", "video", "medium")

    assert "staging/abc/clip.mp4" in storage.objects


@pytest.mark.asyncio
async def test_run_compression_succeeds_when_cleanup_times_out(storage, patched_task):
    """A stored result is reported even if the staged original cannot be deleted."""
    stored, _ = patched_task
    storage.objects["staging/abc/photo.jpg"] = b"jpg-bytes"
    storage.delete_object = AsyncMock(side_effect=StorageTimeoutError("Storage call timed out after 30s"))

    with patch("src.tasks.compression.compress_image", return_value=b"small"):
        result = await run_compression("alice", "staging/abc/photo.jpg", "photo.jpg", "image", "medium")

    assert result["status"] == "completed"
    assert result["share_link"] == "cmp00001"
    assert stored["filename"] == "photo_compressed.jpg"
    storage.delete_object.assert_awaited_once_with("staging/abc/photo.jpg")
