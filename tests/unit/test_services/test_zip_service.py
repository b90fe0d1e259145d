"""Unit tests for zip service."""

import io
import zipfile
import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi import HTTPException, UploadFile
from src.models.upload import Upload
from src.services.zip_service import ZipService, build_zip


def make_file(filename, content):
    file = MagicMock(spec=UploadFile)
    file.filename = filename
    file.content_type = "text/plain"
    file.read = AsyncMock(return_value=content)
    file.close = AsyncMock()
    return file


def test_build_zip_contains_entries():
    archive = build_zip([("a.txt", b"alpha"), ("b.txt", b"beta" * 100)])

    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        assert zf.namelist() == ["a.txt", "b.txt"]
        assert zf.read("b.txt") == b"beta" * 100
        assert zf.getinfo("b.txt").compress_type == zipfile.ZIP_DEFLATED


@pytest.mark.asyncio
async def test_create_zip_stores_archive():
    """The archive is stored as archive_<unix>.zip and shared."""
    upload_service = MagicMock()

    async def store_file(user_id, filename, content, content_type):
        return Upload(
            id=1,
            user_id=user_id,
            filename=filename,
            file_key=filename,
            file_size=len(content),
            share_link="zip00001",
        )

    upload_service.store_file = AsyncMock(side_effect=store_file)
    service = ZipService(upload_service)

    result = await service.create_zip("alice", [make_file("a.txt", b"a"), make_file("b.txt", b"b")])

    assert result.file_count == 2
    assert result.archive.filename.startswith("archive_")
    assert result.archive.filename.endswith(".zip")
    assert result.message == f"Zip {result.archive.filename} created successfully! (2 files)"

    args = upload_service.store_file.await_args.args
    assert args[0] == "alice"
    assert args[3] == "application/zip"
    with zipfile.ZipFile(io.BytesIO(args[2])) as zf:
        assert sorted(zf.namelist()) == ["a.txt", "b.txt"]


@pytest.mark.asyncio
async def test_create_zip_upload_failure():
    upload_service = MagicMock()
    upload_service.store_file = AsyncMock(side_effect=RuntimeError("bucket unavailable"))
    service = ZipService(upload_service)

    with pytest.raises(HTTPException) as exc:
        await service.create_zip("alice", [make_file("a.txt", b"a")])

    assert exc.value.status_code == 500
    assert exc.value.detail == "Error uploading zip file"


@pytest.mark.asyncio
async def test_create_zip_read_failure():
    upload_service = MagicMock()
    upload_service.store_file = AsyncMock()
    broken = make_file("a.txt", b"")
    broken.read = AsyncMock(side_effect=OSError("disk error"))

    with pytest.raises(HTTPException) as exc:
        await ZipService(upload_service).create_zip("alice", [broken])

    assert exc.value.status_code == 500
    assert exc.value.detail == "Error creating zip archive"
    upload_service.store_file.assert_not_awaited()
