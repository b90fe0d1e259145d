"""Unit tests for request validators."""

import io
import pytest
from fastapi import HTTPException
from starlette.datastructures import UploadFile
from src.middleware.validation import require_files, require_user_id, validate_chunk_form, validate_file_size


def chunk_file():
    return UploadFile(file=io.BytesIO(b"data"), filename="blob")


def valid_form(**overrides):
    form = {
        "user_id": "alice",
        "upload_id": "up-1",
        "filename": "movie.mp4",
        "index": "0",
        "total": "3",
        "chunk": chunk_file(),
    }
    form.update(overrides)
    return form


def test_validate_chunk_form_success():
    submission = validate_chunk_form(**valid_form(index=" 2 ", upload_id=" up-1 "))

    assert submission.user_id == "alice"
    assert submission.upload_id == "up-1"
    assert submission.index == 2
    assert submission.total == 3


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"user_id": None}, "User ID is required"),
        ({"user_id": "   "}, "User ID is required"),
        ({"upload_id": ""}, "Upload ID is required"),
        ({"filename": None}, "Filename is required"),
        ({"index": None}, "Chunk index is required"),
        ({"index": "first"}, "Chunk index must be an integer"),
        ({"total": ""}, "Total chunks is required"),
        ({"total": "2.5"}, "Total chunks must be an integer"),
        ({"index": "-1"}, "Chunk index cannot be negative"),
        ({"total": "0"}, "Total chunks must be at least 1"),
        ({"chunk": None}, "No chunk uploaded"),
        ({"chunk": "not a file"}, "No chunk uploaded"),
    ],
)
def test_validate_chunk_form_rejects(overrides, message):
    with pytest.raises(HTTPException) as exc:
        validate_chunk_form(**valid_form(**overrides))

    assert exc.value.status_code == 400
    assert exc.value.detail == message


def test_require_user_id_strips():
    assert require_user_id(" alice ") == "alice"


def test_require_files_drops_unnamed_entries():
    named = UploadFile(file=io.BytesIO(b"a"), filename="a.txt")
    unnamed = UploadFile(file=io.BytesIO(b"b"), filename="")

    assert require_files([named, unnamed]) == [named]

    with pytest.raises(HTTPException) as exc:
        require_files([unnamed], detail="No files selected")
    assert exc.value.detail == "No files selected"


def test_validate_file_size(monkeypatch):
    from src.config import settings

    monkeypatch.setattr(settings, "max_file_size_mb", 1)
    assert validate_file_size(1024) == 1024

    with pytest.raises(HTTPException) as exc:
        validate_file_size(2 * 1024 * 1024)
    assert exc.value.status_code == 413

    monkeypatch.setattr(settings, "max_file_size_mb", 0)
    assert validate_file_size(10 * 1024 * 1024 * 1024) > 0
