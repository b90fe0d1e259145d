"""Request validators for upload form fields."""

from typing import List, Optional
from fastapi import HTTPException, status
from starlette.datastructures import UploadFile
from ..config import settings
from ..schemas.upload import ChunkSubmission


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def require_user_id(user_id: Optional[str]) -> str:
    """Return the user id or reject the request."""
    if not user_id or not user_id.strip():
        raise _bad_request("User ID is required")
    return user_id.strip()


def _parse_int(value: Optional[str], name: str) -> int:
    if value is None or not value.strip():
        raise _bad_request(f"{name} is required")
    try:
        return int(value.strip())
    except ValueError:
        raise _bad_request(f"{name} must be an integer")


def validate_chunk_form(
    user_id: Optional[str],
    upload_id: Optional[str],
    filename: Optional[str],
    index: Optional[str],
    total: Optional[str],
    chunk: Optional[UploadFile],
) -> ChunkSubmission:
    """
    Validate the form fields of a chunk upload.
    Raises HTTPException (400) with a descriptive message for the first
    missing or malformed field, so invalid requests never reach the assembler.
    """
    user_id = require_user_id(user_id)
    if not upload_id or not upload_id.strip():
        raise _bad_request("Upload ID is required")
    if not filename or not filename.strip():
        raise _bad_request("Filename is required")

    index_value = _parse_int(index, "Chunk index")
    total_value = _parse_int(total, "Total chunks")
    if index_value < 0:
        raise _bad_request("Chunk index cannot be negative")
    if total_value < 1:
        raise _bad_request("Total chunks must be at least 1")

    if chunk is None or not isinstance(chunk, UploadFile):
        raise _bad_request("No chunk uploaded")

    return ChunkSubmission(
        user_id=user_id,
        upload_id=upload_id.strip(),
        filename=filename.strip(),
        index=index_value,
        total=total_value,
    )


def validate_file_size(size: int) -> int:
    """
    Validate a payload size against the configured maximum.
    A maximum of 0 disables the check.
    """
    if settings.max_file_size_mb > 0 and size > settings.max_file_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size exceeds maximum allowed size of {settings.max_file_size_mb} MB",
        )
    return size


def require_files(files: Optional[List[UploadFile]], detail: str = "No files uploaded") -> List[UploadFile]:
    """Return the uploaded files that carry a filename, or reject the request."""
    files = [f for f in (files or []) if isinstance(f, UploadFile) and f.filename]
    if not files:
        raise _bad_request(detail)
    return files
