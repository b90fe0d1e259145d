"""Upload routes: single-shot batches, chunked uploads and zip bundles."""

from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from ..core.dependencies import get_upload_service, get_zip_service
from ..middleware.rate_limit import CHUNK_LIMIT, UPLOAD_LIMIT, limiter
from ..middleware.validation import require_files, require_user_id, validate_chunk_form
from ..schemas.upload import BatchUploadResponse, ChunkUploadResponse, ZipResponse
from ..services.upload_service import UploadService
from ..services.zip_service import ZipService

router = APIRouter(tags=["uploads"])


@router.post("/upload", response_model=BatchUploadResponse)
@limiter.limit(UPLOAD_LIMIT)
async def upload_files(
    request: Request,
    user_id: Optional[str] = Form(None),
    file: Optional[List[UploadFile]] = File(None),
    upload_service: UploadService = Depends(get_upload_service),
):
    """
    Upload one or more files in a single request.
    Each file gets its own share link; files that fail are reported by name.
    """
    user_id = require_user_id(user_id)
    files = require_files(file)
    return await upload_service.handle_batch(user_id, files)


@router.post("/upload/chunk", response_model=ChunkUploadResponse)
@limiter.limit(CHUNK_LIMIT)
async def upload_chunk(
    request: Request,
    user_id: Optional[str] = Form(None),
    upload_id: Optional[str] = Form(None),
    filename: Optional[str] = Form(None),
    index: Optional[str] = Form(None),
    total: Optional[str] = Form(None),
    chunk: Optional[UploadFile] = File(None),
    upload_service: UploadService = Depends(get_upload_service),
):
    """
    Upload one chunk of a large file.
    Chunks may arrive in any order and may be re-sent. The response status is
    "completed" for the request whose chunk finished the upload, and
    "pending" otherwise.
    """
    submission = validate_chunk_form(user_id, upload_id, filename, index, total, chunk)
    payload = await chunk.read()
    await chunk.close()
    return await upload_service.handle_chunk(submission, payload)


@router.post("/create-zip", response_model=ZipResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(UPLOAD_LIMIT)
async def create_zip(
    request: Request,
    user_id: Optional[str] = Form(None),
    zip_files: Optional[List[UploadFile]] = File(None, alias="zip-files"),
    zip_service: ZipService = Depends(get_zip_service),
):
    """Bundle the uploaded files into a zip archive and share it."""
    user_id = require_user_id(user_id)
    files = require_files(zip_files, detail="No files selected")
    return await zip_service.create_zip(user_id, files)
