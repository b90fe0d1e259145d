"""Media compression routes."""

from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from ..core.dependencies import get_compression_service
from ..middleware.rate_limit import COMPRESS_LIMIT, limiter
from ..middleware.validation import require_files, require_user_id
from ..repositories.queue_repo import QueueRepository
from ..schemas.upload import CompressionResponse, TaskStatusResponse
from ..services.compression_service import CompressionService
from ..utils.constants import CompressionQuality

router = APIRouter(prefix="/compress-media", tags=["media"])


@router.post("", response_model=CompressionResponse, status_code=status.HTTP_202_ACCEPTED)
@limiter.limit(COMPRESS_LIMIT)
async def compress_media(
    request: Request,
    user_id: Optional[str] = Form(None),
    quality: Optional[str] = Form(None),
    media_files: Optional[List[UploadFile]] = File(None, alias="media-files"),
    compression_service: CompressionService = Depends(get_compression_service),
):
    """
    Queue images and videos for compression.
    Quality is "high", "medium" (default) or "low". Each compressed file is
    stored and shared once its job finishes.
    """
    user_id = require_user_id(user_id)
    files = require_files(media_files, detail="No media files selected")
    return await compression_service.submit(user_id, files, CompressionQuality.parse(quality))


@router.get("/tasks/{task_id}", response_model=TaskStatusResponse)
async def get_compression_status(task_id: str):
    """Get the status of a compression job."""
    task = QueueRepository.get_task_status(task_id)
    result = task["result"]
    if result is not None and not isinstance(result, dict):
        result = {"error": str(result)}
    return TaskStatusResponse(task_id=task_id, status=task["status"], result=result)
