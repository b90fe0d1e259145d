"""Upload, share and media schemas."""

from typing import List, Optional
from pydantic import BaseModel, Field
from ..utils.constants import UploadStatus


class ChunkSubmission(BaseModel):
    """A validated chunk upload request."""

    user_id: str = Field(..., min_length=1)
    upload_id: str = Field(..., min_length=1)
    filename: str = Field(..., min_length=1)
    index: int = Field(..., ge=0, description="Zero-based chunk index")
    total: int = Field(..., ge=1, description="Total chunks declared for the upload")


class ChunkUploadResponse(BaseModel):
    """Response to a chunk upload; says whether the upload is still waiting or done."""

    status: UploadStatus
    upload_id: str
    received: int = Field(..., description="Chunks buffered so far")
    total: int
    message: str
    filename: Optional[str] = None
    share_link: Optional[str] = None
    share_url: Optional[str] = None
    file_size: Optional[int] = None


class StoredFile(BaseModel):
    """A file that was stored and recorded."""

    filename: str
    file_key: str
    file_size: int
    share_link: str
    share_url: str


class BatchUploadResponse(BaseModel):
    """Result of a single-shot multi-file upload."""

    message: str
    uploaded: List[StoredFile] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)


class ZipResponse(BaseModel):
    """Result of bundling files into a zip archive."""

    message: str
    file_count: int
    archive: StoredFile


class ShareItem(BaseModel):
    """One entry of a user's share listing."""

    filename: str
    file_size: int
    size: str = Field(..., description="Human-readable size")
    share_link: str
    share_url: str


class ShareListResponse(BaseModel):
    """A user's shares, newest first."""

    user_id: str
    shares: List[ShareItem]
    cached: bool = False


class QueuedCompression(BaseModel):
    """A compression job waiting in the queue."""

    filename: str
    kind: str
    task_id: str


class CompressionResponse(BaseModel):
    """Result of submitting media for compression."""

    message: str
    quality: str
    images: int
    videos: int
    jobs: List[QueuedCompression]


class TaskStatusResponse(BaseModel):
    """Status of a queued background task."""

    task_id: str
    status: str
    result: Optional[dict] = None
