"""Upload service for single-shot and chunked uploads."""

import asyncio
from typing import List, Optional
from fastapi import UploadFile, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from ..config import settings
from ..models.upload import Upload
from ..repositories.cache_repo import ShareCacheRepository
from ..repositories.storage_repo import StorageRepository
from ..repositories.upload_repo import UploadRepository
from ..schemas.upload import (
    BatchUploadResponse,
    ChunkSubmission,
    ChunkUploadResponse,
    StoredFile,
)
from ..middleware.validation import validate_file_size
from ..services.chunk_assembler import ChunkAssembler
from ..utils.constants import UploadStatus
from ..utils.exceptions import ChunkTooLargeError, InvalidChunkError, UploadCapacityError
from ..utils.helpers import build_share_url, generate_share_link, sanitize_filename
from ..utils.logger import get_logger

logger = get_logger(__name__)


class UploadService:
    """Service for storing uploads and issuing share links."""

    def __init__(
        self,
        db: AsyncSession,
        storage_repo: Optional[StorageRepository] = None,
        cache_repo: Optional[ShareCacheRepository] = None,
        assembler: Optional[ChunkAssembler] = None,
    ):
        self.db = db
        self.upload_repo = UploadRepository(db)
        self.storage_repo = storage_repo or StorageRepository()
        self.cache_repo = cache_repo
        self.assembler = assembler

    async def store_file(
        self,
        user_id: str,
        filename: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> Upload:
        """
        Persist bytes and record them: pick a free key, put the object,
        create the upload record with a new share link, then invalidate the
        user's cached share listing.
        """
        key = await self.storage_repo.resolve_key(sanitize_filename(filename))
        await self.storage_repo.put_object(key, content, content_type)

        try:
            upload = await asyncio.wait_for(
                self.upload_repo.create_upload(
                    user_id=user_id,
                    filename=filename,
                    file_key=key,
                    file_size=len(content),
                    share_link=generate_share_link(),
                ),
                timeout=settings.storage_timeout_seconds,
            )
        except Exception:
            await self.db.rollback()
            raise

        if self.cache_repo is not None:
            await self.cache_repo.invalidate(user_id)
        return upload

    @staticmethod
    def to_stored_file(upload: Upload) -> StoredFile:
        return StoredFile(
            filename=upload.filename,
            file_key=upload.file_key,
            file_size=upload.file_size,
            share_link=upload.share_link,
            share_url=build_share_url(upload.share_link),
        )

    async def handle_chunk(
        self, submission: ChunkSubmission, payload: bytes
    ) -> ChunkUploadResponse:
        """
        Buffer one chunk and, if it completes its upload, store the assembled file.
        The assembled upload is persisted by exactly one request: the one
        whose chunk completed it.
        """
        if self.assembler is None:
            raise RuntimeError("UploadService was built without a chunk assembler")

        if not payload:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Chunk is empty",
            )
        validate_file_size(len(payload))

        try:
            result = await self.assembler.submit_chunk(
                upload_id=submission.upload_id,
                user_id=submission.user_id,
                filename=submission.filename,
                index=submission.index,
                total=submission.total,
                payload=payload,
            )
        except InvalidChunkError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        except ChunkTooLargeError as e:
            logger.warning("Chunk rejected, larger than chunk buffer", upload_id=submission.upload_id, reason=str(e))
            raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
        except UploadCapacityError as e:
            logger.warning("Chunk rejected, upload capacity reached", upload_id=submission.upload_id, reason=str(e))
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

        if not result.completed:
            return ChunkUploadResponse(
                status=UploadStatus.PENDING,
                upload_id=result.upload_id,
                received=result.received,
                total=result.total,
                message=f"Chunk {submission.index + 1} of {result.total} received",
            )

        try:
            validate_file_size(len(result.payload))
        except HTTPException:
            # The session is gone; the assembled bytes are dropped
            logger.error(
                "Assembled upload exceeds maximum file size",
                upload_id=result.upload_id,
                user_id=result.user_id,
                filename=result.filename,
                file_size=len(result.payload),
                max_file_size_mb=settings.max_file_size_mb,
            )
            raise

        try:
            upload = await self.store_file(result.user_id, result.filename, result.payload)
        except Exception as e:
            # The session is gone; the client has to restart under a new upload id
            logger.error(
                "Failed to store assembled upload",
                upload_id=result.upload_id,
                user_id=result.user_id,
                filename=result.filename,
                error=str(e),
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error uploading file: {e}",
            )

        return ChunkUploadResponse(
            status=UploadStatus.COMPLETED,
            upload_id=result.upload_id,
            received=result.received,
            total=result.total,
            message=f"File {upload.filename} uploaded successfully",
            filename=upload.filename,
            share_link=upload.share_link,
            share_url=build_share_url(upload.share_link),
            file_size=upload.file_size,
        )

    async def handle_batch(self, user_id: str, files: List[UploadFile]) -> BatchUploadResponse:
        """
        Store each file of a multi-file upload independently.
        Files that fail are collected; the request only fails if all of them did.
        """
        logger.info("Starting batch file upload", user_id=user_id, file_count=len(files))

        uploaded: List[StoredFile] = []
        failed: List[str] = []

        for file in files:
            try:
                content = await file.read()
                validate_file_size(len(content))
                upload = await self.store_file(
                    user_id,
                    file.filename,
                    content,
                    file.content_type or "application/octet-stream",
                )
            except Exception as e:
                logger.warning(
                    "Failed to upload file",
                    filename=file.filename,
                    user_id=user_id,
                    error=str(e),
                )
                failed.append(file.filename)
                continue
            finally:
                await file.close()

            uploaded.append(self.to_stored_file(upload))

        logger.info(
            "Batch file upload completed",
            user_id=user_id,
            success_count=len(uploaded),
            failed_count=len(failed),
            failed_files=failed,
        )

        if not uploaded:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="All file uploads failed",
            )

        if failed:
            message = f"{len(uploaded)} files uploaded successfully. Failed to upload: {', '.join(failed)}"
        else:
            message = f"Files {', '.join(f.filename for f in uploaded)} uploaded successfully!"

        return BatchUploadResponse(message=message, uploaded=uploaded, failed=failed)
