"""Share service: share listings and downloads by share link."""

from typing import Any, Iterator, Optional
from fastapi import HTTPException, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from ..models.upload import Upload
from ..repositories.cache_repo import ShareCacheRepository
from ..repositories.storage_repo import StorageRepository
from ..repositories.upload_repo import UploadRepository
from ..schemas.upload import ShareItem, ShareListResponse
from ..utils.helpers import build_share_url, content_disposition, format_bytes
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ShareService:
    """Service for resolving share links."""

    def __init__(
        self,
        db: AsyncSession,
        storage_repo: Optional[StorageRepository] = None,
        cache_repo: Optional[ShareCacheRepository] = None,
    ):
        self.db = db
        self.upload_repo = UploadRepository(db)
        self.storage_repo = storage_repo or StorageRepository()
        self.cache_repo = cache_repo

    @staticmethod
    def to_share_item(upload: Upload) -> ShareItem:
        return ShareItem(
            filename=upload.filename,
            file_size=upload.file_size,
            size=format_bytes(upload.file_size),
            share_link=upload.share_link,
            share_url=build_share_url(upload.share_link),
        )

    async def list_shares(self, user_id: str) -> ShareListResponse:
        """List a user's shares through the cache; a miss reads the database and fills the cache."""
        if self.cache_repo is not None:
            cached = await self.cache_repo.get(user_id)
            if cached is not None:
                return ShareListResponse(
                    user_id=user_id,
                    shares=[ShareItem(**item) for item in cached],
                    cached=True,
                )

        logger.info("Querying uploads for user", user_id=user_id)
        try:
            uploads = await self.upload_repo.get_by_user_id(user_id)
        except Exception as e:
            logger.error("Database error retrieving uploads", user_id=user_id, error=str(e))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error retrieving uploads",
            )

        shares = [self.to_share_item(u) for u in uploads]
        if self.cache_repo is not None:
            await self.cache_repo.set(user_id, [s.model_dump() for s in shares])

        return ShareListResponse(user_id=user_id, shares=shares, cached=False)

    async def get_upload(self, share_link: str) -> Upload:
        """Resolve a share link to its upload record."""
        upload = await self.upload_repo.get_by_share_link(share_link)
        if upload is None:
            logger.info("File not found for share ID", share_link=share_link)
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="File not found",
            )
        return upload

    async def download(self, share_link: str) -> StreamingResponse:
        """
        Stream the file behind a share link.
        Failures after streaming has started can only be logged; the status
        line has already been sent.
        """
        upload = await self.get_upload(share_link)
        headers = {
            "Content-Disposition": content_disposition(upload.filename),
            "Content-Length": str(upload.file_size),
        }

        try:
            body = await self.storage_repo.get_object_stream(upload.file_key)
        except Exception as e:
            logger.error("Error retrieving file stream", file_key=upload.file_key, error=str(e))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error retrieving file",
            )

        try:
            return StreamingResponse(
                self._stream(body, upload.file_key),
                media_type="application/octet-stream",
                headers=headers,
            )
        except Exception:
            body.close()
            raise

    def _stream(self, body: Any, file_key: str) -> Iterator[bytes]:
        try:
            yield from self.storage_repo.iter_body(body)
        except Exception as e:
            logger.error("Error sending file", file_key=file_key, error=str(e))
            raise
