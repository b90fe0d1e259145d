"""Upload repository for file metadata records."""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from ..models.upload import Upload


class UploadRepository:
    """Repository for Upload operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_upload(
        self,
        user_id: str,
        filename: str,
        file_key: str,
        file_size: int,
        share_link: str,
    ) -> Upload:
        """Create an upload record once its bytes are stored."""
        upload = Upload(
            user_id=user_id,
            filename=filename,
            file_key=file_key,
            file_size=file_size,
            share_link=share_link,
        )
        self.session.add(upload)
        await self.session.commit()
        await self.session.refresh(upload)
        return upload

    async def get_by_user_id(self, user_id: str) -> list[Upload]:
        """Get all live uploads for a user, newest first."""
        stmt = (
            select(Upload)
            .where(Upload.user_id == user_id, Upload.deleted_at.is_(None))
            .order_by(Upload.uploaded_at.desc(), Upload.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_share_link(self, share_link: str) -> Optional[Upload]:
        """Get the live upload a share link resolves to."""
        stmt = select(Upload).where(
            Upload.share_link == share_link,
            Upload.deleted_at.is_(None),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
