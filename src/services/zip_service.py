"""Zip service: bundle uploaded files into a shareable archive."""

import io
import time
import zipfile
from typing import List, Tuple
from fastapi import UploadFile, HTTPException, status
from ..schemas.upload import ZipResponse
from ..services.upload_service import UploadService
from ..utils.logger import get_logger

logger = get_logger(__name__)


def build_zip(entries: List[Tuple[str, bytes]]) -> bytes:
    """Build a deflated zip archive in memory, one entry per (name, content) pair."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries:
            archive.writestr(name, content)
    return buffer.getvalue()


class ZipService:
    """Service for creating zip archives from uploads."""

    def __init__(self, upload_service: UploadService):
        self.upload_service = upload_service

    async def create_zip(self, user_id: str, files: List[UploadFile]) -> ZipResponse:
        """Zip the files, store the archive as archive_<unix>.zip and share it."""
        started = time.perf_counter()
        logger.info("Creating zip archive", user_id=user_id, file_count=len(files))

        try:
            entries = []
            for file in files:
                entries.append((file.filename, await file.read()))
                await file.close()
            archive = build_zip(entries)
        except (OSError, zipfile.BadZipFile, ValueError) as e:
            logger.error("Failed to create zip archive", user_id=user_id, error=str(e))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error creating zip archive",
            )

        logger.info(
            "Zip archive created successfully",
            output_size=len(archive),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

        zip_filename = f"archive_{int(time.time())}.zip"
        try:
            upload = await self.upload_service.store_file(
                user_id, zip_filename, archive, "application/zip"
            )
        except Exception as e:
            logger.error("Error uploading zip", user_id=user_id, filename=zip_filename, error=str(e))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error uploading zip file",
            )

        return ZipResponse(
            message=f"Zip {upload.filename} created successfully! ({len(files)} files)",
            file_count=len(files),
            archive=UploadService.to_stored_file(upload),
        )
