"""Media compression Celery tasks."""

import asyncio
from ..config.redis import create_redis
from ..config.database import AsyncSessionLocal
from ..repositories.cache_repo import ShareCacheRepository
from ..repositories.storage_repo import StorageRepository
from ..services.compression_service import compress_image, compress_video
from ..services.upload_service import UploadService
from ..tasks.celery_app import celery_app
from ..utils.constants import CompressionQuality, MediaKind
from ..utils.exceptions import StorageTimeoutError
from ..utils.helpers import get_compressed_filename
from ..utils.logger import get_logger

logger = get_logger(__name__)


async def run_compression(
    user_id: str, staging_key: str, filename: str, kind: str, quality: str
) -> dict:
    """Compress a staged file, store and share the result, then drop the staged copy."""
    storage_repo = StorageRepository()
    media_kind = MediaKind(kind)
    level = CompressionQuality.parse(quality)

    content = await storage_repo.get_object_bytes(staging_key)

    loop = asyncio.get_running_loop()
    if media_kind is MediaKind.VIDEO:
        compressed = await loop.run_in_executor(None, compress_video, content, filename, level)
        content_type = "video/mp4"
    else:
        compressed = await loop.run_in_executor(None, compress_image, content, filename, level)
        content_type = "image/jpeg"

    compressed_name = get_compressed_filename(filename, media_kind is MediaKind.VIDEO)

    redis_client = create_redis()
    try:
        async with AsyncSessionLocal() as session:
            upload_service = UploadService(
                session,
                storage_repo=storage_repo,
                cache_repo=ShareCacheRepository(redis_client),
            )
            upload = await upload_service.store_file(user_id, compressed_name, compressed, content_type)
    finally:
        await redis_client.aclose()

    # The result is stored; a failed cleanup must not trigger a retry
    try:
        deleted = await storage_repo.delete_object(staging_key)
    except StorageTimeoutError as e:
        logger.warning("Timed out deleting staged original", staging_key=staging_key, error=str(e))
        deleted = False
    if not deleted:
        logger.warning("Staged original left in storage", staging_key=staging_key)

    return {
        "status": "completed",
        "filename": upload.filename,
        "share_link": upload.share_link,
        "original_size": len(content),
        "compressed_size": len(compressed),
    }


@celery_app.task(name="compress_media", bind=True, max_retries=3)
def compress_media(
    self, user_id: str, staging_key: str, filename: str, kind: str, quality: str
) -> dict:
    """
    Compress an uploaded image or video.
    This is a Celery task that runs asynchronously.
    """
    # Run async code in sync context
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    try:
        return loop.run_until_complete(
            run_compression(user_id, staging_key, filename, kind, quality)
        )
    except Exception as exc:
        logger.error(
            "Media compression failed",
            filename=filename,
            staging_key=staging_key,
            attempt=self.request.retries + 1,
            error=str(exc),
        )
        # Retry task
        raise self.retry(exc=exc, countdown=60)
    finally:
        loop.close()
