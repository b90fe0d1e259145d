"""Compression service for reducing image and video sizes."""

import io
import subprocess
import time
from pathlib import PurePosixPath
from typing import List, Optional
from fastapi import UploadFile, HTTPException, status
from PIL import Image
from ..config import settings
from ..repositories.queue_repo import QueueRepository
from ..repositories.storage_repo import StorageRepository
from ..schemas.upload import CompressionResponse, QueuedCompression
from ..utils.constants import (
    IMAGE_MAX_DIMENSION,
    JPEG_QUALITY,
    PNG_JPEG_QUALITY,
    VIDEO_CRF,
    VIDEO_FORMATS,
    CompressionQuality,
    MediaKind,
)
from ..utils.helpers import generate_staging_key
from ..utils.logger import get_logger

logger = get_logger(__name__)


def classify_media(content_type: Optional[str]) -> Optional[MediaKind]:
    """Return the media kind of a MIME type, or None if it is neither image nor video."""
    if not content_type:
        return None
    if content_type.startswith("video/"):
        return MediaKind.VIDEO
    if content_type.startswith("image/"):
        return MediaKind.IMAGE
    return None


def get_video_format(filename: str) -> str:
    """ffmpeg input format for a filename, defaulting to mp4."""
    return VIDEO_FORMATS.get(PurePosixPath(filename).suffix.lower(), "mp4")


def compress_image(content: bytes, filename: str, quality: CompressionQuality) -> bytes:
    """
    Shrink an image to fit the quality's maximum dimension and re-encode it as JPEG.
    PNG sources get a lower JPEG quality than sources that were already lossy.
    """
    started = time.perf_counter()
    with Image.open(io.BytesIO(content)) as img:
        img.load()
        logger.debug("Image dimensions decoded", filename=filename, dimensions=f"{img.width}x{img.height}")

        max_dimension = IMAGE_MAX_DIMENSION[quality]
        if img.width > max_dimension or img.height > max_dimension:
            img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)

        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")

        if PurePosixPath(filename).suffix.lower() == ".png":
            jpeg_quality = PNG_JPEG_QUALITY[quality]
        else:
            jpeg_quality = JPEG_QUALITY[quality]

        output = io.BytesIO()
        img.save(output, format="JPEG", quality=jpeg_quality, optimize=True)

    compressed = output.getvalue()
    logger.info(
        "Image compression completed successfully",
        filename=filename,
        original_size=len(content),
        compressed_size=len(compressed),
        reduction_percent=round((len(content) - len(compressed)) / max(len(content), 1) * 100, 2),
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    return compressed


def build_ffmpeg_command(filename: str, quality: CompressionQuality) -> List[str]:
    """ffmpeg arguments that read from stdin and write an H.264 mp4 to stdout."""
    return [
        settings.ffmpeg_path,
        "-f", get_video_format(filename),
        "-i", "pipe:0",
        "-c:v", "libx264",
        "-crf", VIDEO_CRF[quality],
        "-preset", "medium",
        "-c:a", "aac",
        "-b:a", "128k",
        # faststart needs a seekable output; fragment instead when piping
        "-movflags", "+faststart+frag_keyframe+empty_moov",
        "-f", "mp4",
        "pipe:1",
    ]


def compress_video(content: bytes, filename: str, quality: CompressionQuality) -> bytes:
    """Re-encode a video with ffmpeg at the quality's constant rate factor."""
    started = time.perf_counter()
    command = build_ffmpeg_command(filename, quality)
    logger.debug("Executing FFmpeg command", filename=filename, crf=VIDEO_CRF[quality])

    completed = subprocess.run(command, input=content, capture_output=True, check=False)
    if completed.returncode != 0:
        stderr = completed.stderr.decode("utf-8", errors="replace")[-2000:]
        logger.error("Failed to compress video", filename=filename, stderr=stderr)
        raise RuntimeError(f"ffmpeg exited with status {completed.returncode}")

    compressed = completed.stdout
    logger.info(
        "Video compression completed successfully",
        filename=filename,
        original_size=len(content),
        compressed_size=len(compressed),
        reduction_percent=round((len(content) - len(compressed)) / max(len(content), 1) * 100, 2),
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    return compressed


class CompressionService:
    """Service that stages media and queues compression jobs."""

    def __init__(
        self,
        storage_repo: Optional[StorageRepository] = None,
        queue_repo: Optional[QueueRepository] = None,
    ):
        self.storage_repo = storage_repo or StorageRepository()
        self.queue_repo = queue_repo or QueueRepository()

    async def submit(
        self, user_id: str, files: List[UploadFile], quality: CompressionQuality
    ) -> CompressionResponse:
        """
        Stage every image or video in storage and enqueue its compression.
        Other file types are ignored.
        """
        media = [(f, classify_media(f.content_type)) for f in files]
        media = [(f, kind) for f, kind in media if kind is not None]
        if not media:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No valid image or video files selected",
            )

        videos = sum(1 for _, kind in media if kind is MediaKind.VIDEO)
        images = len(media) - videos
        logger.info("Received media for compression", user_id=user_id, videos=videos, images=images)

        jobs: List[QueuedCompression] = []
        for file, kind in media:
            content = await file.read()
            await file.close()
            staging_key = generate_staging_key(file.filename)
            try:
                await self.storage_repo.put_object(
                    staging_key, content, file.content_type or "application/octet-stream"
                )
                task = self.queue_repo.enqueue_compression(
                    user_id=user_id,
                    staging_key=staging_key,
                    filename=file.filename,
                    kind=kind.value,
                    quality=quality.value,
                )
            except Exception as e:
                logger.error("Failed to queue compression", filename=file.filename, error=str(e))
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=f"Failed to queue compression for {file.filename}",
                )
            jobs.append(QueuedCompression(filename=file.filename, kind=kind.value, task_id=task["task_id"]))

        return CompressionResponse(
            message=f"Received {videos} videos and {images} images for compression",
            quality=quality.value,
            images=images,
            videos=videos,
            jobs=jobs,
        )
