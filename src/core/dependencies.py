"""Reusable FastAPI dependencies."""

from functools import lru_cache
from typing import AsyncGenerator
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from ..config import settings
from ..config.database import get_db
from ..config.redis import get_redis
from ..repositories.cache_repo import ShareCacheRepository
from ..repositories.storage_repo import StorageRepository
from ..services.chunk_assembler import ChunkAssembler
from ..services.compression_service import CompressionService
from ..services.health_service import HealthService
from ..services.share_service import ShareService
from ..services.upload_service import UploadService
from ..services.zip_service import ZipService


def build_assembler() -> ChunkAssembler:
    """Build a chunk assembler from settings."""
    return ChunkAssembler(
        max_buffered_bytes=settings.chunk_max_buffered_bytes,
        max_sessions=settings.chunk_max_sessions,
        session_ttl_seconds=settings.chunk_session_ttl_seconds,
        strict_indices=settings.chunk_strict_indices,
    )


@lru_cache
def shared_storage_repo() -> StorageRepository:
    return StorageRepository()


async def get_assembler(request: Request) -> ChunkAssembler:
    """Dependency to get the application's chunk assembler."""
    return request.app.state.assembler


async def get_storage_repo() -> AsyncGenerator[StorageRepository, None]:
    """Dependency to get storage repository."""
    yield shared_storage_repo()


async def get_cache_repo() -> AsyncGenerator[ShareCacheRepository, None]:
    """Dependency to get the share cache repository."""
    yield ShareCacheRepository(await get_redis())


async def get_upload_service(
    db: AsyncSession = Depends(get_db),
    storage_repo: StorageRepository = Depends(get_storage_repo),
    cache_repo: ShareCacheRepository = Depends(get_cache_repo),
    assembler: ChunkAssembler = Depends(get_assembler),
) -> UploadService:
    """Dependency to get upload service."""
    return UploadService(db, storage_repo=storage_repo, cache_repo=cache_repo, assembler=assembler)


async def get_share_service(
    db: AsyncSession = Depends(get_db),
    storage_repo: StorageRepository = Depends(get_storage_repo),
    cache_repo: ShareCacheRepository = Depends(get_cache_repo),
) -> ShareService:
    """Dependency to get share service."""
    return ShareService(db, storage_repo=storage_repo, cache_repo=cache_repo)


async def get_zip_service(
    upload_service: UploadService = Depends(get_upload_service),
) -> ZipService:
    """Dependency to get zip service."""
    return ZipService(upload_service)


async def get_compression_service(
    storage_repo: StorageRepository = Depends(get_storage_repo),
) -> CompressionService:
    """Dependency to get compression service."""
    return CompressionService(storage_repo=storage_repo)


async def get_health_service(
    assembler: ChunkAssembler = Depends(get_assembler),
) -> HealthService:
    """Dependency to get health service."""
    return HealthService(assembler)
