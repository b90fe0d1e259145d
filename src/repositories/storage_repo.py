"""Storage repository for S3-compatible object storage operations."""

import asyncio
import time
from functools import partial
from typing import Any, Callable, Iterator, Optional
from botocore.client import BaseClient
from botocore.exceptions import ClientError
from ..config import settings
from ..config.storage import get_storage_client, get_bucket_name
from ..utils.exceptions import StorageTimeoutError
from ..utils.logger import get_logger

logger = get_logger(__name__)

STREAM_CHUNK_SIZE = 64 * 1024


class StorageRepository:
    """Repository for object storage operations."""

    def __init__(self, timeout: Optional[float] = None):
        self.client: Optional[BaseClient] = None
        self.bucket_name: Optional[str] = None
        self.timeout = timeout if timeout is not None else settings.storage_timeout_seconds

    async def _get_client(self) -> BaseClient:
        """Get or create storage client."""
        if self.client is None:
            self.client = get_storage_client()
            self.bucket_name = get_bucket_name()
        return self.client

    async def _run(self, func: Callable[..., Any], *args, **kwargs) -> Any:
        """Run a blocking boto3 call in the default executor with a bounded timeout."""
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, partial(func, *args, **kwargs)),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise StorageTimeoutError(
                f"Storage call timed out after {self.timeout:.0f}s"
            ) from e

    async def check_connectivity(self) -> bool:
        """Check that the bucket is reachable with the configured credentials."""
        client = await self._get_client()
        try:
            await self._run(client.head_bucket, Bucket=self.bucket_name)
            return True
        except (ClientError, StorageTimeoutError) as e:
            logger.warning(
                "Failed to access bucket - may not exist or credentials incorrect",
                bucket=self.bucket_name,
                error=str(e),
            )
            return False

    async def put_object(
        self, key: str, file_content: bytes, content_type: str = "application/octet-stream"
    ) -> str:
        """
        Upload bytes to storage.
        Args:
            key: Storage key (path)
            file_content: File content as bytes
            content_type: MIME type
        Returns:
            Storage key
        """
        client = await self._get_client()
        started = time.perf_counter()
        await self._run(
            client.put_object,
            Bucket=self.bucket_name,
            Key=key,
            Body=file_content,
            ContentLength=len(file_content),
            ContentType=content_type,
        )
        logger.info(
            "Object stored",
            key=key,
            bucket=self.bucket_name,
            file_size=len(file_content),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return key

    async def file_exists(self, key: str) -> bool:
        """Check if file exists in storage."""
        client = await self._get_client()
        try:
            await self._run(client.head_object, Bucket=self.bucket_name, Key=key)
            return True
        except ClientError:
            return False

    async def resolve_key(self, filename: str) -> str:
        """
        Pick the object key for a new file.
        The filename is used as-is unless an object already exists under it,
        in which case the key is prefixed with the current Unix timestamp.
        The check and the later write are not atomic.
        """
        if await self.file_exists(filename):
            key = f"{int(time.time())}_{filename}"
            logger.info(
                "File already exists, using new key",
                original_filename=filename,
                new_object_key=key,
            )
            return key
        return filename

    async def get_object_stream(self, key: str) -> Any:
        """Open a streaming body for an object."""
        client = await self._get_client()
        logger.debug("Retrieving file stream", file_key=key, bucket=self.bucket_name)
        response = await self._run(client.get_object, Bucket=self.bucket_name, Key=key)
        return response["Body"]

    async def get_object_bytes(self, key: str) -> bytes:
        """Read a whole object into memory."""
        body = await self.get_object_stream(key)
        try:
            return await self._run(body.read)
        finally:
            body.close()

    async def delete_object(self, key: str) -> bool:
        """Delete an object, returning False if storage refused."""
        client = await self._get_client()
        try:
            await self._run(client.delete_object, Bucket=self.bucket_name, Key=key)
            return True
        except ClientError:
            return False

    @staticmethod
    def iter_body(body: Any, chunk_size: int = STREAM_CHUNK_SIZE) -> Iterator[bytes]:
        """Yield an object body in chunks and close it when done."""
        try:
            for chunk in body.iter_chunks(chunk_size=chunk_size):
                yield chunk
        finally:
            body.close()
