"""Check that the configured S3-compatible bucket is reachable."""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.config import settings
from src.repositories.storage_repo import StorageRepository


async def check_storage() -> bool:
    print("--- Checking storage ---")
    print(f"Endpoint: {settings.s3_storage_endpoint or 'AWS S3'}")
    print(f"Bucket: {settings.s3_bucket_name}")
    print(f"Timeout: {settings.storage_timeout_seconds}s")

    reachable = await StorageRepository().check_connectivity()
    print("Bucket reachable" if reachable else "Bucket not reachable - check endpoint, bucket name and credentials")
    return reachable


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(check_storage()) else 1)
