"""Storage configuration for S3-compatible object stores."""

import boto3
from botocore.client import BaseClient
from botocore.config import Config
from .settings import settings


def get_storage_client() -> BaseClient:
    """
    Get storage client for the configured S3-compatible endpoint.
    An empty endpoint means AWS S3 itself; any other endpoint
    (MinIO, Supabase, Wasabi...) is addressed path-style.
    """
    timeout = settings.storage_timeout_seconds
    config = Config(
        signature_version="s3v4",
        connect_timeout=timeout,
        read_timeout=timeout,
        retries={"max_attempts": 2},
        s3={"addressing_style": "path"} if settings.s3_storage_endpoint else None,
    )

    return boto3.client(
        "s3",
        aws_access_key_id=settings.s3_access_key or None,
        aws_secret_access_key=settings.s3_secret_key or None,
        region_name=settings.s3_region,
        endpoint_url=settings.s3_storage_endpoint or None,
        config=config,
    )


def get_bucket_name() -> str:
    """Get bucket name for the configured storage."""
    return settings.s3_bucket_name
