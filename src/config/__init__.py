"""Configuration: settings, database, object storage and Redis."""

from .settings import settings
from .database import AsyncSessionLocal, Base, get_db, init_db
from .storage import get_bucket_name, get_storage_client
from .redis import create_redis, get_redis

__all__ = [
    "settings",
    "AsyncSessionLocal",
    "Base",
    "get_db",
    "init_db",
    "get_bucket_name",
    "get_storage_client",
    "create_redis",
    "get_redis",
]
