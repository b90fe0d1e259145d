"""Pytest configuration and fixtures."""

import io
import pytest
from typing import AsyncGenerator, Dict, Optional
from botocore.exceptions import ClientError
from botocore.response import StreamingBody
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from src.main import app
from src.config.database import Base, get_db
from src.core.dependencies import get_cache_repo, get_health_service, get_storage_repo
from src.middleware.rate_limit import limiter
from src.models import upload  # noqa: F401
from src.repositories.cache_repo import ShareCacheRepository
from src.repositories.storage_repo import StorageRepository
from src.services.chunk_assembler import ChunkAssembler
from src.services.health_service import HealthService


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Create test engine
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionLocal = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


class InMemoryStorage(StorageRepository):
    """Object storage double that keeps objects in a dict."""

    def __init__(self):
        super().__init__(timeout=5)
        self.bucket_name = "test-bucket"
        self.objects: Dict[str, bytes] = {}

    async def put_object(self, key, file_content, content_type="application/octet-stream"):
        self.objects[key] = bytes(file_content)
        return key

    async def file_exists(self, key):
        return key in self.objects

    async def get_object_stream(self, key):
        if key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "Not Found"}}, "GetObject")
        data = self.objects[key]
        return StreamingBody(io.BytesIO(data), len(data))

    async def delete_object(self, key):
        return self.objects.pop(key, None) is not None

    async def check_connectivity(self):
        return True


class FakeRedis:
    """The subset of redis.asyncio.Redis used by the share cache."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, Optional[int]] = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, key):
        self.ttls.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache_repo(fake_redis: FakeRedis) -> ShareCacheRepository:
    return ShareCacheRepository(fake_redis, ttl_seconds=172800)


@pytest.fixture
def assembler() -> ChunkAssembler:
    return ChunkAssembler(max_buffered_bytes=16 * 1024 * 1024, max_sessions=100)


@pytest.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    storage: InMemoryStorage,
    cache_repo: ShareCacheRepository,
    assembler: ChunkAssembler,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    async def override_get_db():
        yield db_session

    async def override_get_storage_repo():
        yield storage

    async def override_get_cache_repo():
        yield cache_repo

    def override_get_health_service():
        return HealthService(assembler, cpu_interval=None)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_repo] = override_get_storage_repo
    app.dependency_overrides[get_cache_repo] = override_get_cache_repo
    app.dependency_overrides[get_health_service] = override_get_health_service

    previous_assembler = app.state.assembler
    app.state.assembler = assembler
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    limiter.enabled = True
    app.state.assembler = previous_assembler
    app.dependency_overrides.clear()
