"""In-memory reassembly of chunked uploads."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional
from ..utils.exceptions import (
    ChunkAssemblyError,
    ChunkIndexError,
    ChunkTooLargeError,
    ChunkTotalMismatchError,
    InvalidChunkError,
    UploadCapacityError,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class UploadSession:
    """Accumulating state for one logical chunked upload."""

    upload_id: str
    user_id: str
    filename: str
    total_chunks: int
    created_at: float
    last_activity: float
    chunks: Dict[int, bytes] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    # Set once the session has left the registry; late arrivals must not touch it
    closed: bool = False

    @property
    def received_count(self) -> int:
        return len(self.chunks)

    @property
    def buffered_bytes(self) -> int:
        return sum(len(c) for c in self.chunks.values())

    @property
    def is_complete(self) -> bool:
        return self.received_count == self.total_chunks

    def assemble(self) -> bytes:
        """Concatenate present chunks in ascending index order."""
        return b"".join(self.chunks[i] for i in sorted(self.chunks))


@dataclass(frozen=True)
class ChunkResult:
    """Outcome of a single chunk submission."""

    upload_id: str
    user_id: str
    filename: str
    completed: bool
    received: int
    total: int
    payload: Optional[bytes] = None


class ChunkAssembler:
    """
    Registry of in-flight chunked uploads.

    The registry lock guards insert, lookup and removal of sessions. Each
    session's own lock guards its chunk map, the completion check and the
    decision to remove it, so exactly one submission observes completion.
    Locks are taken session first, then registry; the registry lock is never
    held while waiting for a session lock.
    """

    def __init__(
        self,
        max_buffered_bytes: int = 1024 * 1024 * 1024,
        max_sessions: int = 1000,
        session_ttl_seconds: float = 3600,
        strict_indices: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_buffered_bytes = max_buffered_bytes
        self.max_sessions = max_sessions
        self.session_ttl_seconds = session_ttl_seconds
        self.strict_indices = strict_indices
        self._clock = clock
        self._sessions: Dict[str, UploadSession] = {}
        self._registry_lock = asyncio.Lock()
        self._buffered_bytes = 0
        self._sweeper: Optional[asyncio.Task] = None

    def __contains__(self, upload_id: str) -> bool:
        return upload_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def buffered_bytes(self) -> int:
        return self._buffered_bytes

    def stats(self) -> dict:
        """Counters exposed on the health endpoint."""
        return {
            "active_sessions": len(self._sessions),
            "buffered_bytes": self._buffered_bytes,
        }

    async def submit_chunk(
        self,
        upload_id: str,
        user_id: str,
        filename: str,
        index: int,
        total: int,
        payload: bytes,
    ) -> ChunkResult:
        """
        Store one chunk and report whether it completed its upload.

        The first chunk seen for an upload id creates the session with the
        given user, filename and total. Re-delivering an index replaces the
        earlier payload. When the received count reaches the declared total
        the session is removed from the registry and the assembled bytes are
        returned; a later chunk with the same id starts a new session.
        """
        self._validate(upload_id, filename, index, total, payload)

        while True:
            session = await self._get_or_create(upload_id, user_id, filename, total)

            async with session.lock:
                if session.closed:
                    # Completed or evicted while we waited for the lock
                    continue

                try:
                    self._check_index(session, index, total)
                    self._store(session, index, payload)
                except ChunkAssemblyError:
                    if session.received_count == 0:
                        # Do not leave behind a session this call created
                        await self._close(session)
                    raise

                if not session.is_complete:
                    logger.debug(
                        "Chunk buffered",
                        upload_id=upload_id,
                        index=index,
                        received=session.received_count,
                        total=session.total_chunks,
                    )
                    return ChunkResult(
                        upload_id=upload_id,
                        user_id=session.user_id,
                        filename=session.filename,
                        completed=False,
                        received=session.received_count,
                        total=session.total_chunks,
                    )

                await self._close(session)

            return self._finish(session)

    def _validate(self, upload_id: str, filename: str, index: int, total: int, payload: bytes) -> None:
        if not upload_id:
            raise InvalidChunkError("upload_id is required")
        if not filename:
            raise InvalidChunkError("filename is required")
        if index < 0:
            raise InvalidChunkError("index must be zero or greater")
        if total < 1:
            raise InvalidChunkError("total must be at least 1")
        if self.strict_indices and index >= total:
            raise ChunkIndexError(f"index {index} out of range for {total} chunks")
        if payload is None:
            raise InvalidChunkError("chunk payload is required")
        if len(payload) > self.max_buffered_bytes:
            raise ChunkTooLargeError(
                f"chunk of {len(payload)} bytes exceeds the {self.max_buffered_bytes} byte chunk buffer"
            )

    async def _get_or_create(
        self, upload_id: str, user_id: str, filename: str, total: int
    ) -> UploadSession:
        async with self._registry_lock:
            session = self._sessions.get(upload_id)
            if session is not None:
                return session

            if len(self._sessions) >= self.max_sessions:
                raise UploadCapacityError(
                    f"Too many uploads in progress (limit {self.max_sessions})"
                )

            now = self._clock()
            session = UploadSession(
                upload_id=upload_id,
                user_id=user_id,
                filename=filename,
                total_chunks=total,
                created_at=now,
                last_activity=now,
            )
            self._sessions[upload_id] = session
            logger.info(
                "Chunked upload started",
                upload_id=upload_id,
                user_id=user_id,
                filename=filename,
                total=total,
            )
            return session

    def _check_index(self, session: UploadSession, index: int, total: int) -> None:
        if not self.strict_indices:
            return
        if total != session.total_chunks:
            raise ChunkTotalMismatchError(
                f"total {total} does not match {session.total_chunks} declared for upload {session.upload_id}"
            )
        if index >= session.total_chunks:
            raise ChunkIndexError(
                f"index {index} out of range for {session.total_chunks} chunks"
            )

    def _store(self, session: UploadSession, index: int, payload: bytes) -> None:
        previous = session.chunks.get(index)
        delta = len(payload) - (len(previous) if previous is not None else 0)
        if delta > 0 and self._buffered_bytes + delta > self.max_buffered_bytes:
            raise UploadCapacityError(
                f"Chunk buffer is full ({self._buffered_bytes} of {self.max_buffered_bytes} bytes in use)"
            )
        session.chunks[index] = payload
        session.last_activity = self._clock()
        self._buffered_bytes += delta

    async def _close(self, session: UploadSession) -> None:
        """Mark a session finished and drop it from the registry. Caller holds session.lock."""
        session.closed = True
        async with self._registry_lock:
            if self._sessions.get(session.upload_id) is session:
                del self._sessions[session.upload_id]

    def _finish(self, session: UploadSession) -> ChunkResult:
        payload = session.assemble()
        self._buffered_bytes -= session.buffered_bytes
        received = session.received_count
        session.chunks.clear()

        logger.info(
            "Chunked upload assembled",
            upload_id=session.upload_id,
            user_id=session.user_id,
            filename=session.filename,
            chunks=received,
            file_size=len(payload),
        )
        return ChunkResult(
            upload_id=session.upload_id,
            user_id=session.user_id,
            filename=session.filename,
            completed=True,
            received=received,
            total=session.total_chunks,
            payload=payload,
        )

    async def sweep_expired(self) -> List[str]:
        """
        Evict sessions idle for longer than the session TTL.
        Sessions whose lock is currently held are skipped; they are active.
        """
        cutoff = self._clock() - self.session_ttl_seconds
        evicted: List[str] = []

        async with self._registry_lock:
            for upload_id, session in list(self._sessions.items()):
                if session.last_activity > cutoff or session.lock.locked():
                    continue
                session.closed = True
                del self._sessions[upload_id]
                self._buffered_bytes -= session.buffered_bytes
                session.chunks.clear()
                evicted.append(upload_id)

        if evicted:
            logger.warning("Evicted idle chunked uploads", count=len(evicted), upload_ids=evicted)
        return evicted

    async def _sweep_forever(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.sweep_expired()
            except Exception as e:
                logger.error("Chunk session sweep failed", error=str(e))

    def start_sweeper(self, interval: float) -> None:
        """Start the periodic eviction task on the running loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_forever(interval))

    async def stop_sweeper(self) -> None:
        """Cancel the eviction task and wait for it to exit."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def clear(self) -> None:
        """Drop every in-flight session."""
        async with self._registry_lock:
            for session in self._sessions.values():
                session.closed = True
                session.chunks.clear()
            self._sessions.clear()
            self._buffered_bytes = 0
