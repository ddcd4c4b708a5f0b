"""In-memory reassembly of chunked uploads.

Sessions are keyed by the client's session id and live only in this process.
Expired sessions are purged on every access; completed sessions are removed
as soon as they are reassembled.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from beacon.config import settings
from beacon.errors import ChunkSessionMismatch, InvalidUpload, OversizedUpload

logger = logging.getLogger(__name__)


@dataclass
class ChunkSession:
    filename: str
    total_chunks: int
    extraction_mode: str = "ai"
    num_slides: Optional[int] = None
    created_at: float = 0.0
    chunks: dict[int, bytes] = field(default_factory=dict)

    @property
    def received_chunks(self) -> int:
        return len(self.chunks)

    @property
    def size(self) -> int:
        return sum(len(c) for c in self.chunks.values())

    @property
    def complete(self) -> bool:
        return self.received_chunks == self.total_chunks


@dataclass
class AddResult:
    session: ChunkSession
    payload: Optional[bytes] = None  # reassembled file once every chunk arrived


class ChunkStore:
    def __init__(
        self,
        ttl: Optional[float] = None,
        max_bytes: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = settings.chunk_session_ttl if ttl is None else ttl
        self.max_bytes = max_bytes or settings.max_upload_bytes
        self.clock = clock
        self._sessions: dict[str, ChunkSession] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def purge_expired(self) -> int:
        now = self.clock()
        expired = [sid for sid, s in self._sessions.items() if now - s.created_at > self.ttl]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info(f"Cleaned up {len(expired)} expired chunk session(s)")
        return len(expired)

    async def add_chunk(
        self,
        session_id: str,
        chunk_index: int,
        total_chunks: int,
        filename: str,
        data: bytes,
        extraction_mode: str = "ai",
        num_slides: Optional[int] = None,
    ) -> AddResult:
        if total_chunks < 1 or not 0 <= chunk_index < total_chunks:
            raise InvalidUpload(f"Chunk index {chunk_index} out of range for {total_chunks} chunk(s)")

        async with self._lock:
            self.purge_expired()

            session = self._sessions.get(session_id)
            if session is None:
                session = ChunkSession(
                    filename=filename,
                    total_chunks=total_chunks,
                    extraction_mode=extraction_mode,
                    num_slides=num_slides,
                    created_at=self.clock(),
                )
                self._sessions[session_id] = session

            if session.total_chunks != total_chunks or session.filename != filename:
                raise ChunkSessionMismatch("Session mismatch. Please restart the upload.")

            session.chunks[chunk_index] = data
            if session.size > self.max_bytes:
                del self._sessions[session_id]
                raise OversizedUpload(
                    f"File size exceeds {self.max_bytes // (1024 * 1024)}MB limit. Please upload a smaller file."
                )

            if not session.complete:
                return AddResult(session=session)

            del self._sessions[session_id]

        payload = b"".join(session.chunks[i] for i in range(session.total_chunks))
        if not payload:
            raise InvalidUpload("Reassembled file is empty. Please try uploading again.")

        logger.info(f"Reassembled '{filename}': {len(payload)} bytes from {session.total_chunks} chunk(s)")
        return AddResult(session=session, payload=payload)


chunk_store = ChunkStore()
