"""Per-session pipeline state.

A session owns the three values the page works with: the uploaded image, the
recognized text and the busy flag set while recognition runs. Sessions live
in process memory only and are never persisted.
"""
from __future__ import annotations

import base64
import logging
import time
import uuid
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field

from address_ocr.core.errors import SessionNotFoundError

logger = logging.getLogger(__name__)


def encode_data_uri(content: bytes, content_type: str) -> str:
    payload = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{payload}"


def decode_data_uri(data_uri: str) -> bytes:
    header, sep, payload = data_uri.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Not a base64 data URI")
    return base64.b64decode(payload)


@dataclass(frozen=True)
class UploadedImage:
    filename: str
    content_type: str
    data_uri: str

    def to_bytes(self) -> bytes:
        return decode_data_uri(self.data_uri)


@dataclass
class Session:
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    image: UploadedImage | None = None
    text: str | None = None
    busy: bool = False

    @property
    def has_image(self) -> bool:
        return self.image is not None

    @property
    def has_text(self) -> bool:
        return bool(self.text)


class SessionStore:
    """In-memory sessions, oldest-seen first.

    Sessions idle for longer than ``ttl`` seconds are dropped, and creating a
    session beyond ``max_sessions`` evicts the least recently seen ones. A
    session with recognition in progress is never dropped.
    """

    def __init__(
        self,
        *,
        ttl: float | None = None,
        max_sessions: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sessions: OrderedDict[uuid.UUID, Session] = OrderedDict()
        self._last_seen: dict[uuid.UUID, float] = {}
        self._ttl = ttl
        self._max_sessions = max_sessions
        self._clock = clock

    def create(self) -> Session:
        self._expire()
        session = Session()
        self._sessions[session.id] = session
        self._last_seen[session.id] = self._clock()
        self._evict_overflow()
        logger.info("session_created", extra={"session_id": str(session.id), "sessions": len(self)})
        return session

    def get(self, session_id: uuid.UUID) -> Session:
        self._expire()
        try:
            session = self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None
        self._sessions.move_to_end(session_id)
        self._last_seen[session_id] = self._clock()
        return session

    def delete(self, session_id: uuid.UUID) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(session_id)
        self._last_seen.pop(session_id, None)
        logger.info("session_deleted", extra={"session_id": str(session_id)})

    def __len__(self) -> int:
        return len(self._sessions)

    def _expire(self) -> None:
        if self._ttl is None:
            return
        cutoff = self._clock() - self._ttl
        expired = [
            sid
            for sid, session in self._sessions.items()
            if self._last_seen[sid] <= cutoff and not session.busy
        ]
        for sid in expired:
            self._drop(sid, "expired")

    def _evict_overflow(self) -> None:
        if self._max_sessions is None:
            return
        overflow = len(self._sessions) - self._max_sessions
        if overflow <= 0:
            return
        # never evict the session that was just created
        candidates = [sid for sid, session in list(self._sessions.items())[:-1] if not session.busy]
        for sid in candidates[:overflow]:
            self._drop(sid, "evicted")

    def _drop(self, session_id: uuid.UUID, reason: str) -> None:
        del self._sessions[session_id]
        del self._last_seen[session_id]
        logger.info("session_dropped", extra={"session_id": str(session_id), "reason": reason})
