"""
In-memory Progress Ledger for upload sessions.
Holds recent upload workflow state for polling clients; entries expire after a TTL.
"""
import copy
import math
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional
from src.core import config
from src.core.exceptions import DuplicateSessionError
from src.core.logger import get_logger
from src.models.upload_session import UploadSession, UploadSessionStatus, UploadStage

logger = get_logger(__name__)

DEFAULT_LOCK_STRIPES = 64


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compute_eta(created_at: datetime, now: datetime, progress_percent: int) -> Optional[int]:
    """
    Linear extrapolation of the remaining seconds.

    Returns None while nothing has progressed and 0 once the upload reaches 100%.
    """
    if progress_percent >= 100:
        return 0
    if progress_percent <= 0:
        return None

    elapsed_ms = max(0.0, (now - created_at).total_seconds() * 1000)
    estimated_total_ms = elapsed_ms / progress_percent * 100
    remaining_ms = max(0.0, estimated_total_ms - elapsed_ms)
    return math.ceil(remaining_ms / 1000)


class ProgressLedger:
    """
    Thread-safe store of UploadSession objects keyed by upload id.

    Operations on one upload id are serialized by a lock stripe chosen from
    the id's hash, so unrelated uploads do not contend on a single lock.
    Expiry is checked lazily on every access; sweep() evicts proactively.
    """

    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
        lock_stripes: int = DEFAULT_LOCK_STRIPES
    ):
        ttl = ttl_seconds if ttl_seconds is not None else config.settings.upload_status_ttl_seconds
        self.ttl = timedelta(seconds=ttl)
        self._clock = clock
        self._sessions: Dict[str, UploadSession] = {}
        self._locks: List[threading.Lock] = [threading.Lock() for _ in range(max(1, lock_stripes))]

    def create(self, upload_id: str, owner_id: Optional[str], declared_bytes: int = 0) -> UploadSession:
        """
        Start a new PROCESSING session.

        Raises:
            DuplicateSessionError: If an unexpired session already exists for the id
        """
        with self._lock_for(upload_id):
            now = self._clock()
            if self._live(upload_id, now) is not None:
                raise DuplicateSessionError(f"Upload '{upload_id}' is already in progress.")

            session = UploadSession(
                upload_id=upload_id,
                owner_id=owner_id,
                created_at=now,
                expires_at=now + self.ttl,
                file_bytes=declared_bytes
            )
            self._sessions[upload_id] = session
            return copy.deepcopy(session)

    def advance(
        self,
        upload_id: str,
        percent: int,
        stage: str,
        message: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None
    ) -> None:
        """Publish a progress checkpoint. No-op for absent, expired or finished sessions."""
        with self._lock_for(upload_id):
            now = self._clock()
            session = self._live(upload_id, now)
            if session is None or session.is_terminal:
                return

            # Progress never moves backwards while processing
            next_percent = max(session.progress_percent, max(0, min(100, int(percent))))

            session.progress_percent = next_percent
            session.stage = stage or session.stage
            session.message = message or session.message
            if extra:
                session.extra.update(extra)
            session.estimated_seconds_left = compute_eta(session.created_at, now, next_percent)
            self._touch(session, now)

    def complete(self, upload_id: str, result: Dict[str, Any]) -> None:
        """Mark a session COMPLETED with its result payload."""
        with self._lock_for(upload_id):
            now = self._clock()
            session = self._live(upload_id, now)
            if session is None:
                return
            if session.is_terminal:
                logger.warning(f"Ignoring completion of already finished upload {upload_id} ({session.status.value})")
                return

            session.status = UploadSessionStatus.COMPLETED
            session.stage = UploadStage.COMPLETED.value
            session.progress_percent = 100
            session.message = "Upload completed."
            session.estimated_seconds_left = 0
            session.result = result
            session.error = None
            self._touch(session, now)

    def fail(self, upload_id: str, message: Optional[str] = None, error: Optional[str] = None) -> None:
        """Mark a session FAILED."""
        with self._lock_for(upload_id):
            now = self._clock()
            session = self._live(upload_id, now)
            if session is None:
                return
            if session.is_terminal:
                logger.warning(f"Ignoring failure of already finished upload {upload_id} ({session.status.value})")
                return

            session.status = UploadSessionStatus.FAILED
            session.stage = UploadStage.FAILED.value
            session.message = message or "Upload failed."
            session.error = error
            self._touch(session, now)

    def get(self, upload_id: str) -> Optional[UploadSession]:
        """Return a snapshot of the session, or None if absent or expired."""
        with self._lock_for(upload_id):
            session = self._live(upload_id, self._clock())
            return copy.deepcopy(session) if session else None

    def sweep(self) -> int:
        """
        Evict every expired session.

        Returns:
            Number of sessions evicted
        """
        evicted = 0
        for upload_id in list(self._sessions.keys()):
            with self._lock_for(upload_id):
                session = self._sessions.get(upload_id)
                if session is not None and session.is_expired(self._clock()):
                    del self._sessions[upload_id]
                    evicted += 1
        if evicted:
            logger.debug(f"Evicted {evicted} expired upload session(s)")
        return evicted

    def __len__(self) -> int:
        return len(self._sessions)

    def _lock_for(self, upload_id: str) -> threading.Lock:
        return self._locks[hash(upload_id) % len(self._locks)]

    def _live(self, upload_id: str, now: datetime) -> Optional[UploadSession]:
        """Caller must hold the id's lock stripe."""
        session = self._sessions.get(upload_id)
        if session is None:
            return None
        if session.is_expired(now):
            del self._sessions[upload_id]
            return None
        return session

    def _touch(self, session: UploadSession, now: datetime) -> None:
        session.updated_at = now
        session.expires_at = now + self.ttl
