# job_store.py
import copy
import time, threading
from typing import Dict, Iterable, List, Optional

TERMINAL_STATUSES = ("completed", "failed")

# status only moves forward along this order
STATUS_RANK = {"pending": 0, "processing": 1, "completed": 2, "failed": 2}

class JobRecord:
    def __init__(self, scene_id: int, status: str = "pending", progress: int = 0):
        self.scene_id = scene_id
        self.status = status            # pending | processing | completed | failed
        self.progress = progress        # 0-100, only meaningful while processing
        self.video_url: Optional[str] = None
        self.error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict:
        data = {"sceneId": self.scene_id, "status": self.status, "progress": self.progress}
        if self.video_url is not None:
            data["videoUrl"] = self.video_url
        if self.error is not None:
            data["error"] = self.error
        return data

    def __repr__(self):
        return f"JobRecord(scene_id={self.scene_id!r}, status={self.status!r}, progress={self.progress!r})"

class _Session:
    def __init__(self, records: List[JobRecord]):
        self.records = records
        self.created_at = time.monotonic()

class JobStore:
    """
    Process-wide registry: session id -> ordered list of JobRecords.

    Every mutation is a partial merge on one record under a single lock, so
    workers of the same session can update their own scene concurrently.
    Reads hand back copies; callers never see a record mid-merge.
    """

    def __init__(self, session_ttl_sec: int = 0):
        self._sessions: Dict[str, _Session] = {}
        self._lock = threading.Lock()
        self.session_ttl_sec = session_ttl_sec

    def create(self, session_id: str, records: Iterable[JobRecord]):
        self.evict_expired()
        with self._lock:
            self._sessions[session_id] = _Session(list(records))

    def get(self, session_id: str) -> Optional[List[JobRecord]]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            return [copy.copy(r) for r in session.records]

    def update(self, session_id: str, scene_id: int, **kwargs):
        with self._lock:
            session = self._sessions.get(session_id)
            if not session: return
            record = next((r for r in session.records if r.scene_id == scene_id), None)
            # terminal records are frozen
            if record is None or record.is_terminal: return
            status = kwargs.get("status", record.status)
            if STATUS_RANK.get(status, -1) < STATUS_RANK.get(record.status, 0): return
            # a url belongs to a completed record, an error to a failed one
            if status != "completed": kwargs.pop("video_url", None)
            if status != "failed": kwargs.pop("error", None)
            for k, v in kwargs.items():
                if hasattr(record, k) and k != "scene_id":
                    setattr(record, k, v)

    def clear(self):
        with self._lock:
            self._sessions.clear()

    def evict_expired(self, now: Optional[float] = None) -> List[str]:
        """Drop finished sessions older than the TTL; returns the evicted ids."""
        if not self.session_ttl_sec:
            return []
        now = time.monotonic() if now is None else now
        with self._lock:
            expired = [
                sid for sid, s in self._sessions.items()
                if now - s.created_at >= self.session_ttl_sec
                and all(r.is_terminal for r in s.records)
            ]
            for sid in expired:
                del self._sessions[sid]
        return expired

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
