# poller.py
# ------------------------------------------------------------------------------------
#  Client-side status polling for one generation session:
#  - GET /api/check-status?sessionId=...  every poll_interval_sec
#  - stops when every scene is completed|failed, or after poll_timeout_sec
#  - a failed poll is logged and skipped; the server keeps generating either way
# ------------------------------------------------------------------------------------

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, List, Optional

import httpx

from progress import all_terminal
from schemas import ProgressSnapshot, SessionStatus, VideoStatus
from settings import settings

logger = logging.getLogger(__name__)

class PollOutcome(str, Enum):
    COMPLETED = "completed"     # terminal, at least one scene completed
    FAILED = "failed"           # terminal, every scene failed
    TIMED_OUT = "timed_out"
    STOPPED = "stopped"

class PollError(Exception):
    pass

class StatusPoller:
    def __init__(
        self,
        session_id: str,
        client: httpx.AsyncClient,
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
        on_update: Optional[Callable[[SessionStatus], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session_id = session_id
        self.client = client
        self.interval = settings.poll_interval_sec if interval is None else interval
        self.timeout = settings.poll_timeout_sec if timeout is None else timeout
        self.on_update = on_update
        self._clock = clock
        self._stop = asyncio.Event()

        self.videos: List[VideoStatus] = []
        self.progress: Optional[ProgressSnapshot] = None
        self.outcome: Optional[PollOutcome] = None
        self.error: Optional[str] = None
        self.polls = 0

    async def fetch(self) -> SessionStatus:
        r = await self.client.get("/api/check-status", params={"sessionId": self.session_id})
        try:
            body = r.json()
        except ValueError as e:
            raise PollError(f"status {r.status_code}: body was not JSON") from e
        if not isinstance(body, dict) or not body.get("success"):
            error = body.get("error") if isinstance(body, dict) else None
            raise PollError(error or f"status {r.status_code}")
        if not isinstance(body.get("data"), dict):
            raise PollError(f"status {r.status_code}: envelope has no data")
        return SessionStatus.model_validate(body["data"])

    async def poll_once(self) -> bool:
        """One poll. Returns True when the session reached a terminal state."""
        self.polls += 1
        try:
            status = await self.fetch()
        except (httpx.HTTPError, PollError, ValueError) as e:
            logger.warning("Status polling error for %s: %s", self.session_id, e)
            return False

        self.videos = status.videos
        self.progress = status.progress
        if self.on_update:
            self.on_update(status)

        if not all_terminal(status.videos):
            return False
        if any(v.status == "completed" for v in status.videos):
            self.outcome = PollOutcome.COMPLETED
        else:
            self.outcome = PollOutcome.FAILED
            self.error = "All video generations failed"
        return True

    async def run(self) -> PollOutcome:
        """
        Poll until terminal, stopped, or the hard deadline passes.

        Polls never overlap: the interval sleep starts after the previous
        response has been handled. A poll still in flight at the deadline is
        abandoned.
        """
        deadline = self._clock() + self.timeout
        while not self._stop.is_set():
            remaining = deadline - self._clock()
            if remaining <= 0:
                return self._timed_out()
            try:
                done = await asyncio.wait_for(self.poll_once(), timeout=remaining)
            except asyncio.TimeoutError:
                return self._timed_out()
            if done:
                return self.outcome
            pause = min(self.interval, max(deadline - self._clock(), 0))
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=pause)
            except asyncio.TimeoutError:
                pass
        self.outcome = PollOutcome.STOPPED
        return self.outcome

    def _timed_out(self) -> PollOutcome:
        logger.warning("Stopped polling %s after %.0fs", self.session_id, self.timeout)
        self.outcome = PollOutcome.TIMED_OUT
        return self.outcome

    def stop(self):
        """Stop observing. Generation on the server is not affected."""
        self._stop.set()
