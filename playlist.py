"""
Sequential playback of completed scene videos as one continuous episode.

The player drives a single MediaSink (a video element, a desktop player, a
test double). When the sink reports that the current clip ended naturally the
player loads and plays the next one; running off the end of the list fires
the playlist-end observer once and rewinds to the first scene.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Awaitable, Callable, Iterable, List, Optional

from job_store import JobRecord
from schemas import VideoStatus

logger = logging.getLogger(__name__)

SceneChangeFn = Callable[[int, VideoStatus], None]
PlaylistEndFn = Callable[[], None]


class PlayerState(str, Enum):
    IDLE = "idle"
    LOADED = "loaded"
    PLAYING = "playing"
    PAUSED = "paused"


class MediaSink(ABC):
    """
    What the player needs from a playback surface.

    `load` resolves once the clip's metadata is available. `play` may raise
    when the surface refuses to start. The sink calls the handler passed to
    `on_ended` when a clip finishes on its own.
    """

    @abstractmethod
    async def load(self, url: str) -> None:
        ...

    @abstractmethod
    async def play(self) -> None:
        ...

    @abstractmethod
    def pause(self) -> None:
        ...

    @abstractmethod
    def on_ended(self, handler: Callable[[], Awaitable[None]]) -> None:
        ...


def completed_videos(records: Iterable) -> List[VideoStatus]:
    """Completed records with a media URL, ordered by scene id."""
    videos = (
        VideoStatus.model_validate(r.to_dict()) if isinstance(r, JobRecord) else r
        for r in records
    )
    return sorted(
        (r for r in videos if r.status == "completed" and r.video_url),
        key=lambda r: r.scene_id,
    )


class PlaylistPlayer:
    def __init__(self, videos: Iterable = ()):
        self.videos: List[VideoStatus] = completed_videos(videos)
        self.current_index = 0
        self.state = PlayerState.IDLE
        self._sink: Optional[MediaSink] = None
        self._on_scene_change: Optional[SceneChangeFn] = None
        self._on_playlist_end: Optional[PlaylistEndFn] = None

    # ── observers (single slot, last registration wins) ──────────────────

    def on_scene_change(self, callback: SceneChangeFn):
        self._on_scene_change = callback

    def on_playlist_end(self, callback: PlaylistEndFn):
        self._on_playlist_end = callback

    # ── setup ────────────────────────────────────────────────────────────

    async def initialize(self, sink: MediaSink):
        self._sink = sink
        sink.on_ended(self._handle_ended)
        if self.videos:
            await self.load_video(0)

    def set_videos(self, records: Iterable):
        """
        Rebuild the playlist, staying on the current scene if it survived.

        When it did not, playback stops and the player goes idle at index 0;
        the next `play()` loads the first scene.
        """
        current = self.current_scene()
        self.videos = completed_videos(records)
        if current is not None:
            for index, record in enumerate(self.videos):
                if record.scene_id == current[1].scene_id:
                    self.current_index = index
                    return
        if self._sink is not None and self.state == PlayerState.PLAYING:
            self._sink.pause()
        self.current_index = 0
        self.state = PlayerState.IDLE

    # ── transport ────────────────────────────────────────────────────────

    async def load_video(self, index: int) -> bool:
        if self._sink is None or not 0 <= index < len(self.videos):
            return False
        self.current_index = index
        await self._sink.load(self.videos[index].video_url)
        self.state = PlayerState.LOADED
        if self._on_scene_change:
            self._on_scene_change(index, self.videos[index])
        return True

    async def play(self):
        """Start or resume playback. Sink failures propagate to the caller."""
        if self._sink is None or not self.videos:
            return
        if self.state == PlayerState.IDLE:
            await self.load_video(self.current_index)
        await self._sink.play()
        self.state = PlayerState.PLAYING

    def pause(self):
        if self._sink is None or self.state != PlayerState.PLAYING:
            return
        self._sink.pause()
        self.state = PlayerState.PAUSED

    async def play_next(self):
        if not self.videos:
            return
        if self.current_index < len(self.videos) - 1:
            await self.load_video(self.current_index + 1)
            await self.play()
            return
        logger.info("Playlist ended after scene %d of %d", self.current_index + 1, len(self.videos))
        self.state = PlayerState.IDLE
        self.current_index = 0
        if self._on_playlist_end:
            self._on_playlist_end()

    async def play_previous(self):
        if self.current_index > 0:
            await self.load_video(self.current_index - 1)
            await self.play()

    async def jump_to_scene(self, index: int):
        if not 0 <= index < len(self.videos):
            return
        await self.load_video(index)
        await self.play()

    async def _handle_ended(self):
        # only a clip we were actually playing can end the playlist
        if self.state == PlayerState.PLAYING:
            await self.play_next()

    # ── info ─────────────────────────────────────────────────────────────

    def current_scene(self):
        if 0 <= self.current_index < len(self.videos):
            return self.current_index, self.videos[self.current_index]
        return None

    def playlist_info(self) -> dict:
        return {
            "currentIndex": self.current_index,
            "totalScenes": len(self.videos),
            "scenes": [r.model_dump(by_alias=True, exclude_none=True, mode="json") for r in self.videos],
        }
