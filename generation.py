"""
Per-scene video generation: the worker that drives one JobRecord to a
terminal state, and the coordinator that fans a session out into one
worker per scene.

Workers only ever report through the JobStore. The coordinator's return
value means "tracking initialised and work dispatched", nothing more.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Set

import ai_client
from job_store import JobRecord, JobStore
from schemas import GenerationAccepted, PodcastScene
from settings import settings

logger = logging.getLogger(__name__)

RenderFn = Callable[[str, int], Awaitable[str]]

# progress checkpoints reported while the external render is in flight
PROGRESS_STARTED = 25
PROGRESS_RENDERING = 50


class GenerationRequestError(Exception):
    """Rejected before any job was created."""


def build_video_prompt(scene: PodcastScene, duration: int) -> str:
    parts = [
        f"Scene Title: {scene.title}",
        f"Visual Setting: {scene.scene_description}",
        f"Visual Direction: {scene.visual_direction}",
        f"Dialogue Context: {scene.dialogue}",
    ]
    if scene.transition_note:
        parts.append(f"Transition: {scene.transition_note}")
    parts.append(
        "Style Requirements:\n"
        "- High-quality cinematic video\n"
        "- Professional podcast production value\n"
        "- Engaging visual storytelling\n"
        "- Smooth camera movements\n"
        "- Appropriate lighting and mood\n"
        f"- Duration: {duration} seconds\n"
        "- Seamless for video stitching"
    )
    parts.append(
        "Create a compelling visual representation that matches the dialogue "
        "and enhances the podcast narrative."
    )
    return "\n\n".join(parts)


async def process_scene(
    store: JobStore,
    session_id: str,
    scene: PodcastScene,
    render: RenderFn,
    duration: int,
) -> None:
    """Background worker: drive one scene from pending to completed/failed."""
    scene_id = scene.id
    try:
        store.update(session_id, scene_id, status="processing", progress=PROGRESS_STARTED)
        prompt = build_video_prompt(scene, duration)
        logger.info("[%s] generating video for scene %s: %s", session_id, scene_id, scene.title)

        store.update(session_id, scene_id, progress=PROGRESS_RENDERING)
        video_url = await render(prompt, duration)

        store.update(session_id, scene_id, status="completed", progress=100, video_url=video_url)
        logger.info("[%s] video completed for scene %s", session_id, scene_id)
    except asyncio.CancelledError:
        store.update(session_id, scene_id, status="failed", progress=0, error="Generation cancelled")
        raise
    except Exception as e:
        logger.error("[%s] video generation failed for scene %s: %s", session_id, scene_id, e)
        store.update(session_id, scene_id, status="failed", progress=0, error=str(e) or "Unknown error")


class GenerationCoordinator:
    """
    Fire-and-forget fan-out of scene workers.

    Usage:
        coordinator = GenerationCoordinator(store)
        ack = coordinator.start(session_id, scenes)   # returns immediately
        ...
        await coordinator.drain()                     # shutdown / tests
    """

    def __init__(
        self,
        store: JobStore,
        render: Optional[RenderFn] = None,
        duration: Optional[int] = None,
    ):
        self.store = store
        self.render = render or ai_client.generate_video
        self.duration = duration if duration is not None else settings.video_duration_sec
        # strong refs so the event loop does not drop running tasks
        self._tasks: Set[asyncio.Task] = set()
        self._sessions: Dict[str, asyncio.Task] = {}

    def start(self, session_id: Optional[str], scenes: List[PodcastScene]) -> GenerationAccepted:
        """
        Seed the store and dispatch one worker per scene.

        Must be called from inside a running event loop. Raises
        GenerationRequestError for a missing session id or an empty scene
        list; in that case the store is left untouched.
        """
        if not scenes:
            raise GenerationRequestError("Scenes are required")
        if not session_id or not session_id.strip():
            raise GenerationRequestError("Session ID is required")

        # scenes without an id get their 1-based position
        scenes = [
            s if s.id is not None else s.model_copy(update={"id": i + 1})
            for i, s in enumerate(scenes)
        ]
        ids = [s.id for s in scenes]
        if len(set(ids)) != len(ids):
            raise GenerationRequestError("Scene ids must be unique")
        if session_id in self._sessions:
            raise GenerationRequestError("Generation already running for this session")
        # fail before seeding when called outside a loop
        asyncio.get_running_loop()

        self.store.create(session_id, [JobRecord(scene_id=s.id) for s in scenes])
        logger.info("Starting video generation for %d scenes (session %s)", len(scenes), session_id)

        workers = [
            self._spawn(process_scene(self.store, session_id, scene, self.render, self.duration))
            for scene in scenes
        ]
        self._sessions[session_id] = self._spawn(self._log_when_done(session_id, workers))

        return GenerationAccepted(session_id=session_id, total_scenes=len(scenes))

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _log_when_done(self, session_id: str, workers: List[asyncio.Task]):
        await asyncio.gather(*workers, return_exceptions=True)
        self._sessions.pop(session_id, None)
        records = self.store.get(session_id) or []
        completed = sum(1 for r in records if r.status == "completed")
        logger.info(
            "All video generation tasks completed for session %s (%d/%d succeeded)",
            session_id, completed, len(records),
        )

    @property
    def active_sessions(self) -> List[str]:
        return list(self._sessions)

    async def drain(self):
        """Wait for every dispatched task; new ones spawned meanwhile are awaited too."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                break
            await asyncio.gather(*pending, return_exceptions=True)

    async def shutdown(self):
        """Cancel whatever is still rendering; cancelled scenes end up failed."""
        if self._sessions:
            logger.warning("Cancelling generation for %d active session(s)", len(self._sessions))
        for task in list(self._tasks):
            task.cancel()
        await self.drain()
