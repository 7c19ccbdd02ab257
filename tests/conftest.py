# tests/conftest.py

import sys
import os

import pytest

# Add the parent directory to the Python path so we can import from it
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from playlist import MediaSink
from schemas import PodcastScene


def make_scene(scene_id, **overrides):
    fields = {
        "id": scene_id,
        "title": f"Scene {scene_id}",
        "dialogue": f"Host talks about part {scene_id}.",
        "sceneDescription": "A cosy studio with two microphones",
        "visualDirection": "Slow dolly-in, warm key light",
    }
    fields.update(overrides)
    return PodcastScene.model_validate(fields)


@pytest.fixture
def scenes():
    """Five scenes with ids 1..5, the shape a generated script has."""
    return [make_scene(i) for i in range(1, 6)]


class FakeSink(MediaSink):
    """In-memory playback surface that records what the player asked for."""

    def __init__(self, fail_play=False):
        self.fail_play = fail_play
        self.loaded = []
        self.plays = 0
        self.pauses = 0
        self._ended = None

    async def load(self, url):
        self.loaded.append(url)

    async def play(self):
        if self.fail_play:
            raise RuntimeError("autoplay blocked")
        self.plays += 1

    def pause(self):
        self.pauses += 1

    def on_ended(self, handler):
        self._ended = handler

    async def finish(self):
        """Simulate the current clip reaching its natural end."""
        await self._ended()


@pytest.fixture
def sink():
    return FakeSink()
