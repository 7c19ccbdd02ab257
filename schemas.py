"""
Pydantic models for the podcast generation API.

Wire format is camelCase (sceneId, videoUrl, ...); Python code uses the
snake_case attribute names. Both are accepted on input.
"""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# ── Script ───────────────────────────────────────────────────────────────────

class PodcastScene(_WireModel):
    id: Optional[int] = None
    title: str
    dialogue: str
    scene_description: str = Field(..., alias="sceneDescription")
    visual_direction: str = Field(..., alias="visualDirection")
    transition_note: Optional[str] = Field(None, alias="transitionNote")
    duration: Optional[int] = None


class PodcastScript(_WireModel):
    topic: str
    title: str
    overview: str = ""
    scenes: List[PodcastScene]
    total_duration: Optional[int] = Field(None, alias="totalDuration")


class ScriptGenerationRequest(_WireModel):
    topic: str = Field(..., description="What the episode is about")
    style: Literal["educational", "conversational", "news", "entertainment"] = "educational"
    duration: Literal["short", "medium", "long"] = "medium"  # 2-3 min, 5-7 min, 10-15 min

    @field_validator("topic")
    @classmethod
    def _topic_bounds(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Topic is required and cannot be empty")
        if len(v) > 500:
            raise ValueError("Topic must be less than 500 characters")
        return v


# ── Video generation ─────────────────────────────────────────────────────────

class GenerateVideosRequest(_WireModel):
    scenes: List[PodcastScene] = Field(default_factory=list)
    session_id: Optional[str] = Field(None, alias="sessionId")


class GenerationAccepted(_WireModel):
    session_id: str = Field(..., alias="sessionId")
    total_scenes: int = Field(..., alias="totalScenes")


class VideoStatus(_WireModel):
    scene_id: int = Field(..., alias="sceneId")
    status: JobStatus
    progress: int = 0
    video_url: Optional[str] = Field(None, alias="videoUrl")
    error: Optional[str] = None


class ProgressSnapshot(_WireModel):
    script_generated: bool = Field(True, alias="scriptGenerated")
    total_videos: int = Field(0, alias="totalVideos")
    videos_completed: int = Field(0, alias="videosCompleted")
    videos_failed: int = Field(0, alias="videosFailed")
    videos_in_progress: int = Field(0, alias="videosInProgress")
    overall_progress: int = Field(0, alias="overallProgress")
    current_scene: Optional[int] = Field(None, alias="currentScene")


class SessionStatus(_WireModel):
    videos: List[VideoStatus]
    progress: ProgressSnapshot
