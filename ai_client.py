# ai_client.py
import json
import logging
import re
from typing import Optional

import httpx

from settings import settings
from schemas import PodcastScript, ScriptGenerationRequest

logger = logging.getLogger(__name__)

SCRIPT_SCENE_COUNT = 5

SCRIPT_SYSTEM_PROMPT = """You are an expert podcast script writer. Create engaging, natural-flowing podcast scripts with excellent scene transitions.

REQUIREMENTS:
- Create exactly 5 scenes that flow naturally together
- Each scene should be 30-60 seconds when spoken
- Include natural transitions between scenes
- Provide visual directions for video generation
- Make dialogue conversational and engaging

OUTPUT FORMAT (JSON only):
{
  "topic": "user_topic",
  "title": "catchy_episode_title",
  "overview": "2-3 sentence overview",
  "scenes": [
    {
      "id": 1,
      "title": "scene_title",
      "dialogue": "natural spoken dialogue",
      "sceneDescription": "setting and context",
      "visualDirection": "detailed visual description for video AI",
      "transitionNote": "how this connects to next scene"
    }
  ]
}

VISUAL DIRECTION GUIDELINES:
- Describe scenes cinematically for AI video generation
- Include lighting, setting, camera angles, mood
- Be specific about visual elements and atmosphere"""

class AIClientError(Exception):
    pass

def _headers():
    headers = {"Content-Type": "application/json"}
    if settings.ai_api_key:
        headers["Authorization"] = f"Bearer {settings.ai_api_key}"
    if settings.ai_customer_id:
        headers["customerId"] = settings.ai_customer_id
    return headers

def _client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.ai_timeout_sec, connect=10.0),
        headers=_headers(),
        transport=transport,
    )

async def _chat(client: httpx.AsyncClient, payload: dict, what: str) -> str:
    """POST one chat completion and return the first message content."""
    try:
        r = await client.post(settings.ai_api_url, json=payload)
    except httpx.HTTPError as e:
        raise AIClientError(f"{what} failed: {e}") from e
    if r.status_code >= 300:
        raise AIClientError(f"{what} failed: {r.status_code} {r.reason_phrase}")
    try:
        data = r.json()
    except ValueError as e:
        raise AIClientError(f"{what} failed: response was not JSON") from e
    if not isinstance(data, dict):
        raise AIClientError(f"{what} failed: unexpected response shape")
    choices = data.get("choices")
    if not choices:
        return ""
    if not isinstance(choices, list) or not isinstance(choices[0], dict):
        raise AIClientError(f"{what} failed: unexpected response shape")
    message = choices[0].get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    if content is None:
        return ""
    if not isinstance(content, str):
        raise AIClientError(f"{what} failed: unexpected response shape")
    return content

def _extract_json(content: str) -> dict:
    # models like to wrap the object in markdown fences or prose
    match = re.search(r"\{[\s\S]*\}", content)
    return json.loads(match.group(0) if match else content)

async def generate_script(
    request: ScriptGenerationRequest,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PodcastScript:
    """
    Ask the text model for a five-scene script and validate its shape.
    Scenes without an id get their 1-based position.
    """
    user_prompt = (
        f"Create a {SCRIPT_SCENE_COUNT}-scene podcast script about: {request.topic}\n\n"
        f"Style: {request.style}\n"
        f"Duration: {request.duration}\n\n"
        "Make it engaging, informative, and visually compelling for video generation."
    )
    payload = {
        "model": settings.ai_script_model,
        "messages": [
            {"role": "system", "content": SCRIPT_SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": 0.7,
        "max_tokens": 4000,
    }
    async with _client(transport) as client:
        content = await _chat(client, payload, "Script generation")
    if not content:
        raise AIClientError("No script content received from AI")

    try:
        raw = _extract_json(content)
        script = PodcastScript.model_validate(raw)
    except ValueError as e:
        # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
        logger.error("Failed to parse script JSON: %s", e)
        raise AIClientError("Invalid script format received from AI") from e

    if len(script.scenes) != SCRIPT_SCENE_COUNT:
        raise AIClientError(f"Script must contain exactly {SCRIPT_SCENE_COUNT} scenes")

    for index, scene in enumerate(script.scenes):
        if not scene.id:
            scene.id = index + 1
    return script

async def generate_video(
    prompt: str,
    duration: int = 10,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Render one clip; returns the media URL the model hands back."""
    enhanced = (
        f"Create a high-quality video for a podcast scene: {prompt}.\n\n"
        "Style: Professional, cinematic, engaging for podcast audience.\n"
        f"Duration: {duration} seconds.\n"
        "Quality: High resolution, smooth transitions, appropriate lighting.\n"
        "Mood: Match the content tone - educational yet entertaining."
    )
    payload = {
        "model": settings.ai_video_model,
        "messages": [{"role": "user", "content": enhanced}],
    }
    async with _client(transport) as client:
        video_url = (await _chat(client, payload, "Video generation")).strip()
    if not video_url:
        raise AIClientError("No video URL received from AI")
    return video_url

async def check_connection(transport: Optional[httpx.AsyncBaseTransport] = None) -> bool:
    payload = {
        "model": settings.ai_script_model,
        "messages": [{"role": "user", "content": 'Test connection. Respond with "OK".'}],
        "max_tokens": 10,
    }
    try:
        async with _client(transport) as client:
            r = await client.post(settings.ai_api_url, json=payload)
        return r.status_code < 300
    except httpx.HTTPError as e:
        logger.warning("AI connection test failed: %s", e)
        return False
