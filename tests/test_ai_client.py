# tests/test_ai_client.py

import asyncio
import json

import httpx
import pytest

import ai_client
from ai_client import AIClientError, check_connection, generate_script, generate_video
from schemas import ScriptGenerationRequest


def _scene(i, with_id=True):
    scene = {
        "title": f"Part {i}",
        "dialogue": "Welcome back to the show.",
        "sceneDescription": "Studio",
        "visualDirection": "Wide shot",
        "transitionNote": "Fade",
    }
    if with_id:
        scene["id"] = i
    return scene


def _chat_reply(content, status=200):
    def handler(request):
        handler.requests.append(json.loads(request.content))
        return httpx.Response(status, json={"choices": [{"message": {"content": content}}]})
    handler.requests = []
    return handler


def _script_json(n=5, with_ids=True):
    return json.dumps({
        "topic": "black holes",
        "title": "Into the Dark",
        "overview": "A short tour.",
        "scenes": [_scene(i, with_ids) for i in range(1, n + 1)],
    })


def test_generate_script_reads_fenced_json_and_fills_ids():
    handler = _chat_reply("Here you go:\n```json\n" + _script_json(with_ids=False) + "\n```")
    request = ScriptGenerationRequest(topic="black holes", style="news")

    script = asyncio.run(generate_script(request, transport=httpx.MockTransport(handler)))

    assert script.title == "Into the Dark"
    assert [s.id for s in script.scenes] == [1, 2, 3, 4, 5]
    assert script.scenes[0].visual_direction == "Wide shot"
    sent = handler.requests[0]
    assert sent["model"] == ai_client.settings.ai_script_model
    assert "black holes" in sent["messages"][1]["content"]
    assert "Style: news" in sent["messages"][1]["content"]


def test_generate_script_requires_five_scenes():
    handler = _chat_reply(_script_json(n=4))

    with pytest.raises(AIClientError, match="exactly 5 scenes"):
        asyncio.run(generate_script(
            ScriptGenerationRequest(topic="x"), transport=httpx.MockTransport(handler)
        ))


@pytest.mark.parametrize("content", ["not json at all", '{"title": "missing scenes"}'])
def test_generate_script_rejects_malformed_content(content):
    handler = _chat_reply(content)

    with pytest.raises(AIClientError, match="Invalid script format"):
        asyncio.run(generate_script(
            ScriptGenerationRequest(topic="x"), transport=httpx.MockTransport(handler)
        ))


@pytest.mark.parametrize("body", [
    {"choices": [{"message": {"content": [{"type": "text", "text": "{}"}]}}]},
    {"choices": {"0": "x"}},
    {"choices": ["oops"]},
])
def test_generate_script_rejects_unexpected_payload_shapes(body):
    def handler(request):
        return httpx.Response(200, json=body)

    with pytest.raises(AIClientError, match="unexpected response shape"):
        asyncio.run(generate_script(
            ScriptGenerationRequest(topic="x"), transport=httpx.MockTransport(handler)
        ))


def test_generate_script_surfaces_http_errors():
    handler = _chat_reply("", status=503)

    with pytest.raises(AIClientError, match="503"):
        asyncio.run(generate_script(
            ScriptGenerationRequest(topic="x"), transport=httpx.MockTransport(handler)
        ))


def test_generate_video_returns_url():
    handler = _chat_reply("  https://cdn.example/scene-1.mp4\n")

    url = asyncio.run(generate_video("a prompt", 30, transport=httpx.MockTransport(handler)))

    assert url == "https://cdn.example/scene-1.mp4"
    assert "Duration: 30 seconds." in handler.requests[0]["messages"][0]["content"]


def test_generate_video_without_url_fails():
    handler = _chat_reply("")

    with pytest.raises(AIClientError, match="No video URL"):
        asyncio.run(generate_video("a prompt", 30, transport=httpx.MockTransport(handler)))


def test_network_errors_become_client_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(AIClientError, match="Video generation failed"):
        asyncio.run(generate_video("a prompt", 30, transport=httpx.MockTransport(handler)))


def test_check_connection():
    def unreachable(request):
        raise httpx.ConnectError("down")

    ok = asyncio.run(check_connection(transport=httpx.MockTransport(_chat_reply("OK"))))
    down = asyncio.run(check_connection(transport=httpx.MockTransport(unreachable)))

    assert ok is True
    assert down is False
