"""Tests for the generation endpoint client."""

import json

import httpx
import pytest

from voiceprep.config.settings import Settings
from voiceprep.core.generation_client import GenerationClient


def make_client(handler) -> GenerationClient:
    settings = Settings(llm_base_url="http://llm.test", llm_api_key="secret")
    return GenerationClient(settings, transport=httpx.MockTransport(handler))


async def test_posts_chat_payload_to_model_endpoint():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "hi"}}]})

    client = make_client(handler)
    try:
        text = await client.generate("gemini-2.5-flash", "Say hi")
    finally:
        await client.close()

    assert text == "hi"
    assert seen["url"] == "http://llm.test/serving-endpoints/gemini-2.5-flash/invocations"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["messages"] == [{"role": "user", "content": "Say hi"}]


async def test_multi_part_content_is_joined():
    def handler(request):
        return httpx.Response(200, json={
            "choices": [{"message": {"content": [{"type": "text", "text": "a"}, "b"]}}]
        })

    client = make_client(handler)
    try:
        assert await client.generate("m", "p") == "ab"
    finally:
        await client.close()


async def test_error_status_raises():
    client = make_client(lambda request: httpx.Response(429, json={"error": "quota"}))
    try:
        with pytest.raises(httpx.HTTPStatusError):
            await client.generate("m", "p")
    finally:
        await client.close()
