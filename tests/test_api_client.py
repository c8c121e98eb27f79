"""Tests for the httpx-based service client."""

import json

import httpx
import pytest

from stitch_studio.config.settings import Settings
from stitch_studio.exceptions import (
    GenerationFailedError,
    MalformedResultError,
    MergeFailedError,
    NetworkError,
    SubmissionError,
)
from stitch_studio.generators.client import StudioAPIClient


def _client(handler) -> StudioAPIClient:
    return StudioAPIClient("http://studio.test/", transport=httpx.MockTransport(handler))


def _refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class TestCreateGeneration:
    @pytest.mark.asyncio
    async def test_posts_prompt(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"id": "pred-1", "status": "starting"})

        async with _client(handler) as client:
            response = await client.create_generation("a cat")

        assert response.id == "pred-1"
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/api/generate-video"
        assert json.loads(seen[0].content) == {"prompt": "a cat"}

    @pytest.mark.asyncio
    async def test_error_payload(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": "Replicate token missing"})

        async with _client(handler) as client:
            with pytest.raises(SubmissionError, match="Replicate token missing"):
                await client.create_generation("a cat")

    @pytest.mark.asyncio
    async def test_missing_id(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "starting"})

        async with _client(handler) as client:
            with pytest.raises(SubmissionError):
                await client.create_generation("a cat")

    @pytest.mark.asyncio
    async def test_http_error_without_payload(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, json={})

        async with _client(handler) as client:
            with pytest.raises(SubmissionError, match="HTTP 502"):
                await client.create_generation("a cat")

    @pytest.mark.asyncio
    async def test_unreachable(self) -> None:
        async with _client(_refuse) as client:
            with pytest.raises(NetworkError):
                await client.create_generation("a cat")


class TestGetGeneration:
    @pytest.mark.asyncio
    async def test_parses_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/generate-video/pred-1"
            return httpx.Response(
                200, json={"status": "succeeded", "output": ["https://cdn/a.mp4"], "logs": "done"}
            )

        async with _client(handler) as client:
            status = await client.get_generation("pred-1")

        assert status.status == "succeeded"
        assert status.output_urls == ["https://cdn/a.mp4"]
        assert status.logs == "done"

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        async with _client(handler) as client:
            with pytest.raises(MalformedResultError):
                await client.get_generation("pred-1")

    @pytest.mark.asyncio
    async def test_error_payload(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "Prediction not found"})

        async with _client(handler) as client:
            with pytest.raises(GenerationFailedError):
                await client.get_generation("pred-1")

    @pytest.mark.asyncio
    async def test_unreachable(self) -> None:
        async with _client(_refuse) as client:
            with pytest.raises(NetworkError):
                await client.get_generation("pred-1")


class TestStitchVideos:
    @pytest.mark.asyncio
    async def test_sends_urls_in_order(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"url": "https://cdn/m.mp4", "public_id": "m1"})

        async with _client(handler) as client:
            result = await client.stitch_videos(["b", "a", "c"])

        assert bodies == [{"videoUrls": ["b", "a", "c"]}]
        assert result.url == "https://cdn/m.mp4"
        assert result.public_id == "m1"

    @pytest.mark.asyncio
    async def test_missing_url(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"public_id": "m1"})

        async with _client(handler) as client:
            with pytest.raises(MergeFailedError):
                await client.stitch_videos(["a", "b"])

    @pytest.mark.asyncio
    async def test_unreachable(self) -> None:
        async with _client(_refuse) as client:
            with pytest.raises(MergeFailedError):
                await client.stitch_videos(["a", "b"])


class TestClientLifecycle:
    def test_from_settings(self) -> None:
        client = StudioAPIClient.from_settings(
            Settings(api_url="http://example.test:8080/", request_timeout=5)
        )
        assert client.base_url == "http://example.test:8080"
        assert client.timeout == 5

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        client = _client(lambda r: httpx.Response(200, json={"id": "x"}))
        await client.create_generation("a cat")
        await client.close()
        await client.close()
