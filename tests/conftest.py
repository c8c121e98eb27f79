"""Shared fixtures: a scripted stand-in for the generation/stitch service."""

from __future__ import annotations

from collections import deque

import pytest

from stitch_studio.library.storage import VideoLibrary
from stitch_studio.models.api import StatusResponse, StitchResult, SubmitResponse
from stitch_studio.orchestrator.controller import ActionController


def processing(logs: str | None = None) -> StatusResponse:
    return StatusResponse(status="processing", logs=logs)


def succeeded(*urls: str) -> StatusResponse:
    return StatusResponse(status="succeeded", output=list(urls))


def failed(logs: str | None = None) -> StatusResponse:
    return StatusResponse(status="failed", logs=logs)


class FakeStudioClient:
    """Scripted replacement for ``StudioAPIClient``.

    Each ``queue_job`` call scripts the status responses of the next submitted
    job; the last scripted response repeats once the script runs out.
    """

    def __init__(self) -> None:
        self.submissions: list[str] = []
        self.status_queries: list[str] = []
        self.stitch_calls: list[list[str]] = []
        self.submit_errors: deque[Exception] = deque()
        self.stitch_results: deque[StitchResult | Exception] = deque()
        self._scripts: deque[list[StatusResponse | Exception]] = deque()
        self._jobs: dict[str, list[StatusResponse | Exception]] = {}
        self.closed = False

    def queue_job(self, *responses: StatusResponse | Exception) -> None:
        self._scripts.append(list(responses))

    def queue_stitch(self, result: StitchResult | Exception) -> None:
        self.stitch_results.append(result)

    async def create_generation(self, prompt: str) -> SubmitResponse:
        if self.submit_errors:
            raise self.submit_errors.popleft()
        self.submissions.append(prompt)
        job_id = f"job-{len(self.submissions)}"
        self._jobs[job_id] = self._scripts.popleft() if self._scripts else [processing()]
        return SubmitResponse(id=job_id, status="starting")

    async def get_generation(self, job_id: str) -> StatusResponse:
        self.status_queries.append(job_id)
        script = self._jobs[job_id]
        item = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def stitch_videos(self, video_urls: list[str]) -> StitchResult:
        self.stitch_calls.append(list(video_urls))
        result = self.stitch_results.popleft()
        if isinstance(result, Exception):
            raise result
        return result

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> "FakeStudioClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


@pytest.fixture
def fake_client() -> FakeStudioClient:
    return FakeStudioClient()


@pytest.fixture
def library(tmp_path) -> VideoLibrary:
    return VideoLibrary(tmp_path / "library")


@pytest.fixture
def events() -> list[tuple[str, dict]]:
    return []


@pytest.fixture
def finalized_ids() -> list[str]:
    return []


@pytest.fixture
def controller(fake_client, library, events, finalized_ids) -> ActionController:
    return ActionController(
        fake_client,  # type: ignore[arg-type]
        library,
        poll_interval=0,
        push_event=lambda name, payload: events.append((name, payload)),
        on_finalized=finalized_ids.append,
    )
