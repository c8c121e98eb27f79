"""Tests for job submission and status polling."""

import pytest

from conftest import FakeStudioClient, failed, processing, succeeded
from stitch_studio.exceptions import (
    GenerationFailedError,
    MalformedResultError,
    NetworkError,
    ValidationError,
)
from stitch_studio.generators.poller import StatusPoller
from stitch_studio.generators.submitter import JobSubmitter, validate_prompt
from stitch_studio.models.api import StatusResponse
from stitch_studio.models.clip import JobHandle, JobStatus


async def _no_sleep(_: float) -> None:
    return None


class TestJobSubmitter:
    def test_validate_prompt_strips(self) -> None:
        assert validate_prompt("  a cat  ") == "a cat"

    @pytest.mark.parametrize("prompt", ["", "   ", "\n\t", None])
    def test_validate_prompt_rejects_blank(self, prompt) -> None:
        with pytest.raises(ValidationError):
            validate_prompt(prompt)

    @pytest.mark.asyncio
    async def test_submit_returns_starting_handle(self) -> None:
        client = FakeStudioClient()
        job = await JobSubmitter(client).submit("cat")  # type: ignore[arg-type]
        assert job.id == "job-1"
        assert job.prompt == "cat"
        assert job.status is JobStatus.STARTING

    @pytest.mark.asyncio
    async def test_blank_prompt_never_reaches_service(self) -> None:
        client = FakeStudioClient()
        with pytest.raises(ValidationError):
            await JobSubmitter(client).submit("  ")  # type: ignore[arg-type]
        assert client.submissions == []


class TestStatusPoller:
    @pytest.fixture
    def client(self) -> FakeStudioClient:
        return FakeStudioClient()

    async def _submit(self, client: FakeStudioClient, *responses) -> JobHandle:
        client.queue_job(*responses)
        return await JobSubmitter(client).submit("cat")  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_polls_until_succeeded(self, client) -> None:
        job = await self._submit(client, processing(), processing(), succeeded("urlA", "urlB"))
        poller = StatusPoller(client, interval=3.0, sleep=_no_sleep)  # type: ignore[arg-type]
        updates: list[JobStatus] = []

        url = await poller.poll(job, poller.begin(job), on_update=lambda j: updates.append(j.status))

        assert url == "urlA"
        assert job.status is JobStatus.SUCCEEDED
        assert job.output_url == "urlA"
        assert client.status_queries == ["job-1"] * 3
        assert updates == [JobStatus.PROCESSING, JobStatus.PROCESSING, JobStatus.SUCCEEDED]

    @pytest.mark.asyncio
    async def test_waits_interval_before_each_query(self, client) -> None:
        job = await self._submit(client, processing(), succeeded("urlA"))
        slept: list[float] = []

        async def sleep(seconds: float) -> None:
            slept.append(seconds)

        poller = StatusPoller(client, interval=3.0, sleep=sleep)  # type: ignore[arg-type]
        await poller.poll(job, poller.begin(job))
        assert slept == [3.0, 3.0]

    @pytest.mark.asyncio
    async def test_failed_job(self, client) -> None:
        job = await self._submit(client, failed("booting\nGPU out of memory"))
        poller = StatusPoller(client, sleep=_no_sleep)  # type: ignore[arg-type]
        with pytest.raises(GenerationFailedError) as exc_info:
            await poller.poll(job, poller.begin(job))
        assert exc_info.value.details == "GPU out of memory"
        assert job.status is JobStatus.FAILED

    @pytest.mark.asyncio
    async def test_canceled_job_counts_as_failed(self, client) -> None:
        job = await self._submit(client, StatusResponse(status="canceled"))
        poller = StatusPoller(client, sleep=_no_sleep)  # type: ignore[arg-type]
        with pytest.raises(GenerationFailedError):
            await poller.poll(job, poller.begin(job))

    @pytest.mark.asyncio
    async def test_success_without_output(self, client) -> None:
        job = await self._submit(client, StatusResponse(status="succeeded", output=None))
        poller = StatusPoller(client, sleep=_no_sleep)  # type: ignore[arg-type]
        with pytest.raises(MalformedResultError):
            await poller.poll(job, poller.begin(job))

    @pytest.mark.asyncio
    async def test_unknown_status_keeps_polling(self, client) -> None:
        job = await self._submit(client, StatusResponse(status="queued"), succeeded("urlA"))
        poller = StatusPoller(client, sleep=_no_sleep)  # type: ignore[arg-type]
        assert await poller.poll(job, poller.begin(job)) == "urlA"

    @pytest.mark.asyncio
    async def test_network_error_propagates(self, client) -> None:
        job = await self._submit(client, NetworkError("down"))
        poller = StatusPoller(client, sleep=_no_sleep)  # type: ignore[arg-type]
        with pytest.raises(NetworkError):
            await poller.poll(job, poller.begin(job))

    @pytest.mark.asyncio
    async def test_stale_tick_is_noop(self, client) -> None:
        job = await self._submit(client, succeeded("urlA"))
        poller = StatusPoller(client, sleep=_no_sleep)  # type: ignore[arg-type]
        token = poller.begin(job)

        async def sleep_then_cancel(_: float) -> None:
            poller.cancel()

        poller._sleep = sleep_then_cancel
        assert await poller.poll(job, token) is None
        assert client.status_queries == []
        assert job.status is JobStatus.STARTING

    @pytest.mark.asyncio
    async def test_response_after_cancel_is_discarded(self, client) -> None:
        job = await self._submit(client, succeeded("urlA"))
        poller = StatusPoller(client, sleep=_no_sleep)  # type: ignore[arg-type]
        token = poller.begin(job)
        original = client.get_generation

        async def cancel_during_query(job_id: str) -> StatusResponse:
            response = await original(job_id)
            poller.cancel()
            return response

        client.get_generation = cancel_during_query  # type: ignore[method-assign]
        assert await poller.poll(job, token) is None
        assert job.status is JobStatus.STARTING
        assert job.output_url is None

    @pytest.mark.asyncio
    async def test_error_after_cancel_is_discarded(self, client) -> None:
        job = await self._submit(client, succeeded("urlA"))
        poller = StatusPoller(client, sleep=_no_sleep)  # type: ignore[arg-type]
        token = poller.begin(job)

        async def cancel_then_fail(job_id: str) -> StatusResponse:
            poller.cancel()
            raise NetworkError("connection reset")

        client.get_generation = cancel_then_fail  # type: ignore[method-assign]
        assert await poller.poll(job, token) is None

    def test_begin_invalidates_previous_token(self, client) -> None:
        poller = StatusPoller(client)  # type: ignore[arg-type]
        first = poller.begin(JobHandle(id="a", prompt="cat"))
        second = poller.begin(JobHandle(id="b", prompt="dog"))
        assert first.cancelled
        assert not second.cancelled
        assert poller.active_token is second

    def test_cancel_clears_active_token(self, client) -> None:
        poller = StatusPoller(client)  # type: ignore[arg-type]
        token = poller.begin(JobHandle(id="a", prompt="cat"))
        poller.cancel()
        assert token.cancelled
        assert poller.active_token is None
