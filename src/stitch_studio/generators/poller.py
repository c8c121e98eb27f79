"""Status polling for generation jobs.

The poller owns a single ``PollToken``. Beginning a new poll invalidates the
previous token, so at most one poll loop per orchestrator can still act on its
results; a tick that wakes up after its token was cancelled returns without
touching the job.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from stitch_studio.config.constants import Timeouts
from stitch_studio.config.logging import get_logger
from stitch_studio.exceptions import APIError, GenerationFailedError, MalformedResultError
from stitch_studio.generators.client import StudioAPIClient
from stitch_studio.models.clip import JobHandle, JobStatus

logger = get_logger(__name__)
JobUpdateCallback = Callable[[JobHandle], None]


@dataclass
class PollToken:
    """Cancellation handle for one poll loop."""

    job_id: str
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class StatusPoller:
    """Polls a generation job until it reaches a terminal status."""

    def __init__(
        self,
        client: StudioAPIClient,
        interval: float = Timeouts.POLL_INTERVAL,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the poller.

        Args:
            client: API client used for status queries.
            interval: Seconds between status queries.
            sleep: Injected sleep coroutine (tests replace it).
        """
        self._client = client
        self.interval = interval
        self._sleep = sleep
        self._token: PollToken | None = None

    @property
    def active_token(self) -> PollToken | None:
        """Token of the poll loop that may still act, if any."""
        if self._token is None or self._token.cancelled:
            return None
        return self._token

    def begin(self, job: JobHandle) -> PollToken:
        """Invalidate any previous poll and issue a token for ``job``."""
        self.cancel()
        self._token = PollToken(job_id=job.id)
        return self._token

    def cancel(self) -> None:
        """Invalidate the current poll token, if any."""
        if self._token is not None and not self._token.cancelled:
            logger.debug("Cancelling poll for job %s", self._token.job_id)
            self._token.cancel()
        self._token = None

    async def poll(
        self,
        job: JobHandle,
        token: PollToken,
        on_update: JobUpdateCallback | None = None,
    ) -> str | None:
        """Poll until the job succeeds or fails.

        Args:
            job: Handle to update with each status response.
            token: Token issued by ``begin``; once cancelled the loop stops.
            on_update: Optional callback invoked after each applied status.

        Returns:
            The first output URL, or None if the token was cancelled.

        Raises:
            GenerationFailedError: If the job failed.
            MalformedResultError: If the job succeeded without an output URL.
            NetworkError: If a status query could not reach the service.
        """
        while True:
            await self._sleep(self.interval)
            if token.cancelled:
                logger.debug("Ignoring stale poll tick for job %s", job.id)
                return None
            try:
                response = await self._client.get_generation(job.id)
            except APIError:
                if token.cancelled:
                    return None
                raise
            if token.cancelled:
                logger.debug("Discarding status for cancelled job %s", job.id)
                return None

            job.status = JobStatus.parse(response.status)
            if response.logs:
                job.logs = response.logs
            logger.debug("Job %s status: %s", job.id, job.status.value)

            if job.status is JobStatus.SUCCEEDED:
                urls = response.output_urls
                if not urls:
                    raise MalformedResultError(
                        f"Job {job.id} succeeded without an output URL",
                        details=repr(response.output),
                    )
                job.output_url = urls[0]
                if on_update:
                    on_update(job)
                logger.info("Job %s succeeded: %s", job.id, job.output_url)
                return job.output_url
            if on_update:
                on_update(job)
            if job.status is JobStatus.FAILED:
                raise GenerationFailedError(
                    f"Generation failed for job {job.id}", details=job.last_log_line
                )
