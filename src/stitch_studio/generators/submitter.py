"""Generation job submission."""

from __future__ import annotations

from stitch_studio.config.logging import get_logger
from stitch_studio.exceptions import ValidationError
from stitch_studio.generators.client import StudioAPIClient
from stitch_studio.models.clip import JobHandle, JobStatus

logger = get_logger(__name__)


def validate_prompt(prompt: str | None) -> str:
    """Validate and normalize a generation prompt.

    Raises:
        ValidationError: If the prompt is empty or whitespace-only.
    """
    if prompt is None or not prompt.strip():
        raise ValidationError("Prompt cannot be empty")
    return prompt.strip()


class JobSubmitter:
    """Sends generation requests and hands back a job handle in ``STARTING``."""

    def __init__(self, client: StudioAPIClient):
        self._client = client

    async def submit(self, prompt: str) -> JobHandle:
        """Submit a prompt for generation.

        The prompt is validated before any network call is made.

        Raises:
            ValidationError: If the prompt is empty.
            SubmissionError: If the service rejects the job or answers malformed data.
            NetworkError: If the service is unreachable.
        """
        prompt = validate_prompt(prompt)
        response = await self._client.create_generation(prompt)
        logger.info("Submitted generation job %s (%s)", response.id, response.status)
        # Handles always begin life in STARTING regardless of what the service echoes
        return JobHandle(id=response.id, prompt=prompt, status=JobStatus.STARTING)
