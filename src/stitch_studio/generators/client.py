"""HTTP client for the generation and stitch services.

This module wraps an ``httpx.AsyncClient`` around the three endpoints the
studio talks to: job submission, job status and video stitching.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from stitch_studio.config.constants import Endpoints, Timeouts
from stitch_studio.config.logging import get_logger
from stitch_studio.config.settings import Settings
from stitch_studio.exceptions import (
    APIError,
    GenerationFailedError,
    MalformedResultError,
    MergeFailedError,
    NetworkError,
    SubmissionError,
)
from stitch_studio.models.api import StatusResponse, StitchResult, SubmitResponse

logger = get_logger(__name__)


class StudioAPIClient:
    """Async client for the video generation backend.

    The client never retries on its own; a failed call surfaces immediately so
    the user can decide whether to resubmit.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = Timeouts.HTTP_REQUEST,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Service base URL (e.g. ``http://localhost:5000``).
            timeout: Default request timeout in seconds.
            transport: Optional transport override (used by tests).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        logger.debug("Initialized StudioAPIClient for %s", self.base_url)

    @classmethod
    def from_settings(cls, settings: Settings) -> "StudioAPIClient":
        return cls(base_url=settings.api_url, timeout=settings.request_timeout)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the client (cleanup)."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "StudioAPIClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        error_cls: type[APIError],
        network_cls: type[APIError],
        malformed_cls: type[APIError] | None = None,
        payload: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the decoded JSON object.

        Transport failures raise ``network_cls``; error payloads and HTTP errors
        raise ``error_cls``; undecodable bodies raise ``malformed_cls``.
        """
        malformed_cls = malformed_cls or error_cls
        client = await self._get_client()
        kwargs: dict[str, Any] = {}
        if payload is not None:
            kwargs["json"] = payload
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise network_cls(f"Service unreachable: {method} {path}", details=str(e)) from e

        try:
            data = response.json()
        except ValueError as e:
            raise malformed_cls(
                f"Invalid response from {path} (HTTP {response.status_code})",
                details=response.text[:200],
            ) from e
        if not isinstance(data, dict):
            raise malformed_cls(f"Unexpected response shape from {path}", details=repr(data)[:200])
        if data.get("error"):
            raise error_cls(str(data["error"]))
        if response.is_error:
            raise error_cls(f"{path} returned HTTP {response.status_code}")
        return data

    async def create_generation(self, prompt: str) -> SubmitResponse:
        """Submit a generation job.

        Raises:
            NetworkError: If the service is unreachable.
            SubmissionError: If the service rejects the job or answers malformed data.
        """
        data = await self._request(
            "POST",
            Endpoints.GENERATE_VIDEO,
            SubmissionError,
            NetworkError,
            payload={"prompt": prompt},
        )
        try:
            return SubmitResponse.model_validate(data)
        except PydanticValidationError as e:
            raise SubmissionError("Malformed submit response", details=str(e)) from e

    async def get_generation(self, job_id: str) -> StatusResponse:
        """Query the status of a generation job.

        Raises:
            NetworkError: If the service is unreachable.
            GenerationFailedError: If the service reports an error for the job.
            MalformedResultError: If the status payload cannot be parsed.
        """
        path = f"{Endpoints.GENERATE_VIDEO}/{job_id}"
        data = await self._request(
            "GET", path, GenerationFailedError, NetworkError, malformed_cls=MalformedResultError
        )
        try:
            return StatusResponse.model_validate(data)
        except PydanticValidationError as e:
            raise MalformedResultError("Malformed status response", details=str(e)) from e

    async def stitch_videos(self, video_urls: list[str]) -> StitchResult:
        """Stitch clips, in order, into one video.

        Raises:
            MergeFailedError: On any transport, service or payload failure.
        """
        data = await self._request(
            "POST",
            Endpoints.STITCH_VIDEOS,
            MergeFailedError,
            MergeFailedError,
            payload={"videoUrls": list(video_urls)},
            timeout=max(self.timeout, Timeouts.STITCH_REQUEST),
        )
        try:
            return StitchResult.model_validate(data)
        except PydanticValidationError as e:
            raise MergeFailedError("Malformed stitch response", details=str(e)) from e
