"""Action controller for a clip authoring session.

The controller is the only writer of the session and the preview. Job
submission, polling and stitching all return their results here, and every
state change goes through the pure ``transition`` function.

Everything runs on one asyncio loop. A generation runs as a single background
task; ``wait()`` awaits it. Because submission is only accepted in ``Idle`` or
``Failed``, there is never more than one generation or merge in flight.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from stitch_studio.config.constants import Timeouts
from stitch_studio.config.logging import get_logger
from stitch_studio.config.settings import Settings, get_settings
from stitch_studio.exceptions import (
    APIError,
    InvalidTransitionError,
    MergeFailedError,
    PersistenceError,
    StitchStudioError,
    SubmissionError,
    ValidationError,
)
from stitch_studio.generators.client import StudioAPIClient
from stitch_studio.generators.poller import PollToken, StatusPoller
from stitch_studio.generators.submitter import JobSubmitter, validate_prompt
from stitch_studio.library.records import build_clip_record, build_merged_record
from stitch_studio.library.storage import VideoLibrary
from stitch_studio.models.api import StitchResult
from stitch_studio.models.clip import ClipResult, JobHandle
from stitch_studio.models.library import VideoRecord
from stitch_studio.orchestrator.merge import MergeTrigger
from stitch_studio.orchestrator.state import (
    AddClip,
    ClipGenerated,
    Event,
    GenerationErrored,
    Generating,
    Idle,
    JobStarted,
    MergeErrored,
    MergeSucceeded,
    OrchestratorState,
    Persisted,
    Ready,
    Recreate,
    Reset,
    RetryMerge,
    Submit,
    error_kind,
    transition,
)
from stitch_studio.session.store import SessionStore

logger = get_logger(__name__)
EventCallback = Callable[[str, dict[str, Any]], None]
FinalizedCallback = Callable[[str], None]


class ActionController:
    """Drives generation, auto-stitching and finalization for one session."""

    def __init__(
        self,
        client: StudioAPIClient,
        library: VideoLibrary,
        poll_interval: float = Timeouts.POLL_INTERVAL,
        user_id: str | None = None,
        push_event: EventCallback | None = None,
        on_finalized: FinalizedCallback | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the controller.

        Args:
            client: API client for generation and stitching.
            library: Video library that receives finalized previews.
            poll_interval: Seconds between job status queries.
            user_id: Owner recorded on library entries.
            push_event: Optional UI event sink ``(name, payload)``.
            on_finalized: Receives the library record id after finalize
                (the hand-off to scheduling).
            sleep: Sleep coroutine used between polls.
        """
        self._client = client
        self._owns_client = False
        self._library = library
        self._user_id = user_id
        self._push_event_cb = push_event
        self._on_finalized = on_finalized
        self._submitter = JobSubmitter(client)
        self._poller = StatusPoller(client, interval=poll_interval, sleep=sleep)
        self._merger = MergeTrigger(client)
        self._session = SessionStore()
        self._state: OrchestratorState = Idle()
        self._preview: str | None = None
        self._preview_clips: tuple[ClipResult, ...] = ()
        self._preview_public_id: str | None = None
        self._prompt = ""
        self._error: StitchStudioError | None = None
        self._task: asyncio.Task[None] | None = None
        self._epoch = 0

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs: Any) -> "ActionController":
        """Build a controller (and its own API client) from settings."""
        settings = settings or get_settings()
        controller = cls(
            StudioAPIClient.from_settings(settings),
            VideoLibrary.from_settings(settings),
            poll_interval=settings.poll_interval,
            user_id=settings.user_id,
            **kwargs,
        )
        controller._owns_client = True
        return controller

    async def __aenter__(self) -> "ActionController":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------ read-only view

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def session(self) -> tuple[ClipResult, ...]:
        return self._session.clips

    @property
    def preview(self) -> str | None:
        return self._preview

    @property
    def error(self) -> StitchStudioError | None:
        """Most recent surfaced error (validation, generation, merge or persistence)."""
        return self._error

    @property
    def job(self) -> JobHandle | None:
        return self._state.job if isinstance(self._state, Generating) else None

    @property
    def prompt(self) -> str:
        return self._prompt

    @prompt.setter
    def prompt(self, value: str) -> None:
        self._prompt = value

    def snapshot(self) -> dict[str, Any]:
        """Serializable view of the controller for UIs."""
        return {
            "state": self._state.name,
            "preview": self._preview,
            "sessionLength": len(self._session),
            "clips": [clip.model_dump() for clip in self._session],
            "mergeError": self._state.merge_error if isinstance(self._state, Ready) else None,
            "error": self._error.message if self._error else None,
            "job": self.job.to_dict() if self.job else None,
        }

    # ------------------------------------------------------------ user actions

    async def submit(self, prompt: str | None = None) -> OrchestratorState:
        """Submit ``prompt`` (or the current prompt field) as the next clip.

        An empty prompt is recorded on ``error`` and leaves the state unchanged.

        Raises:
            InvalidTransitionError: If a job or merge is in flight, or a preview
                is showing (use ``add_clip`` or ``recreate`` first).
        """
        if prompt is not None:
            self._prompt = prompt
        try:
            text = validate_prompt(self._prompt)
        except ValidationError as e:
            logger.warning("Rejected submission: %s", e.message)
            self._surface_error(e)
            return self._state
        self._apply(Submit())
        await self._start_generation(text)
        return self._state

    async def recreate(self) -> OrchestratorState:
        """Drop the most recent clip and regenerate it from the same prompt.

        Raises:
            InvalidTransitionError: If no preview is ready.
        """
        last = self._session.last
        if last is None:
            raise InvalidTransitionError("Nothing to recreate", details=repr(self._state))
        self._apply(Recreate())
        self._session.pop_last()
        self._restore_preview()
        self._prompt = last.prompt
        logger.info("Recreating clip #%d from prompt %r", last.sequence_index, last.prompt)
        await self._start_generation(last.prompt)
        return self._state

    def add_clip(self) -> OrchestratorState:
        """Get ready for another prompt; only the prompt field is cleared.

        Raises:
            InvalidTransitionError: If no preview is ready and nothing failed.
        """
        self._apply(AddClip())
        self._prompt = ""
        return self._state

    async def retry_merge(self) -> OrchestratorState:
        """Re-stitch the full session after a failed merge.

        Raises:
            InvalidTransitionError: If the last merge did not fail.
        """
        urls = tuple(self._session.urls)
        self._apply(RetryMerge(urls))
        self._error = None
        await self._run_merge(urls)
        return self._state

    def finalize(self, title: str | None = None) -> str | None:
        """Persist the current preview to the video library.

        On success the record id is handed to ``on_finalized`` and returned. A
        persistence failure is recorded on ``error``, the state is left as is and
        None is returned so the user can finalize again.

        Raises:
            InvalidTransitionError: If there is no preview to finalize.
        """
        if self._preview is None:
            raise InvalidTransitionError("No preview to finalize", details=repr(self._state))
        # Dry run: reject before writing anything
        transition(self._state, Persisted(record_id="", preview=self._preview))

        record = self._build_record()
        if title:
            record = record.model_copy(update={"title": title})
        try:
            record_id = self._library.add_video(record)
        except PersistenceError as e:
            logger.error("Finalize failed: %s", e)
            self._surface_error(e)
            return None

        self._error = None
        self._apply(Persisted(record_id=record_id, preview=self._preview))
        self._push("__onFinalized", {"recordId": record_id, "videoUrl": self._preview})
        logger.info("Finalized %s as library record %s", self._preview, record_id)
        if self._on_finalized:
            self._on_finalized(record_id)
        return record_id

    def new_session(self) -> OrchestratorState:
        """Abandon the current session and start empty."""
        self._cancel_job()
        self._epoch += 1
        self._session.clear()
        self._merger.clear()
        self._set_preview(None, ())
        self._prompt = ""
        self._error = None
        self._apply(Reset())
        return self._state

    async def wait(self) -> OrchestratorState:
        """Wait for the in-flight generation (and any merge it triggers)."""
        task = self._task
        if task is not None:
            if not task.done():
                await asyncio.wait({task})
            if not task.cancelled():
                task.result()
        return self._state

    async def aclose(self) -> None:
        """Cancel polling and release the API client if this controller owns it."""
        task = self._task
        self._cancel_job()
        self._epoch += 1
        if task is not None and not task.done():
            await asyncio.wait({task})
        if self._owns_client:
            await self._client.close()

    # ------------------------------------------------------------ internals

    def _apply(self, event: Event) -> None:
        previous = self._state
        self._state = transition(previous, event)
        logger.debug("%s --%s--> %s", previous.name, type(event).__name__, self._state.name)
        self._push("__onStudioState", self.snapshot())

    def _push(self, name: str, payload: dict[str, Any]) -> None:
        if self._push_event_cb:
            self._push_event_cb(name, payload)

    def _surface_error(self, error: StitchStudioError) -> None:
        self._error = error
        self._push(
            "__onStudioError",
            {"kind": error_kind(error).value, "message": error.message, "details": error.details},
        )

    def _set_preview(
        self,
        url: str | None,
        clips: tuple[ClipResult, ...],
        public_id: str | None = None,
    ) -> None:
        self._preview = url
        self._preview_clips = clips
        self._preview_public_id = public_id
        self._push("__onPreview", {"preview": url, "clipCount": len(clips)})

    def _restore_preview(self) -> None:
        """Recompute the preview after the session shrank."""
        clips = self._session.clips
        if not clips:
            self._set_preview(None, ())
        elif len(clips) == 1:
            self._set_preview(clips[0].url, clips)
        else:
            # Never keep a merge that still contains the popped clip
            found = self._merger.longest_prefix([c.url for c in clips])
            if found is None:
                self._set_preview(clips[0].url, clips[:1])
            else:
                n, result = found
                self._set_preview(result.url, clips[:n], result.public_id)

    def _cancel_job(self) -> None:
        self._poller.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _start_generation(self, prompt: str) -> None:
        epoch = self._epoch
        self._error = None
        try:
            job = await self._submitter.submit(prompt)
        except SubmissionError as e:
            if epoch == self._epoch:
                self._fail(e)
            return
        if epoch != self._epoch:
            logger.info("Dropping job %s; the session was reset during submission", job.id)
            return
        self._apply(JobStarted(job))
        token = self._poller.begin(job)
        self._task = asyncio.create_task(self._run_job(job, token, epoch))

    async def _run_job(self, job: JobHandle, token: PollToken, epoch: int) -> None:
        try:
            url = await self._poller.poll(job, token, on_update=self._on_job_update)
        except APIError as e:
            if token.cancelled or epoch != self._epoch:
                return
            self._poller.cancel()
            self._fail(e)
            return
        if url is None or token.cancelled or epoch != self._epoch:
            return
        self._poller.cancel()
        await self._append_clip(ClipResult(url=url, prompt=job.prompt), epoch)

    def _on_job_update(self, job: JobHandle) -> None:
        self._push("__onJobStatus", job.to_dict())

    async def _append_clip(self, clip: ClipResult, epoch: int) -> None:
        previous = len(self._session)
        stored = self._session.append(clip)
        urls = tuple(self._session.urls)
        if self._merger.should_merge(previous, len(urls)):
            self._apply(ClipGenerated(urls))
            await self._run_merge(urls, epoch)
        else:
            self._set_preview(stored.url, (stored,))
            self._apply(ClipGenerated(urls))

    async def _run_merge(self, urls: tuple[str, ...], epoch: int | None = None) -> None:
        epoch = self._epoch if epoch is None else epoch
        clips = self._session.clips
        try:
            result: StitchResult = await self._merger.merge(urls)
        except MergeFailedError as e:
            if epoch != self._epoch:
                return
            self._surface_error(e)
            preview = self._preview if self._preview is not None else urls[0]
            self._apply(MergeErrored(preview=preview, message=e.message))
            return
        if epoch != self._epoch:
            return
        self._set_preview(result.url, clips, result.public_id)
        self._apply(MergeSucceeded(result.url))

    def _fail(self, error: StitchStudioError) -> None:
        logger.warning("Generation failed: %s", error)
        self._surface_error(error)
        self._apply(GenerationErrored(kind=error_kind(error), message=error.message))

    def _build_record(self) -> VideoRecord:
        clips = self._preview_clips
        if len(clips) == 1:
            return build_clip_record(clips[0], user_id=self._user_id)
        return build_merged_record(
            self._preview or "",
            [c.prompt for c in clips],
            public_id=self._preview_public_id,
            user_id=self._user_id,
        )

    def __repr__(self) -> str:
        return f"ActionController(state={self._state.name}, clips={len(self._session)})"

