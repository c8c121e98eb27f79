"""Orchestrator states, events and the pure transition function.

The controller never assigns a state directly; it feeds events through
``transition`` so the whole table can be unit tested without any I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from stitch_studio.exceptions import (
    GenerationFailedError,
    InvalidTransitionError,
    MalformedResultError,
    MergeFailedError,
    NetworkError,
    PersistenceError,
    SubmissionError,
    ValidationError,
)
from stitch_studio.models.clip import JobHandle


class ErrorKind(str, Enum):
    """Category of a surfaced error."""

    VALIDATION = "validation"
    SUBMISSION = "submission"
    NETWORK = "network"
    GENERATION_FAILED = "generation_failed"
    MALFORMED_RESULT = "malformed_result"
    MERGE_FAILED = "merge_failed"
    PERSISTENCE = "persistence"
    UNKNOWN = "unknown"


# Subclasses first: NetworkError is a SubmissionError
_ERROR_KINDS: list[tuple[type[Exception], ErrorKind]] = [
    (ValidationError, ErrorKind.VALIDATION),
    (NetworkError, ErrorKind.NETWORK),
    (SubmissionError, ErrorKind.SUBMISSION),
    (GenerationFailedError, ErrorKind.GENERATION_FAILED),
    (MalformedResultError, ErrorKind.MALFORMED_RESULT),
    (MergeFailedError, ErrorKind.MERGE_FAILED),
    (PersistenceError, ErrorKind.PERSISTENCE),
]


def error_kind(exc: Exception) -> ErrorKind:
    """Classify an exception into an ``ErrorKind``."""
    for cls, kind in _ERROR_KINDS:
        if isinstance(exc, cls):
            return kind
    return ErrorKind.UNKNOWN


# ---------------------------------------------------------------- states


@dataclass(frozen=True)
class Idle:
    """Waiting for a prompt."""

    name = "idle"


@dataclass(frozen=True)
class Generating:
    """A generation job is being submitted (``job`` is None) or polled."""

    job: JobHandle | None = None
    name = "generating"


@dataclass(frozen=True)
class Merging:
    """The stitch service is merging ``urls`` in order."""

    urls: tuple[str, ...]
    name = "merging"


@dataclass(frozen=True)
class Ready:
    """A preview is available; ``merge_error`` marks a degraded preview."""

    preview: str
    merge_error: str | None = None
    name = "ready"

    @property
    def degraded(self) -> bool:
        return self.merge_error is not None


@dataclass(frozen=True)
class Failed:
    """The last generation failed; the session is intact."""

    kind: ErrorKind
    message: str
    name = "failed"


@dataclass(frozen=True)
class Finalized:
    """The preview was persisted; terminal for this authoring session."""

    record_id: str
    preview: str
    name = "finalized"


OrchestratorState = Union[Idle, Generating, Merging, Ready, Failed, Finalized]


# ---------------------------------------------------------------- events


@dataclass(frozen=True)
class Submit:
    """User submitted a prompt."""


@dataclass(frozen=True)
class Recreate:
    """User asked to regenerate the most recent clip."""


@dataclass(frozen=True)
class JobStarted:
    """The service accepted the job."""

    job: JobHandle


@dataclass(frozen=True)
class ClipGenerated:
    """A clip was appended; ``urls`` is the session after the append."""

    urls: tuple[str, ...]


@dataclass(frozen=True)
class GenerationErrored:
    """Submission or polling failed."""

    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class MergeSucceeded:
    url: str


@dataclass(frozen=True)
class MergeErrored:
    """The stitch call failed; ``preview`` is the last known-good preview."""

    preview: str
    message: str


@dataclass(frozen=True)
class RetryMerge:
    urls: tuple[str, ...]


@dataclass(frozen=True)
class AddClip:
    """User wants to append another clip."""


@dataclass(frozen=True)
class Persisted:
    """The preview was written to the video library."""

    record_id: str
    preview: str


@dataclass(frozen=True)
class Reset:
    """A brand-new authoring session starts."""


Event = Union[
    Submit,
    Recreate,
    JobStarted,
    ClipGenerated,
    GenerationErrored,
    MergeSucceeded,
    MergeErrored,
    RetryMerge,
    AddClip,
    Persisted,
    Reset,
]


def _reject(state: OrchestratorState, event: Event) -> InvalidTransitionError:
    return InvalidTransitionError(
        f"Cannot {type(event).__name__} while {state.name}",
        details=repr(state),
    )


def transition(state: OrchestratorState, event: Event) -> OrchestratorState:
    """Return the state that follows ``state`` after ``event``.

    Raises:
        InvalidTransitionError: If ``event`` is not allowed in ``state``.
    """
    if isinstance(event, Reset):
        return Idle()

    if isinstance(state, Idle):
        if isinstance(event, Submit):
            return Generating()

    elif isinstance(state, Generating):
        if isinstance(event, JobStarted) and state.job is None:
            return Generating(job=event.job)
        if isinstance(event, ClipGenerated) and state.job is not None:
            if not event.urls:
                raise _reject(state, event)
            if len(event.urls) == 1:
                return Ready(preview=event.urls[0])
            return Merging(urls=event.urls)
        if isinstance(event, GenerationErrored):
            return Failed(kind=event.kind, message=event.message)

    elif isinstance(state, Merging):
        if isinstance(event, MergeSucceeded):
            return Ready(preview=event.url)
        if isinstance(event, MergeErrored):
            return Ready(preview=event.preview, merge_error=event.message)

    elif isinstance(state, Ready):
        if isinstance(event, Recreate):
            return Generating()
        if isinstance(event, AddClip):
            return Idle()
        if isinstance(event, Persisted):
            return Finalized(record_id=event.record_id, preview=event.preview)
        if isinstance(event, RetryMerge) and state.degraded and len(event.urls) >= 2:
            return Merging(urls=event.urls)

    elif isinstance(state, Failed):
        if isinstance(event, Submit):
            return Generating()
        if isinstance(event, AddClip):
            return Idle()
        if isinstance(event, Persisted):
            return Finalized(record_id=event.record_id, preview=event.preview)

    raise _reject(state, event)
