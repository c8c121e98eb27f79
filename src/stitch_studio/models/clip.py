"""Clip and generation job models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    """Lifecycle status of a generation job."""

    STARTING = "starting"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"  # TERMINAL
    FAILED = "failed"  # TERMINAL

    @classmethod
    def parse(cls, raw: str | None) -> "JobStatus":
        """Map a service status string onto the lifecycle.

        ``canceled`` counts as failed; unknown values are treated as still processing.
        """
        value = (raw or "").strip().lower()
        if value in ("canceled", "cancelled"):
            return cls.FAILED
        try:
            return cls(value)
        except ValueError:
            return cls.PROCESSING

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


class ClipResult(BaseModel):
    """One successfully generated clip in an authoring session."""

    model_config = ConfigDict(frozen=True)
    url: str = Field(description="Location of the generated clip")
    prompt: str = Field(description="Prompt that produced the clip")
    sequence_index: int = Field(
        default=-1, description="Position in the session; assigned by the session store"
    )


@dataclass
class JobHandle:
    """Mutable handle for an in-flight generation job.

    Attributes:
        id: Service-side job identifier.
        prompt: Prompt the job was submitted with.
        status: Last status reported by the service.
        output_url: First output URL once the job succeeded.
        logs: Raw log text from the last status response.
    """

    id: str
    prompt: str
    status: JobStatus = JobStatus.STARTING
    output_url: str | None = None
    logs: str | None = None

    @property
    def last_log_line(self) -> str | None:
        if not self.logs:
            return None
        lines = [line for line in self.logs.splitlines() if line.strip()]
        return lines[-1] if lines else None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "jobId": self.id,
            "prompt": self.prompt,
            "status": self.status.value,
            "outputUrl": self.output_url,
            "lastLog": self.last_log_line,
        }
