"""Video library record model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, Field

VideoStatus = Literal["ready", "processing", "failed"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VideoRecord(BaseModel):
    """A durable entry in the video library."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str | None = None
    video_url: str = Field(min_length=1)
    public_id: str | None = None
    title: str = ""
    topic: str | None = None
    tone: str | None = None
    description: str | None = None
    status: VideoStatus = "ready"
    created_at: datetime = Field(default_factory=_utcnow)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_json_dict(cls, data: dict[str, Any]) -> "VideoRecord":
        return cls.model_validate(data)
