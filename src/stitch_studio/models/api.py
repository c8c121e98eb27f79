"""Wire models for the generation and stitch services."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SubmitResponse(BaseModel):
    """Response of ``POST /api/generate-video``."""

    model_config = ConfigDict(extra="ignore")
    id: str = Field(min_length=1)
    status: str = "starting"


class StatusResponse(BaseModel):
    """Response of ``GET /api/generate-video/{id}``."""

    model_config = ConfigDict(extra="ignore")
    status: str
    output: list[str] | str | None = None
    logs: str | None = None

    @property
    def output_urls(self) -> list[str]:
        if self.output is None:
            return []
        if isinstance(self.output, str):
            return [self.output] if self.output else []
        return [u for u in self.output if u]


class StitchResult(BaseModel):
    """Response of ``POST /api/stitch-videos``."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    url: str = Field(min_length=1)
    public_id: str | None = None
