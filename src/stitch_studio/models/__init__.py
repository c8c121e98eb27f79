"""Data models for stitch-studio."""

from stitch_studio.models.api import StatusResponse, StitchResult, SubmitResponse
from stitch_studio.models.clip import ClipResult, JobHandle, JobStatus
from stitch_studio.models.library import VideoRecord, VideoStatus

__all__ = [
    "ClipResult",
    "JobHandle",
    "JobStatus",
    "StatusResponse",
    "StitchResult",
    "SubmitResponse",
    "VideoRecord",
    "VideoStatus",
]
