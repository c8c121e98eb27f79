"""Video generation job submission and polling."""

from stitch_studio.generators.client import StudioAPIClient
from stitch_studio.generators.poller import PollToken, StatusPoller
from stitch_studio.generators.submitter import JobSubmitter, validate_prompt

__all__ = [
    "JobSubmitter",
    "PollToken",
    "StatusPoller",
    "StudioAPIClient",
    "validate_prompt",
]
