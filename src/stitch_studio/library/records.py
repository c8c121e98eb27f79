"""Builders for library records created by the studio."""

from __future__ import annotations

import time

from stitch_studio.config.constants import Limits
from stitch_studio.models.clip import ClipResult
from stitch_studio.models.library import VideoRecord


def clip_title(prompt: str) -> str:
    return prompt.strip()[: Limits.TITLE_MAX_CHARS]


def merged_title(clip_count: int) -> str:
    return f"Merged Video ({clip_count} clips)"


def build_clip_record(clip: ClipResult, user_id: str | None = None) -> VideoRecord:
    """Record for a single generated clip."""
    return VideoRecord(
        user_id=user_id,
        video_url=clip.url,
        public_id=f"ai_{int(time.time() * 1000)}",
        title=clip_title(clip.prompt),
        topic="AI Generated",
        tone="Creative",
        description=clip.prompt,
        status="ready",
    )


def build_merged_record(
    video_url: str,
    prompts: list[str],
    public_id: str | None = None,
    user_id: str | None = None,
) -> VideoRecord:
    """Record for a stitched compilation of ``len(prompts)`` clips."""
    return VideoRecord(
        user_id=user_id,
        video_url=video_url,
        public_id=public_id,
        title=merged_title(len(prompts)),
        topic="Compilation",
        tone="Mixed",
        description="\n".join(p for p in prompts if p) or None,
        status="ready",
    )
