"""Stitching existing library videos into a new compilation."""

from __future__ import annotations

from stitch_studio.config.constants import Limits
from stitch_studio.config.logging import get_logger
from stitch_studio.exceptions import ValidationError
from stitch_studio.generators.client import StudioAPIClient
from stitch_studio.library.records import build_merged_record
from stitch_studio.library.storage import VideoLibrary
from stitch_studio.models.library import VideoRecord

logger = get_logger(__name__)


async def merge_library_videos(
    library: VideoLibrary,
    client: StudioAPIClient,
    video_ids: list[str],
    user_id: str | None = None,
) -> VideoRecord:
    """Stitch library videos, in selection order, and save the result.

    Args:
        library: Library holding the source videos and receiving the result.
        client: API client used for the stitch call.
        video_ids: Ids of the videos to merge, in the order they should play.
        user_id: Owner of the new record.

    Returns:
        The newly saved compilation record.

    Raises:
        ValidationError: If fewer than two videos are selected or an id repeats.
        VideoNotFoundError: If a selected id is not in the library.
        MergeFailedError: If the stitch call fails.
        PersistenceError: If the result cannot be saved.
    """
    if len(video_ids) < Limits.MIN_MERGE_CLIPS:
        raise ValidationError(f"Select at least {Limits.MIN_MERGE_CLIPS} videos to merge")
    repeated = sorted({v for v in video_ids if video_ids.count(v) > 1})
    if repeated:
        raise ValidationError("Each video can be selected only once", details=", ".join(repeated))
    sources = [library.get_video(video_id) for video_id in video_ids]
    result = await client.stitch_videos([v.video_url for v in sources])
    record = build_merged_record(
        result.url,
        [v.description or v.title for v in sources],
        public_id=result.public_id,
        user_id=user_id,
    )
    library.add_video(record)
    logger.info("Compiled %d library videos into %s", len(sources), record.id)
    return record
