"""Automatic stitching of the session clips."""

from __future__ import annotations

from collections.abc import Sequence

from stitch_studio.config.constants import Limits
from stitch_studio.config.logging import get_logger
from stitch_studio.exceptions import MergeFailedError
from stitch_studio.generators.client import StudioAPIClient
from stitch_studio.models.api import StitchResult

logger = get_logger(__name__)


class MergeTrigger:
    """Stitches the whole session whenever it grows past one clip.

    Every merge resubmits the complete ordered URL list. Successful results are
    remembered per URL list so a preview can be restored after the session
    shrinks; the history never replaces a stitch call.
    """

    def __init__(self, client: StudioAPIClient):
        self._client = client
        self._history: dict[tuple[str, ...], StitchResult] = {}

    @staticmethod
    def should_merge(previous_length: int, new_length: int) -> bool:
        """A merge is due when the session grew and now holds at least two clips."""
        return new_length >= Limits.MIN_MERGE_CLIPS and new_length > previous_length

    async def merge(self, urls: Sequence[str]) -> StitchResult:
        """Stitch ``urls`` in order.

        Raises:
            MergeFailedError: If fewer than two URLs are given or the stitch fails.
        """
        key = tuple(urls)
        if len(key) < Limits.MIN_MERGE_CLIPS:
            raise MergeFailedError(f"Need at least {Limits.MIN_MERGE_CLIPS} clips to merge")
        logger.info("Merging %d clips", len(key))
        try:
            result = await self._client.stitch_videos(list(key))
        except MergeFailedError as e:
            logger.warning("Merge of %d clips failed: %s", len(key), e.message)
            raise
        self._history[key] = result
        logger.info("Merged %d clips into %s", len(key), result.url)
        return result

    def longest_prefix(self, urls: Sequence[str]) -> tuple[int, StitchResult] | None:
        """Longest merged URL list that is a prefix of ``urls``.

        Returns:
            The prefix length and its merge result, or None if no merge covers
            only clips from the start of ``urls``.
        """
        key = tuple(urls)
        best: tuple[int, StitchResult] | None = None
        for merged, result in self._history.items():
            n = len(merged)
            if key[:n] == merged and (best is None or n > best[0]):
                best = (n, result)
        return best

    def clear(self) -> None:
        self._history.clear()
