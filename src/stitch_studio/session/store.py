"""Ordered clip storage for one authoring session."""

from __future__ import annotations

from collections.abc import Iterator

from stitch_studio.config.logging import get_logger
from stitch_studio.models.clip import ClipResult

logger = get_logger(__name__)


class SessionStore:
    """Append-only sequence of clips; the order is the stitch order.

    ``sequence_index`` of every stored clip equals its position. Entries are
    only ever removed from the end via ``pop_last`` or all at once via ``clear``.
    """

    def __init__(self) -> None:
        self._clips: list[ClipResult] = []

    def __len__(self) -> int:
        return len(self._clips)

    def __iter__(self) -> Iterator[ClipResult]:
        return iter(tuple(self._clips))

    @property
    def clips(self) -> tuple[ClipResult, ...]:
        return tuple(self._clips)

    @property
    def urls(self) -> list[str]:
        """Clip URLs in append order."""
        return [clip.url for clip in self._clips]

    @property
    def last(self) -> ClipResult | None:
        return self._clips[-1] if self._clips else None

    def append(self, clip: ClipResult) -> ClipResult:
        """Add a clip to the end, assigning the next sequence index.

        Returns:
            The stored clip (with its assigned ``sequence_index``).
        """
        stored = clip.model_copy(update={"sequence_index": len(self._clips)})
        self._clips.append(stored)
        logger.debug("Session append #%d: %s", stored.sequence_index, stored.url)
        return stored

    def pop_last(self) -> ClipResult | None:
        """Remove and return the final clip, or None if the session is empty."""
        if not self._clips:
            return None
        clip = self._clips.pop()
        logger.debug("Session pop #%d: %s", clip.sequence_index, clip.url)
        return clip

    def clear(self) -> None:
        """Empty the session (only for starting a brand-new authoring session)."""
        self._clips.clear()
