"""Durable video library.

Records live in ``<library_dir>/videos.json``; every read-modify-write holds a
``filelock`` so several studio processes can share one library.
"""

from __future__ import annotations

import json
from pathlib import Path

from filelock import FileLock, Timeout
from pydantic import ValidationError as PydanticValidationError

from stitch_studio.config.logging import get_logger
from stitch_studio.config.settings import Settings
from stitch_studio.exceptions import PersistenceError, VideoNotFoundError
from stitch_studio.models.library import VideoRecord
from stitch_studio.utils.file_utils import write_json_atomically

logger = get_logger(__name__)
LOCK_TIMEOUT_SECONDS = 10.0


class VideoLibrary:
    """JSON-file backed store of finalized videos."""

    def __init__(self, root: Path):
        self.root = Path(root).expanduser()

    @classmethod
    def from_settings(cls, settings: Settings) -> "VideoLibrary":
        return cls(settings.library_dir)

    @property
    def index_path(self) -> Path:
        return self.root / "videos.json"

    @property
    def lock_path(self) -> Path:
        return self.root / "videos.lock"

    def _lock(self) -> FileLock:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create library directory {self.root}", str(e)) from e
        return FileLock(self.lock_path, timeout=LOCK_TIMEOUT_SECONDS)

    def _load_unlocked(self) -> list[VideoRecord]:
        """Load all records (caller must hold lock)."""
        if not self.index_path.exists():
            return []
        try:
            data = json.loads(self.index_path.read_text(encoding="utf-8"))
            return [VideoRecord.from_json_dict(item) for item in data.get("videos", [])]
        except (OSError, json.JSONDecodeError, AttributeError, PydanticValidationError) as e:
            raise PersistenceError(f"Video library is unreadable: {self.index_path}", str(e)) from e

    def _save_unlocked(self, records: list[VideoRecord]) -> None:
        """Write all records (caller must hold lock)."""
        try:
            write_json_atomically(
                self.index_path, {"videos": [r.to_json_dict() for r in records]}
            )
        except OSError as e:
            raise PersistenceError(f"Failed to write video library {self.index_path}", str(e)) from e

    def add_video(self, record: VideoRecord) -> str:
        """Insert a record and return its id.

        Raises:
            PersistenceError: If the library cannot be locked, read or written.
        """
        try:
            with self._lock():
                records = self._load_unlocked()
                if any(r.id == record.id for r in records):
                    raise PersistenceError(f"Video '{record.id}' already exists")
                records.append(record)
                self._save_unlocked(records)
        except Timeout as e:
            raise PersistenceError("Video library is locked by another process", str(e)) from e
        logger.info("Saved video %s (%s) to library", record.id, record.title)
        return record.id

    def get_video(self, video_id: str) -> VideoRecord:
        """Look up a record by id.

        Raises:
            VideoNotFoundError: If no record has that id.
        """
        for record in self.list_videos():
            if record.id == video_id:
                return record
        raise VideoNotFoundError(f"Video '{video_id}' not found")

    def list_videos(self) -> list[VideoRecord]:
        """All records, newest first."""
        try:
            with self._lock():
                records = self._load_unlocked()
        except Timeout as e:
            raise PersistenceError("Video library is locked by another process", str(e)) from e
        return sorted(records, key=lambda r: r.created_at, reverse=True)
