"""Durable video library."""

from stitch_studio.library.compilation import merge_library_videos
from stitch_studio.library.records import build_clip_record, build_merged_record
from stitch_studio.library.storage import VideoLibrary

__all__ = [
    "VideoLibrary",
    "build_clip_record",
    "build_merged_record",
    "merge_library_videos",
]
