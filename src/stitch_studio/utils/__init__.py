"""Shared utilities."""

from stitch_studio.utils.file_utils import write_atomically, write_json_atomically

__all__ = ["write_atomically", "write_json_atomically"]
