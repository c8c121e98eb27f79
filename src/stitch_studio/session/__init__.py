"""Authoring session storage."""

from stitch_studio.session.store import SessionStore

__all__ = ["SessionStore"]
