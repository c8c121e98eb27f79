"""Application settings loaded from the environment.

Values come from ``STITCH_STUDIO_*`` environment variables. A ``.env`` file in
the working directory is loaded first, so local overrides do not need to be
exported in the shell.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from stitch_studio.config.constants import DEFAULT_API_URL, Timeouts
from stitch_studio.exceptions import ConfigurationError

ENV_PREFIX = "STITCH_STUDIO_"


def _default_library_dir() -> Path:
    return Path.home() / ".stitch-studio" / "library"


class Settings(BaseModel):
    """Runtime configuration for the studio."""

    api_url: str = Field(default=DEFAULT_API_URL, description="Generation/stitch service base URL")
    poll_interval: float = Field(
        default=Timeouts.POLL_INTERVAL, ge=0.0, description="Seconds between status queries"
    )
    request_timeout: float = Field(
        default=Timeouts.HTTP_REQUEST, gt=0.0, description="HTTP timeout in seconds"
    )
    library_dir: Path = Field(default_factory=_default_library_dir)
    user_id: str | None = Field(default=None, description="Owner recorded on library entries")
    log_level: str = Field(default="INFO")

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("api_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``STITCH_STUDIO_*`` variables.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        mapping = {
            "API_URL": "api_url",
            "POLL_INTERVAL": "poll_interval",
            "REQUEST_TIMEOUT": "request_timeout",
            "LIBRARY_DIR": "library_dir",
            "USER_ID": "user_id",
            "LOG_LEVEL": "log_level",
        }
        for suffix, field_name in mapping.items():
            raw = env.get(ENV_PREFIX + suffix)
            if raw:
                values[field_name] = raw
        try:
            return cls(**values)
        except PydanticValidationError as e:
            raise ConfigurationError("Invalid stitch-studio configuration", details=str(e)) from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings, loading ``.env`` on first use."""
    load_dotenv()
    return Settings.from_env()


def clear_settings_cache() -> None:
    """Clear cached settings (used by tests and after env changes)."""
    get_settings.cache_clear()
