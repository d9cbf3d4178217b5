"""Proplist application settings loaded from environment and ``.env`` files.

Uses :mod:`pydantic_settings` to parse environment variables (and optionally
an ``.env`` file) into a validated settings object.

Every environment variable maps 1-to-1 to a field in :class:`Settings`.  The
field name is the **lowercase** version of the env-var name (e.g.
``MIN_PUBLISH_SCORE`` → ``min_publish_score``).

Typical usage::

    from proplist.core.settings import Settings

    settings = Settings()                         # loads from env + .env
    print(settings.database_path_resolved)
    print(settings.media_root_resolved)
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["Settings"]

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Central application configuration.

    Values are loaded in priority order:

    1. Actual environment variables (highest priority).
    2. ``.env`` file in the working directory.
    3. Field defaults (lowest priority).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    database_path: str = Field(
        default="data/proplist.db",
        description="Path to the SQLite database file (':memory:' allowed).",
    )
    media_root: str = Field(
        default="data/media",
        description="Directory where uploaded media and document blobs are written.",
    )

    # ------------------------------------------------------------------
    # Listing rules
    # ------------------------------------------------------------------
    home_currency: str = Field(
        default="MXN",
        description="Currency applied when a price omits one.",
    )
    min_publish_score: int = Field(
        default=80,
        ge=0,
        le=100,
        description="Minimum completeness score required to publish.",
    )
    block_if_rpp_rejected: bool = Field(
        default=True,
        description="Refuse publishing while the RPP verification is rejected.",
    )

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------
    default_page_size: int = Field(
        default=20,
        ge=1,
        description="Page size used when a list request does not set one.",
    )
    max_page_size: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Largest page size a list request may ask for.",
    )

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    current_user_id: str = Field(
        default="",
        description="Profile id the local auth adapter resolves as the caller.",
    )
    profile_lookup_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts made before a missing profile row is reported.",
    )
    profile_lookup_backoff: float = Field(
        default=0.2,
        ge=0.0,
        description="Seconds to wait between profile lookup attempts.",
    )

    # ------------------------------------------------------------------
    # Runtime flags
    # ------------------------------------------------------------------
    log_level: str = Field(default="INFO", description="Logging level.")
    log_format: str = Field(default="text", description="Log format: 'text' or 'json'.")

    # ------------------------------------------------------------------
    # Field validators
    # ------------------------------------------------------------------

    @field_validator("home_currency")
    @classmethod
    def _validate_home_currency(cls, v: str) -> str:
        allowed = {"MXN", "USD"}
        v_upper = v.strip().upper()
        if v_upper not in allowed:
            raise ValueError(f"home_currency must be one of {allowed}, got {v!r}")
        return v_upper

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got {v!r}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def _validate_log_format(cls, v: str) -> str:
        allowed = {"text", "json"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got {v!r}")
        return v_lower

    # ------------------------------------------------------------------
    # Model validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def _validate_page_sizes(self) -> Settings:
        """Ensure the default page size never exceeds the maximum."""
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) "
                f"> max_page_size ({self.max_page_size})"
            )
        return self

    # ------------------------------------------------------------------
    # Derived helpers
    # ------------------------------------------------------------------

    @property
    def database_path_resolved(self) -> Path | str:
        """Return the database path as a resolved path (``":memory:"`` untouched)."""
        if self.database_path == ":memory:":
            return self.database_path
        return Path(self.database_path).resolve()

    @property
    def media_root_resolved(self) -> Path:
        """Return the media root as a resolved :class:`~pathlib.Path`."""
        return Path(self.media_root).resolve()
