"""
Settings and configuration for the OCI layout reader.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables on demand.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .media_types import DOCKER_MANIFEST_V2

__all__ = ["Settings", "create_settings_from_env"]

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for reading OCI layout archives.

    Reader Settings:
        manifest_media_type: Media type selected from the index (first match wins)

    Source Settings:
        spool_max_bytes: In-memory threshold before DirectoryBlob spools to disk

    CLI Settings:
        copy_chunk_size: Chunk size in bytes when copying layer streams
        log_level: Logging level name for the CLI
    """
    manifest_media_type: str = DOCKER_MANIFEST_V2
    spool_max_bytes: int = 64 * 1024 * 1024
    copy_chunk_size: int = 1024 * 1024
    log_level: str = "WARNING"

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.manifest_media_type:
            raise ValueError("manifest_media_type is required")

        if self.copy_chunk_size <= 0:
            raise ValueError(f"copy_chunk_size must be positive, got {self.copy_chunk_size}")

        if self.spool_max_bytes < 0:
            raise ValueError(f"spool_max_bytes must be non-negative, got {self.spool_max_bytes}")

        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}. Use one of {', '.join(_LOG_LEVELS)}")

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level.upper())


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - OCI_LAYOUT_MANIFEST_MEDIA_TYPE (default: docker distribution manifest v2)
        - OCI_LAYOUT_SPOOL_MAX_BYTES (default: 67108864)
        - OCI_LAYOUT_COPY_CHUNK_SIZE (default: 1048576)
        - OCI_LAYOUT_LOG_LEVEL (default: WARNING)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If a value cannot be parsed or fails validation

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        if not value:
            return default
        try:
            return int(value)
        except ValueError as e:
            raise ValueError(f"{key} must be an integer, got {value!r}") from e

    return Settings(
        manifest_media_type=os.getenv("OCI_LAYOUT_MANIFEST_MEDIA_TYPE") or DOCKER_MANIFEST_V2,
        spool_max_bytes=get_int("OCI_LAYOUT_SPOOL_MAX_BYTES", 64 * 1024 * 1024),
        copy_chunk_size=get_int("OCI_LAYOUT_COPY_CHUNK_SIZE", 1024 * 1024),
        log_level=os.getenv("OCI_LAYOUT_LOG_LEVEL") or "WARNING",
    )
