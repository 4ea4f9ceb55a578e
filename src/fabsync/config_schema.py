"""Unified configuration schema for fabsync.

Pydantic models for the YAML config file, with one section for filesystem
locations and one for logging.  Every field is optional so that env vars
and CLI arguments can supply values instead.

Usage:
    from fabsync.config_schema import build_config

    unified = build_config(load_hierarchical_config())
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class PathsConfig(BaseModel):
    """Filesystem locations.

    Attributes:
        data_path: Data folder of the loaded profile.
        active_profile: Name of the loaded profile (``Global`` or empty for
            the default one).
        backup_dir: Shared directory for backups and the legacy cleanup
            journal.
        items_root: Root of the content item library.
    """

    data_path: str | None = Field(
        default=None, description="Loaded profile's data folder"
    )
    active_profile: str | None = Field(
        default=None, description="Loaded profile name"
    )
    backup_dir: str | None = Field(
        default=None, description="Backup and legacy journal directory"
    )
    items_root: str | None = Field(
        default=None, description="Content item library root"
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


class UnifiedConfig(BaseModel):
    """Top-level configuration; ``UnifiedConfig()`` is always valid."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Build a ``UnifiedConfig`` from ``load_hierarchical_config()`` output.

    Missing sections get defaults.
    """
    if not raw_data:
        return UnifiedConfig()
    return UnifiedConfig(**raw_data)
