"""Runtime configuration for the fabsync CLI.

Reads filesystem locations from CLI args, environment variables, .env
files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    FABSYNC_DATA_PATH: Data folder of the loaded profile (required)
    FABSYNC_PROFILE: Loaded profile name (optional, default: Global)
    FABSYNC_BACKUP_DIR: Backup / legacy journal directory
        (optional, default: ~/.fabsync/backups)
    FABSYNC_ITEMS_ROOT: Content item library root (optional)
    FABSYNC_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_BACKUP_DIR = Path("~/.fabsync/backups")


@dataclass
class Config:
    data_path: Path
    active_profile: str = ""
    backup_dir: Path = DEFAULT_BACKUP_DIR
    items_root: Path | None = None
    debug: bool = False


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Paths are expanded in place.

    Raises:
        ValueError: If the data folder does not exist or a configured path
            is not a directory.
    """
    config.data_path = config.data_path.expanduser()
    config.backup_dir = config.backup_dir.expanduser()
    config.active_profile = config.active_profile.strip()

    if not config.data_path.is_dir():
        raise ValueError(
            f"Data path '{config.data_path}' does not exist or is not a directory"
        )

    if config.backup_dir.exists() and not config.backup_dir.is_dir():
        raise ValueError(
            f"Backup dir '{config.backup_dir}' exists but is not a directory"
        )

    if config.items_root is not None:
        config.items_root = config.items_root.expanduser()
        if not config.items_root.is_dir():
            logger.warning(
                "Items root %s does not exist; source folders will be "
                "recorded as absolute paths",
                config.items_root,
            )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def load_config(
    data_path: str | None = None,
    profile: str | None = None,
    backup_dir: str | None = None,
    items_root: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` first so that
    .env values are visible through ``os.getenv()``.

    Args:
        data_path: Override data folder.
        profile: Override loaded profile name.
        backup_dir: Override backup directory.
        items_root: Override item library root.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Values from the YAML ``paths`` section.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If no data path is configured anywhere, or validation
            fails.
    """
    fb = yaml_fallbacks or {}

    final_data_path = (
        data_path or os.getenv("FABSYNC_DATA_PATH") or fb.get("data_path")
    )
    if not final_data_path:
        raise ValueError(
            "Data path not found. Set FABSYNC_DATA_PATH environment variable, "
            "pass --data-path, or add 'paths.data_path' to config.yml."
        )

    final_profile = (
        profile or os.getenv("FABSYNC_PROFILE") or fb.get("active_profile") or ""
    )
    final_backup = (
        backup_dir
        or os.getenv("FABSYNC_BACKUP_DIR")
        or fb.get("backup_dir")
        or str(DEFAULT_BACKUP_DIR)
    )
    final_items_root = (
        items_root or os.getenv("FABSYNC_ITEMS_ROOT") or fb.get("items_root")
    )

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("FABSYNC_DEBUG")
        final_debug = env_debug if env_debug is not None else False

    config = Config(
        data_path=Path(final_data_path.strip()),
        active_profile=final_profile,
        backup_dir=Path(final_backup.strip()),
        items_root=Path(final_items_root.strip()) if final_items_root else None,
        debug=final_debug,
    )

    validate_config(config)
    return config
