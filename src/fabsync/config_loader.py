"""
Layered config file loading for fabsync.

A config file has a ``paths`` section and a ``logging`` section.  Up to
three files are read (explicit, project, user) and merged key by key
inside each section, so a project file can override ``data_path`` while
inheriting ``backup_dir`` from the user file.  String values may use
``${VAR}`` or ``${VAR:-default}``.

Usage:
    from fabsync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()  # {"paths": {...}, "logging": {...}}
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FABSYNC_CONFIG"
PROJECT_CONFIG_DIR = ".fabsync"
CONFIG_FILE_NAME = "config.yml"
SECTIONS = ("paths", "logging")

_VAR_REF = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<default>.*?))?\}")

_STARTER_CONFIG = """\
# fabsync configuration
#
# Paths can also be set via environment variables:
#   FABSYNC_DATA_PATH, FABSYNC_PROFILE, FABSYNC_BACKUP_DIR, FABSYNC_ITEMS_ROOT
#
# paths:
#   data_path: /shared/Fabrication/Imperial Content/DATABASE
#   active_profile: Global
#   backup_dir: ~/.fabsync/backups
#   items_root: ${FAB_SHARE:-/shared/Fabrication}/Imperial Content/Items
#
# logging:
#   level: INFO
#   file: null
"""


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}`` references in *value*.

    Unset and empty variables both fall back to the default, or ``""``.
    """
    return _VAR_REF.sub(
        lambda m: os.environ.get(m.group("name")) or m.group("default") or "",
        value,
    )


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {key: _interpolate_recursive(val) for key, val in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(val) for val in obj]
    return obj


def _search_path() -> list[Path]:
    """Candidate config files, highest precedence first."""
    candidates = []
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser().resolve())
    candidates.append(Path.cwd() / PROJECT_CONFIG_DIR / CONFIG_FILE_NAME)
    candidates.append(Path.home() / ".config" / "fabsync" / CONFIG_FILE_NAME)
    return candidates


def discover_config_files() -> list[Path]:
    """Existing config files, highest precedence first.

    Order: ``$FABSYNC_CONFIG``, ``./.fabsync/config.yml``,
    ``~/.config/fabsync/config.yml``.
    """
    return [path for path in _search_path() if path.is_file()]


def resolve_config_path() -> Path:
    """The file ``ensure_config`` would use: the first existing config,
    else the project-level location."""
    existing = discover_config_files()
    return existing[0] if existing else _search_path()[-2]


def ensure_config(target: Path | None = None) -> Path:
    """Return the active config file, writing a commented starter if none
    exists (at *target*, or the project-level location)."""
    existing = discover_config_files()
    if existing:
        logger.debug("Using existing config %s", existing[0])
        return existing[0]

    path = target or resolve_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Wrote starter config %s", path)
    return path


def read_config_file(path: Path) -> dict[str, dict[str, Any]]:
    """Parse one config file into its known sections.

    Unknown sections and sections that are not mappings are dropped with
    a warning.  Raises ``yaml.YAMLError`` for malformed YAML.
    """
    with open(path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring %s: expected a mapping, got %s", path, type(data).__name__
        )
        return {}

    sections: dict[str, dict[str, Any]] = {}
    for name, values in data.items():
        if name not in SECTIONS:
            logger.warning("Ignoring unknown section '%s' in %s", name, path)
        elif values is None:
            continue
        elif not isinstance(values, dict):
            logger.warning("Ignoring section '%s' in %s: not a mapping", name, path)
        else:
            sections[name] = _interpolate_recursive(values)
    return sections


def load_hierarchical_config() -> dict[str, Any]:
    """Merge every discovered config file into one raw config dict.

    Lower-precedence files are read first; within a section each key from
    a later file replaces the same key from an earlier one.  Returns ``{}``
    when no file exists.
    """
    merged: dict[str, dict[str, Any]] = {}
    for path in reversed(discover_config_files()):
        logger.debug("Reading config %s", path)
        try:
            sections = read_config_file(path)
        except yaml.YAMLError:
            logger.error("Malformed config file %s", path)
            raise
        for name, values in sections.items():
            merged.setdefault(name, {}).update(values)
    return merged
