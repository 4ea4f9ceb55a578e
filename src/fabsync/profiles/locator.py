"""Profile root derivation and sibling-profile discovery.

Fabrication database layout::

    {root}/
      MAP.INI                 master configuration (root marker)
      DATABASE/               Global profile catalog files
      profiles/
        {Name}/
          DATABASE/           named profile catalog files

When a named profile is active its data path is
``{root}/profiles/{Name}/DATABASE``; on Global it is ``{root}/DATABASE``.
The active profile is identified by *name* only: the host's reported data
path does not reliably distinguish Global from a named profile.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from fabsync.catalog.categories import CATALOG_FILE_SUFFIX
from fabsync.errors import ProfileNotFoundError
from fabsync.profiles.models import (
    GLOBAL_PROFILE_NAME,
    ProfileDescriptor,
    is_global_name,
)

logger = logging.getLogger(__name__)

DATA_FOLDER_NAME = "DATABASE"
PROFILES_FOLDER_NAME = "profiles"
ROOT_MARKER_NAME = "MAP.INI"


class ActiveContext(Protocol):
    """Where the host application says we currently are."""

    def current_profile_name(self) -> str | None: ...  # pragma: no cover

    def current_data_path(self) -> Path | None: ...  # pragma: no cover


@dataclass
class StaticContext:
    """An ``ActiveContext`` with fixed values (CLI, tests)."""

    profile_name: str | None = None
    data_path: Path | None = None

    def current_profile_name(self) -> str | None:
        return self.profile_name

    def current_data_path(self) -> Path | None:
        return self.data_path


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def _child_named(parent: Path, name: str, want_dir: bool) -> Path | None:
    """Find a child of *parent* called *name*, ignoring case."""
    exact = parent / name
    if (exact.is_dir() if want_dir else exact.is_file()):
        return exact
    try:
        children = list(parent.iterdir())
    except OSError:
        return None
    for child in children:
        if child.name.lower() != name.lower():
            continue
        if (child.is_dir() if want_dir else child.is_file()):
            return child
    return None


def data_folder(profile_path: Path) -> Path:
    """The ``DATABASE`` folder of a profile (or of the root, for Global)."""
    return _child_named(profile_path, DATA_FOLDER_NAME, True) or (
        profile_path / DATA_FOLDER_NAME
    )


def has_catalog_files(data_path: Path) -> bool:
    """Return ``True`` if *data_path* holds at least one catalog file."""
    try:
        return any(
            p.is_file() and p.suffix.lower() == CATALOG_FILE_SUFFIX
            for p in data_path.iterdir()
        )
    except OSError:
        return False


def is_valid_profile(profile_path: Path) -> bool:
    """A profile folder is valid if its data folder has catalog files."""
    if not profile_path.is_dir():
        return False
    data_path = _child_named(profile_path, DATA_FOLDER_NAME, True)
    return data_path is not None and has_catalog_files(data_path)


def locate_root(any_data_path: Path | str) -> Path:
    """Derive the database root from any profile's data path.

    1. If the path contains a ``profiles`` segment, the root is everything
       before the last such segment (provided it exists).
    2. Otherwise the path is Global's data folder and the root is its
       parent, which should carry ``MAP.INI`` or a ``profiles`` folder.
       Without either marker the parent is still returned.

    Raises:
        ProfileNotFoundError: If *any_data_path* is empty or has no parent.
    """
    if not any_data_path:
        raise ProfileNotFoundError("No data path given")

    full = Path(any_data_path).expanduser().resolve()
    parts = full.parts
    for i in range(len(parts) - 1, 0, -1):
        if parts[i].lower() == PROFILES_FOLDER_NAME:
            root = Path(*parts[:i])
            if root.is_dir():
                return root

    parent = full.parent
    if parent == full:
        raise ProfileNotFoundError(f"Cannot derive a root from {full}")

    if _child_named(parent, ROOT_MARKER_NAME, False) is None and (
        _child_named(parent, PROFILES_FOLDER_NAME, True) is None
    ):
        logger.debug(
            "No root marker next to %s; using parent %s", full, parent
        )
    return parent


# ---------------------------------------------------------------------------
# Locator
# ---------------------------------------------------------------------------


class ProfileLocator:
    """Discover the Global profile and all named siblings.

    Args:
        context: Source of the active profile's name and data path.
    """

    def __init__(self, context: ActiveContext) -> None:
        self.context = context

    def current_profile_name(self) -> str:
        """Active profile name, normalised so Global is always ``"Global"``."""
        name = self.context.current_profile_name()
        if is_global_name(name):
            return GLOBAL_PROFILE_NAME
        return name.strip()  # type: ignore[union-attr]

    def current_data_path(self) -> Path | None:
        return self.context.current_data_path()

    def locate_root(self, any_data_path: Path | str | None = None) -> Path:
        """Root for *any_data_path*, defaulting to the active data path."""
        path = any_data_path or self.current_data_path()
        if not path:
            raise ProfileNotFoundError(
                "The active profile's data path is unknown"
            )
        return locate_root(path)

    def discover_profiles(
        self, root_path: Path | None = None
    ) -> list[ProfileDescriptor]:
        """List Global followed by every valid named profile under *root_path*.

        Named profiles are returned sorted by name.  Folders that cannot be
        read are skipped.

        Raises:
            ProfileNotFoundError: If the root does not exist.
        """
        root = Path(root_path) if root_path else self.locate_root()
        if not root.is_dir():
            raise ProfileNotFoundError(f"Database root not found: {root}")

        active = self.current_profile_name()
        on_global = is_global_name(active)

        profiles = [
            ProfileDescriptor(
                name=GLOBAL_PROFILE_NAME,
                root_path=root,
                data_path=data_folder(root),
                is_current=on_global,
            )
        ]

        profiles_dir = _child_named(root, PROFILES_FOLDER_NAME, True)
        if profiles_dir is None:
            return profiles

        try:
            candidates = sorted(
                (p for p in profiles_dir.iterdir() if p.is_dir()),
                key=lambda p: p.name.lower(),
            )
        except OSError as exc:
            logger.warning("Cannot scan %s: %s", profiles_dir, exc)
            return profiles

        for profile_dir in candidates:
            try:
                if not is_valid_profile(profile_dir):
                    logger.debug("Not a profile: %s", profile_dir)
                    continue
            except OSError as exc:
                logger.warning("Skipping %s: %s", profile_dir, exc)
                continue
            if is_global_name(profile_dir.name):
                logger.warning(
                    "Ignoring named profile folder %s: reserved name",
                    profile_dir,
                )
                continue
            profiles.append(
                ProfileDescriptor(
                    name=profile_dir.name,
                    root_path=profile_dir,
                    data_path=data_folder(profile_dir),
                    is_current=not on_global
                    and profile_dir.name.lower() == active.lower(),
                )
            )

        return profiles

    def find_profile(
        self, name: str, root_path: Path | None = None
    ) -> ProfileDescriptor:
        """Return the discovered profile called *name* (case-insensitive).

        Raises:
            ProfileNotFoundError: If no such profile exists.
        """
        for profile in self.discover_profiles(root_path):
            if profile.name.lower() == name.strip().lower() or (
                profile.is_global and is_global_name(name)
            ):
                return profile
        raise ProfileNotFoundError(f"Profile not found: {name}")
