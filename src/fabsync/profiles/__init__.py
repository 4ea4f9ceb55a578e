"""Profile discovery, manifests and deferred cleanup.

Modules:

- ``models``   -- ``ProfileDescriptor``, ``ManifestDocument``,
  ``PendingCleanup``, ``CopyResult``, ``PushResult``.
- ``locator``  -- ``ProfileLocator``: root derivation and discovery.
- ``manifest`` -- ``ManifestBuilder``: per-profile catalog snapshot.
- ``cleanup``  -- ``CleanupJournal``: durable delete-by-name queue.
- ``sync``     -- ``ProfileSync``: multi-target push over a ``RawCopier``.
"""

from .cleanup import (
    CleanupJournal,
    build_pending_cleanup,
    run_pending_cleanups,
)
from .locator import ProfileLocator, StaticContext, locate_root
from .manifest import ManifestBuilder, load_manifest
from .models import (
    GLOBAL_PROFILE_NAME,
    CopyResult,
    ManifestDocument,
    ManifestEntry,
    PendingCleanup,
    ProfileDescriptor,
    PushResult,
    is_global_name,
)
from .sync import ProfileSync, RawCopier

__all__ = [
    "GLOBAL_PROFILE_NAME",
    "CleanupJournal",
    "CopyResult",
    "ManifestBuilder",
    "ManifestDocument",
    "ManifestEntry",
    "PendingCleanup",
    "ProfileDescriptor",
    "ProfileLocator",
    "ProfileSync",
    "PushResult",
    "RawCopier",
    "StaticContext",
    "build_pending_cleanup",
    "is_global_name",
    "load_manifest",
    "locate_root",
    "run_pending_cleanups",
]
