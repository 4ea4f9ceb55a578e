"""Atomic JSON document persistence.

Manifests, cleanup journals and item files all live next to the data they
describe and may be read by another process at any moment, so every write
goes to a temp file in the same directory followed by ``os.replace()``.
Readers never observe a half-written document.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

from pydantic import BaseModel


def _current_umask() -> int:
    # The umask can only be read by setting it.
    mask = os.umask(0)
    os.umask(mask)
    return mask


def atomic_write_text(path: Path, text: str) -> None:
    """Write *text* to *path* atomically.

    The parent directory must already exist.  The file keeps the mode of
    the file it replaces; a new file gets the umask default rather than
    the owner-only mode of the temp file.  On any failure the temp file is
    removed and the exception propagates; the previous content of *path*
    (if any) is left untouched.
    """
    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        if path.exists():
            shutil.copymode(path, tmp_path)
        else:
            os.chmod(tmp_path, 0o666 & ~_current_umask())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def write_document(path: Path, document: BaseModel) -> None:
    """Serialise a Pydantic document with its JSON aliases and write it."""
    atomic_write_text(
        path, document.model_dump_json(by_alias=True, indent=2) + "\n"
    )
