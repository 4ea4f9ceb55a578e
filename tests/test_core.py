"""Tests for document persistence and progress helpers."""

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from fabsync.core import (
    ProgressEvent,
    ProgressReporter,
    atomic_write_text,
    is_cancelled,
    write_document,
)
from fabsync.profiles.models import ManifestEntry


class TestAtomicWrite:
    """Tests for atomic_write_text() and write_document()."""

    def test_writes_and_replaces(self, tmp_path: Path):
        path = tmp_path / "doc.json"
        atomic_write_text(path, "first")
        atomic_write_text(path, "second")
        assert path.read_text(encoding="utf-8") == "second"
        assert [p.name for p in tmp_path.iterdir()] == ["doc.json"]

    def test_failure_keeps_previous_content(self, tmp_path: Path):
        path = tmp_path / "doc.json"
        path.write_text("original", encoding="utf-8")
        with patch("fabsync.core.jsonio.os.replace", side_effect=OSError("busy")):
            with pytest.raises(OSError, match="busy"):
                atomic_write_text(path, "new")
        assert path.read_text(encoding="utf-8") == "original"
        # No temp files left behind
        assert [p.name for p in tmp_path.iterdir()] == ["doc.json"]

    def test_missing_parent_raises(self, tmp_path: Path):
        with pytest.raises(OSError):
            atomic_write_text(tmp_path / "no" / "doc.json", "x")

    @pytest.mark.skipif(os.name == "nt", reason="POSIX file modes")
    def test_replacement_keeps_existing_mode(self, tmp_path: Path):
        path = tmp_path / "Material.MAP"
        path.write_text("old", encoding="utf-8")
        path.chmod(0o644)
        atomic_write_text(path, "new")
        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    @pytest.mark.skipif(os.name == "nt", reason="POSIX file modes")
    def test_new_file_gets_umask_default(self, tmp_path: Path):
        mask = os.umask(0o022)
        try:
            path = tmp_path / "new.json"
            atomic_write_text(path, "x")
        finally:
            os.umask(mask)
        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    def test_write_document_uses_aliases(self, tmp_path: Path):
        path = tmp_path / "entry.json"
        write_document(path, ManifestEntry(name="Steel", group="Acme"))
        text = path.read_text(encoding="utf-8")
        assert text.endswith("\n")
        assert ManifestEntry.model_validate_json(text) == ManifestEntry(
            name="Steel", group="Acme"
        )


class TestProgress:
    """Tests for ProgressEvent, ProgressReporter and is_cancelled()."""

    @pytest.mark.parametrize(
        "current,total,expected",
        [(0, 4, 0.0), (1, 4, 25.0), (4, 4, 100.0), (0, 0, 0.0)],
    )
    def test_percent_complete(self, current, total, expected):
        assert ProgressEvent(current, total, "").percent_complete == expected

    def test_reporter_without_callback(self):
        ProgressReporter().report(1, 2, "ignored")  # should not raise

    def test_reporter_forwards_events(self):
        events = []
        ProgressReporter(events.append).report(1, 2, "half")
        assert events == [ProgressEvent(1, 2, "half")]

    def test_is_cancelled(self):
        assert is_cancelled(None) is False
        assert is_cancelled(lambda: False) is False
        assert is_cancelled(lambda: True) is True
