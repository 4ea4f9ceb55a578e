"""Tests for multi-target push orchestration."""

from __future__ import annotations

from pathlib import Path

from fabsync.catalog.store import InMemoryCatalogStore
from fabsync.profiles.cleanup import CLEANUP_FILE_NAME, CleanupJournal
from fabsync.profiles.manifest import ManifestBuilder
from fabsync.profiles.models import CopyResult, ProfileDescriptor
from fabsync.profiles.sync import ProfileSync


class FakeCopier:
    """Records calls; fails for targets named in *fail*."""

    def __init__(self, fail: tuple[str, ...] = (), raise_for: str = ""):
        self.fail = fail
        self.raise_for = raise_for
        self.calls: list[tuple[str, Path, list[str]]] = []

    def copy_with_backup(self, source_profile, target_data_path, selected_categories):
        self.calls.append(
            (source_profile.name, target_data_path, list(selected_categories))
        )
        name = Path(target_data_path).parent.name
        if name == self.raise_for:
            raise OSError("share unreachable")
        if name in self.fail:
            return CopyResult(success=False, message="file locked")
        return CopyResult(
            success=True,
            message="copied",
            copied_files=["Material.MAP"],
        )


def _profile(root: Path, name: str) -> ProfileDescriptor:
    data = root / name / "DATABASE"
    data.mkdir(parents=True, exist_ok=True)
    return ProfileDescriptor(name=name, root_path=root / name, data_path=data)


def _source_with_manifest(tmp_path: Path) -> ProfileDescriptor:
    source = _profile(tmp_path, "Source")
    catalog = InMemoryCatalogStore({"Materials": ["Steel", "Copper", "Brass"]})
    ManifestBuilder(catalog).generate(source.data_path, "Source")
    return source


class TestProfileSyncPush:
    """Tests for ProfileSync.push()."""

    def test_copies_to_every_target(self, tmp_path: Path):
        source = _profile(tmp_path, "Source")
        targets = [_profile(tmp_path, "A"), _profile(tmp_path, "B")]
        copier = FakeCopier()
        sync = ProfileSync(copier, CleanupJournal(None, tmp_path / "bk"))

        results = sync.push(source, targets, ["Materials"])

        assert [r.target for r in results] == ["A", "B"]
        assert all(r.success for r in results)
        assert [c[1] for c in copier.calls] == [t.data_path for t in targets]

    def test_source_is_skipped(self, tmp_path: Path):
        source = _profile(tmp_path, "Source")
        copier = FakeCopier()
        sync = ProfileSync(copier, CleanupJournal(None, tmp_path / "bk"))
        results = sync.push(source, [source, _profile(tmp_path, "A")], ["Materials"])
        assert [r.target for r in results] == ["A"]

    def test_one_journal_per_target(self, tmp_path: Path):
        source = _source_with_manifest(tmp_path)
        targets = [_profile(tmp_path, "A"), _profile(tmp_path, "B")]
        journal = CleanupJournal(None, tmp_path / "bk")
        sync = ProfileSync(FakeCopier(), journal)

        results = sync.push(
            source, targets, ["Materials"], {"Materials": ["Steel"]}
        )

        for target, result in zip(targets, results):
            assert result.cleanup_items == 2
            assert result.cleanup_path == str(target.data_path / CLEANUP_FILE_NAME)
            pending = journal.load(target.data_path)
            assert pending.items_to_delete == {"Materials": ["Copper", "Brass"]}
            assert pending.profile_name == "Source"
        assert not journal.has_pending()

    def test_failed_copy_writes_no_journal(self, tmp_path: Path):
        source = _source_with_manifest(tmp_path)
        targets = [_profile(tmp_path, "A"), _profile(tmp_path, "B")]
        journal = CleanupJournal(None, tmp_path / "bk")
        sync = ProfileSync(FakeCopier(fail=("A",)), journal)

        results = sync.push(
            source, targets, ["Materials"], {"Materials": ["Steel"]}
        )

        assert not results[0].success
        assert results[0].copy_result.message == "file locked"
        assert not journal.has_pending(targets[0].data_path)
        assert journal.has_pending(targets[1].data_path)

    def test_copier_exception_is_contained(self, tmp_path: Path):
        source = _profile(tmp_path, "Source")
        targets = [_profile(tmp_path, "A"), _profile(tmp_path, "B")]
        sync = ProfileSync(
            FakeCopier(raise_for="A"), CleanupJournal(None, tmp_path / "bk")
        )
        results = sync.push(source, targets, ["Materials"])
        assert not results[0].success
        assert "share unreachable" in results[0].copy_result.message
        assert results[1].success

    def test_keep_list_for_uncopied_category_is_ignored(self, tmp_path: Path):
        source = _source_with_manifest(tmp_path)
        target = _profile(tmp_path, "A")
        journal = CleanupJournal(None, tmp_path / "bk")
        sync = ProfileSync(FakeCopier(), journal)
        results = sync.push(
            source, [target], ["Specifications"], {"Materials": ["Steel"]}
        )
        assert results[0].cleanup_path is None
        assert not journal.has_pending(target.data_path)

    def test_missing_source_manifest_skips_cleanup(self, tmp_path: Path):
        source = _profile(tmp_path, "Source")
        target = _profile(tmp_path, "A")
        journal = CleanupJournal(None, tmp_path / "bk")
        results = ProfileSync(FakeCopier(), journal).push(
            source, [target], ["Materials"], {"Materials": ["Steel"]}
        )
        assert results[0].success
        assert not journal.has_pending(target.data_path)

    def test_cancellation_stops_before_next_target(self, tmp_path: Path):
        source = _profile(tmp_path, "Source")
        targets = [_profile(tmp_path, n) for n in ("A", "B", "C")]
        copier = FakeCopier()
        sync = ProfileSync(copier, CleanupJournal(None, tmp_path / "bk"))
        results = sync.push(
            source,
            targets,
            ["Materials"],
            should_cancel=lambda: len(copier.calls) >= 1,
        )
        assert [r.target for r in results] == ["A"]

    def test_progress_events(self, tmp_path: Path):
        source = _profile(tmp_path, "Source")
        events = []
        sync = ProfileSync(
            FakeCopier(),
            CleanupJournal(None, tmp_path / "bk"),
            on_progress=events.append,
        )
        sync.push(source, [_profile(tmp_path, "A")], ["Materials"])
        assert events[0].current == 0
        assert events[-1].message == "Push complete."
        assert events[-1].percent_complete == 100
