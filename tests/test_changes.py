"""Tests for bundled.routing.changes — mtime snapshots."""

from __future__ import annotations

from pathlib import Path

from bundled.routing.changes import ChangeDetector, check, snapshot

from tests.conftest import bump_mtime


class TestCheck:
    def test_first_check_reports_change(self, tmp_path: Path) -> None:
        f = tmp_path / "a.css"
        f.write_text("a")
        changed, snap = check([f], {})
        assert changed
        assert snap == {f: f.stat().st_mtime_ns}

    def test_unchanged(self, tmp_path: Path) -> None:
        f = tmp_path / "a.css"
        f.write_text("a")
        changed, _ = check([f], snapshot([f]))
        assert not changed

    def test_modified(self, tmp_path: Path) -> None:
        f = tmp_path / "a.css"
        f.write_text("a")
        before = snapshot([f])
        bump_mtime(f)
        changed, after = check([f], before)
        assert changed
        assert after[f] != before[f]

    def test_missing_file_is_always_stale(self, tmp_path: Path) -> None:
        f = tmp_path / "gone.css"
        changed, snap = check([f], {f: 0})
        assert changed
        assert snap == {f: 0}

    def test_removed_key_does_not_matter(self, tmp_path: Path) -> None:
        a, b = tmp_path / "a", tmp_path / "b"
        a.write_text("a")
        b.write_text("b")
        changed, _ = check([a], snapshot([a, b]))
        assert not changed

    def test_returns_snapshot_even_without_change(self, tmp_path: Path) -> None:
        f = tmp_path / "a.css"
        f.write_text("a")
        _, snap = check([f], snapshot([f]))
        assert f in snap


class TestChangeDetector:
    def test_baseline_taken_at_construction(self, tmp_path: Path) -> None:
        f = tmp_path / "a.css"
        f.write_text("a")
        detector = ChangeDetector([f])
        assert not detector.poll()

    def test_reports_each_change_once(self, tmp_path: Path) -> None:
        f = tmp_path / "a.css"
        f.write_text("a")
        detector = ChangeDetector([f])
        bump_mtime(f)
        assert detector.poll()
        assert not detector.poll()

    def test_new_file_counts_as_change(self, tmp_path: Path) -> None:
        a, b = tmp_path / "a", tmp_path / "b"
        a.write_text("a")
        b.write_text("b")
        detector = ChangeDetector([a])
        assert detector.poll([a, b])
        assert detector.files == (a, b)

    def test_rebase(self, tmp_path: Path) -> None:
        a, b = tmp_path / "a", tmp_path / "b"
        a.write_text("a")
        b.write_text("b")
        detector = ChangeDetector([a])
        detector.rebase([a, b])
        assert not detector.poll()
        assert set(detector.snapshot) == {a, b}

    def test_deduplicates_files(self, tmp_path: Path) -> None:
        f = tmp_path / "a"
        f.write_text("a")
        assert ChangeDetector([f, f]).files == (f,)
