"""Tests for file helpers."""

from testpulse.utils import atomic_write_text, file_lock


class TestAtomicWrite:
    def test_creates_parents_and_writes(self, tmp_path):
        target = tmp_path / "a" / "b" / "out.json"
        atomic_write_text(target, "{}")
        assert target.read_text() == "{}"

    def test_replaces_existing(self, tmp_path):
        target = tmp_path / "out.json"
        target.write_text("old")
        atomic_write_text(target, "new")
        assert target.read_text() == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["out.json"]


class TestFileLock:
    def test_reentrant_across_blocks(self, tmp_path):
        lock = tmp_path / "x.lock"
        with file_lock(lock):
            pass
        with file_lock(lock):
            assert lock.exists()
