"""Tests for pi.lineedit.history -- the history store and file rotation."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pi.lineedit.history import (
    DEFAULT_MAX_BACKUPS,
    DEFAULT_MAX_ENTRIES,
    DEFAULT_MAX_FILE_SIZE,
    HistoryConfig,
    HistoryStore,
    RotationPlan,
    default_history_file,
    execute_rotation,
    expand_history_path,
    needs_rotation,
    plan_rotation,
    retained_entries,
)


def file_store(path: Path, **kwargs) -> HistoryStore:
    return HistoryStore(HistoryConfig(file=str(path), **kwargs))


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


class TestHistoryConfig:
    def test_defaults(self) -> None:
        config = HistoryConfig()
        assert config.enabled is True
        assert config.max_entries == 1000
        assert config.file == ""
        assert config.max_file_size == 1024 * 1024
        assert config.max_backups == 3

    def test_invalid_values_fall_back_to_defaults(self) -> None:
        config = HistoryConfig(max_entries=0, max_file_size=-1, max_backups=-2)
        assert config.max_entries == DEFAULT_MAX_ENTRIES
        assert config.max_file_size == DEFAULT_MAX_FILE_SIZE
        assert config.max_backups == DEFAULT_MAX_BACKUPS

    def test_zero_backups_is_kept(self) -> None:
        assert HistoryConfig(max_backups=0).max_backups == 0

    def test_file_path_is_expanded(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        config = HistoryConfig(file="~/hist")
        assert config.file == str(tmp_path / "hist")


class TestPaths:
    def test_expand_empty(self) -> None:
        assert expand_history_path("") == ""

    def test_expand_relative_makes_absolute(self) -> None:
        assert expand_history_path("hist") == os.path.abspath("hist")

    def test_expand_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        assert expand_history_path("~") == str(tmp_path)

    def test_default_file_uses_xdg_config_home(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert default_history_file() == str(tmp_path / "prompt" / "history")

    def test_default_file_falls_back_to_dot_config(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert default_history_file() == str(tmp_path / ".config" / "prompt" / "history")


# ---------------------------------------------------------------------------
# In-memory behaviour
# ---------------------------------------------------------------------------


class TestAppend:
    def test_appends_in_order(self) -> None:
        store = HistoryStore()
        store.append("one")
        store.append("two")
        assert store.entries == ["one", "two"]

    def test_ignores_empty_entry(self) -> None:
        store = HistoryStore()
        store.append("")
        assert len(store) == 0

    def test_ignores_consecutive_duplicate(self) -> None:
        store = HistoryStore()
        store.append("ls")
        store.append("ls")
        store.append("pwd")
        store.append("ls")
        assert store.entries == ["ls", "pwd", "ls"]

    def test_drops_oldest_past_max_entries(self) -> None:
        store = HistoryStore(HistoryConfig(max_entries=3))
        for entry in ("a", "b", "c", "d"):
            store.append(entry)
        assert store.entries == ["b", "c", "d"]

    def test_disabled_store_ignores_everything(self) -> None:
        store = HistoryStore(HistoryConfig(enabled=False))
        store.append("ls")
        store.set_entries(["a", "b"])
        assert store.entries == []
        assert len(store) == 0

    def test_entries_is_a_copy(self) -> None:
        store = HistoryStore()
        store.append("ls")
        store.entries.append("rm -rf /")
        assert store.entries == ["ls"]

    def test_set_entries_trims(self) -> None:
        store = HistoryStore(HistoryConfig(max_entries=2))
        store.set_entries(["a", "b", "c"])
        assert store.entries == ["b", "c"]

    def test_set_entries_collapses_duplicates_and_blanks(self) -> None:
        store = HistoryStore()
        store.set_entries(["a", "a", "", "b", "b", "a"])
        assert store.entries == ["a", "b", "a"]

    def test_clear(self) -> None:
        store = HistoryStore()
        store.set_entries(["a", "b"])
        store.clear()
        assert store.entries == []


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


class TestLoadSave:
    def test_missing_file_loads_empty(self, tmp_path: Path) -> None:
        store = file_store(tmp_path / "nope")
        store.load()
        assert store.entries == []

    def test_load_strips_and_skips_blank_lines(self, tmp_path: Path) -> None:
        path = tmp_path / "history"
        path.write_text("  ls  \n\n\npwd\n   \ngit status\n", encoding="utf-8")
        store = file_store(path)
        store.load()
        assert store.entries == ["ls", "pwd", "git status"]

    def test_load_trims_to_max_entries(self, tmp_path: Path) -> None:
        path = tmp_path / "history"
        path.write_text("a\nb\nc\nd\n", encoding="utf-8")
        store = file_store(path, max_entries=2)
        store.load()
        assert store.entries == ["c", "d"]

    def test_save_creates_parent_directories(self, tmp_path: Path) -> None:
        path = tmp_path / "deep" / "er" / "history"
        store = file_store(path)
        store.append("ls")
        store.append("pwd")
        store.save()
        assert path.read_text(encoding="utf-8") == "ls\npwd\n"

    def test_saved_history_loads_back(self, tmp_path: Path) -> None:
        path = tmp_path / "history"
        store = file_store(path)
        store.set_entries(["echo héllo", "ls -la"])
        store.save()

        reloaded = file_store(path)
        reloaded.load()
        assert reloaded.entries == ["echo héllo", "ls -la"]

    def test_load_replaces_entries_in_memory(self, tmp_path: Path) -> None:
        path = tmp_path / "history"
        path.write_text("a\nb\n", encoding="utf-8")
        store = file_store(path)
        store.append("stale")
        store.load()
        store.load()
        assert store.entries == ["a", "b"]

    def test_load_collapses_consecutive_duplicates(self, tmp_path: Path) -> None:
        path = tmp_path / "history"
        store = file_store(path)
        store.append("x\nx")
        store.append("y")
        store.save()

        reloaded = file_store(path)
        reloaded.load()
        assert reloaded.entries == ["x", "y"]

    def test_memory_only_store_writes_nothing(self, tmp_path: Path) -> None:
        store = HistoryStore()
        store.append("ls")
        store.save()
        assert list(tmp_path.iterdir()) == []

    def test_load_error_raises_oserror(self, tmp_path: Path) -> None:
        path = tmp_path / "history"
        path.mkdir()
        with pytest.raises(OSError):
            file_store(path).load()

    def test_save_error_raises_oserror(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        store = file_store(blocker / "history")
        store.append("ls")
        with pytest.raises(OSError):
            store.save()


# ---------------------------------------------------------------------------
# Rotation policy
# ---------------------------------------------------------------------------


class TestRotationPolicy:
    def test_small_histories_are_kept_whole(self) -> None:
        entries = [str(i) for i in range(150)]
        assert retained_entries(entries) == entries

    def test_large_histories_keep_newer_half(self) -> None:
        entries = [str(i) for i in range(300)]
        assert retained_entries(entries) == entries[150:]

    def test_needs_rotation(self) -> None:
        assert needs_rotation(10, 10) is True
        assert needs_rotation(9, 10) is False

    def test_no_plan_below_limit(self, tmp_path: Path) -> None:
        config = HistoryConfig(max_file_size=100)
        assert plan_rotation(tmp_path / "h", ["a"], 99, config) is None

    def test_plan_with_backups(self, tmp_path: Path) -> None:
        config = HistoryConfig(max_file_size=10, max_backups=2)
        plan = plan_rotation(tmp_path / "h", ["a", "b"], 10, config)
        assert plan == RotationPlan(tmp_path / "h", 2, ("a", "b"))
        assert plan.backup_path(1) == tmp_path / "h.1"

    def test_plan_without_backups_truncates(self, tmp_path: Path) -> None:
        config = HistoryConfig(max_file_size=10, max_backups=0)
        plan = plan_rotation(tmp_path / "h", ["a"], 50, config)
        assert plan is not None
        assert plan.backups == 0


# ---------------------------------------------------------------------------
# Rotation on disk
# ---------------------------------------------------------------------------


class TestRotation:
    def test_execute_shifts_backups(self, tmp_path: Path) -> None:
        path = tmp_path / "h"
        path.write_text("current\n")
        (tmp_path / "h.1").write_text("one\n")
        (tmp_path / "h.2").write_text("two\n")

        execute_rotation(RotationPlan(path, 2, ("kept",)))

        assert path.read_text() == "kept\n"
        assert (tmp_path / "h.1").read_text() == "current\n"
        assert (tmp_path / "h.2").read_text() == "one\n"
        assert not (tmp_path / "h.3").exists()

    def test_execute_truncates_without_backups(self, tmp_path: Path) -> None:
        path = tmp_path / "h"
        path.write_text("lots of history\n")
        execute_rotation(RotationPlan(path, 0))
        assert path.read_text() == ""
        assert sorted(p.name for p in tmp_path.iterdir()) == ["h"]

    def test_backup_count_never_exceeded(self, tmp_path: Path) -> None:
        path = tmp_path / "history"
        store = file_store(path, max_file_size=10, max_backups=2)
        for i in range(6):
            store.append(f"command number {i}")
            store.save()
            files = sorted(p.name for p in tmp_path.iterdir())
            assert len(files) <= 3
            assert "history" in files

            reloaded = file_store(path)
            reloaded.load()
            assert reloaded.entries[-1] == f"command number {i}"

    def test_rotation_keeps_newer_half_in_memory(self, tmp_path: Path) -> None:
        path = tmp_path / "history"
        store = file_store(path, max_file_size=10, max_backups=1)
        store.set_entries([f"cmd {i}" for i in range(300)])
        store.save()
        store.save()

        assert len(store) == 150
        assert store.entries[0] == "cmd 150"
        assert path.read_text().splitlines() == store.entries
        assert len((tmp_path / "history.1").read_text().splitlines()) == 300

    def test_zero_backups_rewrites_in_place(self, tmp_path: Path) -> None:
        path = tmp_path / "history"
        store = file_store(path, max_file_size=10, max_backups=0)
        store.set_entries(["first command", "second command"])
        store.save()
        store.append("third command")
        store.save()
        assert sorted(p.name for p in tmp_path.iterdir()) == ["history"]
        assert path.read_text().splitlines() == ["first command", "second command", "third command"]
