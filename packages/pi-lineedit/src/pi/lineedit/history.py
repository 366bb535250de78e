"""Command history with an optional backing file and size-based rotation.

The file holds one entry per line, oldest first.  When it grows past
``max_file_size`` it is rotated into numbered backups (``history.1`` is the
newest backup) before the next save.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 1000
DEFAULT_MAX_FILE_SIZE = 1024 * 1024
DEFAULT_MAX_BACKUPS = 3

# Rotation keeps the newer half of the entries, unless that would be fewer
# than this many, in which case it keeps everything.
MIN_RETAINED_ENTRIES = 100


def default_history_file() -> str:
    """``$XDG_CONFIG_HOME/prompt/history``, falling back to ``~/.config``."""
    config_dir = os.environ.get("XDG_CONFIG_HOME")
    if not config_dir:
        try:
            config_dir = str(Path.home() / ".config")
        except RuntimeError:
            return ""
    return str(Path(config_dir) / "prompt" / "history")


def expand_history_path(path: str) -> str:
    """Expand a leading ``~`` and make *path* absolute.  Empty stays empty."""
    if not path:
        return ""
    return os.path.abspath(os.path.expanduser(path))


@dataclass
class HistoryConfig:
    """History settings.

    ``file`` empty means memory-only history.  Non-positive sizes fall back
    to the defaults, a negative ``max_backups`` to 3.
    """

    enabled: bool = True
    max_entries: int = DEFAULT_MAX_ENTRIES
    file: str = ""
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_backups: int = DEFAULT_MAX_BACKUPS

    def __post_init__(self) -> None:
        if self.max_entries <= 0:
            self.max_entries = DEFAULT_MAX_ENTRIES
        if self.max_file_size <= 0:
            self.max_file_size = DEFAULT_MAX_FILE_SIZE
        if self.max_backups < 0:
            self.max_backups = DEFAULT_MAX_BACKUPS
        self.file = expand_history_path(os.fspath(self.file))


# ---------------------------------------------------------------------------
# Rotation policy (pure) and executor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RotationPlan:
    """What a rotation will do to the files on disk.

    ``backups == 0`` means truncate the main file instead of keeping backups.
    """

    path: Path
    backups: int
    retained: tuple[str, ...] = field(default_factory=tuple)

    def backup_path(self, index: int) -> Path:
        return self.path.with_name(f"{self.path.name}.{index}")


def retained_entries(entries: Sequence[str]) -> list[str]:
    keep = len(entries) // 2
    if keep < MIN_RETAINED_ENTRIES:
        return list(entries)
    return list(entries[len(entries) - keep:])


def needs_rotation(size: int, max_size: int) -> bool:
    return size >= max_size


def plan_rotation(
    path: str | os.PathLike[str],
    entries: Sequence[str],
    size: int,
    config: HistoryConfig,
) -> RotationPlan | None:
    """Return the rotation to perform for a file of *size* bytes, if any."""
    if not needs_rotation(size, config.max_file_size):
        return None
    if config.max_backups == 0:
        return RotationPlan(Path(path), 0, tuple(entries))
    return RotationPlan(Path(path), config.max_backups, tuple(retained_entries(entries)))


def execute_rotation(plan: RotationPlan) -> None:
    """Apply *plan*.  Any filesystem error propagates as ``OSError``."""
    if plan.backups == 0:
        logger.debug("Truncating history file %s", plan.path)
        os.truncate(plan.path, 0)
        return

    oldest = plan.backup_path(plan.backups)
    if oldest.exists():
        oldest.unlink()
    for i in range(plan.backups - 1, 0, -1):
        src = plan.backup_path(i)
        if src.exists():
            src.rename(plan.backup_path(i + 1))

    plan.path.rename(plan.backup_path(1))
    _write_entries(plan.path, plan.retained)
    logger.debug(
        "Rotated history file %s (%d backups, %d entries kept)",
        plan.path, plan.backups, len(plan.retained),
    )


def _collapse(entries: Iterable[str]) -> list[str]:
    """Drop empty entries and consecutive duplicates, keeping order."""
    result: list[str] = []
    for entry in entries:
        if entry and (not result or result[-1] != entry):
            result.append(entry)
    return result


def _write_entries(path: Path, entries: Iterable[str]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        for entry in entries:
            f.write(entry)
            f.write("\n")


# ---------------------------------------------------------------------------
# HistoryStore
# ---------------------------------------------------------------------------


class HistoryStore:
    """Ordered history entries, most recent last."""

    def __init__(self, config: HistoryConfig | None = None) -> None:
        self.config = config if config is not None else HistoryConfig()
        self._entries: list[str] = []

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @property
    def path(self) -> Path | None:
        return Path(self.config.file) if self.config.file else None

    @property
    def entries(self) -> list[str]:
        if not self.enabled:
            return []
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries) if self.enabled else 0

    def append(self, entry: str) -> None:
        if not self.enabled or not entry:
            return
        if self._entries and self._entries[-1] == entry:
            return
        self._entries.append(entry)
        self._trim()

    def set_entries(self, entries: Iterable[str]) -> None:
        if not self.enabled:
            return
        self._entries = _collapse(entries)
        self._trim()

    def clear(self) -> None:
        if self.enabled:
            self._entries = []

    def load(self) -> None:
        """Read the backing file, if any.  A missing file is not an error.

        Replaces the entries held in memory.
        """
        path = self.path
        if not self.enabled or path is None:
            return
        try:
            with open(path, encoding="utf-8") as f:
                lines = [line.strip() for line in f]
        except FileNotFoundError:
            logger.debug("No history file at %s", path)
            return
        self._entries = _collapse(lines)
        self._trim()
        logger.debug("Loaded %d history entries from %s", len(self._entries), path)

    def save(self) -> None:
        """Write all entries to the backing file, rotating it first if it is too big."""
        path = self.path
        if not self.enabled or path is None:
            return

        path.parent.mkdir(mode=0o750, parents=True, exist_ok=True)

        try:
            size = path.stat().st_size
        except FileNotFoundError:
            size = None
        if size is not None:
            plan = plan_rotation(path, self._entries, size, self.config)
            if plan is not None:
                execute_rotation(plan)
                self._entries = list(plan.retained)

        _write_entries(path, self._entries)

    def _trim(self) -> None:
        excess = len(self._entries) - self.config.max_entries
        if excess > 0:
            del self._entries[:excess]
