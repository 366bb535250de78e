"""Terminal abstraction for raw-mode stdin/stdout interaction.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal``
implementation that switches the controlling terminal into raw mode and reads
one character at a time from stdin.
"""

from __future__ import annotations

import codecs
import logging
import os
import sys
import termios
import tty
from typing import Protocol, TextIO

logger = logging.getLogger(__name__)

DEFAULT_SIZE = (80, 24)


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface the prompt needs from a terminal driver."""

    def enter_raw_mode(self) -> None: ...

    def restore_mode(self) -> None: ...

    def size(self) -> tuple[int, int]:
        """Return ``(columns, rows)``."""
        ...

    def read_unit(self) -> str | None:
        """Block until one character is available; ``None`` at end of input."""
        ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Concrete terminal backed by the process's stdin and stdout.

    Raw mode is managed via :mod:`tty` and :mod:`termios`.  Input is decoded
    as UTF-8 one byte at a time, so a multi-byte character is returned as a
    single unit.  The terminal also acts as an output sink; when
    ``PI_LINEEDIT_WRITE_LOG`` is set every write is appended to that file.
    """

    def __init__(self, stdin_fd: int | None = None, stdout: TextIO | None = None) -> None:
        self._stdin_fd = stdin_fd if stdin_fd is not None else sys.stdin.fileno()
        self._stdout = stdout if stdout is not None else sys.stdout
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending: list[str] = []
        self._original_termios: list | None = None
        self._closed = False
        self._write_log_path: str = os.environ.get("PI_LINEEDIT_WRITE_LOG", "")

    # -- mode -----------------------------------------------------------------

    @property
    def is_raw(self) -> bool:
        return self._original_termios is not None

    def enter_raw_mode(self) -> None:
        """Save the current terminal attributes and switch to raw mode."""
        if self._original_termios is not None:
            return
        try:
            self._original_termios = termios.tcgetattr(self._stdin_fd)
            tty.setraw(self._stdin_fd)
        except termios.error as e:
            self._original_termios = None
            raise OSError(*e.args) from e

    def restore_mode(self) -> None:
        """Restore the attributes saved by :meth:`enter_raw_mode`, once."""
        saved = self._original_termios
        if saved is None:
            return
        self._original_termios = None
        try:
            termios.tcsetattr(self._stdin_fd, termios.TCSADRAIN, saved)
        except termios.error as e:
            raise OSError(*e.args) from e

    # -- size -----------------------------------------------------------------

    def size(self) -> tuple[int, int]:
        try:
            size = os.get_terminal_size(self._stdout.fileno())
        except (ValueError, OSError):
            return DEFAULT_SIZE
        if size.columns <= 0 or size.lines <= 0:
            return DEFAULT_SIZE
        return size.columns, size.lines

    # -- input ----------------------------------------------------------------

    def read_unit(self) -> str | None:
        while not self._pending:
            raw = os.read(self._stdin_fd, 1)
            if not raw:
                tail = self._decoder.decode(b"", final=True)
                if tail:
                    self._pending.extend(tail)
                    break
                return None
            self._pending.extend(self._decoder.decode(raw))
        return self._pending.pop(0)

    # -- output ---------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write data to stdout and optionally to the write log."""
        self._stdout.write(data)

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a", encoding="utf-8") as f:
                    f.write(data)
            except OSError:
                logger.debug("Could not append to write log %s", self._write_log_path)

    def flush(self) -> None:
        self._stdout.flush()

    # -- lifecycle --------------------------------------------------------------

    def close(self) -> None:
        """Restore the terminal mode.  Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.restore_mode()
