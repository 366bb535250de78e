"""Virtual terminals for testing -- implement the Terminal protocol in-memory.

``VirtualTerminal`` serves scripted input and records every write and mode
switch for assertions.  ``BlockingTerminal`` blocks in ``read_unit`` until
input is pushed from another thread, which is what the asyncio loop sees
with a real terminal.
"""

from __future__ import annotations

import queue
from collections import deque


class VirtualTerminal:
    """In-memory terminal that records all writes for test inspection.

    Also usable as the prompt's output sink.

    Parameters
    ----------
    input:
        Characters returned one by one from ``read_unit``.  Once exhausted,
        ``read_unit`` raises *read_error* if set, else returns ``None``.
    columns / rows:
        Size reported by ``size()``.
    """

    def __init__(
        self,
        input: str = "",
        columns: int = 80,
        rows: int = 24,
        read_error: OSError | None = None,
    ) -> None:
        self._input: deque[str] = deque(input)
        self._columns = columns
        self._rows = rows
        self._buffer: list[str] = []
        self.read_error = read_error
        self.restore_error: OSError | None = None
        self.raw = False
        self.enter_count = 0
        self.restore_count = 0
        self.close_count = 0

    # -- Terminal protocol ---------------------------------------------------

    def enter_raw_mode(self) -> None:
        self.raw = True
        self.enter_count += 1

    def restore_mode(self) -> None:
        self.raw = False
        self.restore_count += 1
        if self.restore_error is not None:
            raise self.restore_error

    def size(self) -> tuple[int, int]:
        return self._columns, self._rows

    def read_unit(self) -> str | None:
        if self._input:
            return self._input.popleft()
        if self.read_error is not None:
            raise self.read_error
        return None

    def close(self) -> None:
        self.close_count += 1

    # -- Output sink -----------------------------------------------------------

    def write(self, data: str) -> None:
        """Append *data* to the internal buffer."""
        self._buffer.append(data)

    def flush(self) -> None:
        """No-op -- the virtual terminal has no underlying stream to flush."""
        pass

    # -- Test helpers ------------------------------------------------------------

    @property
    def output(self) -> str:
        """Return everything written to the terminal as a single string."""
        return "".join(self._buffer)

    def clear_buffer(self) -> None:
        """Discard all recorded output."""
        self._buffer.clear()

    def push_input(self, data: str) -> None:
        self._input.extend(data)

    def resize(self, columns: int, rows: int) -> None:
        self._columns = columns
        self._rows = rows


class BlockingTerminal(VirtualTerminal):
    """Terminal whose ``read_unit`` blocks until :meth:`push_input` is called.

    Reads give up after *timeout* seconds and report end of input, so a
    stray worker thread can never hang the test run.
    """

    def __init__(self, timeout: float = 2.0, **kwargs: object) -> None:
        super().__init__(**kwargs)  # type: ignore[arg-type]
        self._queue: queue.Queue[str] = queue.Queue()
        self._timeout = timeout

    def read_unit(self) -> str | None:
        try:
            return self._queue.get(timeout=self._timeout)
        except queue.Empty:
            return None

    def push_input(self, data: str) -> None:
        for ch in data:
            self._queue.put(ch)
