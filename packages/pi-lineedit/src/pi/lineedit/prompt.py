"""Session controller: reads key presses, edits the buffer and redraws.

A :class:`Prompt` owns one buffer, one history store and one renderer.  Input
is pushed in one unit at a time through :meth:`Prompt.feed`; :meth:`Prompt.run`
and :meth:`Prompt.run_async` are loops that read units from the terminal and
feed them until the session ends.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import enum
import logging
import sys
import threading
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from pi.lineedit.buffer import EditBuffer
from pi.lineedit.completion import Completer, CompletionEngine
from pi.lineedit.fuzzy import history_searcher
from pi.lineedit.history import DEFAULT_MAX_ENTRIES, HistoryConfig, HistoryStore
from pi.lineedit.keys import ESC, Action, EscapeRecognizer, KeyMap, ResolvedKey, is_printable
from pi.lineedit.renderer import SHOW_CURSOR, Output, Renderer
from pi.lineedit.terminal import ProcessTerminal, Terminal
from pi.lineedit.theme import ColorScheme, theme_default

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass
class PromptConfig:
    """Prompt settings.  ``key_map=None`` selects the default bindings."""

    completer: Completer | None = None
    history: HistoryConfig = field(default_factory=HistoryConfig)
    color_scheme: ColorScheme = field(default_factory=theme_default)
    key_map: KeyMap | None = None
    multiline: bool = False


def memory_history(max_entries: int = DEFAULT_MAX_ENTRIES) -> HistoryConfig:
    return HistoryConfig(enabled=True, max_entries=max_entries)


def file_history(path: str, max_entries: int = DEFAULT_MAX_ENTRIES) -> HistoryConfig:
    return HistoryConfig(enabled=True, max_entries=max_entries, file=path)


# ---------------------------------------------------------------------------
# Session outcome
# ---------------------------------------------------------------------------


class SessionState(enum.Enum):
    RUNNING = "running"
    SUBMITTED = "submitted"
    INTERRUPTED = "interrupted"
    END_OF_INPUT = "end_of_input"
    ERRORED = "errored"


@dataclass(frozen=True)
class SessionResult:
    state: SessionState
    text: str = ""

    @property
    def submitted(self) -> bool:
        return self.state is SessionState.SUBMITTED


# ---------------------------------------------------------------------------
# Reverse history search
# ---------------------------------------------------------------------------


class HistorySearch:
    """Incremental reverse-i-search over a snapshot of the history.

    Enter adopts the selected result (or the typed query when nothing
    matches), Ctrl+C discards the search, Tab cycles through results and
    Backspace edits the query.  Arrow and function keys are read through an
    :class:`EscapeRecognizer` and ignored.  Any other key after ESC discards
    the search and is left in :attr:`replay` for the editor to handle.
    """

    def __init__(self, entries: Sequence[str]) -> None:
        self._search = history_searcher(entries)
        self._escape: EscapeRecognizer | None = None
        self.query = ""
        self.results: list[str] = self._search("")
        self.selected = 0
        self.done = False
        self.accepted: str | None = None
        self.replay: str | None = None

    def feed(self, unit: str) -> bool:
        """Handle one unit.  Returns ``True`` once the search has finished."""
        if self.done:
            return True

        if self._escape is not None:
            if not self._escape.sequence and unit not in ("[", "O"):
                self._escape = None
                self.replay = unit
                self.done = True
            elif self._escape.feed(unit):
                self._escape = None
            return self.done

        if unit in ("\r", "\n"):
            if self.selected < len(self.results):
                self.accepted = self.results[self.selected]
            else:
                self.accepted = self.query
            self.done = True
        elif unit == ESC:
            self._escape = EscapeRecognizer()
        elif unit == "\x03":
            self.done = True
        elif unit in ("\x7f", "\b"):
            if self.query:
                self._update(self.query[:-1])
        elif unit == "\t":
            if self.results:
                self.selected = (self.selected + 1) % len(self.results)
        elif is_printable(unit):
            self._update(self.query + unit)
        return self.done

    def _update(self, query: str) -> None:
        self.query = query
        self.results = self._search(query)
        self.selected = 0


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------


class Prompt:
    """Interactive line editor bound to a terminal.

    When no *terminal* is given a :class:`ProcessTerminal` is created and, if
    no *output* is given either, also used as the output sink.  Otherwise
    output defaults to ``sys.stdout``.
    """

    def __init__(
        self,
        prefix: str,
        config: PromptConfig | None = None,
        *,
        terminal: Terminal | None = None,
        output: Output | None = None,
    ) -> None:
        self.prefix = prefix
        self.config = config if config is not None else PromptConfig()

        if terminal is None:
            process_terminal = ProcessTerminal()
            terminal = process_terminal
            if output is None:
                output = process_terminal
        self.terminal: Terminal = terminal
        self.output: Output = output if output is not None else sys.stdout

        self.key_map = (
            self.config.key_map
            if self.config.key_map is not None
            else KeyMap.default(multiline=self.config.multiline)
        )
        self.history = HistoryStore(self.config.history)
        self.history.load()

        self.buffer = EditBuffer()
        self.completion = CompletionEngine(self.config.completer)
        self.renderer = Renderer(self.output, self._width, self.config.color_scheme)

        self.state = SessionState.RUNNING
        self._text = ""
        self._history_index = len(self.history)
        self._escape: EscapeRecognizer | None = None
        self._search: HistorySearch | None = None
        self._reader: concurrent.futures.ThreadPoolExecutor | None = None
        self._pending_read: concurrent.futures.Future[str | None] | None = None
        self._raw = False
        self._closed = False

    # -- context manager ------------------------------------------------------

    def __enter__(self) -> Prompt:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- session --------------------------------------------------------------

    @property
    def result(self) -> SessionResult:
        return SessionResult(self.state, self._text)

    def start(self) -> None:
        """Begin a new session: enter raw mode and draw an empty prompt."""
        if self._closed:
            raise ValueError("Prompt is closed")
        self.buffer.clear()
        self.completion.dismiss()
        self._escape = None
        self._search = None
        self._text = ""
        self._history_index = len(self.history)
        self.state = SessionState.RUNNING
        self.renderer.reset()

        self.terminal.enter_raw_mode()
        self._raw = True
        self._render()

    def feed(self, unit: str) -> SessionState:
        """Consume one input unit and redraw.  Returns the session state."""
        if self.state is not SessionState.RUNNING:
            return self.state

        if self._search is not None:
            self._feed_search(unit)
            return self.state

        if self._escape is not None:
            if not self._escape.feed(unit):
                return self.state
            sequence = self._escape.sequence
            self._escape = None
            key = self.key_map.resolve_sequence(sequence)
            if key.action is Action.UNBOUND:
                logger.debug("Unbound escape sequence %r", sequence)
        elif unit == ESC:
            self._escape = self.key_map.recognizer()
            return self.state
        else:
            key = self.key_map.resolve_unit(unit)

        self._dispatch(key)
        if self.state is SessionState.RUNNING and self._search is None:
            self._render()
        return self.state

    def interrupt(self) -> None:
        """End a running session as interrupted without echoing ``^C``."""
        if self.state is SessionState.RUNNING:
            self._interrupt(echo=False)

    def run(self, cancel: threading.Event | None = None) -> SessionResult:
        """Run one session, blocking on terminal reads.

        *cancel* is checked between reads; once set the session ends as
        interrupted.  Terminal I/O errors propagate after the terminal mode
        has been restored.
        """
        try:
            self.start()
            while self.state is SessionState.RUNNING:
                if cancel is not None and cancel.is_set():
                    self._interrupt(echo=False)
                    break
                unit = self._read_unit()
                if unit is None:
                    self._finish(SessionState.END_OF_INPUT)
                    break
                self.feed(unit)
        except Exception:
            self.state = SessionState.ERRORED
            raise
        finally:
            self._restore()
        return self.result

    async def run_async(self, cancel: asyncio.Event | None = None) -> SessionResult:
        """Run one session without blocking the event loop.

        Each read runs on the prompt's single reader thread.  Setting *cancel*
        ends the session as interrupted even while a read is pending; that
        read stays the only reader and its unit is delivered to the next
        session, whether it is run with :meth:`run` or :meth:`run_async`.
        """
        cancel_wait = asyncio.ensure_future(cancel.wait()) if cancel is not None else None
        try:
            self.start()
            while self.state is SessionState.RUNNING:
                if cancel is not None and cancel.is_set():
                    self._interrupt(echo=False)
                    break

                read = self._pending_read
                if read is None:
                    read = self._reader_pool().submit(self.terminal.read_unit)
                    self._pending_read = read
                waiter = asyncio.wrap_future(read)

                if cancel_wait is not None:
                    done, _ = await asyncio.wait(
                        {waiter, cancel_wait}, return_when=asyncio.FIRST_COMPLETED
                    )
                    if waiter not in done:
                        self._interrupt(echo=False)
                        break
                else:
                    await asyncio.wait({waiter})

                self._pending_read = None
                unit = read.result()
                if unit is None:
                    self._finish(SessionState.END_OF_INPUT)
                    break
                self.feed(unit)
        except Exception:
            self.state = SessionState.ERRORED
            raise
        finally:
            if cancel_wait is not None:
                cancel_wait.cancel()
            self._restore()
        return self.result

    def close(self) -> None:
        """Show the cursor, save history and close the terminal.  Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._restore()
        try:
            self.output.write(SHOW_CURSOR)
            self.output.flush()
            self.history.save()
        finally:
            if self._reader is not None:
                self._reader.shutdown(wait=False)
            self.terminal.close()

    # -- host API ---------------------------------------------------------------

    def get_history(self) -> list[str]:
        return self.history.entries

    def add_history(self, entry: str) -> None:
        self.history.append(entry)
        self._history_index = len(self.history)

    def clear_history(self) -> None:
        self.history.clear()
        self._history_index = 0

    def set_history(self, entries: Iterable[str]) -> None:
        self.history.set_entries(entries)
        self._history_index = len(self.history)

    def flush_history(self) -> None:
        self.history.save()

    def set_prefix(self, prefix: str) -> None:
        self.prefix = prefix

    def set_completer(self, completer: Completer | None) -> None:
        self.config.completer = completer
        self.completion.completer = completer
        self.completion.dismiss()

    def set_theme(self, scheme: ColorScheme) -> None:
        self.config.color_scheme = scheme
        self.renderer.scheme = scheme

    # -- action dispatch -------------------------------------------------------

    def _dispatch(self, key: ResolvedKey) -> None:  # noqa: C901
        action = key.action
        buf = self.buffer
        engine = self.completion

        if action is Action.UNBOUND:
            return

        if action is Action.SUBMIT:
            if engine.is_showing:
                engine.accept(buf)
            elif buf.is_multiline():
                buf.insert("\n")
            else:
                self._submit()
            return

        if action is Action.CANCEL:
            self._interrupt(echo=True)
            return

        if action is Action.END_OF_INPUT:
            if not len(buf):
                self._finish(SessionState.END_OF_INPUT)
            return

        if action is Action.COMPLETE:
            engine.complete(buf)
            return

        if action is Action.MOVE_RIGHT and engine.is_showing:
            engine.accept(buf)
            return

        if action is Action.MOVE_UP:
            if engine.is_showing:
                engine.move_up()
            elif buf.is_multiline():
                buf.cursor_up()
            else:
                self._history_previous()
            return

        if action is Action.MOVE_DOWN:
            if engine.is_showing:
                engine.move_down()
            elif buf.is_multiline():
                buf.cursor_down()
            else:
                self._history_next()
            return

        if action is Action.HISTORY_SEARCH:
            engine.dismiss()
            self._search = HistorySearch(self.history.entries)
            self._render_search()
            return

        # Everything below edits or moves within the buffer.
        engine.dismiss()

        if action is Action.INSERT:
            buf.insert_text(key.text)
            self._history_index = len(self.history)
        elif action is Action.NEW_LINE:
            buf.insert("\n")
        elif action is Action.MOVE_LEFT:
            buf.move_left()
        elif action is Action.MOVE_RIGHT:
            buf.move_right()
        elif action is Action.MOVE_HOME:
            buf.cursor = buf.line_start() if buf.is_multiline() else 0
        elif action is Action.MOVE_END:
            buf.cursor = buf.line_end() if buf.is_multiline() else len(buf)
        elif action is Action.MOVE_WORD_LEFT:
            buf.cursor = buf.word_boundary(-1)
        elif action is Action.MOVE_WORD_RIGHT:
            buf.cursor = buf.word_boundary(1)
        elif action is Action.DELETE_CHAR:
            buf.delete_backward()
        elif action is Action.DELETE_FORWARD:
            buf.delete_forward()
        elif action is Action.DELETE_LINE:
            buf.clear()
        elif action is Action.DELETE_TO_END:
            buf.delete_to_line_end()
        elif action is Action.DELETE_WORD_BACK:
            buf.delete_word_backward()
        elif action is Action.HISTORY_UP:
            self._history_previous()
        elif action is Action.HISTORY_DOWN:
            self._history_next()

    def _history_previous(self) -> None:
        entries = self.history.entries
        index = min(self._history_index, len(entries))
        if index > 0:
            self._history_index = index - 1
            self.buffer.replace(entries[self._history_index])

    def _history_next(self) -> None:
        entries = self.history.entries
        if self._history_index < len(entries):
            self._history_index += 1
            if self._history_index == len(entries):
                self.buffer.clear()
            else:
                self.buffer.replace(entries[self._history_index])

    def _feed_search(self, unit: str) -> None:
        search = self._search
        assert search is not None
        if not search.feed(unit):
            self._render_search()
            return

        self._search = None
        if search.accepted:
            self.buffer.replace(search.accepted)
            self._history_index = len(self.history)
        self._render()
        if search.replay is not None:
            self.feed(search.replay)

    # -- endings ------------------------------------------------------------------

    def _submit(self) -> None:
        text = self.buffer.text
        if text:
            self.history.append(text)
        self._finish(SessionState.SUBMITTED, text=text)

    def _interrupt(self, echo: bool) -> None:
        self._finish(SessionState.INTERRUPTED, echo="^C" if echo else "")

    def _finish(self, state: SessionState, text: str = "", echo: str = "") -> None:
        self._close_overlays()
        self._restore()
        self.renderer.finish(echo)
        self._text = text
        self.state = state
        logger.debug("Session ended: %s", state.value)

    def _close_overlays(self) -> None:
        """Redraw the plain prompt if suggestions or the search view are on screen."""
        if self.completion.is_showing or self._search is not None:
            self.completion.dismiss()
            self._search = None
            self._render()

    def _restore(self) -> None:
        if not self._raw:
            return
        self._raw = False
        try:
            self.terminal.restore_mode()
        except OSError as e:
            logger.warning("Failed to restore terminal mode: %s", e)

    # -- helpers ------------------------------------------------------------------

    def _read_unit(self) -> str | None:
        # A read left running by a cancelled run_async owns the next unit.
        read = self._pending_read
        if read is None:
            return self.terminal.read_unit()
        self._pending_read = None
        return read.result()

    def _reader_pool(self) -> concurrent.futures.ThreadPoolExecutor:
        if self._reader is None:
            self._reader = concurrent.futures.ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="pi-lineedit-read"
            )
        return self._reader

    def _render(self) -> None:
        self.renderer.render(
            self.prefix, self.buffer.text, self.buffer.cursor, self.completion.state
        )

    def _render_search(self) -> None:
        search = self._search
        assert search is not None
        self.renderer.render_search(search.query, search.results, search.selected)

    def _width(self) -> int:
        return self.terminal.size()[0]
