"""Completion engine: suggestions, the accept-merge classifier and a file completer."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Callable, Sequence, Union

from pi.lineedit.buffer import EditBuffer
from pi.lineedit.utils import is_whitespace_char, is_word_char

#: Maximum number of suggestion rows shown at once.
WINDOW = 10


@dataclass(frozen=True)
class Suggestion:
    text: str
    description: str = ""


@dataclass(frozen=True)
class Document:
    """Read-only snapshot of the buffer handed to a completer."""

    text: str
    cursor_position: int

    def _cursor(self) -> int:
        return max(0, min(self.cursor_position, len(self.text)))

    def text_before_cursor(self) -> str:
        return self.text[: self._cursor()]

    def text_after_cursor(self) -> str:
        return self.text[self._cursor():]

    def word_before_cursor(self) -> str:
        """The run of non-whitespace characters ending at the cursor.

        Empty when the cursor is at the start of the text or right after
        whitespace.
        """
        before = self.text_before_cursor()
        start = len(before)
        while start > 0 and not is_whitespace_char(before[start - 1]):
            start -= 1
        return before[start:]


Completer = Callable[[Document], Sequence[Suggestion]]


# ---------------------------------------------------------------------------
# Suggestion list state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SuggestionState:
    items: tuple[Suggestion, ...]
    selected: int = 0
    scroll_offset: int = 0

    def __post_init__(self) -> None:
        if not self.items:
            raise ValueError("SuggestionState requires at least one suggestion")
        if not 0 <= self.selected < len(self.items):
            raise ValueError(f"selected index {self.selected} out of range")
        if not 0 <= self.scroll_offset <= max(0, len(self.items) - WINDOW):
            raise ValueError(f"scroll offset {self.scroll_offset} out of range")

    @property
    def current(self) -> Suggestion:
        return self.items[self.selected]

    def visible(self) -> tuple[Suggestion, ...]:
        return self.items[self.scroll_offset : self.scroll_offset + WINDOW]

    def move_up(self) -> SuggestionState:
        if self.selected == 0:
            return self
        selected = self.selected - 1
        offset = min(self.scroll_offset, selected)
        return replace(self, selected=selected, scroll_offset=offset)

    def move_down(self) -> SuggestionState:
        if self.selected >= len(self.items) - 1:
            return self
        selected = self.selected + 1
        offset = self.scroll_offset
        if selected >= offset + WINDOW:
            offset = selected - WINDOW + 1
        return replace(self, selected=selected, scroll_offset=offset)


# ---------------------------------------------------------------------------
# Accept-suggestion merge
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VerbatimInsert:
    """Nothing typed before the cursor: insert the suggestion as-is."""

    text: str

    def apply(self, buffer: EditBuffer) -> None:
        buffer.insert_text(self.text)


@dataclass(frozen=True)
class SuffixCompletion:
    """The suggestion extends the word being typed: insert the rest of it."""

    suffix: str

    def apply(self, buffer: EditBuffer) -> None:
        buffer.insert_text(self.suffix)


@dataclass(frozen=True)
class SpacedAppend:
    """Cursor sits at the end of a word: append the suggestion as a new word."""

    text: str
    needs_space: bool

    def apply(self, buffer: EditBuffer) -> None:
        if self.needs_space:
            buffer.insert_text(" ")
        buffer.insert_text(self.text)


@dataclass(frozen=True)
class WordReplacement:
    """Cursor sits inside a word: swap the whole word for the suggestion."""

    start: int
    end: int
    text: str

    def apply(self, buffer: EditBuffer) -> None:
        buffer.delete_range(self.start, self.end)
        buffer.cursor = self.start
        buffer.insert_text(self.text)


Merge = Union[VerbatimInsert, SuffixCompletion, SpacedAppend, WordReplacement]


def classify_merge(text: str, cursor: int, suggestion_text: str) -> Merge:
    """Decide how *suggestion_text* is merged into *text* at *cursor*."""
    doc = Document(text, cursor)
    cursor = doc._cursor()
    current_word = doc.word_before_cursor()

    if not current_word:
        return VerbatimInsert(suggestion_text)

    if suggestion_text.startswith(current_word):
        return SuffixCompletion(suggestion_text[len(current_word):])

    if cursor == len(text) or not is_word_char(text[cursor]):
        before = doc.text_before_cursor()
        needs_space = bool(before) and not is_whitespace_char(before[-1])
        return SpacedAppend(suggestion_text, needs_space)

    start, end = EditBuffer(text, cursor).current_word_bounds()
    return WordReplacement(start, end, suggestion_text)


def accept_suggestion(buffer: EditBuffer, suggestion: Suggestion) -> Merge:
    merge = classify_merge(buffer.text, buffer.cursor, suggestion.text)
    merge.apply(buffer)
    return merge


# ---------------------------------------------------------------------------
# CompletionEngine
# ---------------------------------------------------------------------------


class CompletionEngine:
    """Idle/Showing state machine around a host completer.

    ``state`` is ``None`` while idle and a :class:`SuggestionState` while a
    list of suggestions is on screen.
    """

    def __init__(self, completer: Completer | None = None) -> None:
        self.completer = completer
        self.state: SuggestionState | None = None

    @property
    def is_showing(self) -> bool:
        return self.state is not None

    def complete(self, buffer: EditBuffer) -> None:
        """Handle a completion request.

        While showing, accepts the selected suggestion.  Otherwise asks the
        completer, narrows the result to the word before the cursor and
        either accepts a single match or starts showing the list.
        """
        if self.state is not None:
            self.accept(buffer)
            return
        if self.completer is None:
            return

        doc = Document(buffer.text, buffer.cursor)
        suggestions = list(self.completer(doc))
        current_word = doc.word_before_cursor()
        if current_word:
            suggestions = [s for s in suggestions if s.text.startswith(current_word)]

        if not suggestions:
            return
        if len(suggestions) == 1:
            accept_suggestion(buffer, suggestions[0])
            return
        self.state = SuggestionState(tuple(suggestions))

    def move_up(self) -> None:
        if self.state is not None:
            self.state = self.state.move_up()

    def move_down(self) -> None:
        if self.state is not None:
            self.state = self.state.move_down()

    def accept(self, buffer: EditBuffer) -> Suggestion | None:
        if self.state is None:
            return None
        suggestion = self.state.current
        self.state = None
        accept_suggestion(buffer, suggestion)
        return suggestion

    def dismiss(self) -> None:
        self.state = None


# ---------------------------------------------------------------------------
# File completer
# ---------------------------------------------------------------------------


def file_completer(root: str | os.PathLike[str] | None = None) -> Completer:
    """Complete file and directory names for the path before the cursor.

    Relative paths resolve against *root* (the working directory when
    ``None``).  Hidden entries are listed only when the typed name starts
    with ``.``.
    """

    def complete(document: Document) -> list[Suggestion]:
        return complete_file_path(document.text_before_cursor(), root)

    return complete


def complete_file_path(
    path: str, root: str | os.PathLike[str] | None = None
) -> list[Suggestion]:
    if path.endswith(("/", os.sep)):
        directory, base = path, ""
    else:
        directory, base = os.path.split(path)

    search_dir = directory or "."
    if root is not None and not os.path.isabs(search_dir):
        search_dir = os.path.join(root, search_dir)

    try:
        with os.scandir(search_dir) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError:
        return []

    suggestions = []
    for entry in entries:
        name = entry.name
        if name.startswith(".") and not base.startswith("."):
            continue
        if base and not name.startswith(base):
            continue

        full = os.path.join(directory, name) if directory else name
        try:
            is_dir = entry.is_dir()
        except OSError:
            is_dir = False
        if is_dir:
            suggestions.append(Suggestion(full + "/", "directory"))
        else:
            suggestions.append(Suggestion(full, "file"))
    return suggestions
