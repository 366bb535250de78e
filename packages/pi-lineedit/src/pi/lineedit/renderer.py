"""Incremental renderer for the prompt line, suggestion list and search view.

Each draw first returns to the top of the previous draw and erases exactly the
rows it occupied, then paints the new frame and records how many rows it used
and where it left the terminal cursor.  That record, :class:`RenderState`, is
the only memory the renderer keeps between frames.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

import grapheme

from pi.lineedit.completion import SuggestionState
from pi.lineedit.theme import ColorScheme, theme_default
from pi.lineedit.utils import TAB_WIDTH, grapheme_width, truncate_to_width, visible_width

HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
CLEAR_LINE = "\x1b[2K"
CLEAR_TO_EOL = "\x1b[K"

SELECTED_MARKER = "▶ "
UNSELECTED_MARKER = "  "

SEARCH_LABEL = "reverse-i-search: "
SEARCH_MAX_RESULTS = 5
SEARCH_SELECTED_MARKER = "  > "
SEARCH_UNSELECTED_MARKER = "    "


class Output(Protocol):
    def write(self, data: str) -> object: ...

    def flush(self) -> None: ...


@dataclass(frozen=True)
class RenderState:
    """What the previous draw left on screen.

    ``last_rendered_lines`` is the number of terminal rows it occupied and
    ``cursor_row`` the row (counted from its first row) the terminal cursor
    was left on.
    """

    last_rendered_lines: int = 1
    suggestions_visible: bool = False
    cursor_row: int = 0


# ---------------------------------------------------------------------------
# Geometry helpers
# ---------------------------------------------------------------------------


def _start(prefix_width: int, width: int) -> tuple[int, int]:
    """Row and column right after a prompt prefix of *prefix_width* columns."""
    if prefix_width <= 0:
        return 0, 0
    row, col = divmod(prefix_width - 1, width)
    return row, col + 1


def _cell_width(g: str) -> int:
    return TAB_WIDTH if g == "\t" else grapheme_width(g)


def _advance(row: int, col: int, w: int, width: int) -> tuple[int, int]:
    # A cell that does not fit moves to the next row; a wide character
    # leaves the last column of the row blank.
    if col > 0 and col + w > width:
        row, col = row + 1, 0
    return row, col + w


def _walk(prefix_width: int, text: str, width: int) -> tuple[int, int]:
    row, col = _start(prefix_width, width)
    for g in grapheme.graphemes(text):
        row, col = _advance(row, col, _cell_width(g), width)
    return row, col


def count_rows(prefix_width: int, line: str, width: int) -> int:
    """Terminal rows used by one logical line drawn after *prefix_width* columns."""
    width = max(1, width)
    row, _ = _walk(prefix_width, line, width)
    return row + 1


def cursor_position(
    prefix_width: int, text: str, cursor: int, width: int
) -> tuple[int, int]:
    """Return the ``(row, column)`` of *cursor*, counted from the first drawn row.

    Wrapping is taken into account, including the blank column left when a
    wide character moves to the next row.  A cursor sitting exactly on a wrap
    boundary at the end of a line is clamped to the last column of the
    line's final row.
    """
    width = max(1, width)
    cursor = max(0, min(cursor, len(text)))
    lines = text.split("\n")
    before = text[:cursor]
    line_index = before.count("\n")
    column_text = before[before.rfind("\n") + 1:]

    row = sum(count_rows(prefix_width, line, width) for line in lines[:line_index])
    row_in_line, col = _walk(prefix_width, column_text, width)

    rest = lines[line_index][len(column_text):]
    following = next(iter(grapheme.graphemes(rest)), "")
    if following and col > 0 and col + _cell_width(following) > width:
        row_in_line, col = row_in_line + 1, 0
    return row + row_in_line, min(col, width - 1)


def _one_row(text: str, width: int) -> str:
    return truncate_to_width(text.replace("\n", " "), width)


def _clear_previous(state: RenderState, out: list[str]) -> None:
    # Back to the first row of the previous draw
    if state.cursor_row > 0:
        out.append(f"\x1b[{state.cursor_row}A")
    out.append("\r")

    rows = max(1, state.last_rendered_lines)
    for i in range(rows):
        if i > 0:
            out.append("\x1b[1B")
        out.append(CLEAR_LINE)
    if rows > 1:
        out.append(f"\x1b[{rows - 1}A")
    out.append("\r")


def _move_up(out: list[str], rows: int) -> None:
    if rows > 0:
        out.append(f"\x1b[{rows}A")


# ---------------------------------------------------------------------------
# Frames
# ---------------------------------------------------------------------------


def render_frame(
    prefix: str,
    text: str,
    cursor: int,
    suggestions: SuggestionState | None,
    state: RenderState,
    width: int,
    scheme: ColorScheme,
) -> tuple[str, RenderState]:
    """Build the escape sequence that redraws the prompt.

    Returns the output to write and the state to pass to the next call.
    """
    width = max(1, width)
    out: list[str] = []

    # -- 1. Erase the previous frame ----------------------------------------
    _clear_previous(state, out)
    if suggestions is not None:
        out.append(HIDE_CURSOR)

    # -- 2. Prompt and input lines -------------------------------------------
    prefix_width = visible_width(prefix)
    lines = text.split("\n")
    input_rows = 0
    for i, line in enumerate(lines):
        if i > 0:
            out.append("\r\n")
        out.append(CLEAR_TO_EOL)
        if i == 0:
            out.append(scheme.prefix.paint(prefix))
        else:
            out.append(" " * prefix_width)
        if line:
            out.append(scheme.input.paint(line))
        input_rows += count_rows(prefix_width, line, width)

    # -- 3. Suggestions --------------------------------------------------------
    if suggestions is not None:
        visible = suggestions.visible()
        for i, item in enumerate(visible):
            selected = suggestions.scroll_offset + i == suggestions.selected
            out.append("\r\n")
            out.append(CLEAR_TO_EOL)
            out.append(_suggestion_row(item.text, item.description, selected, width, scheme))

        rows = input_rows + len(visible)
        new_state = RenderState(rows, True, rows - 1)
        return "".join(out), new_state

    # -- 4. Cursor ---------------------------------------------------------------
    cursor_row, cursor_col = cursor_position(prefix_width, text, cursor, width)
    _move_up(out, input_rows - 1 - cursor_row)
    out.append("\r")
    if cursor_col > 0:
        out.append(f"\x1b[{cursor_col}C")
    out.append(SHOW_CURSOR)

    return "".join(out), RenderState(input_rows, False, cursor_row)


def _suggestion_row(
    text: str, description: str, selected: bool, width: int, scheme: ColorScheme
) -> str:
    marker = SELECTED_MARKER if selected else UNSELECTED_MARKER
    color = scheme.selected if selected else scheme.suggestion.text

    label = _one_row(marker + text, width)
    row = color.paint(label)

    remaining = width - visible_width(label) - 1
    if description and remaining > 2:
        desc = _one_row("- " + description, remaining)
        row += " " + scheme.suggestion.description.paint(desc)
    return row


def render_search(
    query: str,
    results: Sequence[str],
    selected: int,
    state: RenderState,
    width: int,
    scheme: ColorScheme,
) -> tuple[str, RenderState]:
    """Build the reverse-i-search view: a header row plus up to five results.

    The cursor is left at the end of the query on the header row.
    """
    width = max(1, width)
    out: list[str] = []
    _clear_previous(state, out)

    header = SEARCH_LABEL + query
    if 0 <= selected < len(results):
        header += " -> " + results[selected]
    header = _one_row(header, width)

    out.append(CLEAR_TO_EOL)
    label = header[: len(SEARCH_LABEL)]
    out.append(scheme.prefix.paint(label))
    if len(header) > len(label):
        out.append(scheme.input.paint(header[len(label):]))

    shown = list(results[:SEARCH_MAX_RESULTS])
    for i, result in enumerate(shown):
        out.append("\r\n")
        out.append(CLEAR_TO_EOL)
        if i == selected:
            out.append(scheme.selected.paint(_one_row(SEARCH_SELECTED_MARKER + result, width)))
        else:
            out.append(_one_row(SEARCH_UNSELECTED_MARKER + result, width))

    _move_up(out, len(shown))
    out.append("\r")
    col = min(visible_width(SEARCH_LABEL + query), width - 1)
    if col > 0:
        out.append(f"\x1b[{col}C")

    return "".join(out), RenderState(1 + len(shown), False, 0)


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class Renderer:
    """Writes frames to an output sink and carries the state between them."""

    def __init__(
        self,
        output: Output,
        width: Callable[[], int],
        scheme: ColorScheme | None = None,
    ) -> None:
        self.output = output
        self._width = width
        self.scheme = scheme if scheme is not None else theme_default()
        self.state = RenderState()

    def reset(self) -> None:
        """Forget the previous frame; the next draw starts on the current row."""
        self.state = RenderState()

    def render(
        self,
        prefix: str,
        text: str,
        cursor: int,
        suggestions: SuggestionState | None = None,
    ) -> None:
        data, self.state = render_frame(
            prefix, text, cursor, suggestions, self.state, self._width(), self.scheme
        )
        self._write(data)

    def render_search(self, query: str, results: Sequence[str], selected: int) -> None:
        data, self.state = render_search(
            query, results, selected, self.state, self._width(), self.scheme
        )
        self._write(data)

    def finish(self, text: str = "") -> None:
        """Leave the drawn area and write *text* followed by a line break.

        When the cursor is already on the last drawn row, *text* is written
        right after it (``^C`` echoes next to the input).  Otherwise the
        cursor moves below the drawn rows first.
        """
        below = self.state.last_rendered_lines - 1 - self.state.cursor_row
        if below > 0:
            self._write(f"\x1b[{below}B\r\n{text}\r\n")
        else:
            self._write(f"{text}\r\n")
        self.reset()

    def _write(self, data: str) -> None:
        self.output.write(data)
        self.output.flush()
