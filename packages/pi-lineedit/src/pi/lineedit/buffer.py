"""Edit buffer: the text being edited plus a cursor offset.

Lines are separated by ``\\n`` and computed on the fly; no line index is
stored.  Every primitive clamps its indices so the cursor can never leave
``[0, len(buffer)]``.
"""

from __future__ import annotations

from pi.lineedit.utils import is_word_char


class EditBuffer:
    """Mutable sequence of characters with a cursor."""

    def __init__(self, text: str = "", cursor: int | None = None) -> None:
        self._chars: list[str] = list(text)
        self._cursor = len(self._chars)
        if cursor is not None:
            self.cursor = cursor

    # -- accessors ---------------------------------------------------------

    @property
    def text(self) -> str:
        return "".join(self._chars)

    @property
    def cursor(self) -> int:
        return self._cursor

    @cursor.setter
    def cursor(self, value: int) -> None:
        self._cursor = self._clamp(value)

    def __len__(self) -> int:
        return len(self._chars)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"EditBuffer({self.text!r}, cursor={self._cursor})"

    def char_at(self, index: int) -> str | None:
        if 0 <= index < len(self._chars):
            return self._chars[index]
        return None

    def is_multiline(self) -> bool:
        return "\n" in self._chars

    # -- insertion ---------------------------------------------------------

    def insert(self, rune: str) -> None:
        """Insert a single character at the cursor and advance past it."""
        self.insert_text(rune)

    def insert_text(self, text: str) -> None:
        """Insert *text* at the cursor; the cursor ends after it."""
        if not text:
            return
        pos = self._cursor
        self._chars[pos:pos] = list(text)
        self._cursor = pos + len(text)

    def replace(self, text: str) -> None:
        """Replace the whole buffer and move the cursor to the end."""
        self._chars = list(text)
        self._cursor = len(self._chars)

    def clear(self) -> None:
        self.replace("")

    # -- deletion ----------------------------------------------------------

    def delete_backward(self) -> bool:
        """Delete the character before the cursor.  Returns whether anything changed."""
        if self._cursor == 0:
            return False
        del self._chars[self._cursor - 1]
        self._cursor -= 1
        return True

    def delete_forward(self) -> bool:
        """Delete the character under the cursor.  Returns whether anything changed."""
        if self._cursor >= len(self._chars):
            return False
        del self._chars[self._cursor]
        return True

    def delete_range(self, start: int, end: int) -> str:
        """Remove ``[start, end)`` and return the removed text.

        The cursor is shifted left when it sat inside or after the range.
        """
        start = self._clamp(start)
        end = self._clamp(end)
        if end < start:
            start, end = end, start
        removed = "".join(self._chars[start:end])
        del self._chars[start:end]
        if self._cursor >= end:
            self._cursor -= end - start
        elif self._cursor > start:
            self._cursor = start
        return removed

    def delete_to_line_end(self) -> str:
        end = self.line_end() if self.is_multiline() else len(self._chars)
        return self.delete_range(self._cursor, end)

    def delete_word_backward(self) -> str:
        if self._cursor == 0:
            return ""
        return self.delete_range(self.word_boundary(-1), self._cursor)

    # -- cursor movement ---------------------------------------------------

    def move_left(self) -> None:
        self.cursor = self._cursor - 1

    def move_right(self) -> None:
        self.cursor = self._cursor + 1

    def word_boundary(self, direction: int) -> int:
        """Return the offset of the next word boundary in *direction*.

        Forward: skip non-word characters, then word characters, landing
        just past the next word.  Backward: step back one, skip non-word
        characters, then word characters, landing on the start of the
        previous word.
        """
        chars = self._chars
        pos = self._cursor
        if direction > 0:
            while pos < len(chars) and not is_word_char(chars[pos]):
                pos += 1
            while pos < len(chars) and is_word_char(chars[pos]):
                pos += 1
            return pos

        if pos > 0:
            pos -= 1
        while pos > 0 and not is_word_char(chars[pos]):
            pos -= 1
        while pos > 0 and is_word_char(chars[pos - 1]):
            pos -= 1
        return pos

    def line_start(self) -> int:
        """Offset of the first character of the cursor's line."""
        pos = self._cursor
        while pos > 0 and self._chars[pos - 1] != "\n":
            pos -= 1
        return pos

    def line_end(self) -> int:
        """Offset of the ``\\n`` ending the cursor's line, or the buffer end."""
        pos = self._cursor
        while pos < len(self._chars) and self._chars[pos] != "\n":
            pos += 1
        return pos

    def cursor_up(self) -> int:
        """Move to the same column on the previous line (clamped)."""
        line_start = self.line_start()
        if line_start == 0:
            return self._cursor

        column = self._cursor - line_start
        prev_line_end = line_start - 1
        prev_line_start = prev_line_end
        while prev_line_start > 0 and self._chars[prev_line_start - 1] != "\n":
            prev_line_start -= 1

        self.cursor = prev_line_start + min(column, prev_line_end - prev_line_start)
        return self._cursor

    def cursor_down(self) -> int:
        """Move to the same column on the next line (clamped)."""
        line_end = self.line_end()
        if line_end >= len(self._chars):
            return self._cursor

        column = self._cursor - self.line_start()
        next_line_start = line_end + 1
        next_line_end = next_line_start
        while next_line_end < len(self._chars) and self._chars[next_line_end] != "\n":
            next_line_end += 1

        self.cursor = next_line_start + min(column, next_line_end - next_line_start)
        return self._cursor

    def current_word_bounds(self) -> tuple[int, int]:
        """Return ``(start, end)`` of the run of word characters around the cursor."""
        start = self._cursor
        while start > 0 and is_word_char(self._chars[start - 1]):
            start -= 1
        end = self._cursor
        while end < len(self._chars) and is_word_char(self._chars[end]):
            end += 1
        return start, end

    # -- internals ---------------------------------------------------------

    def _clamp(self, value: int) -> int:
        return max(0, min(value, len(self._chars)))
