"""Key resolution: raw input units and escape sequences to editor actions.

Single input units (printable characters and C0 control codes) resolve via a
direct table lookup.  ``ESC`` starts an escape sequence which is decoded by
:class:`EscapeRecognizer`, a small table-driven recognizer with a hard bound
on how many units it will consume.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

ESC = "\x1b"

#: Maximum number of units read after ``ESC`` before giving up.
MAX_ESCAPE_LENGTH = 10


class Action(enum.Enum):
    """Symbolic, device-independent result of resolving a key press."""

    UNBOUND = "unbound"
    INSERT = "insert"
    SUBMIT = "submit"
    CANCEL = "cancel"
    # Cursor movement
    MOVE_LEFT = "moveLeft"
    MOVE_RIGHT = "moveRight"
    MOVE_UP = "moveUp"
    MOVE_DOWN = "moveDown"
    MOVE_HOME = "moveHome"
    MOVE_END = "moveEnd"
    MOVE_WORD_LEFT = "moveWordLeft"
    MOVE_WORD_RIGHT = "moveWordRight"
    # Deletion
    DELETE_CHAR = "deleteChar"
    DELETE_FORWARD = "deleteForward"
    DELETE_LINE = "deleteLine"
    DELETE_TO_END = "deleteToEnd"
    DELETE_WORD_BACK = "deleteWordBack"
    # Completion / history
    COMPLETE = "complete"
    HISTORY_UP = "historyUp"
    HISTORY_DOWN = "historyDown"
    HISTORY_SEARCH = "historySearch"
    # Text input
    NEW_LINE = "newLine"
    END_OF_INPUT = "endOfInput"


@dataclass(frozen=True)
class ResolvedKey:
    """An action plus the text it carries (the character for ``INSERT``)."""

    action: Action
    text: str = ""


UNBOUND_KEY = ResolvedKey(Action.UNBOUND)

# ---------------------------------------------------------------------------
# Default tables
# ---------------------------------------------------------------------------

DEFAULT_KEY_BINDINGS: Mapping[str, Action] = MappingProxyType({
    "\r": Action.SUBMIT,
    "\n": Action.SUBMIT,
    "\x03": Action.CANCEL,            # ctrl+c
    "\x01": Action.MOVE_HOME,         # ctrl+a
    "\x05": Action.MOVE_END,          # ctrl+e
    "\x0b": Action.DELETE_TO_END,     # ctrl+k
    "\x15": Action.DELETE_LINE,       # ctrl+u
    "\x17": Action.DELETE_WORD_BACK,  # ctrl+w
    "\x12": Action.HISTORY_SEARCH,    # ctrl+r
    "\x04": Action.END_OF_INPUT,      # ctrl+d
    "\t": Action.COMPLETE,
    "\x7f": Action.DELETE_CHAR,       # backspace
    "\b": Action.DELETE_CHAR,         # ctrl+h
})

# Sequences are stored without the leading ESC.
DEFAULT_SEQUENCE_BINDINGS: Mapping[str, Action] = MappingProxyType({
    "[A": Action.MOVE_UP,
    "[B": Action.MOVE_DOWN,
    "[C": Action.MOVE_RIGHT,
    "[D": Action.MOVE_LEFT,
    "[H": Action.MOVE_HOME,
    "[F": Action.MOVE_END,
    "OH": Action.MOVE_HOME,
    "OF": Action.MOVE_END,
    "[1~": Action.MOVE_HOME,
    "[7~": Action.MOVE_HOME,
    "[4~": Action.MOVE_END,
    "[8~": Action.MOVE_END,
    "[1;5C": Action.MOVE_WORD_RIGHT,  # ctrl+right
    "[1;5D": Action.MOVE_WORD_LEFT,   # ctrl+left
    "[3~": Action.DELETE_FORWARD,     # delete
})

# Alt+Enter and the CSI-u form of Shift+Enter
MULTILINE_SEQUENCE_BINDINGS: Mapping[str, Action] = MappingProxyType({
    "\r": Action.NEW_LINE,
    "[13;2u": Action.NEW_LINE,
})

# Arrow keys, Home and End always terminate a sequence, bound or not.
KNOWN_TERMINATORS = frozenset({"[A", "[B", "[C", "[D", "[H", "[F"})


def is_printable(unit: str) -> bool:
    if not unit:
        return False
    cp = ord(unit[0])
    return (32 <= cp < 127) or cp > 159


# ---------------------------------------------------------------------------
# KeyMap
# ---------------------------------------------------------------------------


class KeyMap:
    """Immutable key binding tables.

    Both tables are built once in the constructor.  Rebinding produces a new
    ``KeyMap`` via :meth:`with_bindings`.
    """

    def __init__(
        self,
        bindings: Mapping[str, Action] | None = None,
        sequences: Mapping[str, Action] | None = None,
    ) -> None:
        self._bindings: Mapping[str, Action] = MappingProxyType(
            dict(DEFAULT_KEY_BINDINGS if bindings is None else bindings)
        )
        self._sequences: Mapping[str, Action] = MappingProxyType(
            dict(DEFAULT_SEQUENCE_BINDINGS if sequences is None else sequences)
        )
        self._known_sequences = frozenset(self._sequences) | KNOWN_TERMINATORS

    @classmethod
    def default(cls, multiline: bool = False) -> KeyMap:
        sequences = dict(DEFAULT_SEQUENCE_BINDINGS)
        if multiline:
            sequences.update(MULTILINE_SEQUENCE_BINDINGS)
        return cls(DEFAULT_KEY_BINDINGS, sequences)

    def with_bindings(
        self,
        bindings: Mapping[str, Action] | None = None,
        sequences: Mapping[str, Action] | None = None,
    ) -> KeyMap:
        """Return a new map with *bindings* / *sequences* layered on top."""
        merged_bindings = dict(self._bindings)
        merged_bindings.update(bindings or {})
        merged_sequences = dict(self._sequences)
        merged_sequences.update(sequences or {})
        return KeyMap(merged_bindings, merged_sequences)

    @property
    def bindings(self) -> Mapping[str, Action]:
        return self._bindings

    @property
    def sequences(self) -> Mapping[str, Action]:
        return self._sequences

    @property
    def known_sequences(self) -> frozenset[str]:
        return self._known_sequences

    def keys_for(self, action: Action) -> list[str]:
        """Units and sequences (ESC-prefixed) bound to *action*."""
        keys = [unit for unit, bound in self._bindings.items() if bound is action]
        keys.extend(ESC + seq for seq, bound in self._sequences.items() if bound is action)
        return keys

    def resolve_unit(self, unit: str) -> ResolvedKey:
        action = self._bindings.get(unit)
        if action is not None:
            return ResolvedKey(action, unit)
        if is_printable(unit):
            return ResolvedKey(Action.INSERT, unit)
        return UNBOUND_KEY

    def resolve_sequence(self, sequence: str) -> ResolvedKey:
        action = self._sequences.get(sequence)
        if action is None:
            return UNBOUND_KEY
        return ResolvedKey(action, ESC + sequence)

    def recognizer(self) -> EscapeRecognizer:
        return EscapeRecognizer(self._known_sequences)


# ---------------------------------------------------------------------------
# Escape sequence recognizer
# ---------------------------------------------------------------------------


class _Form(enum.Enum):
    START = "start"
    CSI = "csi"
    SS3 = "ss3"


class EscapeRecognizer:
    """Accumulates the units that follow ``ESC`` until a sequence is complete.

    Feed units one at a time with :meth:`feed`; it returns ``True`` once the
    sequence is complete (or the bound is exhausted), after which
    :attr:`sequence` holds the accumulated text without the ``ESC``.

    A sequence completes when it is one of the known sequences.  While it is
    still a prefix of a known sequence it keeps reading; otherwise it
    completes when any of these holds:

    * CSI form ending in ``~`` with length >= 3 (``[3~``, ``[15~``),
    * the last unit is a non-digit after at least two digits were read,
    * CSI form ending in a final byte in ``@``..``~`` (``[Z``, ``[13;2u``),
    * SS3 form ``O`` plus one unit,
    * the first unit starts neither CSI nor SS3 (Alt/Meta + key).
    """

    def __init__(
        self,
        known: Iterable[str] = KNOWN_TERMINATORS,
        max_length: int = MAX_ESCAPE_LENGTH,
    ) -> None:
        self._known = frozenset(known)
        self._prefixes = frozenset(
            seq[:i] for seq in self._known for i in range(1, len(seq))
        )
        self._max_length = max_length
        self._units: list[str] = []
        self._digits = 0
        self._form = _Form.START
        self._done = False

    @property
    def sequence(self) -> str:
        return "".join(self._units)

    @property
    def done(self) -> bool:
        return self._done

    def feed(self, unit: str) -> bool:
        if self._done:
            return True

        self._units.append(unit)
        if unit.isdigit():
            self._digits += 1

        if len(self._units) == 1:
            if unit == "[":
                self._form = _Form.CSI
            elif unit == "O":
                self._form = _Form.SS3

        self._done = self._is_complete(unit) or len(self._units) >= self._max_length
        return self._done

    def _is_complete(self, last: str) -> bool:
        seq = self.sequence
        if seq in self._known:
            return True
        if seq in self._prefixes:
            return False

        if self._form is _Form.START:
            return True
        if self._form is _Form.SS3:
            return len(self._units) >= 2

        # CSI
        if len(self._units) < 2:
            return False
        if last == "~" and len(seq) >= 3:
            return True
        if not last.isdigit() and self._digits >= 2:
            return True
        return "@" <= last <= "~" and last not in "[;"

