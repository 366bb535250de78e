"""Fuzzy matching utilities.

Scores how well an input string matches a candidate.  Higher score = better
match; 0 means no match at all.  Exact, prefix and substring matches always
outrank a plain in-order character scan.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence, TypeVar

from pi.lineedit.completion import Document, Suggestion

T = TypeVar("T")

EXACT_SCORE = 1000
PREFIX_BASE = 800
PREFIX_PER_CHAR = 10
SUBSTRING_BASE = 500
SUBSTRING_PER_CHAR = 5
SUBSEQUENCE_PER_CHAR = 10


@dataclass(frozen=True)
class FuzzyMatch:
    item: object
    score: int


def fuzzy_score(input: str, candidate: str, case_insensitive: bool = False) -> int:
    """Score *candidate* against *input*.

    * empty input: 1 (matches everything, lowest positive score)
    * exact match: 1000
    * prefix: ``800 + 10 * len(input)``
    * substring: ``500 + 5 * len(input)``
    * otherwise a greedy left-to-right scan worth 10 per matched character
    """
    if not input:
        return 1
    if not candidate:
        return 0

    if case_insensitive:
        input = input.lower()
        candidate = candidate.lower()

    if input == candidate:
        return EXACT_SCORE
    if candidate.startswith(input):
        return PREFIX_BASE + PREFIX_PER_CHAR * len(input)
    if input in candidate:
        return SUBSTRING_BASE + SUBSTRING_PER_CHAR * len(input)

    score = 0
    pos = 0
    for ch in input:
        while pos < len(candidate):
            matched = candidate[pos] == ch
            pos += 1
            if matched:
                score += SUBSEQUENCE_PER_CHAR
                break
        if pos >= len(candidate):
            break

    return score


def fuzzy_rank(
    items: Sequence[T],
    query: str,
    get_text: Callable[[T], str],
    case_insensitive: bool = True,
) -> list[FuzzyMatch]:
    """Score every item and return the non-zero matches, best first.

    The sort is stable, so items with equal scores keep their input order.
    """
    matches = []
    for item in items:
        score = fuzzy_score(query, get_text(item), case_insensitive)
        if score > 0:
            matches.append(FuzzyMatch(item=item, score=score))
    matches.sort(key=lambda m: m.score, reverse=True)
    return matches


def fuzzy_filter(
    items: Sequence[T],
    query: str,
    get_text: Callable[[T], str],
    case_insensitive: bool = True,
) -> list[T]:
    """Filter and sort items by fuzzy match quality (best matches first)."""
    return [m.item for m in fuzzy_rank(items, query, get_text, case_insensitive)]  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Completers built on the scorer
# ---------------------------------------------------------------------------


def fuzzy_completer(candidates: Sequence[str]) -> Callable[[Document], list[Suggestion]]:
    """Return a completer ranking *candidates* against the text before the cursor.

    With no input every candidate is returned unscored.  Otherwise each
    suggestion's description carries its score, e.g. ``"score: 850"``.
    """
    pool = list(candidates)

    def complete(document: Document) -> list[Suggestion]:
        text = document.text_before_cursor()
        if not text:
            return [Suggestion(text=c) for c in pool]
        return [
            Suggestion(text=m.item, description=f"score: {m.score}")
            for m in fuzzy_rank(pool, text, lambda c: c)
        ]

    return complete


def history_searcher(entries: Sequence[str]) -> Callable[[str], list[str]]:
    """Return a search function over history *entries* (oldest first).

    Results are most-recent-first: an empty query lists the whole history
    newest to oldest, and equally scored matches prefer newer entries.
    """
    newest_first = list(reversed(entries))

    def search(query: str) -> list[str]:
        if not query:
            return list(newest_first)
        return fuzzy_filter(newest_first, query, lambda e: e)

    return search
