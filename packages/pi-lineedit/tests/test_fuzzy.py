"""Tests for pi.lineedit.fuzzy -- fuzzy scoring, filtering and completers."""

from __future__ import annotations

from pi.lineedit.completion import Document, Suggestion
from pi.lineedit.fuzzy import (
    FuzzyMatch,
    fuzzy_completer,
    fuzzy_filter,
    fuzzy_rank,
    fuzzy_score,
    history_searcher,
)


# ---------------------------------------------------------------------------
# fuzzy_score
# ---------------------------------------------------------------------------


class TestFuzzyScore:
    """Scoring tiers for fuzzy_score."""

    def test_empty_input_matches_everything(self) -> None:
        assert fuzzy_score("", "anything") == 1
        assert fuzzy_score("", "") == 1

    def test_empty_candidate_never_matches(self) -> None:
        assert fuzzy_score("a", "") == 0

    def test_exact_match(self) -> None:
        assert fuzzy_score("git", "git") == 1000

    def test_prefix_match(self) -> None:
        assert fuzzy_score("git", "github") == 830

    def test_substring_match(self) -> None:
        assert fuzzy_score("hub", "github") == 515

    def test_subsequence_match(self) -> None:
        assert fuzzy_score("gb", "github") == 20

    def test_unmatched_trailing_characters_stop_contributing(self) -> None:
        assert fuzzy_score("gz", "github") == 10

    def test_no_match(self) -> None:
        assert fuzzy_score("xyz", "github") == 0

    def test_out_of_order_characters_score_lower(self) -> None:
        assert fuzzy_score("ba", "ab") == 10
        assert fuzzy_score("ab", "axb") == 20

    def test_case_sensitive_by_default(self) -> None:
        assert fuzzy_score("GIT", "github") == 0
        assert fuzzy_score("GIT", "github", case_insensitive=True) == 830

    def test_tiers_are_ordered(self) -> None:
        exact = fuzzy_score("stat", "stat")
        prefix = fuzzy_score("stat", "status")
        substring = fuzzy_score("stat", "git status")
        subsequence = fuzzy_score("stat", "s-t-a-t")
        assert exact > prefix > substring > subsequence > 0


# ---------------------------------------------------------------------------
# fuzzy_filter / fuzzy_rank
# ---------------------------------------------------------------------------


class TestFuzzyFilter:
    def test_sorted_best_first(self) -> None:
        items = ["xgxixtx", "agit", "git", "github"]
        assert fuzzy_filter(items, "git", lambda s: s) == ["git", "github", "agit", "xgxixtx"]

    def test_zero_scores_are_excluded(self) -> None:
        assert fuzzy_filter(["apple", "banana"], "zz", lambda s: s) == []

    def test_ties_keep_input_order(self) -> None:
        assert fuzzy_filter(["gitb", "gita"], "git", lambda s: s) == ["gitb", "gita"]

    def test_case_insensitive_by_default(self) -> None:
        assert fuzzy_filter(["README.md"], "readme", lambda s: s) == ["README.md"]

    def test_works_with_objects(self) -> None:
        items = [Suggestion("status"), Suggestion("commit")]
        assert fuzzy_filter(items, "com", lambda s: s.text) == [Suggestion("commit")]

    def test_rank_carries_scores(self) -> None:
        ranked = fuzzy_rank(["git", "github"], "git", lambda s: s)
        assert ranked == [FuzzyMatch("git", 1000), FuzzyMatch("github", 830)]


# ---------------------------------------------------------------------------
# Completers
# ---------------------------------------------------------------------------


class TestFuzzyCompleter:
    def test_empty_input_returns_all_candidates(self) -> None:
        complete = fuzzy_completer(["status", "commit"])
        assert complete(Document("", 0)) == [Suggestion("status"), Suggestion("commit")]

    def test_ranks_text_before_cursor(self) -> None:
        complete = fuzzy_completer(["commit", "status", "stash"])
        result = complete(Document("STA", 3))
        assert result == [
            Suggestion("status", "score: 830"),
            Suggestion("stash", "score: 830"),
        ]

    def test_ignores_text_after_cursor(self) -> None:
        complete = fuzzy_completer(["commit", "status"])
        result = complete(Document("coXXXX", 2))
        assert [s.text for s in result] == ["commit"]


class TestHistorySearcher:
    def test_empty_query_lists_newest_first(self) -> None:
        search = history_searcher(["a1", "b", "a2"])
        assert search("") == ["a2", "b", "a1"]

    def test_ties_prefer_newer_entries(self) -> None:
        search = history_searcher(["a1", "b", "a2"])
        assert search("a") == ["a2", "a1"]

    def test_better_matches_first(self) -> None:
        search = history_searcher(["git status", "gst", "docker ps"])
        assert search("git status") == ["git status", "gst"]
