"""Unit tests for fuzzy matching / typo correction."""

import pytest

from docsite_search.search.fuzzy import (
    FuzzyMatcher,
    find_fuzzy_matches,
    levenshtein_distance,
    max_distance_for,
)
from docsite_search.search.indexer import CorpusIndexer


@pytest.mark.unit
class TestLevenshteinDistance:
    """Tests for levenshtein_distance function."""

    def test_identical_strings(self):
        assert levenshtein_distance("receptor", "receptor") == 0

    def test_empty_strings(self):
        assert levenshtein_distance("", "") == 0
        assert levenshtein_distance("abc", "") == 3
        assert levenshtein_distance("", "abc") == 3

    def test_single_edits(self):
        assert levenshtein_distance("cat", "cats") == 1
        assert levenshtein_distance("cats", "cat") == 1
        assert levenshtein_distance("cat", "bat") == 1

    def test_multiple_edits(self):
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_common_typos(self):
        assert levenshtein_distance("recptor", "receptor") == 1
        assert levenshtein_distance("dispatcher", "dispacther") == 2

    def test_early_exit_caps_distance(self):
        assert levenshtein_distance("abc", "xyzxyz", max_distance=1) == 2


@pytest.mark.unit
class TestMaxDistanceFor:
    @pytest.mark.parametrize(
        ("threshold", "length", "expected"),
        [
            (0.4, 7, 3),
            (0.2, 7, 1),
            (0.5, 5, 3),
            (0.1, 4, 0),
            (0.0, 10, 0),
            (1.0, 0, 0),
        ],
    )
    def test_rounds_half_up(self, threshold, length, expected):
        assert max_distance_for(threshold, length) == expected

    def test_monotonic_in_threshold(self):
        distances = [max_distance_for(step / 20, 9) for step in range(21)]
        assert distances == sorted(distances)


@pytest.mark.unit
class TestFindFuzzyMatches:
    """Tests for find_fuzzy_matches function."""

    def test_orders_by_distance_then_alphabetically(self):
        vocabulary = ["rout", "route", "routs", "trout"]

        assert find_fuzzy_matches("rout", vocabulary, 1) == [
            ("rout", 0),
            ("route", 1),
            ("routs", 1),
            ("trout", 1),
        ]

    def test_no_matches_outside_distance(self):
        assert find_fuzzy_matches("xyz", ["receptor", "dispatcher"], 2) == []

    def test_empty_inputs(self):
        assert find_fuzzy_matches("", ["a"], 2) == []
        assert find_fuzzy_matches("abc", [], 2) == []


@pytest.mark.unit
class TestFuzzyMatcher:
    @pytest.fixture
    def matcher(self, guide_documents):
        return FuzzyMatcher(CorpusIndexer().build(guide_documents).index)

    def test_expand_finds_indexed_term(self, matcher):
        assert "receptor" in matcher.expand("recptor", 1)

    def test_expand_returns_empty_when_nothing_is_close(self, matcher):
        assert matcher.expand("zzzzzz", 2) == []

    def test_expand_is_monotonic_in_distance(self, matcher):
        previous: set[str] = set()
        for distance in range(6):
            current = set(matcher.expand("dispacher", distance))
            assert previous <= current
            previous = current

    def test_expand_with_threshold(self, matcher):
        assert [term for term, _ in matcher.expand_with_threshold("recptor", 0.4)][0] == "receptor"
        assert matcher.expand_with_threshold("recptor", 0.0) == []
