"""Unit tests for prefix suggestions."""

import pytest

from docsite_search.domain.model import Document
from docsite_search.search.indexer import CorpusIndexer
from docsite_search.search.suggestions import SuggestionEngine


@pytest.fixture
def suggestions(guide_documents):
    return SuggestionEngine(CorpusIndexer().build(guide_documents).index)


@pytest.mark.unit
class TestSuggestionEngine:
    def test_prefix_match_on_indexed_word(self, suggestions):
        assert suggestions.suggest("di") == ["dispatcher"]

    def test_unknown_prefix_returns_empty(self, suggestions):
        assert suggestions.suggest("xyz") == []

    def test_case_and_diacritics_insensitive(self, suggestions):
        assert suggestions.suggest("DI") == ["dispatcher"]
        assert suggestions.suggest("Dí") == ["dispatcher"]

    def test_blank_input(self, suggestions):
        assert suggestions.suggest("") == []
        assert suggestions.suggest("   ") == []

    def test_ranked_by_corpus_frequency(self):
        index = CorpusIndexer().build(
            [
                Document(id="a", title="Routing", version="v1", body="route routes route"),
                Document(id="b", title="Rules", version="v1", body="rules"),
            ]
        ).index
        engine = SuggestionEngine(index)

        suggestions = engine.suggest("r", 10)

        assert suggestions[0] == "route"
        assert set(suggestions) == {"route", "routes", "routing", "rules"}
        assert len(suggestions) == len(set(suggestions))

    def test_respects_max_results(self, suggestions):
        assert len(suggestions.suggest("s", 1)) <= 1
        assert suggestions.suggest("di", 0) == []

    def test_multi_word_completes_last_word(self, suggestions):
        assert suggestions.suggest("receptor di") == ["receptor dispatcher"]
        assert suggestions.suggest("receptor ") == []

    def test_is_repeatable(self, suggestions):
        assert suggestions.suggest("c") == suggestions.suggest("c")
