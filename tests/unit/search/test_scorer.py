"""Unit tests for IDF statistics and chunk ranking."""

import math

import pytest

from docsite_search.domain.model import Document
from docsite_search.search.indexer import CorpusIndexer
from docsite_search.search.models import Posting
from docsite_search.search.scorer import ChunkScorer, QueryTerm, gather_postings
from docsite_search.search.stats import calculate_idf, coverage_score, saturate


def _index(*documents):
    return CorpusIndexer().build(list(documents)).index


def _rank(index, *terms, **kwargs):
    query_terms = [QueryTerm(term=term, origin=term) for term in terms]
    scorer = ChunkScorer(index, **kwargs)
    return scorer.rank(query_terms, gather_postings(index, query_terms))


@pytest.mark.unit
class TestStats:
    def test_idf_is_positive_even_for_universal_terms(self):
        assert calculate_idf(2, 2) > 0
        assert calculate_idf(1, 1) > 0

    def test_idf_decreases_with_document_frequency(self):
        assert calculate_idf(1, 10) > calculate_idf(5, 10) > calculate_idf(10, 10)

    def test_idf_matches_formula(self):
        assert calculate_idf(1, 2) == pytest.approx(math.log(2.0))

    def test_idf_empty_corpus(self):
        assert calculate_idf(0, 0) == 0.0

    def test_saturate_stays_below_one(self):
        assert saturate(0.0) == 0.0
        assert saturate(1.0) == 0.5
        assert saturate(1e9) < 1.0
        assert saturate(2.0) < saturate(3.0)

    def test_one_more_matched_term_outweighs_any_relevance(self):
        assert coverage_score(2, 0.01) > coverage_score(1, 1e9)
        assert coverage_score(2, 3.0) > coverage_score(2, 1.0)
        assert coverage_score(0, 0.0) == 0.0


@pytest.mark.unit
class TestPosting:
    def test_weighted_frequency_applies_field_boosts(self):
        posting = Posting(chunk_id="c", frequency=2, title_frequency=1, category_frequency=1)
        boosts = {"title": 3.0, "category": 2.0, "body": 1.0}

        assert posting.weighted_frequency(boosts) == 7.0
        assert posting.title_weight(boosts) == 3.0
        assert posting.total_frequency == 4

    def test_positions_default_to_a_fresh_empty_array(self):
        first, second = Posting(chunk_id="a"), Posting(chunk_id="b")

        assert first.positions.typecode == "I"
        assert len(first.positions) == 0
        assert first.positions is not second.positions


@pytest.mark.unit
class TestChunkScorer:
    def test_non_matching_chunk_scores_zero(self):
        index = _index(Document(id="a", title="Alpha", version="v1", body="alpha text"))
        scorer = ChunkScorer(index)

        score = scorer.score([QueryTerm(term="zebra", origin="zebra")], index.chunk("a-chunk-0"), {})

        assert score.score == 0
        assert score.matched_terms == ()
        assert _rank(index, "zebra") == []

    def test_title_match_outranks_body_match(self):
        index = _index(
            Document(id="title", title="Lenses", version="v1", body="Focus on state."),
            Document(id="body", title="Overview", version="v1", body="Lenses focus on state."),
        )

        ranked = _rank(index, "len")

        assert [score.document_id for score in ranked] == ["title", "body"]

    def test_coverage_beats_repetition(self):
        index = _index(
            Document(id="both", title="Notes", version="v1", body="receptor dispatcher"),
            Document(id="repeat", title="Notes", version="v1", body="receptor receptor"),
            Document(id="other", title="Notes", version="v1", body="unrelated words"),
        )

        ranked = _rank(index, "receptor", "dispatcher")

        assert ranked[0].document_id == "both"
        assert ranked[0].matched_terms == ("receptor", "dispatcher")

    def test_heavy_repetition_does_not_beat_a_second_distinct_term(self):
        index = _index(
            Document(id="both", title="Notes", version="v1", body="receptor dispatcher"),
            Document(id="repeat", title="Notes", version="v1", body="receptor " * 5),
            Document(id="title-repeat", title="Receptor", version="v1", body="receptor " * 20),
            Document(id="other", title="Notes", version="v1", body="unrelated words"),
        )

        ranked = _rank(index, "receptor", "dispatcher")

        assert ranked[0].document_id == "both"
        assert {score.document_id for score in ranked[1:]} == {"repeat", "title-repeat"}
        assert ranked[1].relevance > ranked[0].relevance

    def test_superset_match_scores_at_least_as_high(self):
        index = _index(
            Document(id="a", title="Notes", version="v1", body="receptor dispatcher lens"),
            Document(id="b", title="Notes", version="v1", body="receptor"),
        )

        scores = {score.document_id: score.score for score in _rank(index, "receptor", "dispatcher")}

        assert scores["a"] >= scores["b"] > 0

    def test_fuzzy_terms_are_discounted(self):
        index = _index(Document(id="a", title="Notes", version="v1", body="receptor"))
        chunk = index.chunk("a-chunk-0")
        postings = {"receptor": index.lookup("receptor")[0]}
        scorer = ChunkScorer(index)

        exact = scorer.score([QueryTerm(term="receptor", origin="receptor")], chunk, postings)
        fuzzy = scorer.score([QueryTerm(term="receptor", origin="recptor", distance=1, weight=0.8)], chunk, postings)

        assert fuzzy.relevance == pytest.approx(exact.relevance * 0.8)
        assert 0 < fuzzy.score < exact.score
        assert fuzzy.matched_terms == ("receptor",)

    def test_ties_prefer_shorter_text_then_identifier(self):
        index = _index(
            Document(id="long", title="Notes", version="v1", body="receptor with a much longer explanation"),
            Document(id="short", title="Notes", version="v1", body="receptor briefly"),
            Document(id="also-short", title="Notes", version="v1", body="receptor briefly"),
        )

        ranked = _rank(index, "receptor")

        assert [score.document_id for score in ranked] == ["also-short", "short", "long"]

    def test_equal_scores_prefer_title_matches_over_shorter_text(self):
        index = _index(
            Document(id="z-title", title="Lenses", version="v1", body="Focus on the projected state."),
            Document(id="a-body", title="Notes", version="v1", body="Lenses."),
        )

        ranked = _rank(index, "len", field_boosts={"title": 1.0, "body": 1.0, "category": 1.0})

        assert ranked[0].score == pytest.approx(ranked[1].score)
        assert ranked[0].text_length > ranked[1].text_length
        assert [score.document_id for score in ranked] == ["z-title", "a-body"]
        assert ranked[0].title_weight > ranked[1].title_weight == 0

    def test_category_only_match_scores_without_matched_terms(self):
        index = _index(Document(id="a", title="Notes", category="Lenses", version="v1", body="text"))

        ranked = _rank(index, "len")

        assert ranked[0].score > 0
        assert ranked[0].matched_terms == ()

    def test_custom_boosts(self):
        index = _index(
            Document(id="title", title="Lenses", version="v1", body="Focus."),
            Document(id="body", title="Overview", version="v1", body="Lenses lenses lenses lenses."),
        )

        ranked = _rank(index, "len", field_boosts={"title": 1.0, "body": 1.0, "category": 1.0})

        assert ranked[0].document_id == "body"
