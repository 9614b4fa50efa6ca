"""Unit tests for the match query engine."""

import logging

import pytest

from tests.fixtures.zendesk_corpus import T1, T2, T3, T5
from zen_search.domain.model import DocType
from zen_search.exceptions import QueryError
from zen_search.search.query import MatchQuery, QueryEngine
from zen_search.search.storage import SegmentWriter


def _ids(hits):
    return [hit.fields["_id"] for hit in hits]


class TestKeywordFields:
    def test_exact_id_matches_one_user(self, engine):
        hits = engine.search(MatchQuery("_id", "1"), doc_type=DocType.USER)

        assert _ids(hits) == ["1"]
        assert hits[0].doc_type is DocType.USER
        assert hits[0].score > 0

    def test_numeric_query_values_match_text_ids(self, engine):
        assert _ids(engine.search(MatchQuery("_id", 2), doc_type=DocType.USER)) == ["2"]

    def test_integral_float_query_values_match_ids(self, engine):
        assert _ids(engine.search(MatchQuery("organization_id", 101.0), doc_type=DocType.USER)) == ["1"]

    def test_boolean_query_values_match_flags(self, engine):
        assert _ids(engine.search(MatchQuery("verified", True), doc_type=DocType.USER)) == ["1", "3"]
        assert _ids(engine.search(MatchQuery("verified", "false"), doc_type=DocType.USER)) == ["2"]

    def test_keyword_matching_is_exact(self, engine):
        assert engine.search(MatchQuery("_id", T1.upper()), doc_type=DocType.TICKET) == []
        assert engine.search(MatchQuery("_id", f" {T1}"), doc_type=DocType.TICKET) == []
        assert engine.search(MatchQuery("_id", ""), doc_type=DocType.TICKET) == []

    def test_unmatched_id_returns_empty(self, engine):
        assert engine.search(MatchQuery("_id", "12345"), doc_type=DocType.USER) == []


class TestTypeScoping:
    def test_foreign_key_hits_are_scoped_to_the_requested_type(self, engine):
        assert _ids(engine.search(MatchQuery("organization_id", "101"), doc_type=DocType.USER)) == ["1"]
        assert _ids(engine.search(MatchQuery("organization_id", "101"), doc_type=DocType.TICKET)) == [T1, T3]

    def test_shared_text_tokens_do_not_leak_across_types(self, engine, caplog):
        with caplog.at_level(logging.DEBUG, logger="zen_search.search.query"):
            users = engine.search(MatchQuery("tags", "west"), doc_type=DocType.USER)

        assert _ids(users) == ["1"]
        assert "2 of other types discarded" in caplog.text
        assert _ids(engine.search(MatchQuery("tags", "West"), doc_type=DocType.TICKET)) == [T5]
        assert _ids(engine.search(MatchQuery("tags", "west"), doc_type=DocType.ORGANIZATION)) == ["101"]

    def test_id_shared_across_types_matches_only_requested_type(self, engine):
        hits = engine.search(MatchQuery("_id", "101"), doc_type=DocType.ORGANIZATION)

        assert _ids(hits) == ["101"]
        assert {hit.fields["doc_type"] for hit in hits} == {"organization"}


class TestTextFields:
    def test_text_field_matches_two_tickets(self, engine):
        hits = engine.search(MatchQuery("type", "problem"), doc_type=DocType.TICKET)

        assert _ids(hits) == [T2, T3]
        assert {hit.doc_type for hit in hits} == {DocType.TICKET}

    def test_text_matching_normalizes_case_and_plurals(self, engine):
        assert _ids(engine.search(MatchQuery("subject", "PROBLEMS"), doc_type=DocType.TICKET)) == [T3]

    def test_or_operator_ranks_documents_matching_more_terms_first(self, engine):
        hits = engine.search(MatchQuery("subject", "catastrophe korea"), doc_type=DocType.TICKET)

        assert _ids(hits) == [T1, T2]
        assert hits[0].score > hits[1].score

    def test_and_operator_requires_every_term(self, engine):
        hits = engine.search(MatchQuery("subject", "catastrophe korea", operator="and"), doc_type=DocType.TICKET)

        assert _ids(hits) == [T1]

    def test_value_without_terms_returns_empty(self, engine):
        assert engine.search(MatchQuery("subject", "the of"), doc_type=DocType.TICKET) == []

    def test_analyze_deduplicates_terms(self, engine, mapping):
        subject = mapping.schema_for(DocType.TICKET)["subject"]

        assert engine.analyze(subject, "Problem problems in Morocco") == ("problem", "morocco")


class TestErrors:
    @pytest.mark.parametrize("field", ["nickname", "organization.name", "doc_type", "subject"])
    def test_fields_outside_the_type_schema_are_rejected(self, engine, field):
        with pytest.raises(QueryError, match="Unknown search field"):
            engine.search(MatchQuery(field, "x"), doc_type=DocType.USER)

    def test_missing_value_is_rejected(self, engine):
        with pytest.raises(QueryError, match="Missing value"):
            engine.search(MatchQuery("name", None), doc_type=DocType.USER)


def test_hit_fields_are_read_only(engine):
    hit = engine.search(MatchQuery("_id", "1"), doc_type=DocType.USER)[0]

    with pytest.raises(TypeError):
        hit.fields["name"] = "changed"


def test_engine_over_empty_segment(mapping):
    engine = QueryEngine(SegmentWriter(mapping).build())

    assert engine.search(MatchQuery("name", "anyone"), doc_type=DocType.USER) == []
