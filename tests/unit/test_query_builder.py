"""
Unit tests for the Solr query builder
"""
import pytest

from discovery.search.lucene import LuceneSyntaxHelper
from discovery.search.query import Query, QueryGroup
from discovery.search.query_builder import QueryBuilder


SPECS = {
    "Title": {
        "DismaxFields": ["title_short^500", "title"],
        "QueryFields": {"title": [["and"]]},
    },
    "Author": {"QueryFields": {"author": [["onephrase", 350], ["and", 200]]}},
    "Subject": {"QueryFields": {"topic": [["and"]]}},
    "ISN": {
        "QueryFields": {"isn": [["and", 100]]},
        "ExactSettings": {"QueryFields": {"isn_exact": [["identity"]]}},
    },
    "AllFields": {
        "DismaxFields": ["allfields"],
        "QueryFields": {"allfields": [["and"]]},
        "DismaxParams": [["bq", "format:Book^10"]],
    },
    "Extended": {"DismaxHandler": "edismax", "DismaxFields": ["author"]},
    "Journal": {
        "DismaxFields": ["title"],
        "QueryFields": {"title": [["and"]]},
        "FilterQuery": "format:Journal",
    },
}


@pytest.fixture
def builder():
    return QueryBuilder(SPECS)


class TestBuild:
    """Building q and friends for single queries"""

    def test_munged_query(self, builder):
        params = builder.build(Query("foo bar", "Author"))
        assert params.get_first("q") == '(author:("foo bar")^350 OR author:(foo AND bar)^200)'

    def test_handler_names_are_case_insensitive(self, builder):
        params = builder.build(Query("foo bar", "author"))
        assert params.get_first("q") == '(author:("foo bar")^350 OR author:(foo AND bar)^200)'

    def test_empty_query_matches_everything(self, builder):
        params = builder.build(Query("", "Author"))
        assert params.get_first("q") == "*:*"

    def test_no_handler(self, builder):
        params = builder.build(Query("foo", None))
        assert params.get_first("q") == "foo"

    def test_unknown_handler(self, builder):
        params = builder.build(Query("foo", "Nope"))
        assert params.get_first("q") == "foo"

    def test_dismax_parameters(self, builder):
        params = builder.build(Query("foo", "Title"))
        assert params.get_first("q") == "foo"
        assert params.get_first("qf") == "title_short^500 title"
        assert params.get_first("qt") == "dismax"

    def test_dismax_filter_query(self, builder):
        params = builder.build(Query("foo", "Journal"))
        assert params.get("fq") == ["format:Journal"]

    def test_dismax_match_all_with_filter(self, builder):
        params = builder.build(Query("", "Journal"))
        assert params.get_first("q") == "format:Journal"

    def test_extended_dismax_keeps_advanced_syntax(self, builder):
        params = builder.build(Query("a*", "Extended"))
        assert params.get_first("q") == "a*"
        assert params.get_first("qt") == "edismax"

    def test_field_specifiers_pass_through(self, builder):
        params = builder.build(Query("title:foo", "Subject"))
        assert params.get_first("q") == "title:foo"

    def test_exact_settings_for_quoted_input(self, builder):
        params = builder.build(Query('"123"', "ISN"))
        assert params.get_first("q") == '(isn_exact:("123"))'

    def test_regular_settings_for_unquoted_input(self, builder):
        params = builder.build(Query("123", "ISN"))
        assert params.get_first("q") == "(isn:(123)^100)"

    def test_input_is_normalized(self, builder):
        params = builder.build(Query("((foo", "Subject"))
        assert params.get_first("q") == "(topic:(foo))"

    def test_case_insensitive_booleans(self, builder):
        builder.set_lucene_helper(LuceneSyntaxHelper(case_sensitive_booleans=False))
        params = builder.build(Query("a or b", None))
        assert params.get_first("q") == "a OR b"


class TestAdvancedAndBoosts:
    """Advanced Lucene syntax against dismax handlers"""

    def test_boost_query_wraps_advanced_search(self, builder):
        params = builder.build(Query("foo*", "AllFields"))
        assert params.get_first("q") == "((allfields:(foo*))) AND (*:* OR format:Book^10)"
        assert "hl.q" not in params

    def test_highlighting_query_without_boosts(self, builder):
        builder.set_create_highlighting_query(True)
        params = builder.build(Query("foo*", "AllFields"))
        assert params.get_first("hl.q") == "(allfields:(foo*))"


class TestSpelling:
    """Spelling query generation"""

    def test_spelling_query_from_raw_terms(self, builder):
        builder.set_create_spelling_query(True)
        params = builder.build(Query("title:foo bar", "Subject"))
        assert params.get_first("spellcheck.q") == "foo bar"

    def test_no_spelling_query_by_default(self, builder):
        params = builder.build(Query("foo", "Subject"))
        assert "spellcheck.q" not in params


class TestQueryGroups:
    """Reducing nested query groups into a single query"""

    def test_and_with_not(self, builder):
        group = QueryGroup("AND", [
            Query("foo", "Subject"),
            QueryGroup("NOT", [Query("bar", "Subject")]),
        ])
        params = builder.build(group)
        assert params.get_first("q") == "((topic:(foo)) AND NOT ((topic:(bar))))"

    def test_or_group(self, builder):
        group = QueryGroup("OR", [Query("foo", "Subject"), Query("bar", "Subject")])
        assert builder.build(group).get_first("q") == "((topic:(foo)) OR (topic:(bar)))"

    def test_empty_members_are_skipped(self, builder):
        group = QueryGroup("AND", [Query("foo", "Subject"), Query("", "Subject")])
        assert builder.build(group).get_first("q") == "((topic:(foo)))"

    def test_reduced_handler(self, builder):
        group = QueryGroup("AND", [Query("foo", None)], reduced_handler="Subject")
        params = builder.build(group)
        assert params.get_first("q") == "(topic:((foo)))"


class TestTrailingQuestionMarks:
    """A trailing question mark matches as wildcard or literally"""

    def test_single_word(self):
        assert QueryBuilder.fix_trailing_question_marks("what?") == "(what?) OR (what\\?)"

    def test_multiple_words(self):
        assert QueryBuilder.fix_trailing_question_marks("what? now") == "((what?) OR (what\\?)) now"

    def test_quoted_phrase_unchanged(self):
        assert QueryBuilder.fix_trailing_question_marks('"what?" now') == '"what?" now'

    def test_inner_question_mark_unchanged(self):
        assert QueryBuilder.fix_trailing_question_marks("wh?t") == "wh?t"
