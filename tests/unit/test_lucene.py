"""
Unit tests for the Lucene syntax helper
"""
import pytest

from discovery.search.lucene import LuceneSyntaxHelper, tokenize


@pytest.fixture
def helper():
    return LuceneSyntaxHelper()


@pytest.fixture
def insensitive_helper():
    return LuceneSyntaxHelper(case_sensitive_booleans=False, case_sensitive_ranges=False)


class TestAdvancedSyntaxDetection:
    """Recognizing input that uses Lucene features"""

    @pytest.mark.parametrize("search", [
        "*:*",
        "title:foo",
        "foo*",
        "fo?",
        "foo~",
        "foo^2",
        "(a b)",
        "a AND b",
        "NOT a",
        "[1 TO 5]",
    ])
    def test_advanced(self, helper, search):
        assert helper.contains_advanced_lucene_syntax(search) is True

    @pytest.mark.parametrize("search", [
        "foo bar",
        '"title:foo"',
        "a and b",
        "x\\(y",
    ])
    def test_not_advanced(self, helper, search):
        assert helper.contains_advanced_lucene_syntax(search) is False

    def test_lowercase_booleans_count_when_case_insensitive(self, insensitive_helper):
        assert insensitive_helper.contains_booleans("a and b") is True

    def test_quoted_booleans_are_search_terms(self, insensitive_helper):
        assert insensitive_helper.contains_booleans('"a and b"') is False


class TestNormalization:
    """Cleaning up input before it reaches Solr"""

    def test_lone_operator_becomes_search_term(self, helper):
        assert helper.normalize_search_string("AND") == "and"

    def test_only_operators_is_empty(self, helper):
        assert helper.normalize_search_string("- +") == ""

    def test_match_all_is_empty(self, helper):
        assert helper.normalize_search_string("*:*") == ""

    def test_leading_wildcard_removed(self, helper):
        assert helper.normalize_search_string("*foo") == "foo"

    def test_unbalanced_parens_removed(self, helper):
        assert helper.normalize_search_string("((foo)") == "foo"

    def test_balanced_parens_kept(self, helper):
        assert helper.normalize_search_string("(foo)") == "(foo)"

    def test_quoted_parens_kept(self, helper):
        assert helper.normalize_search_string('"(" foo') == '"(" foo'

    def test_invalid_boost_removed(self, helper):
        assert helper.normalize_search_string("foo^bar") == "foobar"

    def test_valid_boost_kept(self, helper):
        assert helper.normalize_search_string("foo^2") == "foo^2"

    def test_stray_bracket_escaped_range_kept(self, helper):
        assert helper.normalize_search_string("[a TO b] [c") == "[a TO b] \\[c"

    def test_fancy_quotes(self, helper):
        assert helper.normalize_search_string("“quoted”") == '"quoted"'

    def test_freestanding_hyphen_removed(self, helper):
        assert helper.normalize_search_string("foo - bar") == "foo bar"

    def test_empty_parens_removed(self, helper):
        assert helper.normalize_search_string("foo ()") == "foo"

    def test_dangling_colon_removed(self, helper):
        assert helper.normalize_search_string("foo: bar") == "foo bar"

    def test_booleans_capitalized_when_case_insensitive(self, insensitive_helper):
        assert insensitive_helper.normalize_search_string("a and b or c") == "a AND b OR c"

    def test_booleans_kept_when_case_sensitive(self, helper):
        assert helper.normalize_search_string("a and b") == "a and b"

    def test_quoted_booleans_not_capitalized(self, insensitive_helper):
        assert insensitive_helper.normalize_search_string('"a and b"') == '"a and b"'

    def test_letter_range_expanded(self, insensitive_helper):
        assert insensitive_helper.normalize_search_string("[a to c]") == "([a TO c] OR [A TO C])"

    def test_numeric_range_capitalized(self, insensitive_helper):
        assert insensitive_helper.capitalize_ranges("[1 to 5]") == "[1 TO 5]"


class TestCaseSensitiveBooleans:
    """Which operators get uppercased"""

    def test_all_case_sensitive(self):
        helper = LuceneSyntaxHelper(case_sensitive_booleans=True)
        assert helper.get_bools_to_cap() == []
        assert helper.has_case_sensitive_booleans() is True

    def test_none_case_sensitive(self):
        helper = LuceneSyntaxHelper(case_sensitive_booleans=False)
        assert helper.get_bools_to_cap() == ["AND", "OR", "NOT"]
        assert helper.has_case_sensitive_booleans() is False

    def test_only_not_case_sensitive(self):
        helper = LuceneSyntaxHelper(case_sensitive_booleans="NOT")
        assert helper.get_bools_to_cap() == ["AND", "OR"]
        assert helper.capitalize_case_insensitive_booleans("a and b not c") == "a AND b not c"


class TestSearchTermExtraction:
    """Plain terms for spell checking"""

    def test_field_names_removed(self, helper):
        assert helper.extract_search_terms("title:foo author:bar") == "foo bar"

    def test_modifiers_removed(self, helper):
        assert helper.extract_search_terms("+foo -bar baz~2 qux^3") == "foo bar baz qux"

    def test_local_params_removed(self, helper):
        assert helper.extract_search_terms("{!dismax qf=title}foo") == "foo"

    def test_phrases_kept(self, helper):
        assert helper.extract_search_terms('"a b" c') == '"a b" c'


class TestTokenize:
    """Splitting search strings for munging"""

    def test_words(self):
        assert tokenize("foo bar") == ["foo", "bar"]

    def test_phrases(self):
        assert tokenize('"x y" z') == ['"x y"', "z"]

    def test_operators_glue_neighbours(self):
        assert tokenize("a AND b c") == ["a AND b", "c"]

    def test_escaped_quotes(self):
        assert tokenize('a\\"b c') == ['a\\"b', "c"]


class TestNormalizationProperties:
    """Guarantees that hold for whole classes of input"""

    @pytest.mark.parametrize("search", [
        "foo bar",
        '"a phrase" foo',
        "title:foo",
        "(a OR b) AND c",
        "foo^2",
        "[1 TO 5]",
        "((foo)",
        "“climate” ((change",
    ])
    def test_normalization_is_idempotent(self, helper, search):
        once = helper.normalize_search_string(search)
        assert helper.normalize_search_string(once) == once

    def test_case_insensitive_normalization_is_idempotent(self, insensitive_helper):
        once = insensitive_helper.normalize_search_string("a and b or c [1 to 5]")
        assert once == "a AND b OR c [1 TO 5]"
        assert insensitive_helper.normalize_search_string(once) == once

    @pytest.mark.parametrize("search", [
        "[1 TO 5]",
        "{a TO z}",
        "year:[1990 TO 2000]",
        "publishDate:{2001 TO 2010}",
        "foo [1 TO 5] bar",
    ])
    def test_valid_ranges_survive(self, helper, search):
        assert helper.prepare_for_lucene_syntax(search) == search

    def test_quoted_ranges_not_capitalized(self, insensitive_helper):
        assert insensitive_helper.capitalize_ranges('"[1 to 5]"') == '"[1 to 5]"'
        assert insensitive_helper.capitalize_ranges('"[a to b]" [1 to 5]') == '"[a to b]" [1 TO 5]'
