"""
Solr query builder

Turns a user query (a single Query or a nested QueryGroup) into the Solr
parameters q, qf, qt, fq and friends, driven by the search specs.
"""
import logging
import re
from typing import Any, Dict, Optional, Union

from discovery.search.handler import SearchHandler
from discovery.search.lucene import INSIDE_QUOTES, LuceneSyntaxHelper
from discovery.search.param_bag import ParamBag
from discovery.search.query import Query, QueryGroup

logger = logging.getLogger(__name__)


TRAILING_QUESTION_MARK_RE = re.compile(r"(\S+\?)(\s|$)" + INSIDE_QUOTES)


class QueryBuilder:
    """Builds Solr request parameters for user queries"""

    def __init__(self, specs: Optional[Dict[str, Any]] = None, default_dismax_handler: str = "dismax"):
        self.default_dismax_handler = default_dismax_handler
        self.specs: Dict[str, SearchHandler] = {}
        self.exact_specs: Dict[str, SearchHandler] = {}
        self.create_highlighting_query = False
        self.create_spelling_query = False
        self._lucene_helper: Optional[LuceneSyntaxHelper] = None
        self.set_specs(specs or {})

    # Public API

    def build(self, query: Union[Query, QueryGroup]) -> ParamBag:
        """
        Build the Solr parameters of a query.

        Args:
            query: User query

        Returns:
            ParamBag with at least a non-empty q parameter
        """
        params = ParamBag()
        helper = self.get_lucene_helper()

        # The spelling query is taken from the raw terms, before any syntax is added
        if self.create_spelling_query:
            params.set("spellcheck.q", helper.extract_search_terms(query.get_all_terms()))

        if isinstance(query, QueryGroup):
            query = self._reduce_query_group(query)
        else:
            query.set_string(helper.normalize_search_string(query.get_string()))

        string = query.get_string() or "*:*"

        handler = self._get_search_handler(query.get_handler(), string)
        if handler:
            if not handler.has_extended_dismax() and helper.contains_advanced_lucene_syntax(string):
                string = self._create_advanced_inner_search_string(string, handler)
                if handler.has_dismax():
                    old_string = string
                    string = handler.create_boost_query_string(string)
                    # Highlight on the query without the boost clauses
                    if self.create_highlighting_query and old_string != string:
                        params.set("hl.q", old_string)
            elif handler.has_dismax():
                string = self.fix_trailing_question_marks(string)
                params.set("qf", " ".join(handler.get_dismax_fields()))
                params.set("qt", handler.get_dismax_handler())
                for name, value in handler.get_dismax_params():
                    params.add(name, value)
                if handler.has_filter_query():
                    params.add("fq", handler.get_filter_query())
            else:
                string = handler.create_simple_query_string(string)

        params.set("q", string)
        logger.debug(f"Built Solr query: {string}")
        return params

    def set_create_highlighting_query(self, enable: bool) -> None:
        self.create_highlighting_query = enable

    def set_create_spelling_query(self, enable: bool) -> None:
        self.create_spelling_query = enable

    def set_specs(self, specs: Dict[str, Any]) -> None:
        for name, spec in specs.items():
            spec = dict(spec or {})
            exact = spec.pop("ExactSettings", None)
            if exact is not None:
                self.exact_specs[str(name).lower()] = SearchHandler(exact, self.default_dismax_handler)
            self.specs[str(name).lower()] = SearchHandler(spec, self.default_dismax_handler)

    def get_lucene_helper(self) -> LuceneSyntaxHelper:
        if self._lucene_helper is None:
            self._lucene_helper = LuceneSyntaxHelper()
        return self._lucene_helper

    def set_lucene_helper(self, helper: LuceneSyntaxHelper) -> None:
        self._lucene_helper = helper

    # Internal API

    def _get_search_handler(self, handler: Optional[str], search_string: Optional[str]) -> Optional[SearchHandler]:
        if not handler:
            return None
        handler = handler.lower()
        if handler in self.exact_specs:
            search_string = (search_string or "").strip()
            if len(search_string) > 1 and search_string.startswith('"') and search_string.endswith('"'):
                return self.exact_specs[handler]
        return self.specs.get(handler)

    def _reduce_query_group(self, group: QueryGroup) -> Query:
        return Query(self._reduce_query_group_components(group), group.get_reduced_handler())

    def _reduce_query_group_components(self, component: Union[Query, QueryGroup]) -> str:
        if isinstance(component, QueryGroup):
            reduced = [self._reduce_query_group_components(q) for q in component.get_queries()]
            reduced = [s for s in reduced if s != ""]
            search_string = "NOT " if component.is_negated() else ""
            if reduced:
                search_string += "(%s)" % (" %s " % component.get_operator()).join(reduced)
            return search_string

        search_string = self.get_lucene_helper().normalize_search_string(component.get_string())
        handler = self._get_search_handler(component.get_handler(), search_string)
        if handler and search_string != "":
            search_string = self._create_search_string(search_string, handler)
        return search_string

    def _create_search_string(self, string: str, handler: Optional[SearchHandler] = None) -> str:
        advanced = self.get_lucene_helper().contains_advanced_lucene_syntax(string)
        if advanced and handler:
            return handler.create_advanced_query_string(string)
        if handler:
            return handler.create_simple_query_string(string)
        return string

    @staticmethod
    def fix_trailing_question_marks(string: str) -> str:
        """
        Make a trailing question mark match both as a wildcard and literally:
        "what?" becomes "(what?) OR (what\\?)". Quoted phrases are left alone.
        """
        multiword = re.search(r"\S\s+\S", string) is not None

        def replace(match: "re.Match") -> str:
            word = match.group(1)
            escaped = word.replace("\\?", "?").replace("?", "\\?")
            result = f"({word}) OR ({escaped})"
            if multiword:
                result = f"({result}) "
            return result

        return TRAILING_QUESTION_MARK_RE.sub(replace, string).rstrip()

    def _create_advanced_inner_search_string(self, string: str, handler: Optional[SearchHandler]) -> str:
        # Match everything, but still apply the handler's filter
        if string.strip() == "*:*" and handler and handler.has_filter_query():
            return handler.get_filter_query()

        # Field specifiers cannot be mapped onto the handler's fields
        if ":" in string:
            return string

        string = self.fix_trailing_question_marks(string)
        return handler.create_advanced_query_string(string) if handler else string
