"""
User query model: single queries and (nested) boolean query groups
"""
import re
from typing import Any, Dict, List, Optional, Union

from discovery.core.exceptions import InvalidQueryError


class Query:
    """A single search string targeted at one search handler"""

    def __init__(self, string: str = "", handler: Optional[str] = None, operator: Optional[str] = None):
        self.string = string or ""
        self.handler = handler
        self.operator = operator

    def __repr__(self) -> str:
        return f"Query({self.string!r}, handler={self.handler!r})"

    def get_string(self) -> str:
        return self.string

    def set_string(self, string: str) -> None:
        self.string = string

    def get_handler(self) -> Optional[str]:
        return self.handler

    def set_handler(self, handler: Optional[str]) -> None:
        self.handler = handler

    def get_operator(self) -> Optional[str]:
        return self.operator

    def get_all_terms(self) -> str:
        return self.string

    def contains_term(self, needle: str) -> bool:
        return bool(_term_pattern(needle).search(self.string))

    def replace_term(self, from_term: str, to_term: str) -> None:
        self.string = _term_pattern(from_term).sub(to_term, self.string)

    def to_dict(self) -> Dict[str, Any]:
        return {"lookfor": self.string, "type": self.handler}


class QueryGroup:
    """Boolean combination of queries and nested groups"""

    OPERATORS = ("AND", "OR", "NOT")

    def __init__(
        self,
        operator: str,
        queries: Optional[List[Union["Query", "QueryGroup"]]] = None,
        reduced_handler: Optional[str] = None,
    ):
        self.set_operator(operator)
        self.queries: List[Union[Query, QueryGroup]] = list(queries or [])
        self.reduced_handler = reduced_handler

    def __repr__(self) -> str:
        return f"QueryGroup({self._operator!r}, {self.queries!r})"

    def set_operator(self, operator: str) -> None:
        operator = (operator or "").upper()
        if operator not in self.OPERATORS:
            raise InvalidQueryError(f"Unknown or invalid boolean operator: {operator}")
        self._operator = operator

    def get_operator(self) -> str:
        # A NOT group excludes any of its members
        return "OR" if self.is_negated() else self._operator

    def is_negated(self) -> bool:
        return self._operator == "NOT"

    def get_queries(self) -> List[Union[Query, "QueryGroup"]]:
        return self.queries

    def add_query(self, query: Union[Query, "QueryGroup"]) -> None:
        self.queries.append(query)

    def get_reduced_handler(self) -> Optional[str]:
        return self.reduced_handler

    def set_reduced_handler(self, handler: Optional[str]) -> None:
        self.reduced_handler = handler

    def get_all_terms(self) -> str:
        terms = [q.get_all_terms() for q in self.queries]
        return " ".join(t for t in terms if t)

    def contains_term(self, needle: str) -> bool:
        return any(q.contains_term(needle) for q in self.queries)

    def replace_term(self, from_term: str, to_term: str) -> None:
        for query in self.queries:
            query.replace_term(from_term, to_term)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operator": self._operator,
            "queries": [q.to_dict() for q in self.queries],
            "reduced_handler": self.reduced_handler,
        }


def _term_pattern(term: str) -> "re.Pattern":
    return re.compile(r"(?<![\w])" + re.escape(term) + r"(?![\w])", re.IGNORECASE)


def query_from_dict(data: Dict[str, Any]) -> Union[Query, QueryGroup]:
    """
    Build a Query or QueryGroup from its JSON representation.

    Leaves look like {"lookfor": "...", "type": "Title"}; groups look like
    {"operator": "AND", "queries": [...]}.

    Raises:
        InvalidQueryError: If the structure is not recognised
    """
    if not isinstance(data, dict):
        raise InvalidQueryError("Query must be an object")

    if "queries" in data:
        queries = data.get("queries")
        if not isinstance(queries, list):
            raise InvalidQueryError("Query group 'queries' must be a list")
        return QueryGroup(
            data.get("operator", "AND"),
            [query_from_dict(q) for q in queries],
            reduced_handler=data.get("reduced_handler"),
        )

    if "lookfor" in data:
        return Query(data.get("lookfor") or "", data.get("type"))

    raise InvalidQueryError("Query must contain either 'lookfor' or 'queries'")
