"""
Search handler: rule-based translation of a user search into a Solr query

A search handler wraps one entry of the search specs YAML (a "search type"
such as Title or AllFields) and knows how to turn a search string into a
field-weighted Lucene query or a Dismax subquery.
"""
import re
from typing import Any, Dict, List, Optional, Tuple

from discovery.search.lucene import tokenize


CONFIG_KEYS = ("CustomMunge", "DismaxFields", "DismaxHandler", "QueryFields", "DismaxParams", "FilterQuery")

PHP_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE, "u": 0}


class SearchHandler:
    """Translation rules of a single search type"""

    def __init__(self, spec: Dict[str, Any], default_dismax_handler: str = "dismax"):
        self.specs: Dict[str, Any] = {}
        for key in CONFIG_KEYS:
            value = spec.get(key)
            self.specs[key] = value if value is not None else ([] if key not in ("CustomMunge", "QueryFields") else {})
        if not self.specs["DismaxHandler"]:
            self.specs["DismaxHandler"] = default_dismax_handler

    def __repr__(self) -> str:
        return f"SearchHandler({self.specs!r})"

    # Public API

    def create_advanced_query_string(self, search: str) -> str:
        """Query string for a search string that uses Lucene syntax"""
        return self._create_query_string(search, advanced=True)

    def create_simple_query_string(self, search: str) -> str:
        """Query string for a plain search string"""
        return self._create_query_string(search, advanced=False)

    def create_boost_query_string(self, search: str) -> str:
        """
        Wrap an advanced query with the handler's boost queries and functions.

        Dismax applies bq/bf itself; a Lucene query has to carry them as
        optional clauses instead.
        """
        boost_query = []
        if self.has_dismax():
            for name, value in self.get_dismax_params():
                if name == "bq":
                    boost_query.append(value)
                elif name == "bf":
                    # Several space-separated functions, each with its own boost
                    for function in str(value).split(" "):
                        if function:
                            parts = function.split("^", 1)
                            boost = "^" + parts[1] if len(parts) > 1 else ""
                            boost_query.append('_val_:"%s"%s' % (parts[0].replace('"', '\\"'), boost))
        if boost_query:
            return "(%s) AND (*:* OR %s)" % (search, " OR ".join(boost_query))
        return search

    def has_dismax(self) -> bool:
        return bool(self.specs["DismaxFields"])

    def get_dismax_handler(self) -> str:
        return self.specs["DismaxHandler"]

    def has_extended_dismax(self) -> bool:
        return self.has_dismax() and self.get_dismax_handler() == "edismax"

    def get_dismax_fields(self) -> List[str]:
        return list(self.specs["DismaxFields"])

    def get_dismax_params(self) -> List[Tuple[str, str]]:
        return [(param[0], param[1]) for param in self.specs["DismaxParams"]]

    def get_filter_query(self) -> Optional[str]:
        return self.specs["FilterQuery"] or None

    def has_filter_query(self) -> bool:
        return bool(self.specs["FilterQuery"])

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.specs)

    # Internal API

    def _dismax_subquery(self, search: str) -> str:
        dismax_params = [
            "%s='%s'" % (name, str(value).replace("'", "\\'"))
            for name, value in self.get_dismax_params()
        ]
        dismax_query = '{!%s qf="%s" %s}%s' % (
            self.get_dismax_handler(),
            " ".join(self.specs["DismaxFields"]),
            " ".join(dismax_params),
            search,
        )
        return '_query_:"%s"' % addslashes(dismax_query)

    def _munge_values(self, search: str, tokenize_input: bool = True) -> Dict[str, str]:
        """Variants of the search string referenced by the munge rules"""
        if tokenize_input:
            tokens = tokenize(search)
            values = {
                "onephrase": '"%s"' % " ".join(tokens).replace('"', ""),
                "and": " AND ".join(tokens),
                "or": " OR ".join(tokens),
            }
        else:
            # Advanced input is passed through as-is. A phrase search only
            # makes sense (and is only safe) for unquoted multi-word input
            # without a NOT.
            values = {"and": search, "or": search}
            if '"' in search or " NOT " in search or not re.search(r"\s", search):
                values["onephrase"] = search
            else:
                values["onephrase"] = '"%s"' % search

        values["identity"] = search

        for munge_name, operations in (self.specs["CustomMunge"] or {}).items():
            value = search
            for operation in operations:
                value = apply_munge_operation(value, operation)
            values[munge_name] = value

        return values

    def _create_query_string(self, search: str, advanced: bool = False) -> str:
        if (self.has_extended_dismax() or not advanced) and self.has_dismax():
            query = self._dismax_subquery(search)
        else:
            munge_rules = self.specs["QueryFields"]
            if munge_rules:
                query = self._munge(munge_rules, self._munge_values(search, not advanced))
            else:
                query = search
        if self.has_filter_query():
            query = "(%s) AND (%s)" % (query, self.get_filter_query())
        return "(%s)" % query

    def _munge(self, munge_rules: Dict[Any, Any], munge_values: Dict[str, str], joiner: str = "OR") -> str:
        clauses = []
        for field, clause_array in munge_rules.items():
            if _is_numeric(field):
                # Nested group: the first entry holds [joiner, weight]
                entries = _group_entries(clause_array)
                join_weight = entries.pop(0)[1]
                # Joined with single spaces; Solr parses doubled spaces identically
                clause = "(" + self._munge(dict(entries), munge_values, join_weight[0]) + ")"
                weight = join_weight[1] if len(join_weight) > 1 else None
                clauses.append(clause + _weight_suffix(weight))
            else:
                for spec in clause_array:
                    clause = "%s:(%s)" % (field, munge_values[spec[0]])
                    weight = spec[1] if len(spec) > 1 else None
                    clauses.append(clause + _weight_suffix(weight))

        return (" %s " % joiner).join(clauses)


def _is_numeric(key: Any) -> bool:
    return isinstance(key, int) or (isinstance(key, str) and key.isdigit())


def _group_entries(clause_array: Any) -> List[Tuple[Any, Any]]:
    """Entries of a nested munge group as (key, value) pairs, in order"""
    if isinstance(clause_array, dict):
        return list(clause_array.items())
    entries: List[Tuple[Any, Any]] = []
    for position, item in enumerate(clause_array):
        if position == 0 or not isinstance(item, dict):
            entries.append((position, item))
        else:
            entries.extend(item.items())
    return entries


def _weight_suffix(weight: Any) -> str:
    if weight is None or weight == "":
        return ""
    try:
        numeric = float(weight)
    except (TypeError, ValueError):
        return ""
    return "^%s" % weight if numeric > 0 else ""


def addslashes(value: str) -> str:
    """Backslash-escape backslashes, single and double quotes and NUL bytes"""
    return (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace('"', '\\"')
        .replace("\0", "\\0")
    )


def apply_munge_operation(value: str, operation: List[Any]) -> str:
    """
    Apply a single CustomMunge operation.

    Raises:
        ValueError: For unknown operations
    """
    name = operation[0]
    if name == "append":
        return value + str(operation[1])
    if name == "lowercase":
        return value.lower()
    if name == "uppercase":
        return value.upper()
    if name == "preg_replace":
        pattern, flags = php_regex(str(operation[1]))
        return re.sub(pattern, php_replacement(str(operation[2])), value, flags=flags)
    raise ValueError(f"Unknown munge operation: {name}")


def php_regex(expression: str) -> Tuple[str, int]:
    """
    Translate a delimited PHP regular expression ('/abc/i') to a Python
    pattern and flags. Undelimited input is used as-is.
    """
    if len(expression) >= 2 and not expression[0].isalnum() and expression[0] != "\\":
        delimiter = {"(": ")", "[": "]", "{": "}", "<": ">"}.get(expression[0], expression[0])
        end = expression.rfind(delimiter)
        if end > 0:
            flags = 0
            for modifier in expression[end + 1:]:
                flags |= PHP_REGEX_FLAGS.get(modifier, 0)
            return expression[1:end], flags
    return expression, 0


def php_replacement(replacement: str) -> str:
    """Translate $1, ${1} and \\1 back-references to Python's \\g<1>"""
    replacement = re.sub(r"\$\{(\d+)\}", r"\\g<\1>", replacement)
    replacement = re.sub(r"\$(\d+)", r"\\g<\1>", replacement)
    return re.sub(r"\\(\d+)", r"\\g<\1>", replacement)
