"""
Lucene query syntax helper

Normalizes user input so it cannot break Solr's Lucene parser (unbalanced
parentheses, stray brackets, dangling boosts, lonely operators...) and
recognizes input that uses advanced Lucene features.
"""
import re
from typing import Iterable, List, Sequence, Union


# Lookahead that only matches when an even number of quotes follows, i.e. when
# the current position is outside of a quoted phrase.
INSIDE_QUOTES = r'(?=(?:[^"]*"[^"]*")*[^"]*$)'

SOLR_RANGE_RE = r"(\[.+\s+TO\s+.+\])|(\{.+\s+TO\s+.+\})"

TIMESTAMP_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}t[0-9]{2}:[0-9]{2}:[0-9]{2}z", re.IGNORECASE)

FANCY_QUOTES = {
    "«": '"',  # U+00AB
    "»": '"',  # U+00BB
    "‘": "'",  # U+2018
    "’": "'",  # U+2019
    "‚": "'",  # U+201A
    "‛": "'",  # U+201B
    "“": '"',  # U+201C
    "”": '"',  # U+201D
    "„": '"',  # U+201E
    "‟": '"',  # U+201F
    "‹": "'",  # U+2039
    "›": "'",  # U+203A
}

ALL_BOOLS = ("AND", "OR", "NOT")

# Input made of nothing but these is meaningless
CONTROL_OPERATORS = ("AND", "OR", "NOT", "+", "-", '"', "&&", "||")


class LuceneSyntaxHelper:
    """Lucene query syntax helper"""

    def __init__(self, case_sensitive_booleans: Union[bool, str] = True, case_sensitive_ranges: bool = True):
        """
        Args:
            case_sensitive_booleans: True to make all boolean operators
                case-sensitive, False to make none of them case-sensitive, or
                a comma-separated list of the operators that stay case-sensitive
            case_sensitive_ranges: Must the TO of range queries be uppercase?
        """
        self.case_sensitive_booleans = case_sensitive_booleans
        self.case_sensitive_ranges = case_sensitive_ranges

    # Public API

    def contains_booleans(self, search_string: str) -> bool:
        """Does the search string contain boolean operators?"""
        bool_re = r"((\s+(AND|OR|NOT)\s+)|^NOT\s+)" + INSIDE_QUOTES
        check = self.capitalize_case_insensitive_booleans(search_string)
        return re.search(bool_re, check) is not None

    def contains_ranges(self, search_string: str) -> bool:
        """Does the search string contain range queries?"""
        flags = 0 if self.case_sensitive_ranges else re.IGNORECASE
        return re.search(SOLR_RANGE_RE, search_string, flags) is not None

    def contains_advanced_lucene_syntax(self, search_string: str) -> bool:
        """Does the search string use advanced Lucene syntax?"""
        if search_string == "*:*":
            return True

        # Quoted phrases cannot contain syntax; replace them with a dummy word so
        # the field specifier check below still sees a term on each side.
        search_string = re.sub(r'"[^"]*"', "quoted", search_string)

        # Field specifiers
        if re.search(r"[^\s\\]:[^\s]", search_string):
            return True

        # Unescaped parentheses
        stripped = search_string.replace("\\(", "").replace("\\)", "")
        if "(" in stripped and ")" in stripped:
            return True

        if (
            self.contains_ranges(search_string)
            or self.contains_booleans(search_string)
            or "*" in search_string
            or "?" in search_string
            or "~" in search_string
        ):
            return True

        # Boosts
        return re.search(r"\^[0-9]+", search_string) is not None

    def normalize_search_string(self, search_string: str) -> str:
        """Return the input cleaned up and with operators normalized"""
        search_string = self.prepare_for_lucene_syntax(search_string)
        search_string = self.capitalize_case_insensitive_booleans(search_string)
        if not self.case_sensitive_ranges:
            search_string = self.capitalize_ranges(search_string)
        return search_string

    def capitalize_case_insensitive_booleans(self, string: str) -> str:
        return self.capitalize_booleans(string, self.get_bools_to_cap())

    def capitalize_booleans(self, string: str, bools: Sequence[str] = ALL_BOOLS) -> str:
        """
        Uppercase boolean operators found outside of quoted phrases.

        Operators inside quotes are search terms and must keep their case.
        """
        if not bools:
            return string

        for operator in bools:
            string = re.sub(
                r"\s+" + operator + r"\s+" + INSIDE_QUOTES,
                " " + operator + " ",
                string,
                flags=re.IGNORECASE,
            )

        if "NOT" in bools:
            string = re.sub(r"\(NOT\s+" + INSIDE_QUOTES, "(NOT ", string, flags=re.IGNORECASE)

        return string.strip()

    def capitalize_ranges(self, string: str) -> str:
        """
        Uppercase the TO of range queries found outside of quoted phrases.

        Ranges over letters are expanded into an OR of a lowercase and an
        uppercase version since Solr compares them case-sensitively.
        """
        patterns = [
            r"(\[)([^\]]+)\s+TO\s+([^\]]+)(\])" + INSIDE_QUOTES,
            r"(\{)([^}]+)\s+TO\s+([^}]+)(\})" + INSIDE_QUOTES,
        ]
        for pattern in patterns:
            string = re.sub(pattern, self._capitalize_range, string, flags=re.IGNORECASE)
        return string.strip()

    def extract_search_terms(self, query: str) -> str:
        """
        Extract plain search terms from a query string for spell checking.

        Only the most common cases are handled: local parameters, fuzziness,
        proximity and boosts are dropped, as are field names.
        """
        result: List[str] = []
        collected = ""
        discard_parens = 0

        query = re.sub(r"\{!.+?\}", "", query)
        query = re.sub(r"~[^\s]*", "", query)
        query = re.sub(r"\^[^\s]*", "", query)

        for ch, quoted, escaped in self._walk_query_string(query):
            if not quoted:
                # Closing partners of parentheses dropped with a field name
                if not escaped and ch == ")" and discard_parens > 0:
                    discard_parens -= 1
                    continue
                if ch == " " and collected != "":
                    result.append(collected)
                    collected = ""
                    continue
                # Everything collected before a colon is a field name
                if not escaped and ch == ":":
                    discard_parens += self._count_non_quoted("(", collected)
                    collected = ""
                    continue
            collected += ch

        if collected != "":
            result.append(collected)

        return " ".join(term.lstrip("+-") for term in result)

    def has_case_sensitive_booleans(self) -> bool:
        """Are any boolean operators case-sensitive?"""
        return len(ALL_BOOLS) > len(self.get_bools_to_cap())

    def has_case_sensitive_ranges(self) -> bool:
        return bool(self.case_sensitive_ranges)

    def get_bools_to_cap(self) -> List[str]:
        """Operators that should be uppercased automatically"""
        setting = self.case_sensitive_booleans
        if setting is False or setting == 0 or setting == "0":
            return list(ALL_BOOLS)
        if setting is True or setting == 1 or setting == "1":
            return []

        case_sensitive = {part.strip().upper() for part in str(setting).split(",")}
        return [b for b in ALL_BOOLS if b not in case_sensitive]

    # Input normalization

    def prepare_for_lucene_syntax(self, input_string: str) -> str:
        """
        Clean up user input so it cannot conflict with Lucene syntax rules.

        The order of the individual normalization steps is significant.
        """
        input_string = self.normalize_fancy_quotes(input_string)

        # A lone operator is a word the user is looking for
        if input_string.strip() in ALL_BOOLS:
            return input_string.strip().lower()

        remainder = input_string
        for operator in CONTROL_OPERATORS:
            remainder = remainder.replace(operator, "")
        if remainder.strip() == "":
            return ""

        # "All records" is expressed by an empty query
        if input_string.strip() == "*:*":
            return ""

        input_string = self.normalize_wildcards(input_string)
        input_string = self.normalize_parens(input_string)
        input_string = self.normalize_boosts(input_string)
        input_string = self.normalize_braces_and_brackets(input_string)
        input_string = self.normalize_unquoted_text(input_string)
        input_string = self.normalize_colons(input_string)

        return input_string.strip("/ ")

    @staticmethod
    def normalize_fancy_quotes(input_string: str) -> str:
        for fancy, plain in FANCY_QUOTES.items():
            input_string = input_string.replace(fancy, plain)
        return input_string

    @staticmethod
    def normalize_wildcards(input_string: str) -> str:
        """Leading wildcards are not allowed"""
        if input_string.startswith("*") or input_string.startswith("?"):
            return input_string[1:]
        return input_string

    def normalize_parens(self, input_string: str) -> str:
        """Drop all unquoted parentheses unless they are balanced"""
        opening = self._count_non_quoted("(", input_string)
        closing = self._count_non_quoted(")", input_string)
        if opening != closing:
            return self._remove_non_quoted(("(", ")"), input_string)
        return input_string

    @staticmethod
    def normalize_boosts(input_string: str) -> str:
        """Drop all carets unless every one of them is a numeric boost"""
        count = input_string.count("^")
        boosts = len(re.findall(r"[^^]+\^[0-9]", input_string))
        if count and count != boosts:
            return input_string.replace("^", "")
        return input_string

    def normalize_braces_and_brackets(self, input_string: str) -> str:
        """
        Escape brackets and braces that are not part of range queries.

        Valid ranges are first renamed to placeholder tokens (which cannot occur
        in the input after normalize_boosts), every remaining unescaped bracket
        or brace is escaped, and the placeholders are turned back into
        brackets. Must run after normalize_boosts.
        """
        flags = 0 if self.case_sensitive_ranges else re.IGNORECASE
        input_string = re.sub(
            r"\[([^\[\]\s]+\s+TO\s+[^\[\]\s]+)\]",
            lambda m: "^^lbrack^^" + m.group(1) + "^^rbrack^^",
            input_string,
            flags=flags,
        )
        input_string = re.sub(
            r"\{([^\{\}\s]+\s+TO\s+[^\{\}\s]+)\}",
            lambda m: "^^lbrace^^" + m.group(1) + "^^rbrace^^",
            input_string,
            flags=flags,
        )
        input_string = re.sub(r"(?<!\\)([\[\]\{\}])", lambda m: "\\" + m.group(1), input_string)
        return (
            input_string.replace("^^lbrack^^", "[")
            .replace("^^rbrack^^", "]")
            .replace("^^lbrace^^", "{")
            .replace("^^rbrace^^", "}")
        )

    @staticmethod
    def normalize_unquoted_text(input_string: str) -> str:
        """Fix problems found in unquoted text within the query"""
        # Freestanding hyphens and pluses
        input_string = re.sub(r"(\s+[+-]+$|\s+[+-]+\s+|^[+-]+\s+)" + INSIDE_QUOTES, " ", input_string)
        # Standalone slashes become a quoted slash
        input_string = re.sub(r"(\s+[/]+\s+)" + INSIDE_QUOTES, ' "/" ', input_string)
        # Leading and trailing slashes
        input_string = re.sub(r"(\s+[/]+$|^[/]+\s+)" + INSIDE_QUOTES, " ", input_string)
        # A proximity of 1 is illegal and meaningless
        input_string = re.sub(r"~1(\.0*)?$", "", input_string)
        input_string = re.sub(r"~1(\.0*)?\s+" + INSIDE_QUOTES, " ", input_string)

        # Empty parentheses cause a fatal Solr error
        empty_parens = re.compile(r"\(\s*\)" + INSIDE_QUOTES)
        while empty_parens.search(input_string):
            input_string = empty_parens.sub("", input_string)

        return input_string

    @staticmethod
    def normalize_colons(input_string: str) -> str:
        """Remove colons that are not part of a field specification"""
        input_string = re.sub(r":+", ":", input_string)
        input_string = re.sub(r"(:[:\s]+|[:\s]+:)" + INSIDE_QUOTES, " ", input_string)
        return input_string.strip(":")

    # Internal API

    @staticmethod
    def _capitalize_range(match: "re.Match") -> str:
        opening, start, end, closing = match.group(1), match.group(2), match.group(3), match.group(4)

        if start.upper() != start.lower() or end.upper() != end.lower():
            lower = f"{opening}{start.lower().strip()} TO {end.lower().strip()}{closing}"
            upper = f"{opening}{start.upper().strip()} TO {end.upper().strip()}{closing}"

            # Lowercasing a timestamp would make it illegal
            if TIMESTAMP_RE.search(start) or TIMESTAMP_RE.search(end):
                return upper

            return f"({lower} OR {upper})"

        return f"{opening}{start.strip()} TO {end.strip()}{closing}"

    @staticmethod
    def _walk_query_string(string: str) -> Iterable:
        """
        Yield (character, quoted, escaped) for each character of a query.

        A quote toggles the quoted state unless it is escaped by a backslash
        that is not escaped itself.
        """
        quoted = False
        escaped = False
        for ch in string:
            if ch == "\\":
                escaped = not escaped
            if not escaped and ch == '"':
                quoted = not quoted
            yield ch, quoted, escaped
            if ch != "\\":
                escaped = False

    def _count_non_quoted(self, needle: str, haystack: str) -> int:
        return sum(
            1
            for ch, quoted, escaped in self._walk_query_string(haystack)
            if not quoted and not escaped and ch == needle
        )

    def _remove_non_quoted(self, needles: Sequence[str], haystack: str) -> str:
        return "".join(
            ch
            for ch, quoted, escaped in self._walk_query_string(haystack)
            if quoted or escaped or ch not in needles
        )


def tokenize(string: str, operators: Sequence[str] = ALL_BOOLS) -> List[str]:
    """
    Split a search string into tokens on whitespace and quoted phrases.

    A boolean operator glues its neighbours together into a single token, so
    "a AND b c" yields ["a AND b", "c"]. Escaped quotes are kept intact.
    """
    # Hide escaped quotes behind a character that never occurs in user input
    # (ASCII 26, "substitute") so that the regex stays simple.
    substitute = chr(26)
    string = string.replace('\\"', substitute)
    phrases = [
        p.replace(substitute, '\\"')
        for p in (m.group(0) for m in re.finditer(r'[^\s"]+|"([^"]*)"', string))
    ]

    tokens: List[str] = []
    token: List[str] = []
    i = 0
    while i < len(phrases):
        token.append(phrases[i])
        following = phrases[i + 1] if i + 1 < len(phrases) else None
        if following in operators:
            token.append(following)
            i += 1
            if i + 1 >= len(phrases):
                tokens.append(" ".join(token))
        else:
            tokens.append(" ".join(token))
            token = []
        i += 1

    return tokens

