"""
Solr search options

Translates backend-neutral search options (paging, sort, facets, filters,
highlighting, spelling, grouping) into Solr request parameters.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from discovery.search.param_bag import ParamBag


HIGHLIGHT_START = "{{{{START_HILITE}}}}"
HIGHLIGHT_END = "{{{{END_HILITE}}}}"

SORT_FIELDS = {
    "year": ("publishDateSort", "desc"),
    "publishDate": ("publishDateSort", "desc"),
    "author": ("authorStr", "asc"),
    "title": ("title_sort", "asc"),
}


@dataclass
class FacetOptions:
    """Facet request settings"""
    fields: List[str] = field(default_factory=list)
    limit: Optional[int] = None
    prefix: Optional[str] = None
    sort: Optional[str] = None
    offset: Optional[int] = None
    native: Dict[str, Any] = field(default_factory=dict)  # facet.* passed through as-is


@dataclass
class SolrSearchOptions:
    """Search options for the Solr backend"""
    start: int = 0
    limit: int = 20
    fields: str = "*,score"
    sort: Optional[str] = None
    facets: Optional[FacetOptions] = None
    filters: List[Union[str, Tuple[str, str]]] = field(default_factory=list)
    highlight: bool = False
    spell: Optional[str] = None
    dictionary: Optional[str] = None
    group: List[str] = field(default_factory=list)


def normalize_sort(sort: str) -> str:
    """
    Translate a user sort ("year", "title desc") into a Solr sort clause.

    Comma separated tie-breakers are normalised individually.
    """
    return ",".join(_normalize_sort_part(part) for part in sort.split(","))


def _normalize_sort_part(sort: str) -> str:
    parts = sort.strip().split(" ", 1)
    sort_field = parts[0]
    direction = parts[1].strip().lower() if len(parts) > 1 else ""

    if sort_field == "relevance":
        return "score desc"

    sort_field, default_direction = SORT_FIELDS.get(sort_field, (sort_field, "asc"))
    if direction not in ("asc", "desc"):
        direction = default_direction
    return f"{sort_field} {direction}"


def format_filter(entry: Union[str, Tuple[str, str]]) -> str:
    """A (field, value) filter becomes field:"value"; strings are used as-is"""
    if isinstance(entry, (tuple, list)):
        name, value = entry
        return '%s:"%s"' % (name, str(value).replace('"', '\\"'))
    return entry


def build_search_params(options: SolrSearchOptions, query_params: Optional[ParamBag] = None) -> ParamBag:
    """
    Combine query parameters built by the QueryBuilder with search options.

    Args:
        options: Paging, sort, facet and other options
        query_params: Output of QueryBuilder.build()

    Returns:
        ParamBag ready for the Solr select handler
    """
    params = ParamBag({"rows": options.limit, "start": options.start, "fl": options.fields})

    if options.sort:
        params.set("sort", normalize_sort(options.sort))

    if query_params is not None:
        params.merge(query_params)

    for entry in options.filters:
        params.add("fq", format_filter(entry))

    facets = options.facets
    if facets and facets.fields:
        params.set("facet", "true")
        params.set("facet.mincount", 1)
        if facets.limit is not None:
            params.set("facet.limit", facets.limit)
        params.set("facet.field", facets.fields)
        if facets.prefix:
            params.set("facet.prefix", facets.prefix)
        if facets.sort:
            params.set("facet.sort", facets.sort)
        if facets.offset is not None:
            params.set("facet.offset", facets.offset)
        for name, value in facets.native.items():
            params.set(name, value)

    if options.group:
        params.set("group", "true")
        params.set("group.field", options.group)

    if options.spell:
        params.set("spellcheck", "true")
        params.set("spellcheck.q", options.spell)
        if options.dictionary:
            params.set("spellcheck.dictionary", options.dictionary)

    if options.highlight:
        params.set("hl", "true")
        params.set("hl.fl", "*")
        params.set("hl.simple.pre", HIGHLIGHT_START)
        params.set("hl.simple.post", HIGHLIGHT_END)

    return params
