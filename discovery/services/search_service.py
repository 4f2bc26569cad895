"""
Search service

Routes searches to the Solr, Summon and WorldCat backends, translating the
user query for each one and normalising the responses into SearchResult.
"""

import copy
import logging
import re
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple, Union

from discovery.backends.solr import SolrConnector
from discovery.backends.summon import SummonConnector, SummonQueryBuilder, build_summon_options
from discovery.backends.worldcat import WorldCatConnector, WorldCatQueryBuilder
from discovery.core.config import Settings, settings as default_settings
from discovery.core.exceptions import DiscoveryError, UnknownBackendError
from discovery.search.lucene import LuceneSyntaxHelper
from discovery.search.query import Query, QueryGroup
from discovery.search.query_builder import QueryBuilder
from discovery.search.solr_params import FacetOptions, SolrSearchOptions, build_search_params, format_filter
from discovery.search.specs import SearchSpecsReader, get_search_specs
from discovery.services.cache_service import CacheService, get_cache_service


logger = logging.getLogger(__name__)


BACKENDS = ("Solr", "Summon", "WorldCat")

# Characters that would turn autocomplete input into Lucene syntax
AUTOCOMPLETE_FORBIDDEN = [":", "(", ")", "*", "+", '"', "'"]

ILLEGAL_INPUT_CHARACTERS = ["!", ":", ";", "[", "]", "{", "}"]


@dataclass
class SearchResult:
    """Backend-neutral search result"""
    backend: str
    total: int
    records: List[Dict[str, Any]] = field(default_factory=list)
    facets: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    spelling_query: Optional[str] = None
    suggestions: Dict[str, List[str]] = field(default_factory=dict)
    query_string: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def canonical_backend_name(name: str) -> str:
    """
    Backend name in its canonical spelling ("solr" -> "Solr").

    Raises:
        UnknownBackendError: If there is no such backend
    """
    for backend in BACKENDS:
        if backend.lower() == (name or "").lower():
            return backend
    raise UnknownBackendError(f"Unknown search backend: {name}")


def parse_filter(entry: str) -> Tuple[str, str, bool]:
    """
    Split a "field:value" filter; a leading "-" excludes the value.

    Raises:
        ValueError: If the filter has no field name
    """
    negated = entry.startswith("-")
    if negated:
        entry = entry[1:]
    name, sep, value = entry.partition(":")
    if not sep or not name:
        raise ValueError(f"Invalid filter '{entry}', expected field:value")
    return name, value.strip('"'), negated


def normalize_solr_facets(facet_fields: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Convert Solr facet_fields in arrarr layout to value/count dicts"""
    facets = {}
    for name, pairs in (facet_fields or {}).items():
        if pairs and not isinstance(pairs[0], list):
            pairs = [pairs[i:i + 2] for i in range(0, len(pairs), 2)]
        facets[name] = [{"value": value, "count": count} for value, count in pairs]
    return facets


def normalize_summon_facets(facet_fields: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Convert Summon facetFields to value/count dicts"""
    facets = {}
    for facet in facet_fields or []:
        facets[facet.get("displayName") or facet.get("fieldName")] = [
            {"value": count.get("value"), "count": count.get("count")}
            for count in facet.get("counts", [])
        ]
    return facets


def normalize_solr_spelling(spellcheck: Dict[str, Any]) -> Dict[str, List[str]]:
    """
    Map each misspelled term to its suggested words.

    Handles the arrarr and flat layouts of spellcheck.suggestions as well as
    a plain mapping; collation and correctlySpelled entries are skipped.
    """
    suggestions = (spellcheck or {}).get("suggestions") or []
    if isinstance(suggestions, dict):
        pairs = list(suggestions.items())
    elif suggestions and not isinstance(suggestions[0], list):
        pairs = [suggestions[i:i + 2] for i in range(0, len(suggestions), 2)]
    else:
        pairs = suggestions

    result: Dict[str, List[str]] = {}
    for pair in pairs:
        if len(pair) != 2 or not isinstance(pair[1], dict):
            continue
        term, info = pair
        words = []
        for suggestion in info.get("suggestion") or []:
            word = suggestion.get("word") if isinstance(suggestion, dict) else suggestion
            if word and word != term and word not in words:
                words.append(word)
        if words:
            result[term] = words
    return result


def clean_input(query: str) -> str:
    """Remove characters that are illegal in user input, trim and lowercase"""
    for character in ILLEGAL_INPUT_CHARACTERS:
        query = query.replace(character, "")
    return query.strip().lower()


def munge_autocomplete_query(query: str, wildcard: bool = True) -> str:
    """Make a truncated autocomplete query out of the user input"""
    for character in AUTOCOMPLETE_FORBIDDEN:
        query = query.replace(character, " ")
    if wildcard and not query.endswith(" "):
        query += "*"
    return query


def match_query_terms(value: str, query: str) -> bool:
    """Does the value contain every term of the query (case-insensitive)?"""
    value = str(value).lower()
    return all(term.lower() in value for term in re.split(r"\s+", query.strip()))


def pick_best_match(value: Union[str, List[str]], query: str, exact: bool) -> Optional[str]:
    if isinstance(value, list):
        if not value:
            return None
        for current in value:
            if match_query_terms(current, query):
                return current
        return None if exact else value[0]
    if not exact or match_query_terms(value, query):
        return value
    return None


class SearchService:
    """Search operations across all configured backends"""

    def __init__(self, settings: Optional[Settings] = None, cache: Optional[CacheService] = None):
        self.settings = settings or default_settings
        self._cache = cache
        self._connectors: Dict[str, Any] = {}
        self._specs_reader = SearchSpecsReader(self.settings.SEARCHSPECS_DIR)

    # Backends

    def get_backend(self, name: str):
        """
        Get the connector of a backend, creating it on first use.

        Raises:
            UnknownBackendError: If the backend is unknown or not configured
        """
        backend = self.canonical_backend(name)
        if backend not in self._connectors:
            self._connectors[backend] = self._create_connector(backend)
        return self._connectors[backend]

    def canonical_backend(self, name: str) -> str:
        return canonical_backend_name(name)

    def _create_connector(self, backend: str):
        s = self.settings
        if backend == "Solr":
            logger.info(f"Creating Solr connector for {s.SOLR_URL}/{s.SOLR_CORE}")
            return SolrConnector(
                s.SOLR_URL,
                s.SOLR_CORE,
                timeout=s.SOLR_TIMEOUT,
                shards=s.solr_shards_dict or None,
                shard_fields_to_strip=s.solr_shards_strip_fields_dict,
            )
        if backend == "Summon":
            if not s.summon_enabled:
                raise UnknownBackendError("Summon backend is not configured")
            return SummonConnector(s.SUMMON_API_ID, s.SUMMON_API_KEY, host=s.SUMMON_HOST)
        if not s.worldcat_enabled:
            raise UnknownBackendError("WorldCat backend is not configured")
        return WorldCatConnector(s.WORLDCAT_WSKEY, base_url=s.WORLDCAT_URL)

    async def close(self) -> None:
        for connector in self._connectors.values():
            await connector.close()
        self._connectors.clear()

    def create_query_builder(self, highlight: bool = False, spellcheck: bool = False) -> QueryBuilder:
        builder = QueryBuilder(self._specs_reader.get(), self.settings.DEFAULT_DISMAX_HANDLER)
        builder.set_lucene_helper(
            LuceneSyntaxHelper(
                case_sensitive_booleans=self.settings.case_sensitive_booleans,
                case_sensitive_ranges=self.settings.CASE_SENSITIVE_RANGES,
            )
        )
        builder.set_create_highlighting_query(highlight)
        builder.set_create_spelling_query(spellcheck)
        return builder

    def resolve_search_type(self, name: Optional[str]) -> str:
        """Search type to use for name; undefined types fall back to AllFields"""
        if name and get_search_specs(self._specs_reader.get(), name) is not None:
            return name
        logger.warning(f"Search type '{name}' is not defined, using AllFields")
        return "AllFields"

    async def _get_cache(self):
        if self._cache is None:
            return await get_cache_service()
        return self._cache

    # Searching

    async def search(
        self,
        backend: str,
        query: Union[Query, QueryGroup],
        page: int = 1,
        limit: int = 20,
        sort: Optional[str] = None,
        facets: Optional[List[str]] = None,
        filters: Optional[List[str]] = None,
        highlight: bool = False,
        spellcheck: bool = False,
    ) -> SearchResult:
        """
        Search one backend.

        Args:
            backend: Solr, Summon or WorldCat
            query: User query
            page: 1-based page number
            limit: Page size
            sort: Backend sort option
            facets: Facet fields to request
            filters: "field:value" filters ("-field:value" excludes)
            highlight: Request highlighting
            spellcheck: Request spelling suggestions

        Returns:
            SearchResult
        """
        backend = self.canonical_backend(backend)
        connector = self.get_backend(backend)
        parsed_filters = [parse_filter(f) for f in filters or []]
        page = max(page, 1)

        if backend == "Solr":
            builder = self.create_query_builder(highlight=highlight, spellcheck=spellcheck)
            query_params = builder.build(copy.deepcopy(query))
            options = SolrSearchOptions(
                start=(page - 1) * limit,
                limit=limit,
                sort=sort,
                facets=FacetOptions(fields=list(facets)) if facets else None,
                filters=[("-" if negated else "") + format_filter((name, value)) for name, value, negated in parsed_filters],
                highlight=highlight,
                spell=query_params.get_first("spellcheck.q") if spellcheck else None,
            )
            params = build_search_params(options, query_params)
            request_key: Any = params.to_dict()
        elif backend == "Summon":
            query_string = SummonQueryBuilder(self.settings.case_sensitive_booleans).build(query)
            request_key = build_summon_options(
                query_string,
                page=page,
                limit=limit,
                sort=sort,
                facets=facets,
                filters=parsed_filters,
                highlight=highlight,
                did_you_mean=spellcheck,
            )
        else:
            query_string = WorldCatQueryBuilder().build(query)
            request_key = {"query": query_string, "start": (page - 1) * limit + 1, "limit": limit, "sort": sort}

        cache = await self._get_cache()
        cache_key = CacheService.generate_cache_key(backend, request_key)
        cached = await cache.get_cached_response(cache_key)
        if cached:
            return SearchResult(**cached)

        if backend == "Solr":
            result = self._solr_result(await connector.search(params), params)
        elif backend == "Summon":
            response = await connector.query(request_key)
            result = SearchResult(
                backend="Summon",
                total=response.get("recordCount", 0),
                records=response.get("documents", []),
                facets=normalize_summon_facets(response.get("facetFields", [])),
                spelling_query=request_key["s.q"] if spellcheck else None,
                suggestions=_summon_suggestions(response, request_key["s.q"]),
                query_string=request_key["s.q"],
            )
        else:
            response = await connector.search(query_string, start=request_key["start"], limit=limit, sort=sort)
            result = SearchResult(
                backend="WorldCat",
                total=response["total"],
                records=response["docs"],
                query_string=query_string,
            )

        logger.info(f"{backend} search for '{result.query_string}' found {result.total} records")
        await cache.cache_response(cache_key, result.to_dict())
        return result

    @staticmethod
    def _solr_result(response: Dict[str, Any], params) -> SearchResult:
        grouped = response.get("grouped")
        if grouped:
            # Grouped results are flattened into the documents of each group
            total = 0
            records = []
            for group_field in grouped.values():
                total += group_field.get("matches", 0)
                for group in group_field.get("groups", []):
                    records.extend(group.get("doclist", {}).get("docs", []))
        else:
            total = response.get("response", {}).get("numFound", 0)
            records = response.get("response", {}).get("docs", [])

        return SearchResult(
            backend="Solr",
            total=total,
            records=records,
            facets=normalize_solr_facets(response.get("facet_counts", {}).get("facet_fields", {})),
            spelling_query=params.get_first("spellcheck.q"),
            suggestions=normalize_solr_spelling(response.get("spellcheck")),
            query_string=params.get_first("q"),
        )

    async def get_record(self, backend: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Get a single record, or None if it does not exist"""
        backend = self.canonical_backend(backend)
        connector = self.get_backend(backend)
        if backend == "Summon":
            response = await connector.get_record(record_id)
            documents = response.get("documents", [])
            return documents[0] if documents else None
        if backend == "Solr":
            return await connector.retrieve(record_id)
        return await connector.get_record(record_id)

    async def get_similar(self, record_id: str) -> List[Dict[str, Any]]:
        """Records similar to a Solr record"""
        response = await self.get_backend("Solr").similar(record_id)
        return response.get("response", {}).get("docs", [])

    async def get_terms(self, field: str, start: str, limit: int) -> Dict[str, int]:
        return await self.get_backend("Solr").terms(field, start, limit)

    async def alphabetic_browse(self, source: str, from_: str, page: int, page_size: int = 20) -> Dict[str, Any]:
        return await self.get_backend("Solr").alphabetic_browse(source, from_, page, page_size)

    # Autocomplete

    async def autocomplete(self, query: str, handler: Optional[str] = None, limit: int = 10) -> List[str]:
        """
        Suggest completions for partial user input.

        Backend errors are logged and result in no suggestions.
        """
        handler = self.resolve_search_type(handler or self.settings.AUTOCOMPLETE_HANDLER)
        try:
            munged = munge_autocomplete_query(query)
            docs = await self._autocomplete_docs(munged, handler, limit)
            if not docs and munged.endswith("*"):
                docs = await self._autocomplete_docs(munge_autocomplete_query(query, wildcard=False), handler, limit)
        except DiscoveryError as e:
            logger.warning(f"Autocomplete failed for '{query}': {e}")
            return []

        terms = clean_input(query)
        suggestions = self._suggestions_from_docs(docs, terms, exact=True)
        if not suggestions:
            suggestions = self._suggestions_from_docs(docs, terms, exact=False)

        unique = []
        for suggestion in suggestions:
            if suggestion not in unique:
                unique.append(suggestion)
        return unique[:limit]

    async def _autocomplete_docs(self, query_string: str, handler: str, limit: int) -> List[Dict[str, Any]]:
        builder = self.create_query_builder()
        params = build_search_params(
            SolrSearchOptions(limit=limit, fields=",".join(self.settings.autocomplete_display_fields_list)),
            builder.build(Query(query_string, handler)),
        )
        response = await self.get_backend("Solr").search(params)
        return response.get("response", {}).get("docs", [])

    def _suggestions_from_docs(self, docs: List[Dict[str, Any]], query: str, exact: bool) -> List[str]:
        results = []
        for doc in docs:
            for display_field in self.settings.autocomplete_display_fields_list:
                if display_field in doc:
                    best_match = pick_best_match(doc[display_field], query, exact)
                    if best_match:
                        results.append(best_match)
                        break
        return results


def _summon_suggestions(response: Dict[str, Any], query_string: str) -> Dict[str, List[str]]:
    suggestions: Dict[str, List[str]] = {}
    for suggestion in response.get("didYouMeanSuggestions") or []:
        suggested = suggestion.get("suggestedQuery")
        if not suggested:
            continue
        original = suggestion.get("originalQuery") or query_string
        if suggested not in suggestions.setdefault(original, []):
            suggestions[original].append(suggested)
    return suggestions


# Create singleton instance
search_service = SearchService()


def get_search_service() -> SearchService:
    """Get search service instance for dependency injection"""
    return search_service
