"""
Summon backend: query translation and signed API client
"""
import base64
import hashlib
import hmac
import json
import logging
import time
from email.utils import formatdate
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from urllib.parse import quote_plus, unquote_plus, urlparse

import httpx

from discovery.core.exceptions import HttpErrorException, SummonException
from discovery.search.lucene import LuceneSyntaxHelper
from discovery.search.query import Query, QueryGroup

logger = logging.getLogger(__name__)


NEWSPAPER_INCLUDE = ("ContentType,Newspaper Article", "ContentType,Newspaper Article,false")
NEWSPAPER_EXCLUDE = "ContentType,Newspaper Article,true"

HIGHLIGHT_START = "{{{{START_HILITE}}}}"
HIGHLIGHT_END = "{{{{END_HILITE}}}}"


class SummonQueryBuilder:
    """Translates user queries into Summon query syntax"""

    def __init__(self, case_sensitive_booleans: Union[bool, str] = False):
        self.lucene_helper = LuceneSyntaxHelper(case_sensitive_booleans=case_sensitive_booleans)

    def build(self, query: Union[Query, QueryGroup]) -> str:
        if isinstance(query, QueryGroup):
            return self._query_group_to_string(query)
        return self._query_to_string(query)

    def _query_to_string(self, query: Query) -> str:
        lookfor = self.lucene_helper.capitalize_case_insensitive_booleans(query.get_string())
        handler = query.get_handler()
        if not handler or handler == "AllFields":
            return lookfor
        return f"{handler}:({lookfor})"

    def _query_group_to_string(self, group: QueryGroup) -> str:
        groups: List[str] = []
        excludes: List[str] = []
        for member in group.get_queries():
            if isinstance(member, QueryGroup):
                parts = [self.build(q) for q in member.get_queries()]
                if member.is_negated():
                    excludes.append(" OR ".join(parts))
                else:
                    groups.append((" %s " % member.get_operator()).join(parts))
            else:
                groups.append(self._query_to_string(member))

        query_string = ""
        if groups:
            query_string += "(" + (") %s (" % group.get_operator()).join(groups) + ")"
        if excludes:
            query_string += " NOT ((" + ") OR (".join(excludes) + "))"
        return query_string


def escape_param(value: str) -> str:
    """Escape the characters that delimit Summon parameter parts"""
    return str(value).replace("\\", "\\\\").replace(",", "\\,").replace(":", "\\:")


def build_summon_options(
    query: str,
    page: int = 1,
    limit: int = 20,
    sort: Optional[str] = None,
    facets: Optional[Iterable[str]] = None,
    filters: Optional[Iterable[Union[Tuple[str, str], Tuple[str, str, bool]]]] = None,
    highlight: bool = False,
    did_you_mean: bool = False,
    facet_limit: int = 30,
) -> Dict[str, Any]:
    """
    Build the s.* request parameters of a Summon search.

    Args:
        query: Summon query string (see SummonQueryBuilder)
        page: 1-based page number
        limit: Page size
        sort: Summon sort ("PublicationDate:desc"); relevance means no sort
        facets: Facet fields; "Field,mode,page,limit" entries are used as-is
        filters: (field, value) or (field, value, negated) tuples
        highlight: Request highlighted snippets
        did_you_mean: Request spelling suggestions
        facet_limit: Default number of values per facet
    """
    options: Dict[str, Any] = {
        "s.q": query,
        "s.ps": limit,
        "s.pn": page,
    }
    if sort and sort != "relevance":
        options["s.sort"] = sort

    facet_fields = []
    for facet in facets or []:
        facet_fields.append(facet if "," in facet else f"{facet},or,1,{facet_limit}")
    if facet_fields:
        options["s.ff"] = facet_fields

    value_filters = []
    for entry in filters or []:
        name, value = entry[0], entry[1]
        negated = bool(entry[2]) if len(entry) > 2 else False
        value_filters.append(f"{name},{escape_param(value)},{'true' if negated else 'false'}")
    if value_filters:
        options["s.fvf"] = value_filters

    options["s.hl"] = "true" if highlight else "false"
    if highlight:
        options["s.hs"] = HIGHLIGHT_START
        options["s.he"] = HIGHLIGHT_END
    if did_you_mean:
        options["s.dym"] = "true"
    return options


class SummonConnector:
    """Client for the Summon search API"""

    def __init__(
        self,
        api_id: str,
        api_key: str,
        host: str = "http://api.summon.serialssolutions.com",
        version: str = "2.0.0",
        authed_user: bool = False,
        session_id: Optional[str] = None,
        timeout: float = 30,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_id = api_id
        self.api_key = api_key
        self.host = host.rstrip("/")
        self.version = version
        self.authed_user = authed_user
        self.session_id = session_id
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def get_record(self, record_id: str) -> Dict[str, Any]:
        options = {"s.q": f'ID:"{record_id}"', "s.role": self._role()}
        return await self.call(options)

    async def query(self, options: Dict[str, Any], return_errors: bool = False) -> Dict[str, Any]:
        """
        Run a search.

        Args:
            options: s.* parameters (see build_summon_options)
            return_errors: Turn Summon errors into an empty result with "errors"

        Raises:
            SummonException: Summon reported an error and return_errors is off
        """
        options = dict(options)
        options["s.role"] = self._role()

        # Including and excluding newspapers at the same time cannot match anything
        value_filters = options.get("s.fvf") or []
        if isinstance(value_filters, str):
            value_filters = [value_filters]
        if NEWSPAPER_EXCLUDE in value_filters and any(f in value_filters for f in NEWSPAPER_INCLUDE):
            return {"recordCount": 0, "documents": []}

        try:
            return await self.call(options)
        except SummonException as e:
            if not return_errors:
                raise
            logger.warning(f"Summon query failed: {e}")
            return {"recordCount": 0, "documents": [], "errors": str(e)}

    async def call(self, params: Dict[str, Any], service: str = "search", date: Optional[str] = None) -> Dict[str, Any]:
        """
        Send a signed request to a Summon service.

        Raises:
            SummonException: Summon reported errors or the response is not JSON
            HttpErrorException: Non-successful response without Summon errors
        """
        query_string = self.build_query_string(params)
        headers = self.build_headers(service, query_string, date=date)
        url = f"{self.host}/{self.version}/{service}?{query_string}"

        start_time = time.time()
        try:
            response = await self._client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Summon request {url} failed: {e}")
            raise SummonException(f"Summon request failed: {e}") from e
        elapsed_ms = (time.time() - start_time) * 1000
        logger.debug(f"GET {url} => HTTP {response.status_code} in {elapsed_ms:.1f}ms")

        return self._process(response)

    @staticmethod
    def build_query_string(params: Dict[str, Any]) -> str:
        """Encode parameters one name=value pair per value, sorted"""
        pairs = []
        for name, value in params.items():
            values = value if isinstance(value, (list, tuple)) else [value]
            for current in values:
                if isinstance(current, bool):
                    current = "true" if current else "false"
                pairs.append(f"{name}={quote_plus(str(current))}")
        return "&".join(sorted(pairs))

    def build_headers(self, service: str, query_string: str, date: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "x-summon-date": date or formatdate(usegmt=True),
            "Host": urlparse(self.host).netloc or "api.summon.serialssolutions.com",
        }
        data = (
            "\n".join(headers.values())
            + f"\n/{self.version}/{service}\n"
            + unquote_plus(query_string)
            + "\n"
        )
        headers["Authorization"] = f"Summon {self.api_id};{self.sign(data)}"
        if self.session_id:
            headers["x-summon-session-id"] = self.session_id
        return headers

    def sign(self, data: str) -> str:
        """Base64-encoded HMAC-SHA1 of the data with the API key"""
        digest = hmac.new(self.api_key.encode("utf-8"), data.encode("utf-8"), hashlib.sha1).digest()
        return base64.b64encode(digest).decode("ascii")

    def _role(self) -> str:
        return "authenticated" if self.authed_user else "none"

    @staticmethod
    def _process(response: httpx.Response) -> Dict[str, Any]:
        try:
            result = json.loads(response.text)
        except ValueError:
            result = None

        if not isinstance(result, dict):
            if not response.is_success:
                raise HttpErrorException.from_response(response.status_code, response.text)
            raise SummonException(f"Cannot decode JSON response: {response.text[:200]}")

        errors = result.get("errors")
        if isinstance(errors, list) and errors:
            messages = [f"{e.get('code')}: {e.get('message')}" for e in errors]
            raise SummonException("Unable to process query. Summon returned: " + "; ".join(messages))

        if not response.is_success:
            raise HttpErrorException.from_response(response.status_code, response.text)
        return result
