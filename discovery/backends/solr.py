"""
Solr connector

Sends select, terms, browse and update requests to a Solr core over an
httpx.AsyncClient and decodes the JSON responses.
"""
import json
import logging
import time
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote_plus
from xml.sax.saxutils import escape, quoteattr

import httpx

from discovery.core.exceptions import BackendException, HttpErrorException, extract_error_message
from discovery.search.param_bag import ParamBag

logger = logging.getLogger(__name__)


# Longer query strings are sent as a form-encoded POST body
MAX_GET_URL_LENGTH = 2048

# Commit and optimize may take a long time on large indexes
MAINTENANCE_TIMEOUT = 600


class SolrConnector:
    """Asynchronous connector to one Solr core"""

    def __init__(
        self,
        url: str,
        core: str = "",
        unique_key: str = "id",
        timeout: float = 30,
        shards: Optional[Dict[str, str]] = None,
        shard_fields_to_strip: Optional[Dict[str, List[str]]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url.rstrip("/") + ("/" + core if core else "")
        self.unique_key = unique_key
        self.timeout = timeout
        self.shards: Dict[str, str] = {}
        self.shard_fields_to_strip: Dict[str, List[str]] = {}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        if shards:
            self.set_shards(shards, shard_fields_to_strip)

    def set_shards(self, shards: Dict[str, str], fields_to_strip: Optional[Dict[str, List[str]]] = None) -> None:
        """
        Configure distributed search.

        A single shard simply replaces the base URL; several shards are passed
        to Solr in the shards parameter.
        """
        if len(shards) == 1:
            address = next(iter(shards.values()))
            self.url = address if "://" in address else "http://" + address
        self.shards = dict(shards)
        self.shard_fields_to_strip = dict(fields_to_strip or {})

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # Search handlers

    async def search(self, params: ParamBag) -> Dict[str, Any]:
        """Run a query against the select handler"""
        return await self.query("select", params)

    async def retrieve(self, record_id: str, params: Optional[ParamBag] = None) -> Optional[Dict[str, Any]]:
        """Get a single document by its unique key, or None if it does not exist"""
        params = self._with_defaults(params, {"q": self._id_query(record_id)})
        result = await self.query("select", params)
        docs = result.get("response", {}).get("docs", [])
        return docs[0] if docs else None

    async def similar(self, record_id: str, params: Optional[ParamBag] = None) -> Dict[str, Any]:
        """Get documents similar to one document (MoreLikeThis handler)"""
        params = self._with_defaults(params, {"q": self._id_query(record_id), "qt": "morelikethis"})
        return await self.query("select", params)

    async def terms(self, field: str, start: str, limit: int) -> Dict[str, int]:
        """
        List index terms of a field following the given start term.

        Returns:
            Ordered term => document count mapping
        """
        params = ParamBag({
            "terms": "true",
            "terms.fl": field,
            "terms.lower": start,
            "terms.lower.incl": "false",
            "terms.limit": limit,
            "terms.sort": "index",
        })
        result = await self.query("terms", params)
        entries = result.get("terms", {}).get(field, [])
        terms: Dict[str, int] = {}
        if entries and isinstance(entries[0], list):
            for term, count in entries:
                terms[term] = count
        else:
            for i in range(0, len(entries) - 1, 2):
                terms[entries[i]] = entries[i + 1]
        return terms

    async def alphabetic_browse(self, source: str, from_: str, page: int, page_size: int = 20) -> Dict[str, Any]:
        """Page through an alphabetic browse index"""
        params = ParamBag({
            "from": from_,
            "offset": page * page_size,
            "rows": page_size,
            "source": source,
        })
        return await self.query("browse", params)

    async def query(self, handler: str, params: ParamBag) -> Dict[str, Any]:
        """
        Send a request to a search handler and decode the response.

        Raises:
            RequestErrorException: Solr rejected the request (4xx)
            RemoteErrorException: Solr failed (5xx)
            BackendException: Solr returned something that is not JSON
        """
        params = self._with_defaults(params, {})
        params.set("wt", "json")
        params.set("json.nl", "arrarr")
        self._strip_unwanted_facets(params)

        pairs = params.request()
        if len(self.shards) > 1:
            pairs.append("shards=" + quote_plus(",".join(self.shards.values())))
        query_string = "&".join(pairs)

        url = f"{self.url}/{handler}"
        if len(query_string) > MAX_GET_URL_LENGTH:
            response = await self._send(
                "POST",
                url,
                content=query_string,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        else:
            response = await self._send("GET", f"{url}?{query_string}")

        return self._process(response)

    # Update handlers

    async def write(
        self,
        documents: List[Dict[str, Any]],
        fmt: str = "json",
        handler: str = "update",
        params: Optional[ParamBag] = None,
    ) -> None:
        """
        Add or replace documents in the index.

        Raises:
            ValueError: If the format is neither json nor xml
        """
        if fmt == "json":
            body = json.dumps(documents)
            content_type = "application/json"
        elif fmt == "xml":
            body = self.documents_to_xml(documents)
            content_type = "text/xml; charset=utf-8"
        else:
            raise ValueError(f"Unsupported document format: {fmt}")
        await self._update(body, content_type, handler=handler, params=params)

    async def delete_records(self, ids: Iterable[str]) -> None:
        body = "<delete>" + "".join(f"<id>{escape(str(i))}</id>" for i in ids) + "</delete>"
        await self._update(body)

    async def delete_all(self) -> None:
        logger.warning(f"Deleting all records from {self.url}")
        await self._update("<delete><query>*:*</query></delete>")

    async def commit(self) -> None:
        await self._update("<commit/>", timeout=MAINTENANCE_TIMEOUT)

    async def optimize(self) -> None:
        await self._update("<optimize/>", timeout=MAINTENANCE_TIMEOUT)

    @staticmethod
    def documents_to_xml(documents: List[Dict[str, Any]]) -> str:
        """Serialize documents as a Solr <add> command; multi-valued fields repeat"""
        parts = ["<add>"]
        for document in documents:
            parts.append("<doc>")
            for name, value in document.items():
                values = value if isinstance(value, (list, tuple)) else [value]
                for current in values:
                    if current is None or current == "":
                        continue
                    parts.append(f"<field name={quoteattr(str(name))}>{escape(str(current))}</field>")
            parts.append("</doc>")
        parts.append("</add>")
        return "".join(parts)

    # Internals

    def _id_query(self, record_id: str) -> str:
        return '%s:"%s"' % (self.unique_key, str(record_id).replace('"', '\\"'))

    @staticmethod
    def _with_defaults(params: Optional[ParamBag], defaults: Dict[str, Any]) -> ParamBag:
        bag = ParamBag(defaults)
        if params is not None:
            for name, values in params.to_dict().items():
                bag.set(name, values)
        return bag

    def _strip_unwanted_facets(self, params: ParamBag) -> None:
        if not self.shards or not self.shard_fields_to_strip:
            return
        bad_facets = set()
        for shard_name, fields in self.shard_fields_to_strip.items():
            if shard_name in self.shards:
                bad_facets.update(fields)
        facet_fields = params.get("facet.field")
        if not bad_facets or facet_fields is None:
            return
        kept = [f for f in facet_fields if f not in bad_facets]
        if kept:
            params.set("facet.field", kept)
        else:
            params.remove("facet.field")

    async def _update(
        self,
        body: str,
        content_type: str = "text/xml; charset=utf-8",
        handler: str = "update",
        params: Optional[ParamBag] = None,
        timeout: Optional[float] = None,
    ) -> None:
        url = f"{self.url}/{handler}"
        if params is not None and len(params):
            url += "?" + "&".join(params.request())
        response = await self._send(
            "POST",
            url,
            content=body,
            headers={"Content-Type": content_type},
            timeout=timeout if timeout is not None else self.timeout,
        )
        if not response.is_success:
            raise HttpErrorException.from_response(response.status_code, response.text)

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        start_time = time.time()
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Solr request {method} {url} failed: {e}")
            raise BackendException(f"Solr request failed: {e}") from e
        elapsed_ms = (time.time() - start_time) * 1000
        logger.debug(f"{method} {url} => HTTP {response.status_code} in {elapsed_ms:.1f}ms")
        return response

    def _process(self, response: httpx.Response) -> Dict[str, Any]:
        if not response.is_success:
            raise HttpErrorException.from_response(response.status_code, response.text)

        body = response.text
        if body.lstrip().startswith("<h"):
            raise BackendException(f"Unable to process query. Solr returned: {extract_error_message(body)}")
        try:
            result = json.loads(body)
        except ValueError as e:
            raise BackendException(f"Unable to decode Solr response: {e}") from e

        # Move highlighting details into the documents they belong to
        highlighting = result.pop("highlighting", None)
        if highlighting is not None:
            for doc in result.get("response", {}).get("docs", []):
                key = doc.get(self.unique_key)
                if key in highlighting:
                    doc["_highlighting"] = highlighting[key]

        return result
