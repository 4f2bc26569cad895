"""
WorldCat backend: CQL query translation and SRU client
"""
import logging
import time
from typing import Any, Dict, List, Optional, Union
from xml.etree import ElementTree as ET

import httpx

from discovery.core.exceptions import BackendException, HttpErrorException
from discovery.search.query import Query, QueryGroup

logger = logging.getLogger(__name__)


# Search handler => SRU index (several indexes are ORed together)
INDEXES = {
    "AllFields": ["srw.kw"],
    "Title": ["srw.ti"],
    "Author": ["srw.au"],
    "Subject": ["srw.su"],
    "ISN": ["srw.bn", "srw.in"],
    "Publisher": ["srw.pb"],
    "Series": ["srw.se"],
    "year": ["srw.yr"],
}

MARCXML_SCHEMA = "info:srw/schema/1/marcxml"


class WorldCatQueryBuilder:
    """Translates user queries into CQL for the WorldCat SRU service"""

    def build(self, query: Union[Query, QueryGroup]) -> str:
        if isinstance(query, QueryGroup):
            return self._query_group_to_string(query)
        return self._query_to_string(query)

    @staticmethod
    def _query_to_string(query: Query) -> str:
        terms = query.get_string().replace('"', "").strip()
        indexes = INDEXES.get(query.get_handler() or "AllFields", [query.get_handler()])
        clauses = [f'{index} all "{terms}"' for index in indexes]
        return "(" + " or ".join(clauses) + ")"

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


class WorldCatConnector:
    """Client for the WorldCat SRU search and content services"""

    def __init__(
        self,
        wskey: str,
        base_url: str = "http://www.worldcat.org/webservices/catalog",
        limit: int = 20,
        timeout: float = 30,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.wskey = wskey
        self.base_url = base_url.rstrip("/")
        self.limit = limit
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def search(self, query: str, start: int = 1, limit: Optional[int] = None, sort: Optional[str] = None) -> Dict[str, Any]:
        """
        Run an SRU search.

        Args:
            query: CQL query (see WorldCatQueryBuilder)
            start: 1-based position of the first record
            limit: Number of records to return
            sort: SRU sortKeys value

        Returns:
            {"total": int, "docs": [...]}
        """
        params: Dict[str, Any] = {
            "query": query,
            "startRecord": start,
            "maximumRecords": limit or self.limit,
            "servicelevel": "full",
            "recordSchema": MARCXML_SCHEMA,
            "wskey": self.wskey,
        }
        if sort:
            params["sortKeys"] = sort
        root = await self._get_xml(f"{self.base_url}/search/sru", params)

        total_node = root.find(".//{*}numberOfRecords")
        total = int(total_node.text) if total_node is not None and total_node.text else 0
        docs = [parse_marc_record(record) for record in root.iter("{http://www.loc.gov/MARC21/slim}record")]
        return {"total": total, "docs": docs}

    async def get_record(self, oclc_id: str) -> Optional[Dict[str, Any]]:
        """Get a single record by OCLC number"""
        root = await self._get_xml(
            f"{self.base_url}/content/{oclc_id}",
            {"servicelevel": "full", "wskey": self.wskey},
        )
        records = list(root.iter("{http://www.loc.gov/MARC21/slim}record"))
        if not records and root.tag.endswith("record"):
            records = [root]
        return parse_marc_record(records[0]) if records else None

    async def _get_xml(self, url: str, params: Dict[str, Any]) -> ET.Element:
        start_time = time.time()
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"WorldCat request {url} failed: {e}")
            raise BackendException(f"WorldCat request failed: {e}") from e
        elapsed_ms = (time.time() - start_time) * 1000
        logger.debug(f"GET {url} => HTTP {response.status_code} in {elapsed_ms:.1f}ms")

        if not response.is_success:
            raise HttpErrorException.from_response(response.status_code, response.text)

        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as e:
            raise BackendException(f"Unable to parse WorldCat response: {e}") from e

        diagnostics = [
            (node.findtext("{*}message") or node.findtext("{*}details") or "").strip()
            for node in root.iter()
            if node.tag.endswith("}diagnostic")
        ]
        if diagnostics:
            raise BackendException("WorldCat returned: " + "; ".join(d for d in diagnostics if d))
        return root


def parse_marc_record(record: ET.Element) -> Dict[str, Any]:
    """Pick id, title and author out of a MARCXML record"""
    def subfields(tag: str, codes: str) -> List[str]:
        values = []
        for datafield in record.findall("{*}datafield"):
            if datafield.get("tag") == tag:
                for subfield in datafield.findall("{*}subfield"):
                    if subfield.get("code") in codes and subfield.text:
                        values.append(subfield.text.strip())
                break
        return values

    control_id = None
    for controlfield in record.findall("{*}controlfield"):
        if controlfield.get("tag") == "001":
            control_id = (controlfield.text or "").strip()
            break

    title = " ".join(subfields("245", "ab")).rstrip(" /:;,.")
    author = " ".join(subfields("100", "a")).rstrip(" ,.")
    return {
        "id": control_id,
        "title": title or None,
        "author": author or None,
        "raw": ET.tostring(record, encoding="unicode"),
    }
