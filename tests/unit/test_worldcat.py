"""
Unit tests for the WorldCat backend
"""
import httpx
import pytest

from discovery.backends.worldcat import WorldCatConnector, WorldCatQueryBuilder
from discovery.core.exceptions import BackendException, RequestErrorException
from discovery.search.query import Query, QueryGroup


SRU_RESPONSE = """<?xml version="1.0" encoding="UTF-8"?>
<searchRetrieveResponse xmlns="http://www.loc.gov/zing/srw/">
  <numberOfRecords>42</numberOfRecords>
  <records>
    <record>
      <recordData>
        <record xmlns="http://www.loc.gov/MARC21/slim">
          <controlfield tag="001">12345</controlfield>
          <datafield tag="100" ind1="1" ind2=" "><subfield code="a">Smith, John,</subfield></datafield>
          <datafield tag="245" ind1="1" ind2="0">
            <subfield code="a">A title :</subfield>
            <subfield code="b">the subtitle /</subfield>
            <subfield code="c">John Smith.</subfield>
          </datafield>
        </record>
      </recordData>
    </record>
  </records>
</searchRetrieveResponse>
"""

DIAGNOSTIC_RESPONSE = """<?xml version="1.0" encoding="UTF-8"?>
<searchRetrieveResponse xmlns="http://www.loc.gov/zing/srw/">
  <diagnostics>
    <diagnostic xmlns="http://www.loc.gov/zing/srw/diagnostic/">
      <uri>info:srw/diagnostic/1/10</uri>
      <message>Query syntax error</message>
    </diagnostic>
  </diagnostics>
</searchRetrieveResponse>
"""

MARC_RECORD = """<record xmlns="http://www.loc.gov/MARC21/slim">
  <controlfield tag="001">999</controlfield>
  <datafield tag="245" ind1="0" ind2="0"><subfield code="a">Only a title.</subfield></datafield>
</record>
"""


def make_connector(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WorldCatConnector("test-wskey", client=client)


class TestWorldCatQueryBuilder:
    """CQL translation"""

    def test_all_fields(self):
        assert WorldCatQueryBuilder().build(Query("foo bar", None)) == '(srw.kw all "foo bar")'

    def test_quotes_are_removed(self):
        assert WorldCatQueryBuilder().build(Query('"foo bar"', "Title")) == '(srw.ti all "foo bar")'

    def test_isn_searches_both_indexes(self):
        assert WorldCatQueryBuilder().build(Query("123", "ISN")) == '(srw.bn all "123" or srw.in all "123")'

    def test_unknown_handler_is_used_as_index(self):
        assert WorldCatQueryBuilder().build(Query("x", "srw.la")) == '(srw.la all "x")'

    def test_group(self):
        group = QueryGroup("AND", [
            Query("a", "Title"),
            QueryGroup("NOT", [Query("b", "Author")]),
        ])
        assert WorldCatQueryBuilder().build(group) == '((srw.ti all "a")) NOT (((srw.au all "b")))'


class TestWorldCatConnector:
    """SRU requests"""

    async def test_search(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text=SRU_RESPONSE)

        result = await make_connector(handler).search('(srw.kw all "foo")', start=11, limit=10, sort="Title")

        assert result["total"] == 42
        doc = result["docs"][0]
        assert doc["id"] == "12345"
        assert doc["title"] == "A title : the subtitle"
        assert doc["author"] == "Smith, John"
        assert "MARC21" in doc["raw"]

        params = requests[0].url.params
        assert requests[0].url.path == "/webservices/catalog/search/sru"
        assert params["query"] == '(srw.kw all "foo")'
        assert params["startRecord"] == "11"
        assert params["maximumRecords"] == "10"
        assert params["sortKeys"] == "Title"
        assert params["wskey"] == "test-wskey"

    async def test_default_limit(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text=SRU_RESPONSE)

        await make_connector(handler).search("x")
        assert requests[0].url.params["maximumRecords"] == "20"
        assert "sortKeys" not in requests[0].url.params

    async def test_diagnostics(self):
        def handler(request):
            return httpx.Response(200, text=DIAGNOSTIC_RESPONSE)

        with pytest.raises(BackendException) as exc_info:
            await make_connector(handler).search("x")
        assert "Query syntax error" in str(exc_info.value)

    async def test_invalid_xml(self):
        def handler(request):
            return httpx.Response(200, text="not xml")

        with pytest.raises(BackendException):
            await make_connector(handler).search("x")

    async def test_http_error(self):
        def handler(request):
            return httpx.Response(403, text="Invalid wskey")

        with pytest.raises(RequestErrorException):
            await make_connector(handler).search("x")

    async def test_get_record(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text=MARC_RECORD)

        record = await make_connector(handler).get_record("999")

        assert requests[0].url.path == "/webservices/catalog/content/999"
        assert record["id"] == "999"
        assert record["title"] == "Only a title"
        assert record["author"] is None
