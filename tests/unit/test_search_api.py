"""
Unit tests for the search API endpoints
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from sqlalchemy.exc import SQLAlchemyError

from discovery.core.auth import get_optional_user
from discovery.core.exceptions import (
    RemoteErrorException,
    RequestErrorException,
    UnknownBackendError,
)
from discovery.search.query import Query, QueryGroup
from discovery.services.search_service import SearchResult, get_search_service


@pytest.fixture
def search_service():
    """Search service with mocked backend calls"""
    service = MagicMock()
    service.search = AsyncMock(return_value=SearchResult(
        backend="Solr",
        total=1,
        records=[{"id": "1", "title": "Foo"}],
        facets={"format": [{"value": "Book", "count": 1}]},
        query_string="foo",
    ))
    service.canonical_backend.return_value = "Solr"
    return service


@pytest.fixture
def api(client, search_service):
    from discovery.main import app
    app.dependency_overrides[get_search_service] = lambda: search_service
    return client


class TestBasicSearch:
    """GET /api/v1/search/{backend}"""

    def test_search(self, api, search_service):
        response = api.get(
            "/api/v1/search/Solr",
            params={"lookfor": "foo", "type": "Title", "page": 2, "limit": 10, "facet": "format", "filter": "format:Book"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["backend"] == "Solr"
        assert data["total"] == 1
        assert data["page"] == 2
        assert data["limit"] == 10
        assert data["records"][0]["id"] == "1"
        assert data["facets"]["format"] == [{"value": "Book", "count": 1}]
        assert data["search_id"] is None

        args, kwargs = search_service.search.call_args
        assert args[0] == "Solr"
        assert isinstance(args[1], Query)
        assert args[1].get_string() == "foo"
        assert args[1].get_handler() == "Title"
        assert kwargs["page"] == 2
        assert kwargs["limit"] == 10
        assert kwargs["facets"] == ["format"]
        assert kwargs["filters"] == ["format:Book"]

    def test_default_search_type(self, api, search_service):
        api.get("/api/v1/search/Solr", params={"lookfor": "foo"})

        assert search_service.search.call_args[0][1].get_handler() == "AllFields"

    def test_spelling_suggestions(self, api, search_service):
        search_service.search.return_value = SearchResult(
            backend="Solr",
            total=0,
            spelling_query="histroy",
            suggestions={"histroy": ["history"]},
            query_string="histroy",
        )

        response = api.get("/api/v1/search/Solr", params={"lookfor": "histroy", "spellcheck": True})

        data = response.json()
        assert data["spelling_query"] == "histroy"
        assert data["suggestions"] == {"histroy": ["history"]}
        assert search_service.search.call_args.kwargs["spellcheck"] is True

    def test_limit_is_validated(self, api, search_service):
        response = api.get("/api/v1/search/Solr", params={"lookfor": "foo", "limit": 1000})

        assert response.status_code == 422
        search_service.search.assert_not_awaited()

    @patch("discovery.api.v1.search.search_repository")
    def test_history_for_session(self, mock_repository, api):
        mock_repository.save_search = AsyncMock(return_value=MagicMock(id=7))

        response = api.get("/api/v1/search/Solr", params={"lookfor": "foo"}, headers={"X-Session-Id": "abc"})

        assert response.status_code == 200
        assert response.json()["search_id"] == 7
        args, kwargs = mock_repository.save_search.call_args
        assert args[0] == "Solr"
        assert kwargs["session_id"] == "abc"
        assert kwargs["user_id"] is None

    @patch("discovery.api.v1.search.search_repository")
    def test_history_for_user(self, mock_repository, api, test_user):
        from discovery.main import app
        app.dependency_overrides[get_optional_user] = lambda: test_user
        mock_repository.save_search = AsyncMock(return_value=MagicMock(id=8))

        response = api.get("/api/v1/search/Solr", params={"lookfor": "foo"})

        assert response.json()["search_id"] == 8
        assert mock_repository.save_search.call_args[1]["user_id"] == test_user.id

    @patch("discovery.api.v1.search.search_repository")
    def test_no_history_without_session(self, mock_repository, api):
        mock_repository.save_search = AsyncMock()

        api.get("/api/v1/search/Solr", params={"lookfor": "foo"})

        mock_repository.save_search.assert_not_awaited()

    @patch("discovery.api.v1.search.search_repository")
    def test_history_failure_does_not_fail_search(self, mock_repository, api):
        mock_repository.save_search = AsyncMock(side_effect=SQLAlchemyError("database is down"))

        response = api.get("/api/v1/search/Solr", params={"lookfor": "foo"}, headers={"X-Session-Id": "abc"})

        assert response.status_code == 200
        assert response.json()["search_id"] is None


class TestSearchErrors:
    """Backend failures are translated into HTTP errors"""

    @pytest.mark.parametrize("error, status_code", [
        (UnknownBackendError("Unknown search backend: Nope"), 404),
        (RequestErrorException("HTTP 400: undefined field", 400), 400),
        (RemoteErrorException("HTTP 503: unavailable", 503), 502),
        (ValueError("Invalid filter 'x', expected field:value"), 400),
        (RuntimeError("boom"), 500),
    ])
    def test_error_status(self, api, search_service, error, status_code):
        search_service.search.side_effect = error

        response = api.get("/api/v1/search/Nope", params={"lookfor": "foo"})

        assert response.status_code == status_code

    def test_internal_errors_are_not_leaked(self, api, search_service):
        search_service.search.side_effect = RuntimeError("secret details")

        response = api.get("/api/v1/search/Solr", params={"lookfor": "foo"})

        assert "secret details" not in response.text


class TestAdvancedSearch:
    """POST /api/v1/search/{backend}"""

    def test_query_group(self, api, search_service):
        response = api.post("/api/v1/search/Solr", json={
            "query": {
                "operator": "AND",
                "queries": [
                    {"lookfor": "climate", "type": "Title"},
                    {"operator": "NOT", "queries": [{"lookfor": "gore", "type": "Author"}]},
                ],
            },
            "page": 3,
            "filters": ["format:Book"],
        })

        assert response.status_code == 200
        assert response.json()["page"] == 3
        args, kwargs = search_service.search.call_args
        group = args[1]
        assert isinstance(group, QueryGroup)
        assert group.get_operator() == "AND"
        assert group.get_queries()[1].is_negated()
        assert kwargs["filters"] == ["format:Book"]

    def test_invalid_query(self, api, search_service):
        response = api.post("/api/v1/search/Solr", json={"query": {"operator": "XOR", "queries": []}})

        assert response.status_code == 400
        search_service.search.assert_not_awaited()

    def test_query_without_terms(self, api):
        response = api.post("/api/v1/search/Solr", json={"query": {"nothing": "here"}})

        assert response.status_code == 400


class TestRecords:
    """Record, similar records, terms, browse and autocomplete"""

    def test_get_record(self, api, search_service):
        search_service.get_record = AsyncMock(return_value={"id": "1"})

        response = api.get("/api/v1/record/solr/1")

        assert response.status_code == 200
        assert response.json() == {"backend": "Solr", "record": {"id": "1"}}

    def test_missing_record(self, api, search_service):
        search_service.get_record = AsyncMock(return_value=None)

        assert api.get("/api/v1/record/Solr/nope").status_code == 404

    def test_similar(self, api, search_service):
        search_service.get_similar = AsyncMock(return_value=[{"id": "2"}])

        response = api.get("/api/v1/record/Solr/1/similar")

        assert response.status_code == 200
        assert response.json() == {"record_id": "1", "records": [{"id": "2"}]}

    def test_terms(self, api, search_service):
        search_service.get_terms = AsyncMock(return_value={"apple": 3, "banana": 1})

        response = api.get("/api/v1/terms/title", params={"start": "a", "limit": 2})

        assert response.status_code == 200
        assert response.json()["terms"] == [{"term": "apple", "count": 3}, {"term": "banana", "count": 1}]
        search_service.get_terms.assert_awaited_once_with("title", "a", 2)

    def test_browse(self, api, search_service):
        search_service.alphabetic_browse = AsyncMock(return_value={"totalCount": 1, "items": [{"heading": "Foo"}]})

        response = api.get("/api/v1/browse/title", params={"from": "foo", "page": 1})

        assert response.status_code == 200
        data = response.json()
        assert data["from"] == "foo"
        assert data["result"]["items"][0]["heading"] == "Foo"
        search_service.alphabetic_browse.assert_awaited_once_with("title", "foo", 1, 20)

    def test_browse_backend_error(self, api, search_service):
        search_service.alphabetic_browse = AsyncMock(side_effect=RemoteErrorException("HTTP 500: oops", 500))

        assert api.get("/api/v1/browse/title").status_code == 502

    def test_autocomplete(self, api, search_service):
        search_service.autocomplete = AsyncMock(return_value=["Foo fighters"])

        response = api.get("/api/v1/autocomplete", params={"q": "foo", "type": "Title"})

        assert response.status_code == 200
        assert response.json() == {"query": "foo", "suggestions": ["Foo fighters"]}
        search_service.autocomplete.assert_awaited_once_with("foo", "Title", 10)

    def test_autocomplete_requires_query(self, api):
        assert api.get("/api/v1/autocomplete").status_code == 422
