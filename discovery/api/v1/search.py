"""
Search API endpoints
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Query as QueryParam, Request, status
from sqlalchemy.exc import SQLAlchemyError

from discovery.core.auth import get_optional_user
from discovery.core.exceptions import BackendException, RequestErrorException, UnknownBackendError
from discovery.middleware.rate_limit import limiter, SEARCH_RATE_LIMIT
from discovery.models.user import User
from discovery.repositories.search_repository import SearchRepository
from discovery.schemas.search import (
    AdvancedSearchRequest,
    AutocompleteResponse,
    BrowseResponse,
    RecordResponse,
    SearchResponse,
    SimilarRecordsResponse,
    TermCount,
    TermsResponse,
)
from discovery.search.query import Query, query_from_dict
from discovery.services.search_service import SearchResult, SearchService, get_search_service

logger = logging.getLogger(__name__)

router = APIRouter()
search_repository = SearchRepository()


def search_http_error(error: Exception, context: str) -> HTTPException:
    """Translate a search failure into an HTTP error"""
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, UnknownBackendError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, RequestErrorException):
        logger.warning(f"{context}: {error}")
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, BackendException):
        logger.error(f"{context}: {error}")
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Search backend error: {error}")
    if isinstance(error, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    logger.exception(f"{context}: unexpected error")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


async def _record_history(backend: str, query, user: Optional[User], session_id: Optional[str]) -> Optional[int]:
    """Add the search to the history; history failures never fail the search"""
    if user is None and not session_id:
        return None
    try:
        saved = await search_repository.save_search(
            backend,
            query.to_dict(),
            user_id=user.id if user else None,
            session_id=session_id,
        )
        return saved.id
    except SQLAlchemyError as e:
        logger.warning(f"Could not store search history: {e}")
        return None


def _search_response(result: SearchResult, page: int, limit: int, search_id: Optional[int]) -> SearchResponse:
    return SearchResponse(page=page, limit=limit, search_id=search_id, **result.to_dict())


@router.get("/search/{backend}", response_model=SearchResponse)
@limiter.limit(SEARCH_RATE_LIMIT)
async def search(
    request: Request,
    backend: str,
    lookfor: str = "",
    search_type: str = QueryParam("AllFields", alias="type"),
    page: int = QueryParam(1, ge=1),
    limit: int = QueryParam(20, ge=1, le=100),
    sort: Optional[str] = None,
    facet: List[str] = QueryParam(default=[]),
    filter: List[str] = QueryParam(default=[]),
    highlight: bool = False,
    spellcheck: bool = False,
    x_session_id: Optional[str] = Header(None),
    current_user: Optional[User] = Depends(get_optional_user),
    search_service: SearchService = Depends(get_search_service),
):
    """
    Basic search: one search string against one search type.

    Args:
        backend: Solr, Summon or WorldCat
        lookfor: Search string
        search_type: Search type from the search specs (AllFields, Title, ...)
        facet: Facet fields to return
        filter: Filters as field:value (-field:value excludes)

    Returns:
        Matching records with facets
    """
    query = Query(lookfor, search_type)
    try:
        result = await search_service.search(
            backend,
            query,
            page=page,
            limit=limit,
            sort=sort,
            facets=facet,
            filters=filter,
            highlight=highlight,
            spellcheck=spellcheck,
        )
    except Exception as e:
        raise search_http_error(e, f"Search in {backend} failed")

    search_id = await _record_history(result.backend, query, current_user, x_session_id)
    return _search_response(result, page, limit, search_id)


@router.post("/search/{backend}", response_model=SearchResponse)
@limiter.limit(SEARCH_RATE_LIMIT)
async def advanced_search(
    request: Request,
    backend: str,
    search_request: AdvancedSearchRequest,
    x_session_id: Optional[str] = Header(None),
    current_user: Optional[User] = Depends(get_optional_user),
    search_service: SearchService = Depends(get_search_service),
):
    """Advanced search with nested boolean query groups"""
    try:
        query = query_from_dict(search_request.query)
        result = await search_service.search(
            backend,
            query,
            page=search_request.page,
            limit=search_request.limit,
            sort=search_request.sort,
            facets=search_request.facets,
            filters=search_request.filters,
            highlight=search_request.highlight,
            spellcheck=search_request.spellcheck,
        )
    except Exception as e:
        raise search_http_error(e, f"Advanced search in {backend} failed")

    search_id = await _record_history(result.backend, query, current_user, x_session_id)
    return _search_response(result, search_request.page, search_request.limit, search_id)


@router.get("/record/Solr/{record_id}/similar", response_model=SimilarRecordsResponse)
@limiter.limit(SEARCH_RATE_LIMIT)
async def similar_records(
    request: Request,
    record_id: str,
    search_service: SearchService = Depends(get_search_service),
):
    """Records similar to a Solr record"""
    try:
        records = await search_service.get_similar(record_id)
    except Exception as e:
        raise search_http_error(e, f"Similar records for {record_id} failed")
    return SimilarRecordsResponse(record_id=record_id, records=records)


@router.get("/record/{backend}/{record_id}", response_model=RecordResponse)
@limiter.limit(SEARCH_RATE_LIMIT)
async def get_record(
    request: Request,
    backend: str,
    record_id: str,
    search_service: SearchService = Depends(get_search_service),
):
    """Get a single record"""
    try:
        record = await search_service.get_record(backend, record_id)
    except Exception as e:
        raise search_http_error(e, f"Record {record_id} from {backend} failed")

    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Record {record_id} not found")
    return RecordResponse(backend=search_service.canonical_backend(backend), record=record)


@router.get("/terms/{field}", response_model=TermsResponse)
@limiter.limit(SEARCH_RATE_LIMIT)
async def get_terms(
    request: Request,
    field: str,
    start: str = "",
    limit: int = QueryParam(10, ge=1, le=1000),
    search_service: SearchService = Depends(get_search_service),
):
    """Index terms of a field, in index order, after the start term"""
    try:
        terms = await search_service.get_terms(field, start, limit)
    except Exception as e:
        raise search_http_error(e, f"Terms of {field} failed")
    return TermsResponse(field=field, terms=[TermCount(term=t, count=c) for t, c in terms.items()])


@router.get("/browse/{source}", response_model=BrowseResponse)
@limiter.limit(SEARCH_RATE_LIMIT)
async def alphabetic_browse(
    request: Request,
    source: str,
    from_: str = QueryParam("", alias="from"),
    page: int = QueryParam(0, ge=0),
    page_size: int = QueryParam(20, ge=1, le=100),
    search_service: SearchService = Depends(get_search_service),
):
    """Alphabetic browse of an index (title, author, subject, ...)"""
    try:
        result = await search_service.alphabetic_browse(source, from_, page, page_size)
    except Exception as e:
        raise search_http_error(e, f"Browse of {source} failed")
    return BrowseResponse(source=source, from_=from_, page=page, result=result)


@router.get("/autocomplete", response_model=AutocompleteResponse)
@limiter.limit(SEARCH_RATE_LIMIT)
async def autocomplete(
    request: Request,
    q: str = QueryParam(..., min_length=1),
    search_type: Optional[str] = QueryParam(None, alias="type"),
    limit: int = QueryParam(10, ge=1, le=50),
    search_service: SearchService = Depends(get_search_service),
):
    """Suggestions for partial search input"""
    suggestions = await search_service.autocomplete(q, search_type, limit)
    return AutocompleteResponse(query=q, suggestions=suggestions)
