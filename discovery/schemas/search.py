"""
Pydantic schemas for search API endpoints
"""
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field


class FacetValue(BaseModel):
    """A facet value with its record count"""
    value: Any = Field(..., description="Facet value")
    count: int = Field(..., description="Number of matching records")


class AdvancedSearchRequest(BaseModel):
    """API request schema for advanced (boolean group) searches"""
    query: Dict[str, Any] = Field(
        ...,
        description="Query leaf {lookfor, type} or group {operator, queries}",
        examples=[{
            "operator": "AND",
            "queries": [
                {"lookfor": "climate change", "type": "Title"},
                {"operator": "NOT", "queries": [{"lookfor": "gore", "type": "Author"}]}
            ]
        }]
    )
    page: int = Field(default=1, ge=1, description="1-based page number")
    limit: int = Field(default=20, ge=1, le=100, description="Records per page")
    sort: Optional[str] = Field(None, description="Sort option, e.g. 'year' or 'title asc'")
    facets: List[str] = Field(default_factory=list, description="Facet fields to return")
    filters: List[str] = Field(default_factory=list, description="Filters as field:value, -field:value to exclude")
    highlight: bool = Field(default=False, description="Highlight matching terms")
    spellcheck: bool = Field(default=False, description="Return spelling suggestions")


class SearchResponse(BaseModel):
    """API response schema for searches"""
    backend: str = Field(..., description="Backend that answered the search")
    total: int = Field(..., description="Total number of matching records")
    page: int = Field(..., description="Current page")
    limit: int = Field(..., description="Records per page")
    records: List[Dict[str, Any]] = Field(default_factory=list, description="Records of the current page")
    facets: Dict[str, List[FacetValue]] = Field(default_factory=dict, description="Facet values by field")
    spelling_query: Optional[str] = Field(None, description="Terms sent to the spellchecker")
    suggestions: Dict[str, List[str]] = Field(default_factory=dict, description="Suggested spellings by misspelled term or query")
    query_string: Optional[str] = Field(None, description="Query as sent to the backend")
    search_id: Optional[int] = Field(None, description="ID of the search in the history")


class RecordResponse(BaseModel):
    """API response schema for a single record"""
    backend: str
    record: Dict[str, Any]


class SimilarRecordsResponse(BaseModel):
    """API response schema for similar records"""
    record_id: str
    records: List[Dict[str, Any]] = Field(default_factory=list)


class TermCount(BaseModel):
    term: str
    count: int


class TermsResponse(BaseModel):
    """API response schema for index terms"""
    field: str
    terms: List[TermCount] = Field(default_factory=list)


class BrowseResponse(BaseModel):
    """API response schema for alphabetic browse"""
    source: str
    from_: str = Field(..., alias="from")
    page: int
    result: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


class AutocompleteResponse(BaseModel):
    """API response schema for autocomplete suggestions"""
    query: str
    suggestions: List[str] = Field(default_factory=list)
