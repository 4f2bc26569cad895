"""
Pydantic schemas for lists, tags, comments and search history
"""
from datetime import datetime
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator

from discovery.core.exceptions import UnknownBackendError
from discovery.services.search_service import canonical_backend_name


class ListCreateRequest(BaseModel):
    """Schema for creating a list"""
    title: str = Field(..., min_length=1, max_length=200, description="List title")
    description: Optional[str] = Field(None, description="List description")
    public: bool = Field(default=False, description="Is the list visible to others?")


class ListResponse(BaseModel):
    """Schema for list data response"""
    id: int
    title: str
    description: Optional[str] = None
    public: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RecordReference(BaseModel):
    """Identifies a backend record and the details stored for display"""
    record_id: str = Field(..., min_length=1, max_length=255, description="Record ID in the backend")
    source: str = Field(default="Solr", description="Backend the record comes from")
    title: str = Field(default="", max_length=255, description="Record title")
    author: Optional[str] = Field(None, max_length=255, description="Main author")
    year: Optional[int] = Field(None, description="Publication year")

    @field_validator("source")
    @classmethod
    def validate_source(cls, v):
        """Store the canonical backend name"""
        try:
            return canonical_backend_name(v)
        except UnknownBackendError as e:
            raise ValueError(str(e))


class SaveRecordRequest(RecordReference):
    """Schema for saving a record to a list"""
    notes: Optional[str] = Field(None, description="Personal notes")


class ListRecordResponse(BaseModel):
    """A record saved to a list"""
    resource_id: int
    record_id: str
    source: str
    title: str
    author: Optional[str] = None
    year: Optional[int] = None
    notes: Optional[str] = None
    saved: Optional[datetime] = None


class ListDetailResponse(ListResponse):
    """List with its saved records"""
    records: List[ListRecordResponse] = Field(default_factory=list)


class TagRequest(BaseModel):
    """Schema for tagging a record"""
    tags: str = Field(..., min_length=1, description='Space separated tags; use "quotes" for multi-word tags')
    list_id: Optional[int] = Field(None, description="List the record was tagged in")


class TagResponse(BaseModel):
    tag: str
    count: int


class CommentRequest(BaseModel):
    """Schema for commenting on a record"""
    comment: str = Field(..., min_length=1, max_length=5000, description="Comment text")


class CommentResponse(BaseModel):
    id: int
    user_id: Any
    comment: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SavedSearchResponse(BaseModel):
    """A search in the history"""
    id: int
    backend: str
    title: Optional[str] = None
    saved: bool
    search_object: Dict[str, Any]
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SetSavedRequest(BaseModel):
    saved: bool = Field(..., description="Keep the search permanently?")
