"""
Pydantic schemas for contacts, tags, imports and search.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.contact import TagCategory


class TagBase(BaseModel):
    """Base schema for a contact tag."""
    name: str = Field(..., min_length=1, max_length=200, description="Tag text")
    category: TagCategory = Field(..., description="Tag category")


class TagCreate(TagBase):
    """Schema for attaching a tag to a contact."""
    pass


class TagResponse(TagBase):
    """Schema for tag response."""
    source_system: str = ""

    class Config:
        from_attributes = True


class ContactCreate(BaseModel):
    """Schema for a manually entered contact."""
    name: Optional[str] = Field(None, max_length=300)
    first_name: Optional[str] = Field(None, max_length=150)
    last_name: Optional[str] = Field(None, max_length=150)
    email: Optional[str] = Field(None, max_length=320)
    company: Optional[str] = None
    position: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=100)
    profile_url: Optional[str] = None
    school: Optional[str] = None


class ContactResponse(BaseModel):
    """Schema for contact response."""
    id: UUID
    name: str
    email: str = ""
    company: str = ""
    position: str = ""
    location: str = ""
    phone: str = ""
    profile_url: str = ""
    picture_url: str = ""
    connected_on: str = ""
    source: str = ""
    tags: list[TagResponse] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ContactListResponse(BaseModel):
    """One page of contacts, newest first."""
    contacts: list[ContactResponse]
    total: int
    page: int
    limit: int


class DuplicateGroupResponse(BaseModel):
    """Contacts that probably describe the same person."""
    contacts: list[ContactResponse]
    match_reason: str


class SearchResponse(BaseModel):
    """Search results capped at the result limit, plus the total match count."""
    contacts: list[ContactResponse]
    total: int
    query: str


class ContactFilterRequest(BaseModel):
    """Structured search filters; omitted filters are ignored."""
    company: Optional[str] = Field(None, description="Company contains (case-insensitive)")
    position: Optional[str] = Field(None, description="Position contains (case-insensitive)")
    location: Optional[str] = Field(None, description="Location contains (case-insensitive)")
    source: Optional[str] = Field(None, description="Exact source label")
    tags: list[str] = Field(default_factory=list, description="Match contacts carrying any of these tag names")


class Suggestion(BaseModel):
    type: str
    value: str


class SuggestionsResponse(BaseModel):
    suggestions: list[Suggestion]


class ImportResponse(BaseModel):
    """Outcome of an import request."""
    success: bool = True
    count: int = Field(0, description="Contacts created")
    enhanced: int = Field(0, description="Existing contacts merged into")
    processed: int = Field(0, description="Distinct contacts in the upload")
    skipped: int = 0
    total_contacts: Optional[int] = Field(None, alias="totalContacts")
    message: str = ""
    details: list[str] = []

    class Config:
        populate_by_name = True


class FacebookImportRequest(BaseModel):
    """Request to import contacts through the Facebook Graph API."""
    access_token: str = Field(..., min_length=1, description="Facebook user access token")
    include_friends: bool = True


class FacebookProfilesRequest(BaseModel):
    """Already-fetched Facebook profile documents."""
    profiles: list[Any] = Field(default_factory=list)
