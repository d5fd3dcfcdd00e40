"""
Pydantic schemas for API request/response validation.
"""

from app.schemas.contact import (
    TagCreate,
    TagResponse,
    ContactCreate,
    ContactResponse,
    ContactListResponse,
    DuplicateGroupResponse,
    SearchResponse,
    ContactFilterRequest,
    Suggestion,
    SuggestionsResponse,
    ImportResponse,
    FacebookImportRequest,
    FacebookProfilesRequest,
)

__all__ = [
    # Contacts
    "ContactCreate",
    "ContactResponse",
    "ContactListResponse",
    "DuplicateGroupResponse",
    # Tags
    "TagCreate",
    "TagResponse",
    # Search
    "SearchResponse",
    "ContactFilterRequest",
    "Suggestion",
    "SuggestionsResponse",
    # Import
    "ImportResponse",
    "FacebookImportRequest",
    "FacebookProfilesRequest",
]
