"""
Contact search routes for BeeTagged.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.schemas import (
    ContactFilterRequest,
    ContactResponse,
    SearchResponse,
    SuggestionsResponse,
)
from app.services.contact_search import (
    ContactSearchService,
    SearchResult,
    get_contact_search_service,
)
from app.services.contact_store import (
    ContactFilters,
    StoreUnavailableError,
    get_contact_store,
)
from app.services.search_vocabulary import get_search_vocabulary

router = APIRouter(prefix="/api/search", tags=["search"])

SEARCH_UNAVAILABLE = "Search is unavailable: contact store unreachable"

SuggestionType = Literal["all", "companies", "positions", "locations"]


def _service(db: Session) -> ContactSearchService:
    return get_contact_search_service(
        get_contact_store(db),
        get_search_vocabulary(),
        get_settings().search_result_limit,
    )


def _response(result: SearchResult) -> SearchResponse:
    if not result.available:
        raise HTTPException(status_code=503, detail=SEARCH_UNAVAILABLE)
    return SearchResponse(
        contacts=[ContactResponse.model_validate(c) for c in result.contacts],
        total=result.total,
        query=result.query,
    )


@router.get("", response_model=SearchResponse)
def search_contacts(
    q: Optional[str] = Query(None, description="Free-text query"),
    db: Session = Depends(get_db),
):
    """
    Search contacts by name, company, position, location or email.

    An empty query returns the newest contacts. Results are capped; ``total``
    is the full number of matches.
    """
    return _response(_service(db).search(q))


@router.post("/filter", response_model=SearchResponse)
def filter_contacts(
    payload: ContactFilterRequest,
    db: Session = Depends(get_db),
):
    """
    Structured search on company, position, location, source and tags.

    All given filters must match; ``query`` echoes them as "field:value" pairs.
    """
    filters = ContactFilters(
        company=(payload.company or "").strip(),
        position=(payload.position or "").strip(),
        location=(payload.location or "").strip(),
        source=(payload.source or "").strip(),
        tags=[tag.strip() for tag in payload.tags if tag.strip()],
    )
    return _response(_service(db).filter_contacts(filters))


@router.get("/suggestions", response_model=SuggestionsResponse)
def search_suggestions(
    q: Optional[str] = Query(None, description="Prefix typed so far"),
    type: SuggestionType = Query("all", description="Which values to suggest"),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    """Autocomplete companies, positions and locations."""
    try:
        suggestions = _service(db).suggest(q, limit, type)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail=SEARCH_UNAVAILABLE)
    return {"suggestions": suggestions}
