"""
Contact routes for BeeTagged: listing, manual entry and tag editing.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.models import TagCategory
from app.schemas import (
    ContactCreate,
    ContactListResponse,
    ContactResponse,
    DuplicateGroupResponse,
    TagCreate,
)
from app.services.contact_import import ContactImportError, get_contact_import_service
from app.services.contact_merge import find_potential_duplicates
from app.services.contact_store import (
    ContactNotFoundError,
    StoreUnavailableError,
    get_contact_store,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contacts", tags=["contacts"])

DEFAULT_PAGE_SIZE = 20

STORE_UNAVAILABLE = "Contact store is unavailable"


@router.get("", response_model=ContactListResponse)
def list_contacts(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=250),
    db: Session = Depends(get_db),
):
    """List contacts, newest first."""
    store = get_contact_store(db)
    try:
        contacts = store.find_all(limit=limit, offset=(page - 1) * limit)
        total = store.count()
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail=STORE_UNAVAILABLE)

    return ContactListResponse(
        contacts=[ContactResponse.model_validate(c) for c in contacts],
        total=total,
        page=page,
        limit=limit,
    )


@router.post("", response_model=ContactResponse, status_code=201)
def create_contact(
    payload: ContactCreate,
    db: Session = Depends(get_db),
):
    """
    Add a contact by hand.

    A contact whose name matches an existing one is merged into it instead.
    """
    service = get_contact_import_service(get_contact_store(db))
    try:
        record = service.create_contact(payload.model_dump(exclude_none=True))
    except ContactImportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail=STORE_UNAVAILABLE)
    logger.info(f"Saved manual contact: {record.name}")
    return ContactResponse.model_validate(record)


@router.get("/duplicates", response_model=list[DuplicateGroupResponse])
def list_duplicates(db: Session = Depends(get_db)):
    """Groups of stored contacts that probably describe the same person."""
    store = get_contact_store(db)
    try:
        records = store.find_all()
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail=STORE_UNAVAILABLE)

    return [
        DuplicateGroupResponse(
            contacts=[ContactResponse.model_validate(c) for c in group["contacts"]],
            match_reason=group["match_reason"],
        )
        for group in find_potential_duplicates(records)
    ]


@router.get("/{contact_id}", response_model=ContactResponse)
def get_contact(contact_id: UUID, db: Session = Depends(get_db)):
    """Get a single contact with its tags."""
    try:
        record = get_contact_store(db).get(contact_id)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail=STORE_UNAVAILABLE)
    if record is None:
        raise HTTPException(status_code=404, detail="Contact not found")
    return ContactResponse.model_validate(record)


@router.post("/{contact_id}/tags", response_model=ContactResponse)
def add_contact_tag(
    contact_id: UUID,
    payload: TagCreate,
    db: Session = Depends(get_db),
):
    """Attach a tag. Re-adding an existing (name, category) is a no-op."""
    service = get_contact_import_service(get_contact_store(db))
    try:
        record = service.add_tag(contact_id, payload.name, payload.category)
    except ContactNotFoundError:
        raise HTTPException(status_code=404, detail="Contact not found")
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail=STORE_UNAVAILABLE)
    return ContactResponse.model_validate(record)


@router.delete("/{contact_id}/tags", response_model=ContactResponse)
def remove_contact_tag(
    contact_id: UUID,
    name: str = Query(..., min_length=1),
    category: TagCategory = Query(...),
    db: Session = Depends(get_db),
):
    """Detach the tag with the given name and category."""
    service = get_contact_import_service(get_contact_store(db))
    try:
        record = service.remove_tag(contact_id, name, category)
    except ContactNotFoundError:
        raise HTTPException(status_code=404, detail="Contact not found")
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail=STORE_UNAVAILABLE)
    return ContactResponse.model_validate(record)
