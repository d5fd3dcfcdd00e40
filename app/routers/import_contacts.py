"""
Contact import routes for BeeTagged.

Handles LinkedIn CSV exports (a single file, or the Connections and Contacts
exports together) and Facebook profiles, merging them into the contact store.
"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.schemas import FacebookImportRequest, FacebookProfilesRequest, ImportResponse
from app.services.contact_import import (
    ContactImportError,
    ContactImportService,
    EmptyImportError,
    UnsupportedFileTypeError,
    UploadTooLargeError,
    get_contact_import_service,
)
from app.services.contact_store import StoreUnavailableError, get_contact_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/import", tags=["import"])


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "count": 0, "message": message},
    )


def _service(db: Session) -> ContactImportService:
    return get_contact_import_service(get_contact_store(db), get_settings())


async def _read_upload(service: ContactImportService, upload: UploadFile) -> bytes:
    """Read an upload, reading at most one byte past the size limit."""
    content = await upload.read(service.settings.max_upload_bytes + 1)
    service.validate_upload(upload.filename, len(content))
    return content


@router.post("/linkedin", response_model=ImportResponse)
async def import_linkedin(
    file: Optional[UploadFile] = File(None, description="Single LinkedIn CSV export"),
    connections_file: Optional[UploadFile] = File(None, description="LinkedIn Connections.csv"),
    contacts_file: Optional[UploadFile] = File(None, description="LinkedIn Contacts.csv"),
    db: Session = Depends(get_db),
):
    """
    Import contacts from LinkedIn CSV exports.

    Either upload one export as ``file``, or the Connections and Contacts
    exports as ``connections_file`` and ``contacts_file``; rows describing the
    same person in both files are merged into one contact.
    """
    uploads = [
        (label, upload)
        for label, upload in (
            ("linkedin", file),
            ("connections", connections_file),
            ("contacts", contacts_file),
        )
        if upload is not None
    ]
    if not uploads:
        return _failure(400, "No file uploaded. Please select a LinkedIn CSV export.")

    service = _service(db)
    try:
        files = [(label, await _read_upload(service, upload)) for label, upload in uploads]
        result = service.import_linkedin(files)
    except UnsupportedFileTypeError as e:
        return _failure(400, str(e))
    except UploadTooLargeError as e:
        return _failure(413, str(e))
    except EmptyImportError as e:
        return _failure(400, str(e))
    except StoreUnavailableError as e:
        logger.error(f"LinkedIn import failed: {e}")
        return _failure(503, "Contact store is unavailable. Please try again later.")

    logger.info(f"LinkedIn import: {result.message}")
    return ImportResponse(**asdict(result))


@router.post("/facebook", response_model=ImportResponse)
async def import_facebook(
    payload: FacebookImportRequest,
    db: Session = Depends(get_db),
):
    """
    Import the token owner's Facebook profile and friends.

    Friends are limited to those who also authorized the app.
    """
    service = _service(db)
    try:
        result = await service.import_facebook(payload.access_token, payload.include_friends)
    except StoreUnavailableError as e:
        logger.error(f"Facebook import failed: {e}")
        return _failure(503, "Contact store is unavailable. Please try again later.")

    return ImportResponse(**asdict(result))


@router.post("/facebook/profiles", response_model=ImportResponse)
async def import_facebook_profiles(
    payload: FacebookProfilesRequest,
    db: Session = Depends(get_db),
):
    """
    Import Facebook profile documents fetched client-side.
    """
    service = _service(db)
    try:
        result = service.import_profiles(payload.profiles, "facebook")
    except ContactImportError as e:
        return _failure(400, str(e))
    except StoreUnavailableError as e:
        logger.error(f"Facebook profile import failed: {e}")
        return _failure(503, "Contact store is unavailable. Please try again later.")

    return ImportResponse(**asdict(result))
