"""
BeeTagged - FastAPI Application Entry Point
"""

import logging

from fastapi import FastAPI, Depends
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db, engine
from app.models import Base
from app.routers import contacts, import_contacts, search
from app.services.contact_store import StoreUnavailableError, get_contact_store

# Initialize FastAPI app
settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="BeeTagged",
    description="Contact aggregation and tag-based search across LinkedIn and Facebook",
    version="0.1.0",
    debug=settings.debug,
)

# Include routers
app.include_router(import_contacts.router)
app.include_router(search.router)
app.include_router(contacts.router)


@app.on_event("startup")
async def startup_event():
    """Create tables on startup when configured (local and test databases)."""
    if settings.create_schema_on_startup:
        Base.metadata.create_all(bind=engine)
        logger.info("Database schema created")


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint that also verifies the contact store.
    """
    store = get_contact_store(db)
    try:
        store.ping()
        db_status = "connected"
        contact_count = store.count()
    except StoreUnavailableError as e:
        db_status = f"error: {e}"
        contact_count = None

    return {
        "status": "healthy",
        "database": db_status,
        "contacts": contact_count,
    }
