"""
Application services for BeeTagged.
"""

from app.services.contact_import import (
    ContactImportService,
    ContactImportError,
    UnsupportedFileTypeError,
    UploadTooLargeError,
    EmptyImportError,
    ImportResult,
    get_contact_import_service,
)
from app.services.contact_search import (
    ContactSearchService,
    SearchResult,
    SearchStatus,
    get_contact_search_service,
)
from app.services.contact_store import (
    ContactStore,
    ContactFilters,
    InMemoryContactStore,
    SqlContactStore,
    ContactStoreError,
    StoreUnavailableError,
    ContactNotFoundError,
    get_contact_store,
)
from app.services.facebook_client import (
    FacebookGraphClient,
    FacebookError,
    FacebookAuthError,
    FacebookRateLimitError,
)

__all__ = [
    # Import
    "ContactImportService",
    "ContactImportError",
    "UnsupportedFileTypeError",
    "UploadTooLargeError",
    "EmptyImportError",
    "ImportResult",
    "get_contact_import_service",
    # Search
    "ContactSearchService",
    "SearchResult",
    "SearchStatus",
    "get_contact_search_service",
    # Store
    "ContactStore",
    "ContactFilters",
    "InMemoryContactStore",
    "SqlContactStore",
    "ContactStoreError",
    "StoreUnavailableError",
    "ContactNotFoundError",
    "get_contact_store",
    # Facebook
    "FacebookGraphClient",
    "FacebookError",
    "FacebookAuthError",
    "FacebookRateLimitError",
]
