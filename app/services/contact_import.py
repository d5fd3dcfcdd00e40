"""
Contact import service.

Runs the ingestion pipeline for LinkedIn CSV exports, Facebook profiles and
manual entries: parse, normalize, merge into a per-call ImportBatch, derive
tags, then fill-if-empty merge each batch entry into the contact store and
commit once.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable
from uuid import UUID

from app.config import Settings, get_settings
from app.models.contact import TagCategory
from app.services.contact_merge import ImportBatch, merge_into
from app.services.contact_record import ContactRecord, TagRecord
from app.services.contact_store import (
    ContactNotFoundError,
    ContactStore,
)
from app.services.csv_parser import has_name_columns, read_csv, resolve_headers
from app.services.facebook_client import FacebookError, FacebookGraphClient
from app.services.normalizer import normalize_profile, normalize_row
from app.services.tagging import (
    add_tags,
    apply_derived_tags,
    remove_tag,
    source_system_for,
)

logger = logging.getLogger(__name__)

# Processing order for the two LinkedIn export files
LINKEDIN_LABEL_ORDER = ("connections", "contacts", "linkedin")


class ContactImportError(Exception):
    """Base exception for contact import errors."""
    pass


class UnsupportedFileTypeError(ContactImportError):
    """Raised when an upload is not a CSV file."""
    pass


class UploadTooLargeError(ContactImportError):
    """Raised when an upload exceeds the size limit."""
    pass


class EmptyImportError(ContactImportError):
    """Raised when uploaded files contain no header or no rows."""
    pass


@dataclass
class ImportResult:
    """Result of an import operation."""
    success: bool = True
    count: int = 0  # Contacts created
    enhanced: int = 0  # Existing contacts that gained data or tags
    processed: int = 0  # Distinct contacts after in-batch merging
    skipped: int = 0  # Rows or profiles without a usable name, failed fetches or failed friend lists
    total_contacts: int | None = None
    message: str = ""
    details: list[str] = field(default_factory=list)


def _describe(result: ImportResult) -> str:
    if result.count > 0:
        message = f"Imported {result.count} new contacts"
        if result.enhanced:
            message += f", enhanced {result.enhanced} existing contacts"
    elif result.enhanced > 0:
        message = f"No new contacts added, enhanced {result.enhanced} existing contacts"
    else:
        message = "No new contacts imported"
    if result.skipped:
        message += f" ({result.skipped} skipped)"
    return message + "."


class ContactImportService:
    """
    Orchestrates parsing, normalization, merging and tagging of contacts.
    """

    def __init__(self, store: ContactStore, settings: Settings | None = None):
        """Initialize the import service.

        Args:
            store: Contact store to merge imported contacts into
            settings: Application settings (upload limits, Facebook config)
        """
        self.store = store
        self.settings = settings or get_settings()

    def validate_upload(self, filename: str | None, size: int) -> None:
        """
        Check an upload before any parsing happens.

        Raises:
            UnsupportedFileTypeError: If the file is not a .csv file
            UploadTooLargeError: If the file exceeds the configured limit
        """
        if not filename or not filename.lower().endswith(".csv"):
            raise UnsupportedFileTypeError(
                f"{filename or 'File'} is not a CSV file. LinkedIn exports are in CSV format."
            )
        if size > self.settings.max_upload_bytes:
            limit_mb = self.settings.max_upload_bytes / (1024 * 1024)
            raise UploadTooLargeError(
                f"{filename} is larger than the {limit_mb:g} MB upload limit."
            )

    def import_linkedin(self, files: Iterable[tuple[str, str | bytes]]) -> ImportResult:
        """
        Import one or both LinkedIn export files.

        Args:
            files: (source label, CSV content) pairs; labels are "connections",
                "contacts" or "linkedin"

        Raises:
            EmptyImportError: If no file has a header row and data rows
            StoreUnavailableError: If the store cannot be reached
        """
        rank = {label: index for index, label in enumerate(LINKEDIN_LABEL_ORDER)}
        ordered = sorted(files, key=lambda item: rank.get(item[0], len(rank)))

        batch = ImportBatch()
        skipped = 0
        usable_files = 0

        for label, content in ordered:
            parsed = read_csv(content)
            header_map = resolve_headers(parsed.headers)
            if not parsed.rows or not has_name_columns(header_map):
                logger.warning(f"LinkedIn {label} file has no usable header or rows")
                continue
            usable_files += 1

            logger.info(f"LinkedIn {label}: {len(parsed.rows)} rows, header map {header_map}")
            for row in parsed.rows:
                candidate = normalize_row(row, header_map, label)
                if candidate is None or not batch.add(candidate):
                    skipped += 1

        if usable_files == 0:
            raise EmptyImportError(
                "CSV file appears to be empty or only contains headers. "
                "Please check your LinkedIn export."
            )

        result = self._commit_batch(batch, "linkedin")
        result.skipped += skipped
        result.message = _describe(result)
        return result

    def import_profiles(
        self,
        documents: Iterable[Any],
        source: str = "facebook",
        skipped: int = 0,
    ) -> ImportResult:
        """
        Import already-fetched profile documents.

        Documents without a name are skipped.

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        batch = ImportBatch()
        for document in documents:
            candidate = normalize_profile(document, source)
            if candidate is None or not batch.add(candidate):
                skipped += 1

        result = self._commit_batch(batch, source_system_for(source))
        result.skipped += skipped
        result.message = _describe(result)
        return result

    async def import_facebook(
        self,
        access_token: str,
        include_friends: bool = True,
        client: FacebookGraphClient | None = None,
    ) -> ImportResult:
        """
        Import the token owner's profile and, optionally, their friends.

        Provider failures never fail the request: a failed profile fetch skips
        that contact and a failed friend list skips the friends batch.

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        client = client or FacebookGraphClient(
            access_token,
            base_url=self.settings.facebook_graph_url,
            timeout=self.settings.facebook_timeout_seconds,
        )
        documents: list[dict[str, Any]] = []
        skipped = 0
        notes: list[str] = []

        try:
            documents.append(await client.get_profile("me"))
        except FacebookError as e:
            logger.warning(f"Facebook profile fetch failed: {e}")
            skipped += 1
            notes.append(f"Profile skipped: {e}")

        if include_friends:
            try:
                friends = await client.get_friends(self.settings.facebook_max_friends)
            except FacebookError as e:
                logger.warning(f"Facebook friends fetch failed: {e}")
                friends = []
                skipped += 1
                notes.append(f"Friends skipped: {e}")

            for friend in friends:
                friend_id = friend.get("id")
                if not friend_id:
                    skipped += 1
                    continue
                try:
                    documents.append(await client.get_profile(str(friend_id)))
                except FacebookError as e:
                    logger.warning(f"Facebook friend {friend_id} skipped: {e}")
                    skipped += 1

        result = self.import_profiles(documents, "facebook", skipped=skipped)
        result.details.extend(notes)
        return result

    def create_contact(self, data: dict[str, Any], source: str = "manual") -> ContactRecord:
        """
        Add a manually entered contact, merging into an existing one by name.

        Raises:
            ContactImportError: If the data has no usable name
            StoreUnavailableError: If the store cannot be reached
        """
        candidate = normalize_profile(data, source)
        if candidate is None:
            raise ContactImportError("A contact needs a name.")

        existing = self.store.find_by_key(candidate.key)
        if existing is not None:
            changed = merge_into(existing, candidate)
            tagged = apply_derived_tags(existing, source_system_for(source))
            if not (changed or tagged):
                return existing
            saved = self.store.upsert(existing)
        else:
            apply_derived_tags(candidate, source_system_for(source))
            saved = self.store.upsert(candidate)
        self.store.commit()
        return saved

    def add_tag(
        self,
        contact_id: UUID,
        name: str,
        category: TagCategory,
        source_system: str = "manual",
    ) -> ContactRecord:
        """
        Attach a tag; a tag with the same (name, category) is not added twice.

        Raises:
            ContactNotFoundError: If the contact does not exist
        """
        record = self._require(contact_id)
        record.tags = add_tags(record.tags, [TagRecord(name.strip(), category, source_system)])
        saved = self.store.upsert(record)
        self.store.commit()
        return saved

    def remove_tag(self, contact_id: UUID, name: str, category: TagCategory) -> ContactRecord:
        """
        Detach a tag.

        Raises:
            ContactNotFoundError: If the contact does not exist
        """
        record = self._require(contact_id)
        record.tags = remove_tag(record.tags, name.strip(), category)
        saved = self.store.upsert(record)
        self.store.commit()
        return saved

    def _require(self, contact_id: UUID) -> ContactRecord:
        record = self.store.get(contact_id)
        if record is None:
            raise ContactNotFoundError(f"Contact not found: {contact_id}")
        return record

    def _commit_batch(self, batch: ImportBatch, source_system: str) -> ImportResult:
        """Tag batch entries, merge them into the store and commit."""
        result = ImportResult(processed=len(batch))

        try:
            for candidate in batch:
                existing = self.store.find_by_key(candidate.key)
                if existing is None:
                    apply_derived_tags(candidate, source_system)
                    self.store.upsert(candidate)
                    result.count += 1
                    continue

                changed = merge_into(existing, candidate)
                tagged = apply_derived_tags(existing, source_system)
                if not (changed or tagged):
                    logger.debug(f"No new data for existing contact: {existing.name}")
                    continue

                self.store.upsert(existing)
                result.enhanced += 1
                logger.debug(f"Enhanced existing contact: {existing.name}")

            self.store.commit()
        except Exception:
            self.store.rollback()
            raise

        result.total_contacts = self.store.count()
        logger.info(
            f"Import complete: processed={result.processed} created={result.count} "
            f"enhanced={result.enhanced} total={result.total_contacts}"
        )
        return result


def get_contact_import_service(
    store: ContactStore,
    settings: Settings | None = None,
) -> ContactImportService:
    """Get a contact import service instance.

    Args:
        store: Contact store

    Returns:
        ContactImportService instance
    """
    return ContactImportService(store, settings)
