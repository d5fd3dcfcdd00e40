"""
Contact storage abstraction.

The import and search pipeline talks to a ContactStore instead of the
database directly, so it runs the same against PostgreSQL in production and
an in-memory store in tests.
"""

import itertools
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator
from uuid import UUID, uuid4

from sqlalchemy import distinct, or_, text
from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session, selectinload

from app.models import Contact, ContactTag
from app.services.contact_record import (
    SEARCHABLE_FIELDS,
    ContactRecord,
    TagRecord,
    derive_key,
)

logger = logging.getLogger(__name__)

# Columns copied between ContactRecord and the Contact model
PERSISTED_FIELDS: tuple[str, ...] = (
    "name",
    "email",
    "company",
    "position",
    "location",
    "phone",
    "profile_url",
    "picture_url",
    "connected_on",
    "source",
)


class ContactStoreError(Exception):
    """Base exception for contact store errors."""
    pass


class StoreUnavailableError(ContactStoreError):
    """Raised when the backing store cannot be reached or times out."""
    pass


class ContactNotFoundError(ContactStoreError):
    """Raised when a contact id does not exist."""
    pass


@dataclass(frozen=True)
class MatchCondition:
    """Case-insensitive "field contains needle" test."""
    field: str
    needle: str

    def matches(self, record: ContactRecord) -> bool:
        value = getattr(record, self.field, "") or ""
        return self.needle.lower() in value.lower()


@dataclass
class SearchCriteria:
    """Conditions combined with OR. No conditions matches every contact."""
    conditions: list[MatchCondition] = field(default_factory=list)

    def add(self, field_name: str, needle: str) -> None:
        if field_name not in SEARCHABLE_FIELDS:
            raise ValueError(f"Field is not searchable: {field_name}")
        condition = MatchCondition(field_name, needle)
        if needle and condition not in self.conditions:
            self.conditions.append(condition)

    def matches(self, record: ContactRecord) -> bool:
        if not self.conditions:
            return True
        return any(condition.matches(record) for condition in self.conditions)


@dataclass
class ContactFilters:
    """
    Structured filters, all of which must hold.

    company, position and location are case-insensitive "contains" tests,
    source is an exact match and tags matches contacts carrying any of the
    listed tag names.
    """
    company: str = ""
    position: str = ""
    location: str = ""
    source: str = ""
    tags: list[str] = field(default_factory=list)

    def describe(self) -> str:
        """Compact "field:value" rendering used as the echoed query."""
        parts = [
            f"{name}:{getattr(self, name)}"
            for name in ("company", "position", "location", "source")
            if getattr(self, name)
        ]
        parts.extend(f"tag:{tag}" for tag in self.tags)
        return " ".join(parts)

    def matches(self, record: ContactRecord) -> bool:
        for name in ("company", "position", "location"):
            needle = getattr(self, name)
            if needle and needle.lower() not in getattr(record, name).lower():
                return False
        if self.source and record.source != self.source:
            return False
        if self.tags and not any(tag.name in self.tags for tag in record.tags):
            return False
        return True


class ContactStore(ABC):
    """Persistence operations needed by the contact pipeline."""

    @abstractmethod
    def find_all(self, limit: int | None = None, offset: int = 0) -> list[ContactRecord]:
        """Contacts ordered newest first."""
        pass

    @abstractmethod
    def find_by_key(self, key: str) -> ContactRecord | None:
        """Oldest contact with the given derived name key."""
        pass

    @abstractmethod
    def get(self, contact_id: UUID) -> ContactRecord | None:
        pass

    @abstractmethod
    def upsert(self, record: ContactRecord) -> ContactRecord:
        """
        Insert a record without id, or replace the stored record with its id.

        Raises:
            ContactNotFoundError: If the record has an id that is not stored
        """
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def find_matching(
        self,
        criteria: SearchCriteria,
        limit: int,
    ) -> tuple[list[ContactRecord], int]:
        """
        Contacts matching any condition, newest first.

        Returns:
            Tuple of (at most ``limit`` records, total number of matches)
        """
        pass

    @abstractmethod
    def find_filtered(
        self,
        filters: ContactFilters,
        limit: int,
    ) -> tuple[list[ContactRecord], int]:
        """
        Contacts satisfying every filter, newest first.

        Returns:
            Tuple of (at most ``limit`` records, total number of matches)
        """
        pass

    @abstractmethod
    def distinct_values(self, field_name: str, needle: str, limit: int) -> list[str]:
        """Distinct non-empty values of a field containing ``needle``."""
        pass

    @abstractmethod
    def ping(self) -> None:
        """
        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        pass

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass


class InMemoryContactStore(ContactStore):
    """Dictionary-backed store for tests and local experiments."""

    def __init__(self, records: list[ContactRecord] | None = None):
        self._records: dict[UUID, ContactRecord] = {}
        self._sequence: dict[UUID, int] = {}
        self._counter = itertools.count()
        for record in records or []:
            self.upsert(record)

    def _ordered(self) -> list[ContactRecord]:
        min_time = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(
            self._records.values(),
            key=lambda r: (r.created_at or min_time, self._sequence[r.id]),
            reverse=True,
        )

    def find_all(self, limit: int | None = None, offset: int = 0) -> list[ContactRecord]:
        records = self._ordered()[offset:]
        if limit is not None:
            records = records[:limit]
        return [r.copy() for r in records]

    def find_by_key(self, key: str) -> ContactRecord | None:
        matches = [r for r in reversed(self._ordered()) if r.key == key]
        return matches[0].copy() if matches else None

    def get(self, contact_id: UUID) -> ContactRecord | None:
        record = self._records.get(contact_id)
        return record.copy() if record else None

    def upsert(self, record: ContactRecord) -> ContactRecord:
        stored = record.copy()
        if stored.id is None:
            stored.id = uuid4()
            self._sequence[stored.id] = next(self._counter)
        elif stored.id not in self._records:
            raise ContactNotFoundError(f"Contact not found: {stored.id}")
        if stored.created_at is None:
            stored.created_at = datetime.now(timezone.utc)
        self._records[stored.id] = stored
        return stored.copy()

    def count(self) -> int:
        return len(self._records)

    def find_matching(
        self,
        criteria: SearchCriteria,
        limit: int,
    ) -> tuple[list[ContactRecord], int]:
        matches = [r for r in self._ordered() if criteria.matches(r)]
        return [r.copy() for r in matches[:limit]], len(matches)

    def find_filtered(
        self,
        filters: ContactFilters,
        limit: int,
    ) -> tuple[list[ContactRecord], int]:
        matches = [r for r in self._ordered() if filters.matches(r)]
        return [r.copy() for r in matches[:limit]], len(matches)

    def distinct_values(self, field_name: str, needle: str, limit: int) -> list[str]:
        values = {
            getattr(r, field_name)
            for r in self._records.values()
            if getattr(r, field_name) and needle.lower() in getattr(r, field_name).lower()
        }
        return sorted(values)[:limit]

    def ping(self) -> None:
        return None


@contextmanager
def _store_errors(db: Session) -> Iterator[None]:
    """Translate connectivity failures into StoreUnavailableError."""
    try:
        yield
    except (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.TimeoutError) as e:
        logger.error(f"Contact store unavailable: {e}")
        db.rollback()
        raise StoreUnavailableError("Contact store is unavailable") from e


class SqlContactStore(ContactStore):
    """SQLAlchemy-backed store over the contacts and contact_tags tables."""

    def __init__(self, db: Session):
        """Initialize the store.

        Args:
            db: Database session; the caller owns its lifecycle
        """
        self.db = db

    def _query(self):
        return self.db.query(Contact).options(selectinload(Contact.tags))

    @staticmethod
    def _newest_first(query):
        return query.order_by(Contact.created_at.desc(), Contact.id)

    @staticmethod
    def _to_record(contact: Contact) -> ContactRecord:
        tags = sorted(contact.tags, key=lambda t: t.position_index)
        return ContactRecord(
            **{name: getattr(contact, name) or "" for name in PERSISTED_FIELDS},
            tags=[TagRecord(t.name, t.category, t.source_system or "") for t in tags],
            id=contact.id,
            created_at=contact.created_at,
        )

    def _sync_tags(self, contact: Contact, tags: list[TagRecord]) -> None:
        wanted = {tag.identity: (index, tag) for index, tag in enumerate(tags)}

        for existing in list(contact.tags):
            entry = wanted.pop((existing.name, existing.category), None)
            if entry is None:
                contact.tags.remove(existing)
            else:
                existing.position_index = entry[0]

        for index, tag in wanted.values():
            contact.tags.append(
                ContactTag(
                    name=tag.name,
                    category=tag.category,
                    source_system=tag.source_system,
                    position_index=index,
                )
            )

    def find_all(self, limit: int | None = None, offset: int = 0) -> list[ContactRecord]:
        with _store_errors(self.db):
            query = self._newest_first(self._query()).offset(offset)
            if limit is not None:
                query = query.limit(limit)
            return [self._to_record(c) for c in query.all()]

    def find_by_key(self, key: str) -> ContactRecord | None:
        with _store_errors(self.db):
            contact = (
                self._query()
                .filter(Contact.name_key == key)
                .order_by(Contact.created_at.asc())
                .first()
            )
            return self._to_record(contact) if contact else None

    def get(self, contact_id: UUID) -> ContactRecord | None:
        with _store_errors(self.db):
            contact = self._query().filter(Contact.id == contact_id).first()
            return self._to_record(contact) if contact else None

    def upsert(self, record: ContactRecord) -> ContactRecord:
        with _store_errors(self.db):
            if record.id is not None:
                contact = self.db.get(Contact, record.id)
                if contact is None:
                    raise ContactNotFoundError(f"Contact not found: {record.id}")
            else:
                contact = Contact(id=uuid4())
                if record.created_at is not None:
                    contact.created_at = record.created_at
                self.db.add(contact)

            for name in PERSISTED_FIELDS:
                setattr(contact, name, getattr(record, name))
            contact.name_key = derive_key(record.name)
            self._sync_tags(contact, record.tags)

            self.db.flush()
            return self._to_record(contact)

    def count(self) -> int:
        with _store_errors(self.db):
            return self.db.query(Contact).count()

    def find_matching(
        self,
        criteria: SearchCriteria,
        limit: int,
    ) -> tuple[list[ContactRecord], int]:
        with _store_errors(self.db):
            query = self._query()
            if criteria.conditions:
                query = query.filter(
                    or_(
                        *[
                            getattr(Contact, c.field).icontains(c.needle, autoescape=True)
                            for c in criteria.conditions
                        ]
                    )
                )
            total = query.count()
            contacts = self._newest_first(query).limit(limit).all()
            return [self._to_record(c) for c in contacts], total

    def find_filtered(
        self,
        filters: ContactFilters,
        limit: int,
    ) -> tuple[list[ContactRecord], int]:
        conditions = [
            getattr(Contact, name).icontains(getattr(filters, name), autoescape=True)
            for name in ("company", "position", "location")
            if getattr(filters, name)
        ]
        if filters.source:
            conditions.append(Contact.source == filters.source)
        if filters.tags:
            conditions.append(Contact.tags.any(ContactTag.name.in_(filters.tags)))

        with _store_errors(self.db):
            query = self._query().filter(*conditions)
            total = query.count()
            contacts = self._newest_first(query).limit(limit).all()
            return [self._to_record(c) for c in contacts], total

    def distinct_values(self, field_name: str, needle: str, limit: int) -> list[str]:
        column = getattr(Contact, field_name)
        with _store_errors(self.db):
            rows = (
                self.db.query(distinct(column))
                .filter(column != "", column.icontains(needle, autoescape=True))
                .order_by(column)
                .limit(limit)
                .all()
            )
            return [row[0] for row in rows]

    def ping(self) -> None:
        with _store_errors(self.db):
            self.db.execute(text("SELECT 1")).fetchone()

    def commit(self) -> None:
        with _store_errors(self.db):
            self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


def get_contact_store(db: Session) -> SqlContactStore:
    """Get a contact store bound to a database session.

    Args:
        db: Database session

    Returns:
        SqlContactStore instance
    """
    return SqlContactStore(db)
