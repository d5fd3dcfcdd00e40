"""
Tag derivation for imported contacts.
"""

from typing import Iterable

from app.models.contact import TagCategory
from app.services.contact_record import ContactRecord, TagRecord


# Source label -> source system
SOURCE_SYSTEMS: dict[str, str] = {
    "linkedin": "linkedin",
    "connections": "linkedin",
    "contacts": "linkedin",
    "facebook": "facebook",
    "manual": "manual",
}

# Source system -> display name of its source tag
SOURCE_TAG_NAMES: dict[str, str] = {
    "linkedin": "LinkedIn",
    "facebook": "Facebook",
    "manual": "Manual",
}


def source_system_for(label: str) -> str:
    """Map a (possibly composite) source label to the system of its first part."""
    first = label.split("+", 1)[0].strip().lower()
    return SOURCE_SYSTEMS.get(first, first)


def derive_tags(record: ContactRecord, source_system: str) -> list[TagRecord]:
    """Company, location, education and source tags for a merged contact."""
    tags = []
    if record.company:
        tags.append(TagRecord(record.company, TagCategory.company, source_system))
    if record.location:
        tags.append(TagRecord(record.location, TagCategory.location, source_system))
    if record.school:
        tags.append(TagRecord(record.school, TagCategory.education, source_system))
    source_name = SOURCE_TAG_NAMES.get(source_system, source_system.title())
    if source_name:
        tags.append(TagRecord(source_name, TagCategory.source, source_system))
    return tags


def add_tags(existing: Iterable[TagRecord], new: Iterable[TagRecord]) -> list[TagRecord]:
    """Order-preserving union of two tag lists keyed by (name, category)."""
    result: list[TagRecord] = []
    seen: set[tuple[str, TagCategory]] = set()
    for tag in [*existing, *new]:
        if tag.identity in seen:
            continue
        seen.add(tag.identity)
        result.append(tag)
    return result


def remove_tag(tags: Iterable[TagRecord], name: str, category: TagCategory) -> list[TagRecord]:
    """Drop the tag with the given (name, category), if present."""
    return [tag for tag in tags if tag.identity != (name, category)]


def apply_derived_tags(record: ContactRecord, source_system: str) -> bool:
    """Union freshly derived tags into the record. Returns True if any were added."""
    before = len(record.tags)
    record.tags = add_tags(record.tags, derive_tags(record, source_system))
    return len(record.tags) != before
