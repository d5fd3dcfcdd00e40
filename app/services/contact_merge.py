"""
Merge and duplicate detection for contact records.

Records describing the same person (same derived key) are merged with a
"first non-empty value wins" policy: a field already set is never
overwritten, an empty one is filled from the newcomer. Source labels are
unioned so a contact built from LinkedIn's Connections and Contacts exports
ends up with source "connections+contacts".
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from app.services.contact_record import (
    MERGEABLE_FIELDS,
    ContactRecord,
    derive_key,
)
from app.services.tagging import add_tags

logger = logging.getLogger(__name__)

# Names at or above this word-overlap score are flagged as possible duplicates
NAME_SIMILARITY_THRESHOLD = 0.8


def merge_source_labels(existing: str, candidate: str) -> str:
    """Append the candidate's label(s) to the existing composite label."""
    labels = [label for label in existing.split("+") if label]
    for label in candidate.split("+"):
        if label and label not in labels:
            labels.append(label)
    return "+".join(labels)


def merge_into(existing: ContactRecord, candidate: ContactRecord) -> bool:
    """
    Fill empty fields of ``existing`` from ``candidate``.

    Name is left untouched, source labels are unioned and tags are unioned by
    (name, category).

    Returns:
        True if ``existing`` changed
    """
    changed = False

    for field_name in MERGEABLE_FIELDS:
        current = getattr(existing, field_name)
        incoming = getattr(candidate, field_name)
        if not current and incoming:
            setattr(existing, field_name, incoming)
            changed = True

    source = merge_source_labels(existing.source, candidate.source)
    if source != existing.source:
        existing.source = source
        changed = True

    tags = add_tags(existing.tags, candidate.tags)
    if len(tags) != len(existing.tags):
        existing.tags = tags
        changed = True

    return changed


@dataclass
class ImportBatch:
    """Contacts of one import call, keyed by derived name key."""
    contacts: dict[str, ContactRecord] = field(default_factory=dict)
    merged: int = 0
    discarded: int = 0

    def add(self, candidate: ContactRecord) -> bool:
        """
        Insert or merge a candidate.

        Returns:
            False if the candidate was discarded for having an empty key
        """
        key = candidate.key
        if not key:
            self.discarded += 1
            logger.debug("Discarding contact with empty name")
            return False

        existing = self.contacts.get(key)
        if existing is None:
            self.contacts[key] = candidate.copy()
        else:
            merge_into(existing, candidate)
            self.merged += 1
        return True

    def __len__(self) -> int:
        return len(self.contacts)

    def __iter__(self):
        return iter(self.contacts.values())


def name_similarity(name1: str, name2: str) -> float:
    """
    Share of words that match between two names.

    Words shorter than two characters are ignored; words of three or more
    characters also match when one contains the other.
    """
    words1 = [w for w in derive_key(name1).split(" ") if len(w) > 1]
    words2 = [w for w in derive_key(name2).split(" ") if len(w) > 1]
    max_words = max(len(words1), len(words2))
    if max_words == 0:
        return 0.0

    matches = 0
    for word1 in words1:
        for word2 in words2:
            if word1 == word2 or (
                len(word1) > 2 and len(word2) > 2 and (word1 in word2 or word2 in word1)
            ):
                matches += 1
                break
    return matches / max_words


def _duplicate_reason(a: ContactRecord, b: ContactRecord) -> str | None:
    if a.key and a.key == b.key:
        return "Same name"
    if a.email and a.email.lower() == b.email.lower():
        return f"Same email: {a.email.lower()}"
    if a.company and b.company and a.company.lower().strip() == b.company.lower().strip():
        if name_similarity(a.name, b.name) >= NAME_SIMILARITY_THRESHOLD:
            return f"Similar name at {a.company}"
    return None


def find_potential_duplicates(records: Iterable[ContactRecord]) -> list[dict[str, Any]]:
    """
    Group stored contacts that probably describe the same person.

    Matches on identical name keys, identical emails, or similar names at the
    same company.

    Returns:
        List of {"contacts": [ContactRecord, ...], "match_reason": str}
    """
    pending = list(records)
    groups: list[dict[str, Any]] = []
    grouped: set[int] = set()

    for i, current in enumerate(pending):
        if i in grouped:
            continue
        members = [current]
        reason = None
        for j in range(i + 1, len(pending)):
            if j in grouped:
                continue
            match = _duplicate_reason(current, pending[j])
            if match:
                members.append(pending[j])
                grouped.add(j)
                reason = reason or match
        if len(members) > 1:
            grouped.add(i)
            groups.append({"contacts": members, "match_reason": reason})

    return groups
