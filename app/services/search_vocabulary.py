"""
Curated vocabulary used to broaden contact search.

Query terms that exactly match a known company, role or location are also
matched against the corresponding contact field on their own, so a query such
as "engineer austin" finds engineers and people in Austin even though the
phrase itself appears nowhere.
"""

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from app.config import get_settings

logger = logging.getLogger(__name__)


DEFAULT_COMPANIES = [
    "google", "apple", "microsoft", "amazon", "facebook", "meta", "tesla",
    "netflix", "uber", "airbnb", "spotify", "twitter", "linkedin", "salesforce",
    "oracle", "ibm", "intel", "nvidia", "adobe", "stripe",
]

DEFAULT_ROLES = [
    "engineer", "developer", "programmer", "manager", "director", "designer",
    "founder", "ceo", "cto", "cfo", "vp", "president", "recruiter", "analyst",
    "consultant", "scientist", "architect", "sales", "marketing", "product",
    "lead", "intern", "partner", "investor",
]

DEFAULT_LOCATIONS = [
    "san francisco", "new york", "los angeles", "seattle", "chicago", "boston",
    "austin", "denver", "portland", "atlanta", "miami", "dallas", "houston",
    "london", "berlin", "paris", "toronto", "california", "texas", "florida",
]


class VocabularyError(Exception):
    """Raised when a vocabulary file cannot be loaded."""
    pass


def _normalize(entries: list[str]) -> list[str]:
    seen: list[str] = []
    for entry in entries:
        value = " ".join(str(entry).lower().split())
        if value and value not in seen:
            seen.append(value)
    return seen


@dataclass
class SearchVocabulary:
    """Known companies, roles and locations (lowercase, whitespace-collapsed)."""
    companies: list[str] = field(default_factory=lambda: list(DEFAULT_COMPANIES))
    roles: list[str] = field(default_factory=lambda: list(DEFAULT_ROLES))
    locations: list[str] = field(default_factory=lambda: list(DEFAULT_LOCATIONS))

    def __post_init__(self) -> None:
        self.companies = _normalize(self.companies)
        self.roles = _normalize(self.roles)
        self.locations = _normalize(self.locations)

    def field_entries(self) -> list[tuple[str, list[str]]]:
        """Vocabulary lists paired with the contact field they broaden."""
        return [
            ("company", self.companies),
            ("position", self.roles),
            ("location", self.locations),
        ]

    @property
    def max_phrase_words(self) -> int:
        entries = [*self.companies, *self.roles, *self.locations]
        return max((len(entry.split(" ")) for entry in entries), default=1)


def load_vocabulary(path: str | Path) -> SearchVocabulary:
    """
    Load a vocabulary from a JSON file.

    The file holds an object with optional "companies", "roles" and
    "locations" lists; missing lists fall back to the defaults.

    Raises:
        VocabularyError: If the file is missing or malformed
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise VocabularyError(f"Cannot load search vocabulary from {path}: {e}") from e

    if not isinstance(data, dict):
        raise VocabularyError(f"Search vocabulary in {path} must be a JSON object")

    kwargs = {}
    for key in ("companies", "roles", "locations"):
        if key in data:
            if not isinstance(data[key], list):
                raise VocabularyError(f"'{key}' in {path} must be a list")
            kwargs[key] = data[key]
    return SearchVocabulary(**kwargs)


@lru_cache
def get_search_vocabulary() -> SearchVocabulary:
    """Vocabulary configured for this process."""
    settings = get_settings()
    if settings.search_vocabulary_path:
        vocabulary = load_vocabulary(settings.search_vocabulary_path)
        logger.info(f"Loaded search vocabulary from {settings.search_vocabulary_path}")
        return vocabulary
    return SearchVocabulary()
