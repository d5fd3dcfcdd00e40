"""
Free-text contact search.

A query matches a contact when the whole query appears in one of its
searchable fields, or when any query term (or multi-word phrase) is a known
company, role or location that appears in the matching field. All conditions
are OR'd, trading precision for recall.
"""

import enum
import logging
from dataclasses import dataclass, field

from app.services.contact_record import SEARCHABLE_FIELDS, ContactRecord
from app.services.contact_store import (
    ContactFilters,
    ContactStore,
    SearchCriteria,
    StoreUnavailableError,
)
from app.services.search_vocabulary import SearchVocabulary

logger = logging.getLogger(__name__)

DEFAULT_RESULT_LIMIT = 50
MIN_SUGGESTION_LENGTH = 2

# Punctuation trimmed from the ends of query terms ("austin," -> "austin")
_TERM_PUNCTUATION = ",.;:!?\"'()"

# Suggestion type -> contact field (the field name is also the result label)
SUGGESTION_TYPES: dict[str, str] = {
    "companies": "company",
    "positions": "position",
    "locations": "location",
}
ALL_SUGGESTIONS = "all"


class SearchStatus(str, enum.Enum):
    """Outcome of a search call."""

    ok = "ok"
    store_unavailable = "store_unavailable"


@dataclass
class SearchResult:
    """One page of search results plus the unbounded match count."""
    query: str
    contacts: list[ContactRecord] = field(default_factory=list)
    total: int = 0
    status: SearchStatus = SearchStatus.ok

    @property
    def available(self) -> bool:
        return self.status == SearchStatus.ok


def split_terms(query: str) -> list[str]:
    """Lowercase the query and split it into whitespace-separated terms."""
    terms = (term.strip(_TERM_PUNCTUATION) for term in query.lower().split())
    return [term for term in terms if term]


def _phrases(terms: list[str], max_words: int) -> list[str]:
    """Every run of 1..max_words consecutive terms."""
    phrases = []
    for size in range(1, max_words + 1):
        for start in range(0, len(terms) - size + 1):
            phrases.append(" ".join(terms[start:start + size]))
    return phrases


def build_criteria(query: str, vocabulary: SearchVocabulary) -> SearchCriteria:
    """
    Translate a free-text query into OR'd match conditions.

    An empty or whitespace-only query yields no conditions (match all).
    """
    criteria = SearchCriteria()
    raw = query.strip().lower()
    if not raw:
        return criteria

    for field_name in SEARCHABLE_FIELDS:
        criteria.add(field_name, raw)

    phrases = _phrases(split_terms(raw), vocabulary.max_phrase_words)
    for field_name, entries in vocabulary.field_entries():
        for phrase in phrases:
            if phrase in entries:
                criteria.add(field_name, phrase)

    return criteria


class ContactSearchService:
    """
    Evaluates free-text queries against a contact store.
    """

    def __init__(
        self,
        store: ContactStore,
        vocabulary: SearchVocabulary | None = None,
        result_limit: int = DEFAULT_RESULT_LIMIT,
    ):
        """Initialize the search service.

        Args:
            store: Contact store to search
            vocabulary: Curated terms that broaden matches
            result_limit: Maximum contacts returned per search
        """
        self.store = store
        self.vocabulary = vocabulary or SearchVocabulary()
        self.result_limit = result_limit

    def search(self, query: str | None) -> SearchResult:
        """
        Search contacts.

        Never raises for an unavailable store: the result's status tells
        "no matches" apart from "search could not run".
        """
        query = (query or "").strip()
        criteria = build_criteria(query, self.vocabulary)

        try:
            contacts, total = self.store.find_matching(criteria, self.result_limit)
        except StoreUnavailableError:
            logger.warning(f"Search for {query!r} failed: store unavailable")
            return SearchResult(query=query, status=SearchStatus.store_unavailable)

        logger.info(
            f"Search {query!r}: {len(criteria.conditions)} conditions, "
            f"{total} matches, returning {len(contacts)}"
        )
        return SearchResult(query=query, contacts=contacts, total=total)

    def filter_contacts(self, filters: ContactFilters) -> SearchResult:
        """
        Structured search: every given filter must hold.

        Like search(), reports an unavailable store through the result status.
        """
        query = filters.describe()
        try:
            contacts, total = self.store.find_filtered(filters, self.result_limit)
        except StoreUnavailableError:
            logger.warning(f"Filter search {query!r} failed: store unavailable")
            return SearchResult(query=query, status=SearchStatus.store_unavailable)

        logger.info(f"Filter search {query!r}: {total} matches, returning {len(contacts)}")
        return SearchResult(query=query, contacts=contacts, total=total)

    def suggest(
        self,
        prefix: str | None,
        limit: int = 10,
        suggestion_type: str = ALL_SUGGESTIONS,
    ) -> list[dict[str, str]]:
        """
        Autocomplete values for companies, positions and locations.

        Args:
            prefix: Text typed so far, at least two characters
            limit: Maximum number of suggestions
            suggestion_type: "all", "companies", "positions" or "locations"

        Raises:
            ValueError: If the suggestion type is unknown
            StoreUnavailableError: If the store cannot be reached
        """
        if suggestion_type == ALL_SUGGESTIONS:
            fields = list(SUGGESTION_TYPES.values())
        elif suggestion_type in SUGGESTION_TYPES:
            fields = [SUGGESTION_TYPES[suggestion_type]]
        else:
            raise ValueError(f"Unknown suggestion type: {suggestion_type}")

        prefix = (prefix or "").strip()
        if len(prefix) < MIN_SUGGESTION_LENGTH:
            return []

        suggestions: list[dict[str, str]] = []
        for field_name in fields:
            for value in self.store.distinct_values(field_name, prefix, limit):
                suggestions.append({"type": field_name, "value": value})
        return suggestions[:limit]


def get_contact_search_service(
    store: ContactStore,
    vocabulary: SearchVocabulary | None = None,
    result_limit: int = DEFAULT_RESULT_LIMIT,
) -> ContactSearchService:
    """Get a contact search service instance."""
    return ContactSearchService(store, vocabulary, result_limit)
