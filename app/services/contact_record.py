"""
In-memory contact representation shared by the import and search pipeline.

Records have a fixed shape: every text attribute is a string and absent
values are empty strings, so the fill-if-empty merge rule can be checked
field by field.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from uuid import UUID

from app.models.contact import TagCategory


# Attributes merged with the fill-if-empty rule (everything except name and source)
MERGEABLE_FIELDS: tuple[str, ...] = (
    "email",
    "company",
    "position",
    "location",
    "phone",
    "profile_url",
    "picture_url",
    "connected_on",
    "school",
)

# Attributes the search engine may match against
SEARCHABLE_FIELDS: tuple[str, ...] = ("name", "company", "position", "location", "email")


def derive_key(name: str) -> str:
    """Normalize a name for identity matching: lowercase, collapse whitespace."""
    if not name:
        return ""
    return " ".join(name.lower().split())


@dataclass(frozen=True)
class TagRecord:
    """A categorized tag. Two tags are the same tag when name and category match."""
    name: str
    category: TagCategory
    source_system: str = ""

    @property
    def identity(self) -> tuple[str, TagCategory]:
        return (self.name, self.category)

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "category": self.category.value,
            "source_system": self.source_system,
        }


@dataclass
class ContactRecord:
    """Canonical contact as handled by the pipeline."""
    name: str
    email: str = ""
    company: str = ""
    position: str = ""
    location: str = ""
    phone: str = ""
    profile_url: str = ""
    picture_url: str = ""
    connected_on: str = ""
    source: str = ""
    # Transient: only used to derive the education tag
    school: str = ""
    tags: list[TagRecord] = field(default_factory=list)
    id: UUID | None = None
    created_at: datetime | None = None

    @property
    def key(self) -> str:
        return derive_key(self.name)

    def copy(self) -> "ContactRecord":
        """Shallow copy with its own tag list."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values["tags"] = list(self.tags)
        return ContactRecord(**values)
