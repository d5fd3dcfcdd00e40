"""
Contact model and its categorized tags.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String,
    Text,
    DateTime,
    Enum,
    ForeignKey,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TagCategory(str, enum.Enum):
    """Category of a contact tag."""

    company = "company"
    location = "location"
    education = "education"
    interest = "interest"
    skill = "skill"
    source = "source"


class Contact(Base):
    """Imported or manually entered contact."""

    __tablename__ = "contacts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    name_key: Mapped[str] = mapped_column(
        String(300),
        nullable=False,
        index=True,
        comment="Lowercased, whitespace-collapsed name used to merge imports",
    )
    email: Mapped[str] = mapped_column(String(320), default="")
    company: Mapped[str] = mapped_column(Text, default="")
    position: Mapped[str] = mapped_column(Text, default="")
    location: Mapped[str] = mapped_column(Text, default="")
    phone: Mapped[str] = mapped_column(String(100), default="")
    profile_url: Mapped[str] = mapped_column(Text, default="")
    picture_url: Mapped[str] = mapped_column(Text, default="")
    connected_on: Mapped[str] = mapped_column(
        String(50),
        default="",
        comment="Connection date as exported by the source",
    )
    source: Mapped[str] = mapped_column(
        String(100),
        default="",
        comment="Source label, composite labels joined with '+'",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )

    tags: Mapped[list["ContactTag"]] = relationship(
        "ContactTag",
        back_populates="contact",
        cascade="all, delete-orphan",
        order_by="ContactTag.position_index",
    )

    def __repr__(self) -> str:
        return f"<Contact(name={self.name!r}, source={self.source!r})>"


class ContactTag(Base):
    """Tag attached to a contact, unique per (name, category)."""

    __tablename__ = "contact_tags"
    __table_args__ = (UniqueConstraint("contact_id", "name", "category"),)

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    contact_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("contacts.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[TagCategory] = mapped_column(
        Enum(TagCategory, name="tag_category"),
        nullable=False,
    )
    source_system: Mapped[str] = mapped_column(String(50), default="")
    position_index: Mapped[int] = mapped_column(
        default=0,
        comment="Keeps tags in the order they were derived",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
    )

    contact: Mapped["Contact"] = relationship("Contact", back_populates="tags")

    def __repr__(self) -> str:
        return f"<ContactTag(name={self.name!r}, category={self.category.value})>"
