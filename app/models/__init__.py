"""
SQLAlchemy models for BeeTagged.

All models are imported here for easy access and to ensure
they are registered with the declarative base.
"""

from app.models.base import Base
from app.models.contact import Contact, ContactTag, TagCategory

__all__ = [
    "Base",
    "Contact",
    "ContactTag",
    "TagCategory",
]
