"""
Builds ContactRecords from CSV rows and external profile documents.
"""

import logging
from typing import Any

from app.services.contact_record import ContactRecord
from app.services.csv_parser import NOT_FOUND, RawRow

logger = logging.getLogger(__name__)


def _text(value: Any) -> str:
    """Trimmed string value, empty for anything that is not a string."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _first(value: Any) -> dict[str, Any]:
    """First mapping of a list, empty when the list is missing or malformed."""
    if isinstance(value, list):
        for item in value:
            if isinstance(item, dict):
                return item
    return {}


def _join_name(first: str, last: str) -> str:
    return f"{first} {last}".strip()


def _field(row: RawRow, header_map: dict[str, int], name: str) -> str:
    index = header_map.get(name, NOT_FOUND)
    if index == NOT_FOUND or index >= len(row):
        return ""
    return row[index].strip()


def normalize_row(
    row: RawRow,
    header_map: dict[str, int],
    source: str,
) -> ContactRecord | None:
    """
    Build a contact from one CSV row.

    Returns None when the row has neither a name column value nor a
    first/last name.
    """
    name = _field(row, header_map, "name")
    if not name:
        name = _join_name(
            _field(row, header_map, "first_name"),
            _field(row, header_map, "last_name"),
        )
    if not name:
        return None

    return ContactRecord(
        name=name,
        email=_field(row, header_map, "email").lower(),
        company=_field(row, header_map, "company"),
        position=_field(row, header_map, "position"),
        location=_field(row, header_map, "location"),
        phone=_field(row, header_map, "phone"),
        profile_url=_field(row, header_map, "profile_url"),
        connected_on=_field(row, header_map, "connected_on"),
        source=source,
    )


def _current_work(work: Any) -> dict[str, Any]:
    """First employer without an end date, else the first entry."""
    if isinstance(work, list):
        for item in work:
            if isinstance(item, dict) and not item.get("end_date"):
                return item
    return _first(work)


def _location_name(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return _text(_mapping(value).get("name"))


def normalize_profile(document: Any, source: str = "facebook") -> ContactRecord | None:
    """
    Build a contact from a Facebook Graph or LinkedIn profile document.

    Facebook documents look like
        {id, name, email, picture: {data: {url}}, link,
         work: [{employer: {name}, position: {name}}],
         location: {name}, education: [{school: {name}}]}
    LinkedIn documents use flat camelCase fields (firstName, lastName,
    emailAddress, company, position or headline, location, profileUrl).
    Every field may be missing.
    """
    doc = _mapping(document)
    if not doc:
        return None

    name = _text(doc.get("name"))
    if not name:
        name = _join_name(
            _text(doc.get("first_name") or doc.get("firstName")),
            _text(doc.get("last_name") or doc.get("lastName")),
        )
    if not name:
        logger.debug(f"Skipping profile without a name: id={doc.get('id')!r}")
        return None

    work = _current_work(doc.get("work"))
    company = _text(_mapping(work.get("employer")).get("name")) or _text(doc.get("company"))
    position = (
        _text(_mapping(work.get("position")).get("name"))
        or _text(doc.get("position"))
        or _text(doc.get("headline"))
    )
    school = _text(_mapping(_first(doc.get("education")).get("school")).get("name"))
    picture = _text(_mapping(_mapping(doc.get("picture")).get("data")).get("url"))

    return ContactRecord(
        name=name,
        email=(_text(doc.get("email")) or _text(doc.get("emailAddress"))).lower(),
        company=company,
        position=position,
        location=_location_name(doc.get("location")),
        phone=_text(doc.get("phone")),
        profile_url=_text(doc.get("link")) or _text(doc.get("profileUrl")) or _text(doc.get("profile_url")),
        picture_url=picture or _text(doc.get("pictureUrl")),
        source=source,
        school=school or _text(doc.get("school")),
    )
