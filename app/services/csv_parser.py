"""
Line-oriented CSV tokenizer and header resolution for LinkedIn exports.

LinkedIn's Connections and Contacts exports use different headers and the
Connections export may start with a free-text "Notes:" preamble, so columns
are located by matching header text against known variations instead of by
position.
"""

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

RawRow = list[str]

NOT_FOUND = -1

_LINE_SPLIT = re.compile(r"\r?\n")


@dataclass(frozen=True)
class HeaderVariations:
    """Accepted header texts for one canonical field, in priority order."""
    variations: tuple[str, ...]
    # Headers containing any of these words never resolve to the field
    excluded: tuple[str, ...] = ()


HEADER_VARIATIONS: dict[str, HeaderVariations] = {
    "name": HeaderVariations(("full name", "name"), excluded=("first", "last", "company", "file")),
    "first_name": HeaderVariations(("first name", "firstname", "given name")),
    "last_name": HeaderVariations(("last name", "lastname", "surname", "family name")),
    "email": HeaderVariations(("email address", "email", "e-mail")),
    "company": HeaderVariations(("company", "companies", "organization", "employer")),
    "position": HeaderVariations(("position", "job title", "title")),
    "location": HeaderVariations(("location", "city", "region")),
    "phone": HeaderVariations(("phone number", "phone", "mobile")),
    "connected_on": HeaderVariations(("connected on", "connection date", "connected")),
    "profile_url": HeaderVariations(("profile url", "linkedin url", "url")),
}


@dataclass
class ParsedCsv:
    """Header row and data rows of one CSV document."""
    headers: RawRow = field(default_factory=list)
    rows: list[RawRow] = field(default_factory=list)
    skipped_preamble: int = 0


def parse_csv_line(line: str) -> RawRow:
    """
    Split one CSV line into trimmed fields.

    A double quote toggles quoted mode; commas inside quotes are literal and
    a doubled quote inside quotes yields one quote character. Unbalanced
    quotes never raise: the remainder of the line is kept in the last field.
    """
    fields: RawRow = []
    current: list[str] = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < length and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current).strip())
    return fields


def decode_content(content: str | bytes) -> str:
    """Decode uploaded bytes (UTF-8, then latin-1) and drop a leading BOM."""
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8")
        except UnicodeDecodeError:
            content = content.decode("latin-1")
    return content.lstrip("\ufeff")


def split_lines(text: str) -> list[str]:
    """Split text into lines, dropping blank ones."""
    return [line for line in _LINE_SPLIT.split(text) if line.strip()]


def resolve_column(
    headers: RawRow,
    field_name: str,
    variations: HeaderVariations | None = None,
) -> int:
    """
    Find the column for a canonical field.

    Variations are tried in priority order; for each one the first header
    containing it (case-insensitive) wins. Returns NOT_FOUND when nothing
    matches.
    """
    accepted = variations or HEADER_VARIATIONS.get(field_name)
    if accepted is None:
        return NOT_FOUND

    normalized = [h.lower().strip() for h in headers]
    for variation in accepted.variations:
        for index, header in enumerate(normalized):
            if variation not in header:
                continue
            if any(word in header for word in accepted.excluded):
                continue
            return index
    return NOT_FOUND


def resolve_headers(headers: RawRow) -> dict[str, int]:
    """Map every canonical field to its column index (or NOT_FOUND)."""
    return {name: resolve_column(headers, name) for name in HEADER_VARIATIONS}


def has_name_columns(header_map: dict[str, int]) -> bool:
    """Check whether a header map can produce a contact name."""
    return any(
        header_map.get(name, NOT_FOUND) != NOT_FOUND
        for name in ("name", "first_name", "last_name")
    )


def find_header_row(lines: list[str]) -> int:
    """
    Index of the first line that looks like a header row, 0 if none does.

    A header row resolves a name column and at least one other field, which
    keeps free-text preamble lines from being taken as headers.
    """
    for index, line in enumerate(lines):
        header_map = resolve_headers(parse_csv_line(line))
        resolved = sum(1 for column in header_map.values() if column != NOT_FOUND)
        if has_name_columns(header_map) and resolved >= 2:
            return index
    return 0


def read_csv(content: str | bytes) -> ParsedCsv:
    """Decode and tokenize a whole CSV document."""
    lines = split_lines(decode_content(content))
    if not lines:
        return ParsedCsv()

    header_index = find_header_row(lines)
    if header_index > 0:
        logger.info(f"Skipping {header_index} preamble lines before CSV header")

    return ParsedCsv(
        headers=parse_csv_line(lines[header_index]),
        rows=[parse_csv_line(line) for line in lines[header_index + 1:]],
        skipped_preamble=header_index,
    )
