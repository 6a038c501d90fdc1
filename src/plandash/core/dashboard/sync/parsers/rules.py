"""
Table-driven field extraction for planning documents.

Planning documents are human-authored markdown with loose structure. Each
record field is described by a FieldRule: a regular expression (optionally
scoped to a ``## Section``), a fallback used when it does not match, and
whether the field is required. Adding a field or changing a default is a
change to a rule table, not to parser control flow.

Only identity fields (headings) are required. A required rule that does not
match raises MalformedDocumentError, which parsers catch at their boundary
and turn into a logged skip.
"""

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Values that mean "not set" in a metadata line
ABSENT_VALUES = ("", "-")

# A heading line of any level; sections run until the next one
HEADING_RE = re.compile(r"^#{1,6}\s", re.MULTILINE)

CHECKLIST_RE = re.compile(r"^\s*[-*+]\s*\[[ xX]\]\s*(.+?)\s*$")
BULLET_PREFIX_RE = re.compile(r"^[-*+]\s*")


class MalformedDocumentError(ValueError):
    """Raised when a required field cannot be extracted from a document."""

    pass


@dataclass(frozen=True)
class FieldRule:
    """
    Extraction rule for a single record field.

    Attributes:
        name: Field name in the extracted mapping
        pattern: Regular expression searched in the text (or section)
        group: Capture group holding the value
        section: If set, only search the body of this ``##`` section
        fallback: Value (or zero-arg callable) used when nothing matches
        required: Raise MalformedDocumentError when nothing matches
        transform: Optional conversion applied to the captured text

    Example:
        >>> rule = FieldRule("owner", re.compile(r"^- Owner:\\s*(.+)$", re.MULTILINE))
        >>> extract_fields("- Owner: Ana", [rule])
        {'owner': 'Ana'}
    """

    name: str
    pattern: re.Pattern[str]
    group: int = 1
    section: str | None = None
    fallback: Any = None
    required: bool = False
    transform: Callable[[str], Any] | None = None

    def default(self) -> Any:
        return self.fallback() if callable(self.fallback) else self.fallback


def find_section(text: str, name: str) -> str | None:
    """
    Return the body of the first ``## <name>`` section.

    The header only needs to start with ``name`` (case-insensitive), so
    ``## Acceptance Criteria (Definition of Done)`` is found by
    ``"Acceptance Criteria"``. The body runs until the next heading of
    any level, or the end of the text.

    Args:
        text: Full document text
        name: Section name

    Returns:
        Section body, or None if the section is absent
    """
    header = re.compile(rf"^##[ \t]+{re.escape(name)}\b[^\n]*\n?", re.MULTILINE | re.IGNORECASE)
    match = header.search(text)
    if not match:
        return None

    body = text[match.end():]
    next_heading = HEADING_RE.search(body)
    if next_heading:
        body = body[: next_heading.start()]
    return body


def extract_fields(text: str, rules: Sequence[FieldRule]) -> dict[str, Any]:
    """
    Apply a rule table to a document.

    Args:
        text: Full document text
        rules: Rules to apply, in order

    Returns:
        Mapping of rule name to extracted (or fallback) value

    Raises:
        MalformedDocumentError: If a required rule does not match
    """
    fields: dict[str, Any] = {}
    for rule in rules:
        scope = find_section(text, rule.section) if rule.section else text
        match = rule.pattern.search(scope) if scope is not None else None

        value = (match.group(rule.group) or "").strip() if match else ""
        if value in ABSENT_VALUES:
            if rule.required:
                raise MalformedDocumentError(f"Required field '{rule.name}' not found")
            fields[rule.name] = rule.default()
            continue

        fields[rule.name] = rule.transform(value) if rule.transform else value

    return fields


def parse_checklist(text: str) -> list[str]:
    """Return checklist items (``- [ ]`` / ``- [x]``) with markers stripped."""
    items = []
    for line in text.splitlines():
        match = CHECKLIST_RE.match(line)
        if match:
            items.append(match.group(1))
    return items


def parse_bullets(text: str) -> list[str]:
    """Return non-empty lines with any leading bullet marker stripped."""
    items = []
    for line in text.splitlines():
        item = BULLET_PREFIX_RE.sub("", line.strip()).strip()
        if item:
            items.append(item)
    return items


def read_document(path: Path) -> str | None:
    """
    Read a planning document as text with normalized newlines.

    Args:
        path: File to read

    Returns:
        File text, or None if the file is missing or unreadable
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning(f"File not found: {path}")
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read {path}: {e}")
        return None
    return text.replace("\r\n", "\n")
