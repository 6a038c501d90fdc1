"""
Meta section extraction.

Planning documents carry their metadata in a ``## Meta`` section of
``- key: value`` bullets rather than YAML frontmatter:

    ## Meta
    - Status: in progress
    - Target Date: 2025-01-01
    - Depends On: -

Keys are normalized to camelCase (``Target Date`` -> ``targetDate``) so
parsers can look up fields by a stable name. A value of ``-`` or an empty
value means "absent": the key gets no entry in the mapping.
"""

import re

from plandash.core.dashboard.sync.parsers.rules import ABSENT_VALUES, find_section

META_LINE_RE = re.compile(r"^\s*-\s*([^:]+):\s*(.*)$")
KEY_SEPARATOR_RE = re.compile(r"[^a-z0-9]+(.)")


def normalize_key(key: str) -> str:
    """
    Convert a human-written metadata key to camelCase.

    The key is lowercased, then every run of non-alphanumeric characters
    followed by another character is replaced by that character
    upper-cased.

    Example:
        >>> normalize_key("Target Date")
        'targetDate'
        >>> normalize_key("depends-on")
        'dependsOn'
    """
    return KEY_SEPARATOR_RE.sub(lambda m: m.group(1).upper(), key.strip().lower())


def parse_meta_section(text: str) -> dict[str, str]:
    """
    Extract the ``## Meta`` section as a flat mapping.

    Lines without a colon are skipped. When a key repeats, the last
    occurrence wins, including an absent (``-``) occurrence which removes
    the earlier value.

    Args:
        text: Full document text

    Returns:
        Mapping of camelCase key to value; empty if the document has no
        Meta section
    """
    meta: dict[str, str] = {}

    section = find_section(text, "Meta")
    if section is None:
        return meta

    for line in section.splitlines():
        match = META_LINE_RE.match(line)
        if not match:
            continue
        key = normalize_key(match.group(1))
        value = match.group(2).strip()
        if value in ABSENT_VALUES:
            meta.pop(key, None)
        else:
            meta[key] = value

    return meta
