"""Query mini-language for selecting issues in batch operations.

Flat, AND-only ``key:value`` pairs::

    state:Todo team:ENG assignee:"Jane Doe" priority:1

Unknown keys and tokens without a colon are ignored. When a key repeats, the
last occurrence wins.
"""

import re

from linearctl.models import QueryFilter

SUPPORTED_QUERY_KEYS = ("state", "team", "assignee", "label", "project", "cycle", "priority")

_COLON_SPACING = re.compile(r"\s*:\s*")
# Runs of non-space characters, where a double-quoted section may contain spaces
_TOKEN = re.compile(r'(?:[^\s"]+|"[^"]*")+')


def supported_query_keys() -> list[str]:
    return list(SUPPORTED_QUERY_KEYS)


def _parse_priority(value: str) -> int | None:
    # Plain ASCII decimal only; int() would also take "+2", " 2" and "٣"
    if not (value.isascii() and value.removeprefix("-").isdigit()):
        return None
    priority = int(value)
    return priority if 0 <= priority <= 4 else None


def parse_query(query: str) -> QueryFilter:
    """Parse ``key:value key:value`` into a QueryFilter."""
    values: dict[str, str | int] = {}

    if not query or not query.strip():
        return QueryFilter()

    normalized = _COLON_SPACING.sub(":", query)

    for part in _TOKEN.findall(normalized):
        key, sep, value = part.partition(":")
        if not sep:
            continue

        key = key.strip().lower()
        value = value.strip()
        if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            value = value[1:-1]

        if key not in SUPPORTED_QUERY_KEYS:
            continue

        if key == "priority":
            priority = _parse_priority(value)
            if priority is not None:
                values[key] = priority
            continue

        values[key] = value

    return QueryFilter(**values)
