"""Issue-tracker ticket key extraction."""

import re

_TICKET_RE = re.compile(r"\b([A-Z][A-Z0-9]+-\d+)\b", re.IGNORECASE)


def extract_ticket_key(title: str | None, body: str | None = None) -> str | None:
    """Return the first ticket key (``PROJ-123``) found in *title*, then *body*.

    Matching is case-insensitive; the key is returned upper-cased.
    """
    for text in (title, body):
        if not text:
            continue
        match = _TICKET_RE.search(text)
        if match:
            return match.group(1).upper()
    return None


def ticket_url(key: str | None, base_url: str | None) -> str | None:
    """Build ``<base>/browse/<key>``, or None when either part is missing."""
    if not key or not base_url:
        return None
    return f"{base_url.rstrip('/')}/browse/{key}"
