"""Utility helpers for PartyBoard."""

from __future__ import annotations

import secrets
from datetime import UTC, datetime
from urllib.parse import urlencode, urlsplit, urlunsplit

GUEST_ID_BYTES = 9


def utcnow() -> datetime:
    """Return a naive UTC datetime."""

    return datetime.now(UTC).replace(tzinfo=None)


def new_guest_id() -> str:
    """Return a fresh URL-safe guest identifier for an invitation link."""
    return secrets.token_urlsafe(GUEST_ID_BYTES)


def invite_link(base_url: str | None, guest_id: str) -> str | None:
    """Append ``guest=<id>`` to the invitation page URL.

    Existing query parameters on ``base_url`` are preserved. Returns ``None``
    when no base URL is configured.
    """

    cleaned = (base_url or "").strip()
    if not cleaned:
        return None
    parts = urlsplit(cleaned)
    query = urlencode({"guest": guest_id})
    if parts.query:
        query = f"{parts.query}&{query}"
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def humanize_time(value: datetime | None, *, now: datetime | None = None) -> str:
    """Return a friendly string such as 'in 2 weeks' or '3 hours ago'."""
    if not value:
        return ""
    now = now or utcnow()
    delta_seconds = (value - now).total_seconds()
    past = delta_seconds < 0
    seconds = abs(delta_seconds)

    units = [
        ("year", 365 * 24 * 3600),
        ("month", 30 * 24 * 3600),
        ("week", 7 * 24 * 3600),
        ("day", 24 * 3600),
        ("hour", 3600),
        ("minute", 60),
    ]

    amount = 0
    label = "minute"
    for name, step in units:
        value_count = int(seconds // step)
        if value_count >= 1:
            amount = value_count
            label = name
            break
    else:
        return "in moments" if not past else "moments ago"

    if amount != 1:
        label = f"{label}s"
    if past:
        return f"{amount} {label} ago"
    return f"in {amount} {label}"
