"""Guest, RSVP, topic and like operations on top of the record store."""

from __future__ import annotations

import json
import uuid
from typing import Any

from .storage import RSVP_TABLE, TOPICS_TABLE, RecordStore, Row
from .utils import new_guest_id, utcnow


class BoardError(Exception):
    """Base class for errors reported back to the guest."""


class MissingFieldsError(BoardError, ValueError):
    def __init__(self, message: str = "Missing required fields"):
        super().__init__(message)


class NotFoundError(BoardError, LookupError):
    pass


class GuestNotFoundError(NotFoundError):
    def __init__(self, message: str = "Invalid guest ID"):
        super().__init__(message)


class TopicNotFoundError(NotFoundError):
    def __init__(self, message: str = "Topic not found"):
        super().__init__(message)


def _present(value: str | None) -> bool:
    return bool((value or "").strip())


def _require(*values: str | None) -> None:
    if not all(_present(value) for value in values):
        raise MissingFieldsError()


def _cell_bool(value: Any) -> bool:
    # Sheet cells may hold real booleans or the strings TRUE/FALSE.
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().upper() == "TRUE"


def _parse_likes(raw: str | None) -> list[str]:
    """Decode a likes cell; empty or malformed cells count as no likes."""
    try:
        likes = json.loads(raw or "[]")
    except (TypeError, ValueError):
        return []
    if not isinstance(likes, list):
        return []
    return [str(guest_id) for guest_id in likes]


def _find_guest(store: RecordStore, guest_id: str) -> Row | None:
    return store.find(RSVP_TABLE, lambda values: values["guest_id"] == guest_id)


def _find_topic(store: RecordStore, topic_id: str) -> Row | None:
    return store.find(TOPICS_TABLE, lambda values: values["topic_id"] == topic_id)


def _serialize_guest(values: dict[str, Any]) -> dict[str, Any]:
    return {
        "guestId": values["guest_id"],
        "name": values["name"],
        "status": values["status"],
        "plusOne": _cell_bool(values["plus_one"]),
        "showPublic": _cell_bool(values["show_public"]),
    }


def _serialize_topic(values: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": values["topic_id"],
        "text": values["text"],
        "author": values["author_name"],
        "likes": len(_parse_likes(values["likes"])),
    }


def validate_guest(store: RecordStore, guest_id: str | None) -> dict[str, str]:
    """Confirm that an invitation id belongs to a known guest."""
    if not _present(guest_id):
        raise MissingFieldsError("Guest ID is required")
    row = _find_guest(store, guest_id)
    if row is None:
        raise GuestNotFoundError()
    return {"guestId": row.values["guest_id"], "name": row.values["name"]}


def get_rsvp(store: RecordStore, guest_id: str | None) -> dict[str, Any] | None:
    if not _present(guest_id):
        return None
    row = _find_guest(store, guest_id)
    if row is None:
        return None
    return {
        "status": row.values["status"],
        "plusOne": _cell_bool(row.values["plus_one"]),
        "showPublic": _cell_bool(row.values["show_public"]),
    }


def upsert_rsvp(
    store: RecordStore,
    guest_id: str | None,
    name: str | None,
    status: str | None,
    plus_one: bool,
    show_public: bool,
) -> None:
    """Insert or overwrite the guest's RSVP.

    ``status`` is stored as given; there is no fixed set of values. The
    display name of an existing row is left untouched.
    """
    _require(guest_id, name, status)
    now = utcnow()
    with store.serialized():
        row = _find_guest(store, guest_id)
        if row is None:
            store.append(
                RSVP_TABLE,
                {
                    "guest_id": guest_id,
                    "name": name,
                    "status": status,
                    "plus_one": bool(plus_one),
                    "show_public": bool(show_public),
                    "timestamp": now,
                },
            )
            return
        store.update_row(
            RSVP_TABLE,
            row.ref,
            {
                "status": status,
                "plus_one": bool(plus_one),
                "show_public": bool(show_public),
                "timestamp": now,
            },
        )


def list_confirmed_guests(store: RecordStore) -> list[dict[str, Any]]:
    """Return every RSVP row.

    Rows are not filtered by status or ``showPublic``; clients decide what to
    display.
    """
    return [_serialize_guest(row.values) for row in store.scan(RSVP_TABLE)]


def issue_guest(store: RecordStore, name: str | None, guest_id: str | None = None) -> str:
    """Pre-register an invitee so their invitation id validates."""
    _require(name)
    guest_id = (guest_id or "").strip() or new_guest_id()
    with store.serialized():
        if _find_guest(store, guest_id) is not None:
            raise ValueError(f"Guest ID {guest_id!r} already exists")
        store.append(
            RSVP_TABLE,
            {
                "guest_id": guest_id,
                "name": name.strip(),
                "status": "",
                "plus_one": False,
                "show_public": False,
                "timestamp": utcnow(),
            },
        )
    return guest_id


def add_topic(
    store: RecordStore, guest_id: str | None, author_name: str | None, text: str | None
) -> str:
    """Append a new topic and return its generated id.

    The author id is not checked against the RSVP sheet.
    """
    _require(guest_id, text)
    topic_id = str(uuid.uuid4())
    store.append(
        TOPICS_TABLE,
        {
            "topic_id": topic_id,
            "text": text,
            "author_id": guest_id,
            "author_name": author_name or "",
            "likes": "[]",
            "timestamp": utcnow(),
        },
    )
    return topic_id


def list_topics(store: RecordStore) -> list[dict[str, Any]]:
    """List topics; ``likes`` carries the like count, never the guest ids."""
    return [_serialize_topic(row.values) for row in store.scan(TOPICS_TABLE)]


def list_guest_likes(store: RecordStore, guest_id: str | None) -> list[str]:
    """Return ids of the topics the guest has liked."""
    if not _present(guest_id):
        return []
    return [
        row.values["topic_id"]
        for row in store.scan(TOPICS_TABLE)
        if guest_id in _parse_likes(row.values["likes"])
    ]


def toggle_like(
    store: RecordStore, guest_id: str | None, topic_id: str | None, unlike: bool
) -> int:
    """Add or remove the guest's like and return the topic's like count.

    Liking twice or unliking a topic the guest never liked leaves the like set
    unchanged.
    """
    _require(guest_id, topic_id)
    with store.serialized():
        row = _find_topic(store, topic_id)
        if row is None:
            raise TopicNotFoundError()
        likes = _parse_likes(row.values["likes"])
        if unlike:
            likes = [liked_by for liked_by in likes if liked_by != guest_id]
        elif guest_id not in likes:
            likes.append(guest_id)
        store.update_cell(TOPICS_TABLE, row.ref, "likes", json.dumps(likes))
    return len(likes)
