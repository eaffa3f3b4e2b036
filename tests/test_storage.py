from __future__ import annotations

import pytest

from partyboard.storage import (
    RSVP_TABLE,
    TOPICS_TABLE,
    RowNotFoundError,
    UnknownColumnError,
    UnknownTableError,
)
from partyboard.utils import utcnow


def _guest_row(guest_id: str, name: str) -> dict:
    return {
        "guest_id": guest_id,
        "name": name,
        "status": "",
        "plus_one": False,
        "show_public": False,
        "timestamp": utcnow(),
    }


def test_append_and_scan_keep_insertion_order(store):
    store.append(RSVP_TABLE, _guest_row("g1", "Ann"))
    store.append(RSVP_TABLE, _guest_row("g2", "Bob"))
    store.append(RSVP_TABLE, _guest_row("g3", "Cid"))

    rows = store.scan(RSVP_TABLE)

    assert [row.values["guest_id"] for row in rows] == ["g1", "g2", "g3"]
    assert set(rows[0].values) == {
        "guest_id",
        "name",
        "status",
        "plus_one",
        "show_public",
        "timestamp",
    }


def test_find_returns_first_match_or_none(store):
    store.append(RSVP_TABLE, _guest_row("g1", "Ann"))
    store.append(RSVP_TABLE, _guest_row("g2", "Ann"))

    row = store.find(RSVP_TABLE, lambda values: values["name"] == "Ann")
    assert row is not None
    assert row.values["guest_id"] == "g1"
    assert store.find(RSVP_TABLE, lambda values: values["guest_id"] == "nope") is None


def test_update_cell_changes_one_column(store):
    appended = store.append(RSVP_TABLE, _guest_row("g1", "Ann"))

    store.update_cell(RSVP_TABLE, appended.ref, "status", "attending")

    row = store.find(RSVP_TABLE, lambda values: values["guest_id"] == "g1")
    assert row.values["status"] == "attending"
    assert row.values["name"] == "Ann"


def test_append_topic_fills_defaults(store):
    row = store.append(TOPICS_TABLE, {"text": "Hello", "author_id": "g1"})

    assert row.values["likes"] == "[]"
    assert row.values["author_name"] == ""
    assert len(row.values["topic_id"]) == 36
    assert row.values["timestamp"] is not None


def test_unknown_table_and_column_are_rejected(store):
    with pytest.raises(UnknownTableError):
        store.scan("Guests")
    with pytest.raises(UnknownColumnError):
        store.append(RSVP_TABLE, {**_guest_row("g1", "Ann"), "email": "a@b.c"})
    appended = store.append(RSVP_TABLE, _guest_row("g1", "Ann"))
    with pytest.raises(UnknownColumnError):
        store.update_cell(RSVP_TABLE, appended.ref, "row_id", 99)


def test_update_cell_on_missing_row(store):
    with pytest.raises(RowNotFoundError):
        store.update_cell(TOPICS_TABLE, 404, "likes", "[]")


def test_serialized_is_reentrant(store):
    with store.serialized():
        with store.serialized() as inner:
            assert inner is store


def test_update_row_writes_all_cells(store):
    appended = store.append(RSVP_TABLE, _guest_row("g1", "Ann"))

    store.update_row(
        RSVP_TABLE,
        appended.ref,
        {"status": "attending", "plus_one": True, "show_public": True},
    )

    values = store.scan(RSVP_TABLE)[0].values
    assert values["status"] == "attending"
    assert values["plus_one"] is True
    assert values["show_public"] is True


def test_update_row_with_bad_column_leaves_row_untouched(store):
    appended = store.append(RSVP_TABLE, _guest_row("g1", "Ann"))

    with pytest.raises(UnknownColumnError):
        store.update_row(
            RSVP_TABLE, appended.ref, {"status": "attending", "email": "a@b.c"}
        )

    assert store.scan(RSVP_TABLE)[0].values["status"] == ""
