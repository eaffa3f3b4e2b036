"""Map an inbound action name and parameters onto board operations."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from sqlalchemy.exc import OperationalError

from . import board
from .storage import RecordStore

logger = logging.getLogger("uvicorn.error")

Params = Mapping[str, str]
Handler = Callable[[RecordStore, Params], dict[str, Any]]

UNKNOWN_ACTION = "Unknown action"
INTERNAL_ERROR = "Internal server error"
BOARD_BUSY = "The board is busy. Please try again."


def _flag(params: Params, key: str) -> bool:
    return (params.get(key) or "").strip().lower() == "true"


def _failure(message: str) -> dict[str, Any]:
    return {"success": False, "error": message}


def handle_validate(store: RecordStore, params: Params) -> dict[str, Any]:
    guest = board.validate_guest(store, params.get("guest"))
    return {"success": True, "guest": guest}


def handle_init(store: RecordStore, params: Params) -> dict[str, Any]:
    guest_id = params.get("guest")
    return {
        "success": True,
        "rsvp": board.get_rsvp(store, guest_id),
        "guests": board.list_confirmed_guests(store),
        "topics": board.list_topics(store),
        "myLikes": board.list_guest_likes(store, guest_id),
    }


def handle_rsvp(store: RecordStore, params: Params) -> dict[str, Any]:
    board.upsert_rsvp(
        store,
        params.get("guest"),
        params.get("name"),
        params.get("status"),
        plus_one=_flag(params, "plusOne"),
        show_public=_flag(params, "showPublic"),
    )
    return {"success": True, "guests": board.list_confirmed_guests(store)}


def handle_topic(store: RecordStore, params: Params) -> dict[str, Any]:
    board.add_topic(
        store, params.get("guest"), params.get("authorName"), params.get("text")
    )
    return {"success": True, "topics": board.list_topics(store)}


def handle_like(store: RecordStore, params: Params) -> dict[str, Any]:
    board.toggle_like(
        store,
        params.get("guest"),
        params.get("topicId"),
        unlike=_flag(params, "unlike"),
    )
    return {"success": True, "topics": board.list_topics(store)}


ACTIONS: dict[str, Handler] = {
    "validate": handle_validate,
    "init": handle_init,
    "rsvp": handle_rsvp,
    "topic": handle_topic,
    "like": handle_like,
}


def dispatch(store: RecordStore, action: str | None, params: Params) -> dict[str, Any]:
    """Run one action and return its JSON-ready result.

    Never raises: board errors become ``{"success": False, "error": ...}``
    with their own message, a locked SQLite file asks the guest to retry, and
    anything else is logged and reported as a generic failure.
    """
    handler = ACTIONS.get(action or "")
    if handler is None:
        logger.info("Rejected unknown action %r", action)
        return _failure(UNKNOWN_ACTION)

    logger.debug("Handling action %s", action)
    try:
        return handler(store, params)
    except board.BoardError as exc:
        logger.info("Action %s failed: %s", action, exc)
        return _failure(str(exc))
    except OperationalError as exc:
        raw = str(exc.orig) if getattr(exc, "orig", None) else str(exc)
        if "database is locked" in raw.lower():
            logger.error("SQLite database is locked while handling action %s", action)
            return _failure(BOARD_BUSY)
        logger.exception("Operational database error while handling action %s", action)
        return _failure(INTERNAL_ERROR)
    except Exception:
        logger.exception("Unhandled error while handling action %s", action)
        return _failure(INTERNAL_ERROR)
