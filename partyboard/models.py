"""SQLAlchemy models backing the RSVP and Topics sheets."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base

from .utils import utcnow

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return utcnow()


class GuestRsvp(Base):
    """One row of the ``RSVP`` sheet."""

    __tablename__ = "rsvp"
    HEADERS = ("guest_id", "name", "status", "plus_one", "show_public", "timestamp")

    row_id = Column(Integer, primary_key=True, autoincrement=True)
    guest_id = Column(String(128), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    status = Column(String(64), nullable=False, default="")
    plus_one = Column(Boolean, nullable=False, default=False)
    show_public = Column(Boolean, nullable=False, default=False)
    timestamp = Column(DateTime, nullable=False, default=_now)


class Topic(Base):
    """One row of the ``Topics`` sheet; ``likes`` is a JSON list of guest ids."""

    __tablename__ = "topics"
    HEADERS = ("topic_id", "text", "author_id", "author_name", "likes", "timestamp")

    row_id = Column(Integer, primary_key=True, autoincrement=True)
    topic_id = Column(String(36), nullable=False, unique=True, default=_uuid)
    text = Column(Text, nullable=False)
    author_id = Column(String(128), nullable=False)
    author_name = Column(String(255), nullable=False, default="")
    likes = Column(Text, nullable=False, default="[]")
    timestamp = Column(DateTime, nullable=False, default=_now)
