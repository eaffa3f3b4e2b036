"""Record store over the RSVP and Topics sheets, plus schema management."""

from __future__ import annotations

import shutil
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from .config import settings
from .database import SessionLocal, engine, session_scope
from .models import GuestRsvp, Topic

RSVP_TABLE = "RSVP"
TOPICS_TABLE = "Topics"

TABLES: dict[str, type] = {
    RSVP_TABLE: GuestRsvp,
    TOPICS_TABLE: Topic,
}


class StoreError(Exception):
    """Base class for record store failures."""


class UnknownTableError(StoreError):
    pass


class UnknownColumnError(StoreError):
    pass


class RowNotFoundError(StoreError):
    pass


@dataclass(frozen=True)
class Row:
    """A snapshot of one sheet row.

    ``ref`` is the stable row reference accepted by ``update_cell``; ``values``
    is keyed by the sheet's header names.
    """

    ref: int
    values: dict[str, Any]


def _model_for(table: str) -> type:
    try:
        return TABLES[table]
    except KeyError:
        raise UnknownTableError(f"Unknown table {table!r}") from None


def _check_columns(model: type, columns) -> None:
    unknown = sorted(set(columns) - set(model.HEADERS))
    if unknown:
        raise UnknownColumnError(
            f"Unknown column(s) for {model.__tablename__}: {', '.join(unknown)}"
        )


def _to_row(model: type, record) -> Row:
    return Row(
        ref=record.row_id,
        values={header: getattr(record, header) for header in model.HEADERS},
    )


class RecordStore:
    """Read, append and in-place cell updates over the two sheets.

    Every read is a full-table snapshot in insertion order; lookups are a
    linear scan. One instance is built at startup and handed to every
    operation that needs it.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        self._lock = threading.RLock()

    def _session(self):
        return session_scope(self._session_factory)

    @contextmanager
    def serialized(self) -> Iterator["RecordStore"]:
        """Hold the store lock across a read-modify-write sequence."""
        with self._lock:
            yield self

    def scan(self, table: str) -> list[Row]:
        model = _model_for(table)
        with self._session() as session:
            records = session.scalars(select(model).order_by(model.row_id)).all()
            return [_to_row(model, record) for record in records]

    def find(
        self, table: str, predicate: Callable[[dict[str, Any]], bool]
    ) -> Row | None:
        for row in self.scan(table):
            if predicate(row.values):
                return row
        return None

    def append(self, table: str, values: Mapping[str, Any]) -> Row:
        model = _model_for(table)
        _check_columns(model, values.keys())
        with self._session() as session:
            record = model(**values)
            session.add(record)
            session.flush()
            return _to_row(model, record)

    def update_cell(self, table: str, row_ref: int, column: str, value: Any) -> None:
        self.update_row(table, row_ref, {column: value})

    def update_row(self, table: str, row_ref: int, values: Mapping[str, Any]) -> None:
        """Overwrite several cells of one row in a single transaction."""
        model = _model_for(table)
        _check_columns(model, values.keys())
        with self._session() as session:
            record = session.get(model, row_ref)
            if record is None:
                raise RowNotFoundError(f"No row {row_ref} in {table}")
            for column, value in values.items():
                setattr(record, column, value)


def default_store() -> RecordStore:
    return RecordStore(SessionLocal)


def init_db() -> None:
    upgrade_database(make_backup=False)


def _alembic_config() -> Config:
    package_dir = Path(__file__).resolve().parent
    script_location = package_dir / "alembic"
    ini_path = script_location.parent / "alembic.ini"

    config = Config(str(ini_path)) if ini_path.exists() else Config()
    config.set_main_option("script_location", str(script_location))
    config.set_main_option("sqlalchemy.url", str(engine.url))
    return config


def upgrade_database(*, make_backup: bool = True) -> list[str]:
    """Upgrade the database schema in-place.

    Returns a list of applied actions.
    """
    actions: list[str] = []
    db_path = Path(settings.database_path)

    if make_backup and db_path.exists():
        backup_path = db_path.with_suffix(db_path.suffix + ".bak")
        shutil.copy(db_path, backup_path)
        actions.append(f"Backup created at {backup_path}")

    inspector = inspect(engine)
    has_alembic = inspector.has_table("alembic_version")
    has_sheets = inspector.has_table(GuestRsvp.__tablename__)
    config = _alembic_config()

    if not has_alembic and not has_sheets:
        command.upgrade(config, "head")
        actions.append("Ran Alembic upgrade to head (fresh database)")
    elif not has_alembic:
        # Tables created outside Alembic: baseline them.
        command.stamp(config, "head")
        actions.append("Stamped existing database to Alembic head")
    else:
        command.upgrade(config, "head")
        actions.append("Applied Alembic migrations to head")

    return actions


def vacuum_database() -> None:
    with engine.connect() as connection:
        connection.execution_options(isolation_level="AUTOCOMMIT").exec_driver_sql(
            "VACUUM"
        )
