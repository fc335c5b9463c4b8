"""
Durable local store: the readings log and the streak-state row.

Public API
----------
Store(url).open()                      → Store (runs migrations)
store.add_reading(reading)             → int
store.get_all_readings()               → list[Reading]     (unordered)
store.get_recent_readings(limit)       → list[Reading]     (oldest first)
store.clear_all_readings()             → None
store.save_streak_state(state)         → None              (upsert of the single row)
store.load_streak_state()              → StreakState | None
store.record_checkin(reading, state)   → int               (both writes, one transaction)
store.apply_checkin(reading, fold)     → (int, StreakState) (load, fold and both writes, exclusive)
store.schema_version()                 → int
store.close()

Every operation opens its own short-lived session. Streak writes are
serialised by a per-store lock so a load → fold → save sequence is never
interleaved with another one. SQLAlchemy errors are re-raised as
EngineRejected (chained); nothing is retried here.
"""
from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Optional, Union

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.util.exc import CommandError
from pydantic import BaseModel, ValidationError
from sqlalchemy import create_engine, delete, select, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from calmtrack.core.errors import EngineRejected, InvalidRecord, StorageUnavailable
from calmtrack.models.reading import StressReading
from calmtrack.models.streak import STREAK_ROW_ID, StreakRecord
from calmtrack.schemas.reading import Reading, ReadingInput
from calmtrack.schemas.streak import StreakState

logger = logging.getLogger(__name__)

# Integer schema version the code expects; matches the newest Alembic revision id.
SCHEMA_VERSION = 2

_MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"

ReadingLike = Union[ReadingInput, Mapping[str, Any]]
StreakFold = Callable[[Optional[StreakState]], StreakState]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _revision(version: int) -> str:
    return f"{version:04d}"


def _field_errors(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]


def _validate_reading(reading: ReadingLike) -> ReadingInput:
    data = reading.model_dump() if isinstance(reading, BaseModel) else reading
    try:
        return ReadingInput.model_validate(data)
    except ValidationError as exc:
        raise InvalidRecord("Reading failed validation.", errors=_field_errors(exc)) from exc


def _reading_row(reading: ReadingInput) -> StressReading:
    return StressReading(**reading.model_dump())


def _streak_row(state: StreakState) -> StreakRecord:
    return StreakRecord(
        id=STREAK_ROW_ID,
        current_streak=state.current_streak,
        last_check_date=state.last_check_date,
        best_streak=state.best_streak,
        total_calm_days=state.total_calm_days,
        weekly_calendar=json.dumps(state.weekly_calendar, sort_keys=True),
    )


def _streak_state(row: StreakRecord) -> StreakState:
    return StreakState(
        current_streak=row.current_streak,
        last_check_date=row.last_check_date,
        best_streak=row.best_streak,
        total_calm_days=row.total_calm_days,
        weekly_calendar=json.loads(row.weekly_calendar or "{}"),
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class Store:
    """Handle on the local database. Call open() before use and close() after."""

    def __init__(self, url: str, target_version: int = SCHEMA_VERSION):
        self.url = url
        self.target_version = target_version
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker[Session]] = None
        # guards the streak row: load, fold and save happen under it
        self._streak_lock = threading.Lock()

    # --- lifecycle ---

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> "Store":
        if self._engine is not None:
            return self

        safe_url = make_url(self.url).render_as_string(hide_password=True)
        engine: Optional[Engine] = None
        try:
            engine = self._create_engine()
            with engine.begin() as connection:
                self._migrate(connection)
        except (SQLAlchemyError, CommandError, OSError) as exc:
            if engine is not None:
                engine.dispose()
            logger.error("Cannot open local store %s: %s", safe_url, exc)
            raise StorageUnavailable(
                f"Local store at {safe_url} cannot be opened.", error=str(exc)
            ) from exc

        self._engine = engine
        self._sessionmaker = sessionmaker(bind=engine, expire_on_commit=False)
        logger.info("Opened local store %s (schema version %d)", safe_url, self.target_version)
        return self

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("Closed local store")

    def __enter__(self) -> "Store":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _create_engine(self) -> Engine:
        url = make_url(self.url)
        kwargs: dict[str, Any] = {}
        if url.get_backend_name() == "sqlite":
            kwargs["connect_args"] = {"check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                # one shared connection, otherwise every checkout sees an empty database
                kwargs["poolclass"] = StaticPool
            else:
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(url, **kwargs)

    def _migrate(self, connection) -> None:
        cfg = Config()
        cfg.set_main_option("script_location", str(_MIGRATIONS_DIR))
        cfg.attributes["connection"] = connection
        command.upgrade(cfg, _revision(self.target_version))

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        if self._sessionmaker is None:
            raise StorageUnavailable("Local store is not open.")
        session = self._sessionmaker()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Storage engine rejected %s: %s", operation, exc)
            raise EngineRejected(operation, str(exc)) from exc
        finally:
            session.close()

    # --- schema ---

    def schema_version(self) -> int:
        """Integer schema version currently applied on disk (0 if none)."""
        if self._engine is None:
            raise StorageUnavailable("Local store is not open.")
        try:
            with self._engine.connect() as connection:
                revision = MigrationContext.configure(connection).get_current_revision()
        except SQLAlchemyError as exc:
            raise EngineRejected("schema_version", str(exc)) from exc
        return int(revision) if revision else 0

    def ping(self) -> None:
        with self._session("ping") as session:
            session.execute(text("SELECT 1"))

    # --- readings ---

    def add_reading(self, reading: ReadingLike) -> int:
        record = _validate_reading(reading)
        with self._session("add_reading") as session:
            row = _reading_row(record)
            session.add(row)
            session.flush()
            reading_id = row.id
        return reading_id

    def get_all_readings(self) -> list[Reading]:
        with self._session("get_all_readings") as session:
            rows = session.scalars(select(StressReading)).all()
            return [Reading.model_validate(row) for row in rows]

    def get_recent_readings(self, limit: int = 10) -> list[Reading]:
        """The `limit` newest readings by timestamp, returned oldest first."""
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidRecord(
                "limit must be a positive integer.",
                errors=[{"field": "limit", "message": f"got {limit!r}", "type": "value_error"}],
            )
        with self._session("get_recent_readings") as session:
            rows = session.scalars(
                select(StressReading)
                .order_by(StressReading.timestamp.desc(), StressReading.id.desc())
                .limit(limit)
            ).all()
            newest_first = [Reading.model_validate(row) for row in rows]
        newest_first.reverse()
        return newest_first

    def clear_all_readings(self) -> None:
        with self._session("clear_all_readings") as session:
            result = session.execute(delete(StressReading))
        logger.info("Cleared %d reading(s)", result.rowcount or 0)

    # --- streak state ---

    def save_streak_state(self, state: StreakState) -> None:
        with self._streak_lock, self._session("save_streak_state") as session:
            session.merge(_streak_row(state))

    def load_streak_state(self) -> Optional[StreakState]:
        with self._session("load_streak_state") as session:
            row = session.get(StreakRecord, STREAK_ROW_ID)
            if row is None:
                return None
            try:
                return _streak_state(row)
            except (ValueError, ValidationError) as exc:
                raise EngineRejected("load_streak_state", str(exc)) from exc

    # --- combined ---

    def record_checkin(self, reading: ReadingLike, state: StreakState) -> int:
        """Insert a reading and save the streak state atomically."""
        record = _validate_reading(reading)
        with self._streak_lock, self._session("record_checkin") as session:
            row = _reading_row(record)
            session.add(row)
            session.merge(_streak_row(state))
            session.flush()
            reading_id = row.id
        return reading_id

    def apply_checkin(self, reading: ReadingLike, fold: StreakFold) -> tuple[int, StreakState]:
        """
        Load the streak state, compute the next one with `fold` and persist it
        together with the reading. `fold` receives None when nothing was saved
        yet. The whole sequence holds the streak lock, so concurrent check-ins
        see each other's result instead of overwriting it.
        """
        record = _validate_reading(reading)
        with self._streak_lock, self._session("apply_checkin") as session:
            row = session.get(StreakRecord, STREAK_ROW_ID)
            try:
                previous = _streak_state(row) if row is not None else None
            except (ValueError, ValidationError) as exc:
                raise EngineRejected("apply_checkin", str(exc)) from exc
            state = fold(previous)
            reading_row = _reading_row(record)
            session.add(reading_row)
            session.merge(_streak_row(state))
            session.flush()
            reading_id = reading_row.id
        return reading_id, state
