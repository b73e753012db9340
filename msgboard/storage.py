import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Generator, List, Optional, Tuple

from sqlalchemy import create_engine, event, func, inspect, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql.elements import ColumnElement

from msgboard.exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)

# Base class for SQLAlchemy models
Base = declarative_base()

# Fixed-width UTC timestamps sort lexically in chronological order
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

# Range of a SQLite INTEGER column
SQLITE_INTEGER_MIN = -(2 ** 63)
SQLITE_INTEGER_MAX = 2 ** 63 - 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Render a datetime as the stored created_at string."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def create_db_engine(database_url: str) -> Engine:
    """
    Create a SQLAlchemy engine for the given URL.

    SQLite file databases get their parent directory created and open a real
    transaction on the first statement of a session, so every read in one
    session sees the same snapshot. In-memory SQLite shares a single
    connection so every session sees the same data.
    """
    url = make_url(database_url)
    kwargs = {"echo": False}

    if url.get_backend_name() == "sqlite":
        # check_same_thread=False is required for SQLite to work with FastAPI's threadpool
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(database_url, **kwargs)
            _emit_sqlite_begin(engine)
            return engine

    return create_engine(database_url, **kwargs)


def _emit_sqlite_begin(engine: Engine) -> None:
    # pysqlite only opens a transaction before DML; take over BEGIN so reads
    # are transactional too
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


class MessageStore:
    """
    Durable message table with a single-writer discipline.

    All mutations hold one re-entrant lock and run inside one database
    transaction, so id assignment, deletion and retention never interleave.
    Reads go through their own sessions and only ever see committed state.
    """

    def __init__(self, database_url: str, clock: Optional[Callable[[], datetime]] = None):
        self.database_url = database_url
        self._clock = clock or utc_now
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._write_lock = threading.RLock()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def open(self) -> "MessageStore":
        """Create the engine and schema. Safe to call more than once."""
        if self._engine is not None:
            return self

        logger.debug(f"Opening message store with URL: {self.database_url}")
        engine = None
        try:
            # Import models to register them with Base.metadata
            from msgboard.models import Message  # noqa: F401

            engine = create_db_engine(self.database_url)
            Base.metadata.create_all(bind=engine)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to open message store: {e}")
            if engine is not None:
                engine.dispose()
            raise StorageError("Failed to open message store", details={"error": str(e)}) from e

        self._engine = engine
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info("Message store opened")
        return self

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Message store closed")

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def __enter__(self) -> "MessageStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @contextmanager
    def session(self, action: str, commit: bool = False) -> Generator[Session, None, None]:
        """
        Yield a session scoped to one unit of work.

        Any SQLAlchemy failure rolls the whole unit back and surfaces as
        StorageError, so a failed write never leaves partial effects.
        """
        if self._session_factory is None:
            raise StorageError(f"Cannot {action}: message store is not open")

        db = self._session_factory()
        try:
            yield db
            if commit:
                db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise StorageError(f"Failed to {action}", details={"error": str(e)}) from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def check_health(self) -> bool:
        """
        Check if the database is reachable and schema is applied.

        Returns:
            True if DB is healthy and schema exists, False otherwise.
        """
        if self._engine is None:
            logger.error("Database health check failed: store is not open")
            return False
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
                if not inspect(conn).has_table("messages"):
                    logger.error("Database schema not applied: 'messages' table not found")
                    return False
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False

    # =========================================================================
    # Writes
    # =========================================================================

    def insert(self, content: str) -> int:
        """
        Store a new message and return its id.

        Content is persisted exactly as given; callers trim beforehand.

        Raises:
            ValidationError: content is empty or whitespace only
            StorageError: the row could not be written
        """
        _require_content(content)
        with self._write_lock:
            with self.session("insert message", commit=True) as db:
                message_id = self._add(db, content)
        logger.info(f"Message created: id={message_id}")
        return message_id

    def insert_and_enforce(self, content: str, capacity: int) -> Tuple[int, int]:
        """
        Insert a message and evict the overflow beyond capacity in one transaction.

        Returns:
            Tuple of (new message id, number of messages evicted)
        """
        from msgboard.retention import evict_overflow

        _require_content(content)
        with self._write_lock:
            with self.session("insert message", commit=True) as db:
                message_id = self._add(db, content)
                evicted = evict_overflow(db, capacity)
        logger.info(f"Message created: id={message_id}, evicted={evicted}")
        return message_id, evicted

    def enforce_retention(self, capacity: int) -> int:
        """Delete the oldest messages beyond capacity. Returns how many were removed."""
        from msgboard.retention import evict_overflow

        with self._write_lock:
            with self.session("enforce retention", commit=True) as db:
                return evict_overflow(db, capacity)

    def delete_by_id(self, message_id: int) -> bool:
        """
        Delete a message by id.

        Returns:
            True if a row was removed, False if no such id exists
        """
        from msgboard.models import Message

        if not SQLITE_INTEGER_MIN <= message_id <= SQLITE_INTEGER_MAX:
            logger.info(f"Delete message id={message_id}: not found (out of range)")
            return False

        with self._write_lock:
            with self.session("delete message", commit=True) as db:
                removed = (
                    db.query(Message)
                    .filter(Message.id == message_id)
                    .delete(synchronize_session=False)
                )
        logger.info(f"Delete message id={message_id}: {'removed' if removed else 'not found'}")
        return removed > 0

    def _add(self, db: Session, content: str) -> int:
        from msgboard.models import Message

        message = Message(content=content, created_at=format_timestamp(self._clock()))
        db.add(message)
        db.flush()
        return message.id

    # =========================================================================
    # Reads
    # =========================================================================

    @contextmanager
    def _reading(self, action: str, db: Optional[Session]) -> Generator[Session, None, None]:
        # Reuse the caller's session so several reads share one snapshot
        if db is not None:
            yield db
            return
        with self.session(action) as own:
            yield own

    def count(self, predicate: Optional[ColumnElement] = None, db: Optional[Session] = None) -> int:
        """Count messages, optionally restricted to those matching predicate."""
        from msgboard.models import Message

        with self._reading("count messages", db) as session:
            query = session.query(func.count(Message.id))
            if predicate is not None:
                query = query.filter(predicate)
            return query.scalar() or 0

    def query_page(
        self,
        predicate: Optional[ColumnElement] = None,
        limit: int = 50,
        offset: int = 0,
        db: Optional[Session] = None,
    ) -> List:
        """
        Return up to limit messages in canonical order, skipping offset rows.

        Canonical order is created_at DESC, id DESC. An offset past the end
        yields an empty list. Pass db to read inside an existing session.
        """
        from msgboard.models import Message

        if limit < 0 or offset < 0:
            raise ValueError("limit and offset must be non-negative")

        with self._reading("query messages", db) as session:
            query = session.query(Message)
            if predicate is not None:
                query = query.filter(predicate)
            query = query.order_by(Message.created_at.desc(), Message.id.desc())
            messages = query.offset(offset).limit(limit).all()
            # Detach loaded rows so they stay readable after the session closes
            for message in messages:
                session.expunge(message)

        logger.debug(f"Retrieved {len(messages)} messages (limit={limit}, offset={offset})")
        return messages


def _require_content(content: str) -> None:
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Message content must not be empty")
