"""Thread store: ordered conversation history with a non-persistent fallback."""
from datetime import datetime, timezone
from enum import Enum
from functools import wraps
from typing import Callable, List, Optional, Union
from uuid import uuid4
import logging

from sqlalchemy import desc, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from database import Database
from exceptions import PersistenceError
from models import Message, Thread
from schemas.threads import MessageRecord, MessageRole, ThreadSnapshot, ThreadSummary

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 60
DEFAULT_LIST_LIMIT = 20
MAX_LIST_LIMIT = 100


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_thread_id() -> str:
    return str(uuid4())


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _title_from(content: str) -> Optional[str]:
    title = " ".join(content.split())[:TITLE_MAX_LENGTH]
    return title or None


def _check_message(role: Union[MessageRole, str], content: str) -> MessageRole:
    role = MessageRole(role)
    if not isinstance(content, str) or not content:
        raise ValueError("Message content must be a non-empty string")
    return role


def _translate_errors(method):
    """Surface SQLAlchemy failures as PersistenceError."""
    @wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except SQLAlchemyError as e:
            raise PersistenceError(f"{method.__name__} failed: {e}") from e
    return wrapper


class StoreStatus(str, Enum):
    CONNECTED = "connected"
    UNAVAILABLE = "unavailable"


class EphemeralThreadBackend:
    """Stand-in used when no store is reachable: nothing outlives the request."""

    def get_or_create_thread(self, thread_id: Optional[str], user_email: str) -> ThreadSnapshot:
        return ThreadSnapshot(thread_id=thread_id or new_thread_id(), messages=[])

    def append_message(self, thread_id: str, role: Union[MessageRole, str], content: str) -> None:
        _check_message(role, content)

    def append_turn(self, thread_id: str, user_content: str, assistant_content: str) -> None:
        _check_message(MessageRole.USER, user_content)
        _check_message(MessageRole.ASSISTANT, assistant_content)

    def list_threads_for_user(self, user_email: str, limit: int = DEFAULT_LIST_LIMIT) -> List[ThreadSummary]:
        return []

    def get_thread_history(self, thread_id: str) -> List[MessageRecord]:
        return []


class SqlThreadBackend:
    """Thread and message persistence on the relational store."""

    def __init__(self, database: Database, clock: Callable[[], datetime] = utcnow):
        self.database = database
        self._clock = clock

    @staticmethod
    def _history(db: Session, thread_id: str) -> List[MessageRecord]:
        rows = db.query(Message).filter(
            Message.thread_id == thread_id
        ).order_by(
            Message.position.asc(), Message.created_at.asc()
        ).all()
        return [MessageRecord.model_validate(row) for row in rows]

    @_translate_errors
    def ensure_thread(self, thread_id: str, user_email: str) -> None:
        """Insert the thread row; a concurrent insert of the same id is a no-op."""
        now = self._clock()
        with self.database.session() as db:
            db.add(Thread(id=thread_id, user_email=user_email, created_at=now, updated_at=now))
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.debug(f"[Threads] Thread {thread_id} already exists, skipping insert")

    @_translate_errors
    def get_or_create_thread(self, thread_id: Optional[str], user_email: str) -> ThreadSnapshot:
        """Load an existing thread's history, or create the thread with an empty one."""
        if thread_id:
            with self.database.session() as db:
                if db.get(Thread, thread_id) is not None:
                    return ThreadSnapshot(thread_id=thread_id, messages=self._history(db, thread_id))

        new_id = thread_id or new_thread_id()
        self.ensure_thread(new_id, user_email)
        return ThreadSnapshot(thread_id=new_id, messages=[])

    def _append(self, db: Session, thread: Thread, role: MessageRole, content: str, position: int) -> datetime:
        now = self._clock()
        db.add(Message(
            thread_id=thread.id,
            role=role.value,
            content=content,
            position=position,
            created_at=now,
        ))
        # updated_at never moves backwards
        thread.updated_at = max(_as_utc(thread.updated_at), _as_utc(now))
        return now

    def _load_for_write(self, db: Session, thread_id: str) -> Thread:
        thread = db.get(Thread, thread_id)
        if thread is None:
            raise PersistenceError(f"Thread {thread_id} does not exist")
        return thread

    @staticmethod
    def _next_position(db: Session, thread_id: str) -> int:
        return db.query(func.count(Message.id)).filter(Message.thread_id == thread_id).scalar() or 0

    @_translate_errors
    def append_message(self, thread_id: str, role: Union[MessageRole, str], content: str) -> None:
        """Append one message to the end of a thread."""
        role = _check_message(role, content)
        with self.database.session() as db:
            thread = self._load_for_write(db, thread_id)
            self._append(db, thread, role, content, self._next_position(db, thread_id))
            db.commit()

    @_translate_errors
    def append_turn(self, thread_id: str, user_content: str, assistant_content: str) -> None:
        """Append a user message and the assistant reply in a single transaction."""
        _check_message(MessageRole.USER, user_content)
        _check_message(MessageRole.ASSISTANT, assistant_content)
        with self.database.session() as db:
            thread = self._load_for_write(db, thread_id)
            position = self._next_position(db, thread_id)
            self._append(db, thread, MessageRole.USER, user_content, position)
            self._append(db, thread, MessageRole.ASSISTANT, assistant_content, position + 1)
            if thread.title is None:
                thread.title = _title_from(user_content)
            db.commit()

    @_translate_errors
    def list_threads_for_user(self, user_email: str, limit: int = DEFAULT_LIST_LIMIT) -> List[ThreadSummary]:
        """Most recently updated threads first."""
        with self.database.session() as db:
            rows = db.query(Thread).filter(
                Thread.user_email == user_email
            ).order_by(
                desc(Thread.updated_at), Thread.id
            ).limit(limit).all()
            return [ThreadSummary.model_validate(row) for row in rows]

    @_translate_errors
    def get_thread_history(self, thread_id: str) -> List[MessageRecord]:
        with self.database.session() as db:
            return self._history(db, thread_id)


class ThreadStore:
    """
    Facade the gateway and routes talk to.

    Every call goes through `_backend()`, which picks the SQL backend when
    the store is configured and reachable and the ephemeral one otherwise,
    so callers never see the difference in signatures.
    """

    def __init__(self, database: Optional[Database] = None, clock: Callable[[], datetime] = utcnow):
        self.database = database
        self._sql = SqlThreadBackend(database, clock) if database is not None and database.configured else None
        self._ephemeral = EphemeralThreadBackend()

    def _backend(self) -> Union[SqlThreadBackend, EphemeralThreadBackend]:
        if self._sql is None:
            return self._ephemeral
        try:
            self.database.connect()
        except PersistenceError as e:
            logger.warning(f"[Database] Unavailable, continuing without persistence: {e}")
            return self._ephemeral
        return self._sql

    @property
    def status(self) -> StoreStatus:
        return StoreStatus.CONNECTED if self._backend() is self._sql else StoreStatus.UNAVAILABLE

    def initialize(self) -> StoreStatus:
        """Connect and set up the schema ahead of the first request."""
        status = self.status
        if self._sql is None:
            logger.warning("[Database] DATABASE_URL not set, threads will not be persisted")
        return status

    def get_or_create_thread(self, thread_id: Optional[str], user_email: str) -> ThreadSnapshot:
        backend = self._backend()
        try:
            return backend.get_or_create_thread(thread_id, user_email)
        except PersistenceError as e:
            logger.warning(f"[Threads] Could not load thread {thread_id}, using an ephemeral one: {e}")
            return self._ephemeral.get_or_create_thread(thread_id, user_email)

    def append_message(self, thread_id: str, role: Union[MessageRole, str], content: str) -> None:
        self._backend().append_message(thread_id, role, content)

    def append_turn(self, thread_id: str, user_content: str, assistant_content: str) -> None:
        self._backend().append_turn(thread_id, user_content, assistant_content)

    def list_threads_for_user(self, user_email: str, limit: int = DEFAULT_LIST_LIMIT) -> List[ThreadSummary]:
        """Oversized pages are clamped to MAX_LIST_LIMIT rather than rejected."""
        return self._backend().list_threads_for_user(user_email, max(1, min(limit, MAX_LIST_LIMIT)))

    def get_thread_history(self, thread_id: str) -> List[MessageRecord]:
        return self._backend().get_thread_history(thread_id)
