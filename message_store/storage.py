from typing import Iterable, List, Optional

from sqlalchemy import create_engine, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings
from .errors import StorageError
from .models import Base, Message as MessageRow
from .schemas import Message


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # every session must see the same in-memory database
        kwargs["poolclass"] = StaticPool
    return kwargs


def make_engine(url: str):
    return create_engine(url, **_engine_kwargs(url))


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db(bind=None) -> None:
    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Iterable[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _to_message(row: MessageRow) -> Message:
    return Message(
        id=row.id,
        title=row.title,
        body=row.body,
        attachment_url=row.attachment_url,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class MessageStore:
    """
    Ordered key-value view over the ``messages`` table.

    Keys are message ids; values are ``Message`` schemas. Mutations commit
    immediately and roll back on failure, so a failed call leaves the table
    as it was.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, key: str) -> Optional[Message]:
        try:
            row = self.db.get(MessageRow, key)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(str(exc)) from exc
        return _to_message(row) if row is not None else None

    def insert(self, key: str, message: Message) -> Optional[Message]:
        """Store ``message`` under ``key``; returns the value it replaced."""
        try:
            row = self.db.get(MessageRow, key)
            previous = _to_message(row) if row is not None else None
            if row is None:
                row = MessageRow(id=key)
                self.db.add(row)
            row.title = message.title
            row.body = message.body
            row.attachment_url = message.attachment_url
            row.created_at = message.created_at
            row.updated_at = message.updated_at
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(str(exc)) from exc
        return previous

    def replace(self, key: str, message: Message) -> Optional[Message]:
        """
        Overwrite the value under ``key`` only if it still exists.

        Runs as a single ``UPDATE``, so a concurrent remove cannot be undone.
        Returns ``message`` when a row was written, ``None`` otherwise.
        """
        stmt = (
            update(MessageRow)
            .where(MessageRow.id == key)
            .values(
                title=message.title,
                body=message.body,
                attachment_url=message.attachment_url,
                updated_at=message.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(str(exc)) from exc
        return message if result.rowcount else None

    def remove(self, key: str) -> Optional[Message]:
        try:
            row = self.db.get(MessageRow, key)
            if row is None:
                return None
            removed = _to_message(row)
            self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(str(exc)) from exc
        return removed

    def values(self) -> List[Message]:
        try:
            rows = self.db.query(MessageRow).order_by(MessageRow.id.asc()).all()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(str(exc)) from exc
        return [_to_message(r) for r in rows]
