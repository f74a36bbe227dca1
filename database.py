import logging
from typing import Iterator, List, Sequence

from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings
from models import Base, UserRecord
from utils.errors import PersistenceError

logger = logging.getLogger(__name__)

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def create_db_engine(database_url: str) -> Engine:
    """
    Create the SQLAlchemy engine for the record store.

    SQLite connections are shared with the request threadpool, and an
    in-memory database is pinned to a single connection so every session
    sees the same tables.
    """
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in IN_MEMORY_URLS:
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


engine = create_db_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(bind: Engine = engine) -> None:
    Base.metadata.create_all(bind=bind)


class RecordRepository:
    """Batch persistence of user records."""

    def __init__(self, session: Session):
        self.session = session

    def save_all(self, records: Sequence[UserRecord]) -> List[UserRecord]:
        """
        Store a batch of records in one transaction.

        Either every record is committed or none is.

        Args:
            records: Records built from valid rows

        Returns:
            The stored records with their ids and creation timestamps

        Raises:
            PersistenceError: If the store rejects the batch
        """
        try:
            self.session.add_all(records)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Batch save failed", extra={"batch_size": len(records)})
            raise PersistenceError("Unable to store records") from e
        logger.info("Stored record batch", extra={"batch_size": len(records)})
        return list(records)

    def find_all(self) -> List[UserRecord]:
        """
        Return every stored record ordered by id.

        Raises:
            PersistenceError: If the store cannot be read
        """
        try:
            return list(self.session.scalars(select(UserRecord).order_by(UserRecord.id)))
        except SQLAlchemyError as e:
            logger.exception("Reading records failed")
            raise PersistenceError("Unable to read records") from e


def get_record_repository() -> Iterator[RecordRepository]:
    """FastAPI dependency yielding a repository bound to a request-scoped session."""
    session = SessionLocal()
    try:
        yield RecordRepository(session)
    finally:
        session.close()
