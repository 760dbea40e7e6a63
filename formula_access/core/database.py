"""Database connection, session management and storage error wrapping."""

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from formula_access.core.config import settings
from formula_access.core.errors import ConflictError, DatabaseError

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False


@contextmanager
def db_operation(db: Session, message: str = "Database operation failed") -> Iterator[None]:
    """
    Wrap storage calls so driver errors surface as ConflictError / DatabaseError.

    Errors raised by the wrapped block that are not SQLAlchemy errors pass through.
    """
    try:
        yield
    except IntegrityError as e:
        db.rollback()
        logger.warning("Integrity violation: %s", e.orig)
        raise ConflictError("Resource already exists") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("%s", message)
        raise DatabaseError(message) from e
