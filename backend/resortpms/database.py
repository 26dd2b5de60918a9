"""
Database configuration - SQLAlchemy persistence layer
The entity store behind every workflow: all reads and writes go through a Session
"""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text, update
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from resortpms.clock import utcnow
from resortpms.config import settings

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

_connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=_connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency injection: yield a database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Commit everything written inside the block, or nothing.

    Any exception rolls the session back and is re-raised unchanged, so a
    failed workflow step never leaves partial writes behind.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def init_db():
    """Create tables"""
    from resortpms.models import ontology  # noqa
    Base.metadata.create_all(bind=engine)

    if engine.dialect.name == "sqlite":
        # WAL lets readers proceed while a booking write is in flight
        with engine.connect() as conn:
            conn.execute(text("PRAGMA journal_mode=WAL"))
            conn.execute(text("PRAGMA synchronous=NORMAL"))
            conn.commit()


def compare_and_set(db: Session, model, record_id: int, expected_status, **values) -> bool:
    """
    Atomically write `values` to one record if its status is still `expected_status`.

    Returns False when the record is gone or another writer moved it first.
    """
    values.setdefault("updated_at", utcnow())
    result = db.execute(
        update(model)
        .where(model.id == record_id, model.status == expected_status)
        .values(**values)
    )
    return result.rowcount == 1
