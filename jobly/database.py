"""
Database schema and connection management.

Tables are declared with SQLAlchemy; repositories talk to them through
parameterized ``text()`` statements. SQLite is the default backend and
PostgreSQL works unchanged.
"""

from pathlib import Path
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .env import get_database_url

Base = declarative_base()


class Company(Base):
    """Company table."""

    __tablename__ = "companies"
    __table_args__ = (CheckConstraint("num_employees >= 0", name="ck_companies_num_employees"),)

    handle = Column(String(25), primary_key=True)
    name = Column(Text, unique=True, nullable=False)
    num_employees = Column(Integer)
    description = Column(Text, nullable=False)
    logo_url = Column(Text)


class Job(Base):
    """Job posting table."""

    __tablename__ = "jobs"
    __table_args__ = (
        CheckConstraint("salary >= 0", name="ck_jobs_salary"),
        CheckConstraint("equity <= 1.0", name="ck_jobs_equity"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    salary = Column(Integer)
    equity = Column(Numeric)
    company_handle = Column(
        String(25),
        ForeignKey("companies.handle", ondelete="CASCADE"),
        nullable=False,
    )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(database_url: Optional[str] = None) -> Engine:
    """
    Create an engine for ``database_url`` (default: JOBLY_DATABASE_URL).

    SQLite file databases get their parent directory created and foreign
    key enforcement switched on for every connection.
    """
    url = make_url(database_url or get_database_url())
    engine = create_engine(url)
    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_database(database_url: Optional[str] = None) -> Engine:
    """
    Initialize database and create tables.

    Args:
        database_url: SQLAlchemy URL, e.g. ``sqlite:///data/jobly.db``

    Returns:
        The engine used
    """
    engine = get_engine(database_url)
    Base.metadata.create_all(engine)
    return engine


def get_session(database_url: Optional[str] = None, engine: Optional[Engine] = None) -> Session:
    """
    Get database session.

    Args:
        database_url: SQLAlchemy URL (ignored when engine is given)
        engine: Existing engine to bind

    Returns:
        SQLAlchemy session
    """
    if engine is None:
        engine = get_engine(database_url)
    SessionLocal = sessionmaker(bind=engine)
    return SessionLocal()
