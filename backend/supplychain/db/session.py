"""Database session management."""

from collections.abc import Generator
from typing import Annotated

from fastapi import Depends
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from supplychain.core.config import settings
from supplychain.db.unit_of_work import UnitOfWork

# Create engine - handle SQLite specially for check_same_thread
connect_args = {}
pool_config = {}

if settings.database_url.startswith("sqlite"):
    connect_args = {"check_same_thread": False}
    pool_config = {
        "pool_pre_ping": True,
        "pool_recycle": 1800,
    }
else:
    # PostgreSQL connection pooling configuration
    pool_config = {
        "pool_size": 20,
        "max_overflow": 40,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=False,
    **pool_config,
)


def enable_sqlite_foreign_keys(target_engine) -> None:
    """Turn on FK enforcement for every new SQLite connection."""

    @event.listens_for(target_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if settings.database_url.startswith("sqlite"):
    enable_sqlite_foreign_keys(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Get database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_uow(db: Annotated[Session, Depends(get_db)]) -> UnitOfWork:
    """Wrap the request session in a UnitOfWork."""
    return UnitOfWork(db)


# Type aliases for dependency injection
DbSession = Annotated[Session, Depends(get_db)]
UnitOfWorkDep = Annotated[UnitOfWork, Depends(get_uow)]
