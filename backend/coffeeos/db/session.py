"""Database engine and session factory for the sql document store."""

from pathlib import Path
from typing import Any, Dict

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine, handling SQLite specially for check_same_thread."""
    connect_args: Dict[str, Any] = {}

    if database_url.startswith("sqlite"):
        if database_url.startswith("sqlite:///") and ":memory:" not in database_url:
            Path(database_url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
        connect_args = {"check_same_thread": False}
        # SQLite doesn't support connection pooling the same way
        pool_config: Dict[str, Any] = {
            "pool_pre_ping": True,
            "pool_recycle": 1800,  # Recycle connections every 30 minutes
        }
    else:
        # PostgreSQL/MySQL connection pooling configuration
        pool_config = {
            "pool_size": 20,
            "max_overflow": 40,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
        }

    engine = create_engine(
        database_url,
        connect_args=connect_args,
        echo=echo,
        **pool_config,
    )

    # Enable foreign key enforcement for SQLite
    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
