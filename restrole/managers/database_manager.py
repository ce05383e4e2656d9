"""
RestRole - Database Manager

This module owns the SQLAlchemy engine and session factory that back the
query-execution and schema-migration collaborators.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from sqlalchemy import Table, create_engine, inspect
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from restrole.models.database import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Manages database connection and table creation
    """

    def __init__(self, database_url: str = "sqlite:///database/restrole.db"):
        """
        Initialize database manager

        Args:
            database_url: SQLAlchemy database URL
        """
        self.database_url = database_url
        url = make_url(database_url)

        connect_args = {}
        if url.get_backend_name() == "sqlite":
            # Sessions are opened from worker threads
            connect_args["check_same_thread"] = False

            # Ensure database directory exists
            if url.database and url.database != ":memory:":
                db_dir = Path(url.database).parent
                if db_dir and str(db_dir) != '.':
                    db_dir.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(database_url, echo=False, connect_args=connect_args)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)

    def InitializeDatabase(self, tables: Optional[Iterable[Table]] = None) -> None:
        """
        Create tables if they don't exist

        Args:
            tables: Tables to create (default: every table in the shared metadata)
        """
        Base.metadata.create_all(bind=self.engine, tables=list(tables) if tables is not None else None, checkfirst=True)

    def HasTable(self, table_name: str) -> bool:
        """
        Check whether a table is visible in the database

        Args:
            table_name: Table name

        Returns:
            bool: True if the table exists
        """
        return inspect(self.engine).has_table(table_name)

    def GetSession(self):
        """
        Get a new database session

        Returns:
            Session: SQLAlchemy session
        """
        return self.SessionLocal()

    def Dispose(self) -> None:
        """Close all pooled connections"""
        self.engine.dispose()
        logger.debug(f"Disposed engine for {self.engine.url}")
