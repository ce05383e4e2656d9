"""
RestRole - Migration Manager

Schema-migration collaborator. Creates tables idempotently and waits until
every member of the cluster sees the same table definitions.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict

from sqlalchemy import Table
from sqlalchemy.exc import OperationalError

from restrole.coordination import AbortSource
from restrole.exceptions import StorageUnavailableError
from restrole.managers.database_manager import DatabaseManager
from restrole.metadata import QualifiedTableName

logger = logging.getLogger(__name__)


class MigrationManager(ABC):
    """Applies schema changes and reports schema agreement"""

    @abstractmethod
    async def CreateTableIfMissing(self, table_name: str, table: Table) -> None:
        """
        Create a table unless it already exists

        A concurrent creator winning the race is not an error.
        """
        pass

    @abstractmethod
    async def WaitForSchemaAgreement(self, abort_source: AbortSource) -> None:
        """
        Suspend until the cluster agrees on the schema

        Raises:
            SleepAbortedError: Abort requested while waiting
            AbortRequestedError: Abort requested while waiting
        """
        pass


class SqlAlchemyMigrationManager(MigrationManager):
    """
    Schema management through SQLAlchemy metadata

    Agreement means every table this manager created is visible through a
    fresh inspector.
    """

    def __init__(self, db_manager: DatabaseManager, poll_seconds: float = 1.0):
        """
        Initialize migration manager

        Args:
            db_manager: DatabaseManager owning the engine
            poll_seconds: Delay between schema agreement checks
        """
        self.db_manager = db_manager
        self.poll_seconds = poll_seconds
        self.known_tables: Dict[str, Table] = {}

    async def CreateTableIfMissing(self, table_name: str, table: Table) -> None:
        self.known_tables[table_name] = table
        created = await asyncio.to_thread(self._CreateTable, table_name, table)
        if created:
            logger.info(f"Created table {QualifiedTableName(table_name)}")

    async def WaitForSchemaAgreement(self, abort_source: AbortSource) -> None:
        while True:
            abort_source.CheckAbort()
            if await asyncio.to_thread(self._SchemaAgrees):
                logger.debug("Schema agreement reached")
                return

            logger.info(f"Waiting for schema agreement, retrying in {self.poll_seconds}s")
            await abort_source.Sleep(self.poll_seconds)

    def _CreateTable(self, table_name: str, table: Table) -> bool:
        """Create the table; returns False if it already existed"""
        try:
            if self.db_manager.HasTable(table_name):
                return False
            self.db_manager.InitializeDatabase(tables=[table])
        except OperationalError as e:
            # Lost the race against another creator
            if "already exists" in str(e.orig):
                logger.debug(f"Table {table_name} created concurrently")
                return False
            raise StorageUnavailableError(f"Could not create table {table_name}: {e.orig}") from e
        return True

    def _SchemaAgrees(self) -> bool:
        return all(self.db_manager.HasTable(name) for name in self.known_tables)
