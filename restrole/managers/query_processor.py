"""
RestRole - Query Processor

Query-execution collaborator. Executes parameterized statements against the
backing store at a requested consistency level and returns row sets.

QueryProcessor is the contract the role manager consumes;
SqlAlchemyQueryProcessor runs it against a DatabaseManager.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from sqlalchemy import Table, insert, select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.sql import Executable

from restrole.consistency import ConsistencyLevel
from restrole.exceptions import StorageUnavailableError
from restrole.managers.database_manager import DatabaseManager

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class QueryProcessor(ABC):
    """Executes statements against the replicated store"""

    @abstractmethod
    async def ExecuteInternal(self, statement: Executable, consistency: ConsistencyLevel) -> List[Row]:
        """
        Execute a select or delete statement

        Args:
            statement: SQLAlchemy Core statement with bound parameters
            consistency: Replica acknowledgement required

        Returns:
            List[Row]: Result rows as column-name mappings (empty for writes)

        Raises:
            StorageUnavailableError: Not enough replicas reachable
        """
        pass

    @abstractmethod
    async def Upsert(self, table: Table, values: Row, consistency: ConsistencyLevel) -> None:
        """
        Insert a row, or overwrite the given columns of the row with the same key

        Columns missing from values keep their stored value.

        Raises:
            StorageUnavailableError: Not enough replicas reachable
        """
        pass


class SqlAlchemyQueryProcessor(QueryProcessor):
    """
    Runs statements through SQLAlchemy sessions

    Each call uses its own session and transaction. Blocking session work is
    moved off the event loop with asyncio.to_thread.
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    async def ExecuteInternal(self, statement: Executable, consistency: ConsistencyLevel) -> List[Row]:
        logger.debug(f"Executing at {consistency.value}: {statement}")
        return await asyncio.to_thread(self._Execute, statement)

    async def Upsert(self, table: Table, values: Row, consistency: ConsistencyLevel) -> None:
        logger.debug(f"Upserting into {table.name} at {consistency.value}")
        await asyncio.to_thread(self._Upsert, table, values)

    def _Execute(self, statement: Executable) -> List[Row]:
        session = self.db_manager.GetSession()
        try:
            result = session.execute(statement)
            rows = [dict(row._mapping) for row in result] if result.returns_rows else []
            session.commit()
            return rows
        except OperationalError as e:
            session.rollback()
            raise StorageUnavailableError(f"Backing store unavailable: {e.orig}") from e
        except Exception as e:
            session.rollback()
            raise e
        finally:
            session.close()

    def _Upsert(self, table: Table, values: Row) -> None:
        key_columns = list(table.primary_key.columns)
        key_names = {column.name for column in key_columns}
        where = [column == values[column.name] for column in key_columns]
        changes = {name: value for name, value in values.items() if name not in key_names}

        session = self.db_manager.GetSession()
        try:
            existing = session.execute(select(*key_columns).where(*where)).first()
            if existing is None:
                try:
                    session.execute(insert(table).values(**values))
                    session.commit()
                    return
                except IntegrityError:
                    # Another writer inserted the key first; overwrite its row
                    session.rollback()

            if changes:
                session.execute(update(table).where(*where).values(**changes))
            session.commit()
        except OperationalError as e:
            session.rollback()
            raise StorageUnavailableError(f"Backing store unavailable: {e.orig}") from e
        except Exception as e:
            session.rollback()
            raise e
        finally:
            session.close()
