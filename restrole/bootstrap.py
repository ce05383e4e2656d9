"""
RestRole - Default Role Initializer

Guarantees that at least one login-capable role exists once the cluster is up.
If none does, the canonical default superuser is inserted.

State machine: PENDING -> DONE. DONE is terminal; a failed run stays PENDING
so an external retry (restart, supervisor) can run it again.
"""

import logging
from enum import Enum

from sqlalchemy import select

from restrole.consistency import ConsistencyLevel
from restrole.coordination import AbortSource
from restrole.exceptions import StorageUnavailableError
from restrole.managers.migration_manager import MigrationManager
from restrole.managers.query_processor import QueryProcessor
from restrole.metadata import DEFAULT_SUPERUSER_NAME, ROLE_COLUMN
from restrole.models.database import RoleRow

logger = logging.getLogger(__name__)

roles_table = RoleRow.__table__


class InitializerState(str, Enum):
    """Progress of the default role setup"""
    PENDING = "pending"
    DONE = "done"


class DefaultRoleInitializer:
    """
    Creates the default superuser if no role can log in
    """

    def __init__(self, query_processor: QueryProcessor, migration_manager: MigrationManager, abort_source: AbortSource):
        """
        Initialize default role initializer

        Args:
            query_processor: Store used to check for and insert the role
            migration_manager: Used to wait for schema agreement
            abort_source: Cancels the schema agreement wait at shutdown
        """
        self.query_processor = query_processor
        self.migration_manager = migration_manager
        self.abort_source = abort_source
        self.state = InitializerState.PENDING

    def IsDone(self) -> bool:
        """Check if the default role setup has completed"""
        return self.state is InitializerState.DONE

    async def Run(self) -> None:
        """
        Wait for schema agreement, then create the default role if missing

        Raises:
            StorageUnavailableError: Store could not be reached (state stays PENDING)
            SleepAbortedError: Shutdown interrupted the agreement wait
            AbortRequestedError: Shutdown interrupted the agreement wait
        """
        if self.IsDone():
            return

        await self.migration_manager.WaitForSchemaAgreement(self.abort_source)
        self.abort_source.CheckAbort()

        await self.CreateDefaultRoleIfMissing()

        self.state = InitializerState.DONE

    async def AnyRoleCanLogin(self) -> bool:
        """
        Check whether any stored role has can_login set

        Returns:
            bool: True if at least one login-capable role exists
        """
        rows = await self.query_processor.ExecuteInternal(
            select(roles_table.c.role).where(roles_table.c.can_login.is_(True)).limit(1),
            ConsistencyLevel.QUORUM
        )
        return len(rows) > 0

    async def CreateDefaultRoleIfMissing(self) -> None:
        """Insert the default superuser unless a login-capable role exists"""
        try:
            if await self.AnyRoleCanLogin():
                logger.debug("A login-capable role exists; default superuser not needed")
                return

            await self.query_processor.Upsert(
                roles_table,
                {ROLE_COLUMN: DEFAULT_SUPERUSER_NAME, "is_superuser": True, "can_login": True},
                ConsistencyLevel.QUORUM
            )
            logger.info(f"Created default superuser role '{DEFAULT_SUPERUSER_NAME}'.")

        except StorageUnavailableError:
            logger.warning("Skipped default role setup: some nodes were not ready; will retry")
            raise
