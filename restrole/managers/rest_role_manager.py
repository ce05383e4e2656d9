"""
RestRole - REST Role Manager

Role manager for deployments whose users and groups are owned by an external
identity system (the REST authenticator). This provider:
- Creates its tables and the default superuser on first start
- Answers role lookups, one-level group expansion and role listings
- Stores per-role attributes

Role lifecycle (drop) and membership changes (grant/revoke) are not handled
here. is_superuser/can_login are written by the external identity system.
"""

import asyncio
import logging
from typing import Dict, Optional, Set

from sqlalchemy import delete, select

from restrole import coordination
from restrole.bootstrap import DefaultRoleInitializer
from restrole.consistency import ConsistencyForRole, ConsistencyLevel
from restrole.coordination import AbortSource, SystemReadySignal, DoAfterSystemReady
from restrole.exceptions import NonexistentRoleError, SleepAbortedError, AbortRequestedError, StorageUnavailableError
from restrole.managers.database_manager import DatabaseManager
from restrole.managers.execution_claim import ExecutionClaim, LeaseExecutionClaim, process_claim
from restrole.managers.migration_manager import MigrationManager, SqlAlchemyMigrationManager
from restrole.managers.query_processor import QueryProcessor, SqlAlchemyQueryProcessor
from restrole.managers.role_manager import RoleManager, RecursiveRoleQuery
from restrole.metadata import AUTH_KEYSPACE, ROLES_TABLE, ROLE_ATTRIBUTES_TABLE, ROLE_COLUMN
from restrole.models.config import ManagerSettings, RoleConfig, RoleConfigUpdate
from restrole.models.database import RoleRow, RoleAttributeRow
from restrole.models.infrastructure import RoleRecord
from restrole.registry import registry

logger = logging.getLogger(__name__)

roles_table = RoleRow.__table__
role_attributes_table = RoleAttributeRow.__table__


class RestRoleManager(RoleManager):
    """
    Role manager backed by the roles and role_attributes tables
    """

    QUALIFIED_NAME = "restrole.RestRoleManager"
    BOOTSTRAP_CLAIM_NAME = "restrole.default_role_bootstrap"

    def __init__(
        self,
        query_processor: QueryProcessor,
        migration_manager: MigrationManager,
        execution_claim: Optional[ExecutionClaim] = None,
        ready_signal: Optional[SystemReadySignal] = None
    ):
        """
        Initialize REST role manager

        Args:
            query_processor: Executes statements against the store
            migration_manager: Creates tables and reports schema agreement
            execution_claim: Single-execution primitive for bootstrap
                             (default: the process-wide process_claim)
            ready_signal: Signal gating the default role setup
                          (default: the process-wide system_ready signal)
        """
        self.query_processor = query_processor
        self.migration_manager = migration_manager
        self.execution_claim = execution_claim or process_claim
        self.ready_signal = ready_signal or coordination.system_ready
        self.abort_source = AbortSource()
        self.initializer = DefaultRoleInitializer(query_processor, migration_manager, self.abort_source)
        self._stopped: Optional["asyncio.Task[None]"] = None
        self._heartbeat: Optional["asyncio.Task[None]"] = None

    @classmethod
    def FromSettings(cls, settings: ManagerSettings, ready_signal: Optional[SystemReadySignal] = None) -> "RestRoleManager":
        """
        Build a manager wired to the SQLAlchemy collaborators

        Args:
            settings: Manager settings
            ready_signal: Optional readiness signal override

        Returns:
            RestRoleManager: Unstarted manager
        """
        db_manager = DatabaseManager(settings.database_url)
        return cls(
            SqlAlchemyQueryProcessor(db_manager),
            SqlAlchemyMigrationManager(db_manager, poll_seconds=settings.schema_agreement_poll_seconds),
            execution_claim=LeaseExecutionClaim(db_manager, lease_seconds=settings.bootstrap_lease_seconds),
            ready_signal=ready_signal
        )

    # ==================== Identity ====================

    def QualifiedName(self) -> str:
        return self.QUALIFIED_NAME

    def ProtectedResources(self) -> Set[str]:
        return {f"data/{AUTH_KEYSPACE}/{ROLES_TABLE}"}

    # ==================== Lifecycle ====================

    async def Start(self) -> None:
        """
        Bootstrap the provider

        Only the caller that wins the bootstrap claim creates the schema and
        schedules the default role setup; every other caller returns at once.
        Until the setup finishes, the winner keeps renewing its claim.

        Raises:
            Exception: Schema creation failure (the claim is released)
        """
        if not await self.execution_claim.TryClaim(self.BOOTSTRAP_CLAIM_NAME):
            logger.info("Bootstrap already claimed; skipping schema and default role setup")
            return

        try:
            await self.EnsureSchema()
        except Exception:
            await self._ReleaseBootstrapClaim()
            raise

        self._stopped = DoAfterSystemReady(self.ready_signal, self.abort_source, self._BootstrapDefaultRole)
        if self.execution_claim.renew_interval_seconds:
            self._heartbeat = asyncio.ensure_future(self._KeepBootstrapClaim(self._stopped))

    async def Stop(self) -> None:
        """
        Abort the background setup and wait for it to finish

        Shutdown aborts are expected and dropped; other failures propagate.
        """
        self.abort_source.RequestAbort()
        if self._stopped is None:
            return

        try:
            await self._stopped
        except (SleepAbortedError, AbortRequestedError) as e:
            logger.debug(f"Default role setup aborted by shutdown: {e}")
            # Aborted before the setup ran; a later start must be able to claim it
            await self._ReleaseBootstrapClaim()
        finally:
            await self._StopHeartbeat()

    async def WaitForBootstrap(self) -> None:
        """Wait for the background default role setup, re-raising its failure"""
        if self._stopped is None:
            return

        try:
            await self._stopped
        finally:
            await self._StopHeartbeat()

    async def _BootstrapDefaultRole(self) -> None:
        try:
            # An expired lease may have been taken over while waiting for readiness
            if not await self.execution_claim.Renew(self.BOOTSTRAP_CLAIM_NAME):
                logger.warning("Bootstrap claim lost while waiting for the system; skipping default role setup")
                return

            await self.initializer.Run()
        except Exception:
            await self._ReleaseBootstrapClaim()
            raise

        if not await self.execution_claim.MarkCompleted(self.BOOTSTRAP_CLAIM_NAME):
            logger.warning("Default role setup finished after the bootstrap claim was lost")

    async def _KeepBootstrapClaim(self, setup: "asyncio.Task[None]") -> None:
        """Renew the bootstrap claim until the setup task finishes or the claim is lost"""
        interval = self.execution_claim.renew_interval_seconds
        while True:
            done, _ = await asyncio.wait({setup}, timeout=interval)
            if done:
                return

            try:
                if not await self.execution_claim.Renew(self.BOOTSTRAP_CLAIM_NAME):
                    return
            except StorageUnavailableError as e:
                logger.warning(f"Could not renew bootstrap claim, retrying in {interval}s: {str(e)}")

    async def _StopHeartbeat(self) -> None:
        if self._heartbeat is not None:
            heartbeat, self._heartbeat = self._heartbeat, None
            await heartbeat

    async def _ReleaseBootstrapClaim(self) -> None:
        try:
            await self.execution_claim.Release(self.BOOTSTRAP_CLAIM_NAME)
        except Exception as e:
            # Lease expiry frees the claim eventually
            logger.error(f"Failed to release bootstrap claim: {str(e)}")

    # ==================== Schema ====================

    async def EnsureSchema(self) -> None:
        """
        Create the roles and role_attributes tables if missing

        Both creations run concurrently; either failing fails the call.
        """
        await asyncio.gather(
            self.migration_manager.CreateTableIfMissing(ROLES_TABLE, roles_table),
            self.migration_manager.CreateTableIfMissing(ROLE_ATTRIBUTES_TABLE, role_attributes_table)
        )

    # ==================== Role Records ====================

    async def Find(self, role_name: str) -> Optional[RoleRecord]:
        """
        Look up a role row

        Args:
            role_name: Role to look up

        Returns:
            RoleRecord: Stored role, or None if no row exists
        """
        rows = await self.query_processor.ExecuteInternal(
            select(roles_table).where(roles_table.c.role == role_name),
            ConsistencyForRole(role_name)
        )
        if not rows:
            return None

        row = rows[0]
        return RoleRecord(
            name=row[ROLE_COLUMN],
            is_superuser=bool(row.get("is_superuser")),
            can_login=bool(row.get("can_login")),
            member_of=set(row.get("member_of") or ())
        )

    async def Require(self, role_name: str) -> RoleRecord:
        """
        Look up a role row that must exist

        Raises:
            NonexistentRoleError: No row for role_name
        """
        record = await self.Find(role_name)
        if record is None:
            raise NonexistentRoleError(role_name)
        return record

    async def IsSuperuser(self, role_name: str) -> bool:
        record = await self.Find(role_name)
        return record.is_superuser if record else False

    async def CanLogin(self, role_name: str) -> bool:
        record = await self.Find(role_name)
        return record.can_login if record else False

    async def Create(self, role_name: str, config: RoleConfig) -> None:
        """Create a role; same as CreateOrReplace, an existing role is overwritten"""
        await self.CreateOrReplace(role_name, config)

    async def CreateOrReplace(self, role_name: str, config: RoleConfig) -> None:
        """
        Write is_superuser/can_login for a role, replacing any previous values

        Used by bootstrap and test setup. member_of of an existing row is kept.
        """
        await self.query_processor.Upsert(
            roles_table,
            {ROLE_COLUMN: role_name, "is_superuser": config.is_superuser, "can_login": config.can_login},
            ConsistencyForRole(role_name)
        )

    async def Alter(self, role_name: str, update: RoleConfigUpdate) -> None:
        # is_superuser/can_login belong to the external identity system
        return None

    async def Drop(self, role_name: str) -> None:
        raise NotImplementedError("Not Implemented")

    async def Exists(self, role_name: str) -> bool:
        """
        Always True

        Users are created by the external authenticator and groups have no
        row of their own, so absence is never reported.
        """
        return True

    # ==================== Hierarchy ====================

    async def Grant(self, grantee_name: str, role_name: str) -> None:
        raise NotImplementedError("Not Implemented")

    async def Revoke(self, revokee_name: str, role_name: str) -> None:
        raise NotImplementedError("Not Implemented")

    async def GrantedRoles(self, grantee_name: str, mode: RecursiveRoleQuery = RecursiveRoleQuery.RECURSIVE) -> Set[str]:
        """
        Roles held by a grantee: itself plus its direct memberships

        Memberships of those roles are not expanded, whatever the mode.

        Raises:
            NonexistentRoleError: Grantee has no row
        """
        record = await self.Require(grantee_name)
        return {grantee_name} | record.member_of

    async def AllRoles(self) -> Set[str]:
        """
        Every role name known to the store

        Includes names that only appear in some role's member_of.
        """
        rows = await self.query_processor.ExecuteInternal(
            select(roles_table.c.role, roles_table.c.member_of),
            ConsistencyLevel.QUORUM
        )

        roles = set()
        for row in rows:
            roles.add(row[ROLE_COLUMN])
            roles.update(row.get("member_of") or ())
        return roles

    # ==================== Attributes ====================

    async def GetAttribute(self, role_name: str, attribute_name: str) -> Optional[str]:
        rows = await self.query_processor.ExecuteInternal(
            select(role_attributes_table.c.name, role_attributes_table.c.value)
            .where(role_attributes_table.c.role == role_name)
            .where(role_attributes_table.c.name == attribute_name),
            ConsistencyLevel.LOCAL_ONE
        )
        if rows:
            return rows[0]["value"]
        return None

    async def SetAttribute(self, role_name: str, attribute_name: str, attribute_value: str) -> None:
        """
        Store an attribute value for a role

        Raises:
            NonexistentRoleError: Role does not exist
        """
        if not await self.Exists(role_name):
            raise NonexistentRoleError(role_name)

        await self.query_processor.Upsert(
            role_attributes_table,
            {ROLE_COLUMN: role_name, "name": attribute_name, "value": attribute_value},
            ConsistencyLevel.LOCAL_ONE
        )

    async def RemoveAttribute(self, role_name: str, attribute_name: str) -> None:
        """
        Delete an attribute of a role; deleting a missing attribute is fine

        Raises:
            NonexistentRoleError: Role does not exist
        """
        if not await self.Exists(role_name):
            raise NonexistentRoleError(role_name)

        await self.query_processor.ExecuteInternal(
            delete(role_attributes_table)
            .where(role_attributes_table.c.role == role_name)
            .where(role_attributes_table.c.name == attribute_name),
            ConsistencyLevel.LOCAL_ONE
        )

    async def AttributeForAll(self, attribute_name: str) -> Dict[str, str]:
        """
        Value of one attribute for every role that has it set

        Lookups run concurrently, one per role from AllRoles().
        """
        role_names = list(await self.AllRoles())
        values = await asyncio.gather(*(self.GetAttribute(role_name, attribute_name) for role_name in role_names))

        return {
            role_name: value
            for role_name, value in zip(role_names, values)
            if value is not None
        }


registry.Register(RestRoleManager.QUALIFIED_NAME, RestRoleManager)
