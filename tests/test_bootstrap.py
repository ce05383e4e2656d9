"""
Tests for provider start/stop and default superuser bootstrap
"""

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import Column, Integer, MetaData, Table

from restrole.bootstrap import InitializerState
from restrole.consistency import ConsistencyLevel
from restrole.coordination import SystemReadySignal
from restrole.exceptions import StorageUnavailableError
from restrole.managers import (
    RestRoleManager,
    QueryProcessor,
    MigrationManager,
    LocalExecutionClaim,
    LeaseExecutionClaim,
    SqlAlchemyQueryProcessor,
    SqlAlchemyMigrationManager
)
from restrole.managers.execution_claim import process_claim
from restrole.metadata import DEFAULT_SUPERUSER_NAME
from restrole.models.config import ManagerSettings
from restrole.models.infrastructure import RoleRecord


@pytest.fixture
def mock_query_processor() -> MagicMock:
    processor = MagicMock(spec=QueryProcessor)
    processor.ExecuteInternal.return_value = []
    return processor


@pytest.fixture
def mock_migration_manager() -> MagicMock:
    return MagicMock(spec=MigrationManager)


@pytest.fixture
def claim() -> LocalExecutionClaim:
    return LocalExecutionClaim()


@pytest.fixture
def mocked_manager(mock_query_processor, mock_migration_manager, claim, ready_signal) -> RestRoleManager:
    return RestRoleManager(mock_query_processor, mock_migration_manager, execution_claim=claim, ready_signal=ready_signal)


def MakeManager(db_manager, ready_signal, claim) -> RestRoleManager:
    return RestRoleManager(
        SqlAlchemyQueryProcessor(db_manager),
        SqlAlchemyMigrationManager(db_manager, poll_seconds=0.01),
        execution_claim=claim,
        ready_signal=ready_signal
    )


# ==================== Default superuser ====================

@pytest.mark.asyncio
async def test_bootstrap_on_empty_store_creates_default_superuser(db_manager, ready_signal, login_roles, caplog):
    manager = MakeManager(db_manager, ready_signal, LocalExecutionClaim())

    with caplog.at_level(logging.INFO):
        await manager.Start()
        ready_signal.Set()
        await manager.WaitForBootstrap()

    assert login_roles() == [DEFAULT_SUPERUSER_NAME]
    assert await manager.Find(DEFAULT_SUPERUSER_NAME) == RoleRecord(
        name=DEFAULT_SUPERUSER_NAME, is_superuser=True, can_login=True, member_of=set()
    )
    assert manager.initializer.state is InitializerState.DONE
    assert f"Created default superuser role '{DEFAULT_SUPERUSER_NAME}'." in caplog.text


@pytest.mark.asyncio
async def test_bootstrap_skips_default_when_login_role_exists(role_manager, ready_signal, insert_role, login_roles):
    insert_role("alice", can_login=True)

    await role_manager.Start()
    ready_signal.Set()
    await role_manager.WaitForBootstrap()

    assert login_roles() == ["alice"]
    assert await role_manager.Find(DEFAULT_SUPERUSER_NAME) is None
    assert role_manager.initializer.IsDone()


@pytest.mark.asyncio
async def test_bootstrap_ignores_roles_without_login(role_manager, ready_signal, insert_role, login_roles):
    insert_role("readers", is_superuser=True, can_login=False)

    await role_manager.Start()
    ready_signal.Set()
    await role_manager.WaitForBootstrap()

    assert login_roles() == [DEFAULT_SUPERUSER_NAME]


@pytest.mark.asyncio
async def test_default_role_waits_for_system_ready(role_manager, ready_signal):
    await role_manager.Start()
    await asyncio.sleep(0.05)

    assert await role_manager.Find(DEFAULT_SUPERUSER_NAME) is None
    assert role_manager.initializer.state is InitializerState.PENDING

    ready_signal.Set()
    await role_manager.WaitForBootstrap()

    assert await role_manager.CanLogin(DEFAULT_SUPERUSER_NAME) is True


@pytest.mark.asyncio
async def test_default_role_written_at_quorum(mocked_manager, mock_query_processor, ready_signal):
    await mocked_manager.Start()
    ready_signal.Set()
    await mocked_manager.WaitForBootstrap()

    assert mock_query_processor.ExecuteInternal.await_args.args[1] == ConsistencyLevel.QUORUM
    table, values, consistency = mock_query_processor.Upsert.await_args.args
    assert table.name == "roles"
    assert values == {"role": DEFAULT_SUPERUSER_NAME, "is_superuser": True, "can_login": True}
    assert consistency == ConsistencyLevel.QUORUM


@pytest.mark.asyncio
async def test_default_role_waits_for_schema_agreement(mocked_manager, mock_migration_manager, mock_query_processor, ready_signal):
    agreement = asyncio.Event()

    async def WaitForSchemaAgreement(abort_source):
        await abort_source.WaitFor(agreement)

    mock_migration_manager.WaitForSchemaAgreement = AsyncMock(side_effect=WaitForSchemaAgreement)

    await mocked_manager.Start()
    ready_signal.Set()
    await asyncio.sleep(0.05)
    mock_query_processor.ExecuteInternal.assert_not_called()

    agreement.set()
    await mocked_manager.WaitForBootstrap()
    mock_query_processor.Upsert.assert_awaited_once()


# ==================== Single execution ====================

@pytest.mark.asyncio
async def test_only_one_start_runs_bootstrap(db_manager, ready_signal, login_roles):
    claim = LocalExecutionClaim()
    managers = [MakeManager(db_manager, ready_signal, claim) for _ in range(4)]

    await asyncio.gather(*(manager.Start() for manager in managers))
    ready_signal.Set()
    await asyncio.gather(*(manager.WaitForBootstrap() for manager in managers))

    assert sum(1 for manager in managers if manager.initializer.IsDone()) == 1
    assert login_roles() == [DEFAULT_SUPERUSER_NAME]


@pytest.mark.asyncio
async def test_default_claim_is_shared_by_all_managers(db_manager, ready_signal, login_roles):
    managers = [
        RestRoleManager(
            SqlAlchemyQueryProcessor(db_manager),
            SqlAlchemyMigrationManager(db_manager, poll_seconds=0.01),
            ready_signal=ready_signal
        )
        for _ in range(3)
    ]

    await asyncio.gather(*(manager.Start() for manager in managers))
    ready_signal.Set()
    await asyncio.gather(*(manager.WaitForBootstrap() for manager in managers))

    assert all(manager.execution_claim is process_claim for manager in managers)
    assert sum(1 for manager in managers if manager.initializer.IsDone()) == 1
    assert login_roles() == [DEFAULT_SUPERUSER_NAME]
    assert process_claim.claims == {RestRoleManager.BOOTSTRAP_CLAIM_NAME: LocalExecutionClaim.COMPLETED}


@pytest.mark.asyncio
async def test_lease_renewed_while_waiting_for_system_ready(db_manager, ready_signal, login_roles):
    first = MakeManager(db_manager, ready_signal, LeaseExecutionClaim(db_manager, lease_seconds=1, holder_id="node-1"))
    await first.Start()

    # Longer than the lease; the holder keeps it alive
    await asyncio.sleep(1.2)
    second = MakeManager(db_manager, ready_signal, LeaseExecutionClaim(db_manager, lease_seconds=1, holder_id="node-2"))
    await second.Start()

    ready_signal.Set()
    await first.WaitForBootstrap()
    await second.WaitForBootstrap()

    assert first.initializer.IsDone() is True
    assert second.initializer.IsDone() is False
    assert login_roles() == [DEFAULT_SUPERUSER_NAME]


@pytest.mark.asyncio
async def test_lost_claim_skips_default_role_setup(mocked_manager, mock_query_processor, claim, ready_signal, caplog):
    await mocked_manager.Start()

    # Another holder took the job over and finished it
    claim.claims[RestRoleManager.BOOTSTRAP_CLAIM_NAME] = LocalExecutionClaim.COMPLETED

    with caplog.at_level(logging.WARNING):
        ready_signal.Set()
        await mocked_manager.WaitForBootstrap()

    mock_query_processor.ExecuteInternal.assert_not_called()
    mock_query_processor.Upsert.assert_not_called()
    assert mocked_manager.initializer.state is InitializerState.PENDING
    assert "Bootstrap claim lost" in caplog.text


@pytest.mark.asyncio
async def test_completed_bootstrap_is_never_rerun(db_manager, ready_signal, insert_role):
    first = MakeManager(db_manager, ready_signal, LeaseExecutionClaim(db_manager, holder_id="node-1"))
    await first.Start()
    ready_signal.Set()
    await first.WaitForBootstrap()

    # Operator replaces the default superuser with their own login role
    insert_role(DEFAULT_SUPERUSER_NAME, is_superuser=False, can_login=False)

    second = MakeManager(db_manager, ready_signal, LeaseExecutionClaim(db_manager, holder_id="node-2"))
    await second.Start()
    await second.WaitForBootstrap()

    assert second.initializer.state is InitializerState.PENDING
    assert await second.CanLogin(DEFAULT_SUPERUSER_NAME) is False


@pytest.mark.asyncio
async def test_start_from_settings(tmp_path, ready_signal, login_roles):
    settings = ManagerSettings(
        database_url=f"sqlite:///{tmp_path / 'settings.db'}",
        schema_agreement_poll_seconds=0.01
    )
    manager = RestRoleManager.FromSettings(settings, ready_signal=ready_signal)

    await manager.Start()
    ready_signal.Set()
    await manager.WaitForBootstrap()

    assert await manager.IsSuperuser(DEFAULT_SUPERUSER_NAME) is True
    await manager.Stop()


# ==================== Failures ====================

@pytest.mark.asyncio
async def test_storage_unavailable_is_logged_and_reraised(mocked_manager, mock_query_processor, claim, ready_signal, caplog):
    mock_query_processor.ExecuteInternal.side_effect = StorageUnavailableError("not enough replicas")

    with caplog.at_level(logging.WARNING):
        await mocked_manager.Start()
        ready_signal.Set()
        with pytest.raises(StorageUnavailableError):
            await mocked_manager.WaitForBootstrap()

    assert "Skipped default role setup: some nodes were not ready; will retry" in caplog.text
    assert mocked_manager.initializer.state is InitializerState.PENDING
    mock_query_processor.Upsert.assert_not_called()
    # Claim is released for a later retry
    assert claim.claims == {}


@pytest.mark.asyncio
async def test_failed_bootstrap_can_be_retried(mocked_manager, mock_query_processor, ready_signal):
    mock_query_processor.ExecuteInternal.side_effect = StorageUnavailableError("not enough replicas")
    await mocked_manager.Start()
    ready_signal.Set()
    with pytest.raises(StorageUnavailableError):
        await mocked_manager.WaitForBootstrap()

    # Store recovers; an external retry starts again
    mock_query_processor.ExecuteInternal.side_effect = None
    await mocked_manager.Start()
    await mocked_manager.WaitForBootstrap()

    assert mocked_manager.initializer.IsDone()
    mock_query_processor.Upsert.assert_awaited_once()


@pytest.mark.asyncio
async def test_upsert_failure_leaves_state_pending(mocked_manager, mock_query_processor, ready_signal):
    mock_query_processor.Upsert.side_effect = StorageUnavailableError("write timed out")

    await mocked_manager.Start()
    ready_signal.Set()
    with pytest.raises(StorageUnavailableError):
        await mocked_manager.WaitForBootstrap()

    assert mocked_manager.initializer.state is InitializerState.PENDING


@pytest.mark.asyncio
async def test_schema_failure_fails_start_and_releases_claim(mocked_manager, mock_migration_manager, claim):
    mock_migration_manager.CreateTableIfMissing.side_effect = RuntimeError("schema change rejected")

    with pytest.raises(RuntimeError):
        await mocked_manager.Start()

    assert claim.claims == {}
    assert mocked_manager._stopped is None


# ==================== Stop ====================

@pytest.mark.asyncio
async def test_stop_before_start():
    manager = RestRoleManager(MagicMock(spec=QueryProcessor), MagicMock(spec=MigrationManager), ready_signal=SystemReadySignal())

    await manager.Stop()


@pytest.mark.asyncio
async def test_stop_before_system_ready_is_quiet(mocked_manager, mock_query_processor, claim):
    await mocked_manager.Start()

    await mocked_manager.Stop()
    await mocked_manager.Stop()

    mock_query_processor.ExecuteInternal.assert_not_called()
    assert mocked_manager.initializer.state is InitializerState.PENDING
    assert claim.claims == {}


@pytest.mark.asyncio
async def test_stop_during_schema_agreement_is_quiet(db_manager, ready_signal, migration_manager):
    """A wait that never reaches agreement is interrupted by Stop"""
    manager = RestRoleManager(
        SqlAlchemyQueryProcessor(db_manager),
        migration_manager,
        execution_claim=LocalExecutionClaim(),
        ready_signal=ready_signal
    )
    await manager.Start()
    migration_manager.known_tables["never_created"] = Table(
        "never_created", MetaData(), Column("id", Integer, primary_key=True)
    )
    ready_signal.Set()
    await asyncio.sleep(0.05)

    await manager.Stop()

    assert await manager.Find(DEFAULT_SUPERUSER_NAME) is None


@pytest.mark.asyncio
async def test_stop_surfaces_other_errors(mocked_manager, mock_query_processor, ready_signal):
    mock_query_processor.ExecuteInternal.side_effect = StorageUnavailableError("not enough replicas")

    await mocked_manager.Start()
    ready_signal.Set()
    await asyncio.sleep(0.05)

    with pytest.raises(StorageUnavailableError):
        await mocked_manager.Stop()
