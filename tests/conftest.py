"""
Shared fixtures for RestRole tests

Store-level tests run against a temporary SQLite file per test.
"""

import sys
from pathlib import Path
from typing import Iterable, Optional

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from restrole.coordination import SystemReadySignal
from restrole.managers import (
    DatabaseManager,
    SqlAlchemyQueryProcessor,
    SqlAlchemyMigrationManager,
    LocalExecutionClaim,
    RestRoleManager
)
from restrole.managers.execution_claim import process_claim
from restrole.models.database import RoleRow


@pytest.fixture(autouse=True)
def reset_process_claim():
    """Managers built without an explicit claim share process_claim"""
    process_claim.claims.clear()
    yield
    process_claim.claims.clear()


@pytest.fixture
def db_manager(tmp_path):
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'restrole.db'}")
    yield manager
    manager.Dispose()


@pytest.fixture
def query_processor(db_manager):
    return SqlAlchemyQueryProcessor(db_manager)


@pytest.fixture
def migration_manager(db_manager):
    return SqlAlchemyMigrationManager(db_manager, poll_seconds=0.01)


@pytest.fixture
def ready_signal():
    return SystemReadySignal()


@pytest.fixture
def role_manager(db_manager, query_processor, migration_manager, ready_signal):
    """RestRoleManager over a store whose tables already exist"""
    db_manager.InitializeDatabase()
    return RestRoleManager(
        query_processor,
        migration_manager,
        execution_claim=LocalExecutionClaim(),
        ready_signal=ready_signal
    )


@pytest.fixture
def insert_role(db_manager):
    """Write a role row directly, including member_of"""
    def InsertRole(name: str, is_superuser: Optional[bool] = False, can_login: Optional[bool] = False,
                   member_of: Optional[Iterable[str]] = None) -> None:
        session = db_manager.GetSession()
        try:
            session.merge(RoleRow(
                role=name,
                is_superuser=is_superuser,
                can_login=can_login,
                member_of=set(member_of) if member_of is not None else None
            ))
            session.commit()
        finally:
            session.close()

    return InsertRole


@pytest.fixture
def count_rows(db_manager):
    """Count rows in the roles or role_attributes table"""
    def CountRows(model=RoleRow, **filters) -> int:
        session = db_manager.GetSession()
        try:
            return session.query(model).filter_by(**filters).count()
        finally:
            session.close()

    return CountRows


@pytest.fixture
def login_roles(db_manager):
    """Names of all stored roles with can_login set"""
    def LoginRoles():
        session = db_manager.GetSession()
        try:
            return sorted(row.role for row in session.query(RoleRow).filter(RoleRow.can_login.is_(True)))
        finally:
            session.close()

    return LoginRoles

