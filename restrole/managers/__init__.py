"""
RestRole - Managers Package

This package contains the role manager, its storage collaborators and
configuration handling.
"""

from restrole.managers.database_manager import DatabaseManager
from restrole.managers.query_processor import QueryProcessor, SqlAlchemyQueryProcessor
from restrole.managers.migration_manager import MigrationManager, SqlAlchemyMigrationManager
from restrole.managers.execution_claim import ExecutionClaim, LeaseExecutionClaim, LocalExecutionClaim
from restrole.managers.config_manager import ConfigManager
from restrole.managers.role_manager import RoleManager, RecursiveRoleQuery
from restrole.managers.rest_role_manager import RestRoleManager

__all__ = [
    'DatabaseManager',
    'QueryProcessor',
    'SqlAlchemyQueryProcessor',
    'MigrationManager',
    'SqlAlchemyMigrationManager',
    'ExecutionClaim',
    'LeaseExecutionClaim',
    'LocalExecutionClaim',
    'ConfigManager',
    'RoleManager',
    'RecursiveRoleQuery',
    'RestRoleManager',
]
