"""
RestRole - Role management provider

Stores role identities, group membership, login/superuser flags and per-role
attributes, and answers authorization queries for an access-control layer.
Importing the package registers RestRoleManager with the provider registry.
"""

from restrole.consistency import ConsistencyLevel, ConsistencyForRole
from restrole.coordination import AbortSource, SystemReadySignal, system_ready
from restrole.managers import RestRoleManager, RoleManager, RecursiveRoleQuery
from restrole.registry import registry

__version__ = "1.0.0"

__all__ = [
    'ConsistencyLevel',
    'ConsistencyForRole',
    'AbortSource',
    'SystemReadySignal',
    'system_ready',
    'RestRoleManager',
    'RoleManager',
    'RecursiveRoleQuery',
    'registry',
]
