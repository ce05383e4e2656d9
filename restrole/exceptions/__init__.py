"""
RestRole - Exceptions Package

Contains all exception classes raised by the role manager.
"""

from .role_manager_error import RoleManagerError
from .nonexistent_role_error import NonexistentRoleError
from .storage_unavailable_error import StorageUnavailableError
from .abort_requested_error import AbortRequestedError
from .sleep_aborted_error import SleepAbortedError
from .unknown_role_manager_error import UnknownRoleManagerError

__all__ = [
    'RoleManagerError',
    'NonexistentRoleError',
    'StorageUnavailableError',
    'AbortRequestedError',
    'SleepAbortedError',
    'UnknownRoleManagerError'
]
