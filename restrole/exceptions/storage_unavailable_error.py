"""
RestRole - Storage Unavailable Error Exception

Exception raised when the backing store cannot serve a request because not
enough replicas are reachable. Transient: callers may retry later.
"""

from .role_manager_error import RoleManagerError


class StorageUnavailableError(RoleManagerError):
    """Exception for transient backing store failures."""
    pass
