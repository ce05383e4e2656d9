"""
RestRole - Abort Requested Error Exception

Exception raised inside a background task once shutdown has requested an abort.
"""

from .role_manager_error import RoleManagerError


class AbortRequestedError(RoleManagerError):
    """Exception raised when a wait is interrupted by an abort request."""
    pass
