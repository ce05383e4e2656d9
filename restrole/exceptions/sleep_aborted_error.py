"""
RestRole - Sleep Aborted Error Exception

Exception raised when an abortable sleep is cut short by shutdown.
"""

from .role_manager_error import RoleManagerError


class SleepAbortedError(RoleManagerError):
    """Exception raised when a sleep is aborted."""
    pass
