"""
RestRole - Unknown Role Manager Error Exception

Exception raised when the provider registry has no factory for a name.
"""

from .role_manager_error import RoleManagerError


class UnknownRoleManagerError(RoleManagerError, KeyError):
    """Exception for registry lookups of unregistered providers."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""
