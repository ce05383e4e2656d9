"""
RestRole - Nonexistent Role Error Exception

Exception raised when an operation requires a role record that is not stored.
"""

from .role_manager_error import RoleManagerError


class NonexistentRoleError(RoleManagerError):
    """Exception raised when a role has no record."""

    def __init__(self, role_name: str):
        self.role_name = role_name
        super().__init__(f"Role {role_name} doesn't exist.")
