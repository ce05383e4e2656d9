"""
RestRole - Role Manager Error Exception

Base exception class for all role manager errors.
"""


class RoleManagerError(Exception):
    """Base exception for role manager errors."""
    pass
