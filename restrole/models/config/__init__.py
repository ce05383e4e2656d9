"""
RestRole - Configuration Models Package

This package contains Pydantic models for role flags and manager settings.
"""

from restrole.models.config.role_config import RoleConfig, RoleConfigUpdate
from restrole.models.config.settings import ManagerSettings

__all__ = [
    'RoleConfig',
    'RoleConfigUpdate',
    'ManagerSettings',
]
