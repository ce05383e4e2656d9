"""
RestRole - Infrastructure Models Package

This package contains dataclass models for role records and coordination state.
"""

from restrole.models.infrastructure.role_record import RoleRecord
from restrole.models.infrastructure.bootstrap_lease import BootstrapLease

__all__ = [
    'RoleRecord',
    'BootstrapLease',
]
