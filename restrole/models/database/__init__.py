"""
RestRole - Database Models Package

This package contains all SQLAlchemy database model definitions.
All models share a common declarative base.
"""

# Import Base first
from restrole.models.database.base import Base

# Import all models
from restrole.models.database.text_set import TextSet
from restrole.models.database.role import RoleRow
from restrole.models.database.role_attribute import RoleAttributeRow
from restrole.models.database.bootstrap_claim import BootstrapClaimRow

# Export all models and Base
__all__ = [
    'Base',
    'TextSet',
    'RoleRow',
    'RoleAttributeRow',
    'BootstrapClaimRow',
]
