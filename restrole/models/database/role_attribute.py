"""
RestRole - Role Attribute Database Model

Key/value attributes keyed by (role, name).
"""

from sqlalchemy import Column, String

from restrole.metadata import ROLE_ATTRIBUTES_TABLE, ROLE_COLUMN
from restrole.models.database.base import Base


class RoleAttributeRow(Base):
    """
    Role attributes table - string values per (role, attribute name)
    """
    __tablename__ = ROLE_ATTRIBUTES_TABLE

    role = Column(ROLE_COLUMN, String, primary_key=True)
    name = Column(String, primary_key=True)
    value = Column(String, nullable=True)
