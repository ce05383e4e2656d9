"""
RestRole - Role Database Model

One row per role name. member_of names other roles by string only; a name
listed there need not have its own row.
"""

from sqlalchemy import Column, String, Boolean

from restrole.metadata import ROLES_TABLE, ROLE_COLUMN
from restrole.models.database.base import Base
from restrole.models.database.text_set import TextSet


class RoleRow(Base):
    """
    Roles table - role identity, login/superuser flags and group membership
    """
    __tablename__ = ROLES_TABLE

    role = Column(ROLE_COLUMN, String, primary_key=True)
    is_superuser = Column(Boolean, nullable=True)
    can_login = Column(Boolean, nullable=True)
    member_of = Column(TextSet(none_as_null=True), nullable=True)
