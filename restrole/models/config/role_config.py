"""
RestRole - Role Configuration Models

Pydantic models describing role flags passed to create and alter calls.
"""

from typing import Optional
from pydantic import BaseModel


class RoleConfig(BaseModel):
    """Flags written when a role row is created or replaced"""
    is_superuser: bool = False
    can_login: bool = False


class RoleConfigUpdate(BaseModel):
    """Partial update of role flags; unset fields are left alone"""
    is_superuser: Optional[bool] = None
    can_login: Optional[bool] = None
