"""
RestRole - Role Record Model

Dataclass for a role as read from the roles table.
"""

from dataclasses import dataclass, field
from typing import Set


@dataclass
class RoleRecord:
    """
    Represents a stored role

    member_of holds role names by string only. They may name roles that have
    no record of their own (implicit groups).
    """
    name: str
    is_superuser: bool = False
    can_login: bool = False
    member_of: Set[str] = field(default_factory=set)
