"""
RestRole - Role Manager Contract

The interface the authorization framework consumes. Providers implement it
and register a factory under a string identifier (see restrole.registry).
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Optional, Set

from restrole.models.config import RoleConfig, RoleConfigUpdate


class RecursiveRoleQuery(str, Enum):
    """How far a granted-roles query should expand memberships"""
    DIRECT = "direct"
    RECURSIVE = "recursive"


class RoleManager(ABC):
    """
    Role management provider

    Capabilities:
    - Lifecycle: Start, Stop
    - Role records: Create, CreateOrReplace, Alter, Drop, Exists, IsSuperuser, CanLogin
    - Hierarchy: Grant, Revoke, GrantedRoles, AllRoles
    - Attributes: GetAttribute, SetAttribute, RemoveAttribute, AttributeForAll
    """

    # ==================== Identity ====================

    @abstractmethod
    def QualifiedName(self) -> str:
        """Identifier the provider is registered under"""
        pass

    @abstractmethod
    def ProtectedResources(self) -> Set[str]:
        """Resources that ordinary users must not modify directly"""
        pass

    # ==================== Lifecycle ====================

    @abstractmethod
    async def Start(self) -> None:
        pass

    @abstractmethod
    async def Stop(self) -> None:
        pass

    # ==================== Role Records ====================

    @abstractmethod
    async def Create(self, role_name: str, config: RoleConfig) -> None:
        pass

    @abstractmethod
    async def CreateOrReplace(self, role_name: str, config: RoleConfig) -> None:
        pass

    @abstractmethod
    async def Alter(self, role_name: str, update: RoleConfigUpdate) -> None:
        pass

    @abstractmethod
    async def Drop(self, role_name: str) -> None:
        pass

    @abstractmethod
    async def Exists(self, role_name: str) -> bool:
        pass

    @abstractmethod
    async def IsSuperuser(self, role_name: str) -> bool:
        pass

    @abstractmethod
    async def CanLogin(self, role_name: str) -> bool:
        pass

    # ==================== Hierarchy ====================

    @abstractmethod
    async def Grant(self, grantee_name: str, role_name: str) -> None:
        pass

    @abstractmethod
    async def Revoke(self, revokee_name: str, role_name: str) -> None:
        pass

    @abstractmethod
    async def GrantedRoles(self, grantee_name: str, mode: RecursiveRoleQuery = RecursiveRoleQuery.RECURSIVE) -> Set[str]:
        pass

    @abstractmethod
    async def AllRoles(self) -> Set[str]:
        pass

    # ==================== Attributes ====================

    @abstractmethod
    async def GetAttribute(self, role_name: str, attribute_name: str) -> Optional[str]:
        pass

    @abstractmethod
    async def SetAttribute(self, role_name: str, attribute_name: str, attribute_value: str) -> None:
        pass

    @abstractmethod
    async def RemoveAttribute(self, role_name: str, attribute_name: str) -> None:
        pass

    @abstractmethod
    async def AttributeForAll(self, attribute_name: str) -> Dict[str, str]:
        pass
