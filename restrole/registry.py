"""
RestRole - Role Manager Registry

Process-wide registry of role manager providers, keyed by qualified name.
The host creates and starts the configured provider with Initialize and
stops it with Teardown.
"""

import logging
from typing import Any, Callable, Dict, Optional

from restrole.exceptions import RoleManagerError, UnknownRoleManagerError

logger = logging.getLogger(__name__)


class RoleManagerRegistry:
    """
    Maps provider names to factories and tracks the active provider
    """

    def __init__(self):
        self.factories: Dict[str, Callable[..., Any]] = {}
        self.active: Optional[Any] = None

    def Register(self, name: str, factory: Callable[..., Any]) -> None:
        """
        Register a provider factory

        Args:
            name: Qualified provider name
            factory: Callable building the provider from its collaborators
        """
        self.factories[name] = factory
        logger.debug(f"Registered role manager '{name}'")

    def Create(self, name: str, *args, **kwargs) -> Any:
        """
        Build a provider without starting it

        Raises:
            UnknownRoleManagerError: No factory registered under name
        """
        factory = self.factories.get(name)
        if factory is None:
            raise UnknownRoleManagerError(f"Role manager '{name}' is not registered")
        return factory(*args, **kwargs)

    async def Initialize(self, name: str, *args, **kwargs) -> Any:
        """
        Build and start a provider, making it the active one

        Returns:
            The started provider

        Raises:
            RoleManagerError: Another provider is already active
            UnknownRoleManagerError: No factory registered under name
        """
        if self.active is not None:
            raise RoleManagerError(f"Role manager '{self.active.QualifiedName()}' is already active")

        manager = self.Create(name, *args, **kwargs)
        await manager.Start()
        self.active = manager
        logger.info(f"Role manager '{name}' started")
        return manager

    async def Teardown(self) -> None:
        """Stop and forget the active provider, if any"""
        if self.active is None:
            return

        manager, self.active = self.active, None
        await manager.Stop()
        logger.info(f"Role manager '{manager.QualifiedName()}' stopped")

    def ListProviders(self) -> Dict[str, str]:
        """List registered provider names with their factory names"""
        return {name: getattr(factory, "__name__", repr(factory)) for name, factory in self.factories.items()}


# Global registry instance
registry = RoleManagerRegistry()
