"""Dependency injection container for netmigo.

Owns the long-lived components (settings, connection manager, jump
pool, output store) so their lifetime follows the application that
created them instead of the process.
"""

from dataclasses import dataclass

from netmigo.config import Settings
from netmigo.services import ConnectionManager, JumpClientPool, OutputStore


@dataclass
class Dependencies:
    """Container for netmigo dependencies.

    Share one instance between devices that should share jump server
    connections.

    Example:
        deps = Dependencies.create()
        device = Device(Platform.LINUX, deps=deps)
        ...
        await deps.cleanup()
    """

    settings: Settings
    manager: ConnectionManager
    pool: JumpClientPool
    store: OutputStore

    @classmethod
    def create(cls) -> "Dependencies":
        """Create dependencies with settings from the environment.

        Returns:
            Initialized Dependencies instance
        """
        return cls.from_settings(Settings.from_env())

    @classmethod
    def from_settings(cls, settings: Settings) -> "Dependencies":
        """Create dependencies with custom settings.

        Args:
            settings: Custom Settings instance

        Returns:
            Dependencies wired from the settings
        """
        manager = ConnectionManager(retry_delay=settings.retry_delay)
        return cls(
            settings=settings,
            manager=manager,
            pool=JumpClientPool(manager),
            store=OutputStore(settings.output_dir),
        )

    async def cleanup(self) -> None:
        """Clean up resources (close all pooled jump connections)."""
        await self.pool.close_all()
