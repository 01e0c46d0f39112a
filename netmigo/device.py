"""Device façade: one connected target plus the executors that use it."""

import logging
from dataclasses import replace
from pathlib import Path
from types import TracebackType

from netmigo.dependencies import Dependencies
from netmigo.exceptions import NotConnectedError
from netmigo.models import ConnectionConfig, ExecuteOptions, SSHConnection, TransferResult
from netmigo.profiles import DeviceProfile, Platform, get_profile
from netmigo.services import FileTransferClient, InteractiveExecutor, MultiCommandExecutor

logger = logging.getLogger(__name__)


class Device:
    """A network device or host driven over interactive SSH sessions.

    A target with a jump server is reached through a connection shared
    via the JumpClientPool of ``deps``; other hops are owned by this
    device until disconnect().
    """

    def __init__(
        self,
        platform: Platform | str | DeviceProfile,
        deps: Dependencies | None = None,
    ) -> None:
        """Initialize the device.

        Args:
            platform: Platform (or its name) selecting the profile, or a
                profile to use as-is. A profile looked up by platform
                takes its single-command timing from the settings.
            deps: Shared dependencies; created from the environment if omitted
        """
        self.deps = deps or Dependencies.create()
        if isinstance(platform, DeviceProfile):
            self.profile = platform
        else:
            self.profile = replace(
                get_profile(platform),
                execute_options=self.deps.settings.execute_options,
            )
        self._connection: SSHConnection | None = None
        self._interactive = InteractiveExecutor(self.deps.store, self.profile)
        self._multi = MultiCommandExecutor(self.deps.store, self.profile)
        self._transfer = FileTransferClient()

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @property
    def name(self) -> str:
        return self.profile.platform.value

    async def connect(self, cfg: ConnectionConfig) -> None:
        """Connect to the target described by ``cfg``.

        Raises:
            ConfigError: If auth material is missing or invalid
            ConnectError: If any hop cannot be reached
            DialTimeoutError: If the relayed dial exceeds its timeout
        """
        if self._connection is not None:
            logger.info("Replacing existing %s connection", self.name)
            await self.disconnect()

        logger.info("Connecting to %s device %s", self.name, cfg.key)
        # Reject missing auth on any hop before the pool dials the jump server
        self.deps.manager.check_auth(cfg)
        if cfg.jump_server is None:
            self._connection = await self.deps.manager.connect(cfg)
            return

        hop = len(cfg.chain()) - 1
        jump_client = await self.deps.pool.get(cfg.jump_server)
        try:
            self._connection = await self.deps.manager.connect_through(
                jump_client, cfg, hop=hop
            )
        except Exception:
            await self.deps.pool.release(cfg.jump_server)
            raise

    async def disconnect(self) -> None:
        """Close the connection and release any pooled jump connection.

        Safe to call more than once.
        """
        connection = self._connection
        if connection is None:
            return
        self._connection = None

        logger.info("Disconnecting %s device %s", self.name, connection.config.key)
        try:
            await connection.close()
        finally:
            if connection.jump is not None:
                await self.deps.pool.release(connection.jump)

    def _require_connection(self) -> SSHConnection:
        if self._connection is None:
            raise NotConnectedError(f"Not connected ({self.name} device)")
        return self._connection

    async def execute(self, command: str, options: ExecuteOptions | None = None) -> Path:
        """Run one command and return the file holding its output."""
        connection = self._require_connection()
        logger.info("Executing command on %s: %r", self.name, command)
        return await self._interactive.execute(connection.client, command, options)

    async def execute_multiple(
        self,
        commands: list[str],
        options: ExecuteOptions | None = None,
    ) -> list[Path]:
        """Run commands in one shell and return one output file per command."""
        connection = self._require_connection()
        logger.info("Executing %d command(s) on %s", len(commands), self.name)
        return await self._multi.execute(connection.client, commands, options)

    async def download(self, remote_path: str, local_path: str | Path) -> TransferResult:
        """Download one remote file over SCP."""
        connection = self._require_connection()
        logger.info(
            "Downloading %s from %s to %s", remote_path, connection.config.key, local_path
        )
        return await self._transfer.download(connection.client, remote_path, local_path)

    async def __aenter__(self) -> "Device":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.disconnect()


def new_device(
    platform: Platform | str,
    deps: Dependencies | None = None,
) -> Device:
    """Create a Device for a platform.

    Raises:
        ValueError: If the platform is not supported
    """
    return Device(platform, deps=deps)
