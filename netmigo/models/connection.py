"""Connection configuration and connection handle models."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from netmigo.exceptions import ConfigError

if TYPE_CHECKING:
    import asyncssh

logger = logging.getLogger(__name__)


@dataclass
class ConnectionConfig:
    """SSH target configuration.

    A config may point at a jump server through ``jump_server``, which is
    itself a ConnectionConfig. The resulting chain must be finite.
    """

    host: str
    username: str = ""
    password: str | None = None
    key_path: str | None = None
    port: int = 22
    jump_server: Optional["ConnectionConfig"] = None
    max_retry: int = 3
    connect_timeout: float = 10.0

    @property
    def address(self) -> str:
        """Return host:port for log and error messages."""
        return f"{self.host}:{self.port}"

    @property
    def key(self) -> str:
        """Return the pool key (username@host:port)."""
        return f"{self.username}@{self.host}:{self.port}"

    @property
    def attempts(self) -> int:
        """Return the number of direct dial attempts (at least 1)."""
        return max(1, self.max_retry)

    def chain(self) -> list["ConnectionConfig"]:
        """Return hops from the outermost jump server to this target.

        Raises:
            ConfigError: If the jump server chain loops back on itself
        """
        hops: list[ConnectionConfig] = []
        seen: set[int] = set()
        current: ConnectionConfig | None = self
        while current is not None:
            if id(current) in seen:
                raise ConfigError(f"Jump server chain for {self.address} is cyclic")
            seen.add(id(current))
            hops.append(current)
            current = current.jump_server
        hops.reverse()
        return hops


@dataclass
class SSHConnection:
    """Handle over an authenticated SSH connection.

    Owns the client connection and any intermediate hop connections that
    were opened to reach it. A pooled jump server is not owned; its
    config is kept in ``jump`` so it can be released on disconnect.
    """

    client: "asyncssh.SSHClientConnection"
    config: ConnectionConfig
    tunnels: list["asyncssh.SSHClientConnection"] = field(default_factory=list)
    jump: ConnectionConfig | None = None
    closed: bool = False

    async def close(self) -> None:
        """Close the client, then owned tunnels innermost first."""
        if self.closed:
            return
        self.closed = True
        for conn in [self.client, *reversed(self.tunnels)]:
            conn.close()
            try:
                await conn.wait_closed()
            except OSError as e:
                logger.debug("Error waiting for connection close: %s", e)


@dataclass
class SharedJumpConnection:
    """A pooled jump-server connection with a reference count."""

    connection: SSHConnection | None = None
    refcount: int = 0
    closed: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
