"""SSH connection manager with bounded retry and jump-server relays.

Direct dials are retried up to ``ConnectionConfig.attempts`` times with a
fixed backoff. A dial relayed through a jump server is not retried; it
races the hop's connect timeout instead, and is cancelled (tearing down
the half-open attempt) when the timeout wins.
"""

import asyncio
import logging
import os
from typing import Any

import asyncssh

from netmigo.exceptions import (
    AuthError,
    ConfigError,
    ConnectError,
    DialTimeoutError,
)
from netmigo.models import ConnectionConfig, SSHConnection

logger = logging.getLogger(__name__)

DIAL_ERRORS = (OSError, asyncssh.Error, asyncio.TimeoutError)


class ConnectionManager:
    """Dials SSH targets directly or through a chain of jump servers."""

    def __init__(self, retry_delay: float = 1.0) -> None:
        """Initialize the manager.

        Args:
            retry_delay: Seconds to wait between direct dial attempts
        """
        self.retry_delay = retry_delay
        logger.warning(
            "SSH host key verification DISABLED - remote host identity is "
            "trusted on first use."
        )

    async def connect(self, cfg: ConnectionConfig) -> SSHConnection:
        """Connect to a target, resolving its jump server chain first.

        Hop 0 (the outermost jump server, or the target itself when there
        is none) is dialled directly. Every later hop is dialled through
        the previous one. Connections opened for intermediate hops are
        owned by the returned handle.

        Args:
            cfg: Target configuration

        Returns:
            Handle over the connection to the final hop

        Raises:
            ConfigError: If any hop has no usable auth method
            AuthError: If a private key cannot be loaded
            ConnectError: If a hop cannot be reached
            DialTimeoutError: If a relayed hop exceeds its connect timeout
        """
        hops = cfg.chain()
        for hop in hops:
            self._check_auth(hop)
        # Keys for every hop are loaded before the first dial
        hop_options = [self._connect_options(hop) for hop in hops]

        tunnels: list[asyncssh.SSHClientConnection] = []
        client: asyncssh.SSHClientConnection | None = None
        try:
            for index, (hop, options) in enumerate(zip(hops, hop_options)):
                if client is None:
                    client = await self._connect_direct(hop, index, options)
                else:
                    tunnels.append(client)
                    client = await self._connect_relayed(client, hop, index, options)
        except BaseException:
            for conn in reversed(tunnels):
                conn.close()
            raise

        assert client is not None
        return SSHConnection(client=client, config=cfg, tunnels=tunnels)

    async def connect_through(
        self,
        parent: asyncssh.SSHClientConnection,
        cfg: ConnectionConfig,
        hop: int | None = None,
    ) -> SSHConnection:
        """Connect to a target through an existing jump connection.

        The parent connection is not owned by the returned handle.

        Args:
            parent: Connected jump server client
            cfg: Target configuration
            hop: Position of the target in its jump chain, for errors
        """
        client = await self._connect_relayed(
            parent, cfg, hop, self._connect_options(cfg)
        )
        return SSHConnection(client=client, config=cfg, jump=cfg.jump_server)

    async def _connect_direct(
        self,
        cfg: ConnectionConfig,
        hop: int | None,
        options: dict[str, Any],
    ) -> asyncssh.SSHClientConnection:
        attempts = cfg.attempts
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            logger.info(
                "Opening SSH connection to %s (attempt %d/%d)",
                cfg.key,
                attempt,
                attempts,
            )
            try:
                conn = await asyncssh.connect(
                    cfg.host,
                    connect_timeout=cfg.connect_timeout,
                    **options,
                )
            except DIAL_ERRORS as e:
                last_error = e
                logger.warning(
                    "Connection attempt %d/%d to %s failed: %s",
                    attempt,
                    attempts,
                    cfg.key,
                    e,
                )
                if attempt < attempts:
                    await asyncio.sleep(self.retry_delay)
                continue

            logger.info("SSH connection established to %s", cfg.key)
            return conn

        assert last_error is not None
        raise ConnectError(
            cfg.address, last_error, attempts=attempts, hop=hop
        ) from last_error

    async def _connect_relayed(
        self,
        parent: asyncssh.SSHClientConnection,
        cfg: ConnectionConfig,
        hop: int | None,
        options: dict[str, Any],
    ) -> asyncssh.SSHClientConnection:
        logger.info("Opening SSH connection to %s via jump server", cfg.key)

        try:
            # wait_for cancels the dial when the timeout wins
            conn = await asyncio.wait_for(
                asyncssh.connect(cfg.host, tunnel=parent, **options),
                timeout=cfg.connect_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(
                "Timed out connecting to %s via jump server after %ss",
                cfg.key,
                cfg.connect_timeout,
            )
            raise DialTimeoutError(cfg.address, cfg.connect_timeout, hop=hop) from e
        except DIAL_ERRORS as e:
            logger.error("Jump server dial to %s failed: %s", cfg.key, e)
            raise ConnectError(cfg.address, e, hop=hop) from e

        logger.info("SSH connection established to %s via jump server", cfg.key)
        return conn

    def check_auth(self, cfg: ConnectionConfig) -> None:
        """Check that every hop of a target's chain has usable auth.

        Configured private keys are loaded here as well. Does no network
        I/O, so callers can reject a config before dialling anything on
        its behalf.

        Raises:
            ConfigError: If a hop has neither key_path nor password, or
                the chain is cyclic
            AuthError: If a private key cannot be loaded
        """
        for hop in cfg.chain():
            self._check_auth(hop)
            if hop.key_path:
                self._load_key(hop.key_path)

    @staticmethod
    def _check_auth(cfg: ConnectionConfig) -> None:
        if not cfg.key_path and not cfg.password:
            raise ConfigError(
                f"No auth method provided for {cfg.key} (need key_path or password)"
            )

    def _connect_options(self, cfg: ConnectionConfig) -> dict[str, Any]:
        """Build asyncssh.connect keyword arguments for one hop.

        A private key is preferred when configured; the password, if any,
        is offered as well.
        """
        self._check_auth(cfg)
        options: dict[str, Any] = {
            "port": cfg.port,
            "username": cfg.username or None,
            "known_hosts": None,
            "password": cfg.password or None,
            "client_keys": None,
        }
        if cfg.key_path:
            options["client_keys"] = [self._load_key(cfg.key_path)]
        return options

    @staticmethod
    def _load_key(key_path: str) -> asyncssh.SSHKey:
        path = os.path.expanduser(key_path)
        try:
            return asyncssh.read_private_key(path)
        except (OSError, asyncssh.KeyImportError) as e:
            raise AuthError(f"Cannot load private key {key_path}: {e}") from e
