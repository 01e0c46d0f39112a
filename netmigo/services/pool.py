"""Reference-counted pool of shared jump-server connections.

Locking Strategy:
- `_meta_lock`: Protects the _entries dict structure (no network I/O)
- Per-entry locks: Protect connection creation and the refcount of one key
- The meta-lock is never held while waiting for an entry lock

Lifetime:
- An entry is connected at most once, by the first get() for its key
- The connection is closed and evicted as soon as its refcount drops to 0
"""

import asyncio
import logging

import asyncssh

from netmigo.models import ConnectionConfig, SharedJumpConnection, SSHConnection
from netmigo.services.connector import ConnectionManager

logger = logging.getLogger(__name__)


class JumpClientPool:
    """Shares jump-server connections between the sessions relayed through them."""

    def __init__(self, manager: ConnectionManager) -> None:
        """Initialize the pool.

        Args:
            manager: Connection manager used to dial jump servers
        """
        self.manager = manager
        self._entries: dict[str, SharedJumpConnection] = {}
        self._meta_lock = asyncio.Lock()  # Protects _entries

    async def _get_entry(self, key: str) -> SharedJumpConnection:
        """Get or create the (possibly unconnected) entry for a key."""
        async with self._meta_lock:
            entry = self._entries.get(key)
            if entry is None or entry.closed:
                entry = SharedJumpConnection()
                self._entries[key] = entry
            return entry

    async def get(self, cfg: ConnectionConfig) -> asyncssh.SSHClientConnection:
        """Get the shared connection for a jump server, connecting if needed.

        Args:
            cfg: Jump server configuration

        Returns:
            The shared client connection (do not close it; call release)

        Raises:
            ConnectError: If the first connection attempt fails
        """
        key = cfg.key

        while True:
            entry = await self._get_entry(key)
            async with entry.lock:
                # Lost a race with the final release of this entry
                if entry.closed:
                    continue

                if entry.connection is None:
                    try:
                        entry.connection = await self.manager.connect(cfg)
                    except Exception:
                        await self._discard(key, entry)
                        raise
                    logger.info("Jump connection to %s added to pool", key)
                else:
                    logger.debug("Reusing jump connection to %s", key)

                entry.refcount += 1
                logger.debug(
                    "Jump connection %s acquired (refcount=%d, pool_size=%d)",
                    key,
                    entry.refcount,
                    len(self._entries),
                )
                return entry.connection.client

    async def release(self, cfg: ConnectionConfig) -> None:
        """Drop one reference to a jump server connection.

        The connection is closed and evicted when no references remain.

        Args:
            cfg: Jump server configuration passed to get()
        """
        key = cfg.key
        async with self._meta_lock:
            entry = self._entries.get(key)
        if entry is None:
            logger.debug("No jump connection to release for %s (not in pool)", key)
            return

        async with entry.lock:
            if entry.closed:
                return
            entry.refcount = max(0, entry.refcount - 1)
            logger.debug("Jump connection %s released (refcount=%d)", key, entry.refcount)
            if entry.refcount > 0:
                return
            entry.closed = True
            connection = entry.connection

        await self._discard(key, entry)
        if connection is not None:
            logger.info("Closing jump connection to %s (no references left)", key)
            await connection.close()

    async def _discard(self, key: str, entry: SharedJumpConnection) -> None:
        """Remove an entry from the map if it is still the current one."""
        entry.closed = True
        async with self._meta_lock:
            if self._entries.get(key) is entry:
                del self._entries[key]

    async def close_all(self) -> None:
        """Close every pooled connection regardless of refcount."""
        async with self._meta_lock:
            entries = list(self._entries.items())
            self._entries.clear()

        if entries:
            logger.info("Closing all %d jump connection(s)", len(entries))

        for key, entry in entries:
            async with entry.lock:
                entry.closed = True
                entry.refcount = 0
                connection: SSHConnection | None = entry.connection
            if connection is not None:
                logger.debug("Closing jump connection to %s", key)
                await connection.close()

    def refcount(self, cfg: ConnectionConfig) -> int:
        """Return the current refcount for a jump server (0 if not pooled)."""
        entry = self._entries.get(cfg.key)
        return entry.refcount if entry is not None else 0

    @property
    def pool_size(self) -> int:
        """Return the current number of pooled jump connections."""
        return len(self._entries)

    @property
    def active_keys(self) -> list[str]:
        """Return the keys of pooled jump connections."""
        return list(self._entries.keys())
