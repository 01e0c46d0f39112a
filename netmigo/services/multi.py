"""Several commands over one shared interactive shell.

Each command is followed by a sentinel: a harmless shell line that
makes the device print a per-command marker. A single reader feeds all
output into one queue and one consumer splits it into per-command
artifacts at the sentinel lines. The next command is only written once
the current command's boundary has resolved, so the shell never has two
writers.

A boundary resolves when the command's own sentinel is seen, when the
output stream ends, or when the per-command inactivity timer fires. In
the last case the output is kept but may be truncated.
"""

import asyncio
import logging
import secrets
from pathlib import Path
from typing import TextIO

import asyncssh

from netmigo.exceptions import TransportError
from netmigo.models import ExecuteOptions, Sentinel
from netmigo.profiles import DeviceProfile
from netmigo.services.artifacts import OutputStore
from netmigo.services.reader import LineReader, StreamEnd
from netmigo.services.shell import close_shell, open_shell, send_line

logger = logging.getLogger(__name__)


class MultiCommandExecutor:
    """Runs an ordered list of commands in one PTY shell session."""

    def __init__(self, store: OutputStore, profile: DeviceProfile) -> None:
        self.store = store
        self.profile = profile

    async def execute(
        self,
        conn: asyncssh.SSHClientConnection,
        commands: list[str],
        options: ExecuteOptions | None = None,
    ) -> list[Path]:
        """Run commands in order and return one output file per command.

        Args:
            conn: Connected SSH client
            commands: Command lines, sent one at a time
            options: Per-command timing; defaults to the profile's
                multi-command options

        Returns:
            Output artifact paths, in command order

        Raises:
            TransportError: If the shell cannot be set up, a write fails,
                or the output stream ends before every command ran. The
                artifacts collected so far are in ``partial``.
        """
        if not commands:
            return []

        options = options or self.profile.multi_options
        nonce = secrets.token_hex(6)
        sentinels: list[Sentinel] = []
        artifacts: list[Path] = []

        process = await open_shell(conn, self.profile.term_type)
        reader = LineReader(process.stdout).start()
        try:
            await self._initial_drain(process, reader)

            for index, command in enumerate(commands):
                if reader.ended is not None:
                    raise TransportError(
                        f"Shell output ended before command {index} ({command!r}) "
                        f"was sent: {reader.ended.error or 'EOF'}",
                        partial=artifacts,
                    )

                sentinel = Sentinel(
                    index=index,
                    template=self.profile.sentinel_template,
                    nonce=nonce,
                )
                sentinels.append(sentinel)

                logger.info("Sending command %d: %r", index, command)
                try:
                    await send_line(process, command)
                    await send_line(process, sentinel.command)
                except TransportError as e:
                    e.partial = artifacts
                    raise

                path = self.store.create(index)
                try:
                    with path.open("a", encoding="utf-8", newline="") as out:
                        seen = await self._collect(reader, out, sentinels, options, command)
                except OSError as e:
                    raise TransportError(
                        f"Error writing to output file {path}: {e}", partial=artifacts
                    ) from e

                artifacts.append(path)
                logger.info(
                    "Command %d output saved (output_file=%s, sentinel_seen=%s)",
                    index,
                    path,
                    seen,
                )
        finally:
            await close_shell(process, reader, self.profile.exit_grace)

        logger.info("All %d command(s) complete in a single shell", len(commands))
        return artifacts

    async def _initial_drain(
        self,
        process: asyncssh.SSHClientProcess,
        reader: LineReader,
    ) -> None:
        """Discard banner and prompt output before the first command."""
        await send_line(process, "")
        discarded = await reader.drain(self.profile.drain_window)
        logger.debug("Initial drain discarded %d line(s)", len(discarded))

    async def _collect(
        self,
        reader: LineReader,
        out: TextIO,
        sentinels: list[Sentinel],
        options: ExecuteOptions,
        command: str,
    ) -> bool:
        """Copy one command's output to ``out`` until its boundary.

        Lines matching any sentinel issued so far are dropped, so a late
        echo of an earlier sentinel never lands in a later artifact.

        Returns:
            True if the command's own sentinel was seen
        """
        own = sentinels[-1]
        timeout = options.first_byte_timeout

        while True:
            try:
                item = await reader.get(timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Timer expired before sentinel was seen for %r; "
                    "output might be incomplete",
                    command,
                )
                return False

            if isinstance(item, StreamEnd):
                if item.error is not None:
                    logger.error("Error reading output for %r: %s", command, item.error)
                else:
                    logger.warning("Output ended while collecting for %r", command)
                return False

            timeout = options.timeout
            if own.matches(item):
                logger.debug("Sentinel detected for %r", command)
                return True
            if any(sentinel.matches(item) for sentinel in sentinels):
                continue
            out.write(item)
            out.flush()
