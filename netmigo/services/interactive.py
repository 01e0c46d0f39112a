"""Single interactive command execution.

The remote shell gives no reliable end-of-output marker, so completion
is detected by silence: output is deemed complete once no new line has
arrived for the inactivity timeout. This is a heuristic, not a
completion protocol; a command that pauses longer than the timeout is
cut short.
"""

import asyncio
import logging
from pathlib import Path
from typing import TextIO

import asyncssh

from netmigo.exceptions import NoDataTimeoutError, TransportError
from netmigo.models import ExecuteOptions
from netmigo.profiles import DeviceProfile
from netmigo.services.artifacts import OutputStore
from netmigo.services.reader import LineReader, StreamEnd
from netmigo.services.shell import close_shell, open_shell, send_line

logger = logging.getLogger(__name__)


class InteractiveExecutor:
    """Runs one command in a PTY shell and captures its output to a file."""

    def __init__(self, store: OutputStore, profile: DeviceProfile) -> None:
        self.store = store
        self.profile = profile

    async def execute(
        self,
        conn: asyncssh.SSHClientConnection,
        command: str,
        options: ExecuteOptions | None = None,
    ) -> Path:
        """Run a command and return the file holding its output.

        Args:
            conn: Connected SSH client
            command: Command line to send to the shell
            options: Timing; defaults to the profile's execute options

        Returns:
            Path of the output artifact

        Raises:
            TransportError: If the shell cannot be set up or read
            NoDataTimeoutError: If no output arrives before the
                first-byte timeout; no artifact is kept
        """
        options = options or self.profile.execute_options
        path = self.store.create()

        try:
            out = path.open("a", encoding="utf-8", newline="")
        except OSError as e:
            raise TransportError(f"Failed to open output file {path}: {e}") from e

        try:
            with out:
                process = await open_shell(conn, self.profile.term_type)
                reader = LineReader(process.stdout).start()
                try:
                    await self._capture(process, reader, out, command, options)
                finally:
                    await close_shell(process, reader, self.profile.exit_grace)
        except NoDataTimeoutError:
            # Only banner or prompt noise was captured
            path.unlink(missing_ok=True)
            raise

        logger.info("Command execution complete (output_file=%s)", path)
        return path

    async def _capture(
        self,
        process: asyncssh.SSHClientProcess,
        reader: LineReader,
        out: TextIO,
        command: str,
        options: ExecuteOptions,
    ) -> None:
        # Flush banner/prompt noise; it stays in the artifact
        await send_line(process, "")
        _append(out, await reader.drain(self.profile.settle_delay))

        logger.debug("Sending command %r", command)
        await send_line(process, command)

        timeout = options.first_byte_timeout
        received = 0
        while True:
            try:
                item = await reader.get(timeout)
            except asyncio.TimeoutError:
                if received == 0:
                    logger.error(
                        "No data received for %r within %ss",
                        command,
                        options.first_byte_timeout,
                    )
                    raise NoDataTimeoutError(command, options.first_byte_timeout) from None
                logger.info(
                    "Inactivity timer expired after %d line(s), "
                    "assuming command output is complete",
                    received,
                )
                return

            if isinstance(item, StreamEnd):
                if item.error is not None:
                    raise TransportError(
                        f"Error reading output of {command!r}: {item.error}"
                    ) from item.error
                logger.debug("Reached end of stream for %r", command)
                return

            _append(out, [item])
            received += 1
            timeout = options.timeout


def _append(out: TextIO, lines: list[str]) -> None:
    """Append lines to an artifact as they arrive."""
    try:
        out.writelines(lines)
        out.flush()
    except OSError as e:
        raise TransportError(f"Error writing to output file {out.name}: {e}") from e
