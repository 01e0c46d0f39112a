"""SCP sink: download one regular file with the legacy scp protocol.

The remote ``scp -f`` process is the source. The exchange, in order:

1. sink sends ``\\0`` (ready)
2. source sends ``C<mode> <size> <name>\\n``
3. sink sends ``\\0`` (header ack)
4. source sends exactly ``size`` bytes
5. sink sends ``\\0`` (content ack)
6. source may send a trailing status byte, then exits

Any deviation from the header format is a ProtocolError.
"""

import asyncio
import logging
import re
import shlex
from pathlib import Path

import asyncssh

from netmigo.exceptions import ConfigError, ProtocolError, TransportError
from netmigo.models import TransferResult
from netmigo.utils.validation import validate_remote_path

logger = logging.getLogger(__name__)

SCP_HEADER = re.compile(rb"C([0-7]{1,4}) (\d+) ([^\n]+)\n")
SCP_WARNING = 0x01
SCP_ERROR = 0x02


class FileTransferClient:
    """Downloads files by acting as the sink of an ``scp -f`` exchange."""

    def __init__(
        self,
        chunk_size: int = 32768,
        status_timeout: float = 2.0,
        exit_grace: float = 5.0,
    ) -> None:
        """Initialize the client.

        Args:
            chunk_size: Bytes read per chunk while copying content
            status_timeout: Seconds to wait for the trailing status byte
            exit_grace: Seconds to wait for the remote scp to exit
        """
        self.chunk_size = chunk_size
        self.status_timeout = status_timeout
        self.exit_grace = exit_grace

    async def download(
        self,
        conn: asyncssh.SSHClientConnection,
        remote_path: str,
        local_path: str | Path,
    ) -> TransferResult:
        """Download one regular file.

        Args:
            conn: Connected SSH client
            remote_path: File to fetch from the remote host
            local_path: Destination; created or truncated

        Returns:
            TransferResult describing the received file

        Raises:
            ConfigError: If the remote path is invalid
            ProtocolError: If the source breaks the wire exchange
            TransportError: If the session or a local write fails
        """
        try:
            validate_remote_path(remote_path)
        except ValueError as e:
            raise ConfigError(str(e)) from e

        local = Path(local_path)
        command = f"scp -f {shlex.quote(remote_path)}"
        logger.info("Starting SCP download of %s to %s", remote_path, local)

        try:
            process = await conn.create_process(command, encoding=None)
        except (OSError, asyncssh.Error) as e:
            raise TransportError(f"Failed to start SCP session: {e}") from e

        stderr_task = asyncio.create_task(self._log_stderr(process))
        try:
            result = await self._receive(process, remote_path, local)
        finally:
            await self._finish(process, stderr_task)

        try:
            local.chmod(result.mode)
        except OSError as e:
            logger.warning("Failed to set file mode %o on %s: %s", result.mode, local, e)

        logger.info("SCP download complete (%d bytes to %s)", result.size, local)
        return result

    async def _receive(
        self,
        process: asyncssh.SSHClientProcess,
        remote_path: str,
        local: Path,
    ) -> TransferResult:
        await self._send_ack(process, "readiness signal")
        mode, size, name = await self._read_header(process)
        logger.debug("SCP metadata: mode=%o size=%d name=%s", mode, size, name)
        await self._send_ack(process, "header ack")

        await self._copy(process, remote_path, local, size)

        try:
            await self._send_ack(process, "content ack")
        except TransportError as e:
            logger.warning("Failed to send final ack, file might be complete: %s", e)

        await self._read_status(process)
        return TransferResult(local_path=local, remote_name=name, size=size, mode=mode)

    async def _read_header(self, process: asyncssh.SSHClientProcess) -> tuple[int, int, str]:
        try:
            header = await process.stdout.readline()
        except (OSError, asyncssh.Error) as e:
            raise TransportError(f"Failed to read SCP metadata: {e}") from e

        if not header:
            raise ProtocolError("SCP source closed before sending file metadata")

        if header[0] in (SCP_WARNING, SCP_ERROR):
            message = header[1:].decode("utf-8", errors="replace").strip()
            raise ProtocolError(f"SCP source reported an error: {message}")

        if header.startswith(b"D"):
            raise ProtocolError("Directory transfer is not supported")

        match = SCP_HEADER.fullmatch(header)
        if match is None:
            raise ProtocolError(f"Failed to parse SCP metadata: {header!r}")

        mode = int(match.group(1), 8)
        size = int(match.group(2))
        name = match.group(3).decode("utf-8", errors="replace")
        return mode, size, name

    async def _copy(
        self,
        process: asyncssh.SSHClientProcess,
        remote_path: str,
        local: Path,
        size: int,
    ) -> None:
        """Copy exactly ``size`` bytes into ``local``, removing it on failure."""
        remaining = size
        try:
            with local.open("wb") as out:
                while remaining:
                    chunk = await process.stdout.readexactly(min(self.chunk_size, remaining))
                    out.write(chunk)
                    remaining -= len(chunk)
        except asyncio.IncompleteReadError as e:
            local.unlink(missing_ok=True)
            copied = size - remaining + len(e.partial)
            raise ProtocolError(
                f"SCP content for {remote_path} ended after {copied} of {size} bytes"
            ) from e
        except (OSError, asyncssh.Error) as e:
            local.unlink(missing_ok=True)
            raise TransportError(
                f"Failed to copy {remote_path} to {local} "
                f"(copied {size - remaining} bytes): {e}"
            ) from e

    async def _read_status(self, process: asyncssh.SSHClientProcess) -> None:
        """Best-effort read of the source's trailing status byte."""
        try:
            status = await asyncio.wait_for(process.stdout.read(1), self.status_timeout)
        except asyncio.TimeoutError:
            logger.debug("No trailing SCP status byte received")
            return
        except (OSError, asyncssh.Error) as e:
            logger.debug("Trailing SCP status read failed (expected at EOF): %s", e)
            return

        if status and status != b"\x00":
            logger.warning("SCP source sent non-zero trailing status %r", status)

    @staticmethod
    async def _send_ack(process: asyncssh.SSHClientProcess, what: str) -> None:
        try:
            process.stdin.write(b"\x00")
            await process.stdin.drain()
        except (OSError, asyncssh.Error) as e:
            raise TransportError(f"Failed to send {what}: {e}") from e

    async def _finish(
        self,
        process: asyncssh.SSHClientProcess,
        stderr_task: "asyncio.Task[None]",
    ) -> None:
        """Close the write side and wait, bounded, for the remote scp to exit."""
        try:
            process.stdin.write_eof()
        except (OSError, asyncssh.Error) as e:
            logger.debug("Failed to close SCP stdin: %s", e)

        try:
            completed = await asyncio.wait_for(process.wait(), timeout=self.exit_grace)
        except asyncio.TimeoutError:
            logger.warning("Timeout waiting for SCP session to exit")
        except (OSError, asyncssh.Error) as e:
            logger.warning("SCP session wait returned an error: %s", e)
        else:
            if completed.exit_status not in (0, None):
                logger.warning("SCP session exited with status %s", completed.exit_status)
        finally:
            process.close()
            if not stderr_task.done():
                stderr_task.cancel()
            await asyncio.gather(stderr_task, return_exceptions=True)

    @staticmethod
    async def _log_stderr(process: asyncssh.SSHClientProcess) -> None:
        try:
            while True:
                line = await process.stderr.readline()
                if not line:
                    return
                logger.error("SCP STDERR: %s", line.decode("utf-8", errors="replace").rstrip())
        except (OSError, asyncssh.Error) as e:
            logger.error("SCP stderr reader error: %s", e)
