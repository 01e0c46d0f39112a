"""Interactive shell session helpers shared by the executors."""

import asyncio
import logging

import asyncssh

from netmigo.exceptions import TransportError
from netmigo.services.reader import LineReader

logger = logging.getLogger(__name__)

# RFC 4254 terminal mode opcodes
ECHO = 53
TTY_OP_ISPEED = 128
TTY_OP_OSPEED = 129

TERMINAL_MODES = {ECHO: 0, TTY_OP_ISPEED: 14400, TTY_OP_OSPEED: 14400}
TERM_SIZE = (80, 40)


async def open_shell(
    conn: asyncssh.SSHClientConnection,
    term_type: str,
) -> asyncssh.SSHClientProcess:
    """Start an interactive shell on a PTY with echo disabled.

    Raises:
        TransportError: If the session, PTY or shell cannot be set up.
    """
    logger.debug("Requesting PTY (%s %dx%d) and interactive shell", term_type, *TERM_SIZE)
    try:
        process = await conn.create_process(
            term_type=term_type,
            term_size=TERM_SIZE,
            term_modes=TERMINAL_MODES,
            encoding="utf-8",
            errors="replace",
        )
    except (OSError, asyncssh.Error) as e:
        logger.error("Failed to start interactive shell: %s", e)
        raise TransportError(f"Failed to start interactive shell: {e}") from e
    return process


async def send_line(process: asyncssh.SSHClientProcess, text: str) -> None:
    """Write one line to the shell.

    Raises:
        TransportError: If the write fails.
    """
    try:
        process.stdin.write(text + "\n")
        await process.stdin.drain()
    except (OSError, asyncssh.Error) as e:
        raise TransportError(f"Failed to send {text!r}: {e}") from e


async def close_shell(
    process: asyncssh.SSHClientProcess,
    reader: LineReader,
    grace: float,
) -> None:
    """Leave the shell and wait, within ``grace`` seconds, for it to end.

    Output arriving after "exit" is discarded. Errors here are expected
    noise of the teardown handshake and are only logged.
    """
    try:
        process.stdin.write("exit\n")
        process.stdin.write_eof()
    except (OSError, asyncssh.Error) as e:
        logger.warning("Failed to send exit command: %s", e)

    try:
        discarded = await reader.drain(grace)
        if discarded:
            logger.debug("Discarded %d line(s) received after exit", len(discarded))
        if reader.ended is None:
            logger.warning("Timeout waiting for shell output to end after exit")
        elif reader.ended.error is not None:
            logger.warning("Shell output ended with error after exit: %s", reader.ended.error)

        try:
            completed = await asyncio.wait_for(process.wait(), timeout=grace)
        except asyncio.TimeoutError:
            logger.warning("Timeout waiting for session to complete after exit")
        except (OSError, asyncssh.Error) as e:
            logger.warning(
                "Session wait completed with error (often expected after exit): %s", e
            )
        else:
            if completed.exit_status not in (0, None):
                logger.warning(
                    "Session exited with status %s (often expected after exit)",
                    completed.exit_status,
                )
    finally:
        await reader.stop()
        process.close()
