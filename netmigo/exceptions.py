"""Exceptions raised by netmigo.

Every error the library raises derives from NetmigoError so callers can
catch the whole family at once. Where a builtin exception describes the
same failure (ValueError, TimeoutError, OSError) it is used as a second
base so existing handlers keep working.
"""


class NetmigoError(Exception):
    """Base exception for netmigo errors."""

    pass


class ConfigError(NetmigoError, ValueError):
    """Connection configuration is missing or invalid."""

    pass


class AuthError(ConfigError):
    """Authentication material could not be loaded."""

    pass


class ConnectError(NetmigoError):
    """Failed to establish an SSH connection."""

    def __init__(
        self,
        host: str,
        original_error: Exception,
        attempts: int = 1,
        hop: int | None = None,
    ):
        """Initialize connection error.

        Args:
            host: Address (host:port) that could not be reached
            original_error: Last underlying exception
            attempts: Number of dial attempts made
            hop: Index of the failing hop in a jump chain, if any
        """
        self.host = host
        self.original_error = original_error
        self.attempts = attempts
        self.hop = hop
        where = f" (hop {hop})" if hop is not None else ""
        super().__init__(
            f"Cannot connect to {host}{where} after {attempts} attempt(s): "
            f"{original_error}"
        )


class NetmigoTimeoutError(NetmigoError, TimeoutError):
    """An operation ran out of time."""

    pass


class DialTimeoutError(NetmigoTimeoutError):
    """A relayed dial through a jump server exceeded the connect timeout."""

    def __init__(self, host: str, timeout: float, hop: int | None = None):
        self.host = host
        self.timeout = timeout
        self.hop = hop
        where = f" (hop {hop})" if hop is not None else ""
        super().__init__(
            f"Timed out connecting to {host}{where} via jump server "
            f"after {timeout}s"
        )


class NoDataTimeoutError(NetmigoTimeoutError):
    """No output arrived before the first-byte timeout."""

    def __init__(self, command: str, timeout: float, artifact=None):
        self.command = command
        self.timeout = timeout
        self.artifact = artifact
        super().__init__(f"No data received for {command!r} within {timeout}s")


class ProtocolError(NetmigoError):
    """The remote side violated the expected wire exchange."""

    pass


class TransportError(NetmigoError, OSError):
    """Local file or SSH transport I/O failed."""

    def __init__(self, message: str, partial: list | None = None):
        super().__init__(message)
        self.partial = partial or []


class NotConnectedError(NetmigoError):
    """Operation attempted on a device that is not connected."""

    pass
