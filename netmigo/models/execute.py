"""Command execution data models."""

import secrets
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExecuteOptions:
    """Per-call timing for interactive execution.

    ``timeout`` is the inactivity window after output has started.
    ``first_byte_timeout`` is how long to wait for any output at all.
    """

    timeout: float = 10.0
    first_byte_timeout: float = 300.0

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        if self.first_byte_timeout <= 0:
            raise ValueError(
                f"first_byte_timeout must be > 0, got {self.first_byte_timeout}"
            )


@dataclass(frozen=True)
class Sentinel:
    """Marker line that delimits one command's output in a shared shell."""

    index: int
    template: str = "echo {marker}"
    nonce: str = field(default_factory=lambda: secrets.token_hex(6))

    @property
    def marker(self) -> str:
        return f"__NETMIGO_{self.nonce}_{self.index}__"

    @property
    def command(self) -> str:
        """Text written to the shell to make it emit the marker."""
        return self.template.format(marker=self.marker)

    def matches(self, line: str) -> bool:
        """Check whether an output line is this sentinel.

        Accepts the bare marker, or a line whose last token is the marker
        (the marker printed after a prompt, or the sentinel command echoed
        by the device).
        """
        text = line.strip()
        if text == self.marker:
            return True
        return text.endswith(self.marker) and text[: -len(self.marker)].endswith(
            (" ", "#", ">", "$")
        )
