"""File transfer data models."""

from dataclasses import dataclass
from pathlib import Path


@dataclass
class TransferResult:
    """Result of an SCP download."""

    local_path: Path
    remote_name: str
    size: int
    mode: int
