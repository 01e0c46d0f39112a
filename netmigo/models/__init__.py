"""Data models for netmigo."""

from netmigo.models.connection import (
    ConnectionConfig,
    SharedJumpConnection,
    SSHConnection,
)
from netmigo.models.execute import ExecuteOptions, Sentinel
from netmigo.models.transfer import TransferResult

__all__ = [
    "ConnectionConfig",
    "ExecuteOptions",
    "Sentinel",
    "SharedJumpConnection",
    "SSHConnection",
    "TransferResult",
]
