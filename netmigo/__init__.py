"""netmigo: interactive SSH command automation for network devices and hosts."""

from netmigo.config import Settings
from netmigo.dependencies import Dependencies
from netmigo.device import Device, new_device
from netmigo.exceptions import (
    AuthError,
    ConfigError,
    ConnectError,
    DialTimeoutError,
    NetmigoError,
    NetmigoTimeoutError,
    NoDataTimeoutError,
    NotConnectedError,
    ProtocolError,
    TransportError,
)
from netmigo.models import ConnectionConfig, ExecuteOptions, TransferResult
from netmigo.profiles import DeviceProfile, Platform, get_profile
from netmigo.utils import configure_logging

__all__ = [
    "AuthError",
    "ConfigError",
    "ConnectError",
    "configure_logging",
    "ConnectionConfig",
    "Dependencies",
    "Device",
    "DeviceProfile",
    "DialTimeoutError",
    "ExecuteOptions",
    "get_profile",
    "NetmigoError",
    "NetmigoTimeoutError",
    "new_device",
    "NoDataTimeoutError",
    "NotConnectedError",
    "Platform",
    "ProtocolError",
    "Settings",
    "TransferResult",
    "TransportError",
]
