"""Per-platform execution profiles.

Platforms differ only in timing defaults and in how a shell is asked to
print a sentinel line, so each one is a DeviceProfile value rather than
a subclass.
"""

from dataclasses import dataclass, field
from enum import Enum

from netmigo.models import ExecuteOptions


class Platform(Enum):
    """Supported device platforms."""

    CISCO_IOSXR = "cisco_iosxr"
    CISCO_IOSXE = "cisco_iosxe"
    CISCO_NXOS = "cisco_nxos"
    LINUX = "linux"


@dataclass(frozen=True)
class DeviceProfile:
    """Timing and shell conventions for one platform.

    Attributes:
        platform: Platform this profile describes
        execute_options: Default options for single commands
        multi_options: Default options for each command of a batch
        settle_delay: Seconds to let banner/prompt output flush before
            sending a single command
        drain_window: Seconds of initial output discarded before the
            first command of a batch
        exit_grace: Seconds to wait for the session to end after "exit"
        sentinel_template: Shell text printing ``{marker}`` as a line
        term_type: Terminal type requested for the PTY
    """

    platform: Platform
    execute_options: ExecuteOptions = field(default_factory=ExecuteOptions)
    multi_options: ExecuteOptions = field(default_factory=ExecuteOptions)
    settle_delay: float = 1.0
    drain_window: float = 2.0
    exit_grace: float = 3.0
    sentinel_template: str = "echo {marker}"
    term_type: str = "vt100"


_CISCO_MULTI = ExecuteOptions(timeout=2.0)

PROFILES: dict[Platform, DeviceProfile] = {
    Platform.CISCO_IOSXR: DeviceProfile(
        platform=Platform.CISCO_IOSXR,
        multi_options=_CISCO_MULTI,
        sentinel_template="! {marker}",
    ),
    Platform.CISCO_IOSXE: DeviceProfile(
        platform=Platform.CISCO_IOSXE,
        multi_options=_CISCO_MULTI,
        sentinel_template="! {marker}",
    ),
    Platform.CISCO_NXOS: DeviceProfile(
        platform=Platform.CISCO_NXOS,
        multi_options=_CISCO_MULTI,
        sentinel_template="! {marker}",
    ),
    Platform.LINUX: DeviceProfile(
        platform=Platform.LINUX,
        term_type="xterm",
    ),
}


def get_profile(platform: Platform | str) -> DeviceProfile:
    """Look up the profile for a platform.

    Args:
        platform: Platform member, or its value/name (case-insensitive)

    Returns:
        DeviceProfile for the platform

    Raises:
        ValueError: If the platform is not supported
    """
    if isinstance(platform, str):
        wanted = platform.strip().lower()
        for member in Platform:
            if wanted in (member.value, member.name.lower()):
                platform = member
                break
        else:
            raise ValueError(f"Unsupported platform: {platform}")
    return PROFILES[platform]
