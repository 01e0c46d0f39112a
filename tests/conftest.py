"""Shared fixtures for netmigo tests."""

from pathlib import Path

import pytest

from netmigo.models import ExecuteOptions
from netmigo.profiles import DeviceProfile, Platform
from netmigo.services import OutputStore


@pytest.fixture
def profile() -> DeviceProfile:
    """Linux profile with short delays for tests."""
    return DeviceProfile(
        platform=Platform.LINUX,
        execute_options=ExecuteOptions(timeout=0.2, first_byte_timeout=1.0),
        multi_options=ExecuteOptions(timeout=0.2, first_byte_timeout=1.0),
        settle_delay=0.05,
        drain_window=0.05,
        exit_grace=0.5,
    )


@pytest.fixture
def store(tmp_path: Path) -> OutputStore:
    """Output store writing under a temporary directory."""
    return OutputStore(tmp_path / "outputs")
