"""Tests for the Device façade."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from fakes import FakeShellProcess, make_client, make_connection
from netmigo import Device, new_device
from netmigo.config import Settings
from netmigo.dependencies import Dependencies
from netmigo.exceptions import AuthError, ConfigError, ConnectError, NotConnectedError
from netmigo.models import ConnectionConfig, SSHConnection
from netmigo.profiles import Platform
from netmigo.services import ConnectionManager, JumpClientPool, OutputStore


@pytest.fixture
def deps(tmp_path: Path) -> Dependencies:
    """Dependencies with a mocked connection manager."""
    settings = Settings(output_dir=tmp_path / "outputs", timeout=0.2, first_byte_timeout=1.0)
    manager = MagicMock()
    manager.connect = AsyncMock(
        side_effect=lambda cfg: SSHConnection(client=make_client(), config=cfg)
    )
    manager.connect_through = AsyncMock(
        side_effect=lambda parent, cfg, hop=None: SSHConnection(
            client=make_client(), config=cfg, jump=cfg.jump_server
        )
    )
    return Dependencies(
        settings=settings,
        manager=manager,
        pool=JumpClientPool(manager),
        store=OutputStore(settings.output_dir),
    )


def target(**kwargs) -> ConnectionConfig:
    return ConnectionConfig(host="10.0.0.1", username="admin", password="secret", **kwargs)


def test_new_device_by_name(deps: Dependencies) -> None:
    """new_device resolves a platform name to its profile."""
    device = new_device("cisco_iosxe", deps=deps)

    assert device.profile.platform is Platform.CISCO_IOSXE
    assert device.name == "cisco_iosxe"
    assert not device.is_connected


def test_new_device_rejects_unknown_platform(deps: Dependencies) -> None:
    with pytest.raises(ValueError):
        new_device("vyos", deps=deps)


def test_device_timing_comes_from_settings(deps: Dependencies) -> None:
    """Single-command timing follows the settings, batch timing the platform."""
    device = Device(Platform.CISCO_IOSXR, deps=deps)

    assert device.profile.execute_options.timeout == 0.2
    assert device.profile.execute_options.first_byte_timeout == 1.0
    assert device.profile.multi_options.timeout == 2.0


@pytest.mark.asyncio
async def test_operations_require_connection(deps: Dependencies) -> None:
    """Executors are not reachable before connect()."""
    device = Device(Platform.LINUX, deps=deps)

    with pytest.raises(NotConnectedError):
        await device.execute("uptime")
    with pytest.raises(NotConnectedError):
        await device.execute_multiple(["uptime"])
    with pytest.raises(NotConnectedError):
        await device.download("/etc/hosts", "hosts")


@pytest.mark.asyncio
async def test_direct_connect_and_disconnect(deps: Dependencies) -> None:
    """A target without a jump server is dialled through the manager."""
    device = Device(Platform.LINUX, deps=deps)

    await device.connect(target())

    assert device.is_connected
    deps.manager.connect.assert_awaited_once()
    client = device._connection.client

    await device.disconnect()
    await device.disconnect()

    assert not device.is_connected
    client.close.assert_called_once()


@pytest.mark.asyncio
async def test_jump_connect_uses_pool(deps: Dependencies) -> None:
    """Devices behind one jump server share it until the last disconnect."""
    jump = ConnectionConfig(host="bastion", username="ops", password="x")
    first = Device(Platform.LINUX, deps=deps)
    second = Device(Platform.CISCO_NXOS, deps=deps)

    await first.connect(target(jump_server=jump))
    await second.connect(ConnectionConfig(host="10.0.0.2", password="y", jump_server=jump))

    assert deps.manager.connect.await_count == 1
    assert deps.pool.refcount(jump) == 2
    parent, cfg = deps.manager.connect_through.call_args.args
    assert cfg.host == "10.0.0.2"
    assert deps.manager.connect_through.call_args.kwargs["hop"] == 1

    await first.disconnect()
    assert deps.pool.refcount(jump) == 1
    parent.close.assert_not_called()

    await second.disconnect()
    assert deps.pool.pool_size == 0
    parent.close.assert_called_once()


@pytest.mark.asyncio
async def test_failed_relayed_connect_releases_jump(deps: Dependencies) -> None:
    """A failure after acquiring the jump server gives the reference back."""
    jump = ConnectionConfig(host="bastion", username="ops", password="x")
    deps.manager.connect_through.side_effect = ConnectError("10.0.0.1:22", OSError("refused"))
    device = Device(Platform.LINUX, deps=deps)

    with pytest.raises(ConnectError):
        await device.connect(target(jump_server=jump))

    assert not device.is_connected
    assert deps.pool.pool_size == 0


@pytest.mark.asyncio
async def test_reconnect_replaces_connection(deps: Dependencies) -> None:
    """Connecting again closes the previous connection first."""
    device = Device(Platform.LINUX, deps=deps)

    await device.connect(target())
    old = device._connection.client
    await device.connect(target())

    old.close.assert_called_once()
    assert device._connection.client is not old


@pytest.mark.asyncio
async def test_execute_delegates_with_settings_timing(deps: Dependencies) -> None:
    """execute() runs the command on the connected client."""
    process = FakeShellProcess(lambda line: ["ok\n"] if line == "true" else [])
    device = Device(Platform.LINUX, deps=deps)
    await device.connect(target())
    device._connection.client = make_connection(process)

    path = await device.execute("true")

    assert path.read_text() == "ok\n"
    assert path.parent == deps.settings.output_dir


@pytest.mark.asyncio
async def test_async_context_manager_disconnects(deps: Dependencies) -> None:
    """Leaving the context closes the connection."""
    async with Device(Platform.LINUX, deps=deps) as device:
        await device.connect(target())
        client = device._connection.client

    assert not device.is_connected
    client.close.assert_called_once()


@pytest.fixture
def real_deps(tmp_path: Path) -> Dependencies:
    """Dependencies with a real connection manager (no retry delay)."""
    settings = Settings(output_dir=tmp_path / "outputs", retry_delay=0.0)
    manager = ConnectionManager(retry_delay=settings.retry_delay)
    return Dependencies(
        settings=settings,
        manager=manager,
        pool=JumpClientPool(manager),
        store=OutputStore(settings.output_dir),
    )


@pytest.mark.asyncio
async def test_target_without_auth_behind_jump_never_dials(real_deps: Dependencies) -> None:
    """Missing target auth is rejected before the jump server is dialled."""
    jump = ConnectionConfig(host="bastion", password="pw")
    cfg = ConnectionConfig(host="10.0.0.1", username="admin", jump_server=jump)
    device = Device(Platform.LINUX, deps=real_deps)

    with patch("asyncssh.connect", new_callable=AsyncMock) as mock_connect:
        with pytest.raises(ConfigError, match="No auth method"):
            await device.connect(cfg)

    assert mock_connect.await_count == 0
    assert real_deps.pool.pool_size == 0
    assert not device.is_connected


@pytest.mark.asyncio
async def test_unreadable_target_key_behind_jump_never_dials(
    real_deps: Dependencies, tmp_path: Path
) -> None:
    """A target key that cannot be loaded fails before the jump server is dialled."""
    jump = ConnectionConfig(host="bastion", password="pw")
    cfg = ConnectionConfig(host="10.0.0.1", key_path=str(tmp_path / "missing"), jump_server=jump)
    device = Device(Platform.LINUX, deps=real_deps)

    with patch("asyncssh.connect", new_callable=AsyncMock) as mock_connect:
        with pytest.raises(AuthError):
            await device.connect(cfg)

    assert mock_connect.await_count == 0
    assert real_deps.pool.pool_size == 0
