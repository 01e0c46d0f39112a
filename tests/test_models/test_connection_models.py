"""Tests for connection and execution models."""

import pytest

from fakes import make_client
from netmigo.exceptions import ConfigError
from netmigo.models import ConnectionConfig, ExecuteOptions, Sentinel, SSHConnection


def test_config_defaults() -> None:
    """Defaults follow the documented values."""
    cfg = ConnectionConfig(host="10.0.0.1")

    assert cfg.port == 22
    assert cfg.max_retry == 3
    assert cfg.connect_timeout == 10.0
    assert cfg.jump_server is None


def test_config_key_and_address() -> None:
    """The pool key is user@host:port."""
    cfg = ConnectionConfig(host="bastion", username="ops", port=2222)

    assert cfg.key == "ops@bastion:2222"
    assert cfg.address == "bastion:2222"


@pytest.mark.parametrize(("max_retry", "attempts"), [(-2, 1), (0, 1), (1, 1), (4, 4)])
def test_attempts_is_at_least_one(max_retry: int, attempts: int) -> None:
    """Every direct connect gets at least one attempt."""
    assert ConnectionConfig(host="h", max_retry=max_retry).attempts == attempts


def test_chain_is_outermost_first() -> None:
    """chain() lists hops from the outermost jump server to the target."""
    outer = ConnectionConfig(host="outer")
    inner = ConnectionConfig(host="inner", jump_server=outer)
    target = ConnectionConfig(host="target", jump_server=inner)

    assert [hop.host for hop in target.chain()] == ["outer", "inner", "target"]
    assert outer.chain() == [outer]


def test_cyclic_chain_is_rejected() -> None:
    """A jump chain that loops back is a configuration error."""
    a = ConnectionConfig(host="a")
    b = ConnectionConfig(host="b", jump_server=a)
    a.jump_server = b

    with pytest.raises(ConfigError, match="cyclic"):
        b.chain()


def test_equal_hosts_are_not_a_cycle() -> None:
    """Two distinct configs for the same host are separate hops."""
    first = ConnectionConfig(host="bastion")
    second = ConnectionConfig(host="bastion", jump_server=first)

    assert len(second.chain()) == 2


@pytest.mark.asyncio
async def test_connection_close_is_idempotent() -> None:
    """Closing a handle twice closes each connection once, client first."""
    client, outer, inner = make_client(), make_client(), make_client()
    order: list[str] = []
    client.close.side_effect = lambda: order.append("client")
    outer.close.side_effect = lambda: order.append("outer")
    inner.close.side_effect = lambda: order.append("inner")
    handle = SSHConnection(
        client=client,
        config=ConnectionConfig(host="target"),
        tunnels=[outer, inner],
    )

    await handle.close()
    await handle.close()

    assert order == ["client", "inner", "outer"]
    assert handle.closed


@pytest.mark.asyncio
async def test_connection_close_tolerates_wait_errors() -> None:
    """An error while waiting for close does not stop the teardown."""
    client, tunnel = make_client(), make_client()
    client.wait_closed.side_effect = ConnectionResetError("reset")
    handle = SSHConnection(client=client, config=ConnectionConfig(host="t"), tunnels=[tunnel])

    await handle.close()

    tunnel.close.assert_called_once()


def test_execute_options_defaults() -> None:
    options = ExecuteOptions()

    assert options.timeout == 10.0
    assert options.first_byte_timeout == 300.0


@pytest.mark.parametrize(
    "kwargs", [{"timeout": 0}, {"timeout": -1.0}, {"first_byte_timeout": 0}]
)
def test_execute_options_must_be_positive(kwargs: dict) -> None:
    """Non-positive timeouts are rejected."""
    with pytest.raises(ValueError):
        ExecuteOptions(**kwargs)


def test_sentinel_marker_and_command() -> None:
    """The marker embeds nonce and index; the command wraps it."""
    sentinel = Sentinel(index=2, template="echo {marker}", nonce="abc123")

    assert sentinel.marker == "__NETMIGO_abc123_2__"
    assert sentinel.command == "echo __NETMIGO_abc123_2__"


def test_sentinel_nonce_is_random() -> None:
    assert Sentinel(index=0).nonce != Sentinel(index=0).nonce


@pytest.mark.parametrize(
    "line",
    [
        "__NETMIGO_abc123_2__\n",
        "  __NETMIGO_abc123_2__\r\n",
        "user@host:~$ __NETMIGO_abc123_2__\n",
        "RP/0/RSP0/CPU0:r1#! __NETMIGO_abc123_2__\n",
        "r1#__NETMIGO_abc123_2__\n",
        "echo __NETMIGO_abc123_2__\n",
    ],
)
def test_sentinel_matches_marker_lines(line: str) -> None:
    """The bare marker, or the marker after a prompt or echo, matches."""
    assert Sentinel(index=2, nonce="abc123").matches(line)


@pytest.mark.parametrize(
    "line",
    [
        "__NETMIGO_abc123_1__\n",
        "__NETMIGO_ffffff_2__\n",
        "__NETMIGO_abc123_2__ trailing\n",
        "x__NETMIGO_abc123_2__\n",
        "__NETMIGO_abc123_22__\n",
        "\n",
    ],
)
def test_sentinel_rejects_other_lines(line: str) -> None:
    """Other indices, other batches, and embedded text do not match."""
    assert not Sentinel(index=2, nonce="abc123").matches(line)
