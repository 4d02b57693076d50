"""
Channel registry tests: which channels get connected, and what a
connect timeout does to initialization.
"""

import pytest

from app.core.exceptions import InitError
from app.epics.channel_registry import ChannelRegistry
from app.epics.mock_client import MockChannelClient
from app.models.channel import ChannelState
from tests.conftest import make_configs
from tests.mock.fake_channels import FakeChannelClient


def test_connects_enabled_and_skips_disabled_and_write_only():
    client = FakeChannelClient()
    registry = ChannelRegistry(client)

    registry.connect_all(make_configs(["ch0", "", "ch2"], enabled=[True, False, True]))

    assert client.created == ["ch0", "ch2"]
    assert registry.handle_for(0) is not None
    assert registry.handle_for(1) is None
    assert registry.handle_for(2) is not None
    assert registry.length == 3


def test_disabled_channel_with_ca_name_is_never_opened():
    client = FakeChannelClient()
    registry = ChannelRegistry(client)

    registry.connect_all(make_configs(["a", "b", "c", "d"], enabled=[False, True, False, True]))

    assert client.created == ["b", "d"]
    for index in (0, 2):
        assert registry.handle_for(index) is None
        assert registry.status()[index]["state"] == ChannelState.UNCONNECTED.value


def test_enabled_channel_without_ca_name_has_no_handle():
    client = FakeChannelClient()
    registry = ChannelRegistry(client)

    registry.connect_all(make_configs(["", "x"]))

    assert client.created == ["x"]
    assert registry.handle_for(0) is None


def test_empty_configuration():
    client = FakeChannelClient()
    registry = ChannelRegistry(client)

    registry.connect_all([])

    assert registry.length == 0
    assert client.created == []
    assert registry.handle_for(0) is None


def test_connect_uses_configured_timeout():
    client = FakeChannelClient()
    ChannelRegistry(client, connect_timeout=5.0).connect_all(make_configs(["a", "b"]))

    assert client.connect_timeouts == [5.0, 5.0]


def test_connect_timeout_is_fatal_without_rollback():
    client = FakeChannelClient(unreachable={"ch1"})
    registry = ChannelRegistry(client)

    with pytest.raises(InitError) as exc_info:
        registry.connect_all(make_configs(["ch0", "ch1", "ch2"]))

    assert "ch1" in str(exc_info.value)
    assert exc_info.value.channel == "ch1"
    # channel processed before the failure stays connected
    assert registry.handle_for(0) is not None
    assert registry.handle_for(1) is None
    # processing stops at the failing channel
    assert "ch2" not in client.created
    states = [c["state"] for c in registry.status()]
    assert states == ["connected", "failed", "unconnected"]


def test_client_initialization_failure_is_init_error():
    client = FakeChannelClient(fail_init=True)
    registry = ChannelRegistry(client)

    with pytest.raises(InitError, match="Unable to initialize EPICS"):
        registry.connect_all(make_configs(["ch0"]))

    assert client.created == []


def test_is_enabled_and_out_of_range():
    registry = ChannelRegistry(FakeChannelClient())
    registry.connect_all(make_configs(["a", "b"], enabled=[True, False]))

    assert registry.is_enabled(0)
    assert not registry.is_enabled(1)
    assert not registry.is_enabled(5)
    assert registry.handle_for(5) is None


def test_disconnect_all_releases_handles():
    client = FakeChannelClient()
    registry = ChannelRegistry(client)
    registry.connect_all(make_configs(["a", "b"]))
    handle = registry.handle_for(0)

    registry.disconnect_all()

    assert handle.channel.closed
    assert registry.handle_for(0) is None
    assert client.finalized


def test_mock_client_connects_everything():
    registry = ChannelRegistry(MockChannelClient())
    registry.connect_all(make_configs(["SIM:A", "SIM:B"]))

    handle = registry.handle_for(1)
    assert handle is not None
    assert isinstance(registry.client.read(handle.channel, 1.0), float)


def test_create_channel_error_is_init_error():
    class RaisingClient(FakeChannelClient):
        def create_channel(self, address):
            if address == "bad":
                raise RuntimeError("CA error: bad channel name")
            return super().create_channel(address)

    client = RaisingClient()
    registry = ChannelRegistry(client)

    with pytest.raises(InitError) as exc_info:
        registry.connect_all(make_configs(["ok", "bad", "later"]))

    assert exc_info.value.channel == "bad"
    assert "bad channel name" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert [c["state"] for c in registry.status()] == ["connected", "failed", "unconnected"]
    assert client.created == ["ok"]

    registry.disconnect_all()
    assert client.finalized


def test_is_readable():
    readable, disabled, write_only = make_configs(["a", "b", ""], enabled=[True, False, True])

    assert readable.is_readable
    assert not disabled.is_readable
    assert not write_only.is_readable
