"""
Bridge context tests: default settings, array resize on a changed
channel count, inconsistent settings, initialization failures.
"""

import pytest

from app.core.exceptions import ConfigInconsistencyError, InitError
from app.core.odb import SharedStore
from app.epics.ca_client import ChannelAccessClient
from app.epics.mock_client import MockChannelClient
from app.services.bridge import BridgeContext, build_client
from app.services.error_sink import CONFIG_ERROR, INIT_ERROR
from tests.mock.fake_channels import FakeChannelClient

SETTINGS = "/Equipment/EPICS/Settings"
MEASURED = "/Equipment/EPICS/Variables/Measured"


def test_defaults_written_when_store_is_empty(settings, client):
    bridge = BridgeContext.from_settings(settings, client=client)

    reloaded = SharedStore(settings.odb_file).load()
    assert reloaded.get(f"{SETTINGS}/Update interval") == 10
    assert reloaded.get(f"{SETTINGS}/Names") == [""] * 5
    assert reloaded.get(f"{SETTINGS}/CA Name") == [""] * 5
    assert reloaded.get(f"{SETTINGS}/Enabled") == [False] * 5
    assert reloaded.get(MEASURED) == [0.0] * 5
    assert bridge.equipment.length == 5


def test_common_block_written(settings, client):
    BridgeContext.from_settings(settings, client=client)

    common = SharedStore(settings.odb_file).load().get("/Equipment/EPICS/Common")
    assert common["Event ID"] == 21
    assert common["Type"] == "periodic"
    assert common["Period"] == settings.record_period_ms
    assert common["Frontend name"] == "EPICS Frontend"


def test_existing_settings_are_not_overwritten(settings, odb, client):
    odb.set(f"{SETTINGS}/Update interval", 500)

    bridge = BridgeContext.from_settings(settings, client=client, odb=odb)

    assert bridge.equipment.update_interval == 500
    assert bridge.poll_cycle.interval_ms == 500


def test_growing_channel_count_keeps_previous_values(settings, odb, client):
    odb.set(MEASURED, [1.0, 2.0, 3.0, 4.0, 5.0])
    odb.set(SETTINGS, {
        "Update interval": 10,
        "Names": [f"n{i}" for i in range(8)],
        "CA Name": [""] * 8,
        "Enabled": [False] * 8,
    })

    bridge = BridgeContext.from_settings(settings, client=client, odb=odb)

    expected = [1.0, 2.0, 3.0, 4.0, 5.0, 0.0, 0.0, 0.0]
    assert bridge.store.snapshot() == expected
    assert SharedStore(settings.odb_file).load().get(MEASURED) == expected


def test_mismatched_array_lengths_are_rejected(settings, odb, client):
    odb.set(SETTINGS, {
        "Update interval": 10,
        "Names": ["a", "b", "c"],
        "CA Name": ["A", "B"],
        "Enabled": [True, True, True],
    })

    with pytest.raises(ConfigInconsistencyError):
        BridgeContext.from_settings(settings, client=client, odb=odb)


def test_initialize_connects_enabled_channels(settings, odb):
    odb.set(SETTINGS, {
        "Update interval": 10,
        "Names": ["a", "b", "c"],
        "CA Name": ["PV:A ", "PV:B", ""],
        "Enabled": [True, False, True],
    })
    client = FakeChannelClient(values={"PV:A": 2.5})
    bridge = BridgeContext.from_settings(settings, client=client, odb=odb)

    bridge.initialize()
    bridge.sampler.sweep()

    assert bridge.initialized
    assert client.created == ["PV:A"]
    assert bridge.store.snapshot() == [2.5, 0.0, 0.0]


def test_initialization_failure_reported_once(settings, odb):
    odb.set(SETTINGS, {
        "Update interval": 10,
        "Names": ["a", "b"],
        "CA Name": ["PV:A", "PV:B"],
        "Enabled": [True, True],
    })
    client = FakeChannelClient(unreachable={"PV:B"})
    bridge = BridgeContext.from_settings(settings, client=client, odb=odb)

    with pytest.raises(InitError):
        bridge.start()

    alarms = bridge.error_sink.recent()
    assert [a.kind for a in alarms] == [INIT_ERROR]
    assert "PV:B" in alarms[0].message
    assert not bridge.initialized
    assert not bridge.poll_cycle.is_running


def test_config_error_reported_before_raise(settings, odb, client, monkeypatch):
    reported = []
    monkeypatch.setattr(
        "app.services.error_sink.ErrorSink.report",
        lambda self, kind, message, source="", severity=None: reported.append(kind),
    )
    odb.set(f"{SETTINGS}/Enabled", [True])

    with pytest.raises(ConfigInconsistencyError):
        BridgeContext.from_settings(settings, client=client, odb=odb)

    assert reported == [CONFIG_ERROR]


def test_start_and_stop(settings, odb):
    odb.set(SETTINGS, {
        "Update interval": 10,
        "Names": ["a"],
        "CA Name": ["PV:A"],
        "Enabled": [True],
    })
    client = FakeChannelClient(values={"PV:A": 1.0})
    bridge = BridgeContext.from_settings(settings, client=client, odb=odb)

    bridge.start()
    try:
        assert bridge.poll_cycle.is_running
        assert bridge.status()["initialized"] is True
    finally:
        bridge.stop()

    assert client.finalized
    assert not bridge.poll_cycle.is_running


def test_build_client_follows_mock_mode(settings):
    assert isinstance(build_client(settings.model_copy(update={"mock_mode": True})),
                      MockChannelClient)
    assert isinstance(build_client(settings), ChannelAccessClient)


def test_channel_creation_error_reported_once_with_channel(settings, odb):
    class RaisingClient(FakeChannelClient):
        def create_channel(self, address):
            raise RuntimeError("CA error: bad channel name")

    odb.set(SETTINGS, {
        "Update interval": 10,
        "Names": ["a"],
        "CA Name": ["PV:BAD"],
        "Enabled": [True],
    })
    bridge = BridgeContext.from_settings(settings, client=RaisingClient(), odb=odb)

    with pytest.raises(InitError):
        bridge.initialize()

    alarms = bridge.error_sink.recent()
    assert [a.kind for a in alarms] == [INIT_ERROR]
    assert "PV:BAD" in alarms[0].message
