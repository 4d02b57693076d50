import pytest

from config import Settings
from app.core.odb import SharedStore
from app.models.channel import ChannelConfig
from app.services.error_sink import ErrorSink
from tests.mock.fake_channels import FakeChannelClient


def make_configs(ca_names, enabled=None, names=None):
    """ChannelConfig list from parallel arrays"""
    enabled = enabled if enabled is not None else [True] * len(ca_names)
    names = names if names is not None else [f"ch{i}" for i in range(len(ca_names))]
    return [
        ChannelConfig(index=i, name=names[i], address=ca_names[i], enabled=enabled[i])
        for i in range(len(ca_names))
    ]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        odb_file=str(tmp_path / "odb.yaml"),
        mock_mode=False,
        enable_polling=True,
        poll_tick_pause=0.01,
        record_period_ms=50,
        _env_file=None,
    )


@pytest.fixture
def odb(tmp_path):
    return SharedStore(str(tmp_path / "odb.yaml")).load()


@pytest.fixture
def error_sink():
    return ErrorSink(history_size=50)


@pytest.fixture
def client():
    return FakeChannelClient()
