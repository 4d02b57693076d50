# ============================================================
# File: fake_channels.py - scripted channel client for tests
# ============================================================
# Behaviour per CA name:
#   unreachable  - connect never completes (wait returns False)
#   timeouts     - read never completes (read returns None)
#   values       - value returned by read (default 0.0)
# Every call is recorded so tests can check what was attempted.
# ============================================================

from typing import Any, Dict, Iterable, List, Optional

from app.epics.base import ChannelClient


class FakeChannel:
    def __init__(self, address: str):
        self.address = address
        self.closed = False


class FakeChannelClient(ChannelClient):
    """Channel client with scripted connect/read outcomes"""

    def __init__(self, values: Optional[Dict[str, float]] = None,
                 unreachable: Iterable[str] = (), timeouts: Iterable[str] = (),
                 fail_init: bool = False):
        self.values: Dict[str, float] = dict(values or {})
        self.unreachable = set(unreachable)
        self.timeouts = set(timeouts)
        self.fail_init = fail_init

        self.initialized = False
        self.finalized = False
        self.created: List[str] = []
        self.connect_timeouts: List[float] = []
        self.reads: List[str] = []
        self.read_timeouts: List[float] = []

    def initialize(self) -> None:
        if self.fail_init:
            raise RuntimeError("libca not found")
        self.initialized = True

    def create_channel(self, address: str) -> Any:
        self.created.append(address)
        return FakeChannel(address)

    def wait_for_connection(self, channel: Any, timeout: float) -> bool:
        self.connect_timeouts.append(timeout)
        return channel.address not in self.unreachable

    def read(self, channel: Any, timeout: float) -> Optional[float]:
        self.reads.append(channel.address)
        self.read_timeouts.append(timeout)
        if channel.address in self.timeouts:
            return None
        return self.values.get(channel.address, 0.0)

    def disconnect(self, channel: Any) -> None:
        channel.closed = True

    def finalize(self) -> None:
        self.finalized = True


class FakeClock:
    """Monotonic clock advanced by hand"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
