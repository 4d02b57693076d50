"""
Mock channel client - EPICS bridge

Used in mock mode (MOCK_MODE=true) for development without a CA network.
Every channel name connects; values are a per-channel base value with a
slow sine drift and a little noise.
"""

import math
import random
import zlib
from typing import Any, Optional

from app.epics.base import ChannelClient


class MockChannel:
    """Synthetic channel"""

    def __init__(self, address: str):
        self.address = address
        # Stable base value derived from the name
        self.base = 1.0 + (zlib.crc32(address.encode('utf-8')) % 1000) / 10.0
        self.reads = 0


class MockChannelClient(ChannelClient):
    """Mock channel client"""

    def __init__(self, noise_level: float = 0.01, period: int = 60):
        self.noise_level = noise_level
        self.period = period

    def create_channel(self, address: str) -> Any:
        return MockChannel(address)

    def wait_for_connection(self, channel: Any, timeout: float) -> bool:
        return True

    def read(self, channel: Any, timeout: float) -> Optional[float]:
        channel.reads += 1
        wave = math.sin(2 * math.pi * channel.reads / self.period) * 0.1
        noise = random.uniform(-self.noise_level, self.noise_level)
        return channel.base * (1 + wave + noise)
