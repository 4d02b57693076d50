# ============================================================
# File: base.py - channel client interface
# ============================================================
# The bridge only needs three things from the transport:
# open a named channel, wait for it to connect, read its current
# scalar value with a timeout. Implementations:
#   - ca_client.ChannelAccessClient  (pyepics)
#   - mock_client.MockChannelClient  (synthetic values)
# ============================================================

from abc import ABC, abstractmethod
from typing import Any, Optional


class ChannelClient(ABC):
    """Transport used by ChannelRegistry and Sampler"""

    def initialize(self) -> None:
        """Initialize the client library (raises on failure)"""
        pass

    @abstractmethod
    def create_channel(self, address: str) -> Any:
        """Open a channel by name and return an opaque channel object"""
        pass

    @abstractmethod
    def wait_for_connection(self, channel: Any, timeout: float) -> bool:
        """Block up to timeout seconds; return True if the channel is connected"""
        pass

    @abstractmethod
    def read(self, channel: Any, timeout: float) -> Optional[float]:
        """Read the current value, blocking up to timeout seconds

        Returns:
            the value, or None if the read did not complete in time
        """
        pass

    def disconnect(self, channel: Any) -> None:
        """Release a channel"""
        pass

    def finalize(self) -> None:
        """Release the client library"""
        pass
