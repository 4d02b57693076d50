# ============================================================
# File: sampler.py - read one channel / sweep all channels
# ============================================================
# Method list:
# 1. sample_one()  - read one channel with the read timeout
# 2. sweep()       - read every channel, update the sample store
# ============================================================

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from app.core.exceptions import ReadError
from app.epics.channel_registry import ChannelRegistry
from app.services.error_sink import ErrorSink, READ_ERROR
from app.services.sample_store import SampleStore

logger = logging.getLogger(__name__)

READ_TIMEOUT = 30.0  # seconds


@dataclass
class SweepResult:
    """Outcome of one sweep"""
    updated: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.failed)


class Sampler:
    """Reads channels through the registry into the sample store"""

    def __init__(self, registry: ChannelRegistry, store: SampleStore,
                 error_sink: ErrorSink, read_timeout: float = READ_TIMEOUT):
        self.registry = registry
        self.store = store
        self.error_sink = error_sink
        self.read_timeout = read_timeout

    # ------------------------------------------------------------
    # 1. sample_one() - read one channel
    # ------------------------------------------------------------
    def sample_one(self, index: int) -> Optional[float]:
        """Read one channel

        Returns:
            the value, or None if the channel has no handle
            (disabled or write-only)

        Raises:
            ReadError: the read did not complete within read_timeout
        """
        handle = self.registry.handle_for(index)
        if handle is None or not self.registry.is_enabled(index):
            return None

        value = self.registry.client.read(handle.channel, self.read_timeout)
        if value is None:
            raise ReadError(index, handle.config.label)
        return value

    # ------------------------------------------------------------
    # 2. sweep() - read every channel, update the sample store
    # ------------------------------------------------------------
    def sweep(self) -> SweepResult:
        """Read channels 0..N-1

        A failing channel is reported and keeps its previous value; the
        sweep always runs to the end.
        """
        result = SweepResult()

        for index in range(self.registry.length):
            try:
                value = self.sample_one(index)
            except ReadError as e:
                self.error_sink.report(READ_ERROR, str(e), source="sample_one")
                result.failed.append(index)
                continue
            except Exception as e:
                label = self.registry.config_for(index).label
                self.error_sink.report(READ_ERROR, f"Read failed on EPICS channel {label}: {e}",
                                       source="sample_one")
                result.failed.append(index)
                continue

            if value is None:
                result.skipped.append(index)
                continue

            self.store.write(index, value)
            result.updated.append(index)
            if index == 0:
                logger.debug(f"Measured value (0): {value:f}")

        return result
