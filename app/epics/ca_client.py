# ============================================================
# File: ca_client.py - EPICS Channel Access client (pyepics)
# ============================================================
# Method list:
# 1. initialize()            - configure CA environment, load libca
# 2. create_channel()        - create a PV object (no auto monitor)
# 3. wait_for_connection()   - block until connected or timeout
# 4. read()                  - get the value as float, None on timeout
# 5. disconnect()/finalize() - release channels and libca
# ============================================================

import logging
import os
from typing import Any, Optional

from app.epics.base import ChannelClient

logger = logging.getLogger(__name__)


class ChannelAccessClient(ChannelClient):
    """Channel Access client backed by pyepics"""

    def __init__(self, addr_list: str = "", auto_addr_list: bool = True):
        """
        Args:
            addr_list: EPICS_CA_ADDR_LIST (empty = keep the environment)
            auto_addr_list: EPICS_CA_AUTO_ADDR_LIST
        """
        self.addr_list = addr_list
        self.auto_addr_list = auto_addr_list
        self._epics = None

    # ------------------------------------------------------------
    # 1. initialize() - configure CA environment, load libca
    # ------------------------------------------------------------
    def initialize(self) -> None:
        """Load pyepics and initialize the CA context

        Raises:
            ImportError: pyepics is not installed
            Exception: libca could not be initialized
        """
        try:
            import epics
        except ImportError:
            raise ImportError(
                "pyepics is required for Channel Access. Install with: pip install pyepics"
            ) from None

        # Environment must be set before libca creates its context
        if self.addr_list:
            os.environ["EPICS_CA_ADDR_LIST"] = self.addr_list
            logger.debug(f"EPICS_CA_ADDR_LIST={self.addr_list}")
        os.environ["EPICS_CA_AUTO_ADDR_LIST"] = "YES" if self.auto_addr_list else "NO"

        epics.ca.initialize_libca()
        self._epics = epics
        logger.info("Initialized EPICS Channel Access")

    # ------------------------------------------------------------
    # 2. create_channel() - create a PV object
    # ------------------------------------------------------------
    def create_channel(self, address: str) -> Any:
        if self._epics is None:
            self.initialize()
        return self._epics.PV(address, auto_monitor=False, connection_timeout=None)

    # ------------------------------------------------------------
    # 3. wait_for_connection() - block until connected or timeout
    # ------------------------------------------------------------
    def wait_for_connection(self, channel: Any, timeout: float) -> bool:
        return bool(channel.wait_for_connection(timeout=timeout))

    # ------------------------------------------------------------
    # 4. read() - get the value as float, None on timeout
    # ------------------------------------------------------------
    def read(self, channel: Any, timeout: float) -> Optional[float]:
        # first element only: one float per channel, also for waveform PVs
        value = channel.get(count=1, timeout=timeout, use_monitor=False)
        if value is None:
            return None
        if hasattr(value, "__len__") and not isinstance(value, (str, bytes)):
            if len(value) == 0:
                return None
            value = value[0]
        return float(value)

    # ------------------------------------------------------------
    # 5. disconnect() / finalize()
    # ------------------------------------------------------------
    def disconnect(self, channel: Any) -> None:
        channel.disconnect()

    def finalize(self) -> None:
        if self._epics is not None:
            self._epics.ca.finalize_libca()
            self._epics = None
