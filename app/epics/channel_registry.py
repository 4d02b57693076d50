# ============================================================
# File: channel_registry.py - channel index -> live handle
# ============================================================
# Method list:
# 1. connect_all()     - connect every enabled channel (5 s each)
# 2. handle_for()      - handle of a connected channel, or None
# 3. is_enabled()      - enabled flag of a channel
# 4. status()          - per-channel state summary
# 5. disconnect_all()  - release all handles
# ============================================================

import logging
from typing import Any, Dict, List, Optional

from app.core.exceptions import InitError
from app.epics.base import ChannelClient
from app.models.channel import ChannelConfig, ChannelState

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 5.0  # seconds


class ChannelHandle:
    """Connection to one remote channel (owned by ChannelRegistry)"""

    def __init__(self, config: ChannelConfig, channel: Any):
        self.config = config
        self.channel = channel
        self.state = ChannelState.UNCONNECTED

    @property
    def index(self) -> int:
        return self.config.index

    @property
    def connected(self) -> bool:
        return self.state == ChannelState.CONNECTED

    def __repr__(self):
        return f"<ChannelHandle {self.config.index} {self.config.address!r} {self.state.value}>"


class ChannelRegistry:
    """Channel registry

    Channels are fixed once connect_all() has run. Handles live for the
    process lifetime and are not recreated after a failed read.
    """

    def __init__(self, client: ChannelClient, connect_timeout: float = CONNECT_TIMEOUT):
        self.client = client
        self.connect_timeout = connect_timeout
        self._configs: List[ChannelConfig] = []
        self._handles: Dict[int, ChannelHandle] = {}

    @property
    def length(self) -> int:
        return len(self._configs)

    # ------------------------------------------------------------
    # 1. connect_all() - connect every enabled channel
    # ------------------------------------------------------------
    def connect_all(self, configs: List[ChannelConfig]) -> None:
        """Connect every enabled channel that has a CA name

        Channels connected before a failure stay connected.

        Raises:
            InitError: client initialization failed, or a channel did not
                connect within connect_timeout
        """
        self._configs = list(configs)
        self._handles = {}

        try:
            self.client.initialize()
        except Exception as e:
            raise InitError(f"Unable to initialize EPICS: {e}") from e

        for config in self._configs:
            if not config.is_readable:
                if not config.enabled:
                    logger.info(f"Channel {config.index} disabled")
                else:
                    logger.info(f"Channel {config.index} ({config.label}) has no CA name, skipped")
                continue

            logger.info(f"Channel {config.index}: connecting {config.address}")
            handle = ChannelHandle(config, None)
            self._handles[config.index] = handle

            try:
                handle.channel = self.client.create_channel(config.address)
                connected = self.client.wait_for_connection(handle.channel, self.connect_timeout)
            except Exception as e:
                handle.state = ChannelState.FAILED
                raise InitError(f"Cannot connect to EPICS channel {config.address}: {e}",
                                channel=config.address) from e

            if not connected:
                handle.state = ChannelState.FAILED
                raise InitError(f"Cannot connect to EPICS channel {config.address}",
                                channel=config.address)

            handle.state = ChannelState.CONNECTED
            logger.info(f"Channel {config.index}: connected {config.address}")

        logger.info(f"Finished EPICS initialization ({len(self._handles)}/{self.length} channels)")

    # ------------------------------------------------------------
    # 2. handle_for() - handle of a connected channel, or None
    # ------------------------------------------------------------
    def handle_for(self, index: int) -> Optional[ChannelHandle]:
        handle = self._handles.get(index)
        if handle is None or not handle.connected:
            return None
        return handle

    # ------------------------------------------------------------
    # 3. is_enabled() - enabled flag of a channel
    # ------------------------------------------------------------
    def is_enabled(self, index: int) -> bool:
        if index < 0 or index >= self.length:
            return False
        return self._configs[index].enabled

    def config_for(self, index: int) -> ChannelConfig:
        return self._configs[index]

    # ------------------------------------------------------------
    # 4. status() - per-channel state summary
    # ------------------------------------------------------------
    def status(self) -> List[Dict[str, Any]]:
        result = []
        for config in self._configs:
            handle = self._handles.get(config.index)
            state = handle.state if handle else ChannelState.UNCONNECTED
            result.append({
                "index": config.index,
                "name": config.name,
                "ca_name": config.address,
                "enabled": config.enabled,
                "state": state.value,
            })
        return result

    # ------------------------------------------------------------
    # 5. disconnect_all() - release all handles
    # ------------------------------------------------------------
    def disconnect_all(self) -> None:
        for handle in self._handles.values():
            if handle.channel is None:
                continue
            try:
                self.client.disconnect(handle.channel)
            except Exception as e:
                logger.warning(f"Channel {handle.index}: disconnect failed: {e}")
            handle.state = ChannelState.UNCONNECTED
        self._handles = {}
        self.client.finalize()
