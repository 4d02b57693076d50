# ============================================================
# File: channel.py - channel and equipment settings models
# ============================================================
# Model list:
# 1. ChannelState        - connection state of a channel handle
# 2. ChannelConfig       - one configured channel
# 3. EquipmentSettings   - the equipment "Settings" directory
# ============================================================

from enum import Enum
from typing import Any, Dict, List
from pydantic import BaseModel, Field, ValidationError, model_validator

from app.core.exceptions import ConfigInconsistencyError


# Keys as they appear in the shared store
KEY_UPDATE_INTERVAL = "Update interval"
KEY_NAMES = "Names"
KEY_CA_NAME = "CA Name"
KEY_ENABLED = "Enabled"

DEFAULT_CHANNEL_COUNT = 5


def default_settings_tree() -> Dict[str, Any]:
    """Default equipment settings written when the store has none"""
    return {
        KEY_UPDATE_INTERVAL: 10,
        KEY_NAMES: [""] * DEFAULT_CHANNEL_COUNT,
        KEY_CA_NAME: [""] * DEFAULT_CHANNEL_COUNT,
        KEY_ENABLED: [False] * DEFAULT_CHANNEL_COUNT,
    }


# ------------------------------------------------------------
# 1. ChannelState
# ------------------------------------------------------------
class ChannelState(str, Enum):
    UNCONNECTED = "unconnected"
    CONNECTED = "connected"
    FAILED = "failed"


# ------------------------------------------------------------
# 2. ChannelConfig
# ------------------------------------------------------------
class ChannelConfig(BaseModel):
    """One configured channel"""
    index: int = Field(..., ge=0, description="Channel index (0..N-1)")
    name: str = Field("", description="Display name")
    address: str = Field("", description="Channel Access name, empty = no handle")
    enabled: bool = Field(False, description="Channel enabled")

    model_config = {"frozen": True}

    @property
    def label(self) -> str:
        """Name used in messages (falls back to the index)"""
        return self.name or f"channel {self.index}"

    @property
    def is_readable(self) -> bool:
        return self.enabled and bool(self.address)


# ------------------------------------------------------------
# 3. EquipmentSettings
# ------------------------------------------------------------
class EquipmentSettings(BaseModel):
    """Equipment settings read once at initialization

    Changes made in the store after initialization are not picked up.
    """
    update_interval: int = Field(10, ge=0, description="Minimum time between sweeps (ms)")
    names: List[str] = Field(default_factory=list)
    ca_names: List[str] = Field(default_factory=list)
    enabled: List[bool] = Field(default_factory=list)

    model_config = {"frozen": True}

    @model_validator(mode='after')
    def check_lengths(self):
        lengths = {
            KEY_NAMES: len(self.names),
            KEY_CA_NAME: len(self.ca_names),
            KEY_ENABLED: len(self.enabled),
        }
        if len(set(lengths.values())) > 1:
            detail = ", ".join(f"{k}={v}" for k, v in lengths.items())
            raise ValueError(f"settings arrays differ in length ({detail})")
        return self

    @property
    def length(self) -> int:
        return len(self.names)

    def channels(self) -> List[ChannelConfig]:
        return [
            ChannelConfig(index=i, name=self.names[i], address=self.ca_names[i].strip(),
                          enabled=self.enabled[i])
            for i in range(self.length)
        ]

    @classmethod
    def from_tree(cls, tree: Dict[str, Any]) -> "EquipmentSettings":
        """Build from a store subtree

        Raises:
            ConfigInconsistencyError: missing keys, bad types or length mismatch
        """
        try:
            return cls(
                update_interval=tree.get(KEY_UPDATE_INTERVAL, 10),
                names=[str(n) if n is not None else "" for n in tree.get(KEY_NAMES) or []],
                ca_names=[str(n) if n is not None else "" for n in tree.get(KEY_CA_NAME) or []],
                enabled=tree.get(KEY_ENABLED) or [],
            )
        except ValidationError as e:
            raise ConfigInconsistencyError(f"Invalid equipment settings: {e}") from e
