# ============================================================
# File: __init__.py - models package
# ============================================================
# Pydantic models (API responses, channel settings)
# Settings and measured values live in the shared store (app/core/odb.py)
# ============================================================

from app.models.response import ApiResponse
from app.models.channel import (
    ChannelState,
    ChannelConfig,
    EquipmentSettings,
)

__all__ = [
    'ApiResponse',
    'ChannelState',
    'ChannelConfig',
    'EquipmentSettings',
]
