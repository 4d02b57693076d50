# ============================================================
# Routers Package - API routes
# ============================================================
# Router list:
# - health: health checks (/api/health)
# - channels: channels, measured values, binary record (/api/channels, /api/record)
# - alarms: failure history (/api/alarms)
# ============================================================

from . import health
from . import channels
from . import alarms

__all__ = ['health', 'channels', 'alarms']
