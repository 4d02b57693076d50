# ============================================================
# File: channels.py - channel routes
# ============================================================
# Route list:
# 1. GET /api/channels           - channel settings and state
# 2. GET /api/channels/measured  - latest value per channel
# 3. GET /api/record             - latest binary record (float32 x N)
# ============================================================

from typing import Optional
from fastapi import APIRouter, Depends, Response

from app.models.response import ApiResponse
from app.routers.deps import get_bridge
from app.services.bridge import BridgeContext

router = APIRouter(prefix="/api", tags=["channels"])


# ------------------------------------------------------------
# 1. GET /channels - channel settings and state
# ------------------------------------------------------------
@router.get("/channels")
async def list_channels(bridge: Optional[BridgeContext] = Depends(get_bridge)):
    """Configured channels with connection state and latest value"""
    if bridge is None:
        return ApiResponse.fail("EPICS bridge is not running")

    values = bridge.store.snapshot()
    channels = bridge.registry.status()
    if not channels:
        # Not connected yet: fall back to the configuration
        channels = [
            {"index": c.index, "name": c.name, "ca_name": c.address,
             "enabled": c.enabled, "state": "unconnected"}
            for c in bridge.equipment.channels()
        ]
    for channel in channels:
        channel["measured"] = values[channel["index"]]
    return ApiResponse.ok(channels)


# ------------------------------------------------------------
# 2. GET /channels/measured - latest value per channel
# ------------------------------------------------------------
@router.get("/channels/measured")
async def measured_values(bridge: Optional[BridgeContext] = Depends(get_bridge)):
    """Latest value per channel in index order"""
    if bridge is None:
        return ApiResponse.fail("EPICS bridge is not running")
    return ApiResponse.ok(bridge.store.snapshot())


# ------------------------------------------------------------
# 3. GET /record - latest binary record
# ------------------------------------------------------------
@router.get("/record")
async def latest_record(fresh: bool = False,
                        bridge: Optional[BridgeContext] = Depends(get_bridge)):
    """Binary record (little-endian float32 per channel)

    Args:
        fresh: snapshot the current values instead of returning the scheduler's
            last record (snapshots carry no serial number and are not counted
            in the equipment statistics)
    """
    if bridge is None:
        return Response(status_code=503)

    record = None if fresh else bridge.emitter.last_record
    if record is None:
        record = bridge.emitter.snapshot_record()

    headers = {
        "X-Event-Id": str(record.event_id),
        "X-Bank-Name": record.bank_name,
        "X-Timestamp": f"{record.timestamp:.3f}",
    }
    if record.serial_number is not None:
        headers["X-Serial-Number"] = str(record.serial_number)

    return Response(content=record.payload, media_type="application/octet-stream",
                    headers=headers)
