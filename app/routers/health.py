# ============================================================
# File: health.py - health check routes
# ============================================================
# Route list:
# 1. GET /api/health          - service health
# 2. GET /api/health/polling  - poll cycle and record statistics
# ============================================================

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends

from app.models.response import ApiResponse
from app.routers.deps import get_bridge
from app.services.bridge import BridgeContext

router = APIRouter(prefix="/api", tags=["health"])


# ------------------------------------------------------------
# 1. GET /health - service health
# ------------------------------------------------------------
@router.get("/health")
async def health_check(bridge: Optional[BridgeContext] = Depends(get_bridge)):
    """Service health"""
    return ApiResponse.ok({
        "status": "healthy" if bridge is not None and bridge.initialized else "degraded",
        "timestamp": datetime.now().isoformat(),
        "version": "1.0.0"
    })


# ------------------------------------------------------------
# 2. GET /health/polling - poll cycle status
# ------------------------------------------------------------
@router.get("/health/polling")
async def polling_health(bridge: Optional[BridgeContext] = Depends(get_bridge)):
    """Poll cycle and record emission statistics"""
    if bridge is None:
        return ApiResponse.fail("EPICS bridge is not running")
    return ApiResponse.ok(bridge.status())
