from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from app.routers.deps import get_bridge
from app.services.bridge import BridgeContext
from app.services.error_sink import AlarmMessage

router = APIRouter(
    prefix="/api/alarms",
    tags=["alarms"],
    responses={404: {"description": "Not found"}},
)


# ------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------

@router.get("", response_model=List[AlarmMessage], summary="Recent channel/connection failures")
async def get_alarm_history(
    limit: int = Query(100, ge=1, le=1000),
    kind: Optional[str] = None,
    bridge: Optional[BridgeContext] = Depends(get_bridge),
):
    """
    Most recent messages reported to the error sink, newest last.
    """
    if bridge is None:
        return []

    return bridge.error_sink.recent(limit, kind=kind)
