# ============================================================
# File: deps.py - router dependencies
# ============================================================

from typing import Optional
from fastapi import Request

from app.services.bridge import BridgeContext


def get_bridge(request: Request) -> Optional[BridgeContext]:
    """Bridge instance created in the application lifespan (None if not running)"""
    return getattr(request.app.state, "bridge", None)
