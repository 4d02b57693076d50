# ============================================================
# File: error_sink.py - single funnel for channel/connection failures
# ============================================================
# Every failure path reports here. The sink only reports: it logs
# the message, keeps a bounded history for the alarm API and
# notifies listeners. Callers decide whether a failure is fatal.
# ============================================================

import logging
import threading
import time
from collections import deque
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Kinds
INIT_ERROR = "init_error"
READ_ERROR = "read_error"
CONFIG_ERROR = "config_error"
POLL_ERROR = "poll_error"
WARNING = "warning"

# Severity per kind (logging level names)
_SEVERITY = {
    INIT_ERROR: "ERROR",
    READ_ERROR: "ERROR",
    CONFIG_ERROR: "ERROR",
    POLL_ERROR: "ERROR",
    WARNING: "WARNING",
}


class AlarmMessage(BaseModel):
    """Structured message handed to the alarm facility"""
    kind: str = Field(..., description="Failure kind (init_error, read_error, ...)")
    severity: str = Field(..., description="ERROR / WARNING / INFO")
    source: str = Field("", description="Reporting routine")
    message: str = Field(..., description="Free text")
    timestamp: float = Field(default_factory=time.time, description="Unix time")


AlarmListener = Callable[[AlarmMessage], None]


class ErrorSink:
    """Failure funnel"""

    def __init__(self, history_size: int = 200):
        self._history: deque = deque(maxlen=history_size)
        self._listeners: List[AlarmListener] = []
        self._lock = threading.Lock()
        self._count = 0

    def report(self, kind: str, message: str, source: str = "",
               severity: Optional[str] = None) -> AlarmMessage:
        """Report one failure

        Args:
            kind: failure kind
            message: free text (should name the channel)
            source: reporting routine, e.g. "sample_one"
            severity: override the severity derived from kind
        """
        severity = (severity or _SEVERITY.get(kind, "ERROR")).upper()
        alarm = AlarmMessage(kind=kind, severity=severity, source=source, message=message)

        level = logging.getLevelName(severity)
        if not isinstance(level, int):
            level = logging.ERROR
        logger.log(level, f"[{source or kind}] {message}")

        with self._lock:
            self._history.append(alarm)
            self._count += 1
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(alarm)
            except Exception as e:
                logger.warning(f"alarm listener failed: {e}")

        return alarm

    def add_listener(self, listener: AlarmListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def recent(self, limit: int = 50, kind: Optional[str] = None) -> List[AlarmMessage]:
        """Most recent messages (of one kind if given), newest last"""
        with self._lock:
            items = list(self._history)
        if kind:
            items = [a for a in items if a.kind == kind]
        return items[-limit:] if limit > 0 else []

    @property
    def count(self) -> int:
        """Total number of reports since start"""
        with self._lock:
            return self._count
