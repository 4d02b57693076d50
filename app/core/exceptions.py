"""Exceptions raised by the EPICS bridge."""

from typing import Optional


class BridgeError(Exception):
    """Base exception for the EPICS bridge."""
    pass


class InitError(BridgeError):
    """Fatal: the bridge could not be initialized (CA library or channel connect)."""

    def __init__(self, message: str, channel: Optional[str] = None):
        super().__init__(message)
        self.channel = channel


class ConfigInconsistencyError(InitError):
    """Fatal: equipment settings are inconsistent (e.g. array lengths differ)."""
    pass


class ReadError(BridgeError):
    """Recoverable: a single channel read did not complete within the timeout."""

    def __init__(self, index: int, name: str, message: Optional[str] = None):
        super().__init__(message or f"Timeout on EPICS channel {name}")
        self.index = index
        self.name = name
