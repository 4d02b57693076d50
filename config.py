# ============================================================
# File: config.py - application settings
# ============================================================
# Settings are managed with pydantic-settings and can be overridden
# through environment variables or a .env file.
# Equipment settings (channel names, CA names, enabled flags) live in
# the shared store, see app/core/odb.py.
# ============================================================

import sys
from pathlib import Path
from functools import lru_cache
from pydantic import field_validator
from pydantic_settings import BaseSettings


# ------------------------------------------------------------
# Application root (supports frozen executables)
# ------------------------------------------------------------
def get_app_root() -> Path:
    """Return the application root directory

    Development: project root
    Frozen: directory of the executable
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


APP_ROOT = get_app_root()


class Settings(BaseSettings):
    """Application settings

    Priority (highest first):
    1. .env file
    2. environment variables
    3. defaults
    """

    # Server
    server_host: str = "0.0.0.0"
    server_port: int = 8083
    debug: bool = False

    # Polling switch
    enable_polling: bool = True

    # Mock mode (synthetic channel values instead of Channel Access)
    mock_mode: bool = False

    # Log every sweep (False: summary every 10 sweeps)
    verbose_polling_log: bool = False

    # Shared store
    odb_file: str = "data/odb.yaml"
    equipment_name: str = "EPICS"
    frontend_name: str = "EPICS Frontend"

    # Channel Access
    connect_timeout: float = 5.0   # seconds
    read_timeout: float = 30.0     # seconds
    epics_ca_addr_list: str = ""
    epics_ca_auto_addr_list: bool = True

    # Poll cycle: pause between ticks, independent of "Update interval"
    poll_tick_pause: float = 0.5   # seconds

    # Record emission (periodic equipment)
    record_period_ms: int = 2000
    event_id: int = 21
    trigger_mask: int = 0
    log_history: int = 10

    # Alarm history kept in memory
    alarm_history_size: int = 200

    @field_validator('debug', 'mock_mode', 'enable_polling', 'verbose_polling_log',
                     'epics_ca_auto_addr_list', mode='before')
    @classmethod
    def parse_bool(cls, v):
        """Parse booleans leniently (true/1/yes/on)"""
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            v_lower = v.lower()
            if v_lower in ('true', '1', 'yes', 'on'):
                return True
            elif v_lower in ('false', '0', 'no', 'off', ''):
                return False
            else:
                raise ValueError(f"invalid boolean value: {v}")
        return bool(v)

    class Config:
        env_file = str(APP_ROOT / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False


# ------------------------------------------------------------
# Settings singleton
# ------------------------------------------------------------
@lru_cache()
def get_settings() -> Settings:
    """Return the settings singleton"""
    return Settings()


def get_data_path(relative_path: str) -> Path:
    """Resolve a path relative to the application root (absolute paths pass through)"""
    path = Path(relative_path)
    if path.is_absolute():
        return path
    return APP_ROOT / path
