# ============================================================
# File: bridge.py - EPICS bridge context
# ============================================================
# Builds and owns every component of one bridge instance:
#   shared store -> settings -> registry -> sample store
#   -> sampler -> poll cycle -> record emitter/scheduler
# Several independent instances can live in one process.
#
# Method list:
# 1. from_settings()  - load store, write defaults, build components
# 2. initialize()     - connect channels (InitError is fatal)
# 3. start()/stop()   - poll thread and record scheduler
# 4. status()         - summary for the API
# ============================================================

import logging
from typing import Any, Dict, Optional

from config import Settings, get_data_path
from app.core.exceptions import InitError, ConfigInconsistencyError
from app.core.odb import SharedStore
from app.epics.base import ChannelClient
from app.epics.ca_client import ChannelAccessClient
from app.epics.channel_registry import ChannelRegistry
from app.epics.mock_client import MockChannelClient
from app.models.channel import EquipmentSettings, default_settings_tree
from app.services.error_sink import ErrorSink, INIT_ERROR, CONFIG_ERROR
from app.services.polling_service import PollCycle
from app.services.record_emitter import RecordEmitter, RecordScheduler
from app.services.sample_store import SampleStore
from app.services.sampler import Sampler

logger = logging.getLogger(__name__)


def equipment_path(equipment_name: str, *parts: str) -> str:
    return "/".join(["/Equipment", equipment_name, *parts])


def build_client(settings: Settings) -> ChannelClient:
    """Channel client for the configured mode"""
    if settings.mock_mode:
        logger.info("Mock mode enabled - using synthetic channel values")
        return MockChannelClient()
    return ChannelAccessClient(addr_list=settings.epics_ca_addr_list,
                               auto_addr_list=settings.epics_ca_auto_addr_list)


class BridgeContext:
    """One EPICS bridge instance"""

    def __init__(self, settings: Settings, odb: SharedStore, equipment: EquipmentSettings,
                 client: ChannelClient, error_sink: Optional[ErrorSink] = None):
        self.settings = settings
        self.odb = odb
        self.equipment = equipment
        self.error_sink = error_sink or ErrorSink(settings.alarm_history_size)

        name = settings.equipment_name
        self.registry = ChannelRegistry(client, connect_timeout=settings.connect_timeout)
        self.store = SampleStore(equipment.length, odb=odb,
                                 measured_path=equipment_path(name, "Variables", "Measured"))
        self.sampler = Sampler(self.registry, self.store, self.error_sink,
                               read_timeout=settings.read_timeout)
        self.poll_cycle = PollCycle(self.sampler, self.error_sink,
                                    interval_ms=equipment.update_interval,
                                    tick_pause=settings.poll_tick_pause,
                                    verbose=settings.verbose_polling_log)
        self.emitter = RecordEmitter(self.store, event_id=settings.event_id,
                                     trigger_mask=settings.trigger_mask, odb=odb,
                                     statistics_path=equipment_path(name, "Statistics"))
        self.scheduler = RecordScheduler(self.emitter, self.error_sink,
                                         period_ms=settings.record_period_ms)
        self.initialized = False

    # ------------------------------------------------------------
    # 1. from_settings() - load store, write defaults, build components
    # ------------------------------------------------------------
    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[ChannelClient] = None,
                      odb: Optional[SharedStore] = None) -> "BridgeContext":
        """Build a bridge from application settings

        Raises:
            ConfigInconsistencyError: equipment settings are inconsistent
        """
        error_sink = ErrorSink(settings.alarm_history_size)
        if odb is None:
            odb = SharedStore(str(get_data_path(settings.odb_file))).load()

        name = settings.equipment_name
        tree = odb.ensure(equipment_path(name, "Settings"), default_settings_tree())
        write_common(odb, settings)

        try:
            equipment = EquipmentSettings.from_tree(tree)
        except ConfigInconsistencyError as e:
            error_sink.report(CONFIG_ERROR, str(e), source="bridge_init")
            raise

        logger.info(f"Equipment {name}: {equipment.length} channels, "
                    f"update interval {equipment.update_interval} ms")

        bridge = cls(settings, odb, equipment, client or build_client(settings), error_sink)
        odb.flush()
        return bridge

    # ------------------------------------------------------------
    # 2. initialize() - connect channels
    # ------------------------------------------------------------
    def initialize(self) -> None:
        """Connect all enabled channels

        Raises:
            InitError: reported once to the error sink, then re-raised
        """
        try:
            self.registry.connect_all(self.equipment.channels())
        except InitError as e:
            self.error_sink.report(INIT_ERROR, str(e), source="bridge_init")
            raise
        self.initialized = True

    # ------------------------------------------------------------
    # 3. start() / stop()
    # ------------------------------------------------------------
    def start(self) -> None:
        if not self.initialized:
            self.initialize()
        self.poll_cycle.start()
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()
        self.poll_cycle.stop()
        self.registry.disconnect_all()
        self.odb.flush()
        self.initialized = False

    # ------------------------------------------------------------
    # 4. status() - summary for the API
    # ------------------------------------------------------------
    def status(self) -> Dict[str, Any]:
        return {
            "equipment": self.settings.equipment_name,
            "initialized": self.initialized,
            "channel_count": self.equipment.length,
            "poll": self.poll_cycle.stats(),
            "record": self.emitter.statistics(),
            "alarm_count": self.error_sink.count,
        }


def write_common(odb: SharedStore, settings: Settings) -> None:
    """Equipment "Common" directory, overwritten at every start"""
    odb.set(equipment_path(settings.equipment_name, "Common"), {
        "Event ID": settings.event_id,
        "Trigger mask": settings.trigger_mask,
        "Buffer": "SYSTEM",
        "Type": "periodic",
        "Format": "MIDAS",
        "Enabled": True,
        "Period": settings.record_period_ms,
        "Log history": settings.log_history,
        "Frontend name": settings.frontend_name,
    })
