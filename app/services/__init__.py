# ============================================================
# Services Package - bridge service layer
# ============================================================
# Service list:
# - bridge: bridge context (builds and owns everything below)
# - sample_store: latest value per channel
# - sampler: channel reads and sweeps
# - polling_service: periodic poll cycle
# - record_emitter: binary records and the periodic scheduler
# - error_sink: failure funnel / alarm history
# ============================================================

from .bridge import BridgeContext, build_client
from .error_sink import ErrorSink, AlarmMessage
from .polling_service import PollCycle, PollState
from .record_emitter import Record, RecordEmitter, RecordScheduler
from .sample_store import SampleStore
from .sampler import Sampler, SweepResult

__all__ = [
    'BridgeContext',
    'build_client',
    'ErrorSink',
    'AlarmMessage',
    'PollCycle',
    'PollState',
    'Record',
    'RecordEmitter',
    'RecordScheduler',
    'SampleStore',
    'Sampler',
    'SweepResult',
]
