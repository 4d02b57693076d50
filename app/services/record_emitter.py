# ============================================================
# File: record_emitter.py - binary record of the latest values
# ============================================================
# Record payload: N float32 values, little endian, channel index
# order, 4*N bytes. The emitter is pulled by RecordScheduler (the
# periodic event trigger, 2 s by default); it never locks the whole
# sample store.
# ============================================================

import logging
import math
import struct
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from app.core.odb import SharedStore
from app.services.error_sink import ErrorSink, POLL_ERROR
from app.services.sample_store import SampleStore

logger = logging.getLogger(__name__)

BANK_NAME = "E000"
FLOAT_SIZE = 4
FLOAT32_MAX = 3.4028234663852886e38


@dataclass(frozen=True)
class Record:
    """One emitted record"""
    event_id: int
    trigger_mask: int
    serial_number: Optional[int]  # None: snapshot outside the periodic schedule
    timestamp: float
    bank_name: str
    payload: bytes

    @property
    def size(self) -> int:
        return len(self.payload)

    def values(self) -> List[float]:
        return list(struct.unpack(f"<{len(self.payload) // FLOAT_SIZE}f", self.payload))


def _to_float32_range(value: float) -> float:
    # struct refuses doubles beyond float32 range
    if abs(value) > FLOAT32_MAX and not math.isinf(value):
        return math.copysign(math.inf, value)
    return value


def pack_values(values: List[float]) -> bytes:
    """N floats -> N little-endian float32"""
    data = struct.pack(f"<{len(values)}f", *(_to_float32_range(v) for v in values))
    if len(data) != FLOAT_SIZE * len(values):
        raise ValueError(f"record size {len(data)} != {FLOAT_SIZE * len(values)}")
    return data


class RecordEmitter:
    """Packs the sample store into records"""

    def __init__(self, store: SampleStore, event_id: int = 21, trigger_mask: int = 0,
                 odb: Optional[SharedStore] = None, statistics_path: Optional[str] = None):
        self.store = store
        self.event_id = event_id
        self.trigger_mask = trigger_mask
        self._odb = odb
        self._statistics_path = statistics_path
        self._lock = threading.Lock()
        self._serial = 0
        self._bytes_sent = 0
        self._started = time.time()
        self._last_record: Optional[Record] = None

    def emit(self) -> bytes:
        """Latest value per channel as of now, packed as float32"""
        return pack_values(self.store.snapshot())

    def emit_record(self) -> Record:
        """emit() plus event metadata; updates the statistics"""
        payload = self.emit()
        with self._lock:
            record = Record(
                event_id=self.event_id,
                trigger_mask=self.trigger_mask,
                serial_number=self._serial,
                timestamp=time.time(),
                bank_name=BANK_NAME,
                payload=payload,
            )
            self._serial += 1
            self._bytes_sent += record.size
            self._last_record = record
        self._publish_statistics()
        return record

    def snapshot_record(self) -> Record:
        """emit() plus metadata, outside the schedule: no serial, no statistics"""
        return Record(
            event_id=self.event_id,
            trigger_mask=self.trigger_mask,
            serial_number=None,
            timestamp=time.time(),
            bank_name=BANK_NAME,
            payload=self.emit(),
        )

    @property
    def last_record(self) -> Optional[Record]:
        with self._lock:
            return self._last_record

    def statistics(self) -> Dict[str, float]:
        with self._lock:
            elapsed = max(time.time() - self._started, 1e-9)
            return {
                "Events sent": float(self._serial),
                "Events per sec.": self._serial / elapsed,
                "kBytes per sec.": self._bytes_sent / 1024.0 / elapsed,
            }

    def _publish_statistics(self) -> None:
        if self._odb is None or not self._statistics_path:
            return
        self._odb.set(self._statistics_path, self.statistics())


RecordListener = Callable[[Record], Any]


class RecordScheduler:
    """Periodic event trigger: pulls a record every period_ms"""

    def __init__(self, emitter: RecordEmitter, error_sink: ErrorSink, period_ms: int = 2000):
        self.emitter = emitter
        self.error_sink = error_sink
        self.period_ms = period_ms
        self._listeners: List[RecordListener] = []
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def add_listener(self, listener: RecordListener) -> None:
        self._listeners.append(listener)

    def trigger(self) -> Record:
        """Emit one record and hand it to the listeners"""
        record = self.emitter.emit_record()
        for listener in self._listeners:
            listener(record)
        return record

    def _run(self) -> None:
        period = self.period_ms / 1000.0
        logger.info(f"Record scheduler started (period: {self.period_ms} ms)")
        while not self._stop_event.wait(period):
            try:
                self.trigger()
            except Exception as e:
                self.error_sink.report(POLL_ERROR, f"Record emission failed: {e}",
                                       source="record_scheduler")
        logger.info("Record scheduler stopped")

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="record-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
