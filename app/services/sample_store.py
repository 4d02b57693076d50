# ============================================================
# File: sample_store.py - latest measured value per channel
# ============================================================
# One float slot per channel index. Every slot has its own lock,
# so a reader (record emitter, API) never sees a partial write and
# never waits for a whole sweep.
# The values are written through to the shared store array
# /Equipment/<name>/Variables/Measured.
# ============================================================

import threading
from typing import List, Optional

from app.core.odb import SharedStore


class SampleStore:
    """Latest value per channel"""

    def __init__(self, length: int, odb: Optional[SharedStore] = None,
                 measured_path: Optional[str] = None):
        """
        Args:
            length: number of channels N
            odb: shared store to mirror into (optional)
            measured_path: path of the "Measured" array in the store
        """
        if length < 0:
            raise ValueError("length must be >= 0")

        self._values: List[float] = [0.0] * length
        self._locks = [threading.Lock() for _ in range(length)]
        self._odb = odb
        self._measured_path = measured_path

        # Resume from the store: keep previous values, zero-fill new slots
        if odb is not None and measured_path:
            previous = odb.resize(measured_path, length, 0.0)
            for i, value in enumerate(previous):
                self._values[i] = float(value) if value is not None else 0.0

    def __len__(self) -> int:
        return len(self._values)

    def write(self, index: int, value: float) -> None:
        """Overwrite the value of one channel"""
        value = float(value)
        with self._locks[index]:
            self._values[index] = value
        if self._odb is not None and self._measured_path:
            self._odb.set_element(self._measured_path, index, value)

    def read(self, index: int) -> float:
        with self._locks[index]:
            return self._values[index]

    def snapshot(self) -> List[float]:
        """Latest value of every slot as of this call (not a consistent cross-slot snapshot)"""
        return [self.read(i) for i in range(len(self._values))]

    def sync(self) -> bool:
        """Persist the shared store"""
        if self._odb is None:
            return False
        return self._odb.flush()
