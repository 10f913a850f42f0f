"""Snowflake-style ID generator for position IDs.

Generates monotonically increasing, unique string IDs so positions sort by
placement time. Simplified for a single process per machine_id.
"""

import threading
import time


class SnowflakeIdGenerator:
    """Layout (63 bits): 41 bits ms since epoch | 10 bits machine | 12 bits sequence."""

    _EPOCH_MS = 1_735_689_600_000  # 2025-01-01T00:00:00Z
    _MACHINE_BITS = 10
    _SEQUENCE_BITS = 12
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, machine_id: int = 0) -> None:
        if not (0 <= machine_id < (1 << self._MACHINE_BITS)):
            raise ValueError(f"machine_id must be 0-{(1 << self._MACHINE_BITS) - 1}")
        self._machine_id = machine_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            now_ms = self._current_ms()
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    # sequence exhausted for this millisecond
                    while now_ms <= self._last_ms:
                        now_ms = self._current_ms()
            else:
                self._sequence = 0
            self._last_ms = now_ms
            value = (
                ((now_ms - self._EPOCH_MS) << (self._MACHINE_BITS + self._SEQUENCE_BITS))
                | (self._machine_id << self._SEQUENCE_BITS)
                | self._sequence
            )
            # zero-padded so lexicographic order matches numeric order
            return f"{value:019d}"

    @staticmethod
    def _current_ms() -> int:
        return int(time.time() * 1000)


_default_generator = SnowflakeIdGenerator()


def generate_id(prefix: str = "") -> str:
    """Next ID from the module-level generator, e.g. generate_id("bet_")."""
    return f"{prefix}{_default_generator.next_id()}"
