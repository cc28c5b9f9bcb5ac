"""Snowflake-style IDs for auctions, lots, bids and squads.

IDs are decimal strings that sort in creation order, so a lot seeded
earlier or a bid placed earlier always carries the smaller id. Managers
use database-generated UUIDs instead.
"""

import threading
import time


class SnowflakeIdGenerator:
    """Snowflake ID generator.

    Layout (64 bits):
      - 41 bits: millisecond timestamp (since custom epoch)
      - 10 bits: machine_id (0-1023)
      - 12 bits: sequence (0-4095 per millisecond)
    """

    _EPOCH_MS = 1_700_000_000_000
    _MACHINE_BITS = 10
    _SEQUENCE_BITS = 12
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, machine_id: int = 0) -> None:
        if not (0 <= machine_id < (1 << self._MACHINE_BITS)):
            raise ValueError(f"machine_id must be 0-{(1 << self._MACHINE_BITS) - 1}")
        self._machine_id = machine_id
        self._sequence = 0
        self._last_timestamp_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            return self._next_locked()

    def next_ids(self, count: int) -> list[str]:
        """Reserve ``count`` consecutive ids under one lock (bulk lot seeding)."""
        with self._lock:
            return [self._next_locked() for _ in range(count)]

    def _next_locked(self) -> str:
        ts = self._current_ms()
        if ts < self._last_timestamp_ms:
            # Clock stepped back: keep issuing from the last seen millisecond
            ts = self._last_timestamp_ms
        if ts == self._last_timestamp_ms:
            self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
            if self._sequence == 0:
                ts = self._wait_next_ms(ts)
        else:
            self._sequence = 0

        self._last_timestamp_ms = ts
        return str(
            ((ts - self._EPOCH_MS) << (self._MACHINE_BITS + self._SEQUENCE_BITS))
            | (self._machine_id << self._SEQUENCE_BITS)
            | self._sequence
        )

    def _current_ms(self) -> int:
        return int(time.time() * 1000)

    def _wait_next_ms(self, last_ts: int) -> int:
        ts = self._current_ms()
        while ts <= last_ts:
            ts = self._current_ms()
        return ts


_default_generator = SnowflakeIdGenerator()


def generate_id() -> str:
    return _default_generator.next_id()


def generate_ids(count: int) -> list[str]:
    return _default_generator.next_ids(count)
