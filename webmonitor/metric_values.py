"""Thread-safe metric values: counters, gauges and string states."""

from __future__ import annotations

import threading

TYPE_GAUGE = "Gauge"
TYPE_COUNTER = "Counter"
TYPE_STATE = "State"

_BITS = 64
_MASK = (1 << _BITS) - 1
_SIGN = 1 << (_BITS - 1)


def _to_int64(value: int) -> int:
    value &= _MASK
    return value - (1 << _BITS) if value >= _SIGN else value


def _check_delta(delta: int) -> None:
    if delta < 0:
        raise ValueError(f"delta must not be negative: {delta}")


class Counter:
    """A monotonically increasing 64-bit counter."""

    metric_type = TYPE_COUNTER

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def inc(self, delta: int) -> None:
        """Increase the counter by the non-negative ``delta``."""
        _check_delta(delta)
        with self._lock:
            self._value = (self._value + delta) & _MASK

    def get(self) -> int:
        """Return the counter value as a signed 64-bit integer."""
        with self._lock:
            return _to_int64(self._value)


class Gauge:
    """A signed 64-bit value that can go up and down."""

    metric_type = TYPE_GAUGE

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def inc(self, delta: int) -> None:
        """Increase the gauge by the non-negative ``delta``."""
        _check_delta(delta)
        with self._lock:
            self._value = _to_int64(self._value + delta)

    def dec(self, delta: int) -> None:
        """Decrease the gauge by the non-negative ``delta``."""
        _check_delta(delta)
        with self._lock:
            self._value = _to_int64(self._value - delta)

    def get(self) -> int:
        with self._lock:
            return self._value

    def set(self, value: int) -> None:
        with self._lock:
            self._value = _to_int64(value)


class State:
    """A string state; empty until set."""

    metric_type = TYPE_STATE

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = ""

    def set(self, value: str) -> None:
        with self._lock:
            self._value = value

    def get(self) -> str:
        with self._lock:
            return self._value