"""Delay histograms for the current and the previous interval."""

from __future__ import annotations

import json
import math
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional

from webmonitor.delay_summary import DelaySummary
from webmonitor.keys import key_gen
from webmonitor.web_params import UnsupportedFormatError, get_format

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_ZERO_TIME = "0001-01-01 00:00:00"


def _format_time(value: Optional[datetime]) -> str:
    return _ZERO_TIME if value is None else value.strftime(TIME_FORMAT)


def _unix(value: datetime) -> int:
    return math.floor(value.timestamp())


def _microseconds(delta: timedelta) -> int:
    return delta // timedelta(microseconds=1)


@dataclass
class DelayOutput:
    """A snapshot of a DelayRecent."""

    interval: int = 0
    key_prefix: str = ""
    program_name: str = ""
    curr_time: str = ""
    current: DelaySummary = field(default_factory=DelaySummary)
    past_time: str = ""
    past: DelaySummary = field(default_factory=DelaySummary)

    def sum(self, other: "DelayOutput") -> None:
        """Add ``other`` into this output; intervals and buckets must match."""
        if self.interval != other.interval:
            raise ValueError("Interval not match")
        self.current.calc_sum(other.current)
        self.past.calc_sum(other.past)
        self.curr_time = max(self.curr_time, other.curr_time)
        self.past_time = max(self.past_time, other.past_time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "Interval": self.interval,
            "KeyPrefix": self.key_prefix,
            "ProgramName": self.program_name,
            "CurrTime": self.curr_time,
            "Current": self.current.to_dict(),
            "PastTime": self.past_time,
            "Past": self.past.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    def _key(self, key: str, with_program_name: bool) -> str:
        return key_gen(key, self.key_prefix, self.program_name, with_program_name)

    def _kv(self, with_program_name: bool) -> str:
        return self.current.kv_string(
            self._key("Current", with_program_name)
        ) + self.past.kv_string(self._key("Past", with_program_name))

    def kv(self) -> str:
        """Return ``key:value`` lines for current and past."""
        return self._kv(False)

    def kv_with_program_name(self) -> str:
        """Return ``key:value`` lines with keys carrying the program name."""
        return self._kv(True)

    def prometheus(self) -> str:
        """Return the past interval as a Prometheus histogram."""
        return self.past.prometheus_string(self._key("Past", True))


class DelayRecent:
    """Delay counters that roll the current interval into the past one."""

    def __init__(
        self,
        interval: int,
        bucket_size: int,
        bucket_num: int,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._clock = clock or datetime.now
        self._lock = threading.Lock()
        self.interval = interval
        self.key_prefix = ""
        self.program_name = ""

        now = self._clock()
        ts = now.timestamp()
        self._curr_time = datetime.fromtimestamp(ts - ts % interval, tz=now.tzinfo)
        self._past_time: Optional[datetime] = None
        self._current = DelaySummary(bucket_size, bucket_num)
        self._past = DelaySummary(bucket_size, bucket_num)

    def _try_switch(self) -> None:
        now = self._clock()
        if _unix(self._curr_time) // self.interval != _unix(now) // self.interval:
            self._past_time = self._curr_time
            self._curr_time = now
            self._past = self._current.copy()
            self._current.clear()

    def add_by_sub(self, start: datetime, end: datetime) -> None:
        """Add the delay from ``start`` to ``end``."""
        self.add(_microseconds(end - start))

    def clear(self) -> None:
        with self._lock:
            self._current.clear()
            self._past.clear()

    def add(self, duration: int) -> None:
        """Add one delay, in microseconds."""
        with self._lock:
            self._try_switch()
            self._current.add(duration)

    def add_duration(self, duration: timedelta) -> None:
        """Add one delay given as a timedelta."""
        self.add(_microseconds(duration))

    def get(self) -> DelayOutput:
        """Return a snapshot with averages calculated."""
        with self._lock:
            self._try_switch()
            output = DelayOutput(
                interval=self.interval,
                key_prefix=self.key_prefix,
                program_name=self.program_name,
                curr_time=_format_time(self._curr_time),
                current=self._current.copy(),
                past_time=_format_time(self._past_time),
                past=self._past.copy(),
            )
        output.current.calc_avg()
        output.past.calc_avg()
        return output

    def get_json(self) -> str:
        return self.get().to_json()

    def get_kv(self) -> str:
        return self.get().kv()

    def get_kv_with_program_name(self) -> str:
        return self.get().kv_with_program_name()

    def get_prometheus_format(self) -> str:
        return self.get().prometheus()

    def format_output(self, params: Mapping[str, Sequence[str]]) -> str:
        """Render in the format named by the ``format`` parameter (json by default)."""
        fmt = get_format(params)
        if fmt in ("json", "hier_json"):
            return self.get_json()
        if fmt in ("kv", "noah"):
            return self.get_kv()
        if fmt == "kv_with_program_name":
            return self.get_kv_with_program_name()
        if fmt == "prometheus":
            return self.get_prometheus_format()
        raise UnsupportedFormatError(fmt)