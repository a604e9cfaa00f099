"""Differences of counters between two points in time."""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol

from webmonitor.counters import Counters
from webmonitor.hier import HierarchyError, to_hier_counters
from webmonitor.keys import key_gen, next_interval
from webmonitor.web_params import UnsupportedFormatError, get_format

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class _CounterSource(Protocol):
    def get_counters(self) -> Mapping[str, int]: ...


def _sorted_maps(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _sorted_maps(value[key]) for key in sorted(value)}
    return value


def _dumps(data: Mapping[str, Any]) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


@dataclass
class CounterDiff:
    """Change of counters over ``duration`` seconds ending at ``last_time``."""

    last_time: str = ""
    duration: int = 0
    diff: Counters = field(default_factory=Counters)
    key_prefix: str = ""
    program_name: str = ""

    def _kv(self, with_program_name: bool) -> str:
        return "".join(
            f"{key_gen(key, self.key_prefix, self.program_name, with_program_name)}:{value}\n"
            for key, value in self.diff.items()
        )

    def kv(self) -> str:
        """Return ``key:value`` lines."""
        return self._kv(False)

    def kv_with_program_name(self) -> str:
        """Return ``key:value`` lines with keys carrying the program name."""
        return self._kv(True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "LastTime": self.last_time,
            "Duration": self.duration,
            "Diff": _sorted_maps(self.diff),
            "KeyPrefix": self.key_prefix,
            "ProgramName": self.program_name,
        }

    def to_json(self) -> str:
        return _dumps(self.to_dict())

    def to_hier_dict(self) -> dict[str, Any]:
        """Return the representation with dotted counter names nested."""
        try:
            diff = to_hier_counters(self.diff)
        except HierarchyError as err:
            raise HierarchyError(f"toHierCounterDiff(): {err}") from err
        return {
            "LastTime": self.last_time,
            "Duration": self.duration,
            "Diff": _sorted_maps(diff),
            "KeyPrefix": self.key_prefix,
        }

    def hier_json(self) -> str:
        try:
            data = self.to_hier_dict()
        except HierarchyError as err:
            raise HierarchyError(f"GetCdHierJson(): {err}") from err
        return _dumps(data)

    def format_output(self, params: Mapping[str, Sequence[str]]) -> str:
        """Render in the format named by the ``format`` parameter (json by default)."""
        fmt = get_format(params)
        if fmt == "json":
            return self.to_json()
        if fmt == "hier_json":
            return self.hier_json()
        if fmt in ("kv", "noah"):
            return self.kv()
        if fmt == "kv_with_program_name":
            return self.kv_with_program_name()
        raise UnsupportedFormatError(fmt)


class CounterSlice:
    """Keeps the last counters seen and their change since the set before."""

    def __init__(self) -> None:
        self.key_prefix = ""
        self.program_name = ""
        self._lock = threading.Lock()
        self._last_time: Optional[datetime] = None
        self._last_mono = 0.0
        self._duration = 0.0
        self._counters_last: Optional[Counters] = None
        self._counters_diff = Counters()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def set(self, counters: Mapping[str, int]) -> None:
        """Record ``counters`` and compute the change since the previous call."""
        snapshot = Counters(counters)
        with self._lock:
            now = datetime.now()
            mono = time.monotonic()
            if self._counters_last is None:
                self._counters_diff = Counters()
            else:
                self._duration = mono - self._last_mono
                self._counters_diff = snapshot.diff(self._counters_last)
            self._last_time = now
            self._last_mono = mono
            self._counters_last = snapshot

    def get(self) -> CounterDiff:
        """Return the most recent change."""
        with self._lock:
            result = CounterDiff(key_prefix=self.key_prefix, program_name=self.program_name)
            if self._counters_last is not None and self._last_time is not None:
                result.last_time = self._last_time.strftime(TIME_FORMAT)
                result.duration = int(self._duration)
                result.diff = self._counters_diff.copy()
            return result

    def get_json(self) -> str:
        return self.get().to_json()

    def start(self, state: _CounterSource, interval: int) -> None:
        """Sample ``state.get_counters()`` in the background at every ``interval`` boundary."""
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("counter slice already started")
        self._stop.clear()

        def run() -> None:
            while not self._stop.is_set():
                self.set(state.get_counters())
                self._stop.wait(next_interval(datetime.now(), interval))

        self._thread = threading.Thread(target=run, name="counter-slice", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop background sampling."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None