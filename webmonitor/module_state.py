"""State of a module: counters, string states, numeric and float states."""

from __future__ import annotations

import json
import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from webmonitor.counters import Counters
from webmonitor.hier import HierarchyError, to_hier_counters
from webmonitor.keys import key_gen
from webmonitor.web_params import UnsupportedFormatError, get_format


def escape_quote(value: str) -> str:
    """Escape double quotes with a backslash."""
    return value.replace('"', '\\"')


def _sorted_maps(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _sorted_maps(value[key]) for key in sorted(value)}
    return value


def _json_float(value: float) -> float | int:
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


def _dumps(data: Mapping[str, Any]) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


@dataclass
class StateData:
    """A snapshot of module state."""

    s_counters: Counters = field(default_factory=Counters)
    states: dict[str, str] = field(default_factory=dict)
    num_states: Counters = field(default_factory=Counters)
    float_states: dict[str, float] = field(default_factory=dict)
    key_prefix: str = ""
    program_name: str = ""

    def copy(self) -> "StateData":
        return StateData(
            s_counters=Counters(self.s_counters),
            states=dict(self.states),
            num_states=Counters(self.num_states),
            float_states=dict(self.float_states),
            key_prefix=self.key_prefix,
            program_name=self.program_name,
        )

    def _key(self, key: str, with_program_name: bool) -> str:
        return key_gen(key, self.key_prefix, self.program_name, with_program_name)

    def _kv(self, with_program_name: bool) -> str:
        lines = [f"{self._key(k, with_program_name)}:{v}\n" for k, v in self.s_counters.items()]
        lines.extend(
            f'{self._key(k, with_program_name)}:"{escape_quote(v)}"\n'
            for k, v in self.states.items()
        )
        lines.extend(
            f"{self._key(k, with_program_name)}:{v}\n" for k, v in self.num_states.items()
        )
        lines.extend(
            f"{self._key(k, with_program_name)}:{v:f}\n" for k, v in self.float_states.items()
        )
        return "".join(lines)

    def kv(self) -> str:
        """Return ``key:value`` lines."""
        return self._kv(False)

    def kv_with_program_name(self) -> str:
        """Return ``key:value`` lines with keys carrying the program name."""
        return self._kv(True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "SCounters": _sorted_maps(self.s_counters),
            "States": _sorted_maps(self.states),
            "NumStates": _sorted_maps(self.num_states),
            "FloatStates": {
                key: _json_float(self.float_states[key]) for key in sorted(self.float_states)
            },
            "KeyPrefix": self.key_prefix,
            "ProgramName": self.program_name,
        }

    def to_json(self) -> str:
        return _dumps(self.to_dict())

    def to_hier_dict(self) -> dict[str, Any]:
        """Return the representation with dotted counter names nested."""
        try:
            s_counters = to_hier_counters(self.s_counters)
        except HierarchyError as err:
            raise HierarchyError(f"toHierStateData(): Scounters {err}") from err
        try:
            num_states = to_hier_counters(self.num_states)
        except HierarchyError as err:
            raise HierarchyError(f"toHierStateData(): NumStates {err}") from err
        return {
            "SCounters": _sorted_maps(s_counters),
            "States": _sorted_maps(self.states),
            "NumStates": _sorted_maps(num_states),
            "KeyPrefix": self.key_prefix,
        }

    def hier_json(self) -> str:
        try:
            data = self.to_hier_dict()
        except HierarchyError as err:
            raise HierarchyError(f"GetSdHierJson(): {err}") from err
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


class ModuleState:
    """Thread-safe state of a module."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data = StateData()

    @property
    def key_prefix(self) -> str:
        return self._data.key_prefix

    @key_prefix.setter
    def key_prefix(self, prefix: str) -> None:
        self._data.key_prefix = prefix

    @property
    def program_name(self) -> str:
        return self._data.program_name

    @program_name.setter
    def program_name(self, name: str) -> None:
        self._data.program_name = name

    def inc(self, key: str, value: int) -> None:
        with self._lock:
            self._data.s_counters.inc(key, value)

    def dec(self, key: str, value: int) -> None:
        with self._lock:
            self._data.s_counters.dec(key, value)

    def counters_init(self, keys: Iterable[str]) -> None:
        """Set the counters for ``keys`` to zero."""
        with self._lock:
            self._data.s_counters.init_keys(keys)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data.states[key] = value

    def delete(self, key: str) -> None:
        """Remove the string state ``key`` if present."""
        with self._lock:
            self._data.states.pop(key, None)

    def set_num(self, key: str, value: int) -> None:
        with self._lock:
            self._data.num_states[key] = value

    def set_float(self, key: str, value: float) -> None:
        with self._lock:
            self._data.float_states[key] = value

    def get_counter(self, key: str) -> int:
        with self._lock:
            return self._data.s_counters.get(key, 0)

    def get_counters(self) -> Counters:
        with self._lock:
            return Counters(self._data.s_counters)

    def get_state(self, key: str) -> str:
        with self._lock:
            return self._data.states.get(key, "")

    def get_num_state(self, key: str) -> int:
        with self._lock:
            return self._data.num_states.get(key, 0)

    def get_float_state(self, key: str) -> float:
        with self._lock:
            return self._data.float_states.get(key, 0.0)

    def get_all(self) -> StateData:
        """Return a copy of all state."""
        with self._lock:
            return self._data.copy()