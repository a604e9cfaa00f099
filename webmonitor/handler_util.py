"""Factories of monitor handlers for state data, delays and counter diffs."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Optional

from webmonitor.counter_slice import CounterDiff
from webmonitor.delay_recent import DelayOutput
from webmonitor.module_state import StateData
from webmonitor.web_params import UnsupportedFormatError, get_format

Params = Mapping[str, Sequence[str]]
MonitorHandler = Callable[[Optional[Params]], str]


def _make_handler(getter: Callable[[], Any], name: str) -> MonitorHandler:
    def handler(params: Optional[Params] = None) -> str:
        data = getter()
        if data is None:
            raise ValueError(f"{name}: invalid data")
        fmt = get_format(params or {})
        if fmt == "json":
            return data.to_json()
        if fmt in ("kv", "noah"):
            return data.kv()
        if fmt == "kv_with_program_name":
            return data.kv_with_program_name()
        raise UnsupportedFormatError(fmt)

    return handler


def create_state_data_handler(getter: Callable[[], Optional[StateData]]) -> MonitorHandler:
    """Return a monitor handler rendering the StateData from ``getter``."""
    return _make_handler(getter, "GetStateDataFunc")


def create_delay_output_handler(
    getter: Callable[[], Optional[DelayOutput]],
) -> MonitorHandler:
    """Return a monitor handler rendering the DelayOutput from ``getter``."""
    return _make_handler(getter, "GetDelayOutputFunc")


def create_counter_diff_handler(
    getter: Callable[[], Optional[CounterDiff]],
) -> MonitorHandler:
    """Return a monitor handler rendering the CounterDiff from ``getter``."""
    return _make_handler(getter, "GetCounterDiffFunc")