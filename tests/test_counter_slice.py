import json
import re
import time
from unittest import mock

import pytest

from webmonitor.counter_slice import CounterDiff, CounterSlice
from webmonitor.counters import Counters
from webmonitor.hier import HierarchyError
from webmonitor.web_params import UnsupportedFormatError


def test_counter_slice_get():
    cs = CounterSlice()
    assert len(cs.get().diff) == 0

    counters = Counters({"test": 123})
    with mock.patch("time.monotonic", return_value=100.0):
        cs.set(counters)
    assert len(cs.get().diff) == 0

    counters["test"] = 223
    with mock.patch("time.monotonic", return_value=101.2):
        cs.set(counters)
    diff = cs.get()
    assert diff.diff["test"] == 100
    assert diff.duration == 1
    assert re.fullmatch(r"\d{4}-\d\d-\d\d \d\d:\d\d:\d\d", diff.last_time)


def test_counter_slice_set_copies_input():
    cs = CounterSlice()
    counters = Counters({"a": 1})
    cs.set(counters)
    counters["a"] = 5
    cs.set(counters)
    assert cs.get().diff == {"a": 4}


def test_counter_slice_carries_prefix_and_program():
    cs = CounterSlice()
    cs.key_prefix = "mod"
    cs.program_name = "prog"
    diff = cs.get()
    assert diff.key_prefix == "mod"
    assert diff.program_name == "prog"
    assert diff.last_time == ""


def test_counter_slice_get_json_uninitialised():
    cs = CounterSlice()
    assert json.loads(cs.get_json()) == {
        "LastTime": "",
        "Duration": 0,
        "Diff": {},
        "KeyPrefix": "",
        "ProgramName": "",
    }


def test_counter_diff_kv():
    diff = CounterDiff(last_time="1234", duration=5678)
    diff.diff.inc("counter", 1)
    assert diff.kv() == "counter:1\n"


def test_counter_diff_kv_with_program_name():
    diff = CounterDiff(last_time="1234", duration=5678, program_name="program")
    diff.diff.inc("counter", 1)
    assert diff.kv_with_program_name() == "program.counter:1\n"


def test_counter_diff_kv_escapes_keys():
    diff = CounterDiff(key_prefix="mod")
    diff.diff.inc("a/b", 2)
    assert diff.kv() == "mod_a_b:2\n"


def test_format_output():
    diff = CounterSlice().get()
    no_format = diff.format_output({"param": ["no_format"]})
    assert json.loads(no_format)["Diff"] == {}
    assert diff.format_output({"format": ["json"]}) == no_format
    assert json.loads(diff.format_output({"format": ["hier_json"]}))["Diff"] == {}
    assert diff.format_output({"format": ["kv"]}) == ""
    with pytest.raises(UnsupportedFormatError):
        diff.format_output({"format": ["no_exist"]})


def test_to_hier_dict():
    diff = CounterDiff(last_time="lastTime", duration=20)
    diff.diff.inc("baidu.op", 1)
    hier = diff.to_hier_dict()
    assert hier["LastTime"] == "lastTime"
    assert hier["Duration"] == 20
    assert hier["Diff"] == {"baidu": {"op": 1}}


def test_hier_json_text():
    diff = CounterDiff(last_time="lastTime", duration=20)
    diff.diff.inc("baidu.op", 1)
    assert diff.hier_json() == (
        '{"LastTime":"lastTime","Duration":20,"Diff":{"baidu":{"op":1}},"KeyPrefix":""}'
    )


def test_hier_json_conflict():
    diff = CounterDiff()
    diff.diff.inc("a", 1)
    diff.diff.inc("a.b", 1)
    with pytest.raises(HierarchyError, match="GetCdHierJson"):
        diff.hier_json()


def test_json_sorts_counter_names():
    diff = CounterDiff(diff=Counters({"b": 2, "a": 1}))
    assert '"Diff":{"a":1,"b":2}' in diff.to_json()


class _Source:
    def get_counters(self):
        return {"x": 3}


def test_start_and_stop():
    cs = CounterSlice()
    cs.start(_Source(), 60)
    deadline = time.monotonic() + 5
    while cs.get().last_time == "" and time.monotonic() < deadline:
        time.sleep(0.01)
    cs.stop()
    result = cs.get()
    assert result.last_time != ""
    assert result.diff == {}
    assert cs._thread is None