import json

import pytest

from webmonitor.hier import HierarchyError
from webmonitor.module_state import ModuleState, StateData, escape_quote
from webmonitor.web_params import UnsupportedFormatError


def test_module_state():
    state = ModuleState()
    state.inc("counter", 1)
    state.inc("counter", 2)
    state.dec("counter", 1)
    state.set("state", "OK")
    state.set_num("cap", 100)

    data = state.get_all()
    assert data.s_counters["counter"] == 2
    assert data.states["state"] == "OK"
    assert state.get_counter("counter") == 2

    state.inc("counter2", 3)
    counters = state.get_counters()
    assert counters["counter"] == 2
    assert counters["counter2"] == 3

    assert state.get_state("state") == "OK"
    assert state.get_num_state("cap") == 100


def test_missing_values_default():
    state = ModuleState()
    assert state.get_counter("x") == 0
    assert state.get_state("x") == ""
    assert state.get_num_state("x") == 0
    assert state.get_float_state("x") == 0.0


def test_counters_init():
    state = ModuleState()
    keys = ["test1", "test2", "test3"]
    state.counters_init(keys)
    counters = state.get_counters()
    assert {k: counters[k] for k in keys} == {"test1": 0, "test2": 0, "test3": 0}


def test_delete_and_float():
    state = ModuleState()
    state.set("s", "v")
    state.delete("s")
    state.delete("absent")
    state.set_float("ratio", 0.5)
    assert state.get_state("s") == ""
    assert state.get_float_state("ratio") == 0.5


def test_get_all_is_copy():
    state = ModuleState()
    state.inc("c", 1)
    data = state.get_all()
    data.s_counters["c"] = 100
    assert state.get_counter("c") == 1


def test_prefix_and_program_name_in_snapshot():
    state = ModuleState()
    state.key_prefix = "mod"
    state.program_name = "prog"
    state.inc("c", 1)
    data = state.get_all()
    assert data.kv() == "mod_c:1\n"
    assert data.kv_with_program_name() == "prog.mod_c:1\n"


def test_state_data_kv():
    sd = StateData()
    sd.s_counters.inc("counter", 1)
    sd.states["state"] = "ok"
    sd.num_states["num_state"] = 1
    assert sd.kv() == 'counter:1\nstate:"ok"\nnum_state:1\n'

    sd = StateData()
    sd.s_counters.inc("TLS_ALPN_SPDY/3.1", 1)
    sd.states["TLS_ALPN_SPDY/2.1"] = "ok"
    sd.num_states["TLS_ALPN_SPDY/1.1"] = 1
    assert sd.kv() == (
        "TLS_ALPN_SPDY_3.1:1\n" 'TLS_ALPN_SPDY_2.1:"ok"\n' "TLS_ALPN_SPDY_1.1:1\n"
    )


def test_kv_float_and_quote():
    sd = StateData()
    sd.states["s"] = 'say "hi"'
    sd.float_states["cap"] = 100.1
    assert sd.kv() == 's:"say \\"hi\\""\ncap:100.100000\n'


def test_escape_quote():
    assert escape_quote('a"b"') == 'a\\"b\\"'


def test_format_output_state_data():
    s = StateData()
    s.s_counters.init_keys(["baidu"])

    expected = (
        '{"SCounters":{"baidu":0},"States":{},"NumStates":{},'
        '"FloatStates":{},"KeyPrefix":"","ProgramName":""}'
    )
    assert s.format_output({"param": ["no_format"]}) == expected
    assert s.format_output({"format": ["json"]}) == expected
    assert s.format_output({"format": ["hier_json"]}) == (
        '{"SCounters":{"baidu":0},"States":{},"NumStates":{},"KeyPrefix":""}'
    )
    assert s.format_output({"format": ["kv"]}) == "baidu:0\n"
    with pytest.raises(UnsupportedFormatError):
        s.format_output({"format": ["no_exist"]})


def test_json_float_values():
    sd = StateData()
    sd.float_states["a"] = 100.0
    sd.float_states["b"] = 100.1
    assert json.loads(sd.to_json())["FloatStates"] == {"a": 100, "b": 100.1}
    assert '"a":100,' in sd.to_json()


def test_to_hier_state_data_case0():
    sd = StateData()
    sd.s_counters.inc("baidu", 1)
    sd.states["state"] = "ok"
    sd.num_states["num_state"] = 1

    hsd = sd.to_hier_dict()
    assert hsd["SCounters"]["baidu"] == 1
    assert hsd["States"]["state"] == "ok"
    assert hsd["NumStates"]["num_state"] == 1


def test_to_hier_state_data_case1():
    sd = StateData()
    sd.s_counters.inc("baidu.op.bfe", 1)
    assert sd.to_hier_dict()["SCounters"] == {"baidu": {"op": {"bfe": 1}}}


def test_hier_json_conflict():
    sd = StateData()
    sd.s_counters.inc("baidu", 1)
    sd.s_counters.inc("baidu.a", 1)
    with pytest.raises(HierarchyError, match="GetSdHierJson"):
        sd.hier_json()