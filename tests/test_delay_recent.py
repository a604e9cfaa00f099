import json
from datetime import datetime, timedelta

import pytest

from webmonitor.delay_recent import DelayOutput, DelayRecent
from webmonitor.delay_summary import DelaySummary
from webmonitor.web_params import UnsupportedFormatError


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def make_recent(bucket_num=10):
    clock = FakeClock(datetime(2020, 1, 2, 10, 0, 5))
    return DelayRecent(20, 1, bucket_num, clock), clock


def test_delay_recent_json():
    table = DelayRecent(20, 1, 10)
    data = json.loads(table.get_json())
    assert data["Current"]["Count"] == 0

    start = datetime.now()
    table.add_by_sub(start, start + timedelta(microseconds=1500))
    table.add(2500)
    data = json.loads(table.get_json())
    assert data["Current"]["Count"] + data["Past"]["Count"] == 2
    assert data["Interval"] == 20


def test_format_output():
    delay = DelayRecent(20, 1, 100)
    assert json.loads(delay.format_output({"format": ["json"]}))["Interval"] == 20
    assert "Current_BucketNum:100\n" in delay.format_output({"format": ["kv"]})
    with pytest.raises(UnsupportedFormatError):
        delay.format_output({"format": ["no_kv"]})


def test_add_and_switch():
    table, clock = make_recent()
    table.add(1500)
    table.add(2500)
    out = table.get()
    assert out.current.count == 2
    assert out.current.ave == 2000
    assert out.curr_time == "2020-01-02 10:00:00"
    assert out.past_time == "0001-01-01 00:00:00"

    clock.now = datetime(2020, 1, 2, 10, 0, 25)
    out = table.get()
    assert out.current.count == 0
    assert out.past.count == 2
    assert out.past.counters[1] == 1
    assert out.past.counters[2] == 1
    assert out.past_time == "2020-01-02 10:00:00"
    assert out.curr_time == "2020-01-02 10:00:25"


def test_add_duration_and_clear():
    table, _ = make_recent()
    table.add_duration(timedelta(milliseconds=3))
    assert table.get().current.sum == 3000
    table.clear()
    assert table.get().current.count == 0


def test_kv_with_prefix_and_program_name():
    table, _ = make_recent(bucket_num=1)
    table.key_prefix = "delay"
    table.program_name = "bfe"
    table.add(500)
    kv = table.get_kv()
    assert kv.startswith("delay_Current_BucketSize:1\n")
    assert "delay_Current_Counters_0:1\n" in kv
    assert "delay_Past_Count:0\n" in kv
    kv_prog = table.get_kv_with_program_name()
    assert kv_prog.startswith("bfe.delay_Current_BucketSize:1\n")


def test_prometheus_format():
    output = DelayOutput(interval=20, program_name="bfe", past=DelaySummary(1, 2))
    output.past.add(500)
    output.past.add(1500)
    output.past.add(9000)
    assert output.prometheus() == (
        "# TYPE bfe.Past histogram\n"
        'bfe.Past_bucket{le="1000"} 1\n'
        'bfe.Past_bucket{le="2000"} 2\n'
        'bfe.Past_bucket{le="+Inf"} 3\n'
        "bfe.Past_sum 11000\n"
        "bfe.Past_count 3\n"
    )


def test_sum():
    a = DelayOutput(20, curr_time="2020-01-01 00:00:00", current=DelaySummary(1, 2),
                    past_time="2020-01-01 00:00:00", past=DelaySummary(1, 2))
    b = DelayOutput(20, curr_time="2020-01-01 00:00:20", current=DelaySummary(1, 2),
                    past_time="2019-12-31 00:00:00", past=DelaySummary(1, 2))
    a.current.add(1000)
    b.current.add(3000)
    a.sum(b)
    assert a.current.count == 2
    assert a.current.ave == 2000
    assert a.curr_time == "2020-01-01 00:00:20"
    assert a.past_time == "2020-01-01 00:00:00"


def test_sum_mismatch():
    a = DelayOutput(20, current=DelaySummary(1, 2), past=DelaySummary(1, 2))
    with pytest.raises(ValueError, match="Interval"):
        a.sum(DelayOutput(30, current=DelaySummary(1, 2), past=DelaySummary(1, 2)))
    with pytest.raises(ValueError, match="bucket"):
        a.sum(DelayOutput(20, current=DelaySummary(2, 2), past=DelaySummary(1, 2)))


def test_to_dict_keys_order():
    table, _ = make_recent()
    assert list(table.get().to_dict()) == [
        "Interval", "KeyPrefix", "ProgramName", "CurrTime", "Current", "PastTime", "Past",
    ]