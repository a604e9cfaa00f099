# webmonitor

Building blocks for watching the inner state of a long-running service:
thread-safe counters and states, counter diffs over time, delay histograms,
output as JSON, `key:value` lines or the Prometheus text format, and tables
of monitor and reload handlers.

The package has no runtime dependencies.

## Modules

- `webmonitor.module_state`: `ModuleState`, a thread-safe bag of named
  counters, string states, numeric states and float states, and
  `StateData`, a snapshot of it.
- `webmonitor.counters`: `Counters`, a `dict` of integer counters with
  `inc`, `dec`, `init_keys`, `diff` and `sum`.
- `webmonitor.counter_slice`: `CounterSlice` and `CounterDiff`, the change
  in a set of counters between two snapshots.
- `webmonitor.delay_summary` and `webmonitor.delay_recent`: `DelaySummary`
  and `DelayRecent`, delay counts in fixed-width buckets for the current and
  the previous interval.
- `webmonitor.metric_values`: `Counter`, `Gauge` and `State`, single
  thread-safe metric values.
- `webmonitor.hier`: `to_hier_counters`, which nests dotted counter names.
- `webmonitor.keys`: `key_gen`, `escape_key` and `next_interval`.
- `webmonitor.kv_encode`: `encode` and `encode_data`, which write the
  plain attributes of an object as `key:value` lines.
- `webmonitor.web_params`: `params_value_get`, `params_multi_value_get`,
  `get_format`, `MissingParamError` and `UnsupportedFormatError`.
- `webmonitor.web_handler`: `WebHandlers`, `HandlerType`,
  `register_handlers` and `HandlerError`.
- `webmonitor.handler_util`: factories of monitor handlers.
- `webmonitor.reload_src_conf`: loading the list of addresses allowed to
  trigger reloads.

All output methods return `str`.

## Module state

```python
from webmonitor.module_state import ModuleState

state = ModuleState()
state.key_prefix = "mod_x"
state.inc("requests", 1)
state.dec("requests", 1)
state.set("status", "OK")
state.set_num("capacity", 100)
state.set_float("load", 0.75)

data = state.get_all()          # a StateData copy
print(data.kv())
print(data.to_json())
```

`StateData.format_output(params)` picks the output from a query-parameter
mapping such as `{"format": ["kv"]}`. Supported formats are `json` (the
default when no `format` is given), `hier_json`, `kv`, `noah` and
`kv_with_program_name`; anything else raises `UnsupportedFormatError`.

Keys are escaped for monitoring systems that accept only letters, digits,
`-`, `_` and `.`: a counter named `TLS_ALPN_SPDY/3.1` is written as
`TLS_ALPN_SPDY_3.1`. With `kv_with_program_name` and a `program_name` set,
keys take the form `program.prefix_key`.

For `hier_json`, dotted names are nested: `a.b` and `a.c` become
`{"a": {"b": ..., "c": ...}}`. A name that is both a value and a prefix of
another name (`a` and `a.b`) raises `HierarchyError`.

## Counter diffs

```python
from webmonitor.counter_slice import CounterSlice

slice_ = CounterSlice()
slice_.set(state.get_counters())
# ... time passes, counters change ...
slice_.set(state.get_counters())

diff = slice_.get()             # a CounterDiff
print(diff.kv())
print(diff.duration, diff.last_time)
```

`slice_.start(state, interval)` samples `state.get_counters()` in a
background thread at every whole multiple of `interval` seconds within the
minute; `slice_.stop()` ends it.

## Delay histograms

```python
from webmonitor.delay_recent import DelayRecent

delays = DelayRecent(20, 1, 10)   # 20 s interval, 1 ms buckets, 10 buckets
delays.add(1500)                  # a delay in microseconds
print(delays.get_kv())
print(delays.get_prometheus_format())
```

Samples go into the current interval. When the interval rolls over, the
current data becomes the past data. Delays at or above
`bucket_size * bucket_num` milliseconds are counted in the last, open
bucket, and negative delays are ignored. `add_duration` takes a `timedelta`,
and `add_by_sub(start, end)` takes two `datetime` values. The Prometheus
output describes the past interval.

## Metric values

```python
from webmonitor.metric_values import Counter, Gauge, State

served = Counter()
served.inc(1)

active = Gauge()
active.inc(2)
active.dec(1)

version = State()
version.set("1.0.0")
```

Counters and gauges wrap around as 64-bit integers; negative deltas raise
`ValueError`.

## Handler tables

```python
from webmonitor.handler_util import create_state_data_handler
from webmonitor.web_handler import HandlerType, WebHandlers

handlers = WebHandlers()
handlers.register_handler(
    HandlerType.MONITOR, "state", create_state_data_handler(state.get_all)
)

handler = handlers.get_handler(HandlerType.MONITOR, "state")
print(handler({"format": ["kv"]}))
```

A handler must be callable with no argument or with the query parameters.
Registering a command twice, or asking for one that is not registered,
raises `HandlerError`. The handlers made by `webmonitor.handler_util`
render `json`, `kv`, `noah` and `kv_with_program_name`.

## Reload source addresses

`reload_src_ips_load(filename)` reads a JSON file of the form
`{"Version": "...", "Config": {"label": ["10.0.0.1", ...]}}`, checks that a
version is given and that every entry resolves to an address, and returns
all addresses. Errors raise `ReloadSrcConfError`.

## What this package does not do

- It has no HTTP server: nothing here listens on a port or serves the
  handler tables. Handlers are plain callables for you to wire into a
  server of your choice, and `HandlerType` and `WebHandlers` only keep them
  by type and command name.
- It does not check where a reload request comes from; the addresses loaded
  from the reload configuration are returned to you to enforce.
- It has no registry that collects `Counter`, `Gauge` and `State` values
  under names and reports their totals, periodic deltas or Prometheus
  output; each metric value stands alone.