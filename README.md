# hfloadgen

Drive load against a serverless function platform's leaf scheduler and
record every call to a CSV file.

A workload is a list of phases. Each phase targets one function image and
either sends a constant number of requests per tick (`constant`) or ramps
the rate from a start value towards an end value by a fixed step each tick
(`variable`). A tick is one second by default. Phases may be written out by
hand or generated from patterns with a seeded random generator, so the same
seed always gives the same workload.

## Configuration

Configuration is a YAML file:

```yaml
leaf_address: localhost:50050
max_duration: 1m
timeout: 10
generate_workload: true
seed: 42

patterns:
  echo:
    image_tag: hyperfaas-echo:latest
    phase_count: {min: 2, max: 4}
    constant_likelihood: 0.6
    ramping_likelihood: 0.4
    parameters:
      start_rps: {min: 5, max: 15}
      end_rps: {min: 20, max: 50}
      step: {min: 1, max: 5}

function_config:
  hyperfaas-echo:latest:
    memory: 256MB
```

`leaf_address`, `max_duration` and `timeout` are required. When
`generate_workload` is true, `patterns` must be given. A hand-written
`workload` section holds `leaf_address`, `max_duration`, `timeout` and
`phases`, each phase with `name`, `type`, `start_time`, `duration`,
`start_rps`, `end_rps`, `step`, `image_tag` and optionally `function_id`.
A `constant` phase needs `start_rps` and must not set `end_rps` or `step`;
a `variable` phase needs both `end_rps` and `step`.

Durations are written as `500ms`, `30s`, `1m`, `1h30m` (units `ns`, `us`,
`ms`, `s`, `m`, `h`); a bare integer is read as nanoseconds.
`hfloadgen.models.parse_duration` does this conversion.

Memory in `function_config` is given in `MB` or `GB` (for example `256MB`
or `1.5GB`) and must be at least 6MB; `hfloadgen.function.convert_memory`
turns it into bytes and raises `ValueError` otherwise.

## Usage

Load and check a configuration, then generate a workload from its patterns:

```python
from hfloadgen.models import load_config
from hfloadgen.workload_generator import WorkloadGenerator

config = load_config("workload_config.yaml")
generator = WorkloadGenerator(
    config.seed,
    config.max_duration,
    config.leaf_address,
    config.timeout,
    config.patterns,
)
workload = generator.generate_workload()
for phase in workload.phases:
    print(phase.image_tag, phase.type, phase.start_time, phase.start_rps)
```

`load_config` reads a file, `parse_config` takes the YAML text, and
`validate_config` checks a `Config` built by hand. All of them raise
`ConfigError` on a missing or invalid setting.

### Payloads

Request bodies come from data providers, chosen per image tag:

```python
from hfloadgen.data import BFSJSONDataProvider, EchoDataProvider

EchoDataProvider(256, 1024).get_data()   # random bytes, a multiple of 8 long
BFSJSONDataProvider(100, 250).get_data() # e.g. b'{"Size":137}'
```

`ThumbnailerJSONDataProvider(image)` wraps image bytes as
`{"image":"<base64>","width":<w>,"height":<h>}` with a random width and
height; `fetch_image(url)` downloads such an image.

`hfloadgen.controller.build_data_providers` picks providers for the known
image tags `hyperfaas-echo:latest`, `hyperfaas-bfs-json:latest` and
`hyperfaas-thumbnailer-json:latest` (the last needs a `thumbnail_url`);
other tags are skipped.

### Results

A `Collector` (default file `results.csv`) writes one row per call, with
the columns `timestamp`, `function_id`, `latency_ms`, `status`, `error`,
`request_size_bytes`, `response_size_bytes`, `call_queued_timestamp`,
`got_response_timestamp`, `instance_id`, `leaf_got_request_timestamp`,
`leaf_scheduled_call_timestamp` and `function_processing_time_ns`. The
`latency_ms` column holds the latency in nanoseconds, and `status` holds
the status code's name, such as `OK` or `Unavailable`. `collect` is safe
to call from many threads; `run_flusher(stop, interval)` flushes
periodically until the event is set; the collector is also a context
manager.

### Running a workload

The package does not talk to the leaf over the network itself. You pass
in two callables:

- for `FunctionManager(create_call)`, `create_call(image_tag, memory_bytes, cpu)`
  creates a function and returns its id;
- for `LeafClient(call)`, `call(request)` takes a `ScheduleCallRequest`
  (`function_id`, `data`) and returns `(response_bytes, trailers)`, or
  raises on failure (a `CallError` carries its `StatusCode`; any other
  exception is recorded as `Unknown`).

```python
from hfloadgen.client import LeafClient
from hfloadgen.collector import Collector
from hfloadgen.controller import Controller
from hfloadgen.function import FunctionManager
from hfloadgen.models import load_config

config = load_config("workload_config.yaml")
controller = Controller(
    config,
    LeafClient(my_schedule_call),
    FunctionManager(my_create_function),
    Collector("results.csv"),
)
controller.run()
```

`Controller.run` creates one function per distinct image tag, starts each
phase at its start time with a `ConstantExecutor` or `RampingExecutor`,
stops everything after the configured maximum duration, waits for
in-flight calls and closes the collector. It raises `ValueError` if a phase
has an image tag without a data provider; pass `data_providers` to the
`Controller` to supply your own.

## What this package does not do

- It has no command-line program; it is used as a library.
- It ships no gRPC or other network client for the leaf scheduler; the
  remote calls are supplied by the caller as shown above.

## Tests

The test suite uses pytest, installed with the `test` extra.