# mediapipeline

Plan media processing jobs before running them.

A job specification lists its inputs, the operations to apply (trim, scale,
concat and the like) and the outputs to write. `mediapipeline` turns such a
specification into a directed acyclic graph of input, operation and output
nodes, checks it for broken references and cycles, orders it for execution,
and groups independent nodes into stages that can run side by side. Given
media metadata for the inputs and a set of operators, it carries that
metadata (duration, resolution, streams) through every operation and
estimates the time, memory and disk space each step needs.

Alongside the planner it provides:

- a media prober built on `ffprobe`, which reads a file's format and its
  video and audio streams (`mediapipeline.prober`);
- an in-memory, thread-safe job store with status tracking, error recording,
  filtering, sorting and pagination (`mediapipeline.store`);
- a duration parser that accepts `1h30m`, `01:30:00.500` and ISO 8601
  `PT1H30M` forms (`mediapipeline.schemas.duration`).

The package has no dependencies outside the standard library.

## Describing a job

```python
from mediapipeline.schemas.jobspec import JobSpec

spec = JobSpec.from_dict({
    "job_id": "example-job",
    "inputs": [
        {"id": "video", "source": "s3://bucket/input.mp4"},
    ],
    "operations": [
        {"op": "trim", "input": "video", "output": "trimmed",
         "params": {"start": "00:00:10", "duration": "00:00:30"}},
        {"op": "scale", "input": "trimmed", "output": "scaled",
         "params": {"width": 1280, "height": 720}},
    ],
    "outputs": [
        {"id": "scaled", "destination": "s3://bucket/output.mp4"},
    ],
})

spec.validate()      # raises SpecError on empty IDs, duplicates or dangling references
data = spec.to_dict()  # JSON-ready, empty optional fields left out
```

`Input`, `Operation`, `Output`, `CodecParams`, `VideoCodec`, `AudioCodec` and
`ResourceLimits` are plain dataclasses and can also be built directly.
Durations in the dictionary form (`timeout`, `start_offset`, `duration`,
`max_duration`) are read with `parse_duration` and written with
`format_duration`.

## Building and ordering the graph

```python
from mediapipeline.planner.builder import Builder

graph = Builder().build_dag(spec)

print(graph.topological_sort())
# ['input_video', 'op_0_trim', 'op_1_scale', 'output_scaled']

for number, stage in enumerate(graph.execution_stages()):
    print(number, stage)
```

Input nodes are named `input_<id>`, operation nodes `op_<index>_<op>` and
output nodes `output_<id>`. A reference to an ID that nothing produces raises
`ReferenceError_`. Nodes in the same stage do not depend on one another. A
graph with a cycle raises `CycleError` from `detect_cycles`,
`topological_sort` and `execution_stages`.

`Graph` also offers `add_node`, `add_edge`, `get_node`, `outgoing_edges`,
`incoming_edges`, `predecessors`, `successors`, `input_nodes` and
`output_nodes`.

## Operators

The planner knows operations only through a registry: any mapping from an
operator name to an object with three methods (the `Operator` protocol in
`mediapipeline.planner.metadata`):

```python
from datetime import timedelta
from mediapipeline.schemas.plan import NodeEstimates

class Passthrough:
    def validate_params(self, params):
        pass

    def compute_output_metadata(self, params, inputs):
        return inputs[0].clone()

    def estimate_resources(self, params, inputs):
        return NodeEstimates(duration=timedelta(seconds=1), memory_mb=64, disk_mb=10)

registry = {"trim": Passthrough(), "scale": Passthrough()}
```

No operators ship with the package; you supply the registry.

## Metadata and resource estimates

```python
from datetime import timedelta
from mediapipeline.planner.metadata import MetadataPropagator
from mediapipeline.planner.estimator import ResourceEstimator
from mediapipeline.schemas.plan import FormatInfo, MediaInfo, VideoStream

graph = Builder().build_dag(spec)
graph.get_node("input_video").metadata = MediaInfo(
    format=FormatInfo(duration=timedelta(seconds=60)),
    video_streams=[VideoStream(width=1920, height=1080, frame_rate=30.0)],
)

MetadataPropagator(registry).propagate(graph)
estimates = ResourceEstimator(registry).estimate(graph)
print(estimates.total_duration, estimates.peak_memory_mb, estimates.total_disk_mb)
```

Propagation walks the graph in dependency order; every input node must carry
metadata, and each output node takes a copy of its single predecessor's.
Estimation adds stage durations (stages run one after another), takes the
slowest node within each stage, sums the memory of a stage's nodes for the
peak, and sums disk usage over all nodes. Failures raise `PlanningError`.

## Full planning

```python
from mediapipeline.planner.planner import Planner, PlanOptions

planner = Planner(registry)
planner.validate_operators(spec)   # every operator is registered
planner.validate_parameters(spec)  # every operator accepts its params
plan = planner.plan(spec, PlanOptions())
print(plan.execution_stages)
print(plan.to_dict())
```

`Planner.plan` builds the graph, checks it, and records the nodes, edges,
execution order and stages in a `ProcessingPlan`. Metadata propagation and
resource estimation run only when input nodes carry metadata; nodes built
from a specification carry none, so for estimates use the propagator and
estimator on a graph as shown above. `PlanOptions` can switch either step
off (`skip_metadata_validation`, `skip_resource_estimation`).
`ProcessingPlan.to_dict()` and `MediaInfo.to_dict()` give JSON-ready data
with durations in nanoseconds.

## Probing media

```python
from mediapipeline.prober import Prober

info = Prober().probe("input.mp4", timeout=30)
print(info.format.duration, info.video_streams[0].width)
```

`Prober()` looks for `ffprobe` with `find_ffprobe()`; pass
`Prober(ffprobe_path=...)` to choose another binary. Failures raise
`ProbeError`. `parse_ffprobe_output` reads ffprobe's JSON output directly,
and `parse_frame_rate` reads rates such as `"30000/1001"`.

## Durations

```python
from mediapipeline.schemas.duration import parse_duration, format_duration

parse_duration("1h30m")        # timedelta(seconds=5400)
parse_duration("00:00:01.5")   # timedelta(seconds=1.5)
parse_duration("PT1H30M")      # timedelta(seconds=5400)
format_duration(parse_duration("00:01:30"))  # '1m30s'
```

`duration_to_json` and `duration_from_json` encode and decode a duration as a
JSON string. Unreadable text raises `ValueError`.

## Job store

```python
from mediapipeline.schemas.status import JobState, Progress
from mediapipeline.store.base import Job, ListFilter
from mediapipeline.store.memory import MemoryStore

with MemoryStore() as store:
    store.create_job(Job(job_id="job-1", spec=spec))
    store.update_job_status("job-1", JobState.PROCESSING,
                            Progress(overall_percent=50.0, current_step="processing"))
    job = store.get_job("job-1")
    active = store.list_jobs(ListFilter(status=[JobState.PENDING, JobState.PROCESSING]))
```

`MemoryStore` keeps `Job` records in memory and hands out copies. Status
updates stamp `started_at` when a job enters processing and `completed_at`
when it reaches a terminal state; `update_job_error` records an `ErrorInfo`.
`ListFilter` selects by status and creation time, sorts by `created`,
`updated` or `status` (newest first by default) and paginates with `offset`
and `limit`. Missing jobs raise `JobNotFoundError`, duplicates raise
`JobExistsError` and empty IDs raise `InvalidJobIDError`, all subclasses of
`StoreError`. `Job.to_job_status()` gives the client-facing `JobStatus`.

## What the package does not do

- It does not fetch or store media: there are no storage back ends for local
  files, HTTP or S3. Source and destination URIs are kept in the plan as
  given.
- It does not run FFmpeg or generate FFmpeg commands; the plan's `commands`
  list stays empty.
- It ships no operators; the registry is yours to fill.
- It has no command-line tool or HTTP server, and the only job store is the
  in-memory one.

## Requirements

Python 3.10 or later. Probing media needs an `ffprobe` executable on the
system.