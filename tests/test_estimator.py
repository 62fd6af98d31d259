from datetime import timedelta

import pytest

from mediapipeline.planner.builder import Builder
from mediapipeline.planner.estimator import ResourceEstimator
from mediapipeline.planner.metadata import MetadataPropagator, PlanningError
from mediapipeline.schemas.duration import parse_duration
from mediapipeline.schemas.jobspec import Input, JobSpec, Operation, Output
from mediapipeline.schemas.plan import (
    AudioStream,
    FormatInfo,
    MediaInfo,
    NodeEstimates,
    VideoStream,
)


class TrimOperator:
    def validate_params(self, params):
        if "duration" not in params:
            raise ValueError("duration is required")

    def compute_output_metadata(self, params, inputs):
        result = inputs[0].clone()
        result.format.duration = parse_duration(params["duration"])
        return result

    def estimate_resources(self, params, inputs):
        return NodeEstimates(duration=timedelta(seconds=5), memory_mb=100, disk_mb=10)


class ScaleOperator:
    def validate_params(self, params):
        if "width" not in params or "height" not in params:
            raise ValueError("width and height are required")

    def compute_output_metadata(self, params, inputs):
        result = inputs[0].clone()
        for stream in result.video_streams:
            stream.width = params["width"]
            stream.height = params["height"]
        return result

    def estimate_resources(self, params, inputs):
        return NodeEstimates(duration=timedelta(seconds=8), memory_mb=300, disk_mb=40)


REGISTRY = {"trim": TrimOperator(), "scale": ScaleOperator()}


def _media(size=100 * 1024 * 1024):
    return MediaInfo(
        format=FormatInfo(duration=timedelta(seconds=60), size=size),
        video_streams=[VideoStream(index=0, width=1920, height=1080, frame_rate=30.0)],
        audio_streams=[AudioStream(index=1, sample_rate=48000, channels=2)],
    )


def _linear_spec():
    return JobSpec(
        inputs=[Input(id="video", source="s3://bucket/input.mp4")],
        operations=[
            Operation(
                op="trim",
                input="video",
                output="trimmed",
                params={"start": "00:00:10", "duration": "00:00:30"},
            ),
            Operation(
                op="scale",
                input="trimmed",
                output="scaled",
                params={"width": 1280, "height": 720},
            ),
        ],
        outputs=[Output(id="scaled", destination="s3://bucket/output.mp4")],
    )


def _parallel_spec():
    trim = {"start": "00:00:00", "duration": "00:00:30"}
    return JobSpec(
        inputs=[
            Input(id="video1", source="s3://bucket/video1.mp4"),
            Input(id="video2", source="s3://bucket/video2.mp4"),
        ],
        operations=[
            Operation(op="trim", input="video1", output="trimmed1", params=dict(trim)),
            Operation(op="trim", input="video2", output="trimmed2", params=dict(trim)),
        ],
        outputs=[
            Output(id="trimmed1", destination="s3://bucket/output1.mp4"),
            Output(id="trimmed2", destination="s3://bucket/output2.mp4"),
        ],
    )


def test_estimate_simple():
    graph = Builder().build_dag(_linear_spec())
    graph.get_node("input_video").metadata = _media()
    MetadataPropagator(REGISTRY).propagate(graph)

    estimates = ResourceEstimator(REGISTRY).estimate(graph)

    assert estimates.total_duration == timedelta(seconds=13)
    assert estimates.peak_memory_mb == 300
    assert estimates.total_disk_mb == 50
    assert set(estimates.node_estimates) == {"op_0_trim", "op_1_scale"}
    assert estimates.node_estimates["op_0_trim"].duration > timedelta(0)


def test_missing_metadata():
    spec = JobSpec(
        inputs=[Input(id="video", source="s3://bucket/input.mp4")],
        operations=[
            Operation(
                op="trim",
                input="video",
                output="trimmed",
                params={"start": "00:00:10", "duration": "00:00:30"},
            )
        ],
        outputs=[Output(id="trimmed", destination="s3://bucket/output.mp4")],
    )
    graph = Builder().build_dag(spec)

    with pytest.raises(PlanningError, match="has no metadata"):
        ResourceEstimator(REGISTRY).estimate(graph)


def test_parallel_operations_share_a_stage():
    graph = Builder().build_dag(_parallel_spec())
    base = _media(size=50 * 1024 * 1024)
    graph.get_node("input_video1").metadata = base
    graph.get_node("input_video2").metadata = base
    MetadataPropagator(REGISTRY).propagate(graph)

    estimates = ResourceEstimator(REGISTRY).estimate(graph)

    assert set(estimates.node_estimates) == {"op_0_trim", "op_1_trim"}
    # Parallel nodes: duration is the stage maximum, memory adds up.
    assert estimates.total_duration == timedelta(seconds=5)
    assert estimates.peak_memory_mb == 200
    assert estimates.total_disk_mb == 20


def test_invalid_operator():
    spec = JobSpec(
        inputs=[Input(id="video", source="s3://bucket/input.mp4")],
        operations=[Operation(op="nonexistent", input="video", output="processed")],
        outputs=[Output(id="processed", destination="s3://bucket/output.mp4")],
    )
    graph = Builder().build_dag(spec)
    graph.get_node("input_video").metadata = MediaInfo(
        format=FormatInfo(duration=timedelta(seconds=60))
    )

    with pytest.raises(PlanningError):
        ResourceEstimator(REGISTRY).estimate(graph)


def test_unknown_operator_with_metadata_reports_not_found():
    spec = JobSpec(
        inputs=[Input(id="video", source="s3://bucket/input.mp4")],
        operations=[Operation(op="nonexistent", input="video", output="processed")],
        outputs=[Output(id="processed", destination="s3://bucket/output.mp4")],
    )
    graph = Builder().build_dag(spec)
    graph.get_node("input_video").metadata = _media()
    graph.get_node("op_0_nonexistent").metadata = _media()

    with pytest.raises(PlanningError, match="operator nonexistent not found"):
        ResourceEstimator(REGISTRY).estimate(graph)