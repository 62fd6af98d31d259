import json
from datetime import timedelta

from mediapipeline.schemas.plan import (
    AudioStream,
    FormatInfo,
    MediaInfo,
    NodeEstimates,
    PlanEdge,
    PlanNode,
    ProcessingPlan,
    ResourceEstimates,
    VideoStream,
)


def _media():
    return MediaInfo(
        format=FormatInfo(filename="input.mp4", duration=timedelta(seconds=60)),
        video_streams=[VideoStream(index=0, codec="h264", width=1920, height=1080, frame_rate=30.0)],
        audio_streams=[AudioStream(index=1, codec="aac", sample_rate=48000, channels=2)],
    )


def test_clone_equal_and_independent():
    original = _media()
    clone = original.clone()
    assert clone == original
    clone.video_streams[0].width = 1280
    clone.format.duration = timedelta(seconds=30)
    clone.audio_streams.append(AudioStream(index=2))
    assert original.video_streams[0].width == 1920
    assert original.format.duration == timedelta(seconds=60)
    assert len(original.audio_streams) == 1


def test_empty_media_info_to_dict():
    assert MediaInfo().to_dict() == {"format": {"duration": 0, "size": 0}}


def test_media_info_to_dict_uses_nanoseconds():
    data = MediaInfo(format=FormatInfo(duration=timedelta(seconds=10))).to_dict()
    assert data["format"]["duration"] == 10_000_000_000


def test_media_info_streams_serialised():
    data = _media().to_dict()
    assert data["video_streams"][0]["width"] == 1920
    assert data["audio_streams"][0]["sample_rate"] == 48000
    assert "pixel_format" not in data["video_streams"][0]
    assert data["format"]["filename"] == "input.mp4"


def _plan(estimates=None):
    nodes = [
        PlanNode(id="input_video", type="input", input_id="video", source_uri="s3://bucket/input.mp4",
                 metadata=_media()),
        PlanNode(id="op_0_trim", type="operation", operator="trim", params={"start": "00:00:10"}),
    ]
    edges = [PlanEdge(source="input_video", target="op_0_trim", stream_type="both")]
    return ProcessingPlan(
        job_id="example-job",
        nodes=nodes,
        edges=edges,
        execution_order=["input_video", "op_0_trim"],
        execution_stages=[["input_video"], ["op_0_trim"]],
        resource_estimate=estimates,
    )


def test_plan_to_dict_edges_and_nodes():
    plan = _plan()
    data = plan.to_dict()
    assert data["edges"] == [{"from": "input_video", "to": "op_0_trim", "stream_type": "both"}]
    assert data["nodes"][0]["metadata"] == plan.nodes[0].metadata.to_dict()
    assert data["nodes"][1]["params"] == {"start": "00:00:10"}
    assert "metadata" not in data["nodes"][1]
    assert "resource_estimate" not in data
    assert data["execution_stages"] == [["input_video"], ["op_0_trim"]]


def test_plan_to_dict_includes_estimates():
    est = ResourceEstimates(
        node_estimates={"op_0_trim": NodeEstimates(duration=timedelta(seconds=1), memory_mb=256, disk_mb=10)},
        total_duration=timedelta(seconds=1),
        peak_memory_mb=256,
        total_disk_mb=10,
    )
    data = _plan(est).to_dict()
    resources = data["resource_estimate"]
    assert set(resources["node_estimates"]) == {"op_0_trim"}
    assert resources["peak_memory_mb"] == 256
    assert resources["node_estimates"]["op_0_trim"]["duration"] == resources["total_duration"]


def test_plan_to_dict_is_json_serialisable():
    data = _plan().to_dict()
    assert json.loads(json.dumps(data)) == data