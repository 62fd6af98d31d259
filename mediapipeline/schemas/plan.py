"""The compiled processing plan and the media metadata carried through it."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any


def _ns(value: timedelta) -> int:
    return (value // timedelta(microseconds=1)) * 1000


def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (str, list, dict, tuple)):
        return not value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return False


def _compact(data: dict[str, Any], *required: str) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k in required or not _is_empty(v)}


def _format_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    text = value.isoformat()
    return text[:-6] + "Z" if text.endswith("+00:00") else text


@dataclass
class FormatInfo:
    """Container-level media properties."""

    filename: str = ""
    format: str = ""
    duration: timedelta = timedelta(0)
    size: int = 0
    bit_rate: int = 0
    start_time: timedelta = timedelta(0)


@dataclass
class VideoStream:
    """A video stream's properties."""

    index: int = 0
    codec: str = ""
    width: int = 0
    height: int = 0
    frame_rate: float = 0.0
    pixel_format: str = ""
    bit_rate: int = 0
    duration: timedelta = timedelta(0)


@dataclass
class AudioStream:
    """An audio stream's properties."""

    index: int = 0
    codec: str = ""
    sample_rate: int = 0
    channels: int = 0
    bit_rate: int = 0
    duration: timedelta = timedelta(0)


@dataclass
class MediaInfo:
    """Detected or computed media properties."""

    format: FormatInfo = field(default_factory=FormatInfo)
    video_streams: list[VideoStream] = field(default_factory=list)
    audio_streams: list[AudioStream] = field(default_factory=list)

    def clone(self) -> MediaInfo:
        """Return an independent copy."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-shaped dictionary; durations are in nanoseconds."""
        fmt = self.format
        return _compact(
            {
                "format": _compact(
                    {
                        "filename": fmt.filename,
                        "format": fmt.format,
                        "duration": _ns(fmt.duration),
                        "size": fmt.size,
                        "bit_rate": fmt.bit_rate,
                        "start_time": _ns(fmt.start_time),
                    },
                    "duration",
                    "size",
                ),
                "video_streams": [
                    _compact(
                        {
                            "index": v.index,
                            "codec": v.codec,
                            "width": v.width,
                            "height": v.height,
                            "frame_rate": v.frame_rate,
                            "pixel_format": v.pixel_format,
                            "bit_rate": v.bit_rate,
                            "duration": _ns(v.duration),
                        },
                        "index",
                        "codec",
                        "width",
                        "height",
                        "frame_rate",
                    )
                    for v in self.video_streams
                ],
                "audio_streams": [
                    _compact(
                        {
                            "index": a.index,
                            "codec": a.codec,
                            "sample_rate": a.sample_rate,
                            "channels": a.channels,
                            "bit_rate": a.bit_rate,
                            "duration": _ns(a.duration),
                        },
                        "index",
                        "codec",
                        "sample_rate",
                        "channels",
                    )
                    for a in self.audio_streams
                ],
            },
            "format",
        )


@dataclass
class NodeEstimates:
    """Resource estimates for one node."""

    duration: timedelta = timedelta(0)
    memory_mb: int = 0
    disk_mb: int = 0
    cpu_cores: float = 0.0


@dataclass
class ResourceEstimates:
    """Resource estimates for a whole plan."""

    node_estimates: dict[str, NodeEstimates] = field(default_factory=dict)
    total_duration: timedelta = timedelta(0)
    peak_memory_mb: int = 0
    total_disk_mb: int = 0


@dataclass
class PlanNode:
    """A node of the execution graph: an input, an operation or an output."""

    id: str
    type: str
    input_id: str = ""
    source_uri: str = ""
    operator: str = ""
    params: dict[str, Any] = field(default_factory=dict)
    output_id: str = ""
    dest_uri: str = ""
    metadata: MediaInfo | None = None
    estimates: NodeEstimates | None = None


@dataclass
class PlanEdge:
    """A dependency from one node to another."""

    source: str
    target: str
    stream_type: str = ""


@dataclass
class FFmpegCommand:
    """A generated FFmpeg invocation."""

    id: str
    stage: str = ""
    command: str = ""
    args: list[str] = field(default_factory=list)
    work_dir: str = ""
    depends_on: list[str] = field(default_factory=list)
    filtergraph: str = ""


def _estimates_to_dict(est: NodeEstimates) -> dict[str, Any]:
    return _compact(
        {
            "duration": _ns(est.duration),
            "memory_mb": est.memory_mb,
            "disk_mb": est.disk_mb,
            "cpu_cores": est.cpu_cores,
        },
        "duration",
        "memory_mb",
        "disk_mb",
    )


def _resources_to_dict(res: ResourceEstimates) -> dict[str, Any]:
    return {
        "node_estimates": {k: _estimates_to_dict(v) for k, v in res.node_estimates.items()},
        "total_duration": _ns(res.total_duration),
        "peak_memory_mb": res.peak_memory_mb,
        "total_disk_mb": res.total_disk_mb,
    }


def _node_to_dict(node: PlanNode) -> dict[str, Any]:
    return _compact(
        {
            "id": node.id,
            "type": node.type,
            "input_id": node.input_id,
            "source_uri": node.source_uri,
            "operator": node.operator,
            "params": dict(node.params),
            "output_id": node.output_id,
            "dest_uri": node.dest_uri,
            "metadata": None if node.metadata is None else node.metadata.to_dict(),
            "estimates": None if node.estimates is None else _estimates_to_dict(node.estimates),
        },
        "id",
        "type",
    )


def _edge_to_dict(edge: PlanEdge) -> dict[str, Any]:
    return _compact(
        {"from": edge.source, "to": edge.target, "stream_type": edge.stream_type},
        "from",
        "to",
    )


def _command_to_dict(cmd: FFmpegCommand) -> dict[str, Any]:
    return _compact(
        {
            "id": cmd.id,
            "stage": cmd.stage,
            "command": cmd.command,
            "args": list(cmd.args),
            "work_dir": cmd.work_dir,
            "depends_on": list(cmd.depends_on),
            "filtergraph": cmd.filtergraph,
        },
        "id",
        "stage",
        "command",
        "args",
        "work_dir",
    )


@dataclass
class ProcessingPlan:
    """The compiled execution plan for a job."""

    plan_id: str = ""
    job_id: str = ""
    created_at: datetime | None = None
    nodes: list[PlanNode] = field(default_factory=list)
    edges: list[PlanEdge] = field(default_factory=list)
    execution_order: list[str] = field(default_factory=list)
    execution_stages: list[list[str]] = field(default_factory=list)
    resource_estimate: ResourceEstimates | None = None
    ffmpeg_version: str = ""
    commands: list[FFmpegCommand] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-shaped dictionary of the plan."""
        result: dict[str, Any] = {
            "plan_id": self.plan_id,
            "job_id": self.job_id,
            "created_at": _format_time(self.created_at),
            "nodes": [_node_to_dict(n) for n in self.nodes],
            "edges": [_edge_to_dict(e) for e in self.edges],
            "execution_order": list(self.execution_order),
            "execution_stages": [list(stage) for stage in self.execution_stages],
        }
        if self.resource_estimate is not None:
            result["resource_estimate"] = _resources_to_dict(self.resource_estimate)
        result["ffmpeg_version"] = self.ffmpeg_version
        result["commands"] = [_command_to_dict(c) for c in self.commands]
        return result