"""The user-submitted job specification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from mediapipeline.schemas.duration import format_duration, parse_duration


class SpecError(ValueError):
    """Raised when a job specification is malformed or inconsistent."""


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


def _parse_time(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise SpecError("timestamp must be a string")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise SpecError(f"invalid timestamp: {value}") from exc


def _format_opt_duration(value: timedelta | None) -> str | None:
    return None if value is None else format_duration(value)


def _parse_opt_duration(value: Any) -> timedelta | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise SpecError("duration must be a string")
    try:
        return parse_duration(value)
    except ValueError as exc:
        raise SpecError(str(exc)) from exc


@dataclass
class Input:
    """An input source."""

    id: str
    source: str
    type: str = ""
    format: str = ""
    start_offset: timedelta | None = None
    duration: timedelta | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class Operation:
    """A processing step that reads one or more inputs and names its output."""

    op: str
    output: str = ""
    input: str = ""
    inputs: list[str] = field(default_factory=list)
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class VideoCodec:
    """Video codec settings."""

    codec: str = ""
    bitrate: str = ""
    crf: int | None = None
    preset: str = ""
    profile: str = ""
    pixel_format: str = ""


@dataclass
class AudioCodec:
    """Audio codec settings."""

    codec: str = ""
    bitrate: str = ""
    sample_rate: int = 0
    channels: int = 0


@dataclass
class CodecParams:
    """Codec settings for an output."""

    video: VideoCodec | None = None
    audio: AudioCodec | None = None


@dataclass
class Output:
    """An output destination."""

    id: str
    destination: str
    format: str = ""
    codec: CodecParams | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class ResourceLimits:
    """Resource constraints for a job."""

    max_duration: timedelta | None = None
    max_resolution: str = ""
    max_output_size: int = 0
    max_memory: int = 0


def _input_to_dict(item: Input) -> dict[str, Any]:
    return _compact(
        {
            "id": item.id,
            "source": item.source,
            "type": item.type,
            "format": item.format,
            "start_offset": _format_opt_duration(item.start_offset),
            "duration": _format_opt_duration(item.duration),
            "metadata": dict(item.metadata),
        },
        "id",
        "source",
    )


def _input_from_dict(data: dict[str, Any]) -> Input:
    return Input(
        id=data.get("id", ""),
        source=data.get("source", ""),
        type=data.get("type", ""),
        format=data.get("format", ""),
        start_offset=_parse_opt_duration(data.get("start_offset")),
        duration=_parse_opt_duration(data.get("duration")),
        metadata=dict(data.get("metadata") or {}),
    )


def _operation_to_dict(item: Operation) -> dict[str, Any]:
    return _compact(
        {
            "op": item.op,
            "input": item.input,
            "inputs": list(item.inputs),
            "output": item.output,
            "params": dict(item.params),
        },
        "op",
        "output",
    )


def _operation_from_dict(data: dict[str, Any]) -> Operation:
    return Operation(
        op=data.get("op", ""),
        output=data.get("output", ""),
        input=data.get("input", ""),
        inputs=list(data.get("inputs") or []),
        params=dict(data.get("params") or {}),
    )


def _codec_to_dict(codec: CodecParams) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if codec.video is not None:
        video = codec.video
        result["video"] = _compact(
            {
                "codec": video.codec,
                "bitrate": video.bitrate,
                "preset": video.preset,
                "profile": video.profile,
                "pixel_format": video.pixel_format,
            }
        )
        if video.crf is not None:
            result["video"]["crf"] = video.crf
    if codec.audio is not None:
        audio = codec.audio
        result["audio"] = _compact(
            {
                "codec": audio.codec,
                "bitrate": audio.bitrate,
                "sample_rate": audio.sample_rate,
                "channels": audio.channels,
            }
        )
    return result


def _codec_from_dict(data: dict[str, Any] | None) -> CodecParams | None:
    if data is None:
        return None
    video = data.get("video")
    audio = data.get("audio")
    return CodecParams(
        video=None
        if video is None
        else VideoCodec(
            codec=video.get("codec", ""),
            bitrate=video.get("bitrate", ""),
            crf=video.get("crf"),
            preset=video.get("preset", ""),
            profile=video.get("profile", ""),
            pixel_format=video.get("pixel_format", ""),
        ),
        audio=None
        if audio is None
        else AudioCodec(
            codec=audio.get("codec", ""),
            bitrate=audio.get("bitrate", ""),
            sample_rate=audio.get("sample_rate", 0),
            channels=audio.get("channels", 0),
        ),
    )


def _output_to_dict(item: Output) -> dict[str, Any]:
    return _compact(
        {
            "id": item.id,
            "destination": item.destination,
            "format": item.format,
            "codec": None if item.codec is None else _codec_to_dict(item.codec),
            "metadata": dict(item.metadata),
        },
        "id",
        "destination",
        *(("codec",) if item.codec is not None else ()),
    )


def _output_from_dict(data: dict[str, Any]) -> Output:
    return Output(
        id=data.get("id", ""),
        destination=data.get("destination", ""),
        format=data.get("format", ""),
        codec=_codec_from_dict(data.get("codec")),
        metadata=dict(data.get("metadata") or {}),
    )


def _limits_to_dict(limits: ResourceLimits) -> dict[str, Any]:
    return _compact(
        {
            "max_duration": _format_opt_duration(limits.max_duration),
            "max_resolution": limits.max_resolution,
            "max_output_size": limits.max_output_size,
            "max_memory": limits.max_memory,
        }
    )


def _limits_from_dict(data: dict[str, Any] | None) -> ResourceLimits | None:
    if data is None:
        return None
    return ResourceLimits(
        max_duration=_parse_opt_duration(data.get("max_duration")),
        max_resolution=data.get("max_resolution", ""),
        max_output_size=data.get("max_output_size", 0),
        max_memory=data.get("max_memory", 0),
    )


@dataclass
class JobSpec:
    """A complete job: inputs, the operations applied to them, and outputs."""

    inputs: list[Input] = field(default_factory=list)
    operations: list[Operation] = field(default_factory=list)
    outputs: list[Output] = field(default_factory=list)
    job_id: str = ""
    created_at: datetime | None = None
    user_id: str = ""
    tags: dict[str, str] = field(default_factory=dict)
    debug: bool = False
    priority: int = 0
    timeout: timedelta | None = None
    limits: ResourceLimits | None = None
    webhook_url: str = ""

    def validate(self) -> None:
        """Check IDs and references; raise SpecError on the first problem."""
        available: set[str] = set()
        for item in self.inputs:
            if not item.id:
                raise SpecError("input ID cannot be empty")
            if not item.source:
                raise SpecError(f"input '{item.id}' source cannot be empty")
            if item.id in available:
                raise SpecError(f"duplicate input ID: '{item.id}'")
            available.add(item.id)

        for index, op in enumerate(self.operations):
            if not op.op:
                raise SpecError(f"operation {index}: operator name cannot be empty")
            references = ([op.input] if op.input else []) + list(op.inputs)
            for ref in references:
                if ref not in available:
                    raise SpecError(
                        f"operation {index} ({op.op}): input '{ref}' not found"
                    )
            if op.output:
                if op.output in available:
                    raise SpecError(
                        f"operation {index} ({op.op}): duplicate output ID '{op.output}'"
                    )
                available.add(op.output)

        for index, out in enumerate(self.outputs):
            if not out.id:
                raise SpecError(f"output {index}: ID cannot be empty")
            if not out.destination:
                raise SpecError(f"output '{out.id}': destination cannot be empty")
            if out.id not in available:
                raise SpecError(
                    f"output '{out.id}': refers to non-existent input/operation output"
                )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JobSpec:
        """Build a JobSpec from its JSON-shaped dictionary."""
        limits = data.get("limits")
        return cls(
            inputs=[_input_from_dict(d) for d in data.get("inputs") or []],
            operations=[_operation_from_dict(d) for d in data.get("operations") or []],
            outputs=[_output_from_dict(d) for d in data.get("outputs") or []],
            job_id=data.get("job_id", ""),
            created_at=_parse_time(data.get("created_at")),
            user_id=data.get("user_id", ""),
            tags=dict(data.get("tags") or {}),
            debug=bool(data.get("debug", False)),
            priority=data.get("priority", 0),
            timeout=_parse_opt_duration(data.get("timeout")),
            limits=_limits_from_dict(limits),
            webhook_url=data.get("webhook_url", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-shaped dictionary, leaving out empty optional fields."""
        return _compact(
            {
                "job_id": self.job_id,
                "created_at": _format_time(self.created_at),
                "user_id": self.user_id,
                "tags": dict(self.tags),
                "debug": self.debug,
                "priority": self.priority,
                "timeout": _format_opt_duration(self.timeout),
                "inputs": [_input_to_dict(i) for i in self.inputs],
                "operations": [_operation_to_dict(o) for o in self.operations],
                "outputs": [_output_to_dict(o) for o in self.outputs],
                "limits": None if self.limits is None else _limits_to_dict(self.limits),
                "webhook_url": self.webhook_url,
            },
            "inputs",
            "operations",
            "outputs",
            *(("limits",) if self.limits is not None else ()),
        )