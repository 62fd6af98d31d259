"""Job states and the real-time status reported for a job."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from mediapipeline.schemas.plan import MediaInfo


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


class JobState(str, Enum):
    """The lifecycle state of a job."""

    PENDING = "pending"
    VALIDATING = "validating"
    PLANNING = "planning"
    DOWNLOADING_INPUTS = "downloading_inputs"
    PROCESSING = "processing"
    UPLOADING_OUTPUTS = "uploading_outputs"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    def is_terminal(self) -> bool:
        """True for states a job never leaves."""
        return self in (JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED)


@dataclass
class DownloadProgress:
    """Progress of input downloads."""

    total_files: int = 0
    completed_files: int = 0
    current_file: str = ""
    bytes_downloaded: int = 0
    total_bytes: int = 0


@dataclass
class FFmpegProgress:
    """Progress of an FFmpeg run."""

    frame: int = 0
    fps: float = 0.0
    current_time: str = ""
    total_time: str = ""
    speed: str = ""
    bitrate: str = ""
    total_size: int = 0


@dataclass
class UploadProgress:
    """Progress of output uploads."""

    total_files: int = 0
    completed_files: int = 0
    current_file: str = ""
    bytes_uploaded: int = 0
    total_bytes: int = 0


@dataclass
class StepProgress:
    """Detailed progress of the current step."""

    download_progress: DownloadProgress | None = None
    ffmpeg_progress: FFmpegProgress | None = None
    upload_progress: UploadProgress | None = None


@dataclass
class Progress:
    """Overall progress of a job."""

    overall_percent: float = 0.0
    current_step: str = ""
    step_progress: StepProgress | None = None
    estimated_completion: datetime | None = None


@dataclass
class OutputFile:
    """A produced output file."""

    output_id: str
    destination: str
    file_size: int = 0
    md5: str = ""
    duration: float = 0.0
    media_info: MediaInfo | None = None


@dataclass
class ErrorInfo:
    """Details of a job failure."""

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    ffmpeg_stderr: str = ""
    ffmpeg_exit_code: int = 0
    stack_trace: str = ""
    retryable: bool = False
    retry_after: timedelta | None = None


def _step_to_dict(step: StepProgress) -> dict[str, Any]:
    parts = {
        "download_progress": step.download_progress,
        "ffmpeg_progress": step.ffmpeg_progress,
        "upload_progress": step.upload_progress,
    }
    return {k: dataclasses.asdict(v) for k, v in parts.items() if v is not None}


def _progress_to_dict(progress: Progress) -> dict[str, Any]:
    result: dict[str, Any] = {
        "overall_percent": progress.overall_percent,
        "current_step": progress.current_step,
    }
    if progress.step_progress is not None:
        result["step_progress"] = _step_to_dict(progress.step_progress)
    if progress.estimated_completion is not None:
        result["estimated_completion"] = _format_time(progress.estimated_completion)
    return result


def _error_to_dict(error: ErrorInfo) -> dict[str, Any]:
    result = _compact(
        {
            "code": error.code,
            "message": error.message,
            "details": dict(error.details),
            "ffmpeg_stderr": error.ffmpeg_stderr,
            "ffmpeg_exit_code": error.ffmpeg_exit_code,
            "stack_trace": error.stack_trace,
            "retryable": error.retryable,
        },
        "code",
        "message",
        "retryable",
    )
    if error.retry_after is not None:
        result["retry_after"] = _ns(error.retry_after)
    return result


def _output_file_to_dict(item: OutputFile) -> dict[str, Any]:
    return _compact(
        {
            "output_id": item.output_id,
            "destination": item.destination,
            "file_size": item.file_size,
            "md5": item.md5,
            "duration": item.duration,
            "media_info": None if item.media_info is None else item.media_info.to_dict(),
        },
        "output_id",
        "destination",
        "file_size",
    )


@dataclass
class JobStatus:
    """The status of a job as reported to clients."""

    job_id: str
    status: JobState
    created_at: datetime
    updated_at: datetime
    progress: Progress | None = None
    error: ErrorInfo | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    output_files: list[OutputFile] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-shaped dictionary of the status."""
        return _compact(
            {
                "job_id": self.job_id,
                "status": JobState(self.status).value,
                "progress": None if self.progress is None else _progress_to_dict(self.progress),
                "error": None if self.error is None else _error_to_dict(self.error),
                "created_at": _format_time(self.created_at),
                "updated_at": _format_time(self.updated_at),
                "started_at": _format_time(self.started_at),
                "completed_at": _format_time(self.completed_at),
                "output_files": [_output_file_to_dict(f) for f in self.output_files],
            },
            "job_id",
            "status",
            "created_at",
            "updated_at",
        )