"""Job records, list filters and the interface for job state persistence."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from mediapipeline.schemas.jobspec import JobSpec
from mediapipeline.schemas.plan import ProcessingPlan
from mediapipeline.schemas.status import ErrorInfo, JobState, JobStatus, OutputFile, Progress

TERMINAL_STATES = frozenset(JobState(v) for v in ("completed", "failed", "cancelled"))
PROCESSING_STATES = frozenset(
    JobState(v)
    for v in (
        "validating",
        "planning",
        "downloading_inputs",
        "processing",
        "uploading_outputs",
    )
)


class StoreError(Exception):
    """Base class for job store errors."""


class JobNotFoundError(StoreError, LookupError):
    """Raised when a job does not exist."""

    def __init__(self, message: str = "job not found") -> None:
        super().__init__(message)


class JobExistsError(StoreError):
    """Raised when creating a job whose ID is already taken."""

    def __init__(self, message: str = "job already exists") -> None:
        super().__init__(message)


class InvalidJobIDError(StoreError, ValueError):
    """Raised for an empty or otherwise unusable job ID."""

    def __init__(self, message: str = "invalid job ID") -> None:
        super().__init__(message)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Job:
    """A complete job record as kept by a store."""

    job_id: str
    created: datetime = field(default_factory=_now)
    updated: datetime = field(default_factory=_now)
    spec: JobSpec | None = None
    plan: ProcessingPlan | None = None
    status: JobState = JobState("pending")
    progress: Progress | None = None
    error: ErrorInfo | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    output_files: list[OutputFile] = field(default_factory=list)
    retry_count: int = 0
    worker_id: str = ""

    def to_job_status(self) -> JobStatus:
        """Return the public status view of this job."""
        return JobStatus(
            job_id=self.job_id,
            status=self.status,
            progress=self.progress,
            error=self.error,
            created_at=self.created,
            updated_at=self.updated,
            started_at=self.started_at,
            completed_at=self.completed_at,
            output_files=self.output_files,
        )

    def is_terminal(self) -> bool:
        """True once the job has completed, failed or been cancelled."""
        return self.status in TERMINAL_STATES

    def is_pending(self) -> bool:
        """True while the job waits to be picked up."""
        return self.status == JobState("pending")

    def is_processing(self) -> bool:
        """True while the job is in any active state."""
        return self.status in PROCESSING_STATES


@dataclass
class ListFilter:
    """Criteria for listing jobs.

    A limit of 0 means no limit. sort_by is "created", "updated" or "status";
    sort_order is "asc" or "desc".
    """

    status: list[JobState] = field(default_factory=list)
    created_after: datetime | None = None
    created_before: datetime | None = None
    limit: int = 0
    offset: int = 0
    sort_by: str = ""
    sort_order: str = ""


@runtime_checkable
class Store(Protocol):
    """Persistence for job records."""

    def create_job(self, job: Job) -> None:
        """Store a new job."""

    def get_job(self, job_id: str) -> Job:
        """Return the job with this ID."""

    def update_job(self, job: Job) -> None:
        """Replace an existing job."""

    def delete_job(self, job_id: str) -> None:
        """Remove a job."""

    def list_jobs(self, filter: ListFilter | None = None) -> list[Job]:
        """Return jobs matching the filter."""

    def update_job_status(
        self, job_id: str, status: JobState, progress: Progress | None = None
    ) -> None:
        """Set a job's status and progress."""

    def update_job_error(self, job_id: str, error: ErrorInfo | None) -> None:
        """Record an error for a job."""

    def close(self) -> None:
        """Release resources held by the store."""