"""A thread-safe in-memory job store."""

from __future__ import annotations

import copy
import dataclasses
import threading
from datetime import datetime, timezone
from typing import Any

from mediapipeline.schemas.status import ErrorInfo, JobState, Progress
from mediapipeline.store.base import (
    TERMINAL_STATES,
    InvalidJobIDError,
    Job,
    JobExistsError,
    JobNotFoundError,
    ListFilter,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _copy_job(job: Job) -> Job:
    return dataclasses.replace(
        job,
        progress=copy.copy(job.progress),
        error=copy.copy(job.error),
    )


def _state_key(status: Any) -> str:
    return str(getattr(status, "value", status))


class MemoryStore:
    """Keeps jobs in a dictionary; callers always get copies."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._jobs: dict[str, Job] = {}

    def __enter__(self) -> MemoryStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def create_job(self, job: Job) -> None:
        """Store a new job; raise JobExistsError if the ID is taken."""
        if not job.job_id:
            raise InvalidJobIDError()
        with self._lock:
            if job.job_id in self._jobs:
                raise JobExistsError()
            self._jobs[job.job_id] = _copy_job(job)

    def get_job(self, job_id: str) -> Job:
        """Return a copy of the job with this ID."""
        if not job_id:
            raise InvalidJobIDError()
        with self._lock:
            try:
                return _copy_job(self._jobs[job_id])
            except KeyError:
                raise JobNotFoundError() from None

    def update_job(self, job: Job) -> None:
        """Replace an existing job and stamp its update time."""
        if not job.job_id:
            raise InvalidJobIDError()
        with self._lock:
            if job.job_id not in self._jobs:
                raise JobNotFoundError()
            job.updated = _now()
            self._jobs[job.job_id] = _copy_job(job)

    def delete_job(self, job_id: str) -> None:
        """Remove a job."""
        if not job_id:
            raise InvalidJobIDError()
        with self._lock:
            if job_id not in self._jobs:
                raise JobNotFoundError()
            del self._jobs[job_id]

    def list_jobs(self, filter: ListFilter | None = None) -> list[Job]:
        """Return copies of matching jobs, sorted and paginated."""
        with self._lock:
            jobs = [_copy_job(j) for j in self._jobs.values() if _matches(j, filter)]
        jobs = _sort_jobs(jobs, filter)
        return _paginate(jobs, filter)

    def update_job_status(
        self, job_id: str, status: JobState, progress: Progress | None = None
    ) -> None:
        """Set status and progress, stamping start and completion times."""
        if not job_id:
            raise InvalidJobIDError()
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError()
            job.status = status
            job.updated = _now()
            if progress is not None:
                job.progress = copy.copy(progress)
            now = _now()
            if status == JobState("processing") and job.started_at is None:
                job.started_at = now
            if status in TERMINAL_STATES and job.completed_at is None:
                job.completed_at = now

    def update_job_error(self, job_id: str, error: ErrorInfo | None) -> None:
        """Record a copy of the error on the job."""
        if not job_id:
            raise InvalidJobIDError()
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError()
            if error is not None:
                job.error = copy.copy(error)
            job.updated = _now()

    def close(self) -> None:
        """Nothing to release for an in-memory store."""


def _matches(job: Job, filter: ListFilter | None) -> bool:
    if filter is None:
        return True
    if filter.status and job.status not in filter.status:
        return False
    if filter.created_after is not None and job.created < filter.created_after:
        return False
    if filter.created_before is not None and job.created > filter.created_before:
        return False
    return True


def _sort_jobs(jobs: list[Job], filter: ListFilter | None) -> list[Job]:
    if filter is None or not filter.sort_by:
        return sorted(jobs, key=lambda j: j.created, reverse=True)
    descending = filter.sort_order == "desc"
    if filter.sort_by == "created":
        return sorted(jobs, key=lambda j: j.created, reverse=descending)
    if filter.sort_by == "updated":
        return sorted(jobs, key=lambda j: j.updated, reverse=descending)
    if filter.sort_by == "status":
        return sorted(jobs, key=lambda j: _state_key(j.status), reverse=descending)
    return jobs


def _paginate(jobs: list[Job], filter: ListFilter | None) -> list[Job]:
    if filter is None:
        return jobs
    if filter.offset > 0:
        if filter.offset >= len(jobs):
            return []
        jobs = jobs[filter.offset:]
    if 0 < filter.limit < len(jobs):
        jobs = jobs[: filter.limit]
    return jobs