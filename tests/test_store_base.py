from datetime import datetime, timezone

import pytest

from mediapipeline.schemas.status import JobState
from mediapipeline.store.base import (
    InvalidJobIDError,
    Job,
    JobExistsError,
    JobNotFoundError,
    ListFilter,
    StoreError,
)


@pytest.mark.parametrize("state", ["completed", "failed", "cancelled"])
def test_terminal_states(state):
    job = Job(job_id="j", status=JobState(state))
    assert job.is_terminal() is True
    assert job.is_processing() is False
    assert job.is_pending() is False


@pytest.mark.parametrize(
    "state",
    ["validating", "planning", "downloading_inputs", "processing", "uploading_outputs"],
)
def test_processing_states(state):
    job = Job(job_id="j", status=JobState(state))
    assert job.is_processing() is True
    assert job.is_terminal() is False
    assert job.is_pending() is False


def test_pending_state():
    job = Job(job_id="j", status=JobState("pending"))
    assert job.is_pending() is True
    assert job.is_processing() is False
    assert job.is_terminal() is False


def test_default_status_is_pending():
    assert Job(job_id="j").status == JobState("pending")


def test_to_job_status_copies_fields():
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    updated = datetime(2024, 1, 2, tzinfo=timezone.utc)
    job = Job(
        job_id="status-job",
        created=created,
        updated=updated,
        status=JobState("processing"),
        started_at=updated,
    )
    status = job.to_job_status()
    assert status.job_id == "status-job"
    assert status.status == JobState("processing")
    assert status.created_at == created
    assert status.updated_at == updated
    assert status.started_at == updated
    assert status.completed_at is None


def test_error_messages():
    assert str(JobNotFoundError()) == "job not found"
    assert str(JobExistsError()) == "job already exists"
    assert str(InvalidJobIDError()) == "invalid job ID"


@pytest.mark.parametrize(
    "error_class, message",
    [
        (JobNotFoundError, "job not found"),
        (JobExistsError, "job already exists"),
        (InvalidJobIDError, "invalid job ID"),
    ],
)
def test_errors_share_base(error_class, message):
    error = error_class()
    assert issubclass(error_class, StoreError)
    assert str(error) == message


def test_list_filter_defaults():
    f = ListFilter()
    assert f.status == []
    assert f.limit == 0
    assert f.offset == 0
    assert f.sort_by == ""