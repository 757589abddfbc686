"""Tests for the append-only timeline recorder."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from placement_portal.models.application import Application, ApplicationStatus
from placement_portal.services.timeline_service import TimelineRecorder, snapshot


def test_record_appends_in_order_with_actor_and_time():
    times = iter([datetime(2025, 1, 1, 9), datetime(2025, 1, 1, 10)])
    recorder = TimelineRecorder(clock=lambda: next(times))
    application = Application(job_id=1, student_id=2)

    first = recorder.record(application, ApplicationStatus.applied, 2)
    second = recorder.record(application, ApplicationStatus.under_review, 7, "looks good")

    assert application.timeline == [first, second]
    assert second.status == ApplicationStatus.under_review
    assert second.updated_by == 7
    assert second.comments == "looks good"
    assert first.timestamp < second.timestamp


def test_entries_are_frozen():
    recorder = TimelineRecorder()
    application = Application(job_id=1, student_id=2)
    entry = recorder.record(application, ApplicationStatus.applied, 2)

    with pytest.raises(ValidationError):
        entry.status = ApplicationStatus.rejected


def test_snapshot_is_an_independent_tuple():
    recorder = TimelineRecorder()
    application = Application(job_id=1, student_id=2)
    recorder.record(application, ApplicationStatus.applied, 2)

    history = snapshot(application)
    recorder.record(application, ApplicationStatus.rejected, 9)

    assert isinstance(history, tuple)
    assert len(history) == 1
    assert len(application.timeline) == 2


def test_blank_comment_is_stored_as_none():
    recorder = TimelineRecorder()
    application = Application(job_id=1, student_id=2)
    entry = recorder.record(application, ApplicationStatus.applied, 2, "")
    assert entry.comments is None
