"""Tests for workflow notifications."""

from datetime import datetime
from unittest.mock import MagicMock

from placement_portal.models.application import ApplicationStatus
from placement_portal.services.notification_service import NotificationService, build_notification

from tests.conftest import CS_JOB_ID, FACULTY_ID, STUDENT_ID

NOW = datetime(2025, 2, 1, 12, 0, 0)
S = ApplicationStatus


def test_new_application_asks_faculty_for_approval():
    doc = build_notification("abc", STUDENT_ID, True, None, S.applied, NOW)

    assert doc["type"] == "approval-required"
    assert doc["recipient_role"] == "faculty"
    assert doc["related_entity"] == {"type": "application", "id": "abc"}
    assert doc["is_read"] is False
    assert doc["created_at"] == NOW


def test_new_application_without_approval_is_silent():
    assert build_notification("abc", STUDENT_ID, False, None, S.applied, NOW) is None


def test_interview_and_offer_are_high_priority():
    interview = build_notification("abc", STUDENT_ID, True, S.shortlisted, S.interview_scheduled, NOW)
    offer = build_notification("abc", STUDENT_ID, True, S.interview_scheduled, S.offer_extended, NOW)

    assert (interview["type"], interview["priority"]) == ("interview-scheduled", "high")
    assert (offer["type"], offer["priority"]) == ("offer-extended", "high")
    assert interview["recipient"] == STUDENT_ID


def test_other_changes_are_status_updates():
    doc = build_notification("abc", STUDENT_ID, True, S.applied, S.rejected, NOW)
    assert doc["type"] == "application-status"
    assert doc["priority"] == "medium"
    assert "rejected" in doc["message"]


def test_service_writes_one_document_per_transition(workflow, repository, applied):
    collection = MagicMock()
    service = NotificationService(repository, collection, clock=lambda: NOW)

    service.on_transition(applied.id, S.applied, S.under_review, FACULTY_ID)

    doc = collection.insert_one.call_args[0][0]
    assert doc["recipient"] == STUDENT_ID
    assert doc["triggered_by"] == FACULTY_ID
    assert doc["type"] == "application-status"


def test_service_skips_unknown_application(repository):
    collection = MagicMock()
    service = NotificationService(repository, collection, clock=lambda: NOW)

    service.on_transition("000000000000000000000000", S.applied, S.rejected, 1)

    collection.insert_one.assert_not_called()


def test_service_as_workflow_trigger(repository, job_directory, student_directory, clock):
    from placement_portal.services.workflow_service import ApplicationWorkflow

    collection = MagicMock()
    service = NotificationService(repository, collection, clock=lambda: NOW)
    workflow = ApplicationWorkflow(
        repository, job_directory, student_directory,
        trigger=service, clock=clock, faculty_approval_required=True
    )

    workflow.create_application(CS_JOB_ID, STUDENT_ID)

    doc = collection.insert_one.call_args[0][0]
    assert doc["type"] == "approval-required"
    assert doc["triggered_by"] == STUDENT_ID
