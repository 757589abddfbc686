"""
API tests for /api/applications.

The workflow dependency is overridden with the in-memory workflow from
conftest; tokens are minted locally with the configured JWT secret.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from placement_portal.api.deps import get_workflow
from placement_portal.api.routes import api_router
from placement_portal.core.auth import create_access_token

from tests.conftest import (
    CS_JOB_ID, EMPLOYER_ID, FACULTY_ID, OPEN_JOB_ID, OTHER_STUDENT_ID, START, STUDENT_ID
)


def auth(user_id: int, role: str) -> dict:
    token = create_access_token({"sub": str(user_id), "role": role})
    return {"Authorization": f"Bearer {token}"}


STUDENT = auth(STUDENT_ID, "student")
OTHER_STUDENT = auth(OTHER_STUDENT_ID, "student")
EMPLOYER = auth(EMPLOYER_ID, "employer")
OTHER_EMPLOYER = auth(EMPLOYER_ID + 1, "employer")
FACULTY = auth(FACULTY_ID, "faculty")


@pytest.fixture
def client(workflow):
    app = FastAPI()
    app.include_router(api_router, prefix="/api")
    app.dependency_overrides[get_workflow] = lambda: workflow
    return TestClient(app)


def apply(client, job_id=CS_JOB_ID, headers=STUDENT):
    return client.post("/api/applications", json={
        "job_id": job_id,
        "application_data": {
            "resume": "https://files.example.com/resume.pdf",
            "cover_letter": "I would love to join."
        }
    }, headers=headers)


@pytest.fixture
def application_id(client):
    response = apply(client)
    assert response.status_code == 201
    return response.json()["application"]["id"]


# ============================================================
# CREATE AND READ
# ============================================================

def test_apply(client):
    response = apply(client)

    assert response.status_code == 201
    body = response.json()["application"]
    assert body["status"] == "applied"
    assert body["student_id"] == STUDENT_ID
    assert body["application_data"]["resume"] == "https://files.example.com/resume.pdf"
    assert len(body["timeline"]) == 1
    assert body["days_since_applied"] >= 0


def test_stale_application_is_flagged_overdue(client, application_id, workflow):
    # Fixture clock starts in January 2025, well outside the review window
    body = client.get(f"/api/applications/{application_id}", headers=FACULTY).json()
    assert body["overdue"] is True
    assert body["days_since_applied"] > 7

    workflow.submit_faculty_approval(application_id, "approved", FACULTY_ID)
    body = client.get(f"/api/applications/{application_id}", headers=FACULTY).json()
    assert body["overdue"] is False


def test_apply_requires_token(client):
    response = client.post("/api/applications", json={"job_id": CS_JOB_ID})
    assert response.status_code in (401, 403)


@pytest.mark.parametrize("claims", [
    {"sub": "priya@acme.example", "role": "student"},
    {"sub": str(STUDENT_ID), "role": "recruiter"},
    {"role": "student"},
])
def test_token_with_unusable_claims_is_rejected(client, claims):
    headers = {"Authorization": f"Bearer {create_access_token(claims)}"}
    response = client.get("/api/applications", headers=headers)
    assert response.status_code == 401


def test_only_students_apply(client):
    assert apply(client, headers=EMPLOYER).status_code == 403


def test_duplicate_is_conflict(client, application_id):
    response = apply(client)
    assert response.status_code == 409


def test_ineligible_is_bad_request(client):
    response = apply(client, headers=OTHER_STUDENT)
    assert response.status_code == 400
    assert "department" in response.json()["detail"]


def test_unknown_job_is_not_found(client):
    assert apply(client, job_id=4242).status_code == 404


def test_unknown_application_is_not_found(client):
    response = client.get("/api/applications/000000000000000000000000", headers=FACULTY)
    assert response.status_code == 404


def test_visibility_by_role(client, application_id):
    url = f"/api/applications/{application_id}"
    assert client.get(url, headers=STUDENT).status_code == 200
    assert client.get(url, headers=EMPLOYER).status_code == 200
    assert client.get(url, headers=FACULTY).status_code == 200
    assert client.get(url, headers=OTHER_STUDENT).status_code == 403
    assert client.get(url, headers=OTHER_EMPLOYER).status_code == 403


def test_list_is_scoped_to_caller(client, application_id):
    apply(client, job_id=OPEN_JOB_ID)

    mine = client.get("/api/applications", headers=STUDENT).json()
    assert mine["total"] == 2

    employer = client.get("/api/applications", headers=EMPLOYER).json()
    assert [a["job_id"] for a in employer["applications"]] == [CS_JOB_ID]
    assert employer["total_pages"] == 1

    other = client.get("/api/applications", headers=OTHER_STUDENT).json()
    assert other["total"] == 0


# ============================================================
# WORKFLOW
# ============================================================

def test_faculty_gate_over_http(client, application_id):
    response = client.put(
        f"/api/applications/{application_id}/status",
        json={"status": "shortlisted"}, headers=EMPLOYER
    )
    assert response.status_code == 400

    pending = client.get("/api/applications/faculty/pending-approvals", headers=FACULTY).json()
    assert [a["id"] for a in pending["applications"]] == [application_id]


def test_faculty_rejection(client, application_id):
    response = client.put(
        f"/api/applications/{application_id}/faculty-approval",
        json={"status": "rejected", "rejection_reason": "insufficient experience"},
        headers=FACULTY
    )

    assert response.status_code == 200
    body = response.json()["application"]
    assert body["status"] == "rejected"
    assert body["faculty_approval"]["rejection_reason"] == "insufficient experience"


def test_students_cannot_approve(client, application_id):
    response = client.put(
        f"/api/applications/{application_id}/faculty-approval",
        json={"status": "approved"}, headers=STUDENT
    )
    assert response.status_code == 403


def test_end_to_end_offer_acceptance(client, application_id):
    base = f"/api/applications/{application_id}"

    assert client.put(f"{base}/faculty-approval", json={"status": "approved"},
                      headers=FACULTY).status_code == 200
    assert client.put(f"{base}/status", json={"status": "shortlisted"},
                      headers=EMPLOYER).status_code == 200

    response = client.post(f"{base}/interview", json={
        "date": (START.replace(day=20)).isoformat(),
        "time": "10:30",
        "type": "video",
        "meeting_link": "https://meet.example.com/abc",
        "interviewer": {"name": "Priya Raman", "email": "priya@acme.example"}
    }, headers=EMPLOYER)
    assert response.status_code == 200
    assert response.json()["application"]["status"] == "interview-scheduled"

    response = client.post(f"{base}/interview-feedback", json={
        "rating": 5, "comments": "Excellent", "result": "passed"
    }, headers=EMPLOYER)
    assert response.json()["application"]["status"] == "offer-extended"

    # Answering before terms exist is refused
    response = client.put(f"{base}/offer-response", json={"accepted": True}, headers=STUDENT)
    assert response.status_code == 400

    response = client.post(f"{base}/offer", json={
        "package": {"stipend": 40000, "currency": "INR"},
        "start_date": START.replace(month=3).isoformat()
    }, headers=EMPLOYER)
    assert response.status_code == 200

    response = client.put(f"{base}/offer-response", json={"accepted": True}, headers=OTHER_STUDENT)
    assert response.status_code == 403

    response = client.put(f"{base}/offer-response", json={"accepted": True}, headers=STUDENT)
    assert response.status_code == 200
    body = response.json()["application"]
    assert body["status"] == "offer-accepted"
    assert body["offer"]["accepted_at"] is not None

    timeline = client.get(f"{base}/timeline", headers=STUDENT).json()["timeline"]
    assert timeline[-1]["status"] == "offer-accepted"


def test_feedback_validation(client, application_id):
    response = client.post(f"/api/applications/{application_id}/interview-feedback", json={
        "rating": 9, "comments": "x", "result": "passed"
    }, headers=EMPLOYER)
    assert response.status_code == 422


def test_other_employer_cannot_change_status(client, application_id):
    response = client.put(
        f"/api/applications/{application_id}/status",
        json={"status": "rejected"}, headers=OTHER_EMPLOYER
    )
    assert response.status_code == 403


# ============================================================
# MESSAGES AND STATISTICS
# ============================================================

def test_messages(client, application_id):
    url = f"/api/applications/{application_id}/messages"
    assert client.post(url, json={"message": "Any update?"}, headers=STUDENT).status_code == 200

    employer_view = client.get(url, headers=EMPLOYER).json()
    assert employer_view["unread"] == 1
    assert employer_view["messages"][0]["message"] == "Any update?"
    assert employer_view["messages"][0]["is_read"] is True

    # Reading once clears the reader's unread count
    assert client.get(url, headers=EMPLOYER).json()["unread"] == 0

    assert client.get(url, headers=STUDENT).json()["unread"] == 0


def test_reading_own_messages_leaves_them_unread_for_others(client, application_id):
    url = f"/api/applications/{application_id}/messages"
    client.post(url, json={"message": "Please confirm your availability"}, headers=EMPLOYER)

    assert client.get(url, headers=EMPLOYER).json()["unread"] == 0
    assert client.get(url, headers=STUDENT).json()["unread"] == 1
    assert client.get(url, headers=STUDENT).json()["unread"] == 0


def test_statistics(client, application_id):
    response = client.get("/api/applications/statistics/overview", headers=FACULTY)
    body = response.json()

    assert response.status_code == 200
    assert body["statistics"]["applied"] == 1
    assert body["total"] == 1

    assert client.get("/api/applications/statistics/overview", headers=STUDENT).status_code == 403
