"""
Pytest configuration and shared fixtures for the application workflow tests.

Everything runs against in-memory collaborators: no MongoDB, no PostgreSQL.
"""
from datetime import datetime, timedelta

import pytest

from placement_portal.models.application import InterviewType, Interviewer, OfferPackage
from placement_portal.models.directory import JobPosting, JobRequirements, StudentProfile
from placement_portal.services.application_repository import InMemoryApplicationRepository
from placement_portal.services.notification_service import NotificationTrigger
from placement_portal.services.workflow_service import ApplicationWorkflow


START = datetime(2025, 1, 10, 9, 0, 0)

CS_JOB_ID = 101
OPEN_JOB_ID = 102
EMPLOYER_ID = 900
FACULTY_ID = 800
STUDENT_ID = 1
OTHER_STUDENT_ID = 2


class StepClock:
    """Deterministic clock; every call moves time forward by one minute."""

    def __init__(self, start: datetime = START):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


class FakeJobDirectory:
    def __init__(self, jobs=None, posted_by=None):
        self.jobs = {job.job_id: job for job in (jobs or [])}
        self.posted_by = posted_by or {}
        self.recorded = []

    def get(self, job_id):
        return self.jobs.get(job_id)

    def record_application(self, job_id):
        self.recorded.append(job_id)
        self.jobs[job_id].current_applications += 1

    def job_ids_posted_by(self, employer_id):
        return [job_id for job_id, owner in self.posted_by.items() if owner == employer_id]


class FakeStudentDirectory:
    def __init__(self, students=None):
        self.students = {s.user_id: s for s in (students or [])}

    def get(self, user_id):
        return self.students.get(user_id)


class RecordingTrigger(NotificationTrigger):
    def __init__(self):
        self.events = []

    def on_transition(self, application_id, from_status, to_status, actor_id):
        self.events.append((application_id, from_status, to_status, actor_id))


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def cs_job():
    """Job requiring CS/EE, 3rd or 4th year, CGPA >= 7.5."""
    return JobPosting(
        job_id=CS_JOB_ID,
        title="Backend Engineering Intern",
        status="active",
        application_deadline=START + timedelta(days=30),
        max_applications=100,
        requirements=JobRequirements(departments=["CS", "EE"], year=[3, 4], minimum_cgpa=7.5)
    )


@pytest.fixture
def open_job():
    """Job with no requirements at all."""
    return JobPosting(job_id=OPEN_JOB_ID, title="Campus Ambassador", status="active")


@pytest.fixture
def job_directory(cs_job, open_job):
    return FakeJobDirectory(
        jobs=[cs_job, open_job],
        posted_by={CS_JOB_ID: EMPLOYER_ID, OPEN_JOB_ID: EMPLOYER_ID + 1}
    )


@pytest.fixture
def student_directory():
    return FakeStudentDirectory([
        StudentProfile(user_id=STUDENT_ID, department="CS", year=3, cgpa=8.0),
        StudentProfile(user_id=OTHER_STUDENT_ID, department="ME", year=2, cgpa=6.1),
    ])


@pytest.fixture
def repository():
    return InMemoryApplicationRepository()


@pytest.fixture
def trigger():
    return RecordingTrigger()


@pytest.fixture
def workflow(repository, job_directory, student_directory, trigger, clock):
    return ApplicationWorkflow(
        repository=repository,
        jobs=job_directory,
        students=student_directory,
        trigger=trigger,
        clock=clock,
        faculty_approval_required=True
    )


@pytest.fixture
def applied(workflow):
    """A fresh application by STUDENT_ID to the CS job."""
    return workflow.create_application(CS_JOB_ID, STUDENT_ID)


@pytest.fixture
def interviewer():
    return Interviewer(name="Priya Raman", email="priya@acme.example")


@pytest.fixture
def offer_package():
    return OfferPackage(stipend=40000, currency="INR", benefits=["laptop"])


@pytest.fixture
def schedule(workflow, interviewer):
    """Helper: schedule an interview on an application."""
    def _schedule(application_id, actor_id=EMPLOYER_ID):
        return workflow.schedule_interview(
            application_id, actor_id,
            date=START + timedelta(days=5),
            type=InterviewType.video,
            interviewer=interviewer,
            time="10:30"
        )
    return _schedule


@pytest.fixture
def shortlisted(workflow, applied):
    """Application approved by faculty and shortlisted by the employer."""
    workflow.submit_faculty_approval(applied.id, "approved", FACULTY_ID)
    return workflow.set_status(applied.id, "shortlisted", EMPLOYER_ID)
