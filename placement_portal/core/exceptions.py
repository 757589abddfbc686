"""
Workflow Errors

Every error the application workflow can raise. All of them are recoverable:
the core raises, the caller decides how to surface it (the API layer turns
them into HTTP responses).

WorkflowError
├── NotFound
├── DuplicateApplication
├── IneligibleStudent
├── JobNotAcceptingApplications
├── Unauthorized
└── InvalidTransition
    ├── ApprovalNotRequired
    ├── NoOfferExtended
    └── ConcurrentModification
"""

from typing import List, Optional


class WorkflowError(Exception):
    """Base class for application workflow errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(WorkflowError):
    """Application, job or student does not exist."""

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class DuplicateApplication(WorkflowError):
    def __init__(self, job_id, student_id):
        super().__init__("Student has already applied for this job")
        self.job_id = job_id
        self.student_id = student_id


class IneligibleStudent(WorkflowError):
    """Student does not meet one or more of the job's requirements."""

    def __init__(self, unmet: List[str]):
        super().__init__(
            "Student does not meet the job requirements: " + ", ".join(unmet)
        )
        self.unmet = unmet


class JobNotAcceptingApplications(WorkflowError):
    def __init__(self, job_id, reason: str = "Job is no longer accepting applications"):
        super().__init__(reason)
        self.job_id = job_id


class Unauthorized(WorkflowError):
    """Actor is not allowed to perform this transition."""


class InvalidTransition(WorkflowError):
    """Transition is not permitted from the application's current state."""

    def __init__(self, message: str, current_status: Optional[str] = None,
                 target_status: Optional[str] = None):
        super().__init__(message)
        self.current_status = current_status
        self.target_status = target_status


class ApprovalNotRequired(InvalidTransition):
    def __init__(self):
        super().__init__("Faculty approval is not required for this application")


class NoOfferExtended(InvalidTransition):
    def __init__(self):
        super().__init__("No offer has been extended for this application")


class ConcurrentModification(InvalidTransition):
    """Another writer committed a change to the application first."""

    def __init__(self, application_id: str, expected_version: int):
        super().__init__(
            f"Application {application_id} was modified concurrently "
            f"(expected version {expected_version})"
        )
        self.application_id = application_id
        self.expected_version = expected_version
