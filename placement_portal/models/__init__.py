"""
Models module - the Application aggregate and its sub-records.

These models are used for:
- Workflow state (what the service mutates)
- MongoDB persistence (to_document / from_document)
- Response serialization
"""
from placement_portal.models.application import (
    Application,
    ApplicationData,
    ApplicationStatus,
    ApprovalStatus,
    FacultyApproval,
    Interview,
    InterviewFeedback,
    InterviewResult,
    InterviewType,
    Interviewer,
    Message,
    Offer,
    OfferPackage,
    TimelineEntry,
    TERMINAL_STATUSES,
)

__all__ = [
    "Application",
    "ApplicationData",
    "ApplicationStatus",
    "ApprovalStatus",
    "FacultyApproval",
    "Interview",
    "InterviewFeedback",
    "InterviewResult",
    "InterviewType",
    "Interviewer",
    "Message",
    "Offer",
    "OfferPackage",
    "TimelineEntry",
    "TERMINAL_STATUSES",
]
