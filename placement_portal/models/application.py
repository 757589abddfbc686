"""
Application Aggregate

One document per (job, student) pair. Everything that happens to an
application - faculty approval, interview, offer, messages - lives inside
this aggregate so a transition can be written in a single atomic update.

Stored as-is in the MongoDB `applications` collection (see to_document /
from_document).
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from placement_portal.core.config import get_settings


# ============================================================
# ENUMS
# ============================================================

class ApplicationStatus(str, Enum):
    applied = "applied"
    under_review = "under-review"
    shortlisted = "shortlisted"
    rejected = "rejected"
    interview_scheduled = "interview-scheduled"
    interview_completed = "interview-completed"
    offer_extended = "offer-extended"
    offer_accepted = "offer-accepted"
    offer_declined = "offer-declined"
    completed = "completed"


class ApprovalStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class InterviewType(str, Enum):
    online = "online"
    offline = "offline"
    phone = "phone"
    video = "video"


class InterviewResult(str, Enum):
    passed = "passed"
    failed = "failed"
    pending = "pending"


TERMINAL_STATUSES = frozenset({
    ApplicationStatus.rejected,
    ApplicationStatus.offer_declined,
    ApplicationStatus.completed,
})


# ============================================================
# SUB-RECORDS
# ============================================================

class AdditionalDocument(BaseModel):
    name: str
    url: str
    type: Optional[str] = None


class CustomAnswer(BaseModel):
    question: str
    answer: str


class ApplicationData(BaseModel):
    resume: Optional[str] = None
    cover_letter: Optional[str] = None
    portfolio: Optional[str] = None
    additional_documents: List[AdditionalDocument] = []
    custom_answers: List[CustomAnswer] = []


class FacultyApproval(BaseModel):
    required: bool = True
    status: ApprovalStatus = ApprovalStatus.pending
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    comments: Optional[str] = None
    rejection_reason: Optional[str] = None


class Interviewer(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None


class InterviewFeedback(BaseModel):
    rating: Optional[int] = None
    comments: Optional[str] = None
    strengths: List[str] = []
    areas_for_improvement: List[str] = []


class Interview(BaseModel):
    scheduled: bool = False
    date: Optional[datetime] = None
    time: Optional[str] = None
    location: Optional[str] = None
    type: Optional[InterviewType] = None
    meeting_link: Optional[str] = None
    interviewer: Optional[Interviewer] = None
    round: int = 1
    feedback: Optional[InterviewFeedback] = None
    result: Optional[InterviewResult] = None


class OfferPackage(BaseModel):
    stipend: float
    currency: str = "INR"
    benefits: List[str] = []


class Offer(BaseModel):
    extended: bool = False
    extended_at: Optional[datetime] = None
    package: Optional[OfferPackage] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    terms: Optional[str] = None
    # None until the student answers
    accepted: Optional[bool] = None
    accepted_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    decline_reason: Optional[str] = None


class TimelineEntry(BaseModel):
    """One status change. Never edited after it is appended."""
    model_config = ConfigDict(frozen=True)

    status: ApplicationStatus
    timestamp: datetime
    updated_by: Optional[int] = None
    comments: Optional[str] = None


class Message(BaseModel):
    sender: int
    message: str
    timestamp: datetime
    is_read: bool = False


# ============================================================
# AGGREGATE ROOT
# ============================================================

class Application(BaseModel):
    id: Optional[str] = None
    job_id: int
    student_id: int
    status: ApplicationStatus = ApplicationStatus.applied
    application_data: ApplicationData = Field(default_factory=ApplicationData)
    faculty_approval: FacultyApproval = Field(default_factory=FacultyApproval)
    interview: Optional[Interview] = None
    offer: Optional[Offer] = None
    timeline: List[TimelineEntry] = []
    messages: List[Message] = []
    version: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def offer_extended(self) -> bool:
        return self.offer is not None and self.offer.extended

    def age_in_days(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.utcnow()
        return (now - self.created_at).days

    def is_overdue(self, max_days: int, now: Optional[datetime] = None) -> bool:
        """Still waiting in `applied` longer than the review window."""
        return self.status == ApplicationStatus.applied and self.age_in_days(now) > max_days

    @computed_field
    @property
    def days_since_applied(self) -> int:
        return self.age_in_days()

    @computed_field
    @property
    def overdue(self) -> bool:
        return self.is_overdue(get_settings().review_overdue_days)

    def unread_count(self, user_id: int) -> int:
        return sum(1 for m in self.messages if m.sender != user_id and not m.is_read)

    def to_document(self) -> Dict[str, Any]:
        """Convert to a MongoDB document (enum members become plain strings)."""
        return _plain(self.model_dump(exclude={"id", "days_since_applied", "overdue"}))

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Application":
        data = dict(doc)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)


def _plain(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value
