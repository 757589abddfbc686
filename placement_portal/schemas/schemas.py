"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Each workflow operation gets its own request model; the limits here are
the portal's input rules, checked before the workflow ever runs.
"""

from pydantic import BaseModel, EmailStr, Field, HttpUrl
from typing import Dict, Optional, List
from datetime import datetime
from enum import Enum

from placement_portal.models.application import (
    Application, ApplicationStatus, InterviewResult, InterviewType, Message, TimelineEntry
)


# ============================================================
# ENUMS
# ============================================================

class FacultyDecision(str, Enum):
    approved = "approved"
    rejected = "rejected"


# ============================================================
# APPLICATION REQUEST SCHEMAS
# ============================================================

class AdditionalDocumentIn(BaseModel):
    name: str
    url: HttpUrl
    type: Optional[str] = None


class CustomAnswerIn(BaseModel):
    question: str
    answer: str


class ApplicationDataIn(BaseModel):
    resume: Optional[HttpUrl] = None
    cover_letter: Optional[str] = Field(None, max_length=2000)
    portfolio: Optional[HttpUrl] = None
    additional_documents: List[AdditionalDocumentIn] = []
    custom_answers: List[CustomAnswerIn] = []


class ApplicationCreate(BaseModel):
    job_id: int
    application_data: ApplicationDataIn = ApplicationDataIn()


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    comments: Optional[str] = Field(None, max_length=500)


class FacultyApprovalRequest(BaseModel):
    status: FacultyDecision
    comments: Optional[str] = Field(None, max_length=500)
    rejection_reason: Optional[str] = Field(None, max_length=200)


class InterviewerIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: Optional[str] = None


class InterviewScheduleRequest(BaseModel):
    date: datetime
    time: str = Field(..., min_length=1)
    location: Optional[str] = Field(None, min_length=5)
    type: InterviewType
    meeting_link: Optional[HttpUrl] = None
    interviewer: InterviewerIn
    round: int = Field(1, ge=1)
    comments: Optional[str] = Field(None, max_length=500)


class InterviewFeedbackRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comments: str = Field(..., min_length=1)
    strengths: List[str] = []
    areas_for_improvement: List[str] = []
    result: InterviewResult


class OfferPackageIn(BaseModel):
    stipend: float = Field(..., ge=0)
    currency: str = Field(..., min_length=1)
    benefits: List[str] = []


class OfferRequest(BaseModel):
    package: OfferPackageIn
    start_date: datetime
    end_date: Optional[datetime] = None
    terms: Optional[str] = Field(None, max_length=1000)


class OfferResponseRequest(BaseModel):
    accepted: bool
    decline_reason: Optional[str] = Field(None, max_length=200)


class MessageCreate(BaseModel):
    message: str = Field(..., min_length=1, max_length=500)


# ============================================================
# APPLICATION RESPONSE SCHEMAS
# ============================================================

class ApplicationResponse(BaseModel):
    message: str
    application: Application


class ApplicationListResponse(BaseModel):
    applications: List[Application]
    total: int
    total_pages: int
    current_page: int


class TimelineResponse(BaseModel):
    application_id: str
    timeline: List[TimelineEntry]


class MessagesResponse(BaseModel):
    messages: List[Message]
    unread: int


class StatisticsResponse(BaseModel):
    statistics: Dict[str, int]
    total: int
