"""
Application Routes

GET  /applications - List applications (scoped by role)
POST /applications - Apply to a job (student only)
GET  /applications/faculty/pending-approvals - Applications waiting for faculty
GET  /applications/statistics/overview - Application count per status
GET  /applications/{id} - Get application
GET  /applications/{id}/timeline - Status history
PUT  /applications/{id}/status - Manual status change (employer/admin)
PUT  /applications/{id}/faculty-approval - Approve or reject (faculty/admin)
POST /applications/{id}/interview - Schedule interview (employer/admin)
POST /applications/{id}/interview-feedback - Interview result (employer/admin)
POST /applications/{id}/offer - Extend offer (employer/admin)
PUT  /applications/{id}/offer-response - Accept/decline offer (student)
POST /applications/{id}/messages - Add message
GET  /applications/{id}/messages - Get messages (marks others' messages read)
"""

import math
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Query

from placement_portal.api.deps import get_workflow
from placement_portal.core.auth import get_current_user, require_roles
from placement_portal.core.config import get_settings
from placement_portal.core.exceptions import (
    ConcurrentModification, DuplicateApplication, NotFound, Unauthorized, WorkflowError
)
from placement_portal.models.application import (
    Application, ApplicationData, Interviewer, OfferPackage
)
from placement_portal.services.workflow_service import ApplicationWorkflow
from placement_portal.schemas.schemas import (
    ApplicationCreate, ApplicationStatusUpdate, FacultyApprovalRequest,
    InterviewScheduleRequest, InterviewFeedbackRequest, OfferRequest, OfferResponseRequest,
    MessageCreate, ApplicationResponse, ApplicationListResponse, TimelineResponse,
    MessagesResponse, StatisticsResponse
)

settings = get_settings()

router = APIRouter(prefix="/applications", tags=["Applications"])


def to_http_error(error: WorkflowError) -> HTTPException:
    """Map a workflow error to the HTTP status the client sees."""
    if isinstance(error, NotFound):
        return HTTPException(status_code=404, detail=error.message)
    if isinstance(error, Unauthorized):
        return HTTPException(status_code=403, detail=error.message)
    if isinstance(error, (DuplicateApplication, ConcurrentModification)):
        return HTTPException(status_code=409, detail=error.message)
    return HTTPException(status_code=400, detail=error.message)


def _load_authorized(workflow: ApplicationWorkflow, application_id: str, user: dict) -> Application:
    """
    Fetch an application the user is allowed to see.

    Admins and faculty see everything, students their own applications,
    employers applications to jobs they posted.
    """
    try:
        application = workflow.get_application(application_id)
    except WorkflowError as e:
        raise to_http_error(e)

    role = user["role"]
    if role in ("admin", "faculty"):
        return application
    if role == "student" and application.student_id == user["user_id"]:
        return application
    if role == "employer" and application.job_id in workflow.jobs.job_ids_posted_by(user["user_id"]):
        return application
    raise HTTPException(status_code=403, detail="Access denied - insufficient permissions")


@router.get("", response_model=ApplicationListResponse)
async def list_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=50),
    status: Optional[str] = Query(None),
    job_id: Optional[int] = Query(None),
    student_id: Optional[int] = Query(None),
    user: dict = Depends(get_current_user),
    workflow: ApplicationWorkflow = Depends(get_workflow)
):
    """List applications. Students only see their own, employers only their jobs'."""
    job_ids = [job_id] if job_id is not None else None

    if user["role"] == "student":
        student_id = user["user_id"]
    elif user["role"] == "employer":
        own_jobs = workflow.jobs.job_ids_posted_by(user["user_id"])
        job_ids = [j for j in own_jobs if job_ids is None or j in job_ids]

    applications, total = workflow.list_applications(
        status=status, job_ids=job_ids, student_id=student_id, page=page, limit=limit
    )
    return ApplicationListResponse(
        applications=applications, total=total,
        total_pages=math.ceil(total / limit), current_page=page
    )


@router.post("", response_model=ApplicationResponse, status_code=201)
async def create_application(
    data: ApplicationCreate,
    user: dict = Depends(require_roles("student")),
    workflow: ApplicationWorkflow = Depends(get_workflow)
):
    """Apply to a job. Eligibility and duplicate checks happen in the workflow."""
    application_data = ApplicationData.model_validate(data.application_data.model_dump(mode="json"))
    try:
        application = workflow.create_application(data.job_id, user["user_id"], application_data)
    except WorkflowError as e:
        raise to_http_error(e)
    return ApplicationResponse(message="Application submitted successfully", application=application)


@router.get("/faculty/pending-approvals", response_model=ApplicationListResponse)
async def pending_approvals(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=50),
    user: dict = Depends(require_roles("faculty", "admin")),
    workflow: ApplicationWorkflow = Depends(get_workflow)
):
    applications, total = workflow.pending_faculty_approvals(page=page, limit=limit)
    return ApplicationListResponse(
        applications=applications, total=total,
        total_pages=math.ceil(total / limit), current_page=page
    )


@router.get("/statistics/overview", response_model=StatisticsResponse)
async def statistics_overview(
    user: dict = Depends(require_roles("employer", "faculty", "admin")),
    workflow: ApplicationWorkflow = Depends(get_workflow)
):
    """Application count per status. Employers only see their own jobs."""
    job_ids = None
    if user["role"] == "employer":
        job_ids = workflow.jobs.job_ids_posted_by(user["user_id"])

    statistics = workflow.status_statistics(job_ids)
    return StatisticsResponse(statistics=statistics, total=sum(statistics.values()))


@router.get("/{application_id}", response_model=Application)
async def get_application(
    application_id: str,
    user: dict = Depends(get_current_user),
    workflow: ApplicationWorkflow = Depends(get_workflow)
):
    return _load_authorized(workflow, application_id, user)


@router.get("/{application_id}/timeline", response_model=TimelineResponse)
async def get_timeline(
    application_id: str,
    user: dict = Depends(get_current_user),
    workflow: ApplicationWorkflow = Depends(get_workflow)
):
    application = _load_authorized(workflow, application_id, user)
    return TimelineResponse(application_id=application_id, timeline=list(application.timeline))


@router.put("/{application_id}/status", response_model=ApplicationResponse)
async def update_status(
    application_id: str,
    update: ApplicationStatusUpdate,
    user: dict = Depends(require_roles("employer", "admin")),
    workflow: ApplicationWorkflow = Depends(get_workflow)
):
    _load_authorized(workflow, application_id, user)
    try:
        application = workflow.set_status(
            application_id, update.status, user["user_id"], update.comments
        )
    except WorkflowError as e:
        raise to_http_error(e)
    return ApplicationResponse(message="Application status updated successfully", application=application)


@router.put("/{application_id}/faculty-approval", response_model=ApplicationResponse)
async def faculty_approval(
    application_id: str,
    decision: FacultyApprovalRequest,
    user: dict = Depends(require_roles("faculty", "admin")),
    workflow: ApplicationWorkflow = Depends(get_workflow)
):
    try:
        application = workflow.submit_faculty_approval(
            application_id, decision.status.value, user["user_id"],
            decision.comments, decision.rejection_reason
        )
    except WorkflowError as e:
        raise to_http_error(e)
    return ApplicationResponse(
        message=f"Application {decision.status.value} by faculty", application=application
    )


@router.post("/{application_id}/interview", response_model=ApplicationResponse)
async def schedule_interview(
    application_id: str,
    interview: InterviewScheduleRequest,
    user: dict = Depends(require_roles("employer", "admin")),
    workflow: ApplicationWorkflow = Depends(get_workflow)
):
    _load_authorized(workflow, application_id, user)
    try:
        application = workflow.schedule_interview(
            application_id, user["user_id"],
            date=interview.date,
            type=interview.type,
            interviewer=Interviewer(**interview.interviewer.model_dump()),
            time=interview.time,
            location=interview.location,
            meeting_link=str(interview.meeting_link) if interview.meeting_link else None,
            round=interview.round,
            comments=interview.comments
        )
    except WorkflowError as e:
        raise to_http_error(e)
    return ApplicationResponse(message="Interview scheduled successfully", application=application)


@router.post("/{application_id}/interview-feedback", response_model=ApplicationResponse)
async def interview_feedback(
    application_id: str,
    feedback: InterviewFeedbackRequest,
    user: dict = Depends(require_roles("employer", "admin")),
    workflow: ApplicationWorkflow = Depends(get_workflow)
):
    _load_authorized(workflow, application_id, user)
    try:
        application = workflow.submit_interview_feedback(
            application_id, feedback.result,
            rating=feedback.rating,
            comments=feedback.comments,
            strengths=feedback.strengths,
            areas_for_improvement=feedback.areas_for_improvement,
            actor_id=user["user_id"]
        )
    except WorkflowError as e:
        raise to_http_error(e)
    return ApplicationResponse(message="Interview feedback submitted successfully", application=application)


@router.post("/{application_id}/offer", response_model=ApplicationResponse)
async def extend_offer(
    application_id: str,
    offer: OfferRequest,
    user: dict = Depends(require_roles("employer", "admin")),
    workflow: ApplicationWorkflow = Depends(get_workflow)
):
    _load_authorized(workflow, application_id, user)
    try:
        application = workflow.extend_offer(
            application_id, user["user_id"],
            package=OfferPackage(**offer.package.model_dump()),
            start_date=offer.start_date,
            end_date=offer.end_date,
            terms=offer.terms
        )
    except WorkflowError as e:
        raise to_http_error(e)
    return ApplicationResponse(message="Offer extended successfully", application=application)


@router.put("/{application_id}/offer-response", response_model=ApplicationResponse)
async def respond_to_offer(
    application_id: str,
    response: OfferResponseRequest,
    user: dict = Depends(require_roles("student")),
    workflow: ApplicationWorkflow = Depends(get_workflow)
):
    """Only the applicant can answer; anyone else gets 403."""
    try:
        application = workflow.respond_to_offer(
            application_id, user["user_id"], response.accepted, response.decline_reason
        )
    except WorkflowError as e:
        raise to_http_error(e)
    verb = "accepted" if response.accepted else "declined"
    return ApplicationResponse(message=f"Offer {verb} successfully", application=application)


@router.post("/{application_id}/messages", response_model=ApplicationResponse)
async def add_message(
    application_id: str,
    data: MessageCreate,
    user: dict = Depends(get_current_user),
    workflow: ApplicationWorkflow = Depends(get_workflow)
):
    _load_authorized(workflow, application_id, user)
    try:
        application = workflow.add_message(application_id, user["user_id"], data.message)
    except WorkflowError as e:
        raise to_http_error(e)
    return ApplicationResponse(message="Message added successfully", application=application)


@router.get("/{application_id}/messages", response_model=MessagesResponse)
async def get_messages(
    application_id: str,
    user: dict = Depends(get_current_user),
    workflow: ApplicationWorkflow = Depends(get_workflow)
):
    """Messages on the application; reading them marks the ones sent by others as read."""
    _load_authorized(workflow, application_id, user)
    try:
        unread = workflow.unread_message_count(application_id, user["user_id"])
        application = workflow.mark_messages_read(application_id, user["user_id"])
    except WorkflowError as e:
        raise to_http_error(e)
    return MessagesResponse(messages=application.messages, unread=unread)
