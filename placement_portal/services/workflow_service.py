"""
Application Workflow Service

Moves a job application through its lifecycle:

    applied -> under-review -> shortlisted -> interview-scheduled
            -> interview-completed -> offer-extended
            -> offer-accepted | offer-declined -> completed

`rejected` can be reached from the review stages, from a faculty rejection
or from a failed interview, and is terminal.

HOW A TRANSITION WORKS:
1. Load the aggregate (remember its version)
2. Check the guard against the current state
3. Mutate a copy: status, sub-records, one timeline entry
4. Write the whole copy back with a compare-and-swap on the version
5. Only then fire the notification hook

A failed guard or a lost race leaves the stored application untouched.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from placement_portal.core.config import get_settings
from placement_portal.core.exceptions import (
    ApprovalNotRequired,
    DuplicateApplication,
    IneligibleStudent,
    InvalidTransition,
    JobNotAcceptingApplications,
    NoOfferExtended,
    NotFound,
    Unauthorized,
)
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
)
from placement_portal.services.eligibility_service import unmet_requirements
from placement_portal.services.notification_service import (
    NotificationTrigger, NullNotificationTrigger
)
from placement_portal.services.timeline_service import TimelineRecorder, snapshot

logger = logging.getLogger(__name__)

S = ApplicationStatus


# ============================================================
# TRANSITION TABLES
# ============================================================

# Manual moves an employer/admin may make with set_status.
# Interview, offer and approval moves go through their own operations.
STATUS_TRANSITIONS: Dict[ApplicationStatus, frozenset] = {
    S.applied: frozenset({S.under_review, S.shortlisted, S.rejected}),
    S.under_review: frozenset({S.shortlisted, S.rejected}),
    S.shortlisted: frozenset({S.rejected}),
    S.interview_scheduled: frozenset({S.interview_completed, S.rejected}),
    S.interview_completed: frozenset({S.rejected}),
    S.offer_accepted: frozenset({S.completed}),
    S.offer_declined: frozenset({S.completed}),
}

# A later round can follow a passed interview, before the offer is answered
INTERVIEW_SCHEDULABLE = frozenset({
    S.applied, S.under_review, S.shortlisted, S.interview_scheduled, S.interview_completed,
    S.offer_extended
})

OFFER_EXTENDABLE = frozenset({
    S.interview_scheduled, S.interview_completed, S.offer_extended
})

FACULTY_REJECTABLE = frozenset({S.applied, S.under_review})


def allowed_targets(status: ApplicationStatus) -> frozenset:
    return STATUS_TRANSITIONS.get(ApplicationStatus(status), frozenset())


class ApplicationWorkflow:
    """
    State machine for job applications.

    Collaborators are injected so the same workflow runs against MongoDB +
    PostgreSQL in production and in-memory fakes in tests.

    Args:
        repository: ApplicationRepository backend
        jobs: JobDirectory-like object (get, record_application, job_ids_posted_by)
        students: StudentDirectory-like object (get)
        trigger: NotificationTrigger fired after each committed transition
        timeline: TimelineRecorder (defaults to one sharing this clock)
        clock: Returns "now" as a naive UTC datetime
        faculty_approval_required: Whether new applications need faculty sign-off
    """

    def __init__(
        self,
        repository,
        jobs,
        students,
        trigger: Optional[NotificationTrigger] = None,
        timeline: Optional[TimelineRecorder] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        faculty_approval_required: Optional[bool] = None
    ):
        settings = get_settings()
        self.repository = repository
        self.jobs = jobs
        self.students = students
        self.trigger = trigger or NullNotificationTrigger()
        self.clock = clock
        self.timeline = timeline or TimelineRecorder(clock)
        if faculty_approval_required is None:
            faculty_approval_required = settings.faculty_approval_required
        self.faculty_approval_required = faculty_approval_required
        self.review_overdue_days = settings.review_overdue_days

    # ============================================================
    # CREATION
    # ============================================================

    def create_application(
        self,
        job_id: int,
        student_id: int,
        application_data: Optional[ApplicationData] = None
    ) -> Application:
        """
        Submit a new application for a student.

        Raises:
            NotFound: job or student profile does not exist
            JobNotAcceptingApplications: job inactive, past deadline or full
            DuplicateApplication: student already applied to this job
            IneligibleStudent: department / year / CGPA requirement not met
        """
        now = self.clock()

        job = self.jobs.get(job_id)
        if job is None:
            raise NotFound("Job", job_id)
        if job.status != "active":
            raise JobNotAcceptingApplications(job_id, "Job is not active")
        if not job.is_open(now):
            raise JobNotAcceptingApplications(job_id)

        if self.repository.find_by_job_and_student(job_id, student_id) is not None:
            raise DuplicateApplication(job_id, student_id)

        student = self.students.get(student_id)
        if student is None:
            raise NotFound("Student", student_id)

        unmet = unmet_requirements(student, job.requirements)
        if unmet:
            logger.warning("Student %s ineligible for job %s: %s", student_id, job_id, unmet)
            raise IneligibleStudent(unmet)

        application = Application(
            job_id=job_id,
            student_id=student_id,
            application_data=application_data or ApplicationData(),
            faculty_approval=FacultyApproval(required=self.faculty_approval_required),
            created_at=now,
            updated_at=now
        )
        self.timeline.record(application, S.applied, student_id)

        # Unique (job_id, student_id) in the store catches a racing duplicate
        saved = self.repository.insert(application)
        logger.info("Application %s created: job=%s student=%s", saved.id, job_id, student_id)

        try:
            self.jobs.record_application(job_id)
        except SQLAlchemyError:
            logger.exception("Could not update application count for job %s", job_id)

        self._notify(saved.id, None, S.applied, student_id)
        return saved

    # ============================================================
    # TRANSITIONS
    # ============================================================

    def set_status(
        self,
        application_id: str,
        new_status: ApplicationStatus,
        actor_id: int,
        comments: Optional[str] = None
    ) -> Application:
        """Manual status change by an employer or admin (see STATUS_TRANSITIONS)."""
        new_status = ApplicationStatus(new_status)

        def mutate(application: Application) -> ApplicationStatus:
            if new_status not in allowed_targets(application.status):
                raise InvalidTransition(
                    f"Cannot move application from '{application.status.value}' to '{new_status.value}'",
                    application.status.value, new_status.value
                )
            self._check_faculty_gate(application, new_status)
            return new_status

        return self._transition(application_id, mutate, actor_id, comments)

    def submit_faculty_approval(
        self,
        application_id: str,
        decision: ApprovalStatus,
        actor_id: int,
        comments: Optional[str] = None,
        rejection_reason: Optional[str] = None
    ) -> Application:
        """
        Faculty decision on an application.

        approved: applied -> under-review
        rejected: applied / under-review -> rejected
        """
        decision = ApprovalStatus(decision)
        if decision == ApprovalStatus.pending:
            raise InvalidTransition("Faculty decision must be approved or rejected")

        def mutate(application: Application) -> ApplicationStatus:
            approval = application.faculty_approval
            if not approval.required:
                raise ApprovalNotRequired()

            if decision == ApprovalStatus.approved:
                if application.status != S.applied or approval.status != ApprovalStatus.pending:
                    raise InvalidTransition(
                        "Only pending applications can be approved",
                        application.status.value, S.under_review.value
                    )
                target = S.under_review
            else:
                if application.status not in FACULTY_REJECTABLE:
                    raise InvalidTransition(
                        f"Cannot reject application in '{application.status.value}'",
                        application.status.value, S.rejected.value
                    )
                approval.rejection_reason = rejection_reason
                target = S.rejected

            approval.status = decision
            approval.approved_by = actor_id
            approval.approved_at = self.clock()
            approval.comments = comments
            return target

        return self._transition(
            application_id, mutate, actor_id, comments or rejection_reason
        )

    def schedule_interview(
        self,
        application_id: str,
        actor_id: int,
        date: datetime,
        type: InterviewType,
        interviewer: Interviewer,
        time: Optional[str] = None,
        location: Optional[str] = None,
        meeting_link: Optional[str] = None,
        round: int = 1,
        comments: Optional[str] = None
    ) -> Application:
        """Schedule (or reschedule) an interview. Replaces any previous interview record."""

        def mutate(application: Application) -> ApplicationStatus:
            if application.status not in INTERVIEW_SCHEDULABLE:
                raise InvalidTransition(
                    f"Cannot schedule an interview for application in '{application.status.value}'",
                    application.status.value, S.interview_scheduled.value
                )
            self._check_faculty_gate(application, S.interview_scheduled)
            application.interview = Interview(
                scheduled=True,
                date=date,
                time=time,
                location=location,
                type=type,
                meeting_link=meeting_link,
                interviewer=interviewer,
                round=round or 1
            )
            return S.interview_scheduled

        return self._transition(application_id, mutate, actor_id, comments)

    def submit_interview_feedback(
        self,
        application_id: str,
        result: InterviewResult,
        rating: Optional[int] = None,
        comments: Optional[str] = None,
        strengths: Optional[List[str]] = None,
        areas_for_improvement: Optional[List[str]] = None,
        actor_id: Optional[int] = None
    ) -> Application:
        """
        Record interview feedback.

        passed -> offer-extended, failed -> rejected, pending -> no status change
        (feedback is stored, no timeline entry, no notification).
        """
        result = InterviewResult(result)

        def mutate(application: Application) -> Optional[ApplicationStatus]:
            if application.status != S.interview_scheduled or application.interview is None:
                raise InvalidTransition(
                    "Feedback can only be submitted for a scheduled interview",
                    application.status.value
                )
            application.interview.feedback = InterviewFeedback(
                rating=rating,
                comments=comments,
                strengths=strengths or [],
                areas_for_improvement=areas_for_improvement or []
            )
            application.interview.result = result

            if result == InterviewResult.passed:
                return S.offer_extended
            if result == InterviewResult.failed:
                return S.rejected
            return None

        return self._transition(application_id, mutate, actor_id, comments)

    def extend_offer(
        self,
        application_id: str,
        actor_id: int,
        package: OfferPackage,
        start_date: datetime,
        end_date: Optional[datetime] = None,
        terms: Optional[str] = None,
        comments: Optional[str] = None
    ) -> Application:
        """Put offer terms on the table. Re-extending replaces unanswered terms."""

        def mutate(application: Application) -> ApplicationStatus:
            if application.status not in OFFER_EXTENDABLE:
                raise InvalidTransition(
                    f"Cannot extend an offer for application in '{application.status.value}'",
                    application.status.value, S.offer_extended.value
                )
            if application.offer is not None and application.offer.accepted is not None:
                raise InvalidTransition("Offer has already been answered", application.status.value)

            application.offer = Offer(
                extended=True,
                extended_at=self.clock(),
                package=package,
                start_date=start_date,
                end_date=end_date,
                terms=terms
            )
            return S.offer_extended

        return self._transition(application_id, mutate, actor_id, comments)

    def respond_to_offer(
        self,
        application_id: str,
        student_id: int,
        accepted: bool,
        decline_reason: Optional[str] = None
    ) -> Application:
        """
        Student accepts or declines the offer.

        Raises:
            Unauthorized: student_id is not the applicant
            NoOfferExtended: no offer terms exist yet
            InvalidTransition: offer already answered
        """

        def mutate(application: Application) -> ApplicationStatus:
            if application.student_id != student_id:
                raise Unauthorized("Only the applicant can respond to this offer")
            if not application.offer_extended:
                raise NoOfferExtended()
            if application.status != S.offer_extended:
                raise InvalidTransition(
                    "Offer has already been answered", application.status.value
                )

            now = self.clock()
            application.offer.accepted = accepted
            if accepted:
                application.offer.accepted_at = now
                return S.offer_accepted
            application.offer.declined_at = now
            application.offer.decline_reason = decline_reason
            return S.offer_declined

        return self._transition(
            application_id, mutate, student_id, None if accepted else decline_reason
        )

    # ============================================================
    # MESSAGES
    # ============================================================

    def add_message(self, application_id: str, sender_id: int, message: str) -> Application:
        current = self.get_application(application_id)
        updated = current.model_copy(deep=True)
        now = self.clock()
        updated.messages.append(Message(sender=sender_id, message=message, timestamp=now))
        updated.updated_at = now
        return self.repository.save(updated, current.version)

    def mark_messages_read(self, application_id: str, user_id: int) -> Application:
        """Mark every message not sent by user_id as read."""
        current = self.get_application(application_id)
        if current.unread_count(user_id) == 0:
            return current

        updated = current.model_copy(deep=True)
        for message in updated.messages:
            if message.sender != user_id:
                message.is_read = True
        return self.repository.save(updated, current.version)

    def unread_message_count(self, application_id: str, user_id: int) -> int:
        return self.get_application(application_id).unread_count(user_id)

    # ============================================================
    # QUERIES
    # ============================================================

    def get_application(self, application_id: str) -> Application:
        application = self.repository.get(application_id)
        if application is None:
            raise NotFound("Application", application_id)
        return application

    def get_timeline(self, application_id: str) -> Tuple[TimelineEntry, ...]:
        return snapshot(self.get_application(application_id))

    def list_applications(
        self,
        status: Optional[str] = None,
        job_ids: Optional[List[int]] = None,
        student_id: Optional[int] = None,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Application], int]:
        """Newest first. Returns (page of applications, total matching)."""
        skip = (page - 1) * limit
        items = self.repository.find(
            status=status, job_ids=job_ids, student_id=student_id, skip=skip, limit=limit
        )
        total = self.repository.count(status=status, job_ids=job_ids, student_id=student_id)
        return items, total

    def pending_faculty_approvals(self, page: int = 1, limit: int = 10) -> Tuple[List[Application], int]:
        skip = (page - 1) * limit
        items = self.repository.find(pending_approval=True, skip=skip, limit=limit)
        return items, self.repository.count(pending_approval=True)

    def is_overdue(self, application: Application) -> bool:
        """Application still waiting in `applied` past the review window."""
        return application.is_overdue(self.review_overdue_days, self.clock())

    def status_statistics(self, job_ids: Optional[List[int]] = None) -> Dict[str, int]:
        """Application count per status (every status present, zero if none)."""
        counts = self.repository.count_by_status(job_ids)
        return {status.value: counts.get(status.value, 0) for status in ApplicationStatus}

    # ============================================================
    # INTERNALS
    # ============================================================

    def _check_faculty_gate(self, application: Application, target: ApplicationStatus) -> None:
        """Nothing but a rejection may leave `applied` before faculty approval."""
        approval = application.faculty_approval
        if (
            application.status == S.applied
            and target != S.rejected
            and approval.required
            and approval.status != ApprovalStatus.approved
        ):
            raise InvalidTransition(
                "Faculty approval is required before the application can proceed",
                application.status.value, target.value
            )

    def _transition(
        self,
        application_id: str,
        mutate: Callable[[Application], Optional[ApplicationStatus]],
        actor_id: Optional[int],
        comments: Optional[str]
    ) -> Application:
        current = self.get_application(application_id)
        updated = current.model_copy(deep=True)
        from_status = current.status

        try:
            to_status = mutate(updated)
        except InvalidTransition as e:
            logger.warning("Refused transition on %s from '%s': %s",
                           application_id, from_status.value, e.message)
            raise

        if to_status is not None:
            updated.status = to_status
            self.timeline.record(updated, to_status, actor_id, comments)
        updated.updated_at = self.clock()

        saved = self.repository.save(updated, current.version)

        if to_status is not None:
            logger.info("Application %s: %s -> %s by %s",
                        application_id, from_status.value, to_status.value, actor_id)
            self._notify(application_id, from_status, to_status, actor_id)
        return saved

    def _notify(self, application_id, from_status, to_status, actor_id) -> None:
        # The transition is already committed; a failing hook must not undo it
        try:
            self.trigger.on_transition(application_id, from_status, to_status, actor_id)
        except Exception:
            logger.exception("Notification hook failed for application %s", application_id)
