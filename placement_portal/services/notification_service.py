"""
Notification Service

The workflow announces every committed transition through a
NotificationTrigger. This module holds the hook contract and the portal's
implementation of it, which drops one document per transition into the
MongoDB `notifications` collection. Actually delivering those (email, push,
SMS) is somebody else's job.

Notification types follow the portal's inbox:
- approval-required   : new application waiting for faculty
- interview-scheduled : student has an interview
- offer-extended      : student has an offer
- application-status  : any other status change
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from pymongo.collection import Collection

from placement_portal.models.application import ApplicationStatus

logger = logging.getLogger(__name__)


class NotificationTrigger:
    """
    Hook invoked after a transition has been committed.

    from_status is None when the application has just been created.
    """

    def on_transition(
        self,
        application_id: str,
        from_status: Optional[ApplicationStatus],
        to_status: ApplicationStatus,
        actor_id: Optional[int]
    ) -> None:
        raise NotImplementedError


class NullNotificationTrigger(NotificationTrigger):
    def on_transition(self, application_id, from_status, to_status, actor_id) -> None:
        pass


# ============================================================
# NOTIFICATION DOCUMENTS
# ============================================================

_TITLES = {
    ApplicationStatus.interview_scheduled: ("interview-scheduled", "high", "Interview scheduled"),
    ApplicationStatus.offer_extended: ("offer-extended", "high", "Offer extended"),
}


def build_notification(
    application_id: str,
    student_id: int,
    approval_required: bool,
    from_status: Optional[ApplicationStatus],
    to_status: ApplicationStatus,
    now: datetime
) -> Optional[dict]:
    """
    Build the notification document for one transition.

    Returns:
        Document ready for insert, or None when nobody needs to hear about it.
    """
    base = {
        "related_entity": {"type": "application", "id": application_id},
        "is_read": False,
        "created_at": now
    }

    if from_status is None:
        if not approval_required:
            return None
        return {
            **base,
            "recipient": None,
            "recipient_role": "faculty",
            "type": "approval-required",
            "priority": "medium",
            "title": "Application awaiting approval",
            "message": f"Application {application_id} needs faculty approval",
            "action": {"type": "approve"}
        }

    notification_type, priority, title = _TITLES.get(
        ApplicationStatus(to_status),
        ("application-status", "medium", "Application status updated")
    )
    return {
        **base,
        "recipient": student_id,
        "recipient_role": "student",
        "type": notification_type,
        "priority": priority,
        "title": title,
        "message": f"Your application moved to '{ApplicationStatus(to_status).value}'",
        "action": {"type": "view"}
    }


class NotificationService(NotificationTrigger):
    """
    Writes workflow notifications to MongoDB.

    Needs the application repository to find out who the student is; the
    hook itself only carries ids.
    """

    def __init__(
        self,
        repository,
        collection: Optional[Collection] = None,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        if collection is None:
            from placement_portal.db.mongodb import get_collection, COLLECTIONS
            collection = get_collection(COLLECTIONS["notifications"])
        self.collection: Collection = collection
        self.repository = repository
        self.clock = clock

    def on_transition(self, application_id, from_status, to_status, actor_id) -> None:
        application = self.repository.get(application_id)
        if application is None:
            logger.warning("Notification skipped, application %s not found", application_id)
            return

        doc = build_notification(
            application_id,
            application.student_id,
            application.faculty_approval.required,
            from_status,
            to_status,
            self.clock()
        )
        if doc is None:
            return
        doc["triggered_by"] = actor_id
        self.collection.insert_one(doc)
