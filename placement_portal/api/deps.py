"""
API Dependencies

Builds the workflow service once per process and hands it to routes.
Tests override get_workflow with a workflow wired to in-memory fakes.
"""

from functools import lru_cache

from placement_portal.core.config import get_settings
from placement_portal.services.application_repository import get_application_repository
from placement_portal.services.notification_service import NullNotificationTrigger
from placement_portal.services.workflow_service import ApplicationWorkflow


@lru_cache()
def get_workflow() -> ApplicationWorkflow:
    # Directories pull in the PostgreSQL engine; import only when first needed
    from placement_portal.services.directory_service import JobDirectory, StudentDirectory

    settings = get_settings()
    repository = get_application_repository()

    if settings.storage_backend.lower() == "mongodb":
        from placement_portal.services.notification_service import NotificationService
        trigger = NotificationService(repository)
    else:
        trigger = NullNotificationTrigger()

    return ApplicationWorkflow(
        repository=repository,
        jobs=JobDirectory(),
        students=StudentDirectory(),
        trigger=trigger
    )
