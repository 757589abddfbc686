"""
Timeline Service - append-only status history of an application.

The timeline is the canonical record of who moved an application where and
when. Entries are frozen models; the recorder only ever appends, so the
insertion order IS the history.
"""

from datetime import datetime
from typing import Callable, Optional, Tuple

from placement_portal.models.application import Application, ApplicationStatus, TimelineEntry


class TimelineRecorder:
    """Appends timeline entries to an application aggregate."""

    def __init__(self, clock: Callable[[], datetime] = datetime.utcnow):
        self.clock = clock

    def record(
        self,
        application: Application,
        status: ApplicationStatus,
        actor_id: Optional[int],
        comments: Optional[str] = None
    ) -> TimelineEntry:
        """
        Append one entry to the application's timeline.

        The entry is written together with the rest of the aggregate, so it
        only becomes visible when the transition commits.

        Args:
            application: Aggregate being transitioned (mutated in place)
            status: Status the application moves to
            actor_id: User who triggered the change
            comments: Optional free-text note

        Returns:
            The appended TimelineEntry
        """
        entry = TimelineEntry(
            status=status,
            timestamp=self.clock(),
            updated_by=actor_id,
            comments=comments or None
        )
        application.timeline.append(entry)
        return entry


def snapshot(application: Application) -> Tuple[TimelineEntry, ...]:
    """Immutable, ordered copy of an application's timeline."""
    return tuple(application.timeline)
