"""
Directory records - read-only views of jobs and students.

Jobs and student profiles are owned by the PostgreSQL side of the portal;
the workflow only reads the fields it needs for eligibility and
"is this job still open" checks.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class StudentProfile(BaseModel):
    user_id: int
    department: Optional[str] = None
    year: Optional[int] = None
    cgpa: Optional[float] = None


class JobRequirements(BaseModel):
    departments: List[str] = []
    year: List[int] = []
    minimum_cgpa: Optional[float] = None


class JobPosting(BaseModel):
    job_id: int
    title: str
    status: str = "active"
    application_deadline: Optional[datetime] = None
    max_applications: Optional[int] = None
    current_applications: int = 0
    requirements: JobRequirements = JobRequirements()

    def is_open(self, now: Optional[datetime] = None) -> bool:
        """Active, before the deadline and below the application cap."""
        now = now or datetime.utcnow()
        if self.status != "active":
            return False
        if self.application_deadline is not None and self.application_deadline <= now:
            return False
        if self.max_applications is not None and self.current_applications >= self.max_applications:
            return False
        return True
