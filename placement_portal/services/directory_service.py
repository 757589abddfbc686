"""
Directory Service - job and student lookups from PostgreSQL.

The workflow does not own jobs or users. It asks these directories:
- Does the job exist, and is it still accepting applications?
- What are the job's eligibility requirements?
- What is the student's department / year / CGPA?

Tables used (owned by the jobs/users side of the portal):
- jobs(job_id, title, status, application_deadline, max_applications,
       current_applications, required_departments, eligible_years,
       minimum_cgpa, posted_by)
- students(user_id, department, year, cgpa)
"""

from typing import List, Optional

from placement_portal.db.postgres import execute, fetch_all
from placement_portal.models.directory import JobPosting, JobRequirements, StudentProfile


class JobDirectory:
    """Read access to job postings plus the application counter."""

    def get(self, job_id: int) -> Optional[JobPosting]:
        rows = fetch_all("""
            SELECT job_id, title, status, application_deadline, max_applications,
                   current_applications, required_departments, eligible_years, minimum_cgpa
            FROM jobs WHERE job_id = :jid
        """, {"jid": job_id})
        if not rows:
            return None

        r = rows[0]
        return JobPosting(
            job_id=r["job_id"], title=r["title"], status=r["status"],
            application_deadline=r["application_deadline"],
            max_applications=r["max_applications"],
            current_applications=r["current_applications"] or 0,
            requirements=JobRequirements(
                departments=r["required_departments"] or [],
                year=r["eligible_years"] or [],
                minimum_cgpa=float(r["minimum_cgpa"]) if r["minimum_cgpa"] else None
            )
        )

    def record_application(self, job_id: int) -> None:
        """Bump the job's application counter after a successful apply."""
        execute(
            "UPDATE jobs SET current_applications = current_applications + 1 WHERE job_id = :jid",
            {"jid": job_id}
        )

    def job_ids_posted_by(self, employer_id: int) -> List[int]:
        rows = fetch_all(
            "SELECT job_id FROM jobs WHERE posted_by = :uid",
            {"uid": employer_id}
        )
        return [r["job_id"] for r in rows]


class StudentDirectory:
    """Read access to student academic profiles."""

    def get(self, user_id: int) -> Optional[StudentProfile]:
        rows = fetch_all(
            "SELECT user_id, department, year, cgpa FROM students WHERE user_id = :uid",
            {"uid": user_id}
        )
        if not rows:
            return None

        r = rows[0]
        return StudentProfile(
            user_id=r["user_id"], department=r["department"], year=r["year"],
            cgpa=float(r["cgpa"]) if r["cgpa"] is not None else None
        )
