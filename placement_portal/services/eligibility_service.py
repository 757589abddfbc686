"""
Eligibility Service

Decides whether a student may apply to a job, before any application
exists. Pure functions of (student profile, job requirements): no database,
no side effects.

A requirement only applies when the job actually sets it. An empty
department list, an empty year list or a missing minimum CGPA means
"anyone".
"""

from typing import List

from placement_portal.models.directory import JobRequirements, StudentProfile


def unmet_requirements(student: StudentProfile, requirements: JobRequirements) -> List[str]:
    """
    List the requirement names the student fails.

    Returns:
        Subset of ["department", "year", "cgpa"], in that order.
        Empty list means eligible.
    """
    unmet = []

    if requirements.departments and student.department not in requirements.departments:
        unmet.append("department")

    if requirements.year and student.year not in requirements.year:
        unmet.append("year")

    if requirements.minimum_cgpa:
        if student.cgpa is None or student.cgpa < requirements.minimum_cgpa:
            unmet.append("cgpa")

    return unmet


def is_eligible(student: StudentProfile, requirements: JobRequirements) -> bool:
    return not unmet_requirements(student, requirements)
