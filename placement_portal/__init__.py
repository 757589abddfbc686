"""
Campus Placement Portal - Application Workflow
Moves student job applications from "applied" to "completed".

Architecture:
- MongoDB: Application aggregates (status, approval, interview, offer, timeline)
- PostgreSQL: Job and student directories (read-only from here)
- FastAPI: Thin HTTP layer doing role checks and error mapping
"""

__version__ = "1.0.0"
