"""
Campus Placement Portal - Application Workflow API

FastAPI backend with:
- MongoDB for application aggregates and notifications
- PostgreSQL for job and student directories
- JWT authentication (role in token claims)

Run: uvicorn placement_portal.main:app --reload
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from placement_portal.api.routes import api_router
from placement_portal.core.config import get_settings
from placement_portal.core.logging_config import configure_logging

settings = get_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Campus Placement Portal",
    description="""
    Application workflow for campus placements.

    ## Features
    - **Applications**: Apply with eligibility checks (department, year, CGPA)
    - **Faculty approval**: Gate applications before employers review them
    - **Interviews**: Schedule and record results
    - **Offers**: Extend, accept or decline
    - **Timeline**: Append-only history of every status change
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes on startup."""
    if settings.storage_backend.lower() != "mongodb":
        logger.info("Storage backend is '%s', skipping MongoDB indexes", settings.storage_backend)
        return
    from placement_portal.db.mongodb import init_mongo_indexes
    try:
        init_mongo_indexes()
    except PyMongoError as e:
        logger.warning("MongoDB index initialization failed: %s", e)


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    from placement_portal.db.postgres import test_postgres_connection
    from placement_portal.db.mongodb import test_mongo_connection

    return {
        "status": "healthy",
        "postgres": "connected" if test_postgres_connection() else "disconnected",
        "mongodb": "connected" if test_mongo_connection() else "disconnected"
    }
