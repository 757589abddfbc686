"""
MongoDB Connection Utility

MongoDB stores:
- Application aggregates (status, approval, interview, offer, timeline, messages)
- Notifications produced by workflow transitions

Document shape:
- One document per application; a transition rewrites it with a single
  replace_one guarded by `version`
- interview and offer are optional embedded sub-documents
- timeline and messages are embedded arrays in insertion order
"""
import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from placement_portal.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the portal database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    """
    Get a specific collection.
    Collections we'll use:
    - applications: Application aggregates
    - notifications: Per-user notification inbox
    """
    db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except PyMongoError as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "applications": "applications",
    "notifications": "notifications"
}


def init_mongo_indexes():
    """
    Create indexes for better query performance.
    Call this once during app startup.
    """
    db = get_mongo_db()
    applications = db[COLLECTIONS["applications"]]

    # One application per (job, student)
    applications.create_index(
        [("job_id", ASCENDING), ("student_id", ASCENDING)],
        unique=True
    )
    applications.create_index("student_id")
    applications.create_index("status")
    applications.create_index("faculty_approval.status")
    applications.create_index("interview.date")
    applications.create_index([("created_at", DESCENDING)])

    notifications = db[COLLECTIONS["notifications"]]
    notifications.create_index([("recipient", ASCENDING), ("created_at", DESCENDING)])
    notifications.create_index([("recipient", ASCENDING), ("is_read", ASCENDING)])

    logger.info("MongoDB indexes created successfully")
