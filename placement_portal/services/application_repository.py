"""
Application Repository - persistence of the Application aggregate.

Two backends with the same interface:
1. MongoApplicationRepository  - `applications` collection (production)
2. InMemoryApplicationRepository - process-local dict (development, tests)

CONCURRENCY:
Every stored application carries a `version`. save() is a compare-and-swap
on (id, version): it only succeeds if nobody else wrote since the caller
read, and stores version + 1. The loser gets ConcurrentModification.
"""

import logging
import threading
from collections import Counter
from datetime import datetime
from functools import lru_cache
from typing import Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from placement_portal.core.config import get_settings
from placement_portal.core.exceptions import (
    ConcurrentModification, DuplicateApplication, NotFound
)
from placement_portal.models.application import Application, ApprovalStatus

logger = logging.getLogger(__name__)


class ApplicationRepository:
    """Interface shared by the storage backends."""

    def insert(self, application: Application) -> Application:
        raise NotImplementedError

    def get(self, application_id: str) -> Optional[Application]:
        raise NotImplementedError

    def find_by_job_and_student(self, job_id: int, student_id: int) -> Optional[Application]:
        raise NotImplementedError

    def save(self, application: Application, expected_version: int) -> Application:
        raise NotImplementedError

    def find(
        self,
        status: Optional[str] = None,
        job_ids: Optional[List[int]] = None,
        student_id: Optional[int] = None,
        pending_approval: bool = False,
        skip: int = 0,
        limit: int = 10
    ) -> List[Application]:
        raise NotImplementedError

    def count(
        self,
        status: Optional[str] = None,
        job_ids: Optional[List[int]] = None,
        student_id: Optional[int] = None,
        pending_approval: bool = False
    ) -> int:
        raise NotImplementedError

    def count_by_status(self, job_ids: Optional[List[int]] = None) -> Dict[str, int]:
        raise NotImplementedError


# ============================================================
# MONGODB BACKEND
# ============================================================

def _build_query(status=None, job_ids=None, student_id=None, pending_approval=False) -> dict:
    query = {}
    if status:
        query["status"] = status
    if job_ids is not None:
        query["job_id"] = {"$in": list(job_ids)}
    if student_id is not None:
        query["student_id"] = student_id
    if pending_approval:
        query["faculty_approval.required"] = True
        query["faculty_approval.status"] = ApprovalStatus.pending.value
    return query


def _object_id(application_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(application_id)
    except (InvalidId, TypeError):
        return None


class MongoApplicationRepository(ApplicationRepository):
    """
    Stores each application as one document in `applications`.
    Uniqueness of (job_id, student_id) is backed by a unique index
    (see init_mongo_indexes).
    """

    def __init__(self, collection: Optional[Collection] = None):
        if collection is None:
            from placement_portal.db.mongodb import get_collection, COLLECTIONS
            collection = get_collection(COLLECTIONS["applications"])
        self.collection: Collection = collection

    def insert(self, application: Application) -> Application:
        doc = application.to_document()
        doc["version"] = 1
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise DuplicateApplication(application.job_id, application.student_id)
        return application.model_copy(update={"id": str(result.inserted_id), "version": 1})

    def get(self, application_id: str) -> Optional[Application]:
        oid = _object_id(application_id)
        if oid is None:
            return None
        doc = self.collection.find_one({"_id": oid})
        return Application.from_document(doc) if doc else None

    def find_by_job_and_student(self, job_id: int, student_id: int) -> Optional[Application]:
        doc = self.collection.find_one({"job_id": job_id, "student_id": student_id})
        return Application.from_document(doc) if doc else None

    def save(self, application: Application, expected_version: int) -> Application:
        oid = _object_id(application.id)
        if oid is None:
            raise NotFound("Application", application.id)

        new_version = expected_version + 1
        doc = application.to_document()
        doc["version"] = new_version

        result = self.collection.replace_one({"_id": oid, "version": expected_version}, doc)
        if result.matched_count == 0:
            if self.collection.count_documents({"_id": oid}, limit=1) == 0:
                raise NotFound("Application", application.id)
            raise ConcurrentModification(application.id, expected_version)
        return application.model_copy(update={"version": new_version})

    def find(self, status=None, job_ids=None, student_id=None, pending_approval=False,
             skip=0, limit=10) -> List[Application]:
        cursor = (
            self.collection.find(_build_query(status, job_ids, student_id, pending_approval))
            .sort("created_at", DESCENDING)
            .skip(skip)
            .limit(limit)
        )
        return [Application.from_document(doc) for doc in cursor]

    def count(self, status=None, job_ids=None, student_id=None, pending_approval=False) -> int:
        return self.collection.count_documents(
            _build_query(status, job_ids, student_id, pending_approval)
        )

    def count_by_status(self, job_ids: Optional[List[int]] = None) -> Dict[str, int]:
        pipeline = [
            {"$match": _build_query(job_ids=job_ids)},
            {"$group": {"_id": "$status", "count": {"$sum": 1}}}
        ]
        return {row["_id"]: row["count"] for row in self.collection.aggregate(pipeline)}


# ============================================================
# IN-MEMORY BACKEND
# ============================================================

class InMemoryApplicationRepository(ApplicationRepository):
    """
    Process-local storage with the same semantics as the MongoDB backend.
    Documents are stored as dicts so callers never share model instances
    with the store.
    """

    def __init__(self):
        self._docs: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def insert(self, application: Application) -> Application:
        with self._lock:
            for doc in self._docs.values():
                if doc["job_id"] == application.job_id and doc["student_id"] == application.student_id:
                    raise DuplicateApplication(application.job_id, application.student_id)
            application_id = str(ObjectId())
            doc = application.to_document()
            doc["version"] = 1
            self._docs[application_id] = doc
        return application.model_copy(update={"id": application_id, "version": 1})

    def _load(self, application_id: str, doc: dict) -> Application:
        return Application.from_document({**doc, "_id": application_id})

    def get(self, application_id: str) -> Optional[Application]:
        doc = self._docs.get(application_id)
        return self._load(application_id, doc) if doc else None

    def find_by_job_and_student(self, job_id: int, student_id: int) -> Optional[Application]:
        for application_id, doc in list(self._docs.items()):
            if doc["job_id"] == job_id and doc["student_id"] == student_id:
                return self._load(application_id, doc)
        return None

    def save(self, application: Application, expected_version: int) -> Application:
        with self._lock:
            current = self._docs.get(application.id)
            if current is None:
                raise NotFound("Application", application.id)
            if current["version"] != expected_version:
                raise ConcurrentModification(application.id, expected_version)
            doc = application.to_document()
            doc["version"] = expected_version + 1
            self._docs[application.id] = doc
        return application.model_copy(update={"version": expected_version + 1})

    def _matching(self, status=None, job_ids=None, student_id=None, pending_approval=False):
        for application_id, doc in list(self._docs.items()):
            if status and doc["status"] != status:
                continue
            if job_ids is not None and doc["job_id"] not in job_ids:
                continue
            if student_id is not None and doc["student_id"] != student_id:
                continue
            if pending_approval:
                approval = doc["faculty_approval"]
                if not approval["required"] or approval["status"] != ApprovalStatus.pending.value:
                    continue
            yield application_id, doc

    def find(self, status=None, job_ids=None, student_id=None, pending_approval=False,
             skip=0, limit=10) -> List[Application]:
        rows = sorted(
            self._matching(status, job_ids, student_id, pending_approval),
            key=lambda row: row[1].get("created_at") or datetime.min,
            reverse=True
        )
        return [self._load(application_id, doc) for application_id, doc in rows[skip:skip + limit]]

    def count(self, status=None, job_ids=None, student_id=None, pending_approval=False) -> int:
        return sum(1 for _ in self._matching(status, job_ids, student_id, pending_approval))

    def count_by_status(self, job_ids: Optional[List[int]] = None) -> Dict[str, int]:
        return dict(Counter(doc["status"] for _, doc in self._matching(job_ids=job_ids)))


@lru_cache()
def get_application_repository() -> ApplicationRepository:
    """
    Get the storage backend named by settings.storage_backend.

    Returns:
        MongoApplicationRepository for "mongodb" (default)
        InMemoryApplicationRepository for "memory"
    """
    backend = get_settings().storage_backend.lower()
    if backend == "memory":
        logger.info("Using in-memory application storage")
        return InMemoryApplicationRepository()
    if backend == "mongodb":
        logger.info("Using MongoDB application storage")
        return MongoApplicationRepository()
    raise ValueError(f"Unknown storage backend: {backend}")
