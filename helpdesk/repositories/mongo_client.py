"""
MongoDB Client - Connection, collections and indexes

One process-wide client, created lazily. Repositories fetch their
collections through get_collection(); tests swap `_client` / `_database`
for an in-memory client.
"""
from typing import Any, Dict, List, Optional, Tuple, Union
from pymongo import MongoClient as PyMongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None


IndexKeys = Union[str, List[Tuple[str, int]]]

# collection -> [(keys, options)]
INDEXES: Dict[str, List[Tuple[IndexKeys, Dict[str, Any]]]] = {
    "tickets": [
        ("ticket_id", {"unique": True}),
        ("status", {}),
        ("category", {}),
        ([("assigned_to", ASCENDING), ("status", ASCENDING)], {}),
        ("created_by", {}),
        ([("created_at", DESCENDING)], {}),
    ],
    "approval_stages": [
        ("stage_id", {"unique": True}),
        ([("form_id", ASCENDING), ("order", ASCENDING)], {"unique": True}),
    ],
    # One request per (ticket, stage)
    "approval_requests": [
        ("approval_request_id", {"unique": True}),
        ([("ticket_id", ASCENDING), ("stage_id", ASCENDING)], {"unique": True}),
        ([("approver_id", ASCENDING), ("status", ASCENDING)], {}),
    ],
    "assignment_rules": [
        ("rule_id", {"unique": True}),
        ([("is_active", ASCENDING), ("priority", ASCENDING)], {}),
    ],
    "teams": [
        ("team_id", {"unique": True}),
        ("name", {"unique": True}),
    ],
    "team_members": [
        ("member_id", {"unique": True}),
        ([("team_id", ASCENDING), ("user_id", ASCENDING)], {"unique": True}),
        ([("team_id", ASCENDING), ("joined_at", ASCENDING)], {}),
        ("user_id", {}),
    ],
    "users": [
        ("user_id", {"unique": True}),
        ("email", {"unique": True}),
    ],
    "ticket_history": [
        ("history_id", {"unique": True}),
        ([("ticket_id", ASCENDING), ("created_at", DESCENDING)], {}),
        ([("created_at", DESCENDING)], {}),
        ("user_id", {}),
    ],
    "notifications": [
        ("notification_id", {"unique": True}),
        ([("user_id", ASCENDING), ("created_at", DESCENDING)], {}),
        ([("user_id", ASCENDING), ("read", ASCENDING)], {}),
    ],
}


def get_client() -> PyMongoClient:
    """Lazily connect; fails fast when the server does not answer a ping"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB at {settings.mongo_uri}")
        client = PyMongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
            tz_aware=True,
        )
        try:
            client.admin.command("ping")
        except ConnectionFailure as e:
            logger.error(f"MongoDB connection failed: {e}")
            client.close()
            raise
        _client = client
    return _client


def get_database() -> Database:
    global _database
    if _database is None:
        _database = get_client()[settings.mongo_db]
        logger.info(f"Using database: {settings.mongo_db}")
    return _database


def get_collection(name: str) -> Collection:
    return get_database()[name]


def close_connection() -> None:
    global _client, _database
    if _client is not None:
        _client.close()
        logger.info("MongoDB connection closed")
    _client = None
    _database = None


def create_indexes() -> None:
    """Create every index in INDEXES (no-op for ones that already exist)"""
    db = get_database()
    for collection_name, indexes in INDEXES.items():
        collection = db[collection_name]
        for keys, options in indexes:
            collection.create_index(keys, **options)
    logger.info(f"Ensured indexes on {len(INDEXES)} collections")


def health_check() -> Dict[str, Any]:
    """Ping the server; never raises"""
    status: Dict[str, Any] = {"database": settings.mongo_db}
    try:
        get_client().admin.command("ping")
    except PyMongoError as e:
        logger.error(f"MongoDB health check failed: {e}")
        status.update({"status": "unhealthy", "error": str(e)})
        return status

    status.update({"status": "healthy", "connection": "ok"})
    return status
