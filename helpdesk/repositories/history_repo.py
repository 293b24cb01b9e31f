"""History Repository - Data access for ticket history (append-only)"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING

from .mongo_client import get_collection
from ..domain.history import TicketHistoryEntry
from ..utils.time import days_ago
from ..utils.logger import get_logger

logger = get_logger(__name__)


class HistoryRepository:
    """
    Repository for ticket history entries

    Entries are inserted with an ObjectId _id so that entries sharing a
    created_at timestamp still read back in insertion order.
    """

    def __init__(self):
        self._history: Collection = get_collection("ticket_history")

    def append(self, entry: TicketHistoryEntry) -> TicketHistoryEntry:
        """Append one entry"""
        self._history.insert_one(entry.to_document())
        logger.info(
            f"Recorded history: {entry.action}",
            extra={"ticket_id": entry.ticket_id, "action": entry.action, "user_id": entry.user_id}
        )
        return entry

    def get_for_ticket(
        self,
        ticket_id: str,
        skip: int = 0,
        limit: int = 200
    ) -> List[TicketHistoryEntry]:
        """History of a ticket, newest first"""
        cursor = self._history.find({"ticket_id": ticket_id}).sort([
            ("created_at", DESCENDING),
            ("_id", ASCENDING),
        ]).skip(skip).limit(limit)

        return [TicketHistoryEntry.from_document(doc) for doc in cursor]

    def get_recent(self, limit: int = 50) -> List[TicketHistoryEntry]:
        """Most recent entries across all tickets"""
        cursor = self._history.find({}).sort([
            ("created_at", DESCENDING),
            ("_id", ASCENDING),
        ]).limit(limit)

        return [TicketHistoryEntry.from_document(doc) for doc in cursor]

    def count_by_action(self, days: int = 30) -> Dict[str, int]:
        """Entry counts per action over the last `days` days"""
        pipeline = [
            {"$match": {"created_at": {"$gte": days_ago(days)}}},
            {"$group": {"_id": "$action", "count": {"$sum": 1}}},
        ]
        return {doc["_id"]: doc["count"] for doc in self._history.aggregate(pipeline)}

    def top_users(self, days: int = 30, limit: int = 5) -> List[Dict[str, Any]]:
        """Users with the most entries over the last `days` days"""
        pipeline = [
            {"$match": {"created_at": {"$gte": days_ago(days)}}},
            {"$group": {"_id": "$user_id", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
            {"$limit": limit},
        ]
        return [
            {"user_id": doc["_id"], "count": doc["count"]}
            for doc in self._history.aggregate(pipeline)
        ]

    def count_for_ticket(self, ticket_id: str) -> int:
        return self._history.count_documents({"ticket_id": ticket_id})

    def latest_timestamp(self, ticket_id: str) -> Optional[datetime]:
        """created_at of the newest entry of a ticket"""
        doc = self._history.find_one(
            {"ticket_id": ticket_id},
            sort=[("created_at", DESCENDING)]
        )
        return doc["created_at"] if doc else None
