"""User Repository - Read access to helpdesk users"""
from typing import Dict, List, Optional
from pymongo.collection import Collection

from .mongo_client import get_collection
from ..domain.models import User
from ..utils.logger import get_logger

logger = get_logger(__name__)


class UserRepository:
    """Repository for user lookups"""

    def __init__(self):
        self._users: Collection = get_collection("users")

    def create_user(self, user: User) -> User:
        doc = user.model_dump()
        doc["_id"] = user.user_id
        self._users.insert_one(doc)
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        doc = self._users.find_one({"user_id": user_id})
        if doc:
            doc.pop("_id", None)
            return User.model_validate(doc)
        return None

    def get_users_by_ids(self, user_ids: List[str]) -> Dict[str, User]:
        users = {}
        for doc in self._users.find({"user_id": {"$in": list(user_ids)}}):
            doc.pop("_id", None)
            user = User.model_validate(doc)
            users[user.user_id] = user
        return users

    def get_display_name(self, user_id: Optional[str]) -> str:
        """User name for history and messages, "Unknown User" when missing"""
        if not user_id:
            return "Unknown User"
        user = self.get_user(user_id)
        return user.name if user else "Unknown User"
