"""Assignment Rule Repository - Data access for auto-assignment rules"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING

from .mongo_client import get_collection
from ..domain.models import AssignmentRule
from ..domain.errors import RuleNotFoundError
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class RuleRepository:
    """Repository for assignment rule operations"""

    def __init__(self):
        self._rules: Collection = get_collection("assignment_rules")

    def create_rule(self, rule: AssignmentRule) -> AssignmentRule:
        """Create an assignment rule"""
        doc = rule.model_dump()
        doc["_id"] = rule.rule_id

        self._rules.insert_one(doc)
        logger.info(f"Created assignment rule: {rule.name}", extra={"rule_id": rule.rule_id})
        return rule

    def get_rule(self, rule_id: str) -> Optional[AssignmentRule]:
        """Get rule by ID"""
        doc = self._rules.find_one({"rule_id": rule_id})
        if doc:
            doc.pop("_id", None)
            return AssignmentRule.model_validate(doc)
        return None

    def get_rule_or_raise(self, rule_id: str) -> AssignmentRule:
        rule = self.get_rule(rule_id)
        if not rule:
            raise RuleNotFoundError(f"Rule {rule_id} not found", details={"rule_id": rule_id})
        return rule

    def list_rules(self, active_only: bool = False) -> List[AssignmentRule]:
        """List rules in evaluation order"""
        query: Dict[str, Any] = {"is_active": True} if active_only else {}
        cursor = self._rules.find(query).sort([
            ("priority", ASCENDING),
            ("created_at", ASCENDING),
            ("rule_id", ASCENDING),
        ])

        rules = []
        for doc in cursor:
            doc.pop("_id", None)
            rules.append(AssignmentRule.model_validate(doc))

        return rules

    def list_active_rules(self) -> List[AssignmentRule]:
        return self.list_rules(active_only=True)

    def update_rule(self, rule_id: str, updates: Dict[str, Any]) -> AssignmentRule:
        """Patch a rule"""
        updates["updated_at"] = utc_now()

        result = self._rules.find_one_and_update(
            {"rule_id": rule_id},
            {"$set": updates},
            return_document=True
        )

        if result is None:
            raise RuleNotFoundError(f"Rule {rule_id} not found", details={"rule_id": rule_id})

        result.pop("_id", None)
        logger.info(f"Updated assignment rule: {rule_id}", extra={"rule_id": rule_id})
        return AssignmentRule.model_validate(result)

    def delete_rule(self, rule_id: str) -> bool:
        """Delete a rule, returns True if it existed"""
        result = self._rules.delete_one({"rule_id": rule_id})
        return result.deleted_count > 0

    def count_rules(self, active: Optional[bool] = None) -> int:
        query: Dict[str, Any] = {}
        if active is not None:
            query["is_active"] = active
        return self._rules.count_documents(query)
