"""Assignment Rule Service - Rule administration"""
from typing import Any, Dict, List, Optional

from ..domain.models import AssignmentRule, AssignTo, RuleConditions
from ..domain.errors import RuleNotFoundError, ValidationError
from ..repositories.rule_repo import RuleRepository
from ..utils.idgen import generate_rule_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


# Fields a rule update may touch
UPDATABLE_FIELDS = ("name", "description", "is_active", "priority", "conditions", "assign_to")


class AssignmentRuleService:
    """Service for assignment rule CRUD, ordering and stats"""

    def __init__(self, rule_repo: Optional[RuleRepository] = None):
        self.rule_repo = rule_repo or RuleRepository()

    def list_rules(self) -> List[AssignmentRule]:
        """All rules in evaluation order"""
        return self.rule_repo.list_rules()

    def get_rule(self, rule_id: str) -> AssignmentRule:
        return self.rule_repo.get_rule_or_raise(rule_id)

    def create_rule(
        self,
        name: str,
        priority: int,
        assign_to: AssignTo,
        actor_id: str,
        conditions: Optional[RuleConditions] = None,
        description: Optional[str] = None,
        is_active: bool = True
    ) -> AssignmentRule:
        """Create a rule"""
        now = utc_now()
        rule = AssignmentRule(
            rule_id=generate_rule_id(),
            name=name,
            description=description,
            is_active=is_active,
            priority=priority,
            conditions=conditions or RuleConditions(),
            assign_to=assign_to,
            created_by=actor_id,
            created_at=now,
            updated_at=now
        )
        self.rule_repo.create_rule(rule)
        logger.info(
            f"Created assignment rule '{name}' at priority {priority}",
            extra={"rule_id": rule.rule_id, "user_id": actor_id}
        )
        return rule

    def update_rule(self, rule_id: str, updates: Dict[str, Any]) -> AssignmentRule:
        """
        Patch a rule

        Only UPDATABLE_FIELDS are accepted; nested models are stored as
        plain documents.
        """
        unknown = set(updates) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Cannot update fields: {', '.join(sorted(unknown))}",
                details={"fields": sorted(unknown)}
            )

        doc: Dict[str, Any] = {}
        for key, value in updates.items():
            doc[key] = value.model_dump() if hasattr(value, "model_dump") else value

        rule = self.rule_repo.update_rule(rule_id, doc)
        logger.info(f"Updated assignment rule '{rule.name}'", extra={"rule_id": rule_id})
        return rule

    def toggle_active(self, rule_id: str) -> AssignmentRule:
        """Flip a rule's is_active flag"""
        rule = self.rule_repo.get_rule_or_raise(rule_id)
        return self.rule_repo.update_rule(rule_id, {"is_active": not rule.is_active})

    def reorder(self, rule_ids: List[str]) -> List[AssignmentRule]:
        """
        Renumber priorities from list position (first = priority 1)

        Every id must exist; rules not in the list keep their priority.
        """
        if len(set(rule_ids)) != len(rule_ids):
            raise ValidationError("Duplicate rule ids in reorder list")

        for rule_id in rule_ids:
            if not self.rule_repo.get_rule(rule_id):
                raise RuleNotFoundError(f"Rule {rule_id} not found", details={"rule_id": rule_id})

        for index, rule_id in enumerate(rule_ids):
            self.rule_repo.update_rule(rule_id, {"priority": index + 1})

        logger.info(f"Reordered {len(rule_ids)} assignment rules")
        return self.rule_repo.list_rules()

    def delete_rule(self, rule_id: str) -> None:
        if not self.rule_repo.delete_rule(rule_id):
            raise RuleNotFoundError(f"Rule {rule_id} not found", details={"rule_id": rule_id})
        logger.info("Deleted assignment rule", extra={"rule_id": rule_id})

    def get_stats(self) -> Dict[str, int]:
        total = self.rule_repo.count_rules()
        active = self.rule_repo.count_rules(active=True)
        return {"total": total, "active": active, "inactive": total - active}
