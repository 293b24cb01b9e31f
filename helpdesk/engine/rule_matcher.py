"""Rule Matcher - Pick the assignment rule for a new ticket"""
from typing import List, Optional

from ..domain.models import AssignmentRule, RuleConditions
from ..repositories.rule_repo import RuleRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)


def conditions_match(
    conditions: RuleConditions,
    category: str,
    priority: str,
    ticket_type: str
) -> bool:
    """
    Check a ticket's fields against rule conditions

    Each field matches when its list is empty or contains the ticket's
    value; all three fields must match.
    """
    if conditions.categories and category not in conditions.categories:
        return False
    if conditions.priorities and priority not in conditions.priorities:
        return False
    if conditions.types and ticket_type not in conditions.types:
        return False
    return True


def order_rules(rules: List[AssignmentRule]) -> List[AssignmentRule]:
    """Evaluation order: priority, then oldest rule, then rule id"""
    return sorted(rules, key=lambda r: (r.priority, r.created_at, r.rule_id))


class RuleMatcher:
    """
    Match tickets against active assignment rules

    Rules are evaluated in ascending priority; the first rule whose
    conditions match wins. Inactive rules are never considered.
    """

    def __init__(self, rule_repo: Optional[RuleRepository] = None):
        self.rule_repo = rule_repo or RuleRepository()

    def match(
        self,
        category: str,
        priority: str,
        ticket_type: str
    ) -> Optional[AssignmentRule]:
        """Return the first matching active rule, or None"""
        rules = order_rules(self.rule_repo.list_active_rules())

        for rule in rules:
            if conditions_match(rule.conditions, category, priority, ticket_type):
                logger.debug(
                    f"Rule '{rule.name}' matched category={category} priority={priority} type={ticket_type}",
                    extra={"rule_id": rule.rule_id}
                )
                return rule

        logger.debug(
            f"No assignment rule matched category={category} priority={priority} type={ticket_type}"
        )
        return None
