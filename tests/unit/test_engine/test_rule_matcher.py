"""
Tests for assignment rule matching.
"""

from helpdesk.domain.models import AgentTarget, RuleConditions
from helpdesk.engine.rule_matcher import RuleMatcher, conditions_match


class TestConditionsMatch:
    """Tests for matching a ticket against one rule's conditions."""

    def test_empty_conditions_match_anything(self):
        assert conditions_match(RuleConditions(), "network", "low", "inquiry")

    def test_every_listed_field_must_match(self):
        """Conditions combine with AND across fields."""
        conditions = RuleConditions(categories=["hardware"], priorities=["high", "critical"])

        assert conditions_match(conditions, "hardware", "high", "incident")
        assert not conditions_match(conditions, "hardware", "low", "incident")
        assert not conditions_match(conditions, "software", "high", "incident")

    def test_type_condition(self):
        conditions = RuleConditions(types=["service_request"])

        assert conditions_match(conditions, "any", "low", "service_request")
        assert not conditions_match(conditions, "any", "low", "incident")


class TestRuleMatcher:
    """Tests for picking the winning rule."""

    def test_no_rules_no_match(self, factory):
        assert RuleMatcher().match("hardware", "high", "incident") is None

    def test_lowest_priority_number_wins(self, factory):
        """Both rules match; priority 1 is evaluated before priority 2."""
        factory.rule("Catch-all", 2, AgentTarget(agent_id="agent-2"))
        winner = factory.rule(
            "Hardware", 1, AgentTarget(agent_id="agent-1"), categories=["hardware"]
        )

        rule = RuleMatcher().match("hardware", "high", "incident")

        assert rule.rule_id == winner.rule_id

    def test_falls_through_to_later_rule(self, factory):
        """A non-matching higher-priority rule is skipped."""
        factory.rule("Critical only", 1, priorities=["critical"])
        fallback = factory.rule("Catch-all", 5)

        rule = RuleMatcher().match("hardware", "low", "incident")

        assert rule.rule_id == fallback.rule_id

    def test_inactive_rules_are_ignored(self, factory):
        factory.rule("Disabled", 1, is_active=False)

        assert RuleMatcher().match("hardware", "low", "incident") is None

    def test_equal_priority_oldest_rule_wins(self, factory):
        """Ties on priority go to the rule created first."""
        first = factory.rule("First", 3)
        factory.rule("Second", 3)

        assert RuleMatcher().match("hardware", "low", "incident").rule_id == first.rule_id

    def test_specific_rule_then_wildcard(self, factory):
        """Category IT hits the IT rule; anything else falls to the wildcard."""
        it_rule = factory.rule("IT desk", 1, categories=["IT"])
        wildcard = factory.rule("Everything else", 2)
        matcher = RuleMatcher()

        assert matcher.match("IT", "medium", "incident").rule_id == it_rule.rule_id
        assert matcher.match("HR", "medium", "incident").rule_id == wildcard.rule_id
