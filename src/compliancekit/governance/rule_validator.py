"""
Rule Validator

Applies every condition of a rule to a record under AND semantics.
"""

from typing import Any

from .conditions import evaluate_condition
from .models import ComplianceRule, RuleCondition, ValidationResult


class RuleValidator:
    """Validates records against individual compliance rules."""

    def evaluate_condition(self, condition: RuleCondition, record: Any) -> bool:
        """Evaluate a single condition against a record."""
        return evaluate_condition(condition, record)

    def validate_rule(self, rule: ComplianceRule, record: Any) -> ValidationResult:
        """
        Validate a record against a rule.

        Disabled rules pass without touching their conditions. A rule with
        no conditions passes vacuously. Every condition is evaluated so the
        outcome never depends on ordering.
        """
        if not rule.enabled:
            return ValidationResult(
                rule_id=rule.id,
                rule_name=rule.name,
                passed=True,
                severity=rule.severity,
                message="Rule is disabled",
            )

        outcomes = [self.evaluate_condition(c, record) for c in rule.conditions]
        passed = all(outcomes)

        if passed:
            message = f'Rule "{rule.name}" passed'
        else:
            message = f'Rule "{rule.name}" failed: {rule.description}'

        return ValidationResult(
            rule_id=rule.id,
            rule_name=rule.name,
            passed=passed,
            severity=rule.severity,
            message=message,
        )
