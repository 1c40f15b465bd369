"""
Policy Validator

Rolls rule outcomes up into a compliance report and decides whether a
report is passing. Only critical and high severity failures break
compliance; medium and low failures are reported but tolerated.
"""

from typing import Any, Optional

from .models import (
    CompliancePolicy,
    ComplianceReport,
    ReportSummary,
    Severity,
    ValidationResult,
    utc_now,
)
from .rule_validator import RuleValidator


class PolicyValidator:
    """Validates records against every rule of a policy."""

    def __init__(self, rule_validator: Optional[RuleValidator] = None) -> None:
        self._rule_validator = rule_validator or RuleValidator()

    def validate_policy(self, policy: CompliancePolicy, record: Any) -> ComplianceReport:
        """Evaluate a record against all rules, preserving rule order."""
        timestamp = utc_now()
        results = [self._rule_validator.validate_rule(rule, record) for rule in policy.rules]

        return ComplianceReport(
            policy_id=policy.id,
            policy_name=policy.name,
            timestamp=timestamp,
            results=results,
            summary=self.calculate_summary(results),
        )

    def is_policy_passing(self, report: ComplianceReport) -> bool:
        """A report passes when it has no critical and no high failures."""
        return report.summary.critical_failures == 0 and report.summary.high_failures == 0

    def get_failed_rules(self, report: ComplianceReport) -> list[ValidationResult]:
        """Failed results in their original order."""
        return [r for r in report.results if not r.passed]

    @staticmethod
    def calculate_summary(results: list[ValidationResult]) -> ReportSummary:
        """Count passes and per-severity failures in a single pass."""
        passed = 0
        failures = {severity: 0 for severity in Severity}
        for result in results:
            if result.passed:
                passed += 1
            else:
                failures[result.severity] += 1

        total = len(results)
        return ReportSummary(
            total=total,
            passed=passed,
            failed=total - passed,
            critical_failures=failures[Severity.CRITICAL],
            high_failures=failures[Severity.HIGH],
            medium_failures=failures[Severity.MEDIUM],
            low_failures=failures[Severity.LOW],
        )
