"""
Governance & Compliance

Rule evaluation, policy aggregation, the policy registry and the bounded
audit log.
"""

from .models import (
    ComplianceReport,
    ComplianceRule,
    CompliancePolicy,
    ConditionOperator,
    ReportSummary,
    RuleCondition,
    Severity,
    ValidationResult,
)
from .conditions import MISSING, evaluate_condition, resolve_field, strict_equals
from .rule_validator import RuleValidator
from .policy_validator import PolicyValidator
from .audit import AuditAction, AuditEntry, AuditLog, ResourceType
from .parser import PolicyParser, policy_to_dict
from .service import ComplianceService

__all__ = [
    "ComplianceReport",
    "ComplianceRule",
    "CompliancePolicy",
    "ConditionOperator",
    "ReportSummary",
    "RuleCondition",
    "Severity",
    "ValidationResult",
    "MISSING",
    "evaluate_condition",
    "resolve_field",
    "strict_equals",
    "RuleValidator",
    "PolicyValidator",
    "AuditAction",
    "AuditEntry",
    "AuditLog",
    "ResourceType",
    "PolicyParser",
    "policy_to_dict",
    "ComplianceService",
]
