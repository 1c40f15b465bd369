"""
ComplianceKit - Policy evaluation engine with a bounded audit trail

Evaluates named collections of boolean rules against record-shaped data,
rolls the outcomes up by severity and records every policy lifecycle and
validation action in a size-bounded audit log.

Version: 1.0.0
"""

__version__ = "1.0.0"

from .config import EngineConfig

from .governance import (
    AuditAction,
    AuditEntry,
    AuditLog,
    ComplianceReport,
    ComplianceRule,
    CompliancePolicy,
    ComplianceService,
    ConditionOperator,
    PolicyParser,
    PolicyValidator,
    ReportSummary,
    ResourceType,
    RuleCondition,
    RuleValidator,
    Severity,
    ValidationResult,
)

from .exceptions import (
    ComplianceKitError,
    DuplicatePolicyError,
    InvalidInputError,
    PolicyNotFoundError,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "EngineConfig",
    # Models
    "ComplianceRule",
    "CompliancePolicy",
    "ComplianceReport",
    "ConditionOperator",
    "ReportSummary",
    "RuleCondition",
    "Severity",
    "ValidationResult",
    # Evaluation
    "RuleValidator",
    "PolicyValidator",
    "PolicyParser",
    "ComplianceService",
    # Audit
    "AuditAction",
    "AuditEntry",
    "AuditLog",
    "ResourceType",
    # Exceptions
    "ComplianceKitError",
    "DuplicatePolicyError",
    "InvalidInputError",
    "PolicyNotFoundError",
]
