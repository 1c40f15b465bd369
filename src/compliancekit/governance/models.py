"""
Compliance Models

Typed policy, rule and condition documents, plus the per-evaluation
result and report structures. All models serialize to JSON with camelCase
field names and accept either spelling on input.
"""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from compliancekit.exceptions import InvalidInputError


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class Severity(str, Enum):
    """Severity of a compliance rule."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConditionOperator(str, Enum):
    """Supported comparison operators for rule conditions."""

    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    NOT_CONTAINS = "notContains"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    MATCHES = "matches"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible dict using camelCase field names."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialize to a JSON string using camelCase field names."""
        return self.model_dump_json(by_alias=True, indent=indent)


def _check_value_kind(value: Any) -> bool:
    if value is None or isinstance(value, (bool, int, float, str, re.Pattern)):
        return True
    if isinstance(value, (list, tuple)):
        return all(_check_value_kind(v) for v in value)
    if isinstance(value, dict):
        return all(isinstance(k, str) and _check_value_kind(v) for k, v in value.items())
    return False


class RuleCondition(CamelModel):
    """
    A single comparison between a record field and an operand.

    ``field`` is a dot-separated path into the record (``user.profile.role``).
    ``value`` is a JSON value or a compiled ``re.Pattern`` for ``matches``.
    """

    model_config = ConfigDict(frozen=True)

    field: str = Field(..., description="Dot-notated field path")
    operator: ConditionOperator = Field(default=ConditionOperator.EQUALS)
    value: Any = Field(default=None, description="Operand to compare against")

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: Any) -> Any:
        """Restrict operands to JSON values and compiled patterns."""
        if not _check_value_kind(v):
            raise InvalidInputError(
                f"Unsupported condition value of type {type(v).__name__}"
            )
        return v

    @field_serializer("value")
    def serialize_value(self, v: Any) -> Any:
        if isinstance(v, re.Pattern):
            return v.pattern
        return v


class ComplianceRule(CamelModel):
    """A named conjunction of conditions with a severity."""

    id: str
    name: str
    description: str = ""
    severity: Severity = Severity.MEDIUM
    category: str = "general"
    enabled: bool = True
    conditions: list[RuleCondition] = Field(default_factory=list)


class CompliancePolicy(CamelModel):
    """
    A named, versioned collection of compliance rules.

    ``id`` is caller-assigned and stays fixed once the policy is registered.
    """

    id: str
    name: str
    version: str = "1.0.0"
    description: str = ""
    rules: list[ComplianceRule] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ValidationResult(CamelModel):
    """Outcome of evaluating one rule against one record."""

    rule_id: str
    rule_name: str
    passed: bool
    severity: Severity
    message: str
    details: Optional[dict[str, Any]] = None


class ReportSummary(CamelModel):
    """Pass/fail counts for a report; severity counters cover failures only."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    critical_failures: int = 0
    high_failures: int = 0
    medium_failures: int = 0
    low_failures: int = 0


class ComplianceReport(CamelModel):
    """Result of evaluating a record against every rule of a policy."""

    policy_id: str
    policy_name: str
    timestamp: datetime = Field(default_factory=utc_now)
    results: list[ValidationResult] = Field(default_factory=list)
    summary: ReportSummary = Field(default_factory=ReportSummary)
