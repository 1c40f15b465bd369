"""
Compliance Service

Policy registry and orchestration. Owns the registered policies, runs
validations through the policy validator and records every lifecycle and
validation action in the shared audit log.
"""

import logging
import threading
from typing import Any, Optional

from compliancekit.config import EngineConfig
from compliancekit.exceptions import DuplicatePolicyError, PolicyNotFoundError

from .audit import AuditAction, AuditLog, ResourceType
from .models import CompliancePolicy, ComplianceReport, utc_now
from .parser import PolicyParser
from .policy_validator import PolicyValidator

logger = logging.getLogger(__name__)


class ComplianceService:
    """
    Registry of compliance policies with audited operations.

    Policies are keyed by ID and kept in registration order. Updating a
    policy keeps its position; deleting and re-registering moves it to the
    end. All public methods hold one re-entrant lock, so lifecycle changes,
    validations and their audit entries apply in a single total order.

    Args:
        audit_log: Shared audit log. Built from ``config`` when omitted.
        parser: Normalizer for raw policy documents.
        config: Engine configuration.
    """

    def __init__(
        self,
        audit_log: Optional[AuditLog] = None,
        parser: Optional[PolicyParser] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._audit_log = audit_log if audit_log is not None else AuditLog(
            max_entries=self.config.max_audit_entries
        )
        self._parser = parser or PolicyParser()
        self._validator = PolicyValidator()
        self._policies: dict[str, CompliancePolicy] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def register_policy(self, raw: Any, user_id: Optional[str] = None) -> CompliancePolicy:
        """Register a new policy from a raw document.

        Raises:
            InvalidInputError: If the document is malformed.
            DuplicatePolicyError: If the policy ID is already registered.
        """
        user_id = self._user(user_id)
        policy = self._parser.parse_policy(raw)

        with self._lock:
            if policy.id in self._policies:
                raise DuplicatePolicyError(policy.id)
            self._policies[policy.id] = policy
            logger.info("Registered policy %s (%d rules)", policy.id, len(policy.rules))
            self._audit(AuditAction.CREATE, policy.id, user_id, {
                "policyName": policy.name,
                "ruleCount": len(policy.rules),
            })
            return policy.model_copy(deep=True)

    def update_policy(
        self,
        policy_id: str,
        raw: Any,
        user_id: Optional[str] = None,
    ) -> CompliancePolicy:
        """Replace a registered policy with a new document.

        The stored ID stays ``policy_id`` whatever the document says, the
        original ``created_at`` is kept and ``updated_at`` is refreshed.

        Raises:
            PolicyNotFoundError: If ``policy_id`` is not registered.
            InvalidInputError: If the document is malformed.
        """
        user_id = self._user(user_id)

        with self._lock:
            current = self._policies.get(policy_id)
            if current is None:
                raise PolicyNotFoundError(policy_id)

            parsed = self._parser.parse_policy(raw)
            policy = parsed.model_copy(update={
                "id": policy_id,
                "created_at": current.created_at,
                "updated_at": max(utc_now(), current.updated_at),
            })
            self._policies[policy_id] = policy
            logger.info("Updated policy %s (%d rules)", policy_id, len(policy.rules))
            self._audit(AuditAction.UPDATE, policy_id, user_id, {
                "policyName": policy.name,
                "ruleCount": len(policy.rules),
            })
            return policy.model_copy(deep=True)

    def delete_policy(self, policy_id: str, user_id: Optional[str] = None) -> bool:
        """Remove a policy. Returns ``False`` without side effects if absent."""
        user_id = self._user(user_id)

        with self._lock:
            if policy_id not in self._policies:
                return False
            del self._policies[policy_id]
            logger.info("Deleted policy %s", policy_id)
            self._audit(AuditAction.DELETE, policy_id, user_id)
            return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_policy(self, policy_id: str) -> Optional[CompliancePolicy]:
        """Get a copy of a registered policy, or ``None``."""
        with self._lock:
            policy = self._policies.get(policy_id)
            return policy.model_copy(deep=True) if policy is not None else None

    def get_all_policies(self) -> list[CompliancePolicy]:
        """Copies of all registered policies in registration order."""
        with self._lock:
            return [p.model_copy(deep=True) for p in self._policies.values()]

    def get_audit_log(self) -> AuditLog:
        """The audit log this service writes to."""
        return self._audit_log

    @property
    def validator(self) -> PolicyValidator:
        return self._validator

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(
        self,
        policy_id: str,
        record: Any,
        user_id: Optional[str] = None,
    ) -> ComplianceReport:
        """Validate a record against one policy and audit the outcome.

        Raises:
            PolicyNotFoundError: If ``policy_id`` is not registered.
        """
        user_id = self._user(user_id)

        with self._lock:
            policy = self._policies.get(policy_id)
            if policy is None:
                raise PolicyNotFoundError(policy_id)

            report = self._validator.validate_policy(policy, record)
            passed = self._validator.is_policy_passing(report)
            logger.debug(
                "Validated record against %s: passed=%s failed=%d/%d",
                policy_id, passed, report.summary.failed, report.summary.total,
            )
            self._audit(AuditAction.VALIDATE, policy_id, user_id, {
                "passed": passed,
                "totalRules": report.summary.total,
                "failedRules": report.summary.failed,
            })
            return report

    def validate_all(self, record: Any, user_id: Optional[str] = None) -> list[ComplianceReport]:
        """Validate a record against every policy, in registration order.

        Each policy produces its own audit entry.
        """
        with self._lock:
            return [self.validate(pid, record, user_id) for pid in list(self._policies)]

    def is_compliant(self, record: Any, user_id: Optional[str] = None) -> bool:
        """``True`` iff every policy passes.

        Always validates (and audits) every policy; never stops at the
        first failure.
        """
        reports = self.validate_all(record, user_id)
        return all(self._validator.is_policy_passing(r) for r in reports)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _user(self, user_id: Optional[str]) -> str:
        return user_id if user_id else self.config.default_user

    def _audit(
        self,
        action: AuditAction,
        policy_id: str,
        user_id: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """Append an audit entry; a failing append never fails the operation."""
        try:
            self._audit_log.log(action, ResourceType.POLICY, policy_id, user_id, details)
        except Exception:
            logger.exception("Failed to record %s audit entry for policy %s", action.value, policy_id)
