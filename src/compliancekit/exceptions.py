"""Centralized exception hierarchy for ComplianceKit.

All ComplianceKit exceptions inherit from ComplianceKitError, enabling
consistent error handling for callers of the registry and the parser.
Evaluation-time type mismatches are never raised; they resolve to a
failed (or passed) check instead.
"""


class ComplianceKitError(Exception):
    """Base exception for all ComplianceKit errors."""


class InvalidInputError(ComplianceKitError):
    """A raw policy, rule or condition document is malformed or incomplete."""


class DuplicatePolicyError(ComplianceKitError):
    """A policy with the same ID is already registered."""

    def __init__(self, policy_id: str) -> None:
        self.policy_id = policy_id
        super().__init__(f'Policy with ID "{policy_id}" already exists')


class PolicyNotFoundError(ComplianceKitError):
    """No policy is registered under the requested ID."""

    def __init__(self, policy_id: str) -> None:
        self.policy_id = policy_id
        super().__init__(f'Policy with ID "{policy_id}" not found')


__all__ = [
    "ComplianceKitError",
    "InvalidInputError",
    "DuplicatePolicyError",
    "PolicyNotFoundError",
]
