"""
Policy Parser

Normalizes untyped policy documents (dicts, JSON or YAML) into typed
``CompliancePolicy`` models, applying defaults for optional fields.
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

from compliancekit.exceptions import InvalidInputError

from .models import (
    ComplianceRule,
    CompliancePolicy,
    ConditionOperator,
    RuleCondition,
    Severity,
    utc_now,
)

logger = logging.getLogger(__name__)

POLICY_FILE_SUFFIXES = (".json", ".yaml", ".yml")

_SEVERITIES = {s.value for s in Severity}
_OPERATORS = {o.value for o in ConditionOperator}


def _lookup(data: dict, camel: str, snake: str) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake)


class PolicyParser:
    """
    Parses policy definitions from raw documents.

    Required: a string ``id``, a string ``name`` and a ``rules`` list.
    Everything else is defaulted:

    - ``version`` -> ``"1.0.0"``, ``description`` -> ``""``
    - rule ``severity`` -> ``medium`` when missing or unknown
    - rule ``enabled`` -> ``True`` unless explicitly ``False``
    - rule ``category`` -> ``"general"``
    - condition ``operator`` -> ``equals`` when missing or unknown
    - timestamps -> now
    """

    def parse_policy(self, raw: Any) -> CompliancePolicy:
        """Parse a policy from a dict."""
        if not self._is_valid_policy_input(raw):
            raise InvalidInputError("Invalid policy format: missing required fields")

        now = utc_now()
        description = raw.get("description")
        return CompliancePolicy(
            id=raw["id"],
            name=raw["name"],
            version=str(raw["version"]) if raw.get("version") is not None else "1.0.0",
            description=str(description) if description is not None else "",
            rules=self._parse_rules(raw["rules"]),
            created_at=self._parse_date(_lookup(raw, "createdAt", "created_at")) or now,
            updated_at=self._parse_date(_lookup(raw, "updatedAt", "updated_at")) or now,
        )

    def parse_policies(self, raw: Any) -> list[CompliancePolicy]:
        """Parse a list of policies; the first bad element aborts with its index."""
        if not isinstance(raw, list):
            raise InvalidInputError("Invalid input: expected an array of policies")

        policies = []
        for index, item in enumerate(raw):
            try:
                policies.append(self.parse_policy(item))
            except InvalidInputError as exc:
                raise InvalidInputError(
                    f"Failed to parse policy at index {index}: {exc}"
                ) from exc
        return policies

    def parse_json(self, content: str) -> list[CompliancePolicy]:
        """Parse a JSON document holding one policy or a list of policies."""
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise InvalidInputError(f"Invalid JSON policy document: {exc}") from exc
        return self._parse_document(data)

    def parse_yaml(self, content: str) -> list[CompliancePolicy]:
        """Parse a YAML document holding one policy or a list of policies."""
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise InvalidInputError(f"Invalid YAML policy document: {exc}") from exc
        return self._parse_document(data)

    def load_file(self, path: str | Path) -> list[CompliancePolicy]:
        """Load policies from a ``.json``, ``.yaml`` or ``.yml`` file."""
        path = Path(path)
        if path.suffix.lower() not in POLICY_FILE_SUFFIXES:
            raise InvalidInputError(f"Unsupported policy file type: {path.name}")
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise InvalidInputError(f"Cannot read policy file {path}: {exc}") from exc

        if path.suffix.lower() == ".json":
            return self.parse_json(content)
        return self.parse_yaml(content)

    def load_policies(self, directory: str | Path) -> list[CompliancePolicy]:
        """Load every policy file in a directory, in file-name order."""
        directory = Path(directory)
        policies: list[CompliancePolicy] = []
        for path in sorted(directory.iterdir()):
            if not path.is_file():
                continue
            if path.suffix.lower() not in POLICY_FILE_SUFFIXES:
                logger.warning("Skipping non-policy file %s", path)
                continue
            policies.extend(self.load_file(path))
        return policies

    def _parse_document(self, data: Any) -> list[CompliancePolicy]:
        if isinstance(data, list):
            return self.parse_policies(data)
        return [self.parse_policy(data)]

    @staticmethod
    def _is_valid_policy_input(raw: Any) -> bool:
        return (
            isinstance(raw, dict)
            and isinstance(raw.get("id"), str)
            and isinstance(raw.get("name"), str)
            and isinstance(raw.get("rules"), list)
        )

    def _parse_rules(self, raw: list) -> list[ComplianceRule]:
        return [self._parse_rule(item, index) for index, item in enumerate(raw)]

    def _parse_rule(self, raw: Any, index: int) -> ComplianceRule:
        if not isinstance(raw, dict):
            raise InvalidInputError(f"Invalid rule at index {index}: expected an object")
        if not isinstance(raw.get("id"), str) or not isinstance(raw.get("name"), str):
            raise InvalidInputError(f"Invalid rule at index {index}: missing id or name")

        description = raw.get("description")
        category = raw.get("category")
        return ComplianceRule(
            id=raw["id"],
            name=raw["name"],
            description=str(description) if description is not None else "",
            severity=self._parse_severity(raw.get("severity")),
            category=str(category) if category is not None else "general",
            enabled=raw.get("enabled") is not False,
            conditions=self._parse_conditions(raw.get("conditions")),
        )

    @staticmethod
    def _parse_severity(raw: Any) -> Severity:
        if isinstance(raw, Severity):
            return raw
        if isinstance(raw, str) and raw in _SEVERITIES:
            return Severity(raw)
        return Severity.MEDIUM

    def _parse_conditions(self, raw: Any) -> list[RuleCondition]:
        if not isinstance(raw, list):
            return []
        return [self._parse_condition(item) for item in raw if isinstance(item, dict)]

    @staticmethod
    def _parse_condition(raw: dict) -> RuleCondition:
        operator_raw = raw.get("operator")
        if isinstance(operator_raw, ConditionOperator):
            operator = operator_raw
        elif isinstance(operator_raw, str) and operator_raw in _OPERATORS:
            operator = ConditionOperator(operator_raw)
        else:
            operator = ConditionOperator.EQUALS

        value = raw.get("value")
        if operator == ConditionOperator.MATCHES and isinstance(value, str):
            try:
                value = re.compile(value)
            except re.error as exc:
                raise InvalidInputError(f"Invalid pattern {value!r}: {exc}") from exc

        field = raw.get("field")
        return RuleCondition(
            field=str(field) if field is not None else "",
            operator=operator,
            value=value,
        )

    @staticmethod
    def _parse_date(raw: Any) -> Optional[datetime]:
        """Accept datetimes, ISO-8601 strings and epoch milliseconds."""
        if isinstance(raw, datetime):
            return raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc)
        if isinstance(raw, bool):
            return None
        if isinstance(raw, (int, float)):
            try:
                return datetime.fromtimestamp(raw / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                return None
        if isinstance(raw, str):
            try:
                parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
            except ValueError:
                return None
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
        return None


def policy_to_dict(policy: CompliancePolicy) -> dict[str, Any]:
    """Render a policy as a JSON-compatible document ``parse_policy`` accepts."""
    return policy.to_dict()
