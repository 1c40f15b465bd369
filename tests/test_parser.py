"""Tests for policy document normalization."""

import json
import re
from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

from compliancekit.exceptions import InvalidInputError
from compliancekit.governance import (
    ConditionOperator,
    PolicyParser,
    Severity,
    policy_to_dict,
)


@pytest.fixture
def parser() -> PolicyParser:
    return PolicyParser()


def _minimal(**overrides) -> dict:
    data = {"id": "policy-1", "name": "Test Policy", "rules": []}
    data.update(overrides)
    return data


def _with_rule(**rule) -> dict:
    base = {"id": "rule-1", "name": "Rule One"}
    base.update(rule)
    return _minimal(rules=[base])


class TestParsePolicy:
    """Tests for PolicyParser.parse_policy."""

    def test_full_policy(self, parser):
        policy = parser.parse_policy({
            "id": "policy-1",
            "name": "Security Policy",
            "version": "2.0.0",
            "description": "Security compliance rules",
            "rules": [
                {
                    "id": "rule-1",
                    "name": "Password Length",
                    "description": "Password must be at least 8 characters",
                    "severity": "high",
                    "category": "authentication",
                    "enabled": True,
                    "conditions": [
                        {"field": "password.length", "operator": "greaterThan", "value": 7},
                    ],
                },
            ],
            "createdAt": "2024-01-01T00:00:00Z",
            "updatedAt": "2024-01-15T00:00:00Z",
        })

        assert policy.id == "policy-1"
        assert policy.version == "2.0.0"
        assert policy.description == "Security compliance rules"
        assert policy.rules[0].severity == Severity.HIGH
        assert policy.rules[0].category == "authentication"
        assert policy.rules[0].conditions[0].operator == ConditionOperator.GREATER_THAN
        assert policy.rules[0].conditions[0].value == 7
        assert policy.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert policy.updated_at == datetime(2024, 1, 15, tzinfo=timezone.utc)

    def test_defaults(self, parser):
        policy = parser.parse_policy(_minimal())

        assert policy.version == "1.0.0"
        assert policy.description == ""
        assert policy.rules == []
        assert policy.created_at.tzinfo is not None
        assert policy.updated_at.tzinfo is not None

    @pytest.mark.parametrize(
        "raw",
        [
            {},
            {"id": "test"},
            {"name": "test"},
            {"id": "test", "name": "test"},
            {"id": 1, "name": "test", "rules": []},
            {"id": "test", "name": "test", "rules": "nope"},
            None,
            "string",
            123,
            [],
        ],
    )
    def test_missing_required_fields(self, parser, raw):
        with pytest.raises(InvalidInputError, match="Invalid policy format"):
            parser.parse_policy(raw)

    def test_snake_case_timestamps(self, parser):
        policy = parser.parse_policy(_minimal(created_at="2023-06-01T12:00:00+00:00"))
        assert policy.created_at == datetime(2023, 6, 1, 12, tzinfo=timezone.utc)

    def test_epoch_millisecond_timestamps(self, parser):
        policy = parser.parse_policy(_minimal(createdAt=1704067200000))
        assert policy.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_unparseable_timestamp_falls_back_to_now(self, parser):
        before = datetime.now(timezone.utc)
        policy = parser.parse_policy(_minimal(createdAt="not-a-date"))
        assert policy.created_at >= before


class TestParseRules:
    """Rule defaults and validation."""

    def test_default_severity(self, parser):
        assert parser.parse_policy(_with_rule()).rules[0].severity == Severity.MEDIUM

    def test_invalid_severity(self, parser):
        assert parser.parse_policy(_with_rule(severity="urgent")).rules[0].severity == Severity.MEDIUM

    def test_enabled_defaults_true(self, parser):
        assert parser.parse_policy(_with_rule()).rules[0].enabled is True

    def test_explicit_disabled(self, parser):
        assert parser.parse_policy(_with_rule(enabled=False)).rules[0].enabled is False

    def test_only_false_disables(self, parser):
        assert parser.parse_policy(_with_rule(enabled=0)).rules[0].enabled is True

    def test_default_category_and_description(self, parser):
        rule = parser.parse_policy(_with_rule()).rules[0]
        assert rule.category == "general"
        assert rule.description == ""
        assert rule.conditions == []

    def test_rule_not_an_object(self, parser):
        with pytest.raises(InvalidInputError, match="Invalid rule at index 0"):
            parser.parse_policy(_minimal(rules=["nope"]))

    def test_rule_missing_name(self, parser):
        with pytest.raises(InvalidInputError, match="Invalid rule at index 1: missing id or name"):
            parser.parse_policy(_minimal(rules=[{"id": "a", "name": "A"}, {"id": "b"}]))


class TestParseConditions:
    """Condition defaults and operand handling."""

    def test_default_operator(self, parser):
        policy = parser.parse_policy(_with_rule(conditions=[{"field": "status", "value": "active"}]))
        assert policy.rules[0].conditions[0].operator == ConditionOperator.EQUALS

    def test_invalid_operator(self, parser):
        policy = parser.parse_policy(
            _with_rule(conditions=[{"field": "status", "operator": "like", "value": "a"}])
        )
        assert policy.rules[0].conditions[0].operator == ConditionOperator.EQUALS

    def test_non_object_conditions_skipped(self, parser):
        policy = parser.parse_policy(
            _with_rule(conditions=["bad", None, {"field": "a", "operator": "equals", "value": 1}])
        )
        assert len(policy.rules[0].conditions) == 1

    def test_missing_field_is_empty_string(self, parser):
        policy = parser.parse_policy(_with_rule(conditions=[{"value": 1}]))
        assert policy.rules[0].conditions[0].field == ""

    def test_matches_compiles_string_pattern(self, parser):
        policy = parser.parse_policy(
            _with_rule(conditions=[{"field": "email", "operator": "matches", "value": "@corp\\.com$"}])
        )
        value = policy.rules[0].conditions[0].value
        assert isinstance(value, re.Pattern)
        assert value.pattern == "@corp\\.com$"

    def test_matches_keeps_compiled_pattern(self, parser):
        pattern = re.compile("^x", re.IGNORECASE)
        policy = parser.parse_policy(
            _with_rule(conditions=[{"field": "code", "operator": "matches", "value": pattern}])
        )
        assert policy.rules[0].conditions[0].value is pattern

    def test_invalid_pattern(self, parser):
        with pytest.raises(InvalidInputError, match="Invalid pattern"):
            parser.parse_policy(
                _with_rule(conditions=[{"field": "x", "operator": "matches", "value": "("}])
            )

    def test_string_not_compiled_for_other_operators(self, parser):
        policy = parser.parse_policy(
            _with_rule(conditions=[{"field": "x", "operator": "contains", "value": "("}])
        )
        assert policy.rules[0].conditions[0].value == "("


class TestParsePolicies:
    """Tests for PolicyParser.parse_policies."""

    def test_parses_list(self, parser):
        policies = parser.parse_policies([_minimal(id="a"), _minimal(id="b")])
        assert [p.id for p in policies] == ["a", "b"]

    def test_not_a_list(self, parser):
        with pytest.raises(InvalidInputError, match="expected an array of policies"):
            parser.parse_policies({"id": "a"})

    def test_error_carries_index(self, parser):
        with pytest.raises(InvalidInputError, match="Failed to parse policy at index 1"):
            parser.parse_policies([_minimal(id="a"), {"id": "b"}])


class TestDocuments:
    """JSON and YAML documents and files."""

    def test_parse_json_single(self, parser):
        policies = parser.parse_json(json.dumps(_minimal()))
        assert len(policies) == 1

    def test_parse_json_invalid(self, parser):
        with pytest.raises(InvalidInputError, match="Invalid JSON"):
            parser.parse_json("{nope")

    def test_parse_yaml_list(self, parser):
        content = yaml.dump([_minimal(id="a"), _minimal(id="b")])
        assert [p.id for p in parser.parse_yaml(content)] == ["a", "b"]

    def test_parse_yaml_invalid(self, parser):
        with pytest.raises(InvalidInputError, match="Invalid YAML"):
            parser.parse_yaml("key: [unclosed")

    def test_load_file_by_suffix(self, parser, tmp_path: Path):
        (tmp_path / "a.json").write_text(json.dumps(_minimal(id="a")))
        (tmp_path / "b.yml").write_text(yaml.dump(_minimal(id="b")))

        assert parser.load_file(tmp_path / "a.json")[0].id == "a"
        assert parser.load_file(tmp_path / "b.yml")[0].id == "b"

    def test_load_file_unsupported(self, parser, tmp_path: Path):
        path = tmp_path / "policy.txt"
        path.write_text("{}")
        with pytest.raises(InvalidInputError, match="Unsupported policy file type"):
            parser.load_file(path)

    def test_load_file_undecodable(self, parser, tmp_path: Path):
        path = tmp_path / "policy.json"
        path.write_bytes(b"\xff\xfe\x00bad")
        with pytest.raises(InvalidInputError, match="Cannot read policy file"):
            parser.load_file(path)

    def test_load_policies_directory(self, parser, tmp_path: Path):
        (tmp_path / "b.yaml").write_text(yaml.dump(_minimal(id="b")))
        (tmp_path / "a.json").write_text(json.dumps([_minimal(id="a1"), _minimal(id="a2")]))
        (tmp_path / "README.md").write_text("not a policy")

        policies = parser.load_policies(tmp_path)
        assert [p.id for p in policies] == ["a1", "a2", "b"]

    def test_policy_to_dict_round_trip(self, parser):
        original = parser.parse_policy(_with_rule(
            severity="critical",
            conditions=[
                {"field": "email", "operator": "matches", "value": "^a"},
                {"field": "age", "operator": "greaterThan", "value": 18},
            ],
        ))
        data = policy_to_dict(original)

        assert data["rules"][0]["conditions"][0]["value"] == "^a"
        assert "createdAt" in data
        json.dumps(data)

        restored = parser.parse_policy(data)
        assert restored.rules[0].severity == Severity.CRITICAL
        assert restored.rules[0].conditions[0].value.pattern == "^a"
        assert restored.created_at == original.created_at
