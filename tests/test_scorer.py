"""
Tests for the compliance scorer.
"""

from govscan.core.scorer import calculate_score, severity_weight
from govscan.models.rule_models import ViolationCandidate


def _v(rule_id, severity, file_path="a.py"):
    return ViolationCandidate(rule_id=rule_id, severity=severity, file_path=file_path)


def test_empty_violations_score_100():
    assert calculate_score([]) == 100


def test_same_rule_penalized_once():
    violations = [_v("R1", "CRITICAL", "a.py"), _v("R1", "HIGH", "b.py")]
    assert calculate_score(violations) == 75


def test_distinct_rules_each_penalized():
    assert calculate_score([_v("A", "HIGH"), _v("B", "MEDIUM")]) == 77


def test_five_files_same_rule_penalized_once():
    violations = [_v("R", "HIGH", f"f{i}.py") for i in range(5)]
    assert calculate_score(violations) == 85


def test_score_floored_at_zero():
    violations = [_v(f"R{i}", "CRITICAL") for i in range(10)]
    assert calculate_score(violations) == 0


def test_unknown_severity_defaults_to_medium_weight():
    assert severity_weight("BOGUS") == 8
    assert severity_weight("info") == 1
    assert calculate_score([_v("X", "WHATEVER")]) == 92


def test_score_monotonic_as_rules_added():
    severities = ["LOW", "INFO", "HIGH", "MEDIUM", "CRITICAL", "HIGH", "LOW"]
    violations = []
    previous = calculate_score(violations)
    for i, severity in enumerate(severities):
        violations.append(_v(f"R{i}", severity))
        score = calculate_score(violations)
        assert 0 <= score <= 100
        assert score <= previous
        previous = score
