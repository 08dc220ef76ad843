"""
Tests for the pattern rule engine and rule extraction.
"""

from govscan.core.policy_rules import extract_rules
from govscan.core.rule_engine import RuleEngine
from govscan.models.rule_models import PolicyRule
from tests.helpers import make_policy


def _rule(check_type, pattern, rule_id="R1", **kwargs):
    return PolicyRule(rule_id=rule_id, check_type=check_type, pattern=pattern, **kwargs)


def test_missing_file_rule_fires_when_absent():
    rule = _rule("FILE_PATTERN", "missing:config.json")
    result = RuleEngine().run([rule], {}, ["src/app.py", "README.md"])
    assert len(result.violations) == 1
    assert result.violations[0].file_path == "config.json"


def test_missing_file_rule_silent_when_present():
    rule = _rule("FILE_PATTERN", "missing:config.json")
    result = RuleEngine().run([rule], {}, ["src/app.py", "deploy/config.json"])
    assert result.violations == []


def test_file_pattern_one_violation_per_match():
    rule = _rule("FILE_PATTERN", "*.pem")
    paths = ["keys/server.pem", "client.pem", "app.py"]
    result = RuleEngine().run([rule], {}, paths)
    assert sorted(v.file_path for v in result.violations) == ["client.pem", "keys/server.pem"]


def test_invalid_glob_falls_back_to_substring(monkeypatch):
    import govscan.core.rule_engine as rule_engine

    monkeypatch.setattr(rule_engine, "compile_glob", lambda pattern: None)
    rule = _rule("FILE_PATTERN", "secret")
    result = RuleEngine().run([rule], {}, ["config/secrets.yaml", "app.py"])
    assert [v.file_path for v in result.violations] == ["config/secrets.yaml"]


def test_code_pattern_first_match_per_file():
    rule = _rule(
        "CODE_PATTERN", r"password\s*=",
        recommendations=["Use a secrets manager", "Rotate credentials"],
        severity="high",
    )
    files = {
        "a.py": "x = 1\nPASSWORD = 'a'\npassword = 'b'\n",
        "b.py": "nothing here\n",
    }
    result = RuleEngine().run([rule], files, list(files))
    assert len(result.violations) == 1
    violation = result.violations[0]
    assert violation.file_path == "a.py"
    assert violation.line_start == 2
    assert violation.code_snippet.startswith("PASSWORD = 'a'")
    assert violation.recommendation == "Use a secrets manager"
    assert violation.severity == "HIGH"


def test_snippet_truncated_to_200_chars():
    rule = _rule("CONFIG_CHECK", r"debug")
    files = {"settings.ini": "debug" + "x" * 500}
    result = RuleEngine().run([rule], files, list(files))
    assert len(result.violations[0].code_snippet) == 200


def test_missing_prefix_skipped_for_code_rules():
    rule = _rule("CODE_PATTERN", "missing:logging")
    result = RuleEngine().run([rule], {"a.py": "import os"}, ["a.py"])
    assert result.violations == []


def test_manual_and_empty_rules_skipped():
    rules = [_rule("MANUAL", "anything", "M1"), _rule("CODE_PATTERN", "  ", "E1")]
    result = RuleEngine().run(rules, {"a.py": "anything"}, ["a.py"])
    assert result.violations == []
    assert result.rules_skipped == ["M1", "E1"]


def test_malformed_regex_skipped():
    rules = [_rule("CODE_PATTERN", "([unclosed", "BAD"), _rule("CODE_PATTERN", "eval\\(", "OK")]
    result = RuleEngine().run(rules, {"a.py": "eval(x)"}, ["a.py"])
    assert [v.rule_id for v in result.violations] == ["OK"]


def test_extract_rules_accepts_camel_case_and_drops_incomplete():
    policy = make_policy([
        {"ruleId": "C-1", "checkType": "code_pattern", "pattern": "x", "clauseReference": "Art. 5"},
        {"rule_id": "S-1", "check_type": "FILE_PATTERN", "severity": "critical"},
        {"rule_id": "NO-TYPE"},
        {"check_type": "MANUAL"},
    ], policy_id=7)
    rules = extract_rules([policy])
    assert [r.rule_id for r in rules] == ["C-1", "S-1"]
    assert rules[0].check_type == "CODE_PATTERN"
    assert rules[0].severity == "MEDIUM"
    assert rules[0].clause_reference == "Art. 5"
    assert rules[0].policy_id == 7
    assert rules[1].severity == "CRITICAL"


def test_extract_rules_skips_malformed_json():
    policy = make_policy([])
    policy.rules_json = "{not json"
    assert extract_rules([policy]) == []


def test_extract_rules_accepts_single_string_recommendation():
    policy = make_policy([
        {"rule_id": "T-1", "check_type": "CODE_PATTERN", "recommendations": "use TLS"},
        {"rule_id": "T-2", "check_type": "CODE_PATTERN", "recommendations": {"text": "x"}},
        {"rule_id": "T-3", "check_type": "CODE_PATTERN", "recommendations": ["pin versions", 3]},
    ])
    rules = extract_rules([policy])
    assert [r.recommendations for r in rules] == [["use TLS"], [], ["pin versions"]]
