"""
Tests for the built-in policy presets.
"""

import re

import pytest

from govscan.core.policy_rules import extract_rules
from govscan.core.rule_engine import RuleEngine
from govscan.errors import UnknownPresetError
from govscan.policy.presets import install_preset, list_presets


def test_presets_sorted_by_slug_and_unique():
    slugs = [p.slug for p in list_presets()]
    assert slugs == sorted(slugs)
    assert len(set(slugs)) == len(slugs)


def test_preset_rule_patterns_compile():
    for preset in list_presets():
        assert preset.rules, preset.slug
        for rule in preset.rules:
            if rule.check_type in ("CODE_PATTERN", "CONFIG_CHECK"):
                re.compile(rule.pattern, re.IGNORECASE | re.MULTILINE)


def test_install_preset_stores_policy(store):
    policy = install_preset(store, "owasp-top-10")

    assert policy.id > 0
    assert policy.source_url == "builtin://owasp-top-10"
    assert policy.category == "SECURITY"
    assert store.get_policy(policy.id).name == policy.name

    rules = extract_rules([policy])
    assert policy.rule_count == len(rules)
    assert all(r.policy_id == policy.id for r in rules)
    assert rules[0].recommendations


def test_installed_preset_finds_violations(store):
    policy = install_preset(store, "owasp-top-10")
    files = {
        "app.py": "import hashlib\n\ndigest = hashlib.md5(data)\n",
        "settings.py": "DEBUG = True\n",
        "clean.py": "print('ok')\n",
    }

    result = RuleEngine().run(extract_rules([policy]), files, list(files))

    found = {(v.rule_id, v.file_path, v.line_start) for v in result.violations}
    assert found == {("OWASP-A02-1", "app.py", 3), ("OWASP-A05-1", "settings.py", 1)}


def test_manual_rule_is_skipped(store):
    policy = install_preset(store, "eu-ai-act")
    result = RuleEngine().run(extract_rules([policy]), {}, ["MODEL_CARD.md"])
    assert "AIACT-14-1" in result.rules_skipped
    assert result.violations == []


def test_unknown_preset_raises(store):
    with pytest.raises(UnknownPresetError):
        install_preset(store, "does-not-exist")
    assert store.list_policies() == []
