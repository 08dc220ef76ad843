"""
Flattens stored Policy documents into checkable PolicyRule objects.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable

from govscan.models.rule_models import Policy, PolicyRule, Severity

logger = logging.getLogger("govscan.core.policy_rules")


def _str_val(rule: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = rule.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def _recommendations(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [r for r in value if isinstance(r, str)]
    return []


def extract_rules(policies: Iterable[Policy]) -> list[PolicyRule]:
    """
    Parse each policy's rules_json. Accepts snake_case or camelCase keys;
    rules without an id or check type are dropped.
    """
    rules: list[PolicyRule] = []
    for policy in policies:
        try:
            parsed = json.loads(policy.rules_json or "{}")
        except json.JSONDecodeError as e:
            logger.warning(f"Policy {policy.id} has malformed rules_json: {e}")
            continue

        raw_rules = parsed.get("rules") if isinstance(parsed, dict) else None
        for raw in raw_rules or []:
            if not isinstance(raw, dict):
                continue
            rule_id = _str_val(raw, "rule_id", "ruleId")
            check_type = _str_val(raw, "check_type", "checkType")
            if not rule_id or not check_type:
                continue

            recommendations = _recommendations(raw.get("recommendations"))
            rules.append(PolicyRule(
                rule_id=rule_id,
                policy_id=policy.id,
                policy_name=policy.name,
                title=_str_val(raw, "title"),
                description=_str_val(raw, "description"),
                severity=_str_val(raw, "severity") or Severity.MEDIUM.value,
                category=_str_val(raw, "category"),
                check_type=check_type,
                pattern=_str_val(raw, "pattern"),
                clause_reference=_str_val(raw, "clause_reference", "clauseReference"),
                recommendations=recommendations,
            ))
    return rules
