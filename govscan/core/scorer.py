"""
govscan — Compliance score calculator.
"""

from __future__ import annotations

from typing import Iterable, Protocol

from govscan.models.rule_models import DEFAULT_SEVERITY_WEIGHT, SEVERITY_WEIGHTS


class Scorable(Protocol):
    rule_id: str
    severity: str


def severity_weight(severity: str) -> int:
    return SEVERITY_WEIGHTS.get(severity.strip().upper(), DEFAULT_SEVERITY_WEIGHT)


def calculate_score(violations: Iterable[Scorable]) -> int:
    """Compute a 0-100 compliance score.

    100 minus the severity weight of each distinct rule_id, taken from its
    first occurrence only; floored at 0.
    """
    seen_rules: set[str] = set()
    penalty = 0
    for v in violations:
        if v.rule_id in seen_rules:
            continue
        seen_rules.add(v.rule_id)
        penalty += severity_weight(v.severity)
    return max(0, 100 - penalty)
