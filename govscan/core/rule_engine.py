"""
Rule Engine — Evaluates policy rules by textual pattern matching.

FILE_PATTERN rules glob against discovered paths ("missing:<glob>" checks
for absence). CODE_PATTERN and CONFIG_CHECK rules run a case-insensitive,
multiline regex over file contents and report the first match per file.
MANUAL rules have no automated check.

No LLM involvement — pure deterministic analysis. Compiled regexes and globs
are memoized on the engine instance, keyed by pattern string.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Iterable, Optional

from govscan.models.rule_models import CheckType, PolicyRule, RuleResult, ViolationCandidate
from govscan.scanner.globs import compile_glob, glob_matches

logger = logging.getLogger("govscan.core.rule_engine")

MISSING_PREFIX = "missing:"
SNIPPET_LENGTH = 200


def make_violation(
    rule: PolicyRule,
    file_path: str,
    snippet: str = "",
    line: int = 0,
) -> ViolationCandidate:
    return ViolationCandidate(
        rule_id=rule.rule_id,
        policy_id=rule.policy_id,
        policy_name=rule.policy_name,
        severity=rule.severity,
        title=rule.title,
        description=rule.description,
        file_path=file_path,
        line_start=line,
        line_end=line,
        code_snippet=snippet[:SNIPPET_LENGTH],
        clause_reference=rule.clause_reference,
        recommendation=rule.recommendations[0] if rule.recommendations else "",
    )


class RuleEngine:
    """
    Pattern rule engine.

    Create one engine per scan:
        engine = RuleEngine()
        result = engine.run(rules, contents, paths)
    """

    def __init__(self) -> None:
        self._regex_cache: dict[str, Optional[re.Pattern[str]]] = {}
        self._glob_cache: dict[str, Optional[re.Pattern[str]]] = {}

    def run(
        self,
        rules: Iterable[PolicyRule],
        files: dict[str, str],
        all_paths: list[str],
    ) -> RuleResult:
        """
        Evaluate rules.

        Args:
            rules: Rules flattened from the active policies.
            files: Mapping of relative path -> content, in discovery order.
            all_paths: Every discovered path (including unreadable ones).
        """
        start = time.monotonic()
        violations: list[ViolationCandidate] = []
        executed: list[str] = []
        skipped: list[str] = []

        for rule in rules:
            pattern = rule.pattern.strip()
            if not pattern:
                skipped.append(rule.rule_id)
                continue

            if rule.check_type == CheckType.FILE_PATTERN.value:
                violations.extend(self.check_file_pattern(rule, pattern, all_paths))
            elif rule.check_type in (CheckType.CODE_PATTERN.value, CheckType.CONFIG_CHECK.value):
                violations.extend(self.check_code_pattern(rule, pattern, files))
            else:
                skipped.append(rule.rule_id)
                continue
            executed.append(rule.rule_id)

        elapsed = (time.monotonic() - start) * 1000
        return RuleResult(
            violations=violations,
            rules_executed=executed,
            rules_skipped=skipped,
            total_files_scanned=len(files),
            scan_duration_ms=round(elapsed, 2),
        )

    def check_file_pattern(
        self, rule: PolicyRule, pattern: str, paths: list[str]
    ) -> list[ViolationCandidate]:
        if pattern.lower().startswith(MISSING_PREFIX):
            glob_pattern = pattern[len(MISSING_PREFIX):].strip()
            if any(self._path_matches(p, glob_pattern) for p in paths):
                return []
            return [make_violation(rule, glob_pattern)]

        return [make_violation(rule, p) for p in paths if self._path_matches(p, pattern)]

    def check_code_pattern(
        self, rule: PolicyRule, pattern: str, files: dict[str, str]
    ) -> list[ViolationCandidate]:
        # Absence checks have no defined semantics for content rules.
        if pattern.lower().startswith(MISSING_PREFIX):
            return []

        regex = self._regex(pattern)
        if regex is None:
            return []

        violations: list[ViolationCandidate] = []
        for path, content in files.items():
            match = regex.search(content)
            if match is None:
                continue
            pos = match.start()
            line = content.count("\n", 0, pos) + 1
            violations.append(
                make_violation(rule, path, content[pos:pos + SNIPPET_LENGTH], line)
            )
        return violations

    def _regex(self, pattern: str) -> Optional[re.Pattern[str]]:
        if pattern not in self._regex_cache:
            try:
                self._regex_cache[pattern] = re.compile(pattern, re.IGNORECASE | re.MULTILINE)
            except re.error as e:
                logger.warning(f"Skipping invalid rule regex {pattern!r}: {e}")
                self._regex_cache[pattern] = None
        return self._regex_cache[pattern]

    def _path_matches(self, path: str, pattern: str) -> bool:
        if pattern not in self._glob_cache:
            self._glob_cache[pattern] = compile_glob(pattern)
        glob = self._glob_cache[pattern]
        if glob is None:
            return pattern in path
        return glob_matches(glob, path)
