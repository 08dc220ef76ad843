"""
Semantic Evaluator — Stage-2 compliance evaluation through the LLM.

Stage 1 (RuleEngine) is deterministic; this stage asks the model to read
a bounded sample of source files against the policy rules and report
violations the textual patterns cannot express. Its output is merged into
stage 1 with (rule_id, file_path) deduplication.
"""

from __future__ import annotations

import json
import logging
from typing import Iterable

from pydantic import BaseModel, Field, ValidationError

from govscan.core.scorer import calculate_score
from govscan.llm.gateway import LLMClient
from govscan.llm.prompts import build_compliance_prompt
from govscan.llm.response import parse_json_response
from govscan.models.rule_models import Policy, ViolationCandidate

logger = logging.getLogger("govscan.core.evaluator")

MAX_FILES_PER_BATCH = 15
MAX_CHARS_PER_FILE = 4000
# Approximate count reported per policy with rules; not a parsed rule count.
RULES_PER_POLICY_ESTIMATE = 10


class EvaluationResult(BaseModel):
    violations: list[ViolationCandidate] = Field(default_factory=list)
    compliance_score: int = 100
    files_scanned: int = 0
    rules_evaluated: int = 0


def _rules_evaluated(policies: list[Policy]) -> int:
    return sum(RULES_PER_POLICY_ESTIMATE for p in policies if p.rules_json)


def _parse_violations(raw: object) -> list[ViolationCandidate]:
    violations: list[ViolationCandidate] = []
    if not isinstance(raw, list):
        return violations
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            violations.append(ViolationCandidate.model_validate(item))
        except ValidationError as e:
            logger.debug(f"Dropping malformed LLM violation: {e}")
    return violations


class SemanticEvaluator:
    """Evaluates file contents against policies with an LLM."""

    def __init__(
        self,
        llm: LLMClient,
        max_files_per_batch: int = MAX_FILES_PER_BATCH,
        max_chars_per_file: int = MAX_CHARS_PER_FILE,
    ) -> None:
        self.llm = llm
        self.max_files_per_batch = max_files_per_batch
        self.max_chars_per_file = max_chars_per_file

    async def evaluate(self, policies: list[Policy], files: dict[str, str]) -> EvaluationResult:
        """
        Run one evaluation batch.

        Raises LLMError when the completion itself fails; unparseable output
        is treated as a clean result.
        """
        files_scanned = min(len(files), self.max_files_per_batch)
        if not policies:
            return EvaluationResult(files_scanned=files_scanned)

        prompt = build_compliance_prompt(
            policies, files, self.max_files_per_batch, self.max_chars_per_file
        )
        text = await self.llm.generate_content(prompt)

        try:
            parsed = parse_json_response(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Could not parse compliance evaluation response: {e}")
            parsed = None

        if not isinstance(parsed, dict):
            return EvaluationResult(
                files_scanned=files_scanned, rules_evaluated=_rules_evaluated(policies)
            )

        violations = _parse_violations(parsed.get("violations"))
        score = parsed.get("compliance_score")
        if violations:
            score = calculate_score(violations)
        elif not isinstance(score, int):
            score = 100

        logger.info(
            f"Semantic evaluation: {len(violations)} violations "
            f"across {files_scanned} files (score={score})"
        )
        return EvaluationResult(
            violations=violations,
            compliance_score=max(0, min(100, score)),
            files_scanned=files_scanned,
            rules_evaluated=_rules_evaluated(policies),
        )


def merge_violations(
    stage1: Iterable[ViolationCandidate],
    stage2: Iterable[ViolationCandidate],
) -> list[ViolationCandidate]:
    """Stage-2 violations whose (rule_id, file_path) is not already in stage 1."""
    seen = {(v.rule_id, v.file_path) for v in stage1}
    merged: list[ViolationCandidate] = []
    for v in stage2:
        key = (v.rule_id, v.file_path)
        if key in seen:
            continue
        seen.add(key)
        merged.append(v)
    return merged
