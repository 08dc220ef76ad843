"""
Fixer — Generates fix suggestions for violations and applies them.

Generation is LLM-backed; application is the deterministic heuristic in
govscan.engine.diff_applier.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import ValidationError

from govscan.engine.diff_applier import apply_fix_diff
from govscan.llm.gateway import LLMClient
from govscan.llm.prompts import build_fix_prompt
from govscan.llm.response import parse_json_response
from govscan.models.rule_models import Violation
from govscan.models.scan_models import Fix, FixResult
from govscan.store.base import Store

logger = logging.getLogger("govscan.engine.fixer")

FALLBACK_DESCRIPTION_CHARS = 200
FALLBACK_CONFIDENCE = 0.5


class Fixer:
    def __init__(self, llm: LLMClient, store: Optional[Store] = None) -> None:
        self.llm = llm
        self.store = store

    async def generate_fix(
        self,
        rule: str,
        file_path: str,
        severity: str,
        violation_description: str,
        file_content: str,
    ) -> FixResult:
        """
        Ask the LLM for a fix.

        Output that is not a JSON fix object degrades to a description-only
        fix. LLMError from the completion itself propagates.
        """
        prompt = build_fix_prompt(rule, file_path, severity, violation_description, file_content)
        text = await self.llm.generate_content(prompt)

        try:
            return FixResult.model_validate(parse_json_response(text))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Fix response for {file_path} was not a fix object: {e}")
            return FixResult(
                fix_description=text[:FALLBACK_DESCRIPTION_CHARS],
                confidence=FALLBACK_CONFIDENCE,
            )

    async def fix_violation(self, violation: Violation, file_content: str) -> Fix:
        """Generate a fix for a stored violation and persist it as PENDING."""
        if self.store is None:
            raise ValueError("Fixer has no store to persist fixes into")
        result = await self.generate_fix(
            f"{violation.rule_id}: {violation.title}",
            violation.file_path,
            violation.severity,
            violation.description,
            file_content,
        )
        fix = Fix(
            **result.model_dump(),
            violation_id=violation.id,
            scan_id=violation.scan_id,
        )
        return self.store.create_fix(fix)

    @staticmethod
    def apply(original: str, fix_text: str) -> tuple[str, bool]:
        """Apply fix text; returns the new content and whether it changed."""
        content = apply_fix_diff(original, fix_text)
        return content, content != original
