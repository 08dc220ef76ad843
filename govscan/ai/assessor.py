"""
Governance Assessor — LLM review of detected AI/ML components.

Optional enrichment of stored detections: status, risk_level and
eu_ai_act_risk are overwritten from the model's assessment, matched by
case-insensitive component name. Any failure leaves detections unchanged.
"""

from __future__ import annotations

import json
import logging

from govscan.errors import LLMError
from govscan.llm.gateway import LLMClient
from govscan.llm.prompts import build_ai_governance_prompt
from govscan.llm.response import parse_json_response
from govscan.models.detection_models import AIDetection, Detection

logger = logging.getLogger("govscan.ai.assessor")

_ASSESSED_FIELDS = ("status", "risk_level", "eu_ai_act_risk")


def summarize_detections(detections: list[Detection]) -> str:
    return "\n".join(f"- {d.name} ({d.type}): {d.file_path}" for d in detections)


async def assess_detections(
    llm: LLMClient, detections: list[AIDetection]
) -> list[AIDetection]:
    """Return the detections that were changed by the assessment."""
    if not detections:
        return []

    try:
        text = await llm.generate_content(build_ai_governance_prompt(summarize_detections(detections)))
        assessments = parse_json_response(text)
    except (LLMError, json.JSONDecodeError) as e:
        logger.warning(f"AI governance assessment skipped: {e}")
        return []

    if not isinstance(assessments, list):
        logger.warning("AI governance assessment did not return a JSON array")
        return []

    changed: list[AIDetection] = []
    for detection in detections:
        for assessment in assessments:
            if not isinstance(assessment, dict):
                continue
            if str(assessment.get("name", "")).lower() != detection.name.lower():
                continue
            updates = {
                field: assessment[field]
                for field in _ASSESSED_FIELDS
                if isinstance(assessment.get(field), str) and assessment[field]
            }
            if updates:
                changed.append(detection.model_copy(update=updates))
            break
    return changed
