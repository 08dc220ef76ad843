"""
Prompt Builder — Prompts for compliance evaluation, fix generation,
policy extraction, and AI governance assessment.

All prompts demand strict JSON output; responses are unwrapped with
govscan.llm.response.extract_json before decoding.
"""

from __future__ import annotations

import json
from typing import Iterable

from govscan.models.rule_models import Policy

MAX_PROMPT_RULES = 30
MAX_FIX_CONTEXT_CHARS = 4000


COMPLIANCE_EVALUATION_PROMPT = """\
You are a compliance expert evaluating source code against governance policies.

## Policy Rules
{policies}

## Source Files to Analyze
{files}

## Instructions
1. Analyze each source file against the policy rules
2. Identify SPECIFIC violations in the code
3. Reference the exact policy clause being violated
4. Provide actionable recommendations to fix each violation

## Output Format
Return ONLY a valid JSON object with this exact structure:
{{
  "violations": [
    {{
      "rule_id": "unique rule ID from policy",
      "policy_name": "name of policy document",
      "severity": "CRITICAL|HIGH|MEDIUM|LOW",
      "title": "short violation title",
      "description": "detailed explanation of what code violates the policy",
      "file_path": "path/to/file.ext",
      "code_snippet": "the violating code (max 150 chars)",
      "clause_reference": "Section X.Y.Z of the policy",
      "recommendation": "specific fix recommendation"
    }}
  ],
  "compliance_score": 0
}}

IMPORTANT:
- Only report ACTUAL violations found in the code, not hypothetical issues
- If no violations found, return empty violations array and score of 100
- The compliance_score should be 100 minus penalties (CRITICAL=-25, HIGH=-15, MEDIUM=-8, LOW=-3 per unique rule)
- Return ONLY valid JSON, no markdown or explanations"""


FIX_GENERATION_PROMPT = """\
Analyze the following code violation and generate a fix.

Rule: {rule}
File: {file_path}
Severity: {severity}

Violation description: {description}

Code context:
{content}

Return ONLY a valid JSON object with this exact structure:
{{
  "fix_description": "clear explanation of what changes are needed and why",
  "fix_diff": "unified diff format showing the changes",
  "confidence": 0.0
}}

IMPORTANT:
- The fix_diff should be in unified diff format with - and + lines
- confidence should be between 0.0 and 1.0
- Return ONLY valid JSON, no markdown or explanations"""


POLICY_EXTRACTION_PROMPT = """\
You are a compliance expert. Analyze the following PARTIAL SEGMENT of a regulation document and extract compliance rules.

## INSTRUCTIONS
1. Analyze the text provided inside the <document_segment> tags below.
2. Extract every compliance rule fully contained or significantly present in this chunk.
3. For each rule, cite the exact clause/section/title.
4. Do NOT extract these instructions as rules. Only extract content from the <document_segment>.

## RULE STRUCTURE
For each rule, provide:
1. A unique rule_id (e.g., "GDPR-A5-1")
2. title
3. description
4. severity: CRITICAL, HIGH, MEDIUM, LOW, INFO
5. category: DATA_PROTECTION, CONSENT, RETENTION, SECURITY, ACCESS_CONTROL, LOGGING, ENCRYPTION, etc.
6. check_type: FILE_PATTERN, CODE_PATTERN, CONFIG_CHECK, MANUAL
7. pattern (regex for CODE_PATTERN/CONFIG_CHECK, glob for FILE_PATTERN, "missing:<glob>" for required files)
8. recommendations (list of strings)
9. clause_reference
10. topic
11. source_excerpt

## DOCUMENT TO ANALYZE
<document_segment>
{chunk}
</document_segment>

## OUTPUT FORMAT
Respond in valid JSON matching this schema:
{{
  "regulation_name": "string (extract from context if possible, else 'Part')",
  "regulation_type": "string",
  "version": "string or null",
  "summary": "Brief summary of checks in this part",
  "rules": [ ... ]
}}"""


AI_GOVERNANCE_PROMPT = """\
Analyze the following AI/ML components detected in a repository for governance compliance:

Detected AI Components:
{components}

Assess each component against:
1. EU AI Act risk classification (HIGH-RISK, LIMITED-RISK, MINIMAL-RISK)
2. GDPR Art. 22 automated decision making: human oversight and intervention
3. Bias and fairness of training data and outcomes
4. Transparency: model documentation, explainability, user notification

Return ONLY a valid JSON array with format:
[
  {{
    "name": "component name",
    "status": "COMPLIANT|REVIEW_REQUIRED|NON_COMPLIANT",
    "risk_level": "HIGH|MEDIUM|LOW",
    "issues": 0,
    "eu_ai_act_risk": "HIGH-RISK|LIMITED-RISK|MINIMAL-RISK",
    "reasoning": "brief explanation"
  }}
]"""


def _policy_rule_summaries(policies: Iterable[Policy]) -> list[dict]:
    summaries: list[dict] = []
    for policy in policies:
        try:
            rules = json.loads(policy.rules_json or "{}").get("rules") or []
        except (json.JSONDecodeError, AttributeError):
            continue
        for rule in rules:
            if not isinstance(rule, dict):
                continue
            summaries.append({
                "rule_id": rule.get("rule_id"),
                "policy_name": policy.name,
                "title": rule.get("title"),
                "description": rule.get("description"),
                "severity": rule.get("severity"),
                "category": rule.get("category"),
                "clause_reference": rule.get("clause_reference"),
            })
    return summaries[:MAX_PROMPT_RULES]


def build_compliance_prompt(
    policies: Iterable[Policy],
    files: dict[str, str],
    max_files: int,
    max_chars_per_file: int,
) -> str:
    files_summary = [
        {"path": path, "content": content[:max_chars_per_file]}
        for path, content in list(files.items())[:max_files]
    ]
    return COMPLIANCE_EVALUATION_PROMPT.format(
        policies=json.dumps(_policy_rule_summaries(policies), indent=2),
        files=json.dumps(files_summary, indent=2),
    )


def build_fix_prompt(
    rule: str, file_path: str, severity: str, description: str, content: str
) -> str:
    return FIX_GENERATION_PROMPT.format(
        rule=rule,
        file_path=file_path,
        severity=severity,
        description=description,
        content=content[:MAX_FIX_CONTEXT_CHARS],
    )


def build_policy_extraction_prompt(chunk: str) -> str:
    return POLICY_EXTRACTION_PROMPT.format(chunk=chunk)


def build_ai_governance_prompt(components_summary: str) -> str:
    return AI_GOVERNANCE_PROMPT.format(components=components_summary)
