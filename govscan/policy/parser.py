"""
Policy Parser — Extracts structured compliance rules from document text.

Long documents are split into overlapping chunks; each chunk is extracted
independently by the LLM and the results are merged by rule_id.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from govscan.errors import IngestionError, LLMError
from govscan.llm.gateway import LLMClient
from govscan.llm.prompts import build_policy_extraction_prompt
from govscan.llm.response import parse_json_response

logger = logging.getLogger("govscan.policy.parser")

CHUNK_SIZE = 40_000
CHUNK_OVERLAP = 2_000


class _NullTolerant(BaseModel):
    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data):
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class ParsedRule(_NullTolerant):
    rule_id: str = ""
    title: str = ""
    description: str = ""
    severity: str = ""
    category: str = ""
    check_type: str = ""
    pattern: str = ""
    recommendations: list[str] = Field(default_factory=list)
    clause_reference: str = ""
    topic: str = ""
    source_excerpt: str = ""


class ParsedPolicy(_NullTolerant):
    regulation_name: str = ""
    regulation_type: str = ""
    version: Optional[str] = None
    summary: str = ""
    rules: list[ParsedRule] = Field(default_factory=list)

    def rules_json(self) -> str:
        """Serialized form stored on Policy.rules_json."""
        return json.dumps(
            {"rules": [r.model_dump(exclude_defaults=True) for r in self.rules]}, indent=2
        )


def split_text(text: str, chunk_size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> list[str]:
    if len(text) <= chunk_size:
        return [text]
    chunks: list[str] = []
    start = 0
    while start < len(text):
        end = min(start + chunk_size, len(text))
        chunks.append(text[start:end])
        if end == len(text):
            break
        start = max(end - overlap, 0)
    return chunks


def merge_policies(parts: list[ParsedPolicy]) -> ParsedPolicy:
    seen: set[str] = set()
    rules: list[ParsedRule] = []
    for part in parts:
        for rule in part.rules:
            key = rule.rule_id.strip().upper()
            if key in seen:
                continue
            seen.add(key)
            rules.append(rule)

    merged = ParsedPolicy(
        regulation_name="Merged Policy",
        regulation_type="OTHER",
        version="1.0",
        summary=f"Aggregated from {len(parts)} chunks, {len(rules)} unique rules.",
        rules=rules,
    )
    for part in parts:
        if part.rules:
            merged.regulation_name = part.regulation_name
            merged.regulation_type = part.regulation_type
            merged.version = part.version
            break
    return merged


class PolicyParser:
    def __init__(
        self,
        llm: LLMClient,
        chunk_size: int = CHUNK_SIZE,
        overlap: int = CHUNK_OVERLAP,
    ) -> None:
        self.llm = llm
        self.chunk_size = chunk_size
        self.overlap = overlap

    async def parse(self, text: str) -> ParsedPolicy:
        """
        Extract rules from a whole document.

        Failed chunks are skipped. Raises IngestionError when no chunk
        yields a parseable result.
        """
        chunks = split_text(text, self.chunk_size, self.overlap)
        results: list[ParsedPolicy] = []
        for index, chunk in enumerate(chunks):
            try:
                results.append(await self._extract_chunk(chunk))
            except (LLMError, json.JSONDecodeError, ValidationError) as e:
                logger.warning(f"Chunk {index + 1}/{len(chunks)} extraction failed: {e}")

        if not results:
            raise IngestionError("No rules could be extracted from the document")

        merged = merge_policies(results)
        logger.info(
            f"Extracted {len(merged.rules)} rules from {len(results)}/{len(chunks)} chunks"
        )
        return merged

    async def _extract_chunk(self, chunk: str) -> ParsedPolicy:
        text = await self.llm.generate_content(build_policy_extraction_prompt(chunk))
        return ParsedPolicy.model_validate(parse_json_response(text))
