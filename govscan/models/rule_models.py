"""
Rule Engine Data Models — Policies, rules, and violations.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"


SEVERITY_WEIGHTS: dict[str, int] = {
    Severity.CRITICAL.value: 25,
    Severity.HIGH.value: 15,
    Severity.MEDIUM.value: 8,
    Severity.LOW.value: 3,
    Severity.INFO.value: 1,
}

DEFAULT_SEVERITY_WEIGHT = 8


class CheckType(str, Enum):
    FILE_PATTERN = "FILE_PATTERN"
    CODE_PATTERN = "CODE_PATTERN"
    CONFIG_CHECK = "CONFIG_CHECK"
    MANUAL = "MANUAL"


class PolicyCategory(str, Enum):
    SECURITY = "SECURITY"
    COST = "COST"
    SUSTAINABILITY = "SUSTAINABILITY"
    COMPLIANCE = "COMPLIANCE"


class Policy(BaseModel):
    """A stored compliance document and its extracted rules."""

    id: int = 0
    name: str
    description: str = ""
    category: PolicyCategory = PolicyCategory.COMPLIANCE
    severity: Severity = Severity.MEDIUM
    source_url: str = ""
    rules_json: str = Field(default='{"rules": []}', description="JSON object with a 'rules' list")
    regulation_type: str = "OTHER"
    rule_count: int = 0
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class PolicyRule(BaseModel):
    """A single checkable rule flattened out of a Policy."""

    rule_id: str
    policy_id: int = 0
    policy_name: str = ""
    title: str = ""
    description: str = ""
    severity: str = Severity.MEDIUM.value
    category: str = ""
    check_type: str
    pattern: str = ""
    clause_reference: str = ""
    recommendations: list[str] = Field(default_factory=list)

    @field_validator("severity", "check_type")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.strip().upper()


class ViolationCandidate(BaseModel):
    """A violation produced by an evaluation stage, before persistence."""

    rule_id: str
    policy_id: int = 0
    policy_name: str = ""
    severity: str = Severity.MEDIUM.value
    title: str = ""
    description: str = ""
    file_path: str = ""
    line_start: int = 0
    line_end: int = 0
    code_snippet: str = Field(default="", max_length=200)
    clause_reference: str = ""
    recommendation: str = ""

    @field_validator("code_snippet", mode="before")
    @classmethod
    def _truncate_snippet(cls, value: str | None) -> str:
        return (value or "")[:200]

    @field_validator("severity", mode="before")
    @classmethod
    def _upper_severity(cls, value: str | None) -> str:
        return (value or "").strip().upper()


class Violation(ViolationCandidate):
    """A persisted violation attached to a scan."""

    id: int = 0
    scan_id: int
    check_type: str = Field(default="PATTERN", description="PATTERN or LLM")
    created_at: datetime = Field(default_factory=datetime.now)


class RuleResult(BaseModel):
    """Result of evaluating a rule set against a file set."""

    violations: list[ViolationCandidate] = Field(default_factory=list)
    rules_executed: list[str] = Field(default_factory=list)
    rules_skipped: list[str] = Field(default_factory=list)
    total_files_scanned: int = 0
    scan_duration_ms: float = 0.0


class PolicyCreateRequest(BaseModel):
    """Request body for POST /policies. Exactly one of url, path or text is used."""

    url: Optional[str] = None
    path: Optional[str] = None
    text: Optional[str] = None
    source: str = Field(default="inline", description="Source label stored with inline text")

    def source_count(self) -> int:
        return sum(1 for v in (self.url, self.path, self.text) if v)


class PresetInfo(BaseModel):
    """Listing entry for a built-in preset."""

    slug: str
    name: str
    description: str
    category: PolicyCategory
    severity: Severity
    regulation_type: str
    rule_count: int
