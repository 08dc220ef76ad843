"""
Scan Models — targets, scan records, and the public scan result.

These are also the request/response schemas of the HTTP surface.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from govscan.models.detection_models import AIDetection
from govscan.models.rule_models import Severity, Violation

CRITICAL_EXIT_CODE = 2


class TargetKind(str, Enum):
    LOCAL = "local"
    GITHUB = "github"


class ScanTarget(BaseModel):
    """A resolved scan target. Immutable once resolved."""

    model_config = ConfigDict(frozen=True)

    kind: TargetKind
    path: str = Field(..., description="Local directory that will be walked")
    url: str = ""
    branch: str = ""
    commit_sha: str = ""


class ScanType(str, Enum):
    FULL = "FULL"
    COMPLIANCE = "COMPLIANCE"
    AI = "AI"


class ScanStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Scan(BaseModel):
    id: int = 0
    target: str
    target_type: TargetKind = TargetKind.LOCAL
    scan_type: ScanType = ScanType.FULL
    status: ScanStatus = ScanStatus.IN_PROGRESS
    compliance_score: Optional[int] = Field(default=None, ge=0, le=100)
    files_scanned: int = 0
    violation_count: int = 0
    ai_detection_count: int = 0
    commit_sha: str = ""
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None


class ScanOptions(BaseModel):
    """Optional per-scan parameters."""

    branch: str = ""
    policy_ids: list[int] = Field(default_factory=list)
    diff: bool = Field(default=False, description="Restrict the scan to changed files")
    base: str = Field(default="HEAD", description="Base ref for change detection")


class ScanRequest(ScanOptions):
    """Request body for POST /scan."""

    target: str = Field(..., min_length=1, description="Local path or GitHub URL")
    scan_type: ScanType = ScanType.FULL


class ScanResult(BaseModel):
    """Complete scan output."""

    scan: Scan
    violations: list[Violation] = Field(default_factory=list)
    detections: list[AIDetection] = Field(default_factory=list)

    @computed_field
    @property
    def has_critical_violations(self) -> bool:
        return any(v.severity == Severity.CRITICAL.value for v in self.violations)

    @computed_field
    @property
    def exit_code(self) -> int:
        """Process exit status a CI wrapper should use for this result."""
        return CRITICAL_EXIT_CODE if self.has_critical_violations else 0


class FixStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    APPLIED = "APPLIED"
    REJECTED = "REJECTED"


class FixResult(BaseModel):
    """Fix suggestion returned by the LLM."""

    fix_description: str = ""
    fix_diff: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class Fix(FixResult):
    id: int = 0
    violation_id: int
    scan_id: int
    status: FixStatus = FixStatus.PENDING
    created_at: datetime = Field(default_factory=datetime.now)


class FixApplyRequest(BaseModel):
    """Request body for POST /fix/apply."""

    original: str
    fix_text: str


class FixApplyResponse(BaseModel):
    content: str
    applied: bool


class AuditEntry(BaseModel):
    """Audit metadata for a completed scan."""

    scan_id: int
    target: str
    scan_type: str
    files_scanned: int
    violations_found: int
    detections_found: int
    compliance_score: int
    llm_invoked: bool
    llm_tokens_used: int = 0
    duration_ms: float = 0.0
