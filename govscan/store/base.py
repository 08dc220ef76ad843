"""
Store collaborator contract.

Components receive a Store instance explicitly; there is no module-level
database handle.
"""

from __future__ import annotations

from typing import Optional, Protocol

from govscan.models.agent_models import AgentSource
from govscan.models.detection_models import AIDetection, Detection
from govscan.models.rule_models import Policy, Violation, ViolationCandidate
from govscan.models.scan_models import Fix, Scan, ScanType, TargetKind


class Store(Protocol):
    # ── Scans ──
    def create_scan(self, target: str, target_type: TargetKind, scan_type: ScanType) -> Scan: ...

    def complete_scan(
        self,
        scan_id: int,
        score: int,
        file_count: int,
        violation_count: int,
        detection_count: int,
        commit_sha: str,
    ) -> Scan: ...

    def fail_scan(self, scan_id: int) -> None: ...

    def get_scan(self, scan_id: int) -> Scan: ...

    def list_scans(self) -> list[Scan]: ...

    # ── Findings ──
    def create_violation(
        self,
        scan_id: int,
        candidate: ViolationCandidate,
        check_type: str,
        policy_id: int = 0,
    ) -> Violation: ...

    def list_violations(self, scan_id: int) -> list[Violation]: ...

    def create_ai_detection(
        self, scan_id: int, detection: Detection, details: str = "{}"
    ) -> AIDetection: ...

    def update_ai_detection(self, detection: AIDetection) -> AIDetection: ...

    def list_ai_detections(self, scan_id: int) -> list[AIDetection]: ...

    def create_fix(self, fix: Fix) -> Fix: ...

    def list_fixes(self, scan_id: int) -> list[Fix]: ...

    # ── Policies ──
    def create_policy(self, policy: Policy) -> Policy: ...

    def get_policy(self, policy_id: int) -> Policy: ...

    def list_policies(self) -> list[Policy]: ...

    def delete_policy(self, policy_id: int) -> None: ...

    # ── Agent sources ──
    def create_agent_source(self, url: str, name: str) -> AgentSource: ...

    def list_agent_sources(self) -> list[AgentSource]: ...

    def list_enabled_agent_sources(self) -> list[AgentSource]: ...

    def delete_agent_source(self, source_id: int) -> None: ...

    def update_agent_source_check(
        self, source_id: int, content_hash: str, linked_policy_id: int
    ) -> None: ...

    def update_agent_source_error(self, source_id: int, message: str) -> None: ...

    def agent_source_count(self) -> int: ...


def policy_ids_filter(policies: list[Policy], ids: Optional[list[int]]) -> list[Policy]:
    """Restrict policies to the given ids; an empty or missing filter keeps all."""
    if not ids:
        return policies
    wanted = set(ids)
    return [p for p in policies if p.id in wanted]
