"""
In-memory Store — reference implementation of the store contract.

All writes go through a single lock so that inserts for one scan are
serialized in call order. Records are copied on the way in and out, callers
never share mutable state with the store.
"""

from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime

from govscan.errors import StoreError
from govscan.models.agent_models import AgentSource
from govscan.models.detection_models import AIDetection, Detection
from govscan.models.rule_models import Policy, Violation, ViolationCandidate
from govscan.models.scan_models import Fix, Scan, ScanStatus, ScanType, TargetKind

logger = logging.getLogger("govscan.store")


class InMemoryStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self._scans: dict[int, Scan] = {}
        self._violations: dict[int, Violation] = {}
        self._detections: dict[int, AIDetection] = {}
        self._fixes: dict[int, Fix] = {}
        self._policies: dict[int, Policy] = {}
        self._sources: dict[int, AgentSource] = {}

    def _next_id(self) -> int:
        return next(self._ids)

    @staticmethod
    def _get(table: dict, record_id: int, kind: str):
        record = table.get(record_id)
        if record is None:
            raise StoreError(f"{kind} {record_id} not found")
        return record

    # ── Scans ──

    def create_scan(self, target: str, target_type: TargetKind, scan_type: ScanType) -> Scan:
        with self._lock:
            scan = Scan(
                id=self._next_id(),
                target=target,
                target_type=target_type,
                scan_type=scan_type,
                status=ScanStatus.IN_PROGRESS,
            )
            self._scans[scan.id] = scan
            return scan.model_copy()

    def complete_scan(
        self,
        scan_id: int,
        score: int,
        file_count: int,
        violation_count: int,
        detection_count: int,
        commit_sha: str,
    ) -> Scan:
        with self._lock:
            scan = self._get(self._scans, scan_id, "scan")
            updated = scan.model_copy(
                update={
                    "status": ScanStatus.COMPLETED,
                    "compliance_score": score,
                    "files_scanned": file_count,
                    "violation_count": violation_count,
                    "ai_detection_count": detection_count,
                    "commit_sha": commit_sha,
                    "completed_at": datetime.now(),
                }
            )
            self._scans[scan_id] = updated
            return updated.model_copy()

    def fail_scan(self, scan_id: int) -> None:
        with self._lock:
            scan = self._get(self._scans, scan_id, "scan")
            self._scans[scan_id] = scan.model_copy(
                update={"status": ScanStatus.FAILED, "completed_at": datetime.now()}
            )

    def get_scan(self, scan_id: int) -> Scan:
        with self._lock:
            return self._get(self._scans, scan_id, "scan").model_copy()

    def list_scans(self) -> list[Scan]:
        with self._lock:
            return [s.model_copy() for s in sorted(self._scans.values(), key=lambda s: -s.id)]

    # ── Findings ──

    def create_violation(
        self,
        scan_id: int,
        candidate: ViolationCandidate,
        check_type: str,
        policy_id: int = 0,
    ) -> Violation:
        with self._lock:
            self._get(self._scans, scan_id, "scan")
            fields = candidate.model_dump(include=set(ViolationCandidate.model_fields))
            fields["policy_id"] = policy_id or candidate.policy_id
            violation = Violation(
                **fields, id=self._next_id(), scan_id=scan_id, check_type=check_type
            )
            self._violations[violation.id] = violation
            return violation.model_copy()

    def list_violations(self, scan_id: int) -> list[Violation]:
        with self._lock:
            return [v.model_copy() for v in self._violations.values() if v.scan_id == scan_id]

    def create_ai_detection(
        self, scan_id: int, detection: Detection, details: str = "{}"
    ) -> AIDetection:
        with self._lock:
            self._get(self._scans, scan_id, "scan")
            stored = AIDetection(
                **detection.model_dump(include=set(Detection.model_fields)),
                id=self._next_id(),
                scan_id=scan_id,
                details=details,
            )
            self._detections[stored.id] = stored
            return stored.model_copy()

    def update_ai_detection(self, detection: AIDetection) -> AIDetection:
        with self._lock:
            self._get(self._detections, detection.id, "detection")
            self._detections[detection.id] = detection.model_copy()
            return detection.model_copy()

    def list_ai_detections(self, scan_id: int) -> list[AIDetection]:
        with self._lock:
            return [d.model_copy() for d in self._detections.values() if d.scan_id == scan_id]

    def create_fix(self, fix: Fix) -> Fix:
        with self._lock:
            self._get(self._violations, fix.violation_id, "violation")
            stored = fix.model_copy(update={"id": self._next_id()})
            self._fixes[stored.id] = stored
            return stored.model_copy()

    def list_fixes(self, scan_id: int) -> list[Fix]:
        with self._lock:
            return [f.model_copy() for f in self._fixes.values() if f.scan_id == scan_id]

    # ── Policies ──

    def create_policy(self, policy: Policy) -> Policy:
        with self._lock:
            now = datetime.now()
            stored = policy.model_copy(
                update={"id": self._next_id(), "created_at": now, "updated_at": now}
            )
            self._policies[stored.id] = stored
            return stored.model_copy()

    def get_policy(self, policy_id: int) -> Policy:
        with self._lock:
            return self._get(self._policies, policy_id, "policy").model_copy()

    def list_policies(self) -> list[Policy]:
        with self._lock:
            return [p.model_copy() for p in sorted(self._policies.values(), key=lambda p: -p.id)]

    def delete_policy(self, policy_id: int) -> None:
        with self._lock:
            self._get(self._policies, policy_id, "policy")
            del self._policies[policy_id]

    # ── Agent sources ──

    def create_agent_source(self, url: str, name: str) -> AgentSource:
        with self._lock:
            if any(s.url == url for s in self._sources.values()):
                raise StoreError(f"agent source {url} already exists")
            source = AgentSource(id=self._next_id(), url=url, name=name)
            self._sources[source.id] = source
            return source.model_copy()

    def list_agent_sources(self) -> list[AgentSource]:
        with self._lock:
            return [s.model_copy() for s in sorted(self._sources.values(), key=lambda s: s.id)]

    def list_enabled_agent_sources(self) -> list[AgentSource]:
        return [s for s in self.list_agent_sources() if s.enabled]

    def delete_agent_source(self, source_id: int) -> None:
        with self._lock:
            self._get(self._sources, source_id, "agent source")
            del self._sources[source_id]

    def update_agent_source_check(
        self, source_id: int, content_hash: str, linked_policy_id: int
    ) -> None:
        with self._lock:
            source = self._get(self._sources, source_id, "agent source")
            now = datetime.now()
            self._sources[source_id] = source.model_copy(
                update={
                    "content_hash": content_hash,
                    "last_check_at": now,
                    "last_error": "",
                    "linked_policy_id": linked_policy_id,
                    "updated_at": now,
                }
            )

    def update_agent_source_error(self, source_id: int, message: str) -> None:
        with self._lock:
            source = self._get(self._sources, source_id, "agent source")
            now = datetime.now()
            self._sources[source_id] = source.model_copy(
                update={"last_check_at": now, "last_error": message, "updated_at": now}
            )
            logger.debug(f"Recorded error for source {source_id}: {message}")

    def agent_source_count(self) -> int:
        with self._lock:
            return len(self._sources)
