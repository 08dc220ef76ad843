"""
Scan Worker — Async orchestrator running the full scan pipeline.

Pipeline:
1. Resolve the target (clone GitHub repositories into a temp directory)
2. Create the scan record; build the change-set in diff mode
3. Discover files
4. AI phase: four-phase detector, optional LLM governance assessment
5. Compliance phase: pattern rule engine, then optional semantic evaluation
   merged with (rule_id, file_path) deduplication
6. Score, complete the scan record, write the audit entry
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Optional

from govscan.ai.assessor import assess_detections
from govscan.ai.detector import AIDetector
from govscan.audit.logger import AuditLogger
from govscan.config import Settings, settings as default_settings
from govscan.core.evaluator import SemanticEvaluator, merge_violations
from govscan.core.policy_rules import extract_rules
from govscan.core.rule_engine import RuleEngine
from govscan.core.scorer import calculate_score
from govscan.errors import LLMError
from govscan.llm.gateway import LLMClient
from govscan.models.detection_models import AIDetection
from govscan.models.rule_models import Violation
from govscan.models.scan_models import (
    AuditEntry,
    ScanOptions,
    ScanResult,
    ScanTarget,
    ScanType,
)
from govscan.scanner.changeset import git_changed_files
from govscan.scanner.files import FileDiscovery
from govscan.scanner.target import resolve_target
from govscan.store.base import Store, policy_ids_filter

logger = logging.getLogger("govscan.scanner")

_AI_SCANS = (ScanType.FULL, ScanType.AI)
_COMPLIANCE_SCANS = (ScanType.FULL, ScanType.COMPLIANCE)


class ScanWorker:
    """Async scan orchestrator. The store is injected; the LLM is optional."""

    def __init__(
        self,
        store: Store,
        config: Optional[Settings] = None,
        llm: Optional[LLMClient] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> None:
        self.store = store
        self.config = config or default_settings
        self.llm = llm
        self.audit_logger = audit_logger
        self.detector = AIDetector(code_file_limit=self.config.code_pattern_file_limit)

    async def run_scan(
        self,
        target: str,
        scan_type: ScanType = ScanType.FULL,
        options: Optional[ScanOptions] = None,
    ) -> ScanResult:
        """
        Scan a local path or GitHub URL.

        Resolution errors are raised before anything is stored. Any later
        failure marks the scan FAILED and re-raises. Cloned directories are
        removed on every exit path.
        """
        options = options or ScanOptions()
        start_time = time.monotonic()

        # Clone cleanup (rmtree) runs in a worker thread, off the event loop.
        stack = contextlib.ExitStack()
        try:
            resolved: ScanTarget = await asyncio.to_thread(
                stack.enter_context,
                resolve_target(
                    target,
                    branch=options.branch,
                    token=self.config.github_token,
                    timeout=self.config.git_timeout,
                ),
            )

            scan = self.store.create_scan(target, resolved.kind, scan_type)
            logger.info(f"[{scan.id}] Starting {scan_type.value} scan of {resolved.path}")
            try:
                result = await self._run(scan.id, resolved, scan_type, options)
            except Exception:
                logger.exception(f"[{scan.id}] Scan failed")
                self.store.fail_scan(scan.id)
                raise
        finally:
            await asyncio.to_thread(stack.close)

        duration_ms = (time.monotonic() - start_time) * 1000
        logger.info(
            f"[{scan.id}] Complete: score={result.scan.compliance_score}, "
            f"{len(result.violations)} violations, {len(result.detections)} detections "
            f"({duration_ms:.0f}ms)"
        )
        if self.audit_logger is not None:
            self.audit_logger.log(AuditEntry(
                scan_id=scan.id,
                target=target,
                scan_type=scan_type.value,
                files_scanned=result.scan.files_scanned,
                violations_found=len(result.violations),
                detections_found=len(result.detections),
                compliance_score=result.scan.compliance_score or 0,
                llm_invoked=self.llm is not None,
                llm_tokens_used=getattr(self.llm, "total_tokens_used", 0),
                duration_ms=round(duration_ms, 2),
            ))
        return result

    async def _run(
        self,
        scan_id: int,
        resolved: ScanTarget,
        scan_type: ScanType,
        options: ScanOptions,
    ) -> ScanResult:
        # ── Step 2: Change-set ──
        allow_list: Optional[set[str]] = None
        if options.diff:
            allow_list = await asyncio.to_thread(
                git_changed_files, resolved.path, options.base or "HEAD", self.config.git_timeout
            )
            logger.info(f"[{scan_id}] Diff mode: {len(allow_list)} changed files vs {options.base}")

        # ── Step 3: Discovery ──
        discovery = FileDiscovery(
            resolved.path,
            max_files=self.config.max_files_per_scan,
            max_file_size_kb=self.config.max_file_size_kb,
            ignore_file_name=self.config.ignore_file_name,
            allow_list=allow_list,
        )
        files = await asyncio.to_thread(discovery.list_files)
        logger.info(f"[{scan_id}] Discovered {len(files)} files")

        detections: list[AIDetection] = []
        violations: list[Violation] = []

        # ── Step 4: AI phase ──
        if scan_type in _AI_SCANS:
            detections = await self._ai_phase(scan_id, discovery)

        # ── Step 5: Compliance phase ──
        if scan_type in _COMPLIANCE_SCANS:
            violations = await self._compliance_phase(
                scan_id, discovery, files, scan_type, options
            )

        # ── Step 6: Score ──
        score = calculate_score(violations)
        scan = self.store.complete_scan(
            scan_id,
            score,
            len(files),
            len(violations),
            len(detections),
            resolved.commit_sha,
        )
        return ScanResult(scan=scan, violations=violations, detections=detections)

    async def _ai_phase(self, scan_id: int, discovery: FileDiscovery) -> list[AIDetection]:
        found = await asyncio.to_thread(self.detector.scan, discovery)
        detections = [self.store.create_ai_detection(scan_id, d) for d in found]
        logger.info(f"[{scan_id}] AI detections: {len(detections)}")

        if detections and self.llm is not None:
            updated = {d.id: d for d in await assess_detections(self.llm, detections)}
            for detection in updated.values():
                self.store.update_ai_detection(detection)
            detections = [updated.get(d.id, d) for d in detections]
        return detections

    async def _compliance_phase(
        self,
        scan_id: int,
        discovery: FileDiscovery,
        files: list[str],
        scan_type: ScanType,
        options: ScanOptions,
    ) -> list[Violation]:
        policies = policy_ids_filter(self.store.list_policies(), options.policy_ids)
        if not policies:
            if scan_type == ScanType.COMPLIANCE:
                logger.warning(f"[{scan_id}] No policies loaded; add policies before scanning")
            return []

        contents = await asyncio.to_thread(discovery.read_contents)
        rules = extract_rules(policies)
        rule_result = await asyncio.to_thread(RuleEngine().run, rules, contents, files)
        logger.info(
            f"[{scan_id}] Pattern violations: {len(rule_result.violations)} "
            f"({len(rule_result.rules_executed)} rules, {rule_result.scan_duration_ms:.1f}ms)"
        )
        violations = [
            self.store.create_violation(scan_id, v, "PATTERN") for v in rule_result.violations
        ]

        if self.llm is None:
            if scan_type == ScanType.COMPLIANCE:
                logger.warning(f"[{scan_id}] GROQ_API_KEY not set, skipping semantic evaluation")
            return violations

        try:
            evaluation = await SemanticEvaluator(self.llm).evaluate(policies, contents)
        except LLMError as e:
            logger.warning(f"[{scan_id}] Semantic evaluation failed: {e}")
            return violations

        for candidate in merge_violations(violations, evaluation.violations):
            violations.append(self.store.create_violation(scan_id, candidate, "LLM"))
        logger.info(f"[{scan_id}] Violations after semantic merge: {len(violations)}")
        return violations
