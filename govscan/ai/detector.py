"""
AI/ML Framework Detector — four ordered detection phases over a file set.

1. Model-file extensions        (confidence 0.90)
2. AI configuration file names  (confidence 0.80)
3. Dependency manifests         (confidence 0.95)
4. Import/usage code patterns   (confidence 0.85, first N source files only)

Phases 3 and 4 share a "seen" set so each framework is reported at most once;
phases 1 and 2 name detections after files and are never deduplicated.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Mapping, Optional, Protocol

from govscan.ai.patterns import (
    AI_CONFIG_FILES,
    CODE_EXTENSIONS,
    DEPENDENCY_FILES,
    FRAMEWORK_SIGNATURES,
    MODEL_FILE_EXTENSIONS,
)
from govscan.ai.risk import classify_eu_ai_act_risk
from govscan.models.detection_models import (
    ComponentType,
    Detection,
    DetectionMethod,
    FrameworkSignature,
    RiskLevel,
)

logger = logging.getLogger("govscan.ai.detector")

CONFIDENCE = {
    DetectionMethod.FILE_EXTENSION: 0.9,
    DetectionMethod.CONFIG_FILE: 0.8,
    DetectionMethod.DEPENDENCY: 0.95,
    DetectionMethod.CODE_PATTERN: 0.85,
}

DEFAULT_CODE_FILE_LIMIT = 50


class FileSource(Protocol):
    def list_files(self) -> list[str]: ...

    def read_file(self, rel_path: str) -> str: ...


def _basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def extract_model_name(path: str) -> str:
    return os.path.splitext(_basename(path))[0]


def extract_version(content: str, package_name: str) -> Optional[str]:
    """Best-effort version of `package_name` from a manifest, or None."""
    escaped = re.escape(package_name)
    strategies = (
        escaped + r"[=<>~!]=*\s*([\d.]+)",
        '"' + escaped + r'":\s*"[^"]*?([\d.]+)',
    )
    for pattern in strategies:
        match = re.search(pattern, content, re.IGNORECASE)
        if match:
            return match.group(1)
    return None


class AIDetector:
    """
    Detects AI/ML components in a discovered file set.

    Usage:
        detections = AIDetector().scan(discovery)
    """

    def __init__(
        self,
        signatures: Mapping[str, FrameworkSignature] = FRAMEWORK_SIGNATURES,
        code_file_limit: int = DEFAULT_CODE_FILE_LIMIT,
    ) -> None:
        self.signatures = signatures
        self.code_file_limit = code_file_limit
        self._compiled: dict[str, Optional[re.Pattern[str]]] = {}

    def scan(self, source: FileSource) -> list[Detection]:
        files = source.list_files()
        seen: set[str] = set()

        detections = self._scan_model_files(files)
        detections += self._scan_config_files(files)
        detections += self._scan_dependencies(files, source, seen)
        detections += self._scan_code_patterns(files, source, seen)

        logger.info(f"AI detection: {len(detections)} component(s) in {len(files)} file(s)")
        return detections

    # ── Phase 1 ──

    def _scan_model_files(self, files: list[str]) -> list[Detection]:
        detections: list[Detection] = []
        for path in files:
            lower = path.lower()
            for ext in MODEL_FILE_EXTENSIONS:
                if lower.endswith(ext.extension):
                    detections.append(Detection(
                        name=extract_model_name(path),
                        type=ext.model_type,
                        risk_level=ext.risk.value,
                        eu_ai_act_risk=classify_eu_ai_act_risk(ext.model_type),
                        file_path=path,
                        confidence=CONFIDENCE[DetectionMethod.FILE_EXTENSION],
                        detection_method=DetectionMethod.FILE_EXTENSION,
                    ))
                    break
        return detections

    # ── Phase 2 ──

    def _scan_config_files(self, files: list[str]) -> list[Detection]:
        detections: list[Detection] = []
        for path in files:
            if _basename(path).lower() in AI_CONFIG_FILES:
                detections.append(Detection(
                    name=f"AI Config: {_basename(path)}",
                    type=ComponentType.CONFIG.value,
                    risk_level=RiskLevel.MEDIUM.value,
                    eu_ai_act_risk=classify_eu_ai_act_risk(ComponentType.CONFIG.value),
                    file_path=path,
                    confidence=CONFIDENCE[DetectionMethod.CONFIG_FILE],
                    detection_method=DetectionMethod.CONFIG_FILE,
                ))
        return detections

    # ── Phase 3 ──

    def _scan_dependencies(
        self, files: list[str], source: FileSource, seen: set[str]
    ) -> list[Detection]:
        detections: list[Detection] = []
        for path in files:
            if _basename(path) not in DEPENDENCY_FILES:
                continue
            try:
                content = source.read_file(path)
            except OSError as e:
                logger.debug(f"Skipping manifest {path}: {e}")
                continue

            content_lower = content.lower()
            for key, sig in self.signatures.items():
                if key in seen:
                    continue
                for dep in sig.dep_names:
                    if dep.lower() in content_lower:
                        detections.append(self._framework_detection(
                            sig, path, DetectionMethod.DEPENDENCY,
                            version=extract_version(content, dep),
                        ))
                        seen.add(key)
                        break
        return detections

    # ── Phase 4 ──

    def _scan_code_patterns(
        self, files: list[str], source: FileSource, seen: set[str]
    ) -> list[Detection]:
        code_files = [
            p for p in files if os.path.splitext(p)[1].lower() in CODE_EXTENSIONS
        ][: self.code_file_limit]

        detections: list[Detection] = []
        for path in code_files:
            try:
                content = source.read_file(path)
            except OSError as e:
                logger.debug(f"Skipping source file {path}: {e}")
                continue

            for key, sig in self.signatures.items():
                if key in seen:
                    continue
                for pattern in sig.patterns:
                    compiled = self._compile(pattern)
                    if compiled is not None and compiled.search(content):
                        detections.append(
                            self._framework_detection(sig, path, DetectionMethod.CODE_PATTERN)
                        )
                        seen.add(key)
                        break
        return detections

    def _compile(self, pattern: str) -> Optional[re.Pattern[str]]:
        if pattern not in self._compiled:
            try:
                self._compiled[pattern] = re.compile(pattern, re.IGNORECASE)
            except re.error as e:
                logger.warning(f"Skipping malformed detection pattern {pattern!r}: {e}")
                self._compiled[pattern] = None
        return self._compiled[pattern]

    @staticmethod
    def _framework_detection(
        sig: FrameworkSignature,
        path: str,
        method: DetectionMethod,
        version: Optional[str] = None,
    ) -> Detection:
        return Detection(
            name=sig.name,
            version=version,
            type=sig.type.value,
            risk_level=sig.risk_base.value,
            eu_ai_act_risk=classify_eu_ai_act_risk(sig.type.value),
            file_path=path,
            confidence=CONFIDENCE[method],
            detection_method=method,
        )
