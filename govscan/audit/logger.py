"""
Audit Logger — Structured JSON-lines audit trail.

Records every completed scan with: timestamp, scan id, target, file count,
violation and detection counts, compliance score, LLM usage, and duration.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path

from govscan.config import settings
from govscan.models.scan_models import AuditEntry

logger = logging.getLogger("govscan.audit")


class AuditLogger:
    """Appends audit entries to a JSON-lines file. Write failures are logged, not raised."""

    def __init__(self, log_path: str | Path | None = None) -> None:
        self.log_path = Path(log_path or settings.audit_log_path)

    def log(self, entry: AuditEntry) -> None:
        record = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            **entry.model_dump(),
        }
        try:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record) + "\n")
        except OSError as e:
            logger.error(f"Failed to write audit log {self.log_path}: {e}")

    def read_recent(self, count: int = 50) -> list[dict]:
        """The most recent `count` entries; malformed lines are skipped."""
        if not self.log_path.exists():
            return []

        entries: list[dict] = []
        try:
            with open(self.log_path, encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(json.loads(line))
                    except json.JSONDecodeError:
                        continue
        except OSError as e:
            logger.error(f"Failed to read audit log {self.log_path}: {e}")
            return []

        return entries[-count:]
