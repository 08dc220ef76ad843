"""
SQLite Store — file-backed implementation of the store contract.

The API process and the agent daemon open the same database file, so
policies ingested by the daemon are visible to scans and agent status.
One connection per store instance; every statement runs under a single
lock. WAL mode plus a busy timeout lets the two processes share the file.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel

from govscan.errors import StoreError
from govscan.models.agent_models import AgentSource
from govscan.models.detection_models import AIDetection, Detection
from govscan.models.rule_models import Policy, Violation, ViolationCandidate
from govscan.models.scan_models import Fix, Scan, ScanStatus, ScanType, TargetKind

logger = logging.getLogger("govscan.store.sqlite")

M = TypeVar("M", bound=BaseModel)

SCHEMA = """
CREATE TABLE IF NOT EXISTS scans (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    target TEXT NOT NULL,
    target_type TEXT NOT NULL DEFAULT 'local',
    scan_type TEXT NOT NULL DEFAULT 'FULL',
    status TEXT NOT NULL DEFAULT 'PENDING',
    compliance_score INTEGER,
    files_scanned INTEGER DEFAULT 0,
    violation_count INTEGER DEFAULT 0,
    ai_detection_count INTEGER DEFAULT 0,
    commit_sha TEXT DEFAULT '',
    started_at TEXT NOT NULL,
    completed_at TEXT
);

CREATE TABLE IF NOT EXISTS policies (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    description TEXT DEFAULT '',
    category TEXT NOT NULL DEFAULT 'COMPLIANCE',
    severity TEXT NOT NULL DEFAULT 'MEDIUM',
    source_url TEXT DEFAULT '',
    rules_json TEXT DEFAULT '{"rules": []}',
    regulation_type TEXT DEFAULT '',
    rule_count INTEGER DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS violations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    scan_id INTEGER NOT NULL REFERENCES scans(id),
    policy_id INTEGER DEFAULT 0,
    policy_name TEXT DEFAULT '',
    rule_id TEXT NOT NULL,
    severity TEXT NOT NULL DEFAULT 'MEDIUM',
    title TEXT NOT NULL DEFAULT '',
    description TEXT DEFAULT '',
    file_path TEXT NOT NULL DEFAULT '',
    line_start INTEGER DEFAULT 0,
    line_end INTEGER DEFAULT 0,
    code_snippet TEXT DEFAULT '',
    clause_reference TEXT DEFAULT '',
    recommendation TEXT DEFAULT '',
    check_type TEXT DEFAULT '',
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS ai_detections (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    scan_id INTEGER NOT NULL REFERENCES scans(id),
    name TEXT NOT NULL,
    version TEXT,
    type TEXT NOT NULL,
    risk_level TEXT NOT NULL DEFAULT 'MEDIUM',
    eu_ai_act_risk TEXT DEFAULT '',
    status TEXT NOT NULL DEFAULT 'REVIEW_REQUIRED',
    file_path TEXT NOT NULL,
    confidence REAL DEFAULT 0.0,
    detection_method TEXT DEFAULT '',
    details TEXT DEFAULT '{}',
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS fixes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    violation_id INTEGER NOT NULL REFERENCES violations(id),
    scan_id INTEGER NOT NULL REFERENCES scans(id),
    fix_description TEXT NOT NULL DEFAULT '',
    fix_diff TEXT NOT NULL DEFAULT '',
    confidence REAL DEFAULT 0.0,
    status TEXT NOT NULL DEFAULT 'PENDING',
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_violations_scan_id ON violations(scan_id);
CREATE INDEX IF NOT EXISTS idx_ai_detections_scan_id ON ai_detections(scan_id);
CREATE INDEX IF NOT EXISTS idx_fixes_scan_id ON fixes(scan_id);

CREATE TABLE IF NOT EXISTS agent_sources (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    url TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL DEFAULT '',
    enabled INTEGER NOT NULL DEFAULT 1,
    content_hash TEXT DEFAULT '',
    last_check_at TEXT,
    last_error TEXT DEFAULT '',
    linked_policy_id INTEGER DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


def _now() -> str:
    return datetime.now().isoformat()


class SQLiteStore:
    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(
            str(self.db_path), timeout=5, isolation_level=None, check_same_thread=False
        )
        self._conn.row_factory = sqlite3.Row
        with self._lock:
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA busy_timeout=5000;")
            self._conn.executescript(SCHEMA)
        logger.info(f"Opened store at {self.db_path}")

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ── Helpers ──

    def _execute(self, sql: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
        with self._lock:
            try:
                return self._conn.execute(sql, tuple(params))
            except sqlite3.Error as e:
                raise StoreError(f"Database error: {e}") from e

    def _insert(self, table: str, record: BaseModel) -> int:
        values = record.model_dump(mode="json", exclude={"id"})
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        cur = self._execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", values.values()
        )
        return int(cur.lastrowid)

    def _update(self, table: str, record_id: int, kind: str, **fields: Any) -> None:
        assignments = ", ".join(f"{name} = ?" for name in fields)
        cur = self._execute(
            f"UPDATE {table} SET {assignments} WHERE id = ?", [*fields.values(), record_id]
        )
        if cur.rowcount == 0:
            raise StoreError(f"{kind} {record_id} not found")

    def _query(self, sql: str, params: Iterable[Any] = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self._execute(sql, params).fetchall()

    def _fetch_one(self, model: type[M], sql: str, params: Iterable[Any], what: str) -> M:
        rows = self._query(sql, params)
        if not rows:
            raise StoreError(f"{what} not found")
        return model.model_validate(dict(rows[0]))

    def _fetch_all(self, model: type[M], sql: str, params: Iterable[Any] = ()) -> list[M]:
        return [model.model_validate(dict(row)) for row in self._query(sql, params)]

    def _exists(self, table: str, record_id: int, kind: str) -> None:
        if not self._query(f"SELECT 1 FROM {table} WHERE id = ?", [record_id]):
            raise StoreError(f"{kind} {record_id} not found")

    # ── Scans ──

    def create_scan(self, target: str, target_type: TargetKind, scan_type: ScanType) -> Scan:
        with self._lock:
            scan = Scan(
                target=target,
                target_type=target_type,
                scan_type=scan_type,
                status=ScanStatus.IN_PROGRESS,
            )
            scan.id = self._insert("scans", scan)
            return scan

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
            self._update(
                "scans",
                scan_id,
                "scan",
                status=ScanStatus.COMPLETED.value,
                compliance_score=score,
                files_scanned=file_count,
                violation_count=violation_count,
                ai_detection_count=detection_count,
                commit_sha=commit_sha,
                completed_at=_now(),
            )
            return self.get_scan(scan_id)

    def fail_scan(self, scan_id: int) -> None:
        self._update("scans", scan_id, "scan", status=ScanStatus.FAILED.value, completed_at=_now())

    def get_scan(self, scan_id: int) -> Scan:
        return self._fetch_one(Scan, "SELECT * FROM scans WHERE id = ?", [scan_id], f"scan {scan_id}")

    def list_scans(self) -> list[Scan]:
        return self._fetch_all(Scan, "SELECT * FROM scans ORDER BY id DESC")

    # ── Findings ──

    def create_violation(
        self,
        scan_id: int,
        candidate: ViolationCandidate,
        check_type: str,
        policy_id: int = 0,
    ) -> Violation:
        with self._lock:
            self._exists("scans", scan_id, "scan")
            fields = candidate.model_dump(include=set(ViolationCandidate.model_fields))
            fields["policy_id"] = policy_id or candidate.policy_id
            violation = Violation(**fields, scan_id=scan_id, check_type=check_type)
            violation.id = self._insert("violations", violation)
            return violation

    def list_violations(self, scan_id: int) -> list[Violation]:
        return self._fetch_all(
            Violation, "SELECT * FROM violations WHERE scan_id = ? ORDER BY id", [scan_id]
        )

    def create_ai_detection(
        self, scan_id: int, detection: Detection, details: str = "{}"
    ) -> AIDetection:
        with self._lock:
            self._exists("scans", scan_id, "scan")
            stored = AIDetection(
                **detection.model_dump(include=set(Detection.model_fields)),
                scan_id=scan_id,
                details=details,
            )
            stored.id = self._insert("ai_detections", stored)
            return stored

    def update_ai_detection(self, detection: AIDetection) -> AIDetection:
        fields = detection.model_dump(mode="json", exclude={"id", "scan_id", "created_at"})
        self._update("ai_detections", detection.id, "detection", **fields)
        return detection.model_copy()

    def list_ai_detections(self, scan_id: int) -> list[AIDetection]:
        return self._fetch_all(
            AIDetection, "SELECT * FROM ai_detections WHERE scan_id = ? ORDER BY id", [scan_id]
        )

    def create_fix(self, fix: Fix) -> Fix:
        with self._lock:
            self._exists("violations", fix.violation_id, "violation")
            stored = fix.model_copy()
            stored.id = self._insert("fixes", stored)
            return stored

    def list_fixes(self, scan_id: int) -> list[Fix]:
        return self._fetch_all(Fix, "SELECT * FROM fixes WHERE scan_id = ? ORDER BY id", [scan_id])

    # ── Policies ──

    def create_policy(self, policy: Policy) -> Policy:
        with self._lock:
            now = datetime.now()
            stored = policy.model_copy(update={"created_at": now, "updated_at": now})
            stored.id = self._insert("policies", stored)
            return stored

    def get_policy(self, policy_id: int) -> Policy:
        return self._fetch_one(
            Policy, "SELECT * FROM policies WHERE id = ?", [policy_id], f"policy {policy_id}"
        )

    def list_policies(self) -> list[Policy]:
        return self._fetch_all(Policy, "SELECT * FROM policies ORDER BY id DESC")

    def delete_policy(self, policy_id: int) -> None:
        cur = self._execute("DELETE FROM policies WHERE id = ?", [policy_id])
        if cur.rowcount == 0:
            raise StoreError(f"policy {policy_id} not found")

    # ── Agent sources ──

    def create_agent_source(self, url: str, name: str) -> AgentSource:
        with self._lock:
            source = AgentSource(url=url, name=name)
            source.id = self._insert("agent_sources", source)
            return source

    def list_agent_sources(self) -> list[AgentSource]:
        return self._fetch_all(AgentSource, "SELECT * FROM agent_sources ORDER BY id")

    def list_enabled_agent_sources(self) -> list[AgentSource]:
        return self._fetch_all(
            AgentSource, "SELECT * FROM agent_sources WHERE enabled = 1 ORDER BY id"
        )

    def delete_agent_source(self, source_id: int) -> None:
        cur = self._execute("DELETE FROM agent_sources WHERE id = ?", [source_id])
        if cur.rowcount == 0:
            raise StoreError(f"agent source {source_id} not found")

    def update_agent_source_check(
        self, source_id: int, content_hash: str, linked_policy_id: int
    ) -> None:
        now = _now()
        self._update(
            "agent_sources",
            source_id,
            "agent source",
            content_hash=content_hash,
            last_check_at=now,
            last_error="",
            linked_policy_id=linked_policy_id,
            updated_at=now,
        )

    def update_agent_source_error(self, source_id: int, message: str) -> None:
        now = _now()
        self._update(
            "agent_sources",
            source_id,
            "agent source",
            last_check_at=now,
            last_error=message,
            updated_at=now,
        )

    def agent_source_count(self) -> int:
        rows = self._query("SELECT COUNT(*) FROM agent_sources")
        return int(rows[0][0])

