"""
Audit Route — GET /audit

Most recent audit entries from the JSON-lines log, oldest first.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from govscan.api.dependencies import get_audit_logger
from govscan.audit.logger import AuditLogger

router = APIRouter()


@router.get("/audit")
async def audit_log(
    count: int = Query(default=50, ge=1, le=1000),
    audit_logger: AuditLogger = Depends(get_audit_logger),
):
    return {"entries": audit_logger.read_recent(count)}
