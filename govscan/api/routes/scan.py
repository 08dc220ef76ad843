"""
Scan Routes — POST /scan, GET /scan/{scan_id}

Runs the scan pipeline against a local path or GitHub URL and returns the
scan record, violations and detections. `exit_code` is 2 when a CRITICAL
violation was found, for CI callers.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from govscan.api.dependencies import get_scan_worker, get_store
from govscan.errors import GitError, ResolutionError, StoreError
from govscan.models.scan_models import ScanOptions, ScanRequest, ScanResult
from govscan.scanner.pipeline import ScanWorker
from govscan.store.base import Store

logger = logging.getLogger("govscan.api.scan")
router = APIRouter()


@router.post("/scan", response_model=ScanResult)
async def scan(req: ScanRequest, worker: ScanWorker = Depends(get_scan_worker)):
    options = ScanOptions(
        branch=req.branch,
        policy_ids=req.policy_ids,
        diff=req.diff,
        base=req.base,
    )
    try:
        return await worker.run_scan(req.target, req.scan_type, options)
    except (ResolutionError, GitError) as e:
        logger.warning(f"Scan of {req.target!r} rejected: {e}")
        detail = str(e) if e.detail is None else f"{e}: {e.detail}"
        raise HTTPException(status_code=400, detail=detail) from e


@router.get("/scan/{scan_id}", response_model=ScanResult)
async def get_scan(scan_id: int, store: Store = Depends(get_store)):
    """Stored report of an earlier scan."""
    try:
        scan_record = store.get_scan(scan_id)
    except StoreError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return ScanResult(
        scan=scan_record,
        violations=store.list_violations(scan_id),
        detections=store.list_ai_detections(scan_id),
    )
