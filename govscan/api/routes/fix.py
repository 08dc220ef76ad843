"""
Fix Route — POST /fix/apply

Applies LLM-authored fix text to original file content. Deterministic; no
LLM call is made here.
"""

from __future__ import annotations

from fastapi import APIRouter

from govscan.engine.fixer import Fixer
from govscan.models.scan_models import FixApplyRequest, FixApplyResponse

router = APIRouter()


@router.post("/fix/apply", response_model=FixApplyResponse)
async def apply_fix(req: FixApplyRequest):
    content, applied = Fixer.apply(req.original, req.fix_text)
    return FixApplyResponse(content=content, applied=applied)
