"""
Health Check Route — GET /health
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from govscan.api.dependencies import get_settings
from govscan.config import Settings

router = APIRouter()


@router.get("/health")
async def health(config: Settings = Depends(get_settings)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "model": config.govscan_model,
        "version": "1.0.0",
        "llm_enabled": config.llm_enabled,
    }
