"""
Policies Route — policy documents and built-in presets.

  GET    /policies                → stored policies, newest first
  POST   /policies                → ingest a document from url, path or text
  DELETE /policies/{id}           → remove a policy
  GET    /policies/presets        → built-in rule packs
  POST   /policies/presets/{slug} → install a preset as a policy
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response

from govscan.api.dependencies import get_policy_manager, get_store
from govscan.errors import FetchError, IngestionError, LLMError, StoreError, UnknownPresetError
from govscan.models.rule_models import Policy, PolicyCreateRequest, PresetInfo
from govscan.policy.manager import PolicyManager
from govscan.policy.presets import install_preset, list_presets
from govscan.store.base import Store

logger = logging.getLogger("govscan.api.policies")
router = APIRouter(prefix="/policies")


@router.get("", response_model=list[Policy])
async def get_policies(store: Store = Depends(get_store)):
    return store.list_policies()


@router.post("", response_model=Policy, status_code=201)
async def add_policy(
    req: PolicyCreateRequest,
    manager: Optional[PolicyManager] = Depends(get_policy_manager),
):
    if req.source_count() != 1:
        raise HTTPException(status_code=422, detail="Provide exactly one of url, path or text")
    if manager is None:
        raise HTTPException(
            status_code=503, detail="Policy ingestion requires GROQ_API_KEY to be set"
        )
    try:
        if req.url:
            return await manager.add_from_url(req.url)
        if req.path:
            return await manager.add_from_file(req.path)
        return await manager.add_from_text(req.text or "", req.source)
    except (FetchError, IngestionError) as e:
        logger.warning(f"Policy ingestion rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e
    except OSError as e:
        raise HTTPException(status_code=400, detail=f"Cannot read {req.path}: {e}") from e
    except LLMError as e:
        logger.error(f"Policy ingestion failed: {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e


@router.delete("/{policy_id}", status_code=204)
async def delete_policy(policy_id: int, store: Store = Depends(get_store)):
    try:
        store.delete_policy(policy_id)
    except StoreError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    logger.info(f"Removed policy {policy_id}")
    return Response(status_code=204)


@router.get("/presets", response_model=list[PresetInfo])
async def get_presets():
    return [
        PresetInfo(
            slug=p.slug,
            name=p.name,
            description=p.description,
            category=p.category,
            severity=p.severity,
            regulation_type=p.regulation_type,
            rule_count=len(p.rules),
        )
        for p in list_presets()
    ]


@router.post("/presets/{slug}", response_model=Policy, status_code=201)
async def add_preset(slug: str, store: Store = Depends(get_store)):
    try:
        return install_preset(store, slug)
    except UnknownPresetError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
