"""
Agent Routes — control of the policy-watching daemon and its sources.

  GET    /agent/status        → running state and check times
  POST   /agent/start         → launch the detached daemon
  POST   /agent/stop          → stop it
  GET    /agent/sources       → monitored documents
  POST   /agent/sources       → add a monitored document
  DELETE /agent/sources/{id}  → remove one
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from govscan.agent.process import PidFileProcess, get_status
from govscan.api.dependencies import get_agent_process, get_settings, get_store
from govscan.config import Settings
from govscan.errors import AgentProcessError, StoreError
from govscan.models.agent_models import AgentSource, AgentSourceCreateRequest, AgentStatus
from govscan.store.base import Store

logger = logging.getLogger("govscan.api.agent")
router = APIRouter(prefix="/agent")


@router.get("/status", response_model=AgentStatus)
async def agent_status(
    config: Settings = Depends(get_settings),
    store: Store = Depends(get_store),
    process: PidFileProcess = Depends(get_agent_process),
):
    return get_status(config, store, process)


@router.post("/start")
async def start_agent(process: PidFileProcess = Depends(get_agent_process)):
    try:
        pid = process.start()
    except AgentProcessError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return {"status": "started", "pid": pid}


@router.post("/stop")
async def stop_agent(process: PidFileProcess = Depends(get_agent_process)):
    try:
        process.stop()
    except AgentProcessError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return {"status": "stopped"}


@router.get("/sources", response_model=list[AgentSource])
async def list_sources(store: Store = Depends(get_store)):
    return store.list_agent_sources()


@router.post("/sources", response_model=AgentSource, status_code=201)
async def add_source(req: AgentSourceCreateRequest, store: Store = Depends(get_store)):
    try:
        source = store.create_agent_source(req.url, req.name or req.url)
    except StoreError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    logger.info(f"Monitoring {source.url} (source {source.id})")
    return source


@router.delete("/sources/{source_id}", status_code=204)
async def delete_source(source_id: int, store: Store = Depends(get_store)):
    try:
        store.delete_agent_source(source_id)
    except StoreError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return Response(status_code=204)
