"""
FastAPI Dependencies — Shared singletons injected via Depends().
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from govscan.agent.process import PidFileProcess
from govscan.audit.logger import AuditLogger
from govscan.config import Settings, settings
from govscan.llm.gateway import LLMGateway, build_llm_client
from govscan.policy.fetcher import DocumentFetcher
from govscan.policy.manager import PolicyManager
from govscan.policy.parser import PolicyParser
from govscan.scanner.pipeline import ScanWorker
from govscan.store.sqlite import SQLiteStore


@lru_cache
def get_settings() -> Settings:
    return settings


@lru_cache
def get_store() -> SQLiteStore:
    """Shared store singleton, backed by the database under data_dir."""
    return SQLiteStore(get_settings().db_path)


@lru_cache
def get_audit_logger() -> AuditLogger:
    """Shared audit logger singleton."""
    return AuditLogger(get_settings().audit_log_path)


@lru_cache
def get_llm_gateway() -> Optional[LLMGateway]:
    """Shared LLM gateway singleton; None when GROQ_API_KEY is unset."""
    return build_llm_client(get_settings())


@lru_cache
def get_scan_worker() -> ScanWorker:
    """Shared scan worker singleton."""
    return ScanWorker(
        get_store(),
        config=get_settings(),
        llm=get_llm_gateway(),
        audit_logger=get_audit_logger(),
    )


@lru_cache
def get_agent_process() -> PidFileProcess:
    config = get_settings()
    return PidFileProcess(config.pid_path, config.agent_log_path)


@lru_cache
def get_policy_manager() -> Optional[PolicyManager]:
    """Policy ingestion needs the LLM; None when GROQ_API_KEY is unset."""
    llm = get_llm_gateway()
    if llm is None:
        return None
    return PolicyManager(get_store(), PolicyParser(llm), DocumentFetcher(get_settings()))
