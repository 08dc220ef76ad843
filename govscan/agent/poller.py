"""
Agent Poller — Watches monitored compliance documents for changes.

Each cycle fetches every enabled source, hashes the text, and re-ingests
the document when the hash differs from the last check. A failing source
records its error and the cycle moves on to the next one.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import Optional, Protocol

from govscan.errors import GovscanError, StoreError
from govscan.models.agent_models import AgentSource
from govscan.models.rule_models import Policy
from govscan.store.base import Store

logger = logging.getLogger("govscan.agent.poller")


class TextFetcher(Protocol):
    async def fetch_url(self, url: str) -> str: ...


class PolicyIngestor(Protocol):
    async def add_from_text(self, text: str, source: str) -> Policy: ...


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class AgentPoller:
    def __init__(
        self,
        store: Store,
        fetcher: TextFetcher,
        ingestor: PolicyIngestor,
        interval_seconds: float,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.ingestor = ingestor
        self.interval_seconds = interval_seconds

    async def check_source(self, source: AgentSource) -> None:
        """Check one source. Fetch and ingestion errors propagate."""
        logger.info(f"Fetching {source.url}")
        text = await self.fetcher.fetch_url(source.url)
        digest = content_hash(text)

        if digest == source.content_hash:
            logger.info(f"No changes detected for {source.url}")
            self.store.update_agent_source_check(source.id, digest, source.linked_policy_id)
            return

        logger.info(f"Content changed for {source.url}, ingesting policy")
        if source.linked_policy_id > 0:
            try:
                self.store.delete_policy(source.linked_policy_id)
            except StoreError as e:
                logger.warning(f"Could not delete old policy {source.linked_policy_id}: {e}")

        policy = await self.ingestor.add_from_text(text, source.url)
        logger.info(f"Ingested policy '{policy.name}' (ID {policy.id}) with {policy.rule_count} rules")
        self.store.update_agent_source_check(source.id, digest, policy.id)

    async def run_checks(self, cancel: Optional[asyncio.Event] = None) -> int:
        """
        Run one cycle over all enabled sources.

        Cancellation is checked between sources. Returns how many sources
        were checked (successfully or not).
        """
        try:
            sources = self.store.list_enabled_agent_sources()
        except StoreError as e:
            logger.error(f"Error listing sources: {e}")
            return 0

        if not sources:
            logger.info("No enabled sources to check")
            return 0

        logger.info(f"Checking {len(sources)} source(s)")
        checked = 0
        for source in sources:
            if cancel is not None and cancel.is_set():
                logger.info("Check cycle cancelled")
                break
            checked += 1
            try:
                await self.check_source(source)
            except GovscanError as e:
                logger.error(f"Error checking {source.url!r}: {e}")
                self._record_error(source, str(e))
            except Exception as e:
                logger.exception(f"Unexpected error checking {source.url!r}")
                self._record_error(source, f"{type(e).__name__}: {e}")
        return checked

    def _record_error(self, source: AgentSource, message: str) -> None:
        try:
            self.store.update_agent_source_error(source.id, message)
        except StoreError as e:
            logger.error(f"Could not record error for source {source.id}: {e}")

    async def run(self, shutdown: asyncio.Event) -> None:
        """Initial cycle now, then one per interval until shutdown is set."""
        logger.info("Running initial check cycle")
        await self.run_checks(shutdown)
        logger.info(f"Scheduled checks every {self.interval_seconds:.0f} seconds")

        while not shutdown.is_set():
            try:
                await asyncio.wait_for(shutdown.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                logger.info("Starting scheduled check cycle")
                await self.run_checks(shutdown)
        logger.info("Shutting down")
