"""
Policy Manager — Policy lifecycle: ingest from text/URL/file, list, remove.
"""

from __future__ import annotations

import logging
from pathlib import Path

from govscan.errors import IngestionError
from govscan.models.rule_models import Policy, PolicyCategory, Severity
from govscan.policy.fetcher import DocumentFetcher
from govscan.policy.parser import PolicyParser
from govscan.store.base import Store

logger = logging.getLogger("govscan.policy.manager")


class PolicyManager:
    """
    Turns regulation documents into stored policies.

    Also serves as the ingestion collaborator of the agent poller
    (add_from_text keyed by source URL).
    """

    def __init__(self, store: Store, parser: PolicyParser, fetcher: DocumentFetcher) -> None:
        self.store = store
        self.parser = parser
        self.fetcher = fetcher

    async def add_from_text(self, text: str, source: str) -> Policy:
        if not text.strip():
            raise IngestionError(f"Document at {source} is empty")

        parsed = await self.parser.parse(text)
        policy = self.store.create_policy(Policy(
            name=parsed.regulation_name or source,
            description=parsed.summary,
            category=PolicyCategory.COMPLIANCE,
            severity=Severity.MEDIUM,
            source_url=source,
            rules_json=parsed.rules_json(),
            regulation_type=parsed.regulation_type or "OTHER",
            rule_count=len(parsed.rules),
        ))
        logger.info(f"Stored policy {policy.id} '{policy.name}' ({policy.rule_count} rules) from {source}")
        return policy

    async def add_from_url(self, url: str) -> Policy:
        text = await self.fetcher.fetch_url(url)
        return await self.add_from_text(text, url)

    async def add_from_file(self, path: str | Path) -> Policy:
        text = self.fetcher.read_file(path)
        return await self.add_from_text(text, str(path))

    def list(self) -> list[Policy]:
        return self.store.list_policies()

    def remove(self, policy_id: int) -> None:
        self.store.delete_policy(policy_id)
        logger.info(f"Removed policy {policy_id}")
