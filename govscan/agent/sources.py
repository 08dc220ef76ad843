"""
Default monitored sources — well-known compliance documents seeded on the
agent's first start.
"""

from __future__ import annotations

import logging

from govscan.store.base import Store

logger = logging.getLogger("govscan.agent.sources")

DEFAULT_SOURCES: tuple[tuple[str, str], ...] = (
    ("https://owasp.org/Top10/", "OWASP Top 10"),
    ("https://gdpr-info.eu/", "GDPR"),
    ("https://www.pcisecuritystandards.org/document_library/", "PCI DSS"),
    ("https://artificialintelligenceact.eu/the-act/", "EU AI Act"),
    ("https://csrc.nist.gov/publications/detail/sp/800-53/rev-5/final", "NIST 800-53"),
)


def seed_default_sources(store: Store) -> int:
    """Insert the default sources when none exist. Returns how many were added."""
    if store.agent_source_count() > 0:
        return 0
    for url, name in DEFAULT_SOURCES:
        store.create_agent_source(url, name)
    logger.info(f"Seeded {len(DEFAULT_SOURCES)} default agent sources")
    return len(DEFAULT_SOURCES)
