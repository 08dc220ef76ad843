"""
Agent Daemon — Foreground entry point of the background policy poller.

Started detached by PidFileProcess.start, or directly via `govscan-agent`.
SIGTERM/SIGINT trigger a graceful shutdown that removes the pid file.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import Optional

from dotenv import load_dotenv

from govscan.agent.poller import AgentPoller, PolicyIngestor, TextFetcher
from govscan.agent.sources import seed_default_sources
from govscan.config import Settings
from govscan.errors import GovscanError
from govscan.store.base import Store

logger = logging.getLogger("govscan.agent")


async def run_daemon(
    config: Settings,
    store: Store,
    ingestor: PolicyIngestor,
    fetcher: TextFetcher,
    shutdown: Optional[asyncio.Event] = None,
) -> None:
    logger.info("Starting policy ingestion agent")
    shutdown = shutdown or asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, shutdown.set)
        except (NotImplementedError, RuntimeError, ValueError):
            logger.debug(f"Signal handler for {sig!r} unavailable")

    try:
        seed_default_sources(store)
    except GovscanError as e:
        logger.warning(f"Failed to seed default sources: {e}")

    poller = AgentPoller(
        store,
        fetcher,
        ingestor,
        interval_seconds=config.agent_check_interval_hours * 3600,
    )
    try:
        await poller.run(shutdown)
    finally:
        config.pid_path.unlink(missing_ok=True)


def main() -> None:
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    from govscan.llm.gateway import LLMGateway
    from govscan.policy.fetcher import DocumentFetcher
    from govscan.policy.manager import PolicyManager
    from govscan.policy.parser import PolicyParser
    from govscan.store.sqlite import SQLiteStore

    config = Settings()
    config.data_dir.mkdir(parents=True, exist_ok=True)
    store = SQLiteStore(config.db_path)
    fetcher = DocumentFetcher(config)
    manager = PolicyManager(store, PolicyParser(LLMGateway(config)), fetcher)

    asyncio.run(run_daemon(config, store, manager, fetcher))


if __name__ == "__main__":
    main()
