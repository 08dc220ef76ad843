"""
Tests for the agent poller, default sources, process management and status.
"""

import asyncio
import os
from datetime import timedelta

import httpx
import pytest

from govscan.agent.daemon import run_daemon
from govscan.agent.poller import AgentPoller, content_hash
from govscan.agent.process import PidFileProcess, get_status
from govscan.agent.sources import DEFAULT_SOURCES, seed_default_sources
from govscan.errors import AgentProcessError, FetchError
from govscan.models.rule_models import Policy
from govscan.policy.fetcher import DocumentFetcher


class FakeFetcher:
    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    async def fetch_url(self, url):
        self.calls.append(url)
        page = self.pages[url]
        if isinstance(page, Exception):
            raise page
        return page


class FakeIngestor:
    def __init__(self, store):
        self.store = store
        self.sources = []

    async def add_from_text(self, text, source):
        self.sources.append(source)
        return self.store.create_policy(Policy(name=f"Policy for {source}", source_url=source, rule_count=1))


class FakeProcess:
    def __init__(self, pid=None):
        self.pid = pid

    def start(self):
        return 1

    def stop(self):
        pass

    def probe(self):
        return self.pid


def _poller(store, pages, interval=3600):
    fetcher = FakeFetcher(pages)
    ingestor = FakeIngestor(store)
    return AgentPoller(store, fetcher, ingestor, interval_seconds=interval), fetcher, ingestor


def test_identical_content_does_not_create_second_policy(store):
    source = store.create_agent_source("https://example.com/a", "A")
    poller, _, ingestor = _poller(store, {source.url: "same text"})

    asyncio.run(poller.run_checks())
    first = store.list_agent_sources()[0]
    asyncio.run(poller.run_checks())
    second = store.list_agent_sources()[0]

    assert len(store.list_policies()) == 1
    assert ingestor.sources == [source.url]
    assert second.content_hash == first.content_hash == content_hash("same text")
    assert second.linked_policy_id == first.linked_policy_id
    assert second.last_check_at >= first.last_check_at


def test_changed_content_replaces_linked_policy(store):
    source = store.create_agent_source("https://example.com/a", "A")
    poller, fetcher, _ = _poller(store, {source.url: "v1"})
    asyncio.run(poller.run_checks())
    old_policy_id = store.list_agent_sources()[0].linked_policy_id

    fetcher.pages[source.url] = "v2"
    asyncio.run(poller.run_checks())

    policies = store.list_policies()
    assert len(policies) == 1
    assert policies[0].id != old_policy_id
    assert store.list_agent_sources()[0].linked_policy_id == policies[0].id


def test_failing_source_recorded_and_cycle_continues(store):
    bad = store.create_agent_source("https://bad.example.com", "Bad")
    good = store.create_agent_source("https://good.example.com", "Good")
    poller, fetcher, _ = _poller(store, {
        bad.url: FetchError("GET https://bad.example.com returned HTTP 500"),
        good.url: "fine",
    })

    assert asyncio.run(poller.run_checks()) == 2
    sources = {s.url: s for s in store.list_agent_sources()}
    assert "HTTP 500" in sources[bad.url].last_error
    assert sources[bad.url].last_check_at is not None
    assert sources[good.url].last_error == ""
    assert sources[good.url].linked_policy_id > 0
    assert fetcher.calls == [bad.url, good.url]


def test_malformed_url_recorded_and_cycle_continues(store, test_settings):
    bad = store.create_agent_source("http://[::1/doc", "Bad")
    good = store.create_agent_source("https://good.example/doc", "Good")
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, text="rules", headers={"content-type": "text/plain"})
    )
    fetcher = DocumentFetcher(test_settings, http_client=httpx.AsyncClient(transport=transport))
    poller = AgentPoller(store, fetcher, FakeIngestor(store), interval_seconds=3600)

    assert asyncio.run(poller.run_checks()) == 2
    sources = {s.id: s for s in store.list_agent_sources()}
    assert sources[bad.id].last_error
    assert sources[good.id].last_error == ""
    assert sources[good.id].linked_policy_id > 0


def test_unexpected_ingestion_error_recorded(store):
    source = store.create_agent_source("https://example.com/a", "A")
    poller, _, ingestor = _poller(store, {source.url: "text"})

    async def broken(text, src):
        raise ValueError("unexpected shape")

    ingestor.add_from_text = broken
    assert asyncio.run(poller.run_checks()) == 1
    assert store.list_agent_sources()[0].last_error == "ValueError: unexpected shape"


def test_success_clears_previous_error(store):
    source = store.create_agent_source("https://example.com/a", "A")
    store.update_agent_source_error(source.id, "boom")
    poller, _, _ = _poller(store, {source.url: "text"})
    asyncio.run(poller.run_checks())
    assert store.list_agent_sources()[0].last_error == ""


def test_disabled_sources_skipped(store):
    source = store.create_agent_source("https://example.com/a", "A")
    store._sources[source.id] = store._sources[source.id].model_copy(update={"enabled": False})
    poller, fetcher, _ = _poller(store, {})
    assert asyncio.run(poller.run_checks()) == 0
    assert fetcher.calls == []


def test_cancellation_checked_between_sources(store):
    store.create_agent_source("https://example.com/a", "A")
    store.create_agent_source("https://example.com/b", "B")
    cancel = asyncio.Event()
    poller, fetcher, _ = _poller(store, {"https://example.com/a": "a", "https://example.com/b": "b"})

    async def fetch_then_cancel(url):
        cancel.set()
        return "a"

    fetcher.fetch_url = fetch_then_cancel
    assert asyncio.run(poller.run_checks(cancel)) == 1


def test_run_does_initial_cycle_and_stops_on_shutdown(store):
    source = store.create_agent_source("https://example.com/a", "A")
    poller, fetcher, _ = _poller(store, {source.url: "text"}, interval=0.01)

    async def scenario():
        shutdown = asyncio.Event()
        task = asyncio.create_task(poller.run(shutdown))
        await asyncio.sleep(0.05)
        shutdown.set()
        await asyncio.wait_for(task, timeout=1)

    asyncio.run(scenario())
    assert len(fetcher.calls) >= 2
    assert len(store.list_policies()) == 1


def test_seed_default_sources_only_when_empty(store):
    assert seed_default_sources(store) == len(DEFAULT_SOURCES)
    assert seed_default_sources(store) == 0
    names = [s.name for s in store.list_agent_sources()]
    assert names == ["OWASP Top 10", "GDPR", "PCI DSS", "EU AI Act", "NIST 800-53"]


def test_run_daemon_seeds_and_removes_pid_file(store, test_settings):
    test_settings.data_dir.mkdir(parents=True)
    test_settings.pid_path.write_text(str(os.getpid()))
    fetcher = FakeFetcher({url: "doc" for url, _ in DEFAULT_SOURCES})

    async def scenario():
        shutdown = asyncio.Event()
        shutdown.set()
        await run_daemon(test_settings, store, FakeIngestor(store), fetcher, shutdown)

    asyncio.run(scenario())
    assert store.agent_source_count() == len(DEFAULT_SOURCES)
    assert not test_settings.pid_path.exists()


def test_liveness_check_live_and_stale_pid(tmp_path):
    process = PidFileProcess(tmp_path / "agent.pid", tmp_path / "agent.log")
    assert process.probe() is None

    process.pid_path.write_text(str(os.getpid()))
    assert process.probe() == os.getpid()

    process.pid_path.write_text("999999999")
    assert process.probe() is None
    assert not process.pid_path.exists()


def test_stop_when_not_running_raises(tmp_path):
    process = PidFileProcess(tmp_path / "agent.pid", tmp_path / "agent.log")
    with pytest.raises(AgentProcessError):
        process.stop()


@pytest.mark.skipif(os.name != "posix", reason="POSIX process management")
def test_start_and_stop_real_process(tmp_path):
    import sys

    process = PidFileProcess(
        tmp_path / "agent.pid",
        tmp_path / "agent.log",
        command=[sys.executable, "-c", "import time; time.sleep(30)"],
    )
    pid = process.start()
    try:
        assert process.probe() == pid
        with pytest.raises(AgentProcessError):
            process.start()
    finally:
        process.stop()
    assert not process.pid_path.exists()


def test_get_status_aggregates_sources(store, test_settings):
    a = store.create_agent_source("https://example.com/a", "A")
    b = store.create_agent_source("https://example.com/b", "B")
    store.create_agent_source("https://example.com/c", "C")
    store.update_agent_source_check(a.id, "h", 0)
    store.update_agent_source_error(b.id, "boom")

    status = get_status(test_settings, store, FakeProcess(pid=4242))
    assert status.running is True
    assert status.pid == 4242
    assert status.interval_hours == 24
    assert status.source_count == 3
    assert status.error_count == 1
    latest = store.list_agent_sources()[1].last_check_at
    assert status.last_check_at == latest
    assert status.next_check_at == latest + timedelta(hours=24)


def test_get_status_without_checks(store, test_settings):
    status = get_status(test_settings, store, FakeProcess())
    assert status.running is False
    assert status.last_check_at is None
    assert status.next_check_at is None
