"""
Tests for document fetching, policy parsing and the policy manager.
"""

import asyncio
import json

import httpx
import pytest

from govscan.core.policy_rules import extract_rules
from govscan.errors import FetchError, IngestionError
from govscan.policy.fetcher import BROWSER_HEADERS, DocumentFetcher, html_to_text
from govscan.policy.manager import PolicyManager
from govscan.policy.parser import PolicyParser, split_text
from tests.helpers import FakeLLM

HTML = """
<html><head><style>body { color: red; }</style>
<script>var tracking = "nope";</script></head>
<body><h1>Article 5</h1>
<p>Personal data shall be   processed lawfully.</p></body></html>
"""


def _chunk_response(name, *rule_ids, rtype="REGULATION"):
    return json.dumps({
        "regulation_name": name,
        "regulation_type": rtype,
        "version": "2016",
        "summary": "part",
        "rules": [
            {"rule_id": rid, "title": f"Rule {rid}", "check_type": "CODE_PATTERN", "pattern": "x"}
            for rid in rule_ids
        ],
    })


def _fetcher(handler, test_settings):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DocumentFetcher(test_settings, http_client=client)


def test_html_to_text_drops_script_and_style():
    text = html_to_text(HTML)
    assert text == "Article 5 Personal data shall be processed lawfully."


def test_fetch_url_html(test_settings):
    seen = {}

    def handler(request):
        seen["user-agent"] = request.headers["user-agent"]
        return httpx.Response(200, text=HTML, headers={"content-type": "text/html; charset=utf-8"})

    text = asyncio.run(_fetcher(handler, test_settings).fetch_url("https://example.com/gdpr"))
    assert text.startswith("Article 5")
    assert seen["user-agent"] == BROWSER_HEADERS["User-Agent"]


def test_fetch_url_plain_text_is_trimmed(test_settings):
    handler = lambda request: httpx.Response(200, text="  rules \n", headers={"content-type": "text/plain"})
    assert asyncio.run(_fetcher(handler, test_settings).fetch_url("https://example.com/a.txt")) == "rules"


def test_fetch_url_non_2xx_raises(test_settings):
    handler = lambda request: httpx.Response(404, text="missing")
    with pytest.raises(FetchError):
        asyncio.run(_fetcher(handler, test_settings).fetch_url("https://example.com/gone"))


def test_fetch_url_caps_body(test_settings):
    capped = test_settings.model_copy(update={"fetch_max_bytes": 10})
    handler = lambda request: httpx.Response(200, text="0123456789ABCDEF", headers={"content-type": "text/plain"})
    assert asyncio.run(_fetcher(handler, capped).fetch_url("https://example.com/big")) == "0123456789"


def test_fetch_url_malformed_url_raises_fetch_error(test_settings):
    handler = lambda request: httpx.Response(200, text="unused")
    with pytest.raises(FetchError):
        asyncio.run(_fetcher(handler, test_settings).fetch_url("http://[::1/doc"))


def test_read_file_html(tmp_path, test_settings):
    path = tmp_path / "policy.htm"
    path.write_text(HTML)
    assert DocumentFetcher(test_settings).read_file(path).startswith("Article 5")


def test_split_text_overlaps():
    text = "".join(chr(ord("a") + i % 26) for i in range(250))
    chunks = split_text(text, chunk_size=100, overlap=20)
    assert [len(c) for c in chunks] == [100, 100, 90]
    assert chunks[0][-20:] == chunks[1][:20]
    assert chunks[-1].endswith(text[-10:])
    assert split_text("short", chunk_size=100, overlap=20) == ["short"]


def test_parse_merges_chunks_first_rule_wins():
    llm = FakeLLM(
        _chunk_response("Part", rtype="OTHER"),
        "garbage",
        _chunk_response("GDPR", "gdpr-1", "GDPR-2"),
        _chunk_response("GDPR", " GDPR-1 ", "GDPR-3"),
    )
    parser = PolicyParser(llm, chunk_size=100, overlap=10)
    parsed = asyncio.run(parser.parse("x" * 300))
    assert len(llm.prompts) == 4
    assert [r.rule_id for r in parsed.rules] == ["gdpr-1", "GDPR-2", "GDPR-3"]
    assert parsed.regulation_name == "GDPR"
    assert parsed.regulation_type == "REGULATION"
    assert parsed.summary == "Aggregated from 3 chunks, 3 unique rules."


def test_parse_with_no_successful_chunk_raises():
    with pytest.raises(IngestionError):
        asyncio.run(PolicyParser(FakeLLM("nope")).parse("document"))


def test_manager_add_from_text_stores_policy(store, test_settings):
    manager = PolicyManager(
        store, PolicyParser(FakeLLM(_chunk_response("GDPR", "G-1", "G-2"))), DocumentFetcher(test_settings)
    )
    policy = asyncio.run(manager.add_from_text("Article 5 ...", "https://gdpr-info.eu/"))
    assert policy.id > 0
    assert policy.name == "GDPR"
    assert policy.rule_count == 2
    assert policy.category == "COMPLIANCE"
    assert policy.severity == "MEDIUM"
    assert policy.source_url == "https://gdpr-info.eu/"
    assert [r.rule_id for r in extract_rules([policy])] == ["G-1", "G-2"]
    assert manager.list() == [policy]

    manager.remove(policy.id)
    assert store.list_policies() == []


def test_manager_rejects_empty_document(store, test_settings):
    llm = FakeLLM(_chunk_response("X", "A"))
    manager = PolicyManager(store, PolicyParser(llm), DocumentFetcher(test_settings))
    with pytest.raises(IngestionError):
        asyncio.run(manager.add_from_text("   \n", "https://example.com"))
    assert llm.prompts == []


def test_manager_add_from_url(store, test_settings):
    handler = lambda request: httpx.Response(200, text=HTML, headers={"content-type": "text/html"})
    llm = FakeLLM(_chunk_response("GDPR", "G-1"))
    manager = PolicyManager(store, PolicyParser(llm), _fetcher(handler, test_settings))

    policy = asyncio.run(manager.add_from_url("https://gdpr-info.eu/art-5"))

    assert policy.source_url == "https://gdpr-info.eu/art-5"
    assert policy.rule_count == 1
    assert "Personal data shall be processed lawfully." in llm.prompts[0]


def test_manager_add_from_file(store, test_settings, tmp_path):
    path = tmp_path / "policy.txt"
    path.write_text("Keys must be rotated every 90 days.\n")
    llm = FakeLLM(_chunk_response("Key Policy", "K-1", "K-2"))
    manager = PolicyManager(store, PolicyParser(llm), DocumentFetcher(test_settings))

    policy = asyncio.run(manager.add_from_file(path))

    assert policy.name == "Key Policy"
    assert policy.source_url == str(path)
    assert "rotated every 90 days" in llm.prompts[0]
