"""
Tests for the LLM gateway and response unwrapping.
"""

import asyncio
import json
from types import SimpleNamespace

import pytest

from govscan.config import Settings
from govscan.errors import LLMError
from govscan.llm.gateway import LLMGateway, build_llm_client
from govscan.llm.prompts import build_compliance_prompt
from govscan.llm.response import extract_json, parse_json_response
from tests.helpers import make_policy


class FakeCompletions:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=outcome))],
            usage=SimpleNamespace(total_tokens=42),
        )


def _gateway(completions, retries=1):
    config = Settings(_env_file=None, groq_api_key="", llm_max_retries=retries)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return LLMGateway(config, client=client)


def test_generate_content_returns_text_and_counts_tokens():
    completions = FakeCompletions('{"ok": true}')
    gateway = _gateway(completions)

    assert asyncio.run(gateway.generate_content("hello")) == '{"ok": true}'
    assert gateway.get_tokens_used() == 42
    assert completions.calls[0]["messages"] == [{"role": "user", "content": "hello"}]


def test_generate_content_raises_after_retries():
    gateway = _gateway(FakeCompletions(RuntimeError("boom")))
    with pytest.raises(LLMError):
        asyncio.run(gateway.generate_content("hello"))


def test_no_api_key_means_no_client():
    assert build_llm_client(Settings(_env_file=None, groq_api_key="  ")) is None
    with pytest.raises(LLMError):
        LLMGateway(Settings(_env_file=None, groq_api_key=""))


@pytest.mark.parametrize("text", [
    '```json\n{"a": 1}\n```',
    '```\n{"a": 1}\n```',
    'Here you go:\n```json\n{"a": 1}\n```\nThanks',
    '```json\n{"a": 1}',
    '  {"a": 1}  ',
])
def test_extract_json_unwraps_fences(text):
    assert json.loads(extract_json(text)) == {"a": 1}


def test_parse_json_response_rejects_prose():
    with pytest.raises(json.JSONDecodeError):
        parse_json_response("no json here")


def test_compliance_prompt_lists_rules_with_policy_name():
    policy = make_policy([{"rule_id": "GDPR-1", "title": "Consent"}], name="GDPR")
    prompt = build_compliance_prompt([policy], {"a.py": "print(1)"}, 15, 4000)
    assert '"GDPR-1"' in prompt
    assert '"policy_name": "GDPR"' in prompt
    assert '"a.py"' in prompt
