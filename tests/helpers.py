"""
Test helpers: fake collaborators and fixture builders.
"""

import json
from pathlib import Path

from govscan.models.rule_models import Policy


class FakeLLM:
    """LLMClient stand-in returning canned responses in order; the last one repeats."""

    def __init__(self, *responses, error=None):
        self.responses = list(responses)
        self.error = error
        self.prompts = []

    async def generate_content(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if not self.responses:
            return ""
        if len(self.responses) == 1:
            return self.responses[0]
        return self.responses.pop(0)


def write_tree(root: Path, files: dict) -> Path:
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
    return root


def make_policy(rules, name="Test Policy", policy_id=0) -> Policy:
    return Policy(
        id=policy_id,
        name=name,
        rules_json=json.dumps({"rules": rules}),
        rule_count=len(rules),
    )
