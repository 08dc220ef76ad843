"""
Test fixtures shared across all govscan tests.
"""

import pytest

from govscan.config import Settings
from govscan.store.memory import InMemoryStore
from tests.helpers import write_tree


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        groq_api_key="",
        data_dir=tmp_path / "data",
        audit_log_path=str(tmp_path / "audit.jsonl"),
        agent_check_interval_hours=24,
    )


@pytest.fixture
def ml_project(tmp_path):
    """A small project using PyTorch, with a saved model file."""
    return write_tree(tmp_path / "project", {
        "requirements.txt": "numpy==1.26.0\ntorch==2.1.0\n",
        "src/train.py": "import torch\n\nmodel = torch.nn.Linear(2, 2)\n",
        "src/app.py": "API_KEY = 'sk-live-123'\nprint('hello')\n",
        "models/classifier.pt": b"\x00\x01weights",
        "node_modules/lib/index.js": "import torch from 'x'\n",
        "README.md": "# Project\n",
    })
