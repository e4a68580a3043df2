"""
Root conftest.py for the dashboard backend tests.

Shared fixtures: sample datasets, a fresh selection hub, an isolated
data-source folder and a stub chat model standing in for the LLM.
"""

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Ensure the backend source root is in the path
backend_root = Path(__file__).parent.parent / "backend"
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from config import settings
from interaction.selection_hub import SelectionHub
from session_store import SessionStore
from utils.llm_factory import LLMFactory


# ============================================================================
# Data fixtures
# ============================================================================


@pytest.fixture
def sales_rows():
    """The three-row region/sales example."""
    return [
        {"region": "East", "sales": 10},
        {"region": "West", "sales": 20},
        {"region": "East", "sales": 5},
    ]


@pytest.fixture
def category_rows():
    """Rows with a region -> category hierarchy for drill-down."""
    return [
        {"region": "East", "category": "Hardware", "sales": 10},
        {"region": "West", "category": "Software", "sales": 20},
        {"region": "East", "category": "Software", "sales": 5},
        {"region": "East", "category": "Hardware", "sales": 7},
        {"region": "North", "category": "Services", "sales": 3},
    ]


@pytest.fixture
def hub():
    return SelectionHub()


# ============================================================================
# Environment fixtures
# ============================================================================


@pytest.fixture
def data_root(tmp_path, monkeypatch):
    """Point uploads at a temporary folder."""
    root = tmp_path / "sources"
    monkeypatch.setattr(settings, "DATA_ROOT", root)
    return root


@pytest.fixture(autouse=True)
def clean_state():
    SessionStore.reset()
    LLMFactory.reset()
    yield
    SessionStore.reset()
    LLMFactory.reset()


class FakeChatModel:
    """
    Stands in for a LangChain chat model; replies with queued contents.
    A queued exception is raised instead, like a provider outage.
    """

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def invoke(self, messages):
        self.calls.append(messages)
        content = self.replies.pop(0) if self.replies else ""
        if isinstance(content, Exception):
            raise content
        return SimpleNamespace(content=content)


@pytest.fixture
def fake_llm(monkeypatch):
    """Install a FakeChatModel; call it with the replies to queue."""

    def install(*replies):
        model = FakeChatModel(replies)
        monkeypatch.setattr(LLMFactory, "get_llm", classmethod(lambda cls, temperature=0: model))
        return model

    return install


@pytest.fixture
def no_llm(monkeypatch):
    """Simulate a deployment without any LLM key."""

    def fail(cls, temperature=0):
        raise RuntimeError("No LLM API keys found.")

    monkeypatch.setattr(LLMFactory, "get_llm", classmethod(fail))
