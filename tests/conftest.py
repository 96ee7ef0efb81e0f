"""Shared test fixtures."""

import pytest

from task_breakdown.config import PROVIDERS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Run every test without provider keys or breakdown settings from the host."""
    for provider in PROVIDERS.values():
        monkeypatch.delenv(provider.api_key_env, raising=False)
    monkeypatch.delenv("TASK_BREAKDOWN_TEMPERATURE", raising=False)
    monkeypatch.delenv("TASK_BREAKDOWN_TIMEOUT", raising=False)
    monkeypatch.delenv("OLLAMA_BASE_URL", raising=False)
