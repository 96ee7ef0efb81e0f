"""Tests for the breakdown agent graph and its nodes.

The chat model is replaced by patching `_get_llm`, so no network calls
are made.
"""

import pytest
from unittest.mock import Mock, patch

from langchain_core.messages import AIMessage, SystemMessage, HumanMessage

from task_breakdown.config import PROVIDERS, ModelInfo
from task_breakdown.models import BreakdownState, TaskDescriptor, descriptors_to_dicts
from task_breakdown.main import run_task_breakdown
from task_breakdown.agents.breakdown import (
    SYSTEM_PROMPT,
    create_breakdown_graph,
    decompose,
    resolver_node,
    llm_node,
    fallback_node,
    route_after_resolver,
    route_after_llm,
)
from task_breakdown.agents.breakdown.nodes import (
    _get_llm,
    PROVIDER_NOT_FOUND,
    MODEL_NOT_FOUND,
    MISSING_API_KEY,
    LLM_ERROR,
    UNPARSABLE_RESPONSE,
    INVALID_RESPONSE,
)

PROMPT = "First, design the schema. Then, write the code. Finally, test it."
OPENAI_KEYS = {"OpenAI": "sk-test"}


def _mock_llm(content=None, side_effect=None) -> Mock:
    llm = Mock()
    if side_effect is not None:
        llm.invoke.side_effect = side_effect
    else:
        llm.invoke.return_value = AIMessage(content=content)
    return llm


def _fallback_result(prompt: str = PROMPT) -> list[dict]:
    return descriptors_to_dicts(decompose(prompt))


class TestResolverNode:
    """Provider/model resolution."""

    def test_resolves_known_model(self):
        state = BreakdownState(prompt=PROMPT, model="gpt-4o", provider="OpenAI", api_keys=OPENAI_KEYS)
        result = resolver_node(state)
        assert result == {"max_tokens": 16384}

    def test_unknown_provider(self):
        state = BreakdownState(prompt=PROMPT, model="gpt-4o", provider="Nope")
        assert resolver_node(state) == {"fallback_reason": PROVIDER_NOT_FOUND}

    def test_unknown_model(self):
        state = BreakdownState(prompt=PROMPT, model="gpt-0", provider="OpenAI", api_keys=OPENAI_KEYS)
        assert resolver_node(state) == {"fallback_reason": MODEL_NOT_FOUND}

    def test_missing_api_key(self):
        state = BreakdownState(prompt=PROMPT, model="gpt-4o", provider="OpenAI")
        assert resolver_node(state) == {"fallback_reason": MISSING_API_KEY}

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        state = BreakdownState(prompt=PROMPT, model="gpt-4o", provider="OpenAI")
        assert "fallback_reason" not in resolver_node(state)

    def test_keyless_provider(self):
        """Local providers resolve without any key."""
        state = BreakdownState(prompt=PROMPT, model="llama3.2", provider="Ollama")
        assert resolver_node(state) == {"max_tokens": 8000}


class TestLlmNode:
    """Model invocation and response handling."""

    def _state(self) -> BreakdownState:
        return BreakdownState(
            prompt=PROMPT,
            model="gpt-4o",
            provider="OpenAI",
            api_keys=OPENAI_KEYS,
            max_tokens=16384,
        )

    def test_sends_system_and_user_messages(self):
        llm = _mock_llm('[{"task": "A"}, {"task": "B"}]')
        with patch("task_breakdown.agents.breakdown.nodes._get_llm", return_value=llm) as get_llm:
            result = llm_node(self._state())

        messages = llm.invoke.call_args[0][0]
        assert isinstance(messages[0], SystemMessage)
        assert messages[0].content == SYSTEM_PROMPT
        assert isinstance(messages[1], HumanMessage)
        assert messages[1].content == PROMPT

        _, _, api_key, max_tokens = get_llm.call_args[0]
        assert api_key == "sk-test"
        assert max_tokens == 16384

        assert result == {"tasks": [TaskDescriptor(task="A"), TaskDescriptor(task="B")]}

    def test_invocation_error(self):
        llm = _mock_llm(side_effect=RuntimeError("rate limited"))
        with patch("task_breakdown.agents.breakdown.nodes._get_llm", return_value=llm):
            assert llm_node(self._state()) == {"fallback_reason": LLM_ERROR}

    def test_unparsable_response(self):
        llm = _mock_llm("Sure! Step one is to design the schema.")
        with patch("task_breakdown.agents.breakdown.nodes._get_llm", return_value=llm):
            assert llm_node(self._state()) == {"fallback_reason": UNPARSABLE_RESPONSE}

    def test_deeply_nested_response(self):
        """JSON nested past the recursion limit is treated as unparsable."""
        llm = _mock_llm("[" * 100000)
        with patch("task_breakdown.agents.breakdown.nodes._get_llm", return_value=llm):
            assert llm_node(self._state()) == {"fallback_reason": UNPARSABLE_RESPONSE}

    def test_invalid_response(self):
        llm = _mock_llm('[{"title": "A"}]')
        with patch("task_breakdown.agents.breakdown.nodes._get_llm", return_value=llm):
            assert llm_node(self._state()) == {"fallback_reason": INVALID_RESPONSE}


    def test_client_uses_base_url_override(self, monkeypatch):
        """The endpoint override is read when the client is built, not at import."""
        monkeypatch.setenv("OLLAMA_BASE_URL", "http://gpu-box:11434/v1")
        with patch("task_breakdown.agents.breakdown.nodes.ChatOpenAI") as chat:
            _get_llm(PROVIDERS["Ollama"], ModelInfo("llama3.2"), None, 8000)

        kwargs = chat.call_args.kwargs
        assert kwargs["base_url"] == "http://gpu-box:11434/v1"
        assert kwargs["api_key"] == "not-needed"

class TestRouting:
    """Conditional edge functions."""

    def test_route_after_resolver(self):
        assert route_after_resolver(BreakdownState(prompt="x")) == "llm"
        assert route_after_resolver(
            BreakdownState(prompt="x", fallback_reason=MODEL_NOT_FOUND)
        ) == "fallback"

    def test_route_after_llm(self):
        done = BreakdownState(prompt="x", tasks=[TaskDescriptor(task="A")])
        assert route_after_llm(done) == "done"
        assert route_after_llm(BreakdownState(prompt="x")) == "fallback"
        assert route_after_llm(
            BreakdownState(prompt="x", fallback_reason=LLM_ERROR)
        ) == "fallback"

    def test_fallback_node(self):
        result = fallback_node(BreakdownState(prompt=PROMPT, fallback_reason=LLM_ERROR))
        assert result == {"tasks": decompose(PROMPT)}


class TestBreakdownGraph:
    """End-to-end runs through the compiled graph."""

    def test_graph_nodes(self):
        graph = create_breakdown_graph()
        assert {"resolver", "llm", "fallback"} <= set(graph.nodes)

    def test_model_result_returned(self):
        llm = _mock_llm('```json\n[{"task": "Design schema"}, {"task": "Write code", "subtasks": ["models", "views"]}]\n```')
        with patch("task_breakdown.agents.breakdown.nodes._get_llm", return_value=llm):
            result = run_task_breakdown(PROMPT, "gpt-4o", "OpenAI", OPENAI_KEYS)

        assert result == [
            {"task": "Design schema"},
            {"task": "Write code", "subtasks": ["models", "views"]},
        ]

    def test_model_result_not_truncated_or_normalized(self):
        """The bound and capitalization only apply to the rule-based path."""
        items = ", ".join(f'{{"task": "step {i}"}}' for i in range(7))
        llm = _mock_llm(f"[{items}]")
        with patch("task_breakdown.agents.breakdown.nodes._get_llm", return_value=llm):
            result = run_task_breakdown(PROMPT, "gpt-4o", "OpenAI", OPENAI_KEYS)

        assert len(result) == 7
        assert result[0] == {"task": "step 0"}

    def test_provider_object(self):
        llm = _mock_llm('[{"task": "A"}]')
        with patch("task_breakdown.agents.breakdown.nodes._get_llm", return_value=llm):
            result = run_task_breakdown(PROMPT, "gpt-4o", {"name": "OpenAI"}, OPENAI_KEYS)
        assert result == [{"task": "A"}]

    @pytest.mark.parametrize("provider,model,keys", [
        ("Nope", "gpt-4o", OPENAI_KEYS),
        ("OpenAI", "gpt-0", OPENAI_KEYS),
        ("OpenAI", "gpt-4o", None),
    ])
    def test_resolution_failures_skip_model(self, provider, model, keys):
        with patch("task_breakdown.agents.breakdown.nodes._get_llm") as get_llm:
            result = run_task_breakdown(PROMPT, model, provider, keys)

        get_llm.assert_not_called()
        assert result == _fallback_result()

    @pytest.mark.parametrize("llm", [
        _mock_llm(side_effect=ConnectionError("boom")),
        _mock_llm("not json at all"),
        _mock_llm("[]"),
        _mock_llm('[{"task": 42}]'),
        _mock_llm("[" * 100000),
    ])
    def test_model_failures_fall_back(self, llm):
        with patch("task_breakdown.agents.breakdown.nodes._get_llm", return_value=llm):
            result = run_task_breakdown(PROMPT, "gpt-4o", "OpenAI", OPENAI_KEYS)

        assert result == _fallback_result()
        assert result == [
            {"task": "First, design the schema."},
            {"task": "Write the code."},
        ]

    def test_client_construction_error_falls_back(self):
        with patch(
            "task_breakdown.agents.breakdown.nodes._get_llm",
            side_effect=ValueError("bad base url"),
        ):
            result = run_task_breakdown(PROMPT, "gpt-4o", "OpenAI", OPENAI_KEYS)
        assert result == _fallback_result()

    def test_empty_prompt_never_empty_result(self):
        result = run_task_breakdown("", "gpt-4o", "Nope")
        assert result == [{"task": ""}]
