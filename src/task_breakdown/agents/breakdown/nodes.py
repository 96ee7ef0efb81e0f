"""Node implementations for the breakdown agent graph."""

import json
import logging
from typing import Literal

from langchain_core.messages import SystemMessage, HumanMessage
from langchain_openai import ChatOpenAI

from task_breakdown.config import (
    MAX_TOKENS,
    ModelInfo,
    ProviderConfig,
    find_model,
    get_provider,
    get_temperature,
    get_timeout,
    resolve_api_key,
    resolve_base_url,
)
from task_breakdown.models import BreakdownState
from .fallback import decompose
from .prompts import SYSTEM_PROMPT
from .validation import InvalidTaskResponse, message_text, parse_task_response

logger = logging.getLogger(__name__)

# Reasons recorded in BreakdownState.fallback_reason
PROVIDER_NOT_FOUND = "provider_not_found"
MODEL_NOT_FOUND = "model_not_found"
MISSING_API_KEY = "missing_api_key"
LLM_ERROR = "llm_error"
UNPARSABLE_RESPONSE = "unparsable_response"
INVALID_RESPONSE = "invalid_response"


def _get_llm(provider: ProviderConfig, model: ModelInfo, api_key: str | None, max_tokens: int):
    """Get the chat model for a resolved provider/model pair."""
    return ChatOpenAI(
        model=model.name,
        api_key=api_key or "not-needed",
        base_url=resolve_base_url(provider),
        temperature=get_temperature(),
        max_tokens=max_tokens,
        timeout=get_timeout(),
    )


def resolver_node(state: BreakdownState) -> dict:
    """
    Resolve the requested provider and model.

    Any resolution failure is recorded as a fallback reason rather than
    raised, so the graph can route to the rule-based breakdown.
    """
    provider = get_provider(state.provider)
    if provider is None:
        logger.warning("Provider %s not found, falling back to rule-based breakdown", state.provider)
        return {"fallback_reason": PROVIDER_NOT_FOUND}

    model = find_model(provider, state.model)
    if model is None:
        logger.warning("Model %s not found, falling back to rule-based breakdown", state.model)
        return {"fallback_reason": MODEL_NOT_FOUND}

    if provider.requires_api_key and not resolve_api_key(provider, state.api_keys):
        logger.warning("No API key for %s, falling back to rule-based breakdown", provider.name)
        return {"fallback_reason": MISSING_API_KEY}

    return {"max_tokens": model.max_tokens or MAX_TOKENS}


def llm_node(state: BreakdownState) -> dict:
    """Ask the model for a JSON task list and validate it."""
    provider = get_provider(state.provider)
    model = find_model(provider, state.model)
    max_tokens = state.max_tokens or MAX_TOKENS

    logger.info("Breaking down task with Provider: %s, Model: %s", provider.name, model.name)

    messages = [
        SystemMessage(content=SYSTEM_PROMPT),
        HumanMessage(content=state.prompt),
    ]

    try:
        llm = _get_llm(provider, model, resolve_api_key(provider, state.api_keys), max_tokens)
        response = llm.invoke(messages)
    except Exception as e:
        logger.error("Error using LLM for task breakdown: %s", e)
        return {"fallback_reason": LLM_ERROR}

    logger.info("Task breakdown generated")

    try:
        tasks = parse_task_response(message_text(response.content))
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse LLM response, falling back to rule-based breakdown: %s", e)
        return {"fallback_reason": UNPARSABLE_RESPONSE}
    except InvalidTaskResponse as e:
        logger.warning("Invalid task format returned from LLM, falling back to rule-based breakdown: %s", e)
        return {"fallback_reason": INVALID_RESPONSE}
    except (ValueError, RecursionError) as e:
        # e.g. json.loads on arrays nested deeper than the recursion limit
        logger.warning("Failed to parse LLM response, falling back to rule-based breakdown: %s", e)
        return {"fallback_reason": UNPARSABLE_RESPONSE}

    return {"tasks": tasks}


def fallback_node(state: BreakdownState) -> dict:
    """Rule-based breakdown of the original prompt."""
    tasks = decompose(state.prompt)
    logger.debug("Rule-based breakdown (%s): %d tasks", state.fallback_reason, len(tasks))
    return {"tasks": tasks}


def route_after_resolver(state: BreakdownState) -> Literal["llm", "fallback"]:
    """Routing function: call the model only if it resolved."""
    if state.fallback_reason:
        return "fallback"
    return "llm"


def route_after_llm(state: BreakdownState) -> Literal["fallback", "done"]:
    """Routing function: finish if the model produced tasks."""
    if state.fallback_reason or not state.tasks:
        return "fallback"
    return "done"
