"""Breakdown agent: model-backed prompt breakdown with a rule-based fallback."""

from .graph import create_breakdown_graph, compile_breakdown_graph
from .fallback import decompose, MAX_TASKS
from .nodes import (
    # Node functions (for direct testing)
    resolver_node,
    llm_node,
    fallback_node,
    route_after_resolver,
    route_after_llm,
)
from .prompts import SYSTEM_PROMPT

__all__ = [
    # Main API
    "create_breakdown_graph",
    "compile_breakdown_graph",
    "decompose",
    "MAX_TASKS",
    # Node functions
    "resolver_node",
    "llm_node",
    "fallback_node",
    "route_after_resolver",
    "route_after_llm",
    # Prompts
    "SYSTEM_PROMPT",
]
