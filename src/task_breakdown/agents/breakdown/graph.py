"""LangGraph definition for the breakdown agent."""

from langgraph.graph import StateGraph, START, END

from task_breakdown.models import BreakdownState
from .nodes import (
    resolver_node,
    llm_node,
    fallback_node,
    route_after_resolver,
    route_after_llm,
)


def create_breakdown_graph() -> StateGraph:
    """
    Create the breakdown agent graph.

    Graph structure:
        START -> resolver -> llm -> END
                    |         |
                    v         v
                    fallback  -> END
    """
    graph = StateGraph(BreakdownState)

    # Add nodes
    graph.add_node("resolver", resolver_node)
    graph.add_node("llm", llm_node)
    graph.add_node("fallback", fallback_node)

    # Add edges
    graph.add_edge(START, "resolver")

    graph.add_conditional_edges(
        "resolver",
        route_after_resolver,
        {
            "llm": "llm",
            "fallback": "fallback",
        },
    )
    graph.add_conditional_edges(
        "llm",
        route_after_llm,
        {
            "fallback": "fallback",
            "done": END,
        },
    )

    graph.add_edge("fallback", END)

    return graph


def compile_breakdown_graph():
    """Compile the graph for execution."""
    graph = create_breakdown_graph()
    return graph.compile()
