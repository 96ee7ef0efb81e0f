"""Entry point for the task breakdown agent."""

import logging
import sys

from task_breakdown.models import BreakdownState, ProviderRef, descriptors_to_dicts
from task_breakdown.agents.breakdown import compile_breakdown_graph

logger = logging.getLogger(__name__)


def run_task_breakdown(
    message: str,
    model: str,
    provider: str | dict | ProviderRef,
    api_keys: dict[str, str] | None = None,
) -> list[dict]:
    """
    Break a prompt down into subtasks.

    Args:
        message: The user's raw prompt
        model: Model name, e.g. "gpt-4o"
        provider: Provider name, or an object with a "name" field
        api_keys: Per-provider API keys, keyed by provider name

    Returns:
        List of {"task": ..., "subtasks": [...]} dicts ("subtasks" only
        when the model supplied them). Never empty.
    """
    if isinstance(provider, ProviderRef):
        provider_name = provider.name
    elif isinstance(provider, dict):
        provider_name = provider["name"]
    else:
        provider_name = provider

    logger.debug("Breaking down task with model: %s, provider: %s", model, provider_name)

    initial_state = BreakdownState(
        prompt=message,
        model=model,
        provider=provider_name,
        api_keys=api_keys or {},
    )

    app = compile_breakdown_graph()
    final_state = app.invoke(initial_state)

    return descriptors_to_dicts(final_state["tasks"])


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    prompt = " ".join(sys.argv[1:]) or (
        "Build a todo app. First, design the data model. "
        "Then, write the REST API. Finally, add a small web frontend."
    )

    result = run_task_breakdown(prompt, model="gpt-4o", provider="OpenAI")

    print("Tasks:")
    for i, task in enumerate(result, 1):
        print(f"  {i}. {task['task']}")
        for sub in task.get("subtasks", []):
            print(f"     - {sub}")
