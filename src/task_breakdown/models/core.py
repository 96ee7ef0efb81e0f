"""Core Pydantic models for prompt breakdown."""

from typing import Any
from pydantic import BaseModel, Field


class TaskDescriptor(BaseModel):
    """
    A single subtask produced by a breakdown.

    The fallback heuristic only ever sets `task`; the model-backed path
    may also return nested `subtasks`.
    """
    task: str = Field(description="Short, actionable description of the subtask")
    subtasks: list[str] | None = Field(
        default=None,
        description="Optional finer-grained steps (model-backed path only)"
    )

    def to_dict(self) -> dict:
        """Render as the JSON shape consumed by callers (no null subtasks)."""
        return self.model_dump(exclude_none=True)


class ProviderRef(BaseModel):
    """Provider given as an object rather than a bare name."""
    name: str


class BreakdownRequest(BaseModel):
    """Inbound request to break a prompt down."""
    message: str = Field(description="The user's raw prompt text")
    model: str = Field(description="Model name to use for the breakdown")
    provider: str | ProviderRef = Field(description="Provider name or {name: ...}")
    api_keys: dict[str, str] | None = Field(
        default=None,
        alias="apiKeys",
        description="Per-provider API keys supplied by the client"
    )

    model_config = {"populate_by_name": True}

    @property
    def provider_name(self) -> str:
        """Provider name regardless of how it was supplied."""
        if isinstance(self.provider, ProviderRef):
            return self.provider.name
        return self.provider


class BreakdownState(BaseModel):
    """
    State that flows through the LangGraph breakdown agent.

    Inputs are set once by the caller; the resolver fills in the model
    limits and the llm/fallback nodes fill in `tasks`.
    """
    # Input
    prompt: str = Field(description="The prompt to break down")
    model: str = Field(default="", description="Requested model name")
    provider: str = Field(default="", description="Requested provider name")
    api_keys: dict[str, str] = Field(default_factory=dict)

    # Resolution
    max_tokens: int | None = Field(
        default=None,
        description="Token limit of the resolved model (None until resolved)"
    )
    fallback_reason: str | None = Field(
        default=None,
        description="Why the rule-based breakdown was used, if it was"
    )

    # Output
    tasks: list[TaskDescriptor] = Field(default_factory=list)


class TaskItem(BaseModel):
    """A task as tracked by a client session."""
    id: str
    content: str
    completed: bool = False

    def mark_completed(self) -> "TaskItem":
        return self.model_copy(update={"completed": True})


def descriptors_to_dicts(tasks: list[TaskDescriptor]) -> list[dict[str, Any]]:
    """Serialize a list of descriptors for JSON transport."""
    return [t.to_dict() for t in tasks]
