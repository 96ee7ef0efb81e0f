"""Output schema for the model's breakdown response.

The model is asked for a bare JSON array, so the response is validated
against a list adapter rather than a wrapping object.
"""

from pydantic import BaseModel, Field, TypeAdapter


class TaskOutput(BaseModel):
    """One subtask as returned by the model."""
    task: str = Field(description="The subtask description")
    subtasks: list[str] | None = Field(default=None, description="Optional nested steps")


TaskListOutput = TypeAdapter(list[TaskOutput])
