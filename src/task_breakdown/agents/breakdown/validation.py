"""Validation of model responses for the breakdown agent.

A response is usable only if it contains a non-empty JSON array of objects,
each carrying a string `task`. Anything else is rejected so the agent can
switch to the rule-based breakdown.
"""

import json
import re
from typing import Any

from pydantic import ValidationError

from task_breakdown.models import TaskDescriptor
from .schemas import TaskListOutput

# First "[{" through last "}]", across newlines
_JSON_ARRAY = re.compile(r"\[\s*\{.*\}\s*\]", re.DOTALL)


class InvalidTaskResponse(ValueError):
    """The model's response is not a usable task list."""


def message_text(content: Any) -> str:
    """
    Flatten a chat message's content into plain text.

    Content is either a string or a list of content blocks (strings or
    dicts with a "text" key), depending on the provider.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and isinstance(block.get("text"), str):
                parts.append(block["text"])
        return "".join(parts)
    return str(content)


def extract_json_array(text: str) -> str:
    """
    Return the JSON array embedded in `text`.

    Models often wrap the array in prose or markdown fences; when no array
    is found the whole text is returned for the JSON parser to reject.
    """
    match = _JSON_ARRAY.search(text)
    return match.group(0) if match else text


def parse_task_response(text: str) -> list[TaskDescriptor]:
    """
    Parse a model response into task descriptors.

    Raises:
        json.JSONDecodeError: the extracted text is not JSON
        InvalidTaskResponse: the JSON is not a non-empty list of task objects
    """
    data = json.loads(extract_json_array(text))

    if not isinstance(data, list) or not data:
        raise InvalidTaskResponse("Expected a non-empty JSON array of tasks")

    try:
        items = TaskListOutput.validate_python(data)
    except ValidationError as e:
        raise InvalidTaskResponse(f"Invalid task format: {e.error_count()} error(s)") from e

    return [TaskDescriptor(task=item.task, subtasks=item.subtasks) for item in items]
