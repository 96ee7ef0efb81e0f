"""Request handler for the task breakdown endpoint.

Transport-agnostic: takes the JSON request body and returns a status code
and a JSON-serializable payload, `{"tasks": [...]}` on success or
`{"error": "..."}` with status 500.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from task_breakdown.models import BreakdownRequest
from task_breakdown.main import run_task_breakdown

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error occurred"


class BreakdownRequestError(ValueError):
    """The request body is not a valid breakdown request."""


def parse_request(body: str | bytes | dict[str, Any]) -> BreakdownRequest:
    """Parse and validate a request body (raw JSON or already decoded)."""
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body)
        except json.JSONDecodeError as e:
            raise BreakdownRequestError(f"Request body is not valid JSON: {e}") from e

    if not isinstance(body, dict):
        raise BreakdownRequestError("Request body must be a JSON object")

    try:
        return BreakdownRequest.model_validate(body)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise BreakdownRequestError(f"Invalid breakdown request: {fields}") from e


def handle_task_breakdown(body: str | bytes | dict[str, Any]) -> tuple[int, dict[str, Any]]:
    """
    Handle one breakdown request.

    Returns:
        (200, {"tasks": [...]}) or (500, {"error": message})
    """
    try:
        request = parse_request(body)
        tasks = run_task_breakdown(
            request.message,
            request.model,
            request.provider_name,
            request.api_keys,
        )
        return 200, {"tasks": tasks}
    except Exception as e:
        logger.error("Error in task breakdown: %s", e)
        return 500, {"error": str(e) or UNKNOWN_ERROR}
