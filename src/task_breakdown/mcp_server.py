#!/usr/bin/env python3
"""
MCP Server that exposes the task breakdown agent as a tool.

Run with: python -m task_breakdown.mcp_server
"""

import json
import logging
import sys

from task_breakdown.handler import handle_task_breakdown

logger = logging.getLogger(__name__)


def list_tools() -> dict:
    """Return available tools."""
    return {
        "tools": [
            {
                "name": "break_down_task",
                "description": "Break a complex prompt down into 1-5 smaller, actionable subtasks. Uses the given model when it is available and falls back to a rule-based breakdown otherwise.",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "message": {
                            "type": "string",
                            "description": "The prompt to break down"
                        },
                        "model": {
                            "type": "string",
                            "description": "Model name (e.g. gpt-4o)"
                        },
                        "provider": {
                            "type": "string",
                            "description": "Provider name (e.g. OpenAI, Groq, Ollama)"
                        },
                        "api_keys": {
                            "type": "object",
                            "description": "API keys keyed by provider name",
                            "additionalProperties": {"type": "string"}
                        }
                    },
                    "required": ["message", "model", "provider"]
                }
            }
        ]
    }


def call_tool(name: str, arguments: dict) -> dict:
    """Execute a tool call."""
    if name == "break_down_task":
        return break_down_task(arguments)
    return {"error": f"Unknown tool: {name}"}


def break_down_task(args: dict) -> dict:
    """Run the breakdown agent and wrap the result as MCP tool content."""
    status, payload = handle_task_breakdown({
        "message": args.get("message"),
        "model": args.get("model"),
        "provider": args.get("provider"),
        "apiKeys": args.get("api_keys"),
    })

    if status != 200:
        return {
            "content": [{
                "type": "text",
                "text": f"Error: {payload['error']}"
            }],
            "isError": True
        }

    return {
        "content": [{
            "type": "text",
            "text": json.dumps(payload, indent=2)
        }]
    }


# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603

SERVER_INFO = {"name": "task-breakdown", "version": "0.1.0"}


def _result(req_id, result: dict) -> dict:
    return {"jsonrpc": "2.0", "id": req_id, "result": result}


def _error(req_id, code: int, message: str) -> dict:
    return {"jsonrpc": "2.0", "id": req_id, "error": {"code": code, "message": message}}


def _initialize(params: dict) -> dict:
    return {
        "protocolVersion": "2024-11-05",
        "capabilities": {"tools": {}},
        "serverInfo": SERVER_INFO,
    }


def _tools_list(params: dict) -> dict:
    return list_tools()


def _tools_call(params: dict) -> dict:
    return call_tool(params.get("name"), params.get("arguments", {}))


METHODS = {
    "initialize": _initialize,
    "tools/list": _tools_list,
    "tools/call": _tools_call,
}

# Notifications get no response
NOTIFICATIONS = {"notifications/initialized"}


def handle_request(request: dict) -> dict | None:
    """Dispatch one JSON-RPC request; None for notifications."""
    method = request.get("method", "")
    req_id = request.get("id")

    if method in NOTIFICATIONS:
        return None

    handler = METHODS.get(method)
    if handler is None:
        return _error(req_id, METHOD_NOT_FOUND, f"Unknown method: {method}")

    return _result(req_id, handler(request.get("params", {})))


def _handle_line(line: str) -> dict | None:
    try:
        request = json.loads(line)
    except json.JSONDecodeError as e:
        return _error(None, PARSE_ERROR, f"Parse error: {e}")

    try:
        return handle_request(request)
    except Exception as e:
        logger.exception("Internal error handling MCP request")
        return _error(request.get("id") if isinstance(request, dict) else None,
                      INTERNAL_ERROR, f"Internal error: {e}")


def main():
    """Serve JSON-RPC over stdio, one message per line."""
    # stdout carries the protocol, so logs go to stderr
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    for line in sys.stdin:
        line = line.strip()
        if not line:
            continue

        response = _handle_line(line)
        if response is not None:
            print(json.dumps(response), flush=True)


if __name__ == "__main__":
    main()
