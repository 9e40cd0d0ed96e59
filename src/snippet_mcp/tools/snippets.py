from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from snippet_mcp.services.snippet_store import SnippetStore
from snippet_shared.platform_manager import create_logger

SNIPPET_NAME_PROPERTY = "snippetname"
SNIPPET_PROPERTY = "snippet"
HELLO_MESSAGE = "Hello I am MCPTool!"

logger = create_logger(logger_name="snippet-mcp")


@dataclass(frozen=True)
class ToolResult:
    """Outcome of a tool operation: an HTTP-style status code and the content text."""

    status_code: int
    content: str

    def to_body(self) -> dict[str, str]:
        return {"content": self.content}


def _load_arguments(body: Any) -> Any:
    """
    Extract the `arguments` object from a request body.

    Returns None when there is no body or no parseable arguments object. Raises if the
    body itself is not valid JSON, which callers report as a server error.
    """
    if body is None or body == b"" or body == "":
        return None
    if isinstance(body, bytes | bytearray):
        body = body.decode("utf-8")
    payload = json.loads(body) if isinstance(body, str) else body
    if not isinstance(payload, dict):
        raise ValueError(f"Request body is not a JSON object: {type(payload).__name__}")

    arguments = payload.get("arguments")
    # Some callers send the arguments object as a JSON encoded string
    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except json.JSONDecodeError:
            return None
    return arguments if isinstance(arguments, dict) else None


def _string_argument(arguments: dict[str, Any], key: str) -> str | None:
    value = arguments.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def hello_mcp() -> ToolResult:
    logger.info("hello_mcp function executed")
    return ToolResult(200, HELLO_MESSAGE)


def get_snippet(body: Any, store: SnippetStore) -> ToolResult:
    """
    Fetch a snippet by name.

    Request body: {"arguments": {"snippetname": "<name>"}}
    """
    try:
        arguments = _load_arguments(body)
        snippet_name = _string_argument(arguments, SNIPPET_NAME_PROPERTY) if arguments else None
        if not snippet_name:
            logger.info("get_snippet rejected: no snippet name provided")
            return ToolResult(400, "No snippet name provided")

        snippet_content = store.fetch(snippet_name)
        logger.info(f"Retrieved snippet: {snippet_content}")
        return ToolResult(200, snippet_content)

    except Exception:
        logger.exception("Error retrieving snippet")
        return ToolResult(500, "Error retrieving snippet")


def save_snippet(body: Any, store: SnippetStore) -> ToolResult:
    """
    Save (create or overwrite) a snippet.

    Request body: {"arguments": {"snippetname": "<name>", "snippet": "<content>"}}
    """
    try:
        arguments = _load_arguments(body)
        if arguments is None:
            logger.info("save_snippet rejected: no arguments provided")
            return ToolResult(400, "No arguments provided")

        if SNIPPET_NAME_PROPERTY not in arguments and SNIPPET_PROPERTY not in arguments:
            logger.info("save_snippet rejected: missing required arguments")
            return ToolResult(400, "Missing required arguments")

        snippet_name = _string_argument(arguments, SNIPPET_NAME_PROPERTY)
        if not snippet_name:
            logger.info("save_snippet rejected: no snippet name provided")
            return ToolResult(400, "No snippet name provided")

        snippet_content = _string_argument(arguments, SNIPPET_PROPERTY)
        if not snippet_content:
            logger.info("save_snippet rejected: no snippet content provided")
            return ToolResult(400, "No snippet content provided")

        message = store.store(snippet_name, snippet_content)
        logger.info(f"Saved snippet: {snippet_content}")
        return ToolResult(200, message)

    except Exception:
        logger.exception("Error saving snippet")
        return ToolResult(500, "Error saving snippet")
