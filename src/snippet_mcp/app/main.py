import json
import logging
from typing import Any

from snippet_mcp.app.config import REDIS_NAMESPACE, MCPSettings, get_settings
from snippet_mcp.auth.function_key_auth import check_function_key
from snippet_mcp.mcp.manifest import manifest
from snippet_mcp.mcp.router import call_tool, list_tools
from snippet_mcp.services.snippet_store import SnippetStore
from snippet_mcp.tools.snippets import ToolResult, get_snippet, hello_mcp, save_snippet
from snippet_shared.platform_manager import create_logger
from snippet_shared.redis_manager import build_redis_manager

logger = create_logger(logger_name="snippet-mcp", log_level="INFO")
logger.info("Starting Snippet MCP Service")


def create_response(
    status_code: int,
    body: str,
    content_type: str = "text/plain",
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    """
    Create a standard HTTP response.

    Args:
        status_code (int): HTTP status code.
        body: Response body.
        content_type (str, optional): Content-Type header. Defaults to "text/plain".
        headers (dict[str, str] | None, optional): Additional headers. Defaults to None.

    Returns:
        dict: Standardized response dictionary.
    """
    response_headers = {"Content-Type": content_type}
    if headers:
        response_headers.update(headers)

    return {
        "statusCode": status_code,
        "body": body,
        "headers": response_headers,
        "isBase64Encoded": False,
    }


def tool_response(result: ToolResult) -> dict[str, Any]:
    return create_response(result.status_code, json.dumps(result.to_body()), "application/json")


def build_snippet_store(settings: MCPSettings) -> SnippetStore:
    redis_manager = build_redis_manager(settings.redis_url, namespace=REDIS_NAMESPACE)
    return SnippetStore(redis_manager, container=settings.snippet_container)


def _tools_call(body: Any, store: SnippetStore) -> dict[str, Any]:
    try:
        if isinstance(body, bytes | str):
            body = json.loads(body) if body else {}
    except json.JSONDecodeError:
        logger.info("Tools call rejected: body is not valid JSON")
        return tool_response(ToolResult(400, "Invalid request body"))

    if not isinstance(body, dict) or not body.get("name"):
        logger.info("Tools call rejected: missing tool name")
        return tool_response(ToolResult(400, "Missing tool name"))

    name = str(body["name"])
    logger.info(f"Tools call received: {name}")
    return tool_response(call_tool(name, body.get("arguments"), store))


def process(event: dict[str, Any], store: SnippetStore | None = None) -> dict[str, Any]:
    """Process the incoming HTTP Gateway event."""

    settings = get_settings()
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    # Get the route key and split it into method and route
    route_key = event.get("routeKey", "")
    method, _, route = route_key.partition(" ")
    logger.info(f"Processing request: {method} {route}")

    if not route:
        logger.error("No route found")
        return create_response(404, "Not Found")

    if method not in ["GET", "POST"]:
        logger.error("Invalid method")
        return create_response(404, "Not Found")

    # Validate the function key
    is_valid, reason = check_function_key(event, settings.function_key)
    if not is_valid:
        logger.error(f"Unauthorized request: {reason}")
        return tool_response(ToolResult(401, "Unauthorized"))

    body = event.get("body")

    if method == "POST" and route == "/api/hello_mcp":
        return tool_response(hello_mcp())

    if method == "GET" and route == "/.well-known/mcp/manifest":
        logger.info("Returning manifest")
        return create_response(
            200, json.dumps(manifest(settings.snippet_mcp_url)), "application/json"
        )

    if method == "GET" and route == "/mcp/tools":
        logger.info("Returning tools")
        return create_response(200, json.dumps({"tools": list_tools()}), "application/json")

    # Remaining routes touch the snippet store
    if store is None:
        store = build_snippet_store(settings)

    if method == "POST" and route == "/api/get_snippet":
        return tool_response(get_snippet(body, store))

    if method == "POST" and route == "/api/save_snippet":
        return tool_response(save_snippet(body, store))

    if method == "POST" and route == "/mcp/tools/call":
        return _tools_call(body, store)

    # Default case for unmatched routes
    return create_response(404, "Route and method not Found")
