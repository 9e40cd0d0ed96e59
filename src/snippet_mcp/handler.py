from typing import Any

from snippet_mcp.app.main import process


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """AWS Lambda entry point for the Snippet MCP."""
    try:
        return process(event)
    except Exception as e:
        raise Exception(f"Error in processing Snippet MCP: {e}") from e
