from typing import Any

from snippet_mcp.mcp.schemas import LIST
from snippet_mcp.services.snippet_store import SnippetStore
from snippet_mcp.tools.snippets import ToolResult, get_snippet, save_snippet


def list_tools() -> list[dict[str, Any]]:
    return [
        {"name": v["name"], "description": v["description"], "input_schema": v["input_schema"]}
        for v in LIST.values()
    ]


def call_tool(name: str, arguments: Any, store: SnippetStore) -> ToolResult:
    # The tool functions expect the same body shape as the dedicated endpoints
    body = {"arguments": arguments}
    if name == "get_snippet":
        return get_snippet(body, store)
    if name == "save_snippet":
        return save_snippet(body, store)
    return ToolResult(404, f"Unknown tool: {name}")
