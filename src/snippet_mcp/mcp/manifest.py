def manifest(base_url: str) -> dict[str, str | dict[str, str]]:
    return {
        "name": "snippet-mcp",
        "version": "0.1.0",
        "description": "MCP server exposing tools to save and retrieve named snippets",
        "tools_endpoint": f"{base_url}/mcp/tools",
        "call_endpoint": f"{base_url}/mcp/tools/call",
        "auth": {"type": "function_key"},  # ?code=<key> or x-functions-key header
    }
