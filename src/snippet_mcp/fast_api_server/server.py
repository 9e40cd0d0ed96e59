# This is a simple server for running the MCP locally.
# Run with: uvicorn snippet_mcp.fast_api_server.server:app --reload --port 8000

import base64
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from snippet_mcp.handler import lambda_handler


def _lambda_to_fastapi_response(lambda_resp: dict[str, Any]) -> Response | JSONResponse:
    """
    Convert an AWS Lambda-style proxy response into a FastAPI Response.

    Args:
        lambda_resp (dict): A dict like:
            {
                "statusCode": int,
                "headers": {"Content-Type": str, ...},
                "body": str,
                "isBase64Encoded": bool
            }

    Returns:
        Response: A FastAPI-compatible Response object.
    """
    status_code = lambda_resp.get("statusCode", 200)
    content_type = lambda_resp.get("headers", {}).get("Content-Type", "text/plain")
    body = lambda_resp.get("body", "")

    if lambda_resp.get("isBase64Encoded", False):
        body = base64.b64decode(body)

    # Handle dict content as JSON
    if isinstance(body, dict):
        return JSONResponse(content=body, status_code=status_code)

    return Response(content=body, status_code=status_code, media_type=content_type)


def _process_request(body: bytes, request: Request) -> Response | JSONResponse:
    """Convert a FastAPI request to a Lambda-style event."""
    path = request.url.path
    method = request.method
    route_key = f"{method} {path}"

    event = {
        "routeKey": route_key,
        "rawPath": path,
        "body": body,
        "isBase64Encoded": False,
        "headers": request.headers,
        "queryStringParameters": dict(request.query_params),
        "requestContext": {"routeKey": route_key, "http": {"method": method, "path": path}},
    }
    # Response is a Lambda-style response. Set a direct HTTP response in FastAPI
    lambda_response = lambda_handler(event, None)
    return _lambda_to_fastapi_response(lambda_response)


app: FastAPI = FastAPI(title="Snippet MCP Service")


# --- Snippet tools ---
@app.post("/api/hello_mcp")
async def hello_mcp(request: Request) -> Response:
    body = await request.body()
    return _process_request(body, request)


@app.post("/api/get_snippet")
async def get_snippet(request: Request) -> Response:
    body = await request.body()
    return _process_request(body, request)


@app.post("/api/save_snippet")
async def save_snippet(request: Request) -> Response:
    body = await request.body()
    return _process_request(body, request)


# --- MCP discovery and tools call ---
@app.get("/.well-known/mcp/manifest")
async def manifest(request: Request) -> Response:
    body = await request.body()
    return _process_request(body, request)


@app.get("/mcp/tools")
async def tools(request: Request) -> Response:
    body = await request.body()
    return _process_request(body, request)


@app.post("/mcp/tools/call")
async def tools_call(request: Request) -> Response:
    body = await request.body()
    return _process_request(body, request)


@app.get("/healthz")
def healthz() -> dict[str, bool]:
    return {"ok": True}
