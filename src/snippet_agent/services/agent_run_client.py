from __future__ import annotations

import json
import logging
from typing import Any, cast

import requests

from snippet_agent.infrastructure.data_models import (
    Agent,
    Message,
    Run,
    RunStep,
    Thread,
    ToolCall,
    ToolDeclaration,
)
from snippet_shared.run_state import RunState

_TIMEOUT = 30.0

logger = logging.getLogger("snippet-agent")


class AgentServiceError(Exception):
    """Raised when a request to the agent service fails."""


# -----------------------------
# Response parsers
# -----------------------------
def _parse_arguments(raw: Any) -> dict[str, Any]:
    """Tool call arguments arrive either as a JSON encoded string or as an object."""
    if isinstance(raw, dict):
        return cast(dict[str, Any], raw)
    if isinstance(raw, str) and raw:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return {"raw": raw}
        return cast(dict[str, Any], parsed) if isinstance(parsed, dict) else {"raw": raw}
    return {}


def parse_run(data: dict[str, Any]) -> Run:
    last_error = data.get("last_error")
    error_message = None
    if isinstance(last_error, dict):
        error_message = last_error.get("message") or "Unknown error"
    elif last_error:
        error_message = str(last_error)

    return Run(
        id=data["id"],
        thread_id=data.get("thread_id", ""),
        agent_id=data.get("assistant_id", ""),
        status=RunState.parse(data.get("status")),
        last_error=error_message,
    )


def parse_message(data: dict[str, Any]) -> Message:
    """Use the text of the first content part, the same way the agent renders answers."""
    content = data.get("content")
    text = ""
    if isinstance(content, str):
        text = content
    elif isinstance(content, list) and content:
        first = content[0]
        if isinstance(first, dict):
            text_part = first.get("text")
            if isinstance(text_part, dict):
                text = str(text_part.get("value", ""))
            elif isinstance(text_part, str):
                text = text_part

    return Message(id=data.get("id", ""), role=data.get("role", ""), content=text)


def parse_tool_call(data: dict[str, Any]) -> ToolCall:
    """
    Parse a run step tool call.

    MCP tool calls carry `name`, `arguments` and `output` at the top level. Function
    tool calls nest them under the key named by `type` (e.g. `function`).
    """
    call_type = str(data.get("type", ""))
    nested = data.get(call_type)
    details: dict[str, Any] = nested if isinstance(nested, dict) else data

    output = details.get("output")
    return ToolCall(
        id=str(data.get("id", "")),
        tool_label=str(details.get("server_label") or data.get("server_label") or call_type),
        name=str(details.get("name", "")),
        arguments=_parse_arguments(details.get("arguments")),
        result=None if output is None else str(output),
    )


def parse_run_step(data: dict[str, Any]) -> RunStep:
    step_details = data.get("step_details")
    raw_calls: list[Any] = []
    if isinstance(step_details, dict):
        raw_calls = step_details.get("tool_calls") or []
    return RunStep(
        id=data["id"],
        run_id=data.get("run_id", ""),
        type=data.get("type", ""),
        status=data.get("status", ""),
        tool_calls=tuple(parse_tool_call(c) for c in raw_calls if isinstance(c, dict)),
    )


class AgentRunClient:
    """
    REST client for an Assistants-style agent service (agents, threads, messages, runs).

    Args:
        endpoint (str): Project endpoint of the agent service.
        api_version (str): Value of the `api-version` query parameter.
        token (str | None): Bearer token. Acquiring it is the caller's responsibility.
        session (requests.Session | None): Pre-configured session (for tests/advanced use).
        timeout (float): Default per-request timeout in seconds.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        api_version: str = "v1",
        token: str | None = None,
        session: requests.Session | None = None,
        timeout: float = _TIMEOUT,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._api_version = api_version
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        payload: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        url = f"{self._endpoint}{path}"
        query = {"api-version": self._api_version, **(params or {})}

        try:
            resp = self._session.request(
                method,
                url,
                params=query,
                json=payload,
                timeout=timeout if timeout is not None else self._timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise AgentServiceError(f"Agent service request failed ({method} {url}): {e}") from e

        if not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError as e:
            raise AgentServiceError(f"Agent service returned non-JSON content ({url})") from e
        if not isinstance(data, dict):
            raise AgentServiceError(f"Agent service returned unexpected payload ({url})")
        return cast(dict[str, Any], data)

    def _list(self, path: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Collect every page of a list endpoint."""
        items: list[dict[str, Any]] = []
        query = dict(params or {})
        while True:
            page = self._request("GET", path, params=query)
            data = page.get("data") or []
            items.extend(d for d in data if isinstance(d, dict))
            if not page.get("has_more") or not data:
                return items
            cursor = page.get("last_id") or data[-1].get("id")
            if not cursor:
                logger.warning(f"List page for {path} has more items but no cursor")
                return items
            query["after"] = cursor

    # -----------------------------
    # Agents
    # -----------------------------
    def create_agent(
        self,
        model: str,
        name: str,
        instructions: str,
        tools: list[ToolDeclaration],
    ) -> Agent:
        payload = {
            "model": model,
            "name": name,
            "instructions": instructions,
            "tools": [tool.to_payload() for tool in tools],
        }
        data = self._request("POST", "/assistants", payload=payload)
        return Agent(
            id=data["id"],
            model=data.get("model", model),
            name=data.get("name", name),
            instructions=data.get("instructions", instructions),
            tools=tuple(tools),
        )

    def delete_agent(self, agent_id: str) -> bool:
        data = self._request("DELETE", f"/assistants/{agent_id}")
        return bool(data.get("deleted", True))

    # -----------------------------
    # Threads and messages
    # -----------------------------
    def create_thread(self) -> Thread:
        data = self._request("POST", "/threads", payload={})
        return Thread(id=data["id"])

    def create_message(self, thread_id: str, content: str, role: str = "user") -> Message:
        data = self._request(
            "POST", f"/threads/{thread_id}/messages", payload={"role": role, "content": content}
        )
        message = parse_message(data)
        # Some services echo the content back as parts; keep what was sent
        return Message(id=message.id, role=message.role or role, content=content)

    def list_messages(self, thread_id: str) -> list[Message]:
        raw = self._list(f"/threads/{thread_id}/messages", {"order": "asc"})
        return [parse_message(m) for m in raw]

    # -----------------------------
    # Runs
    # -----------------------------
    def create_run(self, thread_id: str, agent_id: str) -> Run:
        data = self._request(
            "POST", f"/threads/{thread_id}/runs", payload={"assistant_id": agent_id}
        )
        data.setdefault("thread_id", thread_id)
        data.setdefault("assistant_id", agent_id)
        return parse_run(data)

    def get_run(
        self,
        thread_id: str,
        run_id: str,
        *,
        agent_id: str = "",
        timeout: float | None = None,
    ) -> Run:
        data = self._request("GET", f"/threads/{thread_id}/runs/{run_id}", timeout=timeout)
        data.setdefault("thread_id", thread_id)
        data.setdefault("assistant_id", agent_id)
        return parse_run(data)

    def list_run_steps(self, thread_id: str, run_id: str) -> list[RunStep]:
        raw = self._list(f"/threads/{thread_id}/runs/{run_id}/steps", {"order": "asc"})
        return [parse_run_step(s) for s in raw]
