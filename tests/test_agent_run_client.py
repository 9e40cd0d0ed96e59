import json
from typing import Any

import pytest
import requests

from snippet_agent.infrastructure.data_models import ToolDeclaration
from snippet_agent.services.agent_run_client import (
    AgentRunClient,
    AgentServiceError,
    parse_run_step,
    parse_tool_call,
)
from snippet_shared.run_state import RunState


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.content = b"" if payload is None else json.dumps(payload).encode()

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error", response=self)

    def json(self) -> Any:
        return json.loads(self.content)


class FakeSession:
    def __init__(self, responses: list[FakeResponse]) -> None:
        self.headers: dict[str, str] = {}
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_client(*responses: Any, token: str | None = None) -> tuple[AgentRunClient, FakeSession]:
    session = FakeSession(list(responses))
    client = AgentRunClient(
        "https://agents.example.com/api/projects/demo/",
        api_version="v1",
        token=token,
        session=session,
    )
    return client, session


def test_create_agent_sends_mcp_tool_declaration() -> None:
    client, session = make_client(FakeResponse(payload={"id": "asst_1", "model": "m"}), token="t")
    tool = ToolDeclaration(
        kind="mcp",
        label="Snippet_MCP",
        endpoint="https://tools/sse?code=k",
        allowed_tools=("get_snippet", "save_snippet"),
    )

    agent = client.create_agent("m", "my-mcp-agent", "be helpful", [tool])

    assert agent.id == "asst_1"
    sent = session.requests[0]
    assert sent["method"] == "POST"
    assert sent["url"] == "https://agents.example.com/api/projects/demo/assistants"
    assert sent["params"] == {"api-version": "v1"}
    assert sent["json"]["tools"] == [
        {
            "type": "mcp",
            "server_label": "Snippet_MCP",
            "server_url": "https://tools/sse?code=k",
            "require_approval": "never",
            "allowed_tools": ["get_snippet", "save_snippet"],
        }
    ]
    assert session.headers["Authorization"] == "Bearer t"


def test_thread_message_and_run_creation() -> None:
    client, session = make_client(
        FakeResponse(payload={"id": "thread_1"}),
        FakeResponse(payload={"id": "msg_1", "role": "user", "content": [
            {"type": "text", "text": {"value": "ping", "annotations": []}}
        ]}),
        FakeResponse(payload={"id": "run_1", "status": "queued"}),
    )

    thread = client.create_thread()
    message = client.create_message(thread.id, "ping")
    run = client.create_run(thread.id, "asst_1")

    assert message.content == "ping"
    assert run.thread_id == "thread_1"
    assert run.agent_id == "asst_1"
    assert run.status is RunState.QUEUED
    assert session.requests[2]["json"] == {"assistant_id": "asst_1"}


def test_get_run_passes_timeout_and_parses_last_error() -> None:
    client, session = make_client(FakeResponse(payload={
        "id": "run_1",
        "thread_id": "thread_1",
        "status": "failed",
        "last_error": {"code": "server_error", "message": "Tool server unreachable"},
    }))

    run = client.get_run("thread_1", "run_1", timeout=4.5)

    assert run.status is RunState.FAILED
    assert run.last_error == "Tool server unreachable"
    assert session.requests[0]["timeout"] == 4.5
    assert session.requests[0]["url"].endswith("/threads/thread_1/runs/run_1")


def test_get_run_keeps_agent_id_when_status_omits_it() -> None:
    client, _ = make_client(FakeResponse(payload={"id": "run_1", "status": "in_progress"}))

    run = client.get_run("thread_1", "run_1", agent_id="asst_1")

    assert run.thread_id == "thread_1"
    assert run.agent_id == "asst_1"


def test_list_messages_follows_pages() -> None:
    def text(value: str) -> list[dict[str, Any]]:
        return [{"type": "text", "text": {"value": value}}]

    client, session = make_client(
        FakeResponse(payload={
            "data": [{"id": "m1", "role": "user", "content": text("ping")}],
            "has_more": True,
            "last_id": "m1",
        }),
        FakeResponse(payload={
            "data": [{"id": "m2", "role": "assistant", "content": text("pong")}],
            "has_more": False,
        }),
    )

    messages = client.list_messages("thread_1")

    assert [(m.role, m.content) for m in messages] == [("user", "ping"), ("assistant", "pong")]
    assert session.requests[0]["params"] == {"api-version": "v1", "order": "asc"}
    assert session.requests[1]["params"]["after"] == "m1"


def test_list_stops_when_page_has_no_cursor() -> None:
    client, session = make_client(
        FakeResponse(payload={
            "data": [{"role": "assistant", "content": "pong"}],
            "has_more": True,
        }),
        FakeResponse(payload={"data": [], "has_more": False}),
    )

    messages = client.list_messages("thread_1")

    assert [m.content for m in messages] == ["pong"]
    assert len(session.requests) == 1


def test_delete_agent() -> None:
    client, session = make_client(FakeResponse(payload={"id": "asst_1", "deleted": True}))
    assert client.delete_agent("asst_1") is True
    assert session.requests[0]["method"] == "DELETE"


def test_http_and_transport_errors_raise_agent_service_error() -> None:
    client, _ = make_client(
        FakeResponse(status_code=500, payload={"error": "boom"}),
        requests.ConnectionError("connection refused"),
    )

    with pytest.raises(AgentServiceError):
        client.create_thread()
    with pytest.raises(AgentServiceError, match="connection refused"):
        client.create_thread()


def test_parse_mcp_tool_call() -> None:
    call = parse_tool_call({
        "id": "call_1",
        "type": "mcp",
        "server_label": "Snippet_MCP",
        "name": "save_snippet",
        "arguments": json.dumps({"snippetname": "snippet1", "snippet": "print(1)"}),
        "output": "Snippet 'print(1)' saved successfully",
    })

    assert call.tool_label == "Snippet_MCP"
    assert call.name == "save_snippet"
    assert call.arguments == {"snippetname": "snippet1", "snippet": "print(1)"}
    assert call.result == "Snippet 'print(1)' saved successfully"


def test_parse_function_style_run_step() -> None:
    step = parse_run_step({
        "id": "step_1",
        "run_id": "run_1",
        "type": "tool_calls",
        "status": "completed",
        "step_details": {"type": "tool_calls", "tool_calls": [{
            "id": "call_1",
            "type": "function",
            "function": {"name": "get_snippet", "arguments": "{\"snippetname\": \"a\"}",
                         "output": None},
        }]},
    })

    assert step.type == "tool_calls"
    assert len(step.tool_calls) == 1
    assert step.tool_calls[0].name == "get_snippet"
    assert step.tool_calls[0].arguments == {"snippetname": "a"}
    assert step.tool_calls[0].result is None


def test_parse_message_creation_step_has_no_tool_calls() -> None:
    step = parse_run_step({
        "id": "step_2",
        "type": "message_creation",
        "status": "completed",
        "step_details": {"type": "message_creation", "message_creation": {"message_id": "m"}},
    })
    assert step.tool_calls == ()
