import json
from typing import Any

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from snippet_agent.app.config import AgentSettings
from snippet_agent.app.config import config as agent_config
from snippet_agent.infrastructure.data_models import (
    Agent,
    Message,
    Run,
    RunStep,
    Thread,
    ToolCall,
    ToolDeclaration,
)
from snippet_agent.services.agent_run_client import AgentServiceError
from snippet_mcp.app.config import config as mcp_config
from snippet_mcp.services.snippet_store import SnippetStore
from snippet_shared.redis_manager import RedisManager
from snippet_shared.run_state import RunState


class FakeRedis:
    """In-memory stand-in for the handful of redis.Redis commands the store uses."""

    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}
        self.sets: dict[str, set[str]] = {}
        self.fail = False
        self.commands: list[str] = []

    def _check(self, command: str) -> None:
        self.commands.append(command)
        if self.fail:
            raise RedisConnectionError("Error 111 connecting to redis.internal:6379")

    def sadd(self, key: str, *values: str) -> int:
        self._check("sadd")
        members = self.sets.setdefault(key, set())
        added = [v for v in values if v not in members]
        members.update(values)
        return len(added)

    def sismember(self, key: str, value: str) -> bool:
        self._check("sismember")
        return value in self.sets.get(key, set())

    def exists(self, *keys: str) -> int:
        self._check("exists")
        return sum(1 for k in keys if k in self.data)

    def get(self, key: str) -> bytes | None:
        self._check("get")
        return self.data.get(key)

    def set(self, key: str, value: bytes | str) -> bool:
        self._check("set")
        self.data[key] = value.encode("utf-8") if isinstance(value, str) else value
        return True


class FakeEvent:
    """Cancellation event whose wait never blocks."""

    def __init__(self, set_after: int | None = None) -> None:
        self.waits: list[float] = []
        self._set_after = set_after
        self._set = False

    def wait(self, timeout: float | None = None) -> bool:
        self.waits.append(timeout or 0.0)
        return self.is_set()

    def is_set(self) -> bool:
        if self._set:
            return True
        return self._set_after is not None and len(self.waits) > self._set_after

    def set(self) -> None:
        self._set = True


class FakeAgentService:
    """
    Scripted agent service with the same interface as AgentRunClient.

    `statuses` are returned one by one from get_run. A `tool_handler` is invoked when the
    run enters requires_action, standing in for the service dispatching a tool call.
    """

    def __init__(
        self,
        statuses: list[str],
        *,
        reply: str = "pong",
        tool_call: ToolCall | None = None,
        tool_handler: Any = None,
        last_error: str | None = None,
    ) -> None:
        self.statuses = list(statuses)
        self.reply = reply
        self.tool_call = tool_call
        self.tool_handler = tool_handler
        self.last_error = last_error
        self.calls: list[str] = []
        self.agent_payload: dict[str, Any] = {}
        self.messages: list[Message] = []
        self.steps: list[RunStep] = []
        self.get_run_timeouts: list[float | None] = []
        self.get_run_agent_ids: list[str] = []
        self.fail_on: set[str] = set()
        self.on_get_run: Any = None

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise AgentServiceError(f"{name} failed")

    def create_agent(
        self, model: str, name: str, instructions: str, tools: list[ToolDeclaration]
    ) -> Agent:
        self._record("create_agent")
        self.agent_payload = {
            "model": model,
            "name": name,
            "instructions": instructions,
            "tools": [t.to_payload() for t in tools],
        }
        return Agent(id="asst_1", model=model, name=name, instructions=instructions,
                     tools=tuple(tools))

    def create_thread(self) -> Thread:
        self._record("create_thread")
        return Thread(id="thread_1")

    def create_message(self, thread_id: str, content: str, role: str = "user") -> Message:
        self._record("create_message")
        message = Message(id="msg_1", role=role, content=content)
        self.messages.append(message)
        return message

    def create_run(self, thread_id: str, agent_id: str) -> Run:
        self._record("create_run")
        return Run(id="run_1", thread_id=thread_id, agent_id=agent_id, status=RunState.QUEUED)

    def get_run(
        self,
        thread_id: str,
        run_id: str,
        *,
        agent_id: str = "",
        timeout: float | None = None,
    ) -> Run:
        self._record("get_run")
        self.get_run_timeouts.append(timeout)
        self.get_run_agent_ids.append(agent_id)
        if self.on_get_run is not None:
            self.on_get_run()
        status = RunState.parse(self.statuses.pop(0))

        if status == RunState.REQUIRES_ACTION and self.tool_call is not None:
            result = self.tool_handler(self.tool_call) if self.tool_handler else None
            call = ToolCall(
                id=self.tool_call.id,
                tool_label=self.tool_call.tool_label,
                name=self.tool_call.name,
                arguments=self.tool_call.arguments,
                result=result,
            )
            self.steps.append(
                RunStep(id="step_1", run_id=run_id, type="tool_calls", status="completed",
                        tool_calls=(call,))
            )

        if status == RunState.COMPLETED:
            self.steps.append(
                RunStep(id=f"step_{len(self.steps) + 1}", run_id=run_id,
                        type="message_creation", status="completed")
            )
            self.messages.append(Message(id="msg_2", role="assistant", content=self.reply))

        last_error = self.last_error if status == RunState.FAILED else None
        return Run(id=run_id, thread_id=thread_id, agent_id="asst_1", status=status,
                   last_error=last_error)

    def list_run_steps(self, thread_id: str, run_id: str) -> list[RunStep]:
        self._record("list_run_steps")
        return list(self.steps)

    def list_messages(self, thread_id: str) -> list[Message]:
        self._record("list_messages")
        return list(self.messages)

    def delete_agent(self, agent_id: str) -> bool:
        self._record("delete_agent")
        return True


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def redis_manager(fake_redis: FakeRedis) -> RedisManager:
    return RedisManager(fake_redis, namespace="test:snippets")


@pytest.fixture
def snippet_store(redis_manager: RedisManager) -> SnippetStore:
    return SnippetStore(redis_manager, container="snippets")


@pytest.fixture
def mcp_env(monkeypatch):
    """Environment for the MCP service; settings are reloaded for every test."""
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    monkeypatch.delenv("SNIPPET_MCP_FUNCTION_KEY", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    mcp_config.reset()
    yield monkeypatch
    mcp_config.reset()


@pytest.fixture
def agent_env(monkeypatch):
    """Environment for the agent; settings are reloaded for every test."""
    monkeypatch.setenv("MCP_EXTENSION_KEY", "secret-key")
    monkeypatch.setenv("MCP_SERVER_URL", "https://tools.example.com/runtime/webhooks/mcp/sse")
    for name in [
        "PROJECT_ENDPOINT",
        "MODEL_DEPLOYMENT_NAME",
        "MCP_SERVER_LABEL",
        "USER_MESSAGE",
        "AGENT_API_VERSION",
        "AGENT_SERVICE_TOKEN",
        "RUN_POLL_INTERVAL",
        "RUN_POLL_TIMEOUT",
        "RUN_POLL_MAX_ATTEMPTS",
        "LOG_LEVEL",
    ]:
        monkeypatch.delenv(name, raising=False)
    agent_config.reset()
    yield monkeypatch
    agent_config.reset()


@pytest.fixture
def agent_settings() -> AgentSettings:
    return AgentSettings(
        project_endpoint="https://agents.example.com/api/projects/demo",
        model_deployment_name="gpt-4.1-mini",
        api_version="v1",
        mcp_server_label="Snippet_MCP_Server",
        mcp_server_url="https://tools.example.com/runtime/webhooks/mcp/sse",
        mcp_extension_key="secret-key",
        user_message="ping",
        poll_interval=0.01,
        poll_timeout=30.0,
    )


def lambda_event(method: str, path: str, body: Any = None, **query: str) -> dict[str, Any]:
    if isinstance(body, dict):
        body = json.dumps(body)
    return {
        "routeKey": f"{method} {path}",
        "body": body,
        "headers": {},
        "queryStringParameters": query,
    }
