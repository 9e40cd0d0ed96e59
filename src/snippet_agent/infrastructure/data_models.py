"""
Agent service data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from snippet_shared.run_state import RunState, RunStateTracker


@dataclass(frozen=True)
class ToolDeclaration:
    kind: str  # "mcp"
    label: str
    endpoint: str
    approval_policy: str = "never"
    allowed_tools: tuple[str, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.kind,
            "server_label": self.label,
            "server_url": self.endpoint,
            "require_approval": self.approval_policy,
        }
        if self.allowed_tools:
            payload["allowed_tools"] = list(self.allowed_tools)
        return payload


@dataclass(frozen=True)
class Agent:
    id: str
    model: str
    name: str
    instructions: str
    tools: tuple[ToolDeclaration, ...] = ()


@dataclass(frozen=True)
class Thread:
    id: str


@dataclass(frozen=True)
class Message:
    id: str
    role: str  # "user" | "assistant"
    content: str


@dataclass(frozen=True)
class Run:
    id: str
    thread_id: str
    agent_id: str
    status: RunState
    last_error: str | None = None


@dataclass(frozen=True)
class ToolCall:
    id: str
    tool_label: str
    name: str
    arguments: dict[str, Any]
    result: str | None = None


@dataclass(frozen=True)
class RunStep:
    id: str
    run_id: str
    type: str  # "message_creation" | "tool_calls"
    status: str
    tool_calls: tuple[ToolCall, ...] = ()


@dataclass
class RunSession:
    """
    Context for one orchestration: the agent, thread and the single active run.

    Passed explicitly to every operation so that several orchestrations can run side by
    side without sharing state.
    """

    agent: Agent | None = None
    thread: Thread | None = None
    message: Message | None = None
    run: Run | None = None
    tracker: RunStateTracker | None = None

    @property
    def status_history(self) -> list[RunState]:
        return self.tracker.history if self.tracker else []


@dataclass
class OrchestrationResult:
    session: RunSession
    final_run: Run | None = None
    steps: list[RunStep] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)

    @property
    def status(self) -> RunState | None:
        return self.final_run.status if self.final_run else None

    @property
    def tool_calls(self) -> list[ToolCall]:
        return [call for step in self.steps for call in step.tool_calls]
