import json
from dataclasses import asdict

from snippet_agent.infrastructure.data_models import Message, RunStep, ToolCall


def render_tool_calls(tool_calls: tuple[ToolCall, ...] | list[ToolCall]) -> str:
    """Render tool calls as indented JSON for diagnostics."""
    return json.dumps([asdict(call) for call in tool_calls], indent=2, ensure_ascii=False)


def render_run_step(step: RunStep) -> str:
    return f"Run step: {step.id}, status: {step.status}, type: {step.type}"


def render_message(message: Message) -> str:
    return f"{message.role}: {message.content}"


def final_answer(messages: list[Message]) -> str | None:
    """Return the content of the last assistant message, if any."""
    for message in reversed(messages):
        if message.role == "assistant":
            return message.content
    return None
