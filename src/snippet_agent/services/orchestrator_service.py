from __future__ import annotations

import logging
import threading

from snippet_agent.app.config import (
    AGENT_INSTRUCTIONS,
    AGENT_NAME,
    AGENT_TOOL_NAMES,
    AgentSettings,
)
from snippet_agent.infrastructure.data_models import (
    OrchestrationResult,
    RunSession,
    ToolDeclaration,
)
from snippet_agent.services.agent_run_client import AgentRunClient
from snippet_agent.services.renderer_service import (
    render_message,
    render_run_step,
    render_tool_calls,
)
from snippet_agent.services.run_poller import PollPolicy, poll_run
from snippet_shared.run_state import RunState, RunStateTracker

logger = logging.getLogger("snippet-agent")


def build_tool_declarations(settings: AgentSettings) -> list[ToolDeclaration]:
    """The MCP tool server, restricted to the snippet tools and requiring no approval."""
    return [
        ToolDeclaration(
            kind="mcp",
            label=settings.mcp_server_label,
            endpoint=settings.mcp_tool_url,
            approval_policy="never",
            allowed_tools=tuple(AGENT_TOOL_NAMES),
        )
    ]


def poll_policy_from_settings(settings: AgentSettings) -> PollPolicy:
    return PollPolicy(
        interval=settings.poll_interval,
        timeout=settings.poll_timeout,
        max_attempts=settings.poll_max_attempts,
    )


class RunOrchestrator:
    """
    Drive one agent, thread and run on the agent service from creation to cleanup.

    The sequence is: create the agent, create a thread, add the user message, create a
    run, poll it to a terminal state, then report run steps and thread messages and
    delete the agent. Reporting and deletion always happen, even when an earlier step
    fails; the original error is re-raised afterwards.
    """

    def __init__(
        self,
        client: AgentRunClient,
        settings: AgentSettings,
        policy: PollPolicy | None = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._policy = policy or poll_policy_from_settings(settings)

    def run(
        self,
        user_message: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> OrchestrationResult:
        session = RunSession()
        result = OrchestrationResult(session=session)
        message = user_message or self._settings.user_message

        try:
            self._start(session, message)
            final_run = poll_run(self._client, session, self._policy, cancel_event)
            result.final_run = final_run

            if final_run.status == RunState.FAILED:
                logger.error(f"Run failed: {final_run.last_error or 'Unknown error'}")

        except Exception as e:
            logger.error(f"Error occurred while running agent service: {e}")
            raise

        finally:
            if result.final_run is None:
                result.final_run = session.run
            self._report(session, result)
            self._cleanup(session)

        return result

    def _start(self, session: RunSession, message: str) -> None:
        settings = self._settings

        session.agent = self._client.create_agent(
            model=settings.model_deployment_name,
            name=AGENT_NAME,
            instructions=AGENT_INSTRUCTIONS,
            tools=build_tool_declarations(settings),
        )
        logger.info(f"Created agent, agent ID: {session.agent.id}")

        session.thread = self._client.create_thread()
        logger.info(f"Created thread, thread ID: {session.thread.id}")

        session.message = self._client.create_message(session.thread.id, message)
        logger.info(f"Created message, message ID: {session.message.id}")
        logger.info(f"Message content: {message}")

        session.run = self._client.create_run(session.thread.id, session.agent.id)
        session.tracker = RunStateTracker(session.run.status)
        logger.info(f"Created run, run ID: {session.run.id}")

    def _report(self, session: RunSession, result: OrchestrationResult) -> None:
        """Collect run steps (tool call diagnostics) and the thread messages."""
        if session.thread is None:
            return

        if session.run is not None:
            try:
                result.steps = self._client.list_run_steps(session.thread.id, session.run.id)
            except Exception:
                logger.exception("Failed to list run steps")

            for step in result.steps:
                logger.info(render_run_step(step))
                if step.type == "tool_calls" and step.tool_calls:
                    logger.info("Tool call details:")
                    logger.info(render_tool_calls(step.tool_calls))

        try:
            result.messages = self._client.list_messages(session.thread.id)
        except Exception:
            logger.exception("Failed to list thread messages")

        for message in result.messages:
            logger.info(render_message(message))

    def _cleanup(self, session: RunSession) -> None:
        if session.agent is None:
            return
        try:
            self._client.delete_agent(session.agent.id)
            logger.info(f"Deleted agent, agent ID: {session.agent.id}")
        except Exception:
            logger.exception(f"Failed to delete agent {session.agent.id}")
