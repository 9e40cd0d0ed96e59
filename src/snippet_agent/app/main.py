#!/usr/bin/env python3
"""
Snippet Agent

A command-line orchestrator that creates an agent wired to the Snippet MCP tool server,
sends it one message, polls the run to completion and reports the tool calls and the
final conversation.
"""

import argparse
import signal
import sys
import threading
from dataclasses import replace

from snippet_agent.app.config import (
    AgentSettings,
    ConfigurationError,
    get_settings,
    validate_poll_settings,
)
from snippet_agent.services.agent_run_client import AgentRunClient, AgentServiceError
from snippet_agent.services.orchestrator_service import RunOrchestrator
from snippet_agent.services.renderer_service import final_answer
from snippet_agent.services.run_poller import RunPollCancelledError, RunPollError
from snippet_shared.platform_manager import create_logger
from snippet_shared.run_state import RunState

logger = create_logger(logger_name="snippet-agent", log_level="INFO")


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Snippet Agent - Run an agent against the Snippet MCP tool server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s "Create a snippet called snippet1 that prints 'Hello, World!' in Python."
  %(prog)s "What is in snippet1?" --timeout 120
  %(prog)s "ping" --interval 2 --max-attempts 30 --verbose
        """,
    )

    parser.add_argument(
        "message",
        nargs="?",
        default=None,
        help="The message to send to the agent (default: USER_MESSAGE)",
    )

    parser.add_argument(
        "--endpoint",
        default=None,
        help="Project endpoint of the agent service (default: PROJECT_ENDPOINT)",
    )

    parser.add_argument(
        "--model",
        default=None,
        help="Model deployment name (default: MODEL_DEPLOYMENT_NAME)",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Maximum seconds to wait for the run to finish (default: RUN_POLL_TIMEOUT)",
    )

    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between run status checks (default: RUN_POLL_INTERVAL)",
    )

    parser.add_argument(
        "--max-attempts",
        type=int,
        default=None,
        help="Maximum number of run status checks (default: RUN_POLL_MAX_ATTEMPTS)",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show debug output",
    )

    return parser.parse_args(argv)


def apply_overrides(settings: AgentSettings, args: argparse.Namespace) -> AgentSettings:
    """
    Return a copy of `settings` with the command line overrides applied.

    Raises:
        ConfigurationError: If an overridden polling value is not positive.
    """
    overrides: dict[str, object] = {}
    if args.endpoint:
        overrides["project_endpoint"] = args.endpoint.rstrip("/")
    if args.model:
        overrides["model_deployment_name"] = args.model
    if args.timeout is not None:
        overrides["poll_timeout"] = args.timeout
    if args.interval is not None:
        overrides["poll_interval"] = args.interval
    if args.max_attempts is not None:
        overrides["poll_max_attempts"] = args.max_attempts
    settings = replace(settings, **overrides)  # type: ignore[arg-type]
    validate_poll_settings(settings)
    return settings


def build_client(settings: AgentSettings) -> AgentRunClient:
    return AgentRunClient(
        settings.project_endpoint,
        api_version=settings.api_version,
        token=settings.agent_service_token,
    )


def main(argv: list[str] | None = None) -> int:
    """Main function to handle command line arguments and run the agent."""
    args = parse_arguments(argv)

    # Fail fast on missing configuration
    try:
        settings = apply_overrides(get_settings(), args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    logger.setLevel("DEBUG" if args.verbose else settings.log_level.upper())
    logger.info("Starting Agent Service with Remote MCP Functions")
    logger.info(f"Agent service endpoint: {settings.project_endpoint}")

    orchestrator = RunOrchestrator(build_client(settings), settings)
    cancel_event = threading.Event()

    # Ctrl-C stops the poll loop through the event so cleanup still runs
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel_event.set())

    try:
        result = orchestrator.run(args.message, cancel_event=cancel_event)
    except RunPollCancelledError as e:
        logger.error(f"Run cancelled: {e}")
        return 1
    except RunPollError as e:
        logger.error(f"Run did not finish: {e}")
        return 1
    except AgentServiceError as e:
        logger.error(f"Agent service error: {e}")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        return 1
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    answer = final_answer(result.messages)
    if answer:
        logger.info(f"Final answer: {answer}")

    if result.status != RunState.COMPLETED:
        status = result.status.value if result.status else "unknown"
        logger.error(f"Run finished with status: {status}")
        return 1

    logger.info("Agent Service completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
