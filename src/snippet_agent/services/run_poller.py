from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from snippet_agent.infrastructure.data_models import Run, RunSession
from snippet_agent.services.agent_run_client import AgentRunClient
from snippet_shared.run_state import RunStateTracker

logger = logging.getLogger("snippet-agent")


class RunPollError(RuntimeError):
    """Base class for polling failures."""


class RunPollTimeoutError(RunPollError):
    """Raised when a run has not reached a terminal state within the poll budget."""


class RunPollCancelledError(RunPollError):
    """Raised when polling is cancelled through the cancellation event."""


@dataclass(frozen=True)
class PollPolicy:
    """
    How often, and for how long, to poll a run.

    The reference behaviour is a fixed one second interval. A `backoff` above 1.0 grows
    the interval after every poll, capped at `max_interval`.

    Args:
        interval (float): Delay before the first status check, in seconds.
        backoff (float): Multiplier applied to the delay after each check.
        max_interval (float | None): Upper bound for the delay. Defaults to `interval`.
        timeout (float): Overall deadline in seconds, measured from the start of polling.
        max_attempts (int | None): Maximum number of status checks, or None for no cap.
    """

    interval: float = 1.0
    backoff: float = 1.0
    max_interval: float | None = None
    timeout: float = 300.0
    max_attempts: int | None = None

    def next_delay(self, delay: float) -> float:
        cap = self.max_interval if self.max_interval is not None else self.interval
        return min(delay * self.backoff, cap)


def poll_run(
    client: AgentRunClient,
    session: RunSession,
    policy: PollPolicy | None = None,
    cancel_event: threading.Event | None = None,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> Run:
    """
    Poll the session's run until it reaches a terminal state.

    The wait between checks happens on `cancel_event`, so setting the event interrupts
    it immediately. Each status request is given a timeout bounded by the time left
    before the deadline, and a status that arrives after the event was set is discarded.

    Args:
        client: Agent service client.
        session: Orchestration session holding the run to poll.
        policy: Poll policy. Defaults to a fixed one second interval.
        cancel_event: Event that cancels polling when set.
        clock: Monotonic clock (testing hook).

    Returns:
        Run: The run in its terminal state. The session is updated as well.

    Raises:
        RunPollTimeoutError: If the deadline or the attempt cap is reached first.
        RunPollCancelledError: If `cancel_event` is set.
        InvalidRunTransitionError: If the service reports a backwards status change.
    """
    if session.run is None:
        raise ValueError("Session has no run to poll")

    policy = policy or PollPolicy()
    cancel_event = cancel_event or threading.Event()
    run = session.run
    if session.tracker is None:
        session.tracker = RunStateTracker(run.status)
    tracker = session.tracker

    start = clock()
    deadline = start + policy.timeout
    delay = policy.interval
    attempt = 0

    while not tracker.is_terminal:
        if policy.max_attempts is not None and attempt >= policy.max_attempts:
            raise RunPollTimeoutError(
                f"Run {run.id} still {tracker.current.value} after {attempt} status checks"
            )

        remaining = deadline - clock()
        if remaining <= 0:
            raise RunPollTimeoutError(
                f"Run {run.id} still {tracker.current.value} after {policy.timeout} seconds"
            )

        if cancel_event.wait(min(delay, remaining)):
            raise RunPollCancelledError(f"Polling cancelled for run {run.id}")

        remaining = deadline - clock()
        if remaining <= 0:
            raise RunPollTimeoutError(
                f"Run {run.id} still {tracker.current.value} after {policy.timeout} seconds"
            )

        run = client.get_run(run.thread_id, run.id, agent_id=run.agent_id, timeout=remaining)
        attempt += 1
        if cancel_event.is_set():
            raise RunPollCancelledError(f"Polling cancelled for run {run.id}")
        tracker.observe(run.status)
        session.run = run
        logger.info(f"Run status: {run.status.value}")

        delay = policy.next_delay(delay)

    logger.info(f"Run {run.id} finished with status {run.status.value} in {attempt} checks")
    return run
