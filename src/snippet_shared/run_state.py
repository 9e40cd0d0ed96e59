"""
Agent run life-cycle states and the transitions a poller may observe.

    queued -> in_progress -> requires_action -> in_progress -> terminal

where terminal is one of completed, failed, cancelled or expired.

`requires_action` loops back to `in_progress` once the agent service has submitted the
tool results. Polling samples the status at intervals, so intermediate states can be
skipped, but a run never moves backwards apart from that one loop.
"""

from __future__ import annotations

from enum import Enum


class UnknownRunStateError(ValueError):
    """Raised when the agent service reports a status outside the run life-cycle."""


class InvalidRunTransitionError(RuntimeError):
    """Raised when an observed status would move a run backwards."""


class RunState(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @classmethod
    def parse(cls, value: str | RunState | None) -> RunState:
        if isinstance(value, RunState):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise UnknownRunStateError(f"Unknown run status: {value!r}") from e

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES: frozenset[RunState] = frozenset({
    RunState.COMPLETED,
    RunState.FAILED,
    RunState.CANCELLED,
    RunState.EXPIRED,
})

NON_TERMINAL_STATES: frozenset[RunState] = frozenset(set(RunState) - TERMINAL_STATES)

_ALLOWED_TRANSITIONS: dict[RunState, frozenset[RunState]] = {
    RunState.QUEUED: frozenset(
        {RunState.IN_PROGRESS, RunState.REQUIRES_ACTION, RunState.CANCELLING} | TERMINAL_STATES
    ),
    RunState.IN_PROGRESS: frozenset(
        {RunState.REQUIRES_ACTION, RunState.CANCELLING} | TERMINAL_STATES
    ),
    RunState.REQUIRES_ACTION: frozenset(
        {RunState.IN_PROGRESS, RunState.CANCELLING} | TERMINAL_STATES
    ),
    RunState.CANCELLING: TERMINAL_STATES,
    RunState.COMPLETED: frozenset(),
    RunState.FAILED: frozenset(),
    RunState.CANCELLED: frozenset(),
    RunState.EXPIRED: frozenset(),
}


def is_terminal(state: str | RunState) -> bool:
    return RunState.parse(state).is_terminal


def can_transition(src: str | RunState, dst: str | RunState) -> bool:
    """
    Check whether a poller may observe `dst` after `src`.

    Observing the same status twice is always allowed for non-terminal states and for
    terminal states alike (a terminal run simply stays where it is).
    """
    src_state = RunState.parse(src)
    dst_state = RunState.parse(dst)
    if src_state == dst_state:
        return True
    return dst_state in _ALLOWED_TRANSITIONS[src_state]


class RunStateTracker:
    """
    Records the statuses observed for a single run and enforces forward-only movement.

    Args:
        initial (str | RunState): The status reported when the run was created.
    """

    def __init__(self, initial: str | RunState = RunState.QUEUED) -> None:
        self._history: list[RunState] = [RunState.parse(initial)]

    @property
    def current(self) -> RunState:
        return self._history[-1]

    @property
    def history(self) -> list[RunState]:
        return list(self._history)

    @property
    def is_terminal(self) -> bool:
        return self.current.is_terminal

    def observe(self, status: str | RunState) -> RunState:
        """
        Record a newly observed status.

        Args:
            status (str | RunState): Status reported by the agent service.

        Returns:
            RunState: The parsed status.

        Raises:
            UnknownRunStateError: If the status is not part of the life-cycle.
            InvalidRunTransitionError: If the status would move the run backwards.
        """
        state = RunState.parse(status)
        if not can_transition(self.current, state):
            raise InvalidRunTransitionError(
                f"Invalid run transition: {self.current.value} -> {state.value}"
            )
        if state != self.current:
            self._history.append(state)
        return state
