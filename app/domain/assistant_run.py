"""
Long-running advisor run: explicit state machine and bounded backoff poll.

    queued -> running -> completed
                      -> failed
    queued -> completed | failed
    any non-terminal -> timed_out   (poll budget exhausted)
"""
import time
from dataclasses import dataclass
from typing import Any, Callable

QUEUED = "queued"
RUNNING = "running"
COMPLETED = "completed"
FAILED = "failed"
TIMED_OUT = "timed_out"

TERMINAL_STATES = frozenset({COMPLETED, FAILED, TIMED_OUT})

_TRANSITIONS: dict[str, frozenset[str]] = {
    QUEUED: frozenset({QUEUED, RUNNING, COMPLETED, FAILED, TIMED_OUT}),
    RUNNING: frozenset({RUNNING, COMPLETED, FAILED, TIMED_OUT}),
    COMPLETED: frozenset(),
    FAILED: frozenset(),
    TIMED_OUT: frozenset(),
}

# Provider status vocabulary -> run state
PROVIDER_STATES = {
    "queued": QUEUED,
    "in_progress": RUNNING,
    "running": RUNNING,
    "completed": COMPLETED,
    "failed": FAILED,
    "cancelled": FAILED,
    "incomplete": FAILED,
    "expired": FAILED,
}


class InvalidRunTransition(ValueError):
    pass


@dataclass
class AssistantRun:
    run_id: str
    state: str = QUEUED
    attempts: int = 0
    output: Any = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, new_state: str, output: Any = None, error: str | None = None) -> None:
        if new_state not in _TRANSITIONS.get(self.state, frozenset()):
            raise InvalidRunTransition(f"Run {self.run_id}: {self.state} -> {new_state} is not allowed")
        self.state = new_state
        if output is not None:
            self.output = output
        if error is not None:
            self.error = error


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """base * 2^attempt, capped at max_delay"""
    return min(base_delay * (2 ** attempt), max_delay)


def poll_run(
    fetch: Callable[[str], dict],
    run_id: str,
    max_attempts: int = 30,
    base_delay: float = 1.0,
    max_delay: float = 8.0,
    sleep: Callable[[float], None] = time.sleep,
) -> AssistantRun:
    """
    Poll a run until it reaches a terminal state or the attempt budget is spent.

    Args:
        fetch: returns {"status": <provider status>, "output": ..., "error": ...}
        run_id: provider run id
        max_attempts: maximum number of fetch calls
        base_delay, max_delay: exponential backoff bounds (seconds)
        sleep: injectable sleep

    Returns:
        AssistantRun in a terminal state
    """
    run = AssistantRun(run_id=run_id)
    for attempt in range(max_attempts):
        payload = fetch(run_id)
        run.attempts = attempt + 1
        state = PROVIDER_STATES.get(str(payload.get("status", "")).lower(), FAILED)
        run.transition(state, output=payload.get("output"), error=payload.get("error"))
        if run.is_terminal:
            return run
        if attempt < max_attempts - 1:
            sleep(backoff_delay(attempt, base_delay, max_delay))

    run.transition(TIMED_OUT, error=f"Run did not finish after {max_attempts} attempts")
    return run
