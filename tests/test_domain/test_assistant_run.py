"""Tests for the assistant run state machine and poller."""
import pytest

from app.domain.assistant_run import (
    AssistantRun,
    InvalidRunTransition,
    backoff_delay,
    poll_run,
)


def _fetcher(statuses, output="done"):
    calls = iter(statuses)

    def fetch(run_id):
        status = next(calls)
        return {"status": status, "output": output if status == "completed" else None}

    return fetch


class TestStateMachine:
    def test_terminal_states_are_final(self):
        run = AssistantRun(run_id="r1")
        run.transition("running")
        run.transition("completed", output="x")
        assert run.is_terminal
        with pytest.raises(InvalidRunTransition):
            run.transition("running")

    def test_running_cannot_go_back_to_queued(self):
        run = AssistantRun(run_id="r1", state="running")
        with pytest.raises(InvalidRunTransition):
            run.transition("queued")


class TestPollRun:
    def test_completes_with_backoff(self):
        delays = []
        run = poll_run(_fetcher(["queued", "in_progress", "completed"]), "r1", sleep=delays.append)
        assert run.state == "completed"
        assert run.output == "done"
        assert run.attempts == 3
        assert delays == [1.0, 2.0]

    def test_failed_status(self):
        run = poll_run(_fetcher(["queued", "failed"]), "r1", sleep=lambda s: None)
        assert run.state == "failed"

    def test_unknown_status_is_failure(self):
        run = poll_run(_fetcher(["weird"]), "r1", sleep=lambda s: None)
        assert run.state == "failed"

    def test_times_out_after_budget(self):
        delays = []
        run = poll_run(_fetcher(["queued"] * 10), "r1", max_attempts=5, sleep=delays.append)
        assert run.state == "timed_out"
        assert run.attempts == 5
        assert len(delays) == 4

    def test_backoff_is_capped(self):
        assert backoff_delay(0, 1.0, 8.0) == 1.0
        assert backoff_delay(3, 1.0, 8.0) == 8.0
        assert backoff_delay(10, 1.0, 8.0) == 8.0
