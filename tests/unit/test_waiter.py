"""Tests for operation waiters."""

from __future__ import annotations

import threading
from typing import Any

import pytest

from cleura.exceptions import (
    ApiError,
    DeadlineExceededError,
    NotFoundError,
    NotReadyError,
    WaitCancelledError,
)
from cleura.models.cluster import ClusterObserved, Condition, LastOperation
from cleura.reconcile.waiter import (
    DELETE_POLICY,
    BackoffPolicy,
    ExponentialBackoff,
    OperationWaiter,
    delete_waiter,
    is_ready,
    is_reconciled,
    ready_waiter,
    reconcile_waiter,
)

STEADY = BackoffPolicy(initial_interval=10.0, max_interval=40.0, randomization_factor=0.0)


def observed(
    *statuses: str, op_type: str = "Reconcile", op_state: str = "Succeeded"
) -> ClusterObserved:
    return ClusterObserved(
        uid="uid-1",
        name="demo",
        conditions=[Condition(type=f"C{i}", status=s) for i, s in enumerate(statuses)],
        last_operation=LastOperation(type=op_type, state=op_state, progress=100),
    )


def sequence(*results: Any) -> Any:
    """Poll stub returning or raising each result in turn, repeating the last."""
    calls = {"count": 0}

    def poll() -> Any:
        index = min(calls["count"], len(results) - 1)
        calls["count"] += 1
        result = results[index]
        if isinstance(result, Exception):
            raise result
        return result

    poll.calls = calls  # type: ignore[attr-defined]
    return poll


def not_found() -> NotFoundError:
    return NotFoundError("shoot not found", status_code=404, body='{"message":"not found"}')


def steady_waiter(poll: Any, clock: Any, **kwargs: Any) -> OperationWaiter[ClusterObserved]:
    return OperationWaiter(
        "test", poll, is_ready, policy=STEADY, clock=clock, sleep=clock.sleep, **kwargs
    )


class TestBackoffPolicy:
    """Test budget calculation."""

    def test_headroom_is_kept_back(self) -> None:
        """A minute is reserved out of longer timeouts."""
        assert BackoffPolicy().budget(2700) == 2640

    def test_short_timeout_is_used_whole(self) -> None:
        """Timeouts not larger than the headroom are not reduced."""
        assert BackoffPolicy().budget(45) == 45
        assert BackoffPolicy().budget(60) == 60


class TestExponentialBackoff:
    """Test interval generation."""

    def test_intervals_double_up_to_max(self) -> None:
        """Intervals grow by the multiplier and stop at the max."""
        backoff = ExponentialBackoff(STEADY)

        intervals = [backoff.next_interval(0) for _ in range(5)]

        assert intervals == [10.0, 20.0, 40.0, 40.0, 40.0]

    def test_jitter_bounds(self) -> None:
        """Randomization spreads the interval by the factor in both directions."""
        policy = BackoffPolicy(initial_interval=10.0, randomization_factor=0.5)

        assert ExponentialBackoff(policy, rand=lambda: 0.0).next_interval(0) == 5.0
        assert ExponentialBackoff(policy, rand=lambda: 1.0).next_interval(0) == 15.0

    def test_tightens_near_threshold(self) -> None:
        """Once elapsed plus the next interval reaches the threshold, intervals become fixed."""
        backoff = ExponentialBackoff(BackoffPolicy(randomization_factor=0.0))

        assert backoff.next_interval(0) == 15.0
        assert not backoff.tightened
        assert backoff.next_interval(380) == 30.0
        assert backoff.tightened
        assert backoff.next_interval(410) == 30.0


class TestOperationWaiter:
    """Test the generic polling loop."""

    def test_returns_state_after_n_polls(self, fake_clock: Any) -> None:
        """Done on the third poll, after two sleeps."""
        poll = sequence(observed("False"), observed("False"), observed("True"))
        waiter = steady_waiter(poll, fake_clock, timeout=600)

        result = waiter.wait()

        assert result is not None and is_ready(result)
        assert waiter.polls == 3
        assert fake_clock.sleeps == [10.0, 20.0]
        assert fake_clock.now >= 2 * STEADY.initial_interval
        assert fake_clock.now <= STEADY.budget(600)

    def test_deadline_exceeded(self, fake_clock: Any) -> None:
        """A never-done poll ends in DeadlineExceededError at the budget."""
        poll = sequence(observed("False"))
        waiter = steady_waiter(poll, fake_clock, timeout=300)

        with pytest.raises(DeadlineExceededError) as exc_info:
            waiter.wait()

        budget = STEADY.budget(300)
        assert fake_clock.now <= budget + STEADY.max_interval
        assert exc_info.value.elapsed == pytest.approx(fake_clock.now)
        assert exc_info.value.polls == waiter.polls
        assert "Timed out waiting for test" in str(exc_info.value)

    def test_not_ready_reason_in_deadline_message(self, fake_clock: Any) -> None:
        """The last NotReadyError message is reported when time runs out."""
        poll = sequence(NotReadyError("still provisioning"))
        waiter = steady_waiter(poll, fake_clock, timeout=60)

        with pytest.raises(DeadlineExceededError, match="still provisioning"):
            waiter.wait()

    def test_fatal_error_propagates_verbatim(self, fake_clock: Any) -> None:
        """Errors other than NotReadyError stop the wait unchanged."""
        error = ApiError("boom", status_code=500, body="internal")
        poll = sequence(observed("False"), error)
        waiter = steady_waiter(poll, fake_clock, timeout=600)

        with pytest.raises(ApiError) as exc_info:
            waiter.wait()

        assert exc_info.value is error
        assert waiter.polls == 2

    def test_no_poll_after_cancellation(self, fake_clock: Any) -> None:
        """Cancelling during a sleep stops the wait before the next poll."""
        cancel = threading.Event()
        poll = sequence(observed("False"))

        def sleep(seconds: float) -> None:
            fake_clock.sleep(seconds)
            if len(fake_clock.sleeps) == 2:
                cancel.set()

        waiter = OperationWaiter(
            "test",
            poll,
            is_ready,
            timeout=600,
            policy=STEADY,
            cancel=cancel,
            clock=fake_clock,
            sleep=sleep,
        )

        with pytest.raises(WaitCancelledError):
            waiter.wait()

        assert poll.calls["count"] == 2
        assert waiter.polls == 2

    def test_cancelled_before_start(self, fake_clock: Any) -> None:
        """An already cancelled wait never polls."""
        cancel = threading.Event()
        cancel.set()
        poll = sequence(observed("True"))
        waiter = steady_waiter(poll, fake_clock, timeout=600, cancel=cancel)

        with pytest.raises(WaitCancelledError):
            waiter.wait()

        assert poll.calls["count"] == 0

    def test_cancel_interrupts_real_sleep(self) -> None:
        """The default sleep wakes up as soon as the event is set."""
        cancel = threading.Event()
        poll = sequence(observed("False"))
        waiter = OperationWaiter(
            "test",
            poll,
            is_ready,
            timeout=600,
            policy=BackoffPolicy(initial_interval=30.0, randomization_factor=0.0),
            cancel=cancel,
        )
        timer = threading.Timer(0.05, cancel.set)
        timer.start()

        try:
            with pytest.raises(WaitCancelledError):
                waiter.wait()
        finally:
            timer.cancel()

        assert waiter.polls <= 1

    def test_tightening_schedule(self, fake_clock: Any) -> None:
        """Intervals double up to the max, then switch to 30s near the 400s mark."""
        poll = sequence(observed("False"))
        waiter = ready_waiter(
            poll,
            timeout=1000,
            clock=fake_clock,
            sleep=fake_clock.sleep,
            rand=lambda: 0.5,
        )

        with pytest.raises(DeadlineExceededError):
            waiter.wait()

        assert fake_clock.sleeps[:8] == [15.0, 30.0, 60.0, 75.0, 75.0, 75.0, 30.0, 30.0]

    def test_delete_policy_tightens_later(self, fake_clock: Any) -> None:
        """The delete waiter keeps growing intervals until the 500s mark."""
        poll = sequence(observed())
        waiter = delete_waiter(
            poll,
            timeout=1000,
            clock=fake_clock,
            sleep=fake_clock.sleep,
            rand=lambda: 0.5,
        )

        with pytest.raises(DeadlineExceededError):
            waiter.wait()

        assert DELETE_POLICY.tighten_after == 500.0
        assert fake_clock.sleeps[:9] == [15.0, 30.0, 60.0, 75.0, 75.0, 75.0, 75.0, 75.0, 30.0]


class TestPredicates:
    """Test done conditions."""

    def test_ready_needs_all_conditions_true(self) -> None:
        """Every condition must be True."""
        assert is_ready(observed("True", "True"))
        assert not is_ready(observed("True", "False"))
        assert not is_ready(observed("True", "Unknown"))

    def test_ready_needs_conditions(self) -> None:
        """No conditions means not ready yet."""
        assert not is_ready(observed())

    def test_reconciled(self) -> None:
        """A succeeded Create or Reconcile counts as settled."""
        assert is_reconciled(observed(op_type="Reconcile", op_state="Succeeded"))
        assert is_reconciled(observed(op_type="Create", op_state="Succeeded"))
        assert not is_reconciled(observed(op_type="Reconcile", op_state="Processing"))
        assert not is_reconciled(observed(op_type="Delete", op_state="Succeeded"))
        assert not is_reconciled(ClusterObserved(name="demo"))


class TestWaiterFactories:
    """Test the three waiter variants."""

    def test_ready_waiter_retries_not_found(self, fake_clock: Any) -> None:
        """A cluster that is not visible yet is polled again."""
        poll = sequence(not_found(), observed(), observed("True"))
        waiter = ready_waiter(poll, timeout=600, clock=fake_clock, sleep=fake_clock.sleep)

        result = waiter.wait()

        assert result is not None
        assert waiter.polls == 3

    def test_ready_waiter_fails_on_api_error(self, fake_clock: Any) -> None:
        """Errors other than not-found are fatal."""
        poll = sequence(ApiError("forbidden", status_code=403))
        waiter = ready_waiter(poll, timeout=600, clock=fake_clock, sleep=fake_clock.sleep)

        with pytest.raises(ApiError):
            waiter.wait()

        assert waiter.polls == 1

    def test_reconcile_waiter(self, fake_clock: Any) -> None:
        """Waits until the last operation succeeded."""
        poll = sequence(observed(op_state="Processing"), observed(op_state="Succeeded"))
        waiter = reconcile_waiter(poll, timeout=600, clock=fake_clock, sleep=fake_clock.sleep)

        result = waiter.wait()

        assert result is not None and result.last_operation is not None
        assert result.last_operation.state == "Succeeded"
        assert waiter.polls == 2

    def test_delete_waiter_not_found_first(self, fake_clock: Any) -> None:
        """NotFound on the first poll succeeds immediately."""
        poll = sequence(not_found())
        waiter = delete_waiter(poll, timeout=600, clock=fake_clock, sleep=fake_clock.sleep)

        assert waiter.wait() is None
        assert poll.calls["count"] == 1
        assert fake_clock.sleeps == []

    def test_delete_waiter_polls_while_cluster_exists(self, fake_clock: Any) -> None:
        """A cluster that can still be fetched is not deleted yet."""
        poll = sequence(observed(op_type="Delete", op_state="Processing"), not_found())
        waiter = delete_waiter(poll, timeout=600, clock=fake_clock, sleep=fake_clock.sleep)

        assert waiter.wait() is None
        assert waiter.polls == 2

    def test_delete_waiter_other_error_is_fatal(self, fake_clock: Any) -> None:
        """Errors other than not-found stop the delete wait."""
        poll = sequence(ApiError("bad gateway", status_code=502))
        waiter = delete_waiter(poll, timeout=600, clock=fake_clock, sleep=fake_clock.sleep)

        with pytest.raises(ApiError):
            waiter.wait()

    def test_delete_waiter_deadline(self, fake_clock: Any) -> None:
        """A cluster that never disappears runs into the deadline."""
        poll = sequence(observed(op_type="Delete", op_state="Processing"))
        waiter = delete_waiter(poll, timeout=120, clock=fake_clock, sleep=fake_clock.sleep)

        with pytest.raises(DeadlineExceededError, match="cluster still exists"):
            waiter.wait()
