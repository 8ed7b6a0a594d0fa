"""Waiting for asynchronous shoot operations.

Create, update and delete calls return as soon as the backend accepted
them. The waiters here poll the cluster with exponential backoff until the
operation is observably finished or the time budget runs out.

Backoff grows from ``initial_interval`` by ``multiplier`` up to
``max_interval``. Once the next sleep would carry the total elapsed time
past ``tighten_after``, polling switches to a fixed ``tightened_interval``
without jitter so that waits near the end of long operations stay short.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from cleura.exceptions import (
    DeadlineExceededError,
    NotFoundError,
    NotReadyError,
    WaitCancelledError,
)
from cleura.models.cluster import ClusterObserved

logger = logging.getLogger("cleura.reconcile")

T = TypeVar("T")

CONDITION_TRUE = "True"
SUCCEEDED = "Succeeded"
SETTLED_OPERATION_TYPES = frozenset({"Create", "Reconcile"})


@dataclass(frozen=True)
class BackoffPolicy:
    """Tuning of a waiter's polling schedule. All values are seconds."""

    initial_interval: float = 15.0
    max_interval: float = 75.0
    multiplier: float = 2.0
    randomization_factor: float = 0.5
    tighten_after: float = 400.0
    tightened_interval: float = 30.0
    headroom: float = 60.0

    def budget(self, timeout: float) -> float:
        """Total time available for polling out of a caller timeout.

        ``headroom`` is kept back for bookkeeping after the wait. A timeout
        not larger than the headroom is used whole.
        """
        if timeout > self.headroom:
            return timeout - self.headroom
        return timeout


READY_POLICY = BackoffPolicy()
RECONCILE_POLICY = BackoffPolicy()
DELETE_POLICY = BackoffPolicy(tighten_after=500.0)


class ExponentialBackoff:
    """Produces successive sleep intervals for one wait."""

    def __init__(
        self,
        policy: BackoffPolicy,
        *,
        rand: Callable[[], float] = random.random,
    ) -> None:
        self.policy = policy
        self._rand = rand
        self._current = policy.initial_interval
        self.tightened = False

    def next_interval(self, elapsed: float) -> float:
        """Return how long to sleep before the next poll.

        Args:
            elapsed: Seconds spent in the wait so far.
        """
        policy = self.policy
        if not self.tightened and elapsed + self._current >= policy.tighten_after:
            logger.debug(
                "Tightening backoff to %.0fs after %.0fs", policy.tightened_interval, elapsed
            )
            self.tightened = True

        if self.tightened:
            return policy.tightened_interval

        interval = self._current
        if policy.randomization_factor:
            delta = policy.randomization_factor * interval
            interval = interval - delta + self._rand() * 2 * delta
        self._current = min(self._current * policy.multiplier, policy.max_interval)
        return interval


class OperationWaiter(Generic[T]):
    """Polls until a predicate holds, the budget is spent, or the wait is cancelled.

    ``poll`` returns the current state or raises ``NotReadyError`` to ask for
    another attempt. Any other exception is fatal and propagates unchanged.

    Example:
        ```python
        waiter = OperationWaiter(
            "cluster ready",
            poll=lambda: client.fetch_cluster(ref),
            is_done=is_ready,
            timeout=1800,
        )
        observed = waiter.wait()
        ```
    """

    def __init__(
        self,
        description: str,
        poll: Callable[[], T],
        is_done: Callable[[T], bool],
        *,
        timeout: float,
        policy: BackoffPolicy = READY_POLICY,
        cancel: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] | None = None,
        rand: Callable[[], float] = random.random,
    ) -> None:
        self.description = description
        self._poll = poll
        self._is_done = is_done
        self.timeout = timeout
        self.policy = policy
        self._cancel = cancel or threading.Event()
        self._clock = clock
        self._sleep = sleep or self._interruptible_sleep
        self._rand = rand
        self.polls = 0

    def _interruptible_sleep(self, seconds: float) -> None:
        self._cancel.wait(seconds)

    def wait(self) -> T:
        """Block until the operation is done.

        Returns:
            The state returned by the poll that satisfied the predicate.

        Raises:
            WaitCancelledError: If cancelled before the predicate held.
            DeadlineExceededError: If the budget ran out first.
            Exception: Whatever fatal error the poll raised.
        """
        budget = self.policy.budget(self.timeout)
        backoff = ExponentialBackoff(self.policy, rand=self._rand)
        start = self._clock()
        last_reason = ""

        logger.debug("Waiting for %s (budget %.0fs)", self.description, budget)

        while True:
            if self._cancel.is_set():
                raise WaitCancelledError(
                    f"Wait for {self.description} cancelled after {self.polls} polls"
                )

            self.polls += 1
            try:
                state = self._poll()
            except NotReadyError as e:
                last_reason = e.message
            else:
                if self._is_done(state):
                    logger.debug(
                        "%s after %d polls (%.0fs)",
                        self.description.capitalize(),
                        self.polls,
                        self._clock() - start,
                    )
                    return state
                last_reason = ""

            elapsed = self._clock() - start
            remaining = budget - elapsed
            if remaining <= 0:
                message = f"Timed out waiting for {self.description} after {elapsed:.0f}s"
                if last_reason:
                    message = f"{message}: {last_reason}"
                raise DeadlineExceededError(message, elapsed=elapsed, polls=self.polls)

            interval = min(backoff.next_interval(elapsed), remaining)
            logger.debug(
                "%s not reached yet (poll %d), sleeping %.1fs",
                self.description.capitalize(),
                self.polls,
                interval,
            )
            self._sleep(interval)


def is_ready(observed: ClusterObserved) -> bool:
    """All conditions report True. No conditions means not ready yet."""
    if not observed.conditions:
        return False
    return all(condition.status == CONDITION_TRUE for condition in observed.conditions)


def is_reconciled(observed: ClusterObserved) -> bool:
    """The last operation is a create or reconcile that succeeded."""
    op = observed.last_operation
    if op is None:
        return False
    return op.state == SUCCEEDED and op.type in SETTLED_OPERATION_TYPES


def ready_waiter(
    fetch: Callable[[], ClusterObserved],
    *,
    timeout: float,
    policy: BackoffPolicy = READY_POLICY,
    **kwargs: Any,
) -> OperationWaiter[ClusterObserved]:
    """Waiter for a newly created cluster to become ready.

    A cluster that is not visible yet counts as not ready.
    """

    def poll() -> ClusterObserved:
        try:
            return fetch()
        except NotFoundError as e:
            raise NotReadyError(f"cluster not found yet: {e}") from e

    return OperationWaiter(
        "cluster to become ready", poll, is_ready, timeout=timeout, policy=policy, **kwargs
    )


def reconcile_waiter(
    fetch: Callable[[], ClusterObserved],
    *,
    timeout: float,
    policy: BackoffPolicy = RECONCILE_POLICY,
    **kwargs: Any,
) -> OperationWaiter[ClusterObserved]:
    """Waiter for an update to be reconciled by the backend."""
    return OperationWaiter(
        "cluster to be reconciled", fetch, is_reconciled, timeout=timeout, policy=policy, **kwargs
    )


def delete_waiter(
    fetch: Callable[[], ClusterObserved],
    *,
    timeout: float,
    policy: BackoffPolicy = DELETE_POLICY,
    **kwargs: Any,
) -> OperationWaiter[ClusterObserved | None]:
    """Waiter for a cluster to disappear.

    Done on the first ``NotFoundError``; a cluster that can still be fetched
    is not deleted yet.
    """

    def poll() -> ClusterObserved | None:
        try:
            observed = fetch()
        except NotFoundError:
            return None
        raise NotReadyError(f"cluster still exists ({_operation_summary(observed)})")

    return OperationWaiter(
        "cluster to be deleted",
        poll,
        lambda state: state is None,
        timeout=timeout,
        policy=policy,
        **kwargs,
    )


def _operation_summary(observed: ClusterObserved) -> str:
    op = observed.last_operation
    if op is None:
        return "no operation reported"
    return f"{op.type} {op.state} {op.progress}%"
