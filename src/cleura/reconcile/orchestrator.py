"""Reconciliation of shoot clusters.

``ShootReconciler`` drives one cluster through its lifecycle::

    absent -> creating -> ready -> reconciling <-> ready -> deleting -> absent

Every mutating call is followed by a waiter, and nothing is retried here.
When a step fails, the steps before it stay applied and the error names the
step. Running ``reconcile`` again derives a fresh plan from the remote
state.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from cleura._config import DEFAULT_OPERATION_TIMEOUT
from cleura.exceptions import CleuraError, NotFoundError, ReconcileError
from cleura.mapper import spec_from_observed
from cleura.models.cluster import (
    ClusterObserved,
    ClusterRef,
    ClusterSpec,
    ClusterUpdate,
    WorkerGroupSpec,
)
from cleura.reconcile.differ import ReconciliationPlan, diff_worker_groups
from cleura.reconcile.gateway import ShootGateway
from cleura.reconcile.resolve import needs_profile, resolve_spec
from cleura.reconcile.waiter import (
    DELETE_POLICY,
    READY_POLICY,
    RECONCILE_POLICY,
    BackoffPolicy,
    delete_waiter,
    ready_waiter,
    reconcile_waiter,
)
from cleura.validation import validate_cluster_spec

logger = logging.getLogger("cleura.reconcile")


@dataclass
class ChangeSet:
    """What a reconcile pass would do, computed without mutating anything."""

    desired: ClusterSpec
    observed: ClusterObserved | None
    cluster_update: ClusterUpdate
    worker_groups: ReconciliationPlan

    @property
    def exists(self) -> bool:
        return self.observed is not None

    @property
    def is_empty(self) -> bool:
        return self.exists and self.cluster_update.is_empty() and self.worker_groups.is_empty


@dataclass
class ImportedCluster:
    """A pre-existing cluster bound by its identifier."""

    spec: ClusterSpec
    observed: ClusterObserved


def cluster_changes(desired: ClusterSpec, observed: ClusterObserved) -> ClusterUpdate:
    """Cluster-level fields of ``desired`` that differ from ``observed``."""
    update = ClusterUpdate()
    if desired.kubernetes_version and desired.kubernetes_version != observed.kubernetes_version:
        update.kubernetes_version = desired.kubernetes_version
    if desired.hibernation_schedules != observed.hibernation_schedules:
        update.hibernation_schedules = [s.model_copy() for s in desired.hibernation_schedules]
    if desired.maintenance != observed.maintenance:
        update.maintenance = desired.maintenance.model_copy()
    return update


class ShootReconciler:
    """Create, reconcile and delete shoot clusters through a gateway.

    Args:
        gateway: API client, usually a ``CleuraClient``.
        create_timeout: Seconds allowed for a whole create call.
        update_timeout: Seconds allowed for a whole reconcile call.
        delete_timeout: Seconds allowed for a whole delete call.
        cancel: Event that aborts any wait in progress when set.
        clock: Monotonic time source.
        sleep: Sleep function used between polls.

    Example:
        ```python
        from cleura import CleuraClient, ClusterSpec

        with CleuraClient() as client:
            reconciler = client.reconciler()
            observed = reconciler.create(spec)
            observed = reconciler.reconcile(new_spec, observed)
            reconciler.delete(observed.ref)
        ```
    """

    def __init__(
        self,
        gateway: ShootGateway,
        *,
        create_timeout: float = DEFAULT_OPERATION_TIMEOUT,
        update_timeout: float = DEFAULT_OPERATION_TIMEOUT,
        delete_timeout: float = DEFAULT_OPERATION_TIMEOUT,
        ready_policy: BackoffPolicy = READY_POLICY,
        reconcile_policy: BackoffPolicy = RECONCILE_POLICY,
        delete_policy: BackoffPolicy = DELETE_POLICY,
        cancel: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] | None = None,
        rand: Callable[[], float] = random.random,
    ) -> None:
        self.gateway = gateway
        self.create_timeout = create_timeout
        self.update_timeout = update_timeout
        self.delete_timeout = delete_timeout
        self.ready_policy = ready_policy
        self.reconcile_policy = reconcile_policy
        self.delete_policy = delete_policy
        self.cancel = cancel or threading.Event()
        self._clock = clock
        self._sleep = sleep
        self._rand = rand

    def create(self, desired: ClusterSpec, *, timeout: float | None = None) -> ClusterObserved:
        """Create a cluster and wait until it is ready.

        Raises:
            ValidationError: If ``desired`` is malformed. Nothing is sent.
            ReconcileError: If a call or the wait fails.
        """
        validate_cluster_spec(desired)
        ref = desired.ref
        deadline = self._deadline(timeout, self.create_timeout)

        with self._step("create", "resolve cloud profile", ref):
            resolved = self._resolve(desired, None)

        logger.info("Creating cluster %s", ref)
        with self._step("create", "create cluster", ref):
            created = self.gateway.create_cluster(resolved)

        with self._step("create", "wait for cluster to become ready", ref):
            observed = ready_waiter(
                lambda: self.gateway.fetch_cluster(ref),
                timeout=deadline(),
                policy=self.ready_policy,
                **self._waiter_options(),
            ).wait()

        logger.info("Cluster %s is ready", ref)
        return observed.with_uid_fallback(created.uid)

    def plan(self, desired: ClusterSpec) -> ChangeSet:
        """Compute the changes ``reconcile`` would make, without making them.

        A cluster that does not exist yet yields a plan creating every
        worker group.

        Raises:
            ValidationError: If ``desired`` is malformed.
            ReconcileError: If the remote state cannot be read.
        """
        validate_cluster_spec(desired)
        ref = desired.ref
        with self._step("plan", "fetch cluster", ref):
            try:
                observed: ClusterObserved | None = self.gateway.fetch_cluster(ref)
            except NotFoundError:
                observed = None
        with self._step("plan", "resolve cloud profile", ref):
            resolved = self._resolve(desired, observed)

        if observed is None:
            return ChangeSet(
                desired=resolved,
                observed=None,
                cluster_update=ClusterUpdate(),
                worker_groups=diff_worker_groups(resolved.worker_groups, []),
            )
        return ChangeSet(
            desired=resolved,
            observed=observed,
            cluster_update=cluster_changes(resolved, observed),
            worker_groups=diff_worker_groups(resolved.worker_groups, observed.worker_groups),
        )

    def reconcile(
        self,
        desired: ClusterSpec,
        last_observed: ClusterObserved | None = None,
        *,
        timeout: float | None = None,
    ) -> ClusterObserved:
        """Converge an existing cluster to ``desired``.

        Cluster-level changes go first and settle before any worker group is
        touched. Worker groups are then modified, created and deleted in that
        order, one wait per mutation.

        Args:
            desired: Desired cluster state.
            last_observed: State returned by the previous call, if any. Only
                its UID is used, to fill in for responses that leave it out.
            timeout: Seconds allowed for the whole call.

        Returns:
            The refreshed remote state.

        Raises:
            ValidationError: If ``desired`` is malformed. Nothing is sent.
            ReconcileError: If a step fails. Earlier steps stay applied.
        """
        validate_cluster_spec(desired)
        ref = desired.ref
        deadline = self._deadline(timeout, self.update_timeout)
        known_uid = last_observed.uid if last_observed else None

        with self._step("reconcile", "fetch cluster", ref):
            current = self.gateway.fetch_cluster(ref)
        known_uid = current.uid or known_uid

        with self._step("reconcile", "resolve cloud profile", ref):
            resolved = self._resolve(desired, current)

        update = cluster_changes(resolved, current)
        if not update.is_empty():
            logger.info("Updating %s of cluster %s", ", ".join(update.changed_fields), ref)
            with self._step("reconcile", "update cluster", ref):
                self.gateway.update_cluster(ref, update)
            current = self._wait_reconciled("update cluster", ref, deadline)

        plan = diff_worker_groups(resolved.worker_groups, current.worker_groups)
        logger.info("Worker groups of %s: %s", ref, plan.summary())

        for group in plan.to_modify:
            with self._step("reconcile", "update worker group", ref, group.name):
                self.gateway.update_worker_group(ref, group)
            self._wait_reconciled("update worker group", ref, deadline, group)

        for group in plan.to_create:
            with self._step("reconcile", "create worker group", ref, group.name):
                self.gateway.create_worker_group(ref, group)
            self._wait_reconciled("create worker group", ref, deadline, group)

        for group in plan.to_delete:
            with self._step("reconcile", "delete worker group", ref, group.name):
                self.gateway.delete_worker_group(ref, group.name)
            self._wait_reconciled("delete worker group", ref, deadline, group)

        with self._step("reconcile", "refresh cluster", ref):
            refreshed = self.gateway.fetch_cluster(ref)
        return refreshed.with_uid_fallback(known_uid)

    def apply(self, desired: ClusterSpec, *, timeout: float | None = None) -> ClusterObserved:
        """Create the cluster if it does not exist, otherwise reconcile it."""
        changes = self.plan(desired)
        if not changes.exists:
            return self.create(desired, timeout=timeout)
        return self.reconcile(desired, changes.observed, timeout=timeout)

    def delete(self, ref: ClusterRef, *, timeout: float | None = None) -> None:
        """Delete a cluster and wait until it is gone.

        A cluster that is already gone counts as deleted.

        Raises:
            ReconcileError: If the call or the wait fails.
        """
        deadline = self._deadline(timeout, self.delete_timeout)

        logger.info("Deleting cluster %s", ref)
        with self._step("delete", "delete cluster", ref):
            try:
                self.gateway.delete_cluster(ref)
            except NotFoundError:
                logger.info("Cluster %s is already gone", ref)
                return

        with self._step("delete", "wait for cluster deletion", ref):
            delete_waiter(
                lambda: self.gateway.fetch_cluster(ref),
                timeout=deadline(),
                policy=self.delete_policy,
                **self._waiter_options(),
            ).wait()
        logger.info("Cluster %s deleted", ref)

    def read(
        self, ref: ClusterRef, last_observed: ClusterObserved | None = None
    ) -> ClusterObserved | None:
        """Fetch the current state of a cluster.

        Returns:
            The remote state, or None if the cluster was removed out of band.
        """
        with self._step("read", "fetch cluster", ref):
            try:
                observed = self.gateway.fetch_cluster(ref)
            except NotFoundError:
                logger.warning("Cluster %s no longer exists", ref)
                return None
        return observed.with_uid_fallback(last_observed.uid if last_observed else None)

    def import_cluster(self, identifier: str) -> ImportedCluster:
        """Bind to an existing cluster given as ``domain,name,region,project``.

        No mutating call is made.

        Raises:
            ValidationError: If the identifier is malformed. Nothing is sent.
            ReconcileError: If the cluster cannot be fetched.
        """
        ref = ClusterRef.parse(identifier)
        with self._step("import", "fetch cluster", ref):
            observed = self.gateway.fetch_cluster(ref)
        return ImportedCluster(spec=spec_from_observed(observed), observed=observed)

    def _resolve(self, desired: ClusterSpec, observed: ClusterObserved | None) -> ClusterSpec:
        profile = None
        if needs_profile(desired, observed):
            profile = self.gateway.resolve_cloud_profile(desired.domain)
        return resolve_spec(desired, profile, observed)

    def _wait_reconciled(
        self,
        step: str,
        ref: ClusterRef,
        deadline: Callable[[], float],
        group: WorkerGroupSpec | None = None,
    ) -> ClusterObserved:
        name = group.name if group else None
        with self._step("reconcile", f"wait after {step}", ref, name):
            observed = reconcile_waiter(
                lambda: self.gateway.fetch_cluster(ref),
                timeout=deadline(),
                policy=self.reconcile_policy,
                **self._waiter_options(),
            ).wait()
        return observed

    def _deadline(self, timeout: float | None, default: float) -> Callable[[], float]:
        """Return a function giving the seconds left of this call's timeout."""
        total = timeout if timeout is not None else default
        start = self._clock()
        return lambda: total - (self._clock() - start)

    def _waiter_options(self) -> dict[str, Any]:
        return {
            "cancel": self.cancel,
            "clock": self._clock,
            "sleep": self._sleep,
            "rand": self._rand,
        }

    @contextmanager
    def _step(
        self,
        operation: str,
        step: str,
        ref: ClusterRef,
        worker_group: str | None = None,
    ) -> Iterator[None]:
        try:
            yield
        except ReconcileError:
            raise
        except CleuraError as e:
            raise ReconcileError(
                operation, step, e, cluster=ref.name, worker_group=worker_group
            ) from e
