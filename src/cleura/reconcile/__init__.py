"""Reconciliation engine for shoot clusters."""

from cleura.reconcile.differ import ReconciliationPlan, diff_worker_groups
from cleura.reconcile.gateway import ShootGateway
from cleura.reconcile.orchestrator import (
    ChangeSet,
    ImportedCluster,
    ShootReconciler,
    cluster_changes,
)
from cleura.reconcile.resolve import resolve_spec
from cleura.reconcile.waiter import (
    BackoffPolicy,
    ExponentialBackoff,
    OperationWaiter,
    delete_waiter,
    ready_waiter,
    reconcile_waiter,
)

__all__ = [
    "ShootReconciler",
    "ShootGateway",
    "ChangeSet",
    "ImportedCluster",
    "cluster_changes",
    "ReconciliationPlan",
    "diff_worker_groups",
    "resolve_spec",
    "BackoffPolicy",
    "ExponentialBackoff",
    "OperationWaiter",
    "ready_waiter",
    "reconcile_waiter",
    "delete_waiter",
]
