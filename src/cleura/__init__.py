"""
Cleura Shoot SDK - declare and reconcile Gardener shoot clusters on Cleura Cloud.

Worker-group diffing, operation waiters and a reconciler over a typed API client.
"""

from cleura._version import __version__
from cleura.client import CleuraClient
from cleura.exceptions import (
    ApiError,
    AuthenticationError,
    CleuraError,
    ConnectionError,
    DeadlineExceededError,
    NotFoundError,
    RateLimitError,
    ReconcileError,
    ResponseError,
    TimeoutError,
    ValidationError,
    WaitCancelledError,
)
from cleura.models.cluster import (
    ClusterObserved,
    ClusterRef,
    ClusterSpec,
    HibernationSchedule,
    MaintenancePolicy,
    Taint,
    WorkerGroupSpec,
)
from cleura.reconcile import ShootReconciler, diff_worker_groups

__all__ = [
    # Version
    "__version__",
    # Client
    "CleuraClient",
    # Reconciliation
    "ShootReconciler",
    "diff_worker_groups",
    # Models
    "ClusterSpec",
    "ClusterObserved",
    "ClusterRef",
    "WorkerGroupSpec",
    "Taint",
    "HibernationSchedule",
    "MaintenancePolicy",
    # Exceptions
    "CleuraError",
    "ValidationError",
    "ApiError",
    "AuthenticationError",
    "NotFoundError",
    "RateLimitError",
    "ConnectionError",
    "TimeoutError",
    "ResponseError",
    "DeadlineExceededError",
    "WaitCancelledError",
    "ReconcileError",
]
