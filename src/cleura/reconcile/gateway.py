"""Interface the reconciler needs from an API client.

``cleura.client.CleuraClient`` implements it against the REST API. Tests
substitute an in-memory fake.
"""

from __future__ import annotations

from typing import Protocol

from cleura.models.cloud_profile import CloudProfile
from cleura.models.cluster import (
    ClusterObserved,
    ClusterRef,
    ClusterSpec,
    ClusterUpdate,
    WorkerGroupSpec,
)


class ShootGateway(Protocol):
    """Typed CRUD calls for shoot clusters and their worker groups.

    ``fetch_cluster`` raises ``NotFoundError`` for a missing cluster and
    ``ApiError`` for any other unexpected status.
    """

    def fetch_cluster(self, ref: ClusterRef) -> ClusterObserved: ...

    def create_cluster(self, spec: ClusterSpec) -> ClusterObserved: ...

    def update_cluster(self, ref: ClusterRef, update: ClusterUpdate) -> ClusterObserved: ...

    def delete_cluster(self, ref: ClusterRef) -> None: ...

    def create_worker_group(self, ref: ClusterRef, group: WorkerGroupSpec) -> ClusterObserved: ...

    def update_worker_group(self, ref: ClusterRef, group: WorkerGroupSpec) -> ClusterObserved: ...

    def delete_worker_group(self, ref: ClusterRef, name: str) -> ClusterObserved: ...

    def resolve_cloud_profile(self, domain: str) -> CloudProfile: ...
