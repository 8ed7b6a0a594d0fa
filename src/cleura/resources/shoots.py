"""Shoot clusters resource for the Cleura SDK."""

from __future__ import annotations

import logging

from cleura.models.cluster import ClusterRef
from cleura.models.shoot import (
    ShootCreateResponse,
    ShootRequest,
    ShootResponse,
    WorkerGroupRequest,
)
from cleura.resources._base import SyncResource

logger = logging.getLogger("cleura.http")


def shoots_path(domain: str, region: str, project: str) -> str:
    return f"/gardener/v1/{domain}/shoot/{region}/{project}"


def shoot_path(ref: ClusterRef) -> str:
    return f"{shoots_path(ref.domain, ref.region, ref.project)}/{ref.name}"


class Shoots(SyncResource):
    """Shoot clusters resource.

    Every call here starts or inspects a backend operation; none of them
    wait for it. Use ``cleura.reconcile`` to drive a cluster to a state.

    Example:
        ```python
        from cleura import CleuraClient, ClusterRef

        client = CleuraClient()
        ref = ClusterRef.parse("public,demo,sto2,0123abcd")

        shoot = client.shoots.get(ref)
        print(shoot.status.last_operation)

        config = client.shoots.generate_kubeconfig(ref, duration=3600)
        ```
    """

    def get(self, ref: ClusterRef) -> ShootResponse:
        """Get a shoot cluster.

        Args:
            ref: Cluster coordinates.

        Returns:
            The shoot as reported by the API.

        Raises:
            NotFoundError: If the cluster does not exist.
            ResponseError: If the body is not a shoot.
        """
        data = self._http.get(shoot_path(ref))
        return self._parse(ShootResponse, data)

    def create(
        self, domain: str, region: str, project: str, request: ShootRequest
    ) -> ShootCreateResponse:
        """Start creating a shoot cluster.

        Args:
            domain: Gardener domain.
            region: Cloud region.
            project: Project ID.
            request: Create body.

        Returns:
            The accepted shoot. Status is not populated yet.
        """
        data = self._http.post(shoots_path(domain, region, project), json=request.to_payload())
        return self._parse(ShootCreateResponse, data)

    def update(self, ref: ClusterRef, request: ShootRequest) -> ShootResponse:
        """Start updating cluster-level settings.

        Args:
            ref: Cluster coordinates.
            request: Update body holding only the fields to change.
        """
        data = self._http.put(shoot_path(ref), json=request.to_payload())
        return self._parse(ShootResponse, data)

    def delete(self, ref: ClusterRef) -> None:
        """Start deleting a shoot cluster.

        Args:
            ref: Cluster coordinates.
        """
        self._http.delete(shoot_path(ref))

    def add_worker_group(self, ref: ClusterRef, request: WorkerGroupRequest) -> ShootResponse:
        """Add a worker group to a cluster."""
        data = self._http.post(f"{shoot_path(ref)}/worker", json=request.to_payload())
        return self._parse(ShootResponse, data)

    def update_worker_group(
        self, ref: ClusterRef, name: str, request: WorkerGroupRequest
    ) -> ShootResponse:
        """Replace the settings of an existing worker group."""
        data = self._http.put(f"{shoot_path(ref)}/worker/{name}", json=request.to_payload())
        return self._parse(ShootResponse, data)

    def delete_worker_group(self, ref: ClusterRef, name: str) -> ShootResponse:
        """Remove a worker group from a cluster."""
        data = self._http.delete(f"{shoot_path(ref)}/worker/{name}")
        return self._parse(ShootResponse, data)

    def generate_kubeconfig(self, ref: ClusterRef, duration: int = 3600) -> str:
        """Generate an admin kubeconfig for a cluster.

        Args:
            ref: Cluster coordinates.
            duration: Validity of the credentials, in seconds.

        Returns:
            The kubeconfig as YAML text.
        """
        logger.debug("Generating kubeconfig for %s valid for %ds", ref, duration)
        return self._http.post_text(f"{shoot_path(ref)}/kubeconfig", json={"duration": duration})
