"""Shoot cluster models.

``ClusterSpec`` is the desired state supplied by the caller,
``ClusterObserved`` is what the API reports. Both compare structurally, so
two worker groups are "unchanged" exactly when every field is equal.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from cleura.exceptions import ValidationError
from cleura.models.common import CleuraModel

DEFAULT_DOMAIN = "public"
DEFAULT_FLOATING_POOL = "ext-net"
DEFAULT_IMAGE_NAME = "gardenlinux"
DEFAULT_VOLUME_SIZE = "50Gi"
DEFAULT_WINDOW_BEGIN = "000000+0100"
DEFAULT_WINDOW_END = "010000+0100"


class TaintEffect(str, Enum):
    """Kubernetes taint effect."""

    NO_SCHEDULE = "NoSchedule"
    NO_EXECUTE = "NoExecute"
    PREFER_NO_SCHEDULE = "PreferNoSchedule"


class Taint(CleuraModel):
    """Node taint applied to every node of a worker group."""

    key: str
    value: str = ""
    effect: TaintEffect


class WorkerGroupSpec(CleuraModel):
    """A named pool of worker nodes. The name is the identity key."""

    name: str = Field(..., description="Worker group name")
    machine_type: str = Field(..., description="Machine flavor, e.g. b.2c4gb")
    image_name: str = Field(DEFAULT_IMAGE_NAME, description="Machine image name")
    image_version: str | None = Field(None, description="Machine image version")
    volume_size: str = Field(DEFAULT_VOLUME_SIZE, description="Worker node volume size")
    min_nodes: int = Field(..., description="Minimum node count")
    max_nodes: int = Field(..., description="Maximum node count")
    annotations: dict[str, str] = Field(default_factory=dict)
    labels: dict[str, str] = Field(default_factory=dict)
    taints: list[Taint] = Field(default_factory=list)
    zones: list[str] | None = Field(None, description="Availability zones")


class HibernationSchedule(CleuraModel):
    """Cron window during which the control plane is hibernated."""

    start: str | None = None
    end: str | None = None


class MaintenancePolicy(CleuraModel):
    """Automatic update flags and the maintenance time window."""

    auto_update_kubernetes: bool = True
    auto_update_machine_image: bool = True
    time_window_begin: str | None = DEFAULT_WINDOW_BEGIN
    time_window_end: str | None = DEFAULT_WINDOW_END


class ClusterRef(CleuraModel):
    """Coordinates that identify a shoot cluster."""

    domain: str
    name: str
    region: str
    project: str

    @classmethod
    def parse(cls, identifier: str) -> ClusterRef:
        """Parse an identifier of the form ``domain,name,region,project``.

        Raises:
            ValidationError: If the identifier does not have four non-empty parts.
        """
        parts = identifier.split(",")
        if len(parts) != 4 or any(part.strip() == "" for part in parts):
            raise ValidationError(
                "Expected identifier with format: GardenerDomain,Name,Region,Project_id. "
                f"Got: {identifier!r}",
                errors=[{"field": "id", "message": "expected 4 non-empty comma separated parts"}],
            )
        domain, name, region, project = (part.strip() for part in parts)
        return cls(domain=domain, name=name, region=region, project=project)

    def __str__(self) -> str:
        return f"{self.domain},{self.name},{self.region},{self.project}"


class ClusterSpec(CleuraModel):
    """Desired state of a shoot cluster."""

    name: str
    region: str
    project: str
    domain: str = DEFAULT_DOMAIN
    kubernetes_version: str | None = None
    floating_pool_name: str = DEFAULT_FLOATING_POOL
    network_id: str | None = None
    router_id: str | None = None
    worker_cidr: str | None = None
    worker_groups: list[WorkerGroupSpec] = Field(default_factory=list)
    hibernation_schedules: list[HibernationSchedule] = Field(default_factory=list)
    maintenance: MaintenancePolicy = Field(default_factory=MaintenancePolicy)

    @property
    def ref(self) -> ClusterRef:
        return ClusterRef(
            domain=self.domain, name=self.name, region=self.region, project=self.project
        )


class ClusterUpdate(CleuraModel):
    """Cluster-level fields to change. Unset fields are left alone."""

    kubernetes_version: str | None = None
    hibernation_schedules: list[HibernationSchedule] | None = None
    maintenance: MaintenancePolicy | None = None

    @property
    def changed_fields(self) -> list[str]:
        return [name for name in type(self).model_fields if getattr(self, name) is not None]

    def is_empty(self) -> bool:
        return not self.changed_fields


class Condition(CleuraModel):
    """Status condition reported for a shoot."""

    type: str
    status: str
    message: str = ""


class LastOperation(CleuraModel):
    """Most recent asynchronous operation the backend ran on a shoot."""

    type: str = ""
    state: str = ""
    progress: int = 0
    description: str = ""


class AdvertisedAddress(CleuraModel):
    """Endpoint published by the shoot control plane."""

    name: str
    url: str


class ClusterObserved(CleuraModel):
    """Remote state of a shoot cluster as reported by the API."""

    uid: str = ""
    name: str
    region: str = ""
    project: str = ""
    domain: str = DEFAULT_DOMAIN
    kubernetes_version: str = ""
    hibernated: bool = False
    hibernation_enabled: bool = False
    hibernation_schedules: list[HibernationSchedule] = Field(default_factory=list)
    conditions: list[Condition] = Field(default_factory=list)
    last_operation: LastOperation | None = None
    worker_groups: list[WorkerGroupSpec] = Field(default_factory=list)
    floating_pool_name: str = ""
    network_id: str = ""
    router_id: str = ""
    worker_cidr: str = ""
    maintenance: MaintenancePolicy = Field(default_factory=MaintenancePolicy)
    advertised_addresses: list[AdvertisedAddress] = Field(default_factory=list)

    @property
    def ref(self) -> ClusterRef:
        return ClusterRef(
            domain=self.domain, name=self.name, region=self.region, project=self.project
        )

    def with_uid_fallback(self, uid: str | None) -> ClusterObserved:
        """Return a copy carrying ``uid`` when the API left the UID out."""
        if self.uid or not uid:
            return self
        return self.model_copy(update={"uid": uid})
