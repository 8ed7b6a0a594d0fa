"""Wire models for the Gardener shoot endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from cleura.models.common import KeyValue, WireModel


def _pairs_to_map(value: Any) -> Any:
    """Accept both ``{"k": "v"}`` and ``[{"key": "k", "value": "v"}]``."""
    if value is None:
        return {}
    if isinstance(value, list):
        return {item["key"]: item.get("value", "") for item in value}
    return value


class ImageDetails(WireModel):
    name: str = ""
    version: str = ""


class MachineDetails(WireModel):
    type: str = ""
    image: ImageDetails = Field(default_factory=ImageDetails)


class VolumeDetails(WireModel):
    size: str = ""


class WireTaint(WireModel):
    key: str
    value: str = ""
    effect: str


class WorkerRequest(WireModel):
    """Worker group as sent on create and update."""

    name: str
    minimum: int
    maximum: int
    max_surge: int | None = None
    machine: MachineDetails
    volume: VolumeDetails
    annotations: list[KeyValue] = Field(default_factory=list)
    labels: list[KeyValue] = Field(default_factory=list)
    taints: list[WireTaint] = Field(default_factory=list)
    zones: list[str] | None = None


class WorkerGroupRequest(WireModel):
    worker: WorkerRequest


class WorkerResponse(WireModel):
    """Worker group as returned by the API."""

    name: str
    minimum: int = 0
    maximum: int = 0
    max_surge: int | None = None
    machine: MachineDetails = Field(default_factory=MachineDetails)
    volume: VolumeDetails = Field(default_factory=VolumeDetails)
    annotations: dict[str, str] = Field(default_factory=dict)
    labels: dict[str, str] = Field(default_factory=dict)
    taints: list[WireTaint] = Field(default_factory=list)
    zones: list[str] = Field(default_factory=list)

    @field_validator("annotations", "labels", mode="before")
    @classmethod
    def _normalize_pairs(cls, value: Any) -> Any:
        return _pairs_to_map(value)

    @field_validator("taints", "zones", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class Router(WireModel):
    id: str = ""


class NetworkDetails(WireModel):
    id: str | None = None
    router: Router | None = None
    workers: str | None = None


class InfrastructureConfig(WireModel):
    floating_pool_name: str = ""
    networks: NetworkDetails | None = None


class KubernetesDetails(WireModel):
    version: str = ""


class HibernationScheduleWire(WireModel):
    start: str = ""
    end: str = ""
    location: str | None = None


class HibernationDetails(WireModel):
    enabled: bool | None = None
    schedules: list[HibernationScheduleWire] | None = None


class AutoUpdateDetails(WireModel):
    kubernetes_version: bool | None = None
    machine_image_version: bool | None = None


class TimeWindowDetails(WireModel):
    begin: str | None = None
    end: str | None = None


class MaintenanceDetails(WireModel):
    auto_update: AutoUpdateDetails = Field(default_factory=AutoUpdateDetails)
    time_window: TimeWindowDetails = Field(default_factory=TimeWindowDetails)

    @field_validator("auto_update", "time_window", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class ProviderRequest(WireModel):
    infrastructure_config: InfrastructureConfig
    workers: list[WorkerRequest]


class ShootRequestConfig(WireModel):
    """Body of the ``shoot`` key on create and update.

    On update only the changed top-level fields are set.
    """

    name: str | None = None
    kubernetes: KubernetesDetails | None = None
    provider: ProviderRequest | None = None
    hibernation: HibernationDetails | None = None
    maintenance: MaintenanceDetails | None = None


class ShootRequest(WireModel):
    shoot: ShootRequestConfig


class ProviderResponse(WireModel):
    infrastructure_config: InfrastructureConfig = Field(default_factory=InfrastructureConfig)
    workers: list[WorkerResponse] = Field(default_factory=list)

    @field_validator("workers", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class Metadata(WireModel):
    name: str = ""
    uid: str = ""


class ShootSpec(WireModel):
    purpose: str = ""
    region: str = ""
    provider: ProviderResponse = Field(default_factory=ProviderResponse)
    kubernetes: KubernetesDetails = Field(default_factory=KubernetesDetails)
    hibernation: HibernationDetails = Field(default_factory=HibernationDetails)
    maintenance: MaintenanceDetails = Field(default_factory=MaintenanceDetails)

    @field_validator("hibernation", "maintenance", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class ConditionWire(WireModel):
    type: str
    status: str
    message: str = ""


class LastOperationWire(WireModel):
    type: str = ""
    state: str = ""
    progress: int = 0
    description: str = ""


class AdvertisedAddressWire(WireModel):
    name: str
    url: str


class ShootStatus(WireModel):
    conditions: list[ConditionWire] = Field(default_factory=list)
    hibernated: bool = False
    last_operation: LastOperationWire | None = None
    advertised_addresses: list[AdvertisedAddressWire] = Field(default_factory=list)

    @field_validator("conditions", "advertised_addresses", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class ShootResponse(WireModel):
    """Shoot as returned by get, update and the worker endpoints."""

    metadata: Metadata = Field(default_factory=Metadata)
    spec: ShootSpec = Field(default_factory=ShootSpec)
    status: ShootStatus = Field(default_factory=ShootStatus)


class CreatedShoot(WireModel):
    name: str = ""
    uid: str = ""
    kubernetes: KubernetesDetails = Field(default_factory=KubernetesDetails)
    provider: ProviderResponse = Field(default_factory=ProviderResponse)
    hibernation: HibernationDetails = Field(default_factory=HibernationDetails)
    maintenance: MaintenanceDetails = Field(default_factory=MaintenanceDetails)


class ShootCreateResponse(WireModel):
    """Shoot as returned by create. Status is not populated yet."""

    shoot: CreatedShoot = Field(default_factory=CreatedShoot)
