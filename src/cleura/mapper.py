"""Translation between cluster models and the Gardener wire format."""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError

from cleura.exceptions import ResponseError
from cleura.models.cluster import (
    DEFAULT_FLOATING_POOL,
    AdvertisedAddress,
    ClusterObserved,
    ClusterRef,
    ClusterSpec,
    ClusterUpdate,
    Condition,
    HibernationSchedule,
    LastOperation,
    MaintenancePolicy,
    Taint,
    WorkerGroupSpec,
)
from cleura.models.common import KeyValue
from cleura.models.shoot import (
    AutoUpdateDetails,
    CreatedShoot,
    HibernationDetails,
    HibernationScheduleWire,
    ImageDetails,
    InfrastructureConfig,
    KubernetesDetails,
    MachineDetails,
    MaintenanceDetails,
    NetworkDetails,
    ProviderRequest,
    ProviderResponse,
    Router,
    ShootCreateResponse,
    ShootRequest,
    ShootRequestConfig,
    ShootResponse,
    TimeWindowDetails,
    VolumeDetails,
    WireTaint,
    WorkerGroupRequest,
    WorkerRequest,
    WorkerResponse,
)
from cleura.validation import narrow_int16


def build_worker_request(group: WorkerGroupSpec) -> WorkerRequest:
    """Build the wire form of a worker group.

    Raises:
        ValidationError: If a node count does not fit in 16 bits.
    """
    return WorkerRequest(
        name=group.name,
        minimum=narrow_int16(group.min_nodes, f"worker_groups[{group.name}].min_nodes"),
        maximum=narrow_int16(group.max_nodes, f"worker_groups[{group.name}].max_nodes"),
        machine=MachineDetails(
            type=group.machine_type,
            image=ImageDetails(name=group.image_name, version=group.image_version or ""),
        ),
        volume=VolumeDetails(size=group.volume_size),
        annotations=_to_pairs(group.annotations),
        labels=_to_pairs(group.labels),
        taints=[WireTaint(key=t.key, value=t.value, effect=str(t.effect)) for t in group.taints],
        zones=list(group.zones) if group.zones is not None else None,
    )


def build_worker_group_request(group: WorkerGroupSpec) -> WorkerGroupRequest:
    return WorkerGroupRequest(worker=build_worker_request(group))


def build_create_request(spec: ClusterSpec) -> ShootRequest:
    """Build the create body for a resolved cluster spec.

    Hibernation is only sent when schedules are configured.
    """
    networks = None
    if spec.network_id or spec.worker_cidr:
        networks = NetworkDetails(
            id=spec.network_id,
            router=Router(id=spec.router_id) if spec.router_id else None,
            workers=spec.worker_cidr,
        )

    hibernation = None
    if spec.hibernation_schedules:
        hibernation = HibernationDetails(
            enabled=True, schedules=_schedules_to_wire(spec.hibernation_schedules)
        )

    return ShootRequest(
        shoot=ShootRequestConfig(
            name=spec.name,
            kubernetes=KubernetesDetails(version=spec.kubernetes_version or ""),
            provider=ProviderRequest(
                infrastructure_config=InfrastructureConfig(
                    floating_pool_name=spec.floating_pool_name, networks=networks
                ),
                workers=[build_worker_request(g) for g in spec.worker_groups],
            ),
            hibernation=hibernation,
            maintenance=_maintenance_to_wire(spec.maintenance),
        )
    )


def build_update_request(update: ClusterUpdate) -> ShootRequest:
    """Build a partial update body holding only the fields set on ``update``.

    An empty schedule list is sent as such so that hibernation gets cleared.
    """
    config = ShootRequestConfig()
    if update.kubernetes_version is not None:
        config.kubernetes = KubernetesDetails(version=update.kubernetes_version)
    if update.hibernation_schedules is not None:
        config.hibernation = HibernationDetails(
            enabled=bool(update.hibernation_schedules),
            schedules=_schedules_to_wire(update.hibernation_schedules),
        )
    if update.maintenance is not None:
        config.maintenance = _maintenance_to_wire(update.maintenance)
    return ShootRequest(shoot=config)


def observed_from_response(response: ShootResponse, ref: ClusterRef) -> ClusterObserved:
    """Map a get/update/worker response to the observed cluster state.

    Raises:
        ResponseError: If the response holds values the models reject.
    """
    try:
        return _observed(response, ref)
    except PydanticValidationError as e:
        raise ResponseError(f"Unexpected shoot in response: {e}") from e


def _observed(response: ShootResponse, ref: ClusterRef) -> ClusterObserved:
    spec = response.spec
    status = response.status
    last_operation = None
    if status.last_operation is not None:
        last_operation = LastOperation(**status.last_operation.model_dump())

    return ClusterObserved(
        uid=response.metadata.uid,
        name=response.metadata.name or ref.name,
        region=spec.region or ref.region,
        project=ref.project,
        domain=ref.domain,
        kubernetes_version=spec.kubernetes.version,
        hibernated=status.hibernated,
        hibernation_enabled=bool(spec.hibernation.enabled),
        hibernation_schedules=_schedules_from_wire(spec.hibernation.schedules),
        conditions=[Condition(**c.model_dump()) for c in status.conditions],
        last_operation=last_operation,
        advertised_addresses=[
            AdvertisedAddress(**a.model_dump()) for a in status.advertised_addresses
        ],
        maintenance=_maintenance_from_wire(spec.maintenance),
        **_provider_fields(spec.provider),
    )


def observed_from_create_response(
    response: ShootCreateResponse, ref: ClusterRef
) -> ClusterObserved:
    """Map a create response, which carries no status yet."""
    shoot: CreatedShoot = response.shoot
    return ClusterObserved(
        uid=shoot.uid,
        name=shoot.name or ref.name,
        region=ref.region,
        project=ref.project,
        domain=ref.domain,
        kubernetes_version=shoot.kubernetes.version,
        hibernation_enabled=bool(shoot.hibernation.enabled),
        hibernation_schedules=_schedules_from_wire(shoot.hibernation.schedules),
        maintenance=_maintenance_from_wire(shoot.maintenance),
        **_provider_fields(shoot.provider),
    )


def worker_group_from_wire(worker: WorkerResponse) -> WorkerGroupSpec:
    return WorkerGroupSpec(
        name=worker.name,
        machine_type=worker.machine.type,
        image_name=worker.machine.image.name,
        image_version=worker.machine.image.version,
        volume_size=worker.volume.size,
        min_nodes=worker.minimum,
        max_nodes=worker.maximum,
        annotations=dict(worker.annotations),
        labels=dict(worker.labels),
        taints=[Taint(key=t.key, value=t.value, effect=t.effect) for t in worker.taints],
        zones=list(worker.zones),
    )


def spec_from_observed(observed: ClusterObserved) -> ClusterSpec:
    """Reconstruct a desired spec from remote state, for import."""
    return ClusterSpec(
        name=observed.name,
        region=observed.region,
        project=observed.project,
        domain=observed.domain,
        kubernetes_version=observed.kubernetes_version or None,
        floating_pool_name=observed.floating_pool_name or DEFAULT_FLOATING_POOL,
        network_id=observed.network_id or None,
        router_id=observed.router_id or None,
        worker_cidr=observed.worker_cidr or None,
        worker_groups=[g.model_copy(deep=True) for g in observed.worker_groups],
        hibernation_schedules=[s.model_copy() for s in observed.hibernation_schedules],
        maintenance=observed.maintenance.model_copy(),
    )


def _to_pairs(mapping: dict[str, str]) -> list[KeyValue]:
    return [KeyValue(key=k, value=v) for k, v in mapping.items()]


def _schedules_to_wire(schedules: list[HibernationSchedule]) -> list[HibernationScheduleWire]:
    return [HibernationScheduleWire(start=s.start or "", end=s.end or "") for s in schedules]


def _schedules_from_wire(
    schedules: list[HibernationScheduleWire] | None,
) -> list[HibernationSchedule]:
    return [HibernationSchedule(start=s.start, end=s.end) for s in schedules or []]


def _maintenance_to_wire(policy: MaintenancePolicy) -> MaintenanceDetails:
    return MaintenanceDetails(
        auto_update=AutoUpdateDetails(
            kubernetes_version=policy.auto_update_kubernetes,
            machine_image_version=policy.auto_update_machine_image,
        ),
        time_window=TimeWindowDetails(
            begin=policy.time_window_begin or "", end=policy.time_window_end or ""
        ),
    )


def _maintenance_from_wire(details: MaintenanceDetails) -> MaintenancePolicy:
    """Values the API leaves out take the ``MaintenancePolicy`` defaults."""
    fields: dict[str, object] = {}
    auto_update, window = details.auto_update, details.time_window
    if auto_update.kubernetes_version is not None:
        fields["auto_update_kubernetes"] = auto_update.kubernetes_version
    if auto_update.machine_image_version is not None:
        fields["auto_update_machine_image"] = auto_update.machine_image_version
    if window.begin is not None:
        fields["time_window_begin"] = window.begin or None
    if window.end is not None:
        fields["time_window_end"] = window.end or None
    return MaintenancePolicy(**fields)


def _provider_fields(provider: ProviderResponse) -> dict[str, object]:
    infra = provider.infrastructure_config
    networks = infra.networks or NetworkDetails()
    return {
        "floating_pool_name": infra.floating_pool_name,
        "network_id": networks.id or "",
        "router_id": networks.router.id if networks.router else "",
        "worker_cidr": networks.workers or "",
        "worker_groups": [worker_group_from_wire(w) for w in provider.workers],
    }
