"""Filling in versions and zones left unset in a cluster spec."""

from __future__ import annotations

from cleura.exceptions import CleuraError
from cleura.models.cloud_profile import CloudProfile
from cleura.models.cluster import ClusterObserved, ClusterSpec, WorkerGroupSpec


def needs_profile(spec: ClusterSpec, observed: ClusterObserved | None = None) -> bool:
    """Whether resolving ``spec`` requires the domain's cloud profile."""
    if spec.kubernetes_version is None:
        return True
    current_groups = {g.name for g in observed.worker_groups} if observed else set()
    for group in spec.worker_groups:
        if group.image_version is None:
            return True
        if group.zones is None and group.name not in current_groups:
            return True
    return False


def resolve_spec(
    spec: ClusterSpec,
    profile: CloudProfile | None,
    observed: ClusterObserved | None = None,
) -> ClusterSpec:
    """Return a copy of ``spec`` with every optional version and zone list set.

    Unset Kubernetes and machine image versions always resolve to the latest
    supported version in ``profile``, so a cluster that leaves them out
    follows the profile on every reconcile. Unset zones keep the zones an
    existing worker group already runs in; new groups get all zones of the
    region.

    Raises:
        CleuraError: If a value is needed from a profile that has none.
    """
    current_groups = {g.name: g for g in observed.worker_groups} if observed else {}

    kubernetes_version = spec.kubernetes_version
    if kubernetes_version is None:
        kubernetes_version = _require(profile).latest_kubernetes_version()

    groups = [
        _resolve_group(group, current_groups.get(group.name), profile, spec.region)
        for group in spec.worker_groups
    ]
    return spec.model_copy(
        update={"kubernetes_version": kubernetes_version, "worker_groups": groups}, deep=True
    )


def _resolve_group(
    group: WorkerGroupSpec,
    current: WorkerGroupSpec | None,
    profile: CloudProfile | None,
    region: str,
) -> WorkerGroupSpec:
    update: dict[str, object] = {}
    if group.image_version is None:
        update["image_version"] = _require(profile).latest_machine_image_version(group.image_name)
    if group.zones is None:
        if current is not None:
            update["zones"] = list(current.zones or [])
        else:
            update["zones"] = _require(profile).zones_for(region)
    if not update:
        return group.model_copy(deep=True)
    return group.model_copy(update=update, deep=True)


def _require(profile: CloudProfile | None) -> CloudProfile:
    if profile is None:
        raise CleuraError("A cloud profile is required to resolve unset versions")
    return profile
