"""Worker-group differ."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from cleura.models.cluster import WorkerGroupSpec


@dataclass(frozen=True)
class ReconciliationPlan:
    """Worker-group changes needed to converge observed to desired.

    The three lists are disjoint by name. Order within a list carries no
    meaning.
    """

    to_modify: list[WorkerGroupSpec] = field(default_factory=list)
    to_create: list[WorkerGroupSpec] = field(default_factory=list)
    to_delete: list[WorkerGroupSpec] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_modify or self.to_create or self.to_delete)

    def summary(self) -> str:
        return (
            f"{len(self.to_modify)} to modify, {len(self.to_create)} to create, "
            f"{len(self.to_delete)} to delete"
        )


def diff_worker_groups(
    desired: Iterable[WorkerGroupSpec], observed: Iterable[WorkerGroupSpec]
) -> ReconciliationPlan:
    """Compute the create, modify and delete sets between two worker-group collections.

    Groups are matched by name. A same-named pair lands in ``to_modify`` when
    any field differs. Modify and create entries carry the desired group,
    delete entries the observed one. Neither input is mutated.
    """
    desired_by_name = {group.name: group for group in desired}
    observed_by_name = {group.name: group for group in observed}

    to_modify: list[WorkerGroupSpec] = []
    to_create: list[WorkerGroupSpec] = []
    for name, group in desired_by_name.items():
        current = observed_by_name.get(name)
        if current is None:
            to_create.append(group)
        elif current != group:
            to_modify.append(group)

    to_delete = [group for name, group in observed_by_name.items() if name not in desired_by_name]

    return ReconciliationPlan(to_modify=to_modify, to_create=to_create, to_delete=to_delete)
