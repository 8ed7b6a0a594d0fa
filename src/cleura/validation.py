"""Validation of desired shoot cluster state.

Everything here runs before a request is built, so a malformed spec never
reaches the API.
"""

from __future__ import annotations

import re
from typing import Any

from cleura.exceptions import ValidationError
from cleura.models.cluster import ClusterSpec

INT16_MIN = -(2**15)
INT16_MAX = 2**15 - 1
WORKER_GROUP_NAME_MAX_LENGTH = 6
WORKER_GROUP_NAME_PATTERN = re.compile(r"[a-z0-9]([-a-z0-9]*[a-z0-9])?")


def narrow_int16(value: int, field: str) -> int:
    """Check that ``value`` fits the wire format's signed 16-bit node counts.

    Raises:
        ValidationError: If the value would overflow.
    """
    if value > INT16_MAX or value < INT16_MIN:
        raise ValidationError(
            f"value {value} for {field} cannot be narrowed to int16 as it would overflow",
            errors=[{"field": field, "message": "out of int16 range"}],
        )
    return value


def validate_cluster_spec(spec: ClusterSpec) -> None:
    """Validate a desired cluster spec.

    All problems are collected and reported together.

    Raises:
        ValidationError: If any invariant is violated.
    """
    errors: list[dict[str, Any]] = []

    if bool(spec.network_id) != bool(spec.router_id):
        errors.append(
            {
                "field": "network_id/router_id",
                "message": "Both `network_id` and `router_id` must be set in the configuration.",
            }
        )

    for i, schedule in enumerate(spec.hibernation_schedules):
        if not schedule.start or not schedule.end:
            errors.append(
                {
                    "field": f"hibernation_schedules[{i}]",
                    "message": "Expected both start and end to be configured.",
                }
            )

    begin = spec.maintenance.time_window_begin
    end = spec.maintenance.time_window_end
    if bool(begin) != bool(end):
        errors.append(
            {
                "field": "maintenance",
                "message": "Both `time_window_begin` and `time_window_end` must be set.",
            }
        )
    elif begin and begin == end:
        errors.append(
            {
                "field": "maintenance",
                "message": "`time_window_begin` and `time_window_end` can not be equal.",
            }
        )

    seen: set[str] = set()
    for group in spec.worker_groups:
        field = f"worker_groups[{group.name}]"
        if (
            not WORKER_GROUP_NAME_PATTERN.fullmatch(group.name)
            or len(group.name) > WORKER_GROUP_NAME_MAX_LENGTH
        ):
            errors.append(
                {
                    "field": field,
                    "message": (
                        "Worker group names must only contain lowercase alphanumeric "
                        "characters and hyphens, not begin or end with a hyphen and "
                        f"not be longer than {WORKER_GROUP_NAME_MAX_LENGTH} characters."
                    ),
                }
            )
        if group.name in seen:
            errors.append({"field": field, "message": "Worker group names must be unique."})
        seen.add(group.name)

        for attr in ("min_nodes", "max_nodes"):
            value = getattr(group, attr)
            if value > INT16_MAX or value < INT16_MIN:
                errors.append({"field": f"{field}.{attr}", "message": "out of int16 range"})
        if group.min_nodes > group.max_nodes:
            errors.append(
                {"field": field, "message": "`min_nodes` must not be greater than `max_nodes`."}
            )

    if errors:
        summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        raise ValidationError(f"Invalid cluster spec '{spec.name}': {summary}", errors=errors)
