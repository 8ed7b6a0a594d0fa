"""Pydantic models for the Cleura SDK."""

from cleura.models.cloud_profile import CloudProfile, MachineImage, ProfileVersion, Region
from cleura.models.cluster import (
    ClusterObserved,
    ClusterRef,
    ClusterSpec,
    Condition,
    HibernationSchedule,
    LastOperation,
    MaintenancePolicy,
    Taint,
    TaintEffect,
    WorkerGroupSpec,
)
from cleura.models.common import CleuraModel, KeyValue, WireModel
from cleura.models.shoot import ShootCreateResponse, ShootRequest, ShootResponse

__all__ = [
    # Common
    "CleuraModel",
    "WireModel",
    "KeyValue",
    # Cluster
    "ClusterSpec",
    "ClusterObserved",
    "ClusterRef",
    "WorkerGroupSpec",
    "Taint",
    "TaintEffect",
    "HibernationSchedule",
    "MaintenancePolicy",
    "Condition",
    "LastOperation",
    # Wire
    "ShootRequest",
    "ShootResponse",
    "ShootCreateResponse",
    # Cloud profile
    "CloudProfile",
    "MachineImage",
    "ProfileVersion",
    "Region",
]
