"""Cloud profile models.

A cloud profile lists what a Gardener domain offers: Kubernetes versions,
machine images, machine types and regions. It is used to fill in versions
and zones the caller left unset.
"""

from __future__ import annotations

from typing import Any

from packaging.version import InvalidVersion, Version
from pydantic import Field, field_validator

from cleura.exceptions import CleuraError
from cleura.models.common import WireModel

SUPPORTED = "supported"


class ProfileVersion(WireModel):
    version: str
    classification: str = ""
    expiration_date: str | None = None


class KubernetesSettings(WireModel):
    versions: list[ProfileVersion] = Field(default_factory=list)


class MachineImage(WireModel):
    name: str
    versions: list[ProfileVersion] = Field(default_factory=list)


class MachineType(WireModel):
    name: str
    cpu: str = ""
    gpu: str = ""
    memory: str = ""
    usable: bool = False
    architecture: str = ""


class Zone(WireModel):
    name: str


class Region(WireModel):
    name: str
    zones: list[Zone] = Field(default_factory=list)


class CloudProfileSpec(WireModel):
    kubernetes: KubernetesSettings = Field(default_factory=KubernetesSettings)
    machine_images: list[MachineImage] = Field(default_factory=list)
    machine_types: list[MachineType] = Field(default_factory=list)
    regions: list[Region] = Field(default_factory=list)

    @field_validator("machine_images", "machine_types", "regions", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class CloudProfile(WireModel):
    """Offerings of a Gardener domain."""

    spec: CloudProfileSpec = Field(default_factory=CloudProfileSpec)

    def latest_kubernetes_version(self) -> str:
        """Highest supported Kubernetes version.

        Raises:
            CleuraError: If the profile lists no supported version.
        """
        latest = _latest_supported(self.spec.kubernetes.versions)
        if latest is None:
            raise CleuraError("Cloud profile lists no supported Kubernetes version")
        return latest

    def latest_machine_image_version(self, image_name: str = "gardenlinux") -> str:
        """Highest supported version of the named machine image.

        Raises:
            CleuraError: If the image has no supported version.
        """
        versions = [
            v
            for image in self.spec.machine_images
            if image.name == image_name
            for v in image.versions
        ]
        latest = _latest_supported(versions)
        if latest is None:
            raise CleuraError(f"Cloud profile lists no supported version of image '{image_name}'")
        return latest

    def zones_for(self, region: str) -> list[str]:
        """Names of the availability zones in ``region``."""
        return [zone.name for r in self.spec.regions if r.name == region for zone in r.zones]

    def filtered(
        self,
        *,
        supported_kubernetes_only: bool = False,
        supported_images_only: bool = False,
        cpu: str | None = None,
        memory: str | None = None,
    ) -> CloudProfile:
        """Return a copy narrowed to supported versions and matching machine types."""
        spec = self.spec.model_copy(deep=True)
        if supported_kubernetes_only:
            spec.kubernetes.versions = [
                v for v in spec.kubernetes.versions if v.classification == SUPPORTED
            ]
        if supported_images_only:
            for image in spec.machine_images:
                image.versions = [v for v in image.versions if v.classification == SUPPORTED]
        if cpu or memory:
            spec.machine_types = [
                mt
                for mt in spec.machine_types
                if (not cpu or mt.cpu == cpu) and (not memory or mt.memory == memory)
            ]
        return CloudProfile(spec=spec)


def _latest_supported(versions: list[ProfileVersion]) -> str | None:
    """Pick the highest ``supported`` version by semantic ordering.

    Versions that do not parse are ignored. The original string is returned.
    """
    candidates: list[tuple[Version, str]] = []
    for v in versions:
        if v.classification != SUPPORTED:
            continue
        try:
            candidates.append((Version(v.version), v.version))
        except InvalidVersion:
            continue
    if not candidates:
        return None
    return max(candidates, key=lambda c: c[0])[1]
