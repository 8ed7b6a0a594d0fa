"""Cloud profiles resource for the Cleura SDK."""

from __future__ import annotations

from cleura.models.cloud_profile import CloudProfile
from cleura.resources._base import SyncResource


class CloudProfiles(SyncResource):
    """Read the offerings of a Gardener domain.

    Example:
        ```python
        profile = client.cloud_profiles.get("public")
        print(profile.latest_kubernetes_version())
        ```
    """

    def get(self, domain: str = "public") -> CloudProfile:
        """Get the cloud profile of a domain.

        Args:
            domain: Gardener domain.

        Returns:
            CloudProfile for the domain.
        """
        data = self._http.get(f"/gardener/v1/{domain}/cloudprofile")
        return self._parse(CloudProfile, data)
