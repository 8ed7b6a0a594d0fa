"""API resource modules."""

from cleura.resources.cloud_profiles import CloudProfiles
from cleura.resources.shoots import Shoots
from cleura.resources.tokens import Tokens

__all__ = [
    "Shoots",
    "CloudProfiles",
    "Tokens",
]
