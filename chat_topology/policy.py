"""
Environment policies.

The cutover (transitional) and hardened environments share one graph
constructor and differ only in the record selected here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from chat_topology.errors import ConfigurationError


class Variant(str, Enum):
    TRANSITIONAL = "transitional"
    HARDENED = "hardened"


@dataclass(frozen=True)
class RateLimit:
    average: int
    burst: int

    def as_spec(self):
        return {"rateLimit": {"average": self.average, "burst": self.burst}}


@dataclass(frozen=True)
class ImageCachePolicy:
    cache_from_stages: Tuple[str, ...] = ()
    inline_cache: bool = False

    @property
    def build_args(self):
        return {"BUILDKIT_INLINE_CACHE": "1"} if self.inline_cache else {}


@dataclass(frozen=True)
class ResourceSizing:
    cpu_request: str = "100m"
    memory_request: str = "128Mi"
    cpu_limit: str = "500m"
    memory_limit: str = "512Mi"

    def as_manifest(self):
        return {
            "requests": {"cpu": self.cpu_request, "memory": self.memory_request},
            "limits": {"cpu": self.cpu_limit, "memory": self.memory_limit},
        }


@dataclass(frozen=True)
class EnvironmentPolicy:
    variant: Variant
    entry_points: Tuple[str, ...]
    rate_limit: RateLimit
    # None: the rate-limit middleware takes the workload's name.
    rate_limit_name: Optional[str]
    redirect_to_https: bool
    pre_stop_delay_seconds: Optional[int]
    resources: Optional[ResourceSizing]
    image_cache: ImageCachePolicy = field(default_factory=ImageCachePolicy)

    @property
    def accepts_plaintext(self):
        return "web" in self.entry_points

    def rate_limit_id(self, identity):
        return self.rate_limit_name or identity.name


TRANSITIONAL = EnvironmentPolicy(
    variant=Variant.TRANSITIONAL,
    entry_points=("web",),
    rate_limit=RateLimit(average=500, burst=100),
    rate_limit_name="ratelimit",
    redirect_to_https=True,
    pre_stop_delay_seconds=5,
    resources=None,
    image_cache=ImageCachePolicy(cache_from_stages=("build",), inline_cache=True),
)

HARDENED = EnvironmentPolicy(
    variant=Variant.HARDENED,
    entry_points=("websecure",),
    rate_limit=RateLimit(average=300, burst=100),
    rate_limit_name=None,
    redirect_to_https=False,
    pre_stop_delay_seconds=None,
    resources=ResourceSizing(),
    image_cache=ImageCachePolicy(inline_cache=True),
)

POLICIES = {
    "transitional": TRANSITIONAL,
    "cutover": TRANSITIONAL,
    "hardened": HARDENED,
}


def policy_for(variant):
    try:
        return POLICIES[variant.strip().lower()]
    except KeyError:
        raise ConfigurationError(
            f"unknown variant '{variant}', expected one of {sorted(POLICIES)}"
        ) from None
