"""
Value types for the color mesh topology.

Downstream specs hold typed references to the specs they depend on
(a route holds its router and target nodes, a virtual service holds its
provider) instead of copying name strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from colormesh.core.errors import InvalidWeightError, ValidationError


class ResourceKind(str, Enum):
    """Mesh overlay resource kinds, in creation order."""

    MESH = "mesh"
    VIRTUAL_NODE = "virtual_node"
    VIRTUAL_ROUTER = "virtual_router"
    ROUTE = "route"
    VIRTUAL_SERVICE = "virtual_service"


def make_resource_id(kind: ResourceKind, name: str) -> str:
    """Build a plan-unique resource id such as ``virtual_node/blue-vn``."""
    return f"{kind.value}/{name}"


@dataclass(frozen=True)
class Variant:
    """One backend flavor (a color)."""

    identifier: str
    index: int

    @property
    def is_default(self) -> bool:
        return self.index == 0


@dataclass(frozen=True)
class ServiceRecord:
    """Compute service for a single colorteller variant."""

    variant: Variant
    service_name: str
    port: int
    image: str
    log_stream_prefix: str
    dns_ttl_seconds: int | None = None  # None: registry default (default variant)
    environment: dict[str, str] = field(default_factory=dict, hash=False)
    platform_family_hint: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        result: dict[str, Any] = {
            "variant": self.variant.identifier,
            "service_name": self.service_name,
            "port": self.port,
            "image": self.image,
            "log_stream_prefix": self.log_stream_prefix,
            "environment": dict(self.environment),
        }
        if self.dns_ttl_seconds is not None:
            result["dns_ttl_seconds"] = self.dns_ttl_seconds
        if self.platform_family_hint is not None:
            result["platform_family_hint"] = self.platform_family_hint
        return result


@dataclass(frozen=True)
class GatewayRecord:
    """Edge gateway service that calls colorteller through the mesh."""

    name: str
    port: int
    image: str
    environment: dict[str, str] = field(default_factory=dict, hash=False)
    log_stream_prefix: str = "gateway"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "name": self.name,
            "port": self.port,
            "image": self.image,
            "log_stream_prefix": self.log_stream_prefix,
            "environment": dict(self.environment),
        }


@dataclass(frozen=True)
class MeshSpec:
    """Top-level mesh identity."""

    name: str

    kind = ResourceKind.MESH

    @property
    def resource_id(self) -> str:
        return make_resource_id(self.kind, self.name)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"kind": self.kind.value, "name": self.name}


@dataclass(frozen=True)
class MeshNode:
    """Virtual node for one variant."""

    variant: Variant
    name: str
    port: int
    hostname: str
    protocol: str = "http"

    kind = ResourceKind.VIRTUAL_NODE

    @property
    def resource_id(self) -> str:
        return make_resource_id(self.kind, self.name)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "kind": self.kind.value,
            "name": self.name,
            "variant": self.variant.identifier,
            "port": self.port,
            "protocol": self.protocol,
            "hostname": self.hostname,
        }


@dataclass(frozen=True)
class WeightedTarget:
    """A (virtual node, weight) pair on a route."""

    node: MeshNode
    weight: int

    def __post_init__(self) -> None:
        # bool is an int subclass but never a meaningful weight
        if isinstance(self.weight, bool) or not isinstance(self.weight, int):
            raise InvalidWeightError(
                f"Weight for {self.node.name} must be an integer, got {self.weight!r}",
                details={"node": self.node.name},
            )
        if self.weight < 0:
            raise InvalidWeightError(
                f"Weight for {self.node.name} must be >= 0, got {self.weight}",
                details={"node": self.node.name},
            )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"virtual_node": self.node.name, "weight": self.weight}


@dataclass(frozen=True)
class RouterSpec:
    """Virtual router fronting all variants."""

    name: str
    port: int
    protocol: str = "http"

    kind = ResourceKind.VIRTUAL_ROUTER

    @property
    def resource_id(self) -> str:
        return make_resource_id(self.kind, self.name)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "kind": self.kind.value,
            "name": self.name,
            "port": self.port,
            "protocol": self.protocol,
        }


@dataclass(frozen=True)
class RouteSpec:
    """HTTP route on the router with weighted targets."""

    name: str
    router: RouterSpec
    targets: tuple[WeightedTarget, ...]
    prefix: str = "/"

    kind = ResourceKind.ROUTE

    def __post_init__(self) -> None:
        if not self.targets:
            raise InvalidWeightError(f"Route {self.name} has no targets")
        if sum(t.weight for t in self.targets) <= 0:
            raise InvalidWeightError(
                f"Route {self.name} weights must sum to more than 0",
                details={"targets": [t.node.name for t in self.targets]},
            )
        if not self.prefix.startswith("/"):
            raise ValidationError(f"Route prefix must start with '/', got {self.prefix!r}")

    @property
    def resource_id(self) -> str:
        return make_resource_id(self.kind, self.name)

    @property
    def total_weight(self) -> int:
        return sum(t.weight for t in self.targets)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "kind": self.kind.value,
            "name": self.name,
            "virtual_router": self.router.name,
            "prefix": self.prefix,
            "weighted_targets": [t.to_dict() for t in self.targets],
        }


@dataclass(frozen=True)
class VirtualServiceSpec:
    """Stable logical address; provided by exactly one router or node."""

    name: str
    router: RouterSpec | None = None
    node: MeshNode | None = None

    kind = ResourceKind.VIRTUAL_SERVICE

    def __post_init__(self) -> None:
        if (self.router is None) == (self.node is None):
            raise ValidationError(
                f"Virtual service {self.name} needs exactly one provider (router or node)"
            )

    @property
    def resource_id(self) -> str:
        return make_resource_id(self.kind, self.name)

    @property
    def provider(self) -> RouterSpec | MeshNode:
        return self.router if self.router is not None else self.node  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        if self.router is not None:
            provider = {"virtual_router": self.router.name}
        else:
            provider = {"virtual_node": self.node.name}  # type: ignore[union-attr]
        return {"kind": self.kind.value, "name": self.name, "provider": provider}


MeshResource = Union[MeshSpec, MeshNode, RouterSpec, RouteSpec, VirtualServiceSpec]


@dataclass(frozen=True)
class DependencyEdge:
    """``target`` reads an identifier produced by ``source``."""

    source: str
    target: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"source": self.source, "target": self.target}
