"""
Contracts for infrastructure providers.

The core only defines these interfaces; backends live in sibling modules.
Every call is blocking. Idempotency is the provider's responsibility.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from colormesh.topology.models import (
    MeshNode,
    MeshSpec,
    ResourceKind,
    RouterSpec,
    RouteSpec,
    VirtualServiceSpec,
)

NETWORK_NAME = "demo-vpc"
CLUSTER_NAME = "demo-cluster"


class InfraKind(str, Enum):
    """Infrastructure resources created ahead of the mesh overlay."""

    NETWORK = "network"
    SECURITY_GROUP = "security_group"
    CLUSTER = "cluster"
    NAMESPACE = "namespace"
    SERVICE = "service"
    ENTRY_POINT = "entry_point"


def infra_resource_id(kind: InfraKind, name: str) -> str:
    """Build a resource id such as ``service/gateway``."""
    return f"{kind.value}/{name}"


@dataclass(frozen=True)
class SubnetSpec:
    """Subnet group spread over the network's availability zones."""

    name: str
    cidr_mask: int
    public: bool
    zones: int = 2


@dataclass(frozen=True)
class IngressRule:
    """Allow TCP ``port`` from ``source`` ("any" or "internal")."""

    port: int
    source: str = "internal"


@dataclass(frozen=True)
class HealthCheckSpec:
    """Load balancer health check for the public entry point."""

    path: str = "/ping"
    port: int = 8080
    interval_seconds: int = 30
    timeout_seconds: int = 5
    healthy_threshold: int = 2
    unhealthy_threshold: int = 2
    healthy_http_codes: str = "200-499"


@dataclass(frozen=True)
class TaskSpec:
    """Task sizing for a deployed service."""

    cpu: int = 512
    memory_mib: int = 1024
    desired_count: int = 1


@dataclass(frozen=True)
class LogSpec:
    """Where a service's container logs go."""

    group: str
    stream_prefix: str
    retention_days: int = 1


@dataclass(frozen=True)
class NetworkHandle:
    identifier: str
    cidr: str
    subnets: tuple[SubnetSpec, ...] = ()


@dataclass(frozen=True)
class SecurityGroupHandle:
    identifier: str
    name: str
    rules: tuple[IngressRule, ...] = ()


@dataclass(frozen=True)
class ClusterHandle:
    identifier: str
    network: NetworkHandle


@dataclass(frozen=True)
class NamespaceHandle:
    identifier: str
    name: str


@dataclass(frozen=True)
class ServiceHandle:
    identifier: str
    name: str
    family: str | None = None
    task: TaskSpec | None = None
    logs: LogSpec | None = None
    dns_ttl: int | None = None


@dataclass(frozen=True)
class PublicAddress:
    dns_name: str
    port: int = 80

    @property
    def url(self) -> str:
        suffix = "" if self.port == 80 else f":{self.port}"
        return f"http://{self.dns_name}{suffix}"


@dataclass(frozen=True)
class ResourceHandle:
    """Handle returned for a created mesh resource."""

    resource_id: str
    kind: ResourceKind
    name: str
    identifier: str
    attributes: dict[str, Any] = field(default_factory=dict, hash=False)


@runtime_checkable
class NetworkProvider(Protocol):
    def create_network(self, cidr: str, subnets: list[SubnetSpec]) -> NetworkHandle:
        ...

    def create_security_group(self, name: str, rules: list[IngressRule]) -> SecurityGroupHandle:
        ...


@runtime_checkable
class ClusterProvider(Protocol):
    def create_cluster(self, network: NetworkHandle) -> ClusterHandle:
        ...

    def register_namespace(self, name: str) -> NamespaceHandle:
        ...


@runtime_checkable
class ComputeProvider(Protocol):
    def deploy_service(
        self,
        name: str,
        image: str,
        env: dict[str, str],
        port: int,
        cluster: ClusterHandle,
        security_group: SecurityGroupHandle,
        dns_ttl: int | None = None,
        family_hint: str | None = None,
        task: TaskSpec | None = None,
        logs: LogSpec | None = None,
    ) -> ServiceHandle:
        ...


@runtime_checkable
class ResourceProvisioner(Protocol):
    """Creates mesh overlay resources."""

    def create_mesh(self, spec: MeshSpec) -> ResourceHandle:
        ...

    def create_mesh_node(self, spec: MeshNode, mesh: ResourceHandle) -> ResourceHandle:
        ...

    def create_router(self, spec: RouterSpec, mesh: ResourceHandle) -> ResourceHandle:
        ...

    def create_route(self, spec: RouteSpec, depends_on: ResourceHandle) -> ResourceHandle:
        ...

    def create_virtual_service(
        self, spec: VirtualServiceSpec, depends_on: ResourceHandle
    ) -> ResourceHandle:
        ...


@runtime_checkable
class EntryPointProvider(Protocol):
    def create_public_endpoint(
        self, service: ServiceHandle, health_check: HealthCheckSpec
    ) -> PublicAddress:
        ...
