"""
In-memory backend implementing every provider contract.

Used for dry runs (``colormesh apply --simulate``) and tests. Calls are
recorded in order and identifiers are deterministic. Failures can be
injected by call number or by resource id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import structlog

from colormesh.core.errors import ProviderError
from colormesh.providers.base import (
    CLUSTER_NAME,
    NETWORK_NAME,
    ClusterHandle,
    HealthCheckSpec,
    InfraKind,
    IngressRule,
    LogSpec,
    NamespaceHandle,
    NetworkHandle,
    PublicAddress,
    ResourceHandle,
    SecurityGroupHandle,
    ServiceHandle,
    SubnetSpec,
    TaskSpec,
    infra_resource_id,
)
from colormesh.topology.models import (
    MeshNode,
    MeshResource,
    MeshSpec,
    RouterSpec,
    RouteSpec,
    VirtualServiceSpec,
)

logger = structlog.get_logger()


class SimulatedFailure(ProviderError):
    """Failure injected into the in-memory backend."""


@dataclass
class CallRecord:
    """One provider call."""

    method: str
    resource_id: str


@dataclass
class InMemoryBackend:
    """Records provider calls instead of touching real infrastructure."""

    fail_on_call: int | None = None  # 1-based
    fail_on: set[str] = field(default_factory=set)
    region: str = "local"
    calls: list[CallRecord] = field(default_factory=list)
    resources: dict[str, object] = field(default_factory=dict)

    @classmethod
    def failing_on(cls, resource_ids: Iterable[str]) -> InMemoryBackend:
        return cls(fail_on=set(resource_ids))

    def _record(self, method: str, resource_id: str) -> str:
        self.calls.append(CallRecord(method=method, resource_id=resource_id))
        if resource_id in self.fail_on or self.fail_on_call == len(self.calls):
            logger.warning("simulated_failure", method=method, resource_id=resource_id)
            raise SimulatedFailure(
                f"Simulated failure in {method}", details={"resource_id": resource_id}
            )
        return f"{self.region}:{resource_id}"

    def _store(self, resource_id: str, value: object) -> None:
        self.resources[resource_id] = value
        logger.debug("resource_recorded", resource_id=resource_id)

    @property
    def created(self) -> list[str]:
        """Resource ids created so far, in order."""
        return list(self.resources)

    # -- NetworkProvider -------------------------------------------------

    def create_network(self, cidr: str, subnets: list[SubnetSpec]) -> NetworkHandle:
        rid = infra_resource_id(InfraKind.NETWORK, NETWORK_NAME)
        handle = NetworkHandle(identifier=self._record("create_network", rid), cidr=cidr, subnets=tuple(subnets))
        self._store(rid, handle)
        return handle

    def create_security_group(self, name: str, rules: list[IngressRule]) -> SecurityGroupHandle:
        rid = infra_resource_id(InfraKind.SECURITY_GROUP, name)
        handle = SecurityGroupHandle(
            identifier=self._record("create_security_group", rid), name=name, rules=tuple(rules)
        )
        self._store(rid, handle)
        return handle

    # -- ClusterProvider -------------------------------------------------

    def create_cluster(self, network: NetworkHandle) -> ClusterHandle:
        rid = infra_resource_id(InfraKind.CLUSTER, CLUSTER_NAME)
        handle = ClusterHandle(identifier=self._record("create_cluster", rid), network=network)
        self._store(rid, handle)
        return handle

    def register_namespace(self, name: str) -> NamespaceHandle:
        rid = infra_resource_id(InfraKind.NAMESPACE, name)
        handle = NamespaceHandle(identifier=self._record("register_namespace", rid), name=name)
        self._store(rid, handle)
        return handle

    # -- ComputeProvider -------------------------------------------------

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
        rid = infra_resource_id(InfraKind.SERVICE, name)
        handle = ServiceHandle(
            identifier=self._record("deploy_service", rid),
            name=name,
            family=family_hint or f"{name}-taskdef",
            task=task or TaskSpec(),
            logs=logs or LogSpec(group="demo", stream_prefix=name),
            dns_ttl=dns_ttl,
        )
        self._store(rid, handle)
        return handle

    # -- EntryPointProvider ----------------------------------------------

    def create_public_endpoint(
        self, service: ServiceHandle, health_check: HealthCheckSpec
    ) -> PublicAddress:
        rid = infra_resource_id(InfraKind.ENTRY_POINT, service.name)
        self._record("create_public_endpoint", rid)
        address = PublicAddress(dns_name=f"{service.name}.{self.region}.elb.example.com")
        self._store(rid, address)
        return address

    # -- ResourceProvisioner ---------------------------------------------

    def _mesh_handle(self, method: str, spec: MeshResource) -> ResourceHandle:
        handle = ResourceHandle(
            resource_id=spec.resource_id,
            kind=spec.kind,
            name=spec.name,
            identifier=self._record(method, spec.resource_id),
        )
        self._store(spec.resource_id, handle)
        return handle

    def create_mesh(self, spec: MeshSpec) -> ResourceHandle:
        return self._mesh_handle("create_mesh", spec)

    def create_mesh_node(self, spec: MeshNode, mesh: ResourceHandle) -> ResourceHandle:
        return self._mesh_handle("create_mesh_node", spec)

    def create_router(self, spec: RouterSpec, mesh: ResourceHandle) -> ResourceHandle:
        return self._mesh_handle("create_router", spec)

    def create_route(self, spec: RouteSpec, depends_on: ResourceHandle) -> ResourceHandle:
        return self._mesh_handle("create_route", spec)

    def create_virtual_service(
        self, spec: VirtualServiceSpec, depends_on: ResourceHandle
    ) -> ResourceHandle:
        return self._mesh_handle("create_virtual_service", spec)
