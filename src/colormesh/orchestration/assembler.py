"""
Mesh assembler: builds the plan and submits it to the providers.

Order of operations:
1. Validate input and build the plan (pure; no provider calls on error)
2. Infrastructure, when providers are supplied: network, security groups,
   cluster, namespace, gateway, one service per variant, public endpoint
3. Mesh overlay in the plan's topological order

A provider failure halts assembly. Resources created before the failure are
left in place and reported on the raised ProvisioningFailure.
"""

from __future__ import annotations

import time
from typing import Callable, Mapping, Optional, Sequence, TypeVar

import structlog

from colormesh.config.settings import Settings, get_settings
from colormesh.core.errors import ConfigurationError, EmptyTopologyError
from colormesh.logging import bind_context
from colormesh.orchestration.engine import ExecutionEngine, StepCallback
from colormesh.orchestration.handlers import register_default_handlers
from colormesh.orchestration.registry import ResourceRegistry, SubmissionContext
from colormesh.orchestration.results import AssemblyResult, ResultCollector
from colormesh.providers.base import (
    CLUSTER_NAME,
    NETWORK_NAME,
    ClusterProvider,
    ComputeProvider,
    EntryPointProvider,
    HealthCheckSpec,
    InfraKind,
    IngressRule,
    LogSpec,
    NetworkProvider,
    PublicAddress,
    ResourceProvisioner,
    SubnetSpec,
    TaskSpec,
    infra_resource_id,
)
from colormesh.topology.plan import Plan, TopologyPlan

logger = structlog.get_logger()

T = TypeVar("T")

EXTERNAL_SECURITY_GROUP = "external"
INTERNAL_SECURITY_GROUP = "internal"


class MeshAssembler:
    """Orchestrates plan construction and submission."""

    def __init__(
        self,
        settings: Settings | None = None,
        network: NetworkProvider | None = None,
        cluster: ClusterProvider | None = None,
        compute: ComputeProvider | None = None,
        entry_point: EntryPointProvider | None = None,
        registry: ResourceRegistry | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.network = network
        self.cluster = cluster
        self.compute = compute
        self.entry_point = entry_point
        self._registry = registry or register_default_handlers(ResourceRegistry())
        self._planner = TopologyPlan(self.settings)

        infra = (network, cluster, compute)
        if any(p is not None for p in infra) and not all(p is not None for p in infra):
            raise ConfigurationError(
                "network, cluster and compute providers must be supplied together"
            )
        if entry_point is not None and compute is None:
            raise ConfigurationError("An entry point provider requires a compute provider")

    @property
    def provisions_infrastructure(self) -> bool:
        return self.compute is not None

    def plan(
        self,
        variant_identifiers: Sequence[str],
        namespace: str | None = None,
        weights: Mapping[str, int] | None = None,
        family_hints: Mapping[str, str] | None = None,
    ) -> Plan:
        """Build the plan without submitting anything."""
        if not variant_identifiers:
            raise EmptyTopologyError()
        return self._planner.build(
            variant_identifiers, namespace, weights=weights, family_hints=family_hints
        )

    def assemble(
        self,
        variant_identifiers: Sequence[str],
        namespace: str | None,
        provisioner: ResourceProvisioner,
        weights: Mapping[str, int] | None = None,
        on_step: Optional[StepCallback] = None,
        family_hints: Mapping[str, str] | None = None,
    ) -> AssemblyResult:
        """
        Build and submit the topology.

        Args:
            variant_identifiers: Ordered variants; the first is the default
            namespace: Service discovery namespace (None: settings default)
            provisioner: Mesh resource provisioner
            weights: Optional route weights by variant
            on_step: Optional progress callback (step, total, resource_id).
                Steps run from 1 to the combined infrastructure and mesh total.
            family_hints: Optional deployment family per variant

        Returns:
            AssemblyResult with the virtual service FQDN and, when an entry
            point provider is configured, the public address

        Raises:
            EmptyTopologyError: No variants were given (no provider calls)
            ProvisioningFailure: A provider call failed
        """
        plan = self.plan(variant_identifiers, namespace, weights=weights, family_hints=family_hints)
        log = bind_context(mesh=plan.mesh.name, namespace=plan.namespace)
        log.info(
            "assembly_started",
            variants=[v.identifier for v in plan.variants],
            infrastructure=self.provisions_infrastructure,
        )

        start = time.time()
        collector = ResultCollector()
        public_address = None
        infra_steps = self.infrastructure_steps(plan)
        total = infra_steps + len(plan.order())
        if self.provisions_infrastructure:
            public_address = self._provision_infrastructure(plan, collector, on_step, total)

        ctx = SubmissionContext(plan=plan, provisioner=provisioner)
        ExecutionEngine(self._registry).execute(
            ctx, collector, on_step=on_step, offset=infra_steps, total=total
        )

        result = collector.finalize(
            virtual_service_fqdn=plan.virtual_service.name,
            public_address=public_address,
            duration=time.time() - start,
        )
        log.info(
            "assembly_completed",
            virtual_service=result.virtual_service_fqdn,
            public_url=public_address.url if public_address else None,
            resources=result.total_resources,
        )
        return result

    # -- infrastructure -------------------------------------------------

    def infrastructure_steps(self, plan: Plan) -> int:
        """Number of provider calls made before the mesh overlay."""
        if not self.provisions_infrastructure:
            return 0
        # network, two security groups, cluster, namespace, gateway
        return 6 + len(plan.services) + (1 if self.entry_point else 0)

    def _provision_infrastructure(
        self,
        plan: Plan,
        collector: ResultCollector,
        on_step: Optional[StepCallback],
        total: int,
    ) -> PublicAddress | None:
        assert self.network is not None and self.cluster is not None and self.compute is not None
        s = self.settings
        task = TaskSpec(cpu=s.task_cpu, memory_mib=s.task_memory_mib, desired_count=s.desired_count)
        counter = iter(range(1, total + 1))

        def step(resource_id: str, call: Callable[[], T]) -> T:
            if on_step is not None:
                on_step(next(counter), total, resource_id)
            try:
                handle = call()
            except Exception as e:
                logger.error("resource_failed", resource_id=resource_id, error=str(e))
                raise collector.failure(resource_id, e) from e
            collector.record(resource_id, handle)
            logger.info("resource_created", resource_id=resource_id)
            return handle

        subnets = [
            SubnetSpec(name="ingress", cidr_mask=s.subnet_cidr_mask, public=True, zones=s.max_azs),
            SubnetSpec(name="application", cidr_mask=s.subnet_cidr_mask, public=False, zones=s.max_azs),
        ]
        network = step(
            infra_resource_id(InfraKind.NETWORK, NETWORK_NAME),
            lambda: self.network.create_network(s.vpc_cidr, subnets),
        )
        step(
            infra_resource_id(InfraKind.SECURITY_GROUP, EXTERNAL_SECURITY_GROUP),
            lambda: self.network.create_security_group(
                EXTERNAL_SECURITY_GROUP, [IngressRule(port=s.public_port, source="any")]
            ),
        )
        # app port, envoy admin (health checks), envoy ingress
        internal_sg = step(
            infra_resource_id(InfraKind.SECURITY_GROUP, INTERNAL_SECURITY_GROUP),
            lambda: self.network.create_security_group(
                INTERNAL_SECURITY_GROUP,
                [IngressRule(port=p) for p in (s.app_port, s.envoy_admin_port, s.envoy_ingress_port)],
            ),
        )
        cluster = step(
            infra_resource_id(InfraKind.CLUSTER, CLUSTER_NAME),
            lambda: self.cluster.create_cluster(network),
        )
        step(
            infra_resource_id(InfraKind.NAMESPACE, plan.namespace),
            lambda: self.cluster.register_namespace(plan.namespace),
        )

        gw = plan.gateway
        gateway = step(
            infra_resource_id(InfraKind.SERVICE, gw.name),
            lambda: self.compute.deploy_service(
                gw.name,
                gw.image,
                dict(gw.environment),
                gw.port,
                cluster,
                internal_sg,
                task=task,
                logs=self._log_spec(gw.log_stream_prefix),
            ),
        )
        for record in plan.services:
            step(
                infra_resource_id(InfraKind.SERVICE, record.service_name),
                lambda record=record: self.compute.deploy_service(
                    record.service_name,
                    record.image,
                    dict(record.environment),
                    record.port,
                    cluster,
                    internal_sg,
                    dns_ttl=record.dns_ttl_seconds,
                    family_hint=record.platform_family_hint,
                    task=task,
                    logs=self._log_spec(record.log_stream_prefix),
                ),
            )

        if self.entry_point is None:
            return None
        health_check = HealthCheckSpec(port=s.app_port)
        return step(
            infra_resource_id(InfraKind.ENTRY_POINT, gw.name),
            lambda: self.entry_point.create_public_endpoint(gateway, health_check),
        )

    def _log_spec(self, stream_prefix: str) -> LogSpec:
        return LogSpec(
            group=self.settings.log_group,
            stream_prefix=stream_prefix,
            retention_days=self.settings.log_retention_days,
        )
