"""
Topology planning: builds the dependency graph of the color mesh.

Pure logic with no I/O: input = ordered variants + namespace;
output = an immutable Plan whose resources can be submitted in
topological order. Submission is done by the orchestration layer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping, Sequence

import structlog

from colormesh.config.settings import Settings, get_settings
from colormesh.core.errors import (
    CyclicDependencyError,
    DanglingReferenceError,
    EmptyTopologyError,
    InvalidVariantError,
    ValidationError,
)
from colormesh.topology import naming
from colormesh.topology.models import (
    DependencyEdge,
    GatewayRecord,
    MeshNode,
    MeshResource,
    MeshSpec,
    ResourceKind,
    RouterSpec,
    RouteSpec,
    ServiceRecord,
    Variant,
    VirtualServiceSpec,
    WeightedTarget,
)

logger = structlog.get_logger()

GATEWAY_NAME = "gateway"
ROUTER_NAME = f"{naming.SERVICE_PREFIX}-vr"
ROUTE_NAME = f"{naming.SERVICE_PREFIX}-route"

NAMESPACE_RE = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?(\.[a-z0-9]([a-z0-9-]*[a-z0-9])?)*$")


def topological_order(resource_ids: Sequence[str], edges: Iterable[DependencyEdge]) -> list[str]:
    """
    Order resources so every edge points from an earlier to a later resource.

    Ties are broken by the position in ``resource_ids`` so the order is
    deterministic.

    Raises:
        CyclicDependencyError: If some resources can never become ready
    """
    position = {rid: i for i, rid in enumerate(resource_ids)}
    indegree = {rid: 0 for rid in resource_ids}
    children: dict[str, list[str]] = {rid: [] for rid in resource_ids}

    for edge in edges:
        children[edge.source].append(edge.target)
        indegree[edge.target] += 1

    ready = [rid for rid in resource_ids if indegree[rid] == 0]
    order: list[str] = []
    while ready:
        current = ready.pop(0)
        order.append(current)
        for child in children[current]:
            indegree[child] -= 1
            if indegree[child] == 0:
                ready.append(child)
        ready.sort(key=position.__getitem__)

    if len(order) != len(resource_ids):
        placed = set(order)
        raise CyclicDependencyError([rid for rid in resource_ids if rid not in placed])
    return order


@dataclass(frozen=True)
class Plan:
    """
    Immutable topology plan.

    ``resources`` keeps insertion order; ``edges`` are validated against it
    and sorted once at construction time.
    """

    namespace: str
    variants: tuple[Variant, ...]
    gateway: GatewayRecord
    services: tuple[ServiceRecord, ...]
    resources: tuple[MeshResource, ...]
    edges: tuple[DependencyEdge, ...]
    _order: tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_id: dict[str, MeshResource] = {}
        for resource in self.resources:
            if resource.resource_id in by_id:
                raise ValidationError(f"Duplicate resource {resource.resource_id}")
            by_id[resource.resource_id] = resource

        for edge in self.edges:
            for end in (edge.source, edge.target):
                if end not in by_id:
                    raise DanglingReferenceError(f"edge {edge.source} -> {edge.target}", end)

        node_names = {r.name for r in self.resources if r.kind is ResourceKind.VIRTUAL_NODE}
        for resource in self.resources:
            if isinstance(resource, RouteSpec):
                if resource.router.resource_id not in by_id:
                    raise DanglingReferenceError(resource.resource_id, resource.router.name)
                for target in resource.targets:
                    if target.node.name not in node_names:
                        raise DanglingReferenceError(resource.resource_id, target.node.name)
            elif isinstance(resource, VirtualServiceSpec):
                if resource.provider.resource_id not in by_id:
                    raise DanglingReferenceError(resource.resource_id, resource.provider.name)

        order = topological_order([r.resource_id for r in self.resources], self.edges)
        object.__setattr__(self, "_order", tuple(order))

    # -- lookups --------------------------------------------------------

    def get(self, resource_id: str) -> MeshResource:
        """Return the resource with the given id."""
        for resource in self.resources:
            if resource.resource_id == resource_id:
                return resource
        raise KeyError(resource_id)

    def _of_kind(self, kind: ResourceKind) -> list[Any]:
        return [r for r in self.resources if r.kind is kind]

    @property
    def mesh(self) -> MeshSpec:
        return self._of_kind(ResourceKind.MESH)[0]

    @property
    def nodes(self) -> list[MeshNode]:
        return self._of_kind(ResourceKind.VIRTUAL_NODE)

    @property
    def router(self) -> RouterSpec:
        return self._of_kind(ResourceKind.VIRTUAL_ROUTER)[0]

    @property
    def route(self) -> RouteSpec:
        return self._of_kind(ResourceKind.ROUTE)[0]

    @property
    def virtual_service(self) -> VirtualServiceSpec:
        return self._of_kind(ResourceKind.VIRTUAL_SERVICE)[0]

    @property
    def default_variant(self) -> Variant:
        return self.variants[0]

    # -- graph ----------------------------------------------------------

    def order(self) -> list[str]:
        """Resource ids in submission order (parents before children)."""
        return list(self._order)

    def ordered_resources(self) -> list[MeshResource]:
        return [self.get(rid) for rid in self._order]

    def dependencies_of(self, resource_id: str) -> list[str]:
        """Resource ids that must exist before ``resource_id``."""
        return [e.source for e in self.edges if e.target == resource_id]

    def levels(self) -> list[list[str]]:
        """
        Group resources into generations.

        Resources in the same generation have no edge between them; every
        resource's parents are in earlier generations.
        """
        depth: dict[str, int] = {}
        for rid in self._order:
            parents = self.dependencies_of(rid)
            depth[rid] = 1 + max((depth[p] for p in parents), default=-1)

        levels: list[list[str]] = [[] for _ in range(max(depth.values(), default=-1) + 1)]
        for rid in self._order:
            levels[depth[rid]].append(rid)
        return levels

    # -- canary ---------------------------------------------------------

    def reweighted(self, weights: Mapping[str, int]) -> Plan:
        """
        Return a new plan whose route splits traffic by variant ``weights``.

        Variants absent from ``weights`` are not targeted. The current plan is
        left untouched.
        """
        route = _build_route(self.route.name, self.router, self.nodes, weights, self.route.prefix)
        resources = tuple(route if r.kind is ResourceKind.ROUTE else r for r in self.resources)
        edges = tuple(
            e
            for e in self.edges
            if not (e.target == route.resource_id and e.source.startswith(ResourceKind.VIRTUAL_NODE.value))
        ) + tuple(DependencyEdge(t.node.resource_id, route.resource_id) for t in route.targets)

        logger.info(
            "plan_reweighted",
            route=route.name,
            weights={t.node.name: t.weight for t in route.targets},
        )
        return replace(self, resources=resources, edges=edges)

    # -- export ---------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "namespace": self.namespace,
            "variants": [v.identifier for v in self.variants],
            "gateway": self.gateway.to_dict(),
            "services": [s.to_dict() for s in self.services],
            "resources": [r.to_dict() for r in self.ordered_resources()],
            "edges": [e.to_dict() for e in self.edges],
            "order": self.order(),
            "stats": {
                "resource_count": len(self.resources),
                "edge_count": len(self.edges),
                "service_count": len(self.services) + 1,
            },
        }


def _build_route(
    name: str,
    router: RouterSpec,
    nodes: Sequence[MeshNode],
    weights: Mapping[str, int],
    prefix: str = "/",
) -> RouteSpec:
    by_variant = {n.variant.identifier: n for n in nodes}
    for variant in weights:
        if variant not in by_variant:
            raise DanglingReferenceError(
                f"{ResourceKind.ROUTE.value}/{name}", naming.node_name_for(variant)
            )

    # targets follow variant order, not mapping order
    targets = tuple(
        WeightedTarget(node=n, weight=weights[n.variant.identifier])
        for n in nodes
        if n.variant.identifier in weights
    )
    return RouteSpec(name=name, router=router, targets=targets, prefix=prefix)


def _normalize_variants(variants: Sequence[str | Variant]) -> tuple[Variant, ...]:
    identifiers = [v.identifier if isinstance(v, Variant) else v for v in variants]
    seen: set[str] = set()
    for identifier in identifiers:
        if identifier in seen:
            raise InvalidVariantError(identifier, "declared more than once")
        seen.add(identifier)
    return tuple(Variant(identifier=identifier, index=i) for i, identifier in enumerate(identifiers))


class TopologyPlan:
    """Builds Plans from an ordered list of variants."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def build(
        self,
        variants: Sequence[str | Variant],
        namespace: str | None = None,
        weights: Mapping[str, int] | None = None,
        family_hints: Mapping[str, str] | None = None,
    ) -> Plan:
        """
        Build the plan for ``variants`` in ``namespace``.

        Args:
            variants: Ordered variants; the first one is the default variant
            namespace: Service discovery namespace (defaults to settings)
            weights: Optional route weights by variant; defaults to all
                traffic on the default variant
            family_hints: Optional deployment family per variant, for
                providers that filter discovery by it

        Returns:
            Immutable Plan

        Raises:
            EmptyTopologyError, InvalidVariantError, DanglingReferenceError,
            InvalidWeightError, CyclicDependencyError
        """
        if not variants:
            raise EmptyTopologyError()

        namespace = namespace if namespace is not None else self.settings.namespace
        if not NAMESPACE_RE.match(namespace):
            raise ValidationError(
                f"Invalid namespace {namespace!r}", details={"namespace": namespace}
            )

        ordered = _normalize_variants(variants)
        port = self.settings.app_port
        family_hints = family_hints or {}
        known = {v.identifier for v in ordered}
        for variant in family_hints:
            if variant not in known:
                raise InvalidVariantError(variant, "family hint for a variant not in the topology")

        services: list[ServiceRecord] = []
        nodes: list[MeshNode] = []
        for variant in ordered:
            names = naming.resolve(variant.identifier, variant.index)
            services.append(
                ServiceRecord(
                    variant=variant,
                    service_name=names.service_name,
                    port=port,
                    image=self.settings.image_for(self.settings.colorteller_image),
                    log_stream_prefix=names.log_stream_prefix,
                    dns_ttl_seconds=None if variant.is_default else self.settings.dns_ttl_seconds,
                    environment={"SERVER_PORT": str(port), "COLOR": variant.identifier},
                    platform_family_hint=family_hints.get(variant.identifier),
                )
            )
            nodes.append(
                MeshNode(variant=variant, name=names.node_name, port=port, hostname=names.hostname)
            )

        default_service = services[0].service_name
        gateway = GatewayRecord(
            name=GATEWAY_NAME,
            port=port,
            image=self.settings.image_for(self.settings.gateway_image),
            environment={
                "SERVER_PORT": str(port),
                "COLOR_TELLER_ENDPOINT": f"{default_service}.{namespace}:{port}",
            },
        )

        mesh = MeshSpec(name=self.settings.mesh_name)
        router = RouterSpec(name=ROUTER_NAME, port=port)
        route = _build_route(
            ROUTE_NAME, router, nodes, weights if weights is not None else {ordered[0].identifier: 1}
        )
        virtual_service = VirtualServiceSpec(name=f"{default_service}.{namespace}", router=router)

        edges: list[DependencyEdge] = [DependencyEdge(mesh.resource_id, n.resource_id) for n in nodes]
        edges.append(DependencyEdge(mesh.resource_id, router.resource_id))
        edges.append(DependencyEdge(router.resource_id, route.resource_id))
        edges.extend(DependencyEdge(t.node.resource_id, route.resource_id) for t in route.targets)
        edges.append(DependencyEdge(route.resource_id, virtual_service.resource_id))
        edges.append(DependencyEdge(router.resource_id, virtual_service.resource_id))

        plan = Plan(
            namespace=namespace,
            variants=ordered,
            gateway=gateway,
            services=tuple(services),
            resources=(mesh, *nodes, router, route, virtual_service),
            edges=tuple(edges),
        )
        logger.debug(
            "plan_built",
            variants=[v.identifier for v in ordered],
            namespace=namespace,
            resources=len(plan.resources),
            edges=len(plan.edges),
        )
        return plan
