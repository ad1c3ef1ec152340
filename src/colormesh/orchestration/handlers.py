"""
Resource handlers, one per mesh resource kind.

Each handler reads its parents' handles from the submission context and
passes them to the provisioner, so downstream resources are wired to what
was actually created rather than to names.
"""

from __future__ import annotations

from colormesh.orchestration.registry import ResourceRegistry, SubmissionContext
from colormesh.providers.base import ResourceHandle
from colormesh.topology.models import (
    MeshNode,
    MeshSpec,
    ResourceKind,
    RouterSpec,
    RouteSpec,
    VirtualServiceSpec,
)


class MeshHandler:
    kind = ResourceKind.MESH
    display_name = "mesh"

    def submit(self, ctx: SubmissionContext, resource: MeshSpec) -> ResourceHandle:
        return ctx.provisioner.create_mesh(resource)


class VirtualNodeHandler:
    kind = ResourceKind.VIRTUAL_NODE
    display_name = "virtual node"

    def submit(self, ctx: SubmissionContext, resource: MeshNode) -> ResourceHandle:
        mesh = ctx.handle_for(ctx.plan.mesh.resource_id)
        return ctx.provisioner.create_mesh_node(resource, mesh)


class VirtualRouterHandler:
    kind = ResourceKind.VIRTUAL_ROUTER
    display_name = "virtual router"

    def submit(self, ctx: SubmissionContext, resource: RouterSpec) -> ResourceHandle:
        mesh = ctx.handle_for(ctx.plan.mesh.resource_id)
        return ctx.provisioner.create_router(resource, mesh)


class RouteHandler:
    kind = ResourceKind.ROUTE
    display_name = "route"

    def submit(self, ctx: SubmissionContext, resource: RouteSpec) -> ResourceHandle:
        router = ctx.handle_for(resource.router.resource_id)
        return ctx.provisioner.create_route(resource, depends_on=router)


class VirtualServiceHandler:
    kind = ResourceKind.VIRTUAL_SERVICE
    display_name = "virtual service"

    def submit(self, ctx: SubmissionContext, resource: VirtualServiceSpec) -> ResourceHandle:
        provider = ctx.handle_for(resource.provider.resource_id)
        return ctx.provisioner.create_virtual_service(resource, depends_on=provider)


def register_default_handlers(registry: ResourceRegistry) -> ResourceRegistry:
    """Register a handler for every mesh resource kind."""
    for handler in (
        MeshHandler(),
        VirtualNodeHandler(),
        VirtualRouterHandler(),
        RouteHandler(),
        VirtualServiceHandler(),
    ):
        registry.register(handler)
    return registry
