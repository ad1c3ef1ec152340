"""
Mesh provisioner that renders a CloudFormation template.

Each create_* call adds an ``AWS::AppMesh::*`` resource. Cross references
use ``Fn::GetAtt`` on the handle of the parent resource, and the parent's
logical id is recorded in ``DependsOn``.
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Any

import structlog
import yaml

from colormesh.core.errors import ProviderError
from colormesh.providers.base import ResourceHandle
from colormesh.topology.models import (
    MeshNode,
    MeshResource,
    MeshSpec,
    RouterSpec,
    RouteSpec,
    VirtualServiceSpec,
)

logger = structlog.get_logger()

TEMPLATE_VERSION = "2010-09-09"


def logical_id(prefix: str, name: str) -> str:
    """Convert ``blue-vn`` to a CloudFormation logical id like ``VirtualNodeBlueVn``."""
    parts = re.split(r"[^a-zA-Z0-9]+", name)
    return prefix + "".join(p[:1].upper() + p[1:] for p in parts if p)


def _digest(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()[:8]


def _get_att(handle: ResourceHandle, attribute: str) -> dict[str, list[str]]:
    return {"Fn::GetAtt": [handle.identifier, attribute]}


def _listeners(port: int, protocol: str) -> list[dict[str, Any]]:
    return [{"PortMapping": {"Port": port, "Protocol": protocol}}]


class TemplateProvisioner:
    """Accumulates App Mesh resources into a CloudFormation template."""

    def __init__(self, description: str = "Color app mesh overlay") -> None:
        self.description = description
        self.resources: dict[str, dict[str, Any]] = {}
        self._mesh: ResourceHandle | None = None
        self._logical_ids: dict[str, str] = {}

    def _add(
        self,
        spec: MeshResource,
        prefix: str,
        resource_type: str,
        properties: dict[str, Any],
        depends_on: list[ResourceHandle],
    ) -> ResourceHandle:
        if spec.resource_id in self._logical_ids:
            raise ProviderError(
                f"{spec.resource_id} already defined as {self._logical_ids[spec.resource_id]}",
                details={"resource_id": spec.resource_id},
            )

        # "x1a-vn" and "x-1a-vn" camel-case to the same id
        lid = logical_id(prefix, spec.name)
        if lid in self.resources:
            lid = f"{lid}{_digest(spec.resource_id)}"
            if lid in self.resources:
                raise ProviderError(
                    f"Logical id {lid} already defined", details={"resource_id": spec.resource_id}
                )

        resource: dict[str, Any] = {"Type": resource_type, "Properties": properties}
        if depends_on:
            resource["DependsOn"] = sorted({h.identifier for h in depends_on})
        self.resources[lid] = resource
        self._logical_ids[spec.resource_id] = lid

        logger.debug("template_resource_added", logical_id=lid, type=resource_type)
        return ResourceHandle(
            resource_id=spec.resource_id,
            kind=spec.kind,
            name=spec.name,
            identifier=lid,
            attributes={"Type": resource_type},
        )

    def _require_mesh(self) -> ResourceHandle:
        if self._mesh is None:
            raise ProviderError("Mesh must be created before mesh resources")
        return self._mesh

    def create_mesh(self, spec: MeshSpec) -> ResourceHandle:
        handle = self._add(spec, "Mesh", "AWS::AppMesh::Mesh", {"MeshName": spec.name}, [])
        self._mesh = handle
        return handle

    def create_mesh_node(self, spec: MeshNode, mesh: ResourceHandle) -> ResourceHandle:
        properties = {
            "MeshName": _get_att(mesh, "MeshName"),
            "VirtualNodeName": spec.name,
            "Spec": {
                "Listeners": _listeners(spec.port, spec.protocol),
                "ServiceDiscovery": {"DNS": {"Hostname": spec.hostname}},
            },
        }
        return self._add(spec, "VirtualNode", "AWS::AppMesh::VirtualNode", properties, [mesh])

    def create_router(self, spec: RouterSpec, mesh: ResourceHandle) -> ResourceHandle:
        properties = {
            "MeshName": _get_att(mesh, "MeshName"),
            "VirtualRouterName": spec.name,
            "Spec": {"Listeners": _listeners(spec.port, spec.protocol)},
        }
        return self._add(spec, "VirtualRouter", "AWS::AppMesh::VirtualRouter", properties, [mesh])

    def create_route(self, spec: RouteSpec, depends_on: ResourceHandle) -> ResourceHandle:
        mesh = self._require_mesh()
        properties = {
            "MeshName": _get_att(mesh, "MeshName"),
            "VirtualRouterName": _get_att(depends_on, "VirtualRouterName"),
            "RouteName": spec.name,
            "Spec": {
                "HttpRoute": {
                    "Match": {"Prefix": spec.prefix},
                    "Action": {
                        "WeightedTargets": [
                            {"VirtualNode": t.node.name, "Weight": t.weight} for t in spec.targets
                        ]
                    },
                }
            },
        }
        missing = [t.node.name for t in spec.targets if t.node.resource_id not in self._logical_ids]
        if missing:
            raise ProviderError(
                f"Route {spec.name} targets virtual nodes not in the template: {', '.join(missing)}",
                details={"resource_id": spec.resource_id},
            )
        handle = self._add(spec, "Route", "AWS::AppMesh::Route", properties, [depends_on])
        # weighted targets name their nodes
        node_ids = [self._logical_ids[t.node.resource_id] for t in spec.targets]
        self.resources[handle.identifier]["DependsOn"] = sorted(
            {*self.resources[handle.identifier]["DependsOn"], *node_ids}
        )
        return handle

    def create_virtual_service(
        self, spec: VirtualServiceSpec, depends_on: ResourceHandle
    ) -> ResourceHandle:
        mesh = self._require_mesh()
        if spec.router is not None:
            provider = {"VirtualRouter": {"VirtualRouterName": _get_att(depends_on, "VirtualRouterName")}}
        else:
            provider = {"VirtualNode": {"VirtualNodeName": _get_att(depends_on, "VirtualNodeName")}}
        properties = {
            "MeshName": _get_att(mesh, "MeshName"),
            "VirtualServiceName": spec.name,
            "Spec": {"Provider": provider},
        }
        return self._add(
            spec, "VirtualService", "AWS::AppMesh::VirtualService", properties, [depends_on]
        )

    # -- output ---------------------------------------------------------

    def template(self) -> dict[str, Any]:
        return {
            "AWSTemplateFormatVersion": TEMPLATE_VERSION,
            "Description": self.description,
            "Resources": self.resources,
        }

    def render(self) -> str:
        """Render the template as YAML."""
        return yaml.safe_dump(self.template(), default_flow_style=False, sort_keys=False)

    def write(self, path: str | Path) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.render())
        logger.info("template_written", path=str(target), resources=len(self.resources))
        return target
