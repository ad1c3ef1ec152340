"""
Color mesh topology: naming, models, planning and export.

Pure logic; no provider calls happen in this package.
"""

from colormesh.topology.models import (
    DependencyEdge,
    GatewayRecord,
    MeshNode,
    MeshSpec,
    ResourceKind,
    RouterSpec,
    RouteSpec,
    ServiceRecord,
    Variant,
    VirtualServiceSpec,
    WeightedTarget,
)
from colormesh.topology.naming import ResolvedNames, resolve
from colormesh.topology.plan import Plan, TopologyPlan, topological_order
from colormesh.topology.serializers import (
    serialize_dot,
    serialize_json,
    serialize_mermaid,
)

__all__ = [
    # Models
    "Variant",
    "ServiceRecord",
    "GatewayRecord",
    "MeshSpec",
    "MeshNode",
    "WeightedTarget",
    "RouterSpec",
    "RouteSpec",
    "VirtualServiceSpec",
    "DependencyEdge",
    "ResourceKind",
    # Naming
    "ResolvedNames",
    "resolve",
    # Planning
    "Plan",
    "TopologyPlan",
    "topological_order",
    # Serializers
    "serialize_json",
    "serialize_mermaid",
    "serialize_dot",
]
