"""
Plan serializers: JSON, Mermaid, and DOT output formats.

Pure functions that convert a Plan to string output.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING

from colormesh.topology.models import ResourceKind, RouteSpec

if TYPE_CHECKING:
    from colormesh.topology.plan import Plan

# Nord palette by resource kind
KIND_COLORS = {
    ResourceKind.MESH: "#4C566A",
    ResourceKind.VIRTUAL_NODE: "#5E81AC",
    ResourceKind.VIRTUAL_ROUTER: "#D08770",
    ResourceKind.ROUTE: "#B48EAD",
    ResourceKind.VIRTUAL_SERVICE: "#A3BE8C",
}

KIND_SHAPES = {
    ResourceKind.MESH: "folder",
    ResourceKind.VIRTUAL_NODE: "box",
    ResourceKind.VIRTUAL_ROUTER: "diamond",
    ResourceKind.ROUTE: "parallelogram",
    ResourceKind.VIRTUAL_SERVICE: "ellipse",
}


def serialize_json(plan: Plan) -> str:
    """Serialize plan as JSON."""
    return json.dumps(plan.to_dict(), indent=2)


def _edge_weights(plan: Plan) -> dict[tuple[str, str], int]:
    """Weights for node -> route edges."""
    route: RouteSpec = plan.route
    return {(t.node.resource_id, route.resource_id): t.weight for t in route.targets}


def serialize_mermaid(plan: Plan) -> str:
    """
    Serialize plan as Mermaid flowchart.

    Edges point from a resource to the resources that depend on it. Route
    target edges carry their weight.
    """
    lines: list[str] = ["graph LR"]

    for resource in plan.ordered_resources():
        node_id = _mermaid_id(resource.resource_id)
        label = resource.name
        if resource.kind is ResourceKind.VIRTUAL_NODE:
            label = f"{resource.name}<br/>{resource.hostname}"
        if resource.kind is ResourceKind.VIRTUAL_SERVICE:
            lines.append(f"    {node_id}([{label}])")
        else:
            lines.append(f"    {node_id}[{label}]")

    lines.append("")

    weights = _edge_weights(plan)
    for edge in plan.edges:
        src = _mermaid_id(edge.source)
        tgt = _mermaid_id(edge.target)
        weight = weights.get((edge.source, edge.target))
        if weight is not None:
            lines.append(f"    {src} -->|weight: {weight}| {tgt}")
        else:
            lines.append(f"    {src} --> {tgt}")

    lines.append("")

    for kind, color in KIND_COLORS.items():
        lines.append(f"    classDef {kind.value} fill:{color},stroke:#2E3440,color:#ECEFF4")
    for resource in plan.resources:
        lines.append(f"    class {_mermaid_id(resource.resource_id)} {resource.kind.value}")

    return "\n".join(lines)


def serialize_dot(plan: Plan) -> str:
    """
    Serialize plan as Graphviz DOT digraph.

    Nodes are colored and shaped by resource kind; inactive route targets
    (weight 0) are dashed.
    """
    lines: list[str] = [
        f"digraph {_dot_id(plan.mesh.name)} {{",
        "    rankdir=LR;",
        '    node [style=filled, fontname="sans-serif", fontcolor="#ECEFF4"];',
        '    edge [fontname="sans-serif", fontsize=10];',
        "",
    ]

    for resource in plan.ordered_resources():
        attrs = [
            f'label="{resource.name}"',
            f'fillcolor="{KIND_COLORS[resource.kind]}"',
            f"shape={KIND_SHAPES[resource.kind]}",
        ]
        lines.append(f"    {_dot_id(resource.resource_id)} [{', '.join(attrs)}];")

    lines.append("")

    weights = _edge_weights(plan)
    for edge in plan.edges:
        edge_attrs: list[str] = []
        weight = weights.get((edge.source, edge.target))
        if weight is not None:
            edge_attrs.append(f'label="weight: {weight}"')
            if weight == 0:
                edge_attrs.append("style=dashed")
        attr_str = f" [{', '.join(edge_attrs)}]" if edge_attrs else ""
        lines.append(f"    {_dot_id(edge.source)} -> {_dot_id(edge.target)}{attr_str};")

    lines.append("}")

    return "\n".join(lines)


def _mermaid_id(name: str) -> str:
    """Convert resource id to valid Mermaid node ID."""
    return re.sub(r"[^a-zA-Z0-9]", "_", name)


def _dot_id(name: str) -> str:
    """Convert resource id to valid DOT node ID."""
    return re.sub(r"[^a-zA-Z0-9]", "_", name)
