"""
CLI command for topology export.

Commands:
    colormesh topology export                  - Export as JSON
    colormesh topology export --format mermaid - Export as Mermaid
    colormesh topology export --format dot     - Export as DOT
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from colormesh.cli.plan import build_plan
from colormesh.cli.ux import success
from colormesh.config.loader import load_config
from colormesh.core.errors import main_with_error_handling
from colormesh.topology.serializers import serialize_dot, serialize_json, serialize_mermaid

SERIALIZERS = {
    "json": serialize_json,
    "mermaid": serialize_mermaid,
    "dot": serialize_dot,
}


@main_with_error_handling()
def topology_export_command(
    variants: Optional[str] = None,
    namespace: Optional[str] = None,
    weights: Optional[Sequence[str]] = None,
    config: Optional[str] = None,
    output_format: str = "json",
    output_file: Optional[str] = None,
    family_hints: Optional[Sequence[str]] = None,
) -> int:
    """
    Export the planned dependency graph.

    Args:
        variants: Comma-separated variants (first is the default)
        namespace: Service discovery namespace
        weights: Route weights as VARIANT=N
        config: Optional topology file
        output_format: Output format (json, mermaid, dot)
        output_file: Optional file path for output
        family_hints: Deployment families as VARIANT=FAMILY

    Returns:
        Exit code (0 on success)
    """
    settings = load_config(config)
    plan = build_plan(settings, variants, namespace, weights, family_hints)
    content = SERIALIZERS[output_format](plan)

    if output_file:
        Path(output_file).write_text(content + "\n")
        success(f"Topology written to {output_file}")
    else:
        print(content)
    return 0
