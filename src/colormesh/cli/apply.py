"""
CLI command for assembling the mesh topology.

Two backends:
- ``--simulate``: in-memory providers for every layer (network through
  virtual service), optionally failing on a chosen resource
- default: render the mesh overlay as a CloudFormation template
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Sequence

from colormesh.cli.plan import parse_family_hints, parse_variants, parse_weights
from colormesh.cli.ux import console, error, info, success, warning
from colormesh.config.loader import load_config
from colormesh.core.errors import ProvisioningFailure, main_with_error_handling
from colormesh.orchestration.assembler import MeshAssembler
from colormesh.orchestration.results import AssemblyResult
from colormesh.providers.memory import InMemoryBackend
from colormesh.providers.template import TemplateProvisioner

DEFAULT_TEMPLATE_PATH = "mesh-template.yaml"


def print_apply_summary(result: AssemblyResult, verbose: bool = False) -> None:
    """Print apply summary."""
    console.print()
    if verbose:
        for resource_id in result.created:
            console.print(f"  [success]✓[/success] {resource_id}")
        console.print()

    duration = f" in {result.duration_seconds:.1f}s" if result.duration_seconds > 0 else ""
    success(f"Created {result.total_resources} resources{duration}")
    console.print(f"  [cyan]virtual service:[/cyan] {result.virtual_service_fqdn}")
    if result.public_address is not None:
        console.print(f"  [cyan]public url:[/cyan] {result.public_address.url}")
    console.print()


def print_failure(failure: ProvisioningFailure) -> None:
    """Show the failing resource and what was left in place."""
    console.print()
    error(f"Provisioning failed at {failure.resource_id}: {failure.cause}")
    if failure.created:
        warning(f"{len(failure.created)} resources were created and left in place:")
        for resource_id in failure.created:
            console.print(f"  [muted]•[/muted] {resource_id}")
    else:
        console.print("  [muted]No resources were created.[/muted]")
    console.print()


def print_apply_json(result: AssemblyResult) -> None:
    """Print apply result in JSON format."""
    print(json.dumps({**result.to_dict(), "success": True}, indent=2))


def print_failure_json(failure: ProvisioningFailure) -> None:
    output = {
        "success": False,
        "failed_resource": failure.resource_id,
        "error": str(failure.cause),
        "created": failure.created,
    }
    print(json.dumps(output, indent=2))


@main_with_error_handling()
def apply_command(
    variants: Optional[str] = None,
    namespace: Optional[str] = None,
    weights: Optional[Sequence[str]] = None,
    config: Optional[str] = None,
    simulate: bool = False,
    fail_on: Optional[Sequence[str]] = None,
    output: Optional[str] = None,
    output_format: str = "text",
    verbose: bool = False,
    family_hints: Optional[Sequence[str]] = None,
) -> int:
    """
    Assemble the topology.

    Args:
        variants: Comma-separated variants (first is the default)
        namespace: Service discovery namespace
        weights: Route weights as VARIANT=N
        config: Optional topology file
        simulate: Use the in-memory backend for every provider
        fail_on: Resource ids the simulated backend should fail on
        output: Template path when not simulating
        output_format: Output format (text, json)
        verbose: List every created resource
        family_hints: Deployment families as VARIANT=FAMILY

    Returns:
        Exit code (0 for success)
    """
    settings = load_config(config)
    variant_list = parse_variants(variants, settings)
    weight_map = parse_weights(weights)
    hints = parse_family_hints(family_hints)

    template: TemplateProvisioner | None = None
    if simulate:
        backend = InMemoryBackend.failing_on(fail_on or [])
        assembler = MeshAssembler(
            settings, network=backend, cluster=backend, compute=backend, entry_point=backend
        )
        provisioner = backend
        if output_format != "json":
            info("Simulating against the in-memory backend; nothing is provisioned")
    else:
        if fail_on:
            warning("--fail-on only applies with --simulate; ignoring")
        assembler = MeshAssembler(settings)
        template = TemplateProvisioner()
        provisioner = template

    try:
        result = assembler.assemble(
            variant_list, namespace, provisioner, weights=weight_map, family_hints=hints
        )
    except ProvisioningFailure as failure:
        if output_format == "json":
            print_failure_json(failure)
        else:
            print_failure(failure)
        return failure.exit_code

    if template is not None:
        path = template.write(Path(output or DEFAULT_TEMPLATE_PATH))
        if output_format != "json":
            success(f"Template written to {path}")

    if output_format == "json":
        print_apply_json(result)
    else:
        print_apply_summary(result, verbose=verbose)
    return 0
