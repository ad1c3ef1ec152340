"""
CLI command for planning (dry-run) the mesh topology.
"""

from __future__ import annotations

import json
from typing import Optional, Sequence

from colormesh.cli.ux import console, header, print_key_value, print_table
from colormesh.config.loader import load_config
from colormesh.config.settings import Settings
from colormesh.core.errors import ValidationError, main_with_error_handling
from colormesh.topology.plan import Plan, TopologyPlan


def parse_variants(raw: Optional[str], settings: Settings) -> list[str]:
    """Split ``blue,green`` into variants; fall back to the configured list."""
    if raw is None:
        return list(settings.variants)
    return [v.strip() for v in raw.split(",") if v.strip()]


def _split_pair(item: str, label: str, form: str) -> tuple[str, str]:
    variant, sep, value = item.partition("=")
    if not sep or not variant.strip():
        raise ValidationError(f"{label} must look like {form}, got {item!r}")
    return variant.strip(), value.strip()


def parse_weights(raw: Optional[Sequence[str]]) -> Optional[dict[str, int]]:
    """Parse ``["blue=1", "green=3"]`` into a weight mapping."""
    if not raw:
        return None
    weights: dict[str, int] = {}
    for item in raw:
        variant, value = _split_pair(item, "Weight", "VARIANT=N")
        try:
            weights[variant] = int(value)
        except ValueError:
            raise ValidationError(
                f"Weight for {variant!r} must be an integer, got {value!r}"
            ) from None
    return weights


def parse_family_hints(raw: Optional[Sequence[str]]) -> Optional[dict[str, str]]:
    """Parse ``["green=green-td"]`` into a deployment family per variant."""
    if not raw:
        return None
    hints: dict[str, str] = {}
    for item in raw:
        variant, family = _split_pair(item, "Family hint", "VARIANT=FAMILY")
        if not family:
            raise ValidationError(f"Family hint for {variant!r} is empty")
        hints[variant] = family
    return hints


def print_plan_summary(plan: Plan) -> None:
    """Print plan summary."""
    header(f"Plan: {plan.mesh.name}")

    print_key_value(
        {
            "namespace": plan.namespace,
            "virtual service": plan.virtual_service.name,
            "default variant": plan.default_variant.identifier,
        }
    )
    console.print()

    rows = []
    for record, node in zip(plan.services, plan.nodes):
        ttl = f"{record.dns_ttl_seconds}s" if record.dns_ttl_seconds is not None else "default"
        rows.append([record.variant.identifier, record.service_name, node.name, node.hostname, ttl])
    print_table(
        "Variants",
        ["Variant", "Service", "Virtual node", "Discovery hostname", "DNS TTL"],
        rows,
    )
    console.print()

    console.print("[bold]Route targets:[/bold]")
    total = plan.route.total_weight
    for target in plan.route.targets:
        share = 100 * target.weight / total
        console.print(f"  [muted]└[/muted] {target.node.name} weight={target.weight} ({share:.0f}%)")
    console.print()

    console.print("[bold]Submission order:[/bold]")
    for step, resource_id in enumerate(plan.order(), 1):
        parents = plan.dependencies_of(resource_id)
        after = f" [muted](after {', '.join(parents)})[/muted]" if parents else ""
        console.print(f"  {step}. {resource_id}{after}")
    console.print()

    console.print(
        f"[bold]Total:[/bold] {len(plan.resources)} mesh resources, "
        f"{len(plan.services) + 1} services"
    )
    console.print()


def print_plan_json(plan: Plan) -> None:
    """Print plan in JSON format."""
    print(json.dumps(plan.to_dict(), indent=2))


def build_plan(
    settings: Settings,
    variants: Optional[str] = None,
    namespace: Optional[str] = None,
    weights: Optional[Sequence[str]] = None,
    family_hints: Optional[Sequence[str]] = None,
) -> Plan:
    return TopologyPlan(settings).build(
        parse_variants(variants, settings),
        namespace,
        weights=parse_weights(weights),
        family_hints=parse_family_hints(family_hints),
    )


@main_with_error_handling()
def plan_command(
    variants: Optional[str] = None,
    namespace: Optional[str] = None,
    weights: Optional[Sequence[str]] = None,
    config: Optional[str] = None,
    output_format: str = "text",
    family_hints: Optional[Sequence[str]] = None,
) -> int:
    """
    Preview the topology that would be provisioned.

    Args:
        variants: Comma-separated variants (first is the default)
        namespace: Service discovery namespace
        weights: Route weights as VARIANT=N
        config: Optional topology file
        output_format: Output format (text, json)
        family_hints: Deployment families as VARIANT=FAMILY

    Returns:
        Exit code (0 for success)
    """
    settings = load_config(config)
    plan = build_plan(settings, variants, namespace, weights, family_hints)

    if output_format == "json":
        print_plan_json(plan)
    else:
        print_plan_summary(plan)
    return 0
