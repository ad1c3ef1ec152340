from __future__ import annotations

import argparse
import sys
from typing import Sequence

from colormesh import __version__
from colormesh.logging import configure_logging


def _add_topology_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--variants",
        help="Comma-separated variants, default first (e.g. blue,green,red)",
    )
    parser.add_argument("--namespace", help="Service discovery namespace (e.g. mesh.local)")
    parser.add_argument(
        "--weight",
        dest="weights",
        action="append",
        metavar="VARIANT=N",
        help="Route weight for a variant; repeat for each target",
    )
    parser.add_argument(
        "--family-hint",
        dest="family_hints",
        action="append",
        metavar="VARIANT=FAMILY",
        help="Deployment family for a variant's service; repeat per variant",
    )
    parser.add_argument("--config", help="Path to a topology YAML file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="colormesh", description="Color app service mesh topology synthesizer"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (DEBUG, INFO, WARNING, ERROR); overrides COLORMESH_LOG_LEVEL",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "console"],
        default=None,
        help="Log renderer; overrides COLORMESH_LOG_FORMAT",
    )
    subparsers = parser.add_subparsers(dest="command")

    # plan command (dry-run)
    plan_parser = subparsers.add_parser(
        "plan",
        help="Preview the resources and submission order (dry-run)",
    )
    _add_topology_arguments(plan_parser)
    plan_parser.add_argument("--output", choices=["text", "json"], default="text",
                             help="Output format")

    # apply command
    apply_parser = subparsers.add_parser(
        "apply",
        help="Assemble the topology through a provider backend",
    )
    _add_topology_arguments(apply_parser)
    apply_parser.add_argument("--simulate", action="store_true",
                              help="Provision against the in-memory backend")
    apply_parser.add_argument("--fail-on", nargs="+", metavar="RESOURCE_ID",
                              help="Resource ids the simulated backend should fail on")
    apply_parser.add_argument("--template", dest="template_path",
                              help="Where to write the rendered template (default: mesh-template.yaml)")
    apply_parser.add_argument("-v", "--verbose", action="store_true",
                              help="List every created resource")
    apply_parser.add_argument("--output", choices=["text", "json"], default="text",
                              help="Output format")

    # topology export
    topology_parser = subparsers.add_parser("topology", help="Dependency graph commands")
    topology_subparsers = topology_parser.add_subparsers(dest="topology_command")
    export_parser = topology_subparsers.add_parser("export", help="Export the dependency graph")
    _add_topology_arguments(export_parser)
    export_parser.add_argument("--format", choices=["json", "mermaid", "dot"], default="json",
                               help="Output format")
    export_parser.add_argument("-o", "--output", help="Write to file instead of stdout")

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    from colormesh.config.settings import get_settings

    settings = get_settings()
    configure_logging(
        (args.log_level or settings.log_level).upper(),
        log_format=args.log_format or settings.log_format,
    )

    if args.command == "plan":
        from colormesh.cli.plan import plan_command

        sys.exit(plan_command(
            variants=args.variants,
            namespace=args.namespace,
            weights=args.weights,
            config=args.config,
            output_format=args.output,
            family_hints=args.family_hints,
        ))

    if args.command == "apply":
        from colormesh.cli.apply import apply_command

        sys.exit(apply_command(
            variants=args.variants,
            namespace=args.namespace,
            weights=args.weights,
            config=args.config,
            simulate=args.simulate,
            fail_on=args.fail_on,
            output=args.template_path,
            output_format=args.output,
            verbose=args.verbose,
            family_hints=args.family_hints,
        ))

    if args.command == "topology":
        if args.topology_command == "export":
            from colormesh.cli.topology import topology_export_command

            sys.exit(topology_export_command(
                variants=args.variants,
                namespace=args.namespace,
                weights=args.weights,
                config=args.config,
                output_format=args.format,
                output_file=args.output,
                family_hints=args.family_hints,
            ))

    parser.print_help()
    sys.exit(1)


if __name__ == "__main__":
    main()
