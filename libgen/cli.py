"""Command-line entry point: ``libgen <type> <name> [flags]``."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from libgen.config import WorkspaceConfig
from libgen.domain import DependencyResolver
from libgen.errors import LibgenError
from libgen.executor import ExecutionReport, Executor
from libgen.filesystem import DiskAdapter
from libgen.logging import configure_logging
from libgen.metadata import LibraryType
from libgen.utils import (
    console,
    print_error,
    print_file_list,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
)

PLATFORMS = ("node", "browser", "universal", "edge")
FEATURE_SCOPES = ("shared", "server", "client", "edge")

# argparse dest -> option key when they differ
_RENAMED = {"client_server": "include_client_server", "no_rpc": "include_rpc"}
_NOT_OPTIONS = {"command", "workspace_root", "verbose", "log_file"}


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("name", help="Library name (any casing, e.g. user-profile or UserProfile)")
    parser.add_argument("--description", help="Library description")
    parser.add_argument("--tags", help="Comma-separated extra tags")
    parser.add_argument("--dry-run", action="store_true", default=None,
                        help="Stage changes in memory and report them without writing")


def _add_sub_modules(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--sub-modules", help="Comma-separated sub-module names")


def _add_client_server(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--client-server", action=argparse.BooleanOptionalAction, default=None,
                        help="Force the client/server split on or off (default: from platform)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="libgen",
        description="Scaffold Effect-based TypeScript libraries into a monorepo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  libgen contract order --include-cqrs\n"
            "  libgen data-access order --contract-library @myorg/contract-order\n"
            "  libgen provider stripe --external-service Stripe --provider-type http\n"
            "  libgen domain order --dry-run\n"
        ),
    )
    parser.add_argument("--workspace-root", "-w", default=None,
                        help="Workspace root (default: $LIBGEN_WORKSPACE_ROOT or the current directory)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file")

    commands = parser.add_subparsers(dest="command", required=True)

    contract = commands.add_parser("contract", help="Contract library (ports, errors, events, RPC)")
    _add_common(contract)
    contract.add_argument("--include-cqrs", action="store_true", default=None)
    contract.add_argument("--entities", help="Comma-separated entity names (default: the library name)")
    contract.add_argument("--types-database-package", help="Package providing generated database types")
    _add_sub_modules(contract)

    data_access = commands.add_parser("data-access", help="Repository implementation library")
    _add_common(data_access)
    data_access.add_argument("--contract-library", help="Contract package implemented by this library")
    data_access.add_argument("--include-cache", action="store_true", default=None)
    _add_sub_modules(data_access)

    feature = commands.add_parser("feature", help="Business logic library")
    _add_common(feature)
    feature.add_argument("--data-access-library", help="Data-access package used by the service")
    feature.add_argument("--scope", choices=FEATURE_SCOPES)
    feature.add_argument("--platform", choices=PLATFORMS)
    _add_client_server(feature)
    feature.add_argument("--include-cqrs", action="store_true", default=None)
    feature.add_argument("--no-rpc", action="store_false", default=None, help="Skip the RPC handlers and router")
    _add_sub_modules(feature)

    infra = commands.add_parser("infra", help="Infrastructure library")
    _add_common(infra)
    infra.add_argument("--platform", choices=PLATFORMS)
    _add_client_server(infra)
    infra.add_argument("--providers", help="Comma-separated provider libraries this infra consolidates")

    provider = commands.add_parser("provider", help="External service provider library")
    _add_common(provider)
    provider.add_argument("--external-service", required=True, help="Name of the wrapped service")
    provider.add_argument("--platform", choices=PLATFORMS)
    provider.add_argument("--provider-type", choices=("sdk", "cli", "http", "graphql"))
    provider.add_argument("--operations", help="Comma-separated subset of create,read,update,delete,query")
    provider.add_argument("--cli-command")
    provider.add_argument("--base-url")
    provider.add_argument("--auth-type", choices=("api-key", "oauth", "basic", "bearer", "none"))

    domain = commands.add_parser("domain", help="Contract + data-access + feature, with upstream infrastructure")
    _add_common(domain)
    domain.add_argument("--scope", choices=FEATURE_SCOPES)
    _add_client_server(domain)
    domain.add_argument("--include-cqrs", action="store_true", default=None)
    domain.add_argument("--include-cache", action="store_true", default=None)
    _add_sub_modules(domain)

    return parser


def options_from_args(args: argparse.Namespace) -> dict[str, Any]:
    """Turn parsed arguments into the raw option mapping the executor validates."""
    options: dict[str, Any] = {}
    for dest, value in vars(args).items():
        if dest in _NOT_OPTIONS or value is None:
            continue
        options[_RENAMED.get(dest, dest)] = value
    if options.get("sub_modules"):
        options["include_sub_modules"] = True
    return options


def _report(report: ExecutionReport) -> None:
    result = report.result
    print_summary_table(
        {
            "Type": report.library_type.value,
            "Package": result.package_name,
            "Project root": result.project_root,
            "Files": str(len(result.files_generated)),
        },
        title=result.project_name,
    )
    print_file_list(list(result.files_generated))


async def _run(args: argparse.Namespace) -> None:
    config = WorkspaceConfig.from_env(args.workspace_root)
    executor = Executor(config, DiskAdapter(config.workspace_root))
    options = options_from_args(args)

    if args.command == "domain":
        resolver = DependencyResolver(executor)
        print_stage_header(f"Domain: {args.name}")
        domain = await resolver.generate_domain(options)
        for report in domain.reports:
            _report(report)
        reports = domain.reports
    else:
        print_stage_header(f"{args.command}: {args.name}")
        report = await executor.execute(LibraryType(args.command), options)
        _report(report)
        reports = [report]

    if options.get("dry_run"):
        staged = sum(len(report.changes) for report in reports)
        print_warning(f"Dry run: {staged} file(s) staged, nothing written to {config.workspace_root}")
    else:
        print_success(f"Generated {sum(len(r.files_generated) for r in reports)} file(s)")


def run(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the command and return the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose, log_file=args.log_file)
    try:
        asyncio.run(_run(args))
    except LibgenError as exc:
        print_error(f"Error: {exc}")
        return 1
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted[/yellow]")
        return 130
    return 0


def main() -> None:
    """CLI entry point for ``libgen`` / ``python -m libgen``."""
    sys.exit(run())


if __name__ == "__main__":
    main()
