"""CLI entry point: validate, sync, grant, revoke, scheduler."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional

from baton_datadog.config import load_config
from baton_datadog.connector import DatadogConnector
from baton_datadog.context import CallContext
from baton_datadog.errors import ConnectorError
from baton_datadog.logging_config import configure_logging
from baton_datadog.models import Entitlement, Grant, Resource, ResourceId, ResourceKind
from baton_datadog.sync import Record, SyncRunner

logger = logging.getLogger("connector.cli")

KIND_CHOICES = ["all"] + [k.value for k in ResourceKind]


def _record_name(record: Record) -> str:
    if isinstance(record, Resource):
        return "resource"
    if isinstance(record, Entitlement):
        return "entitlement"
    return "grant"


def write_json_line(record: Record) -> None:
    """Sink that prints one JSON object per record on stdout."""
    line = {"record": _record_name(record), **record.to_dict()}
    sys.stdout.write(json.dumps(line) + "\n")


def _connector(args: argparse.Namespace):
    config = load_config(site=args.site, api_key=args.api_key, app_key=args.app_key)
    return config, DatadogConnector.new(config)


def _context(args: argparse.Namespace) -> CallContext:
    if args.timeout:
        return CallContext.with_timeout(args.timeout)
    return CallContext.background()


def cmd_validate(args: argparse.Namespace) -> None:
    _, connector = _connector(args)
    try:
        connector.validate(_context(args))
        print("Credentials valid.")
    finally:
        connector.close()


def cmd_sync(args: argparse.Namespace) -> None:
    """Run one full sync pass and print every record as a JSON line."""
    config, connector = _connector(args)
    ctx = _context(args)
    try:
        connector.validate(ctx)
        kinds = None if args.kind == "all" else [ResourceKind(args.kind)]
        runner = SyncRunner(connector.resource_syncers(), max_workers=config.max_workers)
        results = runner.sync(ctx, write_json_line, kinds=kinds)
        logger.info("Sync results: %s", results)
    finally:
        connector.close()


def _mutation_args(args: argparse.Namespace) -> tuple[Resource, Entitlement]:
    entitlement = Entitlement.from_id(args.entitlement)
    principal = Resource(
        id=ResourceId(args.principal_type, args.principal_id),
        display_name=args.principal_id,
    )
    return principal, entitlement


def cmd_grant(args: argparse.Namespace) -> None:
    _, connector = _connector(args)
    try:
        principal, entitlement = _mutation_args(args)
        connector.mutation_gateway().grant(_context(args), principal, entitlement)
        print(f"Granted {entitlement.id} to {principal.id}")
    finally:
        connector.close()


def cmd_revoke(args: argparse.Namespace) -> None:
    _, connector = _connector(args)
    try:
        principal, entitlement = _mutation_args(args)
        grant = Grant(
            entitlement_resource=entitlement.resource_id,
            slug=entitlement.slug,
            principal=principal.id,
        )
        connector.mutation_gateway().revoke(_context(args), grant)
        print(f"Revoked {grant.id}")
    finally:
        connector.close()


def cmd_scheduler(args: argparse.Namespace) -> None:
    """Start the APScheduler-based scheduling loop."""
    from baton_datadog.scheduler import start_scheduler

    config, connector = _connector(args)
    try:
        connector.validate(CallContext.background())
        start_scheduler(connector, config, write_json_line)
    finally:
        connector.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="baton-datadog",
        description="Sync users, teams and roles from Datadog",
    )
    parser.add_argument("--site", help="Datadog site, e.g. datadoghq.com ($BATON_SITE)")
    parser.add_argument("--api-key", help="Datadog API key ($BATON_API_KEY)")
    parser.add_argument("--app-key", help="Datadog application key ($BATON_APP_KEY)")
    parser.add_argument("--log-level", default="INFO", help="Log level (default: INFO)")
    parser.add_argument(
        "--timeout",
        type=float,
        default=0,
        help="Abort the command after this many seconds (default: no deadline)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="Check the API and application keys")
    validate_parser.set_defaults(func=cmd_validate)

    sync_parser = subparsers.add_parser("sync", help="Run one full sync pass")
    sync_parser.add_argument(
        "--kind", "-k",
        choices=KIND_CHOICES,
        default="all",
        help="Resource kind to sync (default: all)",
    )
    sync_parser.set_defaults(func=cmd_sync)

    for name, func, help_text in (
        ("grant", cmd_grant, "Grant an entitlement to a principal"),
        ("revoke", cmd_revoke, "Revoke an entitlement from a principal"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--entitlement", "-e",
            required=True,
            help="Entitlement id, e.g. team:<team-id>:admin or role:<role-id>:member",
        )
        sub.add_argument("--principal-id", "-p", required=True, help="Principal resource id")
        sub.add_argument(
            "--principal-type",
            choices=[k.value for k in ResourceKind],
            default=ResourceKind.USER.value,
            help="Principal resource type (default: user)",
        )
        sub.set_defaults(func=func)

    sched_parser = subparsers.add_parser("scheduler", help="Start scheduled sync loop")
    sched_parser.set_defaults(func=cmd_scheduler)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        args.func(args)
    except (ConnectorError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
