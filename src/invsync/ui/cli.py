#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from dotenv import load_dotenv

from invsync.adapters.dms import build_snapshot_fetcher
from invsync.app import build_orchestrator, preview_target, scope_for, sync_all, sync_target
from invsync.config import configure_logging, get_dms_config, get_location_config, get_sync_config
from invsync.domain.model import SyncTarget

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from invsync.domain.reconciliation import SyncOrchestrator

log = logging.getLogger(__name__)

_TARGET_CHOICES = [target.value for target in SyncTarget]


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--company-id",
        type=str,
        help="Company to reconcile (defaults to INVSYNC_COMPANY_ID)",
    )
    common.add_argument(
        "--location-id",
        type=str,
        help="Location to reconcile (defaults to INVSYNC_LOCATION_ID)",
    )
    source = common.add_mutually_exclusive_group()
    source.add_argument(
        "--snapshot-dir",
        type=str,
        help="Directory holding the exported snapshot files",
    )
    source.add_argument(
        "--snapshot-url",
        type=str,
        help="Base URL serving the exported snapshot files",
    )
    common.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Rows written per batch (defaults to config)",
    )
    common.add_argument(
        "--no-mark-orphans",
        action="store_true",
        help="Report orphaned items without flagging them in storage",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return common


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    common = _common_options()
    parser = argparse.ArgumentParser(description="Reconcile stored inventory with DMS exports")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", parents=[common], help="Sync a single target")
    sync.add_argument("target", choices=_TARGET_CHOICES, help="Target to reconcile")
    sync.add_argument("--run-id", type=str, help="Idempotency token for this run")

    sync_everything = subparsers.add_parser(
        "sync-all",
        parents=[common],
        help="Sync every target in lifecycle order",
    )
    sync_everything.add_argument("--run-id", type=str, help="Idempotency token for this run")
    sync_everything.add_argument(
        "--targets",
        nargs="+",
        choices=_TARGET_CHOICES,
        help="Restrict the run to these targets (order is fixed)",
    )

    preview = subparsers.add_parser(
        "preview",
        parents=[common],
        help="Show what a sync would change without writing",
    )
    preview.add_argument("target", choices=_TARGET_CHOICES, help="Target to preview")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid run id: {value}") from exc


def _validate(args: argparse.Namespace) -> None:
    if args.batch_size is not None and args.batch_size < 1:
        raise ValueError("Batch size must be positive")
    run_id = getattr(args, "run_id", None)
    args.run_id = _parse_uuid(run_id) if run_id else None


def _build_orchestrator(args: argparse.Namespace) -> SyncOrchestrator:
    sync_config = get_sync_config()
    if args.batch_size is not None:
        sync_config = replace(sync_config, batch_size=args.batch_size)
    if args.no_mark_orphans:
        sync_config = replace(sync_config, mark_orphans=False)
    dms_config = get_dms_config(snapshot_url=args.snapshot_url, snapshot_dir=args.snapshot_dir)
    return build_orchestrator(
        fetcher=build_snapshot_fetcher(dms_config),
        sync_config=sync_config,
    )


def _emit(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        location = get_location_config(
            company_id=parsed_args.company_id,
            location_id=parsed_args.location_id,
        )
        scope = scope_for(location.company_id, location.location_id)
        orchestrator = _build_orchestrator(parsed_args)

        if parsed_args.command == "sync":
            result = sync_target(
                SyncTarget(parsed_args.target),
                scope=scope,
                run_id=parsed_args.run_id,
                orchestrator=orchestrator,
            )
            payload, success = result.to_dict(), result.success
        elif parsed_args.command == "sync-all":
            targets = [SyncTarget(value) for value in parsed_args.targets or _TARGET_CHOICES]
            aggregate = sync_all(
                scope=scope,
                run_id=parsed_args.run_id,
                targets=targets,
                orchestrator=orchestrator,
            )
            payload, success = aggregate.to_dict(), aggregate.success
        elif parsed_args.command == "preview":
            result = preview_target(
                SyncTarget(parsed_args.target),
                scope=scope,
                orchestrator=orchestrator,
            )
            payload, success = result.to_dict(), result.success
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)

    _emit(payload)
    if not success:
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()
