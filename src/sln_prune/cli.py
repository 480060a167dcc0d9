"""`sln-prune` command line entrypoint."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TextIO

from sln_prune.config import CliOverrides
from sln_prune.manifest import RemovalResult, format_removal_summary
from sln_prune.session import (
    STATUS_DRY_RUN,
    STATUS_REMOVED,
    KeepSelector,
    RemovalCandidate,
    RemovalSession,
    SessionOutcome,
    create_session,
)


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for one removal run."""
    parser = argparse.ArgumentParser(
        prog="sln-prune",
        description="Remove projects no root project references from a solution manifest.",
    )
    parser.add_argument("manifest", help="Path to the solution manifest (.sln).")
    parser.add_argument("--yes", action="store_true", help="Approve removal without prompting.")
    parser.add_argument("--dry-run", action="store_true", help="Report without writing.")
    parser.add_argument("--json", action="store_true", help="Print the outcome as JSON.")
    parser.add_argument(
        "--keep",
        action="append",
        default=[],
        metavar="ID_OR_NAME",
        help="Keep an unused project (repeatable).",
    )
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument(
        "--prune-empty-folders", choices=("true", "false"), required=False, default=None
    )
    parser.add_argument(
        "--project-extension",
        action="append",
        default=None,
        metavar="EXT",
        help="Registration path suffix that marks a project (repeatable).",
    )
    parser.add_argument("--no-audit", action="store_true", help="Do not append to the audit log.")
    parser.add_argument(
        "--show-config", action="store_true", help="Print the effective configuration and exit."
    )
    parser.add_argument(
        "--audit-tail",
        type=int,
        default=None,
        metavar="N",
        help="Print the latest N events of the audit log and exit.",
    )
    parser.add_argument(
        "--audit-since",
        default=None,
        metavar="TIMESTAMP",
        help="With --audit-tail, skip events older than this ISO-8601 timestamp.",
    )
    return parser


def overrides_from_args(args: argparse.Namespace) -> CliOverrides:
    """Translate parsed arguments into config overrides."""
    prune_empty_folders: bool | None = None
    if args.prune_empty_folders == "true":
        prune_empty_folders = True
    if args.prune_empty_folders == "false":
        prune_empty_folders = False
    return CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        prune_empty_folders=prune_empty_folders,
        project_extensions=(
            tuple(args.project_extension) if args.project_extension is not None else None
        ),
        audit_enabled=False if args.no_audit else None,
    )


def _prompt_confirm(
    in_stream: TextIO, out_stream: TextIO
) -> Callable[[list[RemovalCandidate]], bool]:
    def confirm(candidates: list[RemovalCandidate]) -> bool:
        out_stream.write(render_candidates(candidates))
        out_stream.write("Remove the selected projects? [y/N] ")
        out_stream.flush()
        answer = in_stream.readline().strip().lower()
        return answer in {"y", "yes"}

    return confirm


def _decline(candidates: list[RemovalCandidate]) -> bool:
    _ = candidates
    return False


def _write_audit_tail(
    session: RemovalSession, limit: int, since: str | None, out_stream: TextIO
) -> int:
    logger = session.audit_logger
    if logger is None:
        out_stream.write("Audit log is disabled.\n")
        return 0
    for event in logger.read(since=since, limit=limit):
        out_stream.write(f"{json.dumps(event, sort_keys=True)}\n")
    out_stream.flush()
    return 0


def render_candidates(candidates: list[RemovalCandidate]) -> str:
    """Render unused projects, marking the ones kept."""
    lines = [f"Unused projects ({len(candidates)}):"]
    for candidate in candidates:
        entry = candidate.entry
        marker = "x" if candidate.remove else " "
        location = f"{entry.nested_path}/" if entry.nested_path else ""
        lines.append(f"  [{marker}] {location}{entry.name} ({entry.relative_path})")
    return "\n".join(lines) + "\n"


def render_outcome(outcome: SessionOutcome) -> str:
    """Render a human-readable outcome report."""
    lines = [outcome.message]
    if outcome.cause is not None:
        lines.append(f"cause: {outcome.cause}")
    if outcome.status in {STATUS_REMOVED, STATUS_DRY_RUN}:
        summary = format_removal_summary(
            RemovalResult(
                text="",
                removed=outcome.removed,
                pruned_folders=outcome.pruned_folders,
                warnings=outcome.warnings,
            )
        )
        lines.append(summary)
    return "\n".join(lines) + "\n"


def main(
    argv: list[str] | None = None,
    in_stream: TextIO | None = None,
    out_stream: TextIO | None = None,
) -> int:
    """Entrypoint for the sln-prune command."""
    stdin = in_stream or sys.stdin
    stdout = out_stream or sys.stdout
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        session = create_session(args.manifest, cli_overrides=overrides_from_args(args))
    except ValueError as error:
        stdout.write(f"Invalid configuration: {error}\n")
        return 2

    if args.audit_tail is not None:
        return _write_audit_tail(session, args.audit_tail, args.audit_since, stdout)

    if args.show_config:
        stdout.write(f"{json.dumps(session.config.to_public_dict(), sort_keys=True)}\n")
        stdout.flush()
        return 0

    confirm: Callable[[list[RemovalCandidate]], bool] | None = None
    if not args.yes and not args.dry_run:
        confirm = _decline if args.json else _prompt_confirm(stdin, stdout)
    selector = KeepSelector(keep=tuple(args.keep), confirm=confirm)
    outcome = session.run(selector=selector, dry_run=args.dry_run)

    if args.json:
        stdout.write(f"{json.dumps(outcome.to_dict(), sort_keys=True)}\n")
    else:
        stdout.write(render_outcome(outcome))
    stdout.flush()
    return 0 if outcome.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
