"""Removal session orchestration: detect, select, edit, persist."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from sln_prune.config import CliOverrides, PruneConfig, load_effective_config
from sln_prune.graph import IncompleteGraphError, ReferenceCycleError, detect_unused
from sln_prune.logging import AuditEvent, JsonlAuditLogger, sanitize_metadata, utc_timestamp
from sln_prune.manifest import (
    ManifestParseError,
    ProjectEntry,
    RemovalResult,
    RemovedEntry,
    SurgeryWarning,
    apply_removal,
)

STATUS_REMOVED = "removed"
STATUS_DRY_RUN = "dry_run"
STATUS_NOTHING_TO_REMOVE = "nothing_to_remove"
STATUS_CANCELLED = "cancelled"
STATUS_FAILED = "failed"

_session_counter = itertools.count(1)


@dataclass(slots=True)
class RemovalCandidate:
    """Unused project offered to the selection step."""

    entry: ProjectEntry
    remove: bool = True


Selector = Callable[[list[RemovalCandidate]], bool]


def approve_all(candidates: list[RemovalCandidate]) -> bool:
    """Selector that keeps every candidate selected."""
    _ = candidates
    return True


@dataclass(slots=True, frozen=True)
class SessionOutcome:
    """Final state of one removal session."""

    session_id: str
    status: str
    manifest_path: Path
    message: str
    error_code: str | None = None
    cause: str | None = None
    unused: tuple[ProjectEntry, ...] = ()
    removed: tuple[RemovedEntry, ...] = ()
    pruned_folders: tuple[RemovedEntry, ...] = ()
    warnings: tuple[SurgeryWarning, ...] = ()
    text: str | None = None
    written: bool = False
    descriptors_read: int = 0

    @property
    def ok(self) -> bool:
        """Return True unless detection or parsing failed."""
        return self.status != STATUS_FAILED

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable envelope."""
        payload: dict[str, object] = {
            "session_id": self.session_id,
            "ok": self.ok,
            "status": self.status,
            "manifest": str(self.manifest_path),
            "message": self.message,
            "written": self.written,
            "descriptors_read": self.descriptors_read,
            "unused": [_entry_to_dict(entry) for entry in self.unused],
            "removed": [_removed_to_dict(entry) for entry in self.removed],
            "pruned_folders": [_removed_to_dict(entry) for entry in self.pruned_folders],
            "warnings": [
                {"code": warning.code, "entry_id": warning.entry_id, "message": warning.message}
                for warning in self.warnings
            ],
        }
        if self.error_code is not None:
            error: dict[str, object] = {"code": self.error_code, "message": self.message}
            if self.cause is not None:
                error["cause"] = self.cause
            payload["error"] = error
        return payload


def _entry_to_dict(entry: ProjectEntry) -> dict[str, object]:
    return {
        "id": entry.entry_id,
        "name": entry.name,
        "relative_path": entry.relative_path,
        "nested_path": entry.nested_path,
    }


def _removed_to_dict(entry: RemovedEntry) -> dict[str, object]:
    return {
        "id": entry.entry_id,
        "name": entry.name,
        "relative_path": entry.relative_path,
        "is_project": entry.is_project,
    }


class RemovalSession:
    """Sequences detection, selection, surgery and a single write-back."""

    def __init__(
        self,
        manifest_path: Path,
        config: PruneConfig,
        audit_logger: JsonlAuditLogger | None = None,
        session_id: str | None = None,
    ) -> None:
        self._manifest_path = manifest_path.resolve()
        self._config = config
        self._audit_logger = audit_logger
        self._session_id = session_id or f"session-{next(_session_counter):06d}"

    @property
    def config(self) -> PruneConfig:
        """Return the effective configuration."""
        return self._config

    @property
    def audit_logger(self) -> JsonlAuditLogger | None:
        """Return the audit logger, or None when auditing is disabled."""
        return self._audit_logger

    @property
    def session_id(self) -> str:
        """Return the identifier written to the audit log."""
        return self._session_id

    def run(self, selector: Selector = approve_all, dry_run: bool = False) -> SessionOutcome:
        """Run one session; the manifest is written at most once, at the end."""
        outcome = self._run(selector, dry_run)
        self.log_outcome(outcome)
        return outcome

    def _run(self, selector: Selector, dry_run: bool) -> SessionOutcome:
        prune = self._config.removal.prune_empty_folders
        try:
            detection = detect_unused(self._manifest_path, self._config.manifest)
        except ManifestParseError as error:
            return self.failure(
                error.code, "The solution manifest could not be read.", error.reason
            )
        except IncompleteGraphError as error:
            return self.failure(
                error.code,
                "A referenced project file is missing; no project was classified as unused.",
                str(error),
            )
        except ReferenceCycleError as error:
            return self.failure(
                error.code,
                "Project references form a cycle; no project was classified as unused.",
                str(error),
            )

        unused = detection.unused
        read = detection.reachability.descriptors_read
        if not unused:
            return self.outcome(
                STATUS_NOTHING_TO_REMOVE, "No unused projects found.", descriptors_read=read
            )

        candidates = [RemovalCandidate(entry=entry) for entry in unused]
        if not selector(candidates):
            return self.outcome(
                STATUS_CANCELLED, "Removal cancelled.", unused=unused, descriptors_read=read
            )
        approved = [candidate.entry for candidate in candidates if candidate.remove]
        if not approved and not prune:
            return self.outcome(
                STATUS_NOTHING_TO_REMOVE,
                "No projects approved for removal.",
                unused=unused,
                descriptors_read=read,
            )

        result = apply_removal(
            detection.registry.text,
            [entry.entry_id for entry in approved],
            prune_empty_folders=prune,
            config=self._config.manifest,
        )
        if not result.changed:
            return self.outcome(
                STATUS_NOTHING_TO_REMOVE,
                "Nothing to remove.",
                unused=unused,
                result=result,
                descriptors_read=read,
            )
        if dry_run:
            return self.outcome(
                STATUS_DRY_RUN,
                _removal_message(result, written=False),
                unused=unused,
                result=result,
                descriptors_read=read,
            )
        self._manifest_path.write_text(result.text, encoding="utf-8", newline="")
        return self.outcome(
            STATUS_REMOVED,
            _removal_message(result, written=True),
            unused=unused,
            result=result,
            written=True,
            descriptors_read=read,
        )

    def outcome(
        self,
        status: str,
        message: str,
        unused: tuple[ProjectEntry, ...] = (),
        result: RemovalResult | None = None,
        written: bool = False,
        descriptors_read: int = 0,
    ) -> SessionOutcome:
        """Build a non-failure outcome."""
        return SessionOutcome(
            session_id=self._session_id,
            status=status,
            manifest_path=self._manifest_path,
            message=message,
            unused=unused,
            removed=result.removed if result is not None else (),
            pruned_folders=result.pruned_folders if result is not None else (),
            warnings=result.warnings if result is not None else (),
            text=result.text if result is not None else None,
            written=written,
            descriptors_read=descriptors_read,
        )

    def failure(self, code: str, message: str, cause: str) -> SessionOutcome:
        """Build a failure outcome; nothing has been written."""
        return SessionOutcome(
            session_id=self._session_id,
            status=STATUS_FAILED,
            manifest_path=self._manifest_path,
            message=message,
            error_code=code,
            cause=cause,
        )

    def log_outcome(self, outcome: SessionOutcome) -> None:
        """Log one sanitized session event."""
        if self._audit_logger is None:
            return
        event = AuditEvent(
            timestamp=utc_timestamp(),
            session_id=outcome.session_id,
            operation="remove_unused_projects",
            ok=outcome.ok,
            aborted=outcome.status in {STATUS_FAILED, STATUS_CANCELLED},
            error_code=outcome.error_code,
            metadata=sanitize_metadata(
                {
                    "manifest": outcome.manifest_path.name,
                    "status": outcome.status,
                    "unused_ids": [entry.entry_id for entry in outcome.unused],
                    "removed_ids": [entry.entry_id for entry in outcome.removed],
                    "pruned_folder_ids": [entry.entry_id for entry in outcome.pruned_folders],
                    "warning_count": len(outcome.warnings),
                    "written": outcome.written,
                    "descriptors_read": outcome.descriptors_read,
                    "cause": outcome.cause,
                }
            ),
        )
        self._audit_logger.append(event)


def _removal_message(result: RemovalResult, written: bool) -> str:
    verb = "Removed" if written else "Would remove"
    projects = sum(1 for entry in result.removed if entry.is_project)
    folders = len(result.pruned_folders) + sum(
        1 for entry in result.removed if not entry.is_project
    )
    return f"{verb} {projects} project(s) and {folders} folder(s)."


def create_session(
    manifest_path: str | Path,
    cli_overrides: CliOverrides | None = None,
    session_id: str | None = None,
) -> RemovalSession:
    """Create a configured session for one manifest."""
    path = Path(manifest_path).resolve()
    config = load_effective_config(path, cli_overrides)
    audit_logger = None
    if config.audit.enabled:
        audit_logger = JsonlAuditLogger(path=config.audit.data_dir / "audit.jsonl")
    return RemovalSession(
        manifest_path=path,
        config=config,
        audit_logger=audit_logger,
        session_id=session_id,
    )


@dataclass(slots=True)
class KeepSelector:
    """Selector that deselects candidates named by id or declared name."""

    keep: tuple[str, ...] = ()
    confirm: Callable[[list[RemovalCandidate]], bool] | None = None
    kept: list[str] = field(default_factory=list)

    def __call__(self, candidates: list[RemovalCandidate]) -> bool:
        wanted = {item.strip().strip("{}").upper() for item in self.keep}
        wanted_names = {item.strip().casefold() for item in self.keep}
        for candidate in candidates:
            entry = candidate.entry
            if entry.entry_id in wanted or entry.name.casefold() in wanted_names:
                candidate.remove = False
                self.kept.append(entry.entry_id)
        if self.confirm is None:
            return True
        return self.confirm(candidates)
