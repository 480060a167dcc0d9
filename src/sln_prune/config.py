"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "sln_prune.toml"
DEFAULT_PROJECT_EXTENSIONS = (".csproj", ".vbproj", ".fsproj")
DEFAULT_VERSION_CONTROL_SECTIONS = ("TeamFoundationVersionControl", "SourceCodeControl")
DEFAULT_DATA_DIR_NAME = ".sln_prune"


@dataclass(slots=True, frozen=True)
class ManifestConfig:
    """Manifest grammar settings."""

    project_extensions: tuple[str, ...]
    version_control_sections: tuple[str, ...]

    def is_project_path(self, relative_path: str) -> bool:
        """Return True when a registration path points at a project descriptor."""
        lowered = relative_path.strip().lower()
        return any(lowered.endswith(extension.lower()) for extension in self.project_extensions)


@dataclass(slots=True, frozen=True)
class RemovalConfig:
    """Removal behaviour toggles."""

    prune_empty_folders: bool


@dataclass(slots=True, frozen=True)
class AuditConfig:
    """Audit log settings."""

    enabled: bool
    data_dir: Path


@dataclass(slots=True, frozen=True)
class PruneConfig:
    """Fully merged configuration for one manifest."""

    manifest_dir: Path
    manifest: ManifestConfig
    removal: RemovalConfig
    audit: AuditConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for JSON output."""
        return {
            "manifest_dir": str(self.manifest_dir),
            "manifest": {
                "project_extensions": list(self.manifest.project_extensions),
                "version_control_sections": list(self.manifest.version_control_sections),
            },
            "removal": {
                "prune_empty_folders": self.removal.prune_empty_folders,
            },
            "audit": {
                "enabled": self.audit.enabled,
                "data_dir": str(self.audit.data_dir),
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    prune_empty_folders: bool | None = None
    project_extensions: tuple[str, ...] | None = None
    audit_enabled: bool | None = None


def default_config(manifest_dir: Path) -> PruneConfig:
    """Build default config for the directory holding a manifest."""
    resolved_dir = manifest_dir.resolve()
    return PruneConfig(
        manifest_dir=resolved_dir,
        manifest=ManifestConfig(
            project_extensions=DEFAULT_PROJECT_EXTENSIONS,
            version_control_sections=DEFAULT_VERSION_CONTROL_SECTIONS,
        ),
        removal=RemovalConfig(prune_empty_folders=True),
        audit=AuditConfig(enabled=True, data_dir=resolved_dir / DEFAULT_DATA_DIR_NAME),
    )


def load_config_file(manifest_dir: Path) -> dict[str, object]:
    """Load optional sln_prune.toml from the manifest directory."""
    config_path = manifest_dir / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ValueError(
                f"Config field '{section}.{field}' must contain only non-empty strings."
            )
        output.append(item.strip())
    if not output:
        raise ValueError(f"Config field '{section}.{field}' must not be empty.")
    return tuple(output)


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def merge_config(
    base: PruneConfig, file_payload: dict[str, object], overrides: CliOverrides
) -> PruneConfig:
    """Merge defaults, config file, then CLI/startup overrides."""
    manifest_payload = _get_table(file_payload, "manifest")
    removal_payload = _get_table(file_payload, "removal")
    audit_payload = _get_table(file_payload, "audit")

    project_extensions = base.manifest.project_extensions
    if "project_extensions" in manifest_payload:
        project_extensions = _tuple_of_strings(
            manifest_payload["project_extensions"], "manifest", "project_extensions"
        )
    version_control_sections = base.manifest.version_control_sections
    if "version_control_sections" in manifest_payload:
        version_control_sections = _tuple_of_strings(
            manifest_payload["version_control_sections"], "manifest", "version_control_sections"
        )

    prune_empty_folders = _optional_bool(
        removal_payload.get("prune_empty_folders"),
        "removal.prune_empty_folders",
        base.removal.prune_empty_folders,
    )
    audit_enabled = _optional_bool(
        audit_payload.get("enabled"), "audit.enabled", base.audit.enabled
    )
    data_dir = base.audit.data_dir
    if "data_dir" in audit_payload:
        raw_data_dir = audit_payload["data_dir"]
        if not isinstance(raw_data_dir, str) or not raw_data_dir.strip():
            raise ValueError("Config field 'audit.data_dir' must be a non-empty string.")
        data_dir = base.manifest_dir / raw_data_dir

    merged = PruneConfig(
        manifest_dir=base.manifest_dir,
        manifest=ManifestConfig(
            project_extensions=project_extensions,
            version_control_sections=version_control_sections,
        ),
        removal=RemovalConfig(prune_empty_folders=prune_empty_folders),
        audit=AuditConfig(enabled=audit_enabled, data_dir=data_dir),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: PruneConfig, overrides: CliOverrides) -> PruneConfig:
    """Apply startup overrides at highest precedence."""
    project_extensions = config.manifest.project_extensions
    if overrides.project_extensions is not None:
        project_extensions = _tuple_of_strings(
            list(overrides.project_extensions), "overrides", "project_extensions"
        )
    prune_empty_folders = (
        overrides.prune_empty_folders
        if overrides.prune_empty_folders is not None
        else config.removal.prune_empty_folders
    )
    audit_enabled = (
        overrides.audit_enabled if overrides.audit_enabled is not None else config.audit.enabled
    )
    data_dir = overrides.data_dir or config.audit.data_dir
    return PruneConfig(
        manifest_dir=config.manifest_dir,
        manifest=ManifestConfig(
            project_extensions=project_extensions,
            version_control_sections=config.manifest.version_control_sections,
        ),
        removal=RemovalConfig(prune_empty_folders=prune_empty_folders),
        audit=AuditConfig(enabled=audit_enabled, data_dir=data_dir.resolve()),
    )


def load_effective_config(
    manifest_path: Path, overrides: CliOverrides | None = None
) -> PruneConfig:
    """Load effective config using merge order defaults -> config file -> overrides."""
    manifest_dir = manifest_path.resolve().parent
    base = default_config(manifest_dir)
    payload = load_config_file(manifest_dir)
    return merge_config(base, payload, overrides or CliOverrides())
