from __future__ import annotations

from pathlib import Path

from sln_prune.config import (
    DEFAULT_PROJECT_EXTENSIONS,
    CliOverrides,
    load_effective_config,
)


def _manifest(tmp_path: Path) -> Path:
    manifest_path = tmp_path / "Product.sln"
    manifest_path.write_text("Global\nEndGlobal\n", encoding="utf-8")
    return manifest_path


def test_defaults_apply_without_config_file(tmp_path: Path) -> None:
    config = load_effective_config(_manifest(tmp_path))

    assert config.manifest_dir == tmp_path.resolve()
    assert config.manifest.project_extensions == DEFAULT_PROJECT_EXTENSIONS
    assert config.removal.prune_empty_folders is True
    assert config.audit.enabled is True
    assert config.audit.data_dir == tmp_path.resolve() / ".sln_prune"


def test_merge_order_defaults_then_file_then_cli(tmp_path: Path) -> None:
    (tmp_path / "sln_prune.toml").write_text(
        "\n".join(
            [
                "[manifest]",
                'project_extensions = [".csproj", ".sqlproj"]',
                "",
                "[removal]",
                "prune_empty_folders = false",
                "",
                "[audit]",
                "enabled = false",
            ]
        ),
        encoding="utf-8",
    )
    overrides = CliOverrides(prune_empty_folders=True)

    config = load_effective_config(_manifest(tmp_path), overrides)

    assert config.manifest.project_extensions == (".csproj", ".sqlproj")
    assert config.removal.prune_empty_folders is True
    assert config.audit.enabled is False


def test_data_dir_override_has_highest_precedence(tmp_path: Path) -> None:
    (tmp_path / "sln_prune.toml").write_text(
        '[audit]\ndata_dir = "from-file"\n', encoding="utf-8"
    )
    custom_data_dir = tmp_path / ".custom_data"

    from_file = load_effective_config(_manifest(tmp_path))
    overridden = load_effective_config(
        _manifest(tmp_path), CliOverrides(data_dir=custom_data_dir)
    )

    assert from_file.audit.data_dir == tmp_path.resolve() / "from-file"
    assert overridden.audit.data_dir == custom_data_dir.resolve()


def test_project_extension_override_decides_what_counts_as_project(tmp_path: Path) -> None:
    config = load_effective_config(
        _manifest(tmp_path), CliOverrides(project_extensions=(".sqlproj",))
    )

    assert config.manifest.is_project_path("Db\\Db.SQLPROJ") is True
    assert config.manifest.is_project_path("App\\App.csproj") is False


def test_public_snapshot_is_json_ready(tmp_path: Path) -> None:
    snapshot = load_effective_config(_manifest(tmp_path)).to_public_dict()

    assert snapshot["manifest_dir"] == str(tmp_path.resolve())
    assert snapshot["manifest"] == {
        "project_extensions": list(DEFAULT_PROJECT_EXTENSIONS),
        "version_control_sections": ["TeamFoundationVersionControl", "SourceCodeControl"],
    }
    assert snapshot["removal"] == {"prune_empty_folders": True}
