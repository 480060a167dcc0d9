from __future__ import annotations

from pathlib import Path

from sln_prune.manifest import (
    ENTRY_NOT_FOUND,
    VERSION_CONTROL_INDEX_UNRESOLVABLE,
    ManifestSurgeon,
    apply_removal,
    format_removal_summary,
    parse_manifest,
)

CS = "FAE04EC0-301F-11D3-BF4B-00C04F79EFBC"
FOLDER_TYPE = "2150E333-8FDC-42A3-9474-1A3956D46DE8"
ROOT = "10000000-0000-0000-0000-000000000001"
ONE = "10000000-0000-0000-0000-000000000002"
TWO = "10000000-0000-0000-0000-000000000003"
FOLDER_A = "A0000000-0000-0000-0000-00000000000A"
FOLDER_B = "B0000000-0000-0000-0000-00000000000B"
PROJECT_P = "C0000000-0000-0000-0000-00000000000C"
NATIVE = "D0000000-0000-0000-0000-00000000000D"
ITEMS = "E0000000-0000-0000-0000-00000000000E"
VCXPROJ_TYPE = "8BC9CEB8-8B4A-11D0-8D11-00A0C91BC942"


def _registration(type_id: str, name: str, path: str, entry_id: str) -> list[str]:
    return [f'Project("{{{type_id}}}") = "{name}", "{path}", "{{{entry_id}}}"', "EndProject"]


def _config_lines(entry_id: str) -> list[str]:
    return [
        f"\t\t{{{entry_id}}}.Debug|Any CPU.ActiveCfg = Debug|Any CPU",
        f"\t\t{{{entry_id}}}.Debug|Any CPU.Build.0 = Debug|Any CPU",
    ]


def _tracked_manifest() -> str:
    lines = ["Microsoft Visual Studio Solution File, Format Version 12.00", ""]
    lines += _registration(CS, "Root", "Root\\Root.csproj", ROOT)
    lines += _registration(CS, "One", "..\\One\\One.csproj", ONE)
    lines += _registration(CS, "Two", "..\\Two\\Two.csproj", TWO)
    lines += [
        "Global",
        "\tGlobalSection(TeamFoundationVersionControl) = preSolution",
        "\t\tSccNumberOfProjects = 3",
        "\t\tSccEnterpriseProvider = {4CA58AB2-18FA-4F8D-95D4-32DDF27D184C}",
        "\t\tSccProjectUniqueName0 = Root\\\\Root.csproj",
        "\t\tSccProjectTopLevelParentUniqueName0 = Tracked.sln",
        "\t\tSccProjectName0 = Root",
        "\t\tSccLocalPath0 = Root",
        "\t\tSccProjectUniqueName1 = ..\\\\One\\\\One.csproj",
        "\t\tSccProjectTopLevelParentUniqueName1 = Tracked.sln",
        "\t\tSccProjectName1 = ../One",
        "\t\tSccLocalPath1 = ..\\\\One",
        "\t\tSccProjectUniqueName2 = ..\\\\Two\\\\Two.csproj",
        "\t\tSccProjectTopLevelParentUniqueName2 = Tracked.sln",
        "\t\tSccProjectName2 = ../Two",
        "\t\tSccLocalPath2 = ..\\\\Two",
        "\tEndGlobalSection",
        "\tGlobalSection(ProjectConfigurationPlatforms) = postSolution",
        *_config_lines(ROOT),
        *_config_lines(ONE),
        *_config_lines(TWO),
        "\tEndGlobalSection",
        "EndGlobal",
    ]
    return "\n".join(lines) + "\n"


def _nested_manifest() -> str:
    lines: list[str] = []
    lines += _registration(CS, "Root", "Root\\Root.csproj", ROOT)
    lines += _registration(FOLDER_TYPE, "A", "A", FOLDER_A)
    lines += _registration(FOLDER_TYPE, "B", "B", FOLDER_B)
    lines += _registration(CS, "P", "..\\P\\P.csproj", PROJECT_P)
    lines += [
        "Global",
        "\tGlobalSection(ProjectConfigurationPlatforms) = postSolution",
        *_config_lines(ROOT),
        *_config_lines(PROJECT_P),
        "\tEndGlobalSection",
        "\tGlobalSection(NestedProjects) = preSolution",
        f"\t\t{{{FOLDER_B}}} = {{{FOLDER_A}}}",
        f"\t\t{{{PROJECT_P}}} = {{{FOLDER_B}}}",
        "\tEndGlobalSection",
        "EndGlobal",
    ]
    return "\n".join(lines) + "\n"


def test_version_control_indices_are_renumbered_after_removal() -> None:
    result = apply_removal(_tracked_manifest(), [ONE], prune_empty_folders=False)

    lines = result.text.splitlines()
    scc = [line.strip() for line in lines if line.strip().startswith("Scc")]
    assert scc == [
        "SccNumberOfProjects = 2",
        "SccEnterpriseProvider = {4CA58AB2-18FA-4F8D-95D4-32DDF27D184C}",
        "SccProjectUniqueName0 = Root\\\\Root.csproj",
        "SccProjectTopLevelParentUniqueName0 = Tracked.sln",
        "SccProjectName0 = Root",
        "SccLocalPath0 = Root",
        "SccProjectUniqueName1 = ..\\\\Two\\\\Two.csproj",
        "SccProjectTopLevelParentUniqueName1 = Tracked.sln",
        "SccProjectName1 = ../Two",
        "SccLocalPath1 = ..\\\\Two",
    ]
    assert result.warnings == ()
    assert ONE not in result.text
    assert [entry.name for entry in result.removed] == ["One"]


def test_two_removals_in_one_session_keep_indices_contiguous() -> None:
    result = apply_removal(_tracked_manifest(), [ONE, ROOT], prune_empty_folders=False)

    scc = [line.strip() for line in result.text.splitlines() if line.strip().startswith("Scc")]
    assert "SccNumberOfProjects = 1" in scc
    assert "SccProjectUniqueName0 = ..\\\\Two\\\\Two.csproj" in scc
    assert not any(line.startswith("SccProjectUniqueName1") for line in scc)


def test_unresolvable_version_control_index_is_a_warning() -> None:
    text = _tracked_manifest().replace("SccProjectUniqueName1 = ..\\\\One\\\\One.csproj", "")

    result = apply_removal(text, [ONE], prune_empty_folders=False)

    assert [warning.code for warning in result.warnings] == [VERSION_CONTROL_INDEX_UNRESOLVABLE]
    assert result.warnings[0].entry_id == ONE
    assert f"{{{ONE}}}" not in result.text
    assert "SccNumberOfProjects = 3" in result.text
    assert "SccProjectName1 = ../One" in result.text


def test_unknown_selection_is_reported_and_skipped() -> None:
    missing = "DEADBEEF-0000-0000-0000-000000000000"

    result = apply_removal(_tracked_manifest(), [missing.lower()], prune_empty_folders=False)

    assert [warning.code for warning in result.warnings] == [ENTRY_NOT_FOUND]
    assert result.removed == ()
    assert result.changed is False


def test_removal_deletes_block_config_and_nesting_lines() -> None:
    result = apply_removal(_nested_manifest(), [PROJECT_P], prune_empty_folders=False)

    assert f"{{{PROJECT_P}}}" not in result.text
    assert '"P"' not in result.text
    assert f"{{{FOLDER_B}}} = {{{FOLDER_A}}}" in result.text
    assert f"{{{ROOT}}}.Debug|Any CPU.ActiveCfg = Debug|Any CPU" in result.text
    assert result.pruned_folders == ()


def test_emptied_folder_chain_is_pruned_bottom_up() -> None:
    result = apply_removal(_nested_manifest(), [PROJECT_P], prune_empty_folders=True)

    assert [entry.name for entry in result.pruned_folders] == ["B", "A"]
    assert all(not entry.is_project for entry in result.pruned_folders)
    assert "NestedProjects" in result.text
    assert f"{{{FOLDER_A}}}" not in result.text
    assert f"{{{FOLDER_B}}}" not in result.text
    assert '"Root"' in result.text


def test_pruning_keeps_other_project_kinds_and_folders_with_items() -> None:
    lines = _nested_manifest().splitlines()
    global_index = lines.index("Global")
    lines[global_index:global_index] = [
        *_registration(VCXPROJ_TYPE, "Native", "Native\\Native.vcxproj", NATIVE),
        f'Project("{{{FOLDER_TYPE}}}") = "Solution Items", "Solution Items", "{{{ITEMS}}}"',
        "\tProjectSection(SolutionItems) = preProject",
        "\t\tDirectory.Build.props = Directory.Build.props",
        "\tEndProjectSection",
        "EndProject",
    ]

    result = apply_removal("\n".join(lines) + "\n", [PROJECT_P], prune_empty_folders=True)

    assert [entry.name for entry in result.pruned_folders] == ["B", "A"]
    assert "Native\\Native.vcxproj" in result.text
    assert "Directory.Build.props = Directory.Build.props" in result.text
    assert f"{{{ITEMS}}}" in result.text


def test_version_control_names_with_escaped_spaces_resolve() -> None:
    text = _tracked_manifest().replace(
        'Project("{FAE04EC0-301F-11D3-BF4B-00C04F79EFBC}") = "One", "..\\One\\One.csproj"',
        'Project("{FAE04EC0-301F-11D3-BF4B-00C04F79EFBC}") = "My One", "..\\My One\\My One.csproj"',
    ).replace(
        "SccProjectUniqueName1 = ..\\\\One\\\\One.csproj",
        "SccProjectUniqueName1 = ..\\\\My\\u0020One\\\\My\\u0020One.csproj",
    )

    result = apply_removal(text, [ONE], prune_empty_folders=False)

    assert result.warnings == ()
    assert "My\\u0020One" not in result.text
    assert "SccNumberOfProjects = 2" in result.text
    assert "SccProjectUniqueName1 = ..\\\\Two\\\\Two.csproj" in result.text


def test_empty_selection_only_normalizes_blank_lines() -> None:
    original = _tracked_manifest()

    result = apply_removal(original, [], prune_empty_folders=False)

    expected = "\n".join(line for line in original.split("\n") if line.strip()) + "\n"
    assert result.text == expected
    assert result.changed is False


def test_crlf_manifest_keeps_crlf_after_removal() -> None:
    original = _nested_manifest().replace("\n", "\r\n")

    result = apply_removal(original, [PROJECT_P], prune_empty_folders=False)

    assert "\r\n" in result.text
    assert "\n" not in result.text.replace("\r\n", "")


def test_reinserted_registration_parses_to_the_same_entry(tmp_path: Path) -> None:
    manifest_path = tmp_path / "solution" / "Nested.sln"
    original = _nested_manifest()
    before = parse_manifest(original, manifest_path).projects[PROJECT_P]

    removed = apply_removal(original, [PROJECT_P], prune_empty_folders=False).text
    block = "\n".join(_registration(CS, "P", "..\\P\\P.csproj", PROJECT_P))
    restored = removed.replace(
        "Global\n",
        f"{block}\nGlobal\n",
        1,
    ).replace(
        "\tEndGlobalSection\nEndGlobal",
        f"\t\t{{{PROJECT_P}}} = {{{FOLDER_B}}}\n\tEndGlobalSection\nEndGlobal",
    )
    after = parse_manifest(restored, manifest_path).projects[PROJECT_P]

    assert (after.name, after.relative_path, after.nested_path) == (
        before.name,
        before.relative_path,
        before.nested_path,
    )
    assert after.absolute_path == before.absolute_path


def test_surgeon_removes_folder_selected_directly() -> None:
    surgeon = ManifestSurgeon.from_text(_nested_manifest())

    removed = surgeon.remove_entry(FOLDER_A.lower())

    assert removed is not None
    assert removed.is_project is False
    text = surgeon.render()
    assert '= "A", "A", ' not in text
    assert f"{{{FOLDER_B}}} = {{{FOLDER_A}}}" in text


def test_summary_lists_removed_entries_in_order() -> None:
    result = apply_removal(_nested_manifest(), [PROJECT_P], prune_empty_folders=True)

    assert format_removal_summary(result).splitlines() == [
        "Removed 3 entries:",
        "1. P",
        "2. B (folder)",
        "3. A (folder)",
    ]
