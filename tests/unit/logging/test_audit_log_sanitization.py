from __future__ import annotations

from sln_prune.logging import sanitize_metadata


def test_free_text_is_reduced_to_presence_and_length() -> None:
    sanitized = sanitize_metadata(
        {
            "manifest": "Product.sln",
            "status": "failed",
            "cause": "Project file is missing: C:\\secret\\path\\Core.csproj",
        }
    )

    assert sanitized["manifest"] == "Product.sln"
    assert sanitized["status"] == "failed"
    assert "cause" not in sanitized
    assert sanitized["cause_present"] is True
    assert sanitized["cause_length"] == len(
        "Project file is missing: C:\\secret\\path\\Core.csproj"
    )


def test_id_lists_are_kept_and_other_values_are_summarized() -> None:
    sanitized = sanitize_metadata(
        {
            "removed_ids": ["33333333-3333-3333-3333-333333333333"],
            "names": ["Orphan", "Legacy"],
            "options": {"dry_run": True},
            "warning_count": 0,
            "written": True,
            "cause": None,
        }
    )

    assert sanitized["removed_ids"] == ["33333333-3333-3333-3333-333333333333"]
    assert sanitized["names_type"] == "list"
    assert sanitized["names_length"] == 2
    assert sanitized["options_keys"] == ["dry_run"]
    assert sanitized["warning_count"] == 0
    assert sanitized["written"] is True
    assert sanitized["cause"] is None
